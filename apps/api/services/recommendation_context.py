"""
Recommendation context loading.

Pulls the per-domain history the recommendation rules look at. Each domain
is fetched independently; a failing fetch is logged and replaced with an
empty list so generation never aborts on partial data.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List
import logging

from sqlalchemy.orm import Session

from models import (
    EmotionalJournalEntry,
    RecoverySession,
    UserMetricHistory,
    WellnessScore,
)

logger = logging.getLogger(__name__)

WEIGHT_HISTORY_LIMIT = 10
WELLNESS_SCORES_LIMIT = 14
JOURNAL_ENTRIES_LIMIT = 5
SLEEP_RECORDS_LIMIT = 7
RECOVERY_SESSIONS_LIMIT = 10

RECOMMENDATION_TYPES = ("workout", "nutrition", "wellness", "recovery")


@dataclass
class RecommendationContext:
    """Newest-first history per domain. Empty lists mean no data or a failed fetch."""
    weight_history: List[UserMetricHistory] = field(default_factory=list)
    wellness_scores: List[WellnessScore] = field(default_factory=list)
    journal_entries: List[EmotionalJournalEntry] = field(default_factory=list)
    sleep_records: List[WellnessScore] = field(default_factory=list)
    recovery_sessions: List[RecoverySession] = field(default_factory=list)
    failed_fetches: List[str] = field(default_factory=list)


class RecommendationContextLoader:

    def __init__(self, db: Session):
        self.db = db

    def load(self, user_id: str, rec_type: str = "all") -> RecommendationContext:
        context = RecommendationContext()
        wants = (lambda domain: rec_type in ("all", domain))

        if wants("workout"):
            context.wellness_scores = self._safe_fetch(context, "wellness_scores", lambda: self._wellness_scores(user_id))
        if wants("nutrition"):
            context.weight_history = self._safe_fetch(context, "weight_history", lambda: self._weight_history(user_id))
        if wants("wellness"):
            if not context.wellness_scores:
                context.wellness_scores = self._safe_fetch(context, "wellness_scores", lambda: self._wellness_scores(user_id))
            context.journal_entries = self._safe_fetch(context, "journal_entries", lambda: self._journal_entries(user_id))
        if wants("recovery"):
            context.sleep_records = self._safe_fetch(context, "sleep_records", lambda: self._sleep_records(user_id))
            context.recovery_sessions = self._safe_fetch(context, "recovery_sessions", lambda: self._recovery_sessions(user_id))

        return context

    def _safe_fetch(self, context: RecommendationContext, label: str, fetch: Callable[[], List[Any]]) -> List[Any]:
        try:
            return list(fetch())
        except Exception as e:
            logger.error(f"Recommendation context: failed to load {label}: {e}")
            context.failed_fetches.append(label)
            try:
                self.db.rollback()
            except Exception as rollback_error:
                logger.debug(f"Rollback after {label} failure also failed: {rollback_error}")
            return []

    # ------------------------------------------------------------------
    # Domain queries
    # ------------------------------------------------------------------

    def _weight_history(self, user_id: str) -> List[UserMetricHistory]:
        return (
            self.db.query(UserMetricHistory)
            .filter(
                UserMetricHistory.user_id == user_id,
                UserMetricHistory.metric_type == "weight",
            )
            .order_by(UserMetricHistory.date.desc())
            .limit(WEIGHT_HISTORY_LIMIT)
            .all()
        )

    def _wellness_scores(self, user_id: str) -> List[WellnessScore]:
        return (
            self.db.query(WellnessScore)
            .filter(WellnessScore.user_id == user_id)
            .order_by(WellnessScore.date.desc())
            .limit(WELLNESS_SCORES_LIMIT)
            .all()
        )

    def _journal_entries(self, user_id: str) -> List[EmotionalJournalEntry]:
        return (
            self.db.query(EmotionalJournalEntry)
            .filter(EmotionalJournalEntry.user_id == user_id)
            .order_by(EmotionalJournalEntry.date.desc())
            .limit(JOURNAL_ENTRIES_LIMIT)
            .all()
        )

    def _sleep_records(self, user_id: str) -> List[WellnessScore]:
        return (
            self.db.query(WellnessScore)
            .filter(
                WellnessScore.user_id == user_id,
                WellnessScore.sleep_hours.isnot(None),
            )
            .order_by(WellnessScore.date.desc())
            .limit(SLEEP_RECORDS_LIMIT)
            .all()
        )

    def _recovery_sessions(self, user_id: str) -> List[RecoverySession]:
        return (
            self.db.query(RecoverySession)
            .filter(RecoverySession.user_id == user_id)
            .order_by(RecoverySession.created_at.desc())
            .limit(RECOVERY_SESSIONS_LIMIT)
            .all()
        )
