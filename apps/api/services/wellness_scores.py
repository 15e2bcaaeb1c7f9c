"""
Wellness score history.

Stored rows are always preferred. Sample data is only shown when the store
answered "no rows" and SEED_SAMPLE_DATA is enabled; a failing store yields
an empty history with a notice, never sample data.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import StoreErrorKind, read_with_default
from models import WellnessScore
from services.seed_data import SampleDataProvider

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_DAYS = 30
MAX_HISTORY_DAYS = 365


@dataclass
class WellnessHistory:
    scores: List[Dict[str, Any]] = field(default_factory=list)
    is_sample: bool = False
    notice: Optional[str] = None


def _row_to_dict(row: WellnessScore) -> Dict[str, Any]:
    return {
        "date": row.date,
        "overall_score": row.overall_score,
        "stress_level": row.stress_level,
        "sleep_hours": row.sleep_hours,
        "mood": row.mood,
        "recovery_score": row.recovery_score,
        "is_sample": False,
    }


class WellnessScoreService:

    def __init__(
        self,
        db: Session,
        sample_provider: Optional[SampleDataProvider] = None,
        seed_sample_data: Optional[bool] = None,
    ):
        self.db = db
        self.sample_provider = sample_provider or SampleDataProvider()
        self.seed_sample_data = settings.SEED_SAMPLE_DATA if seed_sample_data is None else seed_sample_data

    def recent_scores(self, user_id: str, days: int = DEFAULT_HISTORY_DAYS, today: Optional[date] = None) -> WellnessHistory:
        if not 1 <= days <= MAX_HISTORY_DAYS:
            raise ValueError(f"days must be between 1 and {MAX_HISTORY_DAYS}")
        today = today or date.today()
        since = today - timedelta(days=days - 1)

        def read():
            rows = (
                self.db.query(WellnessScore)
                .filter(WellnessScore.user_id == user_id, WellnessScore.date >= since)
                .order_by(WellnessScore.date.desc())
                .all()
            )
            return rows or None

        result = read_with_default(self.db, read, [], label=f"wellness scores {user_id}")
        if not result.is_default:
            return WellnessHistory(scores=[_row_to_dict(r) for r in result.value])

        if result.degraded is StoreErrorKind.NO_ROWS:
            if self.seed_sample_data:
                logger.info(f"No wellness history for {user_id}; serving sample data")
                sample = self.sample_provider.wellness_history(user_id, days, today)
                return WellnessHistory(scores=[asdict(entry) for entry in sample], is_sample=True)
            return WellnessHistory()

        return WellnessHistory(notice="Your wellness history is temporarily unavailable.")
