"""
Recommendation Engine

Turns training metrics, the user's profile and recent per-domain history
into a short, priority-ordered list of suggestions.

Rules (each adds at most one recommendation; the volume rules run per
muscle group):

    workout    current volume < MEV             -> high    increase volume
               current volume > MRV             -> high    reduce volume
               fatigue index > 7                -> high    program deload
               progression rate < 0.02          -> medium  vary exercises
               latest recovery score < 50       -> high    rest day
               preferred training day           -> medium  strength (muscle_gain)
                                                           or HIIT (fat_loss)
    nutrition  weight up > 0.5 kg and fat_loss  -> medium  calorie adjustment
               water intake < 70% of goal       -> high    hydration
    wellness   latest stress level > 7          -> high    meditation
               last journal entry > 3 days ago  -> medium  journaling
    recovery   last night's sleep < goal - 1h   -> high    sleep
               no stretching in the last 7 days -> medium  stretching

AI core suggestions are merged in before ranking. The ranked list is
stable-sorted by priority, cut to `count`, and every returned item is
inserted as a new row. Previously generated, still-active suggestions are
not consulted, so repeated calls produce duplicates.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.events import emit, EVENT_RECOMMENDATIONS_GENERATED
from core.exceptions import read_with_default
from models import UserProfile, UserRecommendation, ensure_utc, utcnow
from services.ai_core import AICoreClient, NullAICore
from services.recommendation_context import (
    RECOMMENDATION_TYPES,
    RecommendationContext,
    RecommendationContextLoader,
)
from services.training_metrics import TrainingMetrics, TrainingMetricsAggregator

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

FATIGUE_DELOAD_THRESHOLD = 7
SLOW_PROGRESSION_THRESHOLD = 0.02
LOW_RECOVERY_SCORE = 50
WEIGHT_GAIN_THRESHOLD_KG = 0.5
HYDRATION_RATIO = 0.7
HIGH_STRESS_LEVEL = 7
JOURNAL_GAP_DAYS = 3
SLEEP_SHORTFALL_HOURS = 1
STRETCHING_GAP_DAYS = 7


@dataclass
class Recommendation:
    type: str
    title: str
    description: str
    priority: str
    actionable: bool = True
    action_url: Optional[str] = None
    reasoning: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    expires_at: Optional[datetime] = None
    id: Optional[UUID] = None
    is_dismissed: bool = False
    is_completed: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: UserRecommendation) -> "Recommendation":
        return cls(
            id=row.id,
            type=row.type,
            title=row.title,
            description=row.description,
            priority=row.priority,
            actionable=row.actionable,
            action_url=row.action_url,
            reasoning=row.reasoning,
            tags=list(row.tags or []),
            metadata=dict(row.details or {}),
            expires_at=row.expires_at,
            is_dismissed=row.is_dismissed,
            is_completed=row.is_completed,
            created_at=row.created_at,
        )


@dataclass
class RecommendationOptions:
    type: str = "all"
    count: int = 5
    include_reasoning: bool = False

    def __post_init__(self):
        if self.type != "all" and self.type not in RECOMMENDATION_TYPES:
            raise ValueError(f"Unknown recommendation type '{self.type}'")
        if self.count < 1:
            raise ValueError("count must be at least 1")


@dataclass
class GenerationResult:
    recommendations: List[Recommendation]
    saved: bool
    error: Optional[str] = None


# ============================================================================
# Rules
# ============================================================================

def _reason(include: bool, text: str) -> Optional[str]:
    return text if include else None


def training_rules(metrics: TrainingMetrics, include_reasoning: bool = False) -> List[Recommendation]:
    """Threshold checks over the aggregated training metrics."""
    recs: List[Recommendation] = []

    for muscle_group, landmarks in metrics.volume_landmarks.items():
        if landmarks.current_volume < landmarks.mev:
            recs.append(Recommendation(
                type="workout",
                title=f"Increase {muscle_group} volume",
                description=f"Add 2-3 more sets for {muscle_group} exercises this week.",
                priority="high",
                action_url="/training",
                reasoning=_reason(
                    include_reasoning,
                    f"Current volume ({landmarks.current_volume}) is below MEV ({landmarks.mev}).",
                ),
                tags=["volume", muscle_group],
                metadata={
                    "kind": "volume_adjustment",
                    "muscle_group": muscle_group,
                    "expected_outcome": "Improved muscle growth and strength gains",
                    "confidence": 0.85,
                },
            ))
        elif landmarks.current_volume > landmarks.mrv:
            recs.append(Recommendation(
                type="workout",
                title=f"Reduce {muscle_group} volume",
                description=f"Reduce sets by 30-40% for {muscle_group}.",
                priority="high",
                action_url="/training",
                reasoning=_reason(
                    include_reasoning,
                    f"Current volume ({landmarks.current_volume}) exceeds MRV ({landmarks.mrv}).",
                ),
                tags=["deload", muscle_group],
                metadata={
                    "kind": "deload_suggestion",
                    "muscle_group": muscle_group,
                    "expected_outcome": "Better recovery and sustained progress",
                    "confidence": 0.90,
                },
            ))

    if metrics.fatigue_index > FATIGUE_DELOAD_THRESHOLD:
        recs.append(Recommendation(
            type="workout",
            title="Deload week recommended",
            description="Reduce intensity by 20% and volume by 30% for the coming week.",
            priority="high",
            action_url="/training/deload",
            reasoning=_reason(include_reasoning, f"High fatigue index ({metrics.fatigue_index}/10)."),
            tags=["deload", "fatigue", "recovery"],
            metadata={
                "kind": "deload_suggestion",
                "expected_outcome": "Improved recovery and performance",
                "confidence": 0.88,
            },
        ))

    if metrics.progression_rate < SLOW_PROGRESSION_THRESHOLD:
        recs.append(Recommendation(
            type="workout",
            title="Consider exercise variation",
            description="Introduce new exercise variations or rep ranges.",
            priority="medium",
            action_url="/training",
            reasoning=_reason(
                include_reasoning,
                f"Slow progression rate detected ({metrics.progression_rate:.1%} across recent sessions).",
            ),
            tags=["progression", "variation"],
            metadata={
                "kind": "progression",
                "expected_outcome": "Break through plateaus",
                "confidence": 0.75,
            },
        ))

    return recs


def workout_rules(
    profile: UserProfile,
    context: RecommendationContext,
    today: date,
    include_reasoning: bool = False,
) -> List[Recommendation]:
    recs: List[Recommendation] = []

    if context.wellness_scores:
        recovery = context.wellness_scores[0].recovery_score
        if recovery is not None and recovery < LOW_RECOVERY_SCORE:
            recs.append(Recommendation(
                type="workout",
                title="Rest day recommended",
                description="Your fatigue levels suggest taking a rest day to recover properly.",
                priority="high",
                action_url="/recovery",
                reasoning=_reason(
                    include_reasoning,
                    f"Your recovery score is {recovery:g}/100, which points to accumulated fatigue.",
                ),
                tags=["rest", "recovery", "fatigue"],
            ))

    day_name = DAY_NAMES[today.weekday()]
    preferred_days = [d.lower() for d in (profile.preferred_workout_days or [])]
    goals = profile.training_goals or []

    if day_name in preferred_days:
        if "muscle_gain" in goals:
            recs.append(Recommendation(
                type="workout",
                title="Strength session recommended",
                description="Today is a good day for a hypertrophy-focused strength session.",
                priority="medium",
                action_url="/workouts/strength",
                reasoning=_reason(
                    include_reasoning,
                    f"Today is {day_name}, one of your preferred training days, and your goal is muscle gain.",
                ),
                tags=["strength", "hypertrophy", "training"],
            ))
        elif "fat_loss" in goals:
            recs.append(Recommendation(
                type="workout",
                title="HIIT session recommended",
                description="A HIIT session would be ideal today to maximize calorie burn.",
                priority="medium",
                action_url="/workouts/hiit",
                reasoning=_reason(
                    include_reasoning,
                    f"Today is {day_name}, one of your preferred training days, and your goal is fat loss.",
                ),
                tags=["hiit", "cardio", "fat loss"],
            ))

    return recs


def nutrition_rules(
    profile: UserProfile,
    context: RecommendationContext,
    include_reasoning: bool = False,
) -> List[Recommendation]:
    recs: List[Recommendation] = []
    goals = profile.training_goals or []

    if len(context.weight_history) >= 2:
        weight_diff = context.weight_history[0].value - context.weight_history[1].value
        if weight_diff > WEIGHT_GAIN_THRESHOLD_KG and "fat_loss" in goals:
            recs.append(Recommendation(
                type="nutrition",
                title="Calorie adjustment recommended",
                description="Consider trimming your calorie intake slightly to stay on track for fat loss.",
                priority="medium",
                action_url="/nutrition/adjust-calories",
                reasoning=_reason(
                    include_reasoning,
                    f"You gained {weight_diff:.1f} kg since your previous weigh-in, which suggests a calorie surplus.",
                ),
                tags=["calories", "adjustment", "weight loss"],
            ))

    water_goal = profile.water_intake_goal_ml or 0
    water_intake = profile.water_intake_ml or 0
    if water_intake < water_goal * HYDRATION_RATIO:
        recs.append(Recommendation(
            type="nutrition",
            title="Increase your hydration",
            description=f"You are drinking less than 70% of your daily water goal ({water_goal:g} ml).",
            priority="high",
            action_url="/nutrition/water-tracking",
            reasoning=_reason(
                include_reasoning,
                f"Your water intake is {water_intake:g} ml, well below your goal of {water_goal:g} ml.",
            ),
            tags=["hydration", "water", "health"],
        ))

    return recs


def wellness_rules(
    context: RecommendationContext,
    today: date,
    include_reasoning: bool = False,
) -> List[Recommendation]:
    recs: List[Recommendation] = []

    if context.wellness_scores:
        stress = context.wellness_scores[0].stress_level
        if stress is not None and stress > HIGH_STRESS_LEVEL:
            recs.append(Recommendation(
                type="wellness",
                title="Meditation session recommended",
                description="A short meditation session could help bring your stress level down.",
                priority="high",
                action_url="/wellness/recovery?type=meditation",
                reasoning=_reason(include_reasoning, f"Your current stress level is {stress:g}/10."),
                tags=["meditation", "stress", "mindfulness"],
            ))

    if context.journal_entries:
        days_since = (today - context.journal_entries[0].date).days
        if days_since > JOURNAL_GAP_DAYS:
            recs.append(Recommendation(
                type="wellness",
                title="Update your emotional journal",
                description=f"It has been {days_since} days since your last journal entry.",
                priority="medium",
                action_url="/wellness/recovery?tab=journal",
                reasoning=_reason(
                    include_reasoning,
                    "Logging your emotions regularly helps you manage stress and track your wellbeing.",
                ),
                tags=["journal", "emotions", "wellness"],
            ))

    return recs


def recovery_rules(
    profile: UserProfile,
    context: RecommendationContext,
    now: datetime,
    include_reasoning: bool = False,
) -> List[Recommendation]:
    recs: List[Recommendation] = []

    if context.sleep_records:
        sleep_hours = context.sleep_records[0].sleep_hours
        sleep_goal = profile.sleep_goal_hours or 0
        if sleep_hours is not None and sleep_hours < sleep_goal - SLEEP_SHORTFALL_HOURS:
            recs.append(Recommendation(
                type="recovery",
                title="Improve your sleep",
                description="You slept less than recommended. Try going to bed earlier tonight.",
                priority="high",
                action_url="/wellness/recovery?type=sleep",
                reasoning=_reason(
                    include_reasoning,
                    f"You slept {sleep_hours:g} hours, short of your {sleep_goal:g} hour goal.",
                ),
                tags=["sleep", "recovery", "rest"],
            ))

    if context.recovery_sessions:
        stretching = [s for s in context.recovery_sessions if s.type == "stretching"]
        cutoff = now - timedelta(days=STRETCHING_GAP_DAYS)
        if not stretching or ensure_utc(stretching[0].created_at) < cutoff:
            recs.append(Recommendation(
                type="recovery",
                title="Stretching session recommended",
                description="It has been a while since your last stretching session. Fit one in today.",
                priority="medium",
                action_url="/wellness/recovery?type=stretching",
                reasoning=_reason(
                    include_reasoning,
                    "Regular stretching improves flexibility, reduces soreness and helps prevent injury.",
                ),
                tags=["stretching", "flexibility", "recovery"],
            ))

    return recs


def from_ai_core(item: Dict[str, Any]) -> Optional[Recommendation]:
    """Convert an AI core payload item, or None when it lacks a title."""
    title = item.get("title") or item.get("message")
    if not title:
        return None
    priority = item.get("priority", "low")
    if priority not in PRIORITY_ORDER:
        priority = "low"
    rec_type = item.get("type", "workout")
    if rec_type not in RECOMMENDATION_TYPES:
        rec_type = "workout"
    return Recommendation(
        type=rec_type,
        title=title,
        description=item.get("description") or item.get("implementation") or "",
        priority=priority,
        action_url=item.get("action_url"),
        reasoning=item.get("reasoning"),
        tags=list(item.get("tags") or []),
        metadata={"source": "ai_core"},
    )


def rank(recommendations: List[Recommendation], count: int) -> List[Recommendation]:
    """Stable sort by priority (high first), then truncate."""
    ordered = sorted(recommendations, key=lambda r: PRIORITY_ORDER.get(r.priority, len(PRIORITY_ORDER)))
    return ordered[:count]


def build_recommendations(
    profile: UserProfile,
    context: RecommendationContext,
    metrics: Optional[TrainingMetrics],
    options: RecommendationOptions,
    now: datetime,
    ai_items: Optional[List[Dict[str, Any]]] = None,
) -> List[Recommendation]:
    """Run every applicable rule and return the ranked, truncated list."""
    wants = (lambda domain: options.type in ("all", domain))
    reasoning = options.include_reasoning
    candidates: List[Recommendation] = []

    if wants("workout"):
        if metrics is not None:
            candidates.extend(training_rules(metrics, reasoning))
        candidates.extend(workout_rules(profile, context, now.date(), reasoning))
    if wants("nutrition"):
        candidates.extend(nutrition_rules(profile, context, reasoning))
    if wants("wellness"):
        candidates.extend(wellness_rules(context, now.date(), reasoning))
    if wants("recovery"):
        candidates.extend(recovery_rules(profile, context, now, reasoning))

    for item in ai_items or []:
        rec = from_ai_core(item)
        if rec is not None and wants(rec.type):
            candidates.append(rec)

    return rank(candidates, options.count)


# ============================================================================
# Engine
# ============================================================================

class RecommendationEngine:
    """
    Generates, persists and manages recommendations for one request.

    Collaborators are injected; nothing is kept between calls.
    """

    def __init__(
        self,
        db: Session,
        ai_core: Optional[AICoreClient] = None,
        metrics_aggregator: Optional[TrainingMetricsAggregator] = None,
        context_loader: Optional[RecommendationContextLoader] = None,
    ):
        self.db = db
        self.ai_core = ai_core or NullAICore()
        self.metrics_aggregator = metrics_aggregator or TrainingMetricsAggregator(db)
        self.context_loader = context_loader or RecommendationContextLoader(db)

    def generate(
        self,
        profile: UserProfile,
        options: Optional[RecommendationOptions] = None,
        metrics: Optional[TrainingMetrics] = None,
        now: Optional[datetime] = None,
    ) -> GenerationResult:
        options = options or RecommendationOptions()
        now = now or datetime.now(timezone.utc)
        user_id = profile.id

        if metrics is None and options.type in ("all", "workout"):
            metrics = self._safe_metrics(user_id, now)

        context = self.context_loader.load(user_id, options.type)
        ai_items = self._safe_ai_items(user_id)

        recommendations = build_recommendations(profile, context, metrics, options, now, ai_items)
        saved, error = self.save(user_id, recommendations, now)

        logger.info(
            f"Recommendations {user_id}: generated={len(recommendations)} type={options.type} "
            f"saved={saved} failed_fetches={context.failed_fetches}"
        )
        emit(
            EVENT_RECOMMENDATIONS_GENERATED,
            user_id=user_id,
            count=len(recommendations),
            saved=saved,
        )
        return GenerationResult(recommendations=recommendations, saved=saved, error=error)

    def _safe_metrics(self, user_id: str, now: datetime) -> Optional[TrainingMetrics]:
        try:
            return self.metrics_aggregator.compute(user_id, now=now)
        except Exception as e:
            logger.error(f"Recommendations {user_id}: training metrics unavailable: {e}")
            try:
                self.db.rollback()
            except Exception as rollback_error:
                logger.debug(f"Rollback after metrics failure also failed: {rollback_error}")
            return None

    def _safe_ai_items(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            return self.ai_core.rule_based_recommendations(user_id) or []
        except Exception as e:
            logger.error(f"Recommendations {user_id}: AI core failed: {e}")
            return []

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(
        self,
        user_id: str,
        recommendations: List[Recommendation],
        now: Optional[datetime] = None,
    ) -> Tuple[bool, Optional[str]]:
        """Insert each recommendation as a new row. Returns (success, error)."""
        if not recommendations:
            return True, None

        now = now or utcnow()
        rows = [
            UserRecommendation(
                user_id=user_id,
                type=rec.type,
                title=rec.title,
                description=rec.description,
                priority=rec.priority,
                actionable=rec.actionable,
                action_url=rec.action_url,
                reasoning=rec.reasoning,
                expires_at=rec.expires_at,
                tags=list(rec.tags),
                details=dict(rec.metadata) or None,
                is_dismissed=False,
                is_completed=False,
                created_at=now,
                updated_at=now,
            )
            for rec in recommendations
        ]
        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save recommendations for {user_id}: {e}")
            return False, "Could not save recommendations"

        for rec, row in zip(recommendations, rows):
            rec.id = row.id
            rec.created_at = row.created_at
        return True, None

    def get_active(self, user_id: str, rec_type: str = "all", count: Optional[int] = 5) -> List[Recommendation]:
        """Non-dismissed recommendations, newest first."""
        def read():
            query = self.db.query(UserRecommendation).filter(
                UserRecommendation.user_id == user_id,
                UserRecommendation.is_dismissed.is_(False),
            )
            if rec_type != "all":
                query = query.filter(UserRecommendation.type == rec_type)
            query = query.order_by(UserRecommendation.created_at.desc())
            if count:
                query = query.limit(count)
            return query.all()

        result = read_with_default(self.db, read, [], label=f"active recommendations {user_id}")
        return [Recommendation.from_row(row) for row in result.value]

    def dismiss(self, user_id: str, recommendation_id: UUID) -> Tuple[bool, Optional[str]]:
        def apply(row: UserRecommendation, now: datetime):
            row.is_dismissed = True
            row.updated_at = now
        return self._update(user_id, recommendation_id, apply, "dismiss")

    def complete(self, user_id: str, recommendation_id: UUID) -> Tuple[bool, Optional[str]]:
        def apply(row: UserRecommendation, now: datetime):
            row.is_completed = True
            row.completed_at = now
            row.updated_at = now
        return self._update(user_id, recommendation_id, apply, "complete")

    def _update(self, user_id: str, recommendation_id: UUID, apply, action: str) -> Tuple[bool, Optional[str]]:
        try:
            row = (
                self.db.query(UserRecommendation)
                .filter(
                    UserRecommendation.id == recommendation_id,
                    UserRecommendation.user_id == user_id,
                )
                .first()
            )
            if row is None:
                return False, "Recommendation not found"
            apply(row, utcnow())
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action} recommendation {recommendation_id} for {user_id}: {e}")
            return False, f"Could not {action} recommendation"
        return True, None
