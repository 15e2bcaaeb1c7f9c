"""
Deload automation.

A deload is suggested when any of these hold for the current metrics:
fatigue index above 7.5, readiness below 6, any muscle group over its MRV,
or adherence under 70% of the planned workouts. With nothing planned the
adherence criterion does not apply.

Starting a deload copies the active training plan into a one-week plan
with volume x0.6 and intensity x0.8, and parks the original plan in
`deload_pause`.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.events import emit, EVENT_DELOAD_STARTED
from models import TrainingPlan
from services.training_metrics import TrainingMetrics, TrainingMetricsAggregator

logger = logging.getLogger(__name__)

FATIGUE_LIMIT = 7.5
READINESS_FLOOR = 6
ADHERENCE_FLOOR = 0.7

DELOAD_VOLUME_FACTOR = 0.6
DELOAD_INTENSITY_FACTOR = 0.8
DELOAD_DURATION_WEEKS = 1


@dataclass
class DeloadCheck:
    needs_deload: bool
    reasons: List[str] = field(default_factory=list)


def deload_reasons(metrics: TrainingMetrics) -> List[str]:
    reasons = []
    if metrics.fatigue_index > FATIGUE_LIMIT:
        reasons.append("high_fatigue")
    if metrics.readiness_score < READINESS_FLOOR:
        reasons.append("low_readiness")
    if any(lm.current_volume > lm.mrv for lm in metrics.volume_landmarks.values()):
        reasons.append("excessive_volume")
    if metrics.planned_workouts > 0 and metrics.adherence_rate < ADHERENCE_FLOOR:
        reasons.append("poor_adherence")
    return reasons


def needs_deload(metrics: TrainingMetrics) -> bool:
    return bool(deload_reasons(metrics))


class DeloadService:

    def __init__(self, db: Session, metrics_aggregator: Optional[TrainingMetricsAggregator] = None):
        self.db = db
        self.metrics_aggregator = metrics_aggregator or TrainingMetricsAggregator(db)

    def check(self, user_id: str, now: Optional[datetime] = None) -> DeloadCheck:
        """Evaluate the deload criteria. A store failure counts as "no deload"."""
        try:
            metrics = self.metrics_aggregator.compute(user_id, now=now)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Deload check for {user_id} failed: {e}")
            return DeloadCheck(needs_deload=False)

        reasons = deload_reasons(metrics)
        if reasons:
            logger.info(f"Deload suggested for {user_id}: {', '.join(reasons)}")
        return DeloadCheck(needs_deload=bool(reasons), reasons=reasons)

    def start_deload(self, user_id: str) -> Optional[TrainingPlan]:
        """Create the deload plan. Returns None when the user has no active plan."""
        current = (
            self.db.query(TrainingPlan)
            .filter(TrainingPlan.user_id == user_id, TrainingPlan.status == "active")
            .order_by(TrainingPlan.created_at.desc())
            .first()
        )
        if current is None:
            logger.info(f"No active training plan for {user_id}; deload not started")
            return None

        deload_plan = TrainingPlan(
            user_id=user_id,
            name=f"{current.name} - Deload Week",
            status="active",
            volume_multiplier=round(current.volume_multiplier * DELOAD_VOLUME_FACTOR, 3),
            intensity_multiplier=round(current.intensity_multiplier * DELOAD_INTENSITY_FACTOR, 3),
            duration_weeks=DELOAD_DURATION_WEEKS,
            is_deload=True,
            parent_plan_id=current.id,
        )
        self.db.add(deload_plan)
        current.status = "deload_pause"
        self.db.commit()

        logger.info(f"Deload week started for {user_id}: plan {deload_plan.id} (parent {current.id})")
        emit(EVENT_DELOAD_STARTED, user_id=user_id, plan_id=deload_plan.id, parent_plan_id=current.id)
        return deload_plan
