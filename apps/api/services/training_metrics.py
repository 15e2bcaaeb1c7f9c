"""
Training Metrics Aggregator

Snapshot of the trailing 4 weeks, recomputed from scratch on every call
(nothing is cached or persisted):

- weekly_volume: current-week volume per muscle group (from the landmark estimator)
- intensity_distribution: % of completed sets by RPE bucket (low <= 6, moderate <= 8, high)
- adherence_rate: completed sessions / planned workouts (0.0 when nothing is planned)
- progression_rate: relative change in total volume, oldest -> newest session
- fatigue_index: mean session RPE x 1.2, capped at 10
- readiness_score: max(0, 10 - fatigue + 2 x adherence)
- planned_workouts: planned count behind adherence_rate

Ranges: adherence is not clamped above 1.0, and readiness therefore has no
upper bound (completing 6 of 5 planned sessions at fatigue 3 gives 9.4, and
higher adherence pushes it past 10). Both formulas are kept as-is.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from models import PlannedWorkout, WorkoutSession
from services import exercise_catalog
from services.volume_landmarks import VolumeLandmarkEstimator, VolumeLandmarks, round_half_up

logger = logging.getLogger(__name__)

METRICS_WINDOW_WEEKS = 4
DEFAULT_RPE = 5.0
FATIGUE_MULTIPLIER = 1.2
FATIGUE_CAP = 10.0

# Upper bounds (inclusive) of the RPE buckets
LOW_INTENSITY_MAX_RPE = 6
MODERATE_INTENSITY_MAX_RPE = 8


@dataclass
class TrainingMetrics:
    user_id: str
    weekly_volume: Dict[str, int]
    intensity_distribution: Dict[str, int]
    adherence_rate: float
    progression_rate: float
    fatigue_index: float
    readiness_score: float
    volume_landmarks: Dict[str, VolumeLandmarks] = field(default_factory=dict)
    planned_workouts: int = 0

    def to_dict(self) -> Dict:
        return {
            "user_id": self.user_id,
            "weekly_volume": dict(self.weekly_volume),
            "intensity_distribution": dict(self.intensity_distribution),
            "adherence_rate": self.adherence_rate,
            "progression_rate": self.progression_rate,
            "fatigue_index": self.fatigue_index,
            "readiness_score": self.readiness_score,
            "volume_landmarks": {mg: lm.to_dict() for mg, lm in self.volume_landmarks.items()},
            "planned_workouts": self.planned_workouts,
        }


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------

def adherence_rate(completed_sessions: int, planned_workouts: int) -> float:
    """Completed / planned. Nothing planned means nothing to adhere to: 0.0."""
    if planned_workouts <= 0:
        return 0.0
    return completed_sessions / planned_workouts


def progression_rate(sessions_newest_first: List[WorkoutSession]) -> float:
    if len(sessions_newest_first) < 2:
        return 0.0
    newest = sessions_newest_first[0].total_volume or 0.0
    oldest = sessions_newest_first[-1].total_volume or 0.0
    if oldest == 0:
        return 0.0
    return (newest - oldest) / oldest


def fatigue_index(sessions: List[WorkoutSession]) -> float:
    if not sessions:
        return 0.0
    rpes = [s.rpe if s.rpe is not None else DEFAULT_RPE for s in sessions]
    return min(FATIGUE_CAP, (sum(rpes) / len(rpes)) * FATIGUE_MULTIPLIER)


def readiness_score(fatigue: float, adherence: float) -> float:
    return max(0.0, 10 - fatigue + adherence * 2)


def intensity_distribution(sessions: List[WorkoutSession]) -> Dict[str, int]:
    zones = {"low": 0, "moderate": 0, "high": 0}
    total_sets = 0
    for session in sessions:
        for execution in session.exercises:
            for exercise_set in execution.sets:
                if not exercise_set.completed:
                    continue
                total_sets += 1
                rpe = exercise_set.rpe if exercise_set.rpe is not None else DEFAULT_RPE
                if rpe <= LOW_INTENSITY_MAX_RPE:
                    zones["low"] += 1
                elif rpe <= MODERATE_INTENSITY_MAX_RPE:
                    zones["moderate"] += 1
                else:
                    zones["high"] += 1

    if total_sets == 0:
        return {zone: 0 for zone in zones}
    return {zone: round_half_up(count / total_sets * 100) for zone, count in zones.items()}


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

class TrainingMetricsAggregator:

    def __init__(self, db: Session, landmark_estimator: Optional[VolumeLandmarkEstimator] = None):
        self.db = db
        self.landmark_estimator = landmark_estimator or VolumeLandmarkEstimator(db)

    def compute(self, user_id: str, now: Optional[datetime] = None) -> TrainingMetrics:
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(weeks=METRICS_WINDOW_WEEKS)

        sessions = self._fetch_sessions(user_id, since)
        planned_count = self._count_planned(user_id, since)

        landmarks = {
            mg: self.landmark_estimator.estimate(user_id, mg, now=now)
            for mg in exercise_catalog.MUSCLE_GROUPS
        }
        weekly_volume = {mg: lm.current_volume for mg, lm in landmarks.items()}

        completed = sum(1 for s in sessions if s.status == "completed")
        adherence = adherence_rate(completed, planned_count)
        fatigue = fatigue_index(sessions)

        metrics = TrainingMetrics(
            user_id=user_id,
            weekly_volume=weekly_volume,
            intensity_distribution=intensity_distribution(sessions),
            adherence_rate=round(adherence, 2),
            progression_rate=round(progression_rate(sessions), 3),
            fatigue_index=round(fatigue, 1),
            readiness_score=round(readiness_score(fatigue, adherence), 1),
            volume_landmarks=landmarks,
            planned_workouts=planned_count,
        )

        logger.info(
            f"Metrics {user_id}: sessions={len(sessions)} planned={planned_count} "
            f"adherence={metrics.adherence_rate} fatigue={metrics.fatigue_index} "
            f"readiness={metrics.readiness_score}"
        )
        return metrics

    def _fetch_sessions(self, user_id: str, since: datetime) -> List[WorkoutSession]:
        return (
            self.db.query(WorkoutSession)
            .filter(
                WorkoutSession.user_id == user_id,
                WorkoutSession.start_time >= since,
            )
            .order_by(WorkoutSession.start_time.desc())
            .all()
        )

    def _count_planned(self, user_id: str, since: datetime) -> int:
        return (
            self.db.query(PlannedWorkout)
            .filter(
                PlannedWorkout.user_id == user_id,
                PlannedWorkout.planned_date >= since.date(),
            )
            .count()
        )
