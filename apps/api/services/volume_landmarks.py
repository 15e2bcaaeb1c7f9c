"""
Volume Landmark Estimator

Derives per-muscle-group weekly volume thresholds from training history:
- MEV (Minimum Effective Volume): smallest non-zero weekly volume seen
- MRV (Maximum Recoverable Volume): largest weekly volume seen x 1.2
- MAV (Maximum Adaptive Volume): MEV + 0.7 x (MRV - MEV)

Volume is counted as completed reps on exercises the catalog tags with the
muscle group, summed per Sunday-based calendar week over the trailing
12 weeks. Only weeks with at least one session produce a total.

Users with no history get the beginner defaults 8 / 16 / 24.
Store errors propagate to the caller; there is no retry.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional
import math
import logging

from sqlalchemy.orm import Session

from models import WorkoutSession
from services import exercise_catalog

logger = logging.getLogger(__name__)

LANDMARK_WINDOW_WEEKS = 12
MAX_PROGRESSION_WEEKS = 8
MRV_HEADROOM = 1.2
MAV_POSITION = 0.7

DEFAULT_MEV = 8
DEFAULT_MAV = 16
DEFAULT_MRV = 24


@dataclass
class VolumeLandmarks:
    """Weekly volume thresholds for one muscle group. mev <= mav <= mrv."""
    mev: int
    mav: int
    mrv: int
    current_volume: int = 0
    weekly_progression: List[int] = field(default_factory=list)  # newest week first

    @classmethod
    def defaults(cls) -> "VolumeLandmarks":
        return cls(mev=DEFAULT_MEV, mav=DEFAULT_MAV, mrv=DEFAULT_MRV)

    def to_dict(self) -> Dict:
        return {
            "mev": self.mev,
            "mav": self.mav,
            "mrv": self.mrv,
            "current_volume": self.current_volume,
            "weekly_progression": list(self.weekly_progression),
        }


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def week_start(moment: datetime) -> date:
    """Sunday that opens the calendar week containing ``moment``."""
    day = moment.date()
    return day - timedelta(days=(day.weekday() + 1) % 7)


def group_sessions_by_week(sessions: Iterable[WorkoutSession]) -> List[List[WorkoutSession]]:
    """Bucket sessions by calendar week, newest week first."""
    ordered = sorted(sessions, key=lambda s: s.start_time, reverse=True)
    weeks: Dict[date, List[WorkoutSession]] = {}
    for session in ordered:
        weeks.setdefault(week_start(session.start_time), []).append(session)
    return list(weeks.values())


def session_volume(session: WorkoutSession, muscle_group: str) -> int:
    """Completed reps in ``session`` on exercises targeting ``muscle_group``."""
    total = 0
    for execution in session.exercises:
        if not exercise_catalog.targets(execution.exercise_name, muscle_group):
            continue
        total += sum(s.reps or 0 for s in execution.sets if s.completed)
    return total


def weekly_volumes(sessions: Iterable[WorkoutSession], muscle_group: str) -> List[int]:
    return [
        sum(session_volume(s, muscle_group) for s in week)
        for week in group_sessions_by_week(sessions)
    ]


def landmarks_from_weekly_volumes(volumes: List[int]) -> VolumeLandmarks:
    """
    Compute landmarks from weekly totals (newest first).

    When every week is zero there is no minimum to anchor on, so the
    thresholds keep their defaults while progression still reports the zeros.
    """
    if not volumes:
        return VolumeLandmarks.defaults()

    current = volumes[0]
    progression = volumes[:MAX_PROGRESSION_WEEKS]
    non_zero = [v for v in volumes if v > 0]
    if not non_zero:
        return VolumeLandmarks(
            mev=DEFAULT_MEV,
            mav=DEFAULT_MAV,
            mrv=DEFAULT_MRV,
            current_volume=current,
            weekly_progression=progression,
        )

    mev = min(non_zero)
    mrv = max(volumes) * MRV_HEADROOM
    mav = mev + (mrv - mev) * MAV_POSITION

    return VolumeLandmarks(
        mev=round_half_up(mev),
        mav=round_half_up(mav),
        mrv=round_half_up(mrv),
        current_volume=current,
        weekly_progression=progression,
    )


class VolumeLandmarkEstimator:
    """Reads the trailing 12 weeks of sessions and derives landmarks."""

    def __init__(self, db: Session):
        self.db = db

    def estimate(
        self,
        user_id: str,
        muscle_group: str,
        now: Optional[datetime] = None,
    ) -> VolumeLandmarks:
        group = muscle_group.strip().lower()
        if group not in exercise_catalog.MUSCLE_GROUPS:
            raise ValueError(
                f"Unknown muscle group '{muscle_group}'. "
                f"Expected one of: {', '.join(exercise_catalog.MUSCLE_GROUPS)}"
            )

        now = now or datetime.now(timezone.utc)
        since = now - timedelta(weeks=LANDMARK_WINDOW_WEEKS)
        sessions = self._fetch_sessions(user_id, since)

        if not sessions:
            logger.debug(f"Landmarks {user_id}/{group}: no history, using defaults")
            return VolumeLandmarks.defaults()

        landmarks = landmarks_from_weekly_volumes(weekly_volumes(sessions, group))
        logger.info(
            f"Landmarks {user_id}/{group}: MEV={landmarks.mev} MAV={landmarks.mav} "
            f"MRV={landmarks.mrv} current={landmarks.current_volume}"
        )
        return landmarks

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
