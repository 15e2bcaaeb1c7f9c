"""Builders for training rows used across tests.

All builders add to the given session without committing, so a test can
build a whole history and commit once.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple
import uuid

from models import (
    EmotionalJournalEntry,
    ExerciseExecution,
    ExerciseSet,
    PlannedWorkout,
    RecoverySession,
    UserMetricHistory,
    WellnessScore,
    WorkoutSession,
)

# Wednesday; its Sunday-based week starts 2026-10-11
NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def add_session(
    db,
    user_id: str,
    start_time: datetime,
    exercises: Iterable[Tuple[str, List[Tuple[float, int, Optional[float]]]]] = (),
    status: str = "completed",
    rpe: Optional[float] = None,
    total_volume: float = 0.0,
) -> WorkoutSession:
    """
    exercises: [(exercise_name, [(weight, reps, set_rpe), ...]), ...]
    """
    session = WorkoutSession(
        id=uuid.uuid4(),
        user_id=user_id,
        start_time=start_time,
        status=status,
        rpe=rpe,
        total_volume=total_volume,
    )
    for position, (name, sets) in enumerate(exercises):
        execution = ExerciseExecution(
            exercise_id=name.lower().replace(" ", "_"),
            exercise_name=name,
            target_sets=len(sets),
            position=position,
        )
        for number, (weight, reps, set_rpe) in enumerate(sets, start=1):
            execution.sets.append(ExerciseSet(
                session_id=session.id,
                exercise_id=execution.exercise_id,
                set_number=number,
                weight=weight,
                reps=reps,
                rpe=set_rpe,
                completed=True,
                recorded_at=start_time,
            ))
        session.exercises.append(execution)
    db.add(session)
    return session


def add_planned(db, user_id: str, count: int, first_day: date = TODAY - timedelta(days=20)) -> None:
    for i in range(count):
        db.add(PlannedWorkout(user_id=user_id, planned_date=first_day + timedelta(days=i)))


def add_wellness(db, user_id: str, day: date, **fields) -> WellnessScore:
    row = WellnessScore(user_id=user_id, date=day, **fields)
    db.add(row)
    return row


def add_weight(db, user_id: str, day: date, kg: float) -> None:
    db.add(UserMetricHistory(user_id=user_id, metric_type="weight", value=kg, date=day))


def add_journal(db, user_id: str, day: date) -> None:
    db.add(EmotionalJournalEntry(user_id=user_id, date=day, mood="okay"))


def add_recovery(db, user_id: str, kind: str, created_at: datetime) -> None:
    db.add(RecoverySession(user_id=user_id, type=kind, duration_minutes=15, created_at=created_at))
