"""
Workout session lifecycle.

    start     -> in_progress
    log_set   appends a set, broadcasts `set_completed` for the admin dashboard
    complete  in_progress -> completed, computes volume and intensity
    skip      in_progress -> skipped

The session being worked on is always passed in by id; nothing about the
"current" session is kept on the service.
"""

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from core.events import (
    emit,
    subscribe,
    EVENT_SESSION_COMPLETED,
    EVENT_SESSION_STARTED,
    EVENT_SET_LOGGED,
)
from core.realtime import RealtimeBroadcaster
from models import ExerciseExecution, ExerciseSet, WorkoutSession, ensure_utc
from services.ai_core import AICoreClient

logger = logging.getLogger(__name__)

SET_COMPLETED_BROADCAST = "set_completed"


class SessionNotFoundError(LookupError):
    pass


class SessionStateError(Exception):
    """The session is not in a state that allows the requested transition."""


@dataclass
class SetData:
    weight: float
    reps: int
    rir: Optional[int] = None
    rpe: Optional[float] = None
    completed: bool = True


def session_total_volume(session: WorkoutSession) -> float:
    """Sum of weight x reps over completed sets."""
    return sum(
        s.weight * s.reps
        for execution in session.exercises
        for s in execution.sets
        if s.completed
    )


def session_average_intensity(session: WorkoutSession) -> float:
    """Mean over exercises of each exercise's mean set RPE. Sets without RPE are ignored."""
    per_exercise = []
    for execution in session.exercises:
        rpes = [s.rpe for s in execution.sets if s.rpe is not None]
        if rpes:
            per_exercise.append(sum(rpes) / len(rpes))
    if not per_exercise:
        return 0.0
    return sum(per_exercise) / len(per_exercise)


def session_summary(session: WorkoutSession) -> Dict[str, Any]:
    executions = list(session.exercises)
    with_sets = [e for e in executions if e.sets]
    duration_minutes = 0.0
    if session.end_time and session.start_time:
        elapsed = ensure_utc(session.end_time) - ensure_utc(session.start_time)
        duration_minutes = round(elapsed.total_seconds() / 60, 1)
    return {
        "user_id": session.user_id,
        "session_id": str(session.id),
        "completion_rate": len(with_sets) / len(executions) if executions else 0.0,
        "total_volume": session.total_volume,
        "average_intensity": session.average_intensity,
        "rpe": session.rpe,
        "duration_minutes": duration_minutes,
    }


class WorkoutSessionService:

    def __init__(self, db: Session, broadcaster: Optional[RealtimeBroadcaster] = None):
        self.db = db
        self.broadcaster = broadcaster or RealtimeBroadcaster()

    def start_session(self, user_id: str, routine_id: Optional[str] = None, now: Optional[datetime] = None) -> WorkoutSession:
        session = WorkoutSession(
            user_id=user_id,
            routine_id=routine_id,
            start_time=now or datetime.now(timezone.utc),
            status="in_progress",
            total_volume=0.0,
            average_intensity=0.0,
        )
        self.db.add(session)
        self.db.commit()
        logger.info(f"Session {session.id} started for {user_id} (routine={routine_id})")
        emit(EVENT_SESSION_STARTED, user_id=user_id, session_id=session.id)
        return session

    def get_session(self, user_id: str, session_id: UUID) -> WorkoutSession:
        session = (
            self.db.query(WorkoutSession)
            .filter(WorkoutSession.id == session_id, WorkoutSession.user_id == user_id)
            .first()
        )
        if session is None:
            raise SessionNotFoundError(f"Workout session {session_id} not found")
        return session

    def _in_progress(self, user_id: str, session_id: UUID, action: str) -> WorkoutSession:
        session = self.get_session(user_id, session_id)
        if session.status != "in_progress":
            raise SessionStateError(f"Cannot {action} a session that is {session.status}")
        return session

    def log_set(
        self,
        user_id: str,
        session_id: UUID,
        exercise_id: str,
        set_data: SetData,
        exercise_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ExerciseSet:
        """Record one set. The exercise entry is created on its first set."""
        session = self._in_progress(user_id, session_id, "log a set on")
        recorded_at = now or datetime.now(timezone.utc)

        execution = next((e for e in session.exercises if e.exercise_id == exercise_id), None)
        if execution is None:
            execution = ExerciseExecution(
                exercise_id=exercise_id,
                exercise_name=exercise_name or exercise_id,
                target_sets=0,
                position=len(session.exercises),
            )
            session.exercises.append(execution)

        exercise_set = ExerciseSet(
            session_id=session.id,
            exercise_id=exercise_id,
            set_number=len(execution.sets) + 1,
            weight=set_data.weight,
            reps=set_data.reps,
            rir=set_data.rir,
            rpe=set_data.rpe,
            completed=set_data.completed,
            recorded_at=recorded_at,
        )
        execution.sets.append(exercise_set)
        self.db.commit()

        emit(EVENT_SET_LOGGED, user_id=user_id, session_id=session.id, exercise_id=exercise_id)
        self.broadcaster.publish(
            SET_COMPLETED_BROADCAST,
            {
                "session_id": str(session.id),
                "exercise_id": exercise_id,
                "set_data": asdict(set_data),
                "timestamp": recorded_at.isoformat(),
            },
        )
        return exercise_set

    def complete_session(
        self,
        user_id: str,
        session_id: UUID,
        rpe: float,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
        defer: Optional[Callable[..., None]] = None,
    ) -> WorkoutSession:
        """
        Close the session and emit its summary. `defer(fn, *args)` schedules
        slow subscriber work (the AI-core post) after the response; without it
        that work runs inline.
        """
        session = self._in_progress(user_id, session_id, "complete")

        session.total_volume = session_total_volume(session)
        session.average_intensity = session_average_intensity(session)
        session.rpe = rpe
        session.notes = notes
        session.end_time = now or datetime.now(timezone.utc)
        session.status = "completed"
        self.db.commit()

        summary = session_summary(session)
        logger.info(
            f"Session {session.id} completed for {user_id}: volume={session.total_volume} "
            f"intensity={session.average_intensity:.2f} rpe={rpe}"
        )
        emit(EVENT_SESSION_COMPLETED, user_id=user_id, summary=summary, defer=defer)
        return session

    def skip_session(self, user_id: str, session_id: UUID, now: Optional[datetime] = None) -> WorkoutSession:
        session = self._in_progress(user_id, session_id, "skip")
        session.status = "skipped"
        session.end_time = now or datetime.now(timezone.utc)
        self.db.commit()
        logger.info(f"Session {session.id} skipped by {user_id}")
        return session


def register_ai_core_feed(ai_core: AICoreClient) -> Callable[..., None]:
    """
    Forward completed-session summaries to the AI core. Returns the handler.

    The post is handed to the emitter's `defer` when one is given, so a slow
    AI core does not hold up the completion request. Without `defer` it
    blocks the caller for up to the client timeout.
    """

    def on_session_completed(summary: Dict[str, Any], defer: Optional[Callable[..., None]] = None, **_):
        if defer is None:
            ai_core.record_session(summary)
        else:
            defer(ai_core.record_session, summary)

    subscribe(EVENT_SESSION_COMPLETED, on_session_completed)
    return on_session_completed
