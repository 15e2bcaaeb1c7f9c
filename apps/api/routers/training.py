"""
Training Router

Exposes:
- Volume landmarks per muscle group
- The 4-week training metrics snapshot
- Deload check and deload start
- Workout session lifecycle (start, log set, complete, skip)
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from core.auth import get_current_user_id
from core.database import get_db
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.realtime import RealtimeBroadcaster, get_broadcaster
from schemas import (
    DeloadCheckResponse,
    DeloadStartResponse,
    ExerciseSetResponse,
    SessionComplete,
    SessionStart,
    SetLog,
    TrainingMetricsResponse,
    TrainingPlanResponse,
    VolumeLandmarksResponse,
    WorkoutSessionResponse,
)
from services.deload import DeloadService
from services.training_metrics import TrainingMetricsAggregator
from services.volume_landmarks import VolumeLandmarkEstimator
from services.workout_sessions import (
    SessionNotFoundError,
    SessionStateError,
    SetData,
    WorkoutSessionService,
)

router = APIRouter(prefix="/v1/training", tags=["Training"])


# ============ Metrics ============

@router.get("/landmarks/{muscle_group}", response_model=VolumeLandmarksResponse)
def get_volume_landmarks(
    muscle_group: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """MEV / MAV / MRV and recent weekly volume for one muscle group."""
    try:
        landmarks = VolumeLandmarkEstimator(db).estimate(user_id, muscle_group.lower())
    except ValueError as e:
        raise ValidationError(str(e), field="muscle_group")
    return VolumeLandmarksResponse(muscle_group=muscle_group.lower(), **landmarks.to_dict())


@router.get("/metrics", response_model=TrainingMetricsResponse)
def get_training_metrics(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Trailing 4-week snapshot.

    adherence_rate and readiness_score are unclamped: completing more
    sessions than planned pushes them above 1.0 and 10 respectively.
    """
    metrics = TrainingMetricsAggregator(db).compute(user_id)
    return TrainingMetricsResponse(**metrics.to_dict())


# ============ Deload ============

@router.get("/deload", response_model=DeloadCheckResponse)
def check_deload(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    check = DeloadService(db).check(user_id)
    return DeloadCheckResponse(needs_deload=check.needs_deload, reasons=check.reasons)


@router.post("/deload", response_model=DeloadStartResponse)
def start_deload(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    plan = DeloadService(db).start_deload(user_id)
    if plan is None:
        return DeloadStartResponse(started=False)
    return DeloadStartResponse(started=True, plan=TrainingPlanResponse.model_validate(plan))


# ============ Sessions ============

@router.post("/sessions", response_model=WorkoutSessionResponse, status_code=status.HTTP_201_CREATED)
def start_session(
    body: SessionStart,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster),
):
    return WorkoutSessionService(db, broadcaster).start_session(user_id, body.routine_id)


@router.post("/sessions/{session_id}/sets", response_model=ExerciseSetResponse, status_code=status.HTTP_201_CREATED)
def log_set(
    session_id: UUID,
    body: SetLog,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster),
):
    set_data = SetData(
        weight=body.weight,
        reps=body.reps,
        rir=body.rir,
        rpe=body.rpe,
        completed=body.completed,
    )
    service = WorkoutSessionService(db, broadcaster)
    try:
        return service.log_set(user_id, session_id, body.exercise_id, set_data, exercise_name=body.exercise_name)
    except SessionNotFoundError:
        raise NotFoundError("Workout session", str(session_id))
    except SessionStateError as e:
        raise ConflictError(str(e))


@router.post("/sessions/{session_id}/complete", response_model=WorkoutSessionResponse)
def complete_session(
    session_id: UUID,
    body: SessionComplete,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster),
):
    service = WorkoutSessionService(db, broadcaster)
    try:
        return service.complete_session(
            user_id, session_id, body.rpe, body.notes, defer=background_tasks.add_task
        )
    except SessionNotFoundError:
        raise NotFoundError("Workout session", str(session_id))
    except SessionStateError as e:
        raise ConflictError(str(e))


@router.post("/sessions/{session_id}/skip", response_model=WorkoutSessionResponse)
def skip_session(
    session_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster),
):
    service = WorkoutSessionService(db, broadcaster)
    try:
        return service.skip_session(user_id, session_id)
    except SessionNotFoundError:
        raise NotFoundError("Workout session", str(session_id))
    except SessionStateError as e:
        raise ConflictError(str(e))
