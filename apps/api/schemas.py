from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, date
from uuid import UUID
from typing import Optional, List, Dict, Any, Literal


RecommendationType = Literal["workout", "nutrition", "wellness", "recovery"]
Priority = Literal["low", "medium", "high"]


class ActionResult(BaseModel):
    """Outcome of a write. `error` is a short, user-facing message."""
    success: bool
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Training
# ---------------------------------------------------------------------------

class VolumeLandmarksResponse(BaseModel):
    muscle_group: str
    mev: int
    mav: int
    mrv: int
    current_volume: int
    weekly_progression: List[int]


class LandmarksSummary(BaseModel):
    mev: int
    mav: int
    mrv: int
    current_volume: int
    weekly_progression: List[int]


class TrainingMetricsResponse(BaseModel):
    user_id: str
    weekly_volume: Dict[str, int]
    intensity_distribution: Dict[str, int]  # % of completed sets per RPE bucket
    adherence_rate: float  # not clamped: can exceed 1.0
    progression_rate: float
    fatigue_index: float
    readiness_score: float  # not clamped: can exceed 10
    volume_landmarks: Dict[str, LandmarksSummary]
    planned_workouts: int = 0


class DeloadCheckResponse(BaseModel):
    needs_deload: bool
    reasons: List[str]


class TrainingPlanResponse(BaseModel):
    id: UUID
    name: str
    status: str
    volume_multiplier: float
    intensity_multiplier: float
    duration_weeks: Optional[int] = None
    is_deload: bool
    parent_plan_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


class DeloadStartResponse(BaseModel):
    started: bool
    plan: Optional[TrainingPlanResponse] = None


class SessionStart(BaseModel):
    routine_id: Optional[str] = None


class SetLog(BaseModel):
    exercise_id: str = Field(..., min_length=1)
    exercise_name: Optional[str] = None
    weight: float = Field(0.0, ge=0)
    reps: int = Field(..., ge=0)
    rir: Optional[int] = Field(None, ge=0)
    rpe: Optional[float] = Field(None, ge=0, le=10)
    completed: bool = True


class SessionComplete(BaseModel):
    rpe: float = Field(..., ge=0, le=10)
    notes: Optional[str] = None


class ExerciseSetResponse(BaseModel):
    id: UUID
    exercise_id: str
    set_number: int
    weight: float
    reps: int
    rir: Optional[int] = None
    rpe: Optional[float] = None
    completed: bool
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WorkoutSessionResponse(BaseModel):
    id: UUID
    user_id: str
    routine_id: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str
    total_volume: float
    average_intensity: float
    rpe: Optional[float] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Periodization
# ---------------------------------------------------------------------------

class PeriodizationRequest(BaseModel):
    goals: List[str] = Field(..., min_length=1)
    duration_weeks: int = Field(..., ge=1, le=104)


class CycleResponse(BaseModel):
    id: str
    type: str
    name: str
    duration_weeks: int
    start_date: date
    end_date: date
    goals: List[str]
    phases: List[Dict[str, Any]]
    parent_cycle_id: Optional[str] = None
    is_deload: bool


class PeriodizationPlanResponse(BaseModel):
    success: bool
    error: Optional[str] = None
    macrocycle: Optional[CycleResponse] = None
    mesocycles: List[CycleResponse] = []
    microcycles: List[CycleResponse] = []


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

class RecommendationRequest(BaseModel):
    type: Literal["workout", "nutrition", "wellness", "recovery", "all"] = "all"
    count: Optional[int] = Field(None, ge=1, le=50)
    include_reasoning: bool = False


class RecommendationResponse(BaseModel):
    id: Optional[UUID] = None
    type: RecommendationType
    title: str
    description: str
    priority: Priority
    actionable: bool = True
    action_url: Optional[str] = None
    reasoning: Optional[str] = None
    tags: List[str] = []
    metadata: Dict[str, Any] = {}
    expires_at: Optional[datetime] = None
    is_dismissed: bool = False
    is_completed: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RecommendationGenerateResponse(BaseModel):
    recommendations: List[RecommendationResponse]
    saved: bool
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Nutrition / wellness
# ---------------------------------------------------------------------------

class NutritionGoalsPayload(BaseModel):
    calories: float = Field(..., gt=0)
    protein: float = Field(..., ge=0)
    carbs: float = Field(..., ge=0)
    fat: float = Field(..., ge=0)
    fiber: Optional[float] = Field(None, ge=0)
    sugar: Optional[float] = Field(None, ge=0)
    water: Optional[float] = Field(None, ge=0)  # ml


class NutritionGoalsResponse(NutritionGoalsPayload):
    is_default: bool = False
    notice: Optional[str] = None


class WellnessScoreEntry(BaseModel):
    date: date
    overall_score: Optional[float] = None
    stress_level: Optional[float] = None
    sleep_hours: Optional[float] = None
    mood: Optional[str] = None
    recovery_score: Optional[float] = None
    is_sample: bool = False


class WellnessHistoryResponse(BaseModel):
    scores: List[WellnessScoreEntry]
    is_sample: bool = False
    notice: Optional[str] = None
