from sqlalchemy import Column, Integer, Boolean, Float, Date, DateTime, ForeignKey, Text, String, Index, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from core.database import Base
import uuid
from datetime import datetime, timezone

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(Base):
    """
    Preferences and daily targets used by the recommendation rules.

    User ids are opaque strings issued by the auth provider.
    """
    __tablename__ = "user_profile"

    id = Column(String, primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    display_name = Column(Text, nullable=True)
    role = Column(Text, default="member", nullable=False)  # 'member', 'admin'

    # --- TRAINING PREFERENCES ---
    training_goals = Column(JSONType, nullable=False, default=list)  # e.g. ["muscle_gain", "fat_loss"]
    preferred_workout_days = Column(JSONType, nullable=False, default=list)  # lowercase weekday names

    # --- NUTRITION / WELLNESS TARGETS ---
    water_intake_goal_ml = Column(Float, default=2000.0, nullable=False)
    water_intake_ml = Column(Float, default=0.0, nullable=False)  # today's running total
    sleep_goal_hours = Column(Float, default=8.0, nullable=False)


class WorkoutSession(Base):
    """One training occurrence. Owned by exactly one user."""
    __tablename__ = "workout_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    routine_id = Column(String, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    end_time = Column(DateTime(timezone=True), nullable=True)
    status = Column(Text, default="planned", nullable=False)  # planned, in_progress, completed, skipped
    total_volume = Column(Float, default=0.0, nullable=False)  # sum(weight * reps) of completed sets
    average_intensity = Column(Float, default=0.0, nullable=False)
    rpe = Column(Float, nullable=True)  # session-level self-reported exertion (0-10)
    notes = Column(Text, nullable=True)

    exercises = relationship(
        "ExerciseExecution",
        back_populates="session",
        order_by="ExerciseExecution.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_workout_sessions_user_start", "user_id", "start_time"),
    )


class ExerciseExecution(Base):
    """One exercise within a session."""
    __tablename__ = "exercise_executions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid, ForeignKey("workout_sessions.id"), nullable=False, index=True)
    exercise_id = Column(String, nullable=False)
    exercise_name = Column(Text, nullable=False)
    target_sets = Column(Integer, default=0, nullable=False)
    rest_time_s = Column(Integer, nullable=True)
    position = Column(Integer, default=0, nullable=False)

    session = relationship("WorkoutSession", back_populates="exercises")
    sets = relationship(
        "ExerciseSet",
        back_populates="execution",
        order_by="ExerciseSet.set_number",
        cascade="all, delete-orphan",
    )


class ExerciseSet(Base):
    """One performed set. Only `completed` changes after it is recorded."""
    __tablename__ = "exercise_sets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    execution_id = Column(Uuid, ForeignKey("exercise_executions.id"), nullable=False, index=True)
    session_id = Column(Uuid, ForeignKey("workout_sessions.id"), nullable=False, index=True)
    exercise_id = Column(String, nullable=False)
    set_number = Column(Integer, nullable=False)
    weight = Column(Float, default=0.0, nullable=False)
    reps = Column(Integer, default=0, nullable=False)
    rir = Column(Integer, nullable=True)  # reps in reserve
    rpe = Column(Float, nullable=True)
    completed = Column(Boolean, default=True, nullable=False)
    recorded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    execution = relationship("ExerciseExecution", back_populates="sets")


class PlannedWorkout(Base):
    __tablename__ = "planned_workouts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    planned_date = Column(Date, nullable=False)
    routine_id = Column(String, nullable=True)
    name = Column(Text, nullable=True)


class PeriodizationCycle(Base):
    """
    Macro/meso/microcycle row.

    Parents are referenced by id string only; child date ranges are not
    validated against the parent's.
    """
    __tablename__ = "periodization_cycles"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    cycle_type = Column(Text, nullable=False)  # macrocycle, mesocycle, microcycle
    name = Column(Text, nullable=False)
    duration_weeks = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    goals = Column(JSONType, nullable=False, default=list)
    phases = Column(JSONType, nullable=False, default=list)  # list of TrainingPhase dicts
    parent_cycle_id = Column(String, nullable=True, index=True)
    is_deload = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class TrainingPlan(Base):
    __tablename__ = "training_plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    name = Column(Text, nullable=False)
    status = Column(Text, default="active", nullable=False)  # active, deload_pause, completed
    volume_multiplier = Column(Float, default=1.0, nullable=False)
    intensity_multiplier = Column(Float, default=1.0, nullable=False)
    duration_weeks = Column(Integer, nullable=True)
    is_deload = Column(Boolean, default=False, nullable=False)
    parent_plan_id = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class MealPlan(Base):
    __tablename__ = "meal_plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    name = Column(Text, nullable=True)
    calories = Column(Float, nullable=True)
    protein = Column(Float, nullable=True)
    carbs = Column(Float, nullable=True)
    fat = Column(Float, nullable=True)


class NutritionGoal(Base):
    __tablename__ = "nutrition_goals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    calories = Column(Float, nullable=False)
    protein = Column(Float, nullable=False)
    carbs = Column(Float, nullable=False)
    fat = Column(Float, nullable=False)
    fiber = Column(Float, nullable=True)
    sugar = Column(Float, nullable=True)
    water = Column(Float, nullable=True)  # ml
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class UserMetricHistory(Base):
    __tablename__ = "user_metrics_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    metric_type = Column(Text, nullable=False)  # 'weight' (kg), ...
    value = Column(Float, nullable=False)
    date = Column(Date, nullable=False)


class WellnessScore(Base):
    __tablename__ = "wellness_scores"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    overall_score = Column(Float, nullable=True)  # 0-100
    stress_level = Column(Float, nullable=True)  # 0-10
    sleep_hours = Column(Float, nullable=True)
    mood = Column(Text, nullable=True)
    recovery_score = Column(Float, nullable=True)  # 0-100


class EmotionalJournalEntry(Base):
    __tablename__ = "emotional_journal"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    mood = Column(Text, nullable=True)
    content = Column(Text, nullable=True)


class RecoverySession(Base):
    __tablename__ = "recovery_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    type = Column(Text, nullable=False)  # stretching, meditation, sleep, massage
    duration_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class UserRecommendation(Base):
    """Generated suggestion. Only dismiss/complete mutate it; rows are never deleted."""
    __tablename__ = "user_recommendations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    type = Column(Text, nullable=False)  # workout, nutrition, wellness, recovery
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    priority = Column(Text, nullable=False)  # low, medium, high
    actionable = Column(Boolean, default=True, nullable=False)
    action_url = Column(Text, nullable=True)
    reasoning = Column(Text, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    tags = Column(JSONType, nullable=False, default=list)
    details = Column("metadata", JSONType, nullable=True)
    is_dismissed = Column(Boolean, default=False, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_user_recommendations_user_active", "user_id", "is_dismissed", "created_at"),
    )


def ensure_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from stores that drop tzinfo."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
