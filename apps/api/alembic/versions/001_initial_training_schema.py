"""initial training schema

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True)


def _user_id():
    return sa.Column('user_id', sa.Text(), nullable=False)


def upgrade() -> None:
    # Create user_profile table
    op.create_table(
        'user_profile',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('display_name', sa.Text(), nullable=True),
        sa.Column('role', sa.Text(), server_default='member', nullable=False),
        sa.Column('training_goals', postgresql.JSONB(), server_default='[]', nullable=False),
        sa.Column('preferred_workout_days', postgresql.JSONB(), server_default='[]', nullable=False),
        sa.Column('water_intake_goal_ml', sa.Float(), server_default='2000', nullable=False),
        sa.Column('water_intake_ml', sa.Float(), server_default='0', nullable=False),
        sa.Column('sleep_goal_hours', sa.Float(), server_default='8', nullable=False),
    )

    # Create workout_sessions table
    op.create_table(
        'workout_sessions',
        _id(),
        _user_id(),
        sa.Column('routine_id', sa.Text(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.Text(), server_default='planned', nullable=False),
        sa.Column('total_volume', sa.Float(), server_default='0', nullable=False),
        sa.Column('average_intensity', sa.Float(), server_default='0', nullable=False),
        sa.Column('rpe', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    )
    op.create_index('ix_workout_sessions_user_id', 'workout_sessions', ['user_id'])
    op.create_index('ix_workout_sessions_user_start', 'workout_sessions', ['user_id', 'start_time'])

    # Create exercise_executions table
    op.create_table(
        'exercise_executions',
        _id(),
        sa.Column('session_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('exercise_id', sa.Text(), nullable=False),
        sa.Column('exercise_name', sa.Text(), nullable=False),
        sa.Column('target_sets', sa.Integer(), server_default='0', nullable=False),
        sa.Column('rest_time_s', sa.Integer(), nullable=True),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['workout_sessions.id'], ),
    )
    op.create_index('ix_exercise_executions_session_id', 'exercise_executions', ['session_id'])

    # Create exercise_sets table
    op.create_table(
        'exercise_sets',
        _id(),
        sa.Column('execution_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('session_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('exercise_id', sa.Text(), nullable=False),
        sa.Column('set_number', sa.Integer(), nullable=False),
        sa.Column('weight', sa.Float(), server_default='0', nullable=False),
        sa.Column('reps', sa.Integer(), server_default='0', nullable=False),
        sa.Column('rir', sa.Integer(), nullable=True),
        sa.Column('rpe', sa.Float(), nullable=True),
        sa.Column('completed', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['execution_id'], ['exercise_executions.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['workout_sessions.id'], ),
    )
    op.create_index('ix_exercise_sets_execution_id', 'exercise_sets', ['execution_id'])
    op.create_index('ix_exercise_sets_session_id', 'exercise_sets', ['session_id'])

    # Create planned_workouts table
    op.create_table(
        'planned_workouts',
        _id(),
        _user_id(),
        sa.Column('planned_date', sa.Date(), nullable=False),
        sa.Column('routine_id', sa.Text(), nullable=True),
        sa.Column('name', sa.Text(), nullable=True),
    )
    op.create_index('ix_planned_workouts_user_id', 'planned_workouts', ['user_id'])

    # Create periodization_cycles table (string ids, parents referenced by id only)
    op.create_table(
        'periodization_cycles',
        sa.Column('id', sa.Text(), primary_key=True),
        _user_id(),
        sa.Column('cycle_type', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('duration_weeks', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('goals', postgresql.JSONB(), server_default='[]', nullable=False),
        sa.Column('phases', postgresql.JSONB(), server_default='[]', nullable=False),
        sa.Column('parent_cycle_id', sa.Text(), nullable=True),
        sa.Column('is_deload', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_periodization_cycles_user_id', 'periodization_cycles', ['user_id'])
    op.create_index('ix_periodization_cycles_parent_cycle_id', 'periodization_cycles', ['parent_cycle_id'])

    # Create training_plans table
    op.create_table(
        'training_plans',
        _id(),
        _user_id(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='active', nullable=False),
        sa.Column('volume_multiplier', sa.Float(), server_default='1', nullable=False),
        sa.Column('intensity_multiplier', sa.Float(), server_default='1', nullable=False),
        sa.Column('duration_weeks', sa.Integer(), nullable=True),
        sa.Column('is_deload', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('parent_plan_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_training_plans_user_id', 'training_plans', ['user_id'])

    # Create meal_plans table
    op.create_table(
        'meal_plans',
        _id(),
        _user_id(),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('calories', sa.Float(), nullable=True),
        sa.Column('protein', sa.Float(), nullable=True),
        sa.Column('carbs', sa.Float(), nullable=True),
        sa.Column('fat', sa.Float(), nullable=True),
    )
    op.create_index('ix_meal_plans_user_id', 'meal_plans', ['user_id'])

    # Create nutrition_goals table
    op.create_table(
        'nutrition_goals',
        _id(),
        _user_id(),
        sa.Column('calories', sa.Float(), nullable=False),
        sa.Column('protein', sa.Float(), nullable=False),
        sa.Column('carbs', sa.Float(), nullable=False),
        sa.Column('fat', sa.Float(), nullable=False),
        sa.Column('fiber', sa.Float(), nullable=True),
        sa.Column('sugar', sa.Float(), nullable=True),
        sa.Column('water', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_nutrition_goals_user_id', 'nutrition_goals', ['user_id'])

    # Create user_metrics_history table
    op.create_table(
        'user_metrics_history',
        _id(),
        _user_id(),
        sa.Column('metric_type', sa.Text(), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
    )
    op.create_index('ix_user_metrics_history_user_id', 'user_metrics_history', ['user_id'])

    # Create wellness_scores table
    op.create_table(
        'wellness_scores',
        _id(),
        _user_id(),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('overall_score', sa.Float(), nullable=True),
        sa.Column('stress_level', sa.Float(), nullable=True),
        sa.Column('sleep_hours', sa.Float(), nullable=True),
        sa.Column('mood', sa.Text(), nullable=True),
        sa.Column('recovery_score', sa.Float(), nullable=True),
    )
    op.create_index('ix_wellness_scores_user_id', 'wellness_scores', ['user_id'])

    # Create emotional_journal table
    op.create_table(
        'emotional_journal',
        _id(),
        _user_id(),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('mood', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
    )
    op.create_index('ix_emotional_journal_user_id', 'emotional_journal', ['user_id'])

    # Create recovery_sessions table
    op.create_table(
        'recovery_sessions',
        _id(),
        _user_id(),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_recovery_sessions_user_id', 'recovery_sessions', ['user_id'])

    # Create user_recommendations table
    op.create_table(
        'user_recommendations',
        _id(),
        _user_id(),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', sa.Text(), nullable=False),
        sa.Column('actionable', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('action_url', sa.Text(), nullable=True),
        sa.Column('reasoning', sa.Text(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tags', postgresql.JSONB(), server_default='[]', nullable=False),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('is_dismissed', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_user_recommendations_user_id', 'user_recommendations', ['user_id'])
    op.create_index(
        'ix_user_recommendations_user_active',
        'user_recommendations',
        ['user_id', 'is_dismissed', 'created_at'],
    )


def downgrade() -> None:
    op.drop_table('user_recommendations')
    op.drop_table('recovery_sessions')
    op.drop_table('emotional_journal')
    op.drop_table('wellness_scores')
    op.drop_table('user_metrics_history')
    op.drop_table('nutrition_goals')
    op.drop_table('meal_plans')
    op.drop_table('training_plans')
    op.drop_table('periodization_cycles')
    op.drop_table('planned_workouts')
    op.drop_table('exercise_sets')
    op.drop_table('exercise_executions')
    op.drop_table('workout_sessions')
    op.drop_table('user_profile')
