"""
Periodization Router

Creates macro/meso/microcycle plans and lists a user's cycles.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from core.auth import get_current_user_id
from core.database import get_db
from core.exceptions import ValidationError
from schemas import CycleResponse, PeriodizationPlanResponse, PeriodizationRequest
from services.periodization import (
    PeriodizationCycleGenerator,
    PeriodizationError,
    cycle_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/periodization", tags=["Periodization"])


@router.post("/plans", response_model=PeriodizationPlanResponse)
def create_periodization_plan(
    body: PeriodizationRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Generate and store a periodization plan.

    A write failure comes back as `success: false` with a message for the
    user. Rows written before the failure are left in place.
    """
    generator = PeriodizationCycleGenerator(db)
    try:
        plan = generator.create_plan(user_id, body.goals, body.duration_weeks)
    except PeriodizationError as e:
        logger.warning(f"Periodization plan for {user_id} not completed: {e}")
        return PeriodizationPlanResponse(success=False, error="Could not save your training plan. Please try again.")

    return PeriodizationPlanResponse(
        success=True,
        macrocycle=CycleResponse(**cycle_to_dict(plan.macrocycle)),
        mesocycles=[CycleResponse(**cycle_to_dict(c)) for c in plan.mesocycles],
        microcycles=[CycleResponse(**cycle_to_dict(c)) for c in plan.microcycles],
    )


@router.get("/cycles", response_model=List[CycleResponse])
def list_cycles(
    cycle_type: Optional[str] = Query(None, description="macrocycle, mesocycle or microcycle"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        cycles = PeriodizationCycleGenerator(db).list_cycles(user_id, cycle_type)
    except ValueError as e:
        raise ValidationError(str(e), field="cycle_type")
    return [CycleResponse(**cycle_to_dict(c)) for c in cycles]
