"""
Nutrition Router

Read and update the user's daily nutrition goals. Reads fall back to the
default targets with a notice; writes report success or a message.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_user_id
from core.database import get_db
from schemas import ActionResult, NutritionGoalsPayload, NutritionGoalsResponse
from services.nutrition_goals import NutritionGoalsService, NutritionTargets

router = APIRouter(prefix="/v1/nutrition", tags=["Nutrition"])


@router.get("/goals", response_model=NutritionGoalsResponse)
def get_nutrition_goals(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    targets, notice = NutritionGoalsService(db).get_goals(user_id)
    return NutritionGoalsResponse(
        **targets.to_dict(),
        is_default=notice is not None,
        notice=notice,
    )


@router.put("/goals", response_model=ActionResult)
def update_nutrition_goals(
    body: NutritionGoalsPayload,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    success, error = NutritionGoalsService(db).save_goals(user_id, NutritionTargets(**body.model_dump()))
    return ActionResult(success=success, error=error)
