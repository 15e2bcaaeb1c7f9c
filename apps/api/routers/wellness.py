"""
Wellness Router
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import get_current_user_id
from core.database import get_db
from schemas import WellnessHistoryResponse, WellnessScoreEntry
from services.wellness_scores import MAX_HISTORY_DAYS, WellnessScoreService

router = APIRouter(prefix="/v1/wellness", tags=["Wellness"])


@router.get("/scores", response_model=WellnessHistoryResponse)
def get_wellness_scores(
    days: int = Query(30, ge=1, le=MAX_HISTORY_DAYS),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Daily wellness scores, newest first.

    `is_sample` is true only for generated demo data, which is served when
    the user has no history and sample seeding is enabled.
    """
    history = WellnessScoreService(db).recent_scores(user_id, days)
    return WellnessHistoryResponse(
        scores=[WellnessScoreEntry(**entry) for entry in history.scores],
        is_sample=history.is_sample,
        notice=history.notice,
    )
