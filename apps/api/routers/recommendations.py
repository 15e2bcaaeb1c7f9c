"""
Recommendations Router

Generate personalized recommendations, list the active ones, and mark
them dismissed or completed.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Literal
from uuid import UUID

from core.auth import get_current_profile, get_current_user_id
from core.config import settings
from core.database import get_db
from models import UserProfile
from schemas import (
    ActionResult,
    RecommendationGenerateResponse,
    RecommendationRequest,
    RecommendationResponse,
)
from services.ai_core import AICoreClient, get_ai_core
from services.recommendation_engine import (
    Recommendation,
    RecommendationEngine,
    RecommendationOptions,
)

router = APIRouter(prefix="/v1/recommendations", tags=["Recommendations"])


def _to_response(rec: Recommendation) -> RecommendationResponse:
    return RecommendationResponse(
        id=rec.id,
        type=rec.type,
        title=rec.title,
        description=rec.description,
        priority=rec.priority,
        actionable=rec.actionable,
        action_url=rec.action_url,
        reasoning=rec.reasoning,
        tags=rec.tags,
        metadata=rec.metadata,
        expires_at=rec.expires_at,
        is_dismissed=rec.is_dismissed,
        is_completed=rec.is_completed,
        created_at=rec.created_at,
    )


@router.post("/generate", response_model=RecommendationGenerateResponse)
def generate_recommendations(
    body: RecommendationRequest,
    profile: UserProfile = Depends(get_current_profile),
    db: Session = Depends(get_db),
    ai_core: AICoreClient = Depends(get_ai_core),
):
    """
    Run the recommendation rules and store the result.

    Every call inserts new rows; earlier active recommendations are not
    deduplicated against.
    """
    options = RecommendationOptions(
        type=body.type,
        count=body.count or settings.RECOMMENDATION_DEFAULT_COUNT,
        include_reasoning=body.include_reasoning,
    )
    result = RecommendationEngine(db, ai_core=ai_core).generate(profile, options)
    return RecommendationGenerateResponse(
        recommendations=[_to_response(r) for r in result.recommendations],
        saved=result.saved,
        error=result.error,
    )


@router.get("", response_model=List[RecommendationResponse])
def get_active_recommendations(
    type: Literal["workout", "nutrition", "wellness", "recovery", "all"] = "all",
    count: int = Query(5, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Not-dismissed recommendations, newest first."""
    recs = RecommendationEngine(db).get_active(user_id, type, count)
    return [_to_response(r) for r in recs]


@router.post("/{recommendation_id}/dismiss", response_model=ActionResult)
def dismiss_recommendation(
    recommendation_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    success, error = RecommendationEngine(db).dismiss(user_id, recommendation_id)
    return ActionResult(success=success, error=error)


@router.post("/{recommendation_id}/complete", response_model=ActionResult)
def complete_recommendation(
    recommendation_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    success, error = RecommendationEngine(db).complete(user_id, recommendation_id)
    return ActionResult(success=success, error=error)
