"""
Authentication dependencies.

Provides FastAPI dependencies for:
- Getting the current user id from the bearer token
- Loading the current user's profile (default profile if none stored yet)
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging

from core.database import get_db
from core.exceptions import UnauthorizedError, read_with_default
from core.security import decode_access_token
from models import UserProfile

logger = logging.getLogger(__name__)

# Use auto_error=False to handle missing credentials manually and return 401 (not 403)
security = HTTPBearer(auto_error=False)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Resolve the authenticated user id from the JWT `sub` claim.

    Raises UnauthorizedError (401) if the token is missing or invalid.
    """
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError("Invalid authentication credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token payload")
    return str(user_id)


def default_profile(user_id: str) -> UserProfile:
    """Unsaved profile with the stock targets, for users who never set preferences."""
    return UserProfile(
        id=user_id,
        role="member",
        training_goals=[],
        preferred_workout_days=[],
        water_intake_goal_ml=2000.0,
        water_intake_ml=0.0,
        sleep_goal_hours=8.0,
    )


def get_current_profile(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> UserProfile:
    result = read_with_default(
        db,
        lambda: db.query(UserProfile).filter(UserProfile.id == user_id).first(),
        default_profile(user_id),
        label=f"profile {user_id}",
    )
    return result.value
