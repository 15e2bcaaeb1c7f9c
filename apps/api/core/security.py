"""
JWT bearer tokens.

Tokens are HS256-signed with SECRET_KEY, carry the user id in ``sub`` and
are issued by this service only: a token with any other ``iss`` is
rejected. SECRET_KEY must come from the environment and be at least 32
characters.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from jose import JWTError, jwt
from core.config import settings

ALGORITHM = "HS256"
TOKEN_ISSUER = "training-intelligence-api"
MIN_SECRET_KEY_LENGTH = 32

SECRET_KEY = settings.SECRET_KEY

if len(SECRET_KEY) < MIN_SECRET_KEY_LENGTH:
    raise ValueError(
        f"SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters. "
        "Generate with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
    )


def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """Signed token for ``subject`` (a user id)."""
    now = datetime.now(timezone.utc)
    claims = dict(extra_claims or {})
    claims.update({
        "sub": str(subject),
        "iss": TOKEN_ISSUER,
        "iat": now,
        "exp": now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)),
    })
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Claims of a valid token, or None if it is malformed, expired, forged or foreign."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], issuer=TOKEN_ISSUER)
    except JWTError:
        return None
