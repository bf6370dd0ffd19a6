"""
Bearer token handling.

Tokens are minted by the login service and carry the user id in `sub`; the
role claim is advisory only, the stored user record decides what a request
may do. Issuing lives here too for operators and the test suite.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import uuid

from jose import ExpiredSignatureError, JWTError, jwt

from listingops.config import settings


logger = logging.getLogger(__name__)

TOKEN_TYPE = "access"


def create_access_token(
    user_id: uuid.UUID,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign an access token for `user_id`, valid for ACCESS_TOKEN_EXPIRE_MINUTES unless overridden."""
    issued_at = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + expires_delta,
        "type": TOKEN_TYPE,
    }
    if role:
        claims["role"] = role

    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_access_token(token: str) -> Optional[uuid.UUID]:
    """
    Return the user id an access token was issued for.

    None for anything that does not verify: bad signature, expired, wrong
    token type, or a subject that is not a UUID.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired access token")
        return None
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None

    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        logger.warning(f"Access token with malformed subject: {payload.get('sub')!r}")
        return None
