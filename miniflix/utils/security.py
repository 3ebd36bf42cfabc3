# miniflix/utils/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from jose import jwt, JWTError, ExpiredSignatureError
import logging
from ..config import settings

logger = logging.getLogger(__name__)

# ============================================================
# JWT Functions
# ============================================================
# Tokens are issued by the account service; this API only verifies them.
# create_access_token exists for service-to-service calls and tests.

def create_access_token(
    subject: Any,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a new JWT access token.

    Args:
        subject: User ID
        expires_delta: Custom expiration time

    Returns:
        JWT token string with expiration
    """
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        'exp': expire,
        'sub': str(subject),
        'type': 'access',
        'iat': now,
    }

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and validate JWT token.

    Raises:
        ExpiredSignatureError: If token has expired
        JWTError: If token is invalid
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise
    except JWTError as e:
        logger.warning(f"Invalid token: {e}")
        raise
