from datetime import UTC, datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from config import ApplicationConfig


def generate_jwt(user_id: str, expires_delta: timedelta = timedelta(minutes=15)) -> str:
    """
    Generate JWT access token

    Args:
        user_id: Subject the gateway attributes events and sessions to
        expires_delta: Token lifetime

    Returns:
        JWT token string (HS256)
    """
    now = datetime.now(UTC)
    payload = {
        "user_id": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"])
        return payload
    except JWTError:
        return None
