from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from agencyhub.core.config import get_settings

settings = get_settings()


def create_access_token(
    subject: str,
    *,
    email: str | None = None,
    expires_delta_minutes: int | None = None,
) -> str:
    """
    Mint a bearer token shaped like the ones the hosted auth backend issues.

    Only used by scripts and local development; production tokens come from
    the auth provider and are signed with the same shared secret.
    """
    if expires_delta_minutes is None:
        expires_delta_minutes = settings.access_token_expire_minutes

    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_delta_minutes)
    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "exp": expire,
    }
    if email:
        to_encode["email"] = email
    if settings.auth_jwt_audience:
        to_encode["aud"] = settings.auth_jwt_audience

    return jwt.encode(to_encode, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.
    Raises ValueError with descriptive message if token is invalid or expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options={"verify_aud": settings.auth_jwt_audience is not None},
        )
    except JWTError as exc:
        error_str = str(exc).lower()
        if "expired" in error_str:
            raise ValueError("Token has expired. Please log in again.") from None
        raise ValueError("Invalid token") from exc
    return payload
