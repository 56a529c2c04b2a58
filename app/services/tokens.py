from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from app.config import settings


class TokenError(ValueError):
    pass


@dataclass(frozen=True)
class AccessTokenData:
    user_id: int
    session_token: str


def create_access_token(user_id: int, session_token: str) -> str:
    if not settings.jwt_secret:
        raise TokenError("JWT secret is not configured")
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "sid": session_token,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AccessTokenData:
    if not token:
        raise TokenError("Token is missing")
    if not settings.jwt_secret:
        raise TokenError("JWT secret is not configured")
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenError("Invalid token") from exc
    session_token = payload.get("sid")
    if not session_token:
        raise TokenError("Access token is missing session id")
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise TokenError("Invalid token subject") from exc
    return AccessTokenData(user_id=user_id, session_token=session_token)
