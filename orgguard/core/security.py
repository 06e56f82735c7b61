"""Bearer-token authentication helpers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

ALGORITHM = "HS256"
TOKEN_TTL_MINUTES = 60 * 12
AUTH_SCHEME = HTTPBearer(auto_error=False)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    subject: str,
    secret_key: str,
    extra: Dict[str, Any] | None = None,
    ttl_minutes: int = TOKEN_TTL_MINUTES,
) -> str:
    payload: Dict[str, Any] = {
        "sub": subject,
        "iat": int(now_utc().timestamp()),
        "exp": int((now_utc() + timedelta(minutes=ttl_minutes)).timestamp()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)


def decode_token(token: str, secret_key: str) -> Dict[str, Any]:
    return jwt.decode(token, secret_key, algorithms=[ALGORITHM])


def user_id_from_token(token: str | None, secret_key: str) -> UUID | None:
    """Return the user id carried in ``sub``, or None for a missing or bad token."""
    if not token:
        return None
    try:
        payload = decode_token(token, secret_key)
        return UUID(str(payload.get("sub", "")))
    except (jwt.PyJWTError, ValueError):
        return None


def get_current_user_id(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(AUTH_SCHEME),
) -> UUID:
    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
        )
    secret_key = request.app.state.settings.secret_key.get_secret_value()
    user_id = user_id_from_token(creds.credentials, secret_key)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token"
        )
    return user_id
