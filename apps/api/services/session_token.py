"""Session token helpers for backend-authenticated user scope."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import redis.asyncio as redis
from jose import JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "urbavisu_session"
_REVOKED_KEY_PREFIX = "urbavisu:revoked:"

logger = logging.getLogger(__name__)

_local_revoked: Dict[str, float] = {}
_local_lock = asyncio.Lock()


def create_session_token(
    user_id: str,
    email: Optional[str] = None,
    expires_hours: Optional[int] = None,
) -> Dict[str, Any]:
    """Create a signed session token payload for API authentication."""
    now = datetime.now(timezone.utc)
    ttl_hours = int(expires_hours or settings.JWT_EXPIRATION_HOURS or 24)
    expires_at = now + timedelta(hours=max(ttl_hours, 1))
    claims: Dict[str, Any] = {
        "sub": user_id,
        "type": SESSION_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    if email:
        claims["email"] = email

    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {
        "token": token,
        "expires_at": int(expires_at.timestamp()),
    }


def decode_session_token(token: str) -> Dict[str, Any]:
    """Decode and validate a signed session token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired session token.") from exc

    token_type = str(payload.get("type", "")).strip()
    if token_type != SESSION_TOKEN_TYPE:
        raise ValueError("Invalid session token type.")

    subject = str(payload.get("sub", "")).strip()
    if not subject:
        raise ValueError("Session token missing subject.")

    return payload


async def revoke_session(payload: Dict[str, Any]) -> None:
    """Deny a token's jti until its natural expiry."""
    jti = str(payload.get("jti", "")).strip()
    if not jti:
        return
    expires_at = float(payload.get("exp") or time.time())
    ttl_seconds = max(int(expires_at - time.time()), 1)

    try:
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        try:
            await redis_client.set(f"{_REVOKED_KEY_PREFIX}{jti}", "1", ex=ttl_seconds)
        finally:
            await redis_client.aclose()
        return
    except Exception as exc:
        logger.warning("session_revoke redis unavailable, using local store: %s", exc)

    async with _local_lock:
        _local_revoked[jti] = expires_at


async def is_session_revoked(payload: Dict[str, Any]) -> bool:
    jti = str(payload.get("jti", "")).strip()
    if not jti:
        return False

    async with _local_lock:
        now = time.time()
        for key in [key for key, expiry in _local_revoked.items() if expiry <= now]:
            _local_revoked.pop(key, None)
        if jti in _local_revoked:
            return True

    try:
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        try:
            return bool(await redis_client.exists(f"{_REVOKED_KEY_PREFIX}{jti}"))
        finally:
            await redis_client.aclose()
    except Exception:
        return False
