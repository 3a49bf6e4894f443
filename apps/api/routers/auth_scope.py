"""Request context dependencies: authenticated user scope and display language."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from database import get_db
from models.enums import UserRole, UserStatus
from models.user import User
from services.locale import LocaleContext, resolve_locale
from services.session_token import decode_session_token, is_session_revoked


auth_scheme = HTTPBearer(auto_error=False)

NON_PRIVILEGED_LANDING = "/dashboard"


@dataclass
class AuthContext:
    user_id: str
    role: UserRole
    status: UserStatus
    email: Optional[str] = None
    token_payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin


def get_locale_context(
    lang: Optional[str] = Query(default=None),
    x_language: Optional[str] = Header(default=None),
    accept_language: Optional[str] = Header(default=None),
) -> LocaleContext:
    """Resolve the display language for this request."""
    return resolve_locale(lang=lang, header_language=x_language, accept_language=accept_language)


def ensure_user_scope(auth_user_id: str, supplied_user_id: Optional[str]) -> str:
    """Return authenticated user_id and reject cross-user attempts."""
    if supplied_user_id and supplied_user_id != auth_user_id:
        raise HTTPException(status_code=403, detail="user_id does not match authenticated session.")
    return auth_user_id


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Resolve authenticated user from Bearer session token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")

    try:
        payload = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    if await is_session_revoked(payload):
        raise HTTPException(status_code=401, detail="Session has been signed out.")

    # Role and status are read fresh on every request, never trusted from the token.
    result = await db.execute(select(User.role, User.status, User.email).where(User.id == str(payload["sub"])))
    row = result.one_or_none()
    if row is None:
        raise HTTPException(status_code=401, detail="Session user no longer exists.")

    return AuthContext(
        user_id=str(payload["sub"]),
        role=row.role,
        status=row.status,
        email=row.email,
        token_payload=payload,
    )


async def require_approved(
    auth: AuthContext = Depends(get_auth_context),
    locale: LocaleContext = Depends(get_locale_context),
) -> AuthContext:
    """Only approved accounts (or staff) may spend or buy credits."""
    if auth.status != UserStatus.APPROVED and not auth.is_admin:
        raise HTTPException(status_code=403, detail=locale.t("auth.pendingApproval"))
    return auth


async def require_admin(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Admin-only views send everyone else back to the client landing view."""
    if not auth.is_admin:
        raise HTTPException(status_code=403, detail={"redirect_to": NON_PRIVILEGED_LANDING})
    return auth
