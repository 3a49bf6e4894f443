"""
Authentication router: sign-up, sign-in, sign-out and current user.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_locale_context
from routers.rate_limit import rate_limit
from services.identity import ProfileFields, sign_in, sign_out, sign_up
from services.locale import LocaleContext
from services.users import get_user, serialize_user

router = APIRouter()


class SignUpRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str
    confirm_password: Optional[str] = None
    first_name: str
    last_name: str
    company: Optional[str] = ""
    address: Optional[str] = ""


class SignInRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str


class SessionResponse(BaseModel):
    user_id: str
    email: str
    role: str
    status: str
    session_token: str
    session_expires_at: int


@router.post("/signup", response_model=SessionResponse)
async def signup(
    request: SignUpRequest,
    _rate_limit: None = Depends(rate_limit("auth_signup", limit=10, window_seconds=3600)),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    """Create a pending account and open a session for it."""
    return await sign_up(
        db,
        email=request.email,
        password=request.password,
        confirm_password=request.confirm_password,
        profile=ProfileFields(
            first_name=request.first_name,
            last_name=request.last_name,
            company=request.company or "",
            address=request.address or "",
        ),
        locale=locale,
    )


@router.post("/login", response_model=SessionResponse)
async def login(
    request: SignInRequest,
    _rate_limit: None = Depends(rate_limit("auth_login", limit=30, window_seconds=900)),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    return await sign_in(db, email=request.email, password=request.password, locale=locale)


@router.post("/logout")
async def logout(auth: AuthContext = Depends(get_auth_context)):
    await sign_out(auth.token_payload)
    return {"ok": True}


@router.get("/me")
async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    """Current profile plus the display language resolved for this request."""
    user = await get_user(auth.user_id, db, locale)
    payload = serialize_user(user)
    payload["is_admin"] = auth.is_admin
    payload["language"] = locale.language
    return payload
