"""Email/password identity provider backed by the auth_identities table."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import bcrypt
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.auth_identity import AuthIdentity
from models.enums import UserRole, UserStatus
from models.user import User
from services.locale import LocaleContext
from services.session_token import create_session_token, revoke_session
from services.store_errors import store_failure

logger = logging.getLogger(__name__)


@dataclass
class ProfileFields:
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    address: str = ""


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def validate_password(password: str, locale: LocaleContext, confirm_password: Optional[str] = None) -> None:
    """Reject short or mismatched passwords before anything is written."""
    min_length = max(int(settings.MIN_PASSWORD_LENGTH), 1)
    if len(password or "") < min_length:
        raise HTTPException(status_code=422, detail=locale.t("auth.passwordTooShort", min_length=min_length))
    if confirm_password is not None and password != confirm_password:
        raise HTTPException(status_code=422, detail=locale.t("auth.passwordMismatch"))


async def _email_taken(email: str, db: AsyncSession) -> bool:
    result = await db.execute(select(AuthIdentity.user_id).where(AuthIdentity.email == email))
    if result.scalar_one_or_none():
        return True
    result = await db.execute(select(User.id).where(User.email == email))
    return result.scalar_one_or_none() is not None


async def register_identity(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    profile: ProfileFields,
    locale: LocaleContext,
    role: UserRole = UserRole.CLIENT,
    status: UserStatus = UserStatus.PENDING,
) -> User:
    """Create the credential and the profile row in one commit."""
    normalized = normalize_email(email)
    if await _email_taken(normalized, db):
        raise HTTPException(status_code=409, detail=locale.t("auth.emailTaken"))

    user = User(
        email=normalized,
        first_name=profile.first_name or "",
        last_name=profile.last_name or "",
        company=profile.company or "",
        address=profile.address or "",
        role=role,
        status=status,
        validated=status == UserStatus.APPROVED,
        credits=0,
        welcome_bonus_granted=False,
    )
    db.add(user)
    await db.flush()
    db.add(AuthIdentity(user_id=user.id, email=normalized, password_hash=hash_password(password)))
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(status_code=409, detail=locale.t("auth.emailTaken")) from exc
    logger.info("identity_registered user=%s role=%s status=%s", user.id, role.value, status.value)
    return user


async def sign_up(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    confirm_password: Optional[str],
    profile: ProfileFields,
    locale: LocaleContext,
) -> Dict[str, Any]:
    validate_password(password, locale, confirm_password)
    try:
        user = await register_identity(db, email=email, password=password, profile=profile, locale=locale)
    except SQLAlchemyError as exc:
        raise await store_failure(db, exc, event="sign_up", detail=locale.t("errors.generic"), email=email) from exc
    return _session_payload(user)


async def sign_in(db: AsyncSession, *, email: str, password: str, locale: LocaleContext) -> Dict[str, Any]:
    normalized = normalize_email(email)
    result = await db.execute(select(AuthIdentity).where(AuthIdentity.email == normalized))
    identity = result.scalar_one_or_none()
    if not identity or not verify_password(password or "", identity.password_hash):
        logger.warning("sign_in rejected email=%s", normalized)
        raise HTTPException(status_code=401, detail=locale.t("auth.invalidCredentials"))

    user_result = await db.execute(select(User).where(User.id == identity.user_id))
    user = user_result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail=locale.t("auth.invalidCredentials"))
    logger.info("sign_in user=%s", user.id)
    return _session_payload(user)


async def sign_out(payload: Dict[str, Any]) -> None:
    await revoke_session(payload)
    logger.info("sign_out user=%s", payload.get("sub"))


async def admin_create_identity(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    profile: ProfileFields,
    role: UserRole,
    status: UserStatus,
    locale: LocaleContext,
) -> str:
    """Admin-only account creation; returns the new user id."""
    validate_password(password, locale)
    user = await register_identity(
        db,
        email=email,
        password=password,
        profile=profile,
        locale=locale,
        role=role,
        status=status,
    )
    return user.id


def _session_payload(user: User) -> Dict[str, Any]:
    session = create_session_token(user.id, user.email)
    return {
        "user_id": user.id,
        "email": user.email,
        "role": user.role.value,
        "status": user.status.value,
        "session_token": session["token"],
        "session_expires_at": session["expires_at"],
    }
