"""User administration: listing, edits, approval and manual credit grants."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.enums import USER_STATUS_TRANSITIONS, CreditType, UserRole, UserStatus
from models.user import User
from services.credits import apply_credit_delta, get_locked_user
from services.identity import ProfileFields, admin_create_identity
from services.locale import LocaleContext
from services.store_errors import store_failure

logger = logging.getLogger(__name__)

ADMIN_MODIFICATION_REASON = "admin modification"
MANUAL_ADDITION_REASON = "manual admin addition"
WELCOME_CREDITS_REASON = "welcome credits"

PROFILE_FIELDS = ("first_name", "last_name", "company", "address")


def serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "company": user.company,
        "address": user.address,
        "role": user.role.value if user.role else None,
        "status": user.status.value if user.status else None,
        "credits": int(user.credits or 0),
        "validated": bool(user.validated),
        "welcome_bonus_granted": bool(user.welcome_bonus_granted),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


async def get_user(user_id: str, db: AsyncSession, locale: LocaleContext) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail=locale.t("users.notFound"))
    return user


async def list_users(
    db: AsyncSession,
    *,
    search: Optional[str] = None,
    status: Optional[UserStatus] = None,
    role: Optional[UserRole] = None,
    page: int = 1,
    limit: int = 50,
) -> Dict[str, Any]:
    filters = []
    if status is not None:
        filters.append(User.status == status)
    if role is not None:
        filters.append(User.role == role)
    term = str(search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        full_name = func.lower(func.coalesce(User.first_name, "") + " " + func.coalesce(User.last_name, ""))
        filters.append(or_(func.lower(User.email).like(pattern), full_name.like(pattern)))

    count_result = await db.execute(select(func.count(User.id)).where(*filters))
    total_count = int(count_result.scalar() or 0)

    page_size = max(min(int(limit), 200), 1)
    offset = (max(int(page), 1) - 1) * page_size
    result = await db.execute(
        select(User)
        .where(*filters)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(offset)
        .limit(page_size)
    )
    return {
        "total_count": total_count,
        "page": max(int(page), 1),
        "limit": page_size,
        "items": [serialize_user(user) for user in result.scalars().all()],
    }


def _check_status_transition(current: UserStatus, target: UserStatus, locale: LocaleContext) -> None:
    if current == target:
        return
    if target not in USER_STATUS_TRANSITIONS.get(current, set()):
        raise HTTPException(
            status_code=409,
            detail=locale.t("admin.users.invalidTransition", current=current.value, target=target.value),
        )


async def _grant_welcome_bonus(user: User, db: AsyncSession, *, actor_id: Optional[str]) -> bool:
    """Grant the one-time welcome bonus to a freshly approved, empty account."""
    if user.welcome_bonus_granted or int(user.credits or 0) != 0:
        return False
    bonus = max(int(settings.WELCOME_BONUS_CREDITS), 0)
    if bonus <= 0:
        return False
    await apply_credit_delta(
        user.id,
        db,
        delta=bonus,
        entry_type=CreditType.GIFT,
        reason=WELCOME_CREDITS_REASON,
        actor_id=actor_id,
        user=user,
    )
    user.welcome_bonus_granted = True
    return True


def _apply_status(user: User, status: UserStatus) -> None:
    user.status = status
    user.validated = status == UserStatus.APPROVED


async def change_user_status(
    user_id: str,
    new_status: UserStatus,
    db: AsyncSession,
    *,
    actor_id: Optional[str],
    locale: LocaleContext,
) -> Dict[str, Any]:
    """Move a user through ``pending -> approved | rejected``."""
    try:
        user = await get_locked_user(user_id, db)
        if user is None:
            raise HTTPException(status_code=404, detail=locale.t("users.notFound"))
        previous = user.status
        _check_status_transition(previous, new_status, locale)

        bonus_granted = False
        if previous != new_status:
            _apply_status(user, new_status)
            if new_status == UserStatus.APPROVED:
                bonus_granted = await _grant_welcome_bonus(user, db, actor_id=actor_id)
        await db.commit()
    except SQLAlchemyError as exc:
        raise await store_failure(
            db,
            exc,
            event="change_user_status",
            detail=locale.t("admin.users.statusError"),
            user=user_id,
            status=new_status.value,
        ) from exc

    logger.info(
        "user_status user=%s %s->%s bonus=%s actor=%s",
        user_id,
        previous.value,
        new_status.value,
        bonus_granted,
        actor_id,
    )
    return {"user": serialize_user(user), "welcome_bonus_granted": bonus_granted}


async def update_user(
    user_id: str,
    changes: Dict[str, Any],
    db: AsyncSession,
    *,
    actor_id: Optional[str],
    locale: LocaleContext,
) -> Dict[str, Any]:
    """Admin edit of profile, role, status and absolute credit balance.

    A changed balance is recorded as one ledger entry carrying the delta:
    ``gift`` when it grows, ``usage`` when it shrinks. An unchanged balance
    writes nothing to the ledger.
    """
    try:
        user = await get_locked_user(user_id, db)
        if user is None:
            raise HTTPException(status_code=404, detail=locale.t("users.notFound"))

        for name in PROFILE_FIELDS:
            if changes.get(name) is not None:
                setattr(user, name, changes[name])
        if changes.get("role") is not None:
            user.role = UserRole(changes["role"])

        bonus_granted = False
        approved_now = False
        if changes.get("status") is not None:
            target_status = UserStatus(changes["status"])
            _check_status_transition(user.status, target_status, locale)
            if target_status != user.status:
                _apply_status(user, target_status)
                approved_now = target_status == UserStatus.APPROVED

        delta = 0
        if changes.get("credits") is not None:
            delta = int(changes["credits"]) - int(user.credits or 0)
            if delta != 0:
                await apply_credit_delta(
                    user.id,
                    db,
                    delta=delta,
                    entry_type=CreditType.GIFT if delta > 0 else CreditType.USAGE,
                    reason=ADMIN_MODIFICATION_REASON,
                    actor_id=actor_id,
                    user=user,
                )

        if approved_now:
            bonus_granted = await _grant_welcome_bonus(user, db, actor_id=actor_id)
        await db.commit()
    except SQLAlchemyError as exc:
        raise await store_failure(
            db,
            exc,
            event="update_user",
            detail=locale.t("admin.users.saveError"),
            user=user_id,
        ) from exc

    logger.info("user_updated user=%s credit_delta=%s actor=%s", user_id, delta, actor_id)
    return {"user": serialize_user(user), "credit_delta": delta, "welcome_bonus_granted": bonus_granted}


async def add_credits(
    user_id: str,
    quantity: int,
    db: AsyncSession,
    *,
    actor_id: Optional[str],
    locale: LocaleContext,
) -> Optional[Dict[str, Any]]:
    """Manual grant; quantities of zero or less are ignored without touching the store."""
    amount = int(quantity)
    if amount <= 0:
        logger.info("manual_credit_grant ignored user=%s quantity=%s", user_id, amount)
        return None

    try:
        entry = await apply_credit_delta(
            user_id,
            db,
            delta=amount,
            entry_type=CreditType.GIFT,
            reason=MANUAL_ADDITION_REASON,
            actor_id=actor_id,
        )
        await db.commit()
    except SQLAlchemyError as exc:
        raise await store_failure(
            db,
            exc,
            event="manual_credit_grant",
            detail=locale.t("admin.users.creditsError"),
            user=user_id,
        ) from exc

    logger.info("manual_credit_grant user=%s quantity=%s actor=%s", user_id, amount, actor_id)
    return {"user_id": user_id, "credits_added": amount, "balance_after": entry.balance_after}


async def create_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    profile: ProfileFields,
    role: UserRole,
    status: UserStatus,
    locale: LocaleContext,
) -> Dict[str, Any]:
    if not (email or "").strip() or not password or not profile.first_name or not profile.last_name:
        raise HTTPException(status_code=422, detail=locale.t("admin.users.requiredFields"))
    try:
        user_id = await admin_create_identity(
            db,
            email=email,
            password=password,
            profile=profile,
            role=role,
            status=status,
            locale=locale,
        )
    except SQLAlchemyError as exc:
        raise await store_failure(
            db,
            exc,
            event="admin_create_user",
            detail=locale.t("admin.users.saveError"),
            email=email,
        ) from exc
    return serialize_user(await get_user(user_id, db, locale))


async def update_profile(
    user_id: str,
    changes: Dict[str, Any],
    db: AsyncSession,
    *,
    locale: LocaleContext,
) -> Dict[str, Any]:
    """Self-service profile edit; role, status and credits are not reachable here."""
    user = await get_user(user_id, db, locale)
    for name in PROFILE_FIELDS:
        if changes.get(name) is not None:
            setattr(user, name, changes[name])
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        raise await store_failure(
            db,
            exc,
            event="update_profile",
            detail=locale.t("admin.users.saveError"),
            user=user_id,
        ) from exc
    return serialize_user(user)
