"""Back-office router: users, credits, translations, catalog and navigation."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.enums import UserRole, UserStatus
from routers.auth_scope import AuthContext, get_locale_context, require_admin
from services.admin_routes import list_admin_routes
from services.catalog import create_pack, create_tool, update_pack, update_tool
from services.dashboard import get_dashboard_stats
from services.identity import ProfileFields
from services.locale import LocaleContext
from services.translations import create_translation, list_translations, update_translation
from services.users import add_credits, change_user_status, create_user, list_users, update_user

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateUserRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str
    first_name: str = ""
    last_name: str = ""
    company: Optional[str] = ""
    address: Optional[str] = ""
    role: UserRole = UserRole.CLIENT
    status: UserStatus = UserStatus.PENDING


class UpdateUserRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    credits: Optional[int] = Field(default=None, ge=0)


class StatusChangeRequest(BaseModel):
    status: UserStatus


class AddCreditsRequest(BaseModel):
    quantity: int


class CreateTranslationRequest(BaseModel):
    key: str
    fr: str = ""
    de: Optional[str] = ""
    it: Optional[str] = ""
    en: Optional[str] = ""
    category: Optional[str] = None


class UpdateTranslationRequest(BaseModel):
    fr: Optional[str] = None
    de: Optional[str] = None
    it: Optional[str] = None
    en: Optional[str] = None
    category: Optional[str] = None


class ToolRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    credit_cost: Optional[int] = Field(default=None, ge=0)
    is_free: Optional[bool] = None
    is_active: Optional[bool] = None


class PackRequest(BaseModel):
    name: Optional[str] = None
    credits: Optional[int] = Field(default=None, ge=1)
    bonus_credits: Optional[int] = Field(default=None, ge=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


@router.get("/dashboard")
async def dashboard(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await get_dashboard_stats(db)


@router.get("/routes")
async def navigation(
    admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return {"items": await list_admin_routes(db, admin.role)}


@router.get("/users")
async def users_index(
    search: Optional[str] = Query(default=None),
    status: Optional[UserStatus] = Query(default=None),
    role: Optional[UserRole] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await list_users(db, search=search, status=status, role=role, page=page, limit=limit)


@router.post("/users")
async def users_create(
    request: CreateUserRequest,
    admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    created = await create_user(
        db,
        email=request.email,
        password=request.password,
        profile=ProfileFields(
            first_name=request.first_name,
            last_name=request.last_name,
            company=request.company or "",
            address=request.address or "",
        ),
        role=request.role,
        status=request.status,
        locale=locale,
    )
    logger.info("admin_create_user admin=%s user=%s", admin.user_id, created["id"])
    return created


@router.patch("/users/{user_id}")
async def users_update(
    user_id: str,
    request: UpdateUserRequest,
    admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_user(
        user_id,
        request.model_dump(exclude_none=True),
        db,
        actor_id=admin.user_id,
        locale=locale,
    )


@router.post("/users/{user_id}/status")
async def users_status(
    user_id: str,
    request: StatusChangeRequest,
    admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    return await change_user_status(user_id, request.status, db, actor_id=admin.user_id, locale=locale)


@router.post("/users/{user_id}/credits")
async def users_add_credits(
    user_id: str,
    request: AddCreditsRequest,
    admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    result = await add_credits(user_id, request.quantity, db, actor_id=admin.user_id, locale=locale)
    if result is None:
        raise HTTPException(status_code=422, detail=locale.t("admin.users.invalidQuantity"))
    return result


@router.get("/translations")
async def translations_index(
    search: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await list_translations(db, search=search, category=category)


@router.post("/translations")
async def translations_create(
    request: CreateTranslationRequest,
    _admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    return await create_translation(db, request.model_dump(), locale=locale)


@router.patch("/translations/{translation_id}")
async def translations_update(
    translation_id: str,
    request: UpdateTranslationRequest,
    _admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_translation(translation_id, db, request.model_dump(exclude_none=True), locale=locale)


@router.post("/tools")
async def tools_create(
    request: ToolRequest,
    _admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    if not request.name:
        raise HTTPException(status_code=422, detail="name is required")
    return await create_tool(db, request.model_dump(exclude_none=True), locale=locale)


@router.patch("/tools/{tool_id}")
async def tools_update(
    tool_id: str,
    request: ToolRequest,
    _admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_tool(tool_id, db, request.model_dump(exclude_none=True), locale=locale)


@router.post("/packs")
async def packs_create(
    request: PackRequest,
    _admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    if not request.name or request.credits is None or request.price is None:
        raise HTTPException(status_code=422, detail="name, credits and price are required")
    return await create_pack(db, request.model_dump(exclude_none=True), locale=locale)


@router.patch("/packs/{pack_id}")
async def packs_update(
    pack_id: str,
    request: PackRequest,
    _admin: AuthContext = Depends(require_admin),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_pack(pack_id, db, request.model_dump(exclude_none=True), locale=locale)
