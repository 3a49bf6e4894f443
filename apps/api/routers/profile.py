"""Self-service profile edits."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_locale_context
from services.locale import LocaleContext
from services.users import update_profile

router = APIRouter()


class ProfileUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None


@router.patch("")
async def patch_profile(
    request: ProfileUpdateRequest,
    auth: AuthContext = Depends(get_auth_context),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_profile(auth.user_id, request.model_dump(exclude_none=True), db, locale=locale)
