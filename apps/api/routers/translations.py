"""Public translation bundles for the front-end."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from services.locale import normalize_language
from services.translations import get_language_bundle

router = APIRouter()


@router.get("/{language}")
async def language_bundle(language: str, db: AsyncSession = Depends(get_db)):
    resolved = normalize_language(language)
    return {"language": resolved, "messages": await get_language_bundle(db, resolved)}
