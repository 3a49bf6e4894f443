"""Admin-managed translation strings."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.translation import Translation
from services.locale import LocaleContext, normalize_language
from services.store_errors import store_failure

logger = logging.getLogger(__name__)

LANGUAGE_FIELDS = ("fr", "de", "it", "en")


def serialize_translation(row: Translation) -> Dict[str, Any]:
    return {
        "id": row.id,
        "key": row.key,
        "fr": row.fr,
        "de": row.de,
        "it": row.it,
        "en": row.en,
        "category": row.category,
    }


async def list_translations(
    db: AsyncSession,
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> Dict[str, Any]:
    query = select(Translation).order_by(Translation.key.asc())
    term = str(search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.where(
            or_(
                func.lower(Translation.key).like(pattern),
                func.lower(func.coalesce(Translation.fr, "")).like(pattern),
                func.lower(func.coalesce(Translation.en, "")).like(pattern),
            )
        )
    if category:
        query = query.where(Translation.category == category)
    result = await db.execute(query)
    rows = result.scalars().all()

    category_result = await db.execute(
        select(Translation.category).where(Translation.category.is_not(None)).distinct()
    )
    categories: List[str] = sorted(value for value in category_result.scalars().all() if value)
    return {"items": [serialize_translation(row) for row in rows], "categories": categories}


async def create_translation(db: AsyncSession, fields: Dict[str, Any], *, locale: LocaleContext) -> Dict[str, Any]:
    key = str(fields.get("key") or "").strip()
    if not key or not str(fields.get("fr") or "").strip():
        raise HTTPException(status_code=422, detail=locale.t("admin.translations.requiredFields"))

    existing = await db.execute(select(Translation.id).where(Translation.key == key))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail=locale.t("admin.translations.keyExists"))

    row = Translation(
        key=key,
        category=fields.get("category") or None,
        **{name: fields.get(name) or "" for name in LANGUAGE_FIELDS},
    )
    db.add(row)
    try:
        await db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent insert of the same key.
        await db.rollback()
        raise HTTPException(status_code=409, detail=locale.t("admin.translations.keyExists")) from exc
    except SQLAlchemyError as exc:
        raise await store_failure(
            db,
            exc,
            event="create_translation",
            detail=locale.t("admin.translations.saveError"),
            key=key,
        ) from exc
    logger.info("translation_created key=%s", key)
    return serialize_translation(row)


async def update_translation(
    translation_id: str,
    db: AsyncSession,
    fields: Dict[str, Any],
    *,
    locale: LocaleContext,
) -> Dict[str, Any]:
    result = await db.execute(select(Translation).where(Translation.id == translation_id))
    row = result.scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail=locale.t("admin.translations.notFound"))
    if "fr" in fields and not str(fields.get("fr") or "").strip():
        raise HTTPException(status_code=422, detail=locale.t("admin.translations.requiredFields"))

    for name in LANGUAGE_FIELDS + ("category",):
        if name in fields:
            setattr(row, name, fields[name])
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        raise await store_failure(
            db,
            exc,
            event="update_translation",
            detail=locale.t("admin.translations.saveError"),
            id=translation_id,
        ) from exc
    return serialize_translation(row)


async def get_language_bundle(db: AsyncSession, language: str) -> Dict[str, str]:
    """Key -> text for one language, falling back to French for blanks."""
    column = normalize_language(language).lower()
    result = await db.execute(select(Translation).order_by(Translation.key.asc()))
    bundle: Dict[str, str] = {}
    for row in result.scalars().all():
        bundle[row.key] = getattr(row, column, None) or row.fr
    return bundle
