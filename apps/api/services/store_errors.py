"""Record-store failure handling shared by the ledger services."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def store_failure(db: AsyncSession, exc: Exception, *, event: str, detail: str, **fields: Any) -> HTTPException:
    """Roll back the session, log the failure and build the user-facing error."""
    try:
        await db.rollback()
    except Exception as rollback_exc:
        logger.warning("%s rollback failed: %s", event, rollback_exc)
    context = " ".join(f"{key}={value}" for key, value in fields.items())
    logger.error("%s failed %s: %s", event, context, exc, exc_info=exc)
    return HTTPException(status_code=503, detail=detail)
