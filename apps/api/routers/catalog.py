"""Public catalog of active tools and credit packs."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from services.catalog import list_active_packs, list_active_tools

router = APIRouter()


@router.get("/tools")
async def tools(db: AsyncSession = Depends(get_db)):
    return {"items": await list_active_tools(db)}


@router.get("/packs")
async def packs(db: AsyncSession = Depends(get_db)):
    return {"items": await list_active_packs(db)}
