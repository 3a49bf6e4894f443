import asyncio
import os
import sys
from decimal import Decimal

# Add parent dir to path to find app modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import HTTPException
from sqlalchemy.future import select

from database import Base, async_session_maker, engine
import models  # noqa: F401
from models.credit_pack import CreditPack
from models.enums import UserRole, UserStatus
from models.tool import Tool
from services.identity import ProfileFields, register_identity
from services.locale import resolve_locale

TOOLS = [
    {"name": "Informations de base", "description": "Numéro de parcelle, surface", "credit_cost": 0, "is_free": True},
    {"name": "Zonage et règlements", "description": "Zone d'affectation, coefficients", "credit_cost": 3},
    {"name": "Données cadastrales", "description": "Propriétaire, servitudes", "credit_cost": 5},
    {"name": "Rapport complet", "description": "Toutes les données disponibles", "credit_cost": 10},
]

PACKS = [
    {"name": "Starter", "credits": 10, "bonus_credits": 0, "price": Decimal("50.00")},
    {"name": "Professionnel", "credits": 50, "bonus_credits": 5, "price": Decimal("225.00")},
    {"name": "Entreprise", "credits": 100, "bonus_credits": 15, "price": Decimal("400.00")},
]


async def seed_catalog_async():
    print("🗄️ Ensuring schema...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as session:
        existing_tools = set((await session.execute(select(Tool.name))).scalars().all())
        for tool in TOOLS:
            if tool["name"] in existing_tools:
                continue
            session.add(Tool(**tool))
            print(f"✅ Tool: {tool['name']} ({tool['credit_cost']} credits)")

        existing_packs = set((await session.execute(select(CreditPack.name))).scalars().all())
        for pack in PACKS:
            if pack["name"] in existing_packs:
                continue
            session.add(CreditPack(**pack))
            print(f"✅ Pack: {pack['name']} ({pack['credits']} + {pack['bonus_credits']} credits)")
        await session.commit()

        admin_email = os.getenv("SEED_ADMIN_EMAIL")
        admin_password = os.getenv("SEED_ADMIN_PASSWORD")
        if admin_email and admin_password:
            try:
                user = await register_identity(
                    session,
                    email=admin_email,
                    password=admin_password,
                    profile=ProfileFields(first_name="Super", last_name="Admin"),
                    locale=resolve_locale(),
                    role=UserRole.SUPER_ADMIN,
                    status=UserStatus.APPROVED,
                )
                print(f"✅ Super admin created: {user.email}")
            except HTTPException as exc:
                print(f"⚠️ Super admin not created: {exc.detail}")

    await engine.dispose()
    print("🎉 Catalog seeded.")


if __name__ == "__main__":
    asyncio.run(seed_catalog_async())
