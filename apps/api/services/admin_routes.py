"""Back-office navigation entries filtered by role."""

from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.admin_route import AdminRoute
from models.enums import UserRole

_ADMIN_ROLES = [UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value]

DEFAULT_ADMIN_ROUTES: List[Dict[str, Any]] = [
    {"path": "/admin", "label": "admin.nav.dashboard", "icon": "FiHome", "roles": _ADMIN_ROLES, "order_index": 1},
    {"path": "/admin/users", "label": "admin.nav.users", "icon": "FiUsers", "roles": _ADMIN_ROLES, "order_index": 2},
    {"path": "/admin/translations", "label": "admin.nav.translations", "icon": "FiGlobe", "roles": _ADMIN_ROLES, "order_index": 3},
    {"path": "/admin/tools", "label": "admin.nav.tools", "icon": "FiTool", "roles": _ADMIN_ROLES, "order_index": 4},
    {"path": "/admin/packs", "label": "admin.nav.packs", "icon": "FiCreditCard", "roles": _ADMIN_ROLES, "order_index": 5},
]


async def list_admin_routes(db: AsyncSession, role: UserRole) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(AdminRoute).where(AdminRoute.is_active.is_(True)).order_by(AdminRoute.order_index.asc())
    )
    rows = result.scalars().all()
    routes = [
        {
            "path": row.path,
            "label": row.label,
            "icon": row.icon,
            "roles": list(row.roles or []),
            "order_index": row.order_index,
        }
        for row in rows
    ] or [dict(route) for route in DEFAULT_ADMIN_ROUTES]
    return [route for route in routes if role.value in route["roles"]]
