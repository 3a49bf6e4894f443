"""Routers package."""

from . import (
    health,
    auth,
    catalog,
    credits,
    orders,
    profile,
    translations,
    admin,
)
