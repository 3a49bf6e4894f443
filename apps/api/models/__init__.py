"""Models package."""

from .user import User
from .auth_identity import AuthIdentity
from .credit_entry import CreditEntry
from .order import Order
from .tool import Tool
from .credit_pack import CreditPack
from .translation import Translation
from .admin_route import AdminRoute
