"""Payment confirmation gateways for credit pack purchases."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Protocol

from config import settings
from models.credit_pack import CreditPack

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Raised when a payment is declined or cannot be confirmed."""


class PaymentGateway(Protocol):
    name: str

    async def confirm(self, *, user_id: str, pack: CreditPack) -> str:
        """Confirm payment for ``pack`` and return the provider reference."""


class SimulatedPaymentGateway:
    """Always-successful stand-in that mimics provider latency."""

    name = "simulated"

    def __init__(self, delay_seconds: float = 0.0):
        self.delay_seconds = max(float(delay_seconds), 0.0)

    async def confirm(self, *, user_id: str, pack: CreditPack) -> str:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        reference = f"sim_{uuid.uuid4().hex[:16]}"
        logger.info("payment_simulated user=%s pack=%s price=%s ref=%s", user_id, pack.id, pack.price, reference)
        return reference


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency resolving the configured payment gateway."""
    provider = (settings.PAYMENT_PROVIDER or "").strip().lower()
    if provider == "simulated":
        return SimulatedPaymentGateway(delay_seconds=settings.PAYMENT_SIMULATION_DELAY_SECONDS)
    raise ValueError(f"Unsupported PAYMENT_PROVIDER: {settings.PAYMENT_PROVIDER}")
