"""Gateway orders and plan upgrades after a verified payment."""
from __future__ import annotations

import time
from dataclasses import dataclass

import httpx
from fastapi import status
from loguru import logger
from sqlalchemy.orm import Session

from fluencyjet.config import settings
from fluencyjet.core.security import verify_payment_signature
from fluencyjet.db.models.user import User
from fluencyjet.utils.exceptions import FluencyJetException, InvalidInputError


@dataclass(frozen=True)
class PlanConfig:
    label: str
    amount: int  # paise
    currency: str
    full_access: bool


PLANS: dict[str, PlanConfig] = {
    "PRO": PlanConfig("PRO", 9900, "INR", full_access=True),
    "BEGINNER": PlanConfig("BEGINNER", 4900, "INR", full_access=False),
    "INTERMEDIATE": PlanConfig("INTERMEDIATE", 4900, "INR", full_access=False),
}


@dataclass(frozen=True)
class GatewayOrder:
    order_id: str
    amount: int
    currency: str
    plan: str


class BillingNotConfiguredError(FluencyJetException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "BILLING_UNAVAILABLE"


class PaymentGatewayError(FluencyJetException):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "PAYMENT_GATEWAY_ERROR"


def get_plan_config(plan: str | None) -> PlanConfig:
    key = (plan or "PRO").strip().upper()
    if key not in PLANS:
        raise InvalidInputError(f"Unknown plan: {plan}", details={"allowed": sorted(PLANS)})
    return PLANS[key]


class BillingService:
    """Create gateway orders, verify payment signatures and upgrade the paying user."""

    def __init__(
        self,
        db: Session,
        *,
        key_id: str | None = None,
        key_secret: str | None = None,
        api_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.db = db
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.api_url = api_url or settings.RAZORPAY_API_URL
        self.transport = transport

    def create_order(self, user: User, *, plan: str | None) -> GatewayOrder:
        """Open a gateway order for ``plan``; the client completes checkout with it."""

        if not self.key_id or not self.key_secret:
            raise BillingNotConfiguredError("Billing is not configured")
        cfg = get_plan_config(plan)
        payload = {
            "amount": cfg.amount,
            "currency": cfg.currency,
            "receipt": f"fj_{user.id.hex[:16]}_{int(time.time())}",
            "notes": {"userId": str(user.id), "plan": cfg.label},
        }

        try:
            with httpx.Client(
                base_url=self.api_url,
                timeout=settings.RAZORPAY_TIMEOUT_SECONDS,
                transport=self.transport,
            ) as client:
                response = client.post("/orders", json=payload, auth=(self.key_id, self.key_secret))
        except httpx.HTTPError as exc:
            logger.error(f"Payment gateway unreachable for user {user.id}: {exc}")
            raise PaymentGatewayError("Failed to create order") from exc

        if response.status_code >= 400:
            logger.error(f"Gateway rejected order for user {user.id} ({response.status_code}): {response.text}")
            raise PaymentGatewayError("Failed to create order")

        data = response.json()
        if not data.get("id"):
            raise PaymentGatewayError("Gateway response did not include an order id")
        order = GatewayOrder(
            order_id=str(data["id"]),
            amount=int(data.get("amount", cfg.amount)),
            currency=str(data.get("currency", cfg.currency)),
            plan=cfg.label,
        )
        logger.info(f"Created order {order.order_id} ({cfg.label}) for user {user.id}")
        return order

    def verify_and_upgrade(
        self, user: User, *, order_id: str, payment_id: str, signature: str, plan: str | None
    ) -> User:
        if not self.key_secret:
            raise BillingNotConfiguredError("Billing is not configured")
        cfg = get_plan_config(plan)
        if not verify_payment_signature(order_id, payment_id, signature, self.key_secret):
            logger.warning(f"Rejected payment signature for user {user.id} order {order_id}")
            raise InvalidInputError("Invalid payment signature")

        user.activate_plan(cfg.label, full_access=cfg.full_access)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} upgraded to {cfg.label} (order {order_id})")
        return user
