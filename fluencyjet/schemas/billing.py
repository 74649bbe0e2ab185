"""Billing schemas."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from fluencyjet.schemas.user import UserRead


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    plan: Optional[str] = "PRO"


class VerifyPaymentResponse(BaseModel):
    ok: bool = True
    user: UserRead


class CreateOrderRequest(BaseModel):
    plan: Optional[str] = "PRO"


class CreateOrderResponse(BaseModel):
    ok: bool = True
    keyId: str
    orderId: str
    amount: int
    currency: str
    plan: str
