"""Billing endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from fluencyjet.api.deps import get_billing_service, get_current_user
from fluencyjet.db.models.user import User
from fluencyjet.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    UserRead,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from fluencyjet.services.billing import BillingService


router = APIRouter(prefix="/billing", tags=["billing"])


@router.post("/create-order", response_model=CreateOrderResponse)
def create_order(
    payload: CreateOrderRequest,
    current_user: User = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service),
) -> CreateOrderResponse:
    """Open a gateway order the client hands to the checkout widget."""

    order = service.create_order(current_user, plan=payload.plan)
    return CreateOrderResponse(
        keyId=service.key_id,
        orderId=order.order_id,
        amount=order.amount,
        currency=order.currency,
        plan=order.plan,
    )


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
def verify_payment(
    payload: VerifyPaymentRequest,
    current_user: User = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service),
) -> VerifyPaymentResponse:
    """Check the gateway signature and upgrade the user's plan."""

    user = service.verify_and_upgrade(
        current_user,
        order_id=payload.razorpay_order_id,
        payment_id=payload.razorpay_payment_id,
        signature=payload.razorpay_signature,
        plan=payload.plan,
    )
    return VerifyPaymentResponse(user=UserRead.model_validate(user))
