"""
TaxBridge - Subscription Schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taxbridge.models.enums import (
    BillingCycle,
    PaymentMethod,
    PaymentStatus,
    PlanTier,
    SubscriptionStatus,
)


class SubscriptionResponse(BaseModel):
    id: UUID
    user_id: UUID
    plan: PlanTier
    plan_name: str
    billing_cycle: BillingCycle
    amount: Decimal
    status: SubscriptionStatus
    start_date: datetime
    end_date: datetime
    next_billing_date: Optional[datetime] = None
    bonus_days: int
    previous_plan: Optional[PlanTier] = None

    model_config = ConfigDict(from_attributes=True)


class UpgradeRequest(BaseModel):
    user_id: UUID
    target_plan: PlanTier
    billing_cycle: BillingCycle


class UpgradeInfoResponse(BaseModel):
    has_bonus: bool
    bonus_days: int
    previous_plan: Optional[PlanTier] = None
    new_end_date: datetime
    standard_end_date: datetime
    message: str = ""

    model_config = ConfigDict(from_attributes=True)


class InitializePaymentRequest(BaseModel):
    user_id: UUID
    plan: PlanTier
    billing_cycle: BillingCycle
    payment_method: PaymentMethod = PaymentMethod.PAYSTACK


class InitializePaymentResponse(BaseModel):
    reference: str
    amount: Decimal
    currency: str
    plan: PlanTier
    billing_cycle: BillingCycle
    status: PaymentStatus
    upgrade: UpgradeInfoResponse


class ActivatePaymentRequest(BaseModel):
    """Reference of a payment already verified with the gateway."""
    reference: str = Field(..., min_length=1, max_length=100)
    gateway_transaction_id: Optional[str] = Field(None, max_length=100)
