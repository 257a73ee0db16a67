"""
TaxBridge - Subscription Models

Subscriptions are paid for by users, not companies. Bonus days granted on a
mid-cycle upgrade are stored with the plan that was replaced.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Integer, Numeric, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from taxbridge.models.base import BaseModel, MONEY_PRECISION, MONEY_SCALE
from taxbridge.models.enums import (
    BillingCycle,
    PaymentMethod,
    PaymentStatus,
    PlanTier,
    SubscriptionStatus,
)


class Subscription(BaseModel):
    """A user's current plan."""

    __tablename__ = "subscriptions"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, unique=True)
    plan: Mapped[PlanTier] = mapped_column(SQLEnum(PlanTier), default=PlanTier.FREE, nullable=False)
    billing_cycle: Mapped[BillingCycle] = mapped_column(
        SQLEnum(BillingCycle), default=BillingCycle.MONTHLY, nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False, default=Decimal("0.00"),
    )
    status: Mapped[SubscriptionStatus] = mapped_column(
        SQLEnum(SubscriptionStatus), default=SubscriptionStatus.ACTIVE, nullable=False, index=True,
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    next_billing_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    bonus_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    previous_plan: Mapped[Optional[PlanTier]] = mapped_column(SQLEnum(PlanTier), nullable=True)

    def __repr__(self) -> str:
        return f"<Subscription(user={self.user_id}, plan={self.plan}, status={self.status})>"


class Payment(BaseModel):
    """A subscription payment attempt and its gateway references."""

    __tablename__ = "payments"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    subscription_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    currency: Mapped[str] = mapped_column(String(3), default="NGN", nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(SQLEnum(PaymentMethod), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False, index=True,
    )

    # Plan being purchased
    plan: Mapped[PlanTier] = mapped_column(SQLEnum(PlanTier), nullable=False)
    billing_cycle: Mapped[BillingCycle] = mapped_column(SQLEnum(BillingCycle), nullable=False)

    reference: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    gateway_transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
