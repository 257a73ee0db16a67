"""
TaxBridge - Subscription Service

Plan catalogue, feature gating and mid-cycle upgrade proration.

Plans (Naira, monthly / yearly):
- Free: ₦0
- Starter: ₦3,500 / ₦35,000
- Company (standard): ₦8,500 / ₦85,000
- Accountant (premium): ₦25,000 / ₦250,000

Upgrade bonus: when an active subscription with time left (Free included)
is upgraded to a strictly higher plan, the remaining days (rounded up) are
added to the new term. The same formula runs before payment (to show the
user) and after payment verification (to persist), so both agree.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Optional, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy import select, and_, update
from sqlalchemy.ext.asyncio import AsyncSession

from taxbridge.models.enums import (
    BillingCycle,
    PaymentMethod,
    PaymentStatus,
    PlanFeature,
    PlanTier,
    SubscriptionStatus,
)
from taxbridge.models.subscription import Payment, Subscription
from taxbridge.utils.error_handling import (
    AlreadyProcessedException,
    NotFoundException,
    PlanFeatureRequiredException,
)

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


# ===========================================
# PLAN CATALOGUE
# ===========================================

@dataclass(frozen=True)
class PlanPricing:
    """Price list entry for a plan."""
    plan: PlanTier
    monthly: Decimal
    yearly: Decimal

    @property
    def name(self) -> str:
        return self.plan.display_name

    def price_for(self, cycle: BillingCycle) -> Decimal:
        return self.monthly if cycle == BillingCycle.MONTHLY else self.yearly


PLAN_PRICING: Dict[PlanTier, PlanPricing] = {
    PlanTier.FREE: PlanPricing(PlanTier.FREE, Decimal("0"), Decimal("0")),
    PlanTier.STARTER: PlanPricing(PlanTier.STARTER, Decimal("3500"), Decimal("35000")),
    PlanTier.STANDARD: PlanPricing(PlanTier.STANDARD, Decimal("8500"), Decimal("85000")),
    PlanTier.PREMIUM: PlanPricing(PlanTier.PREMIUM, Decimal("25000"), Decimal("250000")),
}

# Lowest plan that includes each feature
FEATURE_REQUIREMENTS: Dict[PlanFeature, PlanTier] = {
    PlanFeature.PAYROLL: PlanTier.STANDARD,
    PlanFeature.WHT_TRACKING: PlanTier.STARTER,
    PlanFeature.PIT_REMITTANCE: PlanTier.STARTER,
    PlanFeature.CIT_REMITTANCE: PlanTier.STARTER,
    PlanFeature.VAT_REMITTANCE: PlanTier.STARTER,
    PlanFeature.EXPORTS: PlanTier.STARTER,
}


def plan_includes(plan: PlanTier, feature: PlanFeature) -> bool:
    return plan.rank >= FEATURE_REQUIREMENTS[feature].rank


# ===========================================
# PRORATION
# ===========================================

@dataclass
class UpgradeInfo:
    """Result of an upgrade proration. Computed, never stored."""
    has_bonus: bool
    bonus_days: int
    previous_plan: Optional[PlanTier]
    new_end_date: datetime
    standard_end_date: datetime
    message: str = ""


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_upgrade(current: PlanTier, target: PlanTier) -> bool:
    """Strictly higher plan. Same plan and downgrades are not upgrades."""
    return target.rank > current.rank


def standard_term_end(start: datetime, cycle: BillingCycle) -> datetime:
    if cycle == BillingCycle.MONTHLY:
        return start + relativedelta(months=1)
    return start + relativedelta(years=1)


def remaining_days(end_date: datetime, now: datetime) -> int:
    """Whole days left, rounded up. Zero when the term has ended."""
    remaining = as_utc(end_date) - as_utc(now)
    if remaining <= timedelta(0):
        return 0
    days, rest = divmod(remaining, ONE_DAY)
    return days + (1 if rest else 0)


def calculate_upgrade_proration(
    subscription: Optional[Subscription],
    target_plan: PlanTier,
    billing_cycle: BillingCycle,
    now: datetime,
) -> UpgradeInfo:
    """
    Bonus days for moving ``subscription`` to ``target_plan``.

    Any active plan with time left earns it, Free included. Downgrades and
    same-plan renewals earn nothing. Pure: the same inputs always give the
    same result.
    """
    now = as_utc(now)
    standard_end = standard_term_end(now, billing_cycle)

    bonus_days = 0
    if (
        subscription is not None
        and subscription.status == SubscriptionStatus.ACTIVE
        and is_upgrade(subscription.plan, target_plan)
    ):
        bonus_days = remaining_days(subscription.end_date, now)

    if bonus_days == 0:
        return UpgradeInfo(
            has_bonus=False,
            bonus_days=0,
            previous_plan=None,
            new_end_date=standard_end,
            standard_end_date=standard_end,
        )

    day_word = "day" if bonus_days == 1 else "days"
    message = (
        f"Bonus! You have {bonus_days} {day_word} remaining on your "
        f"{subscription.plan.display_name} plan. We're adding {bonus_days} extra {day_word} "
        f"to your new {target_plan.display_name} subscription."
    )
    return UpgradeInfo(
        has_bonus=True,
        bonus_days=bonus_days,
        previous_plan=subscription.plan,
        new_end_date=standard_end + timedelta(days=bonus_days),
        standard_end_date=standard_end,
        message=message,
    )


# ===========================================
# SERVICE
# ===========================================

@dataclass
class PaymentInitialization:
    """A pending payment and the upgrade preview shown with it."""
    payment: Payment
    upgrade: UpgradeInfo


class SubscriptionService:
    """
    User subscriptions and subscription payments.

    Gateway checkout is handled elsewhere; this service receives the
    verified reference and applies it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    async def _find(self, user_id: uuid.UUID) -> Optional[Subscription]:
        result = await self.db.execute(
            select(Subscription).where(Subscription.user_id == user_id)
        )
        return result.scalar_one_or_none()

    def _reset_to_free(self, subscription: Subscription, now: datetime) -> None:
        subscription.plan = PlanTier.FREE
        subscription.billing_cycle = BillingCycle.MONTHLY
        subscription.amount = Decimal("0.00")
        subscription.status = SubscriptionStatus.ACTIVE
        subscription.start_date = now
        subscription.end_date = now + relativedelta(years=1)
        subscription.next_billing_date = None
        subscription.bonus_days = 0

    async def _load_current(self, user_id: uuid.UUID, now: datetime) -> Tuple[Subscription, bool]:
        """
        Current subscription with the Free fallback applied, not committed.

        Returns the subscription and whether it was created or reset.
        """
        subscription = await self._find(user_id)

        if subscription is None:
            subscription = Subscription(user_id=user_id)
            self._reset_to_free(subscription, now)
            self.db.add(subscription)
            return subscription, True

        lapsed = as_utc(subscription.end_date) < now
        if subscription.status == SubscriptionStatus.EXPIRED or (
            lapsed and subscription.status == SubscriptionStatus.ACTIVE
        ):
            logger.info(
                "Subscription expired, falling back to Free",
                extra={"user_id": str(user_id), "plan": subscription.plan.value},
            )
            if subscription.plan != PlanTier.FREE:
                subscription.previous_plan = subscription.plan
            self._reset_to_free(subscription, now)
            return subscription, True

        return subscription, False

    async def get_subscription(self, user_id: uuid.UUID, now: Optional[datetime] = None) -> Subscription:
        """
        Current subscription, created as Free on first access.

        A lapsed paid subscription is expired and the user falls back to Free
        for one year.
        """
        now = as_utc(now or self._now())
        subscription, changed = await self._load_current(user_id, now)
        if changed:
            await self.db.commit()
            await self.db.refresh(subscription)
        return subscription

    async def calculate_upgrade(
        self,
        user_id: uuid.UUID,
        target_plan: PlanTier,
        billing_cycle: BillingCycle,
        now: Optional[datetime] = None,
    ) -> UpgradeInfo:
        """Preview the bonus for an upgrade. Reads state, writes nothing."""
        subscription = await self._find(user_id)
        return calculate_upgrade_proration(subscription, target_plan, billing_cycle, now or self._now())

    async def require_feature(self, user_id: uuid.UUID, feature: PlanFeature) -> Subscription:
        """
        Raise unless the user's plan includes ``feature``.

        Raises:
            PlanFeatureRequiredException: with the cheapest qualifying plan
        """
        subscription = await self.get_subscription(user_id)
        if plan_includes(subscription.plan, feature):
            return subscription

        required = FEATURE_REQUIREMENTS[feature]
        raise PlanFeatureRequiredException(
            feature=feature.value,
            current_plan=subscription.plan.display_name,
            required_plan=required.display_name,
            required_price=PLAN_PRICING[required].monthly,
        )

    async def initialize_payment(
        self,
        user_id: uuid.UUID,
        plan: PlanTier,
        billing_cycle: BillingCycle,
        payment_method: PaymentMethod,
        now: Optional[datetime] = None,
    ) -> PaymentInitialization:
        """Record a pending payment for a plan purchase."""
        now = as_utc(now or self._now())
        if plan == PlanTier.FREE:
            raise NotFoundException("PlanPrice", message="The Free plan cannot be purchased")

        subscription = await self.get_subscription(user_id, now)
        amount = PLAN_PRICING[plan].price_for(billing_cycle)
        upgrade = calculate_upgrade_proration(subscription, plan, billing_cycle, now)

        reference = f"TXB-{user_id.hex[:8]}-{now.strftime('%Y%m%d%H%M%S')}-{uuid.uuid4().hex[:6]}"
        payment = Payment(
            user_id=user_id,
            subscription_id=subscription.id,
            amount=amount,
            currency="NGN",
            payment_method=payment_method,
            status=PaymentStatus.PENDING,
            plan=plan,
            billing_cycle=billing_cycle,
            reference=reference,
            description=f"{plan.display_name} plan ({billing_cycle.value})",
        )
        self.db.add(payment)
        await self.db.commit()
        await self.db.refresh(payment)

        logger.info(
            "Subscription payment initialized",
            extra={"user_id": str(user_id), "reference": reference, "amount": str(amount)},
        )
        return PaymentInitialization(payment=payment, upgrade=upgrade)

    async def activate_after_payment(
        self,
        reference: str,
        gateway_transaction_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Subscription:
        """
        Apply a verified payment to the user's subscription.

        The bonus is recomputed here from current state; this is the value
        that is stored.

        Raises:
            NotFoundException: unknown reference
            AlreadyProcessedException: the payment was already applied
        """
        now = as_utc(now or self._now())
        result = await self.db.execute(select(Payment).where(Payment.reference == reference))
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundException("Payment", message=f"Payment with reference '{reference}' not found")
        if payment.status == PaymentStatus.COMPLETED:
            raise AlreadyProcessedException("Payment", reference)

        # Claim the payment; a concurrent activation loses this race
        claimed = await self.db.execute(
            update(Payment)
            .where(and_(Payment.id == payment.id, Payment.status != PaymentStatus.COMPLETED))
            .values(status=PaymentStatus.COMPLETED, paid_at=now, gateway_transaction_id=gateway_transaction_id)
            .execution_options(synchronize_session=False)
        )
        if not claimed.rowcount:
            await self.db.rollback()
            raise AlreadyProcessedException("Payment", reference)

        try:
            # Fallback, claim and plan change commit together
            subscription, _ = await self._load_current(payment.user_id, now)
            upgrade = calculate_upgrade_proration(subscription, payment.plan, payment.billing_cycle, now)
            old_plan = subscription.plan

            subscription.plan = payment.plan
            subscription.billing_cycle = payment.billing_cycle
            subscription.amount = payment.amount
            subscription.status = SubscriptionStatus.ACTIVE
            subscription.start_date = now
            subscription.end_date = upgrade.new_end_date
            subscription.next_billing_date = upgrade.new_end_date
            subscription.bonus_days = upgrade.bonus_days
            if old_plan != payment.plan:
                subscription.previous_plan = old_plan
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(subscription)
        await self.db.refresh(payment)

        logger.info(
            "Subscription activated",
            extra={
                "user_id": str(payment.user_id),
                "plan": payment.plan.value,
                "bonus_days": upgrade.bonus_days,
                "reference": reference,
            },
        )
        return subscription

    async def expire_lapsed_subscriptions(self, now: Optional[datetime] = None) -> int:
        """Mark active paid subscriptions past their end date as expired."""
        now = as_utc(now or self._now())
        result = await self.db.execute(
            select(Subscription).where(
                and_(
                    Subscription.status == SubscriptionStatus.ACTIVE,
                    Subscription.plan != PlanTier.FREE,
                )
            )
        )
        expired = 0
        for subscription in result.scalars().all():
            if as_utc(subscription.end_date) < now:
                subscription.status = SubscriptionStatus.EXPIRED
                expired += 1
        await self.db.commit()

        if expired:
            logger.info("Subscriptions expired", extra={"count": expired})
        return expired
