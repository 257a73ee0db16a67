"""
TaxBridge - Subscription Tests

Free fallback, feature gates, payment activation and upgrade bonus days.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import select

from taxbridge.models.enums import (
    BillingCycle,
    PaymentMethod,
    PaymentStatus,
    PlanFeature,
    PlanTier,
    SubscriptionStatus,
)
from taxbridge.models.subscription import Payment, Subscription
from taxbridge.services import subscription_service
from taxbridge.services.subscription_service import SubscriptionService, as_utc
from taxbridge.utils.error_handling import (
    AlreadyProcessedException,
    NotFoundException,
    PlanFeatureRequiredException,
)


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def _paid_subscription(db_session, plan: PlanTier, end_date: datetime) -> Subscription:
    subscription = Subscription(
        user_id=uuid4(),
        plan=plan,
        billing_cycle=BillingCycle.MONTHLY,
        amount=Decimal("3500.00"),
        status=SubscriptionStatus.ACTIVE,
        start_date=end_date - timedelta(days=30),
        end_date=end_date,
    )
    db_session.add(subscription)
    await db_session.commit()
    return subscription


class TestGetSubscription:
    """Current plan lookup."""

    async def test_new_user_gets_free_plan(self, db_session):
        subscription = await SubscriptionService(db_session).get_subscription(uuid4(), now=NOW)

        assert subscription.plan == PlanTier.FREE
        assert subscription.amount == Decimal("0.00")
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert as_utc(subscription.end_date) == datetime(2027, 3, 1, 12, 0, tzinfo=timezone.utc)

    async def test_lapsed_paid_plan_falls_back_to_free(self, db_session):
        paid = await _paid_subscription(db_session, PlanTier.STARTER, NOW - timedelta(days=1))
        user_id = paid.user_id

        subscription = await SubscriptionService(db_session).get_subscription(user_id, now=NOW)

        assert subscription.plan == PlanTier.FREE
        assert subscription.previous_plan == PlanTier.STARTER
        assert subscription.status == SubscriptionStatus.ACTIVE

    async def test_running_plan_unchanged(self, db_session):
        paid = await _paid_subscription(db_session, PlanTier.STANDARD, NOW + timedelta(days=5))

        subscription = await SubscriptionService(db_session).get_subscription(paid.user_id, now=NOW)
        assert subscription.plan == PlanTier.STANDARD

    async def test_expire_lapsed_subscriptions(self, db_session):
        await _paid_subscription(db_session, PlanTier.STARTER, NOW - timedelta(days=1))
        await _paid_subscription(db_session, PlanTier.STANDARD, NOW + timedelta(days=1))

        expired = await SubscriptionService(db_session).expire_lapsed_subscriptions(now=NOW)
        assert expired == 1


class TestFeatureGates:
    """Plan checks for gated features."""

    async def test_free_plan_cannot_run_payroll(self, db_session):
        with pytest.raises(PlanFeatureRequiredException) as exc_info:
            await SubscriptionService(db_session).require_feature(uuid4(), PlanFeature.PAYROLL)

        details = exc_info.value.details
        assert details["current_plan"] == "Free"
        assert details["required_plan"] == "Company"
        assert details["required_plan_price"] == "8500"

    async def test_company_plan_runs_payroll(self, db_session):
        paid = await _paid_subscription(
            db_session, PlanTier.STANDARD, datetime.now(timezone.utc) + timedelta(days=10),
        )
        subscription = await SubscriptionService(db_session).require_feature(paid.user_id, PlanFeature.PAYROLL)
        assert subscription.plan == PlanTier.STANDARD


class TestPaymentActivation:
    """Payment initialization and activation with upgrade bonus."""

    async def test_free_plan_cannot_be_purchased(self, db_session):
        with pytest.raises(NotFoundException):
            await SubscriptionService(db_session).initialize_payment(
                uuid4(), PlanTier.FREE, BillingCycle.MONTHLY, PaymentMethod.PAYSTACK, now=NOW,
            )

    async def test_initialize_previews_bonus(self, db_session):
        paid = await _paid_subscription(db_session, PlanTier.STARTER, NOW + timedelta(days=15))

        result = await SubscriptionService(db_session).initialize_payment(
            paid.user_id, PlanTier.STANDARD, BillingCycle.MONTHLY, PaymentMethod.PAYSTACK, now=NOW,
        )

        assert result.payment.status == PaymentStatus.PENDING
        assert result.payment.amount == Decimal("8500.00")
        assert result.payment.currency == "NGN"
        assert result.payment.reference.startswith(f"TXB-{paid.user_id.hex[:8]}-20260301120000-")
        assert result.upgrade.bonus_days == 15

    async def test_activation_applies_bonus(self, db_session):
        paid = await _paid_subscription(db_session, PlanTier.STARTER, NOW + timedelta(days=15))
        service = SubscriptionService(db_session)
        init = await service.initialize_payment(
            paid.user_id, PlanTier.STANDARD, BillingCycle.MONTHLY, PaymentMethod.PAYSTACK, now=NOW,
        )

        subscription = await service.activate_after_payment(init.payment.reference, "PSK-123", now=NOW)

        assert subscription.plan == PlanTier.STANDARD
        assert subscription.amount == Decimal("8500.00")
        assert subscription.bonus_days == 15
        assert subscription.previous_plan == PlanTier.STARTER
        assert as_utc(subscription.end_date) == datetime(2026, 4, 16, 12, 0, tzinfo=timezone.utc)
        assert init.payment.status == PaymentStatus.COMPLETED
        assert init.payment.gateway_transaction_id == "PSK-123"

    async def test_first_purchase_carries_free_days(self, db_session):
        service = SubscriptionService(db_session)
        user_id = uuid4()
        init = await service.initialize_payment(
            user_id, PlanTier.STARTER, BillingCycle.YEARLY, PaymentMethod.BANK_TRANSFER, now=NOW,
        )

        subscription = await service.activate_after_payment(init.payment.reference, now=NOW)

        assert subscription.plan == PlanTier.STARTER
        assert subscription.bonus_days == 365
        assert subscription.previous_plan == PlanTier.FREE
        assert as_utc(subscription.end_date) == datetime(2028, 2, 29, 12, 0, tzinfo=timezone.utc)

    async def test_payment_processed_once(self, db_session):
        service = SubscriptionService(db_session)
        init = await service.initialize_payment(
            uuid4(), PlanTier.STARTER, BillingCycle.MONTHLY, PaymentMethod.PAYSTACK, now=NOW,
        )
        await service.activate_after_payment(init.payment.reference, now=NOW)

        with pytest.raises(AlreadyProcessedException):
            await service.activate_after_payment(init.payment.reference, now=NOW)

    async def test_unknown_reference(self, db_session):
        with pytest.raises(NotFoundException):
            await SubscriptionService(db_session).activate_after_payment("TXB-missing", now=NOW)

    async def test_failed_activation_of_lapsed_plan_rolls_back(self, db_session, monkeypatch):
        paid = await _paid_subscription(db_session, PlanTier.STARTER, NOW + timedelta(days=5))
        user_id = paid.user_id
        init = await SubscriptionService(db_session).initialize_payment(
            user_id, PlanTier.STANDARD, BillingCycle.MONTHLY, PaymentMethod.PAYSTACK, now=NOW,
        )
        reference = init.payment.reference

        def fail(*args, **kwargs):
            raise RuntimeError("proration unavailable")

        monkeypatch.setattr(subscription_service, "calculate_upgrade_proration", fail)
        with pytest.raises(RuntimeError):
            await SubscriptionService(db_session).activate_after_payment(
                reference, now=NOW + timedelta(days=10),
            )

        payment = (await db_session.execute(
            select(Payment).where(Payment.reference == reference)
        )).scalar_one()
        subscription = (await db_session.execute(
            select(Subscription).where(Subscription.user_id == user_id)
        )).scalar_one()
        assert payment.status == PaymentStatus.PENDING
        assert subscription.plan == PlanTier.STARTER
        assert subscription.previous_plan is None
