"""
TaxBridge - Subscription Router

Plan lookup, upgrade preview and payment activation. Gateway checkout and
verification happen upstream; ``/activate`` receives a verified reference.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taxbridge.database import get_async_session
from taxbridge.models.enums import PlanFeature
from taxbridge.models.subscription import Subscription
from taxbridge.services.subscription_service import SubscriptionService
from taxbridge.schemas.subscription import (
    SubscriptionResponse,
    UpgradeRequest,
    UpgradeInfoResponse,
    InitializePaymentRequest,
    InitializePaymentResponse,
    ActivatePaymentRequest,
)


router = APIRouter()


def _subscription_response(subscription: Subscription) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=subscription.id,
        user_id=subscription.user_id,
        plan=subscription.plan,
        plan_name=subscription.plan.display_name,
        billing_cycle=subscription.billing_cycle,
        amount=subscription.amount,
        status=subscription.status,
        start_date=subscription.start_date,
        end_date=subscription.end_date,
        next_billing_date=subscription.next_billing_date,
        bonus_days=subscription.bonus_days,
        previous_plan=subscription.previous_plan,
    )


@router.get(
    "/{user_id}",
    response_model=SubscriptionResponse,
    summary="Get current subscription",
)
async def get_subscription(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
):
    service = SubscriptionService(db)
    return _subscription_response(await service.get_subscription(user_id))


@router.post(
    "/calculate-upgrade",
    response_model=UpgradeInfoResponse,
    summary="Preview upgrade bonus days",
)
async def calculate_upgrade(
    data: UpgradeRequest,
    db: AsyncSession = Depends(get_async_session),
):
    service = SubscriptionService(db)
    upgrade = await service.calculate_upgrade(data.user_id, data.target_plan, data.billing_cycle)
    return UpgradeInfoResponse.model_validate(upgrade)


@router.post(
    "/initialize",
    response_model=InitializePaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a plan purchase",
)
async def initialize_payment(
    data: InitializePaymentRequest,
    db: AsyncSession = Depends(get_async_session),
):
    service = SubscriptionService(db)
    result = await service.initialize_payment(
        data.user_id, data.plan, data.billing_cycle, data.payment_method,
    )
    payment = result.payment
    return InitializePaymentResponse(
        reference=payment.reference,
        amount=payment.amount,
        currency=payment.currency,
        plan=payment.plan,
        billing_cycle=payment.billing_cycle,
        status=payment.status,
        upgrade=UpgradeInfoResponse.model_validate(result.upgrade),
    )


@router.post(
    "/activate",
    response_model=SubscriptionResponse,
    summary="Activate a verified payment",
)
async def activate_subscription(
    data: ActivatePaymentRequest,
    db: AsyncSession = Depends(get_async_session),
):
    service = SubscriptionService(db)
    subscription = await service.activate_after_payment(
        data.reference, gateway_transaction_id=data.gateway_transaction_id,
    )
    return _subscription_response(subscription)


@router.get(
    "/{user_id}/features/{feature}",
    response_model=SubscriptionResponse,
    summary="Check plan access to a feature",
    description="Returns the subscription when its plan includes the feature, 422 otherwise.",
)
async def check_feature_access(
    user_id: uuid.UUID,
    feature: PlanFeature,
    db: AsyncSession = Depends(get_async_session),
):
    service = SubscriptionService(db)
    return _subscription_response(await service.require_feature(user_id, feature))
