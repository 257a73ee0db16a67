"""
TaxBridge - Celery Tasks

Scheduled maintenance. Both jobs are idempotent; running one twice on the
same day changes nothing the second time.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, Optional

from celery import shared_task

from taxbridge.database import async_session_maker
from taxbridge.services.payroll_service import PayrollService
from taxbridge.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async functions in Celery tasks."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ===========================================
# PAYROLL TASKS
# ===========================================

@shared_task(name='taxbridge.tasks.celery_tasks.refresh_remittance_statuses_task')
def refresh_remittance_statuses_task() -> Dict[str, Any]:
    """Mark pending PAYE remittances past their deadline as overdue."""
    return run_async(_refresh_remittance_statuses())


async def _refresh_remittance_statuses(today: Optional[date] = None) -> Dict[str, Any]:
    async with async_session_maker() as db:
        updated = await PayrollService(db).refresh_remittance_statuses(today)

    logger.info(f"PAYE remittance refresh complete: {updated} marked overdue")
    return {"status": "completed", "marked_overdue": updated}


# ===========================================
# SUBSCRIPTION TASKS
# ===========================================

@shared_task(name='taxbridge.tasks.celery_tasks.expire_lapsed_subscriptions_task')
def expire_lapsed_subscriptions_task() -> Dict[str, Any]:
    """Mark paid subscriptions whose term has ended as expired."""
    return run_async(_expire_lapsed_subscriptions())


async def _expire_lapsed_subscriptions() -> Dict[str, Any]:
    async with async_session_maker() as db:
        expired = await SubscriptionService(db).expire_lapsed_subscriptions()

    logger.info(f"Subscription expiry complete: {expired} marked expired")
    return {"status": "completed", "expired": expired}
