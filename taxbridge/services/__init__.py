"""
TaxBridge - Services Package

Business logic services.
"""

from taxbridge.services.payroll_service import PayrollService, PayrollBatchResult, ScheduleTotals
from taxbridge.services.pit_service import PITCalculator, PITService, PITSummary
from taxbridge.services.subscription_service import SubscriptionService, UpgradeInfo

__all__ = [
    "PayrollService",
    "PayrollBatchResult",
    "ScheduleTotals",
    "PITCalculator",
    "PITService",
    "PITSummary",
    "SubscriptionService",
    "UpgradeInfo",
]
