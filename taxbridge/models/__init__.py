"""
TaxBridge - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from taxbridge.models.base import BaseModel, TimestampMixin
from taxbridge.models.enums import (
    AccountType,
    BillingCycle,
    DeductionSource,
    ExemptionReason,
    FilingStatus,
    PaymentMethod,
    PaymentStatus,
    PayrollStatus,
    PlanFeature,
    PlanTier,
    RemittanceStatus,
    SubscriptionStatus,
)
from taxbridge.models.payroll import Employee, PayrollRecord, PayrollSchedule, PAYERemittance
from taxbridge.models.pit import EmploymentDeductions
from taxbridge.models.subscription import Subscription, Payment

__all__ = [
    "BaseModel",
    "TimestampMixin",
    # Enums
    "AccountType",
    "BillingCycle",
    "DeductionSource",
    "ExemptionReason",
    "FilingStatus",
    "PaymentMethod",
    "PaymentStatus",
    "PayrollStatus",
    "PlanFeature",
    "PlanTier",
    "RemittanceStatus",
    "SubscriptionStatus",
    # Payroll
    "Employee",
    "PayrollRecord",
    "PayrollSchedule",
    "PAYERemittance",
    # PIT
    "EmploymentDeductions",
    # Billing
    "Subscription",
    "Payment",
]
