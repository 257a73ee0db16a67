"""
TaxBridge - Enums

Closed variant sets shared by models, schemas and the tax engine.
Kept free of SQLAlchemy imports so the pure calculators can use them.

Subscription pricing (Naira):
- FREE: ₦0
- STARTER: ₦3,500/month, ₦35,000/year
- STANDARD ("Company"): ₦8,500/month, ₦85,000/year
- PREMIUM ("Accountant"): ₦25,000/month, ₦250,000/year
"""

from enum import Enum
from typing import assert_never


class AccountType(str, Enum):
    """Kind of account a tax computation is made for."""
    INDIVIDUAL = "individual"
    BUSINESS = "business"    # Sole proprietorship / business name
    COMPANY = "company"      # Incorporated company (CITA)

    @property
    def can_run_payroll(self) -> bool:
        match self:
            case AccountType.COMPANY | AccountType.BUSINESS:
                return True
            case AccountType.INDIVIDUAL:
                return False
            case _:
                assert_never(self)


class PayrollStatus(str, Enum):
    """Payroll schedule workflow status."""
    DRAFT = "draft"
    APPROVED = "approved"
    SUBMITTED = "submitted"

    @property
    def rank(self) -> int:
        match self:
            case PayrollStatus.DRAFT:
                return 0
            case PayrollStatus.APPROVED:
                return 1
            case PayrollStatus.SUBMITTED:
                return 2
            case _:
                assert_never(self)


class RemittanceStatus(str, Enum):
    """Statutory remittance status."""
    PENDING = "pending"
    REMITTED = "remitted"
    OVERDUE = "overdue"
    COMPLIANT = "compliant"


class PlanTier(str, Enum):
    """Subscription plans, lowest to highest."""
    FREE = "free"
    STARTER = "starter"
    STANDARD = "standard"
    PREMIUM = "premium"

    @property
    def rank(self) -> int:
        match self:
            case PlanTier.FREE:
                return 0
            case PlanTier.STARTER:
                return 1
            case PlanTier.STANDARD:
                return 2
            case PlanTier.PREMIUM:
                return 3
            case _:
                assert_never(self)

    @property
    def display_name(self) -> str:
        match self:
            case PlanTier.FREE:
                return "Free"
            case PlanTier.STARTER:
                return "Starter"
            case PlanTier.STANDARD:
                return "Company"
            case PlanTier.PREMIUM:
                return "Accountant"
            case _:
                assert_never(self)


class BillingCycle(str, Enum):
    """Subscription billing cycle."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SubscriptionStatus(str, Enum):
    """Subscription lifecycle status."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    TRIAL = "trial"


class PaymentStatus(str, Enum):
    """Payment status."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """Supported payment channels."""
    PAYSTACK = "paystack"
    MONNIFY = "monnify"
    BANK_TRANSFER = "bank_transfer"


class DeductionSource(str, Enum):
    """Where employment deduction figures were taken from."""
    PAYSLIP = "payslip"
    EMPLOYER_STATEMENT = "employer_statement"
    MANUAL = "manual"
    OTHER = "other"


class ExemptionReason(str, Enum):
    """Why an individual owes no PIT."""
    THRESHOLD = "threshold"
    NO_INCOME = "no_income"
    DEDUCTIONS_ONLY = "deductions_only"


class PlanFeature(str, Enum):
    """Features gated by subscription plan."""
    PAYROLL = "payroll"
    WHT_TRACKING = "wht_tracking"
    PIT_REMITTANCE = "pit_remittance"
    CIT_REMITTANCE = "cit_remittance"
    VAT_REMITTANCE = "vat_remittance"
    EXPORTS = "exports"


class FilingStatus(str, Enum):
    """Annual return filing status."""
    NOT_FILED = "not_filed"
    FILED = "filed"
    OVERDUE = "overdue"
