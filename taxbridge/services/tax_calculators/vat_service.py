"""
TaxBridge - VAT Calculator Service

VAT obligation and VAT amounts for Nigerian VAT compliance.

Nigeria VAT Rate (2026): 7.5%

Key rules:
- Registration/charging obligation only when annual turnover exceeds ₦100,000,000
- Essential goods and services are exempt: food, healthcare, education,
  housing, transportation
- VAT returns are remitted by the 21st of the following month
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from taxbridge.services.tax_calculators.brackets import ZERO, round_kobo
from taxbridge.utils.error_handling import validate_amount, validate_month, validate_tax_year


NIGERIA_VAT_RATE = Decimal("7.5")
VAT_REGISTRATION_THRESHOLD = Decimal("100000000")
VAT_REMITTANCE_DAY = 21


class VATExemptionCategory(str, Enum):
    """Essential categories exempt from VAT from 2026."""
    FOOD = "food"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    HOUSING = "housing"
    TRANSPORTATION = "transportation"


class VATCalculator:
    """
    VAT calculation utilities.

    Nigeria VAT is 7.5% (standard rate).
    """

    EXEMPT_CATEGORIES = {category.value for category in VATExemptionCategory}

    @staticmethod
    def check_vat_obligation(turnover: Any) -> bool:
        """
        Whether VAT is chargeable at all.

        Only businesses with turnover strictly above ₦100M carry the obligation.
        """
        return validate_amount(turnover, "turnover") > VAT_REGISTRATION_THRESHOLD

    @classmethod
    def is_exempt(cls, category: Optional[str]) -> bool:
        if not category:
            return False
        return category.strip().lower() in cls.EXEMPT_CATEGORIES

    @classmethod
    def calculate_vat(
        cls,
        amount: Any,
        tax_year: int,
        category: Optional[str] = None,
        vat_rate: Decimal = NIGERIA_VAT_RATE,
        is_vat_registered: bool = True,
    ) -> Decimal:
        """
        VAT on a net amount.

        Returns zero for exempt categories and for sellers below the threshold.
        """
        validate_tax_year(tax_year)
        base = validate_amount(amount, "amount")
        if not is_vat_registered or cls.is_exempt(category):
            return ZERO
        return round_kobo(base * vat_rate / 100)

    @classmethod
    def split_inclusive(
        cls,
        gross_amount: Any,
        vat_rate: Decimal = NIGERIA_VAT_RATE,
    ) -> Tuple[Decimal, Decimal]:
        """
        Split a VAT-inclusive amount.

        Returns:
            Tuple of (net_amount, vat_amount)
        """
        gross = validate_amount(gross_amount, "amount")
        net = round_kobo(gross / (1 + vat_rate / 100))
        return net, gross - net

    @classmethod
    def summarize(
        cls,
        amount: Any,
        tax_year: int,
        turnover: Any,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Obligation check followed by the VAT amount it gates."""
        is_obligated = cls.check_vat_obligation(turnover)
        vat = cls.calculate_vat(amount, tax_year, category, is_vat_registered=is_obligated)
        base = round_kobo(validate_amount(amount, "amount"))
        return {
            "is_vat_obligated": is_obligated,
            "is_exempt_category": cls.is_exempt(category),
            "vat_rate": NIGERIA_VAT_RATE if is_obligated else ZERO,
            "net_amount": base,
            "vat_amount": vat,
            "total_amount": base + vat,
        }

    @staticmethod
    def get_remittance_deadline(month: int, year: int) -> date:
        """VAT for a month is due on the 21st of the following month."""
        validate_month(month)
        validate_tax_year(year, "year")
        if month == 12:
            return date(year + 1, 1, VAT_REMITTANCE_DAY)
        return date(year, month + 1, VAT_REMITTANCE_DAY)


def check_vat_obligation(turnover: Any) -> bool:
    """True only when annual turnover exceeds ₦100,000,000."""
    return VATCalculator.check_vat_obligation(turnover)
