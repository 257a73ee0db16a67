"""
TaxBridge - WHT Calculator Service

Withholding Tax (WHT) calculation for Nigerian tax compliance.

WHT Rates (2026), resident / non-resident:
- Professional, technical and management services: 5% / 10%
- Commission: 5% / 10%
- Other services: 2% / 10%
- Construction: 2% / 5%
- Dividends, interest, royalties, rent: 10% / 10%
- Directors' fees: 15% / 20%

Service payments to small suppliers are exempt. Dividends, interest,
royalties and rent are never exempt.

WHT is a credit against the recipient's final PIT or CIT liability and is
remitted by the 21st of the following month.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from taxbridge.models.enums import AccountType
from taxbridge.services.tax_calculators.brackets import ZERO, round_kobo, to_decimal
from taxbridge.utils.error_handling import validate_amount, validate_tax_year


class WHTType(str, Enum):
    """Types of payments subject to WHT."""
    PROFESSIONAL_SERVICES = "professional_services"
    TECHNICAL_SERVICES = "technical_services"
    MANAGEMENT_SERVICES = "management_services"
    OTHER_SERVICES = "other_services"
    DIVIDENDS = "dividends"
    INTEREST = "interest"
    ROYALTIES = "royalties"
    RENT = "rent"
    COMMISSION = "commission"
    CONSTRUCTION = "construction"
    DIRECTORS_FEES = "directors_fees"


# WHT rates by payment type: {payee kind: (resident, non_resident)}
WHT_RATES: Dict[WHTType, Dict[str, tuple]] = {
    WHTType.PROFESSIONAL_SERVICES: {"company": (Decimal("5"), Decimal("10")), "individual": (Decimal("5"), Decimal("10"))},
    WHTType.TECHNICAL_SERVICES: {"company": (Decimal("5"), Decimal("10")), "individual": (Decimal("5"), Decimal("10"))},
    WHTType.MANAGEMENT_SERVICES: {"company": (Decimal("5"), Decimal("10")), "individual": (Decimal("5"), Decimal("10"))},
    WHTType.OTHER_SERVICES: {"company": (Decimal("2"), Decimal("10")), "individual": (Decimal("2"), Decimal("10"))},
    WHTType.DIVIDENDS: {"company": (Decimal("10"), Decimal("10")), "individual": (Decimal("10"), Decimal("10"))},
    WHTType.INTEREST: {"company": (Decimal("10"), Decimal("10")), "individual": (Decimal("10"), Decimal("10"))},
    WHTType.ROYALTIES: {"company": (Decimal("10"), Decimal("10")), "individual": (Decimal("10"), Decimal("10"))},
    WHTType.RENT: {"company": (Decimal("10"), Decimal("10")), "individual": (Decimal("10"), Decimal("10"))},
    WHTType.COMMISSION: {"company": (Decimal("5"), Decimal("10")), "individual": (Decimal("5"), Decimal("10"))},
    WHTType.CONSTRUCTION: {"company": (Decimal("2"), Decimal("5")), "individual": (Decimal("2"), Decimal("5"))},
    WHTType.DIRECTORS_FEES: {"company": (Decimal("15"), Decimal("20")), "individual": (Decimal("15"), Decimal("20"))},
}

SERVICE_WHT_TYPES = frozenset({
    WHTType.PROFESSIONAL_SERVICES,
    WHTType.TECHNICAL_SERVICES,
    WHTType.MANAGEMENT_SERVICES,
    WHTType.OTHER_SERVICES,
    WHTType.COMMISSION,
    WHTType.CONSTRUCTION,
})


def _payee_kind(payee_type: AccountType) -> str:
    # Business names (sole proprietors) are taxed as individuals
    match payee_type:
        case AccountType.COMPANY:
            return "company"
        case AccountType.INDIVIDUAL | AccountType.BUSINESS:
            return "individual"


class WHTCalculator:
    """
    Withholding Tax (WHT) calculator.

    WHT is deducted at source when making payments to vendors/contractors.
    The WHT deducted becomes a tax credit for the recipient.
    """

    @staticmethod
    def get_wht_rate(
        wht_type: WHTType,
        payee_type: AccountType = AccountType.COMPANY,
        is_non_resident: bool = False,
    ) -> Decimal:
        """WHT rate (percent) for a payment type, payee kind and residency."""
        resident, non_resident = WHT_RATES[wht_type][_payee_kind(payee_type)]
        return non_resident if is_non_resident else resident

    @classmethod
    def calculate_wht(
        cls,
        amount: Any,
        wht_type: WHTType,
        tax_year: int,
        payee_type: AccountType = AccountType.COMPANY,
        is_non_resident: bool = False,
        is_supplier_small_company: bool = False,
    ) -> Dict[str, Any]:
        """
        Calculate WHT for a payment.

        Returns:
            Dict with rate, WHT amount, net payment and exemption flag
        """
        validate_tax_year(tax_year)
        gross = round_kobo(validate_amount(amount, "amount"))

        exempt = is_supplier_small_company and wht_type in SERVICE_WHT_TYPES
        rate = ZERO if exempt else cls.get_wht_rate(wht_type, payee_type, is_non_resident)
        wht_amount = round_kobo(gross * rate / 100)

        return {
            "gross_amount": gross,
            "wht_type": wht_type,
            "payee_type": payee_type,
            "is_non_resident": is_non_resident,
            "is_exempt": exempt,
            "wht_rate": rate,
            "wht_amount": wht_amount,
            "net_amount": gross - wht_amount,
        }

    @staticmethod
    def apply_wht_credits(tax_liability: Any, wht_credits: Any) -> Decimal:
        """Offset WHT credits against a liability. Never goes below zero."""
        liability = to_decimal(tax_liability)
        if liability <= 0:
            return ZERO
        credits = to_decimal(wht_credits)
        if credits <= 0:
            return round_kobo(liability)
        return round_kobo(max(ZERO, liability - credits))
