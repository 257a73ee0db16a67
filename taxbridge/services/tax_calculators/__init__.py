"""
TaxBridge - Tax Calculators Package

Pure tax calculators for the Nigeria Tax Act 2025 (tax years 2026+).

Modules:
- brackets: Progressive band engine (0%/15%/18%/21%/23%/25%)
- deductions: Statutory contributions and reliefs
- paye_service: Monthly PAYE per employee
- cit_service: CIT classification and Development Levy
- vat_service: VAT obligation and amounts (7.5% rate)
- wht_service: WHT by payment type and residency
"""

from decimal import Decimal
from typing import Any, Dict

from taxbridge.models.enums import AccountType
from taxbridge.services.tax_calculators.brackets import (
    BracketCalculator,
    NIGERIA_2026_ANNUAL_BANDS,
    NIGERIA_2026_MONTHLY_BANDS,
    TaxBand,
    round_kobo,
)
from taxbridge.services.tax_calculators.deductions import AnnualDeductions, DeductionResolver
from taxbridge.services.tax_calculators.paye_service import (
    BenefitFlags,
    PAYECalculator,
    PAYEResult,
    compute_paye,
)
from taxbridge.services.tax_calculators.cit_service import (
    CITCalculator,
    CITClassification,
    CompanySize,
    classify_cit,
)
from taxbridge.services.tax_calculators.vat_service import (
    NIGERIA_VAT_RATE,
    VATCalculator,
    check_vat_obligation,
)
from taxbridge.services.tax_calculators.wht_service import WHTCalculator, WHTType


# ===========================================
# CONVENIENCE FUNCTIONS
# ===========================================

def calculate_annual_tax(taxable_income: Any) -> Decimal:
    """
    Tax on annual taxable income using the 2026 bands.

    - 0%: ≤₦800,000
    - 15%: ₦800,001 - ₦3,000,000
    - 18%: ₦3,000,001 - ₦12,000,000
    - 21%: ₦12,000,001 - ₦25,000,000
    - 23%: ₦25,000,001 - ₦50,000,000
    - 25%: >₦50,000,000
    """
    return BracketCalculator.total(taxable_income, NIGERIA_2026_ANNUAL_BANDS)


def calculate_wht(
    amount: Any,
    wht_type: str,
    tax_year: int,
    payee_type: AccountType = AccountType.COMPANY,
    is_non_resident: bool = False,
) -> Decimal:
    """WHT amount on a payment."""
    result = WHTCalculator.calculate_wht(
        amount, WHTType(wht_type), tax_year, payee_type, is_non_resident,
    )
    return result["wht_amount"]


def calculate_cit(turnover: Any, taxable_profit: Any, tax_year: int) -> Dict[str, Any]:
    return CITCalculator.calculate_cit(turnover, taxable_profit, tax_year)


__all__ = [
    "AnnualDeductions",
    "BenefitFlags",
    "BracketCalculator",
    "CITCalculator",
    "CITClassification",
    "CompanySize",
    "DeductionResolver",
    "NIGERIA_2026_ANNUAL_BANDS",
    "NIGERIA_2026_MONTHLY_BANDS",
    "NIGERIA_VAT_RATE",
    "PAYECalculator",
    "PAYEResult",
    "TaxBand",
    "VATCalculator",
    "WHTCalculator",
    "WHTType",
    "calculate_annual_tax",
    "calculate_cit",
    "calculate_wht",
    "check_vat_obligation",
    "classify_cit",
    "compute_paye",
    "round_kobo",
]
