"""
TaxBridge - CIT Calculator Service

Company Income Tax (CIT) classification and calculation under the
Nigeria Tax Act 2025.

CIT Rates (tax years 2026+):
- Turnover < ₦50,000,000: 0% (small company exemption)
- Turnover ≥ ₦50,000,000: 30% of taxable profit (never of turnover)

Development Levy on assessable profit (small companies exempt):
- 2026: 4%
- 2027: 3.5%
- 2028: 3%
- 2029: 2.5%
- 2030 onward: 2%
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from taxbridge.services.tax_calculators.brackets import ZERO, round_kobo, to_decimal
from taxbridge.utils.error_handling import validate_amount, validate_tax_year


class CompanySize(str, Enum):
    """Company size classification for CIT purposes."""
    SMALL = "small"  # < ₦50M turnover
    STANDARD = "standard"


SMALL_COMPANY_TURNOVER_THRESHOLD = Decimal("50000000")
STANDARD_CIT_RATE = Decimal("30")  # percent

DEVELOPMENT_LEVY_RATES = {
    2026: Decimal("4"),
    2027: Decimal("3.5"),
    2028: Decimal("3"),
    2029: Decimal("2.5"),
}
DEVELOPMENT_LEVY_LONG_RUN_RATE = Decimal("2")


@dataclass(frozen=True)
class CITClassification:
    """Rate bucket for a company in a tax year. ``rate`` is a percentage."""
    tax_year: int
    turnover: Decimal
    company_size: CompanySize
    rate: Decimal
    is_small_company_exempt: bool


class CITCalculator:
    """
    Company Income Tax (CIT) calculator.

    Implements Nigeria Tax Act 2025 CIT rules.
    """

    @staticmethod
    def classify(turnover: Any, tax_year: int) -> CITClassification:
        """
        Determine a company's CIT bucket from annual turnover.

        Raises:
            InvalidTaxYearException: no ruleset exists for the year
            InvalidAmountException: negative turnover
        """
        validate_tax_year(tax_year)
        t = validate_amount(turnover, "turnover")

        if t < SMALL_COMPANY_TURNOVER_THRESHOLD:
            return CITClassification(
                tax_year=tax_year,
                turnover=t,
                company_size=CompanySize.SMALL,
                rate=Decimal("0"),
                is_small_company_exempt=True,
            )
        return CITClassification(
            tax_year=tax_year,
            turnover=t,
            company_size=CompanySize.STANDARD,
            rate=STANDARD_CIT_RATE,
            is_small_company_exempt=False,
        )

    @staticmethod
    def get_development_levy_rate(tax_year: int) -> Decimal:
        """Development Levy rate (percent) for the tax year, not the calendar year."""
        validate_tax_year(tax_year)
        return DEVELOPMENT_LEVY_RATES.get(tax_year, DEVELOPMENT_LEVY_LONG_RUN_RATE)

    @classmethod
    def calculate_development_levy(cls, assessable_profit: Any, tax_year: int, is_small_company: bool) -> Decimal:
        if is_small_company:
            return ZERO
        profit = to_decimal(assessable_profit)
        if profit <= 0:
            return ZERO
        return round_kobo(profit * cls.get_development_levy_rate(tax_year) / 100)

    @staticmethod
    def get_filing_deadline(tax_year: int) -> date:
        """CIT returns are due six months after the accounting year end."""
        validate_tax_year(tax_year)
        return date(tax_year + 1, 6, 30)

    @classmethod
    def calculate_cit(
        cls,
        turnover: Any,
        taxable_profit: Any,
        tax_year: int,
    ) -> Dict[str, Any]:
        """
        Calculate Company Income Tax and Development Levy.

        Args:
            turnover: Annual gross turnover (drives classification)
            taxable_profit: Profit after allowable deductions (the tax base)
            tax_year: Tax year

        Returns:
            Dict with classification, CIT, development levy and total
        """
        classification = cls.classify(turnover, tax_year)
        profit = to_decimal(taxable_profit)
        taxable_base = profit if profit > 0 else ZERO

        cit = round_kobo(taxable_base * classification.rate / 100)
        development_levy = cls.calculate_development_levy(
            taxable_base, tax_year, classification.is_small_company_exempt,
        )

        return {
            "tax_year": tax_year,
            "turnover": classification.turnover,
            "taxable_profit": round_kobo(profit),
            "company_size": classification.company_size,
            "is_small_company_exempt": classification.is_small_company_exempt,
            "cit_rate": classification.rate,
            "cit_amount": cit,
            "development_levy_rate": (
                ZERO if classification.is_small_company_exempt
                else cls.get_development_levy_rate(tax_year)
            ),
            "development_levy": development_levy,
            "total_tax": cit + development_levy,
            "filing_deadline": cls.get_filing_deadline(tax_year),
        }


def classify_cit(turnover: Any, tax_year: int) -> CITClassification:
    """Rate bucket for a company's turnover in a tax year."""
    return CITCalculator.classify(turnover, tax_year)
