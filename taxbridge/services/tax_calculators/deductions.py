"""
TaxBridge - Deduction Resolver

Statutory contributions and reliefs under the Nigeria Tax Act 2025:
- Employee pension: 8% of gross (Pension Reform Act 2014)
- Employer pension: 10% of gross, not deducted from the employee
- NHF: 2.5% of gross, gross capped at ₦2,500,000 annual income
- NHIS: 5% of gross, deductible from 2026
- Rent relief: lower of 20% of annual rent or ₦500,000
- CRA: replaced by the 0% band from 2026

Negative amounts are rejected, never clamped.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from taxbridge.config import settings
from taxbridge.models.enums import DeductionSource
from taxbridge.services.tax_calculators.brackets import ZERO, round_kobo, to_decimal
from taxbridge.utils.error_handling import (
    RentReliefMismatchException,
    ValidationException,
    validate_amount,
    validate_tax_year,
)


EMPLOYEE_PENSION_RATE = Decimal("0.08")
EMPLOYER_PENSION_RATE = Decimal("0.10")
NHF_RATE = Decimal("0.025")
NHF_ANNUAL_INCOME_CAP = Decimal("2500000")
NHIS_RATE = Decimal("0.05")

RENT_RELIEF_RATE = Decimal("0.20")
RENT_RELIEF_CAP = Decimal("500000")


@dataclass
class AnnualDeductions:
    """Annual figures an individual declares for a tax year."""
    annual_pension: Decimal = ZERO
    annual_nhf: Decimal = ZERO
    annual_nhis: Decimal = ZERO
    annual_housing_loan_interest: Decimal = ZERO
    annual_life_insurance: Decimal = ZERO
    annual_rent: Decimal = ZERO
    annual_rent_relief: Optional[Decimal] = None


@dataclass
class Contributions:
    """Monthly statutory contributions for one employee."""
    employee_pension: Decimal
    employer_pension: Decimal
    nhf: Decimal
    nhis: Decimal

    @property
    def employee_total(self) -> Decimal:
        return self.employee_pension + self.nhf + self.nhis


class DeductionResolver:
    """Allowable deductions and reliefs for PAYE and PIT."""

    @staticmethod
    def calculate_rent_relief(annual_rent: Any, tax_year: int) -> Decimal:
        """
        Rent relief = min(annual rent x 20%, ₦500,000).

        Example: rent ₦3,000,000 -> ₦500,000 (capped); rent ₦1,000,000 -> ₦200,000.
        """
        validate_tax_year(tax_year)
        rent = validate_amount(annual_rent, "annual_rent")
        if rent == 0:
            return ZERO
        return round_kobo(min(rent * RENT_RELIEF_RATE, RENT_RELIEF_CAP))

    @staticmethod
    def calculate_cra(gross_salary: Any, tax_year: int) -> Decimal:
        """Consolidated Relief Allowance. Replaced by the 0% band from 2026."""
        validate_tax_year(tax_year)
        validate_amount(gross_salary, "gross_salary")
        return ZERO

    @staticmethod
    def calculate_employee_pension(gross_salary: Decimal) -> Decimal:
        return round_kobo(gross_salary * EMPLOYEE_PENSION_RATE)

    @staticmethod
    def calculate_employer_pension(gross_salary: Decimal) -> Decimal:
        return round_kobo(gross_salary * EMPLOYER_PENSION_RATE)

    @staticmethod
    def calculate_nhf(gross_salary: Decimal) -> Decimal:
        """NHF at 2.5%, on at most ₦2,500,000 / 12 of monthly gross."""
        monthly_cap = NHF_ANNUAL_INCOME_CAP / 12
        if gross_salary * 12 > NHF_ANNUAL_INCOME_CAP:
            return round_kobo(monthly_cap * NHF_RATE)
        return round_kobo(gross_salary * NHF_RATE)

    @staticmethod
    def calculate_nhis(gross_salary: Decimal) -> Decimal:
        return round_kobo(gross_salary * NHIS_RATE)

    @classmethod
    def resolve_contributions(
        cls,
        gross_salary: Any,
        has_pension: bool,
        has_nhf: bool,
        has_nhis: bool,
    ) -> Contributions:
        """Contributions for the benefits the employee is enrolled in. Others are zero."""
        gross = validate_amount(gross_salary, "gross_salary")
        return Contributions(
            employee_pension=cls.calculate_employee_pension(gross) if has_pension else ZERO,
            employer_pension=cls.calculate_employer_pension(gross) if has_pension else ZERO,
            nhf=cls.calculate_nhf(gross) if has_nhf else ZERO,
            nhis=cls.calculate_nhis(gross) if has_nhis else ZERO,
        )

    @classmethod
    def annual_reliefs(cls, deductions: AnnualDeductions, tax_year: int) -> Dict[str, Decimal]:
        """
        Annual reliefs beyond statutory contributions.

        Rent relief is always derived from the rent, never taken from the
        declared figure.
        """
        return {
            "housing_loan_interest": validate_amount(
                deductions.annual_housing_loan_interest, "annual_housing_loan_interest"
            ),
            "life_insurance": validate_amount(deductions.annual_life_insurance, "annual_life_insurance"),
            "rent_relief": cls.calculate_rent_relief(deductions.annual_rent, tax_year),
        }

    @classmethod
    def validate_employment_deductions(
        cls,
        tax_year: int,
        annual_pension: Any = ZERO,
        annual_nhf: Any = ZERO,
        annual_nhis: Any = ZERO,
        annual_housing_loan_interest: Any = ZERO,
        annual_life_insurance: Any = ZERO,
        annual_rent: Any = ZERO,
        annual_rent_relief: Any = None,
        source: DeductionSource = DeductionSource.MANUAL,
        source_other: Optional[str] = None,
        tolerance: Optional[Decimal] = None,
    ) -> AnnualDeductions:
        """
        Validate a deduction declaration and return it with the derived relief.

        Raises:
            InvalidTaxYearException: year outside 2026-2100
            InvalidAmountException: any negative amount
            RentReliefMismatchException: supplied relief differs from the formula
            ValidationException: relief without rent, or source "other" without a description
        """
        validate_tax_year(tax_year)
        amounts = {
            "annual_pension": validate_amount(annual_pension, "annual_pension"),
            "annual_nhf": validate_amount(annual_nhf, "annual_nhf"),
            "annual_nhis": validate_amount(annual_nhis, "annual_nhis"),
            "annual_housing_loan_interest": validate_amount(
                annual_housing_loan_interest, "annual_housing_loan_interest"
            ),
            "annual_life_insurance": validate_amount(annual_life_insurance, "annual_life_insurance"),
            "annual_rent": validate_amount(annual_rent, "annual_rent"),
        }
        rent = amounts["annual_rent"]
        expected_relief = cls.calculate_rent_relief(rent, tax_year)

        if annual_rent_relief is not None:
            provided = validate_amount(annual_rent_relief, "annual_rent_relief")
            if rent == 0 and provided > 0:
                raise ValidationException(
                    message="annual_rent_relief requires a positive annual_rent",
                    field="annual_rent_relief",
                    details={"annual_rent": str(rent), "annual_rent_relief": str(provided)},
                )
            allowed = settings.rent_relief_tolerance if tolerance is None else to_decimal(tolerance)
            if rent > 0 and abs(provided - expected_relief) > allowed:
                raise RentReliefMismatchException(provided, expected_relief, rent)

        if source == DeductionSource.OTHER and not (source_other and source_other.strip()):
            raise ValidationException(
                message="source_other is required when source is 'other'",
                field="source_other",
            )

        return AnnualDeductions(
            annual_rent_relief=expected_relief,
            **amounts,
        )
