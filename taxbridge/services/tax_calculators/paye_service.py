"""
TaxBridge - PAYE Calculator Service

Pay-As-You-Earn calculation for one employee and one monthly period under the
Nigeria Tax Act 2025 (effective tax year 2026).

Algorithm:
1. CRA (0 from 2026, replaced by the 0% band)
2. Statutory contributions for enrolled benefits only (pension, NHF, NHIS)
3. Taxable income = gross - contributions - CRA - other reliefs, floored at 0
4. Progressive monthly bands; the first ₦66,666.67 (₦800,000 a year) is taxed at 0%
5. Net salary = gross - employee contributions - PAYE

Employer pension is reported but never deducted from the employee.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from taxbridge.services.tax_calculators.brackets import (
    BracketCalculator,
    NIGERIA_2026_MONTHLY_BANDS,
    ZERO,
    round_kobo,
)
from taxbridge.services.tax_calculators.deductions import AnnualDeductions, DeductionResolver
from taxbridge.utils.error_handling import (
    MissingEligibilityFlagException,
    validate_amount,
    validate_tax_year,
)


@dataclass(frozen=True)
class BenefitFlags:
    """Benefit enrolment of one employee. ``None`` means never recorded."""
    has_pension: Optional[bool]
    has_nhf: Optional[bool]
    has_nhis: Optional[bool]
    employee_id: Optional[Any] = None

    @classmethod
    def from_employee(cls, employee: Any) -> "BenefitFlags":
        return cls(
            has_pension=employee.has_pension,
            has_nhf=employee.has_nhf,
            has_nhis=employee.has_nhis,
            employee_id=getattr(employee, "id", None),
        )

    def require_all(self) -> None:
        """Raise on the first flag that was never recorded."""
        for flag in ("has_pension", "has_nhf", "has_nhis"):
            if getattr(self, flag) is None:
                raise MissingEligibilityFlagException(flag, self.employee_id)


@dataclass
class PAYEResult:
    """One employee's payroll figures for a month."""
    tax_year: int
    gross_salary: Decimal
    employee_pension_contribution: Decimal
    employer_pension_contribution: Decimal
    nhf_contribution: Decimal
    nhis_contribution: Decimal
    cra: Decimal
    other_reliefs: Decimal
    taxable_income: Decimal
    paye: Decimal
    net_salary: Decimal
    band_breakdown: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total_employee_deductions(self) -> Decimal:
        return (
            self.employee_pension_contribution
            + self.nhf_contribution
            + self.nhis_contribution
            + self.paye
        )

    def record_fields(self) -> Dict[str, Decimal]:
        """Column values for a PayrollRecord."""
        return {
            "gross_salary": self.gross_salary,
            "employee_pension_contribution": self.employee_pension_contribution,
            "employer_pension_contribution": self.employer_pension_contribution,
            "nhf_contribution": self.nhf_contribution,
            "nhis_contribution": self.nhis_contribution,
            "cra": self.cra,
            "taxable_income": self.taxable_income,
            "paye": self.paye,
            "net_salary": self.net_salary,
        }


class PAYECalculator:
    """
    Monthly PAYE calculator.

    Pure: no database access. ``PayrollService`` persists the results.
    """

    def __init__(self, tax_bands=None):
        self.tax_bands = tax_bands or NIGERIA_2026_MONTHLY_BANDS

    def calculate_tax(self, monthly_taxable_income: Decimal):
        """
        Apply the monthly bands.

        Returns:
            Tuple of (total_tax, band_breakdown)
        """
        return BracketCalculator.calculate(monthly_taxable_income, self.tax_bands)

    @staticmethod
    def monthly_other_reliefs(deductions: Optional[AnnualDeductions], tax_year: int) -> Decimal:
        """Housing loan interest, life insurance and rent relief spread over 12 months."""
        if deductions is None:
            return ZERO
        reliefs = DeductionResolver.annual_reliefs(deductions, tax_year)
        return round_kobo(sum(reliefs.values(), Decimal("0")) / 12)

    def compute(
        self,
        employee: BenefitFlags,
        gross_salary: Any,
        tax_year: int,
        deductions: Optional[AnnualDeductions] = None,
    ) -> PAYEResult:
        """
        Compute one employee's PAYE and net pay for a month.

        Args:
            employee: Benefit flags (all three must be recorded)
            gross_salary: Monthly gross salary
            tax_year: Tax year of the pay period
            deductions: Optional annual reliefs declared for the year

        Raises:
            InvalidTaxYearException: year outside 2026-2100
            MissingEligibilityFlagException: any benefit flag is None
            InvalidAmountException: negative gross salary
        """
        validate_tax_year(tax_year)
        employee.require_all()
        gross = round_kobo(validate_amount(gross_salary, "gross_salary"))

        contributions = DeductionResolver.resolve_contributions(
            gross,
            has_pension=employee.has_pension,
            has_nhf=employee.has_nhf,
            has_nhis=employee.has_nhis,
        )
        cra = DeductionResolver.calculate_cra(gross, tax_year)
        other_reliefs = self.monthly_other_reliefs(deductions, tax_year)

        taxable = gross - contributions.employee_total - cra - other_reliefs
        taxable_income = round_kobo(max(ZERO, taxable))

        paye, band_breakdown = self.calculate_tax(taxable_income)
        net_salary = round_kobo(gross - contributions.employee_total - paye)

        return PAYEResult(
            tax_year=tax_year,
            gross_salary=gross,
            employee_pension_contribution=contributions.employee_pension,
            employer_pension_contribution=contributions.employer_pension,
            nhf_contribution=contributions.nhf,
            nhis_contribution=contributions.nhis,
            cra=cra,
            other_reliefs=other_reliefs,
            taxable_income=taxable_income,
            paye=paye,
            net_salary=net_salary,
            band_breakdown=band_breakdown,
        )


def compute_paye(
    employee: Any,
    gross_salary: Any,
    tax_year: int,
    deductions: Optional[AnnualDeductions] = None,
) -> PAYEResult:
    """Compute PAYE for an ``Employee`` row or a ``BenefitFlags`` value."""
    flags = employee if isinstance(employee, BenefitFlags) else BenefitFlags.from_employee(employee)
    return PAYECalculator().compute(flags, gross_salary, tax_year, deductions)
