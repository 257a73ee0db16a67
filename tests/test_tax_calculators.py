"""
TaxBridge - Tax Calculator Tests

Unit tests for Nigeria Tax Act 2025 calculations.
"""

import pytest
from datetime import date
from decimal import Decimal

from taxbridge.models.enums import AccountType, DeductionSource
from taxbridge.models.payroll import Employee
from taxbridge.services.tax_calculators import (
    AnnualDeductions,
    BenefitFlags,
    BracketCalculator,
    CITCalculator,
    CompanySize,
    DeductionResolver,
    NIGERIA_2026_MONTHLY_BANDS,
    PAYECalculator,
    VATCalculator,
    WHTCalculator,
    WHTType,
    calculate_annual_tax,
    calculate_wht,
    check_vat_obligation,
    classify_cit,
    compute_paye,
)
from taxbridge.services.tax_calculators.brackets import build_bands
from taxbridge.utils.error_handling import (
    InvalidAmountException,
    InvalidTaxYearException,
    MissingEligibilityFlagException,
    RentReliefMismatchException,
    ValidationException,
)


ALL_BENEFITS = BenefitFlags(has_pension=True, has_nhf=True, has_nhis=True)
NO_BENEFITS = BenefitFlags(has_pension=False, has_nhf=False, has_nhis=False)


class TestProgressiveBands:
    """Annual PIT bands under the 2026 regime."""

    def test_income_under_800k_is_tax_free(self):
        assert calculate_annual_tax(Decimal("700000")) == Decimal("0.00")
        assert calculate_annual_tax(Decimal("800000")) == Decimal("0.00")

    def test_zero_income_zero_tax(self):
        tax, breakdown = BracketCalculator.calculate(Decimal("0"))
        assert tax == Decimal("0.00")
        assert breakdown == []

    def test_second_band_15_percent(self):
        # (1,500,000 - 800,000) at 15%
        assert calculate_annual_tax(Decimal("1500000")) == Decimal("105000.00")

    def test_third_band_18_percent(self):
        # 2,200,000 at 15% + 9,000,000 at 18%
        assert calculate_annual_tax(Decimal("12000000")) == Decimal("1950000.00")

    def test_top_band_25_percent(self):
        # 330,000 + 1,620,000 + 2,730,000 + 5,750,000 + 10,000,000 at 25%
        assert calculate_annual_tax(Decimal("60000000")) == Decimal("13230000.00")

    def test_breakdown_lists_each_band_used(self):
        tax, breakdown = BracketCalculator.calculate(Decimal("4400000"))
        assert tax == Decimal("582000.00")
        assert [band["rate"] for band in breakdown] == [Decimal("0"), Decimal("15"), Decimal("18")]
        assert breakdown[-1]["taxable_amount"] == Decimal("1400000")

    def test_tax_is_monotonic(self):
        incomes = [Decimal(n) for n in (0, 500000, 800000, 800001, 3000000, 12500000, 80000000)]
        taxes = [calculate_annual_tax(i) for i in incomes]
        assert taxes == sorted(taxes)

    def test_negative_income_rejected(self):
        with pytest.raises(ValidationException):
            BracketCalculator.calculate(Decimal("-1"))

    def test_monthly_bands_are_annual_over_12(self):
        assert NIGERIA_2026_MONTHLY_BANDS[0].upper == Decimal("66666.67")
        assert NIGERIA_2026_MONTHLY_BANDS[1].upper == Decimal("250000.00")
        assert NIGERIA_2026_MONTHLY_BANDS[-1].upper is None

    def test_bands_must_ascend(self):
        with pytest.raises(ValueError):
            build_bands([(Decimal("100"), 0), (Decimal("50"), 10), (None, 20)])

    def test_only_last_band_unbounded(self):
        with pytest.raises(ValueError):
            build_bands([(None, 0), (Decimal("100"), 10)])


class TestDeductions:
    """Statutory contributions and reliefs."""

    def test_rent_relief_is_20_percent(self):
        assert DeductionResolver.calculate_rent_relief(Decimal("1000000"), 2026) == Decimal("200000.00")

    def test_rent_relief_capped_at_500k(self):
        assert DeductionResolver.calculate_rent_relief(Decimal("3000000"), 2026) == Decimal("500000.00")

    def test_no_rent_no_relief(self):
        assert DeductionResolver.calculate_rent_relief(Decimal("0"), 2026) == Decimal("0.00")

    def test_cra_abolished(self):
        assert DeductionResolver.calculate_cra(Decimal("500000"), 2026) == Decimal("0.00")

    def test_nhf_capped_on_2_5m_annual_income(self):
        assert DeductionResolver.calculate_nhf(Decimal("250000")) == Decimal("5208.33")
        assert DeductionResolver.calculate_nhf(Decimal("100000")) == Decimal("2500.00")

    def test_unenrolled_benefits_are_zero(self):
        contributions = DeductionResolver.resolve_contributions(
            Decimal("250000"), has_pension=False, has_nhf=True, has_nhis=False,
        )
        assert contributions.employee_pension == Decimal("0.00")
        assert contributions.employer_pension == Decimal("0.00")
        assert contributions.nhis == Decimal("0.00")
        assert contributions.nhf == Decimal("5208.33")

    def test_declared_rent_relief_must_match_formula(self):
        with pytest.raises(RentReliefMismatchException):
            DeductionResolver.validate_employment_deductions(
                2026, annual_rent=Decimal("1000000"), annual_rent_relief=Decimal("150000"),
            )

    def test_declared_rent_relief_within_tolerance(self):
        validated = DeductionResolver.validate_employment_deductions(
            2026, annual_rent=Decimal("1000000"), annual_rent_relief=Decimal("200000.01"),
        )
        assert validated.annual_rent_relief == Decimal("200000.00")

    def test_rent_relief_without_rent_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            DeductionResolver.validate_employment_deductions(2026, annual_rent_relief=Decimal("1000"))
        assert exc_info.value.field == "annual_rent_relief"

    def test_other_source_needs_description(self):
        with pytest.raises(ValidationException) as exc_info:
            DeductionResolver.validate_employment_deductions(2026, source=DeductionSource.OTHER)
        assert exc_info.value.field == "source_other"

    def test_negative_deduction_rejected(self):
        with pytest.raises(InvalidAmountException):
            DeductionResolver.validate_employment_deductions(2026, annual_pension=Decimal("-1"))


class TestPAYECalculation:
    """Monthly PAYE per employee."""

    def test_fully_enrolled_employee(self):
        result = PAYECalculator().compute(ALL_BENEFITS, Decimal("250000"), 2026)

        assert result.employee_pension_contribution == Decimal("20000.00")
        assert result.employer_pension_contribution == Decimal("25000.00")
        assert result.nhf_contribution == Decimal("5208.33")
        assert result.nhis_contribution == Decimal("12500.00")
        assert result.cra == Decimal("0.00")
        assert result.taxable_income == Decimal("212291.67")
        # (212,291.67 - 66,666.67) at 15%
        assert result.paye == Decimal("21843.75")
        assert result.net_salary == Decimal("190447.92")

    def test_employer_pension_not_deducted_from_net(self):
        result = PAYECalculator().compute(ALL_BENEFITS, Decimal("250000"), 2026)
        assert result.net_salary == result.gross_salary - result.total_employee_deductions

    def test_no_benefits(self):
        result = PAYECalculator().compute(NO_BENEFITS, Decimal("100000"), 2026)
        assert result.taxable_income == Decimal("100000.00")
        assert result.paye == Decimal("5000.00")
        assert result.net_salary == Decimal("95000.00")

    def test_low_earner_pays_no_paye(self):
        result = PAYECalculator().compute(ALL_BENEFITS, Decimal("50000"), 2026)
        assert result.taxable_income == Decimal("42250.00")
        assert result.paye == Decimal("0.00")
        assert result.net_salary == Decimal("42250.00")

    def test_rent_relief_spread_over_the_year(self):
        deductions = AnnualDeductions(annual_rent=Decimal("1200000"))
        result = PAYECalculator().compute(ALL_BENEFITS, Decimal("250000"), 2026, deductions)
        assert result.other_reliefs == Decimal("20000.00")
        assert result.taxable_income == Decimal("192291.67")
        assert result.paye == Decimal("18843.75")

    def test_missing_flag_rejected(self):
        flags = BenefitFlags(has_pension=True, has_nhf=None, has_nhis=True)
        with pytest.raises(MissingEligibilityFlagException) as exc_info:
            PAYECalculator().compute(flags, Decimal("250000"), 2026)
        assert exc_info.value.field == "has_nhf"

    def test_negative_salary_rejected(self):
        with pytest.raises(InvalidAmountException):
            PAYECalculator().compute(ALL_BENEFITS, Decimal("-1"), 2026)

    @pytest.mark.parametrize("year", [2025, 2101])
    def test_year_outside_ruleset_rejected(self, year):
        with pytest.raises(InvalidTaxYearException):
            PAYECalculator().compute(ALL_BENEFITS, Decimal("250000"), year)

    def test_compute_from_employee_row(self):
        employee = Employee(has_pension=True, has_nhf=True, has_nhis=True)
        result = compute_paye(employee, Decimal("250000"), 2026)
        assert result.paye == Decimal("21843.75")

    def test_employee_row_with_missing_flag(self):
        employee = Employee(has_pension=True, has_nhf=True, has_nhis=None)
        with pytest.raises(MissingEligibilityFlagException):
            compute_paye(employee, Decimal("250000"), 2026)


class TestCITCalculation:
    """Company Income Tax and Development Levy."""

    def test_small_company_below_50m(self):
        classification = classify_cit(Decimal("49999999.99"), 2026)
        assert classification.company_size == CompanySize.SMALL
        assert classification.rate == Decimal("0")
        assert classification.is_small_company_exempt is True

    def test_50m_is_standard(self):
        classification = classify_cit(Decimal("50000000"), 2026)
        assert classification.company_size == CompanySize.STANDARD
        assert classification.rate == Decimal("30")

    def test_cit_on_profit_not_turnover(self):
        result = CITCalculator.calculate_cit(Decimal("100000000"), Decimal("20000000"), 2026)
        assert result["cit_amount"] == Decimal("6000000.00")
        assert result["development_levy_rate"] == Decimal("4")
        assert result["development_levy"] == Decimal("800000.00")
        assert result["total_tax"] == Decimal("6800000.00")
        assert result["filing_deadline"] == date(2027, 6, 30)

    def test_small_company_pays_nothing(self):
        result = CITCalculator.calculate_cit(Decimal("30000000"), Decimal("10000000"), 2026)
        assert result["cit_amount"] == Decimal("0.00")
        assert result["development_levy"] == Decimal("0.00")
        assert result["total_tax"] == Decimal("0.00")

    def test_loss_gives_no_tax(self):
        result = CITCalculator.calculate_cit(Decimal("80000000"), Decimal("-5000000"), 2026)
        assert result["cit_amount"] == Decimal("0.00")
        assert result["development_levy"] == Decimal("0.00")
        assert result["taxable_profit"] == Decimal("-5000000.00")

    @pytest.mark.parametrize("year,rate", [
        (2026, Decimal("4")),
        (2027, Decimal("3.5")),
        (2028, Decimal("3")),
        (2029, Decimal("2.5")),
        (2030, Decimal("2")),
        (2045, Decimal("2")),
    ])
    def test_development_levy_schedule(self, year, rate):
        assert CITCalculator.get_development_levy_rate(year) == rate

    def test_negative_turnover_rejected(self):
        with pytest.raises(InvalidAmountException):
            classify_cit(Decimal("-1"), 2026)


class TestVATCalculation:
    """VAT at 7.5% with the ₦100M obligation threshold."""

    def test_threshold_is_exclusive(self):
        assert check_vat_obligation(Decimal("100000000")) is False
        assert check_vat_obligation(Decimal("100000000.01")) is True

    def test_vat_rate_is_7_5_percent(self):
        assert VATCalculator.calculate_vat(Decimal("100000"), 2026) == Decimal("7500.00")

    def test_exempt_category(self):
        assert VATCalculator.calculate_vat(Decimal("100000"), 2026, category=" Food ") == Decimal("0.00")

    def test_not_registered_charges_nothing(self):
        assert VATCalculator.calculate_vat(Decimal("100000"), 2026, is_vat_registered=False) == Decimal("0.00")

    def test_split_inclusive(self):
        net, vat = VATCalculator.split_inclusive(Decimal("107500"))
        assert net == Decimal("100000.00")
        assert vat == Decimal("7500.00")

    def test_summary_below_threshold(self):
        summary = VATCalculator.summarize(Decimal("10000"), 2026, Decimal("20000000"))
        assert summary["is_vat_obligated"] is False
        assert summary["vat_amount"] == Decimal("0.00")
        assert summary["total_amount"] == Decimal("10000.00")

    def test_summary_above_threshold(self):
        summary = VATCalculator.summarize(Decimal("10000"), 2026, Decimal("150000000"))
        assert summary["vat_amount"] == Decimal("750.00")
        assert summary["total_amount"] == Decimal("10750.00")

    def test_december_remittance_rolls_into_january(self):
        assert VATCalculator.get_remittance_deadline(12, 2026) == date(2027, 1, 21)
        assert VATCalculator.get_remittance_deadline(3, 2026) == date(2026, 4, 21)


class TestWHTCalculation:
    """Withholding Tax rates and credits."""

    def test_professional_services_resident(self):
        assert WHTCalculator.get_wht_rate(WHTType.PROFESSIONAL_SERVICES) == Decimal("5")

    def test_non_resident_rate(self):
        assert WHTCalculator.get_wht_rate(WHTType.PROFESSIONAL_SERVICES, is_non_resident=True) == Decimal("10")
        assert WHTCalculator.get_wht_rate(WHTType.CONSTRUCTION, is_non_resident=True) == Decimal("5")

    def test_directors_fees_for_individual(self):
        assert WHTCalculator.get_wht_rate(WHTType.DIRECTORS_FEES, AccountType.INDIVIDUAL) == Decimal("15")

    def test_calculate_wht(self):
        result = WHTCalculator.calculate_wht(Decimal("100000"), WHTType.PROFESSIONAL_SERVICES, 2026)
        assert result["wht_amount"] == Decimal("5000.00")
        assert result["net_amount"] == Decimal("95000.00")
        assert result["is_exempt"] is False

    def test_small_supplier_exempt_for_services(self):
        result = WHTCalculator.calculate_wht(
            Decimal("100000"), WHTType.PROFESSIONAL_SERVICES, 2026, is_supplier_small_company=True,
        )
        assert result["is_exempt"] is True
        assert result["wht_amount"] == Decimal("0.00")

    def test_small_supplier_not_exempt_for_dividends(self):
        result = WHTCalculator.calculate_wht(
            Decimal("100000"), WHTType.DIVIDENDS, 2026, is_supplier_small_company=True,
        )
        assert result["is_exempt"] is False
        assert result["wht_amount"] == Decimal("10000.00")

    def test_convenience_function_takes_string_type(self):
        assert calculate_wht(Decimal("100000"), "rent", 2026) == Decimal("10000.00")

    def test_credits_reduce_liability(self):
        assert WHTCalculator.apply_wht_credits(Decimal("582000"), Decimal("100000")) == Decimal("482000.00")

    def test_credits_never_go_negative(self):
        assert WHTCalculator.apply_wht_credits(Decimal("50000"), Decimal("80000")) == Decimal("0.00")
        assert WHTCalculator.apply_wht_credits(Decimal("0"), Decimal("1000")) == Decimal("0.00")
