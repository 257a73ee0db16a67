"""
TaxBridge - Tax Calculation Router

Stateless calculators under the Nigeria Tax Act 2025:
- PAYE for one employee and month
- CIT with Development Levy
- VAT obligation and VAT amount
- WHT by payment type
"""

from fastapi import APIRouter, Path

from taxbridge.services.tax_calculators.cit_service import CITCalculator
from taxbridge.services.tax_calculators.deductions import AnnualDeductions
from taxbridge.services.tax_calculators.paye_service import BenefitFlags, PAYECalculator
from taxbridge.services.tax_calculators.vat_service import VAT_REGISTRATION_THRESHOLD, VATCalculator
from taxbridge.services.tax_calculators.wht_service import WHTCalculator
from taxbridge.schemas.tax import (
    PAYERequest,
    PAYEResponse,
    CITRequest,
    CITResponse,
    DevelopmentLevyRateResponse,
    VATObligationRequest,
    VATObligationResponse,
    VATRequest,
    VATResponse,
    WHTRequest,
    WHTResponse,
)


router = APIRouter()


@router.post(
    "/paye",
    response_model=PAYEResponse,
    summary="Calculate monthly PAYE",
)
async def calculate_paye(data: PAYERequest):
    """PAYE, statutory contributions and net pay for one employee and month."""
    deductions = None
    if data.annual_housing_loan_interest or data.annual_life_insurance or data.annual_rent:
        deductions = AnnualDeductions(
            annual_housing_loan_interest=data.annual_housing_loan_interest,
            annual_life_insurance=data.annual_life_insurance,
            annual_rent=data.annual_rent,
        )
    flags = BenefitFlags(
        has_pension=data.has_pension,
        has_nhf=data.has_nhf,
        has_nhis=data.has_nhis,
    )
    result = PAYECalculator().compute(flags, data.gross_salary, data.tax_year, deductions)
    return PAYEResponse.model_validate(result, from_attributes=True)


@router.post(
    "/cit",
    response_model=CITResponse,
    summary="Calculate Company Income Tax",
)
async def calculate_cit(data: CITRequest):
    return CITCalculator.calculate_cit(data.turnover, data.taxable_profit, data.tax_year)


@router.get(
    "/development-levy/{tax_year}",
    response_model=DevelopmentLevyRateResponse,
    summary="Development Levy rate for a tax year",
)
async def get_development_levy_rate(tax_year: int = Path(...)):
    return DevelopmentLevyRateResponse(
        tax_year=tax_year,
        rate=CITCalculator.get_development_levy_rate(tax_year),
    )


@router.post(
    "/vat/obligation",
    response_model=VATObligationResponse,
    summary="Check VAT obligation",
)
async def check_vat_obligation(data: VATObligationRequest):
    """VAT applies only when annual turnover exceeds ₦100,000,000."""
    return VATObligationResponse(
        turnover=data.turnover,
        threshold=VAT_REGISTRATION_THRESHOLD,
        is_vat_obligated=VATCalculator.check_vat_obligation(data.turnover),
    )


@router.post(
    "/vat",
    response_model=VATResponse,
    summary="Calculate VAT on an amount",
)
async def calculate_vat(data: VATRequest):
    return VATCalculator.summarize(data.amount, data.tax_year, data.turnover, data.category)


@router.post(
    "/wht",
    response_model=WHTResponse,
    summary="Calculate Withholding Tax",
)
async def calculate_wht(data: WHTRequest):
    return WHTCalculator.calculate_wht(
        data.amount,
        data.wht_type,
        data.tax_year,
        payee_type=data.payee_type,
        is_non_resident=data.is_non_resident,
        is_supplier_small_company=data.is_supplier_small_company,
    )
