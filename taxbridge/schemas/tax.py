"""
TaxBridge - Tax Calculation Schemas

Pydantic schemas for the stateless PAYE, CIT, VAT and WHT calculators.
Amounts are Naira; tax years are validated by the calculators so that
out-of-range years always cite the Nigeria Tax Act 2025.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from taxbridge.models.enums import AccountType
from taxbridge.services.tax_calculators.cit_service import CompanySize
from taxbridge.services.tax_calculators.wht_service import WHTType


class BandBreakdown(BaseModel):
    """Tax charged in one band."""
    band_lower: Decimal
    band_upper: Optional[Decimal] = None
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal


# ===========================================
# PAYE
# ===========================================

class PAYERequest(BaseModel):
    """Monthly PAYE for one employee."""
    gross_salary: Decimal = Field(..., description="Monthly gross salary")
    tax_year: int
    has_pension: Optional[bool] = None
    has_nhf: Optional[bool] = None
    has_nhis: Optional[bool] = None

    # Optional annual reliefs, spread over 12 months
    annual_housing_loan_interest: Decimal = Decimal("0")
    annual_life_insurance: Decimal = Decimal("0")
    annual_rent: Decimal = Decimal("0")


class PAYEResponse(BaseModel):
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
    band_breakdown: List[BandBreakdown] = []


# ===========================================
# CIT
# ===========================================

class CITRequest(BaseModel):
    turnover: Decimal
    taxable_profit: Decimal = Field(..., description="Profit after allowable deductions")
    tax_year: int


class CITResponse(BaseModel):
    tax_year: int
    turnover: Decimal
    taxable_profit: Decimal
    company_size: CompanySize
    is_small_company_exempt: bool
    cit_rate: Decimal
    cit_amount: Decimal
    development_levy_rate: Decimal
    development_levy: Decimal
    total_tax: Decimal
    filing_deadline: date


class DevelopmentLevyRateResponse(BaseModel):
    tax_year: int
    rate: Decimal
    small_company_exempt: bool = True


# ===========================================
# VAT
# ===========================================

class VATObligationRequest(BaseModel):
    turnover: Decimal


class VATObligationResponse(BaseModel):
    turnover: Decimal
    threshold: Decimal
    is_vat_obligated: bool


class VATRequest(BaseModel):
    amount: Decimal = Field(..., description="Net amount before VAT")
    tax_year: int
    turnover: Decimal = Field(..., description="Seller's annual turnover")
    category: Optional[str] = Field(None, description="food, healthcare, education, housing, transportation")


class VATResponse(BaseModel):
    is_vat_obligated: bool
    is_exempt_category: bool
    vat_rate: Decimal
    net_amount: Decimal
    vat_amount: Decimal
    total_amount: Decimal


# ===========================================
# WHT
# ===========================================

class WHTRequest(BaseModel):
    amount: Decimal
    wht_type: WHTType
    tax_year: int
    payee_type: AccountType = AccountType.COMPANY
    is_non_resident: bool = False
    is_supplier_small_company: bool = False


class WHTResponse(BaseModel):
    gross_amount: Decimal
    wht_type: WHTType
    payee_type: AccountType
    is_non_resident: bool
    is_exempt: bool
    wht_rate: Decimal
    wht_amount: Decimal
    net_amount: Decimal
