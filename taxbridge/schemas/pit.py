"""
TaxBridge - Personal Income Tax Schemas
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taxbridge.models.enums import DeductionSource, ExemptionReason, FilingStatus, RemittanceStatus
from taxbridge.schemas.tax import BandBreakdown


class EmploymentDeductionsUpsert(BaseModel):
    """Annual deductions declared for a tax year."""
    account_id: UUID
    tax_year: int
    annual_pension: Decimal = Decimal("0")
    annual_nhf: Decimal = Decimal("0")
    annual_nhis: Decimal = Decimal("0")
    annual_housing_loan_interest: Decimal = Decimal("0")
    annual_life_insurance: Decimal = Decimal("0")
    annual_rent: Decimal = Decimal("0")
    annual_rent_relief: Optional[Decimal] = Field(
        None, description="Optional; must equal min(annual_rent x 20%, 500,000)",
    )
    source: DeductionSource = DeductionSource.MANUAL
    source_other: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None


class EmploymentDeductionsUpdate(BaseModel):
    """Partial update; only fields that are sent change."""
    account_id: UUID
    tax_year: int
    annual_pension: Optional[Decimal] = None
    annual_nhf: Optional[Decimal] = None
    annual_nhis: Optional[Decimal] = None
    annual_housing_loan_interest: Optional[Decimal] = None
    annual_life_insurance: Optional[Decimal] = None
    annual_rent: Optional[Decimal] = None
    annual_rent_relief: Optional[Decimal] = None
    source: Optional[DeductionSource] = None
    source_other: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None


class EmploymentDeductionsResponse(BaseModel):
    id: UUID
    account_id: UUID
    tax_year: int
    annual_pension: Decimal
    annual_nhf: Decimal
    annual_nhis: Decimal
    annual_housing_loan_interest: Decimal
    annual_life_insurance: Decimal
    annual_rent: Decimal
    annual_rent_relief: Decimal
    source: DeductionSource
    source_other: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PITSummaryRequest(BaseModel):
    account_id: UUID
    tax_year: int
    total_gross_income: Decimal
    allowable_expenses: Decimal = Decimal("0")
    wht_credits: Decimal = Decimal("0")
    pit_remitted: Decimal = Decimal("0")


class PITSummaryResponse(BaseModel):
    account_id: UUID
    tax_year: int
    total_gross_income: Decimal
    total_pension: Decimal
    total_nhf: Decimal
    total_nhis: Decimal
    total_housing_loan_interest: Decimal
    total_life_insurance: Decimal
    total_rent_relief: Decimal
    total_allowable_expenses: Decimal
    total_cra: Decimal
    total_taxable_income: Decimal
    annual_exemption: Decimal
    pit_before_wht: Decimal
    wht_credits: Decimal
    pit_after_wht: Decimal
    pit_remitted: Decimal
    pit_pending: Decimal
    is_fully_exempt: bool
    exemption_reason: Optional[ExemptionReason] = None
    remittance_status: RemittanceStatus
    filing_status: FilingStatus
    filing_deadline: date
    band_breakdown: List[BandBreakdown] = []

    model_config = ConfigDict(from_attributes=True)
