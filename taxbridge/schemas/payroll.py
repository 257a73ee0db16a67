"""
TaxBridge - Payroll Schemas

Pydantic schemas for payroll batch requests and responses.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taxbridge.models.enums import AccountType, PayrollStatus, RemittanceStatus


# ===========================================
# REQUESTS
# ===========================================

class PayrollGenerateRequest(BaseModel):
    """Generate payroll for every active employee of an entity."""
    entity_id: UUID
    entity_type: AccountType
    month: int
    year: int
    annual_turnover: Optional[Decimal] = Field(None, description="Used for ITF liability")


class ScheduleStatusUpdate(BaseModel):
    # Kept as a plain string so unknown values reach the status check
    status: str


class MarkRemittedRequest(BaseModel):
    entity_id: UUID
    entity_type: AccountType
    month: int
    year: int
    remittance_date: date
    reference: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = None


# ===========================================
# RESPONSES
# ===========================================

class PayrollRecordResponse(BaseModel):
    id: UUID
    employee_id: UUID
    payroll_month: int
    payroll_year: int
    gross_salary: Decimal
    employee_pension_contribution: Decimal
    employer_pension_contribution: Decimal
    nhf_contribution: Decimal
    nhis_contribution: Decimal
    cra: Decimal
    taxable_income: Decimal
    paye: Decimal
    net_salary: Decimal
    status: PayrollStatus

    model_config = ConfigDict(from_attributes=True)


class ScheduleTotalsResponse(BaseModel):
    total_employees: int
    total_gross_salary: Decimal
    total_employee_pension: Decimal
    total_employer_pension: Decimal
    total_nhf: Decimal
    total_nhis: Decimal
    total_paye: Decimal
    total_net_salary: Decimal
    total_itf: Decimal

    model_config = ConfigDict(from_attributes=True)


class PayrollScheduleResponse(BaseModel):
    id: UUID
    entity_id: UUID
    entity_type: AccountType
    month: int
    year: int
    status: PayrollStatus
    annual_turnover: Optional[Decimal] = None
    totals: Optional[ScheduleTotalsResponse] = None

    model_config = ConfigDict(from_attributes=True)


class PAYERemittanceResponse(BaseModel):
    id: UUID
    entity_id: UUID
    entity_type: AccountType
    remittance_month: int
    remittance_year: int
    total_paye: Decimal
    remittance_deadline: date
    status: RemittanceStatus
    remittance_date: Optional[date] = None
    remittance_reference: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class EmployeeCountsResponse(BaseModel):
    """Employees by active status. Undefined status is never paid."""
    total: int
    active: int
    inactive: int
    undefined_status: int

    model_config = ConfigDict(from_attributes=True)


class PayrollBatchResponse(BaseModel):
    schedule: PayrollScheduleResponse
    records: List[PayrollRecordResponse]
    remittance: PAYERemittanceResponse
    created_records: int
    employee_counts: EmployeeCountsResponse


class PayrollScheduleList(BaseModel):
    items: List[PayrollScheduleResponse]
    total: int
    page: int
    limit: int
    pages: int


class MessageResponse(BaseModel):
    message: str
