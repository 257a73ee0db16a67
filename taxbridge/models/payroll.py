"""
TaxBridge - Payroll Models

Payroll persistence with Nigerian statutory compliance (Nigeria Tax Act 2025):
- PAYE (Pay As You Earn) withheld monthly
- Pension (Contributory Pension Scheme): 8% employee, 10% employer
- NHF (National Housing Fund): 2.5% of gross, capped on ₦2.5M annual income
- NHIS (National Health Insurance Scheme): 5% of gross

Schedule totals are never stored. They are summed from PayrollRecord rows
whenever they are read.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean, Date, Integer, Numeric, String, Text, Uuid,
    Enum as SQLEnum, UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from taxbridge.models.base import BaseModel, MONEY_PRECISION, MONEY_SCALE
from taxbridge.models.enums import AccountType, PayrollStatus, RemittanceStatus


def _money(comment: Optional[str] = None):
    return mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE),
        nullable=False,
        default=Decimal("0.00"),
        comment=comment,
    )


# ===========================================
# EMPLOYEE
# ===========================================

class Employee(BaseModel):
    """
    Employee of a company or business.

    ``is_active`` and the three benefit flags are nullable on purpose:
    a NULL is reported (undefined status) or rejected (missing flag),
    never read as a default.
    """

    __tablename__ = "employees"

    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    entity_type: Mapped[AccountType] = mapped_column(SQLEnum(AccountType), nullable=False)

    employee_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Internal employee ID/staff number",
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tin: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    salary: Mapped[Decimal] = _money("Monthly gross salary")

    is_active: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    has_pension: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    has_nhf: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    has_nhis: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    __table_args__ = (
        UniqueConstraint("entity_id", "entity_type", "employee_code", name="uq_employee_entity_code"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# ===========================================
# PAYROLL RECORD
# ===========================================

class PayrollRecord(BaseModel):
    """
    One employee's payroll for one period.

    Created once per (employee, month, year); only draft records are ever
    recomputed, through ``PayrollService.recalculate_draft_records_for_employee``.
    """

    __tablename__ = "payroll_records"

    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    entity_type: Mapped[AccountType] = mapped_column(SQLEnum(AccountType), nullable=False)
    employee_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)

    payroll_month: Mapped[int] = mapped_column(Integer, nullable=False)
    payroll_year: Mapped[int] = mapped_column(Integer, nullable=False)

    gross_salary: Mapped[Decimal] = _money()
    employee_pension_contribution: Mapped[Decimal] = _money("8% of gross")
    employer_pension_contribution: Mapped[Decimal] = _money("10% of gross, not deducted from net")
    nhf_contribution: Mapped[Decimal] = _money()
    nhis_contribution: Mapped[Decimal] = _money()
    cra: Mapped[Decimal] = _money("Consolidated Relief Allowance, 0 from 2026")
    taxable_income: Mapped[Decimal] = _money()
    paye: Mapped[Decimal] = _money()
    net_salary: Mapped[Decimal] = _money()

    status: Mapped[PayrollStatus] = mapped_column(
        SQLEnum(PayrollStatus),
        default=PayrollStatus.DRAFT,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "payroll_month", "payroll_year", name="uq_payroll_record_employee_period"),
        CheckConstraint("payroll_month BETWEEN 1 AND 12", name="payroll_record_month_range"),
        Index("ix_payroll_records_entity_period", "entity_id", "entity_type", "payroll_year", "payroll_month"),
    )

    def __repr__(self) -> str:
        return (
            f"<PayrollRecord(employee={self.employee_id}, "
            f"period={self.payroll_month}/{self.payroll_year}, paye={self.paye})>"
        )


# ===========================================
# PAYROLL SCHEDULE
# ===========================================

class PayrollSchedule(BaseModel):
    """Workflow status for one entity's payroll period."""

    __tablename__ = "payroll_schedules"

    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    entity_type: Mapped[AccountType] = mapped_column(SQLEnum(AccountType), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[PayrollStatus] = mapped_column(
        SQLEnum(PayrollStatus),
        default=PayrollStatus.DRAFT,
        nullable=False,
    )

    # Turnover supplied when the batch was generated; drives ITF liability
    annual_turnover: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("entity_id", "entity_type", "month", "year", name="uq_payroll_schedule_entity_period"),
        CheckConstraint("month BETWEEN 1 AND 12", name="payroll_schedule_month_range"),
    )

    def __repr__(self) -> str:
        return f"<PayrollSchedule(id={self.id}, period={self.month}/{self.year}, status={self.status})>"


# ===========================================
# PAYE REMITTANCE
# ===========================================

class PAYERemittance(BaseModel):
    """
    PAYE remittance obligation for one entity's payroll period.

    NRS requires PAYE to be remitted by the 10th day of the month
    following salary payment.
    """

    __tablename__ = "paye_remittances"

    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    entity_type: Mapped[AccountType] = mapped_column(SQLEnum(AccountType), nullable=False)
    remittance_month: Mapped[int] = mapped_column(Integer, nullable=False)
    remittance_year: Mapped[int] = mapped_column(Integer, nullable=False)

    total_paye: Mapped[Decimal] = _money()
    remittance_deadline: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[RemittanceStatus] = mapped_column(
        SQLEnum(RemittanceStatus),
        default=RemittanceStatus.PENDING,
        nullable=False,
    )

    remittance_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    remittance_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "entity_id", "entity_type", "remittance_month", "remittance_year",
            name="uq_paye_remittance_entity_period",
        ),
    )
