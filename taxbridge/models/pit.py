"""
TaxBridge - Personal Income Tax Models

Employment deductions an individual declares for a tax year. These feed the
annual PIT summary (Nigeria Tax Act 2025 reliefs: pension, NHF, NHIS,
housing loan interest, life insurance premiums and rent relief).
"""

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import Integer, Numeric, String, Text, Uuid, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from taxbridge.models.base import BaseModel, MONEY_PRECISION, MONEY_SCALE
from taxbridge.models.enums import DeductionSource


class EmploymentDeductions(BaseModel):
    """One declaration per (account, tax year)."""

    __tablename__ = "employment_deductions"

    account_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)

    annual_pension: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False, default=Decimal("0.00"),
    )
    annual_nhf: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False, default=Decimal("0.00"),
    )
    annual_nhis: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False, default=Decimal("0.00"),
    )
    annual_housing_loan_interest: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False, default=Decimal("0.00"),
    )
    annual_life_insurance: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False, default=Decimal("0.00"),
    )
    annual_rent: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False, default=Decimal("0.00"),
    )
    annual_rent_relief: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE),
        nullable=False,
        default=Decimal("0.00"),
        comment="min(annual_rent * 20%, 500,000)",
    )

    source: Mapped[DeductionSource] = mapped_column(
        SQLEnum(DeductionSource),
        default=DeductionSource.MANUAL,
        nullable=False,
    )
    source_other: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("account_id", "tax_year", name="uq_employment_deductions_account_year"),
    )
