"""
TaxBridge - Personal Income Tax Service

Annual PIT for individuals under the Nigeria Tax Act 2025.

Taxable income (2026+):
    gross - pension - NHF - NHIS - housing loan interest - life insurance
    - rent relief - allowable expenses, floored at 0

Rent relief is always recomputed from the declared annual rent. CRA no
longer applies; the first ₦800,000 is covered by the 0% band.

Returns are due on 31 March of the following year. WHT already suffered is
credited against the liability.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from taxbridge.models.enums import DeductionSource, ExemptionReason, FilingStatus, RemittanceStatus
from taxbridge.models.pit import EmploymentDeductions
from taxbridge.services.tax_calculators.brackets import (
    ANNUAL_EXEMPTION,
    BracketCalculator,
    KOBO,
    NIGERIA_2026_ANNUAL_BANDS,
    ZERO,
    round_kobo,
)
from taxbridge.services.tax_calculators.deductions import AnnualDeductions, DeductionResolver
from taxbridge.services.tax_calculators.wht_service import WHTCalculator
from taxbridge.utils.error_handling import NotFoundException, validate_amount, validate_tax_year

logger = logging.getLogger(__name__)


DEDUCTION_AMOUNT_FIELDS = (
    "annual_pension",
    "annual_nhf",
    "annual_nhis",
    "annual_housing_loan_interest",
    "annual_life_insurance",
    "annual_rent",
)


@dataclass
class PITSummary:
    """Annual PIT position for one account and tax year."""
    account_id: uuid.UUID
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
    exemption_reason: Optional[ExemptionReason]
    remittance_status: RemittanceStatus
    filing_status: FilingStatus
    filing_deadline: date
    band_breakdown: List[Dict[str, Any]] = field(default_factory=list)


class PITCalculator:
    """Annual PIT on already-reduced taxable income."""

    @staticmethod
    def calculate_annual_pit(annual_taxable_income: Any) -> Decimal:
        """Annual bands; the first ₦800,000 is taxed at 0%."""
        return BracketCalculator.total(annual_taxable_income, NIGERIA_2026_ANNUAL_BANDS)

    @staticmethod
    def get_filing_deadline(tax_year: int) -> date:
        validate_tax_year(tax_year)
        return date(tax_year + 1, 3, 31)

    @staticmethod
    def determine_exemption(
        gross_income: Decimal,
        taxable_income: Decimal,
        pit_before_wht: Decimal,
    ) -> tuple:
        """
        Exemption status.

        Returns:
            Tuple of (is_fully_exempt, exemption_reason)
        """
        if gross_income <= 0:
            # No income means no liability, which is not an exemption
            return False, ExemptionReason.NO_INCOME
        if pit_before_wht <= KOBO:
            if 0 < taxable_income <= ANNUAL_EXEMPTION:
                return True, ExemptionReason.THRESHOLD
            if taxable_income <= 0:
                return True, ExemptionReason.DEDUCTIONS_ONLY
        return False, None

    @staticmethod
    def determine_status(pending: Decimal, deadline: date, today: date) -> tuple:
        """
        Remittance and filing status.

        Returns:
            Tuple of (RemittanceStatus, FilingStatus)
        """
        if pending <= KOBO:
            return RemittanceStatus.COMPLIANT, FilingStatus.FILED
        if today > deadline:
            return RemittanceStatus.OVERDUE, FilingStatus.OVERDUE
        return RemittanceStatus.PENDING, FilingStatus.NOT_FILED


class PITService:
    """Employment deductions and the annual PIT summary for individuals."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.calculator = PITCalculator()

    # ===========================================
    # EMPLOYMENT DEDUCTIONS
    # ===========================================

    async def get_employment_deductions(
        self,
        account_id: uuid.UUID,
        tax_year: int,
    ) -> Optional[EmploymentDeductions]:
        validate_tax_year(tax_year)
        result = await self.db.execute(
            select(EmploymentDeductions).where(
                and_(
                    EmploymentDeductions.account_id == account_id,
                    EmploymentDeductions.tax_year == tax_year,
                )
            )
        )
        return result.scalar_one_or_none()

    async def upsert_employment_deductions(
        self,
        account_id: uuid.UUID,
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
        notes: Optional[str] = None,
    ) -> EmploymentDeductions:
        """
        Create or replace the declaration for (account, tax_year).

        The stored rent relief is the derived figure; a supplied one only has
        to agree with it.
        """
        validated = DeductionResolver.validate_employment_deductions(
            tax_year,
            annual_pension=annual_pension,
            annual_nhf=annual_nhf,
            annual_nhis=annual_nhis,
            annual_housing_loan_interest=annual_housing_loan_interest,
            annual_life_insurance=annual_life_insurance,
            annual_rent=annual_rent,
            annual_rent_relief=annual_rent_relief,
            source=source,
            source_other=source_other,
        )

        record = await self.get_employment_deductions(account_id, tax_year)
        if record is None:
            record = EmploymentDeductions(account_id=account_id, tax_year=tax_year)
            self.db.add(record)

        self._apply(record, validated, source, source_other, notes)
        await self.db.commit()
        await self.db.refresh(record)

        logger.info(
            "Employment deductions saved",
            extra={"account_id": str(account_id), "tax_year": tax_year},
        )
        return record

    async def update_employment_deductions(
        self,
        account_id: uuid.UUID,
        tax_year: int,
        updates: Dict[str, Any],
    ) -> EmploymentDeductions:
        """Partial update. Unspecified fields keep their stored values."""
        record = await self.get_employment_deductions(account_id, tax_year)
        if record is None:
            raise NotFoundException(
                "EmploymentDeductions",
                message=f"No employment deductions recorded for tax year {tax_year}",
            )

        merged: Dict[str, Any] = {name: getattr(record, name) for name in DEDUCTION_AMOUNT_FIELDS}
        merged.update({k: v for k, v in updates.items() if k in DEDUCTION_AMOUNT_FIELDS})
        source = updates.get("source", record.source)
        source_other = updates.get("source_other", record.source_other)
        notes = updates.get("notes", record.notes)

        validated = DeductionResolver.validate_employment_deductions(
            tax_year,
            annual_rent_relief=updates.get("annual_rent_relief"),
            source=source,
            source_other=source_other,
            **merged,
        )
        self._apply(record, validated, source, source_other, notes)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def delete_employment_deductions(self, account_id: uuid.UUID, tax_year: int) -> None:
        record = await self.get_employment_deductions(account_id, tax_year)
        if record is None:
            raise NotFoundException(
                "EmploymentDeductions",
                message=f"No employment deductions recorded for tax year {tax_year}",
            )
        await self.db.delete(record)
        await self.db.commit()

    @staticmethod
    def _apply(
        record: EmploymentDeductions,
        validated: AnnualDeductions,
        source: DeductionSource,
        source_other: Optional[str],
        notes: Optional[str],
    ) -> None:
        for name in DEDUCTION_AMOUNT_FIELDS:
            setattr(record, name, round_kobo(getattr(validated, name)))
        record.annual_rent_relief = validated.annual_rent_relief
        record.source = source
        record.source_other = source_other if source == DeductionSource.OTHER else None
        record.notes = notes

    # ===========================================
    # PIT SUMMARY
    # ===========================================

    async def get_pit_summary(
        self,
        account_id: uuid.UUID,
        tax_year: int,
        total_gross_income: Any,
        allowable_expenses: Any = ZERO,
        wht_credits: Any = ZERO,
        pit_remitted: Any = ZERO,
        today: Optional[date] = None,
    ) -> PITSummary:
        """
        Compute the annual PIT position on the fly. Nothing is persisted.

        Args:
            account_id: Individual account
            tax_year: Tax year (2026+)
            total_gross_income: Annual gross income from all sources
            allowable_expenses: Business expenses wholly incurred for the income
            wht_credits: WHT suffered during the year
            pit_remitted: PIT already paid for the year
        """
        validate_tax_year(tax_year)
        gross = round_kobo(validate_amount(total_gross_income, "total_gross_income"))
        expenses = round_kobo(validate_amount(allowable_expenses, "allowable_expenses"))
        credits = round_kobo(validate_amount(wht_credits, "wht_credits"))
        remitted = round_kobo(validate_amount(pit_remitted, "pit_remitted"))
        today = today or date.today()

        record = await self.get_employment_deductions(account_id, tax_year)
        declared = AnnualDeductions()
        if record is not None:
            declared = AnnualDeductions(
                **{name: getattr(record, name) for name in DEDUCTION_AMOUNT_FIELDS}
            )
        reliefs = DeductionResolver.annual_reliefs(declared, tax_year)

        statutory = declared.annual_pension + declared.annual_nhf + declared.annual_nhis
        taxable = gross - statutory - sum(reliefs.values(), ZERO) - expenses
        taxable_income = round_kobo(max(ZERO, taxable))

        pit_before_wht, breakdown = BracketCalculator.calculate(taxable_income, NIGERIA_2026_ANNUAL_BANDS)
        is_exempt, reason = self.calculator.determine_exemption(gross, taxable_income, pit_before_wht)

        pit_after_wht = WHTCalculator.apply_wht_credits(pit_before_wht, credits)
        pending = max(ZERO, pit_after_wht - remitted)
        if remitted > pit_after_wht + KOBO:
            logger.warning(
                "PIT over-remittance detected",
                extra={
                    "account_id": str(account_id),
                    "tax_year": tax_year,
                    "pit_after_wht": str(pit_after_wht),
                    "pit_remitted": str(remitted),
                },
            )

        deadline = self.calculator.get_filing_deadline(tax_year)
        remittance_status, filing_status = self.calculator.determine_status(pending, deadline, today)

        summary = PITSummary(
            account_id=account_id,
            tax_year=tax_year,
            total_gross_income=gross,
            total_pension=round_kobo(declared.annual_pension),
            total_nhf=round_kobo(declared.annual_nhf),
            total_nhis=round_kobo(declared.annual_nhis),
            total_housing_loan_interest=round_kobo(reliefs["housing_loan_interest"]),
            total_life_insurance=round_kobo(reliefs["life_insurance"]),
            total_rent_relief=reliefs["rent_relief"],
            total_allowable_expenses=expenses,
            total_cra=ZERO,
            total_taxable_income=taxable_income,
            annual_exemption=ANNUAL_EXEMPTION,
            pit_before_wht=pit_before_wht,
            wht_credits=credits,
            pit_after_wht=pit_after_wht,
            pit_remitted=remitted,
            pit_pending=pending,
            is_fully_exempt=is_exempt,
            exemption_reason=reason,
            remittance_status=remittance_status,
            filing_status=filing_status,
            filing_deadline=deadline,
            band_breakdown=breakdown,
        )

        logger.info(
            "PIT summary calculated",
            extra={
                "account_id": str(account_id),
                "tax_year": tax_year,
                "pit_after_wht": str(pit_after_wht),
            },
        )
        return summary
