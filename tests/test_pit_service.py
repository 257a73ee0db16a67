"""
TaxBridge - Personal Income Tax Tests

Employment deduction declarations and the annual PIT summary.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from taxbridge.models.enums import DeductionSource, ExemptionReason, FilingStatus, RemittanceStatus
from taxbridge.services.pit_service import PITService
from taxbridge.utils.error_handling import (
    InvalidAmountException,
    InvalidTaxYearException,
    NotFoundException,
    RentReliefMismatchException,
)


class TestEmploymentDeductions:
    """Declared annual deductions per account and year."""

    async def test_upsert_derives_rent_relief(self, db_session):
        account_id = uuid4()
        record = await PITService(db_session).upsert_employment_deductions(
            account_id, 2026,
            annual_pension=Decimal("400000"),
            annual_rent=Decimal("1000000"),
            source=DeductionSource.PAYSLIP,
        )

        assert record.annual_pension == Decimal("400000.00")
        assert record.annual_rent_relief == Decimal("200000.00")
        assert record.source == DeductionSource.PAYSLIP

    async def test_upsert_replaces_existing(self, db_session):
        account_id = uuid4()
        service = PITService(db_session)
        first = await service.upsert_employment_deductions(account_id, 2026, annual_nhf=Decimal("50000"))
        second = await service.upsert_employment_deductions(account_id, 2026, annual_nhis=Decimal("60000"))

        assert second.id == first.id
        assert second.annual_nhf == Decimal("0.00")
        assert second.annual_nhis == Decimal("60000.00")

    async def test_years_are_separate(self, db_session):
        account_id = uuid4()
        service = PITService(db_session)
        await service.upsert_employment_deductions(account_id, 2026, annual_pension=Decimal("1000"))

        assert await service.get_employment_deductions(account_id, 2027) is None

    async def test_mismatched_rent_relief_rejected(self, db_session):
        with pytest.raises(RentReliefMismatchException):
            await PITService(db_session).upsert_employment_deductions(
                uuid4(), 2026,
                annual_rent=Decimal("3000000"),
                annual_rent_relief=Decimal("600000"),
            )

    async def test_partial_update_keeps_other_fields(self, db_session):
        account_id = uuid4()
        service = PITService(db_session)
        await service.upsert_employment_deductions(
            account_id, 2026, annual_pension=Decimal("400000"), annual_rent=Decimal("1000000"),
        )

        record = await service.update_employment_deductions(
            account_id, 2026, {"annual_rent": Decimal("3000000")},
        )
        assert record.annual_pension == Decimal("400000.00")
        assert record.annual_rent == Decimal("3000000.00")
        assert record.annual_rent_relief == Decimal("500000.00")

    async def test_update_missing_declaration(self, db_session):
        with pytest.raises(NotFoundException):
            await PITService(db_session).update_employment_deductions(uuid4(), 2026, {"annual_nhf": 1})

    async def test_delete(self, db_session):
        account_id = uuid4()
        service = PITService(db_session)
        await service.upsert_employment_deductions(account_id, 2026, annual_pension=Decimal("1000"))

        await service.delete_employment_deductions(account_id, 2026)
        assert await service.get_employment_deductions(account_id, 2026) is None

        with pytest.raises(NotFoundException):
            await service.delete_employment_deductions(account_id, 2026)


class TestPITSummary:
    """Annual PIT position computed on the fly."""

    async def test_summary_with_deductions_and_credits(self, db_session):
        account_id = uuid4()
        service = PITService(db_session)
        await service.upsert_employment_deductions(
            account_id, 2026, annual_pension=Decimal("400000"), annual_rent=Decimal("1000000"),
        )

        summary = await service.get_pit_summary(
            account_id, 2026,
            total_gross_income=Decimal("5000000"),
            wht_credits=Decimal("100000"),
            pit_remitted=Decimal("82000"),
            today=date(2026, 12, 1),
        )

        assert summary.total_pension == Decimal("400000.00")
        assert summary.total_rent_relief == Decimal("200000.00")
        assert summary.total_cra == Decimal("0.00")
        assert summary.total_taxable_income == Decimal("4400000.00")
        assert summary.pit_before_wht == Decimal("582000.00")
        assert summary.pit_after_wht == Decimal("482000.00")
        assert summary.pit_pending == Decimal("400000.00")
        assert summary.is_fully_exempt is False
        assert summary.remittance_status == RemittanceStatus.PENDING
        assert summary.filing_status == FilingStatus.NOT_FILED
        assert summary.filing_deadline == date(2027, 3, 31)
        assert len(summary.band_breakdown) == 3

    async def test_allowable_expenses_reduce_taxable_income(self, db_session):
        summary = await PITService(db_session).get_pit_summary(
            uuid4(), 2026,
            total_gross_income=Decimal("3000000"),
            allowable_expenses=Decimal("1000000"),
            today=date(2026, 12, 1),
        )
        assert summary.total_taxable_income == Decimal("2000000.00")
        assert summary.pit_before_wht == Decimal("180000.00")

    async def test_income_at_threshold_is_exempt(self, db_session):
        summary = await PITService(db_session).get_pit_summary(
            uuid4(), 2026, total_gross_income=Decimal("800000"), today=date(2026, 12, 1),
        )
        assert summary.is_fully_exempt is True
        assert summary.exemption_reason == ExemptionReason.THRESHOLD
        assert summary.remittance_status == RemittanceStatus.COMPLIANT

    async def test_no_income(self, db_session):
        summary = await PITService(db_session).get_pit_summary(
            uuid4(), 2026, total_gross_income=Decimal("0"), today=date(2026, 12, 1),
        )
        assert summary.is_fully_exempt is False
        assert summary.exemption_reason == ExemptionReason.NO_INCOME

    async def test_overdue_after_31_march(self, db_session):
        summary = await PITService(db_session).get_pit_summary(
            uuid4(), 2026, total_gross_income=Decimal("5000000"), today=date(2027, 4, 1),
        )
        assert summary.remittance_status == RemittanceStatus.OVERDUE
        assert summary.filing_status == FilingStatus.OVERDUE

    async def test_over_remittance_leaves_nothing_pending(self, db_session):
        summary = await PITService(db_session).get_pit_summary(
            uuid4(), 2026,
            total_gross_income=Decimal("1500000"),
            pit_remitted=Decimal("200000"),
            today=date(2026, 12, 1),
        )
        assert summary.pit_after_wht == Decimal("105000.00")
        assert summary.pit_pending == Decimal("0.00")
        assert summary.remittance_status == RemittanceStatus.COMPLIANT

    async def test_invalid_year(self, db_session):
        with pytest.raises(InvalidTaxYearException):
            await PITService(db_session).get_pit_summary(uuid4(), 2025, total_gross_income=Decimal("1"))

    async def test_negative_income(self, db_session):
        with pytest.raises(InvalidAmountException):
            await PITService(db_session).get_pit_summary(uuid4(), 2026, total_gross_income=Decimal("-1"))
