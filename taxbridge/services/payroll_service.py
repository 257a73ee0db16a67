"""
TaxBridge - Payroll Service

Monthly payroll batches for companies and business names, with Nigerian
statutory compliance.

Nigerian Statutory Requirements:
1. PAYE (Pay As You Earn) - Personal Income Tax
   - Nigeria Tax Act 2025 monthly bands
   - Remitted by the 10th of the following month

2. Pension (Contributory Pension Scheme)
   - Employee: 8% of gross
   - Employer: 10% of gross

3. NHF (National Housing Fund)
   - 2.5% of gross, capped on ₦2,500,000 annual income

4. NHIS (National Health Insurance Scheme)
   - 5% of gross

5. ITF (Industrial Training Fund)
   - 1% of payroll
   - Employer contribution (companies with 5+ employees or ₦50M+ turnover)

A batch is idempotent per (entity, month, year): records and the schedule
are inserted with ON CONFLICT DO NOTHING, so concurrent or repeated calls
converge on the same rows. Schedule totals are always summed from records.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, func, and_, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from taxbridge.config import settings
from taxbridge.models.enums import AccountType, PayrollStatus, RemittanceStatus
from taxbridge.models.payroll import Employee, PayrollRecord, PayrollSchedule, PAYERemittance
from taxbridge.services.tax_calculators.brackets import ZERO, round_kobo
from taxbridge.services.tax_calculators.paye_service import BenefitFlags, PAYECalculator
from taxbridge.utils.error_handling import (
    ConsistencyException,
    EmployeeNotFoundException,
    InvalidStatusTransitionException,
    NoActiveEmployeesException,
    NotFoundException,
    PayrollPeriodLockedException,
    ScheduleNotFoundException,
    ValidationException,
    validate_amount,
    validate_month,
    validate_tax_year,
)

logger = logging.getLogger(__name__)


# ===========================================
# CONSTANTS
# ===========================================

# PAYE is due on this day of the month after payroll
PAYE_REMITTANCE_DAY = 10

# ITF rate (employer only)
ITF_RATE = Decimal("1")  # 1% of payroll
ITF_EMPLOYEE_THRESHOLD = 5
ITF_TURNOVER_THRESHOLD = Decimal("50000000")


@dataclass
class ScheduleTotals:
    """Aggregates derived from a period's PayrollRecords."""
    total_employees: int = 0
    total_gross_salary: Decimal = ZERO
    total_employee_pension: Decimal = ZERO
    total_employer_pension: Decimal = ZERO
    total_nhf: Decimal = ZERO
    total_nhis: Decimal = ZERO
    total_paye: Decimal = ZERO
    total_net_salary: Decimal = ZERO
    total_itf: Decimal = ZERO

    @classmethod
    def from_records(cls, records: Iterable[PayrollRecord]) -> "ScheduleTotals":
        totals = cls()
        for record in records:
            totals.total_employees += 1
            totals.total_gross_salary += record.gross_salary
            totals.total_employee_pension += record.employee_pension_contribution
            totals.total_employer_pension += record.employer_pension_contribution
            totals.total_nhf += record.nhf_contribution
            totals.total_nhis += record.nhis_contribution
            totals.total_paye += record.paye
            totals.total_net_salary += record.net_salary
        for name in (
            "total_gross_salary", "total_employee_pension", "total_employer_pension",
            "total_nhf", "total_nhis", "total_paye", "total_net_salary",
        ):
            setattr(totals, name, round_kobo(Decimal(getattr(totals, name))))
        return totals


@dataclass
class ScheduleSummary:
    """A schedule together with its derived totals."""
    schedule: PayrollSchedule
    totals: ScheduleTotals


@dataclass
class EmployeeCounts:
    total: int = 0
    active: int = 0
    inactive: int = 0
    undefined_status: int = 0


@dataclass
class PayrollBatchResult:
    """Outcome of ``generate_payroll_batch``."""
    schedule: PayrollSchedule
    totals: ScheduleTotals
    remittance: PAYERemittance
    records: List[PayrollRecord] = field(default_factory=list)
    created_records: int = 0
    employee_counts: EmployeeCounts = field(default_factory=EmployeeCounts)


def paye_remittance_deadline(month: int, year: int) -> date:
    """PAYE for a month is due on the 10th of the following month."""
    if month == 12:
        return date(year + 1, 1, PAYE_REMITTANCE_DAY)
    return date(year, month + 1, PAYE_REMITTANCE_DAY)


def calculate_itf(
    total_gross_salary: Decimal,
    entity_type: AccountType,
    employee_count: int,
    annual_turnover: Optional[Decimal] = None,
) -> Decimal:
    """ITF is levied on companies with 5+ employees or ₦50M+ turnover."""
    if entity_type != AccountType.COMPANY:
        return ZERO
    turnover_liable = annual_turnover is not None and annual_turnover >= ITF_TURNOVER_THRESHOLD
    if not turnover_liable and employee_count < ITF_EMPLOYEE_THRESHOLD:
        return ZERO
    return round_kobo(total_gross_salary * ITF_RATE / 100)


def _validate_entity_type(entity_type: Any) -> AccountType:
    try:
        account_type = AccountType(entity_type)
    except ValueError:
        account_type = None
    if account_type is None or not account_type.can_run_payroll:
        raise ValidationException(
            message=f"Payroll entity must be a company or business. Received: {entity_type}",
            field="entity_type",
            details={"provided": str(entity_type)},
        )
    return account_type


class PayrollService:
    """
    Payroll service for generating and managing monthly payroll batches.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.paye_calculator = PAYECalculator()

    # ===========================================
    # UPSERT HELPERS
    # ===========================================

    def _insert(self, model):
        if self.db.bind.dialect.name == "sqlite":
            return sqlite_insert(model.__table__)
        return pg_insert(model.__table__)

    async def _insert_ignore(self, model, values: Dict[str, Any], index_elements: List[str]) -> bool:
        """INSERT .. ON CONFLICT DO NOTHING. Returns True when a row was created."""
        stmt = self._insert(model).values(**values).on_conflict_do_nothing(index_elements=index_elements)
        result = await self.db.execute(stmt)
        return bool(result.rowcount)

    # ===========================================
    # EMPLOYEES
    # ===========================================

    async def count_employees(self, entity_id: uuid.UUID, entity_type: AccountType) -> EmployeeCounts:
        """Count employees by active status. NULL status is reported, never defaulted."""
        result = await self.db.execute(
            select(Employee.is_active, func.count(Employee.id))
            .where(
                and_(
                    Employee.entity_id == entity_id,
                    Employee.entity_type == entity_type,
                )
            )
            .group_by(Employee.is_active)
        )
        counts = EmployeeCounts()
        for is_active, count in result.all():
            counts.total += count
            if is_active is None:
                counts.undefined_status += count
            elif is_active:
                counts.active += count
            else:
                counts.inactive += count
        return counts

    async def get_active_employees(self, entity_id: uuid.UUID, entity_type: AccountType) -> List[Employee]:
        result = await self.db.execute(
            select(Employee)
            .where(
                and_(
                    Employee.entity_id == entity_id,
                    Employee.entity_type == entity_type,
                    Employee.is_active.is_(True),
                )
            )
            .order_by(Employee.employee_code)
        )
        return list(result.scalars().all())

    # ===========================================
    # BATCH GENERATION
    # ===========================================

    async def generate_payroll_batch(
        self,
        entity_id: uuid.UUID,
        entity_type: AccountType,
        month: int,
        year: int,
        annual_turnover: Optional[Any] = None,
        today: Optional[date] = None,
    ) -> PayrollBatchResult:
        """
        Generate payroll for every active employee of an entity for one period.

        Re-running for the same period reuses existing records and the
        existing schedule, but only while the period is still in draft.
        The whole batch commits once or not at all.

        Raises:
            InvalidTaxPeriodException: month outside 1-12
            InvalidTaxYearException: year outside 2026-2100
            PayrollPeriodLockedException: the period is approved or submitted
            NoActiveEmployeesException: nobody to pay
            MissingEligibilityFlagException: an employee's benefit flag is NULL
            ConsistencyException: records do not cover every active employee
        """
        validate_month(month)
        validate_tax_year(year, "year")
        entity_type = _validate_entity_type(entity_type)
        turnover = None if annual_turnover is None else validate_amount(annual_turnover, "annual_turnover")
        today = today or date.today()

        try:
            await self._ensure_period_is_draft(entity_id, entity_type, month, year)

            counts = await self.count_employees(entity_id, entity_type)
            if counts.active == 0:
                raise NoActiveEmployeesException(
                    total=counts.total,
                    active=counts.active,
                    inactive=counts.inactive,
                    undefined_status=counts.undefined_status,
                )
            if counts.undefined_status:
                logger.warning(
                    "Employees with undefined active status left out of payroll",
                    extra={
                        "entity_id": str(entity_id),
                        "month": month,
                        "year": year,
                        "undefined_status": counts.undefined_status,
                    },
                )

            employees = await self.get_active_employees(entity_id, entity_type)

            # Compute everything before writing, so a bad flag aborts the batch cleanly
            computed = [
                (employee, self.paye_calculator.compute(BenefitFlags.from_employee(employee), employee.salary, year))
                for employee in employees
            ]

            created = 0
            for employee, paye in computed:
                inserted = await self._insert_ignore(
                    PayrollRecord,
                    {
                        "id": uuid.uuid4(),
                        "entity_id": entity_id,
                        "entity_type": entity_type,
                        "employee_id": employee.id,
                        "payroll_month": month,
                        "payroll_year": year,
                        "status": PayrollStatus.DRAFT,
                        **paye.record_fields(),
                    },
                    ["employee_id", "payroll_month", "payroll_year"],
                )
                created += int(inserted)

            await self._insert_ignore(
                PayrollSchedule,
                {
                    "id": uuid.uuid4(),
                    "entity_id": entity_id,
                    "entity_type": entity_type,
                    "month": month,
                    "year": year,
                    "status": PayrollStatus.DRAFT,
                },
                ["entity_id", "entity_type", "month", "year"],
            )
            schedule = await self._get_schedule_for_period(entity_id, entity_type, month, year)

            records = await self.list_records(entity_id, entity_type, month, year)
            missing = {e.id for e in employees} - {r.employee_id for r in records}
            if schedule is None or missing:
                raise ConsistencyException(
                    message=(
                        f"Payroll schedule for {month}/{year} would not match its records: "
                        f"{len(missing)} active employee(s) without a payroll record."
                    ),
                    details={
                        "active_employees": len(employees),
                        "records": len(records),
                        "missing_employee_ids": sorted(str(m) for m in missing),
                    },
                )

            if turnover is not None:
                schedule.annual_turnover = turnover

            totals = ScheduleTotals.from_records(records)
            totals.total_itf = calculate_itf(
                totals.total_gross_salary, entity_type, totals.total_employees, schedule.annual_turnover,
            )
            remittance = await self._upsert_paye_remittance(
                entity_id, entity_type, month, year, totals.total_paye, today,
            )

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Payroll batch generated",
            extra={
                "entity_id": str(entity_id),
                "entity_type": entity_type.value,
                "month": month,
                "year": year,
                "records": len(records),
                "created_records": created,
                "total_paye": str(totals.total_paye),
            },
        )

        return PayrollBatchResult(
            schedule=schedule,
            totals=totals,
            remittance=remittance,
            records=records,
            created_records=created,
            employee_counts=counts,
        )

    async def _ensure_period_is_draft(
        self,
        entity_id: uuid.UUID,
        entity_type: AccountType,
        month: int,
        year: int,
    ) -> None:
        """Approved and submitted periods are frozen, even after their schedule is deleted."""
        schedule = await self._get_schedule_for_period(entity_id, entity_type, month, year)
        if schedule is not None:
            if schedule.status != PayrollStatus.DRAFT:
                raise PayrollPeriodLockedException(month, year, schedule.status.value)
            return

        result = await self.db.execute(
            select(PayrollRecord.status)
            .where(
                and_(
                    PayrollRecord.entity_id == entity_id,
                    PayrollRecord.entity_type == entity_type,
                    PayrollRecord.payroll_month == month,
                    PayrollRecord.payroll_year == year,
                    PayrollRecord.status != PayrollStatus.DRAFT,
                )
            )
            .limit(1)
        )
        locked_status = result.scalar_one_or_none()
        if locked_status is not None:
            raise PayrollPeriodLockedException(month, year, locked_status.value)

    async def _upsert_paye_remittance(
        self,
        entity_id: uuid.UUID,
        entity_type: AccountType,
        month: int,
        year: int,
        total_paye: Decimal,
        today: date,
    ) -> PAYERemittance:
        deadline = paye_remittance_deadline(month, year)
        status = RemittanceStatus.OVERDUE if today > deadline else RemittanceStatus.PENDING

        await self._insert_ignore(
            PAYERemittance,
            {
                "id": uuid.uuid4(),
                "entity_id": entity_id,
                "entity_type": entity_type,
                "remittance_month": month,
                "remittance_year": year,
                "total_paye": total_paye,
                "remittance_deadline": deadline,
                "status": status,
            },
            ["entity_id", "entity_type", "remittance_month", "remittance_year"],
        )
        remittance = await self.get_paye_remittance(entity_id, entity_type, month, year)

        if remittance.status == RemittanceStatus.REMITTED:
            if remittance.total_paye != total_paye:
                logger.warning(
                    "PAYE changed after remittance",
                    extra={
                        "remittance_id": str(remittance.id),
                        "remitted": str(remittance.total_paye),
                        "current": str(total_paye),
                    },
                )
            return remittance

        remittance.total_paye = total_paye
        remittance.remittance_deadline = deadline
        remittance.status = status
        return remittance

    # ===========================================
    # SCHEDULES
    # ===========================================

    async def _get_schedule_for_period(
        self,
        entity_id: uuid.UUID,
        entity_type: AccountType,
        month: int,
        year: int,
    ) -> Optional[PayrollSchedule]:
        result = await self.db.execute(
            select(PayrollSchedule)
            .where(
                and_(
                    PayrollSchedule.entity_id == entity_id,
                    PayrollSchedule.entity_type == entity_type,
                    PayrollSchedule.month == month,
                    PayrollSchedule.year == year,
                )
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_records(
        self,
        entity_id: uuid.UUID,
        entity_type: AccountType,
        month: int,
        year: int,
    ) -> List[PayrollRecord]:
        """All payroll records of an entity's period."""
        result = await self.db.execute(
            select(PayrollRecord)
            .where(
                and_(
                    PayrollRecord.entity_id == entity_id,
                    PayrollRecord.entity_type == entity_type,
                    PayrollRecord.payroll_month == month,
                    PayrollRecord.payroll_year == year,
                )
            )
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_schedule_totals(
        self,
        entity_id: uuid.UUID,
        entity_type: AccountType,
        month: int,
        year: int,
        annual_turnover: Optional[Decimal] = None,
    ) -> ScheduleTotals:
        """Totals for a period, always summed from the records."""
        records = await self.list_records(entity_id, entity_type, month, year)
        totals = ScheduleTotals.from_records(records)
        totals.total_itf = calculate_itf(
            totals.total_gross_salary, entity_type, totals.total_employees, annual_turnover,
        )
        return totals

    async def _load_schedule(self, schedule_id: uuid.UUID) -> PayrollSchedule:
        schedule = await self.db.get(PayrollSchedule, schedule_id)
        if schedule is None:
            raise ScheduleNotFoundException(schedule_id)
        return schedule

    async def get_schedule(self, schedule_id: uuid.UUID) -> ScheduleSummary:
        schedule = await self._load_schedule(schedule_id)
        totals = await self.get_schedule_totals(
            schedule.entity_id, schedule.entity_type, schedule.month, schedule.year,
            annual_turnover=schedule.annual_turnover,
        )
        return ScheduleSummary(schedule=schedule, totals=totals)

    async def list_schedules(
        self,
        entity_id: uuid.UUID,
        entity_type: AccountType,
        year: Optional[int] = None,
        month: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Tuple[List[ScheduleSummary], int]:
        """List schedules, newest period first, with totals."""
        limit = settings.payroll_default_page_size if limit is None else limit
        if page < 1:
            raise ValidationException(message="page must be at least 1", field="page")
        if not 1 <= limit <= settings.payroll_max_page_size:
            raise ValidationException(
                message=f"limit must be between 1 and {settings.payroll_max_page_size}",
                field="limit",
            )

        query = select(PayrollSchedule).where(
            and_(
                PayrollSchedule.entity_id == entity_id,
                PayrollSchedule.entity_type == entity_type,
            )
        )
        if year is not None:
            query = query.where(PayrollSchedule.year == validate_tax_year(year, "year"))
        if month is not None:
            query = query.where(PayrollSchedule.month == validate_month(month))
        if status is not None:
            query = query.where(PayrollSchedule.status == PayrollStatus(status))

        # Count
        count_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar()

        # Paginate
        query = query.order_by(PayrollSchedule.year.desc(), PayrollSchedule.month.desc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(query)
        summaries = []
        for schedule in result.scalars().all():
            totals = await self.get_schedule_totals(
                schedule.entity_id, schedule.entity_type, schedule.month, schedule.year,
                annual_turnover=schedule.annual_turnover,
            )
            summaries.append(ScheduleSummary(schedule=schedule, totals=totals))
        return summaries, total

    async def ensure_schedule_status(self, schedule_id: uuid.UUID, new_status: Any) -> PayrollSchedule:
        """
        Move a schedule (and its records) to ``new_status``.

        Any move between draft, approved and submitted is accepted unless
        ``payroll_allow_status_regression`` is disabled, in which case only
        forward moves are.
        """
        allowed = [s.value for s in PayrollStatus]
        try:
            target = PayrollStatus(new_status)
        except ValueError:
            raise InvalidStatusTransitionException(new_status, allowed=allowed)

        schedule = await self._load_schedule(schedule_id)
        current = schedule.status

        if not settings.payroll_allow_status_regression and target.rank < current.rank:
            raise InvalidStatusTransitionException(
                target.value,
                current_status=current.value,
                allowed=[s.value for s in PayrollStatus if s.rank >= current.rank],
            )

        schedule.status = target
        await self.db.execute(
            update(PayrollRecord)
            .where(
                and_(
                    PayrollRecord.entity_id == schedule.entity_id,
                    PayrollRecord.entity_type == schedule.entity_type,
                    PayrollRecord.payroll_month == schedule.month,
                    PayrollRecord.payroll_year == schedule.year,
                )
            )
            .values(status=target)
        )
        await self.db.commit()
        await self.db.refresh(schedule)

        logger.info(
            "Payroll schedule status changed",
            extra={"schedule_id": str(schedule_id), "from": current.value, "to": target.value},
        )
        return schedule

    async def delete_schedule(self, schedule_id: uuid.UUID) -> PayrollSchedule:
        """Delete a schedule. Its records stay and are reused by the next batch."""
        schedule = await self._load_schedule(schedule_id)
        await self.db.delete(schedule)
        await self.db.commit()

        logger.info(
            "Payroll schedule deleted",
            extra={"schedule_id": str(schedule_id), "month": schedule.month, "year": schedule.year},
        )
        return schedule

    # ===========================================
    # RECALCULATION
    # ===========================================

    async def recalculate_draft_records_for_employee(
        self,
        employee_id: uuid.UUID,
        new_salary: Any,
        today: Optional[date] = None,
    ) -> List[uuid.UUID]:
        """
        Recompute an employee's draft records after a salary change.

        Periods whose schedule has been submitted are left untouched.

        Returns:
            IDs of the records that were updated
        """
        salary = validate_amount(new_salary, "new_salary")
        today = today or date.today()

        employee = await self.db.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundException(employee_id)
        flags = BenefitFlags.from_employee(employee)

        result = await self.db.execute(
            select(PayrollRecord).where(
                and_(
                    PayrollRecord.employee_id == employee_id,
                    PayrollRecord.status == PayrollStatus.DRAFT,
                )
            )
        )
        drafts = list(result.scalars().all())
        if not drafts:
            logger.info("No draft payroll records to recalculate", extra={"employee_id": str(employee_id)})
            return []

        updated: List[uuid.UUID] = []
        periods = set()
        try:
            for record in drafts:
                schedule = await self._get_schedule_for_period(
                    record.entity_id, record.entity_type, record.payroll_month, record.payroll_year,
                )
                if schedule is not None and schedule.status == PayrollStatus.SUBMITTED:
                    logger.info(
                        "Skipping recalculation for submitted schedule",
                        extra={"record_id": str(record.id), "schedule_id": str(schedule.id)},
                    )
                    continue

                paye = self.paye_calculator.compute(flags, salary, record.payroll_year)
                for name, value in paye.record_fields().items():
                    setattr(record, name, value)
                updated.append(record.id)
                periods.add((record.entity_id, record.entity_type, record.payroll_month, record.payroll_year))

            await self.db.flush()
            for entity_id, entity_type, month, year in periods:
                totals = await self.get_schedule_totals(entity_id, entity_type, month, year)
                await self._upsert_paye_remittance(entity_id, entity_type, month, year, totals.total_paye, today)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Draft payroll records recalculated",
            extra={"employee_id": str(employee_id), "updated": len(updated)},
        )
        return updated

    # ===========================================
    # PAYE REMITTANCE
    # ===========================================

    async def get_paye_remittance(
        self,
        entity_id: uuid.UUID,
        entity_type: AccountType,
        month: int,
        year: int,
    ) -> Optional[PAYERemittance]:
        result = await self.db.execute(
            select(PAYERemittance)
            .where(
                and_(
                    PAYERemittance.entity_id == entity_id,
                    PAYERemittance.entity_type == entity_type,
                    PAYERemittance.remittance_month == month,
                    PAYERemittance.remittance_year == year,
                )
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def mark_paye_remitted(
        self,
        entity_id: uuid.UUID,
        entity_type: AccountType,
        month: int,
        year: int,
        remittance_date: date,
        reference: str,
        notes: Optional[str] = None,
    ) -> PAYERemittance:
        """Record that a period's PAYE was paid to the tax authority."""
        validate_month(month)
        validate_tax_year(year, "year")

        remittance = await self.get_paye_remittance(entity_id, entity_type, month, year)
        if remittance is None:
            raise NotFoundException(
                "PAYERemittance",
                message=f"No PAYE remittance for {month}/{year}. Generate payroll first.",
            )

        remittance.status = RemittanceStatus.REMITTED
        remittance.remittance_date = remittance_date
        remittance.remittance_reference = reference
        remittance.notes = notes

        await self.db.commit()
        await self.db.refresh(remittance)
        return remittance

    async def refresh_remittance_statuses(self, today: Optional[date] = None) -> int:
        """Flag pending remittances past their deadline as overdue."""
        today = today or date.today()
        result = await self.db.execute(
            update(PAYERemittance)
            .where(
                and_(
                    PAYERemittance.status == RemittanceStatus.PENDING,
                    PAYERemittance.remittance_deadline < today,
                )
            )
            .values(status=RemittanceStatus.OVERDUE)
        )
        await self.db.commit()

        if result.rowcount:
            logger.info("PAYE remittances marked overdue", extra={"count": result.rowcount})
        return result.rowcount
