"""
TaxBridge - Payroll Router

API endpoints for monthly payroll batches with Nigerian compliance.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taxbridge.database import get_async_session
from taxbridge.models.enums import AccountType, PayrollStatus
from taxbridge.services.payroll_service import PayrollService, ScheduleSummary
from taxbridge.schemas.payroll import (
    PayrollGenerateRequest,
    ScheduleStatusUpdate,
    MarkRemittedRequest,
    PayrollRecordResponse,
    ScheduleTotalsResponse,
    PayrollScheduleResponse,
    PAYERemittanceResponse,
    PayrollBatchResponse,
    EmployeeCountsResponse,
    PayrollScheduleList,
    MessageResponse,
)


router = APIRouter()


def _schedule_response(summary: ScheduleSummary) -> PayrollScheduleResponse:
    response = PayrollScheduleResponse.model_validate(summary.schedule)
    response.totals = ScheduleTotalsResponse.model_validate(summary.totals)
    return response


@router.post(
    "/generate",
    response_model=PayrollBatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate payroll for a period",
    description="Creates records for every active employee. Re-running for the same period reuses existing records.",
)
async def generate_payroll(
    data: PayrollGenerateRequest,
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollService(db)
    result = await service.generate_payroll_batch(
        entity_id=data.entity_id,
        entity_type=data.entity_type,
        month=data.month,
        year=data.year,
        annual_turnover=data.annual_turnover,
    )
    return PayrollBatchResponse(
        schedule=_schedule_response(ScheduleSummary(result.schedule, result.totals)),
        records=[PayrollRecordResponse.model_validate(r) for r in result.records],
        remittance=PAYERemittanceResponse.model_validate(result.remittance),
        created_records=result.created_records,
        employee_counts=EmployeeCountsResponse.model_validate(result.employee_counts),
    )


@router.get(
    "/schedules",
    response_model=PayrollScheduleList,
    summary="List payroll schedules",
)
async def list_schedules(
    entity_id: uuid.UUID = Query(...),
    entity_type: AccountType = Query(...),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    status: Optional[PayrollStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_session),
):
    """List schedules with totals, newest period first."""
    service = PayrollService(db)
    summaries, total = await service.list_schedules(
        entity_id=entity_id,
        entity_type=entity_type,
        year=year,
        month=month,
        status=status,
        page=page,
        limit=limit,
    )
    return PayrollScheduleList(
        items=[_schedule_response(s) for s in summaries],
        total=total,
        page=page,
        limit=limit,
        pages=(total + limit - 1) // limit,
    )


@router.get(
    "/schedules/{schedule_id}",
    response_model=PayrollScheduleResponse,
    summary="Get payroll schedule",
)
async def get_schedule(
    schedule_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollService(db)
    return _schedule_response(await service.get_schedule(schedule_id))


@router.patch(
    "/schedules/{schedule_id}/status",
    response_model=PayrollScheduleResponse,
    summary="Change payroll schedule status",
)
async def update_schedule_status(
    schedule_id: uuid.UUID,
    data: ScheduleStatusUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollService(db)
    await service.ensure_schedule_status(schedule_id, data.status)
    return _schedule_response(await service.get_schedule(schedule_id))


@router.delete(
    "/schedules/{schedule_id}",
    response_model=MessageResponse,
    summary="Delete payroll schedule",
)
async def delete_schedule(
    schedule_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollService(db)
    schedule = await service.delete_schedule(schedule_id)
    return MessageResponse(message=f"Payroll schedule for {schedule.month}/{schedule.year} deleted")


@router.post(
    "/remittances/mark-remitted",
    response_model=PAYERemittanceResponse,
    summary="Mark PAYE as remitted",
)
async def mark_paye_remitted(
    data: MarkRemittedRequest,
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollService(db)
    return await service.mark_paye_remitted(
        entity_id=data.entity_id,
        entity_type=data.entity_type,
        month=data.month,
        year=data.year,
        remittance_date=data.remittance_date,
        reference=data.reference,
        notes=data.notes,
    )
