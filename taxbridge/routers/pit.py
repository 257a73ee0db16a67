"""
TaxBridge - Personal Income Tax Router

Employment deductions and the annual PIT summary for individuals.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taxbridge.database import get_async_session
from taxbridge.services.pit_service import PITService
from taxbridge.utils.error_handling import NotFoundException
from taxbridge.schemas.pit import (
    EmploymentDeductionsUpsert,
    EmploymentDeductionsUpdate,
    EmploymentDeductionsResponse,
    PITSummaryRequest,
    PITSummaryResponse,
)


router = APIRouter()


@router.put(
    "/employment-deductions",
    response_model=EmploymentDeductionsResponse,
    summary="Create or replace employment deductions",
)
async def upsert_employment_deductions(
    data: EmploymentDeductionsUpsert,
    db: AsyncSession = Depends(get_async_session),
):
    service = PITService(db)
    return await service.upsert_employment_deductions(**data.model_dump())


@router.get(
    "/employment-deductions",
    response_model=EmploymentDeductionsResponse,
    summary="Get employment deductions",
)
async def get_employment_deductions(
    account_id: uuid.UUID = Query(...),
    tax_year: int = Query(...),
    db: AsyncSession = Depends(get_async_session),
):
    service = PITService(db)
    record = await service.get_employment_deductions(account_id, tax_year)
    if record is None:
        raise NotFoundException(
            "EmploymentDeductions",
            message=f"No employment deductions recorded for tax year {tax_year}",
        )
    return record


@router.patch(
    "/employment-deductions",
    response_model=EmploymentDeductionsResponse,
    summary="Update employment deductions",
)
async def update_employment_deductions(
    data: EmploymentDeductionsUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    service = PITService(db)
    updates = data.model_dump(exclude_unset=True, exclude={"account_id", "tax_year"})
    return await service.update_employment_deductions(data.account_id, data.tax_year, updates)


@router.delete(
    "/employment-deductions",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete employment deductions",
)
async def delete_employment_deductions(
    account_id: uuid.UUID = Query(...),
    tax_year: int = Query(...),
    db: AsyncSession = Depends(get_async_session),
):
    service = PITService(db)
    await service.delete_employment_deductions(account_id, tax_year)


@router.post(
    "/summary",
    response_model=PITSummaryResponse,
    summary="Annual PIT summary",
)
async def get_pit_summary(
    data: PITSummaryRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """Computed on the fly from income, declared deductions, WHT credits and payments."""
    service = PITService(db)
    summary = await service.get_pit_summary(**data.model_dump())
    return PITSummaryResponse.model_validate(summary)
