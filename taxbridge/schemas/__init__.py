"""
TaxBridge - Schemas Package

Pydantic schemas for request/response validation.
"""

from taxbridge.schemas.tax import (
    BandBreakdown,
    PAYERequest,
    PAYEResponse,
    CITRequest,
    CITResponse,
    DevelopmentLevyRateResponse,
    VATObligationRequest,
    VATObligationResponse,
    VATRequest,
    VATResponse,
    WHTRequest,
    WHTResponse,
)
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
from taxbridge.schemas.pit import (
    EmploymentDeductionsUpsert,
    EmploymentDeductionsUpdate,
    EmploymentDeductionsResponse,
    PITSummaryRequest,
    PITSummaryResponse,
)
from taxbridge.schemas.subscription import (
    SubscriptionResponse,
    UpgradeRequest,
    UpgradeInfoResponse,
    InitializePaymentRequest,
    InitializePaymentResponse,
    ActivatePaymentRequest,
)
