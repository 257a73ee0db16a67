"""
Error Handling Module for TaxBridge

Centralized error handling with:
- Custom exception hierarchy (validation, not found, business rule, consistency)
- Standardized JSON error responses
- Error logging
- Nigeria Tax Act 2025 specific validation errors
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError, DataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taxbridge.config import settings

# Configure logging
logger = logging.getLogger("taxbridge.errors")

TAX_ACT_NAME = "Nigeria Tax Act 2025"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_TAX_YEAR = "INVALID_TAX_YEAR"
    INVALID_TAX_PERIOD = "INVALID_TAX_PERIOD"
    MISSING_ELIGIBILITY_FLAG = "MISSING_ELIGIBILITY_FLAG"
    RENT_RELIEF_MISMATCH = "RENT_RELIEF_MISMATCH"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"
    SCHEDULE_NOT_FOUND = "SCHEDULE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Business Logic Errors (422)
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    NO_ACTIVE_EMPLOYEES = "NO_ACTIVE_EMPLOYEES"
    PAYROLL_PERIOD_LOCKED = "PAYROLL_PERIOD_LOCKED"
    PLAN_FEATURE_REQUIRED = "PLAN_FEATURE_REQUIRED"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"

    # Consistency Errors (409)
    CONSISTENCY_ERROR = "CONSISTENCY_ERROR"

    # Rate Limiting (429)
    RATE_LIMITED = "RATE_LIMITED"

    # External Service Errors (502/503)
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"

    # Database Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = _utc_timestamp()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Base validation exception"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            field=field,
        )


class InvalidTaxYearException(ValidationException):
    """Tax year outside the supported ruleset window"""

    def __init__(self, tax_year: Any, field: str = "tax_year"):
        super().__init__(
            message=(
                f"Invalid tax year: {tax_year}. This application only supports tax years "
                f"{settings.min_tax_year}-{settings.max_tax_year} per {TAX_ACT_NAME}."
            ),
            field=field,
            code=ErrorCode.INVALID_TAX_YEAR,
            details={
                "provided": tax_year,
                "minimum": settings.min_tax_year,
                "maximum": settings.max_tax_year,
                "legal_basis": TAX_ACT_NAME,
            },
        )


class InvalidTaxPeriodException(ValidationException):
    """Payroll month outside 1-12"""

    def __init__(self, month: Any):
        super().__init__(
            message=f"Invalid month: {month}. Month must be between 1 and 12.",
            field="month",
            code=ErrorCode.INVALID_TAX_PERIOD,
            details={"provided": month},
        )


class InvalidAmountException(ValidationException):
    """Invalid monetary amount"""

    def __init__(self, amount: Any, field: str = "amount", message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid amount for {field}: {amount}. Amount cannot be negative.",
            field=field,
            code=ErrorCode.INVALID_AMOUNT,
            details={"provided_amount": str(amount)},
        )


class MissingEligibilityFlagException(ValidationException):
    """Employee benefit flag was never set"""

    def __init__(self, flag: str, employee_id: Optional[Union[str, UUID]] = None):
        details: Dict[str, Any] = {"flag": flag}
        if employee_id:
            details["employee_id"] = str(employee_id)
        super().__init__(
            message=(
                f"Employee benefit flag '{flag}' is not set. Every employee must explicitly "
                f"state has_pension, has_nhf and has_nhis before payroll can be computed."
            ),
            field=flag,
            code=ErrorCode.MISSING_ELIGIBILITY_FLAG,
            details=details,
        )


class RentReliefMismatchException(ValidationException):
    """Supplied rent relief does not match the statutory formula"""

    def __init__(self, provided: Decimal, expected: Decimal, annual_rent: Decimal):
        super().__init__(
            message=(
                f"annual_rent_relief must be min(annual_rent x 20%, ₦500,000). "
                f"Expected {expected:,.2f} for rent {annual_rent:,.2f}, received {provided:,.2f}."
            ),
            field="annual_rent_relief",
            code=ErrorCode.RENT_RELIEF_MISMATCH,
            details={
                "provided": str(provided),
                "expected": str(expected),
                "annual_rent": str(annual_rent),
            },
        )


class InvalidStatusTransitionException(ValidationException):
    """Unrecognized or disallowed payroll schedule status"""

    def __init__(self, new_status: Any, current_status: Optional[str] = None, allowed: Optional[list] = None):
        details: Dict[str, Any] = {"requested_status": str(new_status)}
        if current_status:
            details["current_status"] = current_status
        if allowed is not None:
            details["allowed_statuses"] = allowed
        if current_status:
            message = f"Cannot change payroll schedule status from '{current_status}' to '{new_status}'."
        else:
            message = f"Invalid payroll schedule status: '{new_status}'."
        super().__init__(
            message=message,
            field="status",
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            details=details,
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class EmployeeNotFoundException(NotFoundException):
    """Employee not found"""

    def __init__(self, employee_id: Union[str, UUID]):
        super().__init__(
            resource_type="Employee",
            resource_id=employee_id,
            code=ErrorCode.EMPLOYEE_NOT_FOUND,
        )


class ScheduleNotFoundException(NotFoundException):
    """Payroll schedule not found"""

    def __init__(self, schedule_id: Union[str, UUID]):
        super().__init__(
            resource_type="PayrollSchedule",
            resource_id=schedule_id,
            code=ErrorCode.SCHEDULE_NOT_FOUND,
        )


# ============================================================================
# Business Logic Exceptions
# ============================================================================

class BusinessRuleException(AppException):
    """Business rule violation exception"""

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if rule:
            _details["violated_rule"] = rule
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=_details,
        )


class NoActiveEmployeesException(BusinessRuleException):
    """Payroll requested for an entity with no active employees"""

    def __init__(self, total: int, active: int, inactive: int, undefined_status: int):
        self.total = total
        self.active = active
        self.inactive = inactive
        self.undefined_status = undefined_status
        super().__init__(
            message=(
                f"No active employees found. Total: {total}, Active: {active}, "
                f"Inactive: {inactive}, Undefined status: {undefined_status}. "
                f"Activate at least one employee before generating payroll."
            ),
            rule="ACTIVE_EMPLOYEES_REQUIRED",
            code=ErrorCode.NO_ACTIVE_EMPLOYEES,
            details={
                "total": total,
                "active": active,
                "inactive": inactive,
                "undefined_status": undefined_status,
            },
        )


class PayrollPeriodLockedException(BusinessRuleException):
    """Payroll regenerated for a period that has left draft"""

    def __init__(self, month: int, year: int, status: str):
        super().__init__(
            message=(
                f"Payroll for {month}/{year} is {status} and can no longer be regenerated. "
                f"Move the schedule back to draft first."
            ),
            rule="DRAFT_PERIODS_ONLY",
            code=ErrorCode.PAYROLL_PERIOD_LOCKED,
            details={"month": month, "year": year, "status": status},
        )


class PlanFeatureRequiredException(BusinessRuleException):
    """Feature is not included in the current subscription plan"""

    def __init__(self, feature: str, current_plan: str, required_plan: str, required_price: Decimal):
        super().__init__(
            message=(
                f"{feature.replace('_', ' ').capitalize()} requires the {required_plan} plan "
                f"(₦{required_price:,.0f}/month). Your current plan is {current_plan}."
            ),
            rule="PLAN_FEATURE_GATE",
            code=ErrorCode.PLAN_FEATURE_REQUIRED,
            details={
                "feature": feature,
                "current_plan": current_plan,
                "required_plan": required_plan,
                "required_plan_price": str(required_price),
            },
        )


class AlreadyProcessedException(BusinessRuleException):
    """Operation was already applied"""

    def __init__(self, resource_type: str, reference: str):
        super().__init__(
            message=f"{resource_type} '{reference}' has already been processed",
            rule="PROCESS_ONCE",
            code=ErrorCode.ALREADY_PROCESSED,
            details={"resource_type": resource_type, "reference": reference},
        )


# ============================================================================
# Consistency Exceptions
# ============================================================================

class ConsistencyException(AppException):
    """Persisted aggregate would diverge from its constituent records"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.CONSISTENCY_ERROR,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Create a standardized error response"""
    content = {
        "detail": {
            "code": code.value,
            "message": message,
            "timestamp": _utc_timestamp(),
        }
    }
    if field:
        content["detail"]["field"] = field
    if details:
        content["detail"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"AppException: {exc.code.value} - {exc.message}",
        extra={
            "code": exc.code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
        exc_info=exc.original_error,
    )

    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        field=exc.field,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTPException"""
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
        409: ErrorCode.RESOURCE_CONFLICT,
        422: ErrorCode.VALIDATION_ERROR,
        429: ErrorCode.RATE_LIMITED,
        500: ErrorCode.INTERNAL_ERROR,
        502: ErrorCode.EXTERNAL_SERVICE_ERROR,
        503: ErrorCode.EXTERNAL_SERVICE_ERROR,
    }

    error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTPException: {exc.status_code} - {message}",
        extra={"path": request.url.path, "method": request.method},
    )

    return create_error_response(
        code=error_code,
        message=message,
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"ValidationError: {len(errors)} validation errors",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )

    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy errors"""
    error_message = "A database error occurred"
    error_code = ErrorCode.DATABASE_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, IntegrityError):
        error_message = "Data integrity constraint violated"
        error_code = ErrorCode.DATA_INTEGRITY_ERROR
        error_str = str(exc.orig).lower() if exc.orig else ""
        if "unique" in error_str or "duplicate" in error_str:
            error_message = "A record with this value already exists"
            error_code = ErrorCode.DUPLICATE_ENTRY
            status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, OperationalError):
        error_message = "Database operation failed"
        error_code = ErrorCode.CONNECTION_ERROR
    elif isinstance(exc, DataError):
        error_message = "Invalid data format for database"
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    logger.error(
        f"SQLAlchemyError: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=error_code,
        message=error_message,
        status_code=status_code,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.critical(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    # Internal error details stay in the logs
    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# ============================================================================
# Utility Functions
# ============================================================================

def validate_tax_year(tax_year: Any, field: str = "tax_year") -> int:
    """Reject any tax year outside the Nigeria Tax Act 2025 window. Never clamps."""
    if isinstance(tax_year, bool) or not isinstance(tax_year, int):
        raise InvalidTaxYearException(tax_year, field)
    if tax_year < settings.min_tax_year or tax_year > settings.max_tax_year:
        raise InvalidTaxYearException(tax_year, field)
    return tax_year


def validate_month(month: Any) -> int:
    """Validate a payroll month (1-12)"""
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidTaxPeriodException(month)
    return month


def validate_amount(amount: Any, field: str = "amount", allow_zero: bool = True) -> Decimal:
    """Validate a monetary amount. Negative values are rejected, never clamped."""
    if isinstance(amount, bool) or amount is None:
        raise InvalidAmountException(amount, field)
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidAmountException(amount, field)
    if not value.is_finite() or value < 0 or (not allow_zero and value == 0):
        raise InvalidAmountException(amount, field)
    return value


# Export all exceptions for easy importing
__all__ = [
    # Base
    "AppException",
    "ErrorCode",

    # Validation
    "ValidationException",
    "InvalidTaxYearException",
    "InvalidTaxPeriodException",
    "InvalidAmountException",
    "MissingEligibilityFlagException",
    "RentReliefMismatchException",
    "InvalidStatusTransitionException",

    # Resource
    "NotFoundException",
    "EmployeeNotFoundException",
    "ScheduleNotFoundException",

    # Business Logic
    "BusinessRuleException",
    "NoActiveEmployeesException",
    "PayrollPeriodLockedException",
    "PlanFeatureRequiredException",
    "AlreadyProcessedException",

    # Consistency
    "ConsistencyException",

    # Handlers
    "setup_exception_handlers",
    "create_error_response",

    # Utilities
    "validate_tax_year",
    "validate_month",
    "validate_amount",
]
