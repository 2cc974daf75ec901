"""
Error Handling Module for FieldOps

This module provides centralized error handling with:
- Custom exception hierarchy
- Standardized error responses
- Error logging
- Input validation helpers for payroll and task operations
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional
import logging
import re

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DataError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging
logger = logging.getLogger("fieldops.errors")


MONTH_PATTERN = re.compile(r"(\d{4})-(0[1-9]|1[0-2])")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_ID = "INVALID_ID"
    INVALID_MONTH = "INVALID_MONTH"
    INVALID_AMOUNT = "INVALID_AMOUNT"

    # Authentication/Authorization Errors (401/403)
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    PAYROLL_SLIP_NOT_FOUND = "PAYROLL_SLIP_NOT_FOUND"
    EXPENSE_NOT_FOUND = "EXPENSE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    DUPLICATE_PAYROLL_SLIP = "DUPLICATE_PAYROLL_SLIP"
    PAYROLL_MANAGED_EXPENSE = "PAYROLL_MANAGED_EXPENSE"

    # Database Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    TRANSACTION_ERROR = "TRANSACTION_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


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
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
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


class InvalidIdException(ValidationException):
    """Identifier is not a positive integer"""

    def __init__(self, value: Any, field: str = "id"):
        super().__init__(
            message=f"Invalid {field}: {value}. Expected a positive integer.",
            field=field,
            code=ErrorCode.INVALID_ID,
            details={"provided_value": str(value)},
        )


class InvalidMonthException(ValidationException):
    """Month token is not YYYY-MM"""

    def __init__(self, month: Any, field: str = "month"):
        super().__init__(
            message=f"Invalid month: {month}. Expected format YYYY-MM.",
            field=field,
            code=ErrorCode.INVALID_MONTH,
            details={"provided_month": str(month), "expected_format": "YYYY-MM"},
        )


class InvalidAmountException(ValidationException):
    """Invalid monetary amount"""

    def __init__(self, amount: Any, field: str = "amount", message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid amount: {amount}. Amount must be a positive number.",
            field=field,
            code=ErrorCode.INVALID_AMOUNT,
            details={"provided_amount": str(amount)},
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Any] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id is not None:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class UserNotFoundException(NotFoundException):
    """Employee / user not found"""

    def __init__(self, user_id: int):
        super().__init__(
            resource_type="User",
            resource_id=user_id,
            code=ErrorCode.USER_NOT_FOUND,
        )


class TaskNotFoundException(NotFoundException):
    """Task not found"""

    def __init__(self, task_id: int):
        super().__init__(
            resource_type="Task",
            resource_id=task_id,
            code=ErrorCode.TASK_NOT_FOUND,
        )


class TaskPaymentNotFoundException(NotFoundException):
    """Payment entry not found on the given task"""

    def __init__(self, task_id: int, payment_id: int):
        super().__init__(
            resource_type="TaskPayment",
            resource_id=payment_id,
            message=f"Payment '{payment_id}' not found on task '{task_id}'",
            code=ErrorCode.PAYMENT_NOT_FOUND,
        )


class PayrollSlipNotFoundException(NotFoundException):
    """Payroll slip not found"""

    def __init__(self, slip_id: int):
        super().__init__(
            resource_type="PayrollSlip",
            resource_id=slip_id,
            code=ErrorCode.PAYROLL_SLIP_NOT_FOUND,
        )


class ExpenseNotFoundException(NotFoundException):
    """Expense row not found"""

    def __init__(self, expense_id: int):
        super().__init__(
            resource_type="Expense",
            resource_id=expense_id,
            code=ErrorCode.EXPENSE_NOT_FOUND,
        )


class ConflictException(AppException):
    """Resource conflict exception"""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if resource_type:
            _details["resource_type"] = resource_type
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=_details,
        )


class DuplicatePayrollSlipException(ConflictException):
    """
    A slip already exists for this employee and month.

    Carries the existing slip so callers can redirect to it.
    """

    def __init__(self, user_id: int, month: str, existing_id: int, existing_slip_no: Optional[str]):
        self.user_id = user_id
        self.month = month
        self.existing_id = existing_id
        self.existing_slip_no = existing_slip_no
        super().__init__(
            message=f"Payroll slip already exists for user {user_id} and month {month}",
            resource_type="PayrollSlip",
            code=ErrorCode.DUPLICATE_PAYROLL_SLIP,
            details={
                "userId": user_id,
                "month": month,
                "id": existing_id,
                "slipNo": existing_slip_no,
            },
        )


class PayrollManagedExpenseException(ConflictException):
    """Expense row belongs to a payroll slip and only changes with it"""

    def __init__(self, expense_id: int, payroll_slip_id: int):
        self.expense_id = expense_id
        self.payroll_slip_id = payroll_slip_id
        super().__init__(
            message=(
                f"Expense {expense_id} is maintained by payroll slip {payroll_slip_id}; "
                "change the slip's paid status instead"
            ),
            resource_type="Expense",
            code=ErrorCode.PAYROLL_MANAGED_EXPENSE,
            details={"id": expense_id, "payrollSlipId": payroll_slip_id},
        )


# ============================================================================
# Database Exceptions
# ============================================================================

class DatabaseException(AppException):
    """Database error exception"""

    def __init__(
        self,
        message: str = "A database error occurred",
        code: ErrorCode = ErrorCode.DATABASE_ERROR,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            original_error=original_error,
        )


class TransactionFailureException(DatabaseException):
    """
    A multi-statement operation failed and was rolled back.

    The client only sees a generic message; `operation` and `context`
    are kept for the log record.
    """

    def __init__(
        self,
        operation: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        self.operation = operation
        self.context = context or {}
        super().__init__(
            message="The operation could not be completed. No changes were saved.",
            code=ErrorCode.TRANSACTION_ERROR,
            original_error=original_error,
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
        "ok": False,
        "error": {
            "code": code.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
    }
    if field:
        content["error"]["field"] = field
    if details:
        content["error"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    log = logger.error if exc.status_code >= 500 else logger.info
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
    # Map status codes to error codes
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
        409: ErrorCode.RESOURCE_CONFLICT,
        422: ErrorCode.VALIDATION_ERROR,
        500: ErrorCode.INTERNAL_ERROR,
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
    """Handle SQLAlchemy errors that escaped the service layer"""
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
        elif "foreign key" in error_str:
            error_message = "Referenced record does not exist"
            status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
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
# Validation Helpers
# ============================================================================

def validate_positive_id(value: Any, field: str = "id") -> int:
    """Validate that an identifier is a positive integer"""
    if isinstance(value, bool):
        raise InvalidIdException(value, field)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidIdException(value, field)
    if number <= 0 or str(number) != str(value).strip():
        raise InvalidIdException(value, field)
    return number


def validate_month(month: Any, field: str = "month") -> str:
    """Validate a YYYY-MM month token"""
    if not isinstance(month, str) or not MONTH_PATTERN.fullmatch(month):
        raise InvalidMonthException(month, field)
    return month


def validate_amount(amount: Any, field: str = "amount", allow_zero: bool = False) -> Decimal:
    """Validate monetary amount"""
    if isinstance(amount, bool):
        raise InvalidAmountException(amount, field)
    try:
        value = Decimal(str(amount))
    except (TypeError, ValueError, InvalidOperation):
        raise InvalidAmountException(amount, field)
    if not value.is_finite() or value < 0 or (not allow_zero and value == 0):
        raise InvalidAmountException(amount, field)
    return value


__all__ = [
    # Base
    "AppException",
    "ErrorCode",

    # Validation
    "ValidationException",
    "InvalidIdException",
    "InvalidMonthException",
    "InvalidAmountException",

    # Resource
    "NotFoundException",
    "UserNotFoundException",
    "TaskNotFoundException",
    "TaskPaymentNotFoundException",
    "PayrollSlipNotFoundException",
    "ExpenseNotFoundException",
    "ConflictException",
    "DuplicatePayrollSlipException",
    "PayrollManagedExpenseException",

    # Database
    "DatabaseException",
    "TransactionFailureException",

    # Handlers
    "setup_exception_handlers",
    "create_error_response",

    # Utilities
    "validate_positive_id",
    "validate_month",
    "validate_amount",
]
