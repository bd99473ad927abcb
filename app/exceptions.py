"""
RFC 7807 Problem Details exception handling.

Every error leaves the API as a problem document that also carries the
``success: false`` / ``error`` envelope the field clients read.

See: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Optional, Dict, Any, List
from enum import Enum
from pydantic import BaseModel, Field
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import traceback
import uuid
from datetime import datetime, timezone

from app.middleware.correlation import get_request_id

logger = logging.getLogger(__name__)

PROBLEM_BASE_URL = "https://api.fieldops.local/problems"


def _get_trace_id() -> str:
    """Get trace ID from correlation context or generate a new one."""
    request_id = get_request_id()
    if request_id and request_id != "unknown":
        return request_id
    return str(uuid.uuid4())[:12]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ErrorCode(str, Enum):
    """Standardized error codes for the field operations API."""

    # Authentication & Authorization
    UNAUTHORIZED = "AUTH_001"
    FORBIDDEN = "AUTH_002"
    OUTSIDE_GEOFENCE = "AUTH_003"

    # Validation
    VALIDATION_ERROR = "VAL_001"
    INVALID_FORMAT = "VAL_002"
    MISSING_FIELD = "VAL_003"
    CONSTRAINT_VIOLATION = "VAL_004"

    # Resource
    NOT_FOUND = "RES_001"
    ALREADY_EXISTS = "RES_002"
    CONFLICT = "RES_003"

    # Business Logic
    BUSINESS_RULE_VIOLATION = "BIZ_001"
    WORKFLOW_ORDER_VIOLATION = "BIZ_002"
    OPERATION_NOT_ALLOWED = "BIZ_003"

    # Backend
    DATABASE_ERROR = "EXT_004"

    # Server
    INTERNAL_ERROR = "SRV_001"
    SERVICE_UNAVAILABLE = "SRV_002"


class ProblemDetail(BaseModel):
    """
    RFC 7807 Problem Details response schema.

    Attributes:
        success: Always false, mirrors the success envelope of normal responses
        error: Human-readable message, same text as ``detail``
        type: URI reference identifying the problem type
        title: Short, human-readable summary
        status: HTTP status code
        detail: Human-readable explanation specific to this occurrence
        instance: URI reference identifying this specific occurrence
        code: Machine-readable error code for client handling
        timestamp: ISO 8601 timestamp of when the error occurred
        trace_id: Unique identifier for tracing in logs
        errors: List of field-level validation errors (for 422)
    """

    success: bool = False
    error: str = Field(description="Human-readable error message")
    type: str = Field(
        default="about:blank",
        description="URI reference identifying the problem type"
    )
    title: str = Field(description="Short, human-readable summary of the problem")
    status: int = Field(description="HTTP status code")
    detail: str = Field(description="Human-readable explanation specific to this occurrence")
    instance: Optional[str] = Field(
        default=None,
        description="URI reference for this specific occurrence"
    )
    code: str = Field(description="Machine-readable error code")
    timestamp: str = Field(description="ISO 8601 timestamp")
    trace_id: str = Field(description="Unique trace ID for debugging")
    errors: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Field-level validation errors"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "error": "Job order with ID 123 was not found",
                "type": f"{PROBLEM_BASE_URL}/res-001",
                "title": "Not Found",
                "status": 404,
                "detail": "Job order with ID 123 was not found",
                "instance": "/api/job-orders/123/status",
                "code": "RES_001",
                "timestamp": "2026-01-29T10:30:00Z",
                "trace_id": "abc123def456"
            }
        }
    }


def _problem_type(code: ErrorCode) -> str:
    return f"{PROBLEM_BASE_URL}/{code.value.lower().replace('_', '-')}"


class FieldOpsException(HTTPException):
    """
    Base exception for the API with RFC 7807 support.

    ``extra`` is merged into the top level of the response body, which is how
    callers attach structured context such as a geofence distance.

    Usage:
        raise FieldOpsException(
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            detail="Job order not found",
        )
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        title: Optional[str] = None,
        instance: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.errors = errors
        self.extra = extra or {}
        self.trace_id = _get_trace_id()
        self.timestamp = _timestamp()

        super().__init__(status_code=status_code, detail=detail, headers=headers)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title based on status code."""
        titles = {
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            409: "Conflict",
            422: "Validation Error",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")

    def to_problem_detail(self) -> ProblemDetail:
        """Convert to RFC 7807 ProblemDetail."""
        return ProblemDetail(
            error=self.detail,
            type=_problem_type(self.code),
            title=self.title,
            status=self.status_code,
            detail=self.detail,
            instance=self.instance,
            code=self.code.value,
            timestamp=self.timestamp,
            trace_id=self.trace_id,
            errors=self.errors,
        )

    def to_content(self) -> Dict[str, Any]:
        content = self.to_problem_detail().model_dump(exclude_none=True)
        content.update(self.extra)
        return content


# Convenience exception classes

class NotFoundError(FieldOpsException):
    """Resource not found (404)."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id is not None:
            detail = f"{resource} with ID {resource_id} was not found"
        super().__init__(
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            detail=detail,
        )


class BadRequestError(FieldOpsException):
    """Malformed or incomplete request input (400)."""

    def __init__(self, detail: str, code: ErrorCode = ErrorCode.VALIDATION_ERROR, **kwargs):
        super().__init__(status_code=400, code=code, detail=detail, **kwargs)


class UnauthorizedError(FieldOpsException):
    """Authentication required (401)."""

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=401,
            code=ErrorCode.UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(FieldOpsException):
    """Permission denied (403)."""

    def __init__(self, detail: str = "Permission denied", code: ErrorCode = ErrorCode.FORBIDDEN, **kwargs):
        super().__init__(status_code=403, code=code, detail=detail, **kwargs)


class ConflictError(FieldOpsException):
    """Resource conflict (409)."""

    def __init__(self, detail: str, code: ErrorCode = ErrorCode.CONFLICT, **kwargs):
        super().__init__(status_code=409, code=code, detail=detail, **kwargs)


class ServiceUnavailableError(FieldOpsException):
    """Required backing infrastructure is absent (503)."""

    def __init__(self, detail: str, **kwargs):
        super().__init__(
            status_code=503,
            code=ErrorCode.SERVICE_UNAVAILABLE,
            detail=detail,
            **kwargs,
        )


# Exception handlers for FastAPI

def _add_cors_headers(
    response: JSONResponse,
    request: Request,
    allowed_origins: Optional[List[str]],
) -> JSONResponse:
    if allowed_origins:
        origin = request.headers.get("origin", "")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
    return response


def create_problem_response(
    status_code: int,
    code: ErrorCode,
    detail: str,
    request: Request,
    errors: Optional[List[Dict[str, Any]]] = None,
    trace_id: Optional[str] = None,
    allowed_origins: Optional[List[str]] = None,
) -> JSONResponse:
    """Create a RFC 7807 compliant JSON response with CORS headers."""
    problem = ProblemDetail(
        error=detail,
        type=_problem_type(code),
        title=FieldOpsException._default_title(status_code),
        status=status_code,
        detail=detail,
        instance=str(request.url.path),
        code=code.value,
        timestamp=_timestamp(),
        trace_id=trace_id or _get_trace_id(),
        errors=errors,
    )

    response = JSONResponse(
        status_code=status_code,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
    )
    return _add_cors_headers(response, request, allowed_origins)


async def field_ops_exception_handler(
    request: Request,
    exc: FieldOpsException,
    allowed_origins: Optional[List[str]] = None,
) -> JSONResponse:
    """Handle FieldOpsException with RFC 7807 response."""
    logger.warning(
        f"FieldOpsException: {exc.code.value} - {exc.detail}",
        extra={
            "trace_id": exc.trace_id,
            "status_code": exc.status_code,
            "path": request.url.path,
        }
    )

    if exc.instance is None:
        exc.instance = str(request.url.path)

    response = JSONResponse(
        status_code=exc.status_code,
        content=exc.to_content(),
        media_type="application/problem+json",
        headers=exc.headers,
    )
    return _add_cors_headers(response, request, allowed_origins)


def create_exception_handlers(allowed_origins: List[str]):
    """
    Create exception handlers with configured allowed origins for CORS.

    Usage in main.py:
        handlers = create_exception_handlers(allowed_origins)
        app.add_exception_handler(FieldOpsException, handlers["field_ops"])
        app.add_exception_handler(RequestValidationError, handlers["validation"])
        app.add_exception_handler(SQLAlchemyError, handlers["database"])
        app.add_exception_handler(Exception, handlers["generic"])
    """

    async def handle_field_ops_exception(request: Request, exc: FieldOpsException) -> JSONResponse:
        return await field_ops_exception_handler(request, exc, allowed_origins)

    async def handle_http_exception(
        request: Request,
        exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle standard HTTPException with RFC 7807 response."""
        code_map = {
            400: ErrorCode.VALIDATION_ERROR,
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.FORBIDDEN,
            404: ErrorCode.NOT_FOUND,
            405: ErrorCode.OPERATION_NOT_ALLOWED,
            409: ErrorCode.CONFLICT,
            422: ErrorCode.VALIDATION_ERROR,
            500: ErrorCode.INTERNAL_ERROR,
            503: ErrorCode.SERVICE_UNAVAILABLE,
        }

        code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)

        response = create_problem_response(
            status_code=exc.status_code,
            code=code,
            detail=str(exc.detail),
            request=request,
            allowed_origins=allowed_origins,
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    async def handle_validation_exception(
        request: Request,
        exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic validation errors with field-level details."""
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            })

        return create_problem_response(
            status_code=422,
            code=ErrorCode.VALIDATION_ERROR,
            detail="Request validation failed",
            request=request,
            errors=errors,
            allowed_origins=allowed_origins,
        )

    async def handle_database_exception(
        request: Request,
        exc: SQLAlchemyError
    ) -> JSONResponse:
        """Backend failures surface as 500 with the driver message."""
        from app.config import settings

        trace_id = _get_trace_id()
        message = str(getattr(exc, "orig", None) or exc)
        logger.error(
            f"Database error on {request.method} {request.url.path}: {message}",
            extra={"trace_id": trace_id, "path": request.url.path},
        )
        detail = message if settings.EXPOSE_BACKEND_ERRORS else "A database error occurred"

        return create_problem_response(
            status_code=500,
            code=ErrorCode.DATABASE_ERROR,
            detail=detail,
            request=request,
            trace_id=trace_id,
            allowed_origins=allowed_origins,
        )

    async def handle_generic_exception(
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions with RFC 7807 response."""
        from app.config import settings

        trace_id = _get_trace_id()

        logger.error(
            f"Unhandled exception: {exc}",
            extra={"trace_id": trace_id, "path": request.url.path},
        )
        logger.error(traceback.format_exc())

        detail = str(exc) if settings.EXPOSE_BACKEND_ERRORS else "An unexpected error occurred"

        return create_problem_response(
            status_code=500,
            code=ErrorCode.INTERNAL_ERROR,
            detail=detail,
            request=request,
            trace_id=trace_id,
            allowed_origins=allowed_origins,
        )

    return {
        "field_ops": handle_field_ops_exception,
        "http": handle_http_exception,
        "validation": handle_validation_exception,
        "database": handle_database_exception,
        "generic": handle_generic_exception,
    }
