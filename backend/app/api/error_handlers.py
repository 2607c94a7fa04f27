"""Error Handlers — every failure leaves the API in the CaiError envelope.

Invariants:
    - CaiError → its own http_status and to_response() body
    - Body/query validation failures → 400 VALIDATION_ERROR listing each bad field
    - Anything else → 500 INTERNAL_ERROR; the exception text stays in the logs
    - 4xx are logged as warnings, 5xx as errors (401/403 noise stays out of alerts)

Design Decisions:
    - The OAuth callback answers with its own {"error": ...} bodies and redirects,
      so it catches its failures before they reach these handlers
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import CaiError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)


def _envelope(code: str, message: str, category: ErrorCategory, **extra) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": (
                ErrorSeverity.CRITICAL if category is ErrorCategory.INTERNAL
                else ErrorSeverity.ERROR
            ).value,
            **extra,
        },
    }


async def handle_cai_error(request: Request, exc: CaiError) -> JSONResponse:
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "status_code": exc.http_status,
            "user_id": exc.context.user_id,
            "case_study_id": exc.context.case_study_id,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    fields = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        f"Rejected request to {request.url.path}: "
        f"{', '.join(f['field'] for f in fields)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope(
            "VALIDATION_ERROR", "Invalid request data", ErrorCategory.VALIDATION,
            details=fields,
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred", ErrorCategory.INTERNAL,
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CaiError, handle_cai_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
