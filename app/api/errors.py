from __future__ import annotations

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.access.errors import (
    AccessDeniedError,
    AccessError,
    CodeAlreadyUsedError,
    CodeExpiredError,
    CodeNotFoundError,
    CodePoolHasNoUnusedCodesError,
    CodePoolHasUsedCodesError,
    CodePoolNotFoundError,
    CodeValidationError,
    ContentNotFoundError,
    DuplicateRedemptionInPoolError,
    EntitlementTargetNotFoundError,
    RedemptionConflictError,
    StudentUnauthorizedError,
)
from app.api.i18n import get_text, resolve_language

logger = structlog.get_logger(__name__)


def error_detail(request: Request, code: str) -> dict[str, str]:
    return {
        "code": code,
        "message": get_text(f"error.{code}", language=resolve_language(request)),
    }


def http_error(request: Request, status_code: int, code: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=error_detail(request, code))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(error.get("msg", "")),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": {**error_detail(request, "E_VALIDATION"), "errors": errors}},
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_request_error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": error_detail(request, "E_INTERNAL")},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)


ACCESS_ERROR_STATUS: tuple[tuple[type[AccessError], int, str], ...] = (
    (EntitlementTargetNotFoundError, 400, "E_ENTITLEMENT_TARGET_NOT_FOUND"),
    (CodeValidationError, 400, "E_VALIDATION"),
    (CodeNotFoundError, 404, "E_CODE_NOT_FOUND"),
    (CodePoolNotFoundError, 404, "E_CODE_POOL_NOT_FOUND"),
    (ContentNotFoundError, 404, "E_NOT_FOUND"),
    (CodeAlreadyUsedError, 400, "E_CODE_ALREADY_USED"),
    (CodeExpiredError, 400, "E_CODE_EXPIRED"),
    (DuplicateRedemptionInPoolError, 409, "E_CODE_POOL_ALREADY_REDEEMED"),
    (StudentUnauthorizedError, 401, "E_UNAUTHORIZED"),
    (RedemptionConflictError, 409, "E_REDEMPTION_CONFLICT"),
    (CodePoolHasUsedCodesError, 400, "E_CODE_POOL_HAS_USED_CODES"),
    (CodePoolHasNoUnusedCodesError, 400, "E_CODE_POOL_NO_UNUSED_CODES"),
    (AccessDeniedError, 403, "E_ACCESS_DENIED"),
)


def access_error_code(exc: AccessError) -> tuple[int, str]:
    for error_type, status_code, code in ACCESS_ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code, code
    return 500, "E_INTERNAL"


def access_http_error(request: Request, exc: AccessError) -> HTTPException:
    status_code, code = access_error_code(exc)
    detail: dict[str, object] = {**error_detail(request, code)}
    if isinstance(exc, CodeValidationError) and exc.field:
        detail["errors"] = [{"field": exc.field, "message": str(exc)}]
    return HTTPException(status_code=status_code, detail=detail)
