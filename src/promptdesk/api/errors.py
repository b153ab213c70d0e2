"""
Error payloads -- every failure leaves the API in one shape:

    {"error": {"code", "message", "details"?, "timestamp", "requestId"?}}

Internal error detail is only returned in development-like environments;
it is always logged.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import ErrorKind, PromptDeskError, ServiceError, to_service_error

logger = logging.getLogger(__name__)


def request_id_of(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def error_payload(error: ServiceError, request_id: str | None, expose_internal: bool) -> dict:
    body = {
        "code": error.kind.value,
        "message": error.message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if error.details and (error.kind != ErrorKind.INTERNAL_ERROR or expose_internal):
        body["details"] = error.details
    if request_id:
        body["requestId"] = request_id
    return {"error": body}


def error_response(
    request: Request, error: ServiceError, headers: dict[str, str] | None = None
) -> JSONResponse:
    context = getattr(request.app.state, "context", None)
    expose = context.settings.is_development if context is not None else False
    merged = dict(getattr(request.state, "rate_limit_headers", {}) or {})
    merged.update(headers or {})
    return JSONResponse(
        status_code=error.status_code,
        content=error_payload(error, request_id_of(request), expose),
        headers=merged or None,
    )


async def _domain_error(request: Request, exc: PromptDeskError) -> JSONResponse:
    return error_response(request, exc.error)


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    logger.info(f"[API] [{request_id_of(request)}] Invalid input: {[f['field'] for f in fields]}")
    return error_response(
        request, ServiceError(ErrorKind.INVALID_INPUT, details={"errors": fields})
    )


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"[API] [{request_id_of(request)}] Unhandled {type(exc).__name__}")
    return error_response(request, to_service_error(exc))


def install_error_handlers(application: FastAPI) -> None:
    application.add_exception_handler(PromptDeskError, _domain_error)
    application.add_exception_handler(RequestValidationError, _request_validation_error)
    application.add_exception_handler(Exception, _unhandled_error)
