"""Exception handlers: FixlifyException and framework errors to JSON bodies.

Every body has the shape {"error", "message", "details"?, "requestId"?}.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fixlify.core.config import get_settings
from fixlify.domain.exceptions import FixlifyException

logger = logging.getLogger(__name__)

STATUS_BY_ERROR_CODE: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "RESOURCE_NOT_FOUND": 404,
    "WORKFLOW_NOT_FOUND": 404,
    "ENTITY_NOT_FOUND": 404,
    "WORKFLOW_INACTIVE": 409,
    "WORKFLOW_NOT_RUNNABLE": 409,
    "EXECUTION_ALREADY_FINALIZED": 409,
    "MISSING_RECIPIENT": 422,
    "STEP_FAILED": 422,
    "DISPATCH_FAILED": 502,
    "SERVICE_UNAVAILABLE": 503,
}


def status_for(error_code: str) -> int:
    return STATUS_BY_ERROR_CODE.get(error_code, 400)


def _body(request: Request, content: dict) -> dict:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        content["requestId"] = request_id
    return content


async def _fixlify_exception_handler(request: Request, exc: FixlifyException) -> JSONResponse:
    status = status_for(exc.error_code)
    log = logger.error if status >= 500 else logger.info
    log("%s %s -> %d %s: %s", request.method, request.url.path, status, exc.error_code, exc.message)
    return JSONResponse(status_code=status, content=_body(request, exc.to_dict()))


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=_body(
            request,
            {
                "error": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": exc.errors(),
            },
        ),
    )


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(request, {"error": "HTTP_ERROR", "message": exc.detail}),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500; the exception text is only exposed in debug mode."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content=_body(request, {"error": "INTERNAL_ERROR", "message": message}),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FixlifyException, _fixlify_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
