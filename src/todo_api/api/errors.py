"""Exception handlers that render every failure as ``{"error": "..."}``."""

import psycopg
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()

VALUE_ERROR_PREFIX = "Value error, "
# Location prefixes FastAPI adds in front of the field name.
REQUEST_PARTS = ("body", "query", "path", "header", "cookie")


def _field_name(loc) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in REQUEST_PARTS:
        parts = parts[1:]
    return ".".join(parts)


def format_validation_errors(errors) -> str:
    messages = []
    for error in errors:
        msg = error.get("msg", "Invalid value").removeprefix(VALUE_ERROR_PREFIX)
        field = _field_name(error.get("loc", ()))
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = exc.detail
    elif exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        content = {
            "error": "Route not found",
            "message": f"The endpoint {request.method} {request.url.path} does not exist",
        }
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        message = "Invalid JSON in request body"
    else:
        message = format_validation_errors(errors)

    logger.warning(
        "request_validation_failed",
        path=request.url.path,
        method=request.method,
        error=message,
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def handle_database_error(request: Request, exc: psycopg.Error) -> JSONResponse:
    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(psycopg.Error, handle_database_error)
