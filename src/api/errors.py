"""
Exception → JSON error response mapping.

Every error leaves the API as {"error": {"code", "message", "fieldErrors"?}}.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from src.db.errors import ConstraintViolation, DuplicateError, PhotoLimitExceeded
from src.log import get_logger
from src.utils.errors import NotFoundError, PreconditionFailed, ProviderError, ProviderNotConfigured

logger = get_logger(__name__)

_STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    500: "internal_error",
    502: "provider_error",
    503: "provider_not_configured",
}


def error_response(status: int, code: str, message: str, field_errors=None) -> JSONResponse:
    body = {"code": code, "message": message}
    if field_errors:
        body["fieldErrors"] = field_errors
    return JSONResponse(status_code=status, content={"error": body})


async def _http_exception(_request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, _STATUS_CODES.get(exc.status_code, "error"), str(exc.detail))


async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field_errors[".".join(loc) or "body"] = err.get("msg", "invalid")
    return error_response(400, "validation_error", "Invalid request", field_errors)


async def _constraint_violation(_request: Request, exc: ConstraintViolation) -> JSONResponse:
    status = 409 if isinstance(exc, (DuplicateError, PhotoLimitExceeded)) else 400
    return error_response(status, exc.code, exc.message)


async def _not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
    return error_response(404, exc.code, "Not found")


async def _precondition_failed(_request: Request, exc: PreconditionFailed) -> JSONResponse:
    return error_response(409, exc.code, str(exc))


async def _provider_not_configured(_request: Request, exc: ProviderNotConfigured) -> JSONResponse:
    return error_response(503, exc.code, str(exc))


async def _provider_error(_request: Request, exc: ProviderError) -> JSONResponse:
    logger.warning("provider error: %s", exc)
    return error_response(502, exc.code, str(exc))


async def _value_error(_request: Request, exc: ValueError) -> JSONResponse:
    return error_response(400, "bad_request", str(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, _http_exception)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(ConstraintViolation, _constraint_violation)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(PreconditionFailed, _precondition_failed)
    app.add_exception_handler(ProviderNotConfigured, _provider_not_configured)
    app.add_exception_handler(ProviderError, _provider_error)
    app.add_exception_handler(ValueError, _value_error)
