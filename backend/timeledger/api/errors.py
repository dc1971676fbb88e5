"""
Error Handlers

Maps domain errors onto HTTP responses. Bodies use the same
"detail" key as HTTPException, plus "details" when there are any.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import TimeLedgerError

logger = logging.getLogger(__name__)


def _error_body(message: str, details=None) -> dict:
    body = {"detail": message}
    if details is not None:
        body["details"] = details
    return body


async def handle_domain_error(request: Request, exc: TimeLedgerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.details))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=_error_body("Invalid request", details))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TimeLedgerError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
