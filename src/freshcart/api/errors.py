"""HTTP mapping for engine errors.

Installed on top of Protean's FastAPI handlers so every engine error reaches
the client as ``{"error": ..., "code": ...}`` with a status that tells a
conflict with current state (409) apart from malformed input (400).
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from freshcart.api.schemas import ErrorResponse
from freshcart.errors import (
    InvalidTransition,
    PermissionDenied,
    RefundExceedsOrderTotal,
    SlotFull,
    SlotUnavailable,
)

logger = structlog.get_logger(__name__)

_CONFLICT_ERRORS = (InvalidTransition, SlotFull, SlotUnavailable, RefundExceedsOrderTotal)


def _messages(exc: Exception):
    return getattr(exc, "messages", None) or str(exc)


def _error_response(status_code: int, error, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=error, code=code).model_dump())


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    code = getattr(exc, "code", "validation_error")
    status_code = 409 if isinstance(exc, _CONFLICT_ERRORS) else 400
    logger.info("Request rejected", path=request.url.path, code=code, status_code=status_code)
    return _error_response(status_code, _messages(exc), code)


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return _error_response(404, _messages(exc), "not_found")


async def _permission_denied(request: Request, exc: PermissionDenied) -> JSONResponse:
    logger.warning("Permission denied", path=request.url.path, actor_role=exc.actor_role)
    return _error_response(403, exc.message, exc.code)


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(ValidationError, _validation_error)
    for error_kind in _CONFLICT_ERRORS:
        app.add_exception_handler(error_kind, _validation_error)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(PermissionDenied, _permission_denied)
