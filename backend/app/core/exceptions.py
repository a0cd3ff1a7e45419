"""Domain errors raised by the service layer.

Services raise these instead of returning error dicts; the FastAPI app maps
each class to an HTTP status in ``register_exception_handlers``.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class DomainError(Exception):
    """Base class for kitchen domain errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context: Dict[str, Any] = context
        super().__init__(message)


class ValidationError(DomainError):
    """Malformed input: bad quantity, missing field, invalid enum value."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidQuantity(ValidationError):
    """A quantity outside the range an operation accepts."""


class NotFound(DomainError):
    """Referenced entity id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: Any, **context: Any):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=entity_id, **context)


class InvalidTransition(DomainError):
    """Requested order status is not reachable from the current one."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current: str, requested: str, **context: Any):
        super().__init__(
            f"Cannot move order from '{current}' to '{requested}'",
            current=current, requested=requested, **context,
        )


class ConcurrentModification(DomainError):
    """The record changed between read and write; retry with fresh state."""

    status_code = status.HTTP_409_CONFLICT


class StorageError(DomainError):
    """The record store failed; the transaction has been rolled back."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({
            "message": exc.message,
            "error": type(exc).__name__,
            "context": exc.context,
        }),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer schema failures with 400 rather than FastAPI's default 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"message": "Validation error", "errors": exc.errors()}),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
