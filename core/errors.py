# core/errors.py
"""
Domain error taxonomy shared by every service module.

Services raise ServiceError tagged with an ErrorKind; views translate it into
an HTTPException through ``as_http_exception`` so each kind maps to exactly
one status code.
"""
from enum import Enum

from fastapi import HTTPException, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def default_code(self) -> str:
        return _DEFAULT_CODES[self]


_STATUS_CODES = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_TRANSITION: 422,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
}

_DEFAULT_CODES = {
    ErrorKind.NOT_FOUND: "NOT_FOUND",
    ErrorKind.CONFLICT: "CONFLICT",
    ErrorKind.INVALID_TRANSITION: "INVALID_STATUS_TRANSITION",
    ErrorKind.UNAUTHORIZED: "UNAUTHORIZED",
    ErrorKind.FORBIDDEN: "FORBIDDEN",
    ErrorKind.VALIDATION_ERROR: "VALIDATION_ERROR",
    ErrorKind.RATE_LIMITED: "RATE_LIMITED",
}


class ServiceError(Exception):
    """Raised by service code; carries a kind and a machine-readable code."""

    def __init__(self, kind: ErrorKind, message: str, code: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code or kind.default_code

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


def not_found(what: str) -> ServiceError:
    return ServiceError(ErrorKind.NOT_FOUND, f"{what} not found")


def as_http_exception(exc: ServiceError) -> HTTPException:
    """Translate a ServiceError into the HTTP response the API returns."""
    headers = None
    if exc.kind is ErrorKind.UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(
        status_code=exc.status_code,
        detail=exc.to_dict(),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed path ids answer 400 INVALID_ID; other validation errors keep
    FastAPI's default 422 body.
    """
    if any(error.get("loc", ())[:1] == ("path",) for error in exc.errors()):
        error = ServiceError(ErrorKind.VALIDATION_ERROR, "Invalid ID", code="INVALID_ID")
        return JSONResponse(status_code=error.status_code, content={"detail": error.to_dict()})
    return await request_validation_exception_handler(request, exc)
