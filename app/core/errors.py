# app/core/errors.py

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from loguru import logger


# ------------------------------------------------------------
# Domain errors (raised by services, converted at the boundary)
# ------------------------------------------------------------
class ValidationError(ValueError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WeakPasswordError(ValidationError):
    pass


class InvalidRoleError(ValidationError):
    pass


class DuplicateError(ValueError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Email already exists"):
        super().__init__(message)
        self.message = message


class InvalidTransitionError(ValueError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LookupError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Not found"):
        super().__init__(message)
        self.message = message


class UnauthorizedError(Exception):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)
        self.message = message


class ForbiddenError(Exception):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)
        self.message = message


DOMAIN_ERRORS = (
    ValidationError,
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
)


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


# ------------------------------------------------------------
# Handlers
# ------------------------------------------------------------
async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return error_response(exc.status_code, exc.message, headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reports the first offending field, e.g. 'email: field required'."""
    errors = exc.errors()
    if not errors:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request")

    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    field = ".".join(location) or "request"
    return error_response(status.HTTP_400_BAD_REQUEST, f"{field}: {first.get('msg', 'invalid value')}")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class in DOMAIN_ERRORS:
        app.add_exception_handler(exc_class, domain_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
