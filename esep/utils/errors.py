from fastapi import FastAPI, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
import traceback
from .logging import get_logger
from .responses import ResponseBuilder

logger = get_logger()


class ESEPError(Exception):
    """Base class for errors raised by the service layer."""

    default_code = "ESEP_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code


class ValidationError(ESEPError):
    """A required field is missing or a value breaks a business rule."""

    default_code = "VALIDATION_ERROR"


class NotFoundError(ESEPError):
    """Custom exception for resource not found errors."""

    default_code = "NOT_FOUND"

    def __init__(
        self, message: str = "Resource not found", error_code: str | None = None
    ):
        super().__init__(message, error_code)


class InvalidTransitionError(ESEPError):
    """The requested status change is not allowed from the current status."""

    default_code = "INVALID_TRANSITION"


class DuplicateError(ESEPError):
    """A unique pair or generated identifier already exists."""

    default_code = "DUPLICATE"


class ConflictError(ESEPError):
    """The stored row changed since the caller read it."""

    default_code = "VERSION_CONFLICT"


class StoreError(ESEPError):
    """The underlying database call failed."""

    default_code = "STORE_ERROR"


class AuthenticationError(ESEPError):
    """Custom exception for authentication errors."""

    default_code = "AUTH_ERROR"

    def __init__(
        self, message: str = "Authentication failed", error_code: str | None = None
    ):
        super().__init__(message, error_code)


class AuthorizationError(ESEPError):
    """Custom exception for authorization errors."""

    default_code = "AUTHZ_ERROR"

    def __init__(self, message: str = "Access denied", error_code: str | None = None):
        super().__init__(message, error_code)


# Error class -> (HTTP status, meta error_type)
ERROR_STATUS_MAPPING = {
    ValidationError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR"),
    NotFoundError: (status.HTTP_404_NOT_FOUND, "NOT_FOUND_ERROR"),
    InvalidTransitionError: (status.HTTP_409_CONFLICT, "TRANSITION_ERROR"),
    DuplicateError: (status.HTTP_409_CONFLICT, "DUPLICATE_ERROR"),
    ConflictError: (status.HTTP_409_CONFLICT, "CONFLICT_ERROR"),
    StoreError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR"),
    AuthenticationError: (status.HTTP_401_UNAUTHORIZED, "AUTHENTICATION_ERROR"),
    AuthorizationError: (status.HTTP_403_FORBIDDEN, "AUTHORIZATION_ERROR"),
}


def _format_validation_errors(errors) -> list:
    formatted_errors = []
    for error in errors:
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        formatted_errors.append(
            {
                "field": field_path,
                "message": error["msg"],
                "type": error["type"],
                "input": error.get("input"),
            }
        )
    return formatted_errors


def setup_error_handlers(app: FastAPI):
    """Setup custom error handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
        return ResponseBuilder.error(
            request=request,
            message=str(exc.detail),
            error_code="HTTP_ERROR",
            status_code=exc.status_code,
            meta={"http_status": exc.status_code},
        )

    """
    RequestValidationError is a sub-class of Pydantic's ValidationError.
    """

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        logger.error(f"Request Validation Error: {exc.errors()}")

        return ResponseBuilder.error(
            request=request,
            message="Request validation failed",
            errors=_format_validation_errors(exc.errors()),
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    @app.exception_handler(PydanticValidationError)
    async def pydantic_validation_exception_handler(
        request: Request, exc: PydanticValidationError
    ):
        logger.error(f"Pydantic Validation Error: {exc.errors()}")

        return ResponseBuilder.error(
            request=request,
            message="Data validation failed",
            error_code="INTERNAL_VALIDATION_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @app.exception_handler(ESEPError)
    async def esep_exception_handler(request: Request, exc: ESEPError):
        status_code, error_type = ERROR_STATUS_MAPPING.get(
            type(exc), (status.HTTP_400_BAD_REQUEST, "BUSINESS_ERROR")
        )
        logger.error(f"{type(exc).__name__}: {exc.message}")

        return ResponseBuilder.error(
            request=request,
            message=exc.message,
            error_code=exc.error_code,
            status_code=status_code,
            meta={"error_type": error_type},
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"SQLAlchemy Error: {str(exc)}")

        # Don't expose internal database errors to users
        return ResponseBuilder.error(
            request=request,
            message="A database error occurred",
            error_code="DATABASE_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            meta={"error_type": "SQLALCHEMY_ERROR"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other unhandled exceptions"""
        logger.error(f"Unhandled Exception: {str(exc)}")
        logger.error(f"Traceback: {traceback.format_exc()}")

        return ResponseBuilder.error(
            request=request,
            message="An internal server error occurred",
            error_code="INTERNAL_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            meta={"error_type": "INTERNAL_ERROR"},
        )
