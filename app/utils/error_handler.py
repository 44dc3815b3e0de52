"""
Error taxonomy and centralized error responses for CareXchange
Every error reaches the client as {"error": "<message>"}
"""

import uuid
import traceback
import logging
from typing import Optional
from datetime import datetime
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class InvalidRating(ValidationError):
    default_message = "Invalid rating value"


class ExpiredOrInvalidToken(ValidationError):
    default_message = "Invalid or expired token"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidToken(UnauthorizedError):
    """Session token with a bad signature, malformed payload or past expiry"""
    default_message = "Invalid or expired session"


class InvalidCredentials(UnauthorizedError):
    default_message = "Invalid credentials"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Operation not permitted"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    # Reported as 400 to stay compatible with the existing frontend
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class DuplicateEmail(ConflictError):
    default_message = "User already exists"


class DatabaseError(AppError):
    """Record store failure"""
    default_message = "A database error occurred. Please try again later."

    def __init__(self, message: Optional[str] = None, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)


class StoreUnavailable(DatabaseError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Database connection failed"


class EmailDeliveryError(AppError):
    default_message = "Email could not be sent"


def get_client_ip(request: Request) -> Optional[str]:
    """Extract client IP from request headers"""
    if "x-forwarded-for" in request.headers:
        return request.headers["x-forwarded-for"].split(",")[0].strip()
    elif "x-real-ip" in request.headers:
        return request.headers["x-real-ip"]
    elif request.client:
        return request.client.host
    return None


class ErrorHandler:
    """Exception handlers registered on the application"""

    @staticmethod
    async def app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            original = getattr(exc, "original_error", None)
            logger.error(
                f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}"
                + (f" ({original})" if original else "")
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @staticmethod
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @staticmethod
    async def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = "Invalid request format"
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    @staticmethod
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        """Log with a unique error id and hide internals from the client"""
        error_id = str(uuid.uuid4())
        logger.error(
            f"Unhandled exception {error_id}: {type(exc).__name__} in {request.method} {request.url.path}",
            extra={
                "error_id": error_id,
                "endpoint": str(request.url.path),
                "method": request.method,
                "client_ip": get_client_ip(request),
                "error_type": type(exc).__name__,
                "error_message": str(exc),
                "stack_trace": traceback.format_exc(),
            },
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "error_id": error_id,
                "timestamp": datetime.utcnow().isoformat(),
            },
        )
