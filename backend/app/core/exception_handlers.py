"""Exception handlers for converting custom exceptions to HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from backend.app.core.exceptions import (
    ORangeException,
    ConfigurationError,
    ValidationFailedError,
    DimensionMismatchError,
    EmptyQuestionError,
    InvalidImageError,
    InvalidWeekIdError,
    NoReportsError,
    NoEmbeddingDataError,
    MemberNotFoundError,
    ReportNotFoundError,
    IdeaNotFoundError,
    HistoryNotFoundError,
    AuthenticationError,
    EditModeRequiredError,
    LLMServiceError,
    EmbeddingServiceError,
    StorageError,
)

logger = logging.getLogger(__name__)


async def orange_exception_handler(request: Request, exc: ORangeException) -> JSONResponse:
    """
    Handle all portal exceptions and convert to appropriate HTTP responses.

    Args:
        request: The incoming request
        exc: The exception that was raised

    Returns:
        JSONResponse with appropriate status code and error details
    """
    # Map exception types to HTTP status codes
    if isinstance(exc, (MemberNotFoundError, ReportNotFoundError, IdeaNotFoundError, HistoryNotFoundError)):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (
        ValidationFailedError,
        DimensionMismatchError,
        EmptyQuestionError,
        InvalidImageError,
        InvalidWeekIdError,
        NoReportsError,
        NoEmbeddingDataError,
    )):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, AuthenticationError):
        status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, EditModeRequiredError):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, (LLMServiceError, EmbeddingServiceError, StorageError)):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, ConfigurationError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        # Generic ORangeException
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if status_code >= 500:
        logger.error(f"[ERROR] {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"[ERROR] {request.method} {request.url.path}: {exc.__class__.__name__}")

    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "type": exc.__class__.__name__,
            **({"info": exc.details} if exc.details else {})
        }
    )


def register_exception_handlers(app):
    """
    Register all custom exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(ORangeException, orange_exception_handler)
