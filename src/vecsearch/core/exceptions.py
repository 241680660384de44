"""Custom exceptions and exception handlers."""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from vecsearch.core.logging import get_logger

logger = get_logger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class SchemaConflict(AppException):
    """Index already exists."""

    def __init__(self, message: str = "Index already exists"):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class IndexMissing(NotFoundException):
    """Operation against an index that is not defined."""

    def __init__(self, index_name: str):
        self.index_name = index_name
        super().__init__(f"Unknown index '{index_name}'")


class EmbeddingUnavailable(AppException):
    """Embedding model could not be loaded or inference failed."""

    def __init__(self, message: str = "Embedding model unavailable"):
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class QueryCompileFailure(AppException):
    """Filter combination could not be compiled or the backend rejected the query."""

    def __init__(self, message: str = "Query could not be compiled"):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class SearchFailed(AppException):
    """Search could not be completed; carries the underlying message."""

    def __init__(self, message: str):
        super().__init__(f"Search failed: {message}", status_code=status.HTTP_502_BAD_GATEWAY)


class StoreUnavailable(AppException):
    """Connection-level failure talking to Redis."""

    def __init__(self, message: str = "Search store unavailable"):
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class IngestionRowFailure(AppException):
    """One row/document of a batch failed coercion or write.

    Collected into batch statistics; never aborts the batch.
    """

    def __init__(self, row: int, message: str):
        self.row = row
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle custom application exceptions.

    Args:
        request: The incoming request.
        exc: The exception that was raised.

    Returns:
        JSONResponse: Error response.
    """
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"Application error: {exc.message}", exc_info=True)
    else:
        logger.warning(f"Request error {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "type": exc.__class__.__name__},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions.

    Args:
        request: The incoming request.
        exc: The HTTP exception that was raised.

    Returns:
        JSONResponse: Error response.
    """
    logger.warning(f"HTTP error {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions.

    Args:
        request: The incoming request.
        exc: The unhandled exception.

    Returns:
        JSONResponse: Error response.
    """
    logger.error(f"Unhandled error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
