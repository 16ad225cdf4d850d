"""
API error handlers
"""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from odontoforense.utils.exceptions import (
    AuthenticationError,
    GenerationError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    StreamError,
    ValidationError,
)
from odontoforense.utils.response import error_response
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Request body/query validation error handler"""
    errors = exc.errors()
    error_details = {
        "field": errors[0].get("loc")[-1] if errors else None,
        "message": errors[0].get("msg") if errors else "Validation error"
    }

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response("Request validation failed", details=error_details)
    )


async def validation_error_handler(request: Request, exc: ValidationError):
    """Invalid input or referential integrity failure"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response(
            exc.message,
            details={"field": exc.field} if exc.field else None
        )
    )


async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_response(str(exc))
    )


async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=error_response(str(exc)),
        headers={"WWW-Authenticate": "Bearer"}
    )


async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=error_response(str(exc))
    )


async def generation_error_handler(request: Request, exc: GenerationError):
    """Only reached if a generation failure escapes the pipeline's fallback"""
    logger.error(f"Unhandled generation error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=error_response(
            str(exc),
            details={"status_code": exc.status_code} if exc.status_code else None
        )
    )


async def storage_error_handler(request: Request, exc: StorageError):
    """Blob or database I/O failure"""
    logger.error(f"Storage error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response("Storage error", details={"message": exc.message})
    )


async def stream_error_handler(request: Request, exc: StreamError):
    logger.error(f"Stream error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response("File stream failed", details={"message": exc.message})
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Fallback handler"""
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response("Internal server error")
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler to the application"""
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(PermissionDeniedError, permission_denied_handler)
    app.add_exception_handler(GenerationError, generation_error_handler)
    app.add_exception_handler(StreamError, stream_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
