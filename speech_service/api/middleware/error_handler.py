"""
API Middleware - Global Error Handler

Centralized error handling for all API endpoints with proper HTTP status codes.
"""
import logging
from typing import Dict, Any
from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from speech_service.shared.exceptions import DomainException

logger = logging.getLogger(__name__)


def create_error_response(error_code: str, message: str, additional_data: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Create standardized error response dictionary.

    Args:
        error_code: Machine-readable error kind
        message: Human-readable error message
        additional_data: Additional error context data

    Returns:
        Standardized error response dictionary
    """
    response = {
        "success": False,
        "error": error_code,
        "message": message
    }

    if additional_data:
        response.update(additional_data)

    return response


async def domain_exception_handler(request: Request, exc: DomainException) -> Response:
    """
    Handler for DomainException raised outside the pipeline's own handling.

    Args:
        request: FastAPI request object
        exc: DomainException that was raised

    Returns:
        JSON error response using the exception's status code
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(f"Domain exception: {exc.error_code} - {exc.message}",
        extra={"url": str(request.url), "method": request.method})

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.error_code, exc.message)
    )


async def global_exception_handler(request: Request, exc: Exception) -> Response:
    """
    Global exception handler for all unhandled exceptions.

    Args:
        request: FastAPI request object
        exc: Exception that was raised

    Returns:
        JSON error response with status 500
    """
    logger.error(f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
                 extra={"url": str(request.url), "method": request.method})

    return JSONResponse(
        status_code=500,
        content=create_error_response("internal_error", "Error processing audio file")
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> Response:
    """
    Handler for request validation errors.

    Args:
        request: FastAPI request object
        exc: RequestValidationError that was raised

    Returns:
        JSON error response with validation details
    """
    logger.warning(f"Validation error: {exc.errors()}",
                   extra={"url": str(request.url), "method": request.method})

    return JSONResponse(
        status_code=422,
        content=create_error_response(
            "validation_error", "Request validation failed",
            {"validation_errors": jsonable_encoder(exc.errors())}
        )
    )


async def starlette_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """
    Handler for Starlette HTTP exceptions (404, 405, ...).

    Args:
        request: FastAPI request object
        exc: StarletteHTTPException that was raised

    Returns:
        JSON error response
    """
    logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}",
                   extra={"url": str(request.url), "method": request.method})

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response("http_error", str(exc.detail or "HTTP error"))
    )


def setup_exception_handlers(app):
    """
    Set up all exception handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, starlette_exception_handler)

    logger.info("Global exception handlers configured")
