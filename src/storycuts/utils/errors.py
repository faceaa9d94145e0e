"""
Error handling utilities for Naeily Story Cuts.

Provides structured error responses and custom exception classes.
"""

import logging
import traceback
from typing import Optional, Dict, Any
from flask import jsonify, request

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize API error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


class ValidationError(APIError):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class NotFoundError(APIError):
    """Raised when no route matches the requested path."""

    def __init__(self, path: str):
        super().__init__(
            message=f"No endpoint at '{path}'.",
            error_code="NOT_FOUND",
            status_code=404,
            details={"path": path}
        )


class MethodNotAllowedError(APIError):
    """Raised when a route exists but does not accept the request method."""

    def __init__(self, method: str, path: str):
        super().__init__(
            message=f"Method '{method}' not allowed for this endpoint.",
            error_code="METHOD_NOT_ALLOWED",
            status_code=405,
            details={"method": method, "path": path}
        )


class RateLimitError(APIError):
    """Raised when a client exceeds a generation or global rate limit."""

    def __init__(self, limit: Optional[str] = None):
        message = "요청이 너무 많습니다. 잠시 후 다시 시도해주세요."
        details = {}
        if limit:
            details["limit"] = limit

        super().__init__(
            message=message,
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            details=details
        )


class GenerationError(APIError):
    """
    Raised when a Gemini call fails or returns an unusable response.

    Covers transport failures, non-JSON text and JSON that does not match the
    declared response shape. ``stage`` names the pipeline step that made the call.
    """

    def __init__(
        self,
        stage: str,
        message: Optional[str] = None,
        error_code: str = "GENERATION_FAILED",
        status_code: int = 502,
    ):
        super().__init__(
            message=message or f"Generation failed during '{stage}'.",
            error_code=error_code,
            status_code=status_code,
            details={"stage": stage}
        )
        self.stage = stage


class GenerationTimeoutError(GenerationError):
    """Raised when a Gemini call does not answer within the configured timeout."""

    def __init__(self, stage: str, timeout: Optional[float] = None):
        message = f"Generation timed out during '{stage}'."
        if timeout:
            message = f"Generation timed out after {timeout:g} seconds during '{stage}'."
        super().__init__(
            stage=stage,
            message=message,
            error_code="GENERATION_TIMEOUT",
            status_code=504,
        )
        self.timeout = timeout


def create_error_response(
    error: Exception,
    include_traceback: bool = False
) -> tuple:
    """
    Create a standardized error response.

    Args:
        error: Exception instance
        include_traceback: Whether to include traceback in response (for debugging)

    Returns:
        Tuple of (json_response, status_code)
    """
    extra = {
        "path": request.path if request else None,
        "method": request.method if request else None,
    }
    # 4xx errors are logged without a traceback
    if isinstance(error, APIError) and error.status_code < 500:
        logger.warning(f"{error.error_code}: {error.message}", extra=extra)
    else:
        logger.error(f"Error: {type(error).__name__}: {str(error)}", exc_info=True, extra=extra)

    if isinstance(error, APIError):
        response = {
            "error": error.message,
            "error_code": error.error_code,
        }
        if error.details:
            response["details"] = error.details
        if include_traceback:
            response["traceback"] = traceback.format_exc()

        return jsonify(response), error.status_code

    error_message = str(error)
    error_type = type(error).__name__

    # Don't expose internal errors in production
    if not include_traceback:
        error_message = "An unexpected error occurred. Please try again or contact support if the issue persists."

    response = {
        "error": error_message,
        "error_code": "INTERNAL_ERROR",
        "error_type": error_type,
    }

    if include_traceback:
        response["traceback"] = traceback.format_exc()

    return jsonify(response), 500


def register_error_handlers(app, debug: bool = False):
    """
    Register error handlers for the Flask app.

    Args:
        app: Flask application instance
        debug: Whether to include tracebacks in error responses
    """
    @app.errorhandler(APIError)
    def handle_api_error(error: APIError):
        """Handle APIError exceptions."""
        return create_error_response(error, include_traceback=debug)

    @app.errorhandler(404)
    def handle_not_found(error):
        """Handle 404 errors."""
        return create_error_response(
            NotFoundError(request.path),
            include_traceback=debug
        )

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        """Handle 405 Method Not Allowed errors."""
        return create_error_response(
            MethodNotAllowedError(request.method, request.path),
            include_traceback=debug
        )

    @app.errorhandler(429)
    def handle_rate_limit(error):
        """Handle 429 errors raised by Flask-Limiter."""
        return create_error_response(
            RateLimitError(getattr(error, "description", None)),
            include_traceback=debug
        )

    @app.errorhandler(500)
    def handle_internal_error(error):
        """Handle 500 Internal Server errors."""
        return create_error_response(error, include_traceback=debug)

    @app.errorhandler(Exception)
    def handle_generic_exception(error: Exception):
        """Handle all other exceptions."""
        return create_error_response(error, include_traceback=debug)
