"""Unified error response utilities for the HTTP layer.

This builds atop service_base exceptions and gives every failure, whether
raised by a service, by Flask/werkzeug routing or by a bug, the same
``{"success": false, "error": "<message>"}`` body.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from designforge.services.service_base import ConfigurationError, ServiceError

logger = logging.getLogger(__name__)

HTTP_DEFAULT_STATUS = 500

# Public messages for framework-level failures
HTTP_STATUS_MESSAGES = {
    400: 'Invalid request body. Expected JSON object.',
    404: 'Not found',
    405: 'Method not allowed',
    413: 'Request body too large',
    500: 'Internal server error',
}


def build_error_payload(message: str) -> Dict[str, Any]:
    return {'success': False, 'error': message}


def error_response(message: str, status: int, headers: Dict[str, str] | None = None) -> Tuple[Any, int, Dict[str, str]]:
    response = jsonify(build_error_payload(message))
    return response, status, dict(headers or {})


def handle_service_error(exc: ServiceError):
    if isinstance(exc, ConfigurationError) or exc.http_status >= 500:
        # Full detail stays in the log; the body only carries the public message
        logger.error(f"{type(exc).__name__}: {exc}")
    else:
        logger.info(f"{type(exc).__name__} ({exc.http_status}): {exc}")
    return error_response(exc.public_message, exc.http_status, exc.headers)


def handle_http_exception(exc: HTTPException):
    status = exc.code or HTTP_DEFAULT_STATUS
    message = HTTP_STATUS_MESSAGES.get(status) or exc.name
    headers = {}
    if status == 405:
        allowed = exc.get_headers()
        headers = {k: v for k, v in allowed if k.lower() == 'allow'}
    return error_response(message, status, headers)


def handle_unexpected_error(exc: Exception):
    logger.exception(f"Unhandled error: {exc}")
    return error_response(HTTP_STATUS_MESSAGES[500], HTTP_DEFAULT_STATUS)


def register_error_handlers(app: Flask) -> None:
    """Attach JSON error handlers to the application."""
    app.register_error_handler(ServiceError, handle_service_error)
    app.register_error_handler(HTTPException, handle_http_exception)
    app.register_error_handler(Exception, handle_unexpected_error)
