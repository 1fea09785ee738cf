"""Service Base Utilities
=========================

Shared exception hierarchy for the service layer.

Usage Pattern:
    from .service_base import ServiceError, InvalidRequest, GenerationFailed

All service modules raise these exceptions so the route layer can map them
uniformly to ``{"success": false, "error": ...}`` responses. Each class
carries the HTTP status it maps to; ``public_message`` is what the caller
sees, while ``str(exc)`` keeps the full detail for the logs.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    'ServiceError', 'Unauthenticated', 'RateLimited', 'InvalidRequest',
    'ConfigurationError', 'UpstreamAuthError', 'UpstreamRateLimited',
    'GenerationFailed', 'DeploymentFailed', 'classify_upstream_failure',
    'upstream_error_message',
]


class ServiceError(Exception):
    """Base class for all service layer errors."""

    http_status = 500
    # When set, replaces the detailed message in responses
    generic_message: Optional[str] = None

    def __init__(self, message: str = '', *, headers: Optional[Dict[str, str]] = None):
        super().__init__(message or self.generic_message or self.__class__.__name__)
        self.message = str(self.args[0])
        self.headers = dict(headers or {})

    @property
    def public_message(self) -> str:
        return self.generic_message or self.message


class Unauthenticated(ServiceError):
    """Missing, malformed, expired or untrusted bearer credential."""
    http_status = 401


class RateLimited(ServiceError):
    """Caller exceeded the local fixed-window request budget."""
    http_status = 429
    generic_message = 'Rate limit exceeded. Please try again later.'


class InvalidRequest(ServiceError):
    """Request body failed structural or semantic validation."""
    http_status = 400


class ConfigurationError(ServiceError):
    """Server-side misconfiguration; the detail is logged, never returned."""
    http_status = 500
    generic_message = 'Server configuration error'


class UpstreamAuthError(ServiceError):
    """External service rejected our credentials."""
    http_status = 401
    generic_message = 'API authentication failed. Please check your credentials.'


class UpstreamRateLimited(ServiceError):
    """External service signalled a quota or rate limit; retryable by the caller."""
    http_status = 429
    generic_message = 'API rate limit exceeded. Please try again later.'


class GenerationFailed(ServiceError):
    """Code generation failed for any other reason, including timeouts."""
    http_status = 500
    generic_message = 'Failed to generate code. Please try again.'


class DeploymentFailed(ServiceError):
    """Deployment submission failed for any other reason, including timeouts."""
    http_status = 500
    generic_message = 'Failed to deploy code. Please try again.'



RATE_LIMIT_MARKERS = ('rate limit', 'rate_limit', 'quota', 'too many requests')
AUTH_MARKERS = ('unauthorized', 'authentication', 'invalid api key', 'forbidden')


def classify_upstream_failure(status: Optional[int], message: str,
                              default: type = ServiceError) -> ServiceError:
    """Map an external service failure onto the error taxonomy.

    Auth failures are never worth retrying, quota failures are retryable by
    the caller, everything else becomes ``default`` carrying the upstream
    message.
    """
    lowered = (message or '').lower()
    if status in (401, 403) or (status is None and any(m in lowered for m in AUTH_MARKERS)):
        return UpstreamAuthError(f'Upstream auth failure ({status}): {message}')
    if status == 429 or any(m in lowered for m in RATE_LIMIT_MARKERS):
        return UpstreamRateLimited(f'Upstream rate limited ({status}): {message}')
    return default(f'Upstream failure ({status}): {message}')


def upstream_error_message(data: Any) -> str:
    """Best-effort human readable message from an upstream error body."""
    if isinstance(data, dict):
        error = data.get('error', data)
        if isinstance(error, dict):
            return str(error.get('message') or error.get('code') or error)
        return str(error)
    return str(data)
