"""
Services Package
================

Service layer for the design-to-code backend:
- identity / rate_limiter / payload_validator: request guards
- prompt_composer / generation_client / output_sanitizer: code generation
- scaffolding / deployment_client: project assembly and deployment
- pipeline: orchestration; service_locator: per-app wiring
"""

from .service_base import (
    ConfigurationError,
    DeploymentFailed,
    GenerationFailed,
    InvalidRequest,
    RateLimited,
    ServiceError,
    Unauthenticated,
    UpstreamAuthError,
    UpstreamRateLimited,
)
from .service_locator import ServiceLocator

__all__ = [
    'ServiceLocator',
    'ServiceError',
    'Unauthenticated',
    'RateLimited',
    'InvalidRequest',
    'ConfigurationError',
    'UpstreamAuthError',
    'UpstreamRateLimited',
    'GenerationFailed',
    'DeploymentFailed',
]
