"""Service Locator Pattern
=========================

Centralized service registry for dependency injection.

Services are built once per application from its config and kept on
``app.extensions`` so each app (and each test app) has its own instances.
Tests swap the external clients with ``ServiceLocator.register``.
"""

import logging
from typing import Dict, Optional

from flask import Flask, current_app

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'designforge.services'


class ServiceLocator:
    """
    Central registry for application services.
    Implements dependency injection pattern for clean architecture.
    """

    @classmethod
    def initialize(cls, app: Flask):
        """Initialize the service locator with Flask app context."""
        app.extensions[EXTENSION_KEY] = {}
        cls._register_core_services(app)

    @classmethod
    def _register_core_services(cls, app: Flask):
        """Register all core application services."""
        # Import services here to avoid circular imports
        from .deployment_client import VercelDeploymentClient
        from .generation_client import V0GenerationClient
        from .identity import IdentityVerifier
        from .rate_limiter import RateLimiter, RateLimiterConfig
        from .scaffolding import ProjectScaffolder
        from .prompt_composer import PromptComposer

        config = app.config

        cls.register('identity_verifier', IdentityVerifier(
            secret=config.get('JWT_SECRET'),
            issuer=config.get('JWT_ISSUER', 'canva.com'),
            audience=config.get('JWT_AUDIENCE'),
            algorithms=config.get('JWT_ALGORITHMS') or ['HS256'],
        ), app=app)

        cls.register('rate_limiter', RateLimiter(RateLimiterConfig(
            max_requests=int(config.get('RATE_LIMIT_MAX_REQUESTS', 10)),
            window_seconds=float(config.get('RATE_LIMIT_WINDOW_SECONDS', 60)),
            max_keys=int(config.get('RATE_LIMIT_MAX_KEYS', 10000)),
        )), app=app)

        cls.register('generation_client', V0GenerationClient(
            api_key=config.get('V0_API_KEY'),
            api_url=config.get('V0_API_URL', V0GenerationClient.API_URL),
            model=config.get('V0_MODEL', 'v0-1.0-md'),
            max_tokens=int(config.get('GENERATION_MAX_TOKENS', 6000)),
            temperature=float(config.get('GENERATION_TEMPERATURE', 0.1)),
            timeout=float(config.get('GENERATION_TIMEOUT', 120)),
        ), app=app)

        cls.register('deployment_client', VercelDeploymentClient(
            token=config.get('VERCEL_ACCESS_TOKEN'),
            api_url=config.get('VERCEL_API_URL', VercelDeploymentClient.API_URL),
            team_id=config.get('VERCEL_TEAM_ID'),
            timeout=float(config.get('DEPLOY_TIMEOUT', 60)),
        ), app=app)

        cls.register('prompt_composer', PromptComposer(), app=app)
        cls.register('scaffolder', ProjectScaffolder(), app=app)

        logger.debug(f"Registered services: {', '.join(sorted(cls._registry(app)))}")

    @classmethod
    def _registry(cls, app: Optional[Flask] = None) -> Dict[str, object]:
        target = app or current_app
        return target.extensions.setdefault(EXTENSION_KEY, {})

    @classmethod
    def register(cls, name: str, service: object, app: Optional[Flask] = None):
        """Register a service with the locator."""
        cls._registry(app)[name] = service

    @classmethod
    def get(cls, name: str, default=None, app: Optional[Flask] = None):
        """Get a service by name."""
        return cls._registry(app).get(name, default)

    @classmethod
    def get_identity_verifier(cls):
        return cls.get('identity_verifier')

    @classmethod
    def get_rate_limiter(cls):
        return cls.get('rate_limiter')

    @classmethod
    def get_pipeline(cls):
        """Build the pipeline from the currently registered services."""
        from .pipeline import DesignToCodePipeline

        return DesignToCodePipeline(
            generation_client=cls.get('generation_client'),
            deployment_client=cls.get('deployment_client'),
            composer=cls.get('prompt_composer'),
            scaffolder=cls.get('scaffolder'),
        )
