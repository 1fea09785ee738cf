"""
Flask Application Factory
=========================

Factory pattern for creating Flask application instances with
proper initialization.
"""

import logging
import os
import uuid
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask, g, request
from flask_cors import CORS

from designforge.paths import ENV_FILE
from designforge.utils.logging_config import get_logger

logger = get_logger('factory')


def _load_env() -> None:
    """Load .env early so secrets and LOG_LEVEL are visible to the config classes."""
    if ENV_FILE.exists():
        load_dotenv(ENV_FILE, override=False)
        logger.info(f"Loaded .env from {ENV_FILE}")
    else:
        logger.debug(f".env not found at {ENV_FILE}")


def create_app(config_name: Optional[str] = None, overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration environment name (development, testing,
            production); defaults to ``FLASK_ENV`` or development
        overrides: Extra config values applied last (tests)

    Returns:
        Configured Flask application
    """
    _load_env()

    # Imported after .env is loaded; the config classes read os.environ at import
    from designforge.config.settings import config as config_classes

    config_name = config_name or os.environ.get('FLASK_ENV', 'default')
    config_class = config_classes.get(config_name, config_classes['default'])

    app = Flask(__name__)
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    _lvl = app.config.get('LOG_LEVEL')
    if _lvl:
        logging.getLogger().setLevel(getattr(logging, str(_lvl).upper(), logging.INFO))

    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS') or []}},
        expose_headers=['Retry-After', 'X-User-Id'],
    )

    _register_request_hooks(app)

    from designforge.utils.errors import register_error_handlers
    register_error_handlers(app)

    from designforge.services.service_locator import ServiceLocator
    ServiceLocator.initialize(app)

    from designforge.routes import core_bp, deploy_bp, gen_bp
    app.register_blueprint(core_bp)
    app.register_blueprint(gen_bp)
    app.register_blueprint(deploy_bp)

    _warn_missing_credentials(app)
    logger.info(f"Application created (config={config_name})")
    return app


def _register_request_hooks(app: Flask) -> None:
    @app.before_request
    def _tag_request():
        g.request_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex[:12]
        if request.path != '/api/health':
            logger.info(f"{request.method} {request.path}")

    @app.after_request
    def _echo_request_id(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers.setdefault('X-Request-ID', request_id)
        return response


def _warn_missing_credentials(app: Flask) -> None:
    for key in ('JWT_SECRET', 'V0_API_KEY', 'VERCEL_ACCESS_TOKEN'):
        if not app.config.get(key):
            logger.warning(f"{key} is not configured; dependent endpoints will return 500")
