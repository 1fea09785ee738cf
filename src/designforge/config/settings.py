"""
Application Configuration
========================

Configuration settings for different environments.

Values are read from the process environment when this module is imported;
the application factory loads ``.env`` before importing it.
"""

import os

from designforge.constants import MAX_CONTENT_LENGTH
from designforge.paths import LOGS_DIR


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


def _env_list(name: str, default: str = '') -> list:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(',') if item.strip()]


class Config:
    """Base configuration class."""

    # Basic Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DEBUG = False
    TESTING = False
    JSON_SORT_KEYS = False

    # Request bodies above this are rejected with 413 before validation
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_CONTENT_LENGTH', str(MAX_CONTENT_LENGTH)))

    # Identity verification (bearer JWT issued by the design tool)
    JWT_SECRET = os.environ.get('JWT_SECRET') or os.environ.get('CANVA_JWT_SECRET')
    JWT_ISSUER = os.environ.get('JWT_ISSUER', 'canva.com')
    JWT_AUDIENCE = os.environ.get('JWT_AUDIENCE') or os.environ.get('CANVA_APP_ID')
    JWT_ALGORITHMS = _env_list('JWT_ALGORITHMS', 'HS256')

    # Code generation service (OpenAI compatible chat completions)
    V0_API_KEY = os.environ.get('V0_API_KEY')
    V0_API_URL = os.environ.get('V0_API_URL', 'https://api.v0.dev/v1/chat/completions')
    V0_MODEL = os.environ.get('V0_MODEL', 'v0-1.0-md')
    GENERATION_MAX_TOKENS = int(os.environ.get('GENERATION_MAX_TOKENS', '6000'))
    GENERATION_TEMPERATURE = float(os.environ.get('GENERATION_TEMPERATURE', '0.1'))
    GENERATION_TIMEOUT = float(os.environ.get('GENERATION_TIMEOUT', '120'))

    # Hosting platform
    VERCEL_ACCESS_TOKEN = os.environ.get('VERCEL_ACCESS_TOKEN')
    VERCEL_API_URL = os.environ.get('VERCEL_API_URL', 'https://api.vercel.com')
    VERCEL_TEAM_ID = os.environ.get('VERCEL_TEAM_ID')
    DEPLOY_TIMEOUT = float(os.environ.get('DEPLOY_TIMEOUT', '60'))

    # Fixed-window rate limiting
    RATE_LIMIT_ENABLED = _env_bool('RATE_LIMIT_ENABLED', 'true')
    RATE_LIMIT_MAX_REQUESTS = int(os.environ.get('RATE_LIMIT_MAX_REQUESTS', '10'))
    RATE_LIMIT_WINDOW_SECONDS = float(os.environ.get('RATE_LIMIT_WINDOW_SECONDS', '60'))
    RATE_LIMIT_MAX_KEYS = int(os.environ.get('RATE_LIMIT_MAX_KEYS', '10000'))

    # CORS: the design tool's app origin plus the local dev server
    CORS_ORIGINS = _env_list(
        'CORS_ORIGINS',
        ','.join(filter(None, [os.environ.get('CANVA_APP_ORIGIN'), 'http://localhost:8080'])),
    )

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR', str(LOGS_DIR))

    # Development server
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3001'))


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    JWT_SECRET = 'test-secret'
    JWT_AUDIENCE = None
    V0_API_KEY = 'test-v0-key'
    VERCEL_ACCESS_TOKEN = 'test-vercel-token'
    VERCEL_TEAM_ID = None
    CORS_ORIGINS = ['http://localhost:8080']


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'WARNING')


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig,
}
