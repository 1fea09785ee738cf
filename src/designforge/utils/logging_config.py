"""
Centralized Logging Configuration
=================================

Provides a unified logging setup for the service: colored console output,
a rotating log file, request ids on every record and quiet health checks.
"""

import logging
import os
import sys
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from colorama import Fore, Style, init

from designforge.paths import LOGS_DIR

init(autoreset=True)

APP_LOGGER_NAME = "DesignForge"


class RequestIdFilter(logging.Filter):
    """Copy ``g.request_id`` onto records emitted inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        from flask import g, has_request_context

        if has_request_context():
            rid = getattr(g, 'request_id', None)
            if rid and not hasattr(record, 'request_id'):
                record.request_id = rid  # type: ignore[attr-defined]
        return True


class HealthCheckFilter(logging.Filter):
    """Filter to suppress high-frequency werkzeug request logs.

    Suppresses access lines for the health endpoint, favicon requests and
    CORS preflights, which are polled often and carry no information.
    """

    _suppressed_endpoints = (
        'GET /api/health ',
        'GET /favicon',
        '"OPTIONS ',
    )

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        for endpoint in self._suppressed_endpoints:
            if endpoint in message:
                return False
        return True


class ColoredSmartFormatter(logging.Formatter):
    """Formatter with color coding and short logger names."""

    def __init__(self, include_function: bool = False, use_colors: bool = True):
        self.include_function = include_function
        self.use_colors = use_colors
        super().__init__()

        self.level_colors = {
            logging.DEBUG: Fore.CYAN,
            logging.INFO: Fore.GREEN,
            logging.WARNING: Fore.YELLOW,
            logging.ERROR: Fore.RED,
            logging.CRITICAL: Fore.RED + Style.BRIGHT,
        }

        # Colour per component so interleaved request logs stay readable
        self.service_colors = {
            'factory': Fore.BLUE,
            'identity': Fore.MAGENTA,
            'rate_limiter': Fore.YELLOW,
            'generation': Fore.CYAN,
            'deployment': Fore.GREEN,
            'scaffolding': Fore.BLUE,
        }

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, '%H:%M:%S')
        level = record.levelname
        name = self._clean_logger_name(record.name)
        message = record.getMessage()
        request_id = getattr(record, 'request_id', None)
        if request_id:
            message = f"[{request_id}] {message}"

        if self.use_colors:
            level_color = self.level_colors.get(record.levelno, "")
            colored_level = f"{level_color}{level:8}{Style.RESET_ALL}"
            colored_name = f"{self._get_service_color(name)}{name:20}{Style.RESET_ALL}"
        else:
            colored_level = f"{level:8}"
            colored_name = f"{name:20}"

        line = f"[{timestamp}] {colored_level} {colored_name} {message}"
        if self.include_function and record.levelno >= logging.WARNING:
            location = f"[{record.funcName}:{record.lineno}]"
            if self.use_colors:
                location = f"{Fore.WHITE}{Style.DIM}{location}{Style.RESET_ALL}"
            line = f"[{timestamp}] {colored_level} {colored_name} {location} {message}"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _clean_logger_name(self, name: str) -> str:
        """Clean and shorten logger names for readability."""
        replacements = {
            f'{APP_LOGGER_NAME}.': '',
            'designforge.services.': 'svc.',
            'designforge.routes.api.': 'route.',
            'designforge.utils.': 'util.',
            'designforge.': '',
        }
        for old, new in replacements.items():
            if name.startswith(old):
                name = new + name[len(old):]
                break

        if len(name) > 20:
            name = name[:17] + "..."
        return name

    def _get_service_color(self, service_name: str) -> str:
        name_lower = service_name.lower()
        for service, color in self.service_colors.items():
            if service in name_lower:
                return color
        return Fore.WHITE


class LoggingConfig:
    """Centralized logging configuration for the application."""

    def __init__(self, app_name: str = APP_LOGGER_NAME, log_dir: Optional[Path] = None,
                 log_level: Optional[str] = None):
        self.app_name = app_name
        self.log_dir = Path(log_dir or os.environ.get('LOG_DIR') or LOGS_DIR)
        self.log_level = self._get_log_level(log_level)
        self.is_development = os.environ.get('FLASK_ENV', 'development') == 'development'

        self._configure_warnings()

    def setup_logging(self) -> logging.Logger:
        """Setup centralized logging configuration.

        Only handlers previously attached by this class are replaced, so
        pytest's capture handlers survive repeated setup.
        """
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            if getattr(handler, "_designforge", False):
                root_logger.removeHandler(handler)
        root_logger.setLevel(self.log_level)

        req_filter = RequestIdFilter()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(ColoredSmartFormatter(include_function=self.is_development))
        console_handler.addFilter(req_filter)
        console_handler._designforge = True  # type: ignore[attr-defined]
        root_logger.addHandler(console_handler)

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                self.log_dir / "app.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8',
            )
        except OSError as e:
            # Read-only filesystems (containers, serverless) still get console logs
            root_logger.warning(f"File logging disabled ({self.log_dir}): {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(ColoredSmartFormatter(include_function=True, use_colors=False))
            file_handler.addFilter(req_filter)
            file_handler._designforge = True  # type: ignore[attr-defined]
            root_logger.addHandler(file_handler)

        self._configure_specific_loggers()

        app_logger = logging.getLogger(self.app_name)
        app_logger.info(f"Logging configured - Level: {logging.getLevelName(self.log_level)}")
        return app_logger

    def _get_log_level(self, override: Optional[str] = None) -> int:
        level_str = (override or os.environ.get('LOG_LEVEL', 'INFO')).upper()
        return getattr(logging, level_str, logging.INFO)

    def _configure_warnings(self):
        logging.captureWarnings(True)
        warnings.filterwarnings('ignore', category=DeprecationWarning, module='aiohttp')
        logging.getLogger('py.warnings').setLevel(logging.ERROR)

    def _configure_specific_loggers(self):
        """Configure third-party loggers to reduce spam."""
        if not self.is_development:
            logging.getLogger('werkzeug').setLevel(logging.WARNING)
            logging.getLogger('flask.app').setLevel(logging.WARNING)

        logging.getLogger('urllib3.connectionpool').setLevel(logging.WARNING)
        logging.getLogger('asyncio').setLevel(logging.WARNING)

        werkzeug_logger = logging.getLogger('werkzeug')
        if not any(isinstance(f, HealthCheckFilter) for f in werkzeug_logger.filters):
            werkzeug_logger.addFilter(HealthCheckFilter())


# Global instance
_logging_config = None


def get_logging_config() -> LoggingConfig:
    """Get the global logging configuration instance."""
    global _logging_config
    if _logging_config is None:
        _logging_config = LoggingConfig()
    return _logging_config


def setup_application_logging() -> logging.Logger:
    """Setup application logging - call this once at startup."""
    config = get_logging_config()
    return config.setup_logging()


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
