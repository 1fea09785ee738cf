"""
Route Decorators
================

Guards shared by the protected API endpoints: bearer identity, per-caller
rate limiting and timing logs.
"""

import functools
import logging
import time
from typing import Any, Callable, TypeVar

from flask import current_app, g, request

from designforge.services.service_locator import ServiceLocator

logger = logging.getLogger(__name__)

T = TypeVar('T')


def client_key() -> str:
    """Rate-limit key for the current request.

    The verified subject when an identity is attached, otherwise the first
    ``X-Forwarded-For`` hop or the socket address.
    """
    identity = getattr(g, 'identity', None)
    if identity is not None:
        return f"user:{identity.subject}"
    forwarded = request.headers.get('X-Forwarded-For', '')
    address = forwarded.split(',')[0].strip() if forwarded else ''
    return f"ip:{address or request.remote_addr or 'unknown'}"


def require_identity(view: Callable[..., T]) -> Callable[..., T]:
    """Verify the bearer token and expose the caller as ``g.identity``."""
    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        verifier = ServiceLocator.get_identity_verifier()
        g.identity = verifier.verify(request.headers.get('Authorization'))
        logger.debug(f"Authenticated subject {g.identity.subject}")
        return view(*args, **kwargs)

    return wrapper


def rate_limited(view: Callable[..., T]) -> Callable[..., T]:
    """Count the request against the caller's window; 429 when over budget."""
    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        if current_app.config.get('RATE_LIMIT_ENABLED', True):
            ServiceLocator.get_rate_limiter().check(client_key())
        return view(*args, **kwargs)

    return wrapper


def log_execution(level: int = logging.INFO) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator to log how long a view took and whether it failed."""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            func_name = func.__name__
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.warning(f"{func_name} failed after {duration:.4f}s: {type(e).__name__}")
                raise
            logger.log(level, f"{func_name} completed in {time.perf_counter() - start_time:.4f}s")
            return result

        return wrapper
    return decorator
