"""
Async Utilities
===============

Run the aiohttp-based service coroutines from synchronous Flask views,
whether or not an event loop is already running in the calling thread.
"""

import asyncio
import logging
import threading
from typing import Any, Coroutine, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def run_async_safely(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine safely from a synchronous context.

    Strategy:
    1. If a loop is already running in this thread (we are inside async
       code), run the coroutine on a fresh loop in a helper thread.
    2. Otherwise run it on a new event loop owned by this call.

    Args:
        coro: The coroutine to run

    Returns:
        The result of the coroutine

    Raises:
        Any exception raised by the coroutine
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        logger.debug("Running async code via separate thread (event loop already running)")
        return _run_in_new_thread(coro)

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


def _run_in_new_thread(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine in a new thread with its own event loop."""
    result = None
    exception = None

    def _thread_runner():
        nonlocal result, exception
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            result = loop.run_until_complete(coro)
        except Exception as e:
            exception = e
        finally:
            loop.close()

    thread = threading.Thread(target=_thread_runner, daemon=True)
    thread.start()
    thread.join()

    if exception is not None:
        raise exception
    return result
