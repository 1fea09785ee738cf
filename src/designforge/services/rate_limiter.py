"""Rate Limiter Service
======================

Fixed-window request limiting per caller.

Key Features:
- Pure decision function (``evaluate_window``) independent of storage
- Pluggable ``RateLimitStore``; the in-memory store serializes updates per
  key while different keys never share a lock
- Expired windows are purged once the store grows past ``max_keys``

State is process-local and lost on restart. Multi-process deployments need a
shared store implementing ``RateLimitStore``.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, TypeVar

from .service_base import RateLimited

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class RateLimiterConfig:
    """Configuration for rate limiter behavior.

    Attributes:
        max_requests: Requests admitted per key within one window
        window_seconds: Window length; the counter resets once it elapses
        max_keys: Store size that triggers a purge of expired windows
    """
    max_requests: int = 10
    window_seconds: float = 60.0
    max_keys: int = 10000


@dataclass(frozen=True)
class WindowState:
    """Counter for one key within its current window."""
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single admission check."""
    allowed: bool
    remaining: int
    reset_at: float
    retry_after: float = 0.0


def evaluate_window(
    state: Optional[WindowState], now: float, config: RateLimiterConfig
) -> Tuple[WindowState, RateLimitDecision]:
    """Count one request against ``state`` and decide whether to admit it.

    No state, or a window that has elapsed, opens a new window with a count
    of one. Otherwise the count is incremented and the request is denied
    once it exceeds ``max_requests``.
    """
    if state is None or now > state.reset_at:
        new_state = WindowState(count=1, reset_at=now + config.window_seconds)
    else:
        new_state = WindowState(count=state.count + 1, reset_at=state.reset_at)

    allowed = new_state.count <= config.max_requests
    decision = RateLimitDecision(
        allowed=allowed,
        remaining=max(0, config.max_requests - new_state.count),
        reset_at=new_state.reset_at,
        retry_after=0.0 if allowed else max(0.0, new_state.reset_at - now),
    )
    return new_state, decision


class RateLimitStore(ABC):
    """Storage for per-key window state.

    ``update`` must apply ``fn`` atomically with respect to other updates of
    the same key.
    """

    @abstractmethod
    def update(self, key: str, fn: Callable[[Optional[WindowState]], Tuple[WindowState, T]]) -> T:
        """Replace the state of ``key`` with ``fn(state)[0]`` and return ``fn(state)[1]``."""

    @abstractmethod
    def get(self, key: str) -> Optional[WindowState]:
        """Current state of ``key``, if any."""

    @abstractmethod
    def purge_expired(self, now: float) -> int:
        """Drop windows that ended before ``now``; return how many were removed."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every window."""

    @abstractmethod
    def __len__(self) -> int:
        ...


class _Entry:
    __slots__ = ('lock', 'state')

    def __init__(self):
        self.lock = threading.Lock()
        self.state: Optional[WindowState] = None


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local store with one lock per key."""

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}
        self._registry_lock = threading.Lock()

    def _entry(self, key: str) -> _Entry:
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            return entry

    def update(self, key, fn):
        while True:
            entry = self._entry(key)
            with entry.lock:
                # A purge may have replaced the entry while we waited
                if self._entries.get(key) is not entry:
                    continue
                entry.state, result = fn(entry.state)
                return result

    def get(self, key):
        entry = self._entries.get(key)
        return entry.state if entry else None

    def purge_expired(self, now):
        removed = 0
        with self._registry_lock:
            for key, entry in list(self._entries.items()):
                if not entry.lock.acquire(blocking=False):
                    continue
                try:
                    if entry.state is None or now > entry.state.reset_at:
                        del self._entries[key]
                        removed += 1
                finally:
                    entry.lock.release()
        return removed

    def clear(self):
        with self._registry_lock:
            self._entries.clear()

    def __len__(self):
        return len(self._entries)


class RateLimiter:
    """Fixed-window limiter keyed by caller.

    Usage:
        limiter = RateLimiter(RateLimiterConfig(max_requests=10, window_seconds=60))
        limiter.check('ip:203.0.113.7')  # raises RateLimited when over budget
    """

    def __init__(
        self,
        config: Optional[RateLimiterConfig] = None,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or RateLimiterConfig()
        self.store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock

    def hit(self, key: str) -> RateLimitDecision:
        """Count a request for ``key`` and return the decision without raising."""
        now = self._clock()
        if len(self.store) > self.config.max_keys:
            purged = self.store.purge_expired(now)
            logger.debug(f"Purged {purged} expired rate-limit windows")
        return self.store.update(key, lambda state: evaluate_window(state, now, self.config))

    def check(self, key: str) -> RateLimitDecision:
        """Count a request for ``key``; raise ``RateLimited`` when over budget."""
        decision = self.hit(key)
        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for {key}")
            retry_after = max(1, math.ceil(decision.retry_after))
            raise RateLimited(
                f'Rate limit exceeded for {key}',
                headers={'Retry-After': str(retry_after)},
            )
        return decision

    def reset(self) -> None:
        """Forget every window (used by tests)."""
        self.store.clear()
