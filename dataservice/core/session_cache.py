"""Token-addressed cache of live directory clients.

Each entry expires at an absolute time fixed on insertion (insertion time +
TTL); reading an entry never renews it. Expired and unknown tokens fail the
same way, so callers cannot tell them apart.
"""
from __future__ import annotations
import logging
import threading
import time
import uuid
from typing import Any, Callable, Optional

from cachetools import TTLCache  # type: ignore[import-untyped]

from .exceptions import SessionConflictError, SessionLimitError, SessionNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TTL_MINUTES = 60
DEFAULT_MAX_ENTRIES = 10000


def _mask(token: str) -> str:
    return f"{token[:8]}..."


class SessionCache:
    """Process-wide session store backed by :class:`cachetools.TTLCache`.

    Attributes:
        ttl_minutes: Lifetime of every entry, counted from insertion
        max_entries: Capacity of the underlying cache

    Usage:
        sessions = SessionCache(ttl_minutes=60)
        token = sessions.put(client)
        client = sessions.get(token)
    """

    def __init__(
        self,
        ttl_minutes: float = DEFAULT_TTL_MINUTES,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ):
        """Initialize session cache.

        Args:
            ttl_minutes: Session lifetime in minutes; zero or less expires entries at once
            max_entries: Maximum number of live sessions
            timer: Clock in seconds (injectable for tests)
        """
        self.ttl_minutes = ttl_minutes
        self.max_entries = max_entries
        self._cache: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_minutes * 60, timer=timer)
        self._lock = threading.Lock()

    def put(self, handle: Any, token: Optional[str] = None) -> str:
        """Store a client handle.

        Args:
            handle: Live directory client
            token: Explicit token; a new one is generated when omitted

        Returns:
            The token the handle is stored under

        Raises:
            SessionConflictError: If the explicit token is already live
            SessionLimitError: If max_entries live sessions are already stored
        """
        with self._lock:
            self._cache.expire()
            if token:
                if token in self._cache:
                    raise SessionConflictError(f"token {_mask(token)} is already in use")
            else:
                token = str(uuid.uuid4())

            # never let TTLCache evict a live session
            if len(self._cache) >= self.max_entries:
                raise SessionLimitError(f"session limit of {self.max_entries} reached")

            self._cache[token] = handle

        logger.info(f"Session {_mask(token)} stored (ttl={self.ttl_minutes}m)")
        return token

    def contains(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return token in self._cache

    def get(self, token: Optional[str]) -> Any:
        """Resolve a token to its client handle.

        Raises:
            SessionNotFoundError: If the token is missing, unknown or expired
        """
        if not token:
            raise SessionNotFoundError("token must be specified")

        with self._lock:
            try:
                return self._cache[token]
            except KeyError:
                pass

        logger.debug(f"Session {_mask(token)} not found")
        raise SessionNotFoundError("token was not found")

    def clear(self) -> None:
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.info(f"Cleared {count} session(s)")

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
