# SPDX-License-Identifier: Apache-2.0
"""Per-client request limiter for the translation entry point.

The limiter is an ordinary object owned by whoever accepts requests; it
keeps no module-level state and takes its clock as a parameter.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from csv_translator.constants import MAX_REQUESTS_PER_WINDOW, RATE_LIMIT_WINDOW


@dataclass
class _Window:
    started_at: float
    count: int


class RequestRateLimiter:
    """Fixed-window request counter keyed by client identity.

    Expired windows are dropped by a sweep that runs at most once per
    window, so only clients seen recently are kept in memory.

    Example:
        >>> limiter = RequestRateLimiter(max_requests=8, window=60.0)
        >>> limiter.check_and_increment("203.0.113.7")
        True
    """

    def __init__(
        self,
        max_requests: int = MAX_REQUESTS_PER_WINDOW,
        window: float = RATE_LIMIT_WINDOW,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got {max_requests}")
        if window <= 0:
            raise ValueError(f"window must be > 0, got {window}")
        self._max_requests = max_requests
        self._window = window
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._windows)

    def check_and_increment(self, client_id: str) -> bool:
        """Count a request and report whether it is allowed."""
        now = self._clock()
        if now - self._last_sweep >= self._window:
            self._evict_expired(now)
        entry = self._windows.get(client_id)
        if entry is None or now - entry.started_at >= self._window:
            self._windows[client_id] = _Window(started_at=now, count=1)
            return True
        entry.count += 1
        return entry.count <= self._max_requests

    def _evict_expired(self, now: float) -> None:
        # runs at most once per window
        expired = [
            client_id
            for client_id, entry in self._windows.items()
            if now - entry.started_at >= self._window
        ]
        for client_id in expired:
            del self._windows[client_id]
        self._last_sweep = now

    def remaining(self, client_id: str) -> int:
        """Requests the client may still make in its current window."""
        entry = self._windows.get(client_id)
        if entry is None or self._clock() - entry.started_at >= self._window:
            return self._max_requests
        return max(self._max_requests - entry.count, 0)

    def reset(self, client_id: str | None = None) -> None:
        """Forget one client, or all clients when ``client_id`` is None."""
        if client_id is None:
            self._windows.clear()
        else:
            self._windows.pop(client_id, None)
