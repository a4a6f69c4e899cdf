from __future__ import annotations

import logging
from time import monotonic
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

# expired windows are swept once this many clients are tracked
_SWEEP_AT = 1024


class WindowRateLimiter:
    """Fixed-window request counter keyed by client address.

    A client may make ``max_requests`` calls per ``window`` seconds; the
    window restarts with the first call after it lapses.  ``max_requests``
    of zero or less turns the limiter off.
    """

    def __init__(
        self,
        window: float,
        max_requests: int,
        clock: Callable[[], float] = monotonic,
    ):
        self.window = window
        self.max_requests = max_requests
        self._clock = clock
        self._records: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> bool:
        if self.max_requests <= 0:
            return True
        now = self._clock()
        started, count = self._records.get(key, (now, 0))
        if now - started >= self.window:
            started, count = now, 0
        if count >= self.max_requests:
            return False
        self._records[key] = (started, count + 1)
        if len(self._records) > _SWEEP_AT:
            self._prune(now)
        return True

    def _prune(self, now: float) -> None:
        for key, (started, _) in list(self._records.items()):
            if now - started >= self.window:
                del self._records[key]


async def rate_limit(request: Request) -> None:
    limiter: WindowRateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return
    client_ip = request.client.host if request.client else "unknown"
    if not limiter.hit(client_ip):
        logger.warning("Rate limit exceeded client=%s path=%s", client_ip, request.url.path)
        raise HTTPException(status_code=429, detail="rate limit exceeded")
