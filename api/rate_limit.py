"""Simple per-IP sliding-window rate limiter."""

import threading
import time
from collections.abc import Callable

from fastapi import HTTPException, Request


class RateLimiter:
    def __init__(self, limit: int, window: float, clock: Callable[[], float] = time.time):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._request_log: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._last_purge = clock()

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._request_log)

    def check(self, client_ip: str) -> None:
        now = self._clock()
        with self._lock:
            # Drop clients with nothing left in the window, at most once per window
            if now - self._last_purge >= self.window:
                self._purge(now)

            recent = [t for t in self._request_log.get(client_ip, ()) if now - t < self.window]
            if len(recent) >= self.limit:
                self._request_log[client_ip] = recent
                raise HTTPException(
                    status_code=429,
                    detail="Too many requests from this IP, please try again later.",
                )
            recent.append(now)
            self._request_log[client_ip] = recent

    def _purge(self, now: float) -> None:
        expired = [ip for ip, stamps in self._request_log.items() if not stamps or now - stamps[-1] >= self.window]
        for ip in expired:
            del self._request_log[ip]
        self._last_purge = now


def enforce_rate_limit(request: Request) -> None:
    limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return
    client_ip = request.client.host if request.client else "unknown"
    limiter.check(client_ip)
