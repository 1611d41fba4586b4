from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request


class RateLimiter:
    """Fixed-window hit counter keyed by arbitrary strings.

    Expired windows are swept at most once per `sweep_interval` seconds, so
    keys from clients that never come back do not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._hits: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + sweep_interval

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def _sweep(self, now: float) -> None:
        expired = [key for key, (_, reset) in self._hits.items() if reset < now]
        for key in expired:
            del self._hits[key]
        self._next_sweep = now + self._sweep_interval

    def check(self, key: str, limit: int, window_seconds: float) -> None:
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            count, reset = self._hits.get(key, (0, now + window_seconds))
            if now > reset:
                count = 0
                reset = now + window_seconds
            count += 1
            self._hits[key] = (count, reset)
            if count > limit:
                raise HTTPException(429, "Too many requests. Try again shortly.")

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._next_sweep = self._clock() + self._sweep_interval


_limiter = RateLimiter()


def _client_ip(request: Request, trust_forwarded: bool = False) -> str:
    # X-Forwarded-For is client-controlled unless a proxy in front rewrites it
    if trust_forwarded:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int) -> None:
    settings = getattr(request.app.state, "settings", None)
    trust = bool(getattr(settings, "trust_proxy", False))
    key = f"{scope}:{_client_ip(request, trust)}"
    _limiter.check(key, limit, window_seconds)


def reset_rate_limits() -> None:
    _limiter.reset()
