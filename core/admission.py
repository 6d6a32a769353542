# core/admission.py
"""Fixed-window admission control per (client, operation class).

Windows roll over on wall-clock boundaries (floor(now / window) * window), so
a client can burst up to twice the threshold across a boundary. That is the
intended behaviour, not an oversight.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Mapping, Protocol
from redis.asyncio import Redis
from core.entities import Decision
from repository.namespaces import RATE_LIMITS
from util.enums import OperationClass

logger = logging.getLogger(__name__)

TimeFn = Callable[[], float]

# Smallest retry hint handed out; keeps "denied" distinguishable from 0.
_MIN_RETRY_AFTER = 0.001


@dataclass(frozen=True)
class RateLimitConfig:
    """Threshold for one operation class."""

    max_requests: int
    window_seconds: float


def window_bounds(now: float, window_seconds: float) -> tuple[float, float]:
    start = math.floor(now / window_seconds) * window_seconds
    return start, start + window_seconds


class AdmissionController(Protocol):
    async def allow(self, client_key: str, op: OperationClass) -> Decision: ...


class _Window:
    __slots__ = ("lock", "start", "count", "retired")

    def __init__(self, start: float) -> None:
        self.lock = Lock()
        self.start = start
        self.count = 0
        self.retired = False


class InMemoryAdmissionController:
    """
    Thread-safe fixed-window counter for a single process.

    Each (client, op) counter carries its own lock; there is no lock shared by
    all traffic. Stale windows are reset on access, and once per new window an
    opportunistic prune retires counters nobody has touched since, so idle
    clients do not accumulate.
    """

    def __init__(
        self,
        limits: Mapping[OperationClass, RateLimitConfig],
        time_fn: TimeFn = time.time,
    ) -> None:
        missing = set(OperationClass) - set(limits)
        if missing:
            raise ValueError(f"missing limits for {sorted(m.value for m in missing)}")
        self._limits = dict(limits)
        self._time = time_fn
        self._windows: dict[tuple[str, OperationClass], _Window] = {}
        self._prune_lock = Lock()
        self._pruned_through: dict[OperationClass, float] = {}

    async def allow(self, client_key: str, op: OperationClass) -> Decision:
        return self.check(client_key, op)

    def check(
        self, client_key: str, op: OperationClass, now: float | None = None
    ) -> Decision:
        cfg = self._limits[op]
        now = self._time() if now is None else now
        start, end = window_bounds(now, cfg.window_seconds)
        self._maybe_prune(op, start)

        key = (client_key, op)
        while True:
            window = self._windows.get(key)
            if window is None:
                window = self._windows.setdefault(key, _Window(start))
            with window.lock:
                if window.retired:
                    # Pruned between lookup and lock; fetch the replacement.
                    continue
                if window.start < start:
                    window.start = start
                    window.count = 0
                if window.count >= cfg.max_requests:
                    retry_after = max(end - now, _MIN_RETRY_AFTER)
                    logger.debug(
                        "admission.denied op=%s count=%d retry_after=%.1f",
                        op.value,
                        window.count,
                        retry_after,
                    )
                    return Decision(allowed=False, retry_after=retry_after)
                window.count += 1
                return Decision(allowed=True)

    def current_count(
        self, client_key: str, op: OperationClass, now: float | None = None
    ) -> int:
        cfg = self._limits[op]
        now = self._time() if now is None else now
        start, _ = window_bounds(now, cfg.window_seconds)
        window = self._windows.get((client_key, op))
        if window is None:
            return 0
        with window.lock:
            return window.count if window.start >= start else 0

    def tracked_keys(self) -> int:
        return len(self._windows)

    def _maybe_prune(self, op: OperationClass, start: float) -> None:
        if self._pruned_through.get(op, -math.inf) >= start:
            return
        # Whoever gets here first prunes; everyone else carries on.
        if not self._prune_lock.acquire(blocking=False):
            return
        try:
            if self._pruned_through.get(op, -math.inf) >= start:
                return
            removed = 0
            for key, window in list(self._windows.items()):
                if key[1] is not op:
                    continue
                with window.lock:
                    if window.start < start and self._windows.get(key) is window:
                        window.retired = True
                        del self._windows[key]
                        removed += 1
            self._pruned_through[op] = start
            if removed:
                logger.debug("admission.prune op=%s removed=%d", op.value, removed)
        finally:
            self._prune_lock.release()


class RedisAdmissionController:
    """
    Same fixed-window semantics shared across processes through Redis.

    One key per (op, client, window); INCR + PEXPIRE in a MULTI block, with the
    TTL set to the remainder of the window so old windows evict themselves.
    """

    def __init__(
        self,
        redis: Redis,
        limits: Mapping[OperationClass, RateLimitConfig],
        time_fn: TimeFn = time.time,
        prefix: str = RATE_LIMITS,
    ) -> None:
        self._redis = redis
        self._limits = dict(limits)
        self._time = time_fn
        self._prefix = prefix

    def _key(self, client_key: str, op: OperationClass, start: float) -> str:
        return f"{self._prefix}:{op.value}:{client_key}:{int(start)}"

    async def allow(self, client_key: str, op: OperationClass) -> Decision:
        cfg = self._limits[op]
        now = self._time()
        start, end = window_bounds(now, cfg.window_seconds)
        key = self._key(client_key, op, start)
        ttl_ms = max(int(math.ceil((end - now) * 1000)), 1)

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.pexpire(key, ttl_ms)
            count, _ = await pipe.execute()

        # INCR counts this attempt, so the n-th request sees n.
        if int(count) > cfg.max_requests:
            return Decision(allowed=False, retry_after=max(end - now, _MIN_RETRY_AFTER))
        return Decision(allowed=True)
