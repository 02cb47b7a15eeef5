"""Fixed-window login attempt limiter.

State lives in process memory only: a restart clears every counter, and
separate worker processes or instances do not share counts. Moving to a
shared store (a counter with TTL keyed by identity) is required before
running more than one instance.
"""
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional


@dataclass
class RateLimitRecord:
    attempts: int
    window_reset_at: datetime


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: Optional[datetime] = None


class LoginRateLimiter:
    """Counts attempts per identity (client IP) inside a fixed window.

    One instance is created per process and handed to request handlers, so
    tests can swap in a fresh limiter. Records are overwritten when a window
    expires and are never removed otherwise.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow):
        self._clock = clock
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()

    def check(
        self,
        identity: str,
        max_attempts: int,
        window: timedelta,
        now: Optional[datetime] = None,
    ) -> RateLimitResult:
        """Admit or reject one attempt for ``identity`` and return the remaining budget."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        now = now or self._clock()

        # FastAPI runs sync handlers in a threadpool; read-modify-write must be atomic
        with self._lock:
            record = self._records.get(identity)

            if record is None or now >= record.window_reset_at:
                record = RateLimitRecord(attempts=1, window_reset_at=now + window)
                self._records[identity] = record
                return RateLimitResult(
                    allowed=True,
                    remaining=max_attempts - 1,
                    reset_at=record.window_reset_at,
                )

            if record.attempts >= max_attempts:
                return RateLimitResult(allowed=False, remaining=0, reset_at=record.window_reset_at)

            record.attempts += 1
            return RateLimitResult(
                allowed=True,
                remaining=max_attempts - record.attempts,
                reset_at=record.window_reset_at,
            )

    def get(self, identity: str) -> Optional[RateLimitRecord]:
        """Current record for ``identity`` (None if it never attempted)"""
        with self._lock:
            return self._records.get(identity)

    def __len__(self) -> int:
        return len(self._records)
