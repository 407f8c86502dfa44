"""Per-provider circuit breakers."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class ProviderHealthRecord:
    """Failure bookkeeping for one provider."""

    failures: int = 0
    last_failure: Optional[float] = None


class CircuitBreakers:
    """Failure counters keyed by provider name.

    A breaker is closed while ``failures < threshold``. Once open it stays open
    until ``recovery_s`` has elapsed since the last recorded failure; the next
    availability check after that resets the record.
    """

    def __init__(self, *, threshold: int = 3, recovery_s: float = 300.0, clock: Clock = time.time) -> None:
        self.threshold = threshold
        self.recovery_s = recovery_s
        self._clock = clock
        self._records: Dict[str, ProviderHealthRecord] = {}
        self._lock = threading.Lock()

    def _record(self, provider: str) -> ProviderHealthRecord:
        record = self._records.get(provider)
        if record is None:
            record = ProviderHealthRecord()
            self._records[provider] = record
        return record

    def is_available(self, provider: str) -> bool:
        with self._lock:
            record = self._record(provider)
            if record.failures < self.threshold:
                return True
            if record.last_failure is not None and self._clock() - record.last_failure >= self.recovery_s:
                logger.info("Circuit breaker reset provider=%s after %d failures", provider, record.failures)
                record.failures = 0
                record.last_failure = None
                return True
            return False

    def record_failure(self, provider: str) -> int:
        with self._lock:
            record = self._record(provider)
            record.failures += 1
            record.last_failure = self._clock()
            failures = record.failures
        logger.warning("Provider failure recorded provider=%s failures=%d/%d", provider, failures, self.threshold)
        return failures

    def record_success(self, provider: str) -> None:
        with self._lock:
            record = self._record(provider)
            record.failures = 0
            record.last_failure = None

    def snapshot(self, providers: Iterable[str]) -> Dict[str, Dict[str, object]]:
        """Read-only view of breaker state; does not trigger recovery."""

        now = self._clock()
        view: Dict[str, Dict[str, object]] = {}
        with self._lock:
            for provider in providers:
                record = self._records.get(provider, ProviderHealthRecord())
                open_ = record.failures >= self.threshold and (
                    record.last_failure is None or now - record.last_failure < self.recovery_s
                )
                view[provider] = {
                    "available": not open_,
                    "failures": record.failures,
                    "last_failure": record.last_failure,
                }
        return view

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
        logger.info("All circuit breakers reset")


__all__ = ["CircuitBreakers", "ProviderHealthRecord"]
