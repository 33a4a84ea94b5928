# workload_balance/context.py
from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Set

from .errors import TelemetryUnavailable
from .model.entities import CohortWorkload, InstanceRef
from .types import HostId


class CycleContext:
    """
    Ð¡Ð¾ÑÑÐ¾ÑÐ½Ð¸Ðµ Ð¾Ð´Ð½Ð¾Ð³Ð¾ ÑÐ¸ÐºÐ»Ð° Ð¿Ð»Ð°Ð½Ð¸ÑÐ¾Ð²Ð°Ð½Ð¸Ñ, ÑÐ²Ð½Ð¾ Ð¿ÐµÑÐµÐ´Ð°ÑÑÑÑ Ð² ÐºÐ°Ð¶Ð´ÑÐ¹ Ð²ÑÐ·Ð¾Ð².

    Ð¥ÑÐ°Ð½Ð¸Ñ Ð´ÐµÐ´Ð»Ð°Ð¹Ð½ ÑÐ¸ÐºÐ»Ð° Ð¸ ÑÐ»Ð°Ð³ Ð¾ÑÐ¼ÐµÐ½Ñ, Ð¼ÐµÐ¼Ð¾ Ð½Ð°Ð³ÑÑÐ·ÐºÐ¸ ÐºÐ¾Ð³Ð¾ÑÑÑ (Ð¾Ð´Ð½Ð¾ Ð½Ð°
    ÑÐµÑÐµÐ½Ð¸Ðµ Ð¾ ÑÐ°Ð·Ð¼ÐµÑÐµÐ½Ð¸Ð¸) Ð¸ Ð¼Ð½Ð¾Ð¶ÐµÑÑÐ²Ð¾ ÑÐ¾ÑÑÐ¾Ð², Ð¸ÑÐºÐ»ÑÑÑÐ½Ð½ÑÑ Ð¸Ð· ÑÐ°Ð½Ð¶Ð¸ÑÐ¾Ð²Ð°Ð½Ð¸Ñ.
    """

    def __init__(self, deadline_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._deadline = None if deadline_seconds is None else clock() + deadline_seconds
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._cohorts: Dict[InstanceRef, CohortWorkload] = {}
        self._cohort_locks: Dict[InstanceRef, threading.Lock] = {}
        self._excluded: Set[HostId] = set()

    # --- Ð´ÐµÐ´Ð»Ð°Ð¹Ð½ / Ð¾ÑÐ¼ÐµÐ½Ð° ---

    def remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        self._cancel.set()

    def check(self, subject: Optional[str] = None) -> None:
        """TelemetryUnavailable, ÐµÑÐ»Ð¸ ÑÐ¾Ð´Ð¸ÑÑ Ð² Ð±ÑÐºÐµÐ½Ð´ Ð±Ð¾Ð»ÑÑÐµ Ð½ÐµÐ»ÑÐ·Ñ."""
        if self.cancelled:
            raise TelemetryUnavailable("scheduling cycle cancelled", subject=subject)
        if self.expired():
            raise TelemetryUnavailable("scheduling cycle deadline exceeded", subject=subject)

    def timeout(self, default: float) -> float:
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)

    # --- ÑÐ¾ÑÑÐ¾ÑÐ½Ð¸Ðµ ÑÐ¸ÐºÐ»Ð° ---

    def cohort_workload(self, ref: InstanceRef, compute: Callable[[], CohortWorkload]) -> CohortWorkload:
        with self._lock:
            cached = self._cohorts.get(ref)
            if cached is not None:
                return cached
            key_lock = self._cohort_locks.setdefault(ref, threading.Lock())
        with key_lock:
            with self._lock:
                cached = self._cohorts.get(ref)
            if cached is not None:
                return cached
            workload = compute()
            with self._lock:
                self._cohorts[ref] = workload
            return workload

    def exclude(self, host_id: HostId) -> None:
        with self._lock:
            self._excluded.add(host_id)

    def is_excluded(self, host_id: HostId) -> bool:
        with self._lock:
            return host_id in self._excluded

    @property
    def excluded(self) -> Set[HostId]:
        with self._lock:
            return set(self._excluded)
