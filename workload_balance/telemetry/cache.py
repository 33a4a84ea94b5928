# workload_balance/telemetry/cache.py
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple, TypeVar

from ..context import CycleContext

log = logging.getLogger(__name__)

T = TypeVar("T")

# шаг ожидания чужого запроса, между шагами проверяем дедлайн и отмену цикла
WAIT_SLICE_SECONDS = 0.05


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class TelemetryCache:
    """
    Ограниченный TTL-кэш, общий для параллельных вызовов скоринга.

    Свежие значения читаются без блокировки. Запись сериализуется по ключу:
    первый вызов идёт в бэкенд, остальные ждут его и берут сохранённое
    значение. Ожидающий вызов подчиняется своему CycleContext: по дедлайну
    или отмене он получает TelemetryUnavailable, не дожидаясь чужого запроса.

    Блокировка ключа живёт, только пока по нему кто-то работает.
    Неудачные запросы не кэшируются.
    """

    def __init__(self, ttl_seconds: float, max_entries: int = 1024, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._key_locks: Dict[Hashable, _KeyLock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def in_flight(self) -> int:
        """Сколько ключей сейчас держат блокировку (запрос или ожидание)."""
        with self._lock:
            return len(self._key_locks)

    def _fresh(self, key: Hashable):
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            return None
        return entry

    def get(self, key: Hashable):
        entry = self._fresh(key)
        return None if entry is None else entry[1]

    def get_or_fetch(self, key: Hashable, fetch: Callable[[], T], ctx: Optional[CycleContext] = None,
                     subject: Optional[str] = None) -> T:
        entry = self._fresh(key)
        if entry is not None:
            return entry[1]

        slot = self._checkout(key)
        try:
            self._acquire(slot.lock, ctx, subject)
            try:
                entry = self._fresh(key)
                if entry is not None:
                    log.debug(f"telemetry cache hit after wait: {key}")
                    return entry[1]
                if ctx is not None:
                    ctx.check(subject)
                value = fetch()
                self._store(key, value)
                return value
            finally:
                slot.lock.release()
        finally:
            self._checkin(key, slot)

    def _checkout(self, key: Hashable) -> _KeyLock:
        with self._lock:
            slot = self._key_locks.get(key)
            if slot is None:
                slot = self._key_locks[key] = _KeyLock()
            slot.users += 1
            return slot

    def _checkin(self, key: Hashable, slot: _KeyLock) -> None:
        with self._lock:
            slot.users -= 1
            if slot.users == 0 and self._key_locks.get(key) is slot:
                del self._key_locks[key]

    @staticmethod
    def _acquire(lock: threading.Lock, ctx: Optional[CycleContext], subject: Optional[str]) -> None:
        if ctx is None:
            lock.acquire()
            return
        while True:
            ctx.check(subject)
            remaining = ctx.remaining()
            step = WAIT_SLICE_SECONDS if remaining is None else min(WAIT_SLICE_SECONDS, remaining)
            if lock.acquire(timeout=step):
                return

    def _store(self, key: Hashable, value: Any) -> None:
        with self._lock:
            now = self._clock()
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict(now)
            self._entries[key] = (now + self.ttl_seconds, value)

    def _evict(self, now: float) -> None:
        # сначала протухшие, потом самые близкие к истечению
        expired = [k for k, (exp, _v) in self._entries.items() if exp <= now]
        for k in expired:
            self._entries.pop(k, None)
        while len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k][0])
            self._entries.pop(oldest, None)

    def clear(self) -> None:
        # блокировки ключей не трогаем: они принадлежат запросам в полёте
        with self._lock:
            self._entries.clear()
