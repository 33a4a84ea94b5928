# workload_balance/config.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from .errors import ConfigError
from .model.entities import WeightVector

log = logging.getLogger(__name__)

FALLBACK_NEUTRAL = "neutral"
FALLBACK_EXCLUDE = "exclude"
NEUTRAL_RAW_SCORE = 0.5


def _floats(raw: str, count: int, name: str) -> Tuple[float, ...]:
    try:
        values = tuple(float(x) for x in raw.split(",") if x.strip())
    except ValueError:
        raise ConfigError(f"{name}: expected {count} comma separated numbers, got {raw!r}")
    if len(values) != count:
        raise ConfigError(f"{name}: expected {count} comma separated numbers, got {raw!r}")
    return values


@dataclass(frozen=True)
class ScoringConfig:
    # Ð±ÑÐºÐµÐ½Ð´ ÑÐµÐ»ÐµÐ¼ÐµÑÑÐ¸Ð¸
    prometheus_address: str = "http://prometheus:9090"
    time_range_minutes: int = 5
    network_interface: str = "eth0"
    host_label: str = "node"
    request_timeout_seconds: float = 2.0
    cache_ttl_seconds: float = 5.0
    cache_max_entries: int = 1024

    # Ð²ÐµÑÐ°: (alpha, beta, gamma, delta)
    base_weights: Tuple[float, float, float, float] = (0.4, 0.3, 0.15, 0.15)
    threshold: float = 0.7
    bump: float = 0.1
    compensation: float = 0.05

    max_score: int = 100

    # cores, MiB, MiB/s, MiB/s
    reference_ceilings: Tuple[float, float, float, float] = (1.0, 1024.0, 500.0, 125.0)
    # storage MiB/s, network MiB/s Ð´Ð»Ñ Ð½Ð¾Ð´ Ð±ÐµÐ· io-Ð°Ð½Ð½Ð¾ÑÐ°ÑÐ¸Ð¹
    default_io_capacity: Tuple[float, float] = (500.0, 125.0)

    telemetry_fallback: str = FALLBACK_NEUTRAL
    cycle_deadline_seconds: float = 10.0
    log_level: str = "INFO"

    @property
    def weights(self) -> WeightVector:
        return WeightVector(*self.base_weights)

    @property
    def window(self) -> str:
        return f"{int(self.time_range_minutes)}m"

    def validate(self) -> "ScoringConfig":
        if any(c <= 0 for c in self.reference_ceilings):
            raise ConfigError(f"reference_ceilings must be > 0, got {self.reference_ceilings}")
        if any(c <= 0 for c in self.default_io_capacity):
            raise ConfigError(f"default_io_capacity must be > 0, got {self.default_io_capacity}")
        if any(w < 0 for w in self.base_weights):
            raise ConfigError(f"base_weights must be >= 0, got {self.base_weights}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ConfigError(f"threshold must be within [0, 1], got {self.threshold}")
        if self.max_score < 1:
            raise ConfigError(f"max_score must be >= 1, got {self.max_score}")
        if self.time_range_minutes < 1:
            raise ConfigError(f"time_range_minutes must be >= 1, got {self.time_range_minutes}")
        if self.telemetry_fallback not in (FALLBACK_NEUTRAL, FALLBACK_EXCLUDE):
            raise ConfigError(f"unknown telemetry_fallback {self.telemetry_fallback!r}")
        if self.request_timeout_seconds <= 0 or self.cycle_deadline_seconds <= 0:
            raise ConfigError("timeouts must be > 0")
        return self

    @classmethod
    def from_env(cls) -> "ScoringConfig":
        d = cls()
        cfg = cls(
            prometheus_address=os.getenv("WB_PROMETHEUS_ADDRESS", d.prometheus_address),
            time_range_minutes=int(os.getenv("WB_TIME_RANGE_MINUTES", str(d.time_range_minutes))),
            network_interface=os.getenv("WB_NETWORK_INTERFACE", d.network_interface),
            host_label=os.getenv("WB_HOST_LABEL", d.host_label),
            request_timeout_seconds=float(os.getenv("WB_REQUEST_TIMEOUT_SECONDS", str(d.request_timeout_seconds))),
            cache_ttl_seconds=float(os.getenv("WB_CACHE_TTL_SECONDS", str(d.cache_ttl_seconds))),
            cache_max_entries=int(os.getenv("WB_CACHE_MAX_ENTRIES", str(d.cache_max_entries))),
            base_weights=_floats(os.getenv("WB_BASE_WEIGHTS", "0.4,0.3,0.15,0.15"), 4, "WB_BASE_WEIGHTS"),
            threshold=float(os.getenv("WB_THRESHOLD", str(d.threshold))),
            bump=float(os.getenv("WB_BUMP", str(d.bump))),
            compensation=float(os.getenv("WB_COMPENSATION", str(d.compensation))),
            max_score=int(os.getenv("WB_MAX_SCORE", str(d.max_score))),
            reference_ceilings=_floats(os.getenv("WB_REFERENCE_CEILINGS", "1.0,1024,500,125"), 4,
                                       "WB_REFERENCE_CEILINGS"),
            default_io_capacity=_floats(os.getenv("WB_DEFAULT_IO_CAPACITY", "500,125"), 2,
                                        "WB_DEFAULT_IO_CAPACITY"),
            telemetry_fallback=os.getenv("WB_TELEMETRY_FALLBACK", d.telemetry_fallback).strip().lower(),
            cycle_deadline_seconds=float(os.getenv("WB_CYCLE_DEADLINE_SECONDS", str(d.cycle_deadline_seconds))),
            log_level=os.getenv("WB_LOG_LEVEL", d.log_level),
        )
        return cfg.validate()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: "ScoringConfig" | None = None) -> "ScoringConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
        values = {}
        for k, v in data.items():
            values[k] = tuple(float(x) for x in v) if isinstance(v, list) else v
        return replace(base or cls(), **values).validate()

    @classmethod
    def from_file(cls, path: Union[str, Path], base: "ScoringConfig" | None = None) -> "ScoringConfig":
        """
        JSON-Ð¾Ð±ÑÐµÐºÑ Ñ ÑÐµÐ¼Ð¸ Ð¶Ðµ ÐºÐ»ÑÑÐ°Ð¼Ð¸, ÑÑÐ¾ Ð¸ Ð¿Ð¾Ð»Ñ Ð´Ð°ÑÐ°ÐºÐ»Ð°ÑÑÐ°.
        ÐÑÑÑÑÑÑÐ²ÑÑÑÐ¸Ðµ ÐºÐ»ÑÑÐ¸ Ð±ÐµÑÑÑÑÑ Ð¸Ð· `base` (Ð¸Ð»Ð¸ Ð¸Ð· Ð·Ð½Ð°ÑÐµÐ½Ð¸Ð¹ Ð¿Ð¾ ÑÐ¼Ð¾Ð»ÑÐ°Ð½Ð¸Ñ).
        """
        p = Path(path)
        try:
            data = json.loads(p.read_text("utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"cannot read config {p}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"config {p} must contain a JSON object")
        cfg = cls.from_dict(data, base=base)
        log.info(f"Loaded scoring config from {p}")
        return cfg
