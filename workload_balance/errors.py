# workload_balance/errors.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class WorkloadBalanceError(Exception):
    pass


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------


class TelemetryError(WorkloadBalanceError):
    def __init__(self, message: str, subject: Optional[str] = None, query: Optional[str] = None):
        super().__init__(message)
        self.subject = subject
        self.query = query


class TelemetryUnavailable(TelemetryError):
    """Transport failure, HTTP error, deadline exceeded or cycle cancelled."""


class TelemetryParseError(TelemetryError):
    """The backend answered with a body we cannot read one number from."""


class TelemetryEmptyResult(TelemetryError):
    """The backend returned zero data points for a dimension."""

    def __init__(self, message: str, dimension: Optional[str] = None, subject: Optional[str] = None,
                 query: Optional[str] = None):
        super().__init__(message, subject=subject, query=query)
        self.dimension = dimension


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class NoCohortData(WorkloadBalanceError):
    pass


class InvalidCapacity(WorkloadBalanceError):
    def __init__(self, dimension: str, value: float):
        super().__init__(f"capacity for {dimension} must be > 0, got {value}")
        self.dimension = dimension
        self.value = value


class NormalizationError(WorkloadBalanceError):
    pass


class InventoryError(WorkloadBalanceError):
    pass


class ConfigError(WorkloadBalanceError):
    pass


# ---------------------------------------------------------------------------
# Status returned across the scheduler boundary
# ---------------------------------------------------------------------------


class StatusCode(str, Enum):
    SUCCESS = "Success"
    FALLBACK = "Fallback"   # non-fatal, fallback score applied
    EXCLUDED = "Excluded"   # non-fatal, host ranked last
    ERROR = "Error"         # cycle-level failure


@dataclass(frozen=True)
class Status:
    code: StatusCode = StatusCode.SUCCESS
    message: str = ""

    @classmethod
    def ok(cls) -> "Status":
        return cls(StatusCode.SUCCESS)

    def is_success(self) -> bool:
        return self.code == StatusCode.SUCCESS

    def is_fatal(self) -> bool:
        return self.code == StatusCode.ERROR
