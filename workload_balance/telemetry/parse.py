# workload_balance/telemetry/parse.py
from __future__ import annotations

import math
from typing import Any, Optional

from ..errors import TelemetryEmptyResult, TelemetryParseError
from ..types import BYTES_PER_MIB


def bytes_to_mib(value: float) -> float:
    return value / BYTES_PER_MIB


def _sample_value(pair: Any, query: str, subject: Optional[str]) -> float:
    # [<unix ts>, "<value>"]
    if not isinstance(pair, (list, tuple)) or len(pair) != 2:
        raise TelemetryParseError(f"sample is not a [timestamp, value] pair: {pair!r}", subject=subject, query=query)
    raw = pair[1]
    if not isinstance(raw, str):
        raise TelemetryParseError(f"sample value must be a string, got {type(raw).__name__}",
                                  subject=subject, query=query)
    try:
        value = float(raw)
    except ValueError:
        raise TelemetryParseError(f"sample value is not numeric: {raw!r}", subject=subject, query=query)
    if math.isnan(value) or math.isinf(value):
        raise TelemetryParseError(f"sample value is not finite: {raw!r}", subject=subject, query=query)
    return max(0.0, value)


def parse_instant_value(payload: Any, query: str, subject: Optional[str] = None,
                        dimension: Optional[str] = None) -> float:
    """
    ÐÐ¾ÑÑÐ°ÑÑ ÑÐ¾Ð²Ð½Ð¾ Ð¾Ð´Ð½Ð¾ ÑÐ¸ÑÐ»Ð¾ Ð¸Ð· Ð¾ÑÐ²ÐµÑÐ° Prometheus `/api/v1/query`.

    ÐÐ¾Ð¿ÑÑÑÐ¸Ð¼ÑÐµ ÑÐ¾ÑÐ¼Ñ:
      {"status": "success", "data": {"resultType": "vector", "result": [{"metric": {...}, "value": [ts, "1.5"]}]}}
      {"status": "success", "data": {"resultType": "scalar", "result": [ts, "1.5"]}}

    ÐÑÑÑÐ¾Ð¹ vector - TelemetryEmptyResult, Ð²ÑÑ Ð¿ÑÐ¾ÑÐµÐµ Ð½ÐµÐ¿Ð¾Ð´ÑÐ¾Ð´ÑÑÐµÐµ -
    TelemetryParseError.
    """
    if not isinstance(payload, dict):
        raise TelemetryParseError("response body is not a JSON object", subject=subject, query=query)
    status = payload.get("status")
    if status != "success":
        detail = payload.get("error") or f"status={status!r}"
        raise TelemetryParseError(f"backend reported failure: {detail}", subject=subject, query=query)

    data = payload.get("data")
    if not isinstance(data, dict):
        raise TelemetryParseError("response has no 'data' object", subject=subject, query=query)
    result_type = data.get("resultType")
    result = data.get("result")

    if result_type == "scalar":
        return _sample_value(result, query, subject)

    if result_type != "vector":
        raise TelemetryParseError(f"unexpected resultType {result_type!r}", subject=subject, query=query)
    if not isinstance(result, list):
        raise TelemetryParseError("vector result is not a list", subject=subject, query=query)
    if not result:
        raise TelemetryEmptyResult(f"no data points for {dimension or 'query'}",
                                   dimension=dimension, subject=subject, query=query)

    first = result[0]
    if not isinstance(first, dict) or "value" not in first:
        raise TelemetryParseError("vector sample has no 'value'", subject=subject, query=query)
    return _sample_value(first["value"], query, subject)
