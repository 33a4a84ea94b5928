# workload_balance/scoring/calculator.py
from __future__ import annotations

from typing import Tuple

from ..errors import InvalidCapacity
from ..model.entities import HostUtilization, WeightVector, clamp
from ..types import DIMENSIONS


def contributions(host: HostUtilization) -> Tuple[float, float, float, float]:
    """
    Ð¡Ð²Ð¾Ð±Ð¾Ð´Ð½Ð°Ñ Ð´Ð¾Ð»Ñ ÐºÐ°Ð¶Ð´Ð¾Ð³Ð¾ Ð¸Ð·Ð¼ÐµÑÐµÐ½Ð¸Ñ, clamp(1 - used/capacity, 0, 1).

    ÐÐµÑÐµÐ¿Ð¾Ð´Ð¿Ð¸ÑÐ°Ð½Ð½Ð¾Ðµ Ð¸Ð·Ð¼ÐµÑÐµÐ½Ð¸Ðµ Ð´Ð°ÑÑ 0, Ð° Ð½Ðµ Ð¾ÑÑÐ¸ÑÐ°ÑÐµÐ»ÑÐ½ÑÐ¹ Ð²ÐºÐ»Ð°Ð´.
    """
    result = []
    for dim, used, cap in zip(DIMENSIONS, host.usage(), host.capacity()):
        if cap is None or cap <= 0:
            raise InvalidCapacity(dim, cap)
        result.append(clamp(1.0 - float(used) / float(cap)))
    return tuple(result)


def compute_raw_score(host: HostUtilization, weights: WeightVector) -> float:
    """Weighted mean of the free shares, always within [0, 1]."""
    parts = contributions(host)
    total = weights.total
    if total <= 0:
        # ÑÐ¾Ð»ÑÐºÐ¾ Ð¿ÑÐ¸ Ð½ÑÐ»ÐµÐ²Ð¾Ð¼ Ð¿Ð¾Ð»ÑÐ·Ð¾Ð²Ð°ÑÐµÐ»ÑÑÐºÐ¾Ð¼ Ð±Ð°Ð·Ð¾Ð²Ð¾Ð¼ Ð²ÐµÐºÑÐ¾ÑÐµ
        return sum(parts) / len(parts)
    score = sum(w * c for w, c in zip(weights.as_tuple(), parts)) / total
    return clamp(score)
