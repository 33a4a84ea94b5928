# workload_balance/scoring/normalizer.py
from __future__ import annotations

import math
from typing import Dict, Mapping

from ..errors import NormalizationError
from ..types import HostId

MAX_SCORE = 100


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_scores(raw_scores: Mapping[HostId, float], max_score: int = MAX_SCORE) -> Dict[HostId, int]:
    """
    Min-max Ð¿ÐµÑÐµÐ²Ð¾Ð´ ÑÑÑÑÑ ÑÐºÐ¾ÑÐ¾Ð² ÑÐ¸ÐºÐ»Ð° Ð² [0, max_score].

    ÐÑÑÑÐ¸Ð¹ ÑÑÑÐ¾Ð¹ ÑÐºÐ¾Ñ Ð¿Ð¾Ð»ÑÑÐ°ÐµÑ max_score, ÑÑÐ´ÑÐ¸Ð¹ 0, ÑÐ°Ð²Ð½ÑÐµ Ð¾ÑÑÐ°ÑÑÑÑ ÑÐ°Ð²Ð½ÑÐ¼Ð¸.
    ÐÑÐ»Ð¸ Ñ Ð²ÑÐµÑ ÑÐ¾ÑÑÐ¾Ð² ÑÐºÐ¾Ñ Ð¾Ð´Ð¸Ð½Ð°ÐºÐ¾Ð²ÑÐ¹ (Ð² ÑÐ¾Ð¼ ÑÐ¸ÑÐ»Ðµ ÐµÐ´Ð¸Ð½ÑÑÐ²ÐµÐ½Ð½ÑÐ¹ ÐºÐ°Ð½Ð´Ð¸Ð´Ð°Ñ),
    Ð²ÑÐµ Ð¿Ð¾Ð»ÑÑÐ°ÑÑ max_score.
    """
    if not raw_scores:
        raise NormalizationError("cannot normalize an empty candidate set")

    lo = min(raw_scores.values())
    hi = max(raw_scores.values())
    if hi == lo:
        return {host: max_score for host in raw_scores}

    span = hi - lo
    return {
        host: _round_half_up(max_score * (raw - lo) / span)
        for host, raw in raw_scores.items()
    }
