# workload_balance/scoring/weights.py
from __future__ import annotations

from ..model.entities import CohortWorkload, WeightVector

BASE_WEIGHTS = WeightVector(alpha=0.4, beta=0.3, gamma=0.15, delta=0.15)
THRESHOLD = 0.7
BUMP = 0.1
COMPENSATION = 0.05


def derive_weights(
    workload: CohortWorkload,
    base: WeightVector = BASE_WEIGHTS,
    threshold: float = THRESHOLD,
    bump: float = BUMP,
    compensation: float = COMPENSATION,
) -> WeightVector:
    """
    Ð¡Ð¼ÐµÑÐ°ÐµÑ Ð²Ð°Ð¶Ð½Ð¾ÑÑÑ Ðº Ð¸Ð·Ð¼ÐµÑÐµÐ½Ð¸ÑÐ¼, ÐºÐ¾ÑÐ¾ÑÑÐµ ÐºÐ¾Ð³Ð¾ÑÑÐ° Ð½Ð°Ð³ÑÑÐ¶Ð°ÐµÑ ÑÐ¸Ð»ÑÐ½ÐµÐµ.

    ÐÐ°Ð¶Ð´Ð¾Ðµ Ð¿ÑÐ°Ð²Ð¸Ð»Ð¾ ÑÑÐ°Ð±Ð°ÑÑÐ²Ð°ÐµÑ Ð½ÐµÐ·Ð°Ð²Ð¸ÑÐ¸Ð¼Ð¾, ÐºÐ¾Ð³Ð´Ð° Ð´Ð¾Ð»Ñ ÐºÐ¾Ð³Ð¾ÑÑÑ Ð²ÑÑÐµ Ð¿Ð¾ÑÐ¾Ð³Ð°.
    CPU Ð¸ Ð¿Ð°Ð¼ÑÑÑ Ð¾Ð±Ð¼ÐµÐ½Ð¸Ð²Ð°ÑÑÑÑ Ð²ÐµÑÐ¾Ð¼ Ð´ÑÑÐ³ Ñ Ð´ÑÑÐ³Ð¾Ð¼, Ñ I/O-Ð½Ð°Ð´Ð±Ð°Ð²Ð¾Ðº Ð¿Ð°ÑÑ Ð½ÐµÑ.
    Ð ÐµÐ·ÑÐ»ÑÑÐ°Ñ Ð¾Ð±ÑÐµÐ·Ð°ÐµÑÑÑ Ð´Ð¾ >= 0 Ð¸ Ð½Ðµ Ð½Ð¾ÑÐ¼Ð¸ÑÑÐµÑÑÑ: ÐºÐ°Ð»ÑÐºÑÐ»ÑÑÐ¾Ñ Ð´ÐµÐ»Ð¸Ñ Ð½Ð°
    ÑÐ°ÐºÑÐ¸ÑÐµÑÐºÑÑ ÑÑÐ¼Ð¼Ñ.
    """
    alpha, beta, gamma, delta = base.as_tuple()

    if workload.cpu_fraction > threshold:
        alpha += bump
        beta -= compensation

    if workload.mem_fraction > threshold:
        beta += bump
        alpha -= compensation

    if workload.io_storage_fraction > threshold:
        gamma += bump

    if workload.io_network_fraction > threshold:
        delta += bump

    return WeightVector(
        alpha=max(0.0, alpha),
        beta=max(0.0, beta),
        gamma=max(0.0, gamma),
        delta=max(0.0, delta),
    )
