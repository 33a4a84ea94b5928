# workload_balance/plugin.py
from __future__ import annotations

import logging
from typing import List, Protocol, Tuple

from .config import FALLBACK_EXCLUDE, NEUTRAL_RAW_SCORE, ScoringConfig
from .context import CycleContext
from .errors import (
    InvalidCapacity, InventoryError, NormalizationError, Status, StatusCode, TelemetryError
)
from .inventory.base import Inventory
from .model.entities import HostScore, Instance, WeightVector
from .scoring.calculator import compute_raw_score
from .scoring.cohort import CohortAggregator
from .scoring.normalizer import normalize_scores
from .scoring.weights import derive_weights
from .telemetry.prometheus import PrometheusTelemetrySource
from .types import HostId

log = logging.getLogger(__name__)

NAME = "workloadbalance"


class ScorePlugin(Protocol):
    name: str

    def score(self, ctx: CycleContext, instance: Instance, host_id: HostId) -> Tuple[float, Status]: ...

    def normalize_score(self, ctx: CycleContext, instance: Instance, host_scores: List[HostScore]) -> Status: ...


class WorkloadBalance:
    """
    Оценивает хосты-кандидаты по свободной ёмкости, с весами в сторону
    ресурсов, которые больше всего потребляет когорта инстанса.

    score отдаёт сырой скор в [0, 1] и не бросает исключений из-за одного
    хоста. normalize_score переписывает список на месте целыми скорами
    в [0, max_score], когда оценены все хосты цикла.
    """

    name = NAME

    def __init__(self, config: ScoringConfig, telemetry, cohorts: CohortAggregator):
        self.config = config
        self.telemetry = telemetry
        self.cohorts = cohorts

    def weights_for(self, ctx: CycleContext, instance: Instance) -> WeightVector:
        workload = ctx.cohort_workload(instance.ref, lambda: self.cohorts.cohort_workload(instance, ctx=ctx))
        return derive_weights(
            workload,
            base=self.config.weights,
            threshold=self.config.threshold,
            bump=self.config.bump,
            compensation=self.config.compensation,
        )

    def _telemetry_fallback(self, ctx: CycleContext, host_id: HostId, err: TelemetryError) -> Tuple[float, Status]:
        if self.config.telemetry_fallback == FALLBACK_EXCLUDE:
            ctx.exclude(host_id)
            log.warning(f"[{NAME}] telemetry failed for host {host_id}, excluding it: {err}")
            return 0.0, Status(StatusCode.EXCLUDED, f"telemetry unavailable for {host_id}: {err}")
        log.warning(f"[{NAME}] telemetry failed for host {host_id}, "
                    f"using neutral score {NEUTRAL_RAW_SCORE:.2f}: {err}")
        return NEUTRAL_RAW_SCORE, Status(StatusCode.FALLBACK, f"telemetry unavailable for {host_id}: {err}")

    def score(self, ctx: CycleContext, instance: Instance, host_id: HostId) -> Tuple[float, Status]:
        try:
            host = self.telemetry.fetch_host_utilization(host_id, ctx=ctx)
        except TelemetryError as e:
            return self._telemetry_fallback(ctx, host_id, e)
        except InventoryError as e:
            ctx.exclude(host_id)
            log.warning(f"[{NAME}] no capacity metadata for host {host_id}, excluding it: {e}")
            return 0.0, Status(StatusCode.EXCLUDED, f"no capacity metadata for {host_id}: {e}")

        weights = self.weights_for(ctx, instance)
        try:
            raw = compute_raw_score(host, weights)
        except InvalidCapacity as e:
            ctx.exclude(host_id)
            log.warning(f"[{NAME}] host {host_id} excluded: {e}")
            return 0.0, Status(StatusCode.EXCLUDED, f"host {host_id}: {e}")

        log.info(f"[{NAME}] raw score of host {host_id} for {instance.namespace}/{instance.name}: {raw:.4f} "
                 f"(weights {weights.as_tuple()})")
        return raw, Status.ok()

    def normalize_score(self, ctx: CycleContext, instance: Instance, host_scores: List[HostScore]) -> Status:
        if not host_scores:
            err = NormalizationError(f"no candidate hosts for {instance.namespace}/{instance.name}")
            log.error(f"[{NAME}] {err}")
            return Status(StatusCode.ERROR, str(err))

        ranked = {hs.host_id: hs.score for hs in host_scores if not ctx.is_excluded(hs.host_id)}
        normalized = normalize_scores(ranked, self.config.max_score) if ranked else {}
        for hs in host_scores:
            hs.score = normalized.get(hs.host_id, 0)

        final = {hs.host_id: hs.score for hs in host_scores}
        log.info(f"[{NAME}] final host scores for {instance.namespace}/{instance.name}: {final}")
        return Status.ok()


def new_plugin(config: ScoringConfig, inventory: Inventory, session=None) -> WorkloadBalance:
    """Собирает телеметрию, агрегацию когорты и скоринг вокруг одного инвентаря."""
    config.validate()
    log.info(f"[{NAME}] args: address={config.prometheus_address}, "
             f"network_interface={config.network_interface}, time_range={config.window}, "
             f"fallback={config.telemetry_fallback}")
    telemetry = PrometheusTelemetrySource(config, capacities=inventory, session=session)
    cohorts = CohortAggregator(inventory, telemetry, config)
    return WorkloadBalance(config, telemetry, cohorts)
