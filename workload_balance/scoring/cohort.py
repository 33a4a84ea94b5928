# workload_balance/scoring/cohort.py
from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol, Set, Tuple

from ..config import ScoringConfig
from ..context import CycleContext
from ..errors import InventoryError, NoCohortData, TelemetryError
from ..inventory.base import Inventory
from ..model.entities import (
    CohortWorkload, Instance, InstanceRef, InstanceUtilization, WorkloadGroup
)
from ..types import InstanceId, Namespace

log = logging.getLogger(__name__)


class InstanceTelemetry(Protocol):
    def fetch_instance_utilization(self, instance_id: InstanceId, namespace: Namespace,
                                   ctx: Optional[CycleContext] = None) -> InstanceUtilization: ...


# ---------------------------------------------------------------------------
# Cohort resolution (pure)
# ---------------------------------------------------------------------------


def select_group(instance: Instance, groups: Iterable[WorkloadGroup]) -> Optional[WorkloadGroup]:
    """Группа в namespace инстанса, чей селектор совпал с его лейблами; при равенстве первая по имени."""
    matched = [
        g for g in groups
        if str(g.namespace) == str(instance.namespace) and g.matches(instance.labels)
    ]
    if not matched:
        return None
    return min(matched, key=lambda g: str(g.name))


def resolve_cohort(
    instance: Instance,
    groups: Iterable[WorkloadGroup],
    members: Iterable[Instance],
) -> Set[InstanceRef]:
    """
    Инстансы из той же группы (по селектору), что и `instance`.

    Сам размещаемый инстанс в свою когорту не входит.
    Нет подходящей группы - пустая когорта.
    """
    group = select_group(instance, groups)
    if group is None:
        return set()
    return {
        m.ref for m in members
        if str(m.namespace) == str(instance.namespace)
        and m.name != instance.name
        and group.matches(m.labels)
    }


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate_cohort_workload(
    cohort: Iterable[InstanceRef],
    telemetry: InstanceTelemetry,
    ceilings: Tuple[float, float, float, float],
    ctx: Optional[CycleContext] = None,
) -> CohortWorkload:
    """
    Средняя утилизация когорты в долях от эталонных потолков.

    Участники с упавшей телеметрией пропускаются. Если ни один не дал
    замера, бросаем NoCohortData.
    """
    totals = [0.0, 0.0, 0.0, 0.0]
    count = 0
    for ref in sorted(cohort, key=lambda r: (str(r.namespace), str(r.name))):
        try:
            sample = telemetry.fetch_instance_utilization(ref.name, ref.namespace, ctx=ctx)
        except TelemetryError as e:
            log.warning(f"Skipping cohort member {ref.namespace}/{ref.name}: {e}")
            continue
        for i, v in enumerate(sample.as_tuple()):
            totals[i] += v
        count += 1

    if count == 0:
        raise NoCohortData("no cohort member yielded a utilization sample")

    cpu, mem, io_storage, io_network = (
        (total / count) / ceiling for total, ceiling in zip(totals, ceilings)
    )
    # CohortWorkload сам обрезает доли до [0, 1]
    return CohortWorkload(cpu, mem, io_storage, io_network)


class CohortAggregator:
    def __init__(self, inventory: Inventory, telemetry: InstanceTelemetry, config: ScoringConfig):
        self.inventory = inventory
        self.telemetry = telemetry
        self.config = config

    def resolve_cohort(self, instance: Instance) -> Set[InstanceRef]:
        groups = self.inventory.list_groups(instance.namespace)
        members = self.inventory.list_instances(instance.namespace)
        return resolve_cohort(instance, groups, members)

    def aggregate_cohort_workload(self, cohort: Iterable[InstanceRef],
                                  ctx: Optional[CycleContext] = None) -> CohortWorkload:
        return aggregate_cohort_workload(cohort, self.telemetry, self.config.reference_ceilings, ctx=ctx)

    def cohort_workload(self, instance: Instance, ctx: Optional[CycleContext] = None) -> CohortWorkload:
        """Профиль когорты; при любой ошибке подставляется нейтральный."""
        subject = f"{instance.namespace}/{instance.name}"
        try:
            cohort = self.resolve_cohort(instance)
        except InventoryError as e:
            log.warning(f"Cohort lookup failed for {subject}, using neutral profile: {e}")
            return CohortWorkload.neutral()

        if not cohort:
            log.info(f"No cohort for {subject}, using neutral profile")
            return CohortWorkload.neutral()

        try:
            workload = self.aggregate_cohort_workload(cohort, ctx=ctx)
        except NoCohortData as e:
            log.warning(f"No cohort data for {subject} ({len(cohort)} members), using neutral profile: {e}")
            return CohortWorkload.neutral()

        log.debug(f"Cohort workload for {subject} from {len(cohort)} members: {workload}")
        return workload
