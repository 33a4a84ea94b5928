# workload_balance/inventory/base.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Protocol

from ..config import ScoringConfig
from ..model.entities import HostCapacity, Instance, WorkloadGroup
from ..types import HostId, Namespace

log = logging.getLogger(__name__)


class Inventory(Protocol):
    """
    Источник групп, инстансов и ёмкостей хостов.

    list_instances отдаёт только работающие поды.
    Ошибки источника поднимаются как InventoryError.
    """

    def list_groups(self, namespace: Namespace) -> List[WorkloadGroup]: ...

    def list_instances(self, namespace: Namespace) -> List[Instance]: ...

    def host_capacity(self, host_id: HostId) -> HostCapacity: ...


def build_inventory(cfg: ScoringConfig, inventory_path: Optional[str] = None,
                    kube_context: Optional[str] = None) -> Inventory:
    """
    JSON-снапшот, если задан путь, иначе живой API-сервер.
    """
    if inventory_path:
        from .static import load_inventory_from_file
        log.info(f"Using static inventory from {inventory_path}")
        return load_inventory_from_file(Path(inventory_path), cfg.default_io_capacity)

    from .kube import KubernetesInventory
    return KubernetesInventory(cfg, context=kube_context)
