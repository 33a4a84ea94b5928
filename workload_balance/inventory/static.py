# workload_balance/inventory/static.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..errors import InventoryError
from ..model.entities import HostCapacity, Instance, WorkloadGroup
from ..types import GroupName, HostId, InstanceId, MiBPerSec, Namespace
from .quantity import parse_cpu_cores, parse_memory_mib


class StaticInventory:
    """ÐÐ½Ð²ÐµÐ½ÑÐ°ÑÑ Ð² Ð¿Ð°Ð¼ÑÑÐ¸ Ð¸Ð· JSON-ÑÐ½Ð°Ð¿ÑÐ¾ÑÐ°, Ð´Ð»Ñ Ð¾ÑÐ»Ð°Ð¹Ð½-Ð·Ð°Ð¿ÑÑÐºÐ¾Ð² Ð¸ ÑÐµÑÑÐ¾Ð²."""

    def __init__(
        self,
        hosts: Dict[HostId, HostCapacity],
        groups: List[WorkloadGroup],
        instances: List[Instance],
    ):
        self.hosts = hosts
        self.groups = groups
        self.instances = instances

    def list_groups(self, namespace: Namespace) -> List[WorkloadGroup]:
        return [g for g in self.groups if str(g.namespace) == str(namespace)]

    def list_instances(self, namespace: Namespace) -> List[Instance]:
        return [i for i in self.instances if str(i.namespace) == str(namespace)]

    def host_capacity(self, host_id: HostId) -> HostCapacity:
        cap = self.hosts.get(HostId(host_id))
        if cap is None:
            raise InventoryError(f"host {host_id} not in inventory")
        return cap


def inventory_from_data(data: Dict[str, Any], default_io_capacity: Optional[Tuple[float, float]] = None) -> StaticInventory:
    """
    Expected format:
    {
      "hosts": {"node-a": {"cpu": "4", "memory": "16Gi", "io_storage_mibps": 500, "io_network_mibps": 125}},
      "groups": [{"name": "web", "namespace": "shop", "selector": {"app": "web"}}],
      "instances": [{"name": "web-1", "namespace": "shop", "labels": {"app": "web"}}]
    }
    cpu / memory: ÑÑÑÐ¾ÐºÐ¸ Kubernetes quantity Ð¸Ð»Ð¸ ÑÐ¸ÑÐ»Ð° (ÑÐ´ÑÐ°, Ð±Ð°Ð¹ÑÑ).
    """
    storage_default, network_default = default_io_capacity or (500.0, 125.0)

    hosts = {}
    for name, v in (data.get("hosts") or {}).items():
        hosts[HostId(name)] = HostCapacity(
            cpu=parse_cpu_cores(v.get("cpu")),
            memory=parse_memory_mib(v.get("memory")),
            io_storage=MiBPerSec(float(v.get("io_storage_mibps", storage_default))),
            io_network=MiBPerSec(float(v.get("io_network_mibps", network_default))),
        )

    groups = [
        WorkloadGroup(
            name=GroupName(g["name"]),
            namespace=Namespace(g.get("namespace", "default")),
            selector=dict(g.get("selector") or {}),
        )
        for g in data.get("groups") or []
    ]

    instances = [
        Instance(
            name=InstanceId(i["name"]),
            namespace=Namespace(i.get("namespace", "default")),
            labels=dict(i.get("labels") or {}),
        )
        for i in data.get("instances") or []
    ]

    return StaticInventory(hosts=hosts, groups=groups, instances=instances)


def load_inventory_from_file(path: Path, default_io_capacity: Optional[Tuple[float, float]] = None) -> StaticInventory:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise InventoryError(f"cannot read inventory {path}: {e}")
    return inventory_from_data(data, default_io_capacity)
