# workload_balance/inventory/kube.py
from __future__ import annotations

import logging
from typing import List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from ..config import ScoringConfig
from ..errors import InventoryError
from ..model.entities import HostCapacity, Instance, WorkloadGroup
from ..types import GroupName, HostId, InstanceId, MiBPerSec, Namespace
from .quantity import parse_cpu_cores, parse_memory_mib

log = logging.getLogger(__name__)

IO_STORAGE_ANNOTATION = "workloadbalance.io/io-storage-mibps"
IO_NETWORK_ANNOTATION = "workloadbalance.io/io-network-mibps"


def _annotation_float(annotations: dict, key: str, default: float) -> float:
    raw = (annotations or {}).get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning(f"Ignoring non-numeric annotation {key}={raw!r}")
        return default


def _load_kube_config(context: Optional[str]) -> None:
    try:
        config.load_incluster_config()
        log.info("Using in-cluster Kubernetes config")
    except config.ConfigException:
        log.info(f"Not running in cluster, loading kubeconfig (context={context})")
        config.load_kube_config(context=context)


class KubernetesInventory:
    """
    ÐÑÑÐ¿Ð¿Ñ (Services), ÑÐ°Ð±Ð¾ÑÐ°ÑÑÐ¸Ðµ Ð¿Ð¾Ð´Ñ Ð¸ ÑÐ¼ÐºÐ¾ÑÑÐ¸ Ð½Ð¾Ð´ Ð¸Ð· API-ÑÐµÑÐ²ÐµÑÐ°.

    CPU Ð¸ Ð¿Ð°Ð¼ÑÑÑ Ð±ÐµÑÑÐ¼ Ð¸Ð· allocatable Ð½Ð¾Ð´Ñ. I/O-ÑÐ¼ÐºÐ¾ÑÑÐµÐ¹ Ð² Ð¾Ð±ÑÐµÐºÑÐµ Ð½Ð¾Ð´Ñ Ð½ÐµÑ:
    ÑÐ¸ÑÐ°ÐµÐ¼ Ð¸Ñ Ð¸Ð· Ð°Ð½Ð½Ð¾ÑÐ°ÑÐ¸Ð¹, Ð¸Ð½Ð°ÑÐµ Ð±ÐµÑÑÐ¼ Ð·Ð½Ð°ÑÐµÐ½Ð¸Ñ Ð¸Ð· ÐºÐ¾Ð½ÑÐ¸Ð³Ð°.
    """

    def __init__(self, cfg: ScoringConfig, context: Optional[str] = None, api: Optional[client.CoreV1Api] = None):
        self.config = cfg
        if api is None:
            _load_kube_config(context)
            api = client.CoreV1Api()
        self.api = api

    def list_groups(self, namespace: Namespace) -> List[WorkloadGroup]:
        try:
            services = self.api.list_namespaced_service(namespace)
        except (ApiException, HTTPError) as e:
            raise InventoryError(f"listing services in {namespace} failed: {e}")
        groups = []
        for svc in services.items:
            selector = svc.spec.selector if svc.spec else None
            groups.append(WorkloadGroup(
                name=GroupName(svc.metadata.name),
                namespace=Namespace(svc.metadata.namespace or namespace),
                selector=dict(selector or {}),
            ))
        return groups

    def list_instances(self, namespace: Namespace) -> List[Instance]:
        try:
            pods = self.api.list_namespaced_pod(namespace, field_selector="status.phase=Running")
        except (ApiException, HTTPError) as e:
            raise InventoryError(f"listing pods in {namespace} failed: {e}")
        return [
            Instance(
                name=InstanceId(p.metadata.name),
                namespace=Namespace(p.metadata.namespace or namespace),
                labels=dict(p.metadata.labels or {}),
            )
            for p in pods.items
        ]

    def host_capacity(self, host_id: HostId) -> HostCapacity:
        try:
            node = self.api.read_node(host_id)
        except (ApiException, HTTPError) as e:
            raise InventoryError(f"reading node {host_id} failed: {e}")
        alloc = (node.status.allocatable if node.status else None) or {}
        annotations = node.metadata.annotations or {}
        storage_default, network_default = self.config.default_io_capacity
        return HostCapacity(
            cpu=parse_cpu_cores(alloc.get("cpu")),
            memory=parse_memory_mib(alloc.get("memory")),
            io_storage=MiBPerSec(_annotation_float(annotations, IO_STORAGE_ANNOTATION, storage_default)),
            io_network=MiBPerSec(_annotation_float(annotations, IO_NETWORK_ANNOTATION, network_default)),
        )
