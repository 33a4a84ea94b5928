from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional

import pytest

from workload_balance.config import ScoringConfig
from workload_balance.inventory.static import inventory_from_data

# metric name -> dimension, for host (node-exporter) and pod (cAdvisor) queries
_DIMENSION_MARKERS = [
    ("node_cpu_seconds_total", "cpu"),
    ("node_memory_MemTotal_bytes", "memory"),
    ("node_disk_read_bytes_total", "io_storage"),
    ("node_network_receive_bytes_total", "io_network"),
    ("container_cpu_usage_seconds_total", "cpu"),
    ("container_memory_usage_bytes", "memory"),
    ("container_fs_reads_bytes_total", "io_storage"),
    ("container_network_transmit_bytes_total", "io_network"),
]

MIB = 1024 * 1024


def vector(value: Any) -> Dict[str, Any]:
    return {
        "status": "success",
        "data": {"resultType": "vector", "result": [{"metric": {}, "value": [1700000000.0, str(value)]}]},
    }


def empty_vector() -> Dict[str, Any]:
    return {"status": "success", "data": {"resultType": "vector", "result": []}}


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, text: Optional[str] = None):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self.text is not None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakePrometheus:
    """
    Stands in for requests.Session. Host values are raw backend units
    (cores, bytes, bytes/s) keyed by host and dimension; the same for pods.
    A value may be an exception instance (raised) or a FakeResponse.
    """

    def __init__(self):
        self.hosts: Dict[str, Dict[str, Any]] = {}
        self.pods: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []
        self.on_get: Optional[Callable[[str], None]] = None

    def get(self, url, params=None, timeout=None):
        query = params["query"]
        self.calls.append(query)
        if self.on_get is not None:
            self.on_get(query)

        dim = next(d for marker, d in _DIMENSION_MARKERS if marker in query)
        host = re.search(r'node="([^"]+)"', query)
        if host:
            series = self.hosts.get(host.group(1), {})
        else:
            pod = re.search(r'pod="([^"]+)"', query).group(1)
            ns = re.search(r'namespace="([^"]+)"', query).group(1)
            series = self.pods.get(f"{ns}/{pod}", {})

        value = series.get(dim)
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, FakeResponse):
            return value
        if value is None:
            return FakeResponse(empty_vector())
        return FakeResponse(vector(value))

    def set_host(self, name: str, cpu: float = 0.0, mem_mib: float = 0.0, io_storage_mibps: float = 0.0,
                 io_network_mibps: float = 0.0) -> None:
        self.hosts[name] = {
            "cpu": cpu,
            "memory": mem_mib * MIB,
            "io_storage": io_storage_mibps * MIB,
            "io_network": io_network_mibps * MIB,
        }

    def set_pod(self, ref: str, cpu: float = 0.0, mem_mib: float = 0.0, io_storage_mibps: float = 0.0,
                io_network_mibps: float = 0.0) -> None:
        self.pods[ref] = {
            "cpu": cpu,
            "memory": mem_mib * MIB,
            "io_storage": io_storage_mibps * MIB,
            "io_network": io_network_mibps * MIB,
        }


@pytest.fixture()
def prometheus() -> FakePrometheus:
    return FakePrometheus()


@pytest.fixture()
def config() -> ScoringConfig:
    # cache off so every test sees its own backend answers
    return ScoringConfig(prometheus_address="http://prom.test:9090", cache_ttl_seconds=0)


@pytest.fixture()
def inventory():
    return inventory_from_data({
        "hosts": {
            "node-a": {"cpu": 100, "memory": 100 * MIB, "io_storage_mibps": 100, "io_network_mibps": 100},
            "node-b": {"cpu": 100, "memory": 100 * MIB, "io_storage_mibps": 100, "io_network_mibps": 100},
            "node-c": {"cpu": "4", "memory": "16Gi"},
            "node-broken": {"cpu": 0, "memory": "8Gi"},
        },
        "groups": [
            {"name": "web", "namespace": "shop", "selector": {"app": "web"}},
            {"name": "api", "namespace": "shop", "selector": {"tier": "backend"}},
        ],
        "instances": [
            {"name": "web-1", "namespace": "shop", "labels": {"app": "web"}},
            {"name": "web-2", "namespace": "shop", "labels": {"app": "web"}},
            {"name": "api-1", "namespace": "shop", "labels": {"tier": "backend"}},
        ],
    })
