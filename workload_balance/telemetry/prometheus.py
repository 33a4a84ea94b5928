# workload_balance/telemetry/prometheus.py
from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Tuple

import requests

from ..config import ScoringConfig
from ..context import CycleContext
from ..errors import TelemetryParseError, TelemetryUnavailable
from ..model.entities import HostCapacity, HostUtilization, InstanceUtilization
from ..types import HostId, InstanceId, Namespace, DIMENSIONS
from .cache import TelemetryCache
from .parse import bytes_to_mib, parse_instant_value

log = logging.getLogger(__name__)

QUERY_PATH = "/api/v1/query"

# ÑÐµÑÐ¸Ð¸ node-exporter, {sel} - Ð¼Ð°ÑÑÐµÑ Ð¿Ð¾ Ð»ÐµÐ¹Ð±Ð»Ñ ÑÐ¾ÑÑÐ°
HOST_QUERIES: Dict[str, str] = {
    "cpu": 'sum(rate(node_cpu_seconds_total{{mode!="idle", {sel}}}[{window}]))',
    "memory": 'sum(node_memory_MemTotal_bytes{{{sel}}} - node_memory_MemAvailable_bytes{{{sel}}})',
    "io_storage": ('sum(rate(node_disk_read_bytes_total{{{sel}}}[{window}]) '
                   '+ rate(node_disk_written_bytes_total{{{sel}}}[{window}]))'),
    "io_network": ('sum(rate(node_network_receive_bytes_total{{{sel}, device="{iface}"}}[{window}]) '
                   '+ rate(node_network_transmit_bytes_total{{{sel}, device="{iface}"}}[{window}]))'),
}

# ÑÐµÑÐ¸Ð¸ cAdvisor, {sel} - Ð¼Ð°ÑÑÐµÑ pod/namespace
INSTANCE_QUERIES: Dict[str, str] = {
    "cpu": 'sum(rate(container_cpu_usage_seconds_total{{{sel}}}[{window}]))',
    "memory": 'sum(container_memory_usage_bytes{{{sel}}})',
    "io_storage": ('sum(rate(container_fs_reads_bytes_total{{{sel}}}[{window}]) '
                   '+ rate(container_fs_writes_bytes_total{{{sel}}}[{window}]))'),
    "io_network": ('sum(rate(container_network_transmit_bytes_total{{{sel}}}[{window}]) '
                   '+ rate(container_network_receive_bytes_total{{{sel}}}[{window}]))'),
}

# cpu ÑÐ¶Ðµ Ð² ÑÐ´ÑÐ°Ñ, Ð¾ÑÑÐ°Ð»ÑÐ½Ð¾Ðµ Ð¿ÑÐ¸ÑÐ¾Ð´Ð¸Ñ Ð² Ð±Ð°Ð¹ÑÐ°Ñ Ð¸Ð»Ð¸ Ð±Ð°Ð¹ÑÐ°Ñ/Ñ
_TO_MIB = {"cpu": False, "memory": True, "io_storage": True, "io_network": True}


class CapacityProvider(Protocol):
    def host_capacity(self, host_id: HostId) -> HostCapacity: ...


def _label_value(value: str) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"')


def host_queries(host_id: str, label: str, window: str, iface: str) -> Dict[str, str]:
    sel = f'{label}="{_label_value(host_id)}"'
    return {dim: q.format(sel=sel, window=window, iface=_label_value(iface)) for dim, q in HOST_QUERIES.items()}


def instance_queries(name: str, namespace: str, window: str) -> Dict[str, str]:
    sel = f'pod="{_label_value(name)}", namespace="{_label_value(namespace)}"'
    return {dim: q.format(sel=sel, window=window) for dim, q in INSTANCE_QUERIES.items()}


class PrometheusTelemetrySource:
    """
    ÐÐ³Ð½Ð¾Ð²ÐµÐ½Ð½Ð°Ñ ÑÑÐ¸Ð»Ð¸Ð·Ð°ÑÐ¸Ñ ÑÐ¾ÑÑÐ¾Ð² Ð¸ Ð¸Ð½ÑÑÐ°Ð½ÑÐ¾Ð² Ð¸Ð· Prometheus-ÑÐ¾Ð²Ð¼ÐµÑÑÐ¸Ð¼Ð¾Ð³Ð¾
    Ð±ÑÐºÐµÐ½Ð´Ð°.

    ÐÐ°Ð¶Ð´ÑÐ¹ Ð·Ð°Ð¿ÑÐ¾Ñ Ð¾Ð³ÑÐ°Ð½Ð¸ÑÐµÐ½ Ð´ÐµÐ´Ð»Ð°Ð¹Ð½Ð¾Ð¼ ÑÐ¸ÐºÐ»Ð°. ÐÐ·Ð¼ÐµÑÐµÐ½Ð¸Ðµ Ð±ÐµÐ· Ð´Ð°Ð½Ð½ÑÑ Ð´Ð°ÑÑ
    TelemetryEmptyResult Ð¸ Ð½Ð¸ÐºÐ¾Ð³Ð´Ð° Ð½Ðµ ÑÐ¸ÑÐ°ÐµÑÑÑ ÐºÐ°Ðº Ð½ÑÐ»ÐµÐ²Ð¾Ðµ Ð¿Ð¾ÑÑÐµÐ±Ð»ÐµÐ½Ð¸Ðµ.
    """

    def __init__(
        self,
        config: ScoringConfig,
        capacities: CapacityProvider,
        session: Optional[requests.Session] = None,
        cache: Optional[TelemetryCache] = None,
    ):
        self.config = config
        self.capacities = capacities
        self.base_url = config.prometheus_address.rstrip("/")
        self.session = session or self._make_session()
        if cache is None and config.cache_ttl_seconds > 0:
            cache = TelemetryCache(config.cache_ttl_seconds, config.cache_max_entries)
        self.cache = cache

    @staticmethod
    def _make_session() -> requests.Session:
        s = requests.Session()
        s.headers.update({"Accept": "application/json"})
        return s

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def query(self, query: str, ctx: Optional[CycleContext] = None, subject: Optional[str] = None,
              dimension: Optional[str] = None) -> float:
        timeout = self.config.request_timeout_seconds
        if ctx is not None:
            ctx.check(subject)
            timeout = ctx.timeout(timeout)

        log.debug(f"prometheus query ({subject}, timeout={timeout:.2f}s): {query}")
        try:
            resp = self.session.get(f"{self.base_url}{QUERY_PATH}", params={"query": query}, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise TelemetryUnavailable(f"prometheus query timed out: {e}", subject=subject, query=query)
        except requests.exceptions.RequestException as e:
            raise TelemetryUnavailable(f"prometheus request failed: {e}", subject=subject, query=query)

        if not resp.ok:
            raise TelemetryUnavailable(f"prometheus answered HTTP {resp.status_code}", subject=subject, query=query)
        try:
            payload = resp.json()
        except ValueError as e:
            raise TelemetryParseError(f"response is not JSON: {e}", subject=subject, query=query)
        return parse_instant_value(payload, query, subject=subject, dimension=dimension)

    def _query_dimensions(self, queries: Dict[str, str], ctx: Optional[CycleContext],
                          subject: str) -> Tuple[float, float, float, float]:
        values = []
        for dim in DIMENSIONS:
            value = self.query(queries[dim], ctx=ctx, subject=subject, dimension=dim)
            values.append(bytes_to_mib(value) if _TO_MIB[dim] else value)
        return tuple(values)

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def fetch_host_utilization(self, host_id: HostId, ctx: Optional[CycleContext] = None) -> HostUtilization:
        def fetch() -> HostUtilization:
            queries = host_queries(host_id, self.config.host_label, self.config.window,
                                   self.config.network_interface)
            usage = self._query_dimensions(queries, ctx, str(host_id))
            capacity = self.capacities.host_capacity(host_id)
            return HostUtilization.from_usage(usage, capacity)

        if self.cache is None:
            return fetch()
        return self.cache.get_or_fetch(("host", host_id), fetch, ctx=ctx, subject=str(host_id))

    def fetch_instance_utilization(self, instance_id: InstanceId, namespace: Namespace,
                                   ctx: Optional[CycleContext] = None) -> InstanceUtilization:
        def fetch() -> InstanceUtilization:
            queries = instance_queries(instance_id, namespace, self.config.window)
            cpu, mem, io_storage, io_network = self._query_dimensions(queries, ctx, f"{namespace}/{instance_id}")
            return InstanceUtilization(cpu_usage=cpu, mem_usage=mem,
                                       io_storage_usage=io_storage, io_network_usage=io_network)

        if self.cache is None:
            return fetch()
        return self.cache.get_or_fetch(("instance", namespace, instance_id), fetch, ctx=ctx,
                                     subject=f"{namespace}/{instance_id}")
