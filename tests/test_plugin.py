from dataclasses import replace

import pytest
import requests

from workload_balance.context import CycleContext
from workload_balance.errors import StatusCode
from workload_balance.model.entities import HostScore, Instance
from workload_balance.plugin import NAME, new_plugin


@pytest.fixture()
def plugin(config, inventory, prometheus):
    return new_plugin(config, inventory, session=prometheus)


@pytest.fixture()
def web_pod() -> Instance:
    return Instance(name="web-3", namespace="shop", labels={"app": "web"})


@pytest.fixture()
def lone_pod() -> Instance:
    return Instance(name="batch-1", namespace="shop", labels={"app": "batch"})


def test_plugin_name(plugin) -> None:
    assert plugin.name == NAME == "workloadbalance"


def test_score_with_neutral_cohort(plugin, prometheus, lone_pod) -> None:
    prometheus.set_host("node-a", cpu=30)

    raw, status = plugin.score(CycleContext(5), lone_pod, "node-a")

    assert status.is_success()
    # neutral cohort (0.5 everywhere) keeps the base weights
    assert raw == pytest.approx(0.88)


def test_cpu_heavy_cohort_shifts_weights(plugin, prometheus, web_pod) -> None:
    prometheus.set_host("node-a", cpu=30)
    prometheus.set_pod("shop/web-1", cpu=0.8, mem_mib=200, io_storage_mibps=100, io_network_mibps=25)
    prometheus.set_pod("shop/web-2", cpu=0.8, mem_mib=200, io_storage_mibps=100, io_network_mibps=25)

    raw, status = plugin.score(CycleContext(5), web_pod, "node-a")

    assert status.is_success()
    assert raw == pytest.approx((0.5 * 0.7 + 0.25 + 0.15 + 0.15) / 1.05)


def test_cohort_computed_once_per_cycle(plugin, prometheus, web_pod) -> None:
    prometheus.set_host("node-a", cpu=10)
    prometheus.set_host("node-b", cpu=20)
    prometheus.set_pod("shop/web-1", cpu=0.1)
    prometheus.set_pod("shop/web-2", cpu=0.1)
    ctx = CycleContext(5)

    plugin.score(ctx, web_pod, "node-a")
    plugin.score(ctx, web_pod, "node-b")

    pod_queries = [q for q in prometheus.calls if "container_" in q]
    assert len(pod_queries) == 8


def test_telemetry_timeout_uses_neutral_fallback(plugin, prometheus, lone_pod) -> None:
    prometheus.set_host("node-a")
    prometheus.hosts["node-a"]["cpu"] = requests.exceptions.ConnectTimeout("timed out")

    raw, status = plugin.score(CycleContext(5), lone_pod, "node-a")

    assert raw == 0.5
    assert status.code == StatusCode.FALLBACK
    assert not status.is_fatal()
    assert "node-a" in status.message


def test_telemetry_timeout_with_exclude_policy(config, inventory, prometheus, lone_pod) -> None:
    plugin = new_plugin(replace(config, telemetry_fallback="exclude"), inventory, session=prometheus)
    prometheus.set_host("node-a")
    prometheus.hosts["node-a"]["memory"] = None
    ctx = CycleContext(5)

    raw, status = plugin.score(ctx, lone_pod, "node-a")

    assert raw == 0.0
    assert status.code == StatusCode.EXCLUDED
    assert ctx.is_excluded("node-a")


def test_invalid_capacity_excludes_host(plugin, prometheus, lone_pod) -> None:
    prometheus.set_host("node-broken", cpu=1)
    ctx = CycleContext(5)

    raw, status = plugin.score(ctx, lone_pod, "node-broken")

    assert raw == 0.0
    assert status.code == StatusCode.EXCLUDED
    assert ctx.excluded == {"node-broken"}


def test_unknown_host_excluded(plugin, prometheus, lone_pod) -> None:
    prometheus.set_host("node-ghost", cpu=1)
    raw, status = plugin.score(CycleContext(5), lone_pod, "node-ghost")
    assert (raw, status.code) == (0.0, StatusCode.EXCLUDED)


def test_normalize_rewrites_scores_in_place(plugin, lone_pod) -> None:
    scores = [HostScore("node-a", 0.88), HostScore("node-b", 0.40)]

    status = plugin.normalize_score(CycleContext(5), lone_pod, scores)

    assert status.is_success()
    assert [(s.host_id, s.score) for s in scores] == [("node-a", 100), ("node-b", 0)]


def test_normalize_keeps_excluded_hosts_out_of_range(plugin, lone_pod) -> None:
    ctx = CycleContext(5)
    ctx.exclude("node-broken")
    scores = [HostScore("node-a", 0.9), HostScore("node-b", 0.6), HostScore("node-broken", 0.0)]

    plugin.normalize_score(ctx, lone_pod, scores)

    assert {s.host_id: s.score for s in scores} == {"node-a": 100, "node-b": 0, "node-broken": 0}


def test_normalize_all_excluded(plugin, lone_pod) -> None:
    ctx = CycleContext(5)
    ctx.exclude("node-a")
    scores = [HostScore("node-a", 0.0)]

    assert plugin.normalize_score(ctx, lone_pod, scores).is_success()
    assert scores[0].score == 0


def test_normalize_empty_list_is_cycle_error(plugin, lone_pod) -> None:
    status = plugin.normalize_score(CycleContext(5), lone_pod, [])
    assert status.code == StatusCode.ERROR
    assert status.is_fatal()
