import threading

import pytest

from workload_balance.context import CycleContext
from workload_balance.cycle import run_cycle
from workload_balance.errors import Status, StatusCode
from workload_balance.model.entities import CohortWorkload, Instance, InstanceRef
from workload_balance.plugin import new_plugin


@pytest.fixture()
def pod() -> Instance:
    return Instance(name="batch-1", namespace="shop", labels={"app": "batch"})


def test_full_cycle_ranks_hosts(config, inventory, prometheus, pod) -> None:
    plugin = new_plugin(config, inventory, session=prometheus)
    prometheus.set_host("node-a", cpu=30)
    prometheus.set_host("node-b", cpu=80, mem_mib=60)
    prometheus.set_host("node-broken", cpu=1)

    result = run_cycle(plugin, pod, ["node-a", "node-b", "node-broken"], deadline_seconds=5)

    assert result.status.is_success()
    assert {s.host_id: s.score for s in result.scores} == {"node-a": 100, "node-b": 0, "node-broken": 0}
    assert result.statuses["node-broken"].code == StatusCode.EXCLUDED
    assert [s.host_id for s in result.scores] == ["node-a", "node-b", "node-broken"]


def test_timeout_host_gets_fallback_without_failing_cycle(config, inventory, prometheus, pod) -> None:
    import requests

    plugin = new_plugin(config, inventory, session=prometheus)
    prometheus.set_host("node-a", cpu=10)
    prometheus.set_host("node-b", cpu=90, mem_mib=90)
    prometheus.set_host("node-c")
    prometheus.hosts["node-c"]["cpu"] = requests.exceptions.ReadTimeout("slow")

    result = run_cycle(plugin, pod, ["node-a", "node-b", "node-c"], deadline_seconds=5)

    assert result.status.is_success()
    assert result.statuses["node-c"].code == StatusCode.FALLBACK
    scores = {s.host_id: s.score for s in result.scores}
    assert scores["node-a"] == 100
    assert scores["node-b"] == 0
    assert 0 < scores["node-c"] < 100


def test_empty_candidate_set_is_cycle_failure(config, inventory, prometheus, pod) -> None:
    plugin = new_plugin(config, inventory, session=prometheus)
    result = run_cycle(plugin, pod, [], deadline_seconds=5)
    assert result.status.code == StatusCode.ERROR
    assert result.scores == []


class SlowPlugin:
    name = "slow"

    def __init__(self):
        self.release = threading.Event()

    def score(self, ctx, instance, host_id):
        if host_id == "slow":
            # behaves like a telemetry call that notices cancellation
            while not ctx.cancelled:
                self.release.wait(0.01)
            return 0.5, Status(StatusCode.FALLBACK, "cancelled")
        return 0.9, Status.ok()

    def normalize_score(self, ctx, instance, host_scores):
        for hs in host_scores:
            hs.score = 100 if hs.score > 0.8 else 0
        return Status.ok()


def test_deadline_cancels_in_flight_scoring(pod) -> None:
    plugin = SlowPlugin()
    ctx = CycleContext(0.2)

    result = run_cycle(plugin, pod, ["fast", "slow"], ctx=ctx)

    assert ctx.cancelled
    assert result.statuses["fast"].is_success()
    assert result.statuses["slow"].code == StatusCode.FALLBACK


def test_queued_hosts_cancelled_at_deadline_are_logged(pod, caplog) -> None:
    plugin = SlowPlugin()
    ctx = CycleContext(0.2)

    with caplog.at_level("WARNING", logger="workload_balance.cycle"):
        result = run_cycle(plugin, pod, ["slow", "queued"], ctx=ctx, max_workers=1)

    assert result.statuses["queued"].code == StatusCode.EXCLUDED
    assert ctx.is_excluded("queued")
    assert [s.score for s in result.scores] == [0, 0]
    assert any("queued" in r.getMessage() for r in caplog.records)


def test_cycle_context_memoizes_cohort(pod) -> None:
    ctx = CycleContext()
    calls = []

    def compute():
        calls.append(1)
        return CohortWorkload.neutral()

    ref = InstanceRef("batch-1", "shop")
    assert ctx.cohort_workload(ref, compute) == ctx.cohort_workload(ref, compute)
    assert len(calls) == 1
    assert ctx.remaining() is None
