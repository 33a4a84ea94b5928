import pytest
import requests
from fastapi.testclient import TestClient

from workload_balance.api import server
from workload_balance.api.server import create_app
from workload_balance.plugin import new_plugin


@pytest.fixture()
def client(config, inventory, prometheus) -> TestClient:
    app = create_app(config, new_plugin(config, inventory, session=prometheus))
    with TestClient(app) as test_client:
        yield test_client


def _pod() -> dict:
    return {"name": "batch-1", "namespace": "shop", "labels": {"app": "batch"}}


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "plugin": "workloadbalance"}


def test_prioritize(client: TestClient, prometheus) -> None:
    prometheus.set_host("node-a", cpu=30)
    prometheus.set_host("node-b", cpu=80, mem_mib=60)
    prometheus.set_host("node-c")
    prometheus.hosts["node-c"]["cpu"] = requests.exceptions.ReadTimeout("slow")

    response = client.post("/prioritize", json={"pod": _pod(), "node_names": ["node-a", "node-b", "node-c"]})

    assert response.status_code == 200
    body = response.json()
    assert body["priorities"] == [
        {"host": "node-a", "score": 100},
        {"host": "node-b", "score": 0},
        {"host": "node-c", "score": 0},
    ]
    assert body["statuses"]["node-a"]["code"] == "Success"
    assert body["statuses"]["node-c"]["code"] == "Fallback"


def test_prioritize_without_candidates(client: TestClient) -> None:
    response = client.post("/prioritize", json={"pod": _pod(), "node_names": []})
    assert response.status_code == 400


def test_score_endpoint(client: TestClient, prometheus) -> None:
    prometheus.set_host("node-a", cpu=30)

    response = client.post("/score", json={"pod": _pod(), "node_name": "node-a"})

    assert response.status_code == 200
    body = response.json()
    assert body["raw_score"] == pytest.approx(0.88)
    assert body["status"]["code"] == "Success"


def test_prioritize_honours_explicit_zero_deadline(client: TestClient, prometheus) -> None:
    prometheus.set_host("node-a", cpu=30)
    prometheus.set_host("node-b", cpu=80)

    response = client.post("/prioritize", json={
        "pod": _pod(), "node_names": ["node-a", "node-b"], "deadline_seconds": 0,
    })

    assert response.status_code == 200
    codes = {s["code"] for s in response.json()["statuses"].values()}
    assert "Success" not in codes
    assert prometheus.calls == []


def test_module_app_built_lazily_from_environment(tmp_path, monkeypatch) -> None:
    path = tmp_path / "inventory.json"
    path.write_text('{"hosts": {"n1": {"cpu": "2", "memory": "4Gi"}}}', "utf-8")
    monkeypatch.setenv("WB_INVENTORY_FILE", str(path))
    monkeypatch.setenv("WB_PROMETHEUS_ADDRESS", "http://prom.test:9090")
    monkeypatch.setattr(server, "_app", None)

    app = server.app

    assert server.app is app
    with TestClient(app) as test_client:
        assert test_client.get("/health").json() == {"status": "ok", "plugin": "workloadbalance"}


def test_unknown_module_attribute() -> None:
    with pytest.raises(AttributeError):
        server.not_there
