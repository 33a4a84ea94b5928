import json

import pytest

from workload_balance.config import ScoringConfig
from workload_balance.errors import ConfigError


def test_defaults_are_valid() -> None:
    cfg = ScoringConfig().validate()
    assert cfg.weights.as_tuple() == (0.4, 0.3, 0.15, 0.15)
    assert cfg.max_score == 100
    assert cfg.window == "5m"


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WB_PROMETHEUS_ADDRESS", "http://vm:8428/select/0/prometheus")
    monkeypatch.setenv("WB_TIME_RANGE_MINUTES", "10")
    monkeypatch.setenv("WB_BASE_WEIGHTS", "0.25,0.25,0.25,0.25")
    monkeypatch.setenv("WB_REFERENCE_CEILINGS", "2,2048,100,100")
    monkeypatch.setenv("WB_TELEMETRY_FALLBACK", "Exclude")
    monkeypatch.setenv("WB_MAX_SCORE", "10")

    cfg = ScoringConfig.from_env()

    assert cfg.prometheus_address == "http://vm:8428/select/0/prometheus"
    assert cfg.window == "10m"
    assert cfg.base_weights == (0.25, 0.25, 0.25, 0.25)
    assert cfg.reference_ceilings == (2.0, 2048.0, 100.0, 100.0)
    assert cfg.telemetry_fallback == "exclude"
    assert cfg.max_score == 10


def test_from_env_rejects_bad_vector(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WB_BASE_WEIGHTS", "0.5,0.5")
    with pytest.raises(ConfigError):
        ScoringConfig.from_env()


def test_from_file(tmp_path) -> None:
    path = tmp_path / "wb.json"
    path.write_text(json.dumps({"threshold": 0.8, "base_weights": [0.5, 0.3, 0.1, 0.1]}), "utf-8")

    cfg = ScoringConfig.from_file(path)

    assert cfg.threshold == 0.8
    assert cfg.base_weights == (0.5, 0.3, 0.1, 0.1)
    assert cfg.max_score == 100


def test_from_file_unknown_key(tmp_path) -> None:
    path = tmp_path / "wb.json"
    path.write_text(json.dumps({"tresHold": 0.8}), "utf-8")
    with pytest.raises(ConfigError):
        ScoringConfig.from_file(path)


@pytest.mark.parametrize("overrides", [
    {"reference_ceilings": (1.0, 0.0, 1.0, 1.0)},
    {"base_weights": (0.4, -0.1, 0.15, 0.15)},
    {"threshold": 1.5},
    {"max_score": 0},
    {"telemetry_fallback": "ignore"},
])
def test_validate_rejects(overrides) -> None:
    with pytest.raises(ConfigError):
        ScoringConfig(**overrides).validate()
