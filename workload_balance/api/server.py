# workload_balance/api/server.py
from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI, HTTPException

from ..config import ScoringConfig
from ..context import CycleContext
from ..cycle import run_cycle
from ..errors import Status
from ..inventory.base import build_inventory
from ..model.entities import Instance
from ..plugin import WorkloadBalance, new_plugin
from ..types import HostId, InstanceId, Namespace
from .schema import (
    HostPriorityModel, PodModel, PrioritizeRequest, PrioritizeResponse,
    ScoreRequest, ScoreResponse, StatusModel,
)

log = logging.getLogger(__name__)

# --- ENV ---
INVENTORY_FILE_ENV = "WB_INVENTORY_FILE"
KUBE_CONTEXT_ENV = "WB_KUBE_CONTEXT"

_app: Optional[FastAPI] = None


def _instance(pod: PodModel) -> Instance:
    return Instance(name=InstanceId(pod.name), namespace=Namespace(pod.namespace), labels=dict(pod.labels))


def _status(status: Status) -> StatusModel:
    return StatusModel(code=status.code.value, message=status.message)


def create_app(config: ScoringConfig, plugin: WorkloadBalance) -> FastAPI:
    """HTTP-фасад в стиле scheduler extender вокруг одного плагина."""
    app = FastAPI(title="Workload Balance Scorer")

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "plugin": plugin.name}

    @app.post("/prioritize", response_model=PrioritizeResponse)
    def prioritize(req: PrioritizeRequest) -> PrioritizeResponse:
        instance = _instance(req.pod)
        deadline = config.cycle_deadline_seconds if req.deadline_seconds is None else req.deadline_seconds
        result = run_cycle(plugin, instance, [HostId(n) for n in req.node_names], deadline_seconds=deadline)
        if result.status.is_fatal():
            raise HTTPException(status_code=400, detail=result.status.message)
        return PrioritizeResponse(
            priorities=[HostPriorityModel(host=s.host_id, score=int(s.score)) for s in result.scores],
            statuses={h: _status(st) for h, st in result.statuses.items()},
        )

    @app.post("/score", response_model=ScoreResponse)
    def score(req: ScoreRequest) -> ScoreResponse:
        ctx = CycleContext(config.cycle_deadline_seconds)
        raw, status = plugin.score(ctx, _instance(req.pod), HostId(req.node_name))
        return ScoreResponse(host=req.node_name, raw_score=raw, status=_status(status))

    return app


def app_from_env() -> FastAPI:
    """
    Приложение целиком из окружения: WB_* для конфига,
    WB_INVENTORY_FILE для статического инвентаря (иначе Kubernetes).
    """
    cfg = ScoringConfig.from_env()
    inventory = build_inventory(cfg, os.getenv(INVENTORY_FILE_ENV), os.getenv(KUBE_CONTEXT_ENV))
    return create_app(cfg, new_plugin(cfg, inventory))


def __getattr__(name: str):
    # uvicorn workload_balance.api.server:app, собираем при первом обращении
    global _app
    if name == "app":
        if _app is None:
            _app = app_from_env()
        return _app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
