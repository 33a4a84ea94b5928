# workload_balance/api/schema.py
from __future__ import annotations

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class PodModel(BaseModel):
    name: str
    namespace: str = "default"
    labels: Dict[str, str] = Field(default_factory=dict)


class StatusModel(BaseModel):
    code: str
    message: str = ""


class PrioritizeRequest(BaseModel):
    pod: PodModel
    node_names: List[str]
    # Ð¿ÐµÑÐµÐºÑÑÐ²Ð°ÐµÑ Ð´ÐµÐ´Ð»Ð°Ð¹Ð½ ÑÐ¸ÐºÐ»Ð° Ð¸Ð· ÐºÐ¾Ð½ÑÐ¸Ð³Ð°
    deadline_seconds: Optional[float] = None


class HostPriorityModel(BaseModel):
    host: str
    score: int


class PrioritizeResponse(BaseModel):
    priorities: List[HostPriorityModel]
    statuses: Dict[str, StatusModel]


class ScoreRequest(BaseModel):
    pod: PodModel
    node_name: str


class ScoreResponse(BaseModel):
    host: str
    raw_score: float
    status: StatusModel
