# workload_balance/model/entities.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from ..types import (
    HostId, InstanceId, Namespace, GroupName, Cores, MiB, MiBPerSec
)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class HostCapacity:
    """ÐÐ¼ÐºÐ¾ÑÑÐ¸ ÑÐ¾ÑÑÐ° Ð¸Ð· Ð¼ÐµÑÐ°Ð´Ð°Ð½Ð½ÑÑ Ð¸Ð½Ð²ÐµÐ½ÑÐ°ÑÑ (Ð½Ðµ Ð¸Ð· ÑÐµÐ»ÐµÐ¼ÐµÑÑÐ¸Ð¸)."""
    cpu: Cores
    memory: MiB
    io_storage: MiBPerSec
    io_network: MiBPerSec


@dataclass
class HostUtilization:
    """
    ÐÐ³Ð½Ð¾Ð²ÐµÐ½Ð½Ð°Ñ ÑÑÐ¸Ð»Ð¸Ð·Ð°ÑÐ¸Ñ ÑÐ¾ÑÑÐ°-ÐºÐ°Ð½Ð´Ð¸Ð´Ð°ÑÐ°.

    ÐÐ¾ÑÑÐµÐ±Ð»ÐµÐ½Ð¸Ðµ Ð¼Ð¾Ð¶ÐµÑ Ð¿ÑÐµÐ²ÑÑÐ°ÑÑ ÑÐ¼ÐºÐ¾ÑÑÑ (over-commit), used <= capacity
    Ð·Ð´ÐµÑÑ Ð½Ðµ Ð¿ÑÐµÐ´Ð¿Ð¾Ð»Ð°Ð³Ð°ÐµÑÑÑ.
    """
    cpu_used: Cores
    mem_used: MiB
    io_storage_used: MiBPerSec
    io_network_used: MiBPerSec
    cpu_capacity: Cores
    mem_capacity: MiB
    io_storage_capacity: MiBPerSec
    io_network_capacity: MiBPerSec

    @classmethod
    def from_usage(cls, usage: Tuple[float, float, float, float], capacity: HostCapacity) -> "HostUtilization":
        cpu, mem, io_storage, io_network = usage
        return cls(
            cpu_used=Cores(cpu), mem_used=MiB(mem),
            io_storage_used=MiBPerSec(io_storage), io_network_used=MiBPerSec(io_network),
            cpu_capacity=capacity.cpu, mem_capacity=capacity.memory,
            io_storage_capacity=capacity.io_storage, io_network_capacity=capacity.io_network,
        )

    def usage(self) -> Tuple[float, float, float, float]:
        return (self.cpu_used, self.mem_used, self.io_storage_used, self.io_network_used)

    def capacity(self) -> Tuple[float, float, float, float]:
        return (self.cpu_capacity, self.mem_capacity, self.io_storage_capacity, self.io_network_capacity)


@dataclass
class InstanceUtilization:
    cpu_usage: Cores
    mem_usage: MiB
    io_storage_usage: MiBPerSec
    io_network_usage: MiBPerSec

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.cpu_usage, self.mem_usage, self.io_storage_usage, self.io_network_usage)


@dataclass(frozen=True)
class CohortWorkload:
    """Ð¡ÑÐµÐ´Ð½ÑÑ Ð´Ð¾Ð»Ñ ÑÑÐ¸Ð»Ð¸Ð·Ð°ÑÐ¸Ð¸ ÐºÐ¾Ð³Ð¾ÑÑÑ, ÐºÐ°Ð¶Ð´Ð¾Ðµ Ð¿Ð¾Ð»Ðµ Ð² [0, 1]."""
    cpu_fraction: float
    mem_fraction: float
    io_storage_fraction: float
    io_network_fraction: float

    def __post_init__(self):
        for name in ("cpu_fraction", "mem_fraction", "io_storage_fraction", "io_network_fraction"):
            object.__setattr__(self, name, clamp(float(getattr(self, name))))

    @classmethod
    def neutral(cls) -> "CohortWorkload":
        return cls(0.5, 0.5, 0.5, 0.5)


@dataclass(frozen=True)
class WeightVector:
    """
    ÐÐ¾ Ð²ÐµÑÑ Ð½Ð° Ð¸Ð·Ð¼ÐµÑÐµÐ½Ð¸Ðµ (cpu, memory, io storage, io network).
    Ð¡ÑÐ¼Ð¼Ð° Ð½Ðµ Ð¾Ð±ÑÐ·Ð°Ð½Ð° Ð±ÑÑÑ 1, Ð¿Ð¾ÑÑÐµÐ±Ð¸ÑÐµÐ»Ð¸ Ð´ÐµÐ»ÑÑ Ð½Ð° `total`.
    """
    alpha: float
    beta: float
    gamma: float
    delta: float

    @property
    def total(self) -> float:
        return self.alpha + self.beta + self.gamma + self.delta

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.alpha, self.beta, self.gamma, self.delta)


@dataclass(frozen=True)
class InstanceRef:
    name: InstanceId
    namespace: Namespace


@dataclass
class Instance:
    """A workload instance (pod): either the one being placed or a cohort member."""
    name: InstanceId
    namespace: Namespace
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def ref(self) -> InstanceRef:
        return InstanceRef(name=self.name, namespace=self.namespace)


@dataclass
class WorkloadGroup:
    """Selector-based grouping resource (a Service)."""
    name: GroupName
    namespace: Namespace
    selector: Dict[str, str] = field(default_factory=dict)

    def matches(self, labels: Dict[str, str]) -> bool:
        if not self.selector:
            return False
        return all(labels.get(k) == v for k, v in self.selector.items())


@dataclass
class HostScore:
    """
    Ð­Ð»ÐµÐ¼ÐµÐ½Ñ ÑÐ¿Ð¸ÑÐºÐ° ÑÐºÐ¾ÑÐ¾Ð² ÑÐ¸ÐºÐ»Ð°. ÐÐ¾ Ð½Ð¾ÑÐ¼Ð°Ð»Ð¸Ð·Ð°ÑÐ¸Ð¸ Ð² `score` ÑÑÑÐ¾Ð¹ ÑÐºÐ¾Ñ,
    Ð¿Ð¾ÑÐ»Ðµ - Ð¸ÑÐ¾Ð³Ð¾Ð²ÑÐ¹ ÑÐµÐ»ÑÐ¹.
    """
    host_id: HostId
    score: float
