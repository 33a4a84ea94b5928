# workload_balance/inventory/quantity.py
from __future__ import annotations

import re
from typing import Any

from ..types import BYTES_PER_MIB, Cores, MiB

_MEMORY_MULTIPLIERS = {
    'Ki': 1024, 'Mi': 1024**2, 'Gi': 1024**3, 'Ti': 1024**4,
    'K': 1000, 'M': 1000**2, 'G': 1000**3, 'T': 1000**4,
}


def parse_cpu_cores(quantity: Any) -> Cores:
    """Kubernetes cpu quantity ("4", "3500m", "250000000n") -> cores. Unparsable -> 0."""
    if quantity is None or quantity == "":
        return Cores(0.0)
    if isinstance(quantity, (int, float)):
        return Cores(float(quantity))
    q = str(quantity).strip()
    try:
        if q.endswith('m'):
            return Cores(float(q[:-1]) / 1000.0)
        if q.endswith('n'):
            return Cores(float(q[:-1]) / 1_000_000_000.0)
        return Cores(float(q))
    except ValueError:
        return Cores(0.0)


def parse_memory_mib(quantity: Any) -> MiB:
    """Kubernetes memory quantity ("16Gi", "512M", "1048576") -> MiB. Unparsable -> 0."""
    if quantity is None or quantity == "":
        return MiB(0.0)
    if isinstance(quantity, (int, float)):
        return MiB(float(quantity) / BYTES_PER_MIB)
    q = str(quantity).strip()
    suffix_match = re.search(r'[A-Za-z]+$', q)
    try:
        if suffix_match:
            suffix = suffix_match.group(0)
            mult = _MEMORY_MULTIPLIERS.get(suffix)
            if mult is None:
                return MiB(0.0)
            return MiB(float(q[:-len(suffix)]) * mult / BYTES_PER_MIB)
        return MiB(float(q) / BYTES_PER_MIB)
    except ValueError:
        return MiB(0.0)
