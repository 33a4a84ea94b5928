# workload_balance/types.py
from __future__ import annotations

from typing import NewType


# identifiers / names
HostId = NewType("HostId", str)
InstanceId = NewType("InstanceId", str)
Namespace = NewType("Namespace", str)
GroupName = NewType("GroupName", str)

# ÐµÐ´Ð¸Ð½Ð¸ÑÑ, Ð¾Ð±ÑÐ¸Ðµ Ð´Ð»Ñ Ð²ÑÐµÐ³Ð¾, ÑÑÐ¾ Ð½Ð¸Ð¶Ðµ ÑÐµÐ»ÐµÐ¼ÐµÑÑÐ¸Ð¸
Cores = NewType("Cores", float)          # fractional CPU cores
MiB = NewType("MiB", float)              # memory
MiBPerSec = NewType("MiBPerSec", float)  # storage / network throughput

BYTES_PER_MIB = 1024 * 1024

# Ð¿Ð¾ÑÑÐ´Ð¾Ðº Ð¸Ð·Ð¼ÐµÑÐµÐ½Ð¸Ð¹ Ð²Ð¾ Ð²ÑÐµÑ ÐºÐ¾ÑÑÐµÐ¶Ð°Ñ Ð¿ÑÐ¾ÐµÐºÑÐ°
DIMENSIONS = ("cpu", "memory", "io_storage", "io_network")
