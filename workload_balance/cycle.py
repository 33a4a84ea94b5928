# workload_balance/cycle.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .context import CycleContext
from .errors import Status, StatusCode
from .model.entities import HostScore, Instance
from .plugin import ScorePlugin
from .types import HostId

log = logging.getLogger(__name__)


@dataclass
class CycleResult:
    scores: List[HostScore]
    statuses: Dict[HostId, Status] = field(default_factory=dict)
    status: Status = field(default_factory=Status.ok)


def run_cycle(
    plugin: ScorePlugin,
    instance: Instance,
    host_ids: Iterable[HostId],
    deadline_seconds: Optional[float] = None,
    max_workers: int = 8,
    ctx: Optional[CycleContext] = None,
) -> CycleResult:
    """
    ÐÐ´Ð¸Ð½ ÑÐ¸ÐºÐ» Ð¿Ð»Ð°Ð½Ð¸ÑÐ¾Ð²Ð°Ð½Ð¸Ñ: Ð¿Ð°ÑÐ°Ð»Ð»ÐµÐ»ÑÐ½Ð¾ Ð¾ÑÐµÐ½Ð¸Ð²Ð°ÐµÐ¼ Ð²ÑÐµ ÑÐ¾ÑÑÑ, Ð¶Ð´ÑÐ¼ Ð²ÑÐµÑ,
    Ð·Ð°ÑÐµÐ¼ Ð¾Ð´Ð¸Ð½ Ð¿ÑÐ¾ÑÐ¾Ð´ Ð½Ð¾ÑÐ¼Ð°Ð»Ð¸Ð·Ð°ÑÐ¸Ð¸ Ð¿Ð¾ Ð¿Ð¾Ð»Ð½Ð¾Ð¼Ñ ÑÐ¿Ð¸ÑÐºÑ.

    Ð¥Ð¾ÑÑÑ, Ð½Ðµ ÑÑÐ¿ÐµÐ²ÑÐ¸Ðµ Ðº Ð´ÐµÐ´Ð»Ð°Ð¹Ð½Ñ, Ð¾ÑÐ¼ÐµÐ½ÑÑÑÑÑ Ð¸ Ð¿Ð¾Ð»ÑÑÐ°ÑÑ 0 ÑÐ¾ ÑÑÐ°ÑÑÑÐ¾Ð¼
    EXCLUDED.
    """
    hosts = list(dict.fromkeys(host_ids))
    ctx = ctx or CycleContext(deadline_seconds)
    statuses: Dict[HostId, Status] = {}
    raw: Dict[HostId, float] = {}

    if hosts:
        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(hosts)))) as pool:
            futures = {pool.submit(plugin.score, ctx, instance, h): h for h in hosts}
            done, pending = wait(futures, timeout=ctx.remaining())
            if pending:
                log.warning(f"Cycle deadline reached with {len(pending)} hosts still scoring, cancelling")
                # сначала снимаем очередь, потом будим работающие вызовы
                for f in pending:
                    f.cancel()
                ctx.cancel()
                # работающие вызовы падают на следующем запросе к бэкенду
                wait(pending)

            for f, h in futures.items():
                if f.cancelled():
                    log.warning(f"Scoring of host {h} cancelled at cycle deadline, excluding it")
                    ctx.exclude(h)
                    raw[h], statuses[h] = 0.0, Status(StatusCode.EXCLUDED, "scoring cancelled")
                    continue
                exc = f.exception()
                if exc is not None:
                    log.error(f"Scoring host {h} raised: {exc}")
                    ctx.exclude(h)
                    raw[h], statuses[h] = 0.0, Status(StatusCode.EXCLUDED, f"scoring failed: {exc}")
                    continue
                raw[h], statuses[h] = f.result()

    scores = [HostScore(host_id=h, score=raw[h]) for h in hosts]
    status = plugin.normalize_score(ctx, instance, scores)
    return CycleResult(scores=scores, statuses=statuses, status=status)
