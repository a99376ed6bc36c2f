from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Literal

from standup.core.config import get_settings
from standup.core.logging import bind_run_context, clear_run_context, get_logger
from standup.graphs.builder import build_graph
from standup.services.deps import StandupDeps, build_deps
from standup.services.errors import NoParticipantsError, StandupError
from standup.utils.dates import standup_title

logger = get_logger(name=__name__)


@dataclass(slots=True)
class StandupRunResult:
    status: Literal["completed", "error"]
    standup_date: date
    standup_id: str | None = None
    agent_count: int = 0
    result: str | None = None
    escalated: bool = False
    message: str | None = None
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["standup_date"] = self.standup_date.isoformat()
        return out


def _node_name_from_update(update: Any) -> str | None:
    # update is {"node_name": {...}} with stream_mode="updates"
    if not isinstance(update, dict):
        return None
    for k in update.keys():
        if not k.startswith("__"):
            return k
    return None


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _fail_run(
    deps: StandupDeps,
    standup_date: date,
    standup_id: str | None,
    reason: str,
    *,
    clear_transcript: bool = False,
) -> None:
    """Best effort: never leave a standup looking 'running' after a crash."""
    try:
        if standup_id is None:
            row = deps.store.get_standup_by_date(standup_date)
            if not row or row.get("status") != "running":
                return
            standup_id = row["id"]
        deps.store.mark_error(standup_id, reason, clear_transcript=clear_transcript)
    except Exception as exc:
        logger.error("standup_mark_error_failed", standup_date=str(standup_date), error=str(exc))


async def run_standup(
    standup_date: date,
    *,
    timezone: str | None = None,
    deps: StandupDeps | None = None,
) -> StandupRunResult:
    """
    Starts (or re-runs) the standup for ``standup_date``.

    Re-running a date replaces its entries and transcript. Precondition and
    persistence failures end the standup in ``error`` and are returned as an
    error result; anything else marks the standup ``error`` and propagates.
    """
    bind_run_context(standup_date=str(standup_date))
    try:
        return await _run(standup_date, timezone=timezone, deps=deps)
    finally:
        clear_run_context()


async def _run(
    standup_date: date,
    *,
    timezone: str | None,
    deps: StandupDeps | None,
) -> StandupRunResult:
    deps = deps or build_deps(get_settings())
    tz = timezone or deps.default_timezone
    started = time.monotonic()
    standup_id: str | None = None

    logger.info("standup_run_started", standup_date=str(standup_date), timezone=tz)

    try:
        stale = deps.store.reconcile_stale_runs(standup_date)
        if stale:
            logger.warning("standup_stale_runs_marked_error", standup_ids=stale)

        standup = deps.store.upsert_run(
            standup_date,
            title=standup_title(deps.title_prefix, standup_date),
            timezone=tz,
        )
        standup_id = standup["id"]
        bind_run_context(standup_id=standup_id)

        graph = build_graph().compile()
        config = {"configurable": {"deps": deps}}

        agent_count = 0
        token: str | None = None
        escalated = False
        async for update in graph.astream({"standup": standup}, config, stream_mode="updates"):
            node = _node_name_from_update(update)
            if not node:
                continue
            payload = update.get(node) or {}
            logger.info("standup_node_completed", node=node)
            if node == "persist":
                agent_count = len(payload.get("entries") or [])
            elif node == "close":
                token = payload.get("result")
                escalated = bool(payload.get("escalated"))

    except StandupError as exc:
        logger.error("standup_run_failed", standup_id=standup_id, error=str(exc))
        # an empty roster leaves no entries behind, even on a re-run
        _fail_run(
            deps, standup_date, standup_id, str(exc),
            clear_transcript=isinstance(exc, NoParticipantsError),
        )
        return StandupRunResult(
            status="error",
            standup_date=standup_date,
            standup_id=standup_id,
            message=str(exc),
            duration_ms=_elapsed_ms(started),
        )
    except Exception as exc:
        logger.exception("standup_run_crashed", standup_id=standup_id)
        _fail_run(deps, standup_date, standup_id, f"{type(exc).__name__}: {exc}")
        raise

    duration_ms = _elapsed_ms(started)
    logger.info(
        "standup_run_completed",
        standup_id=standup_id,
        agent_count=agent_count,
        result=token,
        duration_ms=duration_ms,
    )
    return StandupRunResult(
        status="completed",
        standup_date=standup_date,
        standup_id=standup_id,
        agent_count=agent_count,
        result=token,
        escalated=escalated,
        duration_ms=duration_ms,
    )
