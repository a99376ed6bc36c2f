from __future__ import annotations

from langchain_core.runnables import RunnableConfig

from standup.graphs.prompts import CLOSING_MESSAGE
from standup.graphs.state import StandupState
from standup.persistence.standup_store import MessageRecord
from standup.services.collector import CollectedReport, next_timestamp
from standup.services.deps import deps_from_config
from standup.services.escalation import AttentionItem, find_attention_items

RESULT_OK = "ok"


def result_token(items: list[AttentionItem]) -> str:
    return RESULT_OK if not items else f"attention: {len(items)} item(s)"


def closing_summary(reports: list[CollectedReport], items: list[AttentionItem], escalated: bool) -> str:
    received = sum(1 for r in reports if r.outcome.ok)
    lines = [CLOSING_MESSAGE.format(received=received, expected=len(reports))]

    missing = [f"{r.participant.agent_id} ({r.outcome.kind})" for r in reports if not r.outcome.ok]
    if missing:
        lines.append("No report from: " + ", ".join(missing) + ".")

    if not items:
        lines.append("No blockers raised.")
    else:
        header = "Needs attention (escalated):" if escalated else "Needs attention:"
        lines.append(header)
        lines.extend(f"- {item.agent_id}: {item.reason}" for item in items)
    return "\n".join(lines)


async def close_node(state: StandupState, config: RunnableConfig) -> dict:
    deps = deps_from_config(config)
    standup = state["standup"]
    reports = state.get("reports") or []
    entries = state.get("entries") or []
    messages = state.get("messages") or []

    items = find_attention_items(entries)
    # escalation failures are logged by the escalator and never stop the close
    escalated = await deps.escalator.escalate(standup.get("title", "Standup"), items)

    closing = MessageRecord(
        kind="system",
        content=closing_summary(reports, items, escalated),
        created_at=next_timestamp(deps.clock, messages[-1].created_at if messages else None),
    )
    token = result_token(items)
    deps.store.complete_run(standup["id"], closing=closing, result=token)

    return {
        "current_node": "close",
        "status": "completed",
        "result": token,
        "escalated": escalated,
        "messages": [closing],
    }
