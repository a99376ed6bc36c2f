from __future__ import annotations

from langchain_core.runnables import RunnableConfig

from standup.graphs.state import StandupState
from standup.persistence.standup_store import MessageRecord
from standup.services.deps import deps_from_config

ORCHESTRATOR_TURN = 0


async def collect_node(state: StandupState, config: RunnableConfig) -> dict:
    deps = deps_from_config(config)
    roster = state["roster"]
    messages = state.get("messages") or []
    previous = messages[-1].created_at if messages else None

    # participants in canonical order, one at a time
    reports = await deps.collector.collect(roster.participants, first_turn=1, previous=previous)

    # the orchestrator speaks last but owns the lowest turn
    own = await deps.collector.collect_one(
        roster.orchestrator,
        ORCHESTRATOR_TURN,
        previous=reports[-1].received_at if reports else previous,
    )
    reports.append(own)

    return {
        "current_node": "collect",
        "reports": reports,
        "messages": [
            MessageRecord(
                kind="agent",
                agent_id=r.participant.agent_id,
                content=r.outcome.text,
                created_at=r.received_at,
            )
            for r in reports
        ],
    }
