from __future__ import annotations

from langchain_core.runnables import RunnableConfig

from standup.graphs.prompts import OPENING_MESSAGE
from standup.graphs.state import StandupState
from standup.persistence.standup_store import MessageRecord
from standup.services.collector import next_timestamp
from standup.services.deps import deps_from_config


def roster_node(state: StandupState, config: RunnableConfig) -> dict:
    deps = deps_from_config(config)
    standup = state.get("standup") or {}

    # raises NoParticipantsError before anything is sent
    roster = deps.directory.resolve()

    agents = ", ".join(p.agent_id for p in roster.participants)
    opening = MessageRecord(
        kind="system",
        content=OPENING_MESSAGE.format(title=standup.get("title", "Standup"), agents=agents),
        created_at=next_timestamp(deps.clock, None),
    )

    return {
        "current_node": "roster",
        "status": "running",
        "roster": roster,
        "messages": [opening],
    }
