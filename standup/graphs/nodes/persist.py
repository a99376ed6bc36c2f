from __future__ import annotations

from langchain_core.runnables import RunnableConfig

from standup.core.logging import get_logger
from standup.graphs.state import StandupState
from standup.services.deps import deps_from_config

logger = get_logger(name=__name__)


def persist_node(state: StandupState, config: RunnableConfig) -> dict:
    deps = deps_from_config(config)
    standup_id = state["standup"]["id"]
    entries = [r.to_entry() for r in state.get("reports") or []]
    messages = state.get("messages") or []

    # raises PersistenceError after a full rollback
    deps.store.replace_transcript(standup_id, entries, messages)
    logger.info("standup_transcript_saved", standup_id=standup_id, entries=len(entries), messages=len(messages))

    return {
        "current_node": "persist",
        "entries": entries,
    }
