from __future__ import annotations

from typing import Annotated, Any, TypedDict

from standup.persistence.standup_store import EntryRecord, MessageRecord
from standup.services.collector import CollectedReport
from standup.services.directory import Roster


# ----------------------------
# Reducers (LangGraph)
# ----------------------------
def _append_list(a: Any, b: Any) -> list:
    a_list = a if isinstance(a, list) else []
    b_list = b if isinstance(b, list) else []
    return a_list + b_list


def _replace(_a: Any, b: Any) -> Any:
    return b


# ----------------------------
# State
# ----------------------------
class StandupState(TypedDict, total=False):
    # inputs
    standup: Annotated[dict, _replace]

    # collection
    roster: Annotated[Roster, _replace]
    reports: Annotated[list[CollectedReport], _append_list]
    messages: Annotated[list[MessageRecord], _append_list]

    # persistence + closing
    entries: Annotated[list[EntryRecord], _replace]
    result: Annotated[str, _replace]
    escalated: Annotated[bool, _replace]

    current_node: Annotated[str, _replace]
    status: Annotated[str, _replace]
