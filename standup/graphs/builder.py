from __future__ import annotations

from langgraph.graph import END, StateGraph

from standup.graphs.nodes.close import close_node
from standup.graphs.nodes.collect import collect_node
from standup.graphs.nodes.persist import persist_node
from standup.graphs.nodes.roster import roster_node
from standup.graphs.state import StandupState


def build_graph():
    """
    roster -> collect -> persist -> close

    Collection finishes before persistence starts, so the database
    transaction never spans an agent call.
    """
    g = StateGraph(StandupState)

    g.add_node("roster", roster_node)
    g.add_node("collect", collect_node)
    g.add_node("persist", persist_node)
    g.add_node("close", close_node)

    g.set_entry_point("roster")

    g.add_edge("roster", "collect")
    g.add_edge("collect", "persist")
    g.add_edge("persist", "close")
    g.add_edge("close", END)

    return g
