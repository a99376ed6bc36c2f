from __future__ import annotations

import asyncio
from datetime import date
from typing import Annotated

from mcp.server.fastmcp import FastMCP

from standup.core.config import get_settings
from standup.core.logging import configure_logging
from standup.main import bootstrap_database
from standup.persistence.standup_store import StandupStore
from standup.services.runner import run_standup
from standup.utils.dates import today_in_timezone


server = FastMCP("standup-engine")

_BOOTSTRAPPED = False
_BOOTSTRAP_LOCK = asyncio.Lock()


async def _bootstrap_backend() -> None:
    """
    Ensure logging and the standup tables exist when the MCP server launches.
    """
    global _BOOTSTRAPPED
    if _BOOTSTRAPPED:
        return
    async with _BOOTSTRAP_LOCK:
        if _BOOTSTRAPPED:
            return
        s = get_settings()
        configure_logging(s.LOG_LEVEL, env=s.ENV, app_name=s.APP_NAME)
        bootstrap_database()
        _BOOTSTRAPPED = True


def _standup_payload(store: StandupStore, row: dict) -> dict:
    return {
        **row,
        "standup_date": str(row["standup_date"]),
        "entries": store.list_entries(row["id"]),
        "messages": store.list_messages(row["id"]),
    }


@server.tool(name="run_standup")
async def run_standup_tool(
    standup_date: Annotated[
        str | None,
        "Date to run (YYYY-MM-DD). Omit for today in the configured timezone; an existing date is re-run.",
    ] = None,
) -> dict:
    """
    Runs (or re-runs) the agent standup for a date and returns the run outcome.
    """
    await _bootstrap_backend()
    s = get_settings()
    target = date.fromisoformat(standup_date) if standup_date else today_in_timezone(s.TIMEZONE)
    result = await run_standup(target, timezone=s.TIMEZONE)
    return result.to_dict()


@server.tool()
async def get_standup(
    standup_date: Annotated[str, "Date of the standup (YYYY-MM-DD)."],
) -> dict:
    """
    Returns the standup record for a date with its entries and full transcript.
    """
    await _bootstrap_backend()
    store = StandupStore()
    row = store.get_standup_by_date(date.fromisoformat(standup_date))
    if row is None:
        return {"standup_date": standup_date, "found": False}
    return {"found": True, **_standup_payload(store, row)}


if __name__ == "__main__":
    server.run()
