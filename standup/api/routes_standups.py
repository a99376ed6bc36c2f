from datetime import date
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from standup.api.schemas import RunStandupRequest, RunStandupResponse
from standup.core.config import get_settings
from standup.persistence.standup_store import StandupStore
from standup.services.deps import StandupDeps, build_deps
from standup.services.runner import run_standup
from standup.utils.dates import today_in_timezone

router = APIRouter(prefix="/standups", tags=["standups"])


def get_store() -> StandupStore:
    return StandupStore()


def get_standup_deps() -> StandupDeps:
    return build_deps(get_settings())


def _require_standup(store: StandupStore, standup_id: UUID) -> dict:
    row = store.get_standup(str(standup_id))
    if not row:
        raise HTTPException(status_code=404, detail="Standup not found")
    return row


@router.get("")
def list_standups(limit: int = 50, offset: int = 0, store: StandupStore = Depends(get_store)):
    limit = max(1, min(limit, 100))
    offset = max(0, offset)
    rows, total = store.list_standups(limit=limit, offset=offset)
    return {"data": rows, "pagination": {"limit": limit, "offset": offset, "total": total}}


@router.get("/latest")
def latest_standup(store: StandupStore = Depends(get_store)):
    row = store.get_latest_standup()
    if not row:
        raise HTTPException(status_code=404, detail="No standups found")
    return {"data": row}


@router.get("/by-date/{standup_date}")
def standup_by_date(standup_date: date, store: StandupStore = Depends(get_store)):
    row = store.get_standup_by_date(standup_date)
    if not row:
        raise HTTPException(status_code=404, detail="Standup not found")
    return {"data": row}


@router.post("/run", response_model=RunStandupResponse)
async def trigger_standup(body: RunStandupRequest, deps: StandupDeps = Depends(get_standup_deps)):
    tz = body.timezone or deps.default_timezone
    standup_date = body.standup_date or today_in_timezone(tz)
    result = await run_standup(standup_date, timezone=tz, deps=deps)
    return RunStandupResponse(**result.to_dict())


@router.get("/{standup_id}")
def standup_detail(standup_id: UUID, store: StandupStore = Depends(get_store)):
    standup = _require_standup(store, standup_id)
    return {
        "data": {
            **standup,
            "entries": store.list_entries(standup["id"]),
            # the detail view replays agent messages only
            "messages": store.list_messages(standup["id"], kind="agent"),
        }
    }


@router.get("/{standup_id}/entries")
def standup_entries(standup_id: UUID, store: StandupStore = Depends(get_store)):
    standup = _require_standup(store, standup_id)
    return {"standup_id": standup["id"], "entries": store.list_entries(standup["id"])}


@router.get("/{standup_id}/messages")
def standup_messages(
    standup_id: UUID,
    kind: Literal["system", "agent"] | None = None,
    store: StandupStore = Depends(get_store),
):
    standup = _require_standup(store, standup_id)
    return {"standup_id": standup["id"], "messages": store.list_messages(standup["id"], kind=kind)}


@router.delete("/{standup_id}", status_code=204)
def delete_standup(standup_id: UUID, store: StandupStore = Depends(get_store)):
    if not store.delete_standup(str(standup_id)):
        raise HTTPException(status_code=404, detail="Standup not found")
