from __future__ import annotations

import uuid
from dataclasses import asdict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Sequence

from standup.persistence.standup_store import EntryRecord, MessageRecord
from standup.services.collector import ReportCollector
from standup.services.deps import StandupDeps
from standup.services.directory import ParticipantDirectory
from standup.services.errors import EscalationError, PersistenceError
from standup.services.escalation import Escalator


class FakeClock:
    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start or datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


class InMemoryStandupStore:
    """Mirrors StandupStore semantics, including all-or-nothing transcript writes."""

    def __init__(self) -> None:
        self.standups: dict[str, dict] = {}
        self.entries: dict[str, list[dict]] = {}
        self.messages: dict[str, list[dict]] = {}
        self.fail_replace = False
        self.fail_complete = False
        self.upserts = 0

    def upsert_run(self, standup_date: date, *, title: str, timezone: str) -> dict:
        self.upserts += 1
        for row in self.standups.values():
            if row["standup_date"] == standup_date:
                row.update(
                    title=title, timezone=timezone, status="running",
                    completed_at=None, result=None, error=None,
                )
                return dict(row)
        row = {
            "id": str(uuid.uuid4()),
            "standup_date": standup_date,
            "title": title,
            "timezone": timezone,
            "status": "running",
            "result": None,
            "error": None,
            "completed_at": None,
        }
        self.standups[row["id"]] = row
        self.entries[row["id"]] = []
        self.messages[row["id"]] = []
        return dict(row)

    def mark_error(self, standup_id: str, reason: str | None = None, *, clear_transcript: bool = False) -> None:
        if clear_transcript:
            self.entries[standup_id] = []
            self.messages[standup_id] = []
        self.standups[standup_id].update(status="error", error=reason, completed_at="now")

    def reconcile_stale_runs(self, before: date) -> list[str]:
        stale = [
            sid for sid, row in self.standups.items()
            if row["status"] == "running" and row["standup_date"] < before
        ]
        for sid in stale:
            self.mark_error(sid, "abandoned: still running when a later run started")
        return stale

    def replace_transcript(
        self,
        standup_id: str,
        entries: Sequence[EntryRecord],
        messages: Sequence[MessageRecord],
    ) -> None:
        if self.fail_replace:
            raise PersistenceError("Failed to persist standup transcript: simulated failure")
        agents = [e.agent_id for e in entries]
        if len(agents) != len(set(agents)):
            raise PersistenceError("Failed to persist standup transcript: duplicate agent entry")
        self.entries[standup_id] = [{"standup_id": standup_id, **asdict(e)} for e in entries]
        self.messages[standup_id] = [{"standup_id": standup_id, **asdict(m)} for m in messages]

    def complete_run(self, standup_id: str, *, closing: MessageRecord, result: str) -> None:
        if self.fail_complete:
            raise RuntimeError("simulated close failure")
        self.messages[standup_id].append({"standup_id": standup_id, **asdict(closing)})
        self.standups[standup_id].update(status="completed", result=result, error=None, completed_at="now")

    def get_standup(self, standup_id: str) -> dict | None:
        row = self.standups.get(standup_id)
        return dict(row) if row else None

    def get_standup_by_date(self, standup_date: date) -> dict | None:
        for row in self.standups.values():
            if row["standup_date"] == standup_date:
                return dict(row)
        return None

    def get_latest_standup(self) -> dict | None:
        rows, _ = self.list_standups(limit=1)
        return rows[0] if rows else None

    def list_standups(self, limit: int = 50, offset: int = 0) -> tuple[list[dict], int]:
        rows = sorted(self.standups.values(), key=lambda r: r["standup_date"], reverse=True)
        out = [
            {**r, "entry_count": len(self.entries[r["id"]])}
            for r in rows[offset: offset + limit]
        ]
        return out, len(rows)

    def list_entries(self, standup_id: str) -> list[dict]:
        return sorted(self.entries.get(standup_id, []), key=lambda e: e["turn_order"])

    def list_messages(self, standup_id: str, kind: str | None = None) -> list[dict]:
        rows = sorted(self.messages.get(standup_id, []), key=lambda m: m["created_at"])
        return [m for m in rows if kind is None or m["kind"] == kind]

    def delete_standup(self, standup_id: str) -> bool:
        if standup_id not in self.standups:
            return False
        del self.standups[standup_id]
        self.entries.pop(standup_id, None)
        self.messages.pop(standup_id, None)
        return True


class ScriptedChannel:
    """Replies from a script: a string is returned, an exception is raised."""

    def __init__(self, script: dict[str, Any]) -> None:
        self.script = script
        self.calls: list[tuple[str, str, float]] = []

    async def send(self, agent_id: str, prompt: str, timeout: float) -> str:
        self.calls.append((agent_id, prompt, timeout))
        reply = self.script.get(agent_id, "Yesterday: shipped\nToday: more work\nBlockers: None")
        if isinstance(reply, BaseException):
            raise reply
        return reply


class RecordingEscalationChannel:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def notify(self, principal: str, text: str) -> None:
        if self.fail:
            raise EscalationError("webhook down")
        self.sent.append((principal, text))


def identity_rows(*agent_ids: str, inactive: Sequence[str] = ()) -> list[dict]:
    return [
        {
            "user_id": f"user-{agent_id}",
            "name": agent_id.upper(),
            "agent_id": agent_id,
            "avatar_url": None,
            "active": agent_id not in inactive,
        }
        for agent_id in agent_ids
    ]


def make_deps(
    *,
    rows: list[dict],
    script: dict[str, Any] | None = None,
    channel: ScriptedChannel | None = None,
    order: Sequence[str] = ("coo", "cto", "cpo", "cmo"),
    orchestrator_id: str = "main",
    store: InMemoryStandupStore | None = None,
    escalation: RecordingEscalationChannel | None = None,
    clock: FakeClock | None = None,
) -> StandupDeps:
    clock = clock or FakeClock()
    channel = channel or ScriptedChannel(script or {})
    return StandupDeps(
        store=store or InMemoryStandupStore(),  # type: ignore[arg-type]
        directory=ParticipantDirectory(order, orchestrator_id, source=lambda _ids: rows),
        collector=ReportCollector(channel, timeout_seconds=30, grace_seconds=1, clock=clock),
        escalator=Escalator(escalation, principal="ceo"),
        clock=clock,
    )
