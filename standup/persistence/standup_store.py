from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal, Sequence

import psycopg
from psycopg.types.json import Jsonb

from standup.core.logging import get_logger
from standup.persistence.db import fetch_all, fetch_one, transaction
from standup.services.errors import PersistenceError

logger = get_logger(name=__name__)

MessageKind = Literal["system", "agent"]


@dataclass(slots=True)
class EntryRecord:
    agent_id: str
    turn_order: int
    raw: str
    user_id: str | None = None
    yesterday: str | None = None
    today: str | None = None
    blockers: str | None = None
    tasks: Any = None


@dataclass(slots=True)
class MessageRecord:
    kind: MessageKind
    content: str
    created_at: datetime
    agent_id: str | None = None


_STANDUP_COLUMNS = """
    id::text AS id, standup_date, title, timezone, status, result, error,
    started_at, completed_at, created_at, updated_at
"""


class StandupStore:
    """Postgres-backed standup records: runs, entries and transcript messages."""

    # ------------------------------------------------------------------
    # run lifecycle
    # ------------------------------------------------------------------
    def upsert_run(self, standup_date: date, *, title: str, timezone: str) -> dict:
        row = fetch_one(
            f"""
            INSERT INTO standups (id, standup_date, title, timezone, status, started_at)
            VALUES (%s, %s, %s, %s, 'running', now())
            ON CONFLICT (standup_date) DO UPDATE SET
              title = EXCLUDED.title,
              timezone = EXCLUDED.timezone,
              status = 'running',
              started_at = EXCLUDED.started_at,
              completed_at = NULL,
              result = NULL,
              error = NULL,
              updated_at = now()
            RETURNING {_STANDUP_COLUMNS}
            """,
            [str(uuid.uuid4()), standup_date, title, timezone],
        )
        if row is None:
            raise PersistenceError(f"Upsert returned no standup row for {standup_date}")
        return row

    def mark_error(self, standup_id: str, reason: str | None = None, *, clear_transcript: bool = False) -> None:
        """
        Moves the standup to ``error``. With ``clear_transcript`` its entries
        and messages are deleted in the same transaction.
        """
        with transaction() as conn:
            with conn.cursor() as cur:
                if clear_transcript:
                    cur.execute("DELETE FROM standup_entries WHERE standup_id = %s::uuid", [standup_id])
                    cur.execute("DELETE FROM standup_messages WHERE standup_id = %s::uuid", [standup_id])
                cur.execute(
                    """
                    UPDATE standups
                    SET status = 'error', error = %s, completed_at = now(), updated_at = now()
                    WHERE id = %s::uuid
                    """,
                    [reason, standup_id],
                )

    def reconcile_stale_runs(self, before: date) -> list[str]:
        rows = fetch_all(
            """
            UPDATE standups
            SET status = 'error',
                error = 'abandoned: still running when a later run started',
                completed_at = now(),
                updated_at = now()
            WHERE status = 'running' AND standup_date < %s
            RETURNING id::text AS id
            """,
            [before],
        )
        return [r["id"] for r in rows]

    def complete_run(self, standup_id: str, *, closing: MessageRecord, result: str) -> None:
        with transaction() as conn:
            with conn.cursor() as cur:
                self._insert_messages(cur, standup_id, [closing])
                cur.execute(
                    """
                    UPDATE standups
                    SET status = 'completed', result = %s, error = NULL,
                        completed_at = now(), updated_at = now()
                    WHERE id = %s::uuid
                    """,
                    [result, standup_id],
                )

    # ------------------------------------------------------------------
    # transcript
    # ------------------------------------------------------------------
    def replace_transcript(
        self,
        standup_id: str,
        entries: Sequence[EntryRecord],
        messages: Sequence[MessageRecord],
    ) -> None:
        """
        Deletes every entry and message of the standup and writes the fresh
        set, all in one transaction. Nothing is kept from a failed attempt.
        """
        try:
            with transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM standup_entries WHERE standup_id = %s::uuid", [standup_id])
                    cur.execute("DELETE FROM standup_messages WHERE standup_id = %s::uuid", [standup_id])
                    for e in entries:
                        cur.execute(
                            """
                            INSERT INTO standup_entries (
                              standup_id, agent_id, user_id, turn_order,
                              yesterday, today, blockers, tasks, raw
                            ) VALUES (%s::uuid, %s, %s, %s, %s, %s, %s, %s, %s)
                            """,
                            [
                                standup_id,
                                e.agent_id,
                                e.user_id,
                                e.turn_order,
                                e.yesterday,
                                e.today,
                                e.blockers,
                                Jsonb(e.tasks) if e.tasks is not None else None,
                                e.raw,
                            ],
                        )
                    self._insert_messages(cur, standup_id, messages)
        except psycopg.Error as exc:
            logger.error("standup_transcript_rollback", standup_id=standup_id, error=str(exc))
            raise PersistenceError(f"Failed to persist standup transcript: {exc}") from exc

    @staticmethod
    def _insert_messages(cur: psycopg.Cursor, standup_id: str, messages: Sequence[MessageRecord]) -> None:
        for m in messages:
            cur.execute(
                """
                INSERT INTO standup_messages (standup_id, kind, agent_id, content, created_at)
                VALUES (%s::uuid, %s, %s, %s, %s)
                """,
                [standup_id, m.kind, m.agent_id, m.content, m.created_at],
            )

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get_standup(self, standup_id: str) -> dict | None:
        return fetch_one(f"SELECT {_STANDUP_COLUMNS} FROM standups WHERE id = %s::uuid", [standup_id])

    def get_standup_by_date(self, standup_date: date) -> dict | None:
        return fetch_one(f"SELECT {_STANDUP_COLUMNS} FROM standups WHERE standup_date = %s", [standup_date])

    def get_latest_standup(self) -> dict | None:
        rows, _ = self.list_standups(limit=1, offset=0)
        return rows[0] if rows else None

    def list_standups(self, limit: int = 50, offset: int = 0) -> tuple[list[dict], int]:
        limit = max(1, min(limit, 100))
        offset = max(0, offset)
        rows = fetch_all(
            """
            SELECT
              s.id::text AS id, s.standup_date, s.title, s.timezone, s.status, s.result, s.error,
              s.started_at, s.completed_at, s.created_at, s.updated_at,
              COUNT(se.id)::int AS entry_count,
              COALESCE(
                JSON_AGG(
                  JSON_BUILD_OBJECT('agent_id', se.agent_id, 'user_id', se.user_id)
                  ORDER BY se.turn_order
                ) FILTER (WHERE se.id IS NOT NULL),
                '[]'::json
              ) AS participants
            FROM standups s
            LEFT JOIN standup_entries se ON se.standup_id = s.id
            GROUP BY s.id
            ORDER BY s.standup_date DESC, s.created_at DESC
            LIMIT %s OFFSET %s
            """,
            [limit, offset],
        )
        total = fetch_one("SELECT COUNT(*)::int AS total FROM standups") or {"total": 0}
        return rows, total["total"]

    def list_entries(self, standup_id: str) -> list[dict]:
        return fetch_all(
            """
            SELECT id, standup_id::text AS standup_id, agent_id, user_id, turn_order,
                   yesterday, today, blockers, tasks, raw, created_at
            FROM standup_entries
            WHERE standup_id = %s::uuid
            ORDER BY turn_order ASC
            """,
            [standup_id],
        )

    def list_messages(self, standup_id: str, kind: MessageKind | None = None) -> list[dict]:
        return fetch_all(
            """
            SELECT id, standup_id::text AS standup_id, kind, agent_id, content, created_at
            FROM standup_messages
            WHERE standup_id = %s::uuid
              AND (%s::text IS NULL OR kind = %s::text)
            ORDER BY created_at ASC, id ASC
            """,
            [standup_id, kind, kind],
        )

    def delete_standup(self, standup_id: str) -> bool:
        row = fetch_one("DELETE FROM standups WHERE id = %s::uuid RETURNING id::text AS id", [standup_id])
        return row is not None
