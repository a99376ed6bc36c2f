from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import psycopg
from psycopg.rows import dict_row

from standup.core.config import get_settings


def get_conn() -> psycopg.Connection:
    """
    Short-lived connection helper. The engine opens a connection per unit of
    work and never keeps one across agent calls.
    """
    s = get_settings()
    return psycopg.connect(s.DATABASE_URL, row_factory=dict_row)


@contextmanager
def transaction() -> Iterator[psycopg.Connection]:
    """Yields a connection inside one transaction; rolls back on any error."""
    with get_conn() as conn:
        with conn.transaction():
            yield conn


def exec_sql(sql: str, params: Sequence[Any] | None = None) -> None:
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, params)
        conn.commit()


def fetch_all(sql: str, params: Sequence[Any] | None = None) -> list[dict]:
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, params or [])
            rows = cur.fetchall()
        return list(rows)


def fetch_one(sql: str, params: Sequence[Any] | None = None) -> dict | None:
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, params or [])
            row = cur.fetchone()
        conn.commit()
        return row
