"""Standup reply parsing.

Agents answer the standup prompt in free text. The grammar recognised here is
a set of case-sensitive markers found anywhere in the reply::

    Yesterday: ...
    Today: ...
    Blockers: ...
    Tasks: [{"id": "TASK-1", "status": "blocked"}]

Markers may sit inline ("Yesterday: a. Today: b.") or carry markdown
decoration (``**Today:**``, ``- Blockers:``, ``## Yesterday:``). A section body
runs from its marker to the next recognised marker (or the end of the text).
When none of the three report markers appears, the whole reply is treated as
the "today" section.

``parse_report`` is total: it never raises, and ``raw`` always carries the
reply exactly as received.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

REPORT_MARKERS: tuple[tuple[str, str], ...] = (
    ("Yesterday:", "yesterday"),
    ("Today:", "today"),
    ("Blockers:", "blockers"),
)
TASKS_MARKER = "Tasks:"

_FIELD_BY_LABEL = {marker[:-1]: field for marker, field in REPORT_MARKERS + ((TASKS_MARKER, "tasks"),)}
_REPORT_FIELDS = frozenset(name for _, name in REPORT_MARKERS)

# optional bullet/heading/quote/bold prefix, the label, bold around the colon
_MARKER_RE = re.compile(
    r"(?:[*_#>\-][*_#>\- \t]*)?"
    r"(?<![A-Za-z0-9])"
    r"(?P<label>" + "|".join(re.escape(label) for label in _FIELD_BY_LABEL) + r")"
    r"(?:\*\*|__)?:(?:\*\*|__)?"
)


@dataclass(slots=True)
class ParsedReport:
    yesterday: str | None = None
    today: str | None = None
    blockers: str | None = None
    tasks: Any = None
    raw: str = ""


def _split_sections(text: str) -> dict[str, list[str]]:
    sections: dict[str, list[str]] = {}
    hits = list(_MARKER_RE.finditer(text))
    for hit, nxt in zip(hits, hits[1:] + [None]):
        end = nxt.start() if nxt is not None else len(text)
        field = _FIELD_BY_LABEL[hit.group("label")]
        # a repeated marker continues the same section
        sections.setdefault(field, []).append(text[hit.end():end])
    return sections


def _body(chunks: list[str] | None) -> str | None:
    if not chunks:
        return None
    body = "\n".join(c.strip() for c in chunks).strip()
    return body or None


def _decode_tasks(body: str | None) -> Any:
    if body is None:
        return None
    try:
        value = json.loads(body)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, (list, dict)) else None


def parse_report(text: str | None) -> ParsedReport:
    raw = text if isinstance(text, str) else ""
    parsed = ParsedReport(raw=raw)
    if not raw.strip():
        return parsed

    sections = _split_sections(raw)
    parsed.tasks = _decode_tasks(_body(sections.get("tasks")))

    if not _REPORT_FIELDS.intersection(sections):
        parsed.today = raw
        return parsed

    parsed.yesterday = _body(sections.get("yesterday"))
    parsed.today = _body(sections.get("today"))
    parsed.blockers = _body(sections.get("blockers"))
    return parsed
