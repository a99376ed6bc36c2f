from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

import httpx

from standup.core.config import Settings
from standup.core.logging import get_logger
from standup.persistence.standup_store import EntryRecord
from standup.services.errors import EscalationError

logger = get_logger(name=__name__)

# blockers sections that mean "nothing to report"
NO_BLOCKER_PHRASES = (
    "none",
    "no blocker",
    "no blockers",
    "no current blocker",
    "no current blockers",
    "no issue",
    "no issues",
    "not blocked",
    "nothing",
    "nothing blocking",
    "nil",
    "n/a",
    "all clear",
)
# a phrase counts only at the end of the section or before a separator,
# and never when a "but ..." qualifier follows
_NO_BLOCKER_RE = re.compile(
    r"(?:" + "|".join(re.escape(p) for p in NO_BLOCKER_PHRASES) + r")"
    r"(?:\s+(?:at the moment|at this time|right now|currently|today))?"
    r"(?:\s*(?:[.,;:!()]|\s-)(?!\s*(?:but|except|however)\b).*)?",
    re.DOTALL,
)
BLOCKED_TASK_STATUSES = frozenset({"blocked"})


class EscalationChannel(Protocol):
    async def notify(self, principal: str, text: str) -> None:
        """Delivers ``text`` to ``principal``; raises EscalationError on failure."""
        ...


@dataclass(slots=True)
class AttentionItem:
    agent_id: str
    reason: str


class WebhookEscalationChannel:
    def __init__(
        self,
        webhook_url: str | None,
        *,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout_seconds
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "WebhookEscalationChannel":
        return cls(settings.ESCALATION_WEBHOOK_URL, timeout_seconds=settings.ESCALATION_TIMEOUT_SECONDS)

    async def notify(self, principal: str, text: str) -> None:
        if not self._webhook_url:
            raise EscalationError("escalation webhook is not configured (set ESCALATION_WEBHOOK_URL)")
        payload = {"principal": principal, "text": text}
        try:
            if self._client is not None:
                response = await self._client.post(self._webhook_url, json=payload, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise EscalationError(f"escalation webhook failed: {exc}") from exc


def is_blocker(text: str | None) -> bool:
    if not text:
        return False
    normalized = text.strip().lower().rstrip(".!")
    if not normalized or set(normalized) <= {"-", " "}:
        return False
    return _NO_BLOCKER_RE.fullmatch(normalized) is None


def _task_items(agent_id: str, tasks: Any) -> list[AttentionItem]:
    if isinstance(tasks, dict):
        tasks = [tasks]
    if not isinstance(tasks, list):
        return []
    items: list[AttentionItem] = []
    for task in tasks:
        if not isinstance(task, dict):
            continue
        status = str(task.get("status") or "").strip().lower()
        if status in BLOCKED_TASK_STATUSES:
            label = task.get("id") or task.get("title") or "untitled"
            items.append(AttentionItem(agent_id=agent_id, reason=f"task {label} is blocked"))
    return items


def find_attention_items(entries: Iterable[EntryRecord]) -> list[AttentionItem]:
    items: list[AttentionItem] = []
    for entry in entries:
        if is_blocker(entry.blockers):
            items.append(AttentionItem(agent_id=entry.agent_id, reason=(entry.blockers or "").strip()))
        items.extend(_task_items(entry.agent_id, entry.tasks))
    return items


def escalation_summary(title: str, items: list[AttentionItem]) -> str:
    lines = [f"{title}: {len(items)} item(s) need attention"]
    lines.extend(f"- {item.agent_id}: {item.reason}" for item in items)
    return "\n".join(lines)


class Escalator:
    def __init__(
        self,
        channel: EscalationChannel | None,
        *,
        principal: str,
        enabled: bool = True,
    ) -> None:
        self._channel = channel
        self._principal = principal
        self._enabled = enabled

    async def escalate(self, title: str, items: list[AttentionItem]) -> bool:
        """Returns True when the principal was notified. Never raises."""
        if not items:
            return False
        if not self._enabled or self._channel is None:
            reason = "disabled" if not self._enabled else "no_channel"
            logger.info("standup_escalation_skipped", items=len(items), reason=reason)
            return False

        try:
            await self._channel.notify(self._principal, escalation_summary(title, items))
        except Exception as exc:
            logger.warning("standup_escalation_failed", principal=self._principal, error=str(exc))
            return False

        logger.info("standup_escalated", principal=self._principal, items=len(items))
        return True
