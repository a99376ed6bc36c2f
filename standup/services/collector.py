from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Literal

from standup.core.logging import get_logger
from standup.graphs.prompts import STANDUP_PROMPT
from standup.persistence.standup_store import EntryRecord
from standup.services.directory import Participant
from standup.services.errors import AgentRemoteError, AgentTimeoutError, ChannelUnavailableError
from standup.services.gateway import MessagingChannel
from standup.services.parser import ParsedReport, parse_report

logger = get_logger(name=__name__)

OutcomeKind = Literal["success", "timeout", "remote_error", "unavailable"]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(clock: Clock, previous: datetime | None) -> datetime:
    """Clock reading that is strictly later than ``previous``."""
    ts = clock()
    if previous is not None and ts <= previous:
        ts = previous + timedelta(microseconds=1)
    return ts


def timeout_sentinel(seconds: float) -> str:
    return f"[Timeout after {seconds:g}s: no response]"


def error_sentinel(detail: str) -> str:
    return f"[Error: {detail}]"


def unavailable_sentinel(detail: str) -> str:
    return f"[Unavailable: {detail}]"


@dataclass(slots=True)
class ReplyOutcome:
    kind: OutcomeKind
    text: str
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind == "success"


@dataclass(slots=True)
class CollectedReport:
    participant: Participant
    turn_order: int
    outcome: ReplyOutcome
    parsed: ParsedReport
    received_at: datetime

    def to_entry(self) -> EntryRecord:
        return EntryRecord(
            agent_id=self.participant.agent_id,
            user_id=self.participant.user_id,
            turn_order=self.turn_order,
            yesterday=self.parsed.yesterday,
            today=self.parsed.today,
            blockers=self.parsed.blockers,
            tasks=self.parsed.tasks,
            raw=self.parsed.raw,
        )


class ReportCollector:
    def __init__(
        self,
        channel: MessagingChannel,
        *,
        timeout_seconds: float = 90,
        grace_seconds: float = 15.0,
        prompt: str = STANDUP_PROMPT,
        clock: Clock = utc_now,
    ) -> None:
        self._channel = channel
        self._timeout = timeout_seconds
        self._grace = grace_seconds
        self._prompt = prompt
        self._clock = clock

    async def ask(self, agent_id: str) -> ReplyOutcome:
        """
        One attempt, bounded wait. Every failure becomes a sentinel reply so
        the caller can move on to the next participant.
        """
        try:
            reply = await asyncio.wait_for(
                self._channel.send(agent_id, self._prompt, self._timeout),
                timeout=self._timeout + self._grace,
            )
        except (AgentTimeoutError, asyncio.TimeoutError):
            logger.warning("standup_agent_timeout", agent_id=agent_id, timeout_seconds=self._timeout)
            return ReplyOutcome("timeout", timeout_sentinel(self._timeout))
        except AgentRemoteError as exc:
            logger.error("standup_agent_error", agent_id=agent_id, error=exc.detail)
            return ReplyOutcome("remote_error", error_sentinel(exc.detail), exc.detail)
        except ChannelUnavailableError as exc:
            logger.error("standup_channel_unavailable", agent_id=agent_id, error=exc.detail)
            return ReplyOutcome("unavailable", unavailable_sentinel(exc.detail), exc.detail)
        except Exception as exc:
            logger.exception("standup_channel_failed", agent_id=agent_id)
            detail = f"{type(exc).__name__}: {exc}"
            return ReplyOutcome("unavailable", unavailable_sentinel(detail), detail)

        if not isinstance(reply, str) or not reply.strip():
            return ReplyOutcome("remote_error", error_sentinel("empty reply"), "empty reply")
        return ReplyOutcome("success", reply)

    async def collect_one(
        self,
        participant: Participant,
        turn_order: int,
        *,
        previous: datetime | None = None,
    ) -> CollectedReport:
        started = time.monotonic()
        outcome = await self.ask(participant.agent_id)
        report = CollectedReport(
            participant=participant,
            turn_order=turn_order,
            outcome=outcome,
            parsed=parse_report(outcome.text),
            received_at=next_timestamp(self._clock, previous),
        )
        logger.info(
            "standup_reply_collected",
            agent_id=participant.agent_id,
            turn_order=turn_order,
            outcome=outcome.kind,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return report

    async def collect(
        self,
        participants: list[Participant],
        *,
        first_turn: int = 1,
        previous: datetime | None = None,
    ) -> list[CollectedReport]:
        reports: list[CollectedReport] = []
        for offset, participant in enumerate(participants):
            report = await self.collect_one(participant, first_turn + offset, previous=previous)
            previous = report.received_at
            reports.append(report)
        return reports
