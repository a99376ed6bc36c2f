from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from standup.core.logging import get_logger
from standup.persistence.db import fetch_all
from standup.services.errors import NoParticipantsError

logger = get_logger(name=__name__)

IdentitySource = Callable[[Sequence[str]], Iterable[dict]]


@dataclass(slots=True)
class Participant:
    agent_id: str
    user_id: str | None = None
    name: str | None = None
    avatar_url: str | None = None


@dataclass(slots=True)
class Roster:
    participants: list[Participant]
    orchestrator: Participant
    order: list[str] = field(default_factory=list)


def fetch_identity_rows(agent_ids: Sequence[str]) -> list[dict]:
    """
    Reads agent identities from the shared users table.
    The table belongs to the identity service; this engine only reads it.
    """
    return fetch_all(
        """
        SELECT id::text AS user_id, name, agent_id, avatar_url, active
        FROM users
        WHERE agent_id = ANY(%s)
        """,
        [list(agent_ids)],
    )


def _as_participant(row: dict[str, Any]) -> Participant:
    user_id = row.get("user_id")
    return Participant(
        agent_id=str(row["agent_id"]),
        user_id=str(user_id) if user_id is not None else None,
        name=row.get("name"),
        avatar_url=row.get("avatar_url"),
    )


class ParticipantDirectory:
    def __init__(
        self,
        order: Sequence[str],
        orchestrator_id: str,
        source: IdentitySource = fetch_identity_rows,
    ) -> None:
        # orchestrator reports separately, never as a regular participant
        self._order = [a for a in dict.fromkeys(order) if a and a != orchestrator_id]
        self._orchestrator_id = orchestrator_id
        self._source = source

    @property
    def order(self) -> list[str]:
        return list(self._order)

    def resolve(self) -> Roster:
        rows = list(self._source([*self._order, self._orchestrator_id]))

        by_agent: dict[str, Participant] = {}
        orchestrator = Participant(agent_id=self._orchestrator_id)
        for row in rows:
            agent_id = row.get("agent_id")
            if agent_id == self._orchestrator_id:
                if orchestrator.user_id is None:
                    orchestrator = _as_participant(row)
                continue
            if agent_id not in self._order or not row.get("active", False):
                continue
            by_agent.setdefault(agent_id, _as_participant(row))

        participants = [by_agent[a] for a in self._order if a in by_agent]
        if not participants:
            logger.warning("standup_no_participants", order=self._order)
            raise NoParticipantsError("No active agent users found for standup")

        logger.info(
            "standup_roster_resolved",
            agents=[p.agent_id for p in participants],
            orchestrator=orchestrator.agent_id,
        )
        return Roster(participants=participants, orchestrator=orchestrator, order=self.order)
