from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from standup.core.config import Settings
from standup.persistence.standup_store import StandupStore
from standup.services.collector import Clock, ReportCollector, utc_now
from standup.services.directory import ParticipantDirectory
from standup.services.escalation import Escalator, WebhookEscalationChannel
from standup.services.gateway import GatewayMessagingChannel


@dataclass(slots=True)
class StandupDeps:
    """Collaborators of one standup run, handed to graph nodes via the run config."""

    store: StandupStore
    directory: ParticipantDirectory
    collector: ReportCollector
    escalator: Escalator
    title_prefix: str = "Executive Standup"
    default_timezone: str = "UTC"
    clock: Clock = field(default=utc_now)


def build_deps(settings: Settings) -> StandupDeps:
    escalation_channel = (
        WebhookEscalationChannel.from_settings(settings) if settings.ESCALATION_WEBHOOK_URL else None
    )
    return StandupDeps(
        store=StandupStore(),
        directory=ParticipantDirectory(
            settings.STANDUP_AGENT_ORDER,
            settings.STANDUP_ORCHESTRATOR_ID,
        ),
        collector=ReportCollector(
            GatewayMessagingChannel.from_settings(settings),
            timeout_seconds=settings.STANDUP_REPLY_TIMEOUT_SECONDS,
            grace_seconds=settings.GATEWAY_GRACE_SECONDS,
        ),
        escalator=Escalator(
            escalation_channel,
            principal=settings.ESCALATION_PRINCIPAL,
            enabled=settings.ESCALATION_ENABLED,
        ),
        title_prefix=settings.STANDUP_TITLE_PREFIX,
        default_timezone=settings.TIMEZONE,
    )


def deps_from_config(config: Mapping[str, Any] | None) -> StandupDeps:
    deps = ((config or {}).get("configurable") or {}).get("deps")
    if not isinstance(deps, StandupDeps):
        raise RuntimeError("standup graph invoked without StandupDeps in config['configurable']['deps']")
    return deps
