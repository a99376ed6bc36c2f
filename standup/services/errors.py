from __future__ import annotations


class StandupError(Exception):
    """Run-level failure; the standup ends in status ``error``."""


class NoParticipantsError(StandupError):
    pass


class PersistenceError(StandupError):
    pass


class ChannelError(Exception):
    """Raised by an agent-messaging channel when a reply cannot be obtained."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class AgentTimeoutError(ChannelError):
    pass


class AgentRemoteError(ChannelError):
    pass


class ChannelUnavailableError(ChannelError):
    pass


class EscalationError(Exception):
    pass
