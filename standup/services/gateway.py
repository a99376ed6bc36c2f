from __future__ import annotations

from typing import Any, Protocol

import httpx

from standup.core.config import Settings
from standup.core.logging import get_logger
from standup.services.errors import AgentRemoteError, AgentTimeoutError, ChannelUnavailableError

logger = get_logger(name=__name__)


class MessagingChannel(Protocol):
    async def send(self, agent_id: str, prompt: str, timeout: float) -> str:
        """Returns the agent's reply text or raises a ChannelError subclass."""
        ...


def session_key_for(agent_id: str) -> str:
    return f"agent:{agent_id}:main"


class GatewayMessagingChannel:
    """
    Sends a message into an agent's main session through the agent gateway
    ``/tools/invoke`` endpoint (tool ``sessions_send``) and waits for the reply.
    """

    def __init__(
        self,
        base_url: str | None,
        *,
        token: str | None = None,
        grace_seconds: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = (base_url or "").rstrip("/")
        self._token = token
        self._grace_seconds = grace_seconds
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "GatewayMessagingChannel":
        return cls(
            settings.GATEWAY_URL,
            token=settings.GATEWAY_TOKEN,
            grace_seconds=settings.GATEWAY_GRACE_SECONDS,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def send(self, agent_id: str, prompt: str, timeout: float) -> str:
        if not self._base_url:
            raise ChannelUnavailableError("agent gateway is not configured (set GATEWAY_URL)")

        body = {
            "tool": "sessions_send",
            "action": "json",
            "args": {
                "sessionKey": session_key_for(agent_id),
                "message": prompt,
                "timeoutSeconds": timeout,
            },
            "sessionKey": "main",
            "dryRun": False,
        }
        # the gateway itself waits up to `timeout`; leave room for the round trip
        http_timeout = timeout + self._grace_seconds

        try:
            if self._client is not None:
                response = await self._client.post(
                    f"{self._base_url}/tools/invoke", json=body, headers=self._headers(), timeout=http_timeout
                )
            else:
                async with httpx.AsyncClient(timeout=http_timeout) as client:
                    response = await client.post(f"{self._base_url}/tools/invoke", json=body, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise AgentTimeoutError(f"gateway request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise ChannelUnavailableError(f"agent gateway is unreachable: {exc}") from exc

        return self._reply_from_response(agent_id, response)

    def _reply_from_response(self, agent_id: str, response: httpx.Response) -> str:
        if response.status_code == 404:
            raise ChannelUnavailableError("sessions_send tool not available; enable it in the gateway tool allow-list")
        if response.status_code in (401, 403):
            raise ChannelUnavailableError(f"agent gateway rejected credentials ({response.status_code})")
        if response.status_code == 503:
            raise ChannelUnavailableError(f"agent gateway unavailable: {response.text[:200]}")
        if response.status_code >= 400:
            raise AgentRemoteError(f"gateway error {response.status_code}: {response.text[:200]}")

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise AgentRemoteError("gateway returned a non-JSON body") from exc
        if not isinstance(payload, dict):
            raise AgentRemoteError("gateway returned an unexpected body")

        if payload.get("ok") is False:
            err = payload.get("error")
            message = err.get("message") if isinstance(err, dict) else err
            raise AgentRemoteError(str(message or "tool invocation failed"))

        result = payload.get("result") if isinstance(payload.get("result"), dict) else payload
        status = result.get("status")
        if status == "ok":
            reply = result.get("reply")
            if isinstance(reply, str) and reply.strip():
                return reply
            raise AgentRemoteError("empty reply")
        if status == "timeout":
            raise AgentTimeoutError("agent did not reply before the gateway timeout")
        if status == "error":
            raise AgentRemoteError(str(result.get("error") or "unknown agent error"))

        logger.warning("gateway_unexpected_result", agent_id=agent_id, status=status)
        raise AgentRemoteError(f"unexpected sessions_send status: {status!r}")
