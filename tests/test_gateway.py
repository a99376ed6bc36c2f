import json

import httpx
import pytest

from standup.services.errors import AgentRemoteError, AgentTimeoutError, ChannelUnavailableError
from standup.services.gateway import GatewayMessagingChannel, session_key_for


def _channel(handler, token="secret"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GatewayMessagingChannel("http://gateway.test/", token=token, grace_seconds=5, client=client)


@pytest.mark.asyncio
async def test_send_posts_sessions_send_and_returns_reply():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True, "result": {"status": "ok", "reply": "Today: ship"}})

    reply = await _channel(handler).send("cto", "Standup time", 90)

    assert reply == "Today: ship"
    assert seen["url"] == "http://gateway.test/tools/invoke"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["tool"] == "sessions_send"
    assert seen["body"]["args"] == {
        "sessionKey": session_key_for("cto"),
        "message": "Standup time",
        "timeoutSeconds": 90,
    }


@pytest.mark.asyncio
async def test_missing_base_url_is_unavailable():
    with pytest.raises(ChannelUnavailableError):
        await GatewayMessagingChannel(None).send("cto", "hi", 10)


@pytest.mark.asyncio
async def test_gateway_timeout_status_maps_to_timeout():
    def handler(request):
        return httpx.Response(200, json={"ok": True, "result": {"status": "timeout"}})

    with pytest.raises(AgentTimeoutError):
        await _channel(handler).send("cto", "hi", 10)


@pytest.mark.asyncio
async def test_http_timeout_maps_to_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(AgentTimeoutError):
        await _channel(handler).send("cto", "hi", 10)


@pytest.mark.asyncio
async def test_connection_failure_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ChannelUnavailableError):
        await _channel(handler).send("cto", "hi", 10)


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [401, 403, 404, 503])
async def test_gateway_refusals_are_unavailable(status_code):
    def handler(request):
        return httpx.Response(status_code, text="nope")

    with pytest.raises(ChannelUnavailableError):
        await _channel(handler).send("cto", "hi", 10)


@pytest.mark.asyncio
async def test_server_error_is_remote_error():
    def handler(request):
        return httpx.Response(500, text="kaboom")

    with pytest.raises(AgentRemoteError) as excinfo:
        await _channel(handler).send("cto", "hi", 10)
    assert "500" in excinfo.value.detail


@pytest.mark.asyncio
async def test_tool_failure_is_remote_error():
    def handler(request):
        return httpx.Response(200, json={"ok": False, "error": {"message": "session not found"}})

    with pytest.raises(AgentRemoteError) as excinfo:
        await _channel(handler).send("cto", "hi", 10)
    assert excinfo.value.detail == "session not found"


@pytest.mark.asyncio
async def test_agent_error_status_is_remote_error():
    def handler(request):
        return httpx.Response(200, json={"ok": True, "result": {"status": "error", "error": "agent crashed"}})

    with pytest.raises(AgentRemoteError) as excinfo:
        await _channel(handler).send("cto", "hi", 10)
    assert excinfo.value.detail == "agent crashed"


@pytest.mark.asyncio
async def test_empty_reply_is_remote_error():
    def handler(request):
        return httpx.Response(200, json={"ok": True, "result": {"status": "ok", "reply": ""}})

    with pytest.raises(AgentRemoteError) as excinfo:
        await _channel(handler).send("cto", "hi", 10)
    assert excinfo.value.detail == "empty reply"


@pytest.mark.asyncio
async def test_non_json_body_is_remote_error():
    def handler(request):
        return httpx.Response(200, text="<html>proxy</html>")

    with pytest.raises(AgentRemoteError):
        await _channel(handler).send("cto", "hi", 10)


@pytest.mark.asyncio
async def test_no_authorization_header_without_token():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"result": {"status": "ok", "reply": "fine"}})

    assert await _channel(handler, token=None).send("cto", "hi", 10) == "fine"
    assert seen["auth"] is None
