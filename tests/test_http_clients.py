"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx

from messaging_scheduler.adapters.dispatch_client import HttpxDispatchClient
from messaging_scheduler.adapters.messaging_client import (
    HttpxMessagingBridge,
    HttpxMessagingClient,
)
from messaging_scheduler.domain.dispatch import DispatchMode
from messaging_scheduler.domain.sessions import AuthChallengeReceived, LifecycleEvent


def test_dispatch_client_sends_mode_flags_and_parses_result() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["payload"] = json.loads(request.content)
        return httpx.Response(
            200, json={"scheduledMessagesRemaining": 3, "sent": 2}
        )

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxDispatchClient(base_url="http://dispatch.local", http_client=http_client)
    session_client = HttpxMessagingClient(
        session_id="s1", http_client=http_client, base_url="http://bridge.local"
    )

    result = asyncio.run(
        client.dispatch(session_client, "Sheet1", "SS1", DispatchMode.SCHEDULED)
    )

    assert seen["path"] == "/dispatch"
    assert seen["payload"] == {
        "sessionId": "s1",
        "sheetName": "Sheet1",
        "spreadsheetId": "SS1",
        "instantMode": False,
        "scheduledMode": True,
        "combinedMode": False,
    }
    assert result.scheduled_messages_remaining == 3
    assert result.model_dump(by_alias=True)["sent"] == 2


def test_dispatch_client_without_remaining_count() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxDispatchClient(base_url="http://dispatch.local", http_client=http_client)
    session_client = HttpxMessagingClient(
        session_id="s1", http_client=http_client, base_url="http://bridge.local"
    )

    result = asyncio.run(
        client.dispatch(session_client, "Sheet1", "SS1", DispatchMode.INSTANT)
    )

    assert result.scheduled_messages_remaining is None
    assert not result.scheduled_exhausted


def test_messaging_client_initialize_registers_webhook() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["payload"] = json.loads(request.content)
        return httpx.Response(202, json={"ok": True})

    bridge = HttpxMessagingBridge(
        base_url="http://bridge.local/",
        webhook_url="http://scheduler.local/webhooks/client-events",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    client = bridge.client_for("s1")

    asyncio.run(client.initialize())
    asyncio.run(bridge.close())

    assert seen["path"] == "/sessions/s1/initialize"
    assert seen["payload"] == {
        "sessionId": "s1",
        "webhookUrl": "http://scheduler.local/webhooks/client-events",
    }


def test_messaging_client_emits_to_subscribers() -> None:
    bridge = HttpxMessagingBridge.create("http://bridge.local", webhook_url=None)
    client = bridge.client_for("s1")
    received: list[LifecycleEvent] = []
    client.subscribe(received.append)

    client.emit(AuthChallengeReceived(payload="X"))

    assert received == [AuthChallengeReceived(payload="X")]
    assert bridge.client_for("s2").http_client is client.http_client
    asyncio.run(bridge.close())
