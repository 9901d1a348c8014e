"""Tests for the WebSocket discovery feed."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from tokenprism.core.config import TokenPrismConfig
from tokenprism.core.data.store import InMemoryRecordStore
from tokenprism.core.models import TokenUpdateEvent, VolumeSpikeEvent
from tokenprism.core.models.token import utcnow
from tokenprism.web import create_app
from tokenprism.core.notifications import NotificationHub
from tokenprism.web.routes.ws import WELCOME_MESSAGE, _forward, _stop_forwarder


class StubNormalizer:
    async def collect(self) -> list:
        return []

    async def aclose(self) -> None:
        return None


def _app():
    return create_app(TokenPrismConfig(), store=InMemoryRecordStore(), normalizer=StubNormalizer(), start_aggregator=False)


def _update(address: str) -> TokenUpdateEvent:
    return TokenUpdateEvent(address=address, ticker="ALP", price=1.0, volume=10.0, liquidity=5.0, last_updated=utcnow())


def test_connect_receives_welcome_and_events() -> None:
    app = _app()
    with TestClient(app) as client:
        with client.websocket_connect("/discover") as websocket:
            assert websocket.receive_json() == {"event": "connected", "message": WELCOME_MESSAGE}

            client.portal.call(app.state.hub.publish, _update("so1"))
            message = websocket.receive_json()

    assert message["event"] == "token_update"
    assert message["address"] == "so1"
    assert message["ticker"] == "ALP"


def test_subscribe_narrows_feed() -> None:
    app = _app()
    with TestClient(app) as client:
        with client.websocket_connect("/discover") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "subscribe", "addresses": ["SO2"]})
            assert websocket.receive_json() == {"event": "subscribed", "addresses": ["so2"]}

            client.portal.call(app.state.hub.publish, _update("so1"))
            client.portal.call(app.state.hub.publish, VolumeSpikeEvent(address="so2", volume=40.0, delta=30.0))
            message = websocket.receive_json()

    assert message["event"] == "volume_spike"
    assert message["delta"] == 30.0


def test_malformed_messages_get_error_replies() -> None:
    app = _app()
    with TestClient(app) as client:
        with client.websocket_connect("/discover") as websocket:
            websocket.receive_json()
            websocket.send_text("not json")
            assert websocket.receive_json()["event"] == "error"
            websocket.send_json({"type": "subscribe", "addresses": "so1"})
            assert websocket.receive_json()["event"] == "error"


def test_disconnect_releases_subscription() -> None:
    app = _app()
    with TestClient(app) as client:
        with client.websocket_connect("/discover") as websocket:
            websocket.receive_json()
            assert app.state.hub.subscriber_count == 1
        client.get("/health")
        assert app.state.hub.subscriber_count == 0


class ClosedSocket:
    def __init__(self) -> None:
        self.attempts = 0

    async def send_text(self, data: str) -> None:
        self.attempts += 1
        raise RuntimeError('Cannot call "send" once a close message has been sent.')


@pytest.mark.asyncio
async def test_send_failure_after_close_does_not_escape_teardown() -> None:
    hub = NotificationHub()
    subscription = hub.subscribe()
    socket = ClosedSocket()
    forwarder = asyncio.create_task(_forward(socket, subscription))

    hub.publish(_update("so1"))
    await asyncio.wait([forwarder], timeout=1)
    assert forwarder.done() and socket.attempts == 1

    await _stop_forwarder(forwarder, subscription)


@pytest.mark.asyncio
async def test_idle_forwarder_is_cancelled() -> None:
    hub = NotificationHub()
    subscription = hub.subscribe()
    forwarder = asyncio.create_task(_forward(ClosedSocket(), subscription))
    await asyncio.sleep(0)

    await _stop_forwarder(forwarder, subscription)

    assert forwarder.cancelled()
