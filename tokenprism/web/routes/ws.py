"""WebSocket discovery feed."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from tokenprism.core.notifications import NotificationHub, Subscription

router = APIRouter()

WELCOME_MESSAGE = "Connected to tokenprism discovery feed"


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    async for event in subscription:
        await websocket.send_text(event.model_dump_json())


async def _stop_forwarder(forwarder: asyncio.Task[None], subscription: Subscription) -> None:
    """Cancel the forwarder and reap it, including a send that failed on a closed socket."""
    forwarder.cancel()
    try:
        await forwarder
    except asyncio.CancelledError:
        pass
    except Exception as exc:
        logger.debug("Forwarder for subscriber {} ended: {!r}", subscription.id, exc)


async def _handle_message(websocket: WebSocket, subscription: Subscription, raw: str) -> None:
    try:
        message: Any = json.loads(raw)
    except ValueError:
        await websocket.send_json({"event": "error", "message": "messages must be JSON"})
        return
    if not isinstance(message, dict) or message.get("type") != "subscribe":
        await websocket.send_json({"event": "error", "message": "unsupported message"})
        return

    addresses = message.get("addresses")
    if addresses is not None and not (
        isinstance(addresses, list) and all(isinstance(address, str) for address in addresses)
    ):
        await websocket.send_json({"event": "error", "message": "addresses must be a list of strings"})
        return

    subscription.set_filter(addresses)
    await websocket.send_json(
        {
            "event": "subscribed",
            "addresses": sorted(subscription.addresses) if subscription.addresses is not None else None,
        }
    )


@router.websocket("/discover")
async def discover(websocket: WebSocket) -> None:
    """Push ``token_update`` and ``volume_spike`` events as they are published."""
    hub: NotificationHub = websocket.app.state.hub
    await websocket.accept()
    subscription = hub.subscribe()
    await websocket.send_json({"event": "connected", "message": WELCOME_MESSAGE})

    forwarder = asyncio.create_task(_forward(websocket, subscription))
    try:
        while True:
            raw = await websocket.receive_text()
            await _handle_message(websocket, subscription, raw)
    except WebSocketDisconnect:
        logger.debug("Subscriber {} disconnected", subscription.id)
    finally:
        await _stop_forwarder(forwarder, subscription)
        hub.unsubscribe(subscription)
