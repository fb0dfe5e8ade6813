"""
Per-connection lifecycle: open → message* → close.

The receive loop reads frames from the client and hands them to the hub; a
sender task drains the connection's queue onto the socket. Whichever side
finishes first cancels the other, and the subscriber is always removed.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect, status
from fastapi.websockets import WebSocketState

from staterelay.broadcast.state_hub import SHUTDOWN, StateHub
from staterelay.config import ACK_PREFIX
from staterelay.errors import PayloadTooLarge
from staterelay.models import Payload, RelaySettings

log = logging.getLogger(__name__)


def payload_size(payload: Payload) -> int:
    if isinstance(payload, bytes):
        return len(payload)
    return len(payload.encode("utf-8"))


def ack_for(payload: Payload) -> Payload:
    if isinstance(payload, bytes):
        return ACK_PREFIX.encode() + payload
    return f"{ACK_PREFIX}{payload}"


async def send_payload(websocket: WebSocket, payload: Payload) -> None:
    if isinstance(payload, bytes):
        await websocket.send_bytes(payload)
    else:
        await websocket.send_text(payload)


class ConnectionHandler:
    def __init__(self, websocket: WebSocket, hub: StateHub, settings: RelaySettings) -> None:
        self.websocket = websocket
        self.hub = hub
        self.settings = settings
        self.queue: Optional[asyncio.Queue] = None

    @property
    def peer(self) -> str:
        client = self.websocket.client
        return f"{client.host}:{client.port}" if client else "unknown"

    # ── Events ────────────────────────────────────────────────────────────────

    async def on_open(self) -> None:
        await self.websocket.accept()
        self.queue, snapshot = await self.hub.subscribe()
        log.info("connection opened peer=%s subscribers=%d", self.peer, self.hub.subscriber_count())
        await send_payload(self.websocket, snapshot)

    async def on_message(self, payload: Payload) -> None:
        limit = self.settings.max_payload_bytes
        size = payload_size(payload)
        if limit and size > limit:
            raise PayloadTooLarge(size, limit)
        log.info("Received %r from %s", payload, self.peer)

        if self.settings.mode == "ack":
            await self.hub.store(payload)
            await send_payload(self.websocket, ack_for(payload))
        else:
            await self.hub.publish(payload, exclude=self.queue)

    async def on_close(self) -> None:
        if self.queue is not None:
            await self.hub.unsubscribe(self.queue)
        log.info("connection closed peer=%s subscribers=%d", self.peer, self.hub.subscriber_count())

    # ── Loops ─────────────────────────────────────────────────────────────────

    async def _receive_loop(self) -> None:
        while True:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
            if message.get("text") is not None:
                await self.on_message(message["text"])
            elif message.get("bytes") is not None:
                await self.on_message(message["bytes"])

    async def _send_loop(self) -> None:
        while True:
            payload = await self.queue.get()
            if payload is SHUTDOWN:
                return
            try:
                await send_payload(self.websocket, payload)
            except (WebSocketDisconnect, RuntimeError, OSError):
                # Socket went away between lookup and send; close event cleans up.
                log.debug("Dropped message for stale connection %s", self.peer)
                return

    async def _pump(self) -> None:
        receiver = asyncio.create_task(self._receive_loop())
        sender = asyncio.create_task(self._send_loop())
        try:
            done, _ = await asyncio.wait(
                {receiver, sender}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            receiver.cancel()
            sender.cancel()
            await asyncio.gather(receiver, sender, return_exceptions=True)
        for task in done:
            task.result()

    async def run(self) -> None:
        try:
            await self.on_open()
            await self._pump()
        except PayloadTooLarge as exc:
            log.warning("Closing %s: %s", self.peer, exc)
            await self._close(exc.close_code, str(exc))
        except WebSocketDisconnect:
            pass
        except Exception:
            log.exception("WebSocket error for %s", self.peer)
            await self._close(status.WS_1011_INTERNAL_ERROR)
        finally:
            await self.on_close()
        await self._close()

    async def _close(self, code: int = status.WS_1000_NORMAL_CLOSURE, reason: Optional[str] = None) -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        if self.websocket.client_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self.websocket.close(code=code, reason=reason)
        except RuntimeError:
            pass
