"""
In-memory state cell with fan-out to subscribers.

One asyncio.Queue per connected WebSocket client. Publishing overwrites the
cached payload and pushes it onto every other subscriber's queue; each
connection handler drains its own queue onto its socket.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from staterelay.models import HubStats, Payload

# Pushed onto every queue by close() so sender tasks can exit.
SHUTDOWN = object()


class StateHub:
    def __init__(self, channel: str, initial_state: Payload) -> None:
        self.channel = channel
        self.initial_state = initial_state
        self._last_payload: Optional[Payload] = None
        self._queues: set[asyncio.Queue] = set()
        self._lock = asyncio.Lock()
        self._relayed = 0

    async def subscribe(self) -> tuple[asyncio.Queue, Payload]:
        """Register a new subscriber; returns its queue and the current state."""
        q: asyncio.Queue = asyncio.Queue()
        async with self._lock:
            self._queues.add(q)
            return q, self.snapshot()

    async def unsubscribe(self, q: asyncio.Queue) -> None:
        async with self._lock:
            self._queues.discard(q)

    async def publish(self, payload: Payload, exclude: Optional[asyncio.Queue] = None) -> int:
        """Cache payload and queue it for every subscriber except `exclude`."""
        async with self._lock:
            self._last_payload = payload
            recipients = [q for q in self._queues if q is not exclude]
            for q in recipients:
                q.put_nowait(payload)
            self._relayed += 1
        return len(recipients)

    async def store(self, payload: Payload) -> None:
        """Cache payload without fan-out."""
        async with self._lock:
            self._last_payload = payload

    def snapshot(self) -> Payload:
        if self._last_payload is None:
            return self.initial_state
        return self._last_payload

    def subscriber_count(self) -> int:
        return len(self._queues)

    def backlog(self) -> int:
        """Messages queued for subscribers but not yet sent."""
        return sum(q.qsize() for q in self._queues)

    def stats(self) -> HubStats:
        return HubStats(
            channel=self.channel,
            subscribers=len(self._queues),
            has_state=self._last_payload is not None,
            messages_relayed=self._relayed,
        )

    async def close(self) -> None:
        async with self._lock:
            for q in self._queues:
                q.put_nowait(SHUTDOWN)
            self._queues.clear()
