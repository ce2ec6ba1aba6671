"""Process-wide WebSocket hub for task lifecycle events.

Every connected client receives every event; there are no channels or rooms.

Protocol (server → client):
    {"event": "connected", "data": {"events": [...]}, "seq": 0}
    {"event": "taskUpdated", "data": {...task...}, "seq": 17}

Protocol (client → server):
    {"action": "ping"}   answered with {"event": "pong", ...}

The hub is created at import time, bound to the serving event loop on startup
and closed on shutdown (see ``app.main``). Services receive it through the
``get_event_hub`` dependency and call :meth:`EventHub.emit`, which only
schedules delivery and returns immediately.
"""

import asyncio
import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

TASK_CREATED = "taskCreated"
TASK_UPDATED = "taskUpdated"
TASK_DELETED = "taskDeleted"

TASK_EVENTS = (TASK_CREATED, TASK_UPDATED, TASK_DELETED)


@dataclass
class _Client:
    ws: WebSocket
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EventHub:
    """Fan-out of named events to all connected WebSocket clients.

    Usage::

        hub = EventHub()

        # In a FastAPI WebSocket endpoint:
        await hub.handle_connection(websocket)

        # From request handling code (sync or async):
        hub.emit("taskUpdated", task)
    """

    def __init__(self) -> None:
        self._clients: Dict[int, _Client] = {}  # id(ws) → client
        self._seq = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()
        self._pending: Set[asyncio.Task] = set()  # strong refs until delivery finishes

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        with self._lock:
            self._loop = loop

    async def handle_connection(self, websocket: WebSocket) -> None:
        """Accept a client and serve it until it disconnects."""
        self.attach_loop(asyncio.get_running_loop())
        await websocket.accept()
        cid = id(websocket)
        self._clients[cid] = _Client(ws=websocket)
        logger.info("Client connected (total=%d)", self.client_count)
        try:
            await websocket.send_text(self._encode("connected", {"events": list(TASK_EVENTS)}, 0))
            while True:
                raw = await websocket.receive_text()
                try:
                    message = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                if isinstance(message, dict) and message.get("action") == "ping":
                    await websocket.send_text(self._encode("pong", {}, self._seq))
        except Exception as e:
            logger.debug("Client connection closed: %s", e)
        finally:
            self._clients.pop(cid, None)
            logger.info("Client disconnected (total=%d)", self.client_count)

    async def broadcast(self, event: str, payload: Any = None) -> int:
        """Send *event* to every client. Returns the number of successful sends."""
        self._seq += 1
        message = self._encode(event, payload, self._seq)
        delivered = 0
        stale = []
        for cid, client in list(self._clients.items()):
            try:
                await client.ws.send_text(message)
                delivered += 1
            except Exception:
                stale.append(cid)
        for cid in stale:
            self._clients.pop(cid, None)
        if stale:
            logger.info("Dropped %d stale client(s) while sending %s", len(stale), event)
        return delivered

    def emit(self, event: str, payload: Any = None) -> None:
        """Fire-and-forget broadcast usable from synchronous service code.

        Delivery is scheduled on the serving loop; with no loop (or no clients)
        the event is dropped.
        """
        if not self._clients:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is not None:
            task = running.create_task(self.broadcast(event, payload))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            return
        with self._lock:
            loop = self._loop
        if loop is not None and loop.is_running():
            asyncio.run_coroutine_threadsafe(self.broadcast(event, payload), loop)
        else:
            logger.debug("No running event loop; dropped %s", event)

    async def close(self) -> None:
        """Close every client socket. Called on shutdown."""
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            try:
                await client.ws.close()
            except Exception as e:
                logger.debug("Error closing client socket: %s", e)

    @staticmethod
    def _encode(event: str, payload: Any, seq: int) -> str:
        return json.dumps({
            "event": event,
            "data": jsonable_encoder(payload) if payload is not None else {},
            "seq": seq,
        })


hub = EventHub()


def get_event_hub() -> EventHub:
    return hub
