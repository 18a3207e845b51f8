"""
Real-time notifier: best-effort fan-out of domain events over WebSockets.

Delivery failures never reach the caller. A connection whose send fails or
times out is dropped from the live set; clients are expected to refetch
through the REST API when they reconnect.
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)

# Close code sent when the server refuses a connection for capacity reasons
WS_TRY_AGAIN_LATER = 1013


class EventType(str, Enum):
    """WebSocket message types"""
    # Connection events
    CONNECTED = "connected"
    ERROR = "error"
    PING = "ping"
    PONG = "pong"

    # Inventory events
    BIKE_CREATED = "bike:created"
    BIKE_UPDATED = "bike:updated"
    BIKE_CHECKOUT = "bike:checkout"

    # Workshop events
    WORKORDER_CREATED = "workorder:created"
    WORKORDER_UPDATED = "workorder:updated"


class Connection(Protocol):
    """The part of a WebSocket the notifier relies on."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


def build_message(event: EventType | str, data: Any = None) -> str:
    """Serialize an event envelope: {type, data, timestamp}."""
    return json.dumps(
        {
            "type": event.value if isinstance(event, EventType) else event,
            "data": data if data is not None else {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        default=str,
    )


class Notifier:
    """
    Registry of live connections plus broadcast, heartbeat and admission.

    Admission is capped globally and per client address. The per-address
    counter is an approximate throttle: it counts admissions and is cleared
    every ``ip_window_seconds`` rather than tracking exact live connections.
    """

    def __init__(
        self,
        max_connections: int = 500,
        max_connections_per_ip: int = 10,
        ip_window_seconds: float = 600,
        heartbeat_interval: float = 30,
        send_timeout: float = 5,
    ):
        self.max_connections = max_connections
        self.max_connections_per_ip = max_connections_per_ip
        self.ip_window_seconds = ip_window_seconds
        self.heartbeat_interval = heartbeat_interval
        self.send_timeout = send_timeout

        self._connections: set[Connection] = set()
        self._connections_per_ip: dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._tasks: list[asyncio.Task] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def is_connected(self, conn: Connection) -> bool:
        return conn in self._connections

    # ---------- admission ----------

    async def connect(self, conn: Connection, client_ip: str | None = None) -> bool:
        """
        Admit an already-accepted connection.

        Returns False (after sending an error message and closing) when a cap
        is reached; otherwise registers it and sends the ``connected`` ack.
        """
        async with self._lock:
            reason = None
            if len(self._connections) >= self.max_connections:
                reason = f"max connections ({self.max_connections}) reached"
            elif (
                client_ip is not None
                and self._connections_per_ip.get(client_ip, 0) >= self.max_connections_per_ip
            ):
                reason = f"too many connections from {client_ip}"
            else:
                self._connections.add(conn)
                if client_ip is not None:
                    self._connections_per_ip[client_ip] = self._connections_per_ip.get(client_ip, 0) + 1

        if reason is not None:
            logger.warning("WebSocket connection rejected: %s", reason)
            await self._reject(conn)
            return False

        logger.info("WebSocket client connected. Total clients: %d", self.connection_count)
        if not await self._send(conn, build_message(EventType.CONNECTED, {"message": "Connected to WebSocket server"})):
            await self.disconnect(conn)
            return False
        return True

    async def _reject(self, conn: Connection) -> None:
        try:
            await asyncio.wait_for(
                conn.send_text(build_message(EventType.ERROR, {"message": "Too many connections"})),
                self.send_timeout,
            )
            await asyncio.wait_for(
                conn.close(code=WS_TRY_AGAIN_LATER, reason="Too many connections"),
                self.send_timeout,
            )
        except Exception as exc:
            logger.debug("Failed to notify rejected client: %s", exc)

    async def disconnect(self, conn: Connection) -> None:
        """Remove a connection from the live set. Safe to call twice."""
        async with self._lock:
            if conn not in self._connections:
                return
            self._connections.discard(conn)
        logger.info("WebSocket client disconnected. Total clients: %d", self.connection_count)

    def reset_ip_window(self) -> None:
        self._connections_per_ip.clear()

    # ---------- delivery ----------

    async def _send(self, conn: Connection, payload: str) -> bool:
        try:
            await asyncio.wait_for(conn.send_text(payload), self.send_timeout)
            return True
        except Exception as exc:
            logger.debug("WebSocket send failed: %s", exc)
            return False

    async def _fan_out(self, payload: str) -> int:
        async with self._lock:
            targets = list(self._connections)
        if not targets:
            return 0

        results = await asyncio.gather(*(self._send(conn, payload) for conn in targets))
        failed = [conn for conn, ok in zip(targets, results) if not ok]
        if failed:
            async with self._lock:
                for conn in failed:
                    self._connections.discard(conn)
            logger.info("Removed %d unreachable WebSocket clients", len(failed))
        return len(targets) - len(failed)

    async def broadcast(self, event: EventType | str, data: Any = None) -> int:
        """
        Send an event to every live connection.

        Returns the number of successful deliveries; never raises for
        delivery problems.
        """
        payload = build_message(event, data)
        delivered = await self._fan_out(payload)
        logger.debug("Broadcast %s delivered to %d clients", event, delivered)
        return delivered

    def publish(self, event: EventType | str, data: Any = None) -> asyncio.Task:
        """Schedule a broadcast on the running loop and return immediately."""
        task = asyncio.create_task(self.broadcast(event, data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait until every published event has been delivered or dropped."""
        while self._pending:
            await asyncio.gather(*self._pending)

    async def ping_all(self) -> int:
        """Heartbeat: send a ping to every connection, dropping dead ones."""
        return await self._fan_out(build_message(EventType.PING))

    async def handle_message(self, conn: Connection, raw: str) -> None:
        """Answer a client ping with pong; ignore every other message."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            return
        if isinstance(message, dict) and message.get("type") == EventType.PING.value:
            if not await self._send(conn, build_message(EventType.PONG)):
                await self.disconnect(conn)

    # ---------- lifecycle ----------

    def start(self) -> None:
        """Start heartbeat and per-IP window reset tasks on the running loop."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._every(self.heartbeat_interval, self.ping_all)),
            asyncio.create_task(self._every(self.ip_window_seconds, self._reset_ip_window_async)),
        ]

    async def stop(self) -> None:
        """Cancel background tasks and pending broadcasts, forget every connection."""
        tasks = [*self._tasks, *self._pending]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        self._pending.clear()
        async with self._lock:
            self._connections.clear()
            self._connections_per_ip.clear()

    async def _reset_ip_window_async(self) -> None:
        self.reset_ip_window()

    @staticmethod
    async def _every(interval: float, action) -> None:
        while True:
            await asyncio.sleep(interval)
            await action()
