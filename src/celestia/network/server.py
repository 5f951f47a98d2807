"""WebSocket server — manages client connections.

Accepts WebSocket connections and turns each one into a
:class:`Session`. Every connection gets two tasks:

* the handler itself reads text messages and buffers them as input
  lines on the session;
* a writer task drains the session's outbox and sends world frames,
  or closes the connection when the world asks it to.

Neither task touches ships or shots; admission, simulation and eviction
all happen inside :meth:`World.step`. Uses the ``websockets`` library
with asyncio.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Optional, TYPE_CHECKING

import websockets
from websockets.asyncio.server import ServerConnection, Server as WSServer

from celestia.models.session import CloseRequest, Session

if TYPE_CHECKING:
    from celestia.engine.world import World

log = logging.getLogger(__name__)


class Server:
    """asyncio WebSocket server feeding the world.

    Each connected client goes through:
    1. WebSocket handshake; the remote address becomes its display name.
    2. An admission request queued on the world (decided next tick).
    3. Input lines buffered on the session until the world ingests them.

    Args:
        world: The simulation that owns admission and all state.
        host: Bind address.
        port: Bind port; 0 picks a free one.
    """

    def __init__(self, world: World, host: str = "0.0.0.0", port: int = 5204,
                 ping_interval: int = 20, ping_timeout: int = 20,
                 max_size: int = 4096, outbound_queue_size: int = 8) -> None:
        self._world = world
        self._host = host
        self._port = port
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._max_size = max_size
        self._outbound_queue_size = outbound_queue_size
        self._connections: dict[int, ServerConnection] = {}  # client id → ws
        self._server: Optional[WSServer] = None
        self._next_client_id = 1

    # -- Lifecycle -------------------------------------------------------

    async def start(self) -> None:
        """Start the WebSocket server.

        Raises:
            OSError: If the listen address cannot be bound.
        """
        self._server = await websockets.serve(
            self._on_connect,
            self._host,
            self._port,
            origins=None,
            ping_interval=self._ping_interval,
            ping_timeout=self._ping_timeout,
            max_size=self._max_size,
        )
        sockets = list(self._server.sockets)
        if sockets:
            self._port = sockets[0].getsockname()[1]
        log.info("WebSocket server listening on ws://%s:%d", self._host, self._port)

    async def stop(self) -> None:
        """Stop the WebSocket server and close all connections."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            log.info("WebSocket server stopped")

    # -- Queries ---------------------------------------------------------

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def connected_ids(self) -> list[int]:
        """Ids of all open connections, admitted or not."""
        return sorted(self._connections.keys())

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # -- Connection handler ----------------------------------------------

    def _new_session(self, ws: ServerConnection) -> Session:
        cid = self._next_client_id
        self._next_client_id += 1
        remote = ws.remote_address
        name = str(remote[0]) if remote else f"client-{cid}"
        return Session(client_id=cid, name=name, outbox_size=self._outbound_queue_size)

    async def _on_connect(self, ws: ServerConnection) -> None:
        """Handle a connection from handshake to close."""
        session = self._new_session(ws)
        cid = session.client_id
        self._connections[cid] = ws
        remote = ws.remote_address
        log.info("Client connected: id=%d remote=%s", cid, remote)

        self._world.request_admission(session)
        writer = asyncio.create_task(self._write_frames(ws, session))

        try:
            async for raw_msg in ws:
                self._handle_message(session, raw_msg)
        except websockets.ConnectionClosed as e:
            log.info("Client disconnected: id=%d remote=%s (%s)", cid, remote, e)
        except Exception as e:
            log.error("Client connection error: id=%d remote=%s error=%s", cid, remote, e)
        else:
            log.info("Client closed: id=%d remote=%s state=%s", cid, remote, session.state.value)
        finally:
            session.mark_disconnected()
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer
            self._connections.pop(cid, None)

    def _handle_message(self, session: Session, raw_msg: Any) -> None:
        """Buffer the input lines carried by one message."""
        if session.is_closed:
            return
        if isinstance(raw_msg, bytes):
            raw_msg = raw_msg.decode("utf-8", errors="replace")
        for line in raw_msg.splitlines():
            if line.strip():
                session.push_input(line)

    async def _write_frames(self, ws: ServerConnection, session: Session) -> None:
        """Send queued frames until the world closes the session."""
        while True:
            item = await session.outbox.get()
            if isinstance(item, CloseRequest):
                log.debug("Closing connection id=%d code=%d", session.client_id, item.code)
                await ws.close(item.code, item.reason)
                return
            try:
                await ws.send(item)
            except websockets.ConnectionClosed:
                log.debug("send to id=%d failed — connection closed", session.client_id)
                return
