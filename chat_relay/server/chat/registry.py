"""
Connection registry module.

This module keeps the authoritative set of active connections. The lock
guards only the map itself; closing a connection always happens after the
lock is released.
"""

import asyncio
import uuid
from typing import Dict, List, Optional

from chat_relay.common.constants import OUTBOUND_QUEUE_SIZE, SHUTDOWN_TIMEOUT
from chat_relay.server.chat.connection import Connection
from chat_relay.server.chat.errors import ServerShuttingDown
from chat_relay.server.transport.base import Transport
from chat_relay.server.utils.logger import logger


class ConnectionRegistry:
    """Concurrency-safe map of connection id -> Connection."""

    def __init__(self, queue_size: int = OUTBOUND_QUEUE_SIZE):
        self.queue_size = queue_size
        self.connections: Dict[str, Connection] = {}
        self.accepting = True
        self.lock = asyncio.Lock()  # Protect shared state

    def __len__(self):
        return len(self.connections)

    async def register(self, transport: Transport) -> Connection:
        """
        Add a newly connected client and start its sender.

        Raises ``ServerShuttingDown`` once ``shutdown()`` has begun; the caller
        owns the transport and must close it.
        """
        async with self.lock:
            if not self.accepting:
                raise ServerShuttingDown()
            conn_id = self._new_id()
            connection = Connection(conn_id, transport, self.queue_size,
                                    on_send_failure=self._handle_send_failure)
            self.connections[conn_id] = connection
            connection.start()

        logger.log_connection(transport.peer, conn_id)
        return connection

    async def unregister(self, conn_id: str) -> Optional[Connection]:
        """
        Remove a connection and close it.

        Unregistering an id that is not present is a no-op and returns None.
        """
        async with self.lock:
            connection = self.connections.pop(conn_id, None)

        if connection is None:
            return None

        await connection.close()
        logger.log_disconnect(conn_id, connection.peer)
        return connection

    async def snapshot(self) -> List[Connection]:
        """Point-in-time copy of the active connections."""
        async with self.lock:
            return list(self.connections.values())

    async def get(self, conn_id: str) -> Optional[Connection]:
        async with self.lock:
            return self.connections.get(conn_id)

    async def shutdown(self, timeout: float = SHUTDOWN_TIMEOUT):
        """
        Stop accepting registrations and close every connection.

        Each connection may flush what it already has queued for up to
        ``timeout`` seconds; the drains run concurrently.
        """
        async with self.lock:
            self.accepting = False
            closing = list(self.connections.values())
            self.connections.clear()

        if not closing:
            return

        logger.info(f"Closing {len(closing)} connection(s)")
        results = await asyncio.gather(
            *(connection.close(drain_timeout=timeout) for connection in closing),
            return_exceptions=True
        )
        for connection, result in zip(closing, results):
            if isinstance(result, Exception):
                logger.log_error(f"closing id={connection.id}", result)
            logger.log_disconnect(connection.id, connection.peer)

    async def _handle_send_failure(self, connection: Connection, error: Exception):
        logger.log_send_failure(connection.id, error)
        await self.unregister(connection.id)

    def _new_id(self) -> str:
        conn_id = uuid.uuid4().hex
        while conn_id in self.connections:
            conn_id = uuid.uuid4().hex
        return conn_id
