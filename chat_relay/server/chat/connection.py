"""
Connection module.

One Connection per client session. Other connections' dispatches only ever
enqueue onto ``outbound_queue``; the connection's own sender task is the
only consumer and the only writer to the transport.
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from chat_relay.server.chat.errors import QueueFull, TransportClosed
from chat_relay.server.transport.base import Transport
from chat_relay.server.utils.logger import logger


class ConnectionState(Enum):
    ACTIVE = 'active'
    CLOSING = 'closing'
    CLOSED = 'closed'


class Connection:
    """A registered client session and its outbound queue."""

    def __init__(self, conn_id: str, transport: Transport, queue_size: int,
                 on_send_failure: Optional[Callable[['Connection', Exception], Awaitable[None]]] = None):
        self.id = conn_id
        self.transport = transport
        self.state = ConnectionState.ACTIVE
        self.outbound_queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.on_send_failure = on_send_failure
        self._sender_task: Optional[asyncio.Task] = None

    def __repr__(self):
        return f"Connection(id={self.id!r}, state={self.state.value}, peer={self.peer!r})"

    @property
    def peer(self):
        return self.transport.peer

    @property
    def is_active(self) -> bool:
        return self.state is ConnectionState.ACTIVE and not self.transport.is_closed

    def start(self):
        """Start the sender task. Must be called from a running event loop."""
        if self._sender_task is None:
            self._sender_task = asyncio.create_task(self._send_loop())

    def enqueue(self, message: Dict[str, Any]):
        """
        Queue a frame for delivery without blocking.

        Raises ``TransportClosed`` if the connection is no longer active and
        ``QueueFull`` if the client is not keeping up.
        """
        if not self.is_active:
            raise TransportClosed(self.id)
        try:
            self.outbound_queue.put_nowait(message)
        except asyncio.QueueFull:
            raise QueueFull(self.id) from None

    async def _send_loop(self):
        while True:
            message = await self.outbound_queue.get()
            try:
                await self.transport.send(message)
            except Exception as e:
                if self.on_send_failure is None:
                    logger.error(f"Failed to send to id={self.id}: {e}")
                else:
                    await self.on_send_failure(self, e)
                return
            finally:
                self.outbound_queue.task_done()

    async def close(self, drain_timeout: Optional[float] = None):
        """
        Stop the sender and close the transport.

        With a ``drain_timeout`` the sender first gets up to that many seconds
        to flush what is already queued; otherwise pending messages are
        abandoned.
        """
        if self.state is ConnectionState.CLOSED:
            return
        # From here on enqueue() refuses new messages, so the queue only shrinks
        self.state = ConnectionState.CLOSING

        task = self._sender_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            if drain_timeout and not self.transport.is_closed:
                await self._drain(task, drain_timeout)
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        await self.transport.close()
        self.state = ConnectionState.CLOSED

    async def _drain(self, task: asyncio.Task, timeout: float):
        # Stop waiting early if the sender dies with messages still queued
        flushed = asyncio.ensure_future(self.outbound_queue.join())
        try:
            done, _ = await asyncio.wait({flushed, task}, timeout=timeout,
                                         return_when=asyncio.FIRST_COMPLETED)
        finally:
            flushed.cancel()
        if flushed not in done:
            logger.debug(f"Abandoning {self.outbound_queue.qsize()} queued message(s) for id={self.id}")
