"""
WebSocket transport module.

This module carries one JSON text frame per message over a connection
accepted by ``websockets.asyncio.server.serve``.
"""

from typing import Any, AsyncIterator, Dict, Union

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from chat_relay.common.protocol_definitions import encode_text
from chat_relay.server.transport.base import Transport
from chat_relay.server.utils.logger import logger


class WebSocketTransport(Transport):
    """WebSocket client transport."""

    def __init__(self, websocket: ServerConnection):
        self.websocket = websocket
        self._peer = websocket.remote_address

    @property
    def peer(self):
        return self._peer

    @property
    def is_closed(self) -> bool:
        return self.websocket.state in (State.CLOSING, State.CLOSED)

    async def send(self, message: Dict[str, Any]):
        await self.websocket.send(encode_text(message))

    async def frames(self) -> AsyncIterator[Union[bytes, str]]:
        try:
            async for frame in self.websocket:
                yield frame
        except ConnectionClosed as e:
            logger.debug(f"WebSocket {self._peer} closed: {e}")

    async def close(self):
        if self.websocket.state is State.CLOSED:
            return
        await self.websocket.close()
