"""
Chat client module.

This module handles client-side chat messaging over the TCP transport.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from chat_relay.common.constants import DEFAULT_HOST, DEFAULT_PORT, MAX_MESSAGE_SIZE, MessageTypes
from chat_relay.common.protocol_definitions import (
    create_chat_message, decode_message, encode_message, get_message_type
)


class ChatClient:
    """Client-side chat functionality."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        self.host = host
        self.port = port
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.message_handler: Optional[Callable[[Any], Awaitable[None]]] = None

    @property
    def connected(self) -> bool:
        return self.writer is not None and not self.writer.is_closing()

    def set_message_handler(self, handler: Callable[[Any], Awaitable[None]]):
        """Set the handler called with the payload of every relayed chat message."""
        self.message_handler = handler

    async def connect(self, retry_count: int = 1, base_delay: float = 1.0) -> bool:
        """Establish connection to the server with retry logic and exponential backoff."""
        for attempt in range(1, retry_count + 1):
            try:
                self.reader, self.writer = await asyncio.open_connection(
                    self.host, self.port, limit=MAX_MESSAGE_SIZE
                )
                return True
            except OSError as e:
                print(f"[ERROR] Connection to {self.host}:{self.port} failed: {e}")
                if attempt < retry_count:
                    delay = base_delay * (2 ** (attempt - 1))
                    print(f"[INFO] Retrying connection in {delay}s (attempt {attempt}/{retry_count})...")
                    await asyncio.sleep(delay)
        return False

    async def send_message(self, message: dict) -> bool:
        """Send a JSON message to the server."""
        if not self.connected:
            print("[ERROR] Not connected to server")
            return False

        try:
            self.writer.write(encode_message(message))
            await self.writer.drain()
            return True
        except (ConnectionError, OSError) as e:
            print(f"[ERROR] Failed to send message: {e}")
            return False

    async def send_chat(self, payload: Any) -> bool:
        """Send a chat message."""
        return await self.send_message(create_chat_message(payload))

    async def receive(self) -> Optional[dict]:
        """Read the next frame from the server, or None once the connection ends."""
        if self.reader is None:
            return None
        while True:
            data = await self.reader.readline()
            if not data:
                return None
            if data.strip():
                return decode_message(data)

    async def listen(self):
        """Pass relayed chat payloads to the handler until the server disconnects."""
        while True:
            message = await self.receive()
            if message is None:
                return
            msg_type = get_message_type(message)
            if msg_type == MessageTypes.CHAT_MESSAGE:
                if self.message_handler is not None:
                    await self.message_handler(message.get('payload'))
            elif msg_type == MessageTypes.ERROR:
                print(f"[ERROR] Server: {message.get('message', '')}")

    async def close(self):
        """Close the connection."""
        if self.writer is None:
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass
        self.writer = None
        self.reader = None
