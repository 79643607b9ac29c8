"""
Stream transport module.

This module carries newline-delimited JSON frames over an asyncio stream
pair, as accepted by ``asyncio.start_server``.
"""

import asyncio
from typing import Any, AsyncIterator, Dict

from chat_relay.common.protocol_definitions import encode_message
from chat_relay.server.transport.base import Transport
from chat_relay.server.utils.logger import logger


class StreamTransport(Transport):
    """TCP client transport."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self._peer = writer.get_extra_info('peername')

    @property
    def peer(self):
        return self._peer

    @property
    def is_closed(self) -> bool:
        return self.writer.is_closing()

    async def send(self, message: Dict[str, Any]):
        self.writer.write(encode_message(message))
        await self.writer.drain()

    async def frames(self) -> AsyncIterator[bytes]:
        while True:
            try:
                data = await self.reader.readline()
            except ValueError as e:
                # Frame exceeded the reader limit; the stream cannot be resynchronised
                logger.warning(f"Frame too large from {self._peer}: {e}")
                return
            except (ConnectionError, OSError) as e:
                logger.debug(f"Read failed from {self._peer}: {e}")
                return
            if not data:
                return
            if not data.strip():
                continue
            yield data

    async def close(self):
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Error while closing {self._peer}: {e}")
