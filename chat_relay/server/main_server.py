#!/usr/bin/env python3
"""
Chat Relay Server - Main Entry Point

This is the main entry point for the server application.
It wires the transports (TCP, and WebSocket when configured) to one
connection registry and one broadcast dispatcher.
"""

import argparse
import asyncio
import signal
import sys
from typing import List, Optional

from websockets.asyncio.server import ServerConnection, serve

from chat_relay.common.constants import MessageTypes
from chat_relay.common.protocol_definitions import (
    create_error_message, decode_message, get_message_type
)
from chat_relay.server.chat.connection import Connection
from chat_relay.server.chat.dispatcher import BroadcastDispatcher
from chat_relay.server.chat.errors import RegistrationFailed, SendFailed
from chat_relay.server.chat.registry import ConnectionRegistry
from chat_relay.server.transport.base import Transport
from chat_relay.server.transport.stream import StreamTransport
from chat_relay.server.transport.websocket import WebSocketTransport
from chat_relay.server.utils.config import ServerConfig
from chat_relay.server.utils.logger import logger


class RelayServer:
    """Main server class that integrates all functionality."""

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.registry = ConnectionRegistry(self.config.queue_size)
        self.dispatcher = BroadcastDispatcher(self.registry, self.config.include_sender)

        self.tcp_server: Optional[asyncio.AbstractServer] = None
        self.ws_server = None
        self._stop_event: Optional[asyncio.Event] = None
        self._shut_down = False

    @property
    def port(self) -> Optional[int]:
        """Bound TCP port (useful when configured with port 0)."""
        if self.tcp_server is None or not self.tcp_server.sockets:
            return None
        return self.tcp_server.sockets[0].getsockname()[1]

    @property
    def ws_port(self) -> Optional[int]:
        """Bound WebSocket port, or None when the listener is disabled."""
        if self.ws_server is None or not self.ws_server.sockets:
            return None
        return list(self.ws_server.sockets)[0].getsockname()[1]

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle individual TCP client connection."""
        await self.serve_connection(StreamTransport(reader, writer))

    async def handle_websocket(self, websocket: ServerConnection):
        """Handle individual WebSocket client connection."""
        await self.serve_connection(WebSocketTransport(websocket))

    async def serve_connection(self, transport: Transport):
        """Register the client, relay its frames, unregister on disconnect."""
        try:
            connection = await self.registry.register(transport)
        except RegistrationFailed as e:
            logger.warning(f"Rejecting connection from {transport.peer}: {e}")
            await transport.close()
            return

        try:
            async for frame in transport.frames():
                await self.handle_frame(connection, frame)
        except asyncio.CancelledError:
            logger.info(f"Connection cancelled for id={connection.id}")
            raise
        except Exception as e:
            logger.error(f"Socket error for id={connection.id}: {e}")
        finally:
            await self.registry.unregister(connection.id)

    async def handle_frame(self, connection: Connection, frame):
        """Decode one inbound frame and route it."""
        try:
            message = decode_message(frame)
        except ValueError as e:
            logger.error(f"Malformed JSON from id={connection.id}: {e}")
            await self.send_message(connection, create_error_message("Malformed JSON"))
            return

        msg_type = get_message_type(message)
        if msg_type == MessageTypes.CHAT_MESSAGE:
            await self.dispatcher.dispatch(connection.id, message.get('payload'))
        else:
            logger.warning(f"Unknown message type '{msg_type}' from id={connection.id}")

    async def send_message(self, connection: Connection, message: dict) -> bool:
        """Queue a frame for one client only."""
        try:
            connection.enqueue(message)
            return True
        except SendFailed as e:
            logger.log_send_failure(connection.id, e)
            await self.registry.unregister(connection.id)
            return False

    async def start(self):
        """Bind the listeners. Raises OSError when a port cannot be bound."""
        self._stop_event = asyncio.Event()

        self.tcp_server = await asyncio.start_server(
            self.handle_client,
            self.config.host,
            self.config.port,
            limit=self.config.max_message_size
        )
        addr = ', '.join(str(sock.getsockname()) for sock in self.tcp_server.sockets)
        logger.info(f"Server listening on {addr}")

        if self.config.ws_port is not None:
            self.ws_server = await serve(
                self.handle_websocket,
                self.config.host,
                self.config.ws_port,
                ping_interval=self.config.ws_ping_interval,
                ping_timeout=self.config.ws_ping_timeout,
                max_size=self.config.max_message_size
            )
            addr = ', '.join(str(sock.getsockname()) for sock in self.ws_server.sockets)
            logger.info(f"WebSocket listening on {addr}")

    def request_stop(self):
        """Ask a running ``run()`` to shut down."""
        if self._stop_event is not None:
            self._stop_event.set()

    async def shutdown(self):
        """Stop accepting, drain and close every connection, close listeners."""
        if self._shut_down:
            return
        self._shut_down = True
        logger.info("Server shutting down...")

        if self.tcp_server is not None:
            self.tcp_server.close()
        if self.ws_server is not None:
            self.ws_server.close(close_connections=False)

        await self.registry.shutdown(self.config.shutdown_timeout)

        if self.tcp_server is not None:
            await self.tcp_server.wait_closed()
        if self.ws_server is not None:
            await self.ws_server.wait_closed()
        logger.info("Server shutdown complete")

    async def run(self):
        """Serve until SIGINT/SIGTERM or ``request_stop()``."""
        try:
            await self.start()
            self._install_signal_handlers()
            await self._stop_event.wait()
        finally:
            await self.shutdown()

    def _install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop)
            except NotImplementedError:
                # Windows event loops do not support signal handlers
                logger.debug(f"Signal handler for {sig!r} not supported")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Chat Relay Server')
    parser.add_argument('--host', type=str, default=None,
                        help='Host to bind to (default: $HOST or 0.0.0.0)')
    parser.add_argument('--port', type=int, default=None,
                        help='TCP port (default: $PORT or 3000)')
    parser.add_argument('--ws-port', type=int, default=None,
                        help='WebSocket port (default: $WS_PORT, disabled when unset)')
    parser.add_argument('--queue-size', type=int, default=None,
                        help='Pending messages allowed per client before it is dropped (default: 256)')
    parser.add_argument('--shutdown-timeout', type=float, default=None,
                        help='Seconds allowed for flushing queues on shutdown (default: 5)')
    parser.add_argument('--no-echo', action='store_true',
                        help='Do not relay messages back to their sender')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Logging level (default: $LOG_LEVEL or INFO)')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write the log to this file')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig.from_env(
            host=args.host,
            port=args.port,
            ws_port=args.ws_port,
            queue_size=args.queue_size,
            shutdown_timeout=args.shutdown_timeout,
            include_sender=False if args.no_echo else None,
            log_level=args.log_level,
            log_file=args.log_file
        )
        logger.configure(config.log_level, config.log_file)
    except ValueError as e:
        logger.log_error("configuration", e)
        return 2

    server = RelayServer(config)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except OSError as e:
        logger.log_error("server", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
