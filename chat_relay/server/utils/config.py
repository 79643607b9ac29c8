"""
Server configuration module.

This module handles server-side configuration settings.
"""

import os
from typing import Mapping, Optional

from chat_relay.common.constants import (
    DEFAULT_LOG_LEVEL, DEFAULT_PORT, DEFAULT_SERVER_HOST, ENV_HOST, ENV_LOG_LEVEL,
    ENV_PORT, ENV_WS_PORT, MAX_MESSAGE_SIZE, OUTBOUND_QUEUE_SIZE, SHUTDOWN_TIMEOUT,
    WS_PING_INTERVAL, WS_PING_TIMEOUT
)


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 ws_port: Optional[int] = None, queue_size: int = OUTBOUND_QUEUE_SIZE,
                 shutdown_timeout: float = SHUTDOWN_TIMEOUT, include_sender: bool = True,
                 log_level: str = DEFAULT_LOG_LEVEL, log_file: Optional[str] = None):
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        if shutdown_timeout < 0:
            raise ValueError("shutdown_timeout must not be negative")

        self.host = host
        self.port = port
        self.ws_port = ws_port

        # Backpressure and shutdown
        self.queue_size = queue_size
        self.shutdown_timeout = shutdown_timeout

        # Relay behaviour
        self.include_sender = include_sender

        # Framing
        self.max_message_size = MAX_MESSAGE_SIZE

        # WebSocket keepalive
        self.ws_ping_interval = WS_PING_INTERVAL
        self.ws_ping_timeout = WS_PING_TIMEOUT

        # Logging configuration
        self.log_level = log_level
        self.log_file = log_file

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'ServerConfig':
        """
        Build a config from environment variables.

        ``PORT`` falls back to 3000 and ``WS_PORT`` leaves the WebSocket
        listener disabled when unset. Keyword overrides that are not None
        win over the environment.
        """
        if environ is None:
            environ = os.environ

        values = {}
        if environ.get(ENV_HOST):
            values['host'] = environ[ENV_HOST]
        if environ.get(ENV_PORT):
            values['port'] = _parse_port(ENV_PORT, environ[ENV_PORT])
        if environ.get(ENV_WS_PORT):
            values['ws_port'] = _parse_port(ENV_WS_PORT, environ[ENV_WS_PORT])
        if environ.get(ENV_LOG_LEVEL):
            values['log_level'] = environ[ENV_LOG_LEVEL].upper()

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port,
            'ws_port': self.ws_port
        }


def _parse_port(name: str, value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"{name} out of range: {port}")
    return port
