"""
Shared constants for the chat relay.

This module contains all constants used across client and server components.
"""

# Network Configuration
DEFAULT_HOST = 'localhost'
DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_PORT = 3000

# Environment variables read by ServerConfig.from_env()
ENV_HOST = 'HOST'
ENV_PORT = 'PORT'
ENV_WS_PORT = 'WS_PORT'
ENV_LOG_LEVEL = 'LOG_LEVEL'

# Framing
MAX_MESSAGE_SIZE = 1024 * 1024  # 1MB per frame
FRAME_DELIMITER = b'\n'
ENCODING = 'utf-8'

# Backpressure
OUTBOUND_QUEUE_SIZE = 256  # pending messages per connection

# Timeouts
SHUTDOWN_TIMEOUT = 5.0  # seconds allowed for draining queues at shutdown
WS_PING_INTERVAL = 15  # seconds
WS_PING_TIMEOUT = 45  # seconds

# Logging
LOGGER_NAME = 'chat_relay'
DEFAULT_LOG_LEVEL = 'INFO'


# Message Types
class MessageTypes:
    # Both directions
    CHAT_MESSAGE = 'chat message'

    # Server to Client
    ERROR = 'error'
