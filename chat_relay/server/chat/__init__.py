"""
Chat module for server-side relaying.

Handles:
- Connection lifecycle and outbound queues
- The registry of active connections
- Broadcasting chat messages to every connection
"""

from .connection import Connection, ConnectionState
from .dispatcher import BroadcastDispatcher, DispatchResult
from .errors import (
    QueueFull, RegistrationFailed, RelayError, SendFailed, ServerShuttingDown, TransportClosed
)
from .registry import ConnectionRegistry

__all__ = [
    'BroadcastDispatcher', 'Connection', 'ConnectionRegistry', 'ConnectionState',
    'DispatchResult', 'QueueFull', 'RegistrationFailed', 'RelayError', 'SendFailed',
    'ServerShuttingDown', 'TransportClosed',
]
