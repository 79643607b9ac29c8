"""
Transport Module

Client transports feeding the connection registry: newline-delimited JSON
over TCP, and JSON text frames over WebSocket.
"""

from .base import Transport
from .stream import StreamTransport
from .websocket import WebSocketTransport

__all__ = ['Transport', 'StreamTransport', 'WebSocketTransport']
