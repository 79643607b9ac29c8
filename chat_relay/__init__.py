"""
Chat Relay.

A real-time chat relay: every chat message sent by one client is broadcast
to all connected clients. This package contains:
- Server-side connection registry and broadcast fan-out
- TCP and WebSocket transports
- A terminal chat client
- Shared constants and protocol definitions
"""

__version__ = '0.1.0'
