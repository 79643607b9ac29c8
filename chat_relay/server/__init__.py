"""
Server package for the chat relay.

This package contains all server-side functionality including:
- Client connection registry
- Broadcast dispatching
- TCP and WebSocket transports
- Configuration and utilities
"""
