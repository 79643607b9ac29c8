#!/usr/bin/env python3
"""
Chat Relay Server - Main Entry Point

Usage:
    python main_server.py

Optional arguments:
    --host HOST              Bind address (default: $HOST or 0.0.0.0)
    --port PORT              TCP port (default: $PORT or 3000)
    --ws-port PORT           WebSocket port (default: $WS_PORT, disabled when unset)
    --queue-size N           Pending messages per client before it is dropped
    --shutdown-timeout SECS  Time allowed for flushing queues on shutdown
    --no-echo                Do not relay messages back to their sender
    --log-level LEVEL        Logging level
    --log-file PATH          Also write the log to this file
"""

import sys

from chat_relay.server.main_server import main

if __name__ == "__main__":
    sys.exit(main())
