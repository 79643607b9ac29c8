#!/usr/bin/env python3
"""
Chat Relay Client - Main Entry Point

Usage:
    python main_client.py [--host HOST] [--port PORT] [--retries N]
"""

import sys

from chat_relay.client.main_client import main

if __name__ == "__main__":
    sys.exit(main())
