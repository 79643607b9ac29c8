#!/usr/bin/env python3
"""
Chat Relay Client - Main Entry Point

Terminal client: every line typed on stdin is sent as a chat message and
every relayed message is printed.
"""

import argparse
import asyncio
import sys
import threading
from typing import List, Optional

from chat_relay.client.chat.chat_client import ChatClient
from chat_relay.common.constants import DEFAULT_HOST, DEFAULT_PORT


async def _print_payload(payload):
    print(payload if isinstance(payload, str) else repr(payload), flush=True)


def _stdin_reader(loop: asyncio.AbstractEventLoop, lines: asyncio.Queue):
    # Daemon thread so a blocked readline never holds up interpreter exit
    for line in sys.stdin:
        loop.call_soon_threadsafe(lines.put_nowait, line)
    loop.call_soon_threadsafe(lines.put_nowait, '')


async def _read_stdin(client: ChatClient):
    lines: asyncio.Queue = asyncio.Queue()
    threading.Thread(
        target=_stdin_reader, args=(asyncio.get_running_loop(), lines), daemon=True
    ).start()
    while client.connected:
        line = await lines.get()
        if not line:
            return
        text = line.rstrip('\n')
        if text and not await client.send_chat(text):
            return


async def run_client(host: str, port: int, retry_count: int) -> int:
    client = ChatClient(host, port)
    client.set_message_handler(_print_payload)
    if not await client.connect(retry_count=retry_count):
        return 1

    print(f"[INFO] Connected to {host}:{port}. Type a message and press Enter.")
    listener = asyncio.create_task(client.listen())
    sender = asyncio.create_task(_read_stdin(client))
    try:
        await asyncio.wait({listener, sender}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        listener.cancel()
        await client.close()
    if listener.done() and not listener.cancelled():
        print("[INFO] Server closed the connection")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Chat Relay Client')
    parser.add_argument('--host', type=str, default=DEFAULT_HOST,
                        help=f'Server host (default: {DEFAULT_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'Server TCP port (default: {DEFAULT_PORT})')
    parser.add_argument('--retries', type=int, default=3,
                        help='Connection attempts before giving up (default: 3)')
    args = parser.parse_args(argv)

    try:
        return asyncio.run(run_client(args.host, args.port, args.retries))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
