#!/usr/bin/env python3
"""
Unit tests for the connection registry.

Covers:
- Snapshot membership across connect/disconnect sequences
- Idempotent unregister
- Registration refused during shutdown
- Draining and abandoning queues at shutdown
- Removal of connections whose transport write fails
"""

import asyncio
import random
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from chat_relay.common.protocol_definitions import create_chat_message
from chat_relay.server.chat.connection import ConnectionState
from chat_relay.server.chat.errors import RegistrationFailed, ServerShuttingDown
from chat_relay.server.chat.registry import ConnectionRegistry
from fakes import BlockingTransport, FakeTransport, SlowTransport, wait_until


class TestConnectionRegistry(unittest.IsolatedAsyncioTestCase):
    """Test cases for ConnectionRegistry."""

    async def asyncSetUp(self):
        self.registry = ConnectionRegistry(queue_size=8)

    async def asyncTearDown(self):
        await self.registry.shutdown(timeout=0)

    async def test_register_assigns_unique_active_ids(self):
        """Each registration gets a fresh id and starts ACTIVE."""
        connections = [await self.registry.register(FakeTransport()) for _ in range(20)]

        ids = {c.id for c in connections}
        self.assertEqual(len(ids), 20)
        self.assertTrue(all(c.state is ConnectionState.ACTIVE for c in connections))
        self.assertEqual(len(self.registry), 20)

    async def test_snapshot_tracks_connect_disconnect_sequence(self):
        """Snapshot is exactly the set connected and not yet disconnected."""
        rng = random.Random(1234)
        expected = set()

        for _ in range(200):
            if expected and rng.random() < 0.4:
                conn_id = rng.choice(sorted(expected))
                await self.registry.unregister(conn_id)
                expected.discard(conn_id)
            else:
                connection = await self.registry.register(FakeTransport())
                expected.add(connection.id)

            snapshot = await self.registry.snapshot()
            self.assertEqual({c.id for c in snapshot}, expected)

    async def test_snapshot_is_a_copy(self):
        """Mutating a snapshot or the registry afterwards does not affect the other."""
        first = await self.registry.register(FakeTransport())
        snapshot = await self.registry.snapshot()

        snapshot.clear()
        self.assertIsNotNone(await self.registry.get(first.id))

        snapshot = await self.registry.snapshot()
        await self.registry.register(FakeTransport())
        await self.registry.unregister(first.id)
        self.assertEqual([c.id for c in snapshot], [first.id])

    async def test_unregister_twice_matches_unregister_once(self):
        """Second unregister of the same id is a no-op."""
        transport = FakeTransport()
        keep = await self.registry.register(FakeTransport())
        gone = await self.registry.register(transport)

        removed = await self.registry.unregister(gone.id)
        state_after_once = {c.id for c in await self.registry.snapshot()}
        again = await self.registry.unregister(gone.id)
        state_after_twice = {c.id for c in await self.registry.snapshot()}

        self.assertIs(removed, gone)
        self.assertIsNone(again)
        self.assertEqual(state_after_once, state_after_twice)
        self.assertEqual(state_after_twice, {keep.id})
        self.assertIs(gone.state, ConnectionState.CLOSED)
        self.assertTrue(transport.closed)

    async def test_unregister_unknown_id_is_noop(self):
        """Unregistering an id that never existed does nothing."""
        await self.registry.register(FakeTransport())
        self.assertIsNone(await self.registry.unregister('missing'))
        self.assertEqual(len(self.registry), 1)

    async def test_concurrent_register_and_unregister(self):
        """Interleaved registrations and removals leave a consistent map."""
        connections = await asyncio.gather(
            *(self.registry.register(FakeTransport()) for _ in range(50))
        )
        await asyncio.gather(*(self.registry.unregister(c.id) for c in connections[::2]))

        remaining = {c.id for c in await self.registry.snapshot()}
        self.assertEqual(remaining, {c.id for c in connections[1::2]})

    async def test_register_after_shutdown_fails(self):
        """Once shutdown starts, registration raises ServerShuttingDown."""
        await self.registry.shutdown(timeout=0)

        with self.assertRaises(ServerShuttingDown):
            await self.registry.register(FakeTransport())
        self.assertTrue(issubclass(ServerShuttingDown, RegistrationFailed))
        self.assertEqual(len(self.registry), 0)

    async def test_shutdown_drains_queued_messages(self):
        """Messages already queued are flushed before the transport closes."""
        transport = FakeTransport()
        connection = await self.registry.register(transport)
        for i in range(3):
            connection.enqueue(create_chat_message(f"m{i}"))

        await self.registry.shutdown(timeout=1.0)

        self.assertEqual(transport.payloads(), ['m0', 'm1', 'm2'])
        self.assertTrue(transport.closed)
        self.assertIs(connection.state, ConnectionState.CLOSED)
        self.assertEqual(len(self.registry), 0)

    async def test_shutdown_drains_full_queue_of_busy_client(self):
        """A full queue behind an in-flight send is still flushed in order."""
        self.registry.queue_size = 2
        transport = SlowTransport(delay=0.01)
        connection = await self.registry.register(transport)

        connection.enqueue(create_chat_message('m0'))
        connection.enqueue(create_chat_message('m1'))
        # Let the sender pick up m0 so m2 fills the queue again
        await asyncio.sleep(0)
        connection.enqueue(create_chat_message('m2'))
        self.assertTrue(connection.outbound_queue.full())

        await self.registry.shutdown(timeout=1.0)

        self.assertEqual(transport.payloads(), ['m0', 'm1', 'm2'])
        self.assertTrue(transport.closed)

    async def test_shutdown_abandons_stuck_client_after_timeout(self):
        """A client that never reads does not hold shutdown past the timeout."""
        transport = BlockingTransport()
        connection = await self.registry.register(transport)
        connection.enqueue(create_chat_message('stuck'))

        await asyncio.wait_for(self.registry.shutdown(timeout=0.05), timeout=2.0)

        self.assertEqual(transport.sent, [])
        self.assertTrue(transport.closed)
        self.assertIs(connection.state, ConnectionState.CLOSED)

    async def test_failed_write_unregisters_connection(self):
        """A transport error in the sender removes the connection."""
        transport = FakeTransport()
        connection = await self.registry.register(transport)
        transport.fail_sends = True

        connection.enqueue(create_chat_message('boom'))

        self.assertTrue(await wait_until(lambda: len(self.registry) == 0))
        self.assertTrue(await wait_until(lambda: connection.state is ConnectionState.CLOSED))
        self.assertTrue(transport.closed)

    async def test_failed_write_is_logged_once(self):
        """A dropped connection produces a single failure record."""
        transport = FakeTransport()
        connection = await self.registry.register(transport)
        transport.fail_sends = True

        with self.assertLogs('chat_relay', level='WARNING') as captured:
            connection.enqueue(create_chat_message('boom'))
            self.assertTrue(await wait_until(lambda: connection.state is ConnectionState.CLOSED))

        failures = [line for line in captured.output if connection.id in line]
        self.assertEqual(len(failures), 1)


if __name__ == '__main__':
    unittest.main()
