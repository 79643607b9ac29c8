"""
Broadcast dispatcher module.

This module fans one inbound chat message out to every registered
connection.
"""

from dataclasses import dataclass, field
from typing import Any, List

from chat_relay.common.protocol_definitions import ChatMessage
from chat_relay.server.chat.errors import SendFailed
from chat_relay.server.chat.registry import ConnectionRegistry
from chat_relay.server.utils.logger import logger


@dataclass
class DispatchResult:
    """Outcome of one dispatch."""
    delivered: List[str] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)


class BroadcastDispatcher:
    """Relays chat messages to all connections, the sender included by default."""

    def __init__(self, registry: ConnectionRegistry, include_sender: bool = True):
        self.registry = registry
        self.include_sender = include_sender

    async def dispatch(self, origin_id: str, payload: Any) -> DispatchResult:
        """
        Enqueue ``payload`` on every connection in a registry snapshot.

        A target that is closed or whose queue is full is unregistered; the
        rest of the broadcast is unaffected. Delivery itself happens later,
        in each connection's sender task.
        """
        result = DispatchResult()
        targets = await self.registry.snapshot()

        # Messages from a connection that already left are not relayed
        if not any(connection.id == origin_id for connection in targets):
            logger.debug(f"Ignoring message from unregistered id={origin_id}")
            return result

        message = ChatMessage(payload, origin_id)
        frame = message.to_frame()

        # No awaits between the snapshot and the last enqueue, so each
        # target sees dispatches in the order they were issued
        for connection in targets:
            if not self.include_sender and connection.id == origin_id:
                continue
            try:
                connection.enqueue(frame)
            except SendFailed as e:
                logger.log_send_failure(connection.id, e)
                result.dropped.append(connection.id)
            else:
                result.delivered.append(connection.id)

        for conn_id in result.dropped:
            await self.registry.unregister(conn_id)

        logger.log_chat(message.origin_id, message.payload, len(result.delivered))
        return result
