"""
Transport interface.

A transport wraps one client socket. The registry and dispatcher only ever
see this interface, so TCP and WebSocket clients share the same room.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Union


class Transport(ABC):
    """Bidirectional, message-oriented client transport."""

    @property
    def peer(self):
        """Remote address, used for logging only."""
        return None

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """True once the socket is closing or closed."""
        ...

    @abstractmethod
    async def send(self, message: Dict[str, Any]) -> None:
        """Write one frame. Raises on transport failure."""
        ...

    @abstractmethod
    def frames(self) -> AsyncIterator[Union[bytes, str]]:
        """Iterate raw inbound frames until the client disconnects."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the underlying socket. Safe to call more than once."""
        ...
