"""Transport-neutral client connection interface."""

from abc import ABC, abstractmethod
from typing import Any

from mafia.messaging.encoder import encode


class ConnectionProtocol(ABC):
    """
    A single client connection, addressed by its connection id.

    The connection id is the transport handle stored on a connected Player.
    Room logic only ever sees this interface, so it runs against
    MockConnection in tests and WebSocketConnection in production.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Unique identifier for this connection."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_bytes(encode(data))
