"""Typed domain exceptions for room actions.

Core room logic raises subclasses of RoomError and never touches the
transport. The session layer catches them at its boundary and decides
per type whether the client hears about it: a missing room or a failed
start is reported, an unauthorized or invalid action is dropped silently
so probing clients learn nothing about rooms they do not host.
"""


class RoomError(Exception):
    """Base exception for rejected room actions. Raised before any mutation."""


class RoomNotFoundError(RoomError):
    """The room id does not resolve to an active room."""

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__("Room not found")


class NotHostError(RoomError):
    """A host-only action was requested by someone other than the host."""

    def __init__(self, *, room_id: str, token: str, action: str) -> None:
        self.room_id = room_id
        self.token = token
        self.action = action
        super().__init__(f"{action} in room {room_id} requires the host")


class NotEnoughPlayersError(RoomError):
    """The active pool is too small to deal a round."""

    def __init__(self, *, pool_size: int, minimum: int) -> None:
        self.pool_size = pool_size
        self.minimum = minimum
        super().__init__(f"Need at least {minimum} players (excluding referee)")


class InvalidNameError(RoomError):
    """A display name is empty after trimming."""
