"""Authoritative table of active rooms."""

import random
from uuid import uuid4

import structlog

from mafia.logic.models import Player, Room, normalize_name
from mafia.logic.visibility import RoomSummary, summarize_room

logger = structlog.get_logger()

ROOM_ID_LENGTH = 6
DEFAULT_PLAYER_NAME = "Player"


class RoomRegistry:
    """Own every active room, keyed by a short generated id.

    Purely state management: no transport I/O. Dicts preserve insertion
    order, so iteration and the public listing follow creation order.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}

    def _allocate_id(self) -> str:
        while True:
            room_id = uuid4().hex[:ROOM_ID_LENGTH]
            if room_id not in self._rooms:
                return room_id

    def create(self, name: str, creator_token: str, creator_name: str, connection_id: str | None = None) -> Room:
        """Create a room with the creator as its only player and host."""
        room_id = self._allocate_id()
        room_name = normalize_name(name) or f"Room-{random.randrange(1000)}"  # noqa: S311
        host = Player(
            token=creator_token,
            name=normalize_name(creator_name) or DEFAULT_PLAYER_NAME,
            connection_id=connection_id,
        )
        room = Room(room_id=room_id, name=room_name, host_token=creator_token, players={creator_token: host})
        self._rooms[room_id] = room
        logger.info("room created", room_id=room_id, room_name=room_name)
        return room

    def get(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def delete(self, room_id: str, requester_token: str) -> Room | None:
        """Remove a room on its host's request.

        Returns the removed room, or None when the room does not exist or the
        requester is not the host. Both failures look the same to the caller
        so that a client cannot tell a missing room from a foreign one.
        """
        room = self._rooms.get(room_id)
        if room is None:
            return None
        if not room.is_host(requester_token):
            logger.info("delete rejected, requester is not host", room_id=room_id)
            return None
        del self._rooms[room_id]
        logger.info("room deleted by host", room_id=room_id)
        return room

    def remove(self, room_id: str) -> Room | None:
        return self._rooms.pop(room_id, None)

    def rooms(self) -> list[Room]:
        return list(self._rooms.values())

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def list_rooms(self) -> list[RoomSummary]:
        """Public listing, recomputed from current state in creation order."""
        return [summarize_room(room) for room in self._rooms.values()]
