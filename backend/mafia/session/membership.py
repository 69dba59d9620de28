"""Player membership within rooms: join, reconnect, leave, drop, host settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from mafia.logic.exceptions import InvalidNameError, NotHostError, RoomNotFoundError
from mafia.logic.models import Player, clamp_mafia_count, normalize_name
from mafia.session.registry import DEFAULT_PLAYER_NAME

if TYPE_CHECKING:
    from mafia.logic.models import Room
    from mafia.session.deletion import DeletionScheduler
    from mafia.session.identity import SessionIdentity
    from mafia.session.registry import RoomRegistry

logger = structlog.get_logger()


@dataclass
class JoinResult:
    room: Room
    player: Player
    reconnected: bool


class MembershipManager:
    """Add, reconnect and drop players, and apply host-only room settings.

    Every method mutates synchronously and either completes or raises a
    RoomError before touching state. Liveness changes are handed to the
    DeletionScheduler, so callers must run inside an event loop.
    """

    def __init__(self, registry: RoomRegistry, scheduler: DeletionScheduler, identity: SessionIdentity) -> None:
        self._registry = registry
        self._scheduler = scheduler
        self._identity = identity

    def _require_room(self, room_id: str) -> Room:
        room = self._registry.get(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    def _require_host(self, room_id: str, token: str, action: str) -> Room:
        room = self._require_room(room_id)
        if not room.is_host(token):
            raise NotHostError(room_id=room_id, token=token, action=action)
        return room

    def join(self, room_id: str, token: str, name: str, connection_id: str | None = None) -> JoinResult:
        """Join a room, or reconnect if the token already has a seat in it.

        A reconnect rebinds the connection and keeps name, role and host
        status. A new player starts without a role, even mid-round.
        """
        room = self._require_room(room_id)
        player = room.get_player(token)
        reconnected = player is not None
        if player is None:
            player = Player(token=token, name=normalize_name(name) or DEFAULT_PLAYER_NAME)
            room.players[token] = player
        player.bind(connection_id)
        self._identity.bind(token, room_id)
        self._scheduler.evaluate(room)
        logger.info(
            "player reconnected" if reconnected else "player joined",
            room_id=room_id,
            connection_id=connection_id,
            phase=room.phase,
        )
        return JoinResult(room=room, player=player, reconnected=reconnected)

    def _mark_departed(self, room: Room, player: Player, *, voluntary: bool) -> None:
        player.unbind()
        # Leaving gives up the referee seat; a dropped referee gets it back on reconnect.
        if voluntary and room.is_referee(player.token):
            room.clear_referee()
        self._identity.release(player.token, room.room_id)

    def leave(self, room_id: str, token: str) -> Room | None:
        """Mark a player disconnected without removing their record."""
        room = self._registry.get(room_id)
        if room is None:
            return None
        player = room.get_player(token)
        if player is not None:
            self._mark_departed(room, player, voluntary=True)
            logger.info("player left", room_id=room_id)
        self._scheduler.evaluate(room)
        return room

    def disconnect(self, connection_id: str) -> list[Room]:
        """Handle an involuntary transport drop.

        The handle alone does not say which room was affected, so every room
        is scanned and every room's liveness is re-evaluated. Returns the
        rooms in which a player was marked disconnected.
        """
        affected: list[Room] = []
        for room in self._registry.rooms():
            player = room.find_by_connection(connection_id)
            if player is not None:
                self._mark_departed(room, player, voluntary=False)
                affected.append(room)
                logger.info("player dropped", room_id=room.room_id, connection_id=connection_id)
            self._scheduler.evaluate(room)
        return affected

    def set_referee(self, room_id: str, requester_token: str, target_token: str | None) -> Room:
        """Designate the referee, or clear it when the target is not a member."""
        room = self._require_host(room_id, requester_token, "set_referee")
        room.clear_referee()
        target = room.get_player(target_token) if target_token else None
        if target is not None:
            room.referee_token = target.token
            # The referee observes the round and never holds a role.
            target.role = None
        logger.info("referee set", room_id=room_id, has_referee=room.referee_token is not None)
        return room

    def set_mafia_count(self, room_id: str, requester_token: str, count: int) -> Room:
        room = self._require_host(room_id, requester_token, "set_mafia_count")
        room.settings.mafia_count = clamp_mafia_count(count)
        logger.info("mafia count set", room_id=room_id, mafia_count=room.settings.mafia_count)
        return room

    def rename(self, token: str, new_name: str, room_id: str | None = None) -> Room | None:
        """Change a player's display name.

        With a room id only that room is touched; otherwise the session's
        current room is used. Returns the updated room, or None when the
        session has no seat to rename.
        """
        name = normalize_name(new_name)
        if not name:
            raise InvalidNameError("name is empty after trimming")

        target_room_id = room_id if room_id is not None else self._identity.current_room(token)
        if target_room_id is None:
            return None
        room = self._registry.get(target_room_id)
        if room is None:
            return None
        player = room.get_player(token)
        if player is None:
            return None
        player.name = name
        return room
