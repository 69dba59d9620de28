"""
Round state machine: Lobby -> Started -> Lobby.

start() deals roles to the active pool and reset() returns the room to the
lobby. There are no other transitions; deleting the room ends the machine.
Both are host-only and either complete or raise before mutating anything.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from mafia.logic.exceptions import NotEnoughPlayersError, NotHostError, RoomNotFoundError
from mafia.logic.roles import MIN_ACTIVE_PLAYERS, deal_roles, default_rng, role_counts

if TYPE_CHECKING:
    import random

    from mafia.logic.models import Room
    from mafia.session.registry import RoomRegistry

logger = structlog.get_logger()


class GameStateMachine:
    def __init__(self, registry: RoomRegistry, rng: random.Random | None = None) -> None:
        self._registry = registry
        self._rng = rng or default_rng()

    def _require_host_room(self, room_id: str, token: str, action: str) -> Room:
        room = self._registry.get(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        if not room.is_host(token):
            raise NotHostError(room_id=room_id, token=token, action=action)
        return room

    def start(self, room_id: str, requester_token: str) -> Room:
        """Deal a round to the connected, non-referee players.

        Starting an already started room re-deals from the current pool;
        roles from the previous deal are cleared first, including those of
        players who are no longer in the pool.
        """
        room = self._require_host_room(room_id, requester_token, "start_game")
        pool = room.active_pool
        if len(pool) < MIN_ACTIVE_PLAYERS:
            raise NotEnoughPlayersError(pool_size=len(pool), minimum=MIN_ACTIVE_PLAYERS)

        room.clear_roles()
        assignment = deal_roles(pool, room.settings.mafia_count, self._rng)
        room.started = True
        room.roles_assigned_at = datetime.now(UTC)
        logger.info(
            "game started",
            room_id=room_id,
            pool_size=len(pool),
            composition=dict(role_counts(list(assignment.values()))),
        )
        return room

    def reset(self, room_id: str, requester_token: str) -> Room:
        """Return the room to the lobby. Resetting a lobby is a no-op."""
        room = self._require_host_room(room_id, requester_token, "reset_game")
        room.clear_roles()
        room.started = False
        room.roles_assigned_at = None
        logger.info("game reset", room_id=room_id)
        return room
