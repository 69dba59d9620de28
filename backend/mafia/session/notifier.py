"""Deliver room snapshots and notifications to connected clients."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

from mafia.logic.visibility import project_room
from mafia.messaging.types import (
    ErrorMessage,
    RolesOverviewMessage,
    RoomDeletedMessage,
    RoomStateMessage,
    RoomsUpdatedMessage,
    YourRoleMessage,
    dump,
)

if TYPE_CHECKING:
    from mafia.logic.models import Player, Room
    from mafia.messaging.protocol import ConnectionProtocol
    from mafia.messaging.types import ErrorCode


class Notifier:
    """Push filtered room views to members and listing changes to everyone.

    Every payload that mentions roles is computed by project_room() for the
    specific recipient. A failed send means the client is going away; its
    disconnect is handled by the WebSocket endpoint, so send errors are
    suppressed here.
    """

    def __init__(self, connections: dict[str, ConnectionProtocol]) -> None:
        self._connections = connections  # connection_id -> connection, owned by SessionManager

    async def send(self, connection_id: str | None, message: dict[str, Any]) -> None:
        if connection_id is None:
            return
        connection = self._connections.get(connection_id)
        if connection is None:
            return
        with contextlib.suppress(RuntimeError, OSError, ConnectionError):
            await connection.send_message(message)

    async def send_error(self, connection_id: str | None, code: ErrorCode, message: str) -> None:
        await self.send(connection_id, dump(ErrorMessage(code=code, message=message)))

    async def broadcast_rooms_updated(self) -> None:
        message = dump(RoomsUpdatedMessage())
        for connection_id in list(self._connections):
            await self.send(connection_id, message)

    async def broadcast_room_state(self, room: Room) -> None:
        """Send each connected member the room snapshot as they may see it."""
        for player in list(room.players.values()):
            if player.connected:
                view = project_room(room, player.token)
                await self.send(player.connection_id, dump(RoomStateMessage(room=view.state)))

    async def send_private_view(self, room: Room, player: Player) -> None:
        """Send the role payload a player is entitled to, if any.

        The referee gets the full overview; anyone else holding a role gets
        only their own. Nothing is sent in the lobby.
        """
        view = project_room(room, player.token)
        if view.roles_overview is not None:
            await self.send(player.connection_id, dump(RolesOverviewMessage(players=view.roles_overview)))
        elif view.your_role is not None:
            await self.send(player.connection_id, dump(YourRoleMessage(role=view.your_role)))

    async def fan_out_roles(self, room: Room) -> None:
        for player in list(room.players.values()):
            if player.connected:
                await self.send_private_view(room, player)

    async def broadcast_error(self, room: Room, code: ErrorCode, message: str) -> None:
        for player in list(room.players.values()):
            if player.connected:
                await self.send_error(player.connection_id, code, message)

    async def notify_room_deleted(self, room: Room, connection_ids: list[str]) -> None:
        message = dump(RoomDeletedMessage(room_id=room.room_id))
        for connection_id in connection_ids:
            await self.send(connection_id, message)
