from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from mafia.logic.exceptions import InvalidNameError, NotEnoughPlayersError, NotHostError, RoomNotFoundError
from mafia.logic.state_machine import GameStateMachine
from mafia.messaging.types import ErrorCode, HelloAckMessage, JoinedRoomMessage, dump
from mafia.session.deletion import DEFAULT_GRACE_SECONDS, DeletionScheduler
from mafia.session.identity import SessionIdentity
from mafia.session.membership import MembershipManager
from mafia.session.notifier import Notifier
from mafia.session.registry import RoomRegistry

if TYPE_CHECKING:
    import random

    from mafia.logic.models import Room
    from mafia.logic.visibility import RoomSummary
    from mafia.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()


class SessionManager:
    """Run inbound client actions against the room store and notify clients.

    Each action resolves the session and room, performs its whole mutation
    synchronously through the core components, and only then awaits the
    notifications. Actions therefore never interleave mid-mutation, and a
    rejected action leaves no trace in room state.

    The store components are created per instance, so tests get an isolated
    in-memory store by building a new SessionManager.
    """

    def __init__(
        self,
        *,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        rng: random.Random | None = None,
    ) -> None:
        self._connections: dict[str, ConnectionProtocol] = {}
        self._identity = SessionIdentity()
        self._registry = RoomRegistry()
        self._scheduler = DeletionScheduler(self._registry, grace_seconds=grace_seconds, on_reap=self._handle_reap)
        self._membership = MembershipManager(self._registry, self._scheduler, self._identity)
        self._state_machine = GameStateMachine(self._registry, rng=rng)
        self._notifier = Notifier(self._connections)

    # --- Connections ---

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # --- Queries ---

    def get_room(self, room_id: str) -> Room | None:
        return self._registry.get(room_id)

    @property
    def room_count(self) -> int:
        return self._registry.room_count

    def list_rooms(self) -> list[RoomSummary]:
        return self._registry.list_rooms()

    def is_deletion_pending(self, room_id: str) -> bool:
        return self._scheduler.pending(room_id)

    def cancel_all_deletions(self) -> None:
        self._scheduler.cancel_all()

    # --- Actions ---

    async def hello(self, connection: ConnectionProtocol, session_id: str | None) -> str:
        """Confirm the client's session token, minting one if needed."""
        token = self._identity.establish(session_id)
        await connection.send_message(dump(HelloAckMessage(session_id=token)))
        return token

    async def create_room(self, connection: ConnectionProtocol, token: str, name: str, room_name: str) -> Room:
        previous_room_id = self._identity.current_room(token)
        room = self._registry.create(room_name, token, name, connection.connection_id)
        self._identity.bind(token, room.room_id)
        await self._leave_previous_room(token, previous_room_id, room.room_id)

        await self._notifier.broadcast_rooms_updated()
        await self._notifier.broadcast_room_state(room)
        await connection.send_message(dump(JoinedRoomMessage(room_id=room.room_id)))
        return room

    async def join_room(self, connection: ConnectionProtocol, token: str, name: str, room_id: str) -> None:
        """Join or reconnect to a room.

        While a round is running the joining player is immediately sent the
        private payload they are entitled to: the overview for the referee,
        their own role for a dealt player.
        """
        previous_room_id = self._identity.current_room(token)
        try:
            result = self._membership.join(room_id, token, name, connection.connection_id)
        except RoomNotFoundError as e:
            await self._notifier.send_error(connection.connection_id, ErrorCode.ROOM_NOT_FOUND, str(e))
            return
        # The previous room is left only once the new seat is secured.
        await self._leave_previous_room(token, previous_room_id, room_id)
        if self._registry.get(room_id) is not result.room:
            # Deleted while the previous room was being notified; members already got room_deleted.
            return

        await self._notifier.broadcast_rooms_updated()
        await self._notifier.broadcast_room_state(result.room)
        await connection.send_message(dump(JoinedRoomMessage(room_id=room_id)))
        if result.room.started:
            await self._notifier.send_private_view(result.room, result.player)

    async def leave_room(self, token: str, room_id: str) -> None:
        room = self._membership.leave(room_id, token)
        if room is None:
            return
        await self._notifier.broadcast_room_state(room)
        await self._notifier.broadcast_rooms_updated()

    async def delete_room(self, token: str, room_id: str) -> None:
        """Delete a room on the host's request; anyone else is ignored."""
        room = self._registry.delete(room_id, token)
        if room is None:
            return
        member_connections = [p.connection_id for p in room.connected_players if p.connection_id is not None]
        self._scheduler.cancel(room_id)
        self._identity.forget_room(room_id)

        await self._notifier.notify_room_deleted(room, member_connections)
        await self._notifier.broadcast_rooms_updated()

    async def set_referee(self, token: str, room_id: str, referee_id: str | None) -> None:
        try:
            room = self._membership.set_referee(room_id, token, referee_id)
        except (RoomNotFoundError, NotHostError) as e:
            self._log_ignored(e)
            return
        await self._notifier.broadcast_room_state(room)

    async def set_mafia_count(self, token: str, room_id: str, mafia_count: int) -> None:
        try:
            room = self._membership.set_mafia_count(room_id, token, mafia_count)
        except (RoomNotFoundError, NotHostError) as e:
            self._log_ignored(e)
            return
        await self._notifier.broadcast_room_state(room)
        await self._notifier.broadcast_rooms_updated()

    async def start_game(self, token: str, room_id: str) -> None:
        try:
            room = self._state_machine.start(room_id, token)
        except (RoomNotFoundError, NotHostError) as e:
            self._log_ignored(e)
            return
        except NotEnoughPlayersError as e:
            room = self._registry.get(room_id)
            if room is not None:
                await self._notifier.broadcast_error(room, ErrorCode.NOT_ENOUGH_PLAYERS, str(e))
            return

        await self._notifier.fan_out_roles(room)
        await self._notifier.broadcast_room_state(room)
        await self._notifier.broadcast_rooms_updated()

    async def reset_game(self, token: str, room_id: str) -> None:
        try:
            room = self._state_machine.reset(room_id, token)
        except (RoomNotFoundError, NotHostError) as e:
            self._log_ignored(e)
            return
        await self._notifier.broadcast_room_state(room)
        await self._notifier.broadcast_rooms_updated()

    async def change_name(self, token: str, new_name: str, room_id: str | None = None) -> None:
        try:
            room = self._membership.rename(token, new_name, room_id)
        except InvalidNameError:
            return
        if room is not None:
            await self._notifier.broadcast_room_state(room)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        """Mark whatever player this connection was bound to as disconnected."""
        self.unregister_connection(connection)
        affected = self._membership.disconnect(connection.connection_id)
        for room in affected:
            await self._notifier.broadcast_room_state(room)
        await self._notifier.broadcast_rooms_updated()

    # --- Internal helpers ---

    async def _leave_previous_room(self, token: str, previous_room_id: str | None, next_room_id: str) -> None:
        """Leave the room the session was active in before moving to `next_room_id`."""
        if previous_room_id is None or previous_room_id == next_room_id:
            return
        room = self._membership.leave(previous_room_id, token)
        if room is not None:
            logger.info("session moved to another room", room_id=previous_room_id, next_room_id=next_room_id)
            await self._notifier.broadcast_room_state(room)

    async def _handle_reap(self, room_id: str) -> None:
        self._identity.forget_room(room_id)
        await self._notifier.broadcast_rooms_updated()

    @staticmethod
    def _log_ignored(error: Exception) -> None:
        logger.info("room action ignored", reason=str(error), error_type=type(error).__name__)
