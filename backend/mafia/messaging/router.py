from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from mafia.messaging.types import (
    ChangeNameMessage,
    CreateRoomMessage,
    DeleteRoomMessage,
    ErrorCode,
    ErrorMessage,
    HelloMessage,
    JoinRoomMessage,
    LeaveRoomMessage,
    ResetGameMessage,
    SetMafiaCountMessage,
    SetRefereeMessage,
    StartGameMessage,
    dump,
    parse_client_message,
)

if TYPE_CHECKING:
    from mafia.messaging.protocol import ConnectionProtocol
    from mafia.messaging.types import ClientMessage
    from mafia.session.manager import SessionManager

logger = structlog.get_logger()


class MessageRouter:
    """
    Routes incoming messages to the session manager.

    Contains no transport code and can be tested with MockConnection.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(self, connection: ConnectionProtocol, raw_message: dict[str, Any]) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message", connection_id=connection.connection_id, error=str(e))
            await connection.send_message(dump(ErrorMessage(code=ErrorCode.INVALID_MESSAGE, message=str(e))))
            return

        try:
            await self._dispatch(connection, message)
        except Exception:
            logger.exception("action failed", connection_id=connection.connection_id, action=message.type)
            await connection.send_message(
                dump(ErrorMessage(code=ErrorCode.ACTION_FAILED, message="Action failed")),
            )

    async def _dispatch(self, connection: ConnectionProtocol, message: ClientMessage) -> None:
        manager = self._session_manager
        if isinstance(message, HelloMessage):
            await manager.hello(connection, message.session_id)
        elif isinstance(message, CreateRoomMessage):
            await manager.create_room(connection, message.session_id, message.name, message.room_name)
        elif isinstance(message, JoinRoomMessage):
            await manager.join_room(connection, message.session_id, message.name, message.room_id)
        elif isinstance(message, LeaveRoomMessage):
            await manager.leave_room(message.session_id, message.room_id)
        elif isinstance(message, DeleteRoomMessage):
            await manager.delete_room(message.session_id, message.room_id)
        elif isinstance(message, SetRefereeMessage):
            await manager.set_referee(message.session_id, message.room_id, message.referee_id)
        elif isinstance(message, SetMafiaCountMessage):
            await manager.set_mafia_count(message.session_id, message.room_id, message.mafia_count)
        elif isinstance(message, StartGameMessage):
            await manager.start_game(message.session_id, message.room_id)
        elif isinstance(message, ResetGameMessage):
            await manager.reset_game(message.session_id, message.room_id)
        elif isinstance(message, ChangeNameMessage):
            await manager.change_name(message.session_id, message.new_name, message.room_id)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.handle_disconnect(connection)
