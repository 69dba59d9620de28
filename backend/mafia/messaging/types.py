from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from mafia.logic.enums import Role
from mafia.logic.models import DEFAULT_MAFIA_COUNT
from mafia.logic.visibility import OverviewEntry, RoomSnapshot

_ID_PATTERN = r"^[a-zA-Z0-9_-]+$"
_SESSION_ID_FIELD = Field(min_length=1, max_length=64, pattern=_ID_PATTERN)
_ROOM_ID_FIELD = Field(min_length=1, max_length=50, pattern=_ID_PATTERN)
# Names are normalized (trimmed, truncated) by the room logic; this only bounds the frame.
_RAW_NAME_FIELD = Field(default="", max_length=256)


class ClientMessageType(StrEnum):
    HELLO = "hello"
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    DELETE_ROOM = "delete_room"
    SET_REFEREE = "set_referee"
    SET_MAFIA_COUNT = "set_mafia_count"
    START_GAME = "start_game"
    RESET_GAME = "reset_game"
    CHANGE_NAME = "change_name"


class ServerMessageType(StrEnum):
    HELLO_ACK = "hello_ack"
    ROOMS_UPDATED = "rooms_updated"
    JOINED_ROOM = "joined_room"
    ROOM_STATE = "room_state"
    YOUR_ROLE = "your_role"
    ROLES_OVERVIEW = "roles_overview"
    ROOM_DELETED = "room_deleted"
    ERROR = "error"


class ErrorCode(StrEnum):
    ROOM_NOT_FOUND = "room_not_found"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    INVALID_MESSAGE = "invalid_message"
    ACTION_FAILED = "action_failed"


class HelloMessage(BaseModel):
    type: Literal[ClientMessageType.HELLO] = ClientMessageType.HELLO
    session_id: str | None = Field(default=None, max_length=256)


class CreateRoomMessage(BaseModel):
    type: Literal[ClientMessageType.CREATE_ROOM] = ClientMessageType.CREATE_ROOM
    session_id: str = _SESSION_ID_FIELD
    name: str = _RAW_NAME_FIELD
    room_name: str = _RAW_NAME_FIELD


class JoinRoomMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    session_id: str = _SESSION_ID_FIELD
    name: str = _RAW_NAME_FIELD
    room_id: str = _ROOM_ID_FIELD


class LeaveRoomMessage(BaseModel):
    type: Literal[ClientMessageType.LEAVE_ROOM] = ClientMessageType.LEAVE_ROOM
    session_id: str = _SESSION_ID_FIELD
    room_id: str = _ROOM_ID_FIELD


class DeleteRoomMessage(BaseModel):
    type: Literal[ClientMessageType.DELETE_ROOM] = ClientMessageType.DELETE_ROOM
    session_id: str = _SESSION_ID_FIELD
    room_id: str = _ROOM_ID_FIELD


class SetRefereeMessage(BaseModel):
    type: Literal[ClientMessageType.SET_REFEREE] = ClientMessageType.SET_REFEREE
    session_id: str = _SESSION_ID_FIELD
    room_id: str = _ROOM_ID_FIELD
    referee_id: str | None = Field(default=None, max_length=64)


class SetMafiaCountMessage(BaseModel):
    type: Literal[ClientMessageType.SET_MAFIA_COUNT] = ClientMessageType.SET_MAFIA_COUNT
    session_id: str = _SESSION_ID_FIELD
    room_id: str = _ROOM_ID_FIELD
    mafia_count: int = DEFAULT_MAFIA_COUNT

    @field_validator("mafia_count", mode="before")
    @classmethod
    def _coerce_mafia_count(cls, v: Any) -> int:  # noqa: ANN401
        # Out-of-range counts are clamped by the room logic; unreadable ones fall back to the default.
        try:
            return int(float(v))
        except (TypeError, ValueError, OverflowError):
            return DEFAULT_MAFIA_COUNT


class StartGameMessage(BaseModel):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME
    session_id: str = _SESSION_ID_FIELD
    room_id: str = _ROOM_ID_FIELD


class ResetGameMessage(BaseModel):
    type: Literal[ClientMessageType.RESET_GAME] = ClientMessageType.RESET_GAME
    session_id: str = _SESSION_ID_FIELD
    room_id: str = _ROOM_ID_FIELD


class ChangeNameMessage(BaseModel):
    type: Literal[ClientMessageType.CHANGE_NAME] = ClientMessageType.CHANGE_NAME
    session_id: str = _SESSION_ID_FIELD
    new_name: str = Field(max_length=256)
    room_id: str | None = Field(default=None, min_length=1, max_length=50, pattern=_ID_PATTERN)


ClientMessage = (
    HelloMessage
    | CreateRoomMessage
    | JoinRoomMessage
    | LeaveRoomMessage
    | DeleteRoomMessage
    | SetRefereeMessage
    | SetMafiaCountMessage
    | StartGameMessage
    | ResetGameMessage
    | ChangeNameMessage
)


class HelloAckMessage(BaseModel):
    type: Literal[ServerMessageType.HELLO_ACK] = ServerMessageType.HELLO_ACK
    session_id: str


class RoomsUpdatedMessage(BaseModel):
    """Listing changed; clients pull GET /api/rooms."""

    type: Literal[ServerMessageType.ROOMS_UPDATED] = ServerMessageType.ROOMS_UPDATED


class JoinedRoomMessage(BaseModel):
    type: Literal[ServerMessageType.JOINED_ROOM] = ServerMessageType.JOINED_ROOM
    room_id: str


class RoomStateMessage(BaseModel):
    type: Literal[ServerMessageType.ROOM_STATE] = ServerMessageType.ROOM_STATE
    room: RoomSnapshot


class YourRoleMessage(BaseModel):
    type: Literal[ServerMessageType.YOUR_ROLE] = ServerMessageType.YOUR_ROLE
    role: Role


class RolesOverviewMessage(BaseModel):
    type: Literal[ServerMessageType.ROLES_OVERVIEW] = ServerMessageType.ROLES_OVERVIEW
    players: list[OverviewEntry]


class RoomDeletedMessage(BaseModel):
    type: Literal[ServerMessageType.ROOM_DELETED] = ServerMessageType.ROOM_DELETED
    room_id: str


class ErrorMessage(BaseModel):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    code: ErrorCode
    message: str


_client_message_adapter = TypeAdapter(Annotated[ClientMessage, Field(discriminator="type")])


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw dict into a typed ClientMessage, discriminated on "type"."""
    return _client_message_adapter.validate_python(data)


def dump(message: BaseModel) -> dict[str, Any]:
    """Serialize an outbound message to wire-ready primitives."""
    return message.model_dump(mode="json")
