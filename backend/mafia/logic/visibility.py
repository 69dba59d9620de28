"""Per-viewer projection of room state.

Everything a client may learn about a room goes through project_room().
The public snapshot never carries another player's role; roles travel only
on the private channel, where a player sees their own role and the referee
sees the overview of every non-referee player.
"""

from enum import StrEnum

from pydantic import BaseModel

from mafia.logic.enums import ROLE_OVERVIEW_ORDER, Role
from mafia.logic.models import Player, Room


class Viewer(StrEnum):
    REFEREE = "referee"
    PLAYER = "player"
    OBSERVER = "observer"


class RoomSettingsInfo(BaseModel):
    mafia_count: int


class PlayerInfo(BaseModel):
    """Player entry in the room-state broadcast."""

    session_id: str
    name: str
    is_host: bool
    is_referee: bool
    connected: bool
    role: Role | None = None


class RoomSnapshot(BaseModel):
    id: str
    name: str
    host_id: str
    referee_id: str | None
    settings: RoomSettingsInfo
    started: bool
    players: list[PlayerInfo]


class OverviewEntry(BaseModel):
    session_id: str
    name: str
    role: Role | None


class RoomSummary(BaseModel):
    """Row of the public room listing."""

    id: str
    name: str
    host_id: str
    player_count: int
    started: bool
    settings: RoomSettingsInfo


class RoomView(BaseModel):
    """Everything one viewer is allowed to see of a room."""

    viewer: Viewer
    state: RoomSnapshot
    your_role: Role | None = None
    roles_overview: list[OverviewEntry] | None = None


def classify_viewer(room: Room, token: str | None) -> Viewer:
    if token is None or token not in room.players:
        return Viewer.OBSERVER
    if room.is_referee(token):
        return Viewer.REFEREE
    return Viewer.PLAYER


def _settings_info(room: Room) -> RoomSettingsInfo:
    return RoomSettingsInfo(mafia_count=room.settings.mafia_count)


def _player_info(room: Room, player: Player, viewer: Viewer, viewer_token: str | None) -> PlayerInfo:
    # Only a referee looking at their own entry may see a role here, and
    # the referee never holds one while refereeing.
    visible_role = player.role if viewer is Viewer.REFEREE and player.token == viewer_token else None
    return PlayerInfo(
        session_id=player.token,
        name=player.name,
        is_host=room.is_host(player.token),
        is_referee=room.is_referee(player.token),
        connected=player.connected,
        role=visible_role,
    )


def _overview_rank(role: Role | None) -> int:
    if role is None:
        return len(ROLE_OVERVIEW_ORDER)
    return ROLE_OVERVIEW_ORDER.index(role)


def roles_overview(room: Room) -> list[OverviewEntry]:
    """Every non-referee player with their role, mafia group first.

    sorted() is stable, so players within a role keep their join order.
    """
    entries = [
        OverviewEntry(session_id=p.token, name=p.name, role=p.role)
        for p in room.players.values()
        if not room.is_referee(p.token)
    ]
    return sorted(entries, key=lambda entry: _overview_rank(entry.role))


def project_room(room: Room, viewer_token: str | None) -> RoomView:
    """Build the exact payload `viewer_token` may see of `room`.

    Pure: reads the room, never mutates it. A token that is not a member of
    the room is an observer and sees the public snapshot only.
    """
    viewer = classify_viewer(room, viewer_token)
    state = RoomSnapshot(
        id=room.room_id,
        name=room.name,
        host_id=room.host_token,
        referee_id=room.referee_token,
        settings=_settings_info(room),
        started=room.started,
        players=[_player_info(room, p, viewer, viewer_token) for p in room.players.values()],
    )

    your_role: Role | None = None
    overview: list[OverviewEntry] | None = None
    if room.started:
        if viewer is Viewer.REFEREE:
            overview = roles_overview(room)
        elif viewer is Viewer.PLAYER and viewer_token is not None:
            your_role = room.players[viewer_token].role

    return RoomView(viewer=viewer, state=state, your_role=your_role, roles_overview=overview)


def summarize_room(room: Room) -> RoomSummary:
    return RoomSummary(
        id=room.room_id,
        name=room.name,
        host_id=room.host_token,
        player_count=room.connected_count,
        started=room.started,
        settings=_settings_info(room),
    )
