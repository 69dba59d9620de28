"""Room and player records for the in-memory room store."""

from dataclasses import dataclass, field
from datetime import datetime

from mafia.logic.enums import GamePhase, Role

MAX_NAME_LENGTH = 32
MIN_MAFIA_COUNT = 0
MAX_MAFIA_COUNT = 10
DEFAULT_MAFIA_COUNT = 1


def normalize_name(raw: str) -> str:
    """Trim surrounding whitespace and truncate to MAX_NAME_LENGTH characters."""
    return raw.strip()[:MAX_NAME_LENGTH].strip()


def clamp_mafia_count(count: int) -> int:
    return max(MIN_MAFIA_COUNT, min(MAX_MAFIA_COUNT, count))


@dataclass
class Player:
    """A session's seat in one room.

    The record survives disconnects: only `connected` and `connection_id`
    change when the transport drops, so name and role come back on reconnect.
    Host and referee status are owned by the Room (see Room.is_host and
    Room.is_referee).
    """

    token: str
    name: str
    connected: bool = True
    connection_id: str | None = None
    role: Role | None = None

    def bind(self, connection_id: str | None) -> None:
        self.connected = True
        self.connection_id = connection_id

    def unbind(self) -> None:
        self.connected = False
        self.connection_id = None


@dataclass
class RoomSettings:
    mafia_count: int = DEFAULT_MAFIA_COUNT


@dataclass
class Room:
    """A game room: its members, host, referee and round state.

    `players` preserves insertion order, which is also the order the active
    pool is dealt in.
    """

    room_id: str
    name: str
    host_token: str
    players: dict[str, Player] = field(default_factory=dict)  # token -> Player
    referee_token: str | None = None
    settings: RoomSettings = field(default_factory=RoomSettings)
    started: bool = False
    roles_assigned_at: datetime | None = None

    @property
    def phase(self) -> GamePhase:
        return GamePhase.STARTED if self.started else GamePhase.LOBBY

    @property
    def connected_players(self) -> list[Player]:
        return [p for p in self.players.values() if p.connected]

    @property
    def connected_count(self) -> int:
        return len(self.connected_players)

    @property
    def has_connected_players(self) -> bool:
        return any(p.connected for p in self.players.values())

    @property
    def active_pool(self) -> list[Player]:
        """Connected, non-referee players in join order."""
        return [p for p in self.players.values() if p.connected and p.token != self.referee_token]

    def is_host(self, token: str) -> bool:
        return token == self.host_token

    def is_referee(self, token: str) -> bool:
        return self.referee_token is not None and token == self.referee_token

    def get_player(self, token: str) -> Player | None:
        return self.players.get(token)

    def find_by_connection(self, connection_id: str) -> Player | None:
        for player in self.players.values():
            if player.connected and player.connection_id == connection_id:
                return player
        return None

    def clear_referee(self) -> None:
        self.referee_token = None

    def clear_roles(self) -> None:
        for player in self.players.values():
            player.role = None
