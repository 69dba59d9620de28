import re
from uuid import uuid4

_TOKEN_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
MAX_TOKEN_LENGTH = 64


def is_valid_token(token: str) -> bool:
    return 0 < len(token) <= MAX_TOKEN_LENGTH and _TOKEN_PATTERN.match(token) is not None


class SessionIdentity:
    """Issue session tokens and track which room each session is active in.

    A token is an opaque string the client keeps across reconnects; the
    player record it keys lives in the room. The token -> room index
    enforces one active room per session: the session layer leaves the
    previous room before binding a new one, and rename without a room id
    resolves through it.
    """

    def __init__(self) -> None:
        self._current_rooms: dict[str, str] = {}  # token -> room_id

    def establish(self, token: str | None = None) -> str:
        """Return `token` if it is well-formed, otherwise mint a fresh one."""
        if token and is_valid_token(token):
            return token
        return str(uuid4())

    def bind(self, token: str, room_id: str) -> None:
        self._current_rooms[token] = room_id

    def current_room(self, token: str) -> str | None:
        return self._current_rooms.get(token)

    def release(self, token: str, room_id: str) -> None:
        """Drop the binding only if it still points at `room_id`."""
        if self._current_rooms.get(token) == room_id:
            del self._current_rooms[token]

    def forget_room(self, room_id: str) -> None:
        """Remove every binding to a room that no longer exists."""
        stale = [token for token, bound in self._current_rooms.items() if bound == room_id]
        for token in stale:
            del self._current_rooms[token]
