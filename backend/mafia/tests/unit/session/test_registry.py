import re

from mafia.logic.models import DEFAULT_MAFIA_COUNT
from mafia.session.registry import ROOM_ID_LENGTH


class TestCreate:
    def test_creator_is_host_and_only_member(self, registry):
        room = registry.create("Town", "tok-1", "Alice", connection_id="c1")

        assert room.host_token == "tok-1"
        assert list(room.players) == ["tok-1"]
        host = room.players["tok-1"]
        assert host.name == "Alice"
        assert host.connected is True
        assert host.connection_id == "c1"
        assert host.role is None
        assert room.referee_token is None
        assert room.started is False
        assert room.settings.mafia_count == DEFAULT_MAFIA_COUNT

    def test_room_ids_are_short_and_unique(self, registry):
        ids = {registry.create("Town", f"tok-{i}", "P").room_id for i in range(50)}
        assert len(ids) == 50
        assert all(re.fullmatch(rf"[0-9a-f]{{{ROOM_ID_LENGTH}}}", room_id) for room_id in ids)

    def test_names_are_trimmed_and_truncated(self, registry):
        room = registry.create("  Night Club  ", "tok", "  " + "x" * 40 + "  ")
        assert room.name == "Night Club"
        assert room.players["tok"].name == "x" * 32

    def test_blank_names_get_defaults(self, registry):
        room = registry.create("   ", "tok", "")
        assert re.fullmatch(r"Room-\d+", room.name)
        assert room.players["tok"].name == "Player"


class TestLookupAndRemoval:
    def test_get_unknown_room(self, registry):
        assert registry.get("missing") is None

    def test_delete_by_host(self, registry):
        room = registry.create("Town", "host", "Host")
        assert registry.delete(room.room_id, "host") is room
        assert registry.get(room.room_id) is None

    def test_delete_by_non_host_is_silent(self, registry):
        room = registry.create("Town", "host", "Host")
        assert registry.delete(room.room_id, "guest") is None
        assert registry.get(room.room_id) is room

    def test_delete_missing_room(self, registry):
        assert registry.delete("missing", "host") is None

    def test_remove_is_idempotent(self, registry):
        room = registry.create("Town", "host", "Host")
        assert registry.remove(room.room_id) is room
        assert registry.remove(room.room_id) is None
        assert registry.room_count == 0


class TestListing:
    def test_listing_follows_creation_order(self, registry):
        first = registry.create("First", "a", "A")
        second = registry.create("Second", "b", "B")

        summaries = registry.list_rooms()

        assert [s.id for s in summaries] == [first.room_id, second.room_id]
        assert [s.name for s in summaries] == ["First", "Second"]

    def test_listing_reflects_current_state(self, registry):
        room = registry.create("Town", "host", "Host")
        room.players["host"].unbind()
        room.started = True
        room.settings.mafia_count = 3

        (summary,) = registry.list_rooms()

        assert summary.player_count == 0
        assert summary.started is True
        assert summary.settings.mafia_count == 3
        assert summary.host_id == "host"

    def test_empty_registry(self, registry):
        assert registry.list_rooms() == []
        assert registry.rooms() == []
