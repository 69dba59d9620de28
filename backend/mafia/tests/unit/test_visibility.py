"""Exhaustive checks of what each kind of viewer may see of a room."""

import pytest

from mafia.logic.enums import Role
from mafia.logic.visibility import Viewer, classify_viewer, project_room, roles_overview, summarize_room
from mafia.session.registry import RoomRegistry
from mafia.tests.helpers.rooms import make_room


@pytest.fixture
def started_room():
    """Host plays, `ref` referees, `late` joined after the deal and holds no role."""
    room = make_room(RoomRegistry(), "alice", "bob", "ref", "late")
    room.referee_token = "ref"
    room.players["host"].role = Role.CITIZEN
    room.players["alice"].role = Role.MAFIA
    room.players["bob"].role = Role.DOCTOR
    room.started = True
    return room


def _all_snapshot_roles(view):
    return [p.role for p in view.state.players]


class TestClassifyViewer:
    def test_categories(self, started_room):
        assert classify_viewer(started_room, "ref") is Viewer.REFEREE
        assert classify_viewer(started_room, "host") is Viewer.PLAYER
        assert classify_viewer(started_room, "alice") is Viewer.PLAYER
        assert classify_viewer(started_room, "stranger") is Viewer.OBSERVER
        assert classify_viewer(started_room, None) is Viewer.OBSERVER


class TestProjectRoomStarted:
    def test_host_sees_only_own_role(self, started_room):
        view = project_room(started_room, "host")
        assert view.viewer is Viewer.PLAYER
        assert view.your_role is Role.CITIZEN
        assert view.roles_overview is None
        assert _all_snapshot_roles(view) == [None] * 5

    def test_referee_sees_overview(self, started_room):
        view = project_room(started_room, "ref")
        assert view.viewer is Viewer.REFEREE
        assert view.your_role is None
        overview = [(e.session_id, e.role) for e in view.roles_overview]
        assert overview == [
            ("alice", Role.MAFIA),
            ("bob", Role.DOCTOR),
            ("host", Role.CITIZEN),
            ("late", None),
        ]
        assert _all_snapshot_roles(view) == [None] * 5

    def test_player_with_role_sees_only_own_role(self, started_room):
        view = project_room(started_room, "alice")
        assert view.your_role is Role.MAFIA
        assert view.roles_overview is None
        assert _all_snapshot_roles(view) == [None] * 5

    def test_player_without_role_sees_nothing_private(self, started_room):
        view = project_room(started_room, "late")
        assert view.viewer is Viewer.PLAYER
        assert view.your_role is None
        assert view.roles_overview is None

    def test_outside_observer_sees_public_snapshot_only(self, started_room):
        view = project_room(started_room, "stranger")
        assert view.viewer is Viewer.OBSERVER
        assert view.your_role is None
        assert view.roles_overview is None
        assert _all_snapshot_roles(view) == [None] * 5

    def test_serialized_snapshot_never_names_a_role(self, started_room):
        for token in ("host", "ref", "alice", "bob", "late", "stranger"):
            dumped = project_room(started_room, token).state.model_dump_json()
            for role in Role:
                assert role.value not in dumped


class TestProjectRoomLobby:
    def test_no_private_channel_in_lobby(self, started_room):
        started_room.started = False
        started_room.clear_roles()
        for token in ("host", "ref", "alice", "stranger"):
            view = project_room(started_room, token)
            assert view.your_role is None
            assert view.roles_overview is None


class TestSnapshotFields:
    def test_flags_and_metadata(self, started_room):
        started_room.players["bob"].connected = False
        state = project_room(started_room, "alice").state

        assert state.id == started_room.room_id
        assert state.name == "Town"
        assert state.host_id == "host"
        assert state.referee_id == "ref"
        assert state.started is True
        assert state.settings.mafia_count == 1

        by_id = {p.session_id: p for p in state.players}
        assert [p.session_id for p in state.players] == ["host", "alice", "bob", "ref", "late"]
        assert by_id["host"].is_host is True
        assert by_id["alice"].is_host is False
        assert by_id["ref"].is_referee is True
        assert sum(p.is_referee for p in state.players) == 1
        assert by_id["bob"].connected is False


def test_roles_overview_excludes_referee(started_room):
    assert "ref" not in {entry.session_id for entry in roles_overview(started_room)}


def test_summary_counts_connected_players(started_room):
    started_room.players["late"].connected = False
    summary = summarize_room(started_room)
    assert summary.player_count == 4
    assert summary.host_id == "host"
    assert summary.started is True
    assert summary.settings.mafia_count == 1
