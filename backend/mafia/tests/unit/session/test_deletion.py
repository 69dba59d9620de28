"""Grace-period reaping of rooms with no connected players."""

import asyncio

import pytest

from mafia.session.deletion import DEFAULT_GRACE_SECONDS, DeletionScheduler
from mafia.tests.helpers.rooms import SHORT_GRACE_SECONDS, make_room

_PAST_GRACE = SHORT_GRACE_SECONDS * 2


def _disconnect_all(room):
    for player in room.players.values():
        player.unbind()


class TestEvaluate:
    async def test_room_with_connected_player_is_not_scheduled(self, registry, scheduler):
        room = make_room(registry, "alice")
        scheduler.evaluate(room)
        assert not scheduler.pending(room.room_id)

    async def test_empty_room_reaped_after_grace(self, registry, scheduler):
        room = make_room(registry, "alice")
        _disconnect_all(room)

        scheduler.evaluate(room)
        assert scheduler.pending(room.room_id)

        await asyncio.sleep(_PAST_GRACE)

        assert registry.get(room.room_id) is None
        assert not scheduler.pending(room.room_id)

    async def test_room_survives_until_grace_elapses(self, registry, scheduler):
        room = make_room(registry)
        _disconnect_all(room)
        scheduler.evaluate(room)

        await asyncio.sleep(SHORT_GRACE_SECONDS / 4)

        assert registry.get(room.room_id) is room

    async def test_reconnect_within_grace_cancels(self, registry, scheduler):
        room = make_room(registry, "alice")
        _disconnect_all(room)
        scheduler.evaluate(room)

        await asyncio.sleep(SHORT_GRACE_SECONDS / 2)
        room.players["alice"].bind("c-alice")
        scheduler.evaluate(room)
        await asyncio.sleep(_PAST_GRACE)

        assert registry.get(room.room_id) is room
        assert not scheduler.pending(room.room_id)

    async def test_repeated_evaluate_keeps_one_task(self, registry, scheduler):
        room = make_room(registry)
        _disconnect_all(room)

        scheduler.evaluate(room)
        scheduler.evaluate(room)

        assert scheduler.pending_count == 1


class TestScheduleAndCancel:
    async def test_duplicate_schedule_raises(self, registry, scheduler):
        room = make_room(registry)
        scheduler.schedule(room.room_id)
        with pytest.raises(RuntimeError, match="already scheduled"):
            scheduler.schedule(room.room_id)

    async def test_cancel_is_idempotent(self, registry, scheduler):
        room = make_room(registry)
        scheduler.cancel(room.room_id)
        scheduler.schedule(room.room_id)
        scheduler.cancel(room.room_id)
        scheduler.cancel(room.room_id)
        assert not scheduler.pending(room.room_id)

    async def test_cancel_all(self, registry, scheduler):
        rooms = [make_room(registry) for _ in range(3)]
        for room in rooms:
            scheduler.schedule(room.room_id)

        scheduler.cancel_all()
        await asyncio.sleep(_PAST_GRACE)

        assert scheduler.pending_count == 0
        assert registry.room_count == 3

    async def test_reap_of_already_removed_room_is_quiet(self, registry):
        reaped = []

        async def on_reap(room_id):
            reaped.append(room_id)

        scheduler = DeletionScheduler(registry, grace_seconds=0.01, on_reap=on_reap)
        room = make_room(registry)
        scheduler.schedule(room.room_id)
        registry.remove(room.room_id)

        await asyncio.sleep(0.05)

        assert reaped == []


class TestReapCallback:
    async def test_callback_receives_room_id(self, registry):
        reaped = []

        async def on_reap(room_id):
            reaped.append(room_id)

        scheduler = DeletionScheduler(registry, grace_seconds=0.01, on_reap=on_reap)
        room = make_room(registry)
        scheduler.schedule(room.room_id)

        await asyncio.sleep(0.05)

        assert reaped == [room.room_id]

    async def test_callback_failure_is_logged(self, registry, caplog):
        async def on_reap(_room_id):
            raise ConnectionError("boom")

        scheduler = DeletionScheduler(registry, grace_seconds=0.01, on_reap=on_reap)
        room = make_room(registry)
        scheduler.schedule(room.room_id)

        await asyncio.sleep(0.05)

        assert registry.get(room.room_id) is None
        assert "reap callback failed" in caplog.text


def test_default_grace_period(registry):
    assert DeletionScheduler(registry).grace_seconds == DEFAULT_GRACE_SECONDS == 30.0
