"""
Grace-period reaping of rooms nobody is connected to.

When the last player of a room drops, a single asyncio task is scheduled to
remove the room after the grace period. Any reconnection cancels it before
it fires. The task is an appointment, not a poll: it does not re-check
liveness when it wakes, so every liveness change must go through evaluate().
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from mafia.logic.models import Room
    from mafia.session.registry import RoomRegistry

logger = structlog.get_logger()

DEFAULT_GRACE_SECONDS = 30.0

# Callback type: (room_id) -> Awaitable[None], invoked after the room is removed
ReapCallback = Callable[[str], Awaitable[None]]


class DeletionScheduler:
    """Keep at most one pending reap task per room id."""

    def __init__(
        self,
        registry: RoomRegistry,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        on_reap: ReapCallback | None = None,
    ) -> None:
        self._registry = registry
        self._grace_seconds = grace_seconds
        self._on_reap = on_reap
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def grace_seconds(self) -> float:
        return self._grace_seconds

    def pending(self, room_id: str) -> bool:
        return room_id in self._tasks

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    def evaluate(self, room: Room) -> None:
        """Schedule or cancel the reap to match the room's current liveness."""
        if room.has_connected_players:
            self.cancel(room.room_id)
        elif not self.pending(room.room_id):
            self.schedule(room.room_id)

    def schedule(self, room_id: str) -> None:
        """Start the grace timer. Requires a running event loop."""
        if room_id in self._tasks:
            raise RuntimeError(f"deletion already scheduled for room {room_id}")
        self._tasks[room_id] = asyncio.create_task(self._run(room_id))
        logger.info("room deletion scheduled", room_id=room_id, grace_seconds=self._grace_seconds)

    def cancel(self, room_id: str) -> None:
        """Cancel a pending reap. No-op when nothing is pending or it already fired."""
        task = self._tasks.pop(room_id, None)
        if task is None:
            return
        if not task.done():
            task.cancel()
        logger.info("room deletion cancelled", room_id=room_id)

    def cancel_all(self) -> None:
        for room_id in list(self._tasks):
            self.cancel(room_id)

    async def _run(self, room_id: str) -> None:
        try:
            await asyncio.sleep(self._grace_seconds)
        except asyncio.CancelledError:
            return
        # Past this point the reap is committed; clear the record first so a
        # cancel() issued from the callback is a no-op.
        self._tasks.pop(room_id, None)
        if self._registry.remove(room_id) is None:
            return
        logger.info("room reaped after grace period", room_id=room_id)
        if self._on_reap is None:
            return
        try:
            await self._on_reap(room_id)
        except (RuntimeError, OSError, ConnectionError, ValueError):  # fmt: skip
            logger.exception("reap callback failed", room_id=room_id)
