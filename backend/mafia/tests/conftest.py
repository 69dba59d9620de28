import random

import pytest

from mafia.messaging.router import MessageRouter
from mafia.server.app import create_app
from mafia.server.settings import MafiaServerSettings
from mafia.session.deletion import DeletionScheduler
from mafia.session.identity import SessionIdentity
from mafia.session.manager import SessionManager
from mafia.session.membership import MembershipManager
from mafia.session.registry import RoomRegistry
from mafia.tests.helpers.rooms import SHORT_GRACE_SECONDS
from mafia.tests.mocks import MockConnection


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def identity():
    return SessionIdentity()


@pytest.fixture
async def scheduler(registry):
    scheduler = DeletionScheduler(registry, grace_seconds=SHORT_GRACE_SECONDS)
    yield scheduler
    scheduler.cancel_all()


@pytest.fixture
def membership(registry, scheduler, identity):
    return MembershipManager(registry, scheduler, identity)


@pytest.fixture
async def session_manager(rng):
    manager = SessionManager(grace_seconds=SHORT_GRACE_SECONDS, rng=rng)
    yield manager
    manager.cancel_all_deletions()


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def app(rng):
    settings = MafiaServerSettings(room_grace_seconds=SHORT_GRACE_SECONDS)
    return create_app(settings=settings, session_manager=SessionManager(grace_seconds=SHORT_GRACE_SECONDS, rng=rng))
