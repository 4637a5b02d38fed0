import random

import pytest

from auction.logic.engine import AuctionEngine
from auction.logic.pool import sample_pool
from auction.logic.registry import RoomRegistry
from auction.messaging.router import MessageRouter
from auction.session.manager import SessionManager
from auction.tests.helpers.rooms import MANUAL_TIMERS
from auction.tests.mocks import MockConnection


@pytest.fixture
def settings():
    return MANUAL_TIMERS


@pytest.fixture
def fired_timeouts():
    """(room_id, timeout_type, generation) of every timer that fired."""
    return []


@pytest.fixture
def make_engine(fired_timeouts, settings):
    async def on_timeout(room_id, timeout_type, generation):
        fired_timeouts.append((room_id, timeout_type, generation))

    def factory(pool=None, *, engine_settings=None, rng=None):
        return AuctionEngine(
            pool or sample_pool(),
            on_timeout=on_timeout,
            settings=engine_settings or settings,
            rng=rng or random.Random(7),
        )

    return factory


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def registry(settings):
    registry = RoomRegistry(settings)
    yield registry
    for room in registry.rooms():
        room.cancel_timers()


@pytest.fixture
async def session_manager(settings):
    manager = SessionManager(sample_pool(), settings=settings, rng=random.Random(7))
    yield manager
    await manager.shutdown()


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()
