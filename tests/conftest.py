from datetime import datetime, timezone

import pytest

from jigesh.auth.gateway import AuthGateway
from jigesh.services.admin_ops import AdminOperations
from jigesh.services.quota_tracker import QuotaTracker
from jigesh.services.record_store import RecordStore
from jigesh.services.session_manager import SessionManager
from jigesh.services.subscription import SubscriptionWorkflow
from jigesh.utils.clock import FrozenClock

# Low bcrypt cost keeps the suite fast
TEST_ROUNDS = 4


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 15, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "data")


@pytest.fixture
def sessions(store, clock):
    return SessionManager(store, client_id="student-tab", clock=clock)


@pytest.fixture
def auth(store, sessions, clock):
    return AuthGateway(store, sessions, clock=clock, bcrypt_rounds=TEST_ROUNDS)


@pytest.fixture
def quota(store, clock):
    return QuotaTracker(store, clock=clock, daily_limit=50)


@pytest.fixture
def subscriptions(store, clock):
    return SubscriptionWorkflow(store, clock=clock)


@pytest.fixture
def admin(store, subscriptions, clock):
    return AdminOperations(store, subscriptions, clock=clock)


@pytest.fixture
def student(auth, sessions):
    account = auth.register("a@x.com", "secret1")
    return sessions.complete_profile("Rahim", "Dhaka College", "12")
