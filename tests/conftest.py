"""
Shared fixtures.

Every test gets a fresh in-memory fund and a clock frozen at
2024-03-15 10:30 that tests can move forward.
"""

from datetime import datetime

import pytest

from savings_fund.orchestrator import FundApp
from savings_fund.services.storage import FundRepository, MemoryStore


class FakeClock:
    """Callable stand-in for datetime.now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 15, 10, 30))


@pytest.fixture
def repository():
    return FundRepository(MemoryStore())


@pytest.fixture
def app(repository, clock):
    return FundApp(repository, clock=clock)


@pytest.fixture
def admin(app):
    """The first registered user, who becomes the admin."""
    result = app.membership.register("Ana Admin", "admin@fund.test", "secret1")
    assert result.success
    return result.value


@pytest.fixture
def member(app, admin):
    result = app.membership.create_user("Bruno Diaz", "bruno@fund.test", acting_admin_id=admin.id)
    assert result.success
    return result.value


@pytest.fixture
def other_member(app, admin):
    result = app.membership.create_user("Carla Gomez", "carla@fund.test", acting_admin_id=admin.id)
    assert result.success
    return result.value
