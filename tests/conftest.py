# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock

from subtrack_core.auth import SessionStateStore
from subtrack_core.models import (
    BillingCycle,
    Category,
    Subscription,
    SubscriptionStatus,
)
from subtrack_core.offline import (
    InMemoryNotificationSettingsStore,
    InMemorySubscriptionStore,
    LocalCacheStore,
    LocalDatabase,
)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def owner_id():
    """Remote identity id of the federated test user"""
    return "5b9f3d7e-3c1a-4e0b-9b55-1f2e7c4d8a10"


@pytest.fixture
def owner_key():
    return "ada"


@pytest.fixture
def today():
    """Fixed reference date for window calculations"""
    return date(2026, 10, 18)


@pytest.fixture
def make_subscription(today):
    """Factory for stored subscriptions, renewal given as days from today"""
    counter = {"n": 0}

    def _make(
        name=None,
        cost=10.0,
        days=5,
        cycle=BillingCycle.MONTHLY,
        status=SubscriptionStatus.ACTIVE,
        category=Category.SOFTWARE,
        id=None,
    ):
        counter["n"] += 1
        return Subscription(
            id=id or f"00000000-0000-4000-8000-{counter['n']:012d}",
            name=name or f"Service {counter['n']}",
            cost=cost,
            renewal_date=today + timedelta(days=days),
            cycle=cycle,
            status=status,
            category=category,
        )

    return _make


@pytest.fixture
def sample_subscriptions(make_subscription):
    """Mixed list: monthly, annual and trial subscriptions"""
    return [
        make_subscription(name="Netflix", cost=15.99, days=3, category=Category.ENTERTAINMENT),
        make_subscription(name="Figma", cost=144.0, days=40, cycle=BillingCycle.ANNUALLY,
                          category=Category.DESIGN),
        make_subscription(name="Dropbox", cost=11.99, days=7, category=Category.STORAGE),
        make_subscription(name="Notion", cost=8.0, days=2, status=SubscriptionStatus.TRIAL),
    ]


# =============================================================================
# STORAGE FIXTURES
# =============================================================================

@pytest.fixture
def local_db(tmp_path):
    """SQLite key-value store in a temporary directory"""
    db = LocalDatabase(tmp_path / "subtrack.db").initialize()
    yield db
    db.close()


@pytest.fixture
def cache(local_db):
    return LocalCacheStore(local_db)


@pytest.fixture
def session_store():
    """Per-session store over a plain dict instead of st.session_state"""
    return SessionStateStore({})


@pytest.fixture
def remote_store():
    return InMemorySubscriptionStore()


@pytest.fixture
def settings_store():
    return InMemoryNotificationSettingsStore()


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_query():
    """Chainable Supabase query builder; execute() is awaited"""
    query = MagicMock()
    for method in ("select", "eq", "order", "limit", "delete", "insert", "upsert", "update"):
        getattr(query, method).return_value = query
    query.execute = AsyncMock(return_value=MagicMock(data=[]))
    return query


@pytest.fixture
def mock_supabase(mock_query):
    """Mock async Supabase client"""
    client = MagicMock()
    client.table.return_value = mock_query
    client.auth = MagicMock()
    for method in ("get_session", "get_user", "exchange_code_for_session", "set_session", "sign_out"):
        setattr(client.auth, method, AsyncMock(return_value=None))
    return client


@pytest.fixture
def mock_st_error(monkeypatch):
    """Capture st.error calls made by the error handlers"""
    from subtrack_core.errors import handlers

    error = MagicMock()
    monkeypatch.setattr(handlers.st, "error", error)
    return error
