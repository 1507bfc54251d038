"""
Shared fixtures.

Every test runs with its own settings: a fake remote project, local
storage inside tmp_path, and the settings cache cleared on both sides.
"""

import pytest

from money_tracker.config import get_settings
from money_tracker.models.session import AuthSession
from money_tracker.notifications import CollectingNotificationSink, Notifier
from money_tracker.services.storage import (
    InMemoryRemoteStore,
    LocalKeyValueStore,
    LocalTransactionStore,
)


SUPABASE_URL = "https://test-project.supabase.co"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SUPABASE_URL", SUPABASE_URL)
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-test-key")
    monkeypatch.setenv("LOCAL_STORE_PATH", str(tmp_path / "local_storage.json"))
    monkeypatch.delenv("OFFLINE_CACHE_STORAGE_DIR", raising=False)
    monkeypatch.delenv("OFFLINE_CACHE_VERSION", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sink():
    return CollectingNotificationSink()


@pytest.fixture
def notifier(sink):
    return Notifier(sink)


@pytest.fixture
def kv_store(tmp_path):
    return LocalKeyValueStore(tmp_path / "local_storage.json")


@pytest.fixture
def local_store(kv_store):
    return LocalTransactionStore(kv_store)


@pytest.fixture
def remote_store():
    return InMemoryRemoteStore()


@pytest.fixture
def session():
    return AuthSession(
        access_token="access-token-1",
        refresh_token="refresh-token-1",
        user_id="user-1",
        email="user@example.com",
    )


@pytest.fixture
def other_session():
    return AuthSession(access_token="access-token-2", user_id="user-2")
