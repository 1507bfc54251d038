"""Tests for the auth service client."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from money_tracker.models.session import AuthSession
from money_tracker.services.auth import AuthError, SupabaseAuthService


def _token_body(user_id="user-1", token="access-1"):
    return {
        "access_token": token,
        "refresh_token": "refresh-1",
        "expires_in": 3600,
        "user": {"id": user_id, "email": "user@example.com"},
    }


class FakeAuthBackend:
    """Answers GoTrue endpoints from a path → (status, body) table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = request.url.path
        if "grant_type" in request.url.params:
            key = f"{key}?grant_type={request.url.params['grant_type']}"
        status, body = self.routes[key]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)


def _service(backend, kv_store):
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    return SupabaseAuthService(client, kv_store)


class TestSignIn:

    @pytest.mark.asyncio
    async def test_sign_in_persists_and_broadcasts(self, kv_store):
        backend = FakeAuthBackend({"/auth/v1/token?grant_type=password": (200, _token_body())})
        service = _service(backend, kv_store)
        received = []
        service.on_state_change(received.append)

        session = await service.sign_in("user@example.com", "secret")

        assert session.user_id == "user-1"
        assert received == [session]
        assert json.loads(kv_store.get_item("auth-session"))["access_token"] == "access-1"
        body = json.loads(backend.requests[0].content)
        assert body == {"email": "user@example.com", "password": "secret"}

    @pytest.mark.asyncio
    async def test_sign_in_failure_is_descriptive(self, kv_store):
        backend = FakeAuthBackend({
            "/auth/v1/token?grant_type=password": (
                400, {"error": "invalid_grant", "error_description": "Invalid login credentials"}
            ),
        })
        service = _service(backend, kv_store)

        with pytest.raises(AuthError, match="Invalid login credentials"):
            await service.sign_in("user@example.com", "wrong")
        assert kv_store.get_item("auth-session") is None

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self, kv_store):
        backend = FakeAuthBackend({"/auth/v1/token?grant_type=password": (200, _token_body())})
        service = _service(backend, kv_store)
        received = []

        async def callback(session):
            received.append(session.user_id)

        service.on_state_change(callback)
        await service.sign_in("user@example.com", "secret")
        assert received == ["user-1"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, kv_store):
        backend = FakeAuthBackend({"/auth/v1/token?grant_type=password": (200, _token_body())})
        service = _service(backend, kv_store)
        received = []
        unsubscribe = service.on_state_change(received.append)
        unsubscribe()

        await service.sign_in("user@example.com", "secret")
        assert received == []


class TestSignUpAndOut:

    @pytest.mark.asyncio
    async def test_sign_up_pending_confirmation(self, kv_store):
        backend = FakeAuthBackend({"/auth/v1/signup": (200, {"id": "user-1", "email": "user@example.com"})})
        service = _service(backend, kv_store)
        received = []
        service.on_state_change(received.append)

        assert await service.sign_up("user@example.com", "secret") is None
        assert received == []
        assert await service.get_session() is None

    @pytest.mark.asyncio
    async def test_sign_out_clears_session(self, kv_store):
        backend = FakeAuthBackend({
            "/auth/v1/token?grant_type=password": (200, _token_body()),
            "/auth/v1/logout": (204, None),
        })
        service = _service(backend, kv_store)
        received = []
        service.on_state_change(received.append)
        await service.sign_in("user@example.com", "secret")

        await service.sign_out()

        assert received[-1] is None
        assert kv_store.get_item("auth-session") is None
        assert backend.requests[-1].headers["authorization"] == "Bearer access-1"


class TestSessionRestore:

    @pytest.mark.asyncio
    async def test_session_survives_restart(self, kv_store):
        backend = FakeAuthBackend({"/auth/v1/token?grant_type=password": (200, _token_body())})
        await _service(backend, kv_store).sign_in("user@example.com", "secret")

        restored = await _service(backend, kv_store).get_session()
        assert restored is not None
        assert restored.user_id == "user-1"

    @pytest.mark.asyncio
    async def test_expired_session_is_refreshed(self, kv_store):
        expired = AuthSession(
            access_token="old",
            refresh_token="refresh-1",
            user_id="user-1",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=5),
        )
        kv_store.set_item("auth-session", expired.model_dump_json())
        backend = FakeAuthBackend({
            "/auth/v1/token?grant_type=refresh_token": (200, _token_body(token="fresh")),
        })
        service = _service(backend, kv_store)
        received = []
        service.on_state_change(received.append)

        session = await service.get_session()

        assert session.access_token == "fresh"
        assert [s.access_token for s in received] == ["fresh"]

    @pytest.mark.asyncio
    async def test_failed_refresh_signs_out(self, kv_store):
        expired = AuthSession(
            access_token="old",
            refresh_token="refresh-1",
            user_id="user-1",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=5),
        )
        kv_store.set_item("auth-session", expired.model_dump_json())
        backend = FakeAuthBackend({
            "/auth/v1/token?grant_type=refresh_token": (400, {"error_description": "Invalid Refresh Token"}),
        })
        service = _service(backend, kv_store)
        received = []
        service.on_state_change(received.append)

        assert await service.get_session() is None
        assert received == [None]
        assert kv_store.get_item("auth-session") is None
