"""
Supabase Auth (GoTrue) Client

This service handles:
1. Password sign-in and sign-up
2. Session persistence on the device (so a restart stays signed in)
3. Refreshing an expired access token
4. Broadcasting sign-in/sign-out transitions to subscribers

The session is stored in the same local key/value store as anonymous
transactions, under its own key.
"""

import inspect
from typing import Any, Callable, Optional

import httpx
import structlog
from pydantic import ValidationError

from money_tracker.config import LocalStoreSettings, SupabaseSettings, get_settings
from money_tracker.models.session import AuthSession
from money_tracker.services.auth.interface import (
    AuthError,
    AuthServiceInterface,
    StateChangeCallback,
)
from money_tracker.services.storage.local import LocalKeyValueStore


logger = structlog.get_logger(__name__)


class SupabaseAuthService(AuthServiceInterface):
    """GoTrue implementation of the auth service."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        kv_store: Optional[LocalKeyValueStore] = None,
        settings: Optional[SupabaseSettings] = None,
        local_settings: Optional[LocalStoreSettings] = None,
    ):
        self._settings = settings or get_settings().supabase
        local_settings = local_settings or get_settings().local_store
        self._http = http_client or httpx.AsyncClient()
        self._kv = kv_store or LocalKeyValueStore(local_settings.path)
        self._session_key = local_settings.session_key
        self._session: Optional[AuthSession] = None
        self._restored = False
        self._callbacks: list[StateChangeCallback] = []

    # ------------------------------------------------------------------
    # Session persistence
    # ------------------------------------------------------------------

    def _restore(self) -> None:
        if self._restored:
            return
        self._restored = True
        raw = self._kv.get_item(self._session_key)
        if raw is None:
            return
        try:
            self._session = AuthSession.model_validate_json(raw)
        except ValidationError as e:
            logger.error("stored_session_invalid", error=str(e))
            self._kv.remove_item(self._session_key)

    def _store(self, session: Optional[AuthSession]) -> None:
        self._session = session
        self._restored = True
        if session is None:
            self._kv.remove_item(self._session_key)
        else:
            self._kv.set_item(self._session_key, session.model_dump_json())

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _headers(self, access_token: Optional[str] = None) -> dict[str, str]:
        return {
            "apikey": self._settings.anon_key,
            "Authorization": f"Bearer {access_token or self._settings.anon_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if isinstance(body, dict):
            for field in ("error_description", "msg", "message", "error"):
                if body.get(field):
                    return str(body[field])
        return f"Authentication request failed (HTTP {response.status_code})"

    async def _post(
        self,
        path: str,
        payload: dict[str, Any],
        params: Optional[dict[str, str]] = None,
        access_token: Optional[str] = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.post(
                f"{self._settings.auth_url}{path}",
                params=params,
                json=payload,
                headers=self._headers(access_token),
            )
        except httpx.TransportError as e:
            raise AuthError(f"Could not reach the authentication service: {e}")

        if response.is_error:
            raise AuthError(self._error_message(response))
        if not response.content:
            return {}
        return response.json()

    # ------------------------------------------------------------------
    # State change broadcasting
    # ------------------------------------------------------------------

    def on_state_change(self, callback: StateChangeCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def _emit(self, session: Optional[AuthSession]) -> None:
        for callback in list(self._callbacks):
            try:
                result = callback(session)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error("auth_state_callback_failed", error=str(e))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_session(self) -> Optional[AuthSession]:
        """Current session; an expired one is refreshed or dropped."""
        self._restore()
        session = self._session
        if session is None or not session.is_expired:
            return session

        if session.refresh_token:
            try:
                payload = await self._post(
                    "/token",
                    {"refresh_token": session.refresh_token},
                    params={"grant_type": "refresh_token"},
                )
                refreshed = AuthSession.from_token_response(payload)
                self._store(refreshed)
                logger.info("session_refreshed", user_id=refreshed.user_id)
                await self._emit(refreshed)
                return refreshed
            except (AuthError, KeyError, ValidationError) as e:
                logger.warning("session_refresh_failed", error=str(e))

        self._store(None)
        await self._emit(None)
        return None

    async def sign_in(self, email: str, password: str) -> AuthSession:
        payload = await self._post(
            "/token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        try:
            session = AuthSession.from_token_response(payload)
        except (KeyError, ValidationError) as e:
            raise AuthError(f"Unexpected sign-in response: {e}")

        self._store(session)
        logger.info("signed_in", user_id=session.user_id)
        await self._emit(session)
        return session

    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        payload = await self._post("/signup", {"email": email, "password": password})

        # With email confirmation enabled no session is issued yet
        if not payload.get("access_token"):
            logger.info("signed_up_pending_confirmation", email=email)
            return None

        try:
            session = AuthSession.from_token_response(payload)
        except (KeyError, ValidationError) as e:
            raise AuthError(f"Unexpected sign-up response: {e}")

        self._store(session)
        logger.info("signed_up", user_id=session.user_id)
        await self._emit(session)
        return session

    async def sign_out(self) -> None:
        self._restore()
        session = self._session
        if session is not None:
            try:
                await self._post("/logout", {}, access_token=session.access_token)
            except AuthError as e:
                # The local session is dropped regardless
                logger.warning("remote_sign_out_failed", error=str(e))

        self._store(None)
        logger.info("signed_out")
        await self._emit(None)
