"""
AI Finance Assistant Client

This service handles:
1. Sending a question (plus recent chat history) to the chat function
2. Sending recorded audio to the speech-to-text function
3. Converting the functions' {response} / {text} / {error} bodies into
   return values or AssistantError

CRITICAL: Both calls are POSTs. The offline cache never stores them,
so an answer is always computed from the user's current data.
"""

import base64
from typing import Optional

import httpx
import structlog

from money_tracker.config import AssistantSettings, SupabaseSettings, get_settings
from money_tracker.models.session import AuthSession, ChatMessage


logger = structlog.get_logger(__name__)


class AssistantError(Exception):
    """The assistant could not produce an answer."""
    pass


class FinanceAssistantClient:
    """
    Client for the finance chat and speech-to-text inference functions.

    Every call is authorized with the signed-in user's access token; the
    chat function reads that user's transactions server-side.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[AssistantSettings] = None,
        supabase_settings: Optional[SupabaseSettings] = None,
    ):
        self._settings = settings or get_settings().assistant
        self._supabase = supabase_settings or get_settings().supabase
        self._http = http_client or httpx.AsyncClient()

    def _function_url(self, name: str) -> str:
        return f"{self._supabase.functions_url}/{name}"

    def _headers(self, session: AuthSession) -> dict[str, str]:
        return {
            "apikey": self._supabase.anon_key,
            "Authorization": f"Bearer {session.access_token}",
            "Content-Type": "application/json",
        }

    async def _invoke(self, name: str, payload: dict, session: AuthSession) -> dict:
        try:
            response = await self._http.post(
                self._function_url(name),
                json=payload,
                headers=self._headers(session),
            )
        except httpx.TransportError as e:
            logger.warning("assistant_unreachable", function=name, error=str(e))
            raise AssistantError(f"Could not reach the assistant: {e}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if body.get("error") or response.is_error:
            message = body.get("error") or f"Assistant request failed (HTTP {response.status_code})"
            logger.warning(
                "assistant_error",
                function=name,
                status=response.status_code,
                error=message,
            )
            raise AssistantError(message)

        return body

    async def ask(
        self,
        question: str,
        session: AuthSession,
        chat_history: Optional[list[ChatMessage]] = None,
    ) -> str:
        """
        Ask a question about the user's finances.

        Args:
            question: Natural language question
            session: Authenticated session (its token is forwarded)
            chat_history: Previous turns, oldest first

        Returns:
            The assistant's answer

        Raises:
            AssistantError: On an {error} body, HTTP failure or empty answer
        """
        question = question.strip()
        if not question:
            raise AssistantError("Question is required")

        limit = self._settings.max_history
        history = (chat_history or [])[-limit:] if limit else []
        body = await self._invoke(
            self._settings.chat_function,
            {
                "question": question,
                "authToken": session.access_token,
                "chatHistory": [message.model_dump() for message in history],
            },
            session,
        )

        answer = body.get("response")
        if not isinstance(answer, str) or not answer.strip():
            raise AssistantError("The assistant returned an empty answer")
        return answer

    async def transcribe(self, audio: bytes, session: AuthSession) -> str:
        """
        Convert a recorded question to text.

        Raises:
            AssistantError: On an {error} body, HTTP failure or empty transcript
        """
        if not audio:
            raise AssistantError("Audio data is required")

        body = await self._invoke(
            self._settings.speech_function,
            {"audioData": base64.b64encode(audio).decode("ascii")},
            session,
        )

        text = body.get("text")
        if not isinstance(text, str) or not text.strip():
            raise AssistantError("Could not understand the recording")
        return text.strip()
