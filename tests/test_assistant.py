"""Tests for the finance assistant client."""

import base64
import json

import httpx
import pytest

from money_tracker.models.session import ChatMessage
from money_tracker.services.assistant import AssistantError, FinanceAssistantClient


FUNCTIONS = "https://test-project.supabase.co/functions/v1"


def _client(handler):
    return FinanceAssistantClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestAsk:

    @pytest.mark.asyncio
    async def test_posts_question_token_and_history(self, session):
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": "You spent Rp 50.000 on food."})

        history = [
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="assistant", content="Hello!"),
        ]
        answer = await _client(handler).ask("  How much on food?  ", session, history)

        assert answer == "You spent Rp 50.000 on food."
        assert captured["url"] == f"{FUNCTIONS}/ai-finance-chat"
        assert captured["auth"] == "Bearer access-token-1"
        assert captured["body"] == {
            "question": "How much on food?",
            "authToken": "access-token-1",
            "chatHistory": [
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello!"},
            ],
        }

    @pytest.mark.asyncio
    async def test_error_body_raises(self, session):
        def handler(request):
            return httpx.Response(500, json={"error": "Model overloaded"})

        with pytest.raises(AssistantError, match="Model overloaded"):
            await _client(handler).ask("Hi", session)

    @pytest.mark.asyncio
    async def test_empty_question_is_not_sent(self, session):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"response": "x"})

        with pytest.raises(AssistantError):
            await _client(handler).ask("   ", session)
        assert calls == []

    @pytest.mark.asyncio
    async def test_unreachable_service(self, session):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        with pytest.raises(AssistantError):
            await _client(handler).ask("Hi", session)


class TestTranscribe:

    @pytest.mark.asyncio
    async def test_sends_base64_audio(self, session):
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"text": " how much did I spend "})

        text = await _client(handler).transcribe(b"\x00\x01audio", session)

        assert text == "how much did I spend"
        assert captured["url"] == f"{FUNCTIONS}/speech-to-text"
        assert base64.b64decode(captured["body"]["audioData"]) == b"\x00\x01audio"

    @pytest.mark.asyncio
    async def test_empty_transcript_raises(self, session):
        def handler(request):
            return httpx.Response(200, json={"text": ""})

        with pytest.raises(AssistantError):
            await _client(handler).transcribe(b"audio", session)
