import asyncio
import json
import logging
from typing import Protocol

from pydantic import ValidationError

from speakassist.config import settings
from speakassist.errors import MalformedResponse, RequestFailure
from speakassist.models.conversation import ConversationTurn
from speakassist.models.preferences import Preferences
from speakassist.models.suggestion import (
    WAIT_SUGGESTION,
    SuggestionRequest,
    SuggestionResult,
    fallback_result,
)

logger = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    async def complete(self, request: SuggestionRequest) -> str | dict: ...


class RequestGateway:
    """single entry point to the completion service.

    suggest() never raises: timeouts, transport errors and unusable responses
    all resolve to the fixed "wait and listen" result."""

    def __init__(
        self,
        backend: CompletionBackend,
        *,
        timeout_s: float | None = None,
        min_input_chars: int | None = None,
    ):
        self.backend = backend
        self.timeout_s = timeout_s if timeout_s is not None else settings.request_timeout_s
        self.min_input_chars = min_input_chars if min_input_chars is not None else settings.min_input_chars

    async def suggest(
        self,
        utterance: str,
        context_turns: list[ConversationTurn],
        preferences: Preferences,
    ) -> SuggestionResult:
        text = utterance.strip()
        if len(text) < self.min_input_chars:
            return fallback_result()

        request = SuggestionRequest(
            transcript=text,
            recent_history=[t.content for t in context_turns],
            response_style=preferences.response_style.value,
            language=preferences.language,
        )
        try:
            raw = await asyncio.wait_for(self.backend.complete(request), timeout=self.timeout_s)
            return parse_suggestion(raw)
        except asyncio.TimeoutError:
            logger.warning("completion timed out after %.1fs, using fallback", self.timeout_s)
        except (RequestFailure, MalformedResponse) as exc:
            logger.warning("completion unusable, using fallback: %s", exc)
        except Exception:
            logger.exception("unexpected completion error, using fallback")
        return fallback_result()


def parse_suggestion(raw: str | dict) -> SuggestionResult:
    """accept either bare text (simple mode) or a structured object"""
    if isinstance(raw, dict):
        return _from_payload(raw)
    if not isinstance(raw, str):
        raise MalformedResponse(f"unexpected completion type: {type(raw).__name__}")

    text = raw.strip()
    if text.startswith(("{", "[")):
        try:
            payload = json.loads(text)
        except ValueError:
            payload = None  # bracketed prose such as "[laughs] sure"
        if payload is not None:
            return _from_payload(payload)

    text = text.strip('"').strip()
    if not text:
        raise MalformedResponse("empty completion")
    if text == WAIT_SUGGESTION:
        return fallback_result()
    return SuggestionResult(suggestions=[text])


def _from_payload(payload: object) -> SuggestionResult:
    if not isinstance(payload, dict):
        raise MalformedResponse("structured completion must be a JSON object")

    suggestions = payload.get("suggestions")
    if not isinstance(suggestions, list):
        raise MalformedResponse("structured completion is missing 'suggestions'")
    cleaned = [s.strip() for s in suggestions if isinstance(s, str) and s.strip()]
    if not cleaned:
        raise MalformedResponse("structured completion has no usable suggestions")

    try:
        return SuggestionResult.model_validate({**payload, "suggestions": cleaned})
    except ValidationError as exc:
        raise MalformedResponse(f"structured completion failed validation: {exc}") from exc


def build_gateway() -> RequestGateway:
    if settings.completion_backend == "http":
        from speakassist.services.completion import HttpCompletionBackend
        return RequestGateway(HttpCompletionBackend())

    from speakassist.services.llm import OpenAIBackend
    return RequestGateway(OpenAIBackend())


_gateway: RequestGateway | None = None


def get_gateway() -> RequestGateway:
    global _gateway
    if _gateway is None:
        _gateway = build_gateway()
    return _gateway
