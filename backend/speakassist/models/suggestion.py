from __future__ import annotations

import enum

from pydantic import BaseModel, Field

WAIT_SUGGESTION = "Wait and listen for a moment."


class SpeakingOpportunity(str, enum.Enum):
    GOOD = "good"
    NEUTRAL = "neutral"
    LISTEN = "listen"


class SuggestionRequest(BaseModel):
    """wire shape sent to the completion service"""

    transcript: str
    recent_history: list[str] = Field(default_factory=list, alias="recentHistory")
    response_style: str = Field("neutral", alias="responseStyle")
    language: str = "en"

    model_config = {"populate_by_name": True}


class SuggestionResult(BaseModel):
    topic: str = "unknown"
    intent: str = "unclear"
    group_mood: str = "neutral"
    speaking_opportunity: SpeakingOpportunity = SpeakingOpportunity.NEUTRAL
    assistive_cue: str = "Suggestion ready"
    suggestions: list[str] = Field(min_length=1)

    @property
    def primary(self) -> str:
        return self.suggestions[0]

    @property
    def is_wait(self) -> bool:
        return self.primary == WAIT_SUGGESTION


def fallback_result() -> SuggestionResult:
    return SuggestionResult(
        topic="unknown",
        intent="unclear",
        group_mood="neutral",
        speaking_opportunity=SpeakingOpportunity.LISTEN,
        assistive_cue="Listening mode",
        suggestions=[WAIT_SUGGESTION],
    )
