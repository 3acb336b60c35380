from __future__ import annotations

import enum

from pydantic import BaseModel, Field


class ResponseStyle(str, enum.Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    SUPPORTIVE = "supportive"
    NEUTRAL = "neutral"


STYLE_DESCRIPTIONS = {
    ResponseStyle.NEUTRAL: "balanced, professional tone",
    ResponseStyle.FORMAL: "corporate, polished language",
    ResponseStyle.CASUAL: "friendly, conversational style",
    ResponseStyle.SUPPORTIVE: "empathetic, encouraging tone",
}


class Preferences(BaseModel):
    """user-facing response settings, owned by the hosting client and read-only here"""

    response_style: ResponseStyle = Field(ResponseStyle.NEUTRAL, alias="responseStyle")
    language: str = Field("en", min_length=2, max_length=16)

    model_config = {"populate_by_name": True, "frozen": True}
