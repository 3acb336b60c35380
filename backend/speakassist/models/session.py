from __future__ import annotations

import enum
from typing import Literal

from pydantic import BaseModel

from speakassist.models.conversation import ConversationTurn
from speakassist.models.suggestion import SuggestionResult


class OrbState(str, enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SUGGESTING = "suggesting"


class SessionEvent(BaseModel):
    """outbound notification for hosting adapters"""

    type: Literal["state", "transcript", "suggestion", "error"]
    state: OrbState
    generation: int = 0

    # transcript fields
    finalized: str = ""
    interim: str = ""
    display_text: str = ""

    # suggestion fields
    suggestion: SuggestionResult | None = None
    history: list[ConversationTurn] = []

    # error fields
    code: str = ""
    detail: str = ""
