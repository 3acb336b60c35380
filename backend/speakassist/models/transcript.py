from __future__ import annotations

from pydantic import BaseModel, Field


class TranscriptFragment(BaseModel):
    text: str
    is_final: bool = Field(False, alias="isFinal")
    sequence_index: int = Field(alias="sequenceIndex", ge=0)

    model_config = {"populate_by_name": True, "frozen": True}


class AccumulatedTranscript(BaseModel):
    finalized: str = ""
    interim: str = ""  # replaced on every recognition update, never part of history

    @property
    def display_text(self) -> str:
        if self.interim:
            return f"{self.finalized} {self.interim}"
        return self.finalized
