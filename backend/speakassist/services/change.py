from dataclasses import dataclass

from speakassist.config import settings


@dataclass(frozen=True)
class Trigger:
    content: str  # utterance handed to the gateway
    finalized: str  # transcript the trigger was computed from
    marker: int  # processed marker to commit if the trigger is accepted


class ChangeDetector:
    """tracks how much of the finalized transcript has been sent for suggestions.

    evaluate() is side-effect free; the marker only moves on commit(), so a
    trigger the orchestrator refuses leaves its suffix for the next fragment."""

    def __init__(self, threshold: int | None = None):
        self.threshold = threshold if threshold is not None else settings.change_threshold
        self._marker = 0
        self._last_trigger_text = ""

    @property
    def processed_marker(self) -> int:
        return self._marker

    def pending(self, finalized: str) -> str:
        return finalized[self._marker:].strip()

    def evaluate(self, finalized: str) -> Trigger | None:
        new_content = self.pending(finalized)
        if len(new_content) <= self.threshold or finalized == self._last_trigger_text:
            return None
        return Trigger(
            content=new_content or finalized.strip(),
            finalized=finalized,
            marker=len(finalized),
        )

    def commit(self, trigger: Trigger) -> None:
        self._marker = trigger.marker
        self._last_trigger_text = trigger.finalized

    def reset(self) -> None:
        self._marker = 0
        self._last_trigger_text = ""
