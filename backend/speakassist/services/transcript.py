from speakassist.errors import StaleFragment
from speakassist.models.transcript import AccumulatedTranscript, TranscriptFragment


class TranscriptAccumulator:
    """merges interim/final recognition fragments into one growing transcript.

    interim and final results of the same utterance share a sequence index, so
    a fragment is stale once a later index has been applied or its own index
    has been finalized."""

    def __init__(self):
        self._finalized = ""
        self._interim = ""
        self._next_index = 0
        self._latest_index = 0

    @property
    def finalized(self) -> str:
        return self._finalized

    @property
    def interim(self) -> str:
        return self._interim

    def apply(self, fragment: TranscriptFragment) -> None:
        idx = fragment.sequence_index
        floor = max(self._next_index, self._latest_index)
        if idx < floor:
            raise StaleFragment(idx, floor)
        self._latest_index = idx

        if not fragment.is_final:
            self._interim = fragment.text.strip()
            return

        text = fragment.text.strip()
        if text:
            self._finalized = f"{self._finalized} {text}" if self._finalized else text
        self._interim = ""
        self._next_index = idx + 1

    def current_text(self) -> str:
        return self.snapshot().display_text

    def snapshot(self) -> AccumulatedTranscript:
        return AccumulatedTranscript(finalized=self._finalized, interim=self._interim)

    def reset(self) -> None:
        self._finalized = ""
        self._interim = ""
        self._next_index = 0
        self._latest_index = 0
