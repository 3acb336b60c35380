"""
Shared fakes for session testing.

Provides:
- FakeGateway: RequestGateway stand-in that can hold a request open
- FakeBackend: completion backend for driving the real RequestGateway
- FakeMicrophone: capability provider that grants or denies access
"""

import asyncio

import pytest

from speakassist.errors import PermissionDenied
from speakassist.models.preferences import Preferences
from speakassist.models.suggestion import SpeakingOpportunity, SuggestionResult
from speakassist.models.transcript import TranscriptFragment
from speakassist.services.history import HistoryWindow
from speakassist.services.orchestrator import SuggestionOrchestrator


def final(text: str, idx: int) -> TranscriptFragment:
    return TranscriptFragment(text=text, is_final=True, sequence_index=idx)


def interim(text: str, idx: int) -> TranscriptFragment:
    return TranscriptFragment(text=text, is_final=False, sequence_index=idx)


def make_result(*suggestions: str) -> SuggestionResult:
    return SuggestionResult(
        topic="project status",
        intent="status update",
        group_mood="focused",
        speaking_opportunity=SpeakingOpportunity.GOOD,
        assistive_cue="Share an update",
        suggestions=list(suggestions) or ["The rollout is on track for Friday."],
    )


class FakeGateway:
    def __init__(self, result: SuggestionResult | None = None, *, block: bool = False):
        self.result = result or make_result()
        self.block = block
        self.release = asyncio.Event()
        self.error: Exception | None = None
        self.calls: list[dict] = []

    async def suggest(self, utterance, context_turns, preferences) -> SuggestionResult:
        self.calls.append({
            "utterance": utterance,
            "context": [t.content for t in context_turns],
            "preferences": preferences,
        })
        if self.block:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


class FakeBackend:
    def __init__(self, response: str | dict = "Let's move on to the next item."):
        self.response = response
        self.delay = 0.0
        self.error: Exception | None = None
        self.requests = []

    async def complete(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


class FakeMicrophone:
    def __init__(self, granted: bool = True):
        self.granted = granted
        self.acquired = 0

    async def acquire(self) -> None:
        if not self.granted:
            raise PermissionDenied("microphone access denied")
        self.acquired += 1


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def microphone() -> FakeMicrophone:
    return FakeMicrophone()


@pytest.fixture
def history() -> HistoryWindow:
    return HistoryWindow(context_turns=3, display_turns=20)


@pytest.fixture
def orchestrator(gateway, microphone, history):
    orch = SuggestionOrchestrator(
        gateway,
        microphone,
        Preferences(response_style="casual", language="en"),
        history,
        threshold=10,
        cooldown_seconds=0.01,
    )
    orch.events = []
    orch.subscribe(orch.events.append)
    return orch
