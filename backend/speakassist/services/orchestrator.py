import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Callable

from speakassist.config import settings
from speakassist.errors import PermissionDenied, StaleFragment, StaleResponse
from speakassist.models.conversation import ConversationTurn
from speakassist.models.preferences import Preferences
from speakassist.models.session import OrbState, SessionEvent
from speakassist.models.suggestion import SuggestionResult
from speakassist.models.transcript import TranscriptFragment
from speakassist.services.change import ChangeDetector, Trigger
from speakassist.services.gateway import RequestGateway
from speakassist.services.history import HistoryWindow
from speakassist.services.recognition import MicrophoneAccess
from speakassist.services.transcript import TranscriptAccumulator

logger = logging.getLogger(__name__)

Listener = Callable[[SessionEvent], None]


class SuggestionOrchestrator:
    """one listening session: transcript -> change detection -> suggestion requests.

    at most one request is in flight; triggers are only accepted in LISTENING.
    each start() opens a new generation and responses from an older generation
    are discarded when they land."""

    def __init__(
        self,
        gateway: RequestGateway,
        microphone: MicrophoneAccess,
        preferences: Preferences | None = None,
        history: HistoryWindow | None = None,
        *,
        threshold: int | None = None,
        cooldown_seconds: float | None = None,
    ):
        self.gateway = gateway
        self.microphone = microphone
        self.preferences = preferences or Preferences()
        self.history = history or HistoryWindow()
        self.cooldown_seconds = cooldown_seconds if cooldown_seconds is not None else settings.cooldown_seconds

        self.accumulator = TranscriptAccumulator()
        self.detector = ChangeDetector(threshold)
        self.state = OrbState.IDLE
        self.generation = 0
        self.last_suggestion: SuggestionResult | None = None

        self._active = False
        self._request_task: asyncio.Task | None = None
        self._requests: set[asyncio.Task] = set()  # strong refs until each task finishes
        self._cooldown_task: asyncio.Task | None = None
        self._listeners: list[Listener] = []

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pending_request(self) -> asyncio.Task | None:
        if self._request_task and not self._request_task.done():
            return self._request_task
        return None

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # -- session lifecycle --

    async def start(self) -> None:
        if self.state != OrbState.IDLE:
            return
        try:
            await self.microphone.acquire()
        except PermissionDenied as exc:
            logger.warning("cannot start listening: %s", exc)
            self._emit(SessionEvent(
                type="error", state=self.state, generation=self.generation,
                code="permission_denied", detail=str(exc),
            ))
            raise

        self.generation += 1
        self._active = True
        self.accumulator.reset()
        self.detector.reset()
        self.history.clear_context()
        self.last_suggestion = None
        self._set_state(OrbState.LISTENING)

    async def stop(self) -> None:
        self._active = False
        self.generation += 1
        self._cancel_cooldown()
        self._cancel_request()
        self.accumulator.reset()
        self.detector.reset()
        self.history.clear_context()
        self.last_suggestion = None
        if self.state != OrbState.IDLE:
            self._set_state(OrbState.IDLE)

    def update_preferences(self, preferences: Preferences) -> None:
        self.preferences = preferences

    def clear_history(self) -> None:
        self.history.clear()
        self.last_suggestion = None

    # -- transcript input --

    def handle_fragment(self, fragment: TranscriptFragment) -> Trigger | None:
        """apply one fragment and start a request if the change detector fires.

        returns the accepted trigger, if any. must run inside the event loop."""
        if not self._active:
            logger.debug("fragment %d ignored, session not active", fragment.sequence_index)
            return None
        try:
            self.accumulator.apply(fragment)
        except StaleFragment as exc:
            logger.warning("dropping fragment: %s", exc)
            return None

        snapshot = self.accumulator.snapshot()
        self._emit(SessionEvent(
            type="transcript", state=self.state, generation=self.generation,
            finalized=snapshot.finalized, interim=snapshot.interim,
            display_text=snapshot.display_text,
        ))

        trigger = self.detector.evaluate(snapshot.finalized)
        if trigger is None:
            return None
        if self.state != OrbState.LISTENING:
            logger.debug("trigger deferred while %s (%d chars pending)", self.state.value, len(trigger.content))
            return None

        self.detector.commit(trigger)
        self._begin_request(trigger.content)
        return trigger

    async def consume(self, fragments: AsyncIterator[TranscriptFragment]) -> None:
        """pump a recognition stream into the session until it ends"""
        try:
            async for fragment in fragments:
                self.handle_fragment(fragment)
        except PermissionDenied as exc:
            logger.warning("recognition lost microphone access: %s", exc)
            self._emit(SessionEvent(
                type="error", state=self.state, generation=self.generation,
                code="permission_denied", detail=str(exc),
            ))
            await self.stop()

    # -- request / cooldown --

    def _begin_request(self, utterance: str) -> None:
        self._set_state(OrbState.PROCESSING)
        task = asyncio.create_task(
            self._request(
                utterance,
                self.history.context_slice(),
                self.preferences,
                self.generation,
            )
        )
        self._requests.add(task)
        task.add_done_callback(self._requests.discard)
        self._request_task = task

    async def _request(
        self,
        utterance: str,
        context: list[ConversationTurn],
        preferences: Preferences,
        generation: int,
    ) -> None:
        try:
            result = await self.gateway.suggest(utterance, context, preferences)
        except Exception:
            logger.exception("gateway raised instead of falling back")
            if generation == self.generation and self.state == OrbState.PROCESSING:
                self._set_state(OrbState.LISTENING)
            return

        try:
            self._apply_response(utterance, result, generation)
        except StaleResponse as exc:
            logger.info("discarding response: %s", exc)

    def _apply_response(self, utterance: str, result: SuggestionResult, generation: int) -> None:
        if generation != self.generation or not self._active:
            raise StaleResponse(f"generation {generation} ended, current is {self.generation}")

        self.history.add_user(utterance)
        if not result.is_wait:
            self.history.add_assistant(result.primary)
        self.last_suggestion = result

        self._set_state(OrbState.SUGGESTING)
        self._emit(SessionEvent(
            type="suggestion", state=self.state, generation=self.generation,
            suggestion=result, history=self.history.display_slice(),
        ))
        self._cooldown_task = asyncio.create_task(self._cooldown(generation))

    async def _cooldown(self, generation: int) -> None:
        await asyncio.sleep(self.cooldown_seconds)
        if self._active and generation == self.generation and self.state == OrbState.SUGGESTING:
            self._set_state(OrbState.LISTENING)

    def _cancel_request(self) -> None:
        # a response that lands before the cancellation takes effect is still
        # rejected by the generation check
        if self._request_task and not self._request_task.done():
            self._request_task.cancel()
        self._request_task = None

    def _cancel_cooldown(self) -> None:
        if self._cooldown_task and not self._cooldown_task.done():
            self._cooldown_task.cancel()
        self._cooldown_task = None

    # -- notifications --

    def _set_state(self, state: OrbState) -> None:
        if state == self.state:
            return
        logger.info("session %d: %s -> %s", self.generation, self.state.value, state.value)
        self.state = state
        self._emit(SessionEvent(type="state", state=state, generation=self.generation))

    def _emit(self, event: SessionEvent) -> None:
        for listener in self._listeners:
            listener(event)
