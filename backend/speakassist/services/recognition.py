import asyncio
import itertools
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from speakassist.config import settings
from speakassist.errors import PermissionDenied, RecognitionError
from speakassist.models.transcript import TranscriptFragment

logger = logging.getLogger(__name__)


class MicrophoneAccess(Protocol):
    async def acquire(self) -> None:
        """raise PermissionDenied when the capture device cannot be opened"""
        ...


class Recognizer(Protocol):
    def listen(self) -> AsyncIterator[TranscriptFragment]:
        """yield fragments for one recognition run, returning on benign end-of-stream"""
        ...

    async def stop(self) -> None: ...


class ReportedMicrophone:
    """permission outcome reported by a remote client before it starts streaming"""

    def __init__(self, granted: bool = False):
        self.granted = granted

    async def acquire(self) -> None:
        if not self.granted:
            raise PermissionDenied("microphone access denied")


class ContinuousRecognition:
    """keeps a recognizer running until stop() is called.

    benign end-of-stream and ordinary recognition errors restart the run;
    PermissionDenied is raised to the consumer."""

    def __init__(self, recognizer: Recognizer, restart_delay_s: float | None = None):
        self.recognizer = recognizer
        self.restart_delay_s = (
            restart_delay_s if restart_delay_s is not None else settings.recognition_restart_delay_s
        )
        self._stopped = False
        self.restarts = 0

    @property
    def stopped(self) -> bool:
        return self._stopped

    async def fragments(self) -> AsyncIterator[TranscriptFragment]:
        while not self._stopped:
            try:
                async for fragment in self.recognizer.listen():
                    if self._stopped:
                        return
                    yield fragment
            except PermissionDenied:
                self._stopped = True
                raise
            except RecognitionError as exc:
                logger.warning("recognition error, restarting: %s", exc)

            if self._stopped:
                return
            self.restarts += 1
            logger.debug("recognition run ended, restart #%d", self.restarts)
            await asyncio.sleep(self.restart_delay_s)

    async def stop(self) -> None:
        self._stopped = True
        await self.recognizer.stop()


_CLOSED = object()


class FragmentQueue:
    """non-blocking producer side; consumers always get the lowest pending sequence index"""

    def __init__(self):
        self._queue: asyncio.PriorityQueue = asyncio.PriorityQueue()
        self._arrival = itertools.count()

    def put(self, fragment: TranscriptFragment) -> None:
        self._queue.put_nowait((fragment.sequence_index, next(self._arrival), fragment))

    def close(self) -> None:
        # sorts after every real fragment so pending ones drain first
        self._queue.put_nowait((float("inf"), next(self._arrival), _CLOSED))

    def pending(self) -> int:
        return self._queue.qsize()

    def __aiter__(self):
        return self

    async def __anext__(self) -> TranscriptFragment:
        _, _, item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item
