import asyncio
import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from speakassist.errors import PermissionDenied
from speakassist.models.preferences import Preferences
from speakassist.models.session import SessionEvent
from speakassist.models.transcript import TranscriptFragment
from speakassist.services.gateway import RequestGateway, get_gateway
from speakassist.services.orchestrator import SuggestionOrchestrator
from speakassist.services.recognition import FragmentQueue, ReportedMicrophone

logger = logging.getLogger(__name__)

router = APIRouter()


class AssistConnection:
    """adapts one websocket client to a SuggestionOrchestrator.

    the display history and preferences live as long as the connection;
    transcript state lives between a start and a stop message."""

    def __init__(self, ws: WebSocket, gateway: RequestGateway):
        self.ws = ws
        self.microphone = ReportedMicrophone()
        self.orchestrator = SuggestionOrchestrator(gateway, self.microphone)
        self.outbox: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self.orchestrator.subscribe(self.outbox.put_nowait)
        self._fragments: FragmentQueue | None = None
        self._pump: asyncio.Task | None = None

    async def handle(self, msg: dict) -> None:
        kind = msg.get("type")
        if kind == "start":
            await self._start(msg)
        elif kind == "fragment":
            self._fragment(msg)
        elif kind == "stop":
            await self._stop()
        elif kind == "preferences":
            self.orchestrator.update_preferences(Preferences.model_validate(msg.get("preferences") or {}))
        elif kind == "clear_history":
            self.orchestrator.clear_history()
        else:
            self.error("bad_message", f"unknown message type: {kind!r}")

    async def _start(self, msg: dict) -> None:
        if "preferences" in msg:
            self.orchestrator.update_preferences(Preferences.model_validate(msg["preferences"] or {}))
        self.microphone.granted = msg.get("microphone") == "granted"
        try:
            await self.orchestrator.start()
        except PermissionDenied:
            return  # the orchestrator already queued the error event

        if self._pump is None:
            self._fragments = FragmentQueue()
            self._pump = asyncio.create_task(self.orchestrator.consume(self._fragments))

    def _fragment(self, msg: dict) -> None:
        fragment = TranscriptFragment.model_validate(
            {k: v for k, v in msg.items() if k != "type"}
        )
        if self._fragments is None:
            self.error("bad_message", "send a start message before fragments")
            return
        self._fragments.put(fragment)

    async def _stop(self) -> None:
        await self._close_pump()
        await self.orchestrator.stop()

    async def _close_pump(self) -> None:
        if self._fragments is not None:
            self._fragments.close()
        if self._pump is not None:
            await self._pump
        self._fragments, self._pump = None, None

    def error(self, code: str, detail: str) -> None:
        self.outbox.put_nowait(SessionEvent(
            type="error", state=self.orchestrator.state,
            generation=self.orchestrator.generation, code=code, detail=detail,
        ))

    async def send_events(self) -> None:
        while True:
            event = await self.outbox.get()
            await self.ws.send_json(event.model_dump(mode="json", exclude_none=True))

    async def close(self) -> None:
        await self._stop()


@router.websocket("/ws")
async def assist_ws(ws: WebSocket, gateway: RequestGateway = Depends(get_gateway)):
    """live suggestion session over a websocket.
    send: {"type": "start", "microphone": "granted", "preferences": {...}}
          {"type": "fragment", "text": "...", "isFinal": true, "sequenceIndex": 0}
          {"type": "stop"} | {"type": "preferences", ...} | {"type": "clear_history"}
    recv: session events ({"type": "state" | "transcript" | "suggestion" | "error", ...})"""
    await ws.accept()
    conn = AssistConnection(ws, gateway)
    sender = asyncio.create_task(conn.send_events())

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
                if not isinstance(msg, dict):
                    raise ValueError("message must be a JSON object")
                await conn.handle(msg)
            except (ValueError, ValidationError) as exc:
                conn.error("bad_message", str(exc))
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("assist websocket failed")
        await ws.close(code=1011)
    finally:
        await conn.close()
        sender.cancel()
