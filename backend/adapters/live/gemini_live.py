"""
Gemini Live websocket transport.

Core model:
- One websocket per LiveSession. The session is opened by the voice link
  and closed by the voice link; this adapter never reconnects.
- Setup handshake: send `setup`, wait for `setupComplete`.
- Outbound audio: `realtimeInput.mediaChunks` with the envelope's wire unit.
- Inbound: `serverContent` carries operator transcription and agent audio.

Design constraints:
- Adapter must not own link state transitions.
- Errors after the handshake are reported via LiveCallbacks.on_error.
- A close requested through LiveSession.close() is silent.
"""

from __future__ import annotations

import asyncio
import json
import urllib.parse
from typing import Any

from websockets.asyncio.client import ClientConnection, connect as ws_connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from adapters.live.base import InboundMessage, LiveCallbacks, LiveSession, LiveTransport
from audio.frames import TransportEnvelope
from errors import ConfigurationError, DataCorruptionError, TransportError
from observability.logger import log_event
from spec import LIVE_CONNECT_TIMEOUT_S, LIVE_MODEL_DEFAULT, DEFAULT_VOICE


GEMINI_LIVE_URL = (
    "wss://generativelanguage.googleapis.com/ws/"
    "google.ai.generativelanguage.v1beta.GenerativeService.BidiGenerateContent"
)


# -------------------------------------------------------------------------
# Wire helpers (pure)
# -------------------------------------------------------------------------

def build_setup_message(*, model: str, voice_name: str) -> dict[str, Any]:
    return {
        "setup": {
            "model": model if model.startswith("models/") else f"models/{model}",
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {"voiceName": voice_name},
                    },
                },
            },
            "inputAudioTranscription": {},
        }
    }


def build_audio_message(envelope: TransportEnvelope) -> dict[str, Any]:
    return {"realtimeInput": {"mediaChunks": [envelope.to_wire()]}}


def parse_server_message(raw: str | bytes) -> InboundMessage | None:
    """
    Decode one server frame.

    Returns None for frames that carry nothing the link consumes
    (setupComplete, usage metadata, ...).

    Raises:
        DataCorruptionError if the frame is not a JSON object.
    """
    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        payload = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DataCorruptionError(f"undecodable server frame: {e}") from e

    if not isinstance(payload, dict):
        raise DataCorruptionError("server frame is not a JSON object")

    content = payload.get("serverContent")
    if not isinstance(content, dict):
        return None

    transcript: str | None = None
    transcript_final = False
    transcription = content.get("inputTranscription")
    if isinstance(transcription, dict) and transcription.get("text"):
        transcript = str(transcription["text"])
        transcript_final = bool(transcription.get("finished", False))

    chunks: list[str] = []
    model_turn = content.get("modelTurn")
    if not isinstance(model_turn, dict):
        model_turn = {}
    for part in model_turn.get("parts") or ():
        inline = part.get("inlineData") if isinstance(part, dict) else None
        if isinstance(inline, dict) and inline.get("data"):
            chunks.append(str(inline["data"]))

    turn_complete = bool(content.get("turnComplete", False))

    if transcript is None and not chunks and not turn_complete:
        return None

    return InboundMessage(
        transcript=transcript,
        transcript_final=transcript_final,
        audio_chunks=tuple(chunks),
        turn_complete=turn_complete,
    )


# -------------------------------------------------------------------------
# Session
# -------------------------------------------------------------------------

class GeminiLiveSession(LiveSession):
    """One open Gemini Live websocket plus its receive task."""

    def __init__(self, ws: ClientConnection, callbacks: LiveCallbacks) -> None:
        self._ws = ws
        self._callbacks = callbacks
        self._recv_task: asyncio.Task[None] | None = None
        self._closing = False

    def start(self) -> None:
        self._recv_task = asyncio.create_task(self._recv_loop())

    async def send_audio(self, envelope: TransportEnvelope) -> None:
        if self._closing:
            return
        try:
            await self._ws.send(json.dumps(build_audio_message(envelope)))
        except (ConnectionClosed, OSError) as e:
            raise TransportError(f"live send failed: {e}") from e

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True

        task, self._recv_task = self._recv_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        try:
            await self._ws.close()
        except (WebSocketException, OSError):
            pass  # already gone

    async def _recv_loop(self) -> None:
        try:
            async for raw in self._ws:
                try:
                    message = parse_server_message(raw)
                except DataCorruptionError as e:
                    log_event({
                        "event_type": "live_frame_discarded",
                        "level": "WARNING",
                        "error": str(e),
                    })
                    continue
                if message is not None:
                    await self._callbacks.on_message(message)
        except asyncio.CancelledError:
            raise
        except ConnectionClosedOK:
            pass
        except (ConnectionClosed, OSError) as e:
            if not self._closing:
                await self._callbacks.on_error(TransportError(f"live receive failed: {e}"))
            return

        if not self._closing:
            await self._callbacks.on_close()


# -------------------------------------------------------------------------
# Transport
# -------------------------------------------------------------------------

class GeminiLiveTransport(LiveTransport):
    """Opens GeminiLiveSession instances."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str = LIVE_MODEL_DEFAULT,
        voice_name: str = DEFAULT_VOICE,
        url: str = GEMINI_LIVE_URL,
        connect_timeout_s: float = LIVE_CONNECT_TIMEOUT_S,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._voice_name = voice_name
        self._url = url
        self._connect_timeout_s = connect_timeout_s

    async def connect(self, callbacks: LiveCallbacks) -> GeminiLiveSession:
        if not self._api_key:
            raise ConfigurationError("GEMINI_API_KEY missing")

        url = f"{self._url}?{urllib.parse.urlencode({'key': self._api_key})}"
        try:
            ws = await asyncio.wait_for(ws_connect(url), timeout=self._connect_timeout_s)
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            raise TransportError(f"live connect failed: {type(e).__name__}: {e}") from e

        try:
            await ws.send(json.dumps(
                build_setup_message(model=self._model, voice_name=self._voice_name)
            ))
            raw = await asyncio.wait_for(ws.recv(), timeout=self._connect_timeout_s)
            ack = json.loads(raw)
            if not isinstance(ack, dict) or "setupComplete" not in ack:
                raise TransportError(f"unexpected setup reply: {str(raw)[:200]}")
        # ValueError covers both JSONDecodeError and UnicodeDecodeError
        except (OSError, WebSocketException, asyncio.TimeoutError, ValueError) as e:
            await ws.close()
            raise TransportError(f"live setup failed: {type(e).__name__}: {e}") from e
        except TransportError:
            await ws.close()
            raise

        log_event({
            "event_type": "live_session_opened",
            "model": self._model,
            "voice": self._voice_name,
        })

        session = GeminiLiveSession(ws, callbacks)
        session.start()
        return session
