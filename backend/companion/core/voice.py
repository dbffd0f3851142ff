# backend/companion/core/voice.py
from __future__ import annotations
import base64
import logging
from enum import Enum
from typing import Optional

from companion.core.reflections import ReflectionStore
from companion.errors import CaptureBusy, InvalidTransition, PermissionDenied, TranscriptionFailed
from companion.schemas import Note, VoiceStatus
from companion.services.media import MediaCollaborator, MediaServiceError
from companion.services.microphone import Microphone, MicrophoneStream

logger = logging.getLogger(__name__)

VOICE_NOTE_PREFIX = "[Voice Note] "


class CaptureState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class VoiceCapture:
    """
    음성 메모: idle -> recording -> transcribing -> idle.
    한 번에 하나만 녹음할 수 있다. 마이크 스트림은 어느 경로로 끝나든 닫는다.
    """

    def __init__(self, media: MediaCollaborator, notes: ReflectionStore):
        self._media = media
        self._notes = notes
        self.state = CaptureState.IDLE
        self._stream: Optional[MicrophoneStream] = None
        # close() 마다 증가. 전사 도중 바뀌었으면 그 결과는 버린다
        self._generation = 0

    async def start_recording(self, microphone: Microphone) -> None:
        if self.state is not CaptureState.IDLE:
            raise CaptureBusy()
        try:
            stream = await microphone.open()
        except PermissionDenied:
            logger.info("[voice] microphone permission denied")
            raise
        except OSError as e:
            logger.warning("[voice] microphone device error: %s", e)
            raise PermissionDenied() from e
        self._stream = stream
        self.state = CaptureState.RECORDING

    def push(self, chunk: bytes) -> int:
        if self.state is not CaptureState.RECORDING or self._stream is None:
            raise InvalidTransition("Not recording.")
        self._stream.write(chunk)
        return self._stream.bytes_captured

    async def stop_recording(self) -> Note:
        if self.state is not CaptureState.RECORDING or self._stream is None:
            raise InvalidTransition("Not recording.")
        stream, self._stream = self._stream, None
        try:
            clip = stream.finish()
        finally:
            stream.close()
        self.state = CaptureState.TRANSCRIBING
        generation = self._generation
        client_id = self._notes.client_id

        try:
            encoded = base64.b64encode(clip.data).decode("ascii")
            text = await self._media.transcribe(encoded, clip.mime_type)
        except MediaServiceError as e:
            if generation == self._generation:
                self.state = CaptureState.IDLE
            logger.warning("[voice] transcription failed: %s", e)
            raise TranscriptionFailed() from e

        if generation != self._generation or client_id is None or self._notes.client_id != client_id:
            # 전사 도중 로그아웃/다른 내담자 로그인: 상태는 이미 새 캡처의 것
            logger.info("[voice] discarded late transcription for client %s", client_id)
            raise TranscriptionFailed("Your session ended before the voice note could be saved.")

        try:
            note = await self._notes.add(f"{VOICE_NOTE_PREFIX}{text}")
        finally:
            self.state = CaptureState.IDLE
        return note

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()
        self._generation += 1
        self.state = CaptureState.IDLE

    def status(self) -> VoiceStatus:
        captured = self._stream.bytes_captured if self._stream is not None else 0
        return VoiceStatus(state=self.state.value, bytes_captured=captured)
