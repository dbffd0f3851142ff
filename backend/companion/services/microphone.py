# backend/companion/services/microphone.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Protocol

from companion.errors import PermissionDenied

WEBM_MIME = "audio/webm"


@dataclass
class AudioClip:
    data: bytes
    mime_type: str = WEBM_MIME


class MicrophoneStream(Protocol):
    bytes_captured: int

    def write(self, chunk: bytes) -> None: ...
    def finish(self) -> AudioClip: ...
    def close(self) -> None: ...


class Microphone(Protocol):
    async def open(self) -> MicrophoneStream: ...


class UploadedAudioStream:
    """프론트의 MediaRecorder 가 올려주는 청크를 모은다."""

    def __init__(self, mime_type: str = WEBM_MIME):
        self.mime_type = mime_type
        self._chunks: List[bytes] = []
        self.bytes_captured = 0
        self.closed = False

    def write(self, chunk: bytes) -> None:
        if self.closed:
            raise RuntimeError("microphone stream is closed")
        if chunk:
            self._chunks.append(chunk)
            self.bytes_captured += len(chunk)

    def finish(self) -> AudioClip:
        return AudioClip(data=b"".join(self._chunks), mime_type=self.mime_type)

    def close(self) -> None:
        self.closed = True
        self._chunks = []


class BrowserMicrophone:
    def __init__(self, granted: bool = True, mime_type: str = WEBM_MIME):
        self.granted = granted
        self.mime_type = mime_type

    async def open(self) -> UploadedAudioStream:
        if not self.granted:
            raise PermissionDenied()
        return UploadedAudioStream(self.mime_type)
