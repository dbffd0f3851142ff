# backend/companion/services/media.py
from __future__ import annotations
import asyncio
from typing import List, Optional, Protocol

from companion.schemas import Note


class MediaServiceError(RuntimeError):
    pass

class VideoJobCancelled(MediaServiceError):
    pass


class MediaResource(Protocol):
    """재생 중인 미디어 자원. close 는 여러 번 불러도 한 번만 해제된다."""
    url: Optional[str]

    def close(self) -> None: ...


class MediaCollaborator(Protocol):
    async def generate_audio(self, theme: str, level: int) -> str:
        """base64 로 인코딩된 24kHz mono 16bit PCM"""
        ...

    async def generate_video(self, theme: str, *, cancelled: Optional[asyncio.Event] = None) -> MediaResource:
        ...

    async def transcribe(self, encoded_audio: str, mime_type: str) -> str:
        ...

    async def summarize(self, notes: List[Note], range_label: str) -> str:
        ...
