import asyncio
import base64
import struct
from typing import Dict, List, Optional

import pytest

from companion.core.state import CompanionState
from companion.directory import ClientDirectory, DEFAULT_CLIENTS
from companion.services.media import MediaServiceError


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self.writes: List[str] = []

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.writes.append(key)
        self.data[key] = value

    async def remove(self, key):
        self.writes.append(key)
        self.data.pop(key, None)


class FakeResource:
    def __init__(self, url="/static/video/fake.mp4"):
        self.url = url
        self.close_count = 0

    def close(self):
        self.close_count += 1


class FakeAudioOutput(FakeResource):
    def __init__(self):
        super().__init__(url=None)
        self.buffer = None

    def play(self, buffer):
        self.buffer = buffer
        self.url = "/static/audio/fake.wav"


class FakeMedia:
    """각 호출을 기록하고, gate 가 있으면 열릴 때까지 기다리는 가짜 AI 협력자."""

    def __init__(self):
        self.audio_pcm = struct.pack("<4h", 0, 16384, -32768, 32767)
        self.audio_error: Optional[Exception] = None
        self.video_error: Optional[Exception] = None
        self.transcript = "I felt lighter after the walk"
        self.transcribe_error: Optional[Exception] = None
        self.summary = "You are building steady habits."
        self.summary_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

        self.calls: Dict[str, int] = {"audio": 0, "video": 0, "transcribe": 0, "summarize": 0}
        self.videos: List[FakeResource] = []
        self.transcribed: List[tuple] = []
        self.summarized: List[tuple] = []

    async def _wait_gate(self):
        if self.gate is not None:
            await self.gate.wait()

    async def generate_audio(self, theme, level):
        self.calls["audio"] += 1
        await self._wait_gate()
        if self.audio_error:
            raise self.audio_error
        return base64.b64encode(self.audio_pcm).decode()

    async def generate_video(self, theme, *, cancelled=None):
        self.calls["video"] += 1
        await self._wait_gate()
        if self.video_error:
            raise self.video_error
        resource = FakeResource()
        self.videos.append(resource)
        return resource

    async def transcribe(self, encoded_audio, mime_type):
        self.calls["transcribe"] += 1
        self.transcribed.append((base64.b64decode(encoded_audio), mime_type))
        await self._wait_gate()
        if self.transcribe_error:
            raise self.transcribe_error
        return self.transcript

    async def summarize(self, notes, range_label):
        self.calls["summarize"] += 1
        self.summarized.append((list(notes), range_label))
        if self.summary_error:
            raise self.summary_error
        return self.summary


class FakeClock:
    def __init__(self, start=1_700_000_000_000):
        self.value = start

    def __call__(self):
        return self.value

    def advance(self, ms):
        self.value += ms


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def media():
    return FakeMedia()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def outputs():
    return []


@pytest.fixture
def companion(store, media, clock, outputs):
    def _factory():
        out = FakeAudioOutput()
        outputs.append(out)
        return out

    return CompanionState(
        ClientDirectory(DEFAULT_CLIENTS),
        store,
        media,
        _factory,
        clock=clock,
        message_interval=0.01,
    )


@pytest.fixture
def collaborator_error():
    return MediaServiceError("service unavailable")
