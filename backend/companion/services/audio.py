# backend/companion/services/audio.py
from __future__ import annotations
import os, sys, uuid, wave, base64, logging
from array import array
from dataclasses import dataclass
from typing import List, Optional

from companion.config import PCM_SAMPLE_RATE, PCM_CHANNELS

logger = logging.getLogger(__name__)


@dataclass
class AudioBuffer:
    samples: List[float]  # [-1, 1)
    sample_rate: int = PCM_SAMPLE_RATE
    channels: int = PCM_CHANNELS

    @property
    def duration_sec(self) -> float:
        return len(self.samples) / float(self.sample_rate)


def decode_pcm(encoded: str) -> bytes:
    return base64.b64decode(encoded)


def create_audio_buffer(data: bytes, sample_rate: int = PCM_SAMPLE_RATE) -> AudioBuffer:
    """16bit little-endian PCM 바이트를 [-1, 1) 실수 샘플로 변환한다. 홀수 바이트는 버린다."""
    pcm = array("h")
    pcm.frombytes(data[: len(data) - (len(data) % 2)])
    if sys.byteorder == "big":
        pcm.byteswap()
    return AudioBuffer(samples=[s / 32768.0 for s in pcm], sample_rate=sample_rate)


class WavFileOutput:
    """
    서버에서의 오디오 출력 장치.
    버퍼를 static/audio 아래 WAV 파일로 렌더링하고 URL 로 내보낸다.
    close 하면 파일을 지운다.
    """

    def __init__(self, directory: str, url_prefix: str = "/static/audio"):
        self.directory = directory
        self.url_prefix = url_prefix.rstrip("/")
        self.path: Optional[str] = None
        self.url: Optional[str] = None
        self._closed = False

    def play(self, buffer: AudioBuffer) -> None:
        if self._closed:
            raise RuntimeError("audio output already closed")
        os.makedirs(self.directory, exist_ok=True)
        name = f"{uuid.uuid4().hex}.wav"
        path = os.path.join(self.directory, name)
        frames = array("h", (max(-32768, min(32767, int(round(s * 32768)))) for s in buffer.samples))
        if sys.byteorder == "big":
            frames.byteswap()
        with wave.open(path, "wb") as wav:
            wav.setnchannels(buffer.channels)
            wav.setsampwidth(2)
            wav.setframerate(buffer.sample_rate)
            wav.writeframes(frames.tobytes())
        self.path = path
        self.url = f"{self.url_prefix}/{name}"
        logger.info("[audio] rendered %.1fs of audio to %s", buffer.duration_sec, path)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.path and os.path.exists(self.path):
            os.remove(self.path)
        self.url = None
