from __future__ import annotations
import os, asyncio, base64, logging
from datetime import datetime
from typing import List, Optional
from openai import OpenAI, APIConnectionError, RateLimitError, OpenAIError

from companion.config import (
    LEVEL_FOCUS, AUDIO_PROMPT_TEMPLATE, AUDIO_VOICE_INSTRUCTIONS,
    VIDEO_PROMPTS, VIDEO_FALLBACK_PROMPT,
    SUMMARY_SYSTEM_PROMPT, SUMMARY_PROMPT_TEMPLATE, SUMMARY_FALLBACK_TEXT,
    TRANSCRIBE_FALLBACK_TEXT,
)
from companion.schemas import Note
from companion.services.media import MediaServiceError
from companion.services.video_client import VideoJobClient, VideoFile

logger = logging.getLogger(__name__)

MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
TTS_MODEL = os.getenv("OPENAI_TTS_MODEL", "gpt-4o-mini-tts")
TTS_VOICE = os.getenv("OPENAI_TTS_VOICE", "coral")
TRANSCRIBE_MODEL = os.getenv("OPENAI_TRANSCRIBE_MODEL", "gpt-4o-mini-transcribe")
TIMEOUT = float(os.getenv("OPENAI_TIMEOUT_S", "60"))

_EXTENSIONS = {"audio/webm": "webm", "audio/ogg": "ogg", "audio/wav": "wav", "audio/mpeg": "mp3", "audio/mp4": "m4a"}


def build_audio_prompt(theme: str, level: int) -> str:
    return AUDIO_PROMPT_TEMPLATE.format(theme=theme, focus=LEVEL_FOCUS.get(level, LEVEL_FOCUS[1]))


def build_summary_prompt(notes: List[Note], range_label: str) -> str:
    notes_text = "\n".join(
        f"[{datetime.fromtimestamp(n.timestamp / 1000).strftime('%Y-%m-%d')}] {n.text}" for n in notes
    )
    return SUMMARY_PROMPT_TEMPLATE.format(range_label=range_label, notes_text=notes_text)


class OpenAIMediaService:
    """
    음성 합성, 전사, 요약은 OpenAI SDK 로, 영상은 작업형 REST API 로 생성한다.
    SDK 호출은 블로킹이라 asyncio.to_thread 로 돌린다.
    """

    def __init__(self, video_client: VideoJobClient, client: Optional[OpenAI] = None):
        self._video = video_client
        self._client_override = client
        self._client_cached: Optional[OpenAI] = None

    @property
    def _client(self) -> OpenAI:
        # OPENAI_API_KEY 는 env 로 자동 로딩; 키 없이도 서버는 떠야 하므로 첫 호출 때 만든다
        if self._client_override is not None:
            return self._client_override
        if self._client_cached is None:
            try:
                self._client_cached = OpenAI()
            except OpenAIError as e:
                raise MediaServiceError(f"OpenAI client unavailable: {e}") from e
        return self._client_cached

    async def generate_audio(self, theme: str, level: int) -> str:
        prompt = build_audio_prompt(theme, level)

        def _call():
            return self._client.audio.speech.create(
                model=TTS_MODEL,
                voice=TTS_VOICE,
                input=prompt,
                instructions=AUDIO_VOICE_INSTRUCTIONS,
                response_format="pcm",  # 24kHz mono 16bit LE
                timeout=TIMEOUT,
            )
        try:
            resp = await asyncio.to_thread(_call)
        except (RateLimitError, APIConnectionError, OpenAIError) as e:
            logger.error("[openai_media] audio generation failed: %s", e)
            raise MediaServiceError(f"OpenAI error: {e}") from e

        pcm = resp.content
        if not pcm:
            raise MediaServiceError("No audio data")
        return base64.b64encode(pcm).decode("ascii")

    async def generate_video(self, theme: str, *, cancelled: Optional[asyncio.Event] = None) -> VideoFile:
        prompt = VIDEO_PROMPTS.get(theme) or VIDEO_FALLBACK_PROMPT
        return await self._video.compose_and_wait(prompt, cancelled=cancelled)

    async def transcribe(self, encoded_audio: str, mime_type: str) -> str:
        raw = base64.b64decode(encoded_audio)
        filename = f"reflection.{_EXTENSIONS.get(mime_type, 'webm')}"

        def _call():
            return self._client.audio.transcriptions.create(
                model=TRANSCRIBE_MODEL,
                file=(filename, raw, mime_type),
                timeout=TIMEOUT,
            )
        try:
            resp = await asyncio.to_thread(_call)
        except (RateLimitError, APIConnectionError, OpenAIError) as e:
            logger.error("[openai_media] transcription failed: %s", e)
            raise MediaServiceError(f"OpenAI error: {e}") from e

        text = (getattr(resp, "text", None) or "").strip()
        return text or TRANSCRIBE_FALLBACK_TEXT

    async def summarize(self, notes: List[Note], range_label: str) -> str:
        messages = [
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": build_summary_prompt(notes, range_label)},
        ]

        def _call():
            return self._client.chat.completions.create(
                model=MODEL,
                messages=messages,
                timeout=TIMEOUT,
            )
        try:
            resp = await asyncio.to_thread(_call)
        except (RateLimitError, APIConnectionError, OpenAIError) as e:
            logger.error("[openai_media] summarization failed: %s", e)
            raise MediaServiceError(f"OpenAI error: {e}") from e

        try:
            content = resp.choices[0].message.content
        except (IndexError, AttributeError) as e:
            raise MediaServiceError(f"unexpected summary response: {e}") from e
        return (content or "").strip() or SUMMARY_FALLBACK_TEXT
