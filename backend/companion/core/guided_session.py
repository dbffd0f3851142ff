# backend/companion/core/guided_session.py
"""
가이드 마음챙김 세션 1회분의 상태 머신.

    idle -> loading -> {presenting | failed} -> completed | cancelled

미디어 생성은 백그라운드 태스크에서 기다리고, 그 사이 cancel() 을 받을 수 있다.
진행 중인 외부 호출을 강제로 끊지는 않는다. 상태가 이미 loading 을 벗어났으면
결과를 버리고, 그 결과로 만든 자원은 바로 해제한다.
"""
from __future__ import annotations
import asyncio
import binascii
import logging
from enum import Enum
from typing import Callable, List, Optional, Union

from companion.config import LOADING_MESSAGES, INITIAL_LOADING_MESSAGE, LOADING_MESSAGE_INTERVAL_SEC
from companion.core.progress import ProgressTracker
from companion.core.reflections import ReflectionStore
from companion.errors import GenerationUnavailable, InvalidTransition, LevelUnavailable
from companion.schemas import GuidedSnapshot, MediaModality, MindfulnessTheme, Note
from companion.services.audio import WavFileOutput, create_audio_buffer, decode_pcm
from companion.services.media import MediaCollaborator, MediaResource, MediaServiceError

logger = logging.getLogger(__name__)


class GuidedState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PRESENTING = "presenting"
    FAILED = "failed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATES = (GuidedState.COMPLETED, GuidedState.CANCELLED)

AudioOutputFactory = Callable[[], WavFileOutput]


class LoadingTicker:
    """로딩 안내 문구를 주기적으로 바꾸는 타이머. 상태 머신에는 영향이 없다."""

    def __init__(
        self,
        messages: List[str] = LOADING_MESSAGES,
        interval: float = LOADING_MESSAGE_INTERVAL_SEC,
        initial: str = INITIAL_LOADING_MESSAGE,
    ):
        self.messages = list(messages)
        self.interval = interval
        self.message = initial
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running or not self.messages:
            return
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        idx = 0
        while True:
            await asyncio.sleep(self.interval)
            idx = (idx + 1) % len(self.messages)
            self.message = self.messages[idx]

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None


class GuidedSession:
    def __init__(
        self,
        theme: Union[MindfulnessTheme, str],
        modality: Union[MediaModality, str],
        level: int,
        *,
        media: MediaCollaborator,
        notes: ReflectionStore,
        progress: ProgressTracker,
        audio_output_factory: AudioOutputFactory,
        message_interval: float = LOADING_MESSAGE_INTERVAL_SEC,
    ):
        self.theme = MindfulnessTheme(theme)
        self.modality = MediaModality(modality)
        self.level = level
        self.state = GuidedState.IDLE
        self.error: Optional[str] = None

        self._media = media
        self._notes = notes
        self._progress = progress
        self._audio_output_factory = audio_output_factory
        self._ticker = LoadingTicker(interval=message_interval)
        self._cancelled = asyncio.Event()
        self._resource: Optional[MediaResource] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def loading_message(self) -> Optional[str]:
        return self._ticker.message if self.state is GuidedState.LOADING else None

    @property
    def media_url(self) -> Optional[str]:
        return self._resource.url if self._resource is not None else None

    def start(self) -> None:
        if self.state is not GuidedState.IDLE:
            raise InvalidTransition("This session has already been started.")
        self.state = GuidedState.LOADING
        self._ticker.start()
        self._task = asyncio.create_task(self._acquire())
        logger.info("[guided_session] loading %s %s level %d", self.theme.value, self.modality.value, self.level)

    async def wait_ready(self) -> None:
        """미디어 요청 태스크가 끝날 때까지 기다린다 (결과가 버려졌어도)."""
        if self._task is not None:
            await self._task

    async def _load_media(self) -> Optional[MediaResource]:
        if self.modality is MediaModality.VIDEO:
            return await self._media.generate_video(self.theme.value, cancelled=self._cancelled)

        encoded = await self._media.generate_audio(self.theme.value, self.level)
        if self.state is not GuidedState.LOADING:
            return None
        try:
            buffer = create_audio_buffer(decode_pcm(encoded))
        except (binascii.Error, ValueError) as e:
            raise MediaServiceError(f"undecodable audio payload: {e}") from e
        output = self._audio_output_factory()
        try:
            output.play(buffer)
        except OSError as e:
            output.close()
            raise MediaServiceError(f"audio output failed: {e}") from e
        return output

    async def _acquire(self) -> None:
        try:
            resource = await self._load_media()
        except MediaServiceError as e:
            self._on_failure(e)
            return
        except Exception as e:
            logger.exception("[guided_session] unexpected media error")
            self._on_failure(e)
            return

        if self.state is not GuidedState.LOADING:
            # 이미 취소됨: 늦게 도착한 결과는 버린다
            if resource is not None:
                resource.close()
            logger.info("[guided_session] discarded late media result (state=%s)", self.state.value)
            return

        self._ticker.stop()
        self._resource = resource
        self.state = GuidedState.PRESENTING
        logger.info("[guided_session] presenting %s", self.media_url)

    def _on_failure(self, exc: Exception) -> None:
        if self.state is not GuidedState.LOADING:
            logger.info("[guided_session] ignored failure after leaving loading: %s", exc)
            return
        self._ticker.stop()
        self.state = GuidedState.FAILED
        self.error = GenerationUnavailable.message
        logger.warning("[guided_session] generation failed: %s", exc)

    def _teardown(self) -> None:
        self._ticker.stop()
        resource, self._resource = self._resource, None
        if resource is not None:
            resource.close()

    async def complete(self, note_text: Optional[str] = None) -> Optional[Note]:
        if self.state is not GuidedState.PRESENTING:
            raise InvalidTransition("The session can only be completed while it is playing.")
        self._teardown()
        self.state = GuidedState.COMPLETED

        note = None
        text = (note_text or "").strip()
        if text:
            note = await self._notes.add(f"[{self.theme.value} Session] {text}")
        await self._progress.mark_complete(self.level)
        logger.info("[guided_session] level %d completed", self.level)
        return note

    def cancel(self) -> None:
        if self.finished:
            return
        self.state = GuidedState.CANCELLED
        self._cancelled.set()
        self._teardown()
        logger.info("[guided_session] cancelled")

    def close(self) -> None:
        """컴포넌트 정리. 어떤 상태에서 불러도 자원은 한 번만 해제된다."""
        self.cancel()
        self._teardown()

    def snapshot(self) -> GuidedSnapshot:
        return GuidedSnapshot(
            state=self.state.value,
            theme=self.theme,
            modality=self.modality,
            level=self.level,
            loading_message=self.loading_message,
            media_url=self.media_url,
            loop=self.modality is MediaModality.VIDEO and self.state is GuidedState.PRESENTING,
            error=self.error,
        )


class GuidedSessionRunner:
    """활성 가이드 세션 하나를 관리한다."""

    def __init__(
        self,
        media: MediaCollaborator,
        notes: ReflectionStore,
        progress: ProgressTracker,
        audio_output_factory: AudioOutputFactory,
        message_interval: float = LOADING_MESSAGE_INTERVAL_SEC,
    ):
        self._media = media
        self._notes = notes
        self._progress = progress
        self._audio_output_factory = audio_output_factory
        self._message_interval = message_interval
        self.current: Optional[GuidedSession] = None

    def start(self, theme, modality, level: int) -> GuidedSession:
        if self._progress.is_complete(level):
            raise LevelUnavailable(f"Level {level} is already complete. Reset to practice it again.")
        if self.current is not None and not self.current.finished:
            self.current.cancel()
        session = GuidedSession(
            theme, modality, level,
            media=self._media,
            notes=self._notes,
            progress=self._progress,
            audio_output_factory=self._audio_output_factory,
            message_interval=self._message_interval,
        )
        session.start()
        self.current = session
        return session

    async def complete(self, note_text: Optional[str] = None) -> Optional[Note]:
        if self.current is None:
            raise InvalidTransition("No guided session is active.")
        return await self.current.complete(note_text)

    def cancel(self) -> None:
        if self.current is not None:
            self.current.cancel()

    def close(self) -> None:
        if self.current is not None:
            self.current.close()
        self.current = None

    def snapshot(self) -> GuidedSnapshot:
        if self.current is None:
            return GuidedSnapshot(state=GuidedState.IDLE.value)
        return self.current.snapshot()
