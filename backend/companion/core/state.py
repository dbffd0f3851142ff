# backend/companion/core/state.py
"""
앱 전체 상태 (컴포지션 루트).

브라우저 한 개에 해당하는 프로세스가 CompanionState 하나를 가지고,
라우터에는 FastAPI 의존성으로 넘겨준다. 활성 내담자는 최대 한 명이다.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional

from companion.config import LOADING_MESSAGE_INTERVAL_SEC
from companion.core.clock import now_ms
from companion.core.guided_session import AudioOutputFactory, GuidedSessionRunner
from companion.core.progress import ProgressTracker
from companion.core.reflections import ReflectionStore
from companion.core.storage import KeyValueStore, LocalPersistence
from companion.core.summarizer import HistorySummarizer
from companion.core.voice import VoiceCapture
from companion.directory import ClientDirectory
from companion.errors import InvalidCode, NotAuthenticated
from companion.schemas import AppTab, Client
from companion.services.media import MediaCollaborator

logger = logging.getLogger(__name__)


class CompanionState:
    def __init__(
        self,
        directory: ClientDirectory,
        store: KeyValueStore,
        media: MediaCollaborator,
        audio_output_factory: AudioOutputFactory,
        *,
        clock: Callable[[], int] = now_ms,
        message_interval: float = LOADING_MESSAGE_INTERVAL_SEC,
    ):
        self.directory = directory
        self.persistence = LocalPersistence(store)
        self.client: Optional[Client] = None
        self.active_tab = AppTab.TODAY
        self.growth_outcome = ""

        self.notes = ReflectionStore(self.persistence, clock=clock)
        self.progress = ProgressTracker(self.persistence)
        self.guided = GuidedSessionRunner(
            media, self.notes, self.progress, audio_output_factory, message_interval=message_interval
        )
        self.voice = VoiceCapture(media, self.notes)
        self.summarizer = HistorySummarizer(media, clock=clock)

    # --- Access Gate ---
    async def _activate(self, client: Client) -> None:
        await self.persistence.remember_code(client.code)
        await self.notes.activate(client.id)
        await self.progress.activate(client.id)
        self.growth_outcome = await self.persistence.load_growth_outcome(client.id)
        self.client = client

    async def attempt_login(self, code: str) -> Client:
        client = self.directory.find_by_code(code)
        if client is None:
            logger.info("[access] rejected access code")
            raise InvalidCode()
        if self.client is not None and self.client.id != client.id:
            self._teardown_activity()
        await self._activate(client)
        logger.info("[access] client %s logged in", client.id)
        return client

    async def restore_session(self) -> Optional[Client]:
        code = await self.persistence.remembered_code()
        if not code:
            return None
        client = self.directory.find_by_code(code)
        if client is None:
            # 디렉터리에서 빠진 코드: 오류 없이 로그아웃 상태로 시작
            logger.info("[access] remembered code no longer valid, starting signed out")
            return None
        await self._activate(client)
        logger.info("[access] restored session for client %s", client.id)
        return client

    async def logout(self) -> None:
        self._teardown_activity()
        await self.persistence.forget_code()
        self.client = None
        self.notes.clear()
        self.progress.clear()
        self.growth_outcome = ""
        self.active_tab = AppTab.TODAY
        logger.info("[access] logged out")

    def _teardown_activity(self) -> None:
        self.guided.close()
        self.voice.close()

    def require_client(self) -> Client:
        if self.client is None:
            raise NotAuthenticated()
        return self.client

    # --- Dashboard ---
    async def set_growth_outcome(self, text: str) -> str:
        client = self.require_client()
        await self.persistence.save_growth_outcome(client.id, text)
        self.growth_outcome = text
        return text

    def set_tab(self, tab: AppTab) -> AppTab:
        self.require_client()
        self.active_tab = AppTab(tab)
        return self.active_tab

    async def shutdown(self) -> None:
        self._teardown_activity()
