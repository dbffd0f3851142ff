# backend/companion/core/reflections.py
from __future__ import annotations
import logging
from typing import Callable, List, Optional

from companion.core.clock import now_ms
from companion.core.storage import LocalPersistence
from companion.schemas import Note

logger = logging.getLogger(__name__)


class ReflectionStore:
    """
    활성 내담자의 노트 목록 (최신순).
    변경할 때마다 전체 목록을 저장소에 다시 쓴다.
    """

    def __init__(self, persistence: LocalPersistence, clock: Callable[[], int] = now_ms):
        self._persistence = persistence
        self._clock = clock
        self._client_id: Optional[str] = None
        self._notes: List[Note] = []

    @property
    def client_id(self) -> Optional[str]:
        return self._client_id

    async def activate(self, client_id: str) -> None:
        self._client_id = client_id
        self._notes = await self._persistence.load_notes(client_id)

    def clear(self) -> None:
        self._client_id = None
        self._notes = []

    def _next_id(self, timestamp: int) -> str:
        candidate = timestamp
        if self._notes:
            try:
                candidate = max(candidate, int(self._notes[0].id) + 1)
            except ValueError:
                pass
        return str(candidate)

    async def add(self, text: str) -> Optional[Note]:
        if self._client_id is None:
            return None
        timestamp = self._clock()
        note = Note(id=self._next_id(timestamp), text=text, timestamp=timestamp)
        updated = [note, *self._notes]
        await self._persistence.save_notes(self._client_id, updated)
        self._notes = updated
        logger.debug("[reflections] note %s added for client %s", note.id, self._client_id)
        return note

    async def remove(self, note_id: str) -> None:
        if self._client_id is None:
            return
        updated = [n for n in self._notes if n.id != note_id]
        if len(updated) == len(self._notes):
            return
        await self._persistence.save_notes(self._client_id, updated)
        self._notes = updated

    def list(self) -> List[Note]:
        return list(self._notes)

    def latest(self) -> Optional[Note]:
        return self._notes[0] if self._notes else None
