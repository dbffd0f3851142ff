# backend/companion/core/progress.py
from __future__ import annotations
from typing import Optional

from companion.core.storage import LocalPersistence
from companion.errors import LevelUnavailable
from companion.schemas import CompletionState

LEVELS = (1, 2, 3)


def _field(level: int) -> str:
    if level not in LEVELS:
        raise LevelUnavailable(f"Session level must be one of {LEVELS}, got {level}.")
    return f"wholeness{level}"


class ProgressTracker:
    """세 단계 가이드 세션의 완료 여부. 개별 초기화는 없고 reset_all 만 있다."""

    def __init__(self, persistence: LocalPersistence):
        self._persistence = persistence
        self._client_id: Optional[str] = None
        self._state = CompletionState()

    async def activate(self, client_id: str) -> None:
        self._client_id = client_id
        self._state = await self._persistence.load_completions(client_id)

    def clear(self) -> None:
        self._client_id = None
        self._state = CompletionState()

    @property
    def state(self) -> CompletionState:
        return self._state.model_copy()

    def is_complete(self, level: int) -> bool:
        return getattr(self._state, _field(level))

    async def mark_complete(self, level: int) -> None:
        updated = self._state.model_copy(update={_field(level): True})
        if self._client_id is not None:
            await self._persistence.save_completions(self._client_id, updated)
        self._state = updated

    async def reset_all(self) -> None:
        fresh = CompletionState()
        if self._client_id is not None:
            await self._persistence.save_completions(self._client_id, fresh)
        self._state = fresh
