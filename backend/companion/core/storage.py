# backend/companion/core/storage.py
from __future__ import annotations
import json
import logging
from typing import List, Optional, Protocol

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from companion.models import KeyValueEntry
from companion.schemas import Note, CompletionState

logger = logging.getLogger(__name__)

REMEMBERED_CODE_KEY = "therapy_client_code"
NOTES_PREFIX = "spring_notes"
COMPLETIONS_PREFIX = "spring_completions"
GROWTH_OUTCOME_PREFIX = "spring_growth_outcome"

_notes_adapter = TypeAdapter(List[Note])


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...
    async def set(self, key: str, value: str) -> None: ...
    async def remove(self, key: str) -> None: ...


class SqlKeyValueStore:
    """kv_entries 테이블 위의 키-값 저장소. 호출마다 커밋한다 (트랜잭션 묶음 없음)."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get(self, key: str) -> Optional[str]:
        async with self._session_maker() as db:
            res = await db.execute(select(KeyValueEntry.value).where(KeyValueEntry.key == key))
            return res.scalar_one_or_none()

    async def set(self, key: str, value: str) -> None:
        async with self._session_maker() as db:
            entry = await db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            await db.commit()

    async def remove(self, key: str) -> None:
        async with self._session_maker() as db:
            await db.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
            await db.commit()


def scoped_key(purpose: str, client_id: str) -> str:
    return f"{purpose}_{client_id}"


class LocalPersistence:
    """
    내담자 단위 기록(노트, 완료 플래그, 성장 목표)과 로그인 코드를 읽고 쓴다.
    깨진 JSON 은 '기록 없음'으로 취급한다.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    # --- 로그인 코드 ---
    async def remembered_code(self) -> Optional[str]:
        return await self.store.get(REMEMBERED_CODE_KEY)

    async def remember_code(self, code: str) -> None:
        await self.store.set(REMEMBERED_CODE_KEY, code)

    async def forget_code(self) -> None:
        await self.store.remove(REMEMBERED_CODE_KEY)

    # --- 노트 ---
    async def load_notes(self, client_id: str) -> List[Note]:
        raw = await self.store.get(scoped_key(NOTES_PREFIX, client_id))
        if not raw:
            return []
        try:
            return _notes_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("[persistence] notes for client %s unreadable, starting empty: %s", client_id, e)
            return []

    async def save_notes(self, client_id: str, notes: List[Note]) -> None:
        payload = _notes_adapter.dump_json(notes).decode()
        await self.store.set(scoped_key(NOTES_PREFIX, client_id), payload)

    # --- 완료 상태 ---
    async def load_completions(self, client_id: str) -> CompletionState:
        raw = await self.store.get(scoped_key(COMPLETIONS_PREFIX, client_id))
        if not raw:
            return CompletionState()
        try:
            return CompletionState.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("[persistence] completions for client %s unreadable, resetting: %s", client_id, e)
            return CompletionState()

    async def save_completions(self, client_id: str, state: CompletionState) -> None:
        await self.store.set(scoped_key(COMPLETIONS_PREFIX, client_id), json.dumps(state.model_dump()))

    # --- 성장 목표 (원문 그대로 저장) ---
    async def load_growth_outcome(self, client_id: str) -> str:
        return await self.store.get(scoped_key(GROWTH_OUTCOME_PREFIX, client_id)) or ""

    async def save_growth_outcome(self, client_id: str, text: str) -> None:
        await self.store.set(scoped_key(GROWTH_OUTCOME_PREFIX, client_id), text)
