# backend/companion/directory.py
"""
내담자 디렉터리와 마음챙김 테마 목록.

사용자 추가/삭제는 DEFAULT_CLIENTS 를 고치거나,
CLIENT_DIRECTORY_FILE 환경변수로 같은 모양의 JSON 배열 파일을 지정한다.
"""
from __future__ import annotations
import json
from typing import List, Optional

from companion.config import CLIENT_DIRECTORY_FILE
from companion.schemas import Client, ThemeInfo, MindfulnessTheme

DEFAULT_CLIENTS: List[Client] = [
    Client(
        id="1",
        code="1234",
        name="Alex Johnson",
        summary="Working on emotional regulation and anxiety management through cognitive reframing.",
        goals=[
            "Practice grounding 3x daily",
            "Identify 2 positive triggers per week",
            "Maintain sleep hygiene routine",
        ],
        homework="Reflect on a situation this week where you felt successful in setting a boundary.",
        last_session="Oct 24, 2024",
        next_session="Oct 31, 2024",
        current_sprint="Authentic Self Discovery",
    ),
    Client(
        id="2",
        code="4321",
        name="Sam Taylor",
        summary="Focusing on career-related stress and self-worth affirmations.",
        goals=[
            "Morning gratitude journaling",
            "Delegating one task at work each day",
            "Mindful eating during lunch",
        ],
        homework="Write a letter to your past self acknowledging three hardships you overcame.",
        last_session="Oct 22, 2024",
        next_session="Nov 05, 2024",
        current_sprint="Confidence & Worth",
    ),
    Client(
        id="3",
        code="5555",
        name="Jordan Lee",
        summary="Exploring mindfulness techniques for focus and work-life balance.",
        goals=[
            "Digital detox 1 hour before bed",
            "Take a 10-minute walk without phone",
            "Practice active listening",
        ],
        homework='Identify three times this week you felt "flow" state at work.',
        last_session="Nov 01, 2024",
        next_session="Nov 08, 2024",
        current_sprint="Presence & Focus",
    ),
]

MINDFULNESS_THEMES: List[ThemeInfo] = [
    ThemeInfo(value=MindfulnessTheme.PEACE, label="Inner Peace",
              description="Find stillness in the middle of chaos."),
    ThemeInfo(value=MindfulnessTheme.COMPASSION, label="Self-Compassion",
              description="Nurture a kinder voice within yourself."),
    ThemeInfo(value=MindfulnessTheme.RESILIENCE, label="Inner Strength",
              description="Build capacity to bounce back from challenges."),
]


class ClientDirectory:
    def __init__(self, clients: List[Client]):
        self._clients = list(clients)

    @classmethod
    def from_file(cls, path: str) -> "ClientDirectory":
        with open(path, "r", encoding="utf-8") as handle:
            raw = json.load(handle)
        return cls([Client.model_validate(item) for item in raw])

    def find_by_code(self, code: str) -> Optional[Client]:
        wanted = (code or "").strip().upper()
        if not wanted:
            return None
        for client in self._clients:
            if client.code.upper() == wanted:
                return client
        return None


def load_directory() -> ClientDirectory:
    if CLIENT_DIRECTORY_FILE:
        return ClientDirectory.from_file(CLIENT_DIRECTORY_FILE)
    return ClientDirectory(DEFAULT_CLIENTS)
