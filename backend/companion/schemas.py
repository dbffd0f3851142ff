from __future__ import annotations
from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from enum import Enum

# 도메인
class Client(BaseModel):
    """치료사가 발급한 코드로 접속하는 내담자. 디렉터리에서만 오며 수정되지 않는다."""
    id: str
    code: str
    name: str
    summary: str
    goals: List[str] = []
    homework: str = ""
    last_session: str = Field("", alias="lastSession")
    next_session: str = Field("", alias="nextSession")
    current_sprint: str = Field("", alias="currentSpring")

    model_config = {"frozen": True, "populate_by_name": True}

class Note(BaseModel):
    id: str
    text: str
    timestamp: int  # ms since epoch

    model_config = {"frozen": True}

class CompletionState(BaseModel):
    wholeness1: bool = False
    wholeness2: bool = False
    wholeness3: bool = False

class MindfulnessTheme(str, Enum):
    PEACE = "Peace"
    COMPASSION = "Compassion"
    RESILIENCE = "Resilience"

class MediaModality(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"

class AppTab(str, Enum):
    TODAY = "today"
    HISTORY = "history"
    TOOLS = "tools"

class ThemeInfo(BaseModel):
    value: MindfulnessTheme
    label: str
    description: str

# 인증
class LoginReq(BaseModel):
    code: str

class ClientPublic(BaseModel):
    """
    응답용 내담자 정보. 접근 코드는 내보내지 않는다.
    """
    id: str
    name: str
    summary: str
    goals: List[str]
    homework: str
    last_session: str
    next_session: str
    current_sprint: str

    @classmethod
    def from_client(cls, client: Client) -> "ClientPublic":
        return cls(
            id=client.id, name=client.name, summary=client.summary,
            goals=list(client.goals), homework=client.homework,
            last_session=client.last_session, next_session=client.next_session,
            current_sprint=client.current_sprint,
        )

# 대시보드
class DashboardResp(BaseModel):
    client: ClientPublic
    active_tab: AppTab
    completions: CompletionState
    growth_outcome: str
    latest_note: Optional[Note] = None
    themes: List[ThemeInfo]
    modalities: List[MediaModality]

class GrowthOutcomeReq(BaseModel):
    text: str

class TabReq(BaseModel):
    tab: AppTab

class TabResp(BaseModel):
    active_tab: AppTab

class ToolsResp(BaseModel):
    title: str
    message: str

# 노트
class NoteCreate(BaseModel):
    text: str = Field(..., description="빈 문자열(공백만)은 저장하지 않는다.")

# 가이드 세션
GuidedState = Literal["idle", "loading", "presenting", "failed", "completed", "cancelled"]

class GuidedStartReq(BaseModel):
    theme: MindfulnessTheme = MindfulnessTheme.PEACE
    modality: MediaModality = MediaModality.AUDIO
    level: int = Field(..., ge=1, le=3)

class GuidedCompleteReq(BaseModel):
    note: Optional[str] = None

class GuidedSnapshot(BaseModel):
    state: GuidedState
    theme: Optional[MindfulnessTheme] = None
    modality: Optional[MediaModality] = None
    level: Optional[int] = None
    loading_message: Optional[str] = None
    media_url: Optional[str] = None
    loop: bool = False
    error: Optional[str] = None

# 히스토리 요약
class SummaryReq(BaseModel):
    range: str = "all"

class SummaryResp(BaseModel):
    range: str
    note_count: int
    summary: str

# 음성 메모
class VoiceStartReq(BaseModel):
    # 브라우저 getUserMedia 결과를 프론트가 알려준다
    granted: bool = True

class VoiceStatus(BaseModel):
    state: Literal["idle", "recording", "transcribing"]
    bytes_captured: int = 0
