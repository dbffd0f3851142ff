from typing import Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from companion.api.deps import get_companion, get_active_client, http_error
from companion.core.state import CompanionState
from companion.errors import CompanionError
from companion.schemas import Client, GuidedCompleteReq, GuidedSnapshot, GuidedStartReq, Note

router = APIRouter(prefix="/sessions/guided", tags=["guided-sessions"])


class GuidedCompleteResp(BaseModel):
    session: GuidedSnapshot
    note: Optional[Note] = None


@router.post("", response_model=GuidedSnapshot, status_code=status.HTTP_202_ACCEPTED)
async def start_guided_session(
    req: GuidedStartReq,
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    """미디어 생성을 시작하고 바로 loading 상태를 돌려준다. 진행 상황은 GET 으로 폴링."""
    try:
        session = companion.guided.start(req.theme, req.modality, req.level)
    except CompanionError as e:
        raise http_error(e)
    return session.snapshot()


@router.get("", response_model=GuidedSnapshot)
async def get_guided_session(
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    return companion.guided.snapshot()


@router.post("/complete", response_model=GuidedCompleteResp)
async def complete_guided_session(
    req: GuidedCompleteReq,
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    try:
        note = await companion.guided.complete(req.note)
    except CompanionError as e:
        raise http_error(e)
    return GuidedCompleteResp(session=companion.guided.snapshot(), note=note)


@router.post("/cancel", response_model=GuidedSnapshot)
async def cancel_guided_session(
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    companion.guided.cancel()
    return companion.guided.snapshot()
