from fastapi import APIRouter, Depends, Request, status

from companion.api.deps import get_companion, get_active_client, http_error
from companion.core.state import CompanionState
from companion.errors import CompanionError
from companion.schemas import Client, Note, VoiceStartReq, VoiceStatus
from companion.services.microphone import BrowserMicrophone

router = APIRouter(prefix="/voice", tags=["voice"])


@router.get("", response_model=VoiceStatus)
async def voice_status(
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    return companion.voice.status()


@router.post("/start", response_model=VoiceStatus)
async def start_recording(
    req: VoiceStartReq,
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    try:
        await companion.voice.start_recording(BrowserMicrophone(granted=req.granted))
    except CompanionError as e:
        raise http_error(e)
    return companion.voice.status()


@router.post("/chunk", response_model=VoiceStatus)
async def push_chunk(
    request: Request,
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    """MediaRecorder 의 ondataavailable 청크 (원시 바이트 본문)"""
    chunk = await request.body()
    try:
        companion.voice.push(chunk)
    except CompanionError as e:
        raise http_error(e)
    return companion.voice.status()


@router.post("/stop", response_model=Note, status_code=status.HTTP_201_CREATED)
async def stop_recording(
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    try:
        return await companion.voice.stop_recording()
    except CompanionError as e:
        raise http_error(e)
