from fastapi import APIRouter, Depends

from companion.api.deps import get_companion, get_active_client
from companion.core.state import CompanionState
from companion.schemas import Client, CompletionState

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("", response_model=CompletionState)
async def get_progress(
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    return companion.progress.state


@router.post("/reset", response_model=CompletionState)
async def reset_progress(
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    await companion.progress.reset_all()
    return companion.progress.state
