from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from companion.api.deps import get_companion, get_active_client
from companion.core.state import CompanionState
from companion.schemas import Client, Note, NoteCreate

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("", response_model=List[Note])
async def list_notes(
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    return companion.notes.list()


@router.post("", response_model=Note, status_code=status.HTTP_201_CREATED)
async def add_note(
    req: NoteCreate,
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    text = req.text.strip()
    if not text:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "EmptyInput", "message": "A note cannot be empty."},
        )
    return await companion.notes.add(text)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    await companion.notes.remove(note_id)
