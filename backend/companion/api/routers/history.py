from fastapi import APIRouter, Depends, HTTPException, status

from companion.api.deps import get_companion, get_active_client, http_error
from companion.core.state import CompanionState
from companion.core.summarizer import SummaryRange, select_notes
from companion.errors import CompanionError
from companion.schemas import Client, SummaryReq, SummaryResp

router = APIRouter(prefix="/history", tags=["history"])


@router.post("/summary", response_model=SummaryResp)
async def summarize_history(
    req: SummaryReq,
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    notes = companion.notes.list()
    now = companion.summarizer.now()
    try:
        text = await companion.summarizer.summarize(notes, req.range, now=now)
    except CompanionError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    summary_range = SummaryRange.parse(req.range)
    count = len(select_notes(notes, summary_range, now))
    return SummaryResp(range=summary_range.label, note_count=count, summary=text)
