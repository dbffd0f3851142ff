from fastapi import APIRouter, Depends

from companion.api.deps import get_companion, get_active_client
from companion.core.state import CompanionState
from companion.directory import MINDFULNESS_THEMES
from companion.schemas import (
    Client, ClientPublic, DashboardResp, GrowthOutcomeReq, MediaModality,
    TabReq, TabResp, ToolsResp,
)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResp)
async def get_dashboard(
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    return DashboardResp(
        client=ClientPublic.from_client(client),
        active_tab=companion.active_tab,
        completions=companion.progress.state,
        growth_outcome=companion.growth_outcome,
        latest_note=companion.notes.latest(),
        themes=MINDFULNESS_THEMES,
        modalities=list(MediaModality),
    )


@router.put("/dashboard/growth-outcome")
async def put_growth_outcome(
    req: GrowthOutcomeReq,
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    text = await companion.set_growth_outcome(req.text)
    return {"growth_outcome": text}


@router.get("/tab", response_model=TabResp)
async def get_tab(
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    return TabResp(active_tab=companion.active_tab)


@router.put("/tab", response_model=TabResp)
async def put_tab(
    req: TabReq,
    client: Client = Depends(get_active_client),
    companion: CompanionState = Depends(get_companion),
):
    return TabResp(active_tab=companion.set_tab(req.tab))


@router.get("/tools", response_model=ToolsResp)
async def get_tools():
    return ToolsResp(
        title="Therapy Toolbox",
        message="Coming soon: personalized exercises and worksheets assigned by your therapist.",
    )
