from fastapi import APIRouter, Depends

from companion.api.deps import get_companion, get_active_client, http_error
from companion.core.state import CompanionState
from companion.errors import InvalidCode
from companion.schemas import Client, ClientPublic, LoginReq

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=ClientPublic)
async def login(req: LoginReq, companion: CompanionState = Depends(get_companion)):
    try:
        client = await companion.attempt_login(req.code)
    except InvalidCode as e:
        raise http_error(e)
    return ClientPublic.from_client(client)


@router.post("/logout")
async def logout(companion: CompanionState = Depends(get_companion)):
    await companion.logout()
    return {"ok": True}


@router.get("/me", response_model=ClientPublic)
async def me(client: Client = Depends(get_active_client)):
    return ClientPublic.from_client(client)
