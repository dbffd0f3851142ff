# backend/companion/api/deps.py
from __future__ import annotations
from fastapi import Depends, HTTPException, Request, status

from companion.core.state import CompanionState
from companion.errors import (
    CompanionError, InvalidCode, NotAuthenticated, EmptyInput, SummaryUnavailable,
    GenerationUnavailable, TranscriptionFailed, PermissionDenied, LevelUnavailable,
    InvalidTransition, CaptureBusy,
)
from companion.schemas import Client

STATUS_BY_ERROR = {
    InvalidCode: status.HTTP_401_UNAUTHORIZED,
    NotAuthenticated: status.HTTP_401_UNAUTHORIZED,
    EmptyInput: status.HTTP_400_BAD_REQUEST,
    SummaryUnavailable: status.HTTP_502_BAD_GATEWAY,
    GenerationUnavailable: status.HTTP_502_BAD_GATEWAY,
    TranscriptionFailed: status.HTTP_502_BAD_GATEWAY,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    LevelUnavailable: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    CaptureBusy: status.HTTP_409_CONFLICT,
}


def http_error(exc: CompanionError) -> HTTPException:
    code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail={"error": type(exc).__name__, "message": exc.message})


def get_companion(request: Request) -> CompanionState:
    return request.app.state.companion


def get_active_client(companion: CompanionState = Depends(get_companion)) -> Client:
    """로그인한 내담자가 있어야 하는 라우터 보호용 의존성."""
    try:
        return companion.require_client()
    except NotAuthenticated as e:
        raise http_error(e)
