# /backend/companion/main.py

from __future__ import annotations
import os
import logging
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from companion.config import CORS_ORIGINS, LOG_LEVEL, STATIC_DIR
from companion.core.state import CompanionState
from companion.core.storage import KeyValueStore, SqlKeyValueStore
from companion.db import SessionLocal, engine, init_db
from companion.directory import ClientDirectory, load_directory
from companion.services.audio import WavFileOutput
from companion.services.media import MediaCollaborator
from companion.services.openai_media import OpenAIMediaService
from companion.services.video_client import VideoJobClient
from companion.api.routers import auth, dashboard, notes, progress, guided, history, voice

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def create_app(
    *,
    store: Optional[KeyValueStore] = None,
    media: Optional[MediaCollaborator] = None,
    directory: Optional[ClientDirectory] = None,
    static_dir: str = STATIC_DIR,
) -> FastAPI:
    """
    store/media/directory 를 넘기지 않으면 SQLite 저장소와 OpenAI 서비스를 쓴다.
    테스트에서는 가짜 구현을 주입한다.
    """
    audio_dir = os.path.join(static_dir, "audio")
    video_dir = os.path.join(static_dir, "video")
    os.makedirs(audio_dir, exist_ok=True)  # 폴더가 없으면 생성
    os.makedirs(video_dir, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        kv = store
        if kv is None:
            await init_db(engine)
            kv = SqlKeyValueStore(SessionLocal)
        collaborator = media if media is not None else OpenAIMediaService(VideoJobClient(video_dir))

        companion = CompanionState(
            directory if directory is not None else load_directory(),
            kv,
            collaborator,
            lambda: WavFileOutput(audio_dir),
        )
        # 저장된 로그인 코드가 있으면 세션 복원
        await companion.restore_session()
        app.state.companion = companion
        try:
            yield
        finally:
            await companion.shutdown()

    app = FastAPI(title="Therapy Companion API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 생성된 오디오/영상 파일 제공
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    logger.info("Serving generated media from: %s", static_dir)

    app.include_router(auth.router)
    app.include_router(dashboard.router)
    app.include_router(notes.router)
    app.include_router(progress.router)
    app.include_router(guided.router)
    app.include_router(history.router)
    app.include_router(voice.router)

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run(
        "companion.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
