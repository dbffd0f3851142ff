from __future__ import annotations
import os, asyncio, uuid, logging
from typing import Any, Dict, Optional
import json
import httpx
from httpx import Timeout

import companion.config  # noqa: F401  .env 로딩
from companion.services.media import MediaServiceError, VideoJobCancelled

logger = logging.getLogger(__name__)

VIDEO_API_KEY = os.getenv("VIDEO_API_KEY") or os.getenv("OPENAI_API_KEY", "")
BASE = os.getenv("VIDEO_API_BASE", "https://api.openai.com")
CREATE_PATH = os.getenv("VIDEO_CREATE_PATH", "/v1/videos")
STATUS_PATH_TPL = os.getenv("VIDEO_STATUS_PATH", "/v1/videos/{video_id}")
CONTENT_PATH_TPL = os.getenv("VIDEO_CONTENT_PATH", "/v1/videos/{video_id}/content")
MODEL = os.getenv("VIDEO_MODEL", "sora-2")
SIZE = os.getenv("VIDEO_SIZE", "720x1280")  # 세로 9:16
SECONDS = os.getenv("VIDEO_SECONDS", "8")

DEFAULT_TIMEOUT = Timeout(10.0, read=300.0)
POLL_INTERVAL_SEC = float(os.getenv("VIDEO_POLL_INTERVAL_SEC", "5"))
POLL_MAX_ATTEMPTS = int(os.getenv("VIDEO_POLL_MAX_ATTEMPTS", "60"))

DONE_STATUSES = ("completed", "succeeded", "ready")
FAILED_STATUSES = ("failed", "error", "cancelled")


class VideoFile:
    """다운로드한 영상 파일. close 하면 지운다."""

    def __init__(self, path: str, url: str):
        self.path = path
        self.url: Optional[str] = url
        self._closed = False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if os.path.exists(self.path):
            os.remove(self.path)
        self.url = None


class VideoJobClient:
    """
    영상 생성 작업을 등록하고, 끝날 때까지 일정 간격으로 폴링한 뒤
    결과를 static/video 아래로 내려받는다.
    폴링 횟수에 상한이 있고, 대기 중에는 cancelled 이벤트로 빠져나올 수 있다.
    """

    def __init__(
        self,
        output_dir: str,
        *,
        url_prefix: str = "/static/video",
        api_key: Optional[str] = None,
        base_url: str = BASE,
        poll_interval: float = POLL_INTERVAL_SEC,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.output_dir = output_dir
        self.url_prefix = url_prefix.rstrip("/")
        self.api_key = api_key if api_key is not None else VIDEO_API_KEY
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise MediaServiceError("VIDEO_API_KEY (or OPENAI_API_KEY) is not set")
        key = self.api_key.replace("Bearer ", "").strip().strip('"').strip("'")
        return {"Authorization": f"Bearer {key}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=DEFAULT_TIMEOUT, transport=self._transport)

    async def create_job(self, client: httpx.AsyncClient, prompt: str) -> str:
        payload: Dict[str, Any] = {"model": MODEL, "prompt": prompt, "size": SIZE, "seconds": SECONDS}
        r = await client.post(CREATE_PATH, headers=self._headers(), json=payload)
        if r.status_code >= 400:
            raise MediaServiceError(f"video create failed {r.status_code}: {r.text}")
        try:
            data = r.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MediaServiceError(f"video create returned non-JSON body (Error: {e}): {r.text!r}")
        video_id = data.get("id") or data.get("video_id") or data.get("task_id")
        if not video_id:
            raise MediaServiceError(f"no video id in response: {data}")
        return video_id

    async def get_status(self, client: httpx.AsyncClient, video_id: str) -> Dict[str, Any]:
        r = await client.get(STATUS_PATH_TPL.format(video_id=video_id), headers=self._headers())
        if r.status_code >= 400:
            raise MediaServiceError(f"video status failed {r.status_code}: {r.text}")
        try:
            return r.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MediaServiceError(f"video status returned non-JSON body (Error: {e}): {r.text[:500]!r}")

    async def download(self, client: httpx.AsyncClient, video_id: str) -> VideoFile:
        r = await client.get(CONTENT_PATH_TPL.format(video_id=video_id), headers=self._headers())
        if r.status_code >= 400:
            raise MediaServiceError(f"video download failed {r.status_code}: {r.text[:500]}")
        if not r.content:
            raise MediaServiceError(f"video {video_id} completed but content is empty")
        os.makedirs(self.output_dir, exist_ok=True)
        name = f"{uuid.uuid4().hex}.mp4"
        path = os.path.join(self.output_dir, name)
        with open(path, "wb") as handle:
            handle.write(r.content)
        return VideoFile(path=path, url=f"{self.url_prefix}/{name}")

    async def _wait(self, cancelled: Optional[asyncio.Event]) -> None:
        if cancelled is None:
            await asyncio.sleep(self.poll_interval)
            return
        try:
            await asyncio.wait_for(cancelled.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            return
        raise VideoJobCancelled("video generation cancelled while waiting")

    async def compose_and_wait(self, prompt: str, *, cancelled: Optional[asyncio.Event] = None) -> VideoFile:
        try:
            return await self._compose_and_wait(prompt, cancelled)
        except httpx.HTTPError as e:
            logger.error("[video_client] transport error: %s", e)
            raise MediaServiceError(f"video service unreachable: {e}") from e

    async def _compose_and_wait(self, prompt: str, cancelled: Optional[asyncio.Event]) -> VideoFile:
        async with self._client() as client:
            video_id = await self.create_job(client, prompt)
            logger.info("[video_client] job created - video_id=%s", video_id)

            for attempt in range(1, self.max_attempts + 1):
                if cancelled is not None and cancelled.is_set():
                    raise VideoJobCancelled("video generation cancelled")
                data = await self.get_status(client, video_id)
                status = (data.get("status") or "").lower()
                logger.debug("[video_client] poll %d/%d - status=%s", attempt, self.max_attempts, status)

                if status in DONE_STATUSES:
                    return await self.download(client, video_id)
                if status in FAILED_STATUSES:
                    err = data.get("error") or data.get("message") or data
                    raise MediaServiceError(f"video generation failed: {err}")

                if attempt < self.max_attempts:
                    await self._wait(cancelled)

            raise MediaServiceError(
                f"timeout waiting for video generation after {self.max_attempts} polls"
            )
