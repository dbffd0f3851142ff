import asyncio
import json
import os

import httpx
import pytest

from companion.services.media import MediaServiceError, VideoJobCancelled
from companion.services.video_client import VideoJobClient


def _transport(statuses, content=b"\x00\x00\x00\x18ftypmp4", seen=None):
    remaining = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if request.method == "POST" and request.url.path == "/v1/videos":
            return httpx.Response(200, json={"id": "video_123", "status": "queued"})
        if request.url.path == "/v1/videos/video_123":
            status = remaining.pop(0) if remaining else "in_progress"
            body = {"id": "video_123", "status": status}
            if status == "failed":
                body["error"] = {"message": "moderation"}
            return httpx.Response(200, json=body)
        if request.url.path == "/v1/videos/video_123/content":
            return httpx.Response(200, content=content)
        return httpx.Response(404, text="not found")

    return httpx.MockTransport(handler)


def _client(tmp_path, transport, **kwargs):
    kwargs.setdefault("poll_interval", 0)
    return VideoJobClient(
        str(tmp_path / "video"),
        api_key="test-key",
        base_url="https://video.test",
        transport=transport,
        **kwargs,
    )


async def test_polls_until_completed_and_downloads(tmp_path):
    seen = []
    client = _client(tmp_path, _transport(["queued", "in_progress", "completed"], seen=seen))

    video = await client.compose_and_wait("calm mountain")

    assert video.url.startswith("/static/video/")
    assert os.path.exists(video.path)
    with open(video.path, "rb") as handle:
        assert handle.read().startswith(b"\x00\x00\x00\x18")
    create = seen[0]
    assert create.headers["Authorization"] == "Bearer test-key"
    assert json.loads(create.content)["prompt"] == "calm mountain"
    assert sum(1 for r in seen if r.url.path == "/v1/videos/video_123") == 3

    video.close()
    video.close()
    assert not os.path.exists(video.path)
    assert video.url is None


async def test_failed_job_raises(tmp_path):
    client = _client(tmp_path, _transport(["in_progress", "failed"]))
    with pytest.raises(MediaServiceError, match="moderation"):
        await client.compose_and_wait("x")


async def test_polling_is_bounded(tmp_path):
    seen = []
    client = _client(tmp_path, _transport([], seen=seen), max_attempts=3)
    with pytest.raises(MediaServiceError, match="timeout"):
        await client.compose_and_wait("x")
    assert sum(1 for r in seen if r.url.path == "/v1/videos/video_123") == 3


async def test_cancel_interrupts_wait(tmp_path):
    client = _client(tmp_path, _transport([]), poll_interval=30)
    cancelled = asyncio.Event()

    task = asyncio.create_task(client.compose_and_wait("x", cancelled=cancelled))
    await asyncio.sleep(0.05)
    cancelled.set()

    with pytest.raises(VideoJobCancelled):
        await asyncio.wait_for(task, timeout=2)


async def test_create_error_is_wrapped(tmp_path):
    transport = httpx.MockTransport(lambda request: httpx.Response(401, text="bad key"))
    client = _client(tmp_path, transport)
    with pytest.raises(MediaServiceError, match="401"):
        await client.compose_and_wait("x")


async def test_missing_api_key(tmp_path):
    client = VideoJobClient(str(tmp_path), api_key="", transport=_transport([]))
    with pytest.raises(MediaServiceError, match="not set"):
        await client.compose_and_wait("x")
