"""
CMS-backed stores for posts, tasks and videos.
Each call is a JSON request against the CMS API, run in a worker thread.
"""

import asyncio
from typing import Any, Dict, List, Optional

import requests

from post_video import config
from post_video.domain.errors import GenerationError
from post_video.domain.models import Post, Task, Video
from post_video.ports.interfaces import IPostStore, ITaskStore, IVideoStore

NO_POSTS_MESSAGE = "No posts available for video generation"


class CmsClient:
    """Thin JSON client; every CMS response carries ``success`` and ``message``."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or config.CMS_BASE_URL).rstrip("/")
        self.timeout = timeout or config.CMS_TIMEOUT

    def request(self, method: str, path: str, allow_404: bool = False, **kwargs) -> Optional[Dict[str, Any]]:
        try:
            response = requests.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise GenerationError(f"{method} {path} failed: {e}", stage="metadata") from e

        if allow_404 and response.status_code == 404:
            return None
        try:
            body = response.json()
        except ValueError as e:
            raise GenerationError(f"{method} {path} returned non-JSON ({response.status_code})", stage="metadata") from e
        if response.status_code >= 400 or not body.get("success", False):
            raise GenerationError(f"{method} {path}: {body.get('message', response.status_code)}", stage="metadata")
        return body

    async def call(self, method: str, path: str, allow_404: bool = False, **kwargs) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self.request, method, path, allow_404, **kwargs)


class HttpPostStore(IPostStore):
    def __init__(self, client: Optional[CmsClient] = None):
        self.client = client or CmsClient()

    async def get_next_eligible_post(self) -> Optional[Post]:
        # The CMS claims the post (isVideoGenerating) before returning it
        try:
            body = await self.client.call("GET", "/api/posts/getNextPostForVideoGeneration")
        except GenerationError as e:
            if NO_POSTS_MESSAGE in str(e):
                return None
            raise
        return body.get("post") or None

    async def append_video_to_post(self, post_id: str, video_id: str) -> bool:
        await self.client.call("POST", "/api/posts/addVideoToPost", json={"postId": post_id, "videoId": video_id})
        return True

    async def get_post(self, post_id: str) -> Optional[Post]:
        # The CMS has no single-post route; look the post up in the full listing
        body = await self.client.call("GET", "/api/posts/getAllPosts")
        for post in body.get("posts") or []:
            if post_id in (post.get("postId"), post.get("id")):
                return post
        return None


class HttpTaskStore(ITaskStore):
    def __init__(self, client: Optional[CmsClient] = None):
        self.client = client or CmsClient()

    async def create(self, task_type: str, config: Dict[str, Any]) -> Task:
        body = await self.client.call("POST", "/api/task/create", json={"type": task_type, "config": config})
        return body["task"]

    async def update_status(self, task_id: str, status: str, result: Optional[Dict[str, Any]] = None) -> bool:
        payload: Dict[str, Any] = {"status": status}
        if result is not None:
            payload["result"] = result
        await self.client.call("PUT", f"/api/task/{task_id}", json=payload)
        return True

    async def patch_config(self, task_id: str, patch: Dict[str, Any]) -> bool:
        await self.client.call("PATCH", f"/api/task/{task_id}", json={"config": patch})
        return True

    async def mark_email_sent(self, task_id: str) -> bool:
        await self.client.call("PATCH", f"/api/task/{task_id}", json={"emailSent": True})
        return True

    async def get_by_id(self, task_id: str) -> Optional[Task]:
        body = await self.client.call("GET", f"/api/task/{task_id}", allow_404=True)
        return body.get("task") if body else None

    async def get_by_post_id(self, post_id: str) -> List[Task]:
        body = await self.client.call("GET", "/api/task/status", params={"postId": post_id})
        return body.get("tasks") or []


class HttpVideoStore(IVideoStore):
    def __init__(self, client: Optional[CmsClient] = None):
        self.client = client or CmsClient()

    async def create(self, video_data: Dict[str, Any]) -> str:
        body = await self.client.call("POST", "/api/video/create", json=video_data)
        return body["videoId"]

    async def update(self, video_id: str, patch: Dict[str, Any]) -> bool:
        await self.client.call("PATCH", f"/api/video/{video_id}", json=patch)
        return True

    async def get_by_id(self, video_id: str) -> Optional[Video]:
        body = await self.client.call("GET", f"/api/video/{video_id}", allow_404=True)
        return body.get("video") if body else None

    async def get_by_post_id(self, post_id: str) -> List[Video]:
        body = await self.client.call("GET", f"/api/video/by-post/{post_id}")
        return body.get("videos") or []
