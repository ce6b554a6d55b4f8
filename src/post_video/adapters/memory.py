"""
In-memory stores for local runs and tests.
They enforce the same record lifecycle the CMS does.
"""

import asyncio
import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from post_video.domain.errors import InvalidTransitionError
from post_video.domain.models import Post, Task, Video
from post_video.domain.status import PENDING, ensure_transition, is_terminal
from post_video.ports.interfaces import INotifier, IPostStore, ITaskStore, IVideoStore

# Posts shorter than this are narrated from title and excerpt instead
MIN_CONTENT_CHARS = 50


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryPostStore(IPostStore):
    def __init__(self, posts: Optional[List[Post]] = None):
        self._posts: Dict[str, Post] = {}
        self._lock = asyncio.Lock()
        for post in posts or []:
            self.add(post)

    def add(self, post: Post) -> Post:
        record = copy.deepcopy(post)
        post_id = record.get("postId") or record.get("id") or str(uuid.uuid4())
        record.setdefault("id", post_id)
        record.setdefault("postId", post_id)
        record.setdefault("videos", [])
        record.setdefault("createdAt", _now())
        self._posts[post_id] = record
        return record

    async def get_next_eligible_post(self) -> Optional[Post]:
        async with self._lock:
            eligible = [
                p for p in self._posts.values()
                if not p.get("videos") and not p.get("isVideoGenerating")
            ]
            if not eligible:
                return None
            post = min(eligible, key=lambda p: p.get("createdAt", ""))
            post["isVideoGenerating"] = True
            claimed = copy.deepcopy(post)

        content = (claimed.get("content") or "").strip()
        if len(content) < MIN_CONTENT_CHARS:
            claimed["content"] = f"{claimed.get('title', '')}\n\n{claimed.get('excerpt', '')}".strip()
        return claimed

    async def append_video_to_post(self, post_id: str, video_id: str) -> bool:
        async with self._lock:
            post = self._posts.get(post_id)
            if post is None:
                return False
            videos = post.setdefault("videos", [])
            if video_id not in videos:
                videos.append(video_id)
                post["updatedAt"] = _now()
            return True

    async def get_post(self, post_id: str) -> Optional[Post]:
        post = self._posts.get(post_id)
        return copy.deepcopy(post) if post is not None else None


class InMemoryTaskStore(ITaskStore):
    def __init__(self):
        self._tasks: Dict[str, Task] = {}
        self._lock = asyncio.Lock()

    async def create(self, task_type: str, config: Dict[str, Any]) -> Task:
        async with self._lock:
            task: Task = {
                "id": str(uuid.uuid4()),
                "type": task_type,
                "status": PENDING,
                "config": dict(config),
                "emailSent": False,
                "createdAt": _now(),
                "updatedAt": _now(),
            }
            self._tasks[task["id"]] = task
            return copy.deepcopy(task)

    def _get(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise KeyError(f"Task {task_id} not found")
        return task

    async def update_status(self, task_id: str, status: str, result: Optional[Dict[str, Any]] = None) -> bool:
        async with self._lock:
            task = self._get(task_id)
            ensure_transition(task["status"], status, f"task {task_id}")
            task["status"] = status
            if result is not None:
                task["result"] = result
            task["updatedAt"] = _now()
            return True

    async def patch_config(self, task_id: str, patch: Dict[str, Any]) -> bool:
        async with self._lock:
            task = self._get(task_id)
            if is_terminal(task["status"]):
                raise InvalidTransitionError(f"task {task_id} is {task['status']}, config is frozen")
            task.setdefault("config", {}).update(patch)
            task["updatedAt"] = _now()
            return True

    async def mark_email_sent(self, task_id: str) -> bool:
        async with self._lock:
            task = self._get(task_id)
            if task.get("emailSent"):
                return False
            task["emailSent"] = True
            return True

    async def get_by_id(self, task_id: str) -> Optional[Task]:
        task = self._tasks.get(task_id)
        return copy.deepcopy(task) if task is not None else None

    async def get_by_post_id(self, post_id: str) -> List[Task]:
        return [copy.deepcopy(t) for t in self._tasks.values() if t.get("config", {}).get("postId") == post_id]


class InMemoryVideoStore(IVideoStore):
    def __init__(self):
        self._videos: Dict[str, Video] = {}
        self._lock = asyncio.Lock()

    async def create(self, video_data: Dict[str, Any]) -> str:
        async with self._lock:
            video_id = str(uuid.uuid4())
            record: Video = {"status": PENDING, **video_data}
            record["id"] = video_id
            record["createdAt"] = record["updatedAt"] = _now()
            self._videos[video_id] = record
            return video_id

    async def update(self, video_id: str, patch: Dict[str, Any]) -> bool:
        async with self._lock:
            video = self._videos.get(video_id)
            if video is None:
                raise KeyError(f"Video {video_id} not found")
            if "status" in patch:
                ensure_transition(video["status"], patch["status"], f"video {video_id}")
            elif is_terminal(video["status"]):
                raise InvalidTransitionError(f"video {video_id} is {video['status']}, record is frozen")
            video.update(patch)
            video["updatedAt"] = _now()
            return True

    async def get_by_id(self, video_id: str) -> Optional[Video]:
        video = self._videos.get(video_id)
        return copy.deepcopy(video) if video is not None else None

    async def get_by_post_id(self, post_id: str) -> List[Video]:
        return [copy.deepcopy(v) for v in self._videos.values() if v.get("postId") == post_id]


class RecordingNotifier(INotifier):
    """Keeps sent notifications in a list instead of emailing."""

    def __init__(self):
        self.sent: List[Dict[str, str]] = []

    async def send_video_completion_email(self, recipient: str, video_url: str, post_id: str) -> bool:
        self.sent.append({"to": recipient, "videoUrl": video_url, "postId": post_id})
        print(f"  📧 Recorded completion email to {recipient}")
        return True
