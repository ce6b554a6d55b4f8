"""
Port interfaces (SOLID – Dependency Inversion).
Implement these in adapters; the application layer depends only on these abstractions.
Every method that reaches an external service is a coroutine, so each such call is an awaited suspension point.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from post_video.domain.models import (
    CaptionCue,
    ImageAsset,
    Narration,
    Post,
    ScriptResult,
    Task,
    Video,
)


class IPostStore(ABC):
    """Blog/CMS posts. The pipeline never mutates post content."""

    @abstractmethod
    async def get_next_eligible_post(self) -> Optional[Post]:
        """Claim and return the oldest post without videos, or None."""
        pass

    @abstractmethod
    async def append_video_to_post(self, post_id: str, video_id: str) -> bool:
        """Append video_id to post.videos. Idempotent."""
        pass

    @abstractmethod
    async def get_post(self, post_id: str) -> Optional[Post]:
        pass


class ITaskStore(ABC):
    """Task records, one per pipeline run."""

    @abstractmethod
    async def create(self, task_type: str, config: Dict[str, Any]) -> Task:
        pass

    @abstractmethod
    async def update_status(
        self,
        task_id: str,
        status: str,
        result: Optional[Dict[str, Any]] = None,
    ) -> bool:
        pass

    @abstractmethod
    async def patch_config(self, task_id: str, patch: Dict[str, Any]) -> bool:
        """Merge patch into task.config while the task is not terminal."""
        pass

    @abstractmethod
    async def mark_email_sent(self, task_id: str) -> bool:
        pass

    @abstractmethod
    async def get_by_id(self, task_id: str) -> Optional[Task]:
        pass

    @abstractmethod
    async def get_by_post_id(self, post_id: str) -> List[Task]:
        pass


class IVideoStore(ABC):
    """Video records describing generated artifacts."""

    @abstractmethod
    async def create(self, video_data: Dict[str, Any]) -> str:
        """Persist a new record; return its id."""
        pass

    @abstractmethod
    async def update(self, video_id: str, patch: Dict[str, Any]) -> bool:
        pass

    @abstractmethod
    async def get_by_id(self, video_id: str) -> Optional[Video]:
        pass

    @abstractmethod
    async def get_by_post_id(self, post_id: str) -> List[Video]:
        pass


class INotifier(ABC):
    """Completion notifications (email)."""

    @abstractmethod
    async def send_video_completion_email(self, recipient: str, video_url: str, post_id: str) -> bool:
        pass


class ITextGenerator(ABC):
    """Generative-text collaborator."""

    @abstractmethod
    async def complete(self, prompt: str, model: Optional[str] = None) -> str:
        pass


class IScriptGenerator(ABC):
    """Turns long-form content into a narration script plus image search queries."""

    @abstractmethod
    async def generate(self, content: str, title: str, language: str) -> ScriptResult:
        pass


class IImageSearch(ABC):
    """Stock image search."""

    @abstractmethod
    async def search(self, queries: List[str]) -> List[ImageAsset]:
        """Return candidate images; never raises, falls back to placeholders."""
        pass


class IImageDownloader(ABC):

    @abstractmethod
    async def download(self, image: ImageAsset, dest_dir: str, index: int) -> str:
        """Download one image into dest_dir; raise PartialAssetError when it is unusable."""
        pass


class INarrationSynthesizer(ABC):
    """Text-to-speech."""

    @abstractmethod
    async def synthesize(self, text: str, language: str, voice_style: str) -> Narration:
        pass


class IScrollCapture(ABC):
    """Headless browser capture of a scrolling article page."""

    @abstractmethod
    async def capture_scroll(self, url: str, duration_seconds: float, frames_dir: str) -> List[str]:
        """Return ordered frame image paths (at least one) or raise GenerationError."""
        pass


class IVideoComposer(ABC):
    """Renders the visual track."""

    @abstractmethod
    async def compose_frames(self, frame_paths: List[str], duration_seconds: float, output_path: str) -> str:
        """Screen-capture frames stretched evenly over duration_seconds."""
        pass

    @abstractmethod
    async def compose_slideshow(
        self,
        image_paths: List[str],
        duration_seconds: float,
        captions: List[CaptionCue],
        script: str,
        output_path: str,
    ) -> str:
        """Per-image clips concatenated with caption overlays (text-only when no images)."""
        pass

    @abstractmethod
    async def compose_text_only(
        self, duration_seconds: float, captions: List[CaptionCue], output_path: str, script: Optional[str] = None
    ) -> str:
        """Captions over a plain background, for runs with no usable image."""
        pass


class ICaptionAligner(ABC):
    """Timed caption cues for a narration."""

    @abstractmethod
    def align(self, script: str, narration: Optional[Narration], duration: float) -> List[CaptionCue]:
        """Cues inside [0, duration], from measured word timing when the narration has it."""
        pass


class IMuxer(ABC):
    """Audio/video muxing."""

    @abstractmethod
    async def mux(self, video_path: str, audio_path: str, output_path: str) -> str:
        """Combine streams, trimmed to the shorter one."""
        pass


class IObjectStorage(ABC):
    """Durable artifact storage."""

    @abstractmethod
    async def upload(self, data: bytes, name: str, category: str) -> Dict[str, Any]:
        """Upload bytes as category/name; return a dict with at least 'url'."""
        pass
