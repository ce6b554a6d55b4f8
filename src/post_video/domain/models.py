"""Domain models – dict-compatible records plus pipeline value objects."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TypedDict, Union


class Post(TypedDict, total=False):
    """A blog post as returned by the CMS. The pipeline only reads content and appends videos."""
    id: str
    postId: str
    URL: str
    content: str
    title: str
    excerpt: str
    slug: str
    tags: List[str]
    videos: List[str]
    status: str
    isVideoGenerating: bool
    createdAt: str
    updatedAt: str


class CaptionCue(TypedDict):
    """Timed caption fragment, seconds relative to the narration audio."""
    text: str
    start: float
    end: float


class ImageAsset(TypedDict):
    url: str
    title: str
    source: str


class TaskConfig(TypedDict, total=False):
    postId: str
    language: str
    articleUrl: str
    script: str
    images: List[ImageAsset]
    audioFile: str
    durationInSeconds: float
    videoFile: str
    captions: List[CaptionCue]


class Task(TypedDict, total=False):
    id: str
    type: str  # 'video-generation' | 'scripted-video-generation'
    status: str
    config: TaskConfig
    result: Dict[str, Any]
    emailSent: bool
    createdAt: str
    updatedAt: str


class Video(TypedDict, total=False):
    id: str
    postId: str
    taskId: str
    type: str  # 'scrolling' | 'scripted'
    language: str
    status: str
    audioFile: str
    fileName: str
    downloadUrl: str
    duration: float
    fileSize: int
    filePath: str
    format: str
    resolution: str
    error: str
    createdAt: str
    updatedAt: str


TASK_TYPE_SCROLLING = "video-generation"
TASK_TYPE_SCRIPTED = "scripted-video-generation"

VIDEO_TYPE_SCROLLING = "scrolling"
VIDEO_TYPE_SCRIPTED = "scripted"


@dataclass
class WordTiming:
    """One spoken word as reported by the synthesizer."""
    text: str
    start: float
    end: float


@dataclass
class Narration:
    """Synthesizer output. ``content_hash`` is the sha256 of ``audio_bytes``."""
    audio_bytes: bytes
    duration_seconds: float
    content_hash: str
    voice: str
    language: str
    word_timings: List[WordTiming] = field(default_factory=list)
    audio_format: str = "mp3"


@dataclass
class ScriptResult:
    script: str
    image_queries: List[str]


@dataclass
class RetryPolicy:
    """Bounded retry with a fixed delay between attempts."""
    max_attempts: int = 3
    delay_seconds: float = 1.0


@dataclass
class StageTimeouts:
    """Per-stage timeouts in seconds."""
    metadata: float = 30.0
    script: float = 120.0
    image_search: float = 60.0
    image_download: float = 45.0
    narration: float = 180.0
    capture: float = 600.0
    compose: float = 600.0
    mux: float = 300.0
    upload: float = 300.0


@dataclass
class ScrollingConfig:
    """Scrolling mode: narrate the full post over a captured webpage scroll."""
    article_url: str
    language: str = "en-US"
    voice_style: str = "neural"


@dataclass
class ScriptedConfig:
    """Scripted mode: AI narration script over a stock image slideshow."""
    language: str = "en-US"
    voice_style: str = "studio"


PipelineConfig = Union[ScrollingConfig, ScriptedConfig]


@dataclass
class VideoServiceResponse:
    success: bool
    message: str
    postId: Optional[str] = None
    videoId: Optional[str] = None
    taskId: Optional[str] = None
    videoUrl: Optional[str] = None
    status: Optional[str] = None
    duration: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}
