"""Domain models, errors and record lifecycle."""

from post_video.domain.errors import (
    GenerationError,
    PartialAssetError,
    PipelineError,
    TransientProviderError,
    ValidationError,
)
from post_video.domain.models import (
    CaptionCue,
    ImageAsset,
    Narration,
    Post,
    ScriptedConfig,
    ScrollingConfig,
    Task,
    Video,
    VideoServiceResponse,
)

__all__ = [
    "CaptionCue",
    "GenerationError",
    "ImageAsset",
    "Narration",
    "PartialAssetError",
    "PipelineError",
    "Post",
    "ScriptedConfig",
    "ScrollingConfig",
    "Task",
    "TransientProviderError",
    "ValidationError",
    "Video",
    "VideoServiceResponse",
]
