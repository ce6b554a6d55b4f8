"""Ports (interfaces) – depend on these, implement in adapters."""

from post_video.ports.interfaces import (
    IImageDownloader,
    IImageSearch,
    IMuxer,
    INarrationSynthesizer,
    INotifier,
    IObjectStorage,
    IPostStore,
    IScriptGenerator,
    IScrollCapture,
    ITaskStore,
    ITextGenerator,
    IVideoComposer,
    IVideoStore,
)

__all__ = [
    "IImageDownloader",
    "IImageSearch",
    "IMuxer",
    "INarrationSynthesizer",
    "INotifier",
    "IObjectStorage",
    "IPostStore",
    "IScriptGenerator",
    "IScrollCapture",
    "ITaskStore",
    "ITextGenerator",
    "IVideoComposer",
    "IVideoStore",
]
