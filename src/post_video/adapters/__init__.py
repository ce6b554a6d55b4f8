"""
Adapters – concrete implementations of ports.
CMS-backed stores, generative providers, Playwright capture and MoviePy
rendering. Swap any of them by passing an override to default_adapters().
"""

from post_video import config
from post_video.adapters.captions import CaptionAligner
from post_video.adapters.capture import PlaywrightScrollCapture
from post_video.adapters.email import HttpEmailNotifier
from post_video.adapters.images import ImageDownloader, PexelsImageSearch
from post_video.adapters.llm import LLMClient
from post_video.adapters.memory import (
    InMemoryPostStore,
    InMemoryTaskStore,
    InMemoryVideoStore,
    RecordingNotifier,
)
from post_video.adapters.mux import MoviePyMuxer
from post_video.adapters.script import LLMScriptGenerator
from post_video.adapters.stores import CmsClient, HttpPostStore, HttpTaskStore, HttpVideoStore
from post_video.adapters.tts import build_synthesizer
from post_video.adapters.upload import HttpObjectStorage, LocalObjectStorage
from post_video.adapters.video import MoviePyComposer


def default_adapters(local: bool = False, **overrides):
    """
    Build default adapter instances from config.
    local=True keeps records in memory and writes artifacts under OUTPUT_DIR.
    Overrides: post_store=..., synthesizer=..., etc. for testing.
    """
    if local:
        stores = {
            "post_store": InMemoryPostStore,
            "task_store": InMemoryTaskStore,
            "video_store": InMemoryVideoStore,
            "notifier": RecordingNotifier,
        }
    else:
        client = CmsClient()
        stores = {
            "post_store": lambda: HttpPostStore(client),
            "task_store": lambda: HttpTaskStore(client),
            "video_store": lambda: HttpVideoStore(client),
            "notifier": HttpEmailNotifier,
        }

    use_local_storage = local or config.STORAGE_BACKEND == "local"
    factories = {
        **stores,
        "script_generator": lambda: LLMScriptGenerator(LLMClient()),
        "image_search": PexelsImageSearch,
        "image_downloader": ImageDownloader,
        "synthesizer": build_synthesizer,
        "scroll_capture": PlaywrightScrollCapture,
        "composer": MoviePyComposer,
        "muxer": MoviePyMuxer,
        "storage": LocalObjectStorage if use_local_storage else HttpObjectStorage,
        "caption_aligner": CaptionAligner,
    }

    adapters = {name: overrides[name] if name in overrides else factory() for name, factory in factories.items()}
    unknown = set(overrides) - set(factories)
    if unknown:
        raise TypeError(f"Unknown adapter overrides: {', '.join(sorted(unknown))}")
    return adapters


__all__ = [
    "CaptionAligner",
    "CmsClient",
    "HttpEmailNotifier",
    "HttpObjectStorage",
    "HttpPostStore",
    "HttpTaskStore",
    "HttpVideoStore",
    "ImageDownloader",
    "InMemoryPostStore",
    "InMemoryTaskStore",
    "InMemoryVideoStore",
    "LLMClient",
    "LLMScriptGenerator",
    "LocalObjectStorage",
    "MoviePyComposer",
    "MoviePyMuxer",
    "PexelsImageSearch",
    "PlaywrightScrollCapture",
    "RecordingNotifier",
    "default_adapters",
]
