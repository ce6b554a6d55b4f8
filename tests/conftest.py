import asyncio
import os
from typing import List

import pytest

from post_video.adapters.captions import CaptionAligner
from post_video.adapters.memory import (
    InMemoryPostStore,
    InMemoryTaskStore,
    InMemoryVideoStore,
    RecordingNotifier,
)
from post_video.adapters.script import LLMScriptGenerator
from post_video.adapters.upload import LocalObjectStorage
from post_video.application.pipeline import VideoPipeline
from post_video.domain.errors import GenerationError, PartialAssetError
from post_video.domain.models import Narration, WordTiming
from post_video.ports.interfaces import (
    IImageDownloader,
    IImageSearch,
    IMuxer,
    INarrationSynthesizer,
    IScrollCapture,
    ITextGenerator,
    IVideoComposer,
)

GOOD_SCRIPT_JSON = (
    '{"script": "Sleep shapes everything. Here is how to get more of it tonight.", '
    '"imageQueries": ["bedroom at night", "person sleeping", "alarm clock", "morning coffee", "sunrise window"]}'
)


class FakeTextGenerator(ITextGenerator):
    def __init__(self, response: str = GOOD_SCRIPT_JSON):
        self.response = response
        self.calls = 0

    async def complete(self, prompt, model=None):
        self.calls += 1
        return self.response


class FakeSynthesizer(INarrationSynthesizer):
    def __init__(self, duration: float = 42.5, with_timings: bool = True):
        self.duration = duration
        self.with_timings = with_timings
        self.texts: List[str] = []

    async def synthesize(self, text, language, voice_style):
        self.texts.append(text)
        timings = []
        if self.with_timings:
            words = text.split()
            step = self.duration / max(len(words), 1)
            timings = [WordTiming(w, i * step, (i + 1) * step) for i, w in enumerate(words)]
        return Narration(
            audio_bytes=b"ID3fake-audio",
            duration_seconds=self.duration,
            content_hash="fake",
            voice="fake-voice",
            language=language,
            word_timings=timings,
        )


class FakeImageSearch(IImageSearch):
    def __init__(self, images=None, delay: float = 0.0):
        self.images = images if images is not None else [
            {"url": f"https://img.example/{i}.jpg", "title": f"img {i}", "source": "test"} for i in range(6)
        ]
        self.delay = delay

    async def search(self, queries):
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.images)


class FakeDownloader(IImageDownloader):
    def __init__(self, slow=(), broken=(), delay: float = 1.0):
        self.slow = set(slow)
        self.broken = set(broken)
        self.delay = delay

    async def download(self, image, dest_dir, index):
        if index in self.slow:
            await asyncio.sleep(self.delay)
        if index in self.broken:
            raise PartialAssetError(f"Failed to download image {index + 1}: 404")
        os.makedirs(dest_dir, exist_ok=True)
        path = os.path.join(dest_dir, f"image_{index:03d}.jpg")
        with open(path, "wb") as f:
            f.write(b"jpeg")
        return path


class FakeCapture(IScrollCapture):
    def __init__(self, frames: int = 50, delay: float = 0.0, error: Exception = None):
        self.frames = frames
        self.delay = delay
        self.error = error
        self.urls: List[str] = []

    async def capture_scroll(self, url, duration_seconds, frames_dir):
        self.urls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        os.makedirs(frames_dir, exist_ok=True)
        paths = []
        for i in range(self.frames):
            path = os.path.join(frames_dir, f"frame_{i:05d}.jpg")
            with open(path, "wb") as f:
                f.write(b"frame")
            paths.append(path)
        return paths


class FakeComposer(IVideoComposer):
    def __init__(self):
        self.frame_calls = []
        self.slideshow_calls = []
        self.text_only_calls = []

    async def compose_frames(self, frame_paths, duration_seconds, output_path):
        self.frame_calls.append((list(frame_paths), duration_seconds))
        with open(output_path, "wb") as f:
            f.write(b"silent-video")
        return output_path

    async def compose_slideshow(self, image_paths, duration_seconds, captions, script, output_path):
        self.slideshow_calls.append((list(image_paths), duration_seconds, list(captions), script))
        with open(output_path, "wb") as f:
            f.write(b"silent-video")
        return output_path

    async def compose_text_only(self, duration_seconds, captions, output_path, script=None):
        self.text_only_calls.append((duration_seconds, list(captions), script))
        with open(output_path, "wb") as f:
            f.write(b"silent-video")
        return output_path


class FakeMuxer(IMuxer):
    def __init__(self, fail: bool = False):
        self.fail = fail

    async def mux(self, video_path, audio_path, output_path):
        if self.fail:
            raise GenerationError("ffmpeg exited with status 1", stage="mux")
        with open(output_path, "wb") as f:
            f.write(b"final-video-with-audio")
        return output_path


def make_post(post_id="post-1", content=None, **extra):
    post = {
        "postId": post_id,
        "title": "How to sleep better",
        "excerpt": "Small habits that add up.",
        "slug": f"{post_id}-slug",
        "content": content if content is not None else "<p>" + ("Good sleep starts with a routine. " * 15) + "</p>",
        "videos": [],
    }
    post.update(extra)
    return post


@pytest.fixture
def build_pipeline(tmp_path):
    def _build(posts=None, **overrides):
        parts = {
            "post_store": InMemoryPostStore(posts if posts is not None else [make_post()]),
            "task_store": InMemoryTaskStore(),
            "video_store": InMemoryVideoStore(),
            "notifier": RecordingNotifier(),
            "script_generator": LLMScriptGenerator(FakeTextGenerator()),
            "image_search": FakeImageSearch(),
            "image_downloader": FakeDownloader(),
            "synthesizer": FakeSynthesizer(),
            "scroll_capture": FakeCapture(),
            "composer": FakeComposer(),
            "muxer": FakeMuxer(),
            "storage": LocalObjectStorage(str(tmp_path / "out")),
            "caption_aligner": CaptionAligner(),
        }
        options = {"notify_email": "", "temp_root": str(tmp_path)}
        for key, value in overrides.items():
            if key in parts:
                parts[key] = value
            else:
                options[key] = value
        return VideoPipeline(**parts, **options), parts

    return _build
