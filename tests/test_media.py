import asyncio
import os

import pytest
from moviepy.editor import VideoFileClip
from PIL import Image
from pydub.generators import Sine

from post_video.adapters.mux import MoviePyMuxer
from post_video.adapters.video import MoviePyComposer
from post_video.domain.errors import GenerationError

# Tiny frames keep the encodes fast
WIDTH, HEIGHT, FPS = 108, 192, 10


def make_images(directory, count, size=(300, 200)):
    os.makedirs(directory, exist_ok=True)
    paths = []
    for i in range(count):
        path = os.path.join(directory, f"src_{i:03d}.png")
        Image.new("RGB", size, (40 * i % 255, 90, 160)).save(path)
        paths.append(path)
    return paths


def video_duration(path):
    clip = VideoFileClip(path)
    try:
        return clip.duration, tuple(clip.size)
    finally:
        clip.close()


@pytest.fixture
def composer():
    return MoviePyComposer(width=WIDTH, height=HEIGHT, fps=FPS)


def test_frames_fill_the_narration_duration(tmp_path, composer):
    frames = make_images(str(tmp_path / "frames"), 4, size=(1280, 720))
    output = str(tmp_path / "render" / "visual.mp4")

    asyncio.run(composer.compose_frames(frames, 3.0, output))

    duration, size = video_duration(output)
    assert duration == pytest.approx(3.0, abs=0.15)
    assert size == (WIDTH, HEIGHT)


def test_no_frames_is_a_compose_error(tmp_path, composer):
    with pytest.raises(GenerationError) as exc:
        asyncio.run(composer.compose_frames([], 3.0, str(tmp_path / "visual.mp4")))
    assert exc.value.stage == "compose"


def test_slideshow_with_captions_matches_duration(tmp_path, composer):
    images = make_images(str(tmp_path / "images"), 2)
    captions = [
        {"text": "Sleep shapes", "start": 0.0, "end": 1.5},
        {"text": "everything", "start": 1.5, "end": 9.0},
    ]
    output = str(tmp_path / "render" / "visual.mp4")

    asyncio.run(composer.compose_slideshow(images, 3.0, captions, "Sleep shapes everything", output))

    duration, size = video_duration(output)
    assert duration == pytest.approx(3.0, abs=0.15)
    assert size == (WIDTH, HEIGHT)


def test_slideshow_skips_unreadable_images(tmp_path, composer):
    images = make_images(str(tmp_path / "images"), 1)
    broken = tmp_path / "images" / "broken.jpg"
    broken.write_bytes(b"not an image")
    output = str(tmp_path / "render" / "visual.mp4")

    asyncio.run(composer.compose_slideshow([str(broken)] + images, 2.0, [], "Hi", output))

    duration, _ = video_duration(output)
    assert duration == pytest.approx(2.0, abs=0.15)


def test_text_only_render_matches_duration(tmp_path, composer):
    output = str(tmp_path / "render" / "visual.mp4")

    asyncio.run(composer.compose_text_only(2.0, [], output, script="sleep better tonight"))

    duration, size = video_duration(output)
    assert duration == pytest.approx(2.0, abs=0.15)
    assert size == (WIDTH, HEIGHT)


def test_mux_trims_to_the_shorter_audio(tmp_path, composer):
    video_path = str(tmp_path / "visual.mp4")
    audio_path = str(tmp_path / "narration.wav")
    output = str(tmp_path / "final.mp4")
    asyncio.run(composer.compose_text_only(3.0, [], video_path, script="hello"))
    Sine(440).to_audio_segment(duration=1500).export(audio_path, format="wav")

    asyncio.run(MoviePyMuxer(fps=FPS).mux(video_path, audio_path, output))

    clip = VideoFileClip(output)
    try:
        assert clip.duration == pytest.approx(1.5, abs=0.15)
        assert clip.audio is not None
    finally:
        clip.close()


def test_mux_requires_both_inputs(tmp_path):
    with pytest.raises(GenerationError) as exc:
        asyncio.run(MoviePyMuxer().mux(str(tmp_path / "v.mp4"), str(tmp_path / "a.mp3"), str(tmp_path / "out.mp4")))
    assert exc.value.stage == "mux"
