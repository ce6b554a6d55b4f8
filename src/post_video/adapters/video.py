"""
Visual track rendering (IVideoComposer) with MoviePy and Pillow.

Both modes write a silent vertical video whose length equals the narration;
the muxer adds the audio afterwards.
"""

import asyncio
import math
import os
from typing import List, Optional, Tuple

import numpy as np
from moviepy.editor import ColorClip, CompositeVideoClip, ImageClip, ImageSequenceClip, concatenate_videoclips
from PIL import Image, ImageDraw, ImageFont, ImageOps

from post_video import config
from post_video.adapters.captions import sanitize_caption_text
from post_video.domain.errors import GenerationError
from post_video.domain.models import CaptionCue
from post_video.ports.interfaces import IVideoComposer

FALLBACK_FONTS = ["DejaVuSans-Bold.ttf", "Arial Bold.ttf", "/System/Library/Fonts/Helvetica.ttc"]


def plan_image_pacing(
    image_count: int,
    duration: float,
    min_seconds: float = config.MIN_SECONDS_PER_IMAGE,
    max_seconds: float = config.MAX_SECONDS_PER_IMAGE,
) -> List[Tuple[int, float]]:
    """
    Decide which image shows in each slot and for how long.

    Too many images: only the first floor(duration / min_seconds) are used.
    Too few: images repeat in order so no slot runs past max_seconds, unless
    that would push a slot under min_seconds; the minimum dwell wins.
    Slot durations always sum to duration.
    """
    if image_count <= 0 or duration <= 0:
        return []

    per_image = duration / image_count
    if per_image < min_seconds:
        slots = max(1, int(math.floor(duration / min_seconds)))
    elif per_image > max_seconds:
        slots = int(math.ceil(duration / max_seconds))
        if duration / slots < min_seconds:
            slots = max(1, int(math.floor(duration / min_seconds)))
    else:
        slots = image_count

    each = duration / slots
    plan = [(i % image_count, each) for i in range(slots)]
    # Absorb float drift in the last slot
    used = each * (slots - 1)
    plan[-1] = (plan[-1][0], duration - used)
    return plan


def load_caption_font(size: int = config.CAPTION_FONT_SIZE):
    candidates = [config.CAPTION_FONT_PATH] if config.CAPTION_FONT_PATH else []
    for path in candidates + FALLBACK_FONTS:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def render_caption_image(text: str, width: int = config.VIDEO_WIDTH, font=None) -> np.ndarray:
    """White text with a black outline on a transparent strip, as an RGBA array."""
    font = font or load_caption_font()
    stroke = config.CAPTION_BORDER_WIDTH
    measure = ImageDraw.Draw(Image.new("RGBA", (10, 10)))
    bbox = measure.textbbox((0, 0), text, font=font, stroke_width=stroke)
    text_w = bbox[2] - bbox[0]
    text_h = bbox[3] - bbox[1]

    strip = Image.new("RGBA", (width, text_h + 20), (0, 0, 0, 0))
    draw = ImageDraw.Draw(strip)
    x = max((width - text_w) // 2, 0) - bbox[0]
    draw.text(
        (x, 10 - bbox[1]),
        text,
        font=font,
        fill=(255, 255, 255, 255),
        stroke_width=stroke,
        stroke_fill=(0, 0, 0, 255),
    )
    return np.array(strip)


def fit_to_frame(source_path: str, dest_path: str, size: Tuple[int, int], crop: bool = True) -> str:
    """Scale an image to the output frame, cropping (crop=True) or letterboxing."""
    with Image.open(source_path) as img:
        img = img.convert("RGB")
        if crop:
            fitted = ImageOps.fit(img, size, method=Image.LANCZOS)
        else:
            fitted = ImageOps.pad(img, size, method=Image.LANCZOS, color=(0, 0, 0))
        fitted.save(dest_path, "JPEG", quality=92)
    return dest_path


class MoviePyComposer(IVideoComposer):
    """Composes vertical videos with MoviePy."""

    def __init__(self, width: int = config.VIDEO_WIDTH, height: int = config.VIDEO_HEIGHT, fps: int = config.FPS):
        self.width = width
        self.height = height
        self.fps = fps

    @property
    def caption_y(self) -> int:
        return int(self.height * config.CAPTION_Y_RATIO + config.CAPTION_Y_OFFSET)

    def _write(self, clip, output_path: str) -> str:
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        try:
            clip.write_videofile(
                output_path,
                fps=self.fps,
                codec="libx264",
                audio=False,
                preset="fast",
                threads=4,
                logger=None,
            )
        finally:
            clip.close()
        return output_path

    def _caption_clips(self, captions: List[CaptionCue], duration: float) -> List[ImageClip]:
        font = load_caption_font()
        clips = []
        for cue in captions:
            start = max(0.0, float(cue["start"]))
            end = min(float(cue["end"]), duration)
            text = sanitize_caption_text(cue["text"])
            if not text or end <= start:
                continue
            clip = ImageClip(render_caption_image(text, self.width, font), transparent=True)
            clips.append(clip.set_start(start).set_duration(end - start).set_position(("center", self.caption_y)))
        return clips

    def _compose_frames(self, frame_paths: List[str], duration: float, output_path: str) -> str:
        if not frame_paths:
            raise GenerationError("No frames to compose", stage="compose")
        frames_dir = os.path.join(os.path.dirname(output_path) or ".", "fitted_frames")
        os.makedirs(frames_dir, exist_ok=True)
        fitted = [
            fit_to_frame(path, os.path.join(frames_dir, f"fitted_{i:05d}.jpg"), (self.width, self.height), crop=False)
            for i, path in enumerate(frame_paths)
        ]
        # Frames are spread evenly so a short capture still fills the narration
        per_frame = duration / len(fitted)
        clip = ImageSequenceClip(fitted, durations=[per_frame] * len(fitted)).set_duration(duration)
        print(f"  🎞️  {len(fitted)} frames at {per_frame:.2f}s each")
        return self._write(clip, output_path)

    def _compose_slideshow(
        self,
        image_paths: List[str],
        duration: float,
        captions: List[CaptionCue],
        script: Optional[str],
        output_path: str,
    ) -> str:
        fitted = []
        if image_paths:
            work_dir = os.path.join(os.path.dirname(output_path) or ".", "fitted_images")
            os.makedirs(work_dir, exist_ok=True)
            for i, path in enumerate(image_paths):
                try:
                    fitted.append(fit_to_frame(path, os.path.join(work_dir, f"fitted_{i:03d}.jpg"), (self.width, self.height)))
                except OSError as e:
                    print(f"  ⚠️  Skipping unreadable image {path}: {e}")
        plan = plan_image_pacing(len(fitted), duration)

        if plan:
            slides = [ImageClip(fitted[index]).set_duration(seconds) for index, seconds in plan]
            base = concatenate_videoclips(slides, method="chain")
            print(f"  🖼️  {len(plan)} slides from {len(fitted)} images ({plan[0][1]:.2f}s each)")
        else:
            base = ColorClip((self.width, self.height), color=(0, 0, 0)).set_duration(duration)
            print("  ⚠️  No images available, rendering text-only video")
            if not captions and script and script.strip():
                captions = [{"text": script.strip().title(), "start": 0.0, "end": duration}]

        layers = [base] + self._caption_clips(captions, duration)
        final = CompositeVideoClip(layers, size=(self.width, self.height)).set_duration(duration)
        return self._write(final, output_path)

    async def compose_frames(self, frame_paths: List[str], duration_seconds: float, output_path: str) -> str:
        return await asyncio.to_thread(self._compose_frames, frame_paths, duration_seconds, output_path)

    async def compose_slideshow(
        self,
        image_paths: List[str],
        duration_seconds: float,
        captions: List[CaptionCue],
        script: str,
        output_path: str,
    ) -> str:
        return await asyncio.to_thread(
            self._compose_slideshow, image_paths, duration_seconds, captions, script, output_path
        )

    async def compose_text_only(
        self, duration_seconds: float, captions: List[CaptionCue], output_path: str, script: Optional[str] = None
    ) -> str:
        return await asyncio.to_thread(self._compose_slideshow, [], duration_seconds, captions, script, output_path)
