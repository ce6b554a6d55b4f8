"""Audio/video muxing (IMuxer) with MoviePy."""

import asyncio
import os

from moviepy.editor import AudioFileClip, VideoFileClip

from post_video import config
from post_video.domain.errors import GenerationError
from post_video.ports.interfaces import IMuxer


class MoviePyMuxer(IMuxer):
    """Attaches the narration to the visual track, cut to the shorter stream."""

    def __init__(self, fps: int = config.FPS):
        self.fps = fps

    def _mux(self, video_path: str, audio_path: str, output_path: str) -> str:
        for path in (video_path, audio_path):
            if not os.path.exists(path):
                raise GenerationError(f"Missing input for mux: {path}", stage="mux")

        video = VideoFileClip(video_path)
        audio = AudioFileClip(audio_path)
        try:
            duration = min(video.duration, audio.duration)
            final = video.subclip(0, duration).set_audio(audio.subclip(0, duration))
            final.write_videofile(
                output_path,
                fps=self.fps,
                codec="libx264",
                audio_codec="aac",
                audio_bitrate="192k",
                preset="fast",
                threads=4,
                logger=None,
            )
            print(f"  ✅ Muxed {duration:.2f}s of audio and video")
        finally:
            audio.close()
            video.close()
        return output_path

    async def mux(self, video_path: str, audio_path: str, output_path: str) -> str:
        return await asyncio.to_thread(self._mux, video_path, audio_path, output_path)
