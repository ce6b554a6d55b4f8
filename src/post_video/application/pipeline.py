"""
Video pipeline – orchestrates one generation run for one post:
narration → visuals (scroll capture or script + images + captions) → mux → publish.
Depends only on port interfaces; every collaborator is injected.
"""

import asyncio
import contextlib
import os
import tempfile
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from post_video import config
from post_video.domain.errors import GenerationError, PartialAssetError, PipelineError, ValidationError
from post_video.domain.models import (
    TASK_TYPE_SCRIPTED,
    TASK_TYPE_SCROLLING,
    VIDEO_TYPE_SCRIPTED,
    VIDEO_TYPE_SCROLLING,
    CaptionCue,
    ImageAsset,
    PipelineConfig,
    Post,
    ScriptedConfig,
    ScrollingConfig,
    StageTimeouts,
    VideoServiceResponse,
)
from post_video.domain.placeholders import placeholder_images
from post_video.domain.status import COMPLETED, FAILED, PROCESSING
from post_video.ports.interfaces import (
    ICaptionAligner,
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
    IVideoComposer,
    IVideoStore,
)

Heartbeat = Callable[[str], None]


def canonical_post_url(post: Post, site_base_url: str = config.SITE_BASE_URL) -> str:
    """The post's public URL, built from slug or postId when the CMS has none."""
    if post.get("URL"):
        return post["URL"]
    key = post.get("slug") or post.get("postId") or post.get("id")
    return f"{site_base_url.rstrip('/')}/posts/{key}"


def artifact_base_name(post_id: str, video_type: str, language: str) -> str:
    if video_type == VIDEO_TYPE_SCRIPTED:
        return f"{post_id}-scripted-{language.replace('-', '_')}"
    return f"{post_id}-scrolling"


class VideoPipeline:
    """
    Orchestrates video generation for blog posts.
    All dependencies are injected (ports); no concrete implementations here.
    Public operations never raise: failures come back as VideoServiceResponse.
    """

    def __init__(
        self,
        *,
        post_store: IPostStore,
        task_store: ITaskStore,
        video_store: IVideoStore,
        notifier: INotifier,
        script_generator: IScriptGenerator,
        image_search: IImageSearch,
        image_downloader: IImageDownloader,
        synthesizer: INarrationSynthesizer,
        scroll_capture: IScrollCapture,
        composer: IVideoComposer,
        muxer: IMuxer,
        storage: IObjectStorage,
        caption_aligner: ICaptionAligner,
        timeouts: Optional[StageTimeouts] = None,
        notify_email: Optional[str] = None,
        heartbeat: Optional[Heartbeat] = None,
        heartbeat_interval: float = config.HEARTBEAT_INTERVAL,
        temp_root: Optional[str] = None,
    ):
        self._posts = post_store
        self._tasks = task_store
        self._videos = video_store
        self._notifier = notifier
        self._script = script_generator
        self._image_search = image_search
        self._downloader = image_downloader
        self._synth = synthesizer
        self._capture = scroll_capture
        self._composer = composer
        self._muxer = muxer
        self._storage = storage
        self._captions = caption_aligner
        self._timeouts = timeouts or StageTimeouts()
        self._notify_email = config.NOTIFY_EMAIL if notify_email is None else notify_email
        self._heartbeat = heartbeat
        self._heartbeat_interval = heartbeat_interval
        self._temp_root = temp_root

    # Public operations

    async def generate_video_for_post(
        self,
        post: Post,
        video_type: str = VIDEO_TYPE_SCROLLING,
        language: str = "en-US",
        voice_style: Optional[str] = None,
    ) -> VideoServiceResponse:
        """Generate a scrolling or scripted video for ``post``."""
        if video_type == VIDEO_TYPE_SCRIPTED:
            return await self.generate_scripted_video(post, language, voice_style)
        if video_type == VIDEO_TYPE_SCROLLING:
            return await self.generate_scrolling_video(post, language, voice_style)
        message = f"Unknown video type: {video_type!r}"
        print(f"❌ {message}")
        return VideoServiceResponse(
            success=False,
            message=message,
            postId=post.get("postId") or post.get("id"),
            error=message,
        )

    async def generate_scrolling_video(
        self, post: Post, language: str = "en-US", voice_style: Optional[str] = None
    ) -> VideoServiceResponse:
        cfg = ScrollingConfig(article_url=canonical_post_url(post), language=language)
        if voice_style:
            cfg.voice_style = voice_style
        return await self._run(post, cfg)

    async def generate_scripted_video(
        self, post: Post, language: str = "en-US", voice_style: Optional[str] = None
    ) -> VideoServiceResponse:
        cfg = ScriptedConfig(language=language)
        if voice_style:
            cfg.voice_style = voice_style
        return await self._run(post, cfg)

    async def get_video_status(self, video_id: str) -> VideoServiceResponse:
        try:
            video = await self._run_stage("metadata", self._videos.get_by_id(video_id), self._timeouts.metadata)
        except PipelineError as e:
            return VideoServiceResponse(success=False, message="Failed to get video status", videoId=video_id, error=str(e))
        if not video:
            return VideoServiceResponse(
                success=False, message="Video not found", videoId=video_id, error=f"Video {video_id} not found"
            )
        return VideoServiceResponse(
            success=True,
            message=f"Video is {video.get('status', 'unknown')}",
            postId=video.get("postId"),
            videoId=video_id,
            taskId=video.get("taskId"),
            videoUrl=video.get("downloadUrl") or None,
            status=video.get("status"),
            duration=video.get("duration"),
            error=video.get("error") or None,
        )

    async def run_next_post(
        self,
        video_type: str = VIDEO_TYPE_SCROLLING,
        language: str = "en-US",
        voice_style: Optional[str] = None,
    ) -> Optional[VideoServiceResponse]:
        """Claim the next eligible post and generate its video. None when nothing is eligible."""
        print("=" * 60)
        print(f"Generating {video_type} video for the next eligible post...")
        print("=" * 60)
        try:
            post = await self._run_stage("metadata", self._posts.get_next_eligible_post(), self._timeouts.metadata)
        except PipelineError as e:
            print(f"❌ Could not claim a post: {e}")
            return VideoServiceResponse(success=False, message="Failed to claim the next post", error=str(e))
        if not post:
            print("No posts available for video generation.")
            return None
        print(f"Claimed post {post.get('postId') or post.get('id')}: {post.get('title', 'Untitled')[:60]}")
        return await self.generate_video_for_post(post, video_type, language, voice_style)

    # Orchestration

    async def _run(self, post: Post, cfg: PipelineConfig) -> VideoServiceResponse:
        scripted = isinstance(cfg, ScriptedConfig)
        video_type = VIDEO_TYPE_SCRIPTED if scripted else VIDEO_TYPE_SCROLLING
        post_id = post.get("postId") or post.get("id")

        try:
            content = self._validate(post, post_id)
        except ValidationError as e:
            print(f"❌ {e}")
            return VideoServiceResponse(success=False, message=str(e), postId=post_id, error=str(e))

        state: Dict[str, Optional[str]] = {"task_id": None, "video_id": None}
        temp_root = self._temp_root or config.TEMP_DIR
        try:
            os.makedirs(temp_root, exist_ok=True)
            with tempfile.TemporaryDirectory(prefix=f"post-video-{post_id}-", dir=temp_root) as work_dir:
                if scripted:
                    return await self._scripted(post, post_id, content, cfg, work_dir, state)
                return await self._scrolling(post_id, content, cfg, work_dir, state)
        except Exception as e:
            print(f"\n❌ {video_type.capitalize()} video failed for post {post_id}: {e}")
            await self._mark_failed(state["task_id"], state["video_id"], e)
            return VideoServiceResponse(
                success=False,
                message=f"Failed to generate {video_type} video",
                postId=post_id,
                videoId=state["video_id"],
                taskId=state["task_id"],
                status=FAILED,
                error=str(e) or e.__class__.__name__,
            )

    def _validate(self, post: Post, post_id: Optional[str]) -> str:
        if not post_id:
            raise ValidationError("Post has no postId")
        content = (post.get("content") or "").strip()
        if not content:
            raise ValidationError(f"Post {post_id} has no content to generate a video from")
        return content

    async def _scrolling(
        self,
        post_id: str,
        content: str,
        cfg: ScrollingConfig,
        work_dir: str,
        state: Dict[str, Optional[str]],
    ) -> VideoServiceResponse:
        t = self._timeouts
        step = _Steps(7)
        base_name = artifact_base_name(post_id, VIDEO_TYPE_SCROLLING, cfg.language)

        step("Creating task...")
        task_id = await self._start_task(
            TASK_TYPE_SCROLLING,
            {"postId": post_id, "language": cfg.language, "articleUrl": cfg.article_url},
            state,
        )

        step("Synthesizing narration for the full post...")
        narration = await self._run_stage(
            "narration", self._synth.synthesize(content, cfg.language, cfg.voice_style), t.narration
        )
        duration = self._check_duration(narration.duration_seconds)
        audio_path, audio_url = await self._publish_audio(narration.audio_bytes, base_name, work_dir)
        await self._patch_task(task_id, {"audioFile": audio_url, "durationInSeconds": duration})

        video_id = await self._create_video(post_id, task_id, VIDEO_TYPE_SCROLLING, cfg.language, audio_url, base_name, state)

        step(f"Capturing page scroll: {cfg.article_url}")
        frames = await self._run_stage(
            "capture",
            self._capture.capture_scroll(cfg.article_url, duration, os.path.join(work_dir, "frames")),
            t.capture,
            keep_alive=True,
        )
        print(f"  ✅ Captured {len(frames)} frames")

        step("Composing video from frames...")
        silent_path = await self._run_stage(
            "compose",
            self._composer.compose_frames(frames, duration, os.path.join(work_dir, "visual.mp4")),
            t.compose,
            keep_alive=True,
        )

        step("Muxing narration and video...")
        final_path = await self._run_stage(
            "mux", self._muxer.mux(silent_path, audio_path, os.path.join(work_dir, "final.mp4")), t.mux, keep_alive=True
        )

        step("Publishing video...")
        video_url = await self._publish_video(final_path, base_name, post_id, video_id, duration)

        step("Finalizing records...")
        return await self._finish(task_id, video_id, post_id, video_url, duration, VIDEO_TYPE_SCROLLING)

    async def _scripted(
        self,
        post: Post,
        post_id: str,
        content: str,
        cfg: ScriptedConfig,
        work_dir: str,
        state: Dict[str, Optional[str]],
    ) -> VideoServiceResponse:
        t = self._timeouts
        step = _Steps(8)
        base_name = artifact_base_name(post_id, VIDEO_TYPE_SCRIPTED, cfg.language)

        step("Creating task...")
        task_id = await self._start_task(TASK_TYPE_SCRIPTED, {"postId": post_id, "language": cfg.language}, state)

        step("Generating narration script...")
        script_result = await self._run_stage(
            "script", self._script.generate(content, post.get("title", ""), cfg.language), t.script
        )
        script = script_result.script
        await self._patch_task(task_id, {"script": script})

        step(f"Searching images for {len(script_result.image_queries)} queries...")
        images = await self._search_images(script_result.image_queries)
        await self._patch_task(task_id, {"images": images})

        step("Synthesizing narration...")
        narration = await self._run_stage(
            "narration", self._synth.synthesize(script, cfg.language, cfg.voice_style), t.narration
        )
        duration = self._check_duration(narration.duration_seconds)
        audio_path, audio_url = await self._publish_audio(narration.audio_bytes, base_name, work_dir)

        step("Aligning captions...")
        captions: List[CaptionCue] = self._captions.align(script, narration, duration)
        await self._patch_task(
            task_id, {"audioFile": audio_url, "durationInSeconds": duration, "captions": captions}
        )

        video_id = await self._create_video(post_id, task_id, VIDEO_TYPE_SCRIPTED, cfg.language, audio_url, base_name, state)

        step("Rendering slideshow...")
        image_paths = await self._download_images(images, os.path.join(work_dir, "images"))
        visual_path = os.path.join(work_dir, "visual.mp4")
        if image_paths:
            render = self._composer.compose_slideshow(image_paths, duration, captions, script, visual_path)
        else:
            print("  ⚠️  No image could be downloaded, rendering text-only video")
            render = self._composer.compose_text_only(duration, captions, visual_path, script)
        silent_path = await self._run_stage("compose", render, t.compose, keep_alive=True)

        step("Muxing narration and video...")
        final_path = await self._run_stage(
            "mux", self._muxer.mux(silent_path, audio_path, os.path.join(work_dir, "final.mp4")), t.mux, keep_alive=True
        )

        step("Publishing video and finalizing records...")
        video_url = await self._publish_video(final_path, base_name, post_id, video_id, duration)
        return await self._finish(task_id, video_id, post_id, video_url, duration, VIDEO_TYPE_SCRIPTED)

    # Stage helpers

    async def _run_stage(self, name: str, awaitable: Awaitable, timeout: float, keep_alive: bool = False):
        """Await one stage under its timeout; a timeout fails the stage."""
        beat = None
        if keep_alive and self._heartbeat is not None:
            beat = asyncio.create_task(self._beat(name))
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Timed out after {timeout:.0f}s", stage=name) from e
        finally:
            if beat is not None:
                beat.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await beat

    async def _beat(self, stage: str) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            self._heartbeat(stage)

    @staticmethod
    def _check_duration(duration: float) -> float:
        if not duration or duration <= 0:
            raise GenerationError("Narration has no measurable duration", stage="narration")
        print(f"  ⏱️  Target duration: {duration:.2f}s")
        return duration

    async def _search_images(self, queries: List[str]) -> List[ImageAsset]:
        try:
            return await self._run_stage("image_search", self._image_search.search(queries), self._timeouts.image_search)
        except GenerationError as e:
            print(f"  ⚠️  {e}; using placeholder images")
            return placeholder_images()

    async def _download_images(self, images: List[ImageAsset], dest_dir: str) -> List[str]:
        """Each download is bounded on its own; whatever finished is kept."""
        paths = []
        for i, image in enumerate(images):
            try:
                paths.append(
                    await self._run_stage(
                        "image_download", self._downloader.download(image, dest_dir, i), self._timeouts.image_download
                    )
                )
            except (GenerationError, PartialAssetError) as e:
                print(f"  ⚠️  Skipping image {i + 1}: {e}")
        print(f"  ✅ Downloaded {len(paths)}/{len(images)} images")
        return paths

    async def _start_task(self, task_type: str, task_config: Dict[str, Any], state: Dict[str, Optional[str]]) -> str:
        t = self._timeouts.metadata
        task = await self._run_stage("metadata", self._tasks.create(task_type, task_config), t)
        state["task_id"] = task["id"]
        await self._run_stage("metadata", self._tasks.update_status(task["id"], PROCESSING), t)
        print(f"  ✅ Task {task['id']} ({task_type}) is processing")
        return task["id"]

    async def _patch_task(self, task_id: str, patch: Dict[str, Any]) -> None:
        await self._run_stage("metadata", self._tasks.patch_config(task_id, patch), self._timeouts.metadata)

    async def _create_video(
        self,
        post_id: str,
        task_id: str,
        video_type: str,
        language: str,
        audio_url: str,
        base_name: str,
        state: Dict[str, Optional[str]],
    ) -> str:
        video_id = await self._run_stage(
            "metadata",
            self._videos.create({
                "postId": post_id,
                "taskId": task_id,
                "type": video_type,
                "language": language,
                "status": PROCESSING,
                "audioFile": audio_url,
                "fileName": f"{base_name}.{config.VIDEO_FORMAT}",
                "format": config.VIDEO_FORMAT,
                "resolution": f"{config.VIDEO_WIDTH}x{config.VIDEO_HEIGHT}",
            }),
            self._timeouts.metadata,
        )
        state["video_id"] = video_id
        print(f"  ✅ Video record {video_id} created")
        return video_id

    async def _publish_audio(self, audio_bytes: bytes, base_name: str, work_dir: str):
        audio_path = os.path.join(work_dir, "narration.mp3")
        await asyncio.to_thread(Path(audio_path).write_bytes, audio_bytes)
        uploaded = await self._run_stage(
            "upload", self._storage.upload(audio_bytes, f"{base_name}.mp3", "audio"), self._timeouts.upload
        )
        return audio_path, uploaded["url"]

    async def _publish_video(self, final_path: str, base_name: str, post_id: str, video_id: str, duration: float) -> str:
        data = await asyncio.to_thread(Path(final_path).read_bytes)
        file_name = f"{base_name}.{config.VIDEO_FORMAT}"
        uploaded = await self._run_stage("upload", self._storage.upload(data, file_name, "videos"), self._timeouts.upload)
        video_url = uploaded.get("url")
        if not video_url:
            raise GenerationError("Storage returned no URL for the video", stage="upload")
        await self._run_stage(
            "metadata",
            self._videos.update(video_id, {
                "downloadUrl": video_url,
                "duration": duration,
                "fileSize": len(data),
                "filePath": uploaded.get("filePath") or f"videos/{file_name}",
                "format": config.VIDEO_FORMAT,
                "resolution": f"{config.VIDEO_WIDTH}x{config.VIDEO_HEIGHT}",
            }),
            self._timeouts.metadata,
        )
        print(f"  ✅ Video {video_id} uploaded: {video_url}")
        return video_url

    async def _finish(
        self,
        task_id: str,
        video_id: str,
        post_id: str,
        video_url: str,
        duration: float,
        video_type: str,
    ) -> VideoServiceResponse:
        t = self._timeouts.metadata
        await self._patch_task(task_id, {"videoFile": video_url})
        linked = await self._run_stage("metadata", self._posts.append_video_to_post(post_id, video_id), t)
        if not linked:
            raise GenerationError(f"Could not link video {video_id} to post {post_id}", stage="metadata")
        # The Video completes only once the post links to it
        await self._run_stage("metadata", self._videos.update(video_id, {"status": COMPLETED}), t)
        await self._run_stage(
            "metadata", self._tasks.update_status(task_id, COMPLETED, {"videoUrl": video_url, "videoId": video_id}), t
        )
        await self._notify(task_id, video_url, post_id)

        print(f"\n✅ Success! {video_type.capitalize()} video for post {post_id}: {video_url}")
        return VideoServiceResponse(
            success=True,
            message=f"{video_type.capitalize()} video generated successfully",
            postId=post_id,
            videoId=video_id,
            taskId=task_id,
            videoUrl=video_url,
            status=COMPLETED,
            duration=duration,
        )

    async def _notify(self, task_id: str, video_url: str, post_id: str) -> None:
        """Send the completion email once per task when a recipient is configured."""
        if not self._notify_email:
            return
        t = self._timeouts.metadata
        try:
            task = await self._run_stage("metadata", self._tasks.get_by_id(task_id), t)
            if task and task.get("emailSent"):
                return
            sent = await self._run_stage(
                "metadata", self._notifier.send_video_completion_email(self._notify_email, video_url, post_id), t
            )
            if sent:
                await self._run_stage("metadata", self._tasks.mark_email_sent(task_id), t)
        except Exception as e:
            print(f"  ⚠️  Completion email not sent: {e}")

    async def _mark_failed(self, task_id: Optional[str], video_id: Optional[str], error: Exception) -> None:
        """Mark the Video and Task failed independently; one failing does not block the other."""
        message = str(error) or error.__class__.__name__
        t = self._timeouts.metadata
        if video_id:
            try:
                await self._run_stage("metadata", self._videos.update(video_id, {"status": FAILED, "error": message}), t)
            except Exception as e:
                print(f"  ⚠️  Could not mark video {video_id} failed: {e}")
        if task_id:
            try:
                await self._run_stage("metadata", self._tasks.update_status(task_id, FAILED, {"error": message}), t)
            except Exception as e:
                print(f"  ⚠️  Could not mark task {task_id} failed: {e}")


class _Steps:
    """Prints numbered step headers like the CLI progress output."""

    def __init__(self, total: int):
        self.total = total
        self.current = 0

    def __call__(self, message: str) -> None:
        self.current += 1
        print(f"\n[{self.current}/{self.total}] {message}")
