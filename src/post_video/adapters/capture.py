"""
Scrolling webpage capture (IScrollCapture) with a headless Chromium.

The page is restyled for reading, its height measured, and screenshots are
taken while scrolling from top to bottom with a smoothstep curve so motion is
slowest at both ends.
"""

import asyncio
import math
import os
from typing import Any, List

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from post_video import config
from post_video.domain.errors import GenerationError
from post_video.ports.interfaces import IScrollCapture

READER_CSS = """
body {
  font-size: 140% !important;
  line-height: 1.4 !important;
  color: #333 !important;
  background-color: white !important;
  margin: 0 !important;
  padding: 20px !important;
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial, sans-serif !important;
}
p, div, span, li, td, th, a {
  font-size: 1em !important;
  line-height: 1.4 !important;
  margin-bottom: 12px !important;
  color: #333 !important;
}
h1, h2, h3, h4, h5, h6 {
  font-weight: bold !important;
  margin-top: 20px !important;
  margin-bottom: 15px !important;
  color: #111 !important;
}
h1 { font-size: 1.6em !important; }
h2 { font-size: 1.4em !important; }
h3, h4, h5, h6 { font-size: 1.2em !important; }
header, header nav, .navigation, .nav-menu, .navbar, [role="banner"], [role="navigation"],
footer, .footer, [role="contentinfo"],
.ad, .ads, .advertisement, .banner, .sidebar, aside, .aside, .related,
.cookie-banner, .consent-banner, .popup, .modal, .dialog,
button, .button, [type="button"], [role="button"] {
  display: none !important;
}
article, main, .content, .post-content, .entry-content {
  max-width: 100% !important;
  padding: 0 !important;
  margin: 0 !important;
}
img {
  max-width: 100% !important;
  height: auto !important;
  margin: 10px 0 !important;
}
"""

PAGE_HEIGHT_JS = """() => Math.max(
  document.body ? document.body.scrollHeight : 0,
  document.documentElement ? document.documentElement.scrollHeight : 0,
  document.body ? document.body.offsetHeight : 0
)"""

SCROLL_JS = "(pos) => window.scrollTo({top: pos, behavior: 'auto'})"

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-infobars",
    "--ignore-certificate-errors",
    "--disable-features=TranslateUI",
]

# Messages meaning the page is gone; capture stops with what it has
_CLOSED_MARKERS = ("detached frame", "target closed", "has been closed", "target page, context or browser")


def smoothstep(progress: float) -> float:
    progress = min(max(progress, 0.0), 1.0)
    return progress * progress * (3 - 2 * progress)


def plan_frame_count(
    duration_seconds: float,
    fps: float = config.CAPTURE_FPS,
    max_frames: int = config.CAPTURE_MAX_FRAMES,
) -> int:
    return max(1, min(int(math.floor(duration_seconds * fps)), max_frames))


def effective_scroll_height(page_height: float, viewport_height: float = config.CAPTURE_VIEWPORT_HEIGHT) -> float:
    """Scrollable distance, never less than 70% of the page."""
    if page_height < config.CAPTURE_MIN_PAGE_HEIGHT:
        page_height = config.CAPTURE_FALLBACK_PAGE_HEIGHT
    return max(page_height - viewport_height, page_height * 0.7)


def scroll_positions(frame_count: int, scroll_height: float) -> List[float]:
    """Eased positions from 0 to scroll_height inclusive."""
    if frame_count <= 1:
        return [0.0]
    return [smoothstep(i / (frame_count - 1)) * scroll_height for i in range(frame_count)]


def _is_closed_error(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _CLOSED_MARKERS)


async def capture_frames(page: Any, positions: List[float], frames_dir: str, settle_seconds: float = 0.2) -> List[str]:
    """
    Scroll to each position and screenshot. A failing frame is skipped; a
    detached frame or closed target ends the capture with the frames so far.
    """
    os.makedirs(frames_dir, exist_ok=True)
    frames: List[str] = []
    total = len(positions)
    for i, position in enumerate(positions):
        path = os.path.join(frames_dir, f"frame_{i:05d}.jpg")
        try:
            await page.evaluate(SCROLL_JS, position)
            if settle_seconds:
                await asyncio.sleep(settle_seconds)
            await page.screenshot(path=path, type="jpeg", quality=85)
            frames.append(path)
        except Exception as e:
            if _is_closed_error(e):
                print(f"  ⚠️  Page closed after {len(frames)}/{total} frames, stopping capture")
                break
            print(f"  ⚠️  Error capturing frame {i}: {e}")
        if i % 10 == 0:
            print(f"  📸 Captured {len(frames)}/{total} frames ({round(i / total * 100)}%)")
    return frames


class PlaywrightScrollCapture(IScrollCapture):
    """Captures the article page in a vertical viewport with Playwright Chromium."""

    def __init__(
        self,
        fps: float = config.CAPTURE_FPS,
        max_frames: int = config.CAPTURE_MAX_FRAMES,
        settle_seconds: float = 0.2,
    ):
        self.fps = fps
        self.max_frames = max_frames
        self.settle_seconds = settle_seconds

    async def _measure_page(self, page: Any, url: str) -> float:
        try:
            await page.goto(url, wait_until="networkidle", timeout=config.CAPTURE_NAVIGATION_TIMEOUT_MS)
            await page.add_style_tag(content=READER_CSS)
            await asyncio.sleep(config.CAPTURE_SETTLE_SECONDS)
            height = await page.evaluate(PAGE_HEIGHT_JS)
            print(f"  📏 Page height: {height}px")
            return float(height or 0)
        except PlaywrightError as e:
            # Timeouts leave a partially loaded page that is still worth capturing
            print(f"  ⚠️  Navigation problem ({e}); capturing what loaded")
            return 0.0

    async def capture_scroll(self, url: str, duration_seconds: float, frames_dir: str) -> List[str]:
        if not url or "undefined" in url:
            raise GenerationError(f"Invalid article URL: {url!r}", stage="capture")

        print(f"  🌐 Launching browser to capture: {url}")
        async with async_playwright() as p:
            browser = await p.chromium.launch(
                headless=config.CAPTURE_HEADLESS,
                executable_path=config.CHROMIUM_EXECUTABLE_PATH,
                args=CHROMIUM_ARGS,
            )
            try:
                page = await browser.new_page(
                    viewport={"width": config.CAPTURE_VIEWPORT_WIDTH, "height": config.CAPTURE_VIEWPORT_HEIGHT},
                    device_scale_factor=config.CAPTURE_DEVICE_SCALE,
                )
                page.set_default_navigation_timeout(config.CAPTURE_NAVIGATION_TIMEOUT_MS)
                page_height = await self._measure_page(page, url)
                if page_height < config.CAPTURE_MIN_PAGE_HEIGHT:
                    print(f"  ⚠️  Page height {page_height:.0f}px is too small, using {config.CAPTURE_FALLBACK_PAGE_HEIGHT}px")

                frame_count = plan_frame_count(duration_seconds, self.fps, self.max_frames)
                positions = scroll_positions(frame_count, effective_scroll_height(page_height))
                print(f"  📸 Capturing {frame_count} frames while scrolling")
                frames = await capture_frames(page, positions, frames_dir, self.settle_seconds)
            finally:
                try:
                    await browser.close()
                except PlaywrightError as e:
                    print(f"  ⚠️  Error closing browser: {e}")

        if not frames:
            raise GenerationError("No frames were captured, cannot create video", stage="capture")
        return frames
