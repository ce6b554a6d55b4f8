import asyncio
import os

import pytest

from post_video.adapters.capture import (
    capture_frames,
    effective_scroll_height,
    plan_frame_count,
    scroll_positions,
    smoothstep,
)


class FakePage:
    """Screenshots succeed until ``close_after`` frames, then the target goes away."""

    def __init__(self, close_after=None, flaky_frames=()):
        self.close_after = close_after
        self.flaky_frames = set(flaky_frames)
        self.shots = 0
        self.scrolled_to = []

    async def evaluate(self, script, position):
        self.scrolled_to.append(position)

    async def screenshot(self, path, type, quality):
        index = len(self.scrolled_to) - 1
        if self.close_after is not None and self.shots >= self.close_after:
            raise RuntimeError("Protocol error: Target closed.")
        if index in self.flaky_frames:
            raise RuntimeError("Screenshot timed out")
        with open(path, "wb") as f:
            f.write(b"jpeg")
        self.shots += 1


def test_smoothstep_endpoints_and_midpoint():
    assert smoothstep(0.0) == 0.0
    assert smoothstep(1.0) == 1.0
    assert smoothstep(0.5) == pytest.approx(0.5)
    assert smoothstep(-1) == 0.0
    assert smoothstep(2) == 1.0


def test_scroll_is_slow_at_the_ends_and_fast_in_the_middle():
    positions = scroll_positions(21, 1000.0)
    steps = [b - a for a, b in zip(positions, positions[1:])]

    assert positions[0] == 0.0
    assert positions[-1] == pytest.approx(1000.0)
    assert all(step >= 0 for step in steps)
    assert steps[0] < steps[10] > steps[-1]


def test_small_pages_use_fallback_height():
    assert effective_scroll_height(120) == 3800
    assert effective_scroll_height(10000) == 8800
    assert effective_scroll_height(2000) == pytest.approx(1400)


def test_frame_count_is_capped():
    assert plan_frame_count(30) == 60
    assert plan_frame_count(500) == 200
    assert plan_frame_count(0.1) == 1


def test_capture_stops_gracefully_when_target_closes(tmp_path):
    page = FakePage(close_after=5)

    frames = asyncio.run(capture_frames(page, scroll_positions(50, 4000), str(tmp_path), settle_seconds=0))

    assert len(frames) == 5
    assert all(os.path.exists(f) for f in frames)
    assert len(page.scrolled_to) == 6


def test_single_frame_failures_are_skipped(tmp_path):
    page = FakePage(flaky_frames={2, 3})

    frames = asyncio.run(capture_frames(page, scroll_positions(10, 4000), str(tmp_path), settle_seconds=0))

    assert len(frames) == 8
    assert len(page.scrolled_to) == 10
