"""Application layer – use cases and pipeline orchestration."""

from post_video.application.pipeline import VideoPipeline

__all__ = ["VideoPipeline"]
