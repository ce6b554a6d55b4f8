"""Generic stand-in images used when stock image search is unavailable."""

import time
from typing import List, Optional

from post_video import config
from post_video.domain.models import ImageAsset

PLACEHOLDER_URL = "https://picsum.photos/{width}/{height}?random={seed}"


def placeholder_images(count: int = config.PLACEHOLDER_IMAGE_COUNT, seed: Optional[int] = None) -> List[ImageAsset]:
    """Generic images; the same seed gives the same set, a new seed a new set."""
    if seed is None:
        seed = int(time.time() * 1000)
    return [
        {
            "url": PLACEHOLDER_URL.format(width=config.VIDEO_WIDTH, height=config.VIDEO_HEIGHT, seed=seed + i),
            "title": f"Placeholder Image {i + 1}",
            "source": "Lorem Picsum",
        }
        for i in range(count)
    ]
