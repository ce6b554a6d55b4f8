"""
Stock image search (IImageSearch) and image download (IImageDownloader).
Image unavailability is never fatal: search falls back to placeholders and
failed downloads are skipped.
"""

import asyncio
import os
from typing import List, Optional

import requests

from post_video import config
from post_video.domain.errors import PartialAssetError
from post_video.domain.models import ImageAsset
from post_video.domain.placeholders import placeholder_images
from post_video.ports.interfaces import IImageDownloader, IImageSearch

PEXELS_SEARCH_URL = "https://api.pexels.com/v1/search"
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class PexelsImageSearch(IImageSearch):
    """Searches Pexels for portrait photos, a couple per query."""

    def __init__(self, api_key: Optional[str] = None, per_query: int = 2, timeout: float = 20.0):
        self.api_key = config.PEXELS_API_KEY if api_key is None else api_key
        self.per_query = per_query
        self.timeout = timeout

    def _search_one(self, query: str) -> List[ImageAsset]:
        response = requests.get(
            PEXELS_SEARCH_URL,
            headers={"Authorization": self.api_key},
            params={"query": query, "per_page": self.per_query, "orientation": "portrait"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        images: List[ImageAsset] = []
        for photo in response.json().get("photos", []):
            src = photo.get("src", {})
            url = src.get("portrait") or src.get("large2x") or src.get("original")
            if url:
                images.append({
                    "url": url,
                    "title": photo.get("alt") or query,
                    "source": f"Pexels / {photo.get('photographer', 'unknown')}",
                })
        return images

    def _search_all(self, queries: List[str]) -> List[ImageAsset]:
        if not self.api_key:
            raise PartialAssetError("PEXELS_API_KEY is not set")
        images: List[ImageAsset] = []
        for query in queries:
            try:
                images.extend(self._search_one(query))
            except (requests.exceptions.RequestException, ValueError) as e:
                print(f"  ⚠️  Image search failed for '{query}': {e}")
        if not images:
            raise PartialAssetError("Image search returned no results")
        return images

    async def search(self, queries: List[str]) -> List[ImageAsset]:
        try:
            images = await asyncio.to_thread(self._search_all, queries)
            print(f"  ✅ Found {len(images)} images for {len(queries)} queries")
            return images
        except PartialAssetError as e:
            print(f"  ⚠️  {e}; using placeholder images")
            return placeholder_images()


def _extension_for(content_type: str) -> str:
    if "png" in content_type:
        return ".png"
    if "gif" in content_type:
        return ".gif"
    if "webp" in content_type:
        return ".webp"
    return ".jpg"


class ImageDownloader(IImageDownloader):
    """Downloads one image at a time; failed or empty downloads raise PartialAssetError."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    def _download(self, image: ImageAsset, dest_dir: str, index: int) -> str:
        try:
            response = requests.get(image["url"], timeout=self.timeout, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise PartialAssetError(f"Failed to download image {index + 1}: {e}") from e
        if not response.content:
            raise PartialAssetError(f"Downloaded image {index + 1} is empty")

        extension = _extension_for(response.headers.get("content-type", ""))
        path = os.path.join(dest_dir, f"image_{index:03d}{extension}")
        with open(path, "wb") as f:
            f.write(response.content)
        return path

    async def download(self, image: ImageAsset, dest_dir: str, index: int) -> str:
        os.makedirs(dest_dir, exist_ok=True)
        return await asyncio.to_thread(self._download, image, dest_dir, index)
