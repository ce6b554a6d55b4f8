"""
Artifact storage (IObjectStorage).
HttpObjectStorage posts files to the CMS file API; LocalObjectStorage writes
them under OUTPUT_DIR for offline runs.
"""

import asyncio
import base64
import os
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from post_video import config
from post_video.domain.errors import GenerationError, TransientProviderError
from post_video.ports.interfaces import IObjectStorage

CONTENT_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".mp4": "video/mp4",
    ".jpg": "image/jpeg",
    ".png": "image/png",
}


def content_type_for(name: str) -> str:
    return CONTENT_TYPES.get(os.path.splitext(name)[1].lower(), "application/octet-stream")


class HttpObjectStorage(IObjectStorage):
    """Uploads base64 payloads to ``/api/file/uploadFile``."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 120.0):
        self.base_url = (base_url or config.CMS_BASE_URL).rstrip("/")
        self.timeout = timeout

    def _upload(self, data: bytes, name: str, category: str) -> Dict[str, Any]:
        payload = {
            "file": {"name": name, "data": base64.b64encode(data).decode("ascii")},
            "options": {"type": content_type_for(name), "category": category},
        }
        try:
            response = requests.post(f"{self.base_url}/api/file/uploadFile", json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransientProviderError(f"Upload of {category}/{name} failed: {e}") from e

        body = response.json() if response.content else {}
        if response.status_code != 200 or not body.get("success"):
            raise GenerationError(
                f"Upload of {category}/{name} rejected ({response.status_code}): {body.get('message', '')}",
                stage="upload",
            )
        if not body.get("url"):
            raise GenerationError(f"Upload of {category}/{name} returned no URL", stage="upload")
        return {"url": body["url"], "fileName": body.get("fileName", name), "size": len(data)}

    async def upload(self, data: bytes, name: str, category: str) -> Dict[str, Any]:
        try:
            result = await asyncio.to_thread(self._upload, data, name, category)
        except TransientProviderError as e:
            raise GenerationError(str(e), stage="upload") from e
        print(f"  ☁️  Uploaded {category}/{name} ({len(data)} bytes)")
        return result


class LocalObjectStorage(IObjectStorage):
    """Stores artifacts on disk and returns file:// URLs."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or config.OUTPUT_DIR)

    def _write(self, data: bytes, name: str, category: str) -> Dict[str, Any]:
        path = self.root / category / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return {"url": path.resolve().as_uri(), "fileName": name, "filePath": str(path), "size": len(data)}

    async def upload(self, data: bytes, name: str, category: str) -> Dict[str, Any]:
        result = await asyncio.to_thread(self._write, data, name, category)
        print(f"  💾 Saved {result['filePath']}")
        return result
