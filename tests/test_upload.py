import asyncio
from pathlib import Path

from post_video.adapters.upload import LocalObjectStorage, content_type_for


def test_local_storage_writes_by_category(tmp_path):
    storage = LocalObjectStorage(str(tmp_path))

    result = asyncio.run(storage.upload(b"video-bytes", "p1-scrolling.mp4", "videos"))

    path = Path(result["filePath"])
    assert path == tmp_path / "videos" / "p1-scrolling.mp4"
    assert path.read_bytes() == b"video-bytes"
    assert result["url"].startswith("file://")
    assert result["size"] == 11


def test_content_types():
    assert content_type_for("a.mp3") == "audio/mpeg"
    assert content_type_for("a.MP4") == "video/mp4"
    assert content_type_for("a.bin") == "application/octet-stream"
