import asyncio

import pytest

from post_video.adapters.memory import InMemoryPostStore, InMemoryTaskStore, InMemoryVideoStore
from post_video.domain.errors import InvalidTransitionError


def test_append_video_is_idempotent():
    store = InMemoryPostStore([{"postId": "p1", "content": "x" * 80}])

    asyncio.run(store.append_video_to_post("p1", "v1"))
    asyncio.run(store.append_video_to_post("p1", "v1"))
    asyncio.run(store.append_video_to_post("p1", "v2"))

    assert asyncio.run(store.get_post("p1"))["videos"] == ["v1", "v2"]


def test_append_to_unknown_post_reports_false():
    assert asyncio.run(InMemoryPostStore().append_video_to_post("missing", "v1")) is False


def test_claim_marks_post_and_skips_it_next_time():
    store = InMemoryPostStore([
        {"postId": "a", "content": "x" * 80, "createdAt": "2024-01-01"},
        {"postId": "b", "content": "x" * 80, "createdAt": "2024-01-02"},
    ])

    first = asyncio.run(store.get_next_eligible_post())
    second = asyncio.run(store.get_next_eligible_post())
    third = asyncio.run(store.get_next_eligible_post())

    assert (first["postId"], second["postId"], third) == ("a", "b", None)
    assert asyncio.run(store.get_post("a"))["isVideoGenerating"] is True


def test_concurrent_claims_never_share_a_post():
    store = InMemoryPostStore([{"postId": f"p{i}", "content": "x" * 80, "createdAt": f"2024-01-0{i}"} for i in range(1, 4)])

    async def claim_all():
        return await asyncio.gather(*(store.get_next_eligible_post() for _ in range(5)))

    claimed = [p["postId"] for p in asyncio.run(claim_all()) if p]

    assert sorted(claimed) == ["p1", "p2", "p3"]


def test_short_content_falls_back_to_title_and_excerpt():
    store = InMemoryPostStore([{"postId": "p1", "title": "Sleep", "excerpt": "Rest well.", "content": "<p>Hi</p>"}])

    post = asyncio.run(store.get_next_eligible_post())

    assert post["content"] == "Sleep\n\nRest well."
    assert asyncio.run(store.get_post("p1"))["content"] == "<p>Hi</p>"


def test_task_lifecycle_is_enforced():
    store = InMemoryTaskStore()
    task = asyncio.run(store.create("video-generation", {"postId": "p1"}))
    assert task["status"] == "pending"

    asyncio.run(store.update_status(task["id"], "processing"))
    asyncio.run(store.patch_config(task["id"], {"script": "Hi"}))
    asyncio.run(store.update_status(task["id"], "completed", {"videoUrl": "u"}))

    with pytest.raises(InvalidTransitionError):
        asyncio.run(store.update_status(task["id"], "failed"))
    with pytest.raises(InvalidTransitionError):
        asyncio.run(store.patch_config(task["id"], {"script": "changed"}))

    stored = asyncio.run(store.get_by_id(task["id"]))
    assert stored["config"] == {"postId": "p1", "script": "Hi"}
    assert stored["result"] == {"videoUrl": "u"}


def test_email_flag_flips_once_even_when_terminal():
    store = InMemoryTaskStore()
    task = asyncio.run(store.create("video-generation", {"postId": "p1"}))
    asyncio.run(store.update_status(task["id"], "processing"))
    asyncio.run(store.update_status(task["id"], "completed"))

    assert asyncio.run(store.mark_email_sent(task["id"])) is True
    assert asyncio.run(store.mark_email_sent(task["id"])) is False


def test_video_record_freezes_when_terminal():
    store = InMemoryVideoStore()
    video_id = asyncio.run(store.create({"postId": "p1", "status": "processing"}))

    asyncio.run(store.update(video_id, {"status": "failed", "error": "boom"}))

    with pytest.raises(InvalidTransitionError):
        asyncio.run(store.update(video_id, {"downloadUrl": "u"}))
    with pytest.raises(InvalidTransitionError):
        asyncio.run(store.update(video_id, {"status": "completed"}))
    assert [v["id"] for v in asyncio.run(store.get_by_post_id("p1"))] == [video_id]
