import asyncio

from post_video.adapters.stores import HttpPostStore


class FakeCmsClient:
    def __init__(self, body):
        self.body = body
        self.requests = []

    async def call(self, method, path, allow_404=False, **kwargs):
        self.requests.append((method, path))
        return self.body


def test_get_post_looks_up_the_post_listing():
    client = FakeCmsClient({"success": True, "posts": [
        {"id": "doc-1", "postId": "p1", "title": "First"},
        {"id": "doc-2", "postId": "p2", "title": "Second"},
    ]})
    store = HttpPostStore(client)

    by_post_id = asyncio.run(store.get_post("p2"))
    by_doc_id = asyncio.run(store.get_post("doc-1"))
    missing = asyncio.run(store.get_post("p9"))

    assert by_post_id["title"] == "Second"
    assert by_doc_id["title"] == "First"
    assert missing is None
    assert client.requests[0] == ("GET", "/api/posts/getAllPosts")
