"""
CLI entrypoint:
  post-video --type scrolling [--language en-US] [--voice-style neural]
  post-video --type scripted --post-id <postId>
  post-video --local --post-file post.json --type scripted
  post-video --status <videoId>
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from post_video import config
from post_video.adapters import InMemoryPostStore, default_adapters
from post_video.application.pipeline import VideoPipeline
from post_video.domain.models import VIDEO_TYPE_SCRIPTED, VIDEO_TYPE_SCROLLING


def _load_posts(path: str) -> List[dict]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, list) else [data]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate short vertical videos for blog posts")
    parser.add_argument(
        "--type",
        choices=[VIDEO_TYPE_SCROLLING, VIDEO_TYPE_SCRIPTED],
        default=VIDEO_TYPE_SCROLLING,
        help="Video type: 'scrolling' (narrated page scroll) or 'scripted' (AI script over images)",
    )
    parser.add_argument("--language", default="en-US", help="Narration language, e.g. en-US, es-ES")
    parser.add_argument("--voice-style", default=None, help="Voice style: neural, studio or conversational")
    parser.add_argument("--post-id", help="Generate for this post instead of claiming the next eligible one")
    parser.add_argument("--status", metavar="VIDEO_ID", help="Print the status of a video and exit")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Keep records in memory and write artifacts under OUTPUT_DIR",
    )
    parser.add_argument("--post-file", help="JSON file with a post (or list of posts) for --local runs")
    return parser


async def _main(args: argparse.Namespace) -> int:
    overrides = {}
    if args.local:
        if not args.post_file:
            print("--local needs --post-file with at least one post")
            return 2
        overrides["post_store"] = InMemoryPostStore(_load_posts(args.post_file))

    adapters = default_adapters(local=args.local, **overrides)
    pipeline = VideoPipeline(**adapters)

    if args.status:
        result = await pipeline.get_video_status(args.status)
    elif args.post_id:
        post = await adapters["post_store"].get_post(args.post_id)
        if not post:
            print(f"Post {args.post_id} not found.")
            return 1
        result = await pipeline.generate_video_for_post(post, args.type, args.language, args.voice_style)
    else:
        result = await pipeline.run_next_post(args.type, args.language, args.voice_style)
        if result is None:
            return 0

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    if not args.local and config.STORAGE_BACKEND == "local":
        print(f"Artifacts are stored locally under {config.OUTPUT_DIR}")
    sys.exit(asyncio.run(_main(args)))


if __name__ == "__main__":
    main()
