"""
Post Video – turns blog posts into short vertical videos.

  from post_video.application.pipeline import VideoPipeline
  from post_video.adapters import default_adapters
  pipeline = VideoPipeline(**default_adapters())
  asyncio.run(pipeline.run_next_post("scripted"))

Every collaborator is a port (post_video.ports); inject fakes for tests.
"""

__version__ = "0.1.0"
