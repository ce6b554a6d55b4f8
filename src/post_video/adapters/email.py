"""Completion notifications (INotifier) through the CMS email endpoint."""

import asyncio
from typing import Optional

import requests

from post_video import config
from post_video.ports.interfaces import INotifier

COMPLETION_HTML = """
<h1>Video Generation Complete</h1>
<p>Your video for post <strong>{post_id}</strong> has been successfully generated.</p>
<div style="margin: 20px 0;">
  <a href="{video_url}"
     style="padding: 10px 15px; background-color: #4CAF50; color: white; text-decoration: none; border-radius: 4px;">
    View Video
  </a>
</div>
<p>Direct link: <a href="{video_url}">{video_url}</a></p>
<hr>
<p style="color: #666; font-size: 0.8em;">This is an automated message from the post video pipeline.</p>
"""


class HttpEmailNotifier(INotifier):
    """Queues email through ``/api/email/sendEmail``. Failures are reported, not raised."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0):
        self.url = f"{(base_url or config.CMS_BASE_URL).rstrip('/')}/api/email/sendEmail"
        self.timeout = timeout

    def _send(self, payload: dict) -> bool:
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            body = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            print(f"  ⚠️  Error sending email: {e}")
            return False
        if not body.get("success"):
            print(f"  ⚠️  Email rejected: {body.get('message', 'unknown error')}")
            return False
        print("  📧 Email queued successfully")
        return True

    async def send_video_completion_email(self, recipient: str, video_url: str, post_id: str) -> bool:
        payload = {
            "to": recipient,
            "subject": f"Video Generation Complete: {post_id}",
            "html": COMPLETION_HTML.format(post_id=post_id, video_url=video_url),
            "videoUrl": video_url,
            "postId": post_id,
        }
        return await asyncio.to_thread(self._send, payload)
