"""Instagram inbox access via instagrapi.

instagrapi's typed models drop fields we rely on (raw timestamps, placeholder
payloads, nested clip data), so threads and items are read as raw JSON through
`Client.private_request`. Every call is blocking and runs on a worker thread.
"""

import asyncio
import logging

from instagrapi import Client

from relay.core.models import Thread

logger = logging.getLogger(__name__)

INBOX_PARAMS = {
    "visual_message_return_type": "unseen",
    "thread_message_limit": "10",
    "persistentBadging": "true",
    "limit": "20",
}
THREAD_PARAMS = {
    "visual_message_return_type": "unseen",
    "direction": "older",
    "limit": "20",
}


class InstagramInbox:
    def __init__(self, username, password, client=None):
        self.username = username
        self.password = password
        self.client = client or Client()

    def _login(self):
        if not self.username or not self.password:
            raise ValueError("Instagram credentials not found in environment variables")
        self.client.login(self.username, self.password)
        logger.info("Logged into Instagram successfully")

    async def login(self):
        await asyncio.to_thread(self._login)

    def _list_threads(self, pending):
        endpoint = "direct_v2/pending_inbox/" if pending else "direct_v2/inbox/"
        result = self.client.private_request(endpoint, params=INBOX_PARAMS)
        raw_threads = (result.get("inbox") or {}).get("threads") or []
        return [Thread.from_raw(raw, pending=pending) for raw in raw_threads]

    async def list_threads(self, pending=False):
        """Threads in the accepted inbox, or in message requests when pending."""
        return await asyncio.to_thread(self._list_threads, pending)

    def _fetch_items(self, thread_id):
        result = self.client.private_request(
            f"direct_v2/threads/{thread_id}/", params=THREAD_PARAMS
        )
        return list((result.get("thread") or {}).get("items") or [])

    async def fetch_items(self, thread_id):
        """Raw item dicts for a thread, newest first as Instagram returns them."""
        return await asyncio.to_thread(self._fetch_items, thread_id)

    def _approve(self, thread_id):
        self.client.private_request(
            f"direct_v2/threads/{thread_id}/approve/",
            data={"filter": "DEFAULT", "_uuid": self.client.uuid},
            with_signature=False,
        )

    async def approve(self, thread_id):
        await asyncio.to_thread(self._approve, thread_id)

    async def ping(self):
        """Cheap authenticated read used to keep the session warm."""
        await asyncio.to_thread(self.client.get_timeline_feed)
