"""Inbox processor: one poll cycle over one inbox category.

enumerate -> filter -> prime fetch -> settle -> fetch -> order -> route ->
per item (dedup, classify, freshness, deliver, record, approve) -> pace.
"""

import asyncio
import logging
import random
import time
import uuid

from relay import config
from relay.bot.discord_handler import send_message
from relay.core.classifier import classify
from relay.core.models import ItemType
from relay.core.thread_filter import is_in_scope
from relay.core.timestamps import resolve_timestamp, sort_key
from relay.memory.delivery_log import log_delivery

logger = logging.getLogger(__name__)


def order_items(items):
    """Oldest first. sorted() is stable, so equal timestamps keep fetch order."""
    return sorted(items, key=lambda item: sort_key(item.get("timestamp")))


class InboxProcessor:
    def __init__(
        self,
        source,
        router,
        context,
        allow_list=frozenset(),
        deliver=send_message,
        db=None,
        sleep=asyncio.sleep,
        clock=time.time,
        rand=random.uniform,
    ):
        self.source = source
        self.router = router
        self.context = context
        self.allow_list = allow_list
        self.deliver = deliver
        self.db = db
        self.sleep = sleep
        self.clock = clock
        self.rand = rand

    async def run_cycle(self, pending=False):
        """Process every in-scope thread of one category. Never raises."""
        category = "pending" if pending else "accepted"
        trace_id = str(uuid.uuid4())[:8]
        logger.info(f"[{category}] [{trace_id}] checking Instagram DMs...")

        try:
            threads = await self.source.list_threads(pending=pending)
        except Exception as e:
            logger.error(f"[{category}] [{trace_id}] error listing threads: {e}")
            return
        logger.info(f"[{category}] [{trace_id}] found {len(threads)} threads")

        for thread in threads:
            if not is_in_scope(thread, self.allow_list):
                logger.debug(
                    f"[{category}] [{trace_id}] skipping thread with {thread.primary_username} - not a target user"
                )
                continue

            try:
                await self.process_thread(thread, trace_id)
            except Exception as e:
                logger.error(f"[{category}] [{trace_id}] error processing thread {thread.thread_id}: {e}")

            await self.sleep(config.THREAD_PACING_SECONDS)

    async def process_thread(self, thread, trace_id="-"):
        category = thread.category
        username = thread.primary_username
        tag = f"[{category}] [{trace_id}]"

        logger.info(f"{tag} opening thread with {username} to trigger content loading...")
        await self.source.fetch_items(thread.thread_id)

        wait = self.rand(*config.SETTLE_DELAY_RANGE)
        logger.debug(f"{tag} waiting {wait:.1f}s for content to load...")
        await self.sleep(wait)

        items = order_items(await self.source.fetch_items(thread.thread_id))
        logger.info(f"{tag} retrieved {len(items)} messages from thread {thread.thread_id}")

        channel = await self.router.resolve(username)
        if channel is None:
            logger.error(f"{tag} could not get or create channel for {username}, skipping thread")
            return

        cutoff = self.clock() - config.FRESHNESS_WINDOW_SECONDS
        for item in items:
            try:
                await self._process_item(thread, item, channel, cutoff, tag, trace_id)
            except Exception as e:
                logger.error(f"{tag} error processing item {item.get('item_id')} in thread {thread.thread_id}: {e}")

    async def _process_item(self, thread, item, channel, cutoff, tag, trace_id):
        item_id = item.get("item_id")
        if self.context.ledger.has(item_id):
            return

        message = classify(item, thread.primary_username, pending=thread.pending)
        if message.degraded:
            logger.warning(f"{tag} degraded rendering for item {item_id} ({message.item_type.value})")

        sent_at = resolve_timestamp(item.get("timestamp"))
        item_time = sent_at.timestamp() if sent_at else self.clock()
        if item_time <= cutoff:
            logger.debug(f"{tag} item {item_id} older than the freshness window, not forwarding")
            return

        try:
            await self.deliver(channel, message)
        except Exception as e:
            logger.error(f"{tag} error sending item {item_id} to Discord: {e}")
            return

        self.context.ledger.record(item_id)
        self._log_delivery(thread, item_id, message, channel, trace_id)

        if thread.pending and message.item_type != ItemType.PLACEHOLDER:
            try:
                await self.source.approve(thread.thread_id)
                logger.info(f"{tag} thread {thread.thread_id} approved")
            except Exception as e:
                logger.error(f"{tag} error approving thread {thread.thread_id}: {e}")

    def _log_delivery(self, thread, item_id, message, channel, trace_id):
        if self.db is None:
            return
        try:
            log_delivery(
                self.db, trace_id, thread.category, thread.thread_id, str(item_id),
                message.item_type.value, getattr(channel, "name", None),
                {"degraded": message.degraded} if message.degraded else None,
            )
        except Exception as e:
            logger.warning(f"[delivery-log] write failed for item {item_id}: {e}")
