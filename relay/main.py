import asyncio
import logging
import sys

import discord

from relay import config
from relay.bot.channel_router import ChannelRouter
from relay.bot.discord_handler import build_client
from relay.core.context import RelayContext
from relay.core.processor import InboxProcessor
from relay.integrations.instagram import InstagramInbox
from relay.memory.database import init_db
from relay.scheduler.poller import Scheduler

logger = logging.getLogger("relay")


def _setup_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _log_uncaught(exc_type, exc, tb):
    logger.error("Uncaught exception", exc_info=(exc_type, exc, tb))


def _log_loop_exception(loop, context):
    logger.error(f"Unhandled async error: {context.get('message')}", exc_info=context.get("exception"))


def main():
    _setup_logging()
    sys.excepthook = _log_uncaught

    logger.info(f"Instagram username available: {bool(config.IG_USERNAME)}")
    logger.info(f"Instagram password available: {bool(config.IG_PASSWORD)}")
    if not config.IG_USERNAME or not config.IG_PASSWORD:
        logger.error("Set IG_USERNAME and IG_PASSWORD in .env")
        sys.exit(1)
    if not config.DISCORD_TOKEN:
        logger.error("Set DISCORD_TOKEN in .env")
        sys.exit(1)

    targets = ", ".join(sorted(config.TARGET_USERNAMES)) or "all users"
    logger.info(f"Configured to monitor DMs from: {targets}")

    source = InstagramInbox(config.IG_USERNAME, config.IG_PASSWORD)
    try:
        asyncio.run(source.login())
    except Exception as e:
        logger.error(f"Instagram login failed: {e}")
        sys.exit(1)

    context = RelayContext()
    db = init_db(config.DB_PATH) if config.DB_PATH else None
    scheduler = None

    async def on_ready(client):
        # on_ready fires again after reconnects; only start the timers once
        nonlocal scheduler
        if scheduler is not None:
            return
        asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
        router = ChannelRouter(
            client,
            context.routes,
            guild_id=config.DISCORD_GUILD_ID,
            category_id=config.DISCORD_CATEGORY_ID,
        )
        processor = InboxProcessor(
            source, router, context, allow_list=config.TARGET_USERNAMES, db=db,
        )
        scheduler = Scheduler(processor, source)
        scheduler.start()
        logger.info("Both platforms logged in successfully. Starting message forwarding...")

    client = build_client(on_ready=on_ready)
    try:
        # returns normally on Ctrl-C
        client.run(config.DISCORD_TOKEN, log_handler=None)
    except discord.LoginFailure as e:
        logger.error(f"Discord login failed: {e}")
        sys.exit(1)
    finally:
        logger.info("Shutting down...")
        if db is not None:
            db.close()


if __name__ == "__main__":
    main()
