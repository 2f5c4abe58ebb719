"""Configuration loaded from environment variables (.env supported)."""

import os

from dotenv import load_dotenv

load_dotenv()


def parse_target_usernames(raw):
    """Comma-separated usernames -> lowercased frozenset. Empty means allow all."""
    return frozenset(
        name.strip().lower() for name in (raw or "").split(",") if name.strip()
    )


# Instagram
IG_USERNAME = os.getenv("IG_USERNAME", "")
IG_PASSWORD = os.getenv("IG_PASSWORD", "")

# Discord
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN", "")
DISCORD_GUILD_ID = os.getenv("DISCORD_GUILD_ID", "")
DISCORD_CATEGORY_ID = os.getenv("DISCORD_CATEGORY_ID", "")

# Routing
TARGET_USERNAMES = parse_target_usernames(os.getenv("TARGET_USERNAMES", ""))

# Agent
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Database (delivery audit log, empty disables it)
DB_PATH = os.getenv("DB_PATH", "data/db/relay.db")

# Polling
INITIAL_DELAY_SECONDS = 5
ACCEPTED_POLL_SECONDS = 30
PENDING_POLL_SECONDS = 45
KEEPALIVE_SECONDS = 30 * 60
SETTLE_DELAY_RANGE = (5.0, 7.0)  # seconds, upper bound exclusive
THREAD_PACING_SECONDS = 2
FRESHNESS_WINDOW_SECONDS = 60 * 60
