import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./eventflow.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Venue lock: how long a holder may keep it, and how long a caller waits for it
VENUE_LOCK_TIMEOUT = int(os.getenv("VENUE_LOCK_TIMEOUT", "10"))
VENUE_LOCK_BLOCKING_TIMEOUT = int(os.getenv("VENUE_LOCK_BLOCKING_TIMEOUT", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

RECENT_EVENTS_LIMIT = int(os.getenv("RECENT_EVENTS_LIMIT", "10"))


def get_database_url():
    return DATABASE_URL


def get_redis_url():
    return REDIS_URL


def get_venue_lock_timeouts() -> tuple[int, int]:
    return VENUE_LOCK_TIMEOUT, VENUE_LOCK_BLOCKING_TIMEOUT
