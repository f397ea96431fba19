from __future__ import annotations

import os

import redis

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_url() -> str:
    """`REDIS_URL` from the environment; an empty value counts as unset."""

    return os.environ.get("REDIS_URL") or DEFAULT_REDIS_URL


def create_redis(url: str | None = None) -> redis.Redis:
    # Character JSON and journal fields are handled as str everywhere.
    return redis.Redis.from_url(url or get_redis_url(), decode_responses=True)
