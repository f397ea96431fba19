from __future__ import annotations

from collections.abc import Generator

import redis

from chronicle.catalog.registry import PromptCatalog
from chronicle.catalog.singleton import get_catalog
from chronicle.infra.redis_client import create_redis


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        client.close()


def get_prompt_catalog() -> PromptCatalog:
    return get_catalog()
