from __future__ import annotations

from contextlib import contextmanager
from uuid import uuid4

import redis


@contextmanager
def character_lock(*, r: redis.Redis, character_id: str, ttl_ms: int = 5_000):
    """Per-character lock around a read-modify-write of character state.

    Two roll events for the same character must not both read the same snapshot,
    or one visited letter / experience would be lost on save.
    Fails immediately instead of waiting.
    """

    key = f"lock:character:{character_id}"
    token = uuid4().hex
    acquired = r.set(key, token, nx=True, px=ttl_ms)
    if not acquired:
        raise ValueError("Character is busy")
    try:
        yield
    finally:
        # Don't release a lock that expired and was re-acquired by another holder.
        # get+delete is not atomic; the window is bounded by the TTL.
        held = r.get(key)
        if isinstance(held, bytes):
            held = held.decode()
        if held == token:
            r.delete(key)
