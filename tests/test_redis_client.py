from __future__ import annotations

import pytest

from chronicle.infra.redis_client import DEFAULT_REDIS_URL, create_redis, get_redis_url


def test_redis_url_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_URL", "redis://cache:6380/2")
    assert get_redis_url() == "redis://cache:6380/2"

    monkeypatch.setenv("REDIS_URL", "")
    assert get_redis_url() == DEFAULT_REDIS_URL

    monkeypatch.delenv("REDIS_URL")
    assert get_redis_url() == DEFAULT_REDIS_URL


def test_client_decodes_responses() -> None:
    client = create_redis("redis://cache:6380/2")
    try:
        kwargs = client.connection_pool.connection_kwargs
        assert kwargs["decode_responses"] is True
        assert kwargs["host"] == "cache"
        assert kwargs["port"] == 6380
        assert kwargs["db"] == 2
    finally:
        client.close()
