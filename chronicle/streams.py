from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, cast

import redis


@dataclass(frozen=True, slots=True)
class Journal:
    """Append-only log of the prompts a character answered, one stream per character."""

    character_id: str

    @property
    def key(self) -> str:
        return f"journal:{self.character_id}"


def append_journal_entry(*, r: redis.Redis, journal: Journal, fields: Mapping[str, str]) -> str:
    # redis-py stubs expect field/value unions; we only ever write strings.
    entry_id = r.xadd(journal.key, {str(k): str(v) for k, v in fields.items()})
    return cast(str, entry_id)


def read_journal(
    *,
    r: redis.Redis,
    journal: Journal,
    start: str = "-",
    end: str = "+",
    count: int | None = None,
) -> list[dict[str, object]]:
    entries = r.xrange(journal.key, min=start, max=end, count=count)
    return [{"id": entry_id, "fields": fields} for entry_id, fields in entries]


def delete_journal(*, r: redis.Redis, journal: Journal) -> None:
    r.delete(journal.key)
