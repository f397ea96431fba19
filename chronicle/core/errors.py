from __future__ import annotations


class CorruptStateError(ValueError):
    """Persisted character state breaks an engine invariant.

    Raised instead of silently repairing the data, so the caller can surface it.
    """
