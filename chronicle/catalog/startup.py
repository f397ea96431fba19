from __future__ import annotations

import os
from pathlib import Path

from chronicle.catalog.singleton import init_catalog


def default_prompts_path() -> Path:
    override = os.environ.get("CHRONICLE_PROMPTS_FILE")
    if override:
        return Path(override)
    # project root is two levels up from this file: chronicle/catalog/startup.py
    return Path(__file__).resolve().parents[2] / "prompts" / "prompts.txt"


def init_catalog_for_app() -> None:
    init_catalog(path=default_prompts_path())
