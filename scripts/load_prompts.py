"""Check a prompt book file and report what the catalog will contain.

Contract
- Input: a prompts text file (blocks of `<number><letter>` + text, separated by
  two blank lines).
- Output: counts, the prompt numbers found, and numbers missing some letters.
- Exit status 1 when the file cannot be loaded or contains no prompts.

Usage:
    uv run python scripts/load_prompts.py prompts/prompts.txt
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from chronicle.catalog.registry import CatalogLoadError, PromptCatalog, load_prompts_file
from chronicle.core.position import LETTERS


def summarize(catalog: PromptCatalog) -> list[str]:
    numbers = catalog.numbers()
    lines = [f"prompts: {len(catalog)}", f"numbers: {len(numbers)} ({numbers[0]}..{numbers[-1]})"]

    gaps = [n for n in range(numbers[0], numbers[-1] + 1) if n not in set(numbers)]
    if gaps:
        lines.append("numbers with no prompt: " + ", ".join(str(n) for n in gaps))

    for n in numbers:
        missing = [l for l in LETTERS if l not in catalog.letters_for(n)]
        if missing:
            lines.append(f"  {n}: missing {''.join(missing)}")
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", type=Path, help="prompts text file")
    args = parser.parse_args(argv)

    try:
        catalog = load_prompts_file(args.path)
    except CatalogLoadError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for line in summarize(catalog):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
