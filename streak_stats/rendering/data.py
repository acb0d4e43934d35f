import json
from functools import lru_cache
from pathlib import Path
from typing import Any


DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@lru_cache
def load_table(name: str) -> Any:
    """Load a bundled JSON table from the package data directory."""

    with (DATA_DIR / f"{name}.json").open(encoding="utf-8") as handle:
        return json.load(handle)


def resolve_entry(table: dict[str, Any], code: str, fallback: str) -> dict[str, Any]:
    """Look up `code`, following string aliases until a mapping is reached.

    Unknown codes, dangling aliases and alias loops resolve to `fallback`.
    """

    if code not in table:
        return table[fallback]

    value = table[code]
    seen: set[str] = set()
    while isinstance(value, str):
        if value in seen or value not in table:
            return table[fallback]
        seen.add(value)
        value = table[value]
    return value
