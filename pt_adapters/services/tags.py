from __future__ import annotations

from bs4 import Tag


def collect_tags(row: Tag, selector: str | None) -> tuple[str, ...]:
    """Return the trimmed text of every label matching ``selector``, in order."""
    if not selector:
        return ()
    return tuple(node.get_text(strip=True) for node in row.select(selector))
