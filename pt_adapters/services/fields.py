# pt_adapters/services/fields.py

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from bs4 import NavigableString, Tag

from ..config import logger
from ..errors import ConfigurationError, FieldMissingError

TAKE_MODES = ("text", "attr", "next_text")


@dataclass(frozen=True)
class Strategy:
    """One way of locating a field inside a page or listing row.

    A strategy narrows ``root`` to the ``child_index``-th ``td`` child (when
    set), then to the first match of ``selector`` (when set), and finally
    reads the value according to ``take``:

    * ``text`` - the node's text, with ``<br>`` flattened to a space.
    * ``attr`` - the value of ``attr``.
    * ``next_text`` - the text node directly following the node, which is how
      most NexusPHP pages lay out "label: value" pairs.

    ``pattern`` optionally narrows the value to its first regex group.
    """

    selector: str | None = None
    child_index: int | None = None
    take: str = "text"
    attr: str | None = None
    pattern: str | None = None

    @property
    def positional(self) -> bool:
        return self.child_index is not None

    def __call__(self, root: Tag) -> str | None:
        node: Tag | None = root
        if self.child_index is not None:
            cells = root.find_all("td", recursive=False)
            node = cells[self.child_index] if self.child_index < len(cells) else None
        if node is not None and self.selector:
            node = node.select_one(self.selector)
        if node is None:
            return None

        value = self._take(node)
        if value is None:
            return None
        value = value.strip()
        if self.pattern:
            match = re.search(self.pattern, value)
            if not match:
                return None
            value = (match.group(1) if match.groups() else match.group(0)).strip()
        return value or None

    def _take(self, node: Tag) -> str | None:
        if self.take == "attr":
            raw = node.get(self.attr or "")
            if isinstance(raw, list):
                return " ".join(raw)
            return raw if isinstance(raw, str) else None
        if self.take == "next_text":
            sibling = node.next_sibling
            return str(sibling) if isinstance(sibling, NavigableString) else None
        return node.get_text(" ", strip=True)


FieldStrategy = Union[Strategy, Callable[[Tag], Optional[str]]]


def resolve_field(
    root: Tag, field: str, strategies: Iterable[FieldStrategy]
) -> str:
    """Return the first value yielded by ``strategies`` for ``field``.

    Strategies are tried strictly in the given order. A strategy that raises
    counts as a miss. Raises ``FieldMissingError`` when every strategy misses.
    """
    for index, strategy in enumerate(strategies):
        try:
            value = strategy(root)
        except Exception as exc:  # noqa: BLE001
            logger.debug(
                f"[PARSE] Strategy {index} for '{field}' failed: {exc!r}; trying next"
            )
            continue
        if value is None or not str(value).strip():
            continue
        if isinstance(strategy, Strategy) and strategy.positional:
            logger.debug(
                f"[PARSE] '{field}' resolved through positional fallback "
                f"(child {strategy.child_index})"
            )
        return value
    raise FieldMissingError(field)


def resolve_optional(
    root: Tag, field: str, strategies: Iterable[FieldStrategy], default: Any = None
) -> Any:
    """Like :func:`resolve_field` but returns ``default`` when nothing matches."""
    try:
        return resolve_field(root, field, strategies)
    except FieldMissingError:
        logger.debug(f"[PARSE] Optional field '{field}' missing; using {default!r}")
        return default


def compile_strategies(field: str, raw: Any) -> tuple[Strategy, ...]:
    """Build the fallback chain for ``field`` from its YAML description.

    ``raw`` is a selector string, a single mapping, or a list of either.
    Positional strategies are the most brittle and must come after every
    structural one.
    """
    if raw is None:
        return ()
    items: Sequence[Any] = raw if isinstance(raw, list) else [raw]

    strategies: list[Strategy] = []
    for item in items:
        if isinstance(item, str):
            strategies.append(Strategy(selector=item))
            continue
        if not isinstance(item, dict):
            raise ConfigurationError(f"Invalid strategy for '{field}': {item!r}")
        unknown = set(item) - {"selector", "child_index", "take", "attr", "pattern"}
        if unknown:
            raise ConfigurationError(
                f"Unknown strategy keys for '{field}': {', '.join(sorted(unknown))}"
            )
        strategy = Strategy(
            selector=item.get("selector"),
            child_index=item.get("child_index"),
            take=item.get("take", "text"),
            attr=item.get("attr"),
            pattern=item.get("pattern"),
        )
        _validate_strategy(field, strategy)
        strategies.append(strategy)

    seen_positional = False
    for strategy in strategies:
        if strategy.positional:
            seen_positional = True
        elif seen_positional:
            raise ConfigurationError(
                f"Positional strategy for '{field}' is listed before a selector "
                "strategy; positional lookups must stay last"
            )
    return tuple(strategies)


def _validate_strategy(field: str, strategy: Strategy) -> None:
    if strategy.take not in TAKE_MODES:
        raise ConfigurationError(f"Unknown take mode '{strategy.take}' for '{field}'")
    if strategy.take == "attr" and not strategy.attr:
        raise ConfigurationError(
            f"Strategy for '{field}' reads an attribute but names none"
        )
    if strategy.selector is None and strategy.child_index is None:
        raise ConfigurationError(
            f"Strategy for '{field}' has no selector or child_index"
        )
    if strategy.child_index is not None and (
        not isinstance(strategy.child_index, int) or strategy.child_index < 0
    ):
        raise ConfigurationError(f"Invalid child_index for '{field}'")
    if strategy.pattern is not None:
        try:
            re.compile(strategy.pattern)
        except re.error as exc:
            raise ConfigurationError(f"Invalid pattern for '{field}': {exc}") from exc
