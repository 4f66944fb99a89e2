# pt_adapters/services/sizes.py

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..errors import InvalidSizeError, InvalidUnitError

BINARY_UNITS: dict[str, int] = {
    "B": 1,
    "KiB": 1024,
    "MiB": 1024**2,
    "GiB": 1024**3,
    "TiB": 1024**4,
    "PiB": 1024**5,
}

_SIZE_TEXT_PATTERN = re.compile(
    r"(\d[\d,]*(?:\.\d+)?)\s*([KMGTP]?i?B)\b", re.IGNORECASE
)


def parse_size(value: str, unit: str) -> int:
    """Convert ``value`` expressed in a binary ``unit`` to a whole byte count.

    Only the canonical binary units are accepted; display suffixes such as
    ``"GB"`` must be passed through :func:`to_binary_unit` first.
    """
    multiplier = BINARY_UNITS.get(unit)
    if multiplier is None:
        raise InvalidUnitError(unit)

    try:
        amount = Decimal(value.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise InvalidSizeError(value) from exc
    if not amount.is_finite() or amount < 0:
        raise InvalidSizeError(value)

    return int((amount * multiplier).to_integral_value(rounding=ROUND_HALF_UP))


def to_binary_unit(unit: str) -> str:
    """Map a displayed unit (``"KB"``, ``"mb"``, ``"T"``) to its binary form."""
    cleaned = unit.strip()
    if not cleaned:
        return cleaned
    prefix = cleaned[0].upper()
    if prefix == "B":
        return "B"
    if prefix in "KMGTP":
        return f"{prefix}iB"
    return cleaned


def split_size_text(text: str) -> tuple[str, str]:
    """
    Split displayed size text into a ``(value, binary_unit)`` pair.

    Handles separators and non-breaking spaces, e.g. ``"1,024.5\xa0MB"``
    becomes ``("1024.5", "MiB")``.
    """
    match = _SIZE_TEXT_PATTERN.search(text or "")
    if not match:
        raise InvalidSizeError(text)
    value = match.group(1).replace(",", "")
    return value, to_binary_unit(match.group(2))


def parse_size_text(text: str) -> int:
    return parse_size(*split_size_text(text))
