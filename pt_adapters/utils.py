# pt_adapters/utils.py

import math
import re
import urllib.parse

# Characters JavaScript's encodeURIComponent leaves untouched besides
# alphanumerics. Site search forms are built with it, so queries must match.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def format_bytes(size_bytes: int) -> str:
    """Converts bytes into a human-readable string (e.g., KiB, MiB, GiB)."""
    if size_bytes <= 0:
        return "0B"
    size_name = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")
    i = min(int(math.floor(math.log(size_bytes, 1024))), len(size_name) - 1)
    p = math.pow(1024, i)
    s = round(size_bytes / p, 2)
    return f"{s} {size_name[i]}"


def parse_count(text: str | None) -> int | None:
    """
    Parses a displayed count such as ``"1,927"`` or ``" 42 "``.

    Thousands separators and surrounding noise are dropped. Returns ``None``
    when the text holds no digits at all.
    """
    if not text:
        return None
    cleaned = re.sub(r"[^\d]", "", text)
    return int(cleaned) if cleaned else None


def encode_uri_component(value: str) -> str:
    return urllib.parse.quote(value, safe=_URI_COMPONENT_SAFE)
