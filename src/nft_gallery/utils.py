"""Utility functions shared by the normalizer, fetcher and engine"""

from typing import Any, Optional

HEX_PREFIX = "0x"
IPFS_GATEWAY = "https://ipfs.io/ipfs/"

_MISSING = object()


def first_defined(*candidates: Any, default: Any = None) -> Any:
    """
    Return the first candidate that carries a value

    ``None`` and empty strings are treated as absent, so upstream fields
    that come back blank fall through to the next candidate. Candidates are
    listed in precedence order at each call site.

    Args:
        *candidates: Values in precedence order
        default: Returned when every candidate is absent

    Returns:
        The first present candidate, or ``default``
    """
    for candidate in candidates:
        if candidate is None:
            continue
        if isinstance(candidate, str) and not candidate.strip():
            continue
        return candidate
    return default


def dig(data: Any, *path: Any, default: Any = None) -> Any:
    """
    Walk a JSON path through nested dicts/lists

    Any missing key, out-of-range index or non-container along the way
    yields ``default``; absent upstream fields are never an error.
    """
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return default
            current = current[step]
        else:
            if not isinstance(current, dict):
                return default
            current = current.get(step, _MISSING)
            if current is _MISSING:
                return default
    return current


def strip_hex_prefix(value: str) -> str:
    """Remove a single leading ``0x`` (no numeric reinterpretation)"""
    if value.startswith(HEX_PREFIX):
        return value[len(HEX_PREFIX):]
    return value


def ensure_hex_prefix(value: str) -> str:
    """Prepend ``0x`` unless the value already carries it"""
    if value.startswith(HEX_PREFIX):
        return value
    return f"{HEX_PREFIX}{value}"


def convert_ipfs_to_http(url: Optional[str]) -> str:
    """Convert an IPFS URI to an HTTP gateway URL; empty input gives ''"""
    if not url or not isinstance(url, str):
        return ""

    if url.startswith(("http://", "https://")):
        return url

    if url.startswith("ipfs://"):
        # Keep everything after the scheme (hash + path)
        ipfs_path = url[len("ipfs://"):].lstrip("/")
        if ipfs_path.startswith("ipfs/"):
            ipfs_path = ipfs_path[len("ipfs/"):]
        return f"{IPFS_GATEWAY}{ipfs_path}"

    return url


def token_number(token_id: str) -> int:
    """
    Numeric value of an upstream token id

    Upstream ids are hex strings (with or without the prefix). Anything
    unparsable sorts first as -1.
    """
    try:
        return int(strip_hex_prefix(token_id), 16)
    except (TypeError, ValueError):
        return -1


def contains_ci(haystack: Optional[str], needle: str) -> bool:
    """Case-insensitive substring test"""
    if not haystack:
        return False
    return needle.casefold() in haystack.casefold()


def as_text(value: Any) -> Optional[str]:
    """Upstream scalar as a string; containers and None are absent"""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None
