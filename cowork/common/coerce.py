"""
Lenient coercion of record store values.

Why:
    Rows written by different client versions disagree on types: flags arrive
    as `true`, `"true"` or `1`, numbers as strings, id lists as comma-joined
    text. Parsing tolerantly here keeps the DTOs small.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional


_TRUE_TEXT = {"true", "1", "yes", "si", "sí"}


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_TEXT
    return default


def to_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return default


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_id_list(value: Any) -> List[int]:
    """`"3, 5,x,7"` -> `[3, 5, 7]`; lists are accepted as well."""
    if value is None:
        return []
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        parts = value
    else:
        parts = [value]
    ids: List[int] = []
    for part in parts:
        parsed = to_int(part, default=0)
        if parsed > 0:
            ids.append(parsed)
    return ids


def join_ids(ids: Iterable[int]) -> str:
    return ",".join(str(i) for i in ids)


def parse_datetime(value: Any) -> Optional[datetime]:
    """ISO 8601 text (a trailing `Z` included) -> aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "to_bool",
    "to_int",
    "to_float",
    "to_text",
    "parse_id_list",
    "join_ids",
    "parse_datetime",
    "format_datetime",
    "utcnow",
]
