"""
Deterministic string -> integer codec for remote record identifiers.

Why:
    The record store only hands out opaque string ids, while the client needs
    small positive integers for UI state, set membership and foreign keys.
    Hashing the remote id (instead of counting) gives every process the same
    local id for the same record without any shared state.

Behavior:
    - 31-multiplier rolling hash over UTF-16 code units, masked to 31 bits.
      Values match the JavaScript `(h << 5) - h + charCodeAt(i)` loop the
      mobile client uses, so ids stay comparable across clients.
    - A hash of 0 is mapped to 1; 0 is reserved for "no id".
    - Empty input yields the caller's fallback seed (normalised into range)
      or 1.
"""

from __future__ import annotations

from typing import Optional


MAX_ID = 0x7FFFFFFF


def _utf16_units(value: str):
    raw = value.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(raw), 2):
        yield raw[i] | (raw[i + 1] << 8)


def stable_id(value: str, *, fallback_seed: Optional[int] = None) -> int:
    """Return the local numeric id for `value` (always in 1..MAX_ID)."""
    if not isinstance(value, str):
        raise TypeError("stable_id expects a string")
    if not value:
        if fallback_seed is None:
            return 1
        seeded = abs(int(fallback_seed)) & MAX_ID
        return seeded or 1
    h = 0
    for unit in _utf16_units(value):
        h = (h * 31 + unit) & MAX_ID
    return h or 1


def is_valid_id(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 1 <= value <= MAX_ID


__all__ = ["MAX_ID", "stable_id", "is_valid_id"]
