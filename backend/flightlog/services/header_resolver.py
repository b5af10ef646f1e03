"""
Header alias resolution.

Looks up canonical channels in a raw row by trying the aliases of
HEADER_MAPPINGS in priority order. A value that cannot be parsed resolves to
None ("not present"), which callers must not treat as a zero reading.
"""

import math
from numbers import Number
from typing import Any, Optional, Sequence, Union

from flightlog.models.raw import Row
from flightlog.services.channels import aliases_for


Numeric = Union[int, float]

_PREFIXED_INT = ("0x", "0o", "0b")


def parse_numeric(value: Any) -> Optional[Numeric]:
    """
    Parse a raw cell into a number.

    Accepts numbers, decimal strings and prefixed integer strings ("0x1F").
    Returns None for empty, non-numeric or non-finite input.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Number):
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(number):
            return None
        return int(value) if isinstance(value, int) else number

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    # No digit separators, no sign on prefixed integers
    if "_" in text:
        return None
    if text.lower().startswith(_PREFIXED_INT):
        try:
            return int(text, 0)
        except ValueError:
            return None
    if text.lstrip("+-").lower().startswith(_PREFIXED_INT):
        return None

    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def find_value(row: Optional[Row], keys: Sequence[str]) -> Optional[Numeric]:
    """First parseable value among `keys`, or None."""
    if not row:
        return None
    for key in keys:
        value = parse_numeric(row.get(key))
        if value is not None:
            return value
    return None


def get_value(row: Optional[Row], channel: str) -> Optional[Numeric]:
    """Resolve a canonical channel in a row."""
    return find_value(row, aliases_for(channel))


def find_key(row: Optional[Row], keys: Sequence[str]) -> Optional[str]:
    """First of `keys` present in the row (value not None)."""
    if not row:
        return None
    for key in keys:
        if row.get(key) is not None:
            return key
    return None


def first_row(rows: Sequence[Optional[Row]]) -> Optional[Row]:
    """First non-empty row of a collection."""
    for row in rows:
        if row:
            return row
    return None
