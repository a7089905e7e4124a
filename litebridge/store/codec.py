"""Conversion between SQLite values and dynamic values.

Dynamic values are plain Python objects: None, bool, int, float, str,
bytes, and JSON containers (list, dict) as raw/opaque values.
"""

import json
import sqlite3
from collections.abc import Iterable, Sequence
from typing import Any

from litebridge.errors import UnsupportedDatatypeError

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

BOOLEAN_TYPES = ("BOOLEAN", "BOOL")
# sqlite3 ships datetime converters for these; their columns stay as stored
PLAIN_TYPES = ("DATE", "TIMESTAMP")


def _stored(raw: bytes) -> int | float | str:
    """Undo sqlite3's text rendering of a column value handed to a converter."""
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


def _to_bool(raw: bytes) -> bool | str:
    value = _stored(raw)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return value
    return value != 0


def register_converters() -> None:
    """Install the declared-type converters used with PARSE_DECLTYPES.

    BOOLEAN and BOOL columns decode to bool. NULL never reaches a converter.
    """
    for name in BOOLEAN_TYPES:
        sqlite3.register_converter(name, _to_bool)
    for name in PLAIN_TYPES:
        sqlite3.register_converter(name, _stored)


def decode(value: Any) -> Any:
    """Convert one raw column value into a dynamic value.

    Fails closed: a value of any type outside the dynamic model raises
    UnsupportedDatatypeError instead of being coerced.
    """
    if value is None:
        return None
    # bool before int: bool subclasses int
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if not I64_MIN <= value <= I64_MAX:
            raise UnsupportedDatatypeError("integer wider than 64 bits")
        return value
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        return value
    if isinstance(value, bytes | memoryview):
        return bytes(value)
    raise UnsupportedDatatypeError(type(value).__name__)


def decode_row(names: Sequence[str], values: Sequence[Any]) -> dict[str, Any]:
    """Build a result row keyed by column name in column order."""
    row: dict[str, Any] = {}
    for name, value in zip(names, values, strict=True):
        row[name] = decode(value)
    return row


def encode(value: Any) -> Any:
    """Convert one dynamic value into a bound query parameter.

    Numbers always bind as 64-bit floats, so integers beyond 2**53 lose
    precision on the write path. Decoding does not have this limit.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int | float):
        try:
            return float(value)
        except OverflowError as e:
            raise UnsupportedDatatypeError("integer too large for a float parameter") from e
    if isinstance(value, bytes | bytearray):
        return bytes(value)
    if isinstance(value, list | dict):
        return json.dumps(value)
    raise UnsupportedDatatypeError(type(value).__name__)


def encode_all(values: Iterable[Any] | None) -> tuple[Any, ...]:
    return tuple(encode(v) for v in values or ())
