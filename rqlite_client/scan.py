"""
rqlite Value Coercion

Converts decoded JSON column values into the kinds requested by
``QueryResult.scan()``. The store sends loosely typed JSON: a number may
arrive as a string, a boolean as ``1``/``"true"``, a timestamp as text or
epoch seconds.

@version 1.0.0
@author rqlite-client Development Team
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from .types import (
    Int16,
    Int32,
    Int64,
    NullBool,
    NullBytes,
    NullFloat64,
    NullInt16,
    NullInt32,
    NullInt64,
    NullString,
    NullTime,
    ScanTypeMismatch,
)

SQLITE_TIME_LAYOUT = "%Y-%m-%d %H:%M:%S"

# fromisoformat before 3.11 takes only 3 or 6 fractional digits
_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")

_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _mismatch(kind: str, src: Any, column: str) -> ScanTypeMismatch:
    return ScanTypeMismatch(
        f"cannot scan {type(src).__name__} value {src!r} "
        f"of column {column!r} into {kind}"
    )


def to_time(src: Any, column: str = "") -> datetime:
    """
    Convert a column value to an aware UTC datetime.

    Strings are parsed as ``YYYY-MM-DD HH:MM:SS`` and then as RFC 3339;
    numbers are Unix epoch seconds.
    """
    if isinstance(src, str):
        try:
            return datetime.strptime(src, SQLITE_TIME_LAYOUT).replace(tzinfo=timezone.utc)
        except ValueError:
            pass
        text = src[:-1] + "+00:00" if src.endswith(("Z", "z")) else src
        text = _FRACTION.sub(
            lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1
        )
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ScanTypeMismatch(
                f"invalid time value {src!r} in column {column!r}"
            ) from None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    if isinstance(src, (int, float)) and not isinstance(src, bool):
        try:
            return datetime.fromtimestamp(int(src), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ScanTypeMismatch(
                f"epoch value {src!r} of column {column!r} is out of range"
            ) from None
    raise _mismatch("datetime", src, column)


def to_int(src: Any, column: str = "", bits: int = 64) -> int:
    """Convert a column value to an integer that fits in ``bits`` signed bits."""
    kind = "int" if bits == 64 else f"int{bits}"
    if isinstance(src, bool):
        raise _mismatch(kind, src, column)
    if isinstance(src, int):
        value = src
    elif isinstance(src, float):
        if not src.is_integer():
            raise _mismatch(kind, src, column)
        value = int(src)
    elif isinstance(src, str):
        try:
            value = int(src.strip(), 10)
        except ValueError:
            raise _mismatch(kind, src, column) from None
    else:
        raise _mismatch(kind, src, column)

    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ScanTypeMismatch(
            f"value {value} of column {column!r} overflows {kind}"
        )
    return value


def to_float(src: Any, column: str = "") -> float:
    if isinstance(src, bool):
        raise _mismatch("float", src, column)
    if isinstance(src, (int, float)):
        return float(src)
    if isinstance(src, str):
        try:
            return float(src)
        except ValueError:
            raise _mismatch("float", src, column) from None
    raise _mismatch("float", src, column)


def to_str(src: Any, column: str = "") -> str:
    if isinstance(src, str):
        return src
    raise _mismatch("str", src, column)


def to_bool(src: Any, column: str = "") -> bool:
    """
    Convert a column value to a boolean.

    SQLite has no boolean type, so ``1``/``0`` and the textual forms
    ``"1"``, ``"t"``, ``"true"``, ``"0"``, ``"f"``, ``"false"`` (any of the
    usual capitalizations) are accepted.
    """
    if isinstance(src, bool):
        return src
    if isinstance(src, (int, float)):
        if src == 1:
            return True
        if src == 0:
            return False
        raise _mismatch("bool", src, column)
    if isinstance(src, str):
        if src in _TRUE_STRINGS:
            return True
        if src in _FALSE_STRINGS:
            return False
    raise _mismatch("bool", src, column)


def to_bytes(src: Any, column: str = "") -> bytes:
    if isinstance(src, bytes):
        return src
    if isinstance(src, str):
        return src.encode("utf-8")
    raise _mismatch("bytes", src, column)


_PLAIN: Dict[Any, Callable[[Any, str], Any]] = {
    int: to_int,
    Int64: to_int,
    Int32: lambda src, column: to_int(src, column, 32),
    Int16: lambda src, column: to_int(src, column, 16),
    float: to_float,
    str: to_str,
    bool: to_bool,
    bytes: to_bytes,
    datetime: to_time,
}

_NULLABLE: Dict[Any, Callable[[Any, str], Any]] = {
    NullInt64: to_int,
    NullInt32: lambda src, column: to_int(src, column, 32),
    NullInt16: lambda src, column: to_int(src, column, 16),
    NullFloat64: to_float,
    NullString: to_str,
    NullBool: to_bool,
    NullBytes: to_bytes,
    NullTime: to_time,
}

_NULLABLE_FOR = {
    int: NullInt64,
    Int64: NullInt64,
    Int32: NullInt32,
    Int16: NullInt16,
    float: NullFloat64,
    str: NullString,
    bool: NullBool,
    bytes: NullBytes,
    datetime: NullTime,
}


def is_scan_kind(kind: Any) -> bool:
    if not isinstance(kind, type):
        return False
    return kind is object or kind in _PLAIN or kind in _NULLABLE


def convert(src: Any, kind: Any, column: str = "") -> Any:
    """
    Convert one column value to ``kind``.

    ``object`` returns the value untouched. Nullable kinds return an
    instance with ``valid=False`` for NULL; plain kinds reject NULL.

    Raises:
        ScanTypeMismatch: if the value is not compatible with ``kind``.
    """
    if kind is object:
        return src

    if not isinstance(kind, type):
        raise ScanTypeMismatch(f"unknown kind {kind!r} to scan column {column!r} into")

    if kind in _NULLABLE:
        if src is None:
            return kind()
        return kind(value=_NULLABLE[kind](src, column), valid=True)

    if kind in _PLAIN:
        if src is None:
            raise ScanTypeMismatch(
                f"cannot scan NULL of column {column!r} into {kind.__name__}; "
                f"use {_NULLABLE_FOR[kind].__name__}"
            )
        return _PLAIN[kind](src, column)

    raise ScanTypeMismatch(f"unknown kind {kind!r} to scan column {column!r} into")
