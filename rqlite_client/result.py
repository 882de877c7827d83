"""
rqlite Results

Per-statement outcomes and the response decoder. An outcome is exactly one
of ``ErrorResult``, ``WriteResult`` or ``QueryResult``.

@version 1.0.0
@author rqlite-client Development Team
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .scan import convert, is_scan_kind, to_time
from .types import (
    ApiOperation,
    BatchError,
    CursorStateError,
    DecodeError,
    ScanTypeMismatch,
    StatementError,
    StatementErrors,
)


@dataclass(frozen=True)
class ErrorResult:
    """A statement the server refused."""
    kind: ClassVar[str] = "error"
    error: StatementError

    @property
    def index(self) -> int:
        return self.error.index

    @property
    def message(self) -> str:
        return self.error.message


@dataclass(frozen=True)
class WriteResult:
    """Result of a statement that changed the database."""
    kind: ClassVar[str] = "write"
    last_insert_id: int = 0
    rows_affected: int = 0
    timing: float = 0.0


class QueryResult:
    """
    Rows returned by one statement, read through a forward-only cursor.

    Example:
        result = await client.query_one("SELECT id, name FROM users")
        while result.next():
            user_id, name = result.scan(int, NullString)
    """

    kind: ClassVar[str] = "query"

    def __init__(
        self,
        columns: Sequence[str],
        types: Sequence[str],
        values: Sequence[Sequence[Any]],
        timing: float = 0.0,
    ):
        self._columns = list(columns)
        self._types = list(types)
        self._values = [list(row) for row in values]
        self.timing = timing
        self._row_number = -1

    def __repr__(self) -> str:
        return (
            f"QueryResult(columns={self._columns}, rows={len(self._values)}, "
            f"row_number={self._row_number})"
        )

    @property
    def columns(self) -> List[str]:
        """Column names, in select order."""
        return list(self._columns)

    @property
    def types(self) -> List[str]:
        """
        Declared column types as reported by the server.

        SQLite repeats the declared type but mostly ignores it, so this may
        not match the JSON type of the values.
        """
        return list(self._types)

    @property
    def num_rows(self) -> int:
        return len(self._values)

    @property
    def row_number(self) -> int:
        """Cursor position: -1 before the first ``next()``, ``num_rows`` once exhausted."""
        return self._row_number

    def next(self) -> bool:
        """Advance to the next row. Returns False once every row was visited."""
        if self._row_number >= len(self._values) - 1:
            self._row_number = len(self._values)
            return False
        self._row_number += 1
        return True

    def _current_row(self, caller: str) -> List[Any]:
        if self._row_number < 0:
            raise CursorStateError(f"call next() before {caller}()")
        if self._row_number >= len(self._values):
            raise CursorStateError(f"{caller}() called after the last row")
        return self._values[self._row_number]

    def raw(self) -> List[Any]:
        """The current row exactly as decoded from JSON."""
        return list(self._current_row("raw"))

    def map(self) -> Dict[str, Any]:
        """
        The current row as a ``{column: value}`` dict.

        Values of columns whose declared type contains ``date`` or ``time``
        are parsed into datetimes. The match ignores case, so ``DATETIME``
        and ``TIMESTAMP`` columns are parsed too. This is a best-effort guess
        based on the declared type only; use ``raw()`` for the untransformed
        values.
        """
        row = self._current_row("map")
        ans: Dict[str, Any] = {}
        for i, column in enumerate(self._columns):
            value = row[i] if i < len(row) else None
            declared = self._types[i].lower() if i < len(self._types) else ""
            if value is not None and ("date" in declared or "time" in declared):
                value = to_time(value, column)
            ans[column] = value
        return ans

    def scan(self, *kinds: Any) -> Tuple[Any, ...]:
        """
        Convert the current row to the requested kinds.

        One kind per column: ``int``, ``Int64``, ``Int32``, ``Int16``,
        ``float``, ``str``, ``bool``, ``bytes``, ``datetime``, ``object``
        (raw value) or one of the ``Null*`` types.

        Returns:
            Tuple of converted values, in column order

        Raises:
            CursorStateError: before ``next()``, after the last row, or if
                the number of kinds differs from the number of columns
            ScanTypeMismatch: if a value does not fit its kind
        """
        if len(kinds) != len(self._columns):
            raise CursorStateError(
                f"expected {len(self._columns)} columns but got {len(kinds)} kinds"
            )
        row = self._current_row("scan")
        for n, kind in enumerate(kinds):
            if not is_scan_kind(kind):
                raise ScanTypeMismatch(f"unknown kind {kind!r} for column #{n}")
        return tuple(
            convert(row[n] if n < len(row) else None, kind, self._columns[n])
            for n, kind in enumerate(kinds)
        )

    def rows(self) -> Iterator[Dict[str, Any]]:
        """Advance through the remaining rows, yielding ``map()`` of each."""
        while self.next():
            yield self.map()


Outcome = Union[ErrorResult, WriteResult, QueryResult]


# =========================================================================
# Decoding
# =========================================================================


def _as_int(value: Any, name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise DecodeError(f"{name} is not a number: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise DecodeError(f"{name} is not an integer: {value!r}")


def _as_float(value: Any, name: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise DecodeError(f"{name} is not a number: {value!r}")


def _string_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DecodeError(f"{name} must be a list of strings")
    return value


def _query_result(item: Dict[str, Any]) -> QueryResult:
    columns = _string_list(item.get("columns"), "columns")
    types = _string_list(item.get("types"), "types")
    values = item.get("values") or []
    if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
        raise DecodeError("values must be a list of rows")
    return QueryResult(columns, types, values, _as_float(item.get("time"), "time"))


def _write_result(item: Dict[str, Any]) -> WriteResult:
    return WriteResult(
        last_insert_id=_as_int(item.get("last_insert_id"), "last_insert_id"),
        rows_affected=_as_int(item.get("rows_affected"), "rows_affected"),
        timing=_as_float(item.get("time"), "time"),
    )


def _outcome(index: int, item: Any, op: ApiOperation) -> Outcome:
    if not isinstance(item, dict):
        raise DecodeError(f"result #{index} is not an object")

    if "error" in item:
        return ErrorResult(StatementError(index, str(item["error"])))

    if op is ApiOperation.QUERY:
        return _query_result(item)
    if op is ApiOperation.WRITE:
        return _write_result(item)
    if "columns" in item or "values" in item:
        return _query_result(item)
    return _write_result(item)


def load_envelope(body: bytes) -> Dict[str, Any]:
    """
    Parse a response body into its top level object.

    Python's JSON decoder keeps integral numbers as ``int`` of arbitrary
    size and fractional ones as ``float``, so 64-bit IDs are never rounded.
    """
    try:
        envelope = json.loads(body)
    except ValueError as e:
        raise DecodeError(f"response is not valid JSON: {e}") from e
    if not isinstance(envelope, dict):
        raise DecodeError("response is not a JSON object")
    return envelope


def decode_response(
    body: bytes,
    op: ApiOperation,
    expected: Optional[int] = None,
) -> List[Outcome]:
    """
    Decode a batch response into one outcome per submitted statement.

    Args:
        body: Raw response body
        op: API operation the batch was sent to
        expected: Number of statements submitted

    Returns:
        Outcomes in submission order. Failed statements are ``ErrorResult``
        entries; use ``raise_for_errors`` to turn them into an exception.

    Raises:
        BatchError: if the server rejected the whole batch
        DecodeError: if the envelope is malformed
    """
    envelope = load_envelope(body)

    error = envelope.get("error")
    if error:
        raise BatchError(str(error))

    results = envelope.get("results")
    if not isinstance(results, list):
        raise DecodeError("results key is missing from response")
    if expected is not None and len(results) != expected:
        raise DecodeError(f"expected {expected} results but got {len(results)}")

    return [_outcome(n, item, op) for n, item in enumerate(results)]


def raise_for_errors(outcomes: List[Outcome]) -> None:
    """Raise StatementErrors carrying every outcome if any statement failed."""
    errors = [o.error for o in outcomes if isinstance(o, ErrorResult)]
    if errors:
        raise StatementErrors(errors, outcomes)
