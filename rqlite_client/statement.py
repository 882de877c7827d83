"""
rqlite Statement Encoding

@version 1.0.0
@author rqlite-client Development Team
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, List, Sequence, Tuple, Union

from .types import ApiOperation, EncodeError

_ARGUMENT_TYPES = (type(None), bool, int, float, str)


@dataclass(frozen=True)
class Statement:
    """
    A SQL statement with positional arguments.

    Example:
        Statement("INSERT INTO users (id, name) VALUES (?, ?)", (1, "fiona"))
        Statement("INSERT INTO users (name) VALUES (?) RETURNING id", ("sinead",), returning=True)
    """
    sql: str
    arguments: Tuple[Any, ...] = field(default_factory=tuple)
    returning: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.arguments, (str, bytes)):
            raise EncodeError(
                f"arguments must be a sequence of values, not {type(self.arguments).__name__}; "
                f"use ({self.arguments!r},) for a single argument"
            )
        if not isinstance(self.arguments, tuple):
            object.__setattr__(self, "arguments", tuple(self.arguments))


StatementLike = Union[str, Statement]


def as_statements(statements: Union[StatementLike, Iterable[StatementLike]]) -> List[Statement]:
    """Normalize SQL strings and Statements into a list of Statements."""
    if isinstance(statements, (str, Statement)):
        statements = [statements]
    result = []
    for stmt in statements:
        if isinstance(stmt, Statement):
            result.append(stmt)
        elif isinstance(stmt, str):
            result.append(Statement(stmt))
        else:
            raise EncodeError(f"expected SQL text or Statement, got {type(stmt).__name__}")
    return result


def _encode_argument(value: Any, index: int, position: int) -> Any:
    if isinstance(value, _ARGUMENT_TYPES):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise EncodeError(
        f"statement #{index}: unsupported argument #{position} "
        f"of type {type(value).__name__}"
    )


def encode_statement(stmt: Statement, op: ApiOperation, index: int = 0) -> List[Any]:
    """Build the wire array ``[returning?, sql, arg1, arg2, ...]`` of one statement."""
    if stmt.returning and op is not ApiOperation.REQUEST:
        raise EncodeError(
            f"statement #{index}: RETURNING is only supported by the unified request endpoint"
        )
    wire: List[Any] = []
    if stmt.returning:
        wire.append(True)
    wire.append(stmt.sql)
    wire.extend(
        _encode_argument(arg, index, position) for position, arg in enumerate(stmt.arguments)
    )
    return wire


def encode_batch(statements: Sequence[Statement], op: ApiOperation) -> bytes:
    """
    Serialize a batch for a query, write or unified request.

    Integers are written as JSON integers of arbitrary size, so 64-bit
    values round-trip exactly.

    Raises:
        EncodeError: for unsupported arguments, or RETURNING outside a
            unified request.
    """
    if not op.is_post:
        raise EncodeError(f"cannot encode statements for the {op.value} operation")
    wire = [encode_statement(stmt, op, n) for n, stmt in enumerate(statements)]
    try:
        return json.dumps(wire, allow_nan=False).encode("utf-8")
    except ValueError as e:
        raise EncodeError(str(e)) from e
