"""
rqlite Python Client

A Python client library for rqlite, the distributed SQLite.

Features:
- Async-first design with aiohttp
- Leader discovery and transparent failover across peers
- Batched, parameterized statements with per-statement outcomes
- Typed row scanning with nullable values

Example:
    >>> import asyncio
    >>> from rqlite_client import RqliteClient, NullString
    >>>
    >>> async def main():
    ...     async with RqliteClient("http://localhost:4001") as client:
    ...         result = await client.query_one("SELECT id, name FROM users")
    ...         while result.next():
    ...             user_id, name = result.scan(int, NullString)
    ...             print(user_id, name.value if name.valid else None)
    >>>
    >>> asyncio.run(main())

@version 1.0.0
@author rqlite-client Development Team
"""

from .client import ClientConfig, RqliteClient
from .cluster import Peer, PeerDirectory
from .result import ErrorResult, Outcome, QueryResult, WriteResult
from .statement import Statement
from .types import (
    RqliteError,
    ConnectionClosed,
    ConfigError,
    TopologyError,
    DispatchExhausted,
    PeerFailure,
    BatchError,
    StatementError,
    StatementErrors,
    DecodeError,
    EncodeError,
    ScanTypeMismatch,
    CursorStateError,
    ConsistencyLevel,
    Int64,
    Int32,
    Int16,
    NullString,
    NullInt64,
    NullInt32,
    NullInt16,
    NullFloat64,
    NullBool,
    NullBytes,
    NullTime,
)

__version__ = "1.0.0"
__all__ = [
    "RqliteClient",
    "ClientConfig",
    "Peer",
    "PeerDirectory",
    "Statement",
    "Outcome",
    "ErrorResult",
    "WriteResult",
    "QueryResult",
    "RqliteError",
    "ConnectionClosed",
    "ConfigError",
    "TopologyError",
    "DispatchExhausted",
    "PeerFailure",
    "BatchError",
    "StatementError",
    "StatementErrors",
    "DecodeError",
    "EncodeError",
    "ScanTypeMismatch",
    "CursorStateError",
    "ConsistencyLevel",
    "Int64",
    "Int32",
    "Int16",
    "NullString",
    "NullInt64",
    "NullInt32",
    "NullInt16",
    "NullFloat64",
    "NullBool",
    "NullBytes",
    "NullTime",
]
