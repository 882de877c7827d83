"""
rqlite Client Type Definitions

@version 1.0.0
@author rqlite-client Development Team
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional


class RqliteError(Exception):
    """Base exception for rqlite client errors."""
    pass


class ConnectionClosed(RqliteError):
    """Raised by every operation on a client that has been closed."""

    def __init__(self, message: str = "rqlite: connection is closed"):
        super().__init__(message)


class ConfigError(RqliteError, ValueError):
    """Invalid connection URL or client option."""
    pass


class TopologyError(RqliteError):
    """Cluster discovery could not identify a leader."""
    pass


@dataclass(frozen=True)
class PeerFailure:
    """One entry of the dispatcher's diagnostic trail."""
    peer: str
    url: str
    reason: str

    def __str__(self) -> str:
        return f"{self.url} failed: {self.reason}"


class DispatchExhausted(RqliteError):
    """Every peer in the directory failed for one call."""

    def __init__(self, failures: List[PeerFailure]):
        self.failures = list(failures)
        lines = ["tried all peers unsuccessfully. here are the results:"]
        for n, failure in enumerate(self.failures):
            lines.append(f"   peer #{n} ({failure.peer}): {failure}")
        super().__init__("\n".join(lines))


class BatchError(RqliteError):
    """The server rejected the whole batch; no outcome is valid."""
    pass


class StatementError(RqliteError):
    """A single statement of a batch failed on the server."""

    def __init__(self, index: int, message: str):
        self.index = index
        self.message = message
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatementError):
            return NotImplemented
        return self.index == other.index and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.index, self.message))


class StatementErrors(RqliteError):
    """
    One or more statements of a batch failed.

    ``results`` holds every outcome of the batch in submission order, so
    callers can see which statements succeeded despite the failure.
    """

    def __init__(self, errors: List[StatementError], results: List[Any]):
        self.errors = list(errors)
        self.results = list(results)
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.errors:
            return ""
        lines = [f"there were {len(self.errors)} statement errors"]
        lines.extend(str(err) for err in self.errors)
        return "\n".join(lines)

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __contains__(self, target: Any) -> bool:
        """Check whether an error class or an equal error instance is present."""
        for err in self.errors:
            if isinstance(target, type):
                if isinstance(err, target):
                    return True
            elif err is target or err == target:
                return True
        return False


class DecodeError(RqliteError):
    """Malformed or unexpected response envelope."""
    pass


class EncodeError(RqliteError, ValueError):
    """A statement cannot be encoded for the requested operation."""
    pass


class ScanTypeMismatch(RqliteError, TypeError):
    """A column value cannot be converted to the requested kind."""
    pass


class CursorStateError(RqliteError):
    """The row cursor is not positioned on a row, or arguments mismatch."""
    pass


class ConsistencyLevel(str, Enum):
    """Read consistency requested from the cluster."""
    NONE = "none"
    WEAK = "weak"
    LINEARIZABLE = "linearizable"
    STRONG = "strong"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: "str | ConsistencyLevel") -> "ConsistencyLevel":
        """Parse a level name."""
        if isinstance(value, ConsistencyLevel):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(f"unknown consistency level: {value}") from None


class ApiOperation(Enum):
    """Kind of HTTP API call made to a node."""
    QUERY = "query"
    WRITE = "write"
    REQUEST = "request"
    STATUS = "status"
    NODES = "nodes"

    @property
    def path(self) -> str:
        return _API_PATHS[self]

    @property
    def is_post(self) -> bool:
        return self in (ApiOperation.QUERY, ApiOperation.WRITE, ApiOperation.REQUEST)

    @property
    def follows_redirects(self) -> bool:
        return self in (ApiOperation.WRITE, ApiOperation.REQUEST)


_API_PATHS = {
    ApiOperation.QUERY: "/db/query",
    ApiOperation.WRITE: "/db/execute",
    ApiOperation.REQUEST: "/db/request",
    ApiOperation.STATUS: "/status",
    ApiOperation.NODES: "/nodes",
}


# =========================================================================
# Scan kinds
# =========================================================================


class Int64(int):
    """Scan kind for a signed 64-bit integer."""
    bits = 64


class Int32(int):
    """Scan kind for a signed 32-bit integer."""
    bits = 32


class Int16(int):
    """Scan kind for a signed 16-bit integer."""
    bits = 16


@dataclass(frozen=True)
class NullString:
    """A string that may be NULL."""
    value: str = ""
    valid: bool = False


@dataclass(frozen=True)
class NullInt64:
    """A 64-bit integer that may be NULL."""
    value: int = 0
    valid: bool = False


@dataclass(frozen=True)
class NullInt32:
    """A 32-bit integer that may be NULL."""
    value: int = 0
    valid: bool = False


@dataclass(frozen=True)
class NullInt16:
    """A 16-bit integer that may be NULL."""
    value: int = 0
    valid: bool = False


@dataclass(frozen=True)
class NullFloat64:
    """A float that may be NULL."""
    value: float = 0.0
    valid: bool = False


@dataclass(frozen=True)
class NullBool:
    """A boolean that may be NULL."""
    value: bool = False
    valid: bool = False


@dataclass(frozen=True)
class NullBytes:
    """A byte string that may be NULL."""
    value: bytes = b""
    valid: bool = False


@dataclass(frozen=True)
class NullTime:
    """A timestamp that may be NULL."""
    value: Optional[datetime] = None
    valid: bool = False
