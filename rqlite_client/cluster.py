"""
rqlite Cluster Topology

Peer directory and cluster discovery. A directory is an immutable snapshot,
leader first; discovery builds a new one and the client swaps it in whole.

@version 1.0.0
@author rqlite-client Development Team
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple

from yarl import URL

from .types import ApiOperation, DispatchExhausted, TopologyError

if TYPE_CHECKING:
    from .api import Dispatcher

DEFAULT_PORT = "4001"


@dataclass(frozen=True)
class Peer:
    """A host:port address of a cluster node."""
    host: str
    port: str = DEFAULT_PORT

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def from_address(cls, address: str) -> "Peer":
        """
        Build a peer from ``host:port`` or from a full URL such as
        ``http://host:port``.

        Raises:
            ValueError: if no host or no valid port can be extracted.
        """
        address = address.strip()
        if "://" in address:
            url = URL(address)
            if not url.host:
                raise ValueError(f"no host in address {address!r}")
            port = url.port
            return cls(url.host, str(port) if port else DEFAULT_PORT)

        host, sep, port = address.rpartition(":")
        if not sep:
            host, port = address, DEFAULT_PORT
        host = host.strip("[]")
        if not host:
            raise ValueError(f"no host in address {address!r}")
        port = port or DEFAULT_PORT
        if not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"invalid port in address {address!r}")
        return cls(host, port)


@dataclass(frozen=True)
class PeerDirectory:
    """Known cluster nodes in the order they should be tried."""
    leader: Optional[Peer] = None
    followers: Tuple[Peer, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Peer]:
        return iter(self.peers())

    def __len__(self) -> int:
        return len(self.peers())

    def peers(self) -> List[Peer]:
        """Leader first (when known), then followers, without duplicates."""
        ordered: List[Peer] = []
        if self.leader is not None:
            ordered.append(self.leader)
        for peer in self.followers:
            if peer not in ordered:
                ordered.append(peer)
        return ordered

    @classmethod
    def seed(cls, peer: Peer) -> "PeerDirectory":
        """Directory holding only the configured peer, assumed to lead."""
        return cls(leader=peer)


# =========================================================================
# Response parsing
# =========================================================================


def _peer_or_none(address: Any) -> Optional[Peer]:
    if not isinstance(address, str) or not address:
        return None
    try:
        return Peer.from_address(address)
    except ValueError:
        return None


def parse_status(data: Any) -> Optional[PeerDirectory]:
    """
    Read the leader and peers out of a ``/status`` document.

    Older servers key the leader by raft node ID under ``store.leader`` and
    map IDs to HTTP addresses under ``store.metadata``. Newer ones have no
    metadata, in which case None is returned and ``/nodes`` must be asked.
    """
    if not isinstance(data, dict):
        return None
    store = data.get("store")
    if not isinstance(store, dict):
        return None

    leader_info = store.get("leader")
    if isinstance(leader_info, dict):
        leader_id = leader_info.get("node_id") or leader_info.get("addr")
    else:
        leader_id = leader_info
    if not isinstance(leader_id, str) or not leader_id:
        return None

    metadata = store.get("metadata")
    if not isinstance(metadata, dict):
        return None

    leader: Optional[Peer] = None
    followers: List[Peer] = []
    for node_id, meta in metadata.items():
        if not isinstance(meta, dict):
            continue
        peer = _peer_or_none(meta.get("api_addr"))
        if peer is None:
            continue
        if node_id == leader_id:
            leader = peer
        else:
            followers.append(peer)

    if leader is None:
        return None
    return PeerDirectory(leader=leader, followers=tuple(followers))


def _iter_nodes(data: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(data, dict) and isinstance(data.get("nodes"), list):
        nodes = data["nodes"]
    elif isinstance(data, dict):
        nodes = list(data.values())
    elif isinstance(data, list):
        nodes = data
    else:
        return
    for node in nodes:
        if isinstance(node, dict):
            yield node


def parse_nodes(data: Any) -> Optional[PeerDirectory]:
    """
    Read the leader and peers out of a ``/nodes`` document.

    Accepts the flat map ``{id: {api_addr, reachable, leader}}`` as well as
    the list form ``{"nodes": [...]}``. Unreachable nodes and nodes without
    a usable API address are dropped.
    """
    leader: Optional[Peer] = None
    followers: List[Peer] = []
    for node in _iter_nodes(data):
        if node.get("reachable") is False:
            continue
        peer = _peer_or_none(node.get("api_addr"))
        if peer is None:
            continue
        if node.get("leader") is True and leader is None:
            leader = peer
        else:
            followers.append(peer)

    if leader is None:
        return None
    return PeerDirectory(leader=leader, followers=tuple(followers))


# =========================================================================
# Discovery
# =========================================================================


def _load(body: bytes) -> Any:
    try:
        return json.loads(body)
    except ValueError:
        return None


async def discover(
    dispatcher: "Dispatcher",
    directory: PeerDirectory,
    logger: Optional[logging.Logger] = None,
    conn_id: str = "",
) -> PeerDirectory:
    """
    Ask the cluster for its current topology.

    ``/status`` is tried first, then ``/nodes``. The returned directory is
    new; the one passed in is never modified.

    Raises:
        TopologyError: if no leader can be identified.
    """
    log = logger or logging.getLogger(__name__)

    try:
        body = await dispatcher.dispatch(ApiOperation.STATUS, directory=directory)
    except DispatchExhausted as e:
        log.debug("%s: status call failed, trying nodes: %s", conn_id, e)
    else:
        found = parse_status(_load(body))
        if found is not None:
            log.debug("%s: leader determined from status metadata: %s", conn_id, found.leader)
            return found
        log.debug("%s: status has no usable metadata, trying nodes", conn_id)

    try:
        body = await dispatcher.dispatch(ApiOperation.NODES, directory=directory)
    except DispatchExhausted as e:
        raise TopologyError(f"could not determine leader from nodes call: {e}") from e

    found = parse_nodes(_load(body))
    if found is None:
        raise TopologyError("could not determine leader from status or nodes")

    log.debug("%s: leader determined from nodes: %s", conn_id, found.leader)
    for n, peer in enumerate(found.followers):
        log.debug("%s: follower #%d: %s", conn_id, n, peer)
    return found
