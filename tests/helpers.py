"""Mock rqlite nodes and topology documents for tests.

Cluster nodes are simulated with in-process aiohttp servers bound to
ephemeral ports. A dead node is simulated by a port nothing listens on.
"""

from __future__ import annotations

import json
import socket
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from aiohttp import web

from rqlite_client import Peer

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@dataclass
class RecordedRequest:
    """A request received by a mock node."""

    method: str
    path: str
    query: Dict[str, str]
    body: Any
    headers: Dict[str, str]


@dataclass
class MockNode:
    """A fake rqlite node answering canned responses per path."""

    host: str = "127.0.0.1"
    routes: Dict[str, Union[Handler, tuple]] = field(default_factory=dict)
    requests: List[RecordedRequest] = field(default_factory=list)
    _runner: Optional[web.AppRunner] = field(default=None, init=False)
    _port: Optional[int] = field(default=None, init=False)

    @property
    def port(self) -> int:
        assert self._port is not None, "node not started"
        return self._port

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def base_url(self) -> str:
        return f"http://{self.address}"

    @property
    def peer(self) -> Peer:
        return Peer(self.host, str(self.port))

    def reply(
        self,
        path: str,
        payload: Any,
        status: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """Answer every request to ``path`` with a fixed JSON payload."""
        self.routes[path] = (status, payload, headers or {})

    def on(self, path: str, handler: Handler) -> None:
        """Answer requests to ``path`` with a custom handler."""
        self.routes[path] = handler

    def requests_to(self, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.path == path]

    async def _handle(self, request: web.Request) -> web.StreamResponse:
        raw = await request.read()
        try:
            body = json.loads(raw) if raw else None
        except ValueError:
            body = raw
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                query=dict(request.query),
                body=body,
                headers=dict(request.headers),
            )
        )

        route = self.routes.get(request.path)
        if route is None:
            return web.json_response({"error": "not found"}, status=404)
        if callable(route):
            return await route(request)
        status, payload, headers = route
        if status in (301, 302, 307, 308):
            return web.Response(status=status, headers=headers)
        return web.json_response(payload, status=status, headers=headers)

    async def start(self) -> None:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, 0)
        await site.start()
        self._port = self._runner.addresses[0][1]

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None


def closed_port() -> int:
    """Return a local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def status_shape_a(leader_id: str, addresses: Dict[str, str]) -> Dict[str, Any]:
    """A /status document carrying raft metadata (older servers)."""
    return {
        "store": {
            "leader": {"node_id": leader_id, "addr": f"raft-{leader_id}"},
            "metadata": {node_id: {"api_addr": addr} for node_id, addr in addresses.items()},
        }
    }


def nodes_shape_b(nodes: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """A /nodes document keyed by node ID (newer servers)."""
    return {
        node_id: {
            "api_addr": info["api_addr"],
            "addr": f"raft-{node_id}",
            "reachable": info.get("reachable", True),
            "leader": info.get("leader", False),
        }
        for node_id, info in nodes.items()
    }
