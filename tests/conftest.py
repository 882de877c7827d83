"""Pytest configuration and fixtures for rqlite-client tests."""

from __future__ import annotations

from typing import List

import pytest
import pytest_asyncio

from rqlite_client import ClientConfig
from tests.helpers import MockNode


@pytest_asyncio.fixture
async def node_factory():
    """Start mock nodes on demand; all are stopped after the test."""
    nodes: List[MockNode] = []

    async def make() -> MockNode:
        node = MockNode()
        await node.start()
        nodes.append(node)
        return node

    yield make

    for node in nodes:
        await node.stop()


@pytest.fixture()
def config() -> ClientConfig:
    """Default client configuration."""
    return ClientConfig()
