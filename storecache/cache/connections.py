"""
storecache — Connection Registry

Owns the Redis clients handed to cache backends.

Persistent servers share one client per (host, port, timeout) for the life of
the registry; transient servers get a fresh client per backend, which the
backend releases on close. Shared clients are only closed by ``close_all()``,
even when a backend using one fails to connect: other backends may hold the
same client, and redis-py reconnects it on the next command.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..config import ServerConfig

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ServerConfig], Any]


def redis_client_factory(server: ServerConfig) -> Any:
    """Build a ``redis.asyncio.Redis`` client for ``server`` (connects lazily)."""
    from redis.asyncio import Redis

    return Redis(
        host=server.host,
        port=server.port,
        socket_timeout=server.timeout,
        socket_connect_timeout=server.timeout,
        decode_responses=False,
    )


class ConnectionRegistry:
    """Explicit owner of shared and transient store clients."""

    def __init__(self, client_factory: ClientFactory | None = None):
        self._client_factory = client_factory or redis_client_factory
        self._shared: dict[tuple[str, int, float], Any] = {}

    def acquire(self, server: ServerConfig) -> Any:
        """Return the shared client for a persistent server, or a new client otherwise."""
        if not server.persistent:
            logger.debug("Opening transient connection to %s:%s", server.host, server.port)
            return self._client_factory(server)

        client = self._shared.get(server.endpoint)
        if client is None:
            logger.debug("Opening shared connection to %s:%s", server.host, server.port)
            client = self._client_factory(server)
            self._shared[server.endpoint] = client
        else:
            logger.debug("Reusing shared connection to %s:%s", server.host, server.port)
        return client

    async def release(self, server: ServerConfig, client: Any) -> None:
        """Close a transient client. Shared clients stay open until close_all()."""
        if server.persistent and self._shared.get(server.endpoint) is client:
            return
        await client.aclose()

    async def close_all(self) -> None:
        """Close every shared client."""
        for endpoint, client in list(self._shared.items()):
            try:
                await client.aclose()
            except Exception as e:
                logger.warning(
                    f"Error closing shared connection to {endpoint[0]}:{endpoint[1]}: {e}",
                    extra={"host": endpoint[0], "port": endpoint[1], "error": str(e)},
                )
        self._shared.clear()

    def shared_endpoints(self) -> list[tuple[str, int, float]]:
        """Endpoints that currently have a shared client."""
        return list(self._shared)

    def __len__(self) -> int:
        return len(self._shared)
