"""HTTP adapter for the SourceConnector port."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from logpipe.domain.source.port.connector import SourceConnector

logger = logging.getLogger(__name__)


class HttpSourceStream:
    """Adapts a streaming httpx response to ``readinto``.

    Chunks arrive in whatever sizes the server and transport produce; any
    part of a chunk that does not fit the caller's buffer is kept for the
    next read.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._chunks = response.aiter_bytes()
        self._leftover = memoryview(b"")

    async def readinto(self, buffer: memoryview) -> int:
        while not self._leftover:
            chunk = await anext(self._chunks, None)
            if chunk is None:
                return 0
            self._leftover = memoryview(chunk)

        size = min(len(buffer), len(self._leftover))
        buffer[:size] = self._leftover[:size]
        self._leftover = self._leftover[size:]
        return size


class HttpSourceConnector(SourceConnector):
    """Opens attachment URLs as streaming GET requests."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[HttpSourceStream]:
        async with self._client.stream("GET", url) as response:
            response.raise_for_status()
            logger.debug(
                "Opened %s (%s, content-length=%s)",
                url,
                response.status_code,
                response.headers.get("Content-Length", "unknown"),
            )
            yield HttpSourceStream(response)
