"""Global test fixtures."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

import logfire
import pytest

from logpipe.domain.shared.cancellation import CancellationScope
from logpipe.domain.source.port.handler import HandlerContext

# Spans are created by the ingest service; keep them local to the process
logfire.configure(send_to_logfire=False, console=False)


class FakeSourceStream:
    """Serves pre-defined chunks, then ends, fails, or hangs."""

    def __init__(
        self,
        chunks: list[bytes],
        error: Exception | None = None,
        hang: bool = False,
    ) -> None:
        self._chunks = list(chunks)
        self._error = error
        self._hang = hang
        self.bytes_served = 0

    async def readinto(self, buffer: memoryview) -> int:
        # Yield to the event loop like a real network read would
        await asyncio.sleep(0)
        while self._chunks and not self._chunks[0]:
            self._chunks.pop(0)
        if not self._chunks:
            if self._error is not None:
                raise self._error
            if self._hang:
                await asyncio.Event().wait()
            return 0

        chunk = self._chunks[0]
        size = min(len(buffer), len(chunk))
        buffer[:size] = chunk[:size]
        if size == len(chunk):
            self._chunks.pop(0)
        else:
            self._chunks[0] = chunk[size:]
        self.bytes_served += size
        return size


class FakeSourceConnector:
    """SourceConnector double recording every open and close."""

    def __init__(
        self,
        chunks: list[bytes] | None = None,
        *,
        error: Exception | None = None,
        hang: bool = False,
        open_error: Exception | None = None,
    ) -> None:
        self._chunks = chunks or []
        self._error = error
        self._hang = hang
        self._open_error = open_error
        self.opened: list[str] = []
        self.closed = 0

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[FakeSourceStream]:
        self.opened.append(url)
        if self._open_error is not None:
            raise self._open_error
        try:
            yield FakeSourceStream(self._chunks, error=self._error, hang=self._hang)
        finally:
            self.closed += 1


def irregular_chunks(data: bytes, sizes: tuple[int, ...] = (1, 7, 4096, 13, 65537, 512, 3)) -> list[bytes]:
    """Split ``data`` into chunks cycling through ``sizes``."""
    chunks = []
    offset = 0
    index = 0
    while offset < len(data):
        size = sizes[index % len(sizes)]
        chunks.append(data[offset : offset + size])
        offset += size
        index += 1
    return chunks


@pytest.fixture
def cancellation() -> CancellationScope:
    """A cancellation scope local to the test."""
    return CancellationScope()


@pytest.fixture
def handler_logger() -> logging.Logger:
    return logging.getLogger("tests.handlers")


@pytest.fixture
def make_connector() -> type[FakeSourceConnector]:
    return FakeSourceConnector


@pytest.fixture
def make_context(
    cancellation: CancellationScope, handler_logger: logging.Logger
) -> Callable[..., HandlerContext]:
    """Build a HandlerContext around a connector, sharing the test's scope."""

    def _make(connector: FakeSourceConnector, minimum_chunk_size: int = 4096) -> HandlerContext:
        return HandlerContext(
            connector=connector,
            cancellation=cancellation,
            minimum_chunk_size=minimum_chunk_size,
            logger=handler_logger,
        )

    return _make


@pytest.fixture
def split_irregular() -> Callable[..., list[bytes]]:
    return irregular_chunks


@pytest.fixture
def builtin_handlers() -> dict[str, type]:
    """The handlers the package registers under its entry-point group."""
    from logpipe.domain.source.handler.gzip import GzipHandler
    from logpipe.domain.source.handler.plain_text import PlainTextHandler

    return {"plain-text": PlainTextHandler, "gzip": GzipHandler}
