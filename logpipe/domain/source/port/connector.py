"""Port for opening streaming connections to attachment sources."""

from abc import abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from logpipe.domain.shared.port import Port


class SourceStream(Protocol):
    """An open, readable byte stream."""

    @abstractmethod
    async def readinto(self, buffer: memoryview) -> int:
        """Read up to ``len(buffer)`` bytes into ``buffer``; 0 means end of source."""
        ...


class SourceConnector(Port, Protocol):
    """Opens source streams.

    ``open`` is an async context manager: the connection and every resource
    behind it are released when the block exits, whatever the exit path.
    Timeout policy lives here, not in the handlers.
    """

    @abstractmethod
    def open(self, url: str) -> AbstractAsyncContextManager[SourceStream]: ...
