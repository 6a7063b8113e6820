"""Bounded in-memory byte pipe connecting one producer to one consumer.

The writer stages bytes with ``get_buffer``/``advance`` and publishes them
with ``flush``. Publishing is piecewise: never more than ``capacity`` bytes
sit unread in the pipe, and once the buffer is full the writer stays
suspended until the reader drains it to ``resume_threshold``.

The writer sets the pipe's ``Completion`` exactly once. The reader sees
end-of-stream (``b""``) only after the buffer is drained and the completion
is set.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractContextManager, nullcontext

from logpipe.domain.pipe.model.value import Completion, FlushResult
from logpipe.domain.shared.cancellation import CancellationScope
from logpipe.domain.shared.error import InvalidStateError, PipeClosedError

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 64 * 1024
DEFAULT_MINIMUM_SEGMENT_SIZE = 4096


class Pipe:
    """Order-preserving byte channel with a bounded buffer.

    Args:
        capacity: Maximum number of published-but-unread bytes.
        resume_threshold: Fill level a full buffer must drain to before the
            writer resumes. Defaults to half the capacity.
        minimum_segment_size: Smallest buffer handed out by ``get_buffer``.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        resume_threshold: int | None = None,
        minimum_segment_size: int = DEFAULT_MINIMUM_SEGMENT_SIZE,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        if resume_threshold is None:
            resume_threshold = capacity // 2
        if not 0 <= resume_threshold < capacity:
            raise ValueError(
                f"resume_threshold must be in [0, {capacity}), got {resume_threshold}"
            )
        if minimum_segment_size <= 0:
            raise ValueError(f"minimum_segment_size must be positive, got {minimum_segment_size}")

        self._capacity = capacity
        self._resume_threshold = resume_threshold
        self._minimum_segment_size = minimum_segment_size

        self._buffer = bytearray()
        self._completion: Completion | None = None
        self._reader_completed = False
        self._writer_paused = False
        self._data_ready = asyncio.Event()
        self._space_ready = asyncio.Event()

        self.writer = PipeWriter(self)
        self.reader = PipeReader(self)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def resume_threshold(self) -> int:
        return self._resume_threshold

    @property
    def minimum_segment_size(self) -> int:
        return self._minimum_segment_size

    @property
    def unread_bytes(self) -> int:
        """Bytes published by the writer and not yet consumed."""
        return len(self._buffer)

    @property
    def completion(self) -> Completion | None:
        return self._completion

    @property
    def reader_completed(self) -> bool:
        return self._reader_completed

    def _publish(self, pending: bytearray) -> None:
        size = min(self._capacity - len(self._buffer), len(pending))
        self._buffer += pending[:size]
        del pending[:size]
        self._data_ready.set()

    def _consume(self, size: int) -> bytes:
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        self._space_ready.set()
        return data

    def _set_completion(self, completion: Completion) -> None:
        if self._completion is not None:
            raise InvalidStateError(f"Pipe already completed with status {self._completion.status}")
        self._completion = completion
        self._data_ready.set()
        logger.debug("Pipe completed: %s", completion.status)

    def _complete_reader(self) -> None:
        if self._reader_completed:
            return
        self._reader_completed = True
        self._buffer.clear()
        self._space_ready.set()


class PipeWriter:
    """Producer end of a ``Pipe``."""

    def __init__(self, pipe: Pipe) -> None:
        self._pipe = pipe
        self._segment: bytearray | None = None
        self._reserved: int | None = None
        self._pending = bytearray()

    @property
    def completion(self) -> Completion | None:
        return self._pipe.completion

    @property
    def unflushed_bytes(self) -> int:
        """Bytes committed with ``advance`` that ``flush`` has not published yet."""
        return len(self._pending)

    def get_buffer(self, size_hint: int = 0) -> memoryview:
        """Reserve a writable buffer of at least ``size_hint`` bytes.

        The buffer is never smaller than the pipe's minimum segment size.
        Only the first ``n`` bytes passed to ``advance`` are kept.
        """
        self._ensure_open()
        if size_hint < 0:
            raise ValueError(f"size_hint must be non-negative, got {size_hint}")
        size = max(size_hint, self._pipe.minimum_segment_size)
        if self._segment is None or len(self._segment) < size:
            self._segment = bytearray(size)
        self._reserved = len(self._segment)
        return memoryview(self._segment)

    def advance(self, count: int) -> None:
        """Commit the first ``count`` bytes of the last reserved buffer."""
        self._ensure_open()
        if self._reserved is None or self._segment is None:
            raise InvalidStateError("advance() called without a reserved buffer")
        if not 0 <= count <= self._reserved:
            raise ValueError(f"count must be in [0, {self._reserved}], got {count}")
        self._pending += memoryview(self._segment)[:count]
        self._reserved = None

    async def flush(self, cancellation: CancellationScope | None = None) -> FlushResult:
        """Publish committed bytes to the reader.

        Suspends while the pipe is full. Returns early with ``CANCELED`` if
        ``cancellation`` fires, in which case unpublished bytes are dropped
        when the writer completes.
        """
        self._ensure_open()
        pipe = self._pipe

        registration: AbstractContextManager[None] = (
            cancellation.register(pipe._space_ready.set) if cancellation else nullcontext()
        )
        with registration:
            while True:
                if pipe._reader_completed:
                    self._pending.clear()
                    return FlushResult.READER_COMPLETED
                if cancellation is not None and cancellation.cancelled:
                    return FlushResult.CANCELED

                if len(pipe._buffer) >= pipe.capacity:
                    pipe._writer_paused = True
                if pipe._writer_paused:
                    if len(pipe._buffer) > pipe.resume_threshold:
                        pipe._space_ready.clear()
                        await pipe._space_ready.wait()
                        continue
                    pipe._writer_paused = False

                if not self._pending:
                    return FlushResult.MORE_SPACE
                pipe._publish(self._pending)

    async def write(
        self, data: bytes, cancellation: CancellationScope | None = None
    ) -> FlushResult:
        """Commit ``data`` and flush it."""
        self._ensure_open()
        self._pending += data
        return await self.flush(cancellation)

    def complete(self, error: BaseException | None = None) -> None:
        """Set the terminal state: success, or error when ``error`` is given."""
        if error is not None:
            self._discard()
            self._pipe._set_completion(Completion.error(error))
            return
        if self._pending:
            raise InvalidStateError(
                f"Cannot complete successfully with {len(self._pending)} unflushed bytes"
            )
        self._pipe._set_completion(Completion.success())

    def cancel(self) -> None:
        """Set the terminal state to canceled. Published bytes stay readable."""
        self._discard()
        self._pipe._set_completion(Completion.canceled())

    def _discard(self) -> None:
        self._pending.clear()
        self._reserved = None

    def _ensure_open(self) -> None:
        completion = self._pipe.completion
        if completion is not None:
            raise PipeClosedError(f"Pipe writer already completed with status {completion.status}")


class PipeReader:
    """Consumer end of a ``Pipe``."""

    def __init__(self, pipe: Pipe) -> None:
        self._pipe = pipe

    @property
    def completion(self) -> Completion | None:
        """The writer's terminal state, once set."""
        return self._pipe.completion

    @property
    def at_eof(self) -> bool:
        return self._pipe.completion is not None and not self._pipe._buffer

    async def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes (all buffered bytes if ``n`` is negative).

        Suspends until data is available. Returns ``b""`` at end-of-stream.
        """
        if self._pipe.reader_completed:
            raise InvalidStateError("Pipe reader already completed")
        if n == 0:
            return b""

        pipe = self._pipe
        while not pipe._buffer:
            if pipe.completion is not None:
                return b""
            pipe._data_ready.clear()
            await pipe._data_ready.wait()

        size = len(pipe._buffer) if n < 0 else min(n, len(pipe._buffer))
        return pipe._consume(size)

    async def read_to_end(self) -> bytes:
        chunks = bytearray()
        async for chunk in self:
            chunks += chunk
        return bytes(chunks)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while chunk := await self.read():
            yield chunk

    def complete(self) -> None:
        """Signal that no more data will be consumed.

        Buffered bytes are dropped and the writer's next flush reports
        ``READER_COMPLETED``.
        """
        self._pipe._complete_reader()
