"""Shared streaming loop for source handlers."""

import asyncio
from abc import ABC, abstractmethod
from typing import ClassVar

from logpipe.domain.attachment.model.value import Attachment
from logpipe.domain.pipe.model.pipe import PipeWriter
from logpipe.domain.pipe.model.value import FlushResult
from logpipe.domain.shared.error import OperationCancelledError
from logpipe.domain.source.model.config import SourceHandlerConfig
from logpipe.domain.source.port.connector import SourceStream
from logpipe.domain.source.port.handler import HandlerContext


class StreamingSourceHandler(ABC):
    """Base for handlers that stream a remote source into a pipe.

    Subclasses implement ``_pump``, which moves decoded bytes from an open
    source stream into the writer. This class owns connection scoping and
    translates every exit path into the writer's completion state:

    - ``_pump`` returns True (source exhausted): success
    - ``_pump`` returns False, or the cancellation scope interrupts a read: canceled
    - any exception: logged once, error
    """

    name: ClassVar[str]
    config_class: ClassVar[type[SourceHandlerConfig]]

    def __init__(self, config: SourceHandlerConfig, context: HandlerContext) -> None:
        self._config = config
        self._context = context
        self._log = context.logger

    @property
    def suffixes(self) -> tuple[str, ...]:
        return tuple(self._config.suffixes)

    async def can_handle(self, attachment: Attachment) -> bool:
        return attachment.has_suffix(*self._config.suffixes)

    async def fill_pipe(self, attachment: Attachment, writer: PipeWriter) -> None:
        try:
            async with self._context.connector.open(attachment.source_url) as stream:
                exhausted = await self._pump(stream, writer)
        except OperationCancelledError:
            exhausted = False
        except asyncio.CancelledError:
            if writer.completion is None:
                writer.cancel()
            raise
        except Exception as e:
            self._log.error(
                "Error filling the log pipe for %s (%s)",
                attachment.file_name,
                self.name,
                exc_info=e,
            )
            if writer.completion is None:
                writer.complete(e)
            return

        if exhausted:
            writer.complete()
        else:
            self._log.info("Stopped streaming %s before the end of the source", attachment.file_name)
            writer.cancel()

    @abstractmethod
    async def _pump(self, stream: SourceStream, writer: PipeWriter) -> bool:
        """Copy decoded bytes into ``writer``.

        Returns:
            True when the source was read to the end, False when streaming
            stopped early because of cancellation or a completed reader.
        """
        ...

    async def _commit(self, writer: PipeWriter, data: bytes) -> bool:
        """Commit and flush ``data``; return whether streaming may continue."""
        buffer = writer.get_buffer(len(data))
        buffer[: len(data)] = data
        writer.advance(len(data))
        return self._may_continue(await writer.flush(self._context.cancellation))

    def _may_continue(self, flushed: FlushResult) -> bool:
        return flushed is FlushResult.MORE_SPACE and not self._context.cancellation.cancelled
