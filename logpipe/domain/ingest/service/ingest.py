"""IngestService - turns an attachment into a readable byte stream."""

import asyncio
import logging
from dataclasses import dataclass

import logfire

from logpipe.domain.attachment.model.value import Attachment
from logpipe.domain.pipe.model.pipe import Pipe, PipeReader
from logpipe.domain.pipe.model.value import Completion
from logpipe.domain.shared.error import InvalidStateError, UnsupportedAttachmentError
from logpipe.domain.shared.service import Service
from logpipe.domain.source.service.dispatcher import HandlerDispatcher

logger = logging.getLogger(__name__)


@dataclass
class IngestSession:
    """One in-flight ingestion: the consumer's read end plus the producer task."""

    attachment: Attachment
    handler_name: str
    reader: PipeReader
    producer: asyncio.Task[None]

    async def wait(self) -> Completion:
        """Wait for the producer to finish and return the pipe's completion."""
        await self.producer
        completion = self.reader.completion
        if completion is None:
            raise InvalidStateError(f"Handler {self.handler_name} returned without completing the pipe")
        return completion

    async def aclose(self) -> None:
        """Stop consuming and wait for the producer to wind down."""
        self.reader.complete()
        try:
            await self.producer
        except asyncio.CancelledError:
            if not self.producer.cancelled():
                raise

    async def __aenter__(self) -> "IngestSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class IngestService(Service):
    """Selects a handler for an attachment and starts streaming it.

    The producer runs as its own task; the returned session's reader can be
    consumed concurrently. Producer failures never surface as exceptions
    here, only through the reader's completion.
    """

    dispatcher: HandlerDispatcher
    capacity: int
    minimum_chunk_size: int
    resume_threshold: int | None = None

    async def open(self, attachment: Attachment) -> IngestSession:
        """Start ingesting ``attachment``.

        Raises:
            UnsupportedAttachmentError: If no handler accepts the attachment.
        """
        with logfire.span("IngestAttachment", file_name=attachment.file_name):
            handler = await self.dispatcher.select(attachment)
            if handler is None:
                raise UnsupportedAttachmentError(attachment.file_name)

            pipe = Pipe(
                capacity=self.capacity,
                resume_threshold=self.resume_threshold,
                minimum_segment_size=self.minimum_chunk_size,
            )
            producer = asyncio.create_task(
                handler.fill_pipe(attachment, pipe.writer),
                name=f"fill-pipe-{attachment.file_name}",
            )
            logger.info("Streaming %s with handler %s", attachment.file_name, handler.name)
            return IngestSession(
                attachment=attachment,
                handler_name=handler.name,
                reader=pipe.reader,
                producer=producer,
            )
