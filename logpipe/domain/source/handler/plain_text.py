"""Plain-text log handler: raw byte passthrough."""

from pydantic import Field

from logpipe.domain.pipe.model.pipe import PipeWriter
from logpipe.domain.source.handler.base import StreamingSourceHandler
from logpipe.domain.source.model.config import SourceHandlerConfig
from logpipe.domain.source.port.connector import SourceStream


class PlainTextConfig(SourceHandlerConfig):
    suffixes: list[str] = Field(default_factory=lambda: [".log"])


class PlainTextHandler(StreamingSourceHandler):
    """Streams uncompressed log files byte for byte."""

    name = "plain-text"
    config_class = PlainTextConfig

    async def _pump(self, stream: SourceStream, writer: PipeWriter) -> bool:
        cancellation = self._context.cancellation
        while True:
            buffer = writer.get_buffer(self._context.minimum_chunk_size)
            read = await cancellation.run(stream.readinto(buffer))
            writer.advance(read)
            flushed = await writer.flush(cancellation)
            if read == 0:
                return True
            if not self._may_continue(flushed):
                return False
