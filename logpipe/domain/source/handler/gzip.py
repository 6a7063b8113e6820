"""Gzip-compressed log handler: streaming decompression."""

import zlib

from pydantic import Field

from logpipe.domain.pipe.model.pipe import PipeWriter
from logpipe.domain.shared.error import DecodeError
from logpipe.domain.source.handler.base import StreamingSourceHandler
from logpipe.domain.source.model.config import SourceHandlerConfig
from logpipe.domain.source.port.connector import SourceStream

# Accept both gzip and zlib headers
_WBITS = zlib.MAX_WBITS | 32


class GzipConfig(SourceHandlerConfig):
    suffixes: list[str] = Field(default_factory=lambda: [".log.gz", ".gz"])


class GzipHandler(StreamingSourceHandler):
    """Streams gzip attachments, decompressing as bytes arrive.

    Decompressed output is committed in chunks of at most the minimum chunk
    size, so a highly compressed source still respects the pipe's capacity.
    Concatenated gzip members are decoded back to back.
    """

    name = "gzip"
    config_class = GzipConfig

    async def _pump(self, stream: SourceStream, writer: PipeWriter) -> bool:
        cancellation = self._context.cancellation
        chunk_size = self._context.minimum_chunk_size
        decompressor = zlib.decompressobj(wbits=_WBITS)
        member_started = False
        # Zero padding is accepted between and after members, as gzip(1) does
        padding_allowed = False
        compressed = bytearray(chunk_size)
        view = memoryview(compressed)

        while True:
            read = await cancellation.run(stream.readinto(view))
            if read == 0:
                break
            data = view[:read].tobytes()
            if not member_started:
                if padding_allowed:
                    data = data.lstrip(b"\0")
                    if not data:
                        continue
                member_started = True

            while True:
                try:
                    output = decompressor.decompress(data, chunk_size)
                except zlib.error as e:
                    raise DecodeError(f"Corrupt gzip stream: {e}") from e

                if output and not await self._commit(writer, output):
                    return False

                if decompressor.eof:
                    data = decompressor.unused_data.lstrip(b"\0")
                    decompressor = zlib.decompressobj(wbits=_WBITS)
                    padding_allowed = True
                    member_started = bool(data)
                    if not data:
                        break
                    continue

                data = decompressor.unconsumed_tail
                if not data and not output:
                    break

            if cancellation.cancelled:
                return False

        if member_started:
            raise DecodeError("Gzip stream ended before the end of the compressed data")
        return True
