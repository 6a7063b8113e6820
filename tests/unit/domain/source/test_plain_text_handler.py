"""Unit tests for PlainTextHandler."""

import asyncio
import logging
import os

import pytest

from logpipe.domain.attachment.model.value import Attachment
from logpipe.domain.pipe.model.pipe import Pipe
from logpipe.domain.pipe.model.value import CompletionStatus
from logpipe.domain.source.handler.plain_text import PlainTextConfig, PlainTextHandler


def _attachment(name: str = "crash.log") -> Attachment:
    return Attachment(file_name=name, source_url=f"https://cdn.example.com/attachments/{name}")


async def _stream(handler: PlainTextHandler, attachment: Attachment, pipe: Pipe) -> bytes:
    producer = asyncio.create_task(handler.fill_pipe(attachment, pipe.writer))
    received = await pipe.reader.read_to_end()
    await producer
    return received


class TestCanHandle:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["crash.log", "CRASH.LOG", "RPCS3.log", "a.b.Log"])
    async def test_accepts_log_files(self, name, make_connector, make_context):
        handler = PlainTextHandler(PlainTextConfig(), make_context(make_connector()))
        assert await handler.can_handle(_attachment(name))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["dump.zip", "crash.log.gz", "log", "crash.txt"])
    async def test_rejects_other_files(self, name, make_connector, make_context):
        connector = make_connector()
        handler = PlainTextHandler(PlainTextConfig(), make_context(connector))

        assert not await handler.can_handle(_attachment(name))
        assert connector.opened == []

    @pytest.mark.asyncio
    async def test_configured_suffixes(self, make_connector, make_context):
        config = PlainTextConfig(suffixes=[".log", ".txt"])
        handler = PlainTextHandler(config, make_context(make_connector()))

        assert await handler.can_handle(_attachment("notes.TXT"))
        assert handler.suffixes == (".log", ".txt")


class TestFillPipe:
    @pytest.mark.asyncio
    async def test_streams_large_source_in_order(self, make_connector, make_context, split_irregular):
        data = os.urandom(5_000_000)
        connector = make_connector(split_irregular(data))
        handler = PlainTextHandler(PlainTextConfig(), make_context(connector))
        pipe = Pipe(capacity=64 * 1024, minimum_segment_size=4096)

        received = await _stream(handler, _attachment(), pipe)

        assert len(received) == 5_000_000
        assert received == data
        assert pipe.completion.status is CompletionStatus.SUCCESS
        assert connector.closed == 1

    @pytest.mark.asyncio
    async def test_zero_length_source(self, make_connector, make_context):
        connector = make_connector([])
        handler = PlainTextHandler(PlainTextConfig(), make_context(connector))
        pipe = Pipe()

        assert await _stream(handler, _attachment(), pipe) == b""
        assert pipe.completion.is_success
        assert connector.closed == 1

    @pytest.mark.asyncio
    async def test_transport_failure_mid_stream(
        self, make_connector, make_context, caplog: pytest.LogCaptureFixture
    ):
        data = b"x" * 1000
        cause = ConnectionResetError("connection reset by peer")
        connector = make_connector([data[:300], data[300:]], error=cause)
        handler = PlainTextHandler(PlainTextConfig(), make_context(connector))
        pipe = Pipe(capacity=4096, minimum_segment_size=256)

        with caplog.at_level(logging.ERROR, logger="tests.handlers"):
            received = await _stream(handler, _attachment(), pipe)

        assert received == data
        assert pipe.completion.status is CompletionStatus.ERROR
        assert pipe.completion.cause is cause
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert errors[0].exc_info[1] is cause
        assert connector.closed == 1

    @pytest.mark.asyncio
    async def test_open_failure_becomes_error_completion(self, make_connector, make_context):
        cause = ConnectionRefusedError("refused")
        connector = make_connector(open_error=cause)
        handler = PlainTextHandler(PlainTextConfig(), make_context(connector))
        pipe = Pipe()

        # fill_pipe must not raise
        await handler.fill_pipe(_attachment(), pipe.writer)

        assert pipe.completion.is_error
        assert pipe.completion.cause is cause

    @pytest.mark.asyncio
    async def test_cancellation_stops_writes_and_keeps_flushed_bytes(
        self, make_connector, make_context, cancellation
    ):
        chunks = [bytes([i]) * 100 for i in range(50)]
        connector = make_connector(chunks)
        handler = PlainTextHandler(PlainTextConfig(), make_context(connector, minimum_chunk_size=100))
        pipe = Pipe(capacity=1000, minimum_segment_size=100)

        producer = asyncio.create_task(handler.fill_pipe(_attachment(), pipe.writer))
        first = await pipe.reader.read(100)
        cancellation.cancel("shutdown")
        rest = await pipe.reader.read_to_end()
        await producer

        received = first + rest
        assert pipe.completion.status is CompletionStatus.CANCELED
        assert 100 <= len(received) < 5000
        assert received == b"".join(chunks)[: len(received)]
        assert connector.closed == 1

    @pytest.mark.asyncio
    async def test_cancellation_interrupts_hung_source(self, make_connector, make_context, cancellation):
        connector = make_connector([b"header\n"], hang=True)
        handler = PlainTextHandler(PlainTextConfig(), make_context(connector))
        pipe = Pipe()

        producer = asyncio.create_task(handler.fill_pipe(_attachment(), pipe.writer))
        assert await pipe.reader.read() == b"header\n"
        cancellation.cancel("shutdown")
        await asyncio.wait_for(producer, timeout=1)

        assert pipe.completion.is_canceled
        assert await pipe.reader.read() == b""
        assert connector.closed == 1

    @pytest.mark.asyncio
    async def test_reader_losing_interest_cancels_production(self, make_connector, make_context):
        connector = make_connector([b"y" * 4096] * 100)
        handler = PlainTextHandler(PlainTextConfig(), make_context(connector))
        pipe = Pipe(capacity=8192, minimum_segment_size=4096)

        producer = asyncio.create_task(handler.fill_pipe(_attachment(), pipe.writer))
        await pipe.reader.read(10)
        pipe.reader.complete()
        await asyncio.wait_for(producer, timeout=1)

        assert pipe.completion.is_canceled
        assert connector.closed == 1

    @pytest.mark.asyncio
    async def test_task_cancellation_marks_canceled_and_propagates(self, make_connector, make_context):
        connector = make_connector([], hang=True)
        handler = PlainTextHandler(PlainTextConfig(), make_context(connector))
        pipe = Pipe()

        producer = asyncio.create_task(handler.fill_pipe(_attachment(), pipe.writer))
        await asyncio.sleep(0.01)
        producer.cancel()

        with pytest.raises(asyncio.CancelledError):
            await producer
        assert pipe.completion.is_canceled
        assert connector.closed == 1
