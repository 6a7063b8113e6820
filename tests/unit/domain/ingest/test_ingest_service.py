"""Unit tests for IngestService."""

import asyncio

import pytest

from logpipe.domain.attachment.model.value import Attachment
from logpipe.domain.ingest.service.ingest import IngestService
from logpipe.domain.pipe.model.value import CompletionStatus
from logpipe.domain.shared.error import UnsupportedAttachmentError
from logpipe.domain.source.handler.gzip import GzipConfig, GzipHandler
from logpipe.domain.source.handler.plain_text import PlainTextConfig, PlainTextHandler
from logpipe.domain.source.model.registry import HandlerRegistry
from logpipe.domain.source.service.dispatcher import HandlerDispatcher


@pytest.fixture
def build_service(make_context):
    def _build(connector, capacity: int = 8192, minimum_chunk_size: int = 1024) -> IngestService:
        context = make_context(connector, minimum_chunk_size=minimum_chunk_size)
        registry = HandlerRegistry(
            [PlainTextHandler(PlainTextConfig(), context), GzipHandler(GzipConfig(), context)]
        )
        return IngestService(
            dispatcher=HandlerDispatcher(handlers=registry),
            capacity=capacity,
            minimum_chunk_size=minimum_chunk_size,
        )

    return _build


def _attachment(name: str) -> Attachment:
    return Attachment(file_name=name, source_url=f"https://cdn.example.com/{name}")


class TestIngestService:
    @pytest.mark.asyncio
    async def test_open_streams_attachment(self, build_service, make_connector, split_irregular):
        data = bytes(range(256)) * 2000
        service = build_service(make_connector(split_irregular(data)))

        async with await service.open(_attachment("crash.log")) as session:
            received = await session.reader.read_to_end()
            completion = await session.wait()

        assert session.handler_name == "plain-text"
        assert received == data
        assert completion.status is CompletionStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_unsupported_attachment(self, build_service, make_connector):
        connector = make_connector([b"PK"])
        service = build_service(connector)

        with pytest.raises(UnsupportedAttachmentError) as exc_info:
            await service.open(_attachment("dump.zip"))

        assert exc_info.value.file_name == "dump.zip"
        assert exc_info.value.code == "UNSUPPORTED_ATTACHMENT"
        assert connector.opened == []

    @pytest.mark.asyncio
    async def test_failure_reaches_consumer_through_completion(self, build_service, make_connector):
        cause = ConnectionResetError("reset")
        service = build_service(make_connector([b"a" * 1000], error=cause))

        session = await service.open(_attachment("crash.log"))
        received = await session.reader.read_to_end()
        completion = await session.wait()

        assert received == b"a" * 1000
        assert completion.status is CompletionStatus.ERROR
        assert completion.cause is cause

    @pytest.mark.asyncio
    async def test_closing_early_cancels_the_producer(self, build_service, make_connector):
        connector = make_connector([b"z" * 1024] * 1000)
        service = build_service(connector, capacity=4096)

        session = await service.open(_attachment("crash.log"))
        await session.reader.read(100)
        await asyncio.wait_for(session.aclose(), timeout=1)

        assert session.producer.done()
        assert session.reader.completion.status is CompletionStatus.CANCELED
        assert connector.closed == 1
