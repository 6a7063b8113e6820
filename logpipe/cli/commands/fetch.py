"""Stream an attachment through the ingestion pipeline."""

import asyncio
import signal
import sys
from pathlib import Path
from typing import BinaryIO

from logpipe.application.di import create_container
from logpipe.cli.console import Console
from logpipe.config import Config, configure_logging
from logpipe.domain.attachment.model.value import Attachment
from logpipe.domain.ingest.service.ingest import IngestService
from logpipe.domain.pipe.model.value import Completion, CompletionStatus
from logpipe.domain.shared.cancellation import CancellationScope
from logpipe.domain.shared.error import UnsupportedAttachmentError

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def stream_attachment(
    config: Config,
    attachment: Attachment,
    sink: BinaryIO,
    cancellation: CancellationScope,
) -> tuple[Completion, int]:
    """Stream ``attachment`` into ``sink``.

    Returns:
        The pipe's completion and the number of bytes written to ``sink``.

    Raises:
        UnsupportedAttachmentError: If no handler accepts the attachment.
    """
    container = create_container(config, cancellation)
    try:
        async with container() as request:
            service = await request.get(IngestService)
            async with await service.open(attachment) as session:
                written = 0
                async for chunk in session.reader:
                    sink.write(chunk)
                    written += len(chunk)
                completion = await session.wait()
        sink.flush()
        return completion, written
    finally:
        await container.close()


async def _run(config: Config, attachment: Attachment, sink: BinaryIO) -> tuple[Completion, int]:
    cancellation = CancellationScope()
    loop = asyncio.get_running_loop()
    for sig in _SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, cancellation.cancel, f"received {sig.name}")
    try:
        return await stream_attachment(config, attachment, sink, cancellation)
    finally:
        for sig in _SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)


def fetch(
    file_name: str,
    url: str,
    /,
    *,
    output: Path | None = None,
) -> None:
    """Download an attachment and write its decoded bytes.

    Args:
        file_name: Attachment file name; selects the handler (e.g. 'crash.log').
        url: Where to download the attachment from.
        output: Write to this file instead of stdout.
    """
    # Status goes to stderr; stdout may carry the stream itself
    console = Console(stderr=True)
    config = Config()
    configure_logging(config.logging)
    attachment = Attachment(file_name=file_name, source_url=url)

    try:
        if output is None:
            completion, written = asyncio.run(_run(config, attachment, sys.stdout.buffer))
        else:
            with output.open("wb") as sink:
                completion, written = asyncio.run(_run(config, attachment, sink))
    except UnsupportedAttachmentError as e:
        console.error(e.message, hint="Run 'logpipe handlers' to see accepted suffixes")
        sys.exit(2)

    match completion.status:
        case CompletionStatus.SUCCESS:
            console.success(f"Streamed {written} bytes from {file_name}")
        case CompletionStatus.CANCELED:
            console.warning(f"Cancelled after {written} bytes from {file_name}")
            sys.exit(130)
        case CompletionStatus.ERROR:
            console.error(
                f"Failed after {written} bytes from {file_name}",
                hint=str(completion.cause),
            )
            sys.exit(1)
