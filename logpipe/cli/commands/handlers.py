"""Commands for inspecting the configured source handlers."""

import asyncio
import sys

from logpipe.application.di import create_container
from logpipe.cli.console import get_console
from logpipe.config import Config, configure_logging
from logpipe.domain.attachment.model.value import Attachment
from logpipe.domain.source.model.registry import HandlerRegistry
from logpipe.domain.source.service.dispatcher import HandlerDispatcher


async def _load_registry(config: Config) -> HandlerRegistry:
    container = create_container(config)
    try:
        return await container.get(HandlerRegistry)
    finally:
        await container.close()


async def _select(config: Config, attachment: Attachment) -> str | None:
    container = create_container(config)
    try:
        dispatcher = await container.get(HandlerDispatcher)
        handler = await dispatcher.select(attachment)
        return handler.name if handler else None
    finally:
        await container.close()


def list_handlers() -> None:
    """List configured source handlers in probe order."""
    config = Config()
    configure_logging(config.logging)
    registry = asyncio.run(_load_registry(config))

    rows = [
        {
            "name": handler.name,
            "class": type(handler).__name__,
            "suffixes": ", ".join(getattr(handler, "suffixes", ())) or "-",
        }
        for handler in registry
    ]
    get_console().table(
        rows,
        [("name", "Handler"), ("class", "Class"), ("suffixes", "Suffixes")],
        title="Source handlers",
    )


def probe(file_name: str, /) -> None:
    """Show which handler would stream an attachment.

    Args:
        file_name: Attachment file name, e.g. 'crash.log'.
    """
    console = get_console()
    config = Config()
    configure_logging(config.logging)

    name = asyncio.run(_select(config, Attachment(file_name=file_name, source_url="")))
    if name is None:
        console.error(
            f"Unsupported attachment type: {file_name}",
            hint="Run 'logpipe handlers' to see accepted suffixes",
        )
        sys.exit(1)
    console.success(f"{file_name} -> {name}")
