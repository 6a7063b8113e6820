"""Source handler protocol for pluggable attachment formats."""

import logging
from dataclasses import dataclass, field
from typing import ClassVar, Protocol

from pydantic import BaseModel

from logpipe.domain.attachment.model.value import Attachment
from logpipe.domain.pipe.model.pipe import PipeWriter
from logpipe.domain.shared.cancellation import CancellationScope
from logpipe.domain.source.port.connector import SourceConnector


@dataclass(frozen=True)
class HandlerContext:
    """Collaborators shared by every handler instance.

    Attributes:
        connector: Opens streaming connections to attachment sources.
        cancellation: Process-wide cancellation scope (read-only here).
        minimum_chunk_size: Smallest write buffer requested from the pipe.
        logger: Sink for producer-side failures.
    """

    connector: SourceConnector
    cancellation: CancellationScope
    minimum_chunk_size: int = 4096
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("logpipe.handlers"))


class SourceHandler(Protocol):
    """Protocol for attachment format handlers.

    Implement this protocol to support a new attachment format, then
    register it under the ``logpipe.handlers`` entry-point group.

    Class attributes:
        name: Unique identifier for this handler (e.g., 'plain-text').
            Must match the entry point name.
        config_class: Pydantic model for validating configuration.
    """

    name: ClassVar[str]
    config_class: ClassVar[type[BaseModel]]

    def __init__(self, config: BaseModel, context: HandlerContext) -> None:
        """Initialize the handler with validated configuration."""
        ...

    async def can_handle(self, attachment: Attachment) -> bool:
        """Decide from metadata alone whether this handler decodes ``attachment``.

        Must not perform I/O or have side effects.
        """
        ...

    async def fill_pipe(self, attachment: Attachment, writer: PipeWriter) -> None:
        """Stream the decoded attachment into ``writer``.

        Never raises for transport or decode failures: every exit path
        sets the writer's completion (success, error or canceled).
        """
        ...
