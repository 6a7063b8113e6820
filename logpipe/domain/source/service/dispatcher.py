"""HandlerDispatcher - picks the handler for an attachment."""

import logging

from logpipe.domain.attachment.model.value import Attachment
from logpipe.domain.shared.service import Service
from logpipe.domain.source.model.registry import HandlerRegistry
from logpipe.domain.source.port.handler import SourceHandler

logger = logging.getLogger(__name__)


class HandlerDispatcher(Service):
    """Selects the first registered handler that accepts an attachment.

    Probing only inspects attachment metadata; nothing is downloaded here.
    """

    handlers: HandlerRegistry

    async def select(self, attachment: Attachment) -> SourceHandler | None:
        """Return the first handler whose probe accepts ``attachment``.

        Returns:
            The selected handler, or None when no handler accepts it. The
            caller decides how to report an unsupported attachment.
        """
        for handler in self.handlers:
            if await handler.can_handle(attachment):
                logger.debug("Selected handler %s for %s", handler.name, attachment.file_name)
                return handler

        logger.info(
            "No handler for %s (tried: %s)",
            attachment.file_name,
            ", ".join(self.handlers.names()) or "none",
        )
        return None
