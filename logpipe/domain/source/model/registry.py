"""Handler registry - ordered container for configured source handlers."""

from collections.abc import Iterator

from logpipe.domain.source.port.handler import SourceHandler


class HandlerRegistry:
    """Registry of source handlers in priority order.

    Order is the order handlers were configured in; the dispatcher probes
    them first to last.
    """

    def __init__(self, handlers: list[SourceHandler]) -> None:
        names = [handler.name for handler in handlers]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate handlers: {', '.join(duplicates)}")
        self._handlers = list(handlers)

    def __iter__(self) -> Iterator[SourceHandler]:
        return iter(self._handlers)

    def names(self) -> list[str]:
        """List handler names in priority order."""
        return [handler.name for handler in self._handlers]
