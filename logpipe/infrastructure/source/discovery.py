"""Source handler discovery via entry points."""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from logpipe.domain.shared.error import ConfigurationError
from logpipe.domain.source.port.handler import SourceHandler

if TYPE_CHECKING:
    from logpipe.config import HandlerConfig

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "logpipe.handlers"


def discover_handlers() -> dict[str, type[SourceHandler]]:
    """Discover available source handlers via entry points.

    Scans for entry points in the 'logpipe.handlers' group and loads
    the handler classes. Each entry point should point to a class
    that implements the SourceHandler protocol.

    Returns:
        Dict mapping handler type names to their classes.

    Example pyproject.toml entry:
        [project.entry-points."logpipe.handlers"]
        plain-text = "logpipe.domain.source.handler.plain_text:PlainTextHandler"
    """
    handlers: dict[str, type[SourceHandler]] = {}
    eps = entry_points(group=ENTRY_POINT_GROUP)

    for ep in eps:
        try:
            cls = ep.load()
            _validate_handler_class(cls, ep.name)
            handlers[ep.name] = cls
            logger.debug("Discovered handler: %s -> %s", ep.name, cls.__name__)
        except Exception as e:
            logger.warning("Failed to load handler '%s': %s", ep.name, e)

    return handlers


def _validate_handler_class(cls: Any, name: str) -> None:
    """Validate that a class conforms to the SourceHandler protocol.

    Raises:
        TypeError: If the class doesn't conform to the SourceHandler protocol.
    """
    if not isinstance(cls, type):
        raise TypeError(f"Handler {name} must be a class, got {type(cls).__name__}")
    if not hasattr(cls, "name"):
        raise TypeError(f"Handler {name} missing 'name' class attribute")
    if not hasattr(cls, "config_class"):
        raise TypeError(f"Handler {name} missing 'config_class' class attribute")
    if not issubclass(cls.config_class, BaseModel):
        raise TypeError(f"Handler {name} config_class must be a Pydantic BaseModel")
    for method in ("can_handle", "fill_pipe"):
        if not callable(getattr(cls, method, None)):
            raise TypeError(f"Handler {name} missing '{method}' method")


def validate_handler_config(
    handler_cls: type[SourceHandler],
    config_data: dict[str, Any],
) -> BaseModel:
    """Validate configuration data against a handler's config class.

    Raises:
        ValidationError: If config data doesn't match the schema.
    """
    return handler_cls.config_class.model_validate(config_data)


class HandlerConfigError(ConfigurationError):
    """Raised when handler configuration validation fails."""

    def __init__(self, handler_name: str, validation_error: ValidationError) -> None:
        self.handler_name = handler_name
        self.validation_error = validation_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format a human-readable error message."""
        lines = [f"Invalid config for handler '{self.handler_name}':"]
        for err in self.validation_error.errors():
            loc = ".".join(str(x) for x in err.get("loc", []))
            msg = err.get("msg", "Unknown error")
            lines.append(f"  - {loc}: {msg}")
        return "\n".join(lines)


def validate_all_handler_configs(
    handlers_config: list[HandlerConfig],
    available_handlers: dict[str, type[SourceHandler]],
) -> list[tuple[type[SourceHandler], BaseModel]]:
    """Validate all handler configurations at startup.

    Args:
        handlers_config: Handler configs in probe priority order.
        available_handlers: Dict of handler type -> class from discovery.

    Returns:
        (class, validated_config) pairs, in the configured order.

    Raises:
        HandlerConfigError: If any configuration is invalid.
        ValueError: If an unknown handler type is specified or duplicates exist.
    """
    validated: list[tuple[type[SourceHandler], BaseModel]] = []
    seen: set[str] = set()

    for handler_config in handlers_config:
        name = handler_config.handler

        if name in seen:
            raise ValueError(
                f"Duplicate handler '{name}'. Each handler type can only be configured once."
            )
        seen.add(name)

        if name not in available_handlers:
            available = ", ".join(sorted(available_handlers.keys())) or "(none)"
            raise ValueError(f"Unknown handler type '{name}'. Available: {available}")

        handler_cls = available_handlers[name]

        try:
            config = validate_handler_config(handler_cls, handler_config.config)
        except ValidationError as e:
            raise HandlerConfigError(handler_name=name, validation_error=e) from e
        validated.append((handler_cls, config))

    return validated
