"""Dependency injection provider for source handlers."""

import logging

from dishka import provide

from logpipe.config import Config
from logpipe.domain.shared.cancellation import CancellationScope
from logpipe.domain.source.model.registry import HandlerRegistry
from logpipe.domain.source.port.connector import SourceConnector
from logpipe.domain.source.port.handler import HandlerContext, SourceHandler
from logpipe.domain.source.service.dispatcher import HandlerDispatcher
from logpipe.infrastructure.source.discovery import (
    discover_handlers,
    validate_all_handler_configs,
)
from logpipe.util.di.base import Provider
from logpipe.util.di.scope import Scope


class SourceProvider(Provider):
    """Provides configured source handlers and the dispatcher over them."""

    @provide(scope=Scope.APP)
    def get_handler_context(
        self,
        config: Config,
        connector: SourceConnector,
        cancellation: CancellationScope,
    ) -> HandlerContext:
        return HandlerContext(
            connector=connector,
            cancellation=cancellation,
            minimum_chunk_size=config.pipe.minimum_chunk_size,
            logger=logging.getLogger("logpipe.handlers"),
        )

    @provide(scope=Scope.APP)
    def get_handlers(self, config: Config, context: HandlerContext) -> HandlerRegistry:
        """Build all configured handlers.

        Discovers available handlers via entry points, validates
        configuration, and instantiates each configured handler in
        probe order.
        """
        available = discover_handlers()
        validated = validate_all_handler_configs(config.handlers, available)

        handlers: list[SourceHandler] = [
            handler_cls(handler_config, context) for handler_cls, handler_config in validated
        ]
        return HandlerRegistry(handlers)

    @provide(scope=Scope.APP)
    def get_dispatcher(self, handlers: HandlerRegistry) -> HandlerDispatcher:
        return HandlerDispatcher(handlers=handlers)
