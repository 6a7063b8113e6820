from dishka import AsyncContainer, from_context, make_async_container

from logpipe.config import Config
from logpipe.domain.shared.cancellation import CancellationScope
from logpipe.infrastructure.http.di import HttpProvider
from logpipe.infrastructure.ingest.di import IngestProvider
from logpipe.infrastructure.source.di import SourceProvider
from logpipe.util.di.base import Provider
from logpipe.util.di.scope import Scope


class ContextProvider(Provider):
    """Exposes process-level values passed in as container context."""

    config = from_context(provides=Config, scope=Scope.APP)
    cancellation = from_context(provides=CancellationScope, scope=Scope.APP)


def create_container(
    config: Config | None = None,
    cancellation: CancellationScope | None = None,
) -> AsyncContainer:
    """Assemble the application container.

    The cancellation scope is created here, once per process, unless the
    caller supplies one (for example to trigger it from signal handlers).
    """
    config = config or Config()
    cancellation = cancellation or CancellationScope()

    return make_async_container(
        ContextProvider(),
        HttpProvider(),
        SourceProvider(),
        IngestProvider(),
        context={Config: config, CancellationScope: cancellation},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
