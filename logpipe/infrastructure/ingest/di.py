"""Dependency injection provider for ingestion."""

from dishka import provide

from logpipe.config import Config
from logpipe.domain.ingest.service.ingest import IngestService
from logpipe.domain.source.service.dispatcher import HandlerDispatcher
from logpipe.util.di.base import Provider
from logpipe.util.di.scope import Scope


class IngestProvider(Provider):
    @provide(scope=Scope.REQUEST)
    def get_ingest_service(self, config: Config, dispatcher: HandlerDispatcher) -> IngestService:
        return IngestService(
            dispatcher=dispatcher,
            capacity=config.pipe.capacity,
            minimum_chunk_size=config.pipe.minimum_chunk_size,
            resume_threshold=config.pipe.resume_threshold,
        )
