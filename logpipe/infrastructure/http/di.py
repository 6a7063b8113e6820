"""DI provider for HTTP infrastructure."""

from collections.abc import AsyncIterator
from typing import NewType

import httpx
from dishka import provide

from logpipe.config import Config
from logpipe.domain.source.port.connector import SourceConnector
from logpipe.infrastructure.http.connector import HttpSourceConnector
from logpipe.util.di.base import Provider
from logpipe.util.di.scope import Scope

AttachmentHttpClient = NewType("AttachmentHttpClient", httpx.AsyncClient)


class HttpProvider(Provider):
    """DI provider for the attachment download client."""

    @provide(scope=Scope.APP)
    async def get_attachment_http_client(self, config: Config) -> AsyncIterator[AttachmentHttpClient]:
        """Dedicated HTTP client for downloading attachments, closed with the container."""
        http = config.http
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=http.connect_timeout,
                read=http.read_timeout,
                write=http.write_timeout,
                pool=http.pool_timeout,
            ),
            follow_redirects=http.follow_redirects,
            headers={"User-Agent": http.user_agent},
        )
        yield AttachmentHttpClient(client)
        await client.aclose()

    @provide(scope=Scope.APP, provides=SourceConnector)
    def get_source_connector(self, client: AttachmentHttpClient) -> HttpSourceConnector:
        return HttpSourceConnector(client=client)
