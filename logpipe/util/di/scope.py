"""Custom Dishka scopes for logpipe."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """logpipe dependency injection scopes.

    Hierarchy: APP -> REQUEST

    - APP: Process lifetime (HTTP client, cancellation scope, handler registry)
    - REQUEST: One ingestion request (a single attachment)
    """

    APP = new_scope("APP")
    REQUEST = new_scope("REQUEST")
