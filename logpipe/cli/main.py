"""Main CLI application using Cyclopts.

Thin wrapper over the ingestion pipeline: inspect the configured handlers
and stream attachments from the command line.
"""

import cyclopts

from logpipe.cli.commands import fetch, handlers

app = cyclopts.App(
    name="logpipe",
    help="logpipe - stream chat attachments into a single byte stream",
)

app.command(handlers.list_handlers, name="handlers")
app.command(handlers.probe, name="probe")
app.command(fetch.fetch, name="fetch")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
