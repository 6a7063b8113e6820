"""Error hierarchy for logpipe.

Error layers:
- LogPipeError: Base class for all logpipe errors
- DomainError: Contract violations and unsupported input (caller mistakes)
- InfrastructureError: Source, network and decoding failures

Handler-side infrastructure errors never escape ``fill_pipe``; they are
recorded as the pipe's error completion instead.
"""


class LogPipeError(Exception):
    """Base class for all logpipe errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(LogPipeError):
    """Base class for domain errors."""


class UnsupportedAttachmentError(DomainError):
    """No registered handler accepts the attachment."""

    def __init__(self, file_name: str) -> None:
        super().__init__(f"Unsupported attachment type: {file_name}", code="UNSUPPORTED_ATTACHMENT")
        self.file_name = file_name


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


class PipeClosedError(InvalidStateError):
    """Write attempted on a pipe whose completion state is already set."""


class OperationCancelledError(DomainError):
    """A guarded await was interrupted by the cancellation scope."""


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(LogPipeError):
    """Base class for infrastructure/system errors."""


class DecodeError(InfrastructureError):
    """Attachment content could not be decoded."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
