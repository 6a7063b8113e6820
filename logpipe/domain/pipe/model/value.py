"""Value types describing the state of a pipe."""

from dataclasses import dataclass
from enum import StrEnum


class FlushResult(StrEnum):
    """Outcome of ``PipeWriter.flush``; drives the producer's continue/stop decision."""

    MORE_SPACE = "more_space"
    READER_COMPLETED = "reader_completed"
    CANCELED = "canceled"


class CompletionStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    CANCELED = "canceled"


@dataclass(frozen=True)
class Completion:
    """Terminal state of a pipe, set exactly once by the writer."""

    status: CompletionStatus
    cause: BaseException | None = None

    @classmethod
    def success(cls) -> "Completion":
        return cls(CompletionStatus.SUCCESS)

    @classmethod
    def error(cls, cause: BaseException) -> "Completion":
        return cls(CompletionStatus.ERROR, cause)

    @classmethod
    def canceled(cls) -> "Completion":
        return cls(CompletionStatus.CANCELED)

    @property
    def is_success(self) -> bool:
        return self.status is CompletionStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is CompletionStatus.ERROR

    @property
    def is_canceled(self) -> bool:
        return self.status is CompletionStatus.CANCELED
