"""Base configuration for source handlers."""

from pydantic import BaseModel, field_validator


class SourceHandlerConfig(BaseModel):
    """Base configuration for source handlers.

    Extend this class for handler-specific configuration.
    """

    suffixes: list[str]  # File-name suffixes accepted by the handler, case-insensitive

    @field_validator("suffixes")
    @classmethod
    def _check_suffixes(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one suffix is required")
        if any(not suffix.strip() for suffix in value):
            raise ValueError("suffixes must be non-empty strings")
        return value
