"""Attachment descriptor supplied by the chat platform."""

from pydantic import Field

from logpipe.domain.shared.model.value import ValueObject


class Attachment(ValueObject):
    """A user-submitted file: its name and where to fetch it, not its bytes."""

    file_name: str
    source_url: str
    size_bytes: int | None = Field(default=None, ge=0)

    def has_suffix(self, *suffixes: str) -> bool:
        """Case-insensitive file-name suffix check."""
        name = self.file_name.casefold()
        return any(name.endswith(suffix.casefold()) for suffix in suffixes)
