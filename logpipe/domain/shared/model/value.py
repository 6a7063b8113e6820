from pydantic import BaseModel, ConfigDict


class ValueObject(BaseModel):
    """Immutable value object."""

    model_config = ConfigDict(frozen=True)
