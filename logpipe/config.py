import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


# =============================================================================
# Pipe Configuration
# =============================================================================


class PipeConfig(BaseModel):
    """Sizing of the per-attachment stream pipe."""

    minimum_chunk_size: int = Field(default=4096, gt=0)  # Smallest write buffer requested per read
    capacity: int = Field(default=64 * 1024, gt=0)  # Max unread bytes buffered in a pipe
    resume_threshold: int | None = None  # Writer resumes once a full pipe drains to this; None = capacity // 2

    @model_validator(mode="after")
    def _check_sizes(self) -> "PipeConfig":
        if self.capacity < self.minimum_chunk_size:
            raise ValueError(
                f"capacity ({self.capacity}) must be at least minimum_chunk_size ({self.minimum_chunk_size})"
            )
        if self.resume_threshold is not None and not 0 <= self.resume_threshold < self.capacity:
            raise ValueError(f"resume_threshold must be in [0, {self.capacity})")
        return self


# =============================================================================
# HTTP Configuration
# =============================================================================


class HttpConfig(BaseModel):
    """Timeouts and headers for attachment downloads."""

    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    write_timeout: float = 5.0
    pool_timeout: float = 5.0
    follow_redirects: bool = True
    user_agent: str = "logpipe/0.1.0"


# =============================================================================
# Handler Configuration
# =============================================================================


class HandlerConfig(BaseModel):
    """Configuration for a source handler.

    The `config` field is validated at runtime based on the handler type,
    allowing external handlers to define their own config schemas. The
    position in the handler list is the probe priority.
    """

    handler: str  # "plain-text", "gzip", etc. - matches entry point name
    config: dict[str, Any] = {}  # Validated at runtime by handler's config_class


def _default_handlers() -> list[HandlerConfig]:
    return [HandlerConfig(handler="plain-text"), HandlerConfig(handler="gzip")]


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by LOGPIPE_CONFIG_FILE env var."""

    def get_field_value(
        self, field: Any, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("LOGPIPE_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from LOGPIPE_LOG_FILE env var."""
        return os.environ.get("LOGPIPE_LOG_FILE")


class Config(BaseSettings):
    pipe: PipeConfig = PipeConfig()
    http: HttpConfig = HttpConfig()
    logging: LoggingConfig = LoggingConfig()
    handlers: list[HandlerConfig] = Field(default_factory=_default_handlers)  # probe order

    model_config = SettingsConfigDict(
        env_prefix="LOGPIPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # Allows LOGPIPE_PIPE__CAPACITY override
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - LOGPIPE_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in process startup so every logger picks up
    the configuration. Log records go to stderr so that streamed
    attachment content on stdout stays clean.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(config.level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(config.level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
