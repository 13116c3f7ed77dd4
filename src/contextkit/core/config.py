"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .enums import BusBackend, LogFormat


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class BusConfig(BaseModel):
    backend: BusBackend = BusBackend.MEMORY
    redis_url: str = "redis://localhost:6379/0"
    stream_prefix: str = "contextkit:"
    consumer_group: str = "contextkit"
    max_stream_length: int = 10_000
    block_ms: int = 1000
    batch_size: int = 10
    max_handler_retries: int = 3


class PipelineConfig(BaseModel):
    max_publish_attempts: int = 2  # First try + one in-process retry
    retry_delay_ms: int = 50


class PaymentsConfig(BaseModel):
    auto_process: bool = True  # Charge as soon as the payment is created
    decline_above: Decimal | None = None  # Fake gateway declines larger charges


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.JSON


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    service_name: str = "contextkit"

    bus: BusConfig = Field(default_factory=BusConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    payments: PaymentsConfig = Field(default_factory=PaymentsConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "CONTEXTKIT_", "env_nested_delimiter": "__"}

    def validate_settings(self) -> None:
        """Reject combinations that cannot work at runtime."""
        from .errors import ConfigError

        if self.bus.backend == BusBackend.REDIS and not self.bus.redis_url:
            raise ConfigError("Redis bus backend requires bus.redis_url.")
        if self.pipeline.max_publish_attempts < 1:
            raise ConfigError(
                "pipeline.max_publish_attempts must be at least 1."
            )


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

    if overrides:
        data.update(overrides)

    return Settings(**data)
