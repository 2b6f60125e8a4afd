"""Configuration settings and loading."""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from synthqa.errors import ConfigValidationError

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class RunOptions(BaseModel):
    """Options consumed by ``Runner.run`` and the gatherer.

    Attributes:
        params: Passed to every journey callback and surfaced in events.
        metrics: Capture a performance metrics snapshot after every step.
        screenshots: Capture a JPEG screenshot after every step.
        pause_on_error: Wait for a resume signal after a failing step.
        journey_name: Only run the journey with this exact name.
        dry_run: Emit ``journey:register`` for every journey, run nothing.
        reporter: Reporter class, or the name of a built-in reporter.
        outfd: Stream the reporter writes to (stdout when None).
        headless: Launch the browser without a window.
        sandbox: Keep the Chromium sandbox enabled.
        ws_endpoint: Connect to a running browser instead of launching one.
        network: Record request timing for every journey.
        filmstrips: Record a trace and extract film strips.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    params: dict[str, Any] = Field(default_factory=dict)
    metrics: bool = False
    screenshots: bool = False
    pause_on_error: bool = False
    journey_name: str | None = None
    dry_run: bool = False
    reporter: Any = "default"
    outfd: Any = None
    headless: bool = True
    sandbox: bool = False
    ws_endpoint: str | None = None
    network: bool = False
    filmstrips: bool = False


class SynthConfig(BaseSettings):
    """Configuration for SynthQA, read from synthqa.yaml and SYNTHQA_* env vars."""

    model_config = SettingsConfigDict(
        env_prefix="SYNTHQA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    params: dict[str, Any] = Field(default_factory=dict)
    metrics: bool = False
    screenshots: bool = False
    pause_on_error: bool = False
    journey_name: str | None = None
    dry_run: bool = False
    reporter: str = "default"
    headless: bool = True
    sandbox: bool = False
    ws_endpoint: str | None = None
    network: bool = False
    filmstrips: bool = False
    log_level: str = "WARNING"
    json_logs: bool = False

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Valid: {sorted(LOG_LEVELS)}")
        return level

    def to_run_options(self, outfd: IO[str] | None = None, **overrides: Any) -> RunOptions:
        """Build the RunOptions the runner consumes."""
        data = self.model_dump(exclude={"log_level", "json_logs"})
        data["outfd"] = outfd
        data.update(overrides)
        return RunOptions(**data)


def load_config(config_path: str | Path | None = None, **overrides: Any) -> SynthConfig:
    """Load configuration from file and environment.

    Priority: explicit overrides > config file > env vars > defaults

    Raises:
        ConfigValidationError: If the file or the merged values are invalid.
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if config_path.exists():
            try:
                with open(config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigValidationError(
                    message=f"Cannot parse {config_path}: {e}",
                    field="file",
                    value=str(config_path),
                    cause=e,
                ) from e
            if not isinstance(config_data, dict):
                raise ConfigValidationError(
                    message=f"{config_path} must contain a mapping at the top level",
                    field="file",
                    value=str(config_path),
                )

    config_data.update(overrides)

    try:
        return SynthConfig(**config_data)
    except ValidationError as e:
        raise ConfigValidationError(
            message=f"Invalid configuration: {e.error_count()} error(s)",
            value=config_data,
            cause=e,
        ) from e
