"""Runtime configuration for the pipeline.

Defaults point at the production Mozilla services. Every value can be
overridden through ``NIGHTLY_BUGS_*`` environment variables (a ``.env``
file in the working directory is loaded first) or by the CLI.

Usage:
    config = PipelineConfig.from_env()
    config = PipelineConfig(data_dir="/tmp/nightly", batch_delay=0)
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from nightly_bugs.errors import ConfigError

# Bugzilla refuses (or truncates) id lists much longer than this.
MAX_BATCH_SIZE = 150

DEFAULT_BUG_PATTERN = r"\bbug\s*(\d+)"

ENV_PREFIX = "NIGHTLY_BUGS_"


class PipelineConfig(BaseModel):
    """Configuration for a pipeline run.

    Attributes:
        hg_pushes_url: json-pushes endpoint of the repository to scan
        bugzilla_url: Bugzilla REST endpoint for bug lookups
        data_dir: Where the raw push log is saved
        output_dir: Where the aggregated bug JSON is saved (defaults to <data_dir>/output)
        batch_size: Bug IDs per Bugzilla request
        batch_delay: Seconds to wait between two Bugzilla requests
        timeout: Per-request HTTP timeout in seconds
        bug_pattern: Case-insensitive regex with one group capturing the number
        bugzilla_api_key: Optional key, lets Bugzilla return restricted bugs
    """

    hg_pushes_url: str = "https://hg.mozilla.org/mozilla-central/json-pushes"
    bugzilla_url: str = "https://bugzilla.mozilla.org/rest/bug"
    data_dir: Path = Path("data")
    output_dir: Path | None = None
    batch_size: int = Field(MAX_BATCH_SIZE, ge=1, le=MAX_BATCH_SIZE)
    batch_delay: float = Field(2.0, ge=0.0)
    timeout: float = Field(30.0, gt=0.0)
    bug_pattern: str = DEFAULT_BUG_PATTERN
    bugzilla_api_key: str | None = None

    @field_validator("bug_pattern")
    @classmethod
    def check_bug_pattern(cls, value: str) -> str:
        """The pattern must compile and capture exactly one group."""
        try:
            compiled = re.compile(value, re.IGNORECASE)
        except re.error as exc:
            raise ValueError(f"invalid regular expression: {exc}") from exc
        if compiled.groups != 1:
            raise ValueError(
                f"pattern must have exactly one capturing group, got {compiled.groups}"
            )
        return value

    @model_validator(mode="after")
    def default_output_dir(self) -> PipelineConfig:
        if self.output_dir is None:
            self.output_dir = self.data_dir / "output"
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> PipelineConfig:
        """Build a config from the environment, then apply explicit overrides.

        Overrides whose value is None are ignored so CLI options that were
        not given don't mask the environment.

        Raises:
            ConfigError: If any resulting value fails validation
        """
        load_dotenv()

        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.environ.get(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw
        if "bugzilla_api_key" not in values and os.environ.get("BUGZILLA_API_KEY"):
            values["bugzilla_api_key"] = os.environ["BUGZILLA_API_KEY"]

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.build(values)

    @classmethod
    def build(cls, values: dict[str, Any]) -> PipelineConfig:
        """Validate ``values`` into a config, converting failures to ConfigError."""
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc

    def compiled_bug_pattern(self) -> re.Pattern[str]:
        return re.compile(self.bug_pattern, re.IGNORECASE)
