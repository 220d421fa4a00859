"""Runtime settings for SpecWatch.

Values come from ``SPECWATCH_*`` environment variables, falling back to the
defaults below.
"""

import os

from pydantic import BaseModel, Field


ENV_PREFIX = "SPECWATCH_"


class Settings(BaseModel):
    """Tunable knobs for the ledger, summaries and the spec loader."""

    snapshot_retention_days: int = Field(default=30, ge=1)
    history_limit: int = Field(default=20, ge=1)
    snapshot_limit: int = Field(default=10, ge=1)
    summary_examples: int = Field(default=2, ge=1)
    fetch_timeout: float = Field(default=30.0, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from the environment.

        Raises:
            ValueError: If a variable is set to an invalid value.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for field_name in cls.model_fields:
            raw = env.get(ENV_PREFIX + field_name.upper())
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        return cls(**values)


def get_settings() -> Settings:
    """Get settings for the current process environment."""
    return Settings.from_env()
