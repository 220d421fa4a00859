"""Unit tests for settings."""

import pytest

from specwatch.config import Settings


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        """Defaults apply when nothing is set."""
        settings = Settings.from_env({})

        assert settings.snapshot_retention_days == 30
        assert settings.history_limit == 20
        assert settings.summary_examples == 2
        assert settings.log_level == "INFO"

    def test_environment_overrides(self):
        """SPECWATCH_* variables override defaults."""
        settings = Settings.from_env({
            "SPECWATCH_SNAPSHOT_RETENTION_DAYS": "7",
            "SPECWATCH_FETCH_TIMEOUT": "2.5",
            "SPECWATCH_LOG_LEVEL": "debug",
            "UNRELATED": "x",
        })

        assert settings.snapshot_retention_days == 7
        assert settings.fetch_timeout == 2.5
        assert settings.log_level == "debug"

    def test_blank_values_ignored(self):
        """Empty variables fall back to the default."""
        assert Settings.from_env({"SPECWATCH_HISTORY_LIMIT": "  "}).history_limit == 20

    @pytest.mark.parametrize("name,value", [
        ("SPECWATCH_HISTORY_LIMIT", "many"),
        ("SPECWATCH_SNAPSHOT_RETENTION_DAYS", "0"),
        ("SPECWATCH_FETCH_TIMEOUT", "-1"),
    ])
    def test_invalid_values(self, name, value):
        """Invalid values raise ValueError."""
        with pytest.raises(ValueError):
            Settings.from_env({name: value})
