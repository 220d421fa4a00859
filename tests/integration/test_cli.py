"""Integration tests for the command-line interface."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from specwatch import __version__
from specwatch.cli import app


runner = CliRunner()
QUIET = {"SPECWATCH_LOG_LEVEL": "WARNING"}


@pytest.fixture
def write_spec(tmp_path):
    def write(name, doc):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(doc), encoding="utf-8")
        return str(path)

    return write


class TestDiffCommand:
    """Tests for `specwatch diff`."""

    def test_no_changes(self, write_spec, base_spec):
        """Identical specs exit 0."""
        old = write_spec("old.yaml", base_spec)
        new = write_spec("new.yaml", base_spec)

        result = runner.invoke(app, ["diff", old, new], env=QUIET)

        assert result.exit_code == 0
        assert "No significant change" in result.stdout

    def test_non_breaking_exit_zero(self, write_spec, base_spec, new_spec):
        """Additions exit 0."""
        new_spec["components"]["schemas"]["User"]["properties"]["nickname"] = {"type": "string"}
        result = runner.invoke(
            app,
            ["diff", write_spec("old.yaml", base_spec), write_spec("new.yaml", new_spec)],
            env=QUIET,
        )

        assert result.exit_code == 0
        assert "ADDITION" in result.stdout

    def test_breaking_exit_one(self, write_spec, base_spec, new_spec):
        """Breaking changes exit 1."""
        del new_spec["paths"]["/users"]
        result = runner.invoke(
            app,
            ["diff", write_spec("old.yaml", base_spec), write_spec("new.yaml", new_spec)],
            env=QUIET,
        )

        assert result.exit_code == 1
        assert "BREAKING" in result.stdout

    def test_json_output(self, write_spec, base_spec, new_spec):
        """--json prints the change set."""
        new_spec["info"]["version"] = "1.0.1"
        result = runner.invoke(
            app,
            [
                "diff",
                write_spec("old.yaml", base_spec),
                write_spec("new.yaml", new_spec),
                "--json",
                "--name",
                "Forecasts",
                "--api-id",
                "weather",
            ],
            env=QUIET,
        )

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["api_id"] == "weather"
        assert payload["from_version"] == "1.0.0"
        assert payload["to_version"] == "1.0.1"
        assert payload["change_type"] == "non-breaking"
        assert payload["changes"][0]["path"] == "info.version"
        assert payload["summary"].startswith("Forecasts v1.0.0 → v1.0.1")

    def test_invalid_spec_exit_two(self, write_spec, base_spec):
        """Documents that aren't OpenAPI 3.x exit 2."""
        result = runner.invoke(
            app,
            [
                "diff",
                write_spec("old.yaml", base_spec),
                write_spec("new.yaml", {"swagger": "2.0", "info": {}}),
            ],
            env=QUIET,
        )
        assert result.exit_code == 2

    def test_missing_file_exit_two(self, write_spec, base_spec, tmp_path):
        """Unreadable files exit 2."""
        result = runner.invoke(
            app,
            ["diff", write_spec("old.yaml", base_spec), str(tmp_path / "missing.yaml")],
            env=QUIET,
        )
        assert result.exit_code == 2

    def test_undecodable_file_exit_two(self, write_spec, base_spec, tmp_path):
        """Files that aren't valid UTF-8 exit 2."""
        broken = tmp_path / "broken.yaml"
        broken.write_bytes(b"openapi: \"3.0.0\"\ninfo:\n  title: \xff\xfe\xfa\n")
        result = runner.invoke(
            app, ["diff", write_spec("old.yaml", base_spec), str(broken)], env=QUIET
        )
        assert result.exit_code == 2

    def test_invalid_configuration_exit_two(self, write_spec, base_spec):
        """Bad SPECWATCH_* values exit 2."""
        path = write_spec("old.yaml", base_spec)
        result = runner.invoke(app, ["diff", path, path], env={"SPECWATCH_HISTORY_LIMIT": "lots"})
        assert result.exit_code == 2


class TestVersionCommand:
    """Tests for `specwatch version`."""

    def test_version(self):
        """Prints the package version."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout
