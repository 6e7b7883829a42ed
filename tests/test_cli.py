"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from memdb import __version__
from memdb.cli import app

runner = CliRunner()


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    """Write a small record file."""
    path = tmp_path / "people.json"
    path.write_text(
        json.dumps(
            [
                {"id": "ada", "name": "Ada", "age": 36},
                {"id": "grace", "name": "Grace", "age": 45},
                {"name": "Alan", "age": 41},
            ]
        )
    )
    return path


class TestCLI:
    """Tests for memdb commands."""

    def test_version(self) -> None:
        """Test --version prints the version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_query_json(self, records_file: Path) -> None:
        """Test a predicate query with JSON output."""
        result = runner.invoke(
            app,
            [
                "query",
                str(records_file),
                "--where",
                '{"age": {"$gt": 40}}',
                "--fields",
                "name",
                "--json",
            ],
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"name": "Grace"}, {"name": "Alan"}]

    def test_query_table(self, records_file: Path) -> None:
        """Test the default table output."""
        result = runner.invoke(app, ["query", str(records_file), "-w", '{"id": "ada"}'])
        assert result.exit_code == 0
        assert "1 match" in result.stdout
        assert "Ada" in result.stdout

    def test_query_malformed(self, records_file: Path) -> None:
        """Test an unsupported operator exits with an error."""
        result = runner.invoke(
            app, ["query", str(records_file), "--where", '{"age": {"$near": 1}}']
        )
        assert result.exit_code == 1
        assert "Query failed" in result.stdout

    def test_query_bad_json(self, records_file: Path) -> None:
        """Test invalid query JSON exits with an error."""
        result = runner.invoke(app, ["query", str(records_file), "--where", "{nope"])
        assert result.exit_code == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file exits with an error."""
        result = runner.invoke(app, ["query", str(tmp_path / "absent.json")])
        assert result.exit_code == 1
        assert "File not found" in result.stdout

    def test_stats(self, records_file: Path) -> None:
        """Test field usage summary."""
        result = runner.invoke(app, ["stats", str(records_file)])
        assert result.exit_code == 0
        assert "3 record(s)" in result.stdout
        assert "age" in result.stdout
