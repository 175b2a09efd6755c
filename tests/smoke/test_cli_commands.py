"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(command: str, timeout: int = 30, env: dict | None = None) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        command: The command to run (after 'python -m quizvault.cli.main')
        timeout: Maximum time to wait
        env: Extra environment variables (e.g. settings overrides)

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    full_command = f"{sys.executable} -m quizvault.cli.main {command}"

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
        env={**os.environ, **(env or {})},
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "quizvault" in stdout.lower()
        assert "Commands" in stdout

    @pytest.mark.parametrize("command", ["parse", "check", "blanks", "convert", "add-ids", "vault"])
    def test_command_help(self, command):
        """Each command's help should work."""
        code, stdout, stderr = run_cli_command(f"{command} --help")

        assert code == 0, f"{command} help failed: {stderr}"


class TestCLIParse:
    """Test parse command."""

    def test_parse_runs(self, document_file, legacy_document):
        """Parse should summarise the document."""
        path = document_file(legacy_document)
        code, stdout, stderr = run_cli_command(f'parse "{path}"')

        assert code == 0, f"Parse failed: {stderr}"
        assert "question(s)" in stdout

    def test_parse_json(self, document_file, legacy_document):
        """--json output should be valid JSON of the parsed graph."""
        path = document_file(legacy_document)
        code, stdout, stderr = run_cli_command(f'parse "{path}" --json --workers 2')

        assert code == 0, f"Parse --json failed: {stderr}"
        data = json.loads(stdout)
        assert [g["title"] for g in data["groups"]] == ["1", "2"]
        assert data["groups"][1]["questions"][0]["blanks"] == ["x", "y", "z"]

    def test_missing_document(self, tmp_path):
        """A missing file should exit with code 1."""
        code, stdout, stderr = run_cli_command(f'parse "{tmp_path / "missing.md"}"')

        assert code == 1
        assert "not found" in stdout.lower()


class TestCLICheck:
    """Test check command."""

    def test_clean_document(self, document_file, legacy_document):
        path = document_file(legacy_document)
        code, stdout, stderr = run_cli_command(f'check "{path}"')

        assert code == 0, f"Check failed: {stderr}"
        assert "no problems found" in stdout

    def test_document_with_errors(self, document_file, admonition_document):
        """A block without TYPE: is an error, so check exits 1."""
        path = document_file(admonition_document)
        code, stdout, stderr = run_cli_command(f'check "{path}"')

        assert code == 1
        assert "1 error(s)" in stdout


class TestCLIBlanks:
    """Test blanks command."""

    def test_sequential_blanks(self, document_file, legacy_document):
        path = document_file(legacy_document)
        code, stdout, stderr = run_cli_command(f'blanks "{path}" --mode sequential')

        assert code == 0, f"Blanks failed: {stderr}"
        assert "__CLOZE_1__ __CLOZE_2__ __CLOZE_3__" in stdout

    def test_glyph_blanks(self, document_file, legacy_document):
        path = document_file(legacy_document)
        code, stdout, stderr = run_cli_command(f'blanks "{path}"')

        assert code == 0, f"Blanks failed: {stderr}"
        assert "The capital of France is _____." in stdout


class TestCLIRewrites:
    """Test convert and add-ids commands."""

    def test_convert_dry_run_leaves_file(self, document_file, legacy_document):
        path = document_file(legacy_document)
        code, stdout, stderr = run_cli_command(f'convert "{path}" --target admonition --dry-run')

        assert code == 0, f"Convert failed: {stderr}"
        assert "Would convert 4 block(s)" in stdout
        assert path.read_text(encoding="utf-8") == legacy_document

    def test_convert_writes_file_and_backup(self, document_file, legacy_document):
        path = document_file(legacy_document)
        code, stdout, stderr = run_cli_command(f'convert "{path}" --target admonition')

        assert code == 0, f"Convert failed: {stderr}"
        assert "````ad-question" in path.read_text(encoding="utf-8")
        backup = path.with_name(path.name + ".backup")
        assert backup.read_text(encoding="utf-8") == legacy_document

    def test_convert_rejects_bad_target(self, document_file, legacy_document):
        path = document_file(legacy_document)
        code, stdout, stderr = run_cli_command(f'convert "{path}" --target mixed')

        assert code == 2

    def test_add_ids(self, document_file, legacy_document):
        path = document_file(legacy_document)
        code, stdout, stderr = run_cli_command(f'add-ids "{path}"')

        assert code == 0, f"Add-ids failed: {stderr}"
        assert "Added 4 id(s)" in stdout
        assert "ID: q1_1_cloze_" in path.read_text(encoding="utf-8")


class TestCLIVault:
    """Test vault command."""

    def test_vault_summary(self, tmp_path, legacy_document, admonition_document):
        (tmp_path / "unit-1").mkdir()
        (tmp_path / "unit-1" / "geography.md").write_text(legacy_document, encoding="utf-8")
        (tmp_path / "lesson.md").write_text(admonition_document, encoding="utf-8")

        code, stdout, stderr = run_cli_command("vault", env={"VAULT_PATH": str(tmp_path)})

        assert code == 0, f"Vault failed: {stderr}"
        assert "2 document(s)" in stdout
        assert "1 error(s)" in stdout

    def test_empty_vault(self, tmp_path):
        code, stdout, stderr = run_cli_command("vault", env={"VAULT_PATH": str(tmp_path)})

        assert code == 0, f"Vault failed: {stderr}"
        assert "No documents" in stdout
