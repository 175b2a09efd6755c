"""
Unit tests for settings.

Run: pytest tests/unit/test_config.py -v
"""
import pytest
from pydantic import ValidationError

from config import Settings


class TestSettings:
    """Test settings defaults, overrides and vault helpers."""

    @pytest.fixture
    def vault(self, tmp_path):
        (tmp_path / "a").mkdir()
        (tmp_path / "a" / "one.md").write_text("## 1\n", encoding="utf-8")
        (tmp_path / "two.md").write_text("## 2\n", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
        return tmp_path

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PARSE_WORKERS", raising=False)
        settings = Settings(_env_file=None)

        assert settings.parse_workers == 1
        assert settings.default_blank_mode == "glyph"
        assert settings.question_block_format == "admonition"
        assert settings.backup_on_rewrite is True

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("PARSE_WORKERS", "4")
        monkeypatch.setenv("default_blank_mode", "sequential")
        settings = Settings(_env_file=None)

        assert settings.parse_workers == 4
        assert settings.default_blank_mode == "sequential"

    def test_invalid_values_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, parse_workers=0)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_blank_mode="stars")

    def test_iter_documents(self, vault):
        settings = Settings(_env_file=None, vault_path=str(vault))
        names = [p.name for p in settings.iter_documents()]
        assert names == ["one.md", "two.md"]

    def test_missing_vault_has_no_documents(self, tmp_path):
        settings = Settings(_env_file=None, vault_path=str(tmp_path / "nope"))
        assert settings.iter_documents() == []

    def test_resolve_document_falls_back_to_vault(self, vault):
        settings = Settings(_env_file=None, vault_path=str(vault))

        assert settings.resolve_document("two.md") == vault / "two.md"
        absolute = vault / "a" / "one.md"
        assert settings.resolve_document(absolute) == absolute
