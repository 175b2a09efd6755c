"""
Configuration settings for quizvault.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Vault
    # ========================================
    vault_path: str = Field(
        default="vault",
        description="Directory holding question documents",
    )
    document_glob: str = Field(
        default="**/*.md",
        description="Glob selecting question documents inside the vault",
    )

    # ========================================
    # Parsing
    # ========================================
    parse_workers: int = Field(
        default=1,
        ge=1,
        description="Threads used to parse groups (1 parses serially)",
    )
    default_blank_mode: Literal["glyph", "id", "sequential"] = Field(
        default="glyph",
        description="Blank style for cloze display text",
    )
    blank_glyph: str = Field(
        default="_____",
        description="Glyph shown for blanks in glyph mode",
    )

    # ========================================
    # Document Rewrites
    # ========================================
    question_block_format: Literal["admonition", "legacy"] = Field(
        default="admonition",
        description="Delimiter syntax written by the convert command",
    )
    backup_on_rewrite: bool = Field(
        default=True,
        description="Write a .backup copy before rewriting a document",
    )

    def resolve_document(self, path: str | Path) -> Path:
        """Path as given if it exists, otherwise relative to the vault."""
        candidate = Path(path)
        if candidate.exists() or candidate.is_absolute():
            return candidate
        return Path(self.vault_path) / candidate

    def iter_documents(self) -> list[Path]:
        """Documents under the vault matching ``document_glob``, sorted."""
        vault = Path(self.vault_path)
        if not vault.is_dir():
            return []
        return sorted(p for p in vault.glob(self.document_glob) if p.is_file())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
