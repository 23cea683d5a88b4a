"""Unified configuration via pydantic-settings."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitKitConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GITKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # git invocation
    git_binary: str = "git"
    command_timeout_seconds: float = 30.0

    # Branch sorting puts this one first
    primary_branch: str = "master"

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None
    log_max_bytes: int = 10_485_760
    log_backup_count: int = 5

    @field_validator("git_binary", "primary_branch")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("command_timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("command_timeout_seconds must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("log_dir", mode="before")
    @classmethod
    def expand_log_dir(cls, v: Path | str | None) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser()
