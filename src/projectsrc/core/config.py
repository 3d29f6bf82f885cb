"""Application configuration primitives."""

from __future__ import annotations

import codecs
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_FORMATS, DEFAULT_TAR_LONG_FILE_MODE, TEMP_ROOT_NAME, WORK_DIRECTORY_NAME

PYPROJECT_PATH = Path("pyproject.toml")
SETTINGS_PATH = Path("projectsrc.toml")


class Settings(BaseSettings):
    """Central configuration for the project sources archiver."""

    skip: bool = False
    formats: str | None = DEFAULT_FORMATS
    assembly_root_folder: str | None = None

    encoding: str | None = None
    tar_long_file_mode: Literal["gnu", "posix", "warn", "fail", "truncate", "omit"] = DEFAULT_TAR_LONG_FILE_MODE
    dry_run: bool = False
    update_only: bool = False
    ignore_permissions: bool = False
    ignore_dir_format_extensions: bool = False
    ignore_missing_descriptor: bool = False

    descriptor_dir: Path | None = None
    temp_root_name: str = TEMP_ROOT_NAME
    work_directory_name: str = WORK_DIRECTORY_NAME

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    model_config = SettingsConfigDict(env_prefix="PROJECTSRC_", env_file=(), extra="ignore")

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str | None) -> str | None:
        if not value:
            return None
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"Unknown encoding: {value}") from exc
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    overrides = _load_settings_overrides()
    return Settings(**overrides)


def load_settings(base_dir: Path, **explicit: Any) -> Settings:
    """Build settings for a specific project directory.

    File overrides found under ``base_dir`` are applied first; ``explicit``
    values (typically command-line flags) win over both files and environment.
    """
    overrides = _load_settings_overrides(base_dir / PYPROJECT_PATH, base_dir / SETTINGS_PATH)
    overrides.update({key: value for key, value in explicit.items() if value is not None})
    return Settings(**overrides)


def _load_settings_overrides(
    pyproject_path: Path = PYPROJECT_PATH,
    settings_path: Path = SETTINGS_PATH,
) -> dict[str, Any]:
    """Load configuration overrides from ``pyproject.toml`` and ``projectsrc.toml``."""
    overrides: dict[str, Any] = {}
    if pyproject_path.exists():
        section = _extract_section(_read_toml(pyproject_path), "tool", "projectsrc")
        if section:
            overrides.update(_normalize_keys(section))
    if settings_path.exists():
        data = _read_toml(settings_path)
        section = _extract_section(data, "projectsrc") or data
        overrides.update(_normalize_keys(section))
    return {
        key: value
        for key, value in overrides.items()
        if key in Settings.model_fields and value is not None
    }


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _extract_section(data: dict[str, Any], *keys: str) -> dict[str, Any] | None:
    node: Any = data
    for key in keys:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node if isinstance(node, dict) else None


def _normalize_keys(section: dict[str, Any]) -> dict[str, Any]:
    return {str(key).replace("-", "_"): value for key, value in section.items()}
