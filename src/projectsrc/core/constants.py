"""Shared constant values used across the project sources archiver."""

from __future__ import annotations

from typing import Final

PROJECT_DESCRIPTOR: Final[str] = "project"
CLASSIFIER: Final[str] = "project-sources"
DEFAULT_FORMATS: Final[str] = "tar.gz"
DEFAULT_TAR_LONG_FILE_MODE: Final[str] = "gnu"
TEMP_ROOT_NAME: Final[str] = "projectsrc-archive-tmp"
WORK_DIRECTORY_NAME: Final[str] = "projectsrc-work"
MANIFEST_NAME: Final[str] = "projectsrc-artifacts.json"
