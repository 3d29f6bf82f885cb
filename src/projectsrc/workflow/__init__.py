"""Packaging workflow: execution gate, format list and driver."""

from .driver import (
    SKIPPED_BY_CONFIGURATION,
    SKIPPED_NOT_EXECUTION_ROOT,
    PackagingDriver,
    package_project_sources,
)
from .formats import parse_formats, require_named_formats
from .gate import is_execution_root

__all__ = [
    "SKIPPED_BY_CONFIGURATION",
    "SKIPPED_NOT_EXECUTION_ROOT",
    "PackagingDriver",
    "is_execution_root",
    "package_project_sources",
    "parse_formats",
    "require_named_formats",
]
