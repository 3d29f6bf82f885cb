"""Execution-root gate."""

from __future__ import annotations

import os
from pathlib import Path

from projectsrc.core.logging import get_logger

LOGGER = get_logger(__name__)


def is_execution_root(current_dir: str | Path, root_dir: str | Path | None) -> bool:
    """Return True when ``current_dir`` is the directory the build was launched from.

    The comparison lowercases both sides and compares character by character,
    so "ß" never matches "ss". Neither path is resolved or normalized first.
    """
    current = os.fspath(current_dir)
    LOGGER.debug("gate.compare", root_dir=root_dir, current_dir=current)
    if root_dir is None:
        LOGGER.debug("gate.no_execution_root")
        return False
    result = os.fspath(root_dir).lower() == current.lower()
    LOGGER.debug("gate.decision", execution_root=result)
    return result
