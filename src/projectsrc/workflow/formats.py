"""Parsing of the comma-separated output format list."""

from __future__ import annotations

from typing import Sequence

from projectsrc.core.exceptions import ConfigurationError


def parse_formats(raw: str | None) -> tuple[str, ...]:
    """Split ``raw`` on commas and strip each token.

    Order, duplicates and empty tokens are preserved; ``""`` yields ``("",)``.
    """
    if raw is None:
        raise ConfigurationError("No archive formats configured")
    return tuple(token.strip() for token in raw.split(","))


def require_named_formats(formats: Sequence[str]) -> tuple[str, ...]:
    """Reject format lists containing empty tokens."""
    if not formats:
        raise ConfigurationError("No archive formats configured")
    for position, token in enumerate(formats, start=1):
        if not token:
            raise ConfigurationError(
                f"Archive format #{position} is empty in {','.join(formats)!r}"
            )
    return tuple(formats)
