"""Build-output attachment."""

from .registry import ArtifactRegistry

__all__ = ["ArtifactRegistry"]
