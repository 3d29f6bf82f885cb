"""Custom exception hierarchy for the project sources archiver."""

from __future__ import annotations


class ProjectSourcesError(Exception):
    """Base error for the project sources archiver."""


class ConfigurationError(ProjectSourcesError):
    """Raised when a required configuration value is missing or malformed."""


class DescriptorReadError(ProjectSourcesError):
    """Raised when an assembly descriptor cannot be read."""


class MissingDescriptorError(ProjectSourcesError):
    """Raised when the descriptor reader returns no templates."""


class ArchiveCreationError(ProjectSourcesError):
    """Raised when an archive cannot be written."""


class AssemblyFormattingError(ArchiveCreationError):
    """Raised when an archive entry name cannot be formatted."""


class InvalidJobError(ProjectSourcesError):
    """Raised when a resolved assembly job is structurally invalid."""


class ArtifactAttachmentError(ProjectSourcesError):
    """Raised when a produced archive cannot be attached to the build unit."""


class BuildStepError(ProjectSourcesError):
    """Failure surfaced to the invoking build."""

    def __init__(self, message: str, *, fmt: str | None = None) -> None:
        super().__init__(message)
        self.fmt = fmt


class BuildExecutionError(BuildStepError):
    """Raised when the packaging step fails while reading or writing."""


class BuildConfigurationFailure(BuildStepError):
    """Raised when the packaging step is misconfigured and must be fixed before retrying."""
