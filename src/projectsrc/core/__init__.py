"""Shared core utilities for the project sources archiver."""

from .config import Settings, get_settings, load_settings
from .exceptions import (
    ArchiveCreationError,
    ArtifactAttachmentError,
    AssemblyFormattingError,
    BuildConfigurationFailure,
    BuildExecutionError,
    BuildStepError,
    ConfigurationError,
    DescriptorReadError,
    InvalidJobError,
    MissingDescriptorError,
    ProjectSourcesError,
)
from .logging import configure_logging
from .models import (
    ArchiverConfig,
    AssemblyJob,
    AssemblyTemplate,
    AttachedArtifact,
    BuildSession,
    BuildUnit,
    FileSet,
    PackagingOutcome,
)

__all__ = [
    "Settings",
    "ArchiverConfig",
    "AssemblyJob",
    "AssemblyTemplate",
    "AttachedArtifact",
    "BuildSession",
    "BuildUnit",
    "FileSet",
    "PackagingOutcome",
    "ProjectSourcesError",
    "ConfigurationError",
    "DescriptorReadError",
    "MissingDescriptorError",
    "ArchiveCreationError",
    "AssemblyFormattingError",
    "InvalidJobError",
    "ArtifactAttachmentError",
    "BuildStepError",
    "BuildExecutionError",
    "BuildConfigurationFailure",
    "get_settings",
    "load_settings",
    "configure_logging",
]
