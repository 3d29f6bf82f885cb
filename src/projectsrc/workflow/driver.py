"""Orchestration of the project sources archive for one build unit."""

from __future__ import annotations

from projectsrc.archiving.archiver import AssemblyArchiver, distribution_name
from projectsrc.archiving.config_view import build_archiver_config, for_format, root_folder_differs
from projectsrc.artifacts.registry import ArtifactRegistry
from projectsrc.core.config import Settings, get_settings
from projectsrc.core.constants import PROJECT_DESCRIPTOR
from projectsrc.core.exceptions import (
    ArchiveCreationError,
    ArtifactAttachmentError,
    BuildConfigurationFailure,
    BuildExecutionError,
    ConfigurationError,
    DescriptorReadError,
    InvalidJobError,
    MissingDescriptorError,
)
from projectsrc.core.logging import get_logger
from projectsrc.core.models import (
    ArchiverConfig,
    AssemblyJob,
    AttachedArtifact,
    BuildSession,
    BuildUnit,
    PackagingOutcome,
)
from projectsrc.descriptors.resolver import DescriptorResolver

from .formats import parse_formats, require_named_formats
from .gate import is_execution_root

LOGGER = get_logger(__name__)

SKIPPED_BY_CONFIGURATION = "Project sources archive skipped per configuration of the skip parameter."
SKIPPED_NOT_EXECUTION_ROOT = "Skipping the project sources archive in this unit because it is not the execution root."


class PackagingDriver:
    """Gate, resolve, then produce and attach one archive per requested format.

    The first failure aborts the run. Archives already written for earlier
    formats stay on disk and stay attached.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        resolver: DescriptorResolver | None = None,
        archiver: AssemblyArchiver | None = None,
        attacher: ArtifactRegistry | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._resolver = resolver or DescriptorResolver()
        self._archiver = archiver or AssemblyArchiver()
        self._attacher = attacher or ArtifactRegistry()

    def execute(self, unit: BuildUnit, session: BuildSession) -> PackagingOutcome:
        if self._settings.skip:
            LOGGER.info("packaging.skipped", unit=unit.name, reason="configuration")
            return PackagingOutcome(status="skipped", reason=SKIPPED_BY_CONFIGURATION)
        if not is_execution_root(unit.base_dir, session.execution_root_dir):
            LOGGER.info("packaging.skipped", unit=unit.name, reason="not_execution_root")
            return PackagingOutcome(status="skipped", reason=SKIPPED_NOT_EXECUTION_ROOT)

        try:
            formats = require_named_formats(parse_formats(self._settings.formats))
        except ConfigurationError as exc:
            raise BuildConfigurationFailure(f"Invalid archive format configuration: {exc}") from exc

        config = build_archiver_config(self._settings, unit, session)
        job = self._resolve(formats, config)
        artifacts = self._produce(unit, job, config)
        LOGGER.info("packaging.completed", unit=unit.name, artifact_count=len(artifacts))
        return PackagingOutcome(status="completed", artifacts=artifacts)

    def _resolve(self, formats: tuple[str, ...], config: ArchiverConfig) -> AssemblyJob:
        try:
            return self._resolver.resolve(PROJECT_DESCRIPTOR, formats, config)
        except (DescriptorReadError, MissingDescriptorError) as exc:
            raise BuildExecutionError(str(exc)) from exc
        except ConfigurationError as exc:
            raise BuildConfigurationFailure(str(exc)) from exc

    def _produce(self, unit: BuildUnit, job: AssemblyJob, config: ArchiverConfig) -> tuple[AttachedArtifact, ...]:
        full_name = distribution_name(job, config)
        override = self._settings.assembly_root_folder
        if not root_folder_differs(override, config.final_name):
            override = None
        try:
            config.temp_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BuildExecutionError(f"Cannot create temporary directory {config.temp_root}: {exc}") from exc

        attached: list[AttachedArtifact] = []
        for fmt in job.formats:
            view = for_format(config, override)
            try:
                destination = self._archiver.create_archive(job, full_name, fmt, view, True)
            except InvalidJobError as exc:
                raise BuildConfigurationFailure(
                    f"Assembly is incorrectly configured: {job.identity}: {exc}", fmt=fmt
                ) from exc
            except ArchiveCreationError as exc:
                raise BuildExecutionError(f"Failed to create assembly in format {fmt!r}: {exc}", fmt=fmt) from exc
            try:
                attached.append(self._attacher.attach(unit, fmt, job.identity, destination))
            except ArtifactAttachmentError as exc:
                raise BuildExecutionError(f"Failed to attach {fmt!r} archive {destination}: {exc}", fmt=fmt) from exc
        return tuple(attached)


def package_project_sources(
    unit: BuildUnit,
    session: BuildSession,
    settings: Settings | None = None,
) -> PackagingOutcome:
    """Run the default packaging driver for ``unit``."""
    return PackagingDriver(settings).execute(unit, session)
