"""Shared data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .constants import DEFAULT_TAR_LONG_FILE_MODE, PROJECT_DESCRIPTOR


@dataclass(slots=True, frozen=True)
class AttachedArtifact:
    unit: str
    type: str
    classifier: str
    path: Path


@dataclass(slots=True)
class BuildUnit:
    name: str
    base_dir: Path
    build_directory: Path
    final_name: str
    attached_artifacts: list[AttachedArtifact] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class BuildSession:
    execution_root_dir: str | None
    units: tuple[BuildUnit, ...] = ()


@dataclass(slots=True)
class FileSet:
    directory: str
    output_directory: str = ""
    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()
    use_default_excludes: bool = True
    file_mode: int | None = None
    directory_mode: int | None = None


@dataclass(slots=True)
class AssemblyTemplate:
    """Declarative description of which files belong in an archive."""

    id: str
    formats: list[str] = field(default_factory=list)
    include_base_directory: bool = True
    base_directory: str | None = None
    file_sets: list[FileSet] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class AssemblyJob:
    """Fully resolved unit of work: one template, one identity, N formats."""

    identity: str
    formats: tuple[str, ...]
    template: AssemblyTemplate


@dataclass(slots=True, frozen=True)
class ArchiverConfig:
    """Read-only configuration handed to the archive producer.

    ``work_dir``, ``reactor_units``, ``site_included`` and ``site_dir`` are not
    read by the built-in archiver; they are carried for replacement archivers.
    """

    base_dir: Path
    output_dir: Path
    temp_root: Path
    work_dir: Path
    final_name: str
    project: BuildUnit | None = None
    reactor_units: tuple[BuildUnit, ...] = ()
    descriptor_references: tuple[str, ...] = (PROJECT_DESCRIPTOR,)
    descriptors: tuple[Path, ...] = ()
    descriptor_source_dir: Path | None = None
    encoding: str | None = None
    tar_long_file_mode: str = DEFAULT_TAR_LONG_FILE_MODE
    classifier: str | None = None
    assembly_id_appended: bool = True
    site_included: bool = False
    site_dir: Path | None = None
    dry_run: bool = False
    update_only: bool = False
    ignore_permissions: bool = False
    ignore_dir_format_extensions: bool = False
    ignore_missing_descriptor: bool = False


@dataclass(slots=True, frozen=True)
class PackagingOutcome:
    status: Literal["completed", "skipped"]
    reason: str | None = None
    artifacts: tuple[AttachedArtifact, ...] = ()

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"
