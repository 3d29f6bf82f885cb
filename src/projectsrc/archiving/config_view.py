"""Archiver configuration views."""

from __future__ import annotations

from dataclasses import replace

from projectsrc.core.config import Settings
from projectsrc.core.models import ArchiverConfig, BuildSession, BuildUnit


def build_archiver_config(settings: Settings, unit: BuildUnit, session: BuildSession) -> ArchiverConfig:
    """Derive the ambient archiver configuration for ``unit``."""
    build_directory = unit.build_directory
    return ArchiverConfig(
        base_dir=unit.base_dir,
        output_dir=build_directory,
        temp_root=build_directory / settings.temp_root_name,
        work_dir=build_directory / settings.work_directory_name,
        final_name=unit.final_name,
        project=unit,
        reactor_units=session.units,
        descriptor_source_dir=settings.descriptor_dir,
        encoding=settings.encoding,
        tar_long_file_mode=settings.tar_long_file_mode,
        dry_run=settings.dry_run,
        update_only=settings.update_only,
        ignore_permissions=settings.ignore_permissions,
        ignore_dir_format_extensions=settings.ignore_dir_format_extensions,
        ignore_missing_descriptor=settings.ignore_missing_descriptor,
    )


def root_folder_differs(override_name: str | None, final_name: str) -> bool:
    return bool(override_name) and override_name != final_name


def for_format(ambient: ArchiverConfig, override_name: str | None = None) -> ArchiverConfig:
    """Return the configuration to archive one format with.

    When ``override_name`` names a different root folder, a copy of ``ambient``
    carrying it as ``final_name`` is returned; ``ambient`` itself is never
    modified and is returned as-is otherwise.
    """
    if not root_folder_differs(override_name, ambient.final_name):
        return ambient
    return replace(ambient, final_name=override_name)
