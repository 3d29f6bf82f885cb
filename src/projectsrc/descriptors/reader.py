"""Reader that turns built-in and file-based descriptors into assembly templates."""

from __future__ import annotations

import json
import re
import tomllib
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

from jsonschema import Draft7Validator

from projectsrc.core.exceptions import ConfigurationError, DescriptorReadError
from projectsrc.core.logging import get_logger
from projectsrc.core.models import ArchiverConfig, AssemblyTemplate, FileSet

from .builtin import BUILTIN_DESCRIPTORS
from .schema import DESCRIPTOR_SCHEMA

LOGGER = get_logger(__name__)

DESCRIPTOR_SUFFIXES = (".json", ".toml")
_EXPRESSION = re.compile(r"\$\{([^}]+)\}")


class DescriptorReader:
    """Read assembly templates for a configuration view.

    Sources are consulted in a fixed order: explicit descriptor files, then
    built-in descriptor references, then every descriptor file found in the
    descriptor source directory.
    """

    def __init__(self, builtins: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._builtins = dict(BUILTIN_DESCRIPTORS if builtins is None else builtins)
        self._validator = Draft7Validator(DESCRIPTOR_SCHEMA)

    def read_templates(self, config: ArchiverConfig) -> list[AssemblyTemplate]:
        if not (config.descriptors or config.descriptor_references or config.descriptor_source_dir):
            raise ConfigurationError("No assembly descriptors configured")
        values = interpolation_values(config)
        templates: list[AssemblyTemplate] = []

        for path in config.descriptors:
            templates.append(self._read_file(path, values))

        for reference in config.descriptor_references:
            raw = self._builtins.get(reference)
            if raw is None:
                if config.ignore_missing_descriptor:
                    LOGGER.warning("descriptors.reference_missing", reference=reference)
                    continue
                raise DescriptorReadError(f"Descriptor with reference {reference!r} not found")
            templates.append(self._build(deepcopy(dict(raw)), values, source=f"builtin:{reference}"))

        source_dir = config.descriptor_source_dir
        if source_dir is not None:
            if source_dir.is_dir():
                for path in sorted(source_dir.iterdir()):
                    if path.is_file() and path.suffix in DESCRIPTOR_SUFFIXES:
                        templates.append(self._read_file(path, values))
            elif config.ignore_missing_descriptor:
                LOGGER.warning("descriptors.source_dir_missing", directory=str(source_dir))
            else:
                raise DescriptorReadError(f"Descriptor source directory not found: {source_dir}")

        LOGGER.debug("descriptors.read", template_count=len(templates))
        return templates

    def _read_file(self, path: Path, values: Mapping[str, str]) -> AssemblyTemplate:
        try:
            text = path.read_text(encoding="utf-8")
            data = tomllib.loads(text) if path.suffix == ".toml" else json.loads(text)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
            raise DescriptorReadError(f"Cannot read descriptor {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise DescriptorReadError(f"Descriptor {path} must contain an object")
        return self._build(data, values, source=str(path))

    def _build(self, raw: dict[str, Any], values: Mapping[str, str], *, source: str) -> AssemblyTemplate:
        errors = sorted(
            self._validator.iter_errors(raw),
            key=lambda error: [str(part) for part in error.absolute_path],
        )
        if errors:
            details = "; ".join(_describe_error(error) for error in errors)
            raise DescriptorReadError(f"Descriptor {source} is invalid: {details}")
        data = _interpolate(raw, values)
        return AssemblyTemplate(
            id=data["id"],
            formats=list(data.get("formats") or []),
            include_base_directory=data.get("include_base_directory", True),
            base_directory=data.get("base_directory"),
            file_sets=[_file_set(item) for item in data["file_sets"]],
        )


def interpolation_values(config: ArchiverConfig) -> dict[str, str]:
    """Expression values available to descriptors."""
    base_dir = config.base_dir.as_posix()
    try:
        build_directory = config.output_dir.relative_to(config.base_dir).as_posix()
    except ValueError:
        build_directory = config.output_dir.as_posix()
    if build_directory in {"", "."}:
        build_directory = config.output_dir.as_posix()
    project_name = config.project.name if config.project is not None else config.base_dir.name
    return {
        "basedir": base_dir,
        "project.basedir": base_dir,
        "project.build.directory": build_directory,
        "project.build.finalName": config.final_name,
        "project.name": project_name,
    }


def _interpolate(value: Any, values: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return _EXPRESSION.sub(lambda match: values.get(match.group(1), match.group(0)), value)
    if isinstance(value, list):
        return [_interpolate(item, values) for item in value]
    if isinstance(value, dict):
        return {key: _interpolate(item, values) for key, item in value.items()}
    return value


def _file_set(item: Mapping[str, Any]) -> FileSet:
    return FileSet(
        directory=item["directory"],
        output_directory=item.get("output_directory", ""),
        includes=tuple(item.get("includes") or ()),
        excludes=tuple(item.get("excludes") or ()),
        use_default_excludes=item.get("use_default_excludes", True),
        file_mode=_parse_mode(item.get("file_mode")),
        directory_mode=_parse_mode(item.get("directory_mode")),
    )


def _parse_mode(value: str | None) -> int | None:
    if value is None:
        return None
    return int(value, 8)


def _describe_error(error: Any) -> str:
    location = "/".join(str(part) for part in error.absolute_path) or "<root>"
    return f"{location}: {error.message}"
