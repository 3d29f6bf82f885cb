#!/usr/bin/env python
"""Archive the full source tree of the execution-root project and attach the results."""

from __future__ import annotations

import argparse
import tomllib
from pathlib import Path
from typing import Sequence

from projectsrc.artifacts import ArtifactRegistry
from projectsrc.core import BuildSession, BuildStepError, BuildUnit, configure_logging, load_settings
from projectsrc.core.constants import MANIFEST_NAME
from projectsrc.workflow import PackagingDriver


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory of the root build unit (defaults to the current directory).",
    )
    parser.add_argument(
        "--execution-root",
        help="Directory the build was launched from (defaults to --base-dir).",
    )
    parser.add_argument(
        "--module",
        type=Path,
        action="append",
        default=[],
        help="Sub-module directory; repeat for each module of the build.",
    )
    parser.add_argument(
        "--build-dir",
        type=Path,
        default=Path("build"),
        help="Build output directory, relative to each unit's directory.",
    )
    parser.add_argument("--final-name", help="Final name of the root unit's outputs.")
    parser.add_argument("--formats", help="Comma-separated archive formats, e.g. 'tar.gz,zip'.")
    parser.add_argument("--root-folder", help="Top-level folder name inside the archives.")
    parser.add_argument(
        "--skip",
        action="store_true",
        default=None,
        help="Do not produce the project sources archive.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Log archive contents without writing any archive.",
    )
    parser.add_argument(
        "--manifest",
        type=Path,
        help=f"Where to write the attached-artifact manifest (defaults to <build-dir>/{MANIFEST_NAME}).",
    )
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-format", choices=["json", "console"])
    return parser.parse_args(argv)


def _default_final_name(base_dir: Path) -> str:
    pyproject = base_dir / "pyproject.toml"
    if pyproject.exists():
        project = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project") or {}
        name = project.get("name")
        version = project.get("version")
        if name and version:
            return f"{name}-{version}"
        if name:
            return name
    return base_dir.name


def _build_unit(base_dir: Path, build_dir: Path, final_name: str | None = None) -> BuildUnit:
    build_directory = build_dir if build_dir.is_absolute() else base_dir / build_dir
    return BuildUnit(
        name=base_dir.name,
        base_dir=base_dir,
        build_directory=build_directory,
        final_name=final_name or _default_final_name(base_dir),
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    base_dir = args.base_dir.resolve()
    settings = load_settings(
        base_dir,
        skip=args.skip,
        formats=args.formats,
        assembly_root_folder=args.root_folder,
        dry_run=args.dry_run,
        log_level=args.log_level,
        log_format=args.log_format,
    )
    configure_logging(settings=settings)

    units = [_build_unit(base_dir, args.build_dir, args.final_name)]
    units.extend(_build_unit(module.resolve(), args.build_dir) for module in args.module)
    session = BuildSession(
        execution_root_dir=args.execution_root or str(base_dir),
        units=tuple(units),
    )

    registry = ArtifactRegistry()
    driver = PackagingDriver(settings, attacher=registry)
    for unit in units:
        try:
            outcome = driver.execute(unit, session)
        except BuildStepError as exc:
            raise SystemExit(f"[ERROR] {unit.name}: {exc}") from exc
        if outcome.skipped:
            print(f"{unit.name}: {outcome.reason}")
            continue
        manifest = args.manifest or unit.build_directory / MANIFEST_NAME
        registry.write_manifest(unit, manifest)
        for artifact in outcome.artifacts:
            print(f"{unit.name}: attached {artifact.type}:{artifact.classifier} -> {artifact.path}")
        print(f"Manifest -> {manifest}")


if __name__ == "__main__":
    main()
