from __future__ import annotations

import os
import zipfile
from pathlib import Path
from typing import Any

import pytest

from projectsrc.core.config import Settings
from projectsrc.core.exceptions import (
    ArchiveCreationError,
    ArtifactAttachmentError,
    BuildConfigurationFailure,
    BuildExecutionError,
    DescriptorReadError,
    InvalidJobError,
)
from projectsrc.core.models import ArchiverConfig, AssemblyJob, AssemblyTemplate, BuildSession, BuildUnit, FileSet
from projectsrc.descriptors.resolver import DescriptorResolver
from projectsrc.workflow.driver import (
    SKIPPED_BY_CONFIGURATION,
    SKIPPED_NOT_EXECUTION_ROOT,
    PackagingDriver,
)


class FakeReader:
    def __init__(self, templates: list[AssemblyTemplate] | None = None, error: Exception | None = None) -> None:
        self._templates = templates if templates is not None else [_template()]
        self._error = error
        self.calls: list[ArchiverConfig] = []

    def read_templates(self, config: ArchiverConfig) -> list[AssemblyTemplate]:
        self.calls.append(config)
        if self._error is not None:
            raise self._error
        return self._templates


class FakeArchiver:
    def __init__(self, failures: dict[str, Exception] | None = None) -> None:
        self._failures = failures or {}
        self.calls: list[dict[str, Any]] = []

    def create_archive(
        self,
        job: AssemblyJob,
        distribution_name: str,
        fmt: str,
        config: ArchiverConfig,
        create_parent_dirs: bool = True,
    ) -> Path:
        self.calls.append(
            {
                "job": job,
                "name": distribution_name,
                "fmt": fmt,
                "config": config,
                "create_parent_dirs": create_parent_dirs,
            }
        )
        if fmt in self._failures:
            raise self._failures[fmt]
        return config.output_dir / f"{distribution_name}.{fmt}"


class FakeAttacher:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.calls: list[tuple[str, str, str, Path]] = []

    def attach(self, unit: BuildUnit, fmt: str, classifier: str, path: Path) -> Any:
        self.calls.append((unit.name, fmt, classifier, path))
        if self._error is not None:
            raise self._error
        return (fmt, classifier, path)


def _template() -> AssemblyTemplate:
    return AssemblyTemplate(id="project", formats=["zip"], file_sets=[FileSet(directory=".")])


def _unit(tmp_path: Path, name: str = "demo") -> BuildUnit:
    base_dir = tmp_path / name
    return BuildUnit(
        name=name,
        base_dir=base_dir,
        build_directory=base_dir / "build",
        final_name=f"{name}-1.0",
    )


def _driver(
    settings: Settings,
    *,
    reader: FakeReader | None = None,
    archiver: FakeArchiver | None = None,
    attacher: FakeAttacher | None = None,
) -> tuple[PackagingDriver, FakeReader, FakeArchiver, FakeAttacher]:
    reader = reader or FakeReader()
    archiver = archiver or FakeArchiver()
    attacher = attacher or FakeAttacher()
    driver = PackagingDriver(
        settings,
        resolver=DescriptorResolver(reader),
        archiver=archiver,
        attacher=attacher,
    )
    return driver, reader, archiver, attacher


def test_driver_produces_and_attaches_each_format_in_order(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir), units=(unit,))
    driver, reader, archiver, attacher = _driver(Settings(formats="tar.gz, zip"))

    outcome = driver.execute(unit, session)

    assert outcome.status == "completed"
    assert len(reader.calls) == 1
    assert reader.calls[0].descriptor_references == ("project",)
    assert [call["fmt"] for call in archiver.calls] == ["tar.gz", "zip"]
    assert all(call["name"] == "demo-1.0-project-sources" for call in archiver.calls)
    assert all(call["create_parent_dirs"] is True for call in archiver.calls)
    assert [call[1] for call in attacher.calls] == ["tar.gz", "zip"]
    assert {call[2] for call in attacher.calls} == {"project-sources"}
    assert len(outcome.artifacts) == 2
    assert (unit.build_directory / "projectsrc-archive-tmp").is_dir()


def test_driver_stamps_identity_and_formats_on_the_job(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    driver, _, archiver, _ = _driver(Settings(formats="zip"))

    driver.execute(unit, session)

    job = archiver.calls[0]["job"]
    assert job.identity == "project-sources"
    assert job.template.id == "project-sources"
    assert job.formats == ("zip",)
    assert job.template.formats == ["zip"]


def test_skip_flag_performs_no_work(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    driver, reader, archiver, attacher = _driver(Settings(skip=True))

    outcome = driver.execute(unit, session)

    assert outcome.skipped
    assert outcome.reason == SKIPPED_BY_CONFIGURATION
    assert reader.calls == [] and archiver.calls == [] and attacher.calls == []


def test_non_root_unit_is_skipped_with_distinct_reason(tmp_path: Path) -> None:
    unit = _unit(tmp_path, "module-a")
    session = BuildSession(execution_root_dir=str(tmp_path / "root"))
    driver, reader, archiver, attacher = _driver(Settings())

    outcome = driver.execute(unit, session)

    assert outcome.skipped
    assert outcome.reason == SKIPPED_NOT_EXECUTION_ROOT
    assert outcome.reason != SKIPPED_BY_CONFIGURATION
    assert reader.calls == [] and archiver.calls == [] and attacher.calls == []


def test_execution_root_comparison_ignores_case(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir).upper())
    driver, _, archiver, _ = _driver(Settings(formats="zip"))

    outcome = driver.execute(unit, session)

    assert outcome.status == "completed"
    assert len(archiver.calls) == 1


def test_failure_on_second_format_aborts_remaining_formats(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    archiver = FakeArchiver(failures={"tar.gz": ArchiveCreationError("disk full")})
    driver, _, archiver, attacher = _driver(Settings(formats="zip,tar.gz,tar.bz2"), archiver=archiver)

    with pytest.raises(BuildExecutionError) as excinfo:
        driver.execute(unit, session)

    assert excinfo.value.fmt == "tar.gz"
    assert "'tar.gz'" in str(excinfo.value)
    assert "disk full" in str(excinfo.value)
    assert [call["fmt"] for call in archiver.calls] == ["zip", "tar.gz"]
    assert [call[1] for call in attacher.calls] == ["zip"]


def test_invalid_job_is_reported_as_configuration_failure(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    archiver = FakeArchiver(failures={"zip": InvalidJobError("no file sets")})
    driver, _, _, attacher = _driver(Settings(formats="zip"), archiver=archiver)

    with pytest.raises(BuildConfigurationFailure) as excinfo:
        driver.execute(unit, session)

    assert "project-sources" in str(excinfo.value)
    assert excinfo.value.fmt == "zip"
    assert attacher.calls == []


def test_attachment_failure_is_fatal(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    attacher = FakeAttacher(error=ArtifactAttachmentError("registry closed"))
    driver, _, archiver, _ = _driver(Settings(formats="zip,tar"), attacher=attacher)

    with pytest.raises(BuildExecutionError) as excinfo:
        driver.execute(unit, session)

    assert excinfo.value.fmt == "zip"
    assert len(archiver.calls) == 1


def test_missing_descriptor_fails_before_any_archive(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    driver, _, archiver, _ = _driver(Settings(), reader=FakeReader(templates=[]))

    with pytest.raises(BuildExecutionError) as excinfo:
        driver.execute(unit, session)

    assert "Cannot read 'project' assembly descriptor" in str(excinfo.value)
    assert archiver.calls == []


def test_descriptor_read_error_carries_cause_message(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    reader = FakeReader(error=DescriptorReadError("broken descriptor"))
    driver, _, archiver, _ = _driver(Settings(), reader=reader)

    with pytest.raises(BuildExecutionError, match="broken descriptor"):
        driver.execute(unit, session)
    assert archiver.calls == []


@pytest.mark.parametrize("formats", ["", "zip,,tar", " , "])
def test_unnamed_formats_are_configuration_failures(tmp_path: Path, formats: str) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    driver, reader, archiver, _ = _driver(Settings(formats=formats))

    with pytest.raises(BuildConfigurationFailure):
        driver.execute(unit, session)
    assert reader.calls == [] and archiver.calls == []


def test_missing_formats_are_configuration_failures(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    driver, reader, _, _ = _driver(Settings(formats=None))

    with pytest.raises(BuildConfigurationFailure):
        driver.execute(unit, session)
    assert reader.calls == []


def test_duplicate_formats_produce_duplicate_archives(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    driver, _, archiver, attacher = _driver(Settings(formats="zip,zip"))

    driver.execute(unit, session)

    assert [call["fmt"] for call in archiver.calls] == ["zip", "zip"]
    assert len(attacher.calls) == 2


def test_root_folder_override_uses_overlay_without_touching_ambient(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    driver, _, archiver, _ = _driver(Settings(formats="zip,tar", assembly_root_folder="sources"))

    driver.execute(unit, session)

    views = [call["config"] for call in archiver.calls]
    assert [view.final_name for view in views] == ["sources", "sources"]
    # The archive file name still derives from the unit's final name.
    assert all(call["name"] == "demo-1.0-project-sources" for call in archiver.calls)
    assert unit.final_name == "demo-1.0"


def test_root_folder_equal_to_final_name_passes_ambient_config(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    driver, _, archiver, _ = _driver(Settings(formats="zip,tar", assembly_root_folder="demo-1.0"))

    driver.execute(unit, session)

    first, second = (call["config"] for call in archiver.calls)
    assert first is second
    assert first.final_name == "demo-1.0"


def test_dangling_symlink_is_archived_by_default_collaborators(tmp_path: Path) -> None:
    unit = _unit(tmp_path)
    (unit.base_dir / "src").mkdir(parents=True)
    (unit.base_dir / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
    os.symlink(unit.base_dir / "gone.txt", unit.base_dir / "src" / "link.txt")
    session = BuildSession(execution_root_dir=str(unit.base_dir))

    outcome = PackagingDriver(Settings(formats="zip")).execute(unit, session)

    archive = unit.build_directory / "demo-1.0-project-sources.zip"
    assert outcome.status == "completed"
    with zipfile.ZipFile(archive) as contents:
        assert "demo-1.0/src/link.txt" in contents.namelist()


def test_source_tree_errors_reach_the_build_with_the_format(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def vanished(source, file_set, config):
        raise FileNotFoundError(2, "No such file or directory", str(source))

    unit = _unit(tmp_path)
    (unit.base_dir / "src").mkdir(parents=True)
    (unit.base_dir / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
    session = BuildSession(execution_root_dir=str(unit.base_dir))
    monkeypatch.setattr("projectsrc.archiving.archiver._file_mode", vanished)

    with pytest.raises(BuildExecutionError) as excinfo:
        PackagingDriver(Settings(formats="zip")).execute(unit, session)

    assert excinfo.value.fmt == "zip"
    assert "No such file or directory" in str(excinfo.value)
