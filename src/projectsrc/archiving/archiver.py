"""Default archive producer: walks file sets and writes tar, zip or directory outputs."""

from __future__ import annotations

import os
import re
import shutil
import stat
import tarfile
import tempfile
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from projectsrc.core.exceptions import ArchiveCreationError, AssemblyFormattingError, InvalidJobError
from projectsrc.core.logging import get_logger
from projectsrc.core.models import ArchiverConfig, AssemblyJob, AssemblyTemplate, FileSet

from .patterns import PathSelector

LOGGER = get_logger(__name__)

TAR_MODES: dict[str, str] = {
    "tar": "w",
    "tar.gz": "w:gz",
    "tgz": "w:gz",
    "tar.bz2": "w:bz2",
    "tbz2": "w:bz2",
    "tar.xz": "w:xz",
    "txz": "w:xz",
}
SUPPORTED_FORMATS = frozenset({*TAR_MODES, "zip", "dir"})

USTAR_NAME_LIMIT = 100
DEFAULT_FILE_MODE = 0o644
DEFAULT_DIRECTORY_MODE = 0o755

_IDENTITY_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
_UNRESOLVED_TOKEN = re.compile(r"\$\{[^}]*\}")


@dataclass(slots=True, frozen=True)
class ArchiveEntry:
    name: str
    mode: int
    source: Path | None = None
    link_target: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.source is None

    @property
    def is_link(self) -> bool:
        return self.link_target is not None


def distribution_name(job: AssemblyJob, config: ArchiverConfig) -> str:
    """Return the base file name shared by every archive of ``job``."""
    name = config.final_name
    if config.assembly_id_appended and job.identity:
        name = f"{name}-{job.identity}"
    if config.classifier:
        name = f"{name}-{config.classifier}"
    return name


class AssemblyArchiver:
    """Produce one archive file per call."""

    def create_archive(
        self,
        job: AssemblyJob,
        distribution_name: str,
        fmt: str,
        config: ArchiverConfig,
        create_parent_dirs: bool = True,
    ) -> Path:
        _validate_job(job)
        if fmt not in SUPPORTED_FORMATS:
            raise ArchiveCreationError(f"Unrecognized archive format: {fmt!r}")

        destination = self._destination(distribution_name, fmt, config)
        self._ensure_parent(destination, create_parent_dirs)
        try:
            entries = self.collect_entries(job.template, config)
            LOGGER.info(
                "archive.start",
                identity=job.identity,
                fmt=fmt,
                destination=str(destination),
                entry_count=len(entries),
            )

            if config.dry_run:
                for entry in entries:
                    LOGGER.debug("archive.dry_run_entry", name=entry.name)
                LOGGER.info("archive.dry_run", destination=str(destination))
                return destination
            if config.update_only and _is_up_to_date(destination, entries):
                LOGGER.info("archive.up_to_date", destination=str(destination))
                return destination

            if fmt == "dir":
                self._write_directory(destination, entries)
            else:
                self._write_via_temp(destination, fmt, entries, config)
        except ArchiveCreationError:
            raise
        except (OSError, tarfile.TarError, zipfile.BadZipFile, ValueError) as exc:
            raise ArchiveCreationError(f"Error creating {fmt} archive {destination}: {exc}") from exc

        LOGGER.info("archive.created", fmt=fmt, destination=str(destination))
        return destination

    def collect_entries(self, template: AssemblyTemplate, config: ArchiverConfig) -> list[ArchiveEntry]:
        """List archive entries for ``template``: parent directories first, then files."""
        root = _archive_root(template, config)
        entries: list[ArchiveEntry] = []
        seen_dirs: set[str] = set()
        for file_set in template.file_sets:
            directory = Path(file_set.directory)
            if not directory.is_absolute():
                directory = config.base_dir / directory
            if not directory.is_dir():
                LOGGER.warning("archive.file_set_missing", directory=str(directory))
                continue
            selector = PathSelector.build(
                file_set.includes,
                file_set.excludes,
                use_default_excludes=file_set.use_default_excludes,
            )
            prefix = _checked_prefix(_join(root, file_set.output_directory.strip("/")))
            for relative in selector.scan(directory):
                name = _checked_name(_join(prefix, relative))
                for parent in reversed(PurePosixPath(name).parents[:-1]):
                    parent_name = parent.as_posix()
                    if parent_name in seen_dirs:
                        continue
                    seen_dirs.add(parent_name)
                    entries.append(ArchiveEntry(name=parent_name, mode=_directory_mode(file_set)))
                source = directory / relative
                link_target = os.readlink(source) if source.is_symlink() else None
                entries.append(
                    ArchiveEntry(
                        name=name,
                        mode=_file_mode(source, file_set, config),
                        source=source,
                        link_target=link_target,
                    )
                )
        return entries

    def _destination(self, distribution_name: str, fmt: str, config: ArchiverConfig) -> Path:
        if fmt == "dir" and config.ignore_dir_format_extensions:
            return config.output_dir / distribution_name
        return config.output_dir / f"{distribution_name}.{fmt}"

    def _ensure_parent(self, destination: Path, create_parent_dirs: bool) -> None:
        parent = destination.parent
        if parent.is_dir():
            return
        if not create_parent_dirs:
            raise ArchiveCreationError(f"Output directory does not exist: {parent}")
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ArchiveCreationError(f"Cannot create output directory {parent}: {exc}") from exc

    def _write_via_temp(
        self,
        destination: Path,
        fmt: str,
        entries: list[ArchiveEntry],
        config: ArchiverConfig,
    ) -> None:
        config.temp_root.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(dir=config.temp_root, prefix=f"{destination.name}.", suffix=".part")
        os.close(handle)
        temp_path = Path(temp_name)
        try:
            if fmt == "zip":
                self._write_zip(temp_path, entries)
            else:
                self._write_tar(temp_path, TAR_MODES[fmt], entries, config)
            shutil.move(temp_path, destination)
        finally:
            temp_path.unlink(missing_ok=True)

    def _write_tar(self, target: Path, mode: str, entries: list[ArchiveEntry], config: ArchiverConfig) -> None:
        long_file_mode = config.tar_long_file_mode
        encoding = config.encoding or "utf-8"
        tar_format = {
            "gnu": tarfile.GNU_FORMAT,
            "warn": tarfile.GNU_FORMAT,
            "posix": tarfile.PAX_FORMAT,
        }.get(long_file_mode, tarfile.USTAR_FORMAT)
        with tarfile.open(target, mode, format=tar_format, encoding=encoding) as archive:
            for entry in entries:
                name = _tar_member_name(entry.name, long_file_mode, encoding)
                if name is None:
                    continue
                if entry.is_dir:
                    info = tarfile.TarInfo(name)
                    info.type = tarfile.DIRTYPE
                    info.mode = entry.mode
                    info.mtime = int(time.time())
                    archive.addfile(info)
                    continue
                info = archive.gettarinfo(str(entry.source), arcname=name)
                info.mode = entry.mode
                if not info.isreg():
                    archive.addfile(info)
                    continue
                with entry.source.open("rb") as handle:
                    archive.addfile(info, handle)

    def _write_zip(self, target: Path, entries: list[ArchiveEntry]) -> None:
        with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for entry in entries:
                if entry.is_dir:
                    info = zipfile.ZipInfo(f"{entry.name}/", date_time=time.localtime()[:6])
                    info.external_attr = ((stat.S_IFDIR | entry.mode) << 16) | 0x10
                    archive.writestr(info, b"")
                    continue
                if entry.is_link:
                    # Info-ZIP convention: link target stored as the entry body.
                    info = zipfile.ZipInfo(entry.name, date_time=_zip_timestamp(entry.source))
                    info.external_attr = (stat.S_IFLNK | 0o777) << 16
                    archive.writestr(info, entry.link_target)
                    continue
                info = zipfile.ZipInfo.from_file(entry.source, arcname=entry.name, strict_timestamps=False)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = (stat.S_IFREG | entry.mode) << 16
                with entry.source.open("rb") as source, archive.open(info, "w") as sink:
                    shutil.copyfileobj(source, sink)

    def _write_directory(self, destination: Path, entries: list[ArchiveEntry]) -> None:
        destination.mkdir(parents=True, exist_ok=True)
        for entry in entries:
            target = destination / entry.name
            if entry.is_dir:
                target.mkdir(parents=True, exist_ok=True)
            elif entry.is_link:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.unlink(missing_ok=True)
                os.symlink(entry.link_target, target)
                continue
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(entry.source, target)
            os.chmod(target, entry.mode)


def _validate_job(job: AssemblyJob) -> None:
    if not job.identity or not _IDENTITY_PATTERN.match(job.identity):
        raise InvalidJobError(f"Assembly identity {job.identity!r} is not a valid classifier")
    if job.template.id != job.identity:
        raise InvalidJobError(
            f"Assembly template id {job.template.id!r} does not match identity {job.identity!r}"
        )
    if not job.template.file_sets:
        raise InvalidJobError(f"Assembly {job.identity!r} declares no file sets")


def _archive_root(template: AssemblyTemplate, config: ArchiverConfig) -> str:
    if not template.include_base_directory:
        return ""
    return (template.base_directory or config.final_name).strip("/")


def _join(*parts: str) -> str:
    return "/".join(part for part in parts if part)


def _checked_prefix(prefix: str) -> str:
    if _UNRESOLVED_TOKEN.search(prefix):
        raise AssemblyFormattingError(f"Unresolved expression in archive output path {prefix!r}")
    return prefix


def _checked_name(name: str) -> str:
    if ".." in PurePosixPath(name).parts:
        raise AssemblyFormattingError(f"Archive entry name {name!r} escapes the archive root")
    return name


def _file_mode(source: Path, file_set: FileSet, config: ArchiverConfig) -> int:
    if file_set.file_mode is not None:
        return file_set.file_mode
    if config.ignore_permissions:
        return DEFAULT_FILE_MODE
    return stat.S_IMODE(source.lstat().st_mode)


def _directory_mode(file_set: FileSet) -> int:
    if file_set.directory_mode is not None:
        return file_set.directory_mode
    return DEFAULT_DIRECTORY_MODE


def _tar_member_name(name: str, long_file_mode: str, encoding: str) -> str | None:
    encoded = name.encode(encoding, errors="replace")
    if len(encoded) <= USTAR_NAME_LIMIT or long_file_mode in {"gnu", "posix"}:
        return name
    if long_file_mode == "warn":
        LOGGER.warning("archive.long_file_name", name=name)
        return name
    if long_file_mode == "truncate":
        truncated = encoded[:USTAR_NAME_LIMIT].decode(encoding, errors="ignore")
        LOGGER.warning("archive.long_file_name_truncated", name=name, truncated=truncated)
        return truncated
    if long_file_mode == "omit":
        LOGGER.warning("archive.long_file_name_omitted", name=name)
        return None
    raise ArchiveCreationError(
        f"File name {name!r} is longer than {USTAR_NAME_LIMIT} bytes (tar long file mode {long_file_mode!r})"
    )


def _is_up_to_date(destination: Path, entries: list[ArchiveEntry]) -> bool:
    if not destination.exists():
        return False
    archived_at = destination.stat().st_mtime
    return all(entry.source.lstat().st_mtime <= archived_at for entry in entries if not entry.is_dir)


def _zip_timestamp(source: Path) -> tuple[int, int, int, int, int, int]:
    date_time = time.localtime(source.lstat().st_mtime)[:6]
    if date_time[0] < 1980:
        return (1980, 1, 1, 0, 0, 0)
    return date_time
