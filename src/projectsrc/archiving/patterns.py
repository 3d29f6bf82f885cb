"""Ant-style path selectors used to pick file-set members."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, Sequence

DEFAULT_EXCLUDES: tuple[str, ...] = (
    # Miscellaneous typical temporary files
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    # CVS
    "**/CVS",
    "**/CVS/**",
    "**/.cvsignore",
    # RCS / SCCS
    "**/RCS",
    "**/RCS/**",
    "**/SCCS",
    "**/SCCS/**",
    # Subversion
    "**/.svn",
    "**/.svn/**",
    # Bazaar
    "**/.bzr",
    "**/.bzr/**",
    # Mercurial
    "**/.hg",
    "**/.hg/**",
    # git
    "**/.git",
    "**/.git/**",
    "**/.gitignore",
    "**/.gitattributes",
    # darcs
    "**/_darcs",
    "**/_darcs/**",
    # Mac
    "**/.DS_Store",
    # Python bytecode caches
    "**/__pycache__",
    "**/__pycache__/**",
)


def split_pattern(pattern: str) -> tuple[str, ...]:
    normalized = pattern.replace("\\", "/")
    if normalized.endswith("/"):
        normalized += "**"
    return tuple(part for part in normalized.split("/") if part and part != ".")


def match_path(pattern: Sequence[str], path: Sequence[str]) -> bool:
    """Match split path segments against split pattern segments.

    ``**`` spans zero or more segments; ``*`` and ``?`` never cross ``/``.
    """
    if not pattern:
        return not path
    head = pattern[0]
    if head == "**":
        rest = pattern[1:]
        return any(match_path(rest, path[index:]) for index in range(len(path) + 1))
    if not path:
        return False
    return fnmatchcase(path[0], head) and match_path(pattern[1:], path[1:])


@dataclass(slots=True, frozen=True)
class PathSelector:
    includes: tuple[tuple[str, ...], ...]
    excludes: tuple[tuple[str, ...], ...]

    @classmethod
    def build(
        cls,
        includes: Sequence[str] = (),
        excludes: Sequence[str] = (),
        *,
        use_default_excludes: bool = True,
    ) -> "PathSelector":
        exclude_patterns = list(excludes)
        if use_default_excludes:
            exclude_patterns.extend(DEFAULT_EXCLUDES)
        return cls(
            includes=tuple(split_pattern(item) for item in includes or ("**",)),
            excludes=tuple(split_pattern(item) for item in exclude_patterns),
        )

    def is_selected(self, relative: str) -> bool:
        parts = split_pattern(relative)
        if not any(match_path(pattern, parts) for pattern in self.includes):
            return False
        return not any(match_path(pattern, parts) for pattern in self.excludes)

    def prunes(self, relative_dir: str) -> bool:
        """True when no file below ``relative_dir`` can ever be selected."""
        parts = split_pattern(relative_dir)
        return any(pattern and pattern[-1] == "**" and match_path(pattern, parts) for pattern in self.excludes)

    def scan(self, root: Path) -> Iterator[str]:
        """Yield selected file paths below ``root`` as sorted POSIX relative paths.

        Symbolic links to directories are yielded like files and never followed.
        """
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            relative_dir = current.relative_to(root).as_posix()
            prefix = "" if relative_dir == "." else f"{relative_dir}/"
            links = [name for name in dirnames if (current / name).is_symlink()]
            dirnames[:] = sorted(
                name for name in dirnames if name not in links and not self.prunes(prefix + name)
            )
            for name in sorted([*filenames, *links]):
                relative = prefix + name
                if self.is_selected(relative):
                    yield relative
