"""Descriptors shipped with the archiver, addressable by reference name."""

from __future__ import annotations

from typing import Any, Final

PROJECT: Final[dict[str, Any]] = {
    "id": "project",
    "formats": ["tar.gz", "tar.bz2", "zip"],
    "file_sets": [
        {
            "directory": "${project.basedir}",
            "output_directory": "/",
            "use_default_excludes": True,
            "excludes": [
                "**/*.log",
                "**/${project.build.directory}/**",
            ],
        }
    ],
}

SRC: Final[dict[str, Any]] = {
    "id": "src",
    "formats": ["tar.gz", "tar.bz2", "zip"],
    "file_sets": [
        {
            "directory": "${project.basedir}",
            "includes": [
                "README*",
                "LICENSE*",
                "NOTICE*",
                "pyproject.toml",
                "setup.cfg",
                "setup.py",
            ],
            "use_default_excludes": True,
        },
        {
            "directory": "${project.basedir}/src",
            "output_directory": "src",
            "use_default_excludes": True,
        },
    ],
}

BUILTIN_DESCRIPTORS: Final[dict[str, dict[str, Any]]] = {
    "project": PROJECT,
    "src": SRC,
}
