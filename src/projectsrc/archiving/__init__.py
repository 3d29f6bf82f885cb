"""Archive production and the configuration views handed to it."""

from .archiver import SUPPORTED_FORMATS, ArchiveEntry, AssemblyArchiver, distribution_name
from .config_view import build_archiver_config, for_format, root_folder_differs
from .patterns import DEFAULT_EXCLUDES, PathSelector

__all__ = [
    "SUPPORTED_FORMATS",
    "DEFAULT_EXCLUDES",
    "ArchiveEntry",
    "AssemblyArchiver",
    "PathSelector",
    "build_archiver_config",
    "distribution_name",
    "for_format",
    "root_folder_differs",
]
