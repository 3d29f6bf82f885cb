"""JSON Schema for assembly descriptor documents."""

from __future__ import annotations

from typing import Any, Final

_PATTERN_LIST: Final[dict[str, Any]] = {
    "type": "array",
    "items": {"type": "string", "minLength": 1},
}

_MODE: Final[dict[str, Any]] = {
    "type": "string",
    "pattern": "^0?[0-7]{3,4}$",
}

FILE_SET_SCHEMA: Final[dict[str, Any]] = {
    "type": "object",
    "required": ["directory"],
    "additionalProperties": False,
    "properties": {
        "directory": {"type": "string", "minLength": 1},
        "output_directory": {"type": "string"},
        "includes": _PATTERN_LIST,
        "excludes": _PATTERN_LIST,
        "use_default_excludes": {"type": "boolean"},
        "file_mode": _MODE,
        "directory_mode": _MODE,
    },
}

DESCRIPTOR_SCHEMA: Final[dict[str, Any]] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Assembly descriptor",
    "type": "object",
    "required": ["id", "file_sets"],
    "additionalProperties": False,
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "formats": {"type": "array", "items": {"type": "string"}},
        "include_base_directory": {"type": "boolean"},
        "base_directory": {"type": "string"},
        "file_sets": {"type": "array", "items": FILE_SET_SCHEMA},
    },
}
