"""Attachment of produced archives to their owning build unit."""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from projectsrc.core.exceptions import ArtifactAttachmentError
from projectsrc.core.logging import get_logger
from projectsrc.core.models import AttachedArtifact, BuildUnit

LOGGER = get_logger(__name__)


class ArtifactRegistry:
    def attach(self, unit: BuildUnit, fmt: str, classifier: str, path: Path) -> AttachedArtifact:
        """Register ``path`` as an output of ``unit`` under ``(fmt, classifier)``."""
        if not fmt:
            raise ArtifactAttachmentError(f"Cannot attach {path} to {unit.name}: artifact type is empty")
        if not classifier:
            raise ArtifactAttachmentError(f"Cannot attach {path} to {unit.name}: classifier is empty")
        artifact = AttachedArtifact(unit=unit.name, type=fmt, classifier=classifier, path=Path(path))
        unit.attached_artifacts.append(artifact)
        LOGGER.info(
            "artifacts.attached",
            unit=unit.name,
            type=fmt,
            classifier=classifier,
            path=str(path),
        )
        return artifact

    def write_manifest(self, unit: BuildUnit, destination: Path) -> Path:
        """Write the attached artifacts of ``unit`` to ``destination`` as JSON."""
        payload = {
            "unit": unit.name,
            "final_name": unit.final_name,
            "artifacts": [_describe(artifact) for artifact in unit.attached_artifacts],
        }
        destination.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", dir=destination.parent, encoding="utf-8", delete=False
        ) as tmp:
            json.dump(payload, tmp, ensure_ascii=False, indent=2)
            tmp.flush()
            os.fsync(tmp.fileno())
            temp_name = tmp.name
        os.replace(temp_name, destination)
        LOGGER.info("artifacts.manifest_written", path=str(destination), artifact_count=len(payload["artifacts"]))
        return destination


def _describe(artifact: AttachedArtifact) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "type": artifact.type,
        "classifier": artifact.classifier,
        "path": str(artifact.path),
    }
    if artifact.path.is_file():
        entry["size"] = artifact.path.stat().st_size
        entry["sha256"] = _sha256(artifact.path)
    return entry


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest()
