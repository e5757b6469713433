"""ManifestBuilder - manifest.json for a published curation run.

The manifest records what was published (run id, subject, accepted artifact
versions and their files), the run statistics, and SHA-256 checksums of the
published files.

Example:
    builder = ManifestBuilder(run_dir)
    builder.set_run_id(run_id).set_subject("Graph Theory")
    builder.add_artifacts(entries).include_checksums()
    builder.build(run_dir / "manifest.json")
"""
from __future__ import annotations

import copy
import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from knowledgecurator.bundle.builder import ZipBuilder

MANIFEST_VERSION = "1.0.0"


class ManifestBuilder:
    """Fluent builder for manifest.json files."""

    def __init__(self, run_dir: Path) -> None:
        """Initialize ManifestBuilder.

        Raises:
            FileNotFoundError: If run_dir does not exist.
            ValueError: If run_dir is not a directory.
        """
        if not run_dir.exists():
            raise FileNotFoundError(f"Run directory not found: {run_dir}")
        if not run_dir.is_dir():
            raise ValueError(f"Path is not a directory: {run_dir}")

        self.run_dir = run_dir
        self._data: dict[str, Any] = {"version": MANIFEST_VERSION}
        self._exclude_patterns: list[str] = []
        self._include_checksums = False

    def set_run_id(self, run_id: str) -> ManifestBuilder:
        self._data["run_id"] = run_id
        return self

    def set_subject(self, subject: str) -> ManifestBuilder:
        self._data["subject"] = subject
        return self

    def set_created_at(self, timestamp: str) -> ManifestBuilder:
        """Set the created_at timestamp (ISO 8601)."""
        self._data["created_at"] = timestamp
        return self

    def add_artifacts(self, artifacts: list[dict[str, Any]]) -> ManifestBuilder:
        """Record the published artifacts in reading order.

        Args:
            artifacts: One dict per artifact (name, version, file, ...).
        """
        self._data["artifacts"] = artifacts
        return self

    def set_index(self, index_file: str) -> ManifestBuilder:
        self._data["index"] = index_file
        return self

    def add_runtime(self, runtime: dict[str, Any]) -> ManifestBuilder:
        """Add run statistics (duration, revisions, worker calls)."""
        self._data["runtime"] = runtime
        return self

    def exclude(self, pattern: str) -> ManifestBuilder:
        """Exclude a glob pattern from checksums."""
        self._exclude_patterns.append(pattern)
        return self

    def include_checksums(self) -> ManifestBuilder:
        self._include_checksums = True
        return self

    def to_dict(self) -> dict[str, Any]:
        """Deep copy of the manifest data, with checksums if requested."""
        result = copy.deepcopy(self._data)
        if self._include_checksums:
            zip_builder = ZipBuilder(self.run_dir)
            for pattern in self._exclude_patterns:
                zip_builder.exclude(pattern)
            result["checksums"] = zip_builder.get_checksums()
        return result

    def build(self, output_path: Path) -> str:
        """Write the manifest and return the SHA-256 of its content."""
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if "created_at" not in self._data:
            self._data["created_at"] = (
                datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
            )

        # Sorted keys keep the manifest reproducible
        serialized = json.dumps(self.to_dict(), ensure_ascii=False, indent=2, sort_keys=True) + "\n"
        output_path.write_text(serialized, encoding="utf-8")

        return hashlib.sha256(serialized.encode("utf-8")).hexdigest()
