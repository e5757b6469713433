"""ZipBuilder - zip bundles of a published curation run.

Example:
    builder = ZipBuilder(run_dir)
    builder.exclude("*.zip")
    builder.build(run_dir / f"{run_id}.zip")
    checksums = builder.get_checksums()
"""

from __future__ import annotations

import fnmatch
import hashlib
import zipfile
from pathlib import Path


class ZipBuilder:
    """Creates ZIP bundles from a run directory.

    Attributes:
        run_dir: The directory whose files are bundled.
    """

    def __init__(self, run_dir: Path) -> None:
        """Initialize ZipBuilder.

        Raises:
            FileNotFoundError: If run_dir does not exist.
            ValueError: If run_dir is not a directory.
        """
        if not run_dir.exists():
            raise FileNotFoundError(f"Run directory not found: {run_dir}")
        if not run_dir.is_dir():
            raise ValueError(f"Path is not a directory: {run_dir}")

        self.run_dir = run_dir
        self._exclude_patterns: list[str] = []

    def exclude(self, pattern: str) -> ZipBuilder:
        """Exclude files matching a glob pattern ("*.zip", "tmp/**")."""
        self._exclude_patterns.append(pattern)
        return self

    def _is_excluded(self, relative_path: str) -> bool:
        for pattern in self._exclude_patterns:
            if fnmatch.fnmatch(relative_path, pattern):
                return True
            if pattern.endswith("/**"):
                prefix = pattern[: -len("/**")]
                if relative_path == prefix or relative_path.startswith(prefix + "/"):
                    return True
        return False

    def list_files(self) -> list[str]:
        """Relative POSIX paths of every file that would be bundled."""
        files = []
        for path in sorted(self.run_dir.rglob("*")):
            if not path.is_file():
                continue
            relative = path.relative_to(self.run_dir).as_posix()
            if not self._is_excluded(relative):
                files.append(relative)
        return files

    def get_checksums(self) -> dict[str, str]:
        """SHA-256 hex digest for each bundled file."""
        return {
            relative: hashlib.sha256((self.run_dir / relative).read_bytes()).hexdigest()
            for relative in self.list_files()
        }

    def build(self, output_path: Path) -> Path:
        """Write the ZIP bundle and return its path.

        The output file is skipped if it lives inside run_dir.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_resolved = output_path.resolve()

        with zipfile.ZipFile(output_path, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
            for relative in self.list_files():
                full_path = self.run_dir / relative
                if full_path.resolve() == output_resolved:
                    continue
                zf.write(full_path, arcname=relative)

        return output_path
