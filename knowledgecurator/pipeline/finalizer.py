"""WorkspaceFinalizer - build the output surface of a finished run.

Finalization runs once, after every artifact has been accepted:
1. Refuses to run while any artifact is draft or under review
2. Orders the accepted artifacts for reading (sequence_hint, then creation)
3. Asks the Synthesizer for the index document
4. Exposes exactly the accepted artifacts plus the index as the surface

Archived versions stay in the store and its event log; they are simply not
part of the surface.

publish() optionally writes the surface to a run directory:

    <run_dir>/<group>/01-<name>.md ...   accepted artifacts in reading order
    <run_dir>/<group>/index.md           index document
    <run_dir>/manifest.json              run metadata and checksums
    <run_dir>/<run_id>.zip               optional bundle
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from knowledgecurator.bundle import ManifestBuilder, ZipBuilder
from knowledgecurator.errors import IncompleteWorkspaceError
from knowledgecurator.file_utils import safe_filename, safe_path_within
from knowledgecurator.models.artifacts import Artifact, render_content
from knowledgecurator.pipeline.events import EventType
from knowledgecurator.workers.base import OrchestratorStats, Synthesizer, call_worker

if TYPE_CHECKING:
    from knowledgecurator.pipeline.events import EventEmitter
    from knowledgecurator.pipeline.workspace import WorkspaceState

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.md"
MANIFEST_FILENAME = "manifest.json"


@dataclass(frozen=True)
class PublishedSurface:
    """The externally visible result of a run."""

    group: str
    artifacts: tuple[Artifact, ...]
    index_ref: Any

    @property
    def names(self) -> list[str]:
        return [a.name for a in self.artifacts]

    def get(self, name: str) -> Artifact:
        for artifact in self.artifacts:
            if artifact.name == name:
                return artifact
        raise KeyError(name)


@dataclass
class PublishResult:
    """Paths written by WorkspaceFinalizer.publish()."""

    surface_dir: Path
    manifest_path: Path
    manifest_sha256: str
    files: list[str]
    bundle_path: Path | None = None


def reading_order(artifacts: Sequence[Artifact]) -> list[Artifact]:
    """Sort by sequence_hint (unhinted last), ties by creation order."""
    return sorted(
        artifacts,
        key=lambda a: (
            a.sequence_hint is None,
            a.sequence_hint if a.sequence_hint is not None else 0,
            a.created_seq,
        ),
    )


class WorkspaceFinalizer:
    """Post-acceptance reorganisation of a workspace."""

    def __init__(
        self,
        synthesizer: Synthesizer,
        *,
        group: str = "accepted",
        stats: OrchestratorStats | None = None,
        emitter: "EventEmitter | None" = None,
    ) -> None:
        self._synthesizer = synthesizer
        self.group = group
        self._stats = stats
        self._emitter = emitter
        self._published: PublishResult | None = None

    def finalize(self, workspace: "WorkspaceState") -> Any:
        """Finalize the workspace and return the index content handle.

        Raises:
            IncompleteWorkspaceError: If any artifact is draft or under review
            CollaboratorError: If the synthesizer fails to summarize
        """
        pending = [
            (a.name, a.version, a.stage.value) for a in workspace.in_flight_artifacts()
        ]
        if pending:
            raise IncompleteWorkspaceError(pending)

        accepted = reading_order(workspace.accepted_artifacts())
        logger.info(
            f"Finalizing run {workspace.run_id}: {len(accepted)} accepted artifact(s), "
            f"{len(workspace.artifacts()) - len(accepted)} hidden version(s)"
        )

        if self._emitter is not None:
            self._emitter.emit(
                EventType.AGENT_START,
                {"agent": self._synthesizer.name, "stage": "finalize"},
            )

        index_ref = call_worker(
            self._synthesizer,
            "summarize",
            self._synthesizer.summarize,
            list(accepted),
            stats=self._stats,
        )

        workspace.surface = PublishedSurface(
            group=self.group,
            artifacts=tuple(accepted),
            index_ref=index_ref,
        )
        workspace.finalized = True

        if self._emitter is not None:
            self._emitter.emit(
                EventType.AGENT_COMPLETE,
                {"agent": self._synthesizer.name, "stage": "finalize"},
            )

        return index_ref

    def retract(self, workspace: "WorkspaceState") -> None:
        """Withdraw the surface of a run that failed after finalization."""
        if workspace.surface is not None:
            logger.warning(f"Retracting surface of failed run {workspace.run_id}")
        if self._published is not None:
            published = self._published
            self._remove_outputs(
                published.surface_dir, published.manifest_path, published.bundle_path
            )
            self._published = None
        workspace.surface = None
        workspace.finalized = False

    def publish(
        self,
        workspace: "WorkspaceState",
        run_dir: Path,
        *,
        bundle_zip: bool = False,
        elapsed_seconds: float | None = None,
    ) -> PublishResult:
        """Write the finalized surface under run_dir.

        Files are staged in a temporary directory and moved into place. If the
        manifest or bundle cannot be written afterwards, everything this call
        wrote is removed again before the error propagates.

        Raises:
            ValueError: If the workspace has not been finalized
            FileExistsError: If the surface, manifest or bundle path already exists
        """
        surface = workspace.surface
        if not workspace.finalized or surface is None:
            raise ValueError("Workspace must be finalized before publishing")

        run_dir.mkdir(parents=True, exist_ok=True)
        surface_dir = safe_path_within(run_dir / safe_filename(surface.group), root_dir=run_dir)
        manifest_path = run_dir / MANIFEST_FILENAME
        bundle_target = run_dir / f"{workspace.run_id}.zip" if bundle_zip else None
        for target in (surface_dir, manifest_path, bundle_target):
            if target is not None and target.exists():
                raise FileExistsError(f"Run output already exists: {target}")

        staging = Path(tempfile.mkdtemp(prefix=".publish-", dir=run_dir))
        try:
            entries, files = self._write_surface(surface, staging)
            staging.rename(surface_dir)
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        try:
            manifest = (
                ManifestBuilder(run_dir)
                .set_run_id(workspace.run_id)
                .set_subject(workspace.subject)
                .add_artifacts(entries)
                .set_index(f"{surface_dir.name}/{INDEX_FILENAME}")
                .exclude("*.zip")
                .exclude(MANIFEST_FILENAME)
                .include_checksums()
            )
            if self._stats is not None:
                if elapsed_seconds is None:
                    elapsed_seconds = self._stats.execution_time_seconds
                manifest.add_runtime(
                    {
                        "revisions": self._stats.revisions,
                        "worker_calls": self._stats.total_calls,
                        "execution_time_seconds": round(elapsed_seconds, 3),
                    }
                )
            manifest_sha = manifest.build(manifest_path)

            bundle_path = None
            if bundle_target is not None:
                bundle_path = ZipBuilder(run_dir).exclude("*.zip").build(bundle_target)
        except Exception as e:
            logger.error(f"Publishing run {workspace.run_id} failed, removing outputs: {e}")
            self._remove_outputs(surface_dir, manifest_path, bundle_target)
            raise

        logger.info(f"Published {len(files)} file(s) to {surface_dir}")
        self._published = PublishResult(
            surface_dir=surface_dir,
            manifest_path=manifest_path,
            manifest_sha256=manifest_sha,
            files=[f"{surface_dir.name}/{f}" for f in files],
            bundle_path=bundle_path,
        )
        return self._published

    @staticmethod
    def _remove_outputs(
        surface_dir: Path,
        manifest_path: Path,
        bundle_path: Path | None,
    ) -> None:
        shutil.rmtree(surface_dir, ignore_errors=True)
        manifest_path.unlink(missing_ok=True)
        if bundle_path is not None and bundle_path.is_file():
            bundle_path.unlink()

    def _write_surface(
        self,
        surface: PublishedSurface,
        target_dir: Path,
    ) -> tuple[list[dict[str, Any]], list[str]]:
        entries: list[dict[str, Any]] = []
        files: list[str] = []

        for position, artifact in enumerate(surface.artifacts, start=1):
            filename = f"{position:02d}-{safe_filename(artifact.name)}.md"
            path = safe_path_within(target_dir / filename, root_dir=target_dir)
            path.write_text(render_content(artifact.content_ref), encoding="utf-8")
            files.append(filename)
            entries.append(
                {
                    "name": artifact.name,
                    "version": artifact.version,
                    "parent": artifact.parent,
                    "file": filename,
                }
            )

        (target_dir / INDEX_FILENAME).write_text(
            render_content(surface.index_ref), encoding="utf-8"
        )
        files.append(INDEX_FILENAME)
        return entries, files
