"""ArtifactStore - versioned container for pipeline artifacts.

The store issues version numbers, applies stage transitions and records every
mutation in its EventLog. It knows nothing about review verdicts; callers
decide when a revision is warranted.

Allowed transitions:
    draft -> under_review -> accepted
    draft | under_review -> archived
    archived -> archived (no-op)

Example:
    store = ArtifactStore()
    artifact = store.create("graph-theory")
    store.attach_content("graph-theory", 1, content_ref)
    store.submit_for_review("graph-theory", 1)
    store.promote("graph-theory", 1)
"""

from __future__ import annotations

import logging
from typing import Any

from knowledgecurator.errors import DuplicateNameError, InvalidTransitionError, NotFoundError
from knowledgecurator.models.artifacts import Artifact, ArtifactStage
from knowledgecurator.store.event_log import EventLog, StoreAction

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Append-only versioned artifact container.

    Artifacts are keyed by name and then by version. Version counters are
    never rolled back: archiving keeps the version, and re-creating a fully
    archived name continues from the highest version issued.
    """

    def __init__(self) -> None:
        self._artifacts: dict[str, dict[int, Artifact]] = {}
        self.events = EventLog()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, name: str, version: int) -> Artifact:
        """Return one artifact version.

        Raises:
            NotFoundError: If the (name, version) pair is unknown
        """
        versions = self._artifacts.get(name)
        if versions is None or version not in versions:
            raise NotFoundError(name, version)
        return versions[version]

    def latest(self, name: str) -> Artifact:
        """Return the highest version issued for a name."""
        versions = self._artifacts.get(name)
        if not versions:
            raise NotFoundError(name)
        return versions[max(versions)]

    def versions(self, name: str) -> list[Artifact]:
        """All versions of a name, oldest first."""
        versions = self._artifacts.get(name)
        if not versions:
            raise NotFoundError(name)
        return [versions[v] for v in sorted(versions)]

    def names(self) -> list[str]:
        return list(self._artifacts)

    def artifacts(self) -> list[Artifact]:
        """Every version of every artifact, in creation order."""
        everything = [a for versions in self._artifacts.values() for a in versions.values()]
        return sorted(everything, key=lambda a: a.created_seq)

    def by_stage(self, stage: ArtifactStage) -> list[Artifact]:
        return [a for a in self.artifacts() if a.stage == stage]

    def __contains__(self, name: object) -> bool:
        return name in self._artifacts

    def __len__(self) -> int:
        return sum(len(v) for v in self._artifacts.values())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        *,
        sequence_hint: int | None = None,
        parent: str | None = None,
    ) -> Artifact:
        """Create the first draft for a name.

        Raises:
            DuplicateNameError: If an unarchived version of the name exists
        """
        existing = self._artifacts.get(name, {})
        if any(a.stage != ArtifactStage.ARCHIVED for a in existing.values()):
            raise DuplicateNameError(name)

        version = max(existing) + 1 if existing else 1
        return self._insert(
            name,
            version,
            StoreAction.CREATE,
            sequence_hint=sequence_hint,
            parent=parent,
        )

    def new_revision(self, name: str) -> Artifact:
        """Create version max(existing)+1 as a fresh draft.

        The caller is responsible for only revising after a revise verdict.
        """
        previous = self.latest(name)
        return self._insert(
            name,
            previous.version + 1,
            StoreAction.NEW_REVISION,
            sequence_hint=previous.sequence_hint,
            parent=previous.parent,
        )

    def attach_content(self, name: str, version: int, content_ref: Any) -> Artifact:
        """Attach the produced content handle to a draft."""
        artifact = self.get(name, version)
        if artifact.stage != ArtifactStage.DRAFT:
            raise InvalidTransitionError(
                name, version, artifact.stage.value, "attach_content",
                reason="content can only be attached to a draft",
            )
        updated = artifact.model_copy(update={"content_ref": content_ref})
        return self._replace(updated, StoreAction.ATTACH_CONTENT)

    def submit_for_review(self, name: str, version: int) -> Artifact:
        """Move a draft to under_review.

        Raises:
            InvalidTransitionError: If the version is not a draft, or another
                version of the same name is already under review
        """
        artifact = self.get(name, version)
        if artifact.stage != ArtifactStage.DRAFT:
            raise InvalidTransitionError(
                name, version, artifact.stage.value, ArtifactStage.UNDER_REVIEW.value
            )
        for other in self._artifacts[name].values():
            if other.version != version and other.stage == ArtifactStage.UNDER_REVIEW:
                raise InvalidTransitionError(
                    name, version, artifact.stage.value, ArtifactStage.UNDER_REVIEW.value,
                    reason=f"v{other.version} is already under review",
                )
        return self._transition(artifact, ArtifactStage.UNDER_REVIEW, StoreAction.SUBMIT)

    def promote(self, name: str, version: int) -> Artifact:
        """Accept a version that is under review.

        Raises:
            NotFoundError: If the (name, version) pair is unknown
            InvalidTransitionError: If the version is not under review
        """
        artifact = self.get(name, version)
        if artifact.stage != ArtifactStage.UNDER_REVIEW:
            raise InvalidTransitionError(
                name, version, artifact.stage.value, ArtifactStage.ACCEPTED.value
            )
        promoted = self._transition(artifact, ArtifactStage.ACCEPTED, StoreAction.PROMOTE)
        logger.info(f"Accepted {promoted.label}")
        return promoted

    def archive(self, name: str, version: int) -> Artifact:
        """Archive a non-accepted version. Archiving twice is a no-op.

        Raises:
            NotFoundError: If the (name, version) pair is unknown
            InvalidTransitionError: If the version is accepted
        """
        artifact = self.get(name, version)
        if artifact.stage == ArtifactStage.ARCHIVED:
            return artifact
        if artifact.stage == ArtifactStage.ACCEPTED:
            raise InvalidTransitionError(
                name, version, artifact.stage.value, ArtifactStage.ARCHIVED.value,
                reason="accepted artifacts are immutable",
            )
        return self._transition(artifact, ArtifactStage.ARCHIVED, StoreAction.ARCHIVE)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _insert(
        self,
        name: str,
        version: int,
        action: StoreAction,
        *,
        sequence_hint: int | None,
        parent: str | None,
    ) -> Artifact:
        event = self.events.record(action, name, version, ArtifactStage.DRAFT)
        artifact = Artifact(
            name=name,
            version=version,
            stage=ArtifactStage.DRAFT,
            sequence_hint=sequence_hint,
            parent=parent,
            created_seq=event.seq,
        )
        self._artifacts.setdefault(name, {})[version] = artifact
        logger.debug(f"{action.value}: {artifact.label}")
        return artifact

    def _transition(
        self,
        artifact: Artifact,
        stage: ArtifactStage,
        action: StoreAction,
    ) -> Artifact:
        return self._replace(artifact.model_copy(update={"stage": stage}), action)

    def _replace(self, artifact: Artifact, action: StoreAction) -> Artifact:
        self._artifacts[artifact.name][artifact.version] = artifact
        self.events.record(action, artifact.name, artifact.version, artifact.stage)
        logger.debug(f"{action.value}: {artifact.label} -> {artifact.stage.value}")
        return artifact
