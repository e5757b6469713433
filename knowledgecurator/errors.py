"""Exception taxonomy for the curation pipeline.

Store errors are caller/programmer errors and are never retried. Collaborator
errors wrap failures raised by Researcher, Critic and Synthesizer
implementations. Every error listed here is fatal to a run: the orchestrator
moves to FAILED and re-raises it unchanged.
"""

from __future__ import annotations


class CurationError(Exception):
    """Base class for all curation pipeline errors."""


class StoreError(CurationError):
    """ArtifactStore misuse."""


class DuplicateNameError(StoreError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Artifact '{name}' already has an unarchived version")


class NotFoundError(StoreError):
    def __init__(self, name: str, version: int | None = None) -> None:
        self.name = name
        self.version = version
        if version is None:
            message = f"Unknown artifact '{name}'"
        else:
            message = f"Unknown artifact version '{name}' v{version}"
        super().__init__(message)


class InvalidTransitionError(StoreError):
    def __init__(
        self,
        name: str,
        version: int,
        current: str,
        target: str,
        reason: str | None = None,
    ) -> None:
        self.name = name
        self.version = version
        self.current = current
        self.target = target
        message = f"Cannot move '{name}' v{version} from '{current}' to '{target}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CollaboratorError(CurationError):
    """Raised when an external Researcher, Critic or Synthesizer fails."""

    def __init__(
        self,
        message: str,
        worker: str | None = None,
        operation: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize CollaboratorError.

        Args:
            message: Error message
            worker: Name of the failing worker
            operation: Worker operation that failed (produce, review, ...)
            cause: Original exception
        """
        self.worker = worker
        self.operation = operation
        self.cause = cause
        if worker and operation:
            full_message = f"Collaborator '{worker}' failed in {operation}(): {message}"
        else:
            full_message = message
        super().__init__(full_message)


class IncompleteWorkspaceError(CurationError):
    """Finalization attempted while artifacts are still in flight."""

    def __init__(self, pending: list[tuple[str, int, str]]) -> None:
        self.pending = pending
        listing = ", ".join(f"{name} v{version} ({stage})" for name, version, stage in pending)
        super().__init__(f"Workspace has unfinished artifacts: {listing}")


class RevisionLimitError(CurationError):
    def __init__(self, name: str, revisions: int, limit: int) -> None:
        self.name = name
        self.revisions = revisions
        self.limit = limit
        super().__init__(
            f"Artifact '{name}' still needs revision after {revisions} revisions (limit {limit})"
        )


class StagnationError(CurationError):
    """Two consecutive review rounds raised the same factual complaints."""

    def __init__(self, name: str, version: int, descriptions: frozenset[str]) -> None:
        self.name = name
        self.version = version
        self.descriptions = descriptions
        super().__init__(
            f"Artifact '{name}' v{version} repeats unresolved factual complaints: "
            f"{sorted(descriptions)}"
        )


class RunCancelledError(CurationError):
    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(f"Run cancelled at state boundary '{state}'")
