"""
Pytest configuration for knowledgecurator tests.

Shared fixtures for store, policy and scripted worker tests.
"""
import sys
from pathlib import Path

import pytest

# Add repository root to path so `tests.factories` resolves
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))

from knowledgecurator.evals import ReviewGate, ReviewPolicy
from knowledgecurator.pipeline.events import EventEmitter
from knowledgecurator.store import ArtifactStore
from tests.factories import ScriptedCritic, ScriptedResearcher, StaticSynthesizer

# --- Test Constants ---
SUBJECT = "Graph Theory"
SUBJECT_KEY = "graph-theory"


@pytest.fixture
def store() -> ArtifactStore:
    """Fresh, empty artifact store."""
    return ArtifactStore()


@pytest.fixture
def policy() -> ReviewPolicy:
    """Default review policy (2 stylistic complaints tolerated)."""
    return ReviewPolicy()


@pytest.fixture
def gate(policy: ReviewPolicy) -> ReviewGate:
    return ReviewGate(policy)


@pytest.fixture
def emitter() -> EventEmitter:
    return EventEmitter()


@pytest.fixture
def researcher() -> ScriptedResearcher:
    return ScriptedResearcher()


@pytest.fixture
def critic() -> ScriptedCritic:
    """Critic with no complaints for anything."""
    return ScriptedCritic()


@pytest.fixture
def synthesizer() -> StaticSynthesizer:
    """Synthesizer that expands into no concepts."""
    return StaticSynthesizer()


@pytest.fixture
def runs_dir(tmp_path: Path) -> Path:
    """Temporary runs directory for publication tests."""
    runs = tmp_path / "data" / "runs"
    runs.mkdir(parents=True, exist_ok=True)
    return runs
