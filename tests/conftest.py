"""Shared fixtures for challenge sync tests."""

import pytest

from challenge_sync.controller import ChallengeSyncController
from challenge_sync.db import create_local_engine
from challenge_sync.local_store import LocalChallengeStore
from helpers import FakeRemote


@pytest.fixture
def engine(tmp_path):
    """SQLite engine on a temp file."""
    engine = create_local_engine(f"sqlite:///{tmp_path / 'challenges.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> LocalChallengeStore:
    """Opened local store (schema created, no legacy data)."""
    return LocalChallengeStore.open(engine)


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def controller(store, remote) -> ChallengeSyncController:
    return ChallengeSyncController(store, remote)
