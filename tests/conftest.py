"""Shared fixtures for Serene Arcade tests."""

from datetime import datetime

import pytest

from serene_arcade.models import Difficulty, GameType
from serene_arcade.storage import LocalStore, ProgressStore
from serene_arcade.tracker import ProgressTracker

FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, 678901)


@pytest.fixture
def local_store(tmp_path):
    """Key-value store in a temporary directory."""
    return LocalStore(tmp_path)


@pytest.fixture
def store(local_store):
    """Progress gateway over the temporary store."""
    return ProgressStore(local_store)


@pytest.fixture
def tracker(store):
    """Tracker with a fixed clock, loaded from an empty store."""
    return ProgressTracker(store, clock=lambda: FIXED_NOW)


def complete_levels(tracker, count, score=100):
    """Complete `count` distinct levels, game by game, tier by tier, in order."""
    done = 0
    for game in GameType:
        for difficulty in Difficulty:
            for level in range(1, difficulty.level_count + 1):
                if done == count:
                    return
                tracker.complete_level(game, difficulty, level, score)
                done += 1


@pytest.fixture
def fixed_now():
    """Timestamp the tracker fixture stamps unlocks with."""
    return FIXED_NOW


@pytest.fixture(name="complete_levels")
def complete_levels_fixture():
    return complete_levels
