"""
Pytest fixtures for the Hex Flower Engine test suite.

Provides engines wired to deterministic collaborators, ready-made flowers
and a clean run log for every test.
"""

import pytest

from hexflower.data_models import DiceRoller
from hexflower.navigation import (
    BoundaryPolicy,
    EngineConfig,
    FlowerOptions,
    HexFlowerEngine,
)
from hexflower.observability import reset_run_log
from hexflower.persistence import InMemoryFlowerStore

from tests.helpers import EventRecorder, ScriptedRollProvider, TickClock


# =============================================================================
# OBSERVABILITY FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def run_log():
    """Reset the global run log around every test."""
    log = reset_run_log()
    log.resume()
    yield log
    log.reset()


# =============================================================================
# COLLABORATOR FIXTURES
# =============================================================================


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    return DiceRoller(seed=42)


@pytest.fixture
def roll_provider():
    """Scripted roll provider; queue totals before navigating."""
    return ScriptedRollProvider()


@pytest.fixture
def store():
    return InMemoryFlowerStore()


@pytest.fixture
def recorder():
    return EventRecorder()


# =============================================================================
# ENGINE FIXTURES
# =============================================================================


@pytest.fixture
def engine(roll_provider, store, run_log, recorder):
    """Bounded engine with scripted rolls and in-memory persistence."""
    engine = HexFlowerEngine(
        config=EngineConfig(),
        roll_provider=roll_provider,
        store=store,
        run_log=run_log,
        clock=TickClock(),
    )
    engine.subscribe(recorder)
    return engine


@pytest.fixture
def wrapping_engine(roll_provider, store, run_log, recorder):
    """Engine with antipodal edge wrapping enabled."""
    engine = HexFlowerEngine(
        config=EngineConfig(boundary_policy=BoundaryPolicy.WRAPPING),
        roll_provider=roll_provider,
        store=store,
        run_log=run_log,
        clock=TickClock(),
    )
    engine.subscribe(recorder)
    return engine


@pytest.fixture
def flower(engine, recorder):
    """Radius 2 flower on the bounded engine; creation event cleared."""
    flower = engine.create(FlowerOptions(name="Weather", radius=2))
    recorder.clear()
    return flower


@pytest.fixture
def small_flower(engine, recorder):
    """Radius 1 flower on the bounded engine; creation event cleared."""
    flower = engine.create(FlowerOptions(name="Small", radius=1))
    recorder.clear()
    return flower
