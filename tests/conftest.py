"""
Global pytest configuration and fixtures for dicelang tests

Provides:
- Parsers with default and strict limits
- Deterministic random sources
- Rollers wired to those sources
"""

import random
from typing import Callable, Iterable

import pytest

from dicelang import DiceParser, DiceRoller, SequenceRandomSource


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


# ============================================================================
# Parsers
# ============================================================================

@pytest.fixture
def parser() -> DiceParser:
    """Create a DiceParser with default limits."""
    return DiceParser()


@pytest.fixture
def strict_parser() -> DiceParser:
    """Create a DiceParser with strict limits."""
    return DiceParser(max_dice=5, max_sides=20)


# ============================================================================
# Random Sources
# ============================================================================

@pytest.fixture
def sequence() -> Callable[[Iterable[int]], SequenceRandomSource]:
    """Factory for replay sources: sequence([1, 6, 3, 2])"""
    def _make(values: Iterable[int]) -> SequenceRandomSource:
        return SequenceRandomSource(values)
    return _make


# ============================================================================
# Rollers
# ============================================================================

@pytest.fixture
def roller() -> DiceRoller:
    """Create a DiceRoller with default settings."""
    return DiceRoller()


@pytest.fixture
def seeded_roller() -> DiceRoller:
    """Create a DiceRoller with seeded RNG for deterministic tests."""
    return DiceRoller(rng=random.Random(42))


@pytest.fixture
def replay_roller() -> Callable[..., DiceRoller]:
    """Factory for rollers replaying fixed values: replay_roller([4, 3])"""
    def _make(values: Iterable[int], **config) -> DiceRoller:
        return DiceRoller(config=config, rng=SequenceRandomSource(values))
    return _make
