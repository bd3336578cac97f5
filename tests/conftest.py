"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from feasibility.calculations import FormulaRegistry
from feasibility.models import FeasibilitySnapshot
from tests.fixtures.scenarios import (
    get_funded_snapshot,
    get_land_placement_snapshot,
    get_sample_rows,
    get_sample_snapshot,
)


@pytest.fixture
def sample_snapshot():
    """Four-townhouse scenario without debt."""
    return get_sample_snapshot()


@pytest.fixture
def funded_snapshot():
    """Sample scenario with an auto-sized facility, a loan and equity."""
    return get_funded_snapshot()


@pytest.fixture
def land_snapshot():
    """Single lot with deposit, one progress payment and settlement."""
    return get_land_placement_snapshot()


@pytest.fixture
def empty_snapshot():
    """Scenario with no lots, line items or sales."""
    return FeasibilitySnapshot()


@pytest.fixture
def sample_rows():
    """Raw row dictionaries as loaded by the persistence layer."""
    return get_sample_rows()


@pytest.fixture(autouse=True)
def fresh_registry():
    """Tests that register formulas must not leak them into other tests."""
    yield
    FormulaRegistry.reset()
