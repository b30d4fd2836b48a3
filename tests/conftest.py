"""
Shared test fixtures for disc geometry and texture synthesis tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fortunes import DEFAULT_FORTUNES
from slice_builder import DiscConfig


@pytest.fixture
def rng():
    """Seeded generator so noisy textures are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def disc_config():
    """The reference eight-slice disc."""
    return DiscConfig(
        slice_count=8,
        radius=6.0,
        height=0.8,
        gap_deg=1.0,
        edge_dip=0.2,
        wobble_amp=0.05,
    )


@pytest.fixture
def flat_disc_config():
    """Disc with no wobble so the edge dip can be measured exactly."""
    return DiscConfig(
        slice_count=6,
        radius=5.0,
        height=1.0,
        gap_deg=2.0,
        edge_dip=0.3,
        wobble_amp=0.0,
    )


@pytest.fixture
def fortunes():
    return list(DEFAULT_FORTUNES)


@pytest.fixture
def ramp_height():
    """64x64 height field rising left to right from 0 to 252."""
    row = (np.arange(64) * 4).astype(np.uint8)
    return np.tile(row, (64, 1))
