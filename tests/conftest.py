"""
tests/conftest.py - Test Fixtures

Pytest fixtures for tray network and cable routing tests.
"""

import pytest
from typing import List

from trayroute.config import LayoutConfig
from trayroute.schema.segment import Segment
from trayroute.schema.cable import Cable
from trayroute.schema.spacing import SpacingTable
from trayroute.network.builder import NetworkBuilder, NetworkResult


# =============================================================================
# Segment Layouts
# =============================================================================

def make_segment(tag: str, end1, end2, width: float = 0.3, **kwargs) -> Segment:
    """Segment with a stable uid so tests can refer to it by tag."""
    return Segment(end1=end1, end2=end2, width=width, tag=tag, uid=tag, **kwargs)


@pytest.fixture
def segment():
    """Factory for segments with stable uids."""
    return make_segment


@pytest.fixture
def config() -> LayoutConfig:
    """Default configuration."""
    return LayoutConfig()


@pytest.fixture
def isolated_segment() -> List[Segment]:
    """Single tray with no neighbours."""
    return [make_segment("S1", (0, 0, 0), (10, 0, 0))]


@pytest.fixture
def bend_segments() -> List[Segment]:
    """Two trays meeting at a right angle at (5, 0, 0)."""
    return [
        make_segment("S1", (0, 0, 0), (5, 0, 0)),
        make_segment("S2", (5, 0, 0), (5, 5, 0)),
    ]


@pytest.fixture
def tee_segments() -> List[Segment]:
    """Three trays meeting at the origin."""
    return [
        make_segment("S1", (-5, 0, 0), (0, 0, 0)),
        make_segment("S2", (0, 0, 0), (5, 0, 0)),
        make_segment("S3", (0, 0, 0), (0, 5, 0)),
    ]


@pytest.fixture
def cross_segments() -> List[Segment]:
    """Two trays crossing at the origin."""
    return [
        make_segment("S1", (-5, 0, 0), (5, 0, 0)),
        make_segment("S2", (0, -5, 0), (0, 5, 0)),
    ]


@pytest.fixture
def loop_segments() -> List[Segment]:
    """
    Square loop of side 10 with a rung at x = 5.

    Four bends at the corners, two tees where the rung meets the
    bottom and top runs.
    """
    return [
        make_segment("BOTTOM", (0, 0, 0), (10, 0, 0)),
        make_segment("RIGHT", (10, 0, 0), (10, 10, 0)),
        make_segment("TOP", (10, 10, 0), (0, 10, 0)),
        make_segment("LEFT", (0, 10, 0), (0, 0, 0)),
        make_segment("RUNG", (5, 0, 0), (5, 10, 0)),
    ]


@pytest.fixture
def chain_segments() -> List[Segment]:
    """Three trays in a zig-zag chain."""
    return [
        make_segment("A", (0, 0, 0), (10, 0, 0)),
        make_segment("B", (10, 0, 0), (10, 10, 0)),
        make_segment("C", (10, 10, 0), (20, 10, 0)),
    ]


@pytest.fixture
def build():
    """Build a network from segments with an optional config."""
    def _build(segments: List[Segment], config: LayoutConfig = None, sleeves=None) -> NetworkResult:
        return NetworkBuilder(config).build(segments, sleeves=sleeves)
    return _build


# =============================================================================
# Cables
# =============================================================================

@pytest.fixture
def power_cable() -> Cable:
    return Cable(tag="PWR-001", od=0.05, route_criteria="power",
                 start=(2, -1, 0), goal=(8, 11, 0))


@pytest.fixture
def spacing_table() -> SpacingTable:
    return SpacingTable.from_rows([
        ("power", "power", "1d"),
        ("power", "control", "0.1"),
    ])

