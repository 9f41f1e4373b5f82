"""Shared pytest fixtures for facility_nav tests.

COORDINATE SYSTEM:
    Tests walk around central Kyiv (lat ~50.45). At this latitude 1e-4 degrees
    of latitude is ~11.1 m and 1e-4 degrees of longitude is ~7.1 m, so a
    5e-5 latitude offset puts a position ~5.6 m from an anchor (inside the
    15 m announce threshold) and 2e-4 puts it ~22 m away (outside).
"""

import pytest

from facility_nav.router.models import Facility, Instruction, Point, Route
from facility_nav.router.nav_config import NavConfig
from facility_nav.router.route_tracker import NavigationStateMachine


# =============================================================================
# POINTS
# =============================================================================

A = Point(50.4500, 30.5200)
B = Point(50.4510, 30.5200)   # ~111 m north of A
C = Point(50.4520, 30.5200)   # ~111 m north of B


def north_of(p: Point, dlat: float) -> Point:
    return Point(p.lat + dlat, p.lng)


@pytest.fixture
def points_abc():
    return A, B, C


@pytest.fixture
def single_turn_route() -> Route:
    """[A, B, C] with one instruction anchored at B."""
    return Route(coordinates=(A, B, C), instructions=(Instruction(1, "turn left"),))


@pytest.fixture
def three_step_route() -> Route:
    return Route(
        coordinates=(A, B, C),
        instructions=(
            Instruction(0, "Head north"),
            Instruction(1, "Continue straight"),
            Instruction(2, "You have reached your destination."),
        ),
    )


@pytest.fixture
def machine() -> NavigationStateMachine:
    return NavigationStateMachine(NavConfig())


# =============================================================================
# FACILITIES
# =============================================================================


@pytest.fixture
def facilities():
    """Five shelters strung north of A, ~111 m apart, ids s0..s4."""
    return [
        Facility(
            id=f"s{i}",
            point=Point(A.lat + 0.001 * i, A.lng + 0.0005),
            attributes={"title": f"Shelter {i}", "kind": "shelter", "district": "Shevchenkivskyi"},
        )
        for i in range(5)
    ]


@pytest.fixture
def config(tmp_path) -> NavConfig:
    return NavConfig(log_dir=str(tmp_path / "logs"), replay_interval_ms=0)
