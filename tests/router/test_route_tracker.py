"""Tests for NavigationStateMachine: start, announce, advance, complete.

Offsets: 5e-5° latitude ≈ 5.6 m (inside the 15 m threshold),
2e-4° latitude ≈ 22 m (outside).
"""

import pytest

from facility_nav.router.errors import InvalidInputError
from facility_nav.router.models import (
    AnnounceEvent,
    Instruction,
    NavigatorState,
    NavStatus,
    Point,
    Route,
)
from facility_nav.router.nav_config import NavConfig
from facility_nav.router.route_tracker import NavigationStateMachine


def near(p: Point, dlat: float = 5e-5) -> Point:
    return Point(p.lat + dlat, p.lng)


class TestStart:
    def test_tracking_with_instructions(self, machine, single_turn_route, points_abc) -> None:
        a, _, _ = points_abc
        state = machine.start(single_turn_route, a)
        assert state.status == NavStatus.TRACKING
        assert state.cursor_index == 0
        assert state.last_known_position == a

    def test_completed_without_instructions(self, machine, points_abc) -> None:
        a, b, _ = points_abc
        state = machine.start(Route(coordinates=(a, b)), a)
        assert state.status == NavStatus.COMPLETED

    def test_empty_coordinates_rejected(self, machine, points_abc) -> None:
        with pytest.raises(InvalidInputError):
            machine.start(Route(coordinates=(), instructions=(Instruction(0, "go"),)), points_abc[0])


class TestSingleTurn:
    """coordinates = [A, B, C], instructions = [{anchor: 1, text: "turn left"}]."""

    def test_far_position_changes_nothing(self, machine, single_turn_route, points_abc) -> None:
        a, _, _ = points_abc
        state = machine.start(single_turn_route, a)
        state, events = machine.update(state, a)
        assert events == []
        assert state.cursor_index == 0
        assert state.status == NavStatus.TRACKING
        assert 100 < state.distance_to_anchor_m < 120

    def test_near_anchor_announces_and_completes(self, machine, single_turn_route, points_abc) -> None:
        a, b, _ = points_abc
        state = machine.start(single_turn_route, a)
        state, _ = machine.update(state, a)
        state, events = machine.update(state, near(b))
        assert events == [AnnounceEvent(text="turn left", instruction_index=0)]
        assert state.cursor_index == 1
        assert state.status == NavStatus.COMPLETED

    def test_updates_after_completion_are_no_ops(self, machine, single_turn_route, points_abc) -> None:
        a, b, c = points_abc
        state = machine.start(single_turn_route, a)
        state, _ = machine.update(state, near(b))

        for pos in (b, c, a, Point(float("nan"), 0.0)):
            state, events = machine.update(state, pos)
            assert events == []
            assert state.cursor_index == 1
            assert state.status == NavStatus.COMPLETED
            assert state.last_known_position is pos


class TestAdvancing:
    def test_threshold_is_strict_and_at_15_m(self, machine, single_turn_route, points_abc) -> None:
        a, b, _ = points_abc
        state = machine.start(single_turn_route, a)
        state, events = machine.update(state, near(b, 2e-4))
        assert events == []
        state, events = machine.update(state, near(b, 1.2e-4))   # ~13.3 m
        assert len(events) == 1

    def test_configurable_threshold(self, single_turn_route, points_abc) -> None:
        a, b, _ = points_abc
        wide = NavigationStateMachine(NavConfig(proximity_threshold_m=30.0))
        state = wide.start(single_turn_route, a)
        _, events = wide.update(state, near(b, 2e-4))   # ~22 m
        assert len(events) == 1

    def test_one_announcement_per_update(self, machine, points_abc) -> None:
        """Two instructions on the same anchor need two updates."""
        a, b, _ = points_abc
        route = Route(
            coordinates=(a, b),
            instructions=(Instruction(1, "Cross the street"), Instruction(1, "Enter the shelter")),
        )
        state = machine.start(route, a)

        state, events = machine.update(state, b)
        assert [e.text for e in events] == ["Cross the street"]
        assert state.status == NavStatus.TRACKING

        state, events = machine.update(state, b)
        assert [e.text for e in events] == ["Enter the shelter"]
        assert state.status == NavStatus.COMPLETED

    def test_cursor_never_decreases(self, machine, three_step_route, points_abc) -> None:
        a, b, c = points_abc
        walk = [a, near(a), a, b, a, near(b), c, b, near(c), a, c]
        state = machine.start(three_step_route, a)
        cursors = [state.cursor_index]
        for pos in walk:
            state, _ = machine.update(state, pos)
            cursors.append(state.cursor_index)
        assert cursors == sorted(cursors)
        assert state.status == NavStatus.COMPLETED
        assert cursors[-1] == 3

    def test_announcements_in_route_order(self, machine, three_step_route, points_abc) -> None:
        a, b, c = points_abc
        state = machine.start(three_step_route, a)
        spoken = []
        for pos in (a, b, c):
            state, events = machine.update(state, pos)
            spoken += [e.text for e in events]
        assert spoken == ["Head north", "Continue straight", "You have reached your destination."]

    def test_out_of_range_anchor_falls_back_to_route_start(self, machine, points_abc) -> None:
        a, b, _ = points_abc
        route = Route(coordinates=(a, b), instructions=(Instruction(7, "Start walking"),))
        state = machine.start(route, b)
        state, events = machine.update(state, b)
        assert events == []
        state, events = machine.update(state, a)
        assert [e.text for e in events] == ["Start walking"]


class TestTotality:
    @pytest.mark.parametrize("garbage", [
        Point(float("nan"), 30.52),
        Point(50.45, float("inf")),
        Point(400.0, -900.0),
    ])
    def test_garbage_position_triggers_nothing(self, machine, single_turn_route, points_abc, garbage) -> None:
        state = machine.start(single_turn_route, points_abc[0])
        state, events = machine.update(state, garbage)
        assert events == []
        assert state.cursor_index == 0
        assert state.status == NavStatus.TRACKING

    def test_not_started_state_is_inert(self, machine, single_turn_route, points_abc) -> None:
        a, b, _ = points_abc
        state = NavigatorState(route=single_turn_route, cursor_index=0, last_known_position=a)
        state, events = machine.update(state, b)
        assert events == []
        assert state.status == NavStatus.NOT_STARTED
        assert state.last_known_position == b

    def test_states_are_not_mutated(self, machine, single_turn_route, points_abc) -> None:
        a, b, _ = points_abc
        before = machine.start(single_turn_route, a)
        after, _ = machine.update(before, b)
        assert before.cursor_index == 0
        assert after.cursor_index == 1
