"""Tests for the NavigationSystem facade: lookup, selection, the position loop."""

import json

import pytest

from facility_nav.router.models import (
    Instruction,
    Point,
    Route,
    RouteStatus,
    TravelTimeMatrix,
)
from facility_nav.router.navigator import NavigationSystem


class RecordingSpeech:
    def __init__(self) -> None:
        self.spoken = []

    def __call__(self, text: str) -> None:
        self.spoken.append(text)


@pytest.fixture
def speech() -> RecordingSpeech:
    return RecordingSpeech()


@pytest.fixture
def nav(facilities, config, speech) -> NavigationSystem:
    return NavigationSystem(facilities, config=config, speech=speech)


def route_to(destination: Point, start: Point) -> Route:
    mid = Point((start.lat + destination.lat) / 2, (start.lng + destination.lng) / 2)
    return Route(
        coordinates=(start, mid, destination),
        instructions=(
            Instruction(1, "Turn right onto Volodymyrska St"),
            Instruction(2, "You have reached the shelter."),
        ),
    )


class TestLookup:
    def test_candidates_nearest_first(self, nav, facilities, points_abc) -> None:
        a, _, _ = points_abc
        found = nav.find_candidates(a, k=3)
        assert [f.id for f in found] == ["s0", "s1", "s2"]

    def test_default_k_from_config(self, nav, config, points_abc) -> None:
        config.candidate_count = 2
        assert len(nav.find_candidates(points_abc[0])) == 2

    def test_find_nearby(self, nav, points_abc) -> None:
        found = nav.find_nearby(points_abc[0], radius_km=0.25)
        assert [f.id for f in found] == ["s0", "s1", "s2"]

    def test_choose_destination_by_travel_time(self, nav, facilities, points_abc) -> None:
        a, _, _ = points_abc
        candidates = facilities[:3]
        matrix = TravelTimeMatrix(a, [c.point for c in candidates], [600.0, 90.0, 300.0])
        assert nav.choose_destination(a, candidates, matrix).id == "s1"


class TestNavigateToNearest:
    def test_full_pipeline(self, nav, facilities, points_abc) -> None:
        a, _, _ = points_abc
        asked = {}

        def matrix_provider(origin, dests):
            asked["dests"] = list(dests)
            # s2 is quickest although s0 is closest
            durations = [500.0, 400.0, 100.0, 900.0, 950.0][: len(dests)]
            return TravelTimeMatrix(origin, dests, durations)

        def route_provider(origin, destination):
            asked["destination"] = destination
            return route_to(destination, origin)

        ok, msg, facility = nav.navigate_to_nearest(a, matrix_provider, route_provider)

        assert ok
        assert facility.id == "s2"
        assert asked["dests"] == [f.point for f in facilities]
        assert asked["destination"] == facilities[2].point
        assert nav.is_active
        assert nav.remaining_steps == 2

    def test_unreachable_candidates_reported(self, nav, points_abc) -> None:
        a, _, _ = points_abc
        ok, msg, facility = nav.navigate_to_nearest(
            a,
            lambda o, d: TravelTimeMatrix(o, d, [None] * len(d)),
            lambda o, d: pytest.fail("route requested without a destination"),
        )
        assert not ok
        assert facility is None
        assert not nav.is_active


class TestPositionLoop:
    def test_inactive_before_start(self, nav, points_abc) -> None:
        assert nav.update(points_abc[0]).status == RouteStatus.INACTIVE

    def test_progress_hit_and_finish(self, nav, facilities, points_abc, speech) -> None:
        a, _, _ = points_abc
        dest = facilities[2].point
        route = route_to(dest, a)
        start = nav.start_navigation(route, a)
        assert start.status == RouteStatus.PROGRESSING

        result = nav.update(a)
        assert result.status == RouteStatus.PROGRESSING
        assert result.distance_to_next > 100
        assert result.events == []

        result = nav.update(route.coordinates[1])
        assert result.status == RouteStatus.WAYPOINT_HIT
        assert result.message == "Turn right onto Volodymyrska St"
        assert result.current_instruction.text == "You have reached the shelter."

        result = nav.update(dest)
        assert result.status == RouteStatus.FINISHED
        assert not nav.is_active

        result = nav.update(a)
        assert result.status == RouteStatus.FINISHED
        assert result.events == []
        assert speech.spoken == ["Turn right onto Volodymyrska St", "You have reached the shelter."]

    def test_off_route(self, nav, facilities, points_abc) -> None:
        a, _, _ = points_abc
        nav.start_navigation(route_to(facilities[2].point, a), a)
        result = nav.update(Point(a.lat, a.lng - 0.01))    # ~700 m west
        assert result.status == RouteStatus.OFF_ROUTE
        assert nav.state.cursor_index == 0

    def test_garbage_fix_does_not_crash(self, nav, facilities, points_abc) -> None:
        a, _, _ = points_abc
        nav.start_navigation(route_to(facilities[2].point, a), a)
        result = nav.update(Point(float("nan"), float("nan")))
        assert result.status == RouteStatus.PROGRESSING
        assert result.distance_to_next is None

    def test_route_without_instructions_finishes_at_once(self, nav, points_abc) -> None:
        a, b, _ = points_abc
        assert nav.start_navigation(Route(coordinates=(a, b)), a).status == RouteStatus.FINISHED

    def test_stop_navigation(self, nav, facilities, points_abc, caplog) -> None:
        a, _, _ = points_abc
        nav.start_navigation(route_to(facilities[2].point, a), a)
        with caplog.at_level("INFO", logger="facility_nav.router.navigator"):
            nav.stop_navigation()
        assert "[Nav] Navigation stopped by user." in caplog.messages
        assert nav.update(a).status == RouteStatus.INACTIVE
        assert nav.remaining_steps == 0

    def test_session_log_and_route_snapshot(self, nav, facilities, config, points_abc) -> None:
        a, _, _ = points_abc
        nav.start_navigation(route_to(facilities[2].point, a), a)
        nav.update(a)
        nav.update(a)
        with open(config.session_filepath, encoding="utf-8") as f:
            assert len(f.readlines()) == 2
        with open(config.route_filepath, encoding="utf-8") as f:
            assert json.load(f)["instruction_count"] == 2


class TestReplay:
    def test_replayed_walk_completes_route(self, nav, facilities, points_abc, speech) -> None:
        a, _, _ = points_abc
        dest = facilities[2].point
        route = route_to(dest, a)
        nav.start_navigation(route, a)

        handle = nav.run_replay([a, route.coordinates[1], dest, dest], interval_ms=0)
        assert handle.join(timeout=5)
        assert handle.delivered == 4
        assert not nav.is_active
        assert speech.spoken == ["Turn right onto Volodymyrska St", "You have reached the shelter."]
