# navigator.py
# Public entry point for the navigation system.
# Owns the position loop; the decisions live in the specialist modules.

import logging
import threading
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .candidate_selector import CandidateSelector
from .errors import NavigationError
from .geo_utils import haversine_distances
from .models import (
    AnnounceEvent,
    Facility,
    NavigatorState,
    Point,
    ProgressResult,
    Route,
    RouteStatus,
    TravelTimeMatrix,
)
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .replay import PositionReplayDriver, ReplayHandle
from .route_tracker import NavigationStateMachine
from .spatial_index import SpatialIndex

logger = logging.getLogger(__name__)

# External collaborators: travel-time and routing services.
MatrixProvider = Callable[[Point, List[Point]], TravelTimeMatrix]
RouteProvider = Callable[[Point, Point], Route]


class NavigationSystem:
    """
    High-level navigation facade.

    Typical lifecycle:
        nav = NavigationSystem(load_facilities("shelters.csv"), speech=SpeechSink())
        ok, msg, shelter = nav.navigate_to_nearest(my_position, fetch_matrix, fetch_route)

        # GPS loop:
        result = nav.update(Point(lat, lng))

    Replay instead of a live sensor:
        handle = nav.run_replay(load_track("walk.csv"))

    Args:
        facilities: Dataset snapshot; indexed once here.
        config:     Optional NavConfig; defaults to NavConfig().
        speech:     Callable receiving each announcement text.
        nav_logger: Optional NavLogger; one is created from config if omitted.
    """

    def __init__(
        self,
        facilities: Sequence[Facility],
        config: Optional[NavConfig] = None,
        speech: Optional[Callable[[str], None]] = None,
        nav_logger: Optional[NavLogger] = None,
    ) -> None:
        self.config = config or NavConfig()
        self._facilities: List[Facility] = list(facilities)

        # Specialist modules
        self._index = SpatialIndex.build([f.point for f in self._facilities])
        self._selector = CandidateSelector()
        self._machine = NavigationStateMachine(self.config)
        self._replayer = PositionReplayDriver()
        self._logger = nav_logger or NavLogger(self.config)
        self._speech = speech

        self._state: Optional[NavigatorState] = None
        self._route_lats: Optional[np.ndarray] = None
        self._route_lngs: Optional[np.ndarray] = None
        self._replay: Optional[ReplayHandle] = None
        self._lock = threading.Lock()       # one position at a time

    # ------------------------------------------------------------------
    # Destination lookup
    # ------------------------------------------------------------------

    def find_candidates(self, position: Point, k: Optional[int] = None) -> List[Facility]:
        """The k facilities closest to position by great-circle distance, nearest first."""
        k = self.config.candidate_count if k is None else k
        return [self._facilities[i] for i in self._index.k_nearest(position, k)]

    def find_nearby(self, position: Point, radius_km: float) -> List[Facility]:
        """All facilities within radius_km, in dataset order (navigation not started)."""
        return [self._facilities[i] for i in self._index.within_radius(position, radius_km)]

    def choose_destination(
        self,
        position: Point,
        candidates: Sequence[Facility],
        matrix: TravelTimeMatrix,
    ) -> Facility:
        """Candidate with the shortest travel time; matrix must follow candidate order."""
        best = self._selector.resolve(position, [c.point for c in candidates], matrix)
        return candidates[best]

    def navigate_to_nearest(
        self,
        position: Point,
        matrix_provider: MatrixProvider,
        route_provider: RouteProvider,
        k: Optional[int] = None,
    ) -> Tuple[bool, str, Optional[Facility]]:
        """
        Find the quickest-to-reach facility and start navigating to it.

        Args:
            position:        Current position.
            matrix_provider: Fetches travel times from position to the candidate
                             points, returned in the order given.
            route_provider:  Fetches a route from position to the destination.
            k:               Candidate count; defaults to config.candidate_count.

        Returns:
            (success, message, facility); facility is None on failure.
        """
        try:
            candidates = self.find_candidates(position, k)
            if not candidates:
                return False, "No facilities to navigate to.", None

            matrix = matrix_provider(position, [c.point for c in candidates])
            facility = self.choose_destination(position, candidates, matrix)
            logger.info(f"[Nav] Destination: {facility.id} at {facility.point}")
            print(f"[Nav] Destination found: {facility.attributes.get('title') or facility.id}")

            route = route_provider(position, facility.point)
            result = self.start_navigation(route, position)
        except NavigationError as e:
            logger.warning(f"[Nav] Could not start navigation: {e}")
            return False, str(e), None

        return True, result.message, facility

    # ------------------------------------------------------------------
    # Navigation control
    # ------------------------------------------------------------------

    def start_navigation(self, route: Route, position: Point) -> ProgressResult:
        """
        Begin tracking a route from the current position.

        Raises:
            InvalidInputError: If the route has no coordinates.
        """
        with self._lock:
            self._state = self._machine.start(route, position)
            self._route_lats = np.array([p.lat for p in route.coordinates], dtype=float)
            self._route_lngs = np.array([p.lng for p in route.coordinates], dtype=float)
            state = self._state

        self._logger.save_route(route)

        if state.is_completed:
            msg = "Route has no instructions. You are at your destination."
            print(f"[Nav] {msg}")
            return ProgressResult(status=RouteStatus.FINISHED, message=msg)

        msg = f"Route ready. {len(route.instructions)} instructions."
        logger.info(f"[Nav] {msg} First: {state.current_instruction.text}")
        print(f"[Nav] {msg}")
        return ProgressResult(
            status=RouteStatus.PROGRESSING,
            message=msg,
            current_instruction=state.current_instruction,
        )

    def stop_navigation(self) -> None:
        """Forcibly end the current navigation session."""
        if self._replay is not None:
            self._replay.cancel()
            self._replay = None
        with self._lock:
            self._state = None
        logger.info("[Nav] Navigation stopped by user.")

    # ------------------------------------------------------------------
    # Position update: call this on every position fix
    # ------------------------------------------------------------------

    def update(self, position: Point) -> ProgressResult:
        """
        Process a new position fix, speak any announcement and log the result.

        Args:
            position: Current geographic coordinate.

        Returns:
            ProgressResult containing RouteStatus, message and the announce events.
        """
        with self._lock:
            if self._state is None:
                return ProgressResult(
                    status=RouteStatus.INACTIVE,
                    message="Navigation is not active.",
                )
            was_completed = self._state.is_completed
            self._state, events = self._machine.update(self._state, position)
            result = self._progress(was_completed, events, position)

        for event in events:
            self._announce(event)
        self._logger.log_event(result, position)
        return result

    def run_replay(self, positions: Sequence[Point], interval_ms: Optional[int] = None) -> ReplayHandle:
        """Feed recorded positions through update() instead of a live sensor."""
        if self._replay is not None:
            self._replay.cancel()
        interval = self.config.replay_interval_ms if interval_ms is None else interval_ms
        self._replay = self._replayer.replay(positions, interval, self.update)
        return self._replay

    # ------------------------------------------------------------------
    # Convenience read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> Optional[NavigatorState]:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is not None and not self._state.is_completed

    @property
    def remaining_steps(self) -> int:
        return self._state.remaining_instructions if self._state else 0

    @property
    def facility_count(self) -> int:
        return len(self._facilities)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _announce(self, event: AnnounceEvent) -> None:
        print(f"[Nav] {event.text}")
        if self._speech is not None:
            self._speech(event.text)

    def _progress(
        self, was_completed: bool, events: List[AnnounceEvent], position: Point
    ) -> ProgressResult:
        state = self._state

        if was_completed:
            return ProgressResult(
                status=RouteStatus.FINISHED,
                message="You have reached your destination.",
            )

        if events:
            if state.is_completed:
                return ProgressResult(
                    status=RouteStatus.FINISHED,
                    message=events[-1].text,
                    distance_to_next=0.0,
                    events=events,
                )
            return ProgressResult(
                status=RouteStatus.WAYPOINT_HIT,
                message=events[-1].text,
                distance_to_next=0.0,
                current_instruction=state.current_instruction,
                events=events,
            )

        dist = state.distance_to_anchor_m
        if dist is None:
            return ProgressResult(
                status=RouteStatus.PROGRESSING,
                message="Waiting for a usable position fix.",
                current_instruction=state.current_instruction,
            )

        if self._off_route(position):
            return ProgressResult(
                status=RouteStatus.OFF_ROUTE,
                message="You are off the route. Recalculating may be needed.",
                distance_to_next=dist,
                current_instruction=state.current_instruction,
            )

        return ProgressResult(
            status=RouteStatus.PROGRESSING,
            message=f"{int(dist)} m to next instruction.",
            distance_to_next=dist,
            current_instruction=state.current_instruction,
        )

    def _off_route(self, position: Point) -> bool:
        if not position.is_valid or self._route_lats is None:
            return False
        dists = haversine_distances(position.lat, position.lng, self._route_lats, self._route_lngs)
        return bool(dists.min() > self.config.off_route_threshold_m)
