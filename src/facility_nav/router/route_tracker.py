# route_tracker.py
# State machine that tracks a user's position against an active route.
# Call start() once, then feed every position fix through update().

import logging
import math
from dataclasses import replace
from typing import List, Optional, Tuple

from .errors import InvalidInputError
from .geo_utils import haversine_distance
from .models import AnnounceEvent, NavigatorState, NavStatus, Point, Route
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


class NavigationStateMachine:
    """
    Turns position fixes into instruction announcements.

    NOT_STARTED → TRACKING → COMPLETED. The machine holds no session data:
    each call takes a NavigatorState and returns the next one, so one
    machine can drive any number of sessions.

    Usage:
        machine = NavigationStateMachine(config)
        state = machine.start(route, current_position)

        # Inside the position loop:
        state, events = machine.update(state, position)
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def start(self, route: Route, initial_position: Point) -> NavigatorState:
        """
        Begin tracking a route.

        Raises:
            InvalidInputError: If the route has no coordinates.
        """
        if not route.coordinates:
            raise InvalidInputError("Route has no coordinates.")

        status = NavStatus.TRACKING if route.instructions else NavStatus.COMPLETED
        logger.info(
            f"[Tracker] Route loaded: {len(route.coordinates)} points, "
            f"{len(route.instructions)} instructions."
        )
        return NavigatorState(
            route=route,
            cursor_index=0,
            last_known_position=initial_position,
            status=status,
        )

    # ------------------------------------------------------------------
    # Core method: call on every position fix
    # ------------------------------------------------------------------

    def update(
        self, state: NavigatorState, position: Point
    ) -> Tuple[NavigatorState, List[AnnounceEvent]]:
        """
        Record a position and announce the current instruction if its anchor is near.

        Never raises: positions that are not finite simply trigger nothing.

        Returns:
            (next_state, events); events holds at most one AnnounceEvent.
        """
        if state.status != NavStatus.TRACKING:
            return replace(state, last_known_position=position), []

        route = state.route
        instruction = route.instructions[state.cursor_index]
        idx = instruction.anchor_coordinate_index
        if not 0 <= idx < len(route.coordinates):
            logger.warning(
                f"[Tracker] Instruction #{state.cursor_index} anchors at {idx}, "
                f"outside {len(route.coordinates)} coordinates; using the route start."
            )
        anchor = route.anchor_of(instruction)

        dist = haversine_distance(position.lat, position.lng, anchor.lat, anchor.lng)

        if dist < self.config.proximity_threshold_m:
            event = AnnounceEvent(text=instruction.text, instruction_index=state.cursor_index)
            cursor = state.cursor_index + 1
            status = NavStatus.COMPLETED if cursor == len(route.instructions) else NavStatus.TRACKING
            logger.info(f"[Tracker] Instruction #{state.cursor_index} reached ({dist:.1f} m): {instruction.text}")
            return replace(
                state,
                cursor_index=cursor,
                last_known_position=position,
                status=status,
                distance_to_anchor_m=dist,
            ), [event]

        return replace(
            state,
            last_known_position=position,
            distance_to_anchor_m=None if math.isnan(dist) else dist,
        ), []
