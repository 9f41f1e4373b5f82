# models.py
# Shared data structures and enums used across all modules.

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import MatrixMismatchError
from .geo_utils import is_valid_coordinate


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    """Immutable WGS-84 coordinate in decimal degrees."""
    lat: float
    lng: float

    @property
    def is_valid(self) -> bool:
        return is_valid_coordinate(self.lat, self.lng)

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}

    @staticmethod
    def from_dict(d: dict) -> "Point":
        lng = d["lng"] if "lng" in d else d["lon"]
        return Point(float(d["lat"]), float(lng))


# ---------------------------------------------------------------------------
# Facility dataset
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Facility:
    """A point-of-interest record. Attributes are carried, never read."""
    id: Any
    point: Point
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)


# ---------------------------------------------------------------------------
# Travel-time matrix
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TravelTimeMatrix:
    """
    One-to-many travel durations from a single origin.

    durations[i] is the time in seconds to destinations[i]; None means the
    service could not reach that destination.
    """
    origin: Point
    destinations: Tuple[Point, ...]
    durations: Tuple[Optional[float], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "destinations", tuple(self.destinations))
        object.__setattr__(self, "durations", tuple(self.durations))
        if len(self.durations) != len(self.destinations):
            raise MatrixMismatchError(
                f"{len(self.durations)} durations for {len(self.destinations)} destinations"
            )


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Instruction:
    """A maneuver announced when the user gets close to its anchor coordinate."""
    anchor_coordinate_index: int
    text: str


@dataclass(frozen=True)
class Route:
    """Dense path geometry plus the sparse instructions anchored on it."""
    coordinates: Tuple[Point, ...]
    instructions: Tuple[Instruction, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "coordinates", tuple(self.coordinates))
        object.__setattr__(self, "instructions", tuple(self.instructions))

    def anchor_of(self, instruction: Instruction) -> Point:
        idx = instruction.anchor_coordinate_index
        if 0 <= idx < len(self.coordinates):
            return self.coordinates[idx]
        return self.coordinates[0]

    def to_dict(self) -> dict:
        return {
            "coordinates": [p.to_dict() for p in self.coordinates],
            "instructions": [
                {"index": i.anchor_coordinate_index, "text": i.text}
                for i in self.instructions
            ],
        }

    @staticmethod
    def from_dict(d: dict) -> "Route":
        return Route(
            coordinates=tuple(Point.from_dict(c) for c in d["coordinates"]),
            instructions=tuple(
                Instruction(int(i["index"]), str(i["text"]))
                for i in d.get("instructions", [])
            ),
        )


# ---------------------------------------------------------------------------
# Navigator state
# ---------------------------------------------------------------------------

class NavStatus(Enum):
    NOT_STARTED = "not_started"
    TRACKING    = "tracking"
    COMPLETED   = "completed"


@dataclass(frozen=True)
class AnnounceEvent:
    """Guidance text the speech sink should utter once."""
    text: str
    instruction_index: int


@dataclass(frozen=True)
class NavigatorState:
    """Progress of one navigation session. Replaced, never mutated."""
    route: Route
    cursor_index: int
    last_known_position: Point
    status: NavStatus = NavStatus.NOT_STARTED
    distance_to_anchor_m: Optional[float] = None

    @property
    def is_completed(self) -> bool:
        return self.status == NavStatus.COMPLETED

    @property
    def current_instruction(self) -> Optional[Instruction]:
        if 0 <= self.cursor_index < len(self.route.instructions):
            return self.route.instructions[self.cursor_index]
        return None

    @property
    def remaining_instructions(self) -> int:
        return max(0, len(self.route.instructions) - self.cursor_index)


# ---------------------------------------------------------------------------
# Navigation status (facade level)
# ---------------------------------------------------------------------------

class RouteStatus(Enum):
    INACTIVE       = "inactive"
    PROGRESSING    = "progressing"
    WAYPOINT_HIT   = "waypoint_hit"
    OFF_ROUTE      = "off_route"
    FINISHED       = "finished"


@dataclass
class ProgressResult:
    """Returned by NavigationSystem.update() for every position fix."""
    status: RouteStatus
    message: str
    distance_to_next: Optional[float] = None   # metres
    current_instruction: Optional[Instruction] = None
    events: List[AnnounceEvent] = field(default_factory=list)

