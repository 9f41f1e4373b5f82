# router/__init__.py
# Navigation core: proximity lookup, destination choice, route tracking.

from .candidate_selector import CandidateSelector
from .errors import (
    DatasetUnavailableError,
    InvalidInputError,
    MatrixMismatchError,
    NavigationError,
    NoCandidatesError,
)
from .models import (
    AnnounceEvent,
    Facility,
    Instruction,
    NavigatorState,
    NavStatus,
    Point,
    ProgressResult,
    Route,
    RouteStatus,
    TravelTimeMatrix,
)
from .nav_config import NavConfig, PROXIMITY_THRESHOLD_METERS
from .navigator import NavigationSystem
from .replay import PositionReplayDriver, ReplayHandle
from .route_tracker import NavigationStateMachine
from .spatial_index import SpatialIndex

__all__ = [
    "AnnounceEvent",
    "CandidateSelector",
    "DatasetUnavailableError",
    "Facility",
    "Instruction",
    "InvalidInputError",
    "MatrixMismatchError",
    "NavConfig",
    "NavigationError",
    "NavigationStateMachine",
    "NavigationSystem",
    "NavigatorState",
    "NavStatus",
    "NoCandidatesError",
    "Point",
    "PositionReplayDriver",
    "ProgressResult",
    "PROXIMITY_THRESHOLD_METERS",
    "ReplayHandle",
    "Route",
    "RouteStatus",
    "SpatialIndex",
    "TravelTimeMatrix",
]
