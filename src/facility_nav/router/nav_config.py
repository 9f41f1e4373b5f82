# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PROXIMITY_THRESHOLD_METERS: float = 15.0   # pedestrian trigger distance
DEFAULT_CANDIDATE_COUNT: int = 5
DEFAULT_REPLAY_INTERVAL_MS: int = 1000


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Destination lookup
    candidate_count: int = DEFAULT_CANDIDATE_COUNT

    # Progress tracking
    proximity_threshold_m: float = PROXIMITY_THRESHOLD_METERS
    off_route_threshold_m: float = 40.0    # farther than this from every route point → off-route

    # Replay
    replay_interval_ms: int = DEFAULT_REPLAY_INTERVAL_MS

    # Facility dataset cache
    facility_cache_path: str = "facilities_cache.json"
    facility_cache_max_age_s: float = 24 * 3600.0

    # Speech
    tts_rate: int = 150

    # Logging
    log_dir: str = "."                     # directory for saved JSON files
    route_filename: str = "active_route.json"
    session_filename: str = "nav_session.jsonl"

    @property
    def route_filepath(self) -> str:
        return os.path.join(self.log_dir, self.route_filename)

    @property
    def session_filepath(self) -> str:
        return os.path.join(self.log_dir, self.session_filename)
