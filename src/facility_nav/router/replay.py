# replay.py
# Feeds a recorded sequence of positions into a callback at a fixed cadence.
# Stands in for the live GPS source in demos and tests.
#
# Usage:
#   handle = PositionReplayDriver().replay(load_track("walk.csv"), 1000, nav.update)
#   handle.join()

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pandas as pd

from .errors import InvalidInputError
from .models import Point

logger = logging.getLogger(__name__)

PositionCallback = Callable[[Point], None]


class ReplayHandle:
    """
    Controls one running replay.

    cancel() is final: once it returns, the callback will not run again.
    """

    def __init__(self, positions: Sequence[Point], interval_ms: int, on_position: PositionCallback) -> None:
        self._positions = list(positions)
        self._interval_s = interval_ms / 1000.0
        self._on_position = on_position

        self._stop = threading.Event()
        self._lock = threading.RLock()       # held while a callback runs
        self._delivered = 0
        self._thread = threading.Thread(target=self._run, name="position-replay", daemon=True)

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Stop the replay. Waits for an in-flight callback to finish."""
        self._stop.set()
        with self._lock:
            pass
        logger.debug(f"[Replay] Cancelled after {self._delivered} positions.")

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the replay to end. Returns True if it has."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def done(self) -> bool:
        return not self._thread.is_alive()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    @property
    def delivered(self) -> int:
        return self._delivered

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _start(self) -> "ReplayHandle":
        self._thread.start()
        return self

    def _run(self) -> None:
        for i, position in enumerate(self._positions):
            if i > 0 and self._stop.wait(self._interval_s):
                return
            with self._lock:
                if self._stop.is_set():
                    return
                try:
                    self._on_position(position)
                except Exception:
                    logger.exception(f"[Replay] Callback failed on position #{i}; stopping.")
                    self._stop.set()
                    return
                self._delivered += 1
        logger.info(f"[Replay] Finished, {self._delivered} positions delivered.")


class PositionReplayDriver:
    """Deterministic stand-in for a live position source."""

    def replay(
        self,
        positions: Sequence[Point],
        interval_ms: int,
        on_position: PositionCallback,
    ) -> ReplayHandle:
        """
        Deliver each position once, in order, spaced by interval_ms.

        The first position is delivered immediately on a background thread.

        Raises:
            InvalidInputError: If interval_ms is negative.
        """
        if interval_ms < 0:
            raise InvalidInputError(f"interval_ms must be >= 0, got {interval_ms}")
        logger.info(f"[Replay] Replaying {len(positions)} positions every {interval_ms} ms.")
        return ReplayHandle(positions, interval_ms, on_position)._start()


def replay(positions: Sequence[Point], interval_ms: int, on_position: PositionCallback) -> ReplayHandle:
    """Module-level shortcut for PositionReplayDriver().replay()."""
    return PositionReplayDriver().replay(positions, interval_ms, on_position)


# ---------------------------------------------------------------------------
# Recorded tracks
# ---------------------------------------------------------------------------

def load_track(path: str) -> List[Point]:
    """
    Read a recorded track from CSV or JSON.

    The file needs a lat column and a lng (or lon) column; rows keep file order.

    Raises:
        FileNotFoundError: If path does not exist.
        InvalidInputError: If the coordinate columns are missing.
    """
    suffix = Path(path).suffix.lower()
    df = pd.read_json(path) if suffix == ".json" else pd.read_csv(path)

    lng_col = "lng" if "lng" in df.columns else "lon"
    if "lat" not in df.columns or lng_col not in df.columns:
        raise InvalidInputError(f"Track {path} needs lat and lng columns, found {list(df.columns)}")

    track = [Point(float(lat), float(lng)) for lat, lng in zip(df["lat"], df[lng_col])]
    logger.info(f"[Replay] Loaded {len(track)} positions from {path}.")
    return track
