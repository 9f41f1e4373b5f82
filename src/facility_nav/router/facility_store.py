# facility_store.py
# Loads the facility dataset (shelters, pharmacies, ...) into Facility records
# and keeps a local copy of it with an explicit freshness window.
#
# Usage:
#   cache = FacilityCache("facilities_cache.json", max_age_s=86400)
#   facilities = cache.get([fetch_from_registry, fetch_from_mirror])

import logging
import os
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

import pandas as pd

from .errors import DatasetUnavailableError, InvalidInputError
from .models import Facility, Point

logger = logging.getLogger(__name__)

# A fetcher returns raw dataset rows (dicts with at least lat/lng) or raises.
Fetcher = Callable[[], Iterable[dict]]


# ---------------------------------------------------------------------------
# Table → Facility conversion
# ---------------------------------------------------------------------------

def facilities_from_frame(df: pd.DataFrame) -> List[Facility]:
    """
    Convert a dataset table into Facility records.

    lat and lng (or lon) become the point; an "id" column, when present,
    becomes the id, otherwise the row position does. Every other column is
    copied into attributes untouched. Rows are neither validated nor
    deduplicated here.

    Raises:
        InvalidInputError: If the coordinate columns are missing.
    """
    lng_col = "lng" if "lng" in df.columns else "lon"
    if "lat" not in df.columns or lng_col not in df.columns:
        raise InvalidInputError(f"Dataset needs lat and lng columns, found {list(df.columns)}")

    attr_cols = [c for c in df.columns if c not in ("lat", lng_col, "id")]
    # NaN cells become None so attributes stay JSON-friendly.
    attrs = df[attr_cols].astype(object).where(df[attr_cols].notna(), None)

    lats = df["lat"].to_numpy(dtype=float)
    lngs = df[lng_col].to_numpy(dtype=float)
    ids = df["id"].tolist() if "id" in df.columns else range(len(df))

    return [
        Facility(id=fid, point=Point(float(lat), float(lng)), attributes=record)
        for fid, lat, lng, record in zip(ids, lats, lngs, attrs.to_dict(orient="records"))
    ]


def load_facilities(path: str) -> List[Facility]:
    """
    Read a facility dataset from a CSV or JSON file.

    Raises:
        FileNotFoundError: If path does not exist.
        InvalidInputError: If the coordinate columns are missing.
    """
    df = _read_table(path)
    facilities = facilities_from_frame(df)
    logger.info(f"[FacilityStore] Loaded {len(facilities)} facilities from {path}.")
    return facilities


def _read_table(path: str) -> pd.DataFrame:
    if Path(path).suffix.lower() == ".json":
        # Keep phone numbers and codes as written.
        return pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    return pd.read_csv(path)


# ---------------------------------------------------------------------------
# Cache-aside dataset access
# ---------------------------------------------------------------------------

class FacilityCache:
    """
    Cache-aside access to the remote facility dataset.

    A cached copy younger than max_age_s is served directly. Otherwise the
    fetchers are tried in order and the first one that returns rows wins; its
    rows replace the cache. When every fetcher fails, a stale cache is still
    served (with a warning) rather than leaving the user without a dataset.

    Args:
        cache_path: JSON file holding the cached rows.
        max_age_s:  Freshness window in seconds.
        clock:      Time source, for tests.
    """

    def __init__(
        self,
        cache_path: str,
        max_age_s: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_path = cache_path
        self.max_age_s = max_age_s
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, fetchers: Sequence[Fetcher]) -> List[Facility]:
        """
        Return the dataset, fetching only if the cache is missing or stale.

        Raises:
            DatasetUnavailableError: If no fetcher succeeds and no cache exists.
        """
        if self.is_fresh():
            logger.info(f"[FacilityCache] Serving fresh cache {self.cache_path}.")
            return load_facilities(self.cache_path)

        for i, fetch in enumerate(fetchers):
            try:
                rows = list(fetch())
            except Exception as e:
                logger.warning(f"[FacilityCache] Source #{i} failed: {e}")
                continue
            if not rows:
                logger.warning(f"[FacilityCache] Source #{i} returned no rows.")
                continue

            df = pd.DataFrame(rows)
            facilities = facilities_from_frame(df)
            self._write(df)
            logger.info(f"[FacilityCache] Source #{i} supplied {len(facilities)} facilities.")
            return facilities

        if os.path.exists(self.cache_path):
            logger.warning(f"[FacilityCache] All sources failed; serving stale cache {self.cache_path}.")
            return load_facilities(self.cache_path)

        raise DatasetUnavailableError("No facility source succeeded and no cached dataset exists.")

    def is_fresh(self) -> bool:
        age = self.age_s()
        return age is not None and age <= self.max_age_s

    def age_s(self) -> Optional[float]:
        """Seconds since the cache was written, or None without a cache."""
        try:
            return self._clock() - os.path.getmtime(self.cache_path)
        except OSError:
            return None

    def invalidate(self) -> None:
        """Drop the cached copy so the next get() fetches."""
        try:
            os.remove(self.cache_path)
            logger.info(f"[FacilityCache] Invalidated {self.cache_path}.")
        except FileNotFoundError:
            pass

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _write(self, df: pd.DataFrame) -> None:
        try:
            directory = os.path.dirname(self.cache_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            df.to_json(self.cache_path, orient="records", force_ascii=False)
        except OSError as e:
            logger.error(f"[FacilityCache] Failed to write cache {self.cache_path}: {e}")
