# spatial_index.py
# Build-once nearest-neighbour index over facility coordinates.
#
# Usage:
#   index = SpatialIndex.build([f.point for f in facilities])
#   nearest = index.k_nearest(Point(50.45, 30.52), k=5)

import logging
import math
from typing import List, Sequence

import numpy as np
from scipy.spatial import cKDTree

from .errors import InvalidInputError
from .geo_utils import arc_to_chord, haversine_distances, to_unit_vectors
from .models import Point

logger = logging.getLogger(__name__)

# Relative slack on tree radii so floating-point noise never drops a boundary point.
_RADIUS_SLACK = 1e-9
# Distances are compared at micrometre resolution when breaking ties.
_TIE_DECIMALS = 6


class SpatialIndex:
    """
    Immutable spatial index answering great-circle proximity queries.

    Points are projected onto the unit sphere and stored in a KD-tree; the
    chord between two unit vectors grows with their great-circle distance, so
    euclidean tree queries return exactly the spherical neighbours. Results
    are re-ranked by haversine distance, ties going to the earlier point.

    Build with SpatialIndex.build(); rebuild when the dataset changes.
    """

    def __init__(self, lats: np.ndarray, lngs: np.ndarray) -> None:
        self._lats = np.array(lats, dtype=float)
        self._lngs = np.array(lngs, dtype=float)
        self._lats.setflags(write=False)
        self._lngs.setflags(write=False)
        self._tree = cKDTree(to_unit_vectors(self._lats, self._lngs))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, points: Sequence[Point]) -> "SpatialIndex":
        """
        Copy the given points into a new index.

        Raises:
            InvalidInputError: If points is empty or holds a NaN or
                               out-of-range coordinate.
        """
        points = list(points)
        if not points:
            raise InvalidInputError("Cannot build a spatial index over zero points.")
        for i, p in enumerate(points):
            if not p.is_valid:
                raise InvalidInputError(f"Point #{i} has invalid coordinates: {p}")

        index = cls(
            np.fromiter((p.lat for p in points), dtype=float, count=len(points)),
            np.fromiter((p.lng for p in points), dtype=float, count=len(points)),
        )
        logger.info(f"[SpatialIndex] Built over {len(points)} points.")
        return index

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._lats)

    def point(self, i: int) -> Point:
        return Point(float(self._lats[i]), float(self._lngs[i]))

    def distances_m(self, origin: Point, indices: Sequence[int]) -> np.ndarray:
        """Great-circle distances in metres from origin to the given points."""
        idx = np.asarray(indices, dtype=int)
        return haversine_distances(origin.lat, origin.lng, self._lats[idx], self._lngs[idx])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def k_nearest(self, origin: Point, k: int) -> List[int]:
        """
        Indices of the k points closest to origin, nearest first.

        k is clamped to the number of indexed points.

        Raises:
            InvalidInputError: If k is negative or origin is not a valid coordinate.
        """
        if k < 0:
            raise InvalidInputError(f"k must be >= 0, got {k}")
        self._check_origin(origin)

        k = min(k, len(self))
        if k == 0:
            return []

        query = to_unit_vectors([origin.lat], [origin.lng])[0]
        chords, _ = self._tree.query(query, k=k)
        kth_chord = float(np.atleast_1d(chords)[-1])

        # Everything as close as the k-th neighbour, so equal distances can be
        # ordered by insertion position rather than by tree traversal order.
        within = self._tree.query_ball_point(query, r=kth_chord * (1 + _RADIUS_SLACK) + _RADIUS_SLACK)
        idx = np.asarray(sorted(within), dtype=int)
        dists = np.round(self.distances_m(origin, idx), _TIE_DECIMALS)
        order = np.lexsort((idx, dists))
        return [int(i) for i in idx[order][:k]]

    def within_radius(self, origin: Point, radius_km: float) -> List[int]:
        """
        Indices of all points within radius_km of origin, in index order.

        radius_km may be math.inf to select every point.

        Raises:
            InvalidInputError: If radius_km is NaN or negative, or origin is invalid.
        """
        if math.isnan(radius_km) or radius_km < 0:
            raise InvalidInputError(f"radius_km must be >= 0, got {radius_km}")
        self._check_origin(origin)

        radius_m = radius_km * 1000.0
        query = to_unit_vectors([origin.lat], [origin.lng])[0]
        chord = arc_to_chord(radius_m)
        within = self._tree.query_ball_point(query, r=chord * (1 + _RADIUS_SLACK))
        idx = np.asarray(sorted(within), dtype=int)
        if idx.size == 0 or math.isinf(radius_m):
            return [int(i) for i in idx]

        keep = self.distances_m(origin, idx) <= radius_m
        return [int(i) for i in idx[keep]]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _check_origin(origin: Point) -> None:
        if not origin.is_valid:
            raise InvalidInputError(f"Query origin has invalid coordinates: {origin}")
