# candidate_selector.py
# Picks the destination with the shortest real travel time.
# Pure: the matrix is fetched by the caller, this module only decides.

import logging
from typing import Sequence

import numpy as np

from .errors import MatrixMismatchError, NoCandidatesError
from .models import Point, TravelTimeMatrix

logger = logging.getLogger(__name__)


class CandidateSelector:
    """
    Chooses one candidate from a travel-time matrix.

    matrix.destinations must be the candidates, in the same order; the
    selector never reorders or matches points by value.
    """

    def resolve(
        self,
        origin: Point,
        candidates: Sequence[Point],
        matrix: TravelTimeMatrix,
    ) -> int:
        """
        Index of the candidate with the smallest duration.

        Ties go to the lowest index. Unreachable entries (None or NaN) are
        never chosen.

        Raises:
            NoCandidatesError:   If candidates is empty or none is reachable.
            MatrixMismatchError: If the matrix row length differs from the
                                 candidate count.
        """
        if len(candidates) == 0:
            raise NoCandidatesError("No candidates to choose a destination from.")
        if len(matrix.durations) != len(candidates):
            raise MatrixMismatchError(
                f"Matrix has {len(matrix.durations)} durations for {len(candidates)} candidates."
            )

        durations = np.array(
            [np.nan if d is None else float(d) for d in matrix.durations],
            dtype=float,
        )
        if np.all(np.isnan(durations)):
            raise NoCandidatesError("Travel-time service reached none of the candidates.")

        best = int(np.nanargmin(durations))
        logger.debug(f"[CandidateSelector] Chose #{best} ({durations[best]:.0f} s) of {len(candidates)}.")
        return best


_default_selector = CandidateSelector()


def resolve(origin: Point, candidates: Sequence[Point], matrix: TravelTimeMatrix) -> int:
    """Module-level shortcut for CandidateSelector().resolve()."""
    return _default_selector.resolve(origin, candidates, matrix)
