# contracts.py
# Request builders and response parsers for the external travel-time and
# routing services. No HTTP here: callers fetch, this module shapes.

import logging
from typing import Any, Dict, Sequence

from .errors import InvalidInputError, MatrixMismatchError
from .models import Instruction, Point, Route, TravelTimeMatrix

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Travel-time table (OSRM "table" service shape)
# ---------------------------------------------------------------------------

def table_request(origin: Point, candidates: Sequence[Point]) -> Dict[str, str]:
    """
    Parameters for a one-to-many table request.

    The origin is coordinate 0 and candidate i is coordinate i + 1, so the
    response row comes back in candidate order.

    Returns:
        {"coordinates": "lng,lat;lng,lat;...", "sources": "0", "destinations": "1;2;..."}
    """
    if not candidates:
        raise InvalidInputError("A table request needs at least one destination.")
    coords = [origin, *candidates]
    return {
        "coordinates": ";".join(f"{p.lng},{p.lat}" for p in coords),
        "sources": "0",
        "destinations": ";".join(str(i) for i in range(1, len(coords))),
    }


def matrix_from_table_response(payload: Dict[str, Any], origin: Point) -> TravelTimeMatrix:
    """
    Build a TravelTimeMatrix from a table response.

    Destination order is taken from the response as-is.

    Raises:
        InvalidInputError:   If the service reported an error code.
        MatrixMismatchError: If the durations row is missing or its length
                             differs from the destination list.
    """
    code = payload.get("code", "Ok")
    if code != "Ok":
        raise InvalidInputError(f"Table service returned {code}: {payload.get('message', '')}")

    rows = payload.get("durations")
    if not rows or not isinstance(rows[0], list):
        raise MatrixMismatchError("Table response has no durations row.")
    if len(rows) > 1:
        logger.warning(f"[Contracts] Table response has {len(rows)} rows; using the first.")

    destinations = [_waypoint_point(w) for w in payload.get("destinations", [])]
    durations = [None if d is None else float(d) for d in rows[0]]
    return TravelTimeMatrix(origin=origin, destinations=destinations, durations=durations)


def _waypoint_point(waypoint: Dict[str, Any]) -> Point:
    lng, lat = waypoint["location"]
    return Point(float(lat), float(lng))


# ---------------------------------------------------------------------------
# Route geometry + instructions
# ---------------------------------------------------------------------------

def route_from_response(payload: Dict[str, Any]) -> Route:
    """
    Build a Route from a routing response.

    Accepts either the route itself or an envelope with a "routes" list, in
    which case the first route is used. Coordinates are {lat, lng} objects
    or [lat, lng] pairs; instructions carry "index" and "text".

    Raises:
        InvalidInputError: If there is no route or it has no coordinates.
    """
    if "routes" in payload:
        routes = payload["routes"]
        if not routes:
            raise InvalidInputError("Routing response contains no routes.")
        payload = routes[0]

    raw_coords = payload.get("coordinates") or []
    if not raw_coords:
        raise InvalidInputError("Route has no coordinates.")

    coordinates = [
        Point.from_dict(c) if isinstance(c, dict) else Point(float(c[0]), float(c[1]))
        for c in raw_coords
    ]
    instructions = [
        Instruction(anchor_coordinate_index=int(i["index"]), text=str(i.get("text", "")))
        for i in payload.get("instructions", [])
    ]
    route = Route(coordinates=coordinates, instructions=instructions)
    logger.info(f"[Contracts] Route parsed: {len(coordinates)} points, {len(instructions)} instructions.")
    return route
