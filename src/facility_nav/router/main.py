# main.py
# Entry point: replays a recorded walk through NavigationSystem.
# In production, replace the replay with your real GPS source and the
# file-backed providers with calls to the travel-time and routing services.
#
#   facility-nav --facilities shelters.csv --track walk.csv \
#                --matrix table.json --route route.json

import argparse
import json
import logging
from typing import List, Optional

import numpy as np

from .contracts import matrix_from_table_response, route_from_response
from .facility_store import load_facilities
from .geo_utils import haversine_distances
from .models import Instruction, Point, Route, TravelTimeMatrix
from .nav_config import NavConfig
from .navigator import NavigationSystem
from .replay import load_track
from ..tts.speech import SpeechSink

WALKING_SPEED_KMH: float = 5.0

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Offline stand-ins for the external services
# ------------------------------------------------------------------

def walking_matrix(origin: Point, destinations: List[Point], speed_kmh: float = WALKING_SPEED_KMH) -> TravelTimeMatrix:
    """Travel times at walking speed along the great circle; for demos without a table service."""
    lats = np.array([p.lat for p in destinations], dtype=float)
    lngs = np.array([p.lng for p in destinations], dtype=float)
    speed_ms = speed_kmh * 1000 / 3600
    durations = haversine_distances(origin.lat, origin.lng, lats, lngs) / speed_ms
    return TravelTimeMatrix(origin=origin, destinations=destinations, durations=durations.tolist())


def direct_route(origin: Point, destination: Point) -> Route:
    """Two-point route with a single arrival instruction."""
    return Route(
        coordinates=(origin, destination),
        instructions=(Instruction(1, "You have reached your destination."),),
    )


def _read_json(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# ------------------------------------------------------------------
# CLI
# ------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find the quickest-to-reach facility and replay a walk to it."
    )
    parser.add_argument("--facilities", required=True,
                        help="Facility dataset (CSV or JSON with lat/lng columns)")
    parser.add_argument("--track", required=True,
                        help="Recorded positions to replay (CSV or JSON)")
    parser.add_argument("--matrix", default=None,
                        help="Saved table-service response (default: walking-speed estimate)")
    parser.add_argument("--route", default=None,
                        help="Saved routing response (default: straight line)")
    parser.add_argument("--k", type=int, default=None,
                        help="Candidates to compare by travel time (default: 5)")
    parser.add_argument("--interval-ms", type=int, default=None,
                        help="Replay cadence in milliseconds (default: 1000)")
    parser.add_argument("--log-dir", default="logs",
                        help="Directory for route and session logs (default: logs)")
    parser.add_argument("--no-speech", action="store_true",
                        help="Print announcements instead of speaking them")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    # ------------------------------------------------------------------
    # Logging setup: configure once here, all modules inherit
    # ------------------------------------------------------------------
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    args = build_parser().parse_args(argv)

    config = NavConfig(log_dir=args.log_dir)
    if args.k is not None:
        config.candidate_count = args.k
    if args.interval_ms is not None:
        config.replay_interval_ms = args.interval_ms

    speech = None
    if not args.no_speech:
        speech = SpeechSink(rate=config.tts_rate)
    try:
        return _run(args, config, speech)
    finally:
        if speech is not None:
            speech.close()


def _run(args: argparse.Namespace, config: NavConfig, speech: Optional[SpeechSink]) -> int:
    track = load_track(args.track)
    if not track:
        print("[Main] Track is empty.")
        return 1
    origin = track[0]

    if args.matrix:
        table = _read_json(args.matrix)
        matrix_provider = lambda o, _dests: matrix_from_table_response(table, o)
    else:
        matrix_provider = walking_matrix

    if args.route:
        routed = route_from_response(_read_json(args.route))
        route_provider = lambda _o, _d: routed
    else:
        route_provider = direct_route

    # 1. Boot system (indexes the dataset once)
    nav = NavigationSystem(load_facilities(args.facilities), config=config, speech=speech)

    # 2. Pick a destination and request a route
    success, msg, facility = nav.navigate_to_nearest(origin, matrix_provider, route_provider)
    if not success:
        print(f"[Main] Could not start navigation: {msg}")
        return 1

    print("\n--- Replay Active ---")

    # 3. Position loop: replace with a real GPS feed in production
    handle = nav.run_replay(track)
    try:
        handle.join()
    except KeyboardInterrupt:
        nav.stop_navigation()

    print("\n--- Session complete ---")
    print(f"    Destination reached: {not nav.is_active}")
    print(f"    Log files written to: {config.log_dir}/")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
