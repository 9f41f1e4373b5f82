"""Nearest-facility lookup and turn-by-turn walking guidance."""

__version__ = "0.1.0"
