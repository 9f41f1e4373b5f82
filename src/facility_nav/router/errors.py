# errors.py
# Exception types raised by the navigation core.
# All of them are raised synchronously where the precondition breaks.


class NavigationError(Exception):
    """Base class for every error raised by facility_nav."""


class InvalidInputError(NavigationError, ValueError):
    """Malformed coordinates, empty required sequences or a bad query argument."""


class NoCandidatesError(NavigationError):
    """Destination selection was asked to choose from nothing."""


class MatrixMismatchError(NavigationError):
    """A travel-time matrix does not line up with the candidates it was requested for."""


class DatasetUnavailableError(NavigationError):
    """No facility dataset could be fetched and no cached copy exists."""
