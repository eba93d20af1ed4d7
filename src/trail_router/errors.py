"""Exception types raised by the routing engine."""


class RoutingError(Exception):
    """Base class for all routing engine errors."""


class InvalidInputError(RoutingError, ValueError):
    """Raised for malformed segment data or points without coordinates."""


class InternalInconsistencyError(RoutingError):
    """Raised when engine state references data that does not exist."""


class UnknownSegmentError(InternalInconsistencyError, KeyError):
    """A segment name was looked up that is not part of the loaded network."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown segment: {self.name!r}"


class ConfigError(RoutingError, ValueError):
    pass
