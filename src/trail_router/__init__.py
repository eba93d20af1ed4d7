"""Routing engine for building continuous routes over named trail segments."""

from .config import RouterConfig, load_config
from .errors import (
    ConfigError,
    InternalInconsistencyError,
    InvalidInputError,
    RoutingError,
    UnknownSegmentError,
)
from .extension import Waypoint
from .geo_utils import GeoPoint
from .ordering import ContinuityResult
from .route_manager import RouteInfo, RoutingEngine, SegmentInfo

__all__ = [
    "RouterConfig",
    "load_config",
    "ConfigError",
    "InternalInconsistencyError",
    "InvalidInputError",
    "RoutingError",
    "UnknownSegmentError",
    "Waypoint",
    "GeoPoint",
    "ContinuityResult",
    "RouteInfo",
    "RoutingEngine",
    "SegmentInfo",
]
