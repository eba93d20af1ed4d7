import json
import os
from dataclasses import dataclass, fields

from .errors import ConfigError


@dataclass(frozen=True)
class RouterConfig:
    """Distance tolerances used by the routing engine, in meters."""

    connection_threshold_m: float = 50.0  # endpoints closer than this are joined
    snap_threshold_m: float = 100.0
    continuity_tolerance_m: float = 100.0
    smoothing_window_m: float = 100.0
    min_elevation_change_m: float = 1.0


def load_config(path: str) -> RouterConfig:
    """Load a :class:`RouterConfig` from a JSON or YAML file."""
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    with open(path) as f:
        if path.lower().endswith(".json"):
            data = json.load(f)
        else:
            import yaml

            data = yaml.safe_load(f)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a mapping")
    known = {f.name for f in fields(RouterConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
    values = {}
    for key, value in data.items():
        try:
            values[key] = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{key} must be a number, got {value!r}") from None
    return RouterConfig(**values)
