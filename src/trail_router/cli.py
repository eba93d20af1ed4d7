import argparse
import json
import logging
import os
import sys
from dataclasses import asdict, fields
from typing import Dict, List, Optional

from .config import RouterConfig, load_config
from .errors import InvalidInputError
from .export import write_gpx
from .route_manager import RoutingEngine
from .segment_store import load_geojson, load_metadata

logger = logging.getLogger(__name__)


def parse_point(value: str) -> Dict[str, float]:
    """Parse ``"LAT,LON"`` into a point mapping."""
    try:
        lat_s, lon_s = value.split(",")
        return {"lat": float(lat_s), "lng": float(lon_s)}
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got {value!r}") from None


def _config_path(argv: List[str]) -> Optional[str]:
    for i, arg in enumerate(argv):
        if arg == "--config" and i + 1 < len(argv):
            return argv[i + 1]
        if arg.startswith("--config="):
            return arg.split("=", 1)[1]
    return None


def build_parser(defaults: RouterConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build a route through a trail network from a list of points"
    )
    parser.add_argument("--config", help="Path to config YAML or JSON file")
    parser.add_argument("--segments", required=True, help="GeoJSON file of trail segments")
    parser.add_argument("--metadata", help="JSON file of per-segment metadata")
    parser.add_argument(
        "--point",
        dest="points",
        action="append",
        type=parse_point,
        default=[],
        metavar="LAT,LON",
        help="Waypoint; repeat in route order",
    )
    parser.add_argument("--gpx", help="Write the route as a GPX track to this path")
    parser.add_argument("--name", default="Planned route", help="GPX track name")
    for f in fields(RouterConfig):
        parser.add_argument(
            "--" + f.name.replace("_", "-"),
            type=float,
            default=getattr(defaults, f.name),
        )
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)
    config_path = _config_path(argv)
    defaults = RouterConfig()
    if config_path and os.path.exists(config_path):
        defaults = load_config(config_path)

    args = build_parser(defaults).parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = RouterConfig(**{f.name: getattr(args, f.name) for f in fields(RouterConfig)})
    logger.info("Using config %s", asdict(config))

    engine = RoutingEngine(config)
    metadata = load_metadata(args.metadata) if args.metadata else None
    try:
        engine.load(load_geojson(args.segments), metadata)
    except InvalidInputError as e:
        logger.error("Could not load %s: %s", args.segments, e)
        return 1

    for point in args.points:
        before = len(engine.points)
        engine.add_point(point)
        if len(engine.points) == before:
            logger.warning("Point %s,%s is not near any segment", point["lat"], point["lng"])

    info = engine.get_route_info()
    summary = info.to_dict()
    continuity = engine.check_segments_continuity(info.segments)
    summary["isContinuous"] = continuity.is_continuous
    summary["brokenIndex"] = continuity.broken_index
    print(json.dumps(summary, indent=2))

    if args.gpx:
        write_gpx(args.gpx, info.ordered_coordinates, args.name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
