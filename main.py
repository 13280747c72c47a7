#!/usr/bin/env python3
"""
Farmetrics Boundary Map Entry Point

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Command-line entry point. Either renders a static Leaflet page
of the farm boundaries in a data directory, or starts the Flask editing
server.

Usage:
    python main.py render --data-dir Data --output Output/farm_map.html
    python main.py render --status approved --region Ashanti
    python main.py serve --data-dir Data --port 5052

Output:
    Output/farm_map.html (render)

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

# Fix Windows console encoding for emoji support
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

from farmetrics_map import (
    MAP_CONFIG,
    BoundaryMapView,
    FarmDataLoader,
    MapViewProps,
    write_map_html,
)

DEFAULT_OUTPUT = Path("Output") / "farm_map.html"


# ═══════════════════════════════════════════════════════════════════════════════
# 📋 LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════════


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging with console output.

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("%(message)s"))

    # Library modules log under the package logger
    package_logger = logging.getLogger("farmetrics_map")
    package_logger.setLevel(level)
    package_logger.handlers.clear()
    package_logger.addHandler(ch)

    logger = logging.getLogger("FarmMap")
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(ch)

    return logger


# ═══════════════════════════════════════════════════════════════════════════════
# 🖥️ COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════


def render_static(args: argparse.Namespace, logger: logging.Logger) -> Path:
    """Render the filtered farms to a standalone HTML page."""
    loader = FarmDataLoader(Path(args.data_dir))
    farms = loader.get_farms(status=args.status, region=args.region, search=args.search)
    logger.info(f"🌾 {len(farms)} farms match the filters")

    view = BoundaryMapView(MAP_CONFIG)
    try:
        view.update(
            MapViewProps(
                farms=farms,
                focus_regions=[args.region] if args.region else None,
                center_on_polygons=not args.no_fit,
            )
        )
        if args.satellite:
            view.set_base_layer("satellite")
        snapshot = view.snapshot()
    finally:
        view.unmount()

    logger.info(f"🗺️ {len(snapshot['rendered_farm_ids'])} farm polygons rendered")
    return write_map_html(Path(args.output), snapshot, MAP_CONFIG, args.title)


def serve(args: argparse.Namespace, logger: logging.Logger) -> None:
    """Start the Flask editing server."""
    from farmetrics_map import server

    if not server.initialize_services(Path(args.data_dir)):
        raise RuntimeError(f"Could not load farm data from {args.data_dir}")
    server.run_server(host=args.host, port=args.port, debug=args.debug)


def build_parser() -> argparse.ArgumentParser:
    srv = MAP_CONFIG.server
    parser = argparse.ArgumentParser(
        description="Farmetrics farm boundary map (Ghana)"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Write a static HTML map")
    render.add_argument("--data-dir", default=srv.data_dir)
    render.add_argument("--output", default=str(DEFAULT_OUTPUT))
    render.add_argument("--status", choices=["all", "approved", "pending"])
    render.add_argument("--region")
    render.add_argument("--search")
    render.add_argument("--title", default=srv.title)
    render.add_argument(
        "--satellite", action="store_true", help="Use satellite base imagery"
    )
    render.add_argument(
        "--no-fit",
        action="store_true",
        help="Keep the default Ghana view instead of fitting to the farms",
    )

    serve_p = sub.add_parser("serve", help="Run the Flask editing server")
    serve_p.add_argument("--data-dir", default=srv.data_dir)
    serve_p.add_argument("--host", default=srv.host)
    serve_p.add_argument("--port", type=int, default=srv.port)
    serve_p.add_argument("--debug", action="store_true", default=srv.debug)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the farm boundary map."""
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.verbose)

    logger.info("=" * 60)
    logger.info("🚀 FARMETRICS BOUNDARY MAP")
    logger.info("=" * 60)
    logger.info(f"⏰ Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("")

    try:
        if args.command == "render":
            result_path = render_static(args, logger)
            logger.info("")
            logger.info("=" * 60)
            logger.info("✅ MAP COMPLETE")
            logger.info(f"📄 Output: {result_path}")
            logger.info("=" * 60)
        else:
            serve(args, logger)
    except (OSError, ValueError, RuntimeError) as e:
        logger.error(f"❌ ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
