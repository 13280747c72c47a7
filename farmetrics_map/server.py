#!/usr/bin/env python3
"""
Farmetrics Boundary Map - Flask Server

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Lightweight Flask server that plays the caller role for the
boundary map. Owns the editor state (selection, draw mode, in-progress
boundary, listing filters), re-renders the BoundaryMapView after every change
and serves the Leaflet page plus a JSON API.

Key Interactions:
- Loads farm records through FarmDataLoader (farms.json / farms.csv)
- Drives BoundaryMapView with MapViewProps built from the editor state
- Persists saved boundaries back through the loader

Navigation Guide:
- EDITOR STATE: caller-owned state and view re-rendering
- ROUTES: API endpoints (/api/farms, /api/view, /api/draw/*, ...)
- STARTUP: Server initialization and data loading

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import logging
import sys
import threading

from flask import Flask, jsonify, request
from flask_cors import CORS

from .data_loader import FarmDataLoader
from .geometry import MIN_POLYGON_POINTS, GeoPoint
from .html_renderer import render_map_html
from .map_config_types import MAP_CONFIG, get_frontend_config
from .map_view import BoundaryMapView, MapViewProps
from .models import FarmRecord
from .regions import get_districts, region_names

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

DEFAULT_DATA_DIR = Path(MAP_CONFIG.server.data_dir)

SERVER_HOST = MAP_CONFIG.server.host
SERVER_PORT = MAP_CONFIG.server.port

# ═══════════════════════════════════════════════════════════════════════════
# 🌐 FLASK APPLICATION
# ═══════════════════════════════════════════════════════════════════════════

app = Flask(__name__)
CORS(app)

# Global services - initialized on startup
data_loader: Optional[FarmDataLoader] = None
map_view: Optional[BoundaryMapView] = None

# Flask's dev server is threaded; every view mutation goes through this lock
_view_lock = threading.Lock()

# Logging setup
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# 📝 EDITOR STATE
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class EditorState:
    """Caller-owned state passed to the map view on every render."""

    selected_farm_id: Optional[str] = None
    drawing_mode: bool = False
    drawn_polygon: List[List[float]] = field(default_factory=list)
    editing_farm_id: Optional[str] = None
    center_on_polygons: bool = True
    status_filter: Optional[str] = None
    region_filter: Optional[str] = None
    search: Optional[str] = None

    def reset_drawing(self) -> None:
        self.drawing_mode = False
        self.drawn_polygon = []
        self.editing_farm_id = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected_farm_id": self.selected_farm_id,
            "drawing_mode": self.drawing_mode,
            "drawn_polygon": [list(p) for p in self.drawn_polygon],
            "editing_farm_id": self.editing_farm_id,
            "center_on_polygons": self.center_on_polygons,
            "filters": {
                "status": self.status_filter,
                "region": self.region_filter,
                "search": self.search,
            },
        }


editor_state = EditorState()


def _on_farm_select(farm: Optional[FarmRecord]) -> None:
    editor_state.selected_farm_id = farm.id if farm else None


def _on_drawing_complete(points: List[GeoPoint]) -> None:
    editor_state.drawn_polygon = [p.to_list() for p in points]


def _current_props() -> MapViewProps:
    assert data_loader is not None
    farms = data_loader.get_farms(
        status=editor_state.status_filter,
        region=editor_state.region_filter,
        search=editor_state.search,
    )
    selected = None
    if editor_state.selected_farm_id is not None:
        selected = next(
            (f for f in farms if f.id == editor_state.selected_farm_id), None
        )
    region = editor_state.region_filter
    regions = [region] if region and region != "all" else None
    return MapViewProps(
        farms=farms,
        selected_farm=selected,
        on_farm_select=_on_farm_select,
        focus_regions=regions,
        drawing_mode=editor_state.drawing_mode,
        drawn_polygon=editor_state.drawn_polygon,
        on_drawing_complete=_on_drawing_complete,
        center_on_polygons=editor_state.center_on_polygons,
    )


def _render_view() -> Dict[str, Any]:
    """Push the editor state into the view and return its snapshot."""
    assert map_view is not None
    map_view.update(_current_props())
    snapshot = map_view.snapshot()
    snapshot["editor"] = editor_state.to_dict()
    return snapshot


def _not_initialized() -> Optional[Tuple[Any, int]]:
    if data_loader is None or map_view is None:
        return jsonify({"error": "Server not initialized"}), 500
    return None


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ═══════════════════════════════════════════════════════════════════════════
# 🛣️ API ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/")
def index() -> Any:
    """Serve the interactive map page."""
    error = _not_initialized()
    if error:
        return error
    with _view_lock:
        snapshot = _render_view()
    return render_map_html(snapshot, MAP_CONFIG, api_base="")


@app.route("/api/config")
def get_config() -> Any:
    """
    Get frontend configuration settings.

    Returns:
        JSON object with all configurable settings for the frontend.
    """
    return jsonify(get_frontend_config())


@app.route("/api/data/info")
def get_data_info() -> Any:
    """
    Get information about loaded data including timestamps.

    Returns:
        JSON object with data_file, data_file_modified, data_loaded_at,
        farm_count, polygon_count.
    """
    if data_loader is None:
        return jsonify({"error": "Server not initialized"}), 500

    return jsonify(data_loader.get_data_info())


@app.route("/api/farms")
def get_farms() -> Any:
    """
    List farms for the polygon management table.

    Query params status, region and search also become the filters that
    decide which farms the map shows.
    """
    error = _not_initialized()
    if error:
        return error

    status = request.args.get("status") or None
    region = request.args.get("region") or None
    search = request.args.get("search") or None
    try:
        farms = data_loader.get_farms(status=status, region=region, search=search)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    with _view_lock:
        editor_state.status_filter = status
        editor_state.region_filter = region
        editor_state.search = search

    return jsonify(
        {
            "farms": [f.as_dict() for f in farms],
            "count": len(farms),
            "regions": data_loader.unique_regions(),
        }
    )


@app.route("/api/regions")
def get_regions() -> Any:
    """Ghana regions with their districts, plus the regions present in the data."""
    error = _not_initialized()
    if error:
        return error
    return jsonify(
        {
            "regions": {name: get_districts(name) for name in region_names()},
            "in_data": data_loader.unique_regions(),
        }
    )


@app.route("/api/farms/summary")
def get_farms_summary() -> Any:
    """Counts and total boundary area."""
    error = _not_initialized()
    if error:
        return error
    return jsonify(data_loader.get_summary())


@app.route("/api/view")
def get_view() -> Any:
    """Current map snapshot (layers, viewport, draw state)."""
    error = _not_initialized()
    if error:
        return error
    with _view_lock:
        return jsonify(_render_view())


@app.route("/api/select", methods=["POST"])
def select_farm() -> Any:
    """
    Select a farm (or clear the selection with farm_id null).

    Expects JSON: {"farm_id": "..."} or {"farm_id": null}
    """
    error = _not_initialized()
    if error:
        return error

    data = _json_body()
    if "farm_id" not in data:
        return jsonify({"error": "Missing farm_id"}), 400

    farm_id = data["farm_id"]
    with _view_lock:
        if farm_id is None:
            map_view.clear_selection()
        else:
            farm_id = str(farm_id)
            try:
                data_loader.get_farm(farm_id)
            except KeyError:
                return jsonify({"error": f"Farm not found: {farm_id}"}), 404
            # Farms without a rendered polygon can still be selected
            if not map_view.select_farm(farm_id):
                editor_state.selected_farm_id = farm_id
        logger.info(f"📍 Selected farm: {editor_state.selected_farm_id}")
        return jsonify(_render_view())


@app.route("/api/draw/start", methods=["POST"])
def start_drawing() -> Any:
    """
    Enter draw mode for a farm, seeded with its stored boundary.

    Expects JSON: {"farm_id": "..."}
    """
    error = _not_initialized()
    if error:
        return error

    farm_id = _json_body().get("farm_id")
    if farm_id is None:
        return jsonify({"error": "Missing farm_id"}), 400

    farm_id = str(farm_id)
    try:
        farm = data_loader.get_farm(farm_id)
    except KeyError:
        return jsonify({"error": f"Farm not found: {farm_id}"}), 404

    with _view_lock:
        editor_state.drawing_mode = True
        editor_state.editing_farm_id = farm_id
        editor_state.selected_farm_id = farm_id
        editor_state.drawn_polygon = [
            list(p) for p in (farm.polygon_coordinates or [])
        ]
        logger.info(
            f"✏️ Drawing started for farm {farm_id} "
            f"({len(editor_state.drawn_polygon)} seed points)"
        )
        return jsonify(_render_view())


@app.route("/api/draw/click", methods=["POST"])
def draw_click() -> Any:
    """
    Add a boundary point. Clicks outside the region are ignored.

    Expects JSON: {"lat": float, "lng": float}

    Returns:
        View snapshot plus "accepted" (whether the point was added).
    """
    error = _not_initialized()
    if error:
        return error

    data = _json_body()
    if "lat" not in data or "lng" not in data:
        return jsonify({"error": "Missing lat or lng"}), 400
    try:
        lat = float(data["lat"])
        lng = float(data["lng"])
    except (TypeError, ValueError):
        return jsonify({"error": "lat and lng must be numbers"}), 400

    with _view_lock:
        if not editor_state.drawing_mode:
            return jsonify({"error": "Drawing mode is not active"}), 400
        before = len(map_view.draw_points)
        map_view.click(lat, lng)
        accepted = len(map_view.draw_points) > before
        snapshot = _render_view()
    snapshot["accepted"] = accepted
    return jsonify(snapshot)


@app.route("/api/draw/clear", methods=["POST"])
def clear_drawing() -> Any:
    """Discard the in-progress points but stay in draw mode."""
    error = _not_initialized()
    if error:
        return error
    with _view_lock:
        editor_state.drawn_polygon = []
        return jsonify(_render_view())


@app.route("/api/draw/cancel", methods=["POST"])
def cancel_drawing() -> Any:
    """Leave draw mode without saving."""
    error = _not_initialized()
    if error:
        return error
    with _view_lock:
        editor_state.reset_drawing()
        logger.info("✏️ Drawing cancelled")
        return jsonify(_render_view())


@app.route("/api/draw/save", methods=["POST"])
def save_drawing() -> Any:
    """
    Persist the in-progress boundary for the farm being edited.

    Returns:
        {"farm": saved record, "view": snapshot}
    """
    error = _not_initialized()
    if error:
        return error

    with _view_lock:
        farm_id = editor_state.editing_farm_id
        if not editor_state.drawing_mode or farm_id is None:
            return jsonify({"error": "Drawing mode is not active"}), 400
        if len(editor_state.drawn_polygon) < MIN_POLYGON_POINTS:
            return (
                jsonify(
                    {
                        "error": f"Polygon must have at least "
                        f"{MIN_POLYGON_POINTS} points"
                    }
                ),
                400,
            )
        try:
            farm = data_loader.update_polygon(farm_id, editor_state.drawn_polygon)
        except KeyError:
            return jsonify({"error": f"Farm not found: {farm_id}"}), 404
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        editor_state.reset_drawing()
        editor_state.selected_farm_id = farm.id
        return jsonify({"farm": farm.as_dict(), "view": _render_view()})


@app.route("/api/base-layer/toggle", methods=["POST"])
def toggle_base_layer() -> Any:
    """Switch street <-> satellite imagery."""
    error = _not_initialized()
    if error:
        return error
    with _view_lock:
        map_view.toggle_base_layer()
        return jsonify(_render_view())


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 STARTUP
# ═══════════════════════════════════════════════════════════════════════════


def initialize_services(data_dir: Path) -> bool:
    """
    Initialize data loader and map view.

    Args:
        data_dir: Directory containing farms.json or farms.csv

    Returns:
        True if initialization successful, False otherwise.
    """
    global data_loader, map_view, editor_state

    try:
        logger.info(f"🚀 Initializing services from: {data_dir}")

        loader = FarmDataLoader(Path(data_dir))
    except (OSError, ValueError) as e:
        logger.error(f"❌ Failed to initialize services: {e}")
        return False

    with _view_lock:
        if map_view is not None:
            map_view.unmount()
        data_loader = loader
        editor_state = EditorState()
        map_view = BoundaryMapView(MAP_CONFIG)
        map_view.mount()

    logger.info(f"✅ Loaded {len(loader.get_farms())} farms")
    return True


def main() -> None:
    """Main entry point - initialize and start server."""
    # Get data directory from command line or use default
    if len(sys.argv) > 1:
        data_dir = Path(sys.argv[1])
    else:
        data_dir = DEFAULT_DATA_DIR

    if not initialize_services(data_dir):
        logger.error("Failed to initialize. Check farms.json or farms.csv exists.")
        sys.exit(1)

    run_server()


def run_server(
    host: str = SERVER_HOST, port: int = SERVER_PORT, debug: bool = MAP_CONFIG.server.debug
) -> None:
    """Start the Flask development server (services must be initialized)."""
    logger.info(f"🌐 Starting server at http://{host}:{port}")
    logger.info(f"   Open browser to: http://{host}:{port}")
    logger.info("=" * 70)
    logger.info("    FARMETRICS BOUNDARY MAP SERVER STARTED")
    logger.info("=" * 70)

    # Reloader would re-import the module and drop the initialized services
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()
