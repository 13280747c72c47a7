"""
Farmetrics Boundary Map

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Interactive farm-boundary map for the Farmetrics field
platform. Shows farm polygons inside Ghana, lets a user draw a new boundary
point by point, and reports selections and drawn boundaries to the caller.

Key Features:
- Browse mode: status-coloured farm polygons with popups and click-to-select
- Draw mode: click capture inside the region, live preview from 3 points
- Viewport hard-clamped to the containing region
- Street/satellite base-layer toggle
- Static Leaflet HTML export and a Flask editing server

Usage:
    from farmetrics_map import BoundaryMapView, MapViewProps, FarmDataLoader

    loader = FarmDataLoader("Data")
    view = BoundaryMapView()
    view.update(MapViewProps(farms=loader.get_farms(), center_on_polygons=True))
    html = render_map_html(view.snapshot())

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from .data_loader import FarmDataLoader
from .geometry import BoundingBox, GeoPoint
from .html_renderer import render_map_html, write_map_html
from .map_config_types import MAP_CONFIG, MapViewConfig, get_frontend_config
from .map_view import BoundaryMapView, DrawState, MapViewProps
from .models import FarmRecord, FarmStatus
from .surface import MapSurface

__all__ = [
    "BoundaryMapView",
    "MapViewProps",
    "DrawState",
    "MapSurface",
    "FarmRecord",
    "FarmStatus",
    "FarmDataLoader",
    "GeoPoint",
    "BoundingBox",
    "MAP_CONFIG",
    "MapViewConfig",
    "get_frontend_config",
    "render_map_html",
    "write_map_html",
]
