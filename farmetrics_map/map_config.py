#!/usr/bin/env python3
"""
Farmetrics Boundary Map - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Configuration dictionary for the farm boundary map.
This is the user-facing configuration file - edit values here.

Pattern:
- map_config.py defines the MAP_CONFIG_DATA dictionary (edit this)
- map_config_types.py defines typed dataclasses and loads from MAP_CONFIG_DATA

Server settings can be overridden through FARMETRICS_MAP_* environment
variables (see ENVIRONMENT VARIABLE OVERRIDES below).

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import os
from typing import Any, Callable, Dict, Optional, TypeVar

T = TypeVar("T")

LEAFLET_VERSION = "1.9.4"
LEAFLET_IMAGES = f"https://unpkg.com/leaflet@{LEAFLET_VERSION}/dist/images"


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "FARMETRICS_MAP_PORT")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("FARMETRICS_MAP_PORT", 5052, int)
        5052  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# FARMETRICS_MAP_HOST      - server bind address
# FARMETRICS_MAP_PORT      - server port
# FARMETRICS_MAP_DEBUG     - Flask debug mode (true/false)
# FARMETRICS_MAP_DATA_DIR  - directory holding farms.json / farms.csv

_SERVER_HOST = _env_or_default("FARMETRICS_MAP_HOST", "127.0.0.1")
_SERVER_PORT = _env_or_default("FARMETRICS_MAP_PORT", 5052, int)
_SERVER_DEBUG = _env_bool("FARMETRICS_MAP_DEBUG", False)
_DATA_DIR = _env_or_default("FARMETRICS_MAP_DATA_DIR", "Data")

# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ FARM BOUNDARY MAP CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

MAP_CONFIG_DATA: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🌍 CONTAINING REGION (Ghana)
    # ═══════════════════════════════════════════════════════════════════════
    "region": {
        "name": "Ghana Agricultural Zone",
        # [[south, west], [north, east]]
        "bounds": [[4.5, -3.5], [11.5, 1.3]],
        # Simplified national border, [lat, lng]
        "outline": [
            [11.16, -2.98],
            [11.16, 1.20],
            [5.61, 1.20],
            [4.74, 1.05],
            [4.52, -1.20],
            [5.61, -3.25],
            [6.06, -3.25],
            [9.90, -2.98],
        ],
        "outline_style": {
            "color": "#10b981",
            "weight": 3,
            "opacity": 0.8,
            "fill_color": "#10b981",
            "fill_opacity": 0.1,
        },
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🧭 VIEWPORT
    # ═══════════════════════════════════════════════════════════════════════
    "viewport": {
        "center": [7.9465, -1.0232],  # [lat, lng] - centre of Ghana
        "zoom": 7,
        "min_zoom": 6,
        "max_zoom": 19,
        "width_px": 1024,  # Assumed canvas size for fit-bounds zoom
        "height_px": 600,
        "fit_padding_px": 20,
        "farms_fit_max_zoom": 15,
        "drawing_fit_max_zoom": 16,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🛰️ BASE LAYERS
    # ═══════════════════════════════════════════════════════════════════════
    "tiles": {
        "street": {
            "url": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
            "label": "Street View",
        },
        "satellite": {
            "url": (
                "https://server.arcgisonline.com/ArcGIS/rest/services/"
                "World_Imagery/MapServer/tile/{z}/{y}/{x}"
            ),
            "label": "Satellite View",
        },
        "default": "street",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🎨 FARM POLYGON STYLING
    # ═══════════════════════════════════════════════════════════════════════
    "status_colors": {
        "approved": "#10b981",  # green-500
        "pending": "#f59e0b",  # amber-500
        "issue": "#ef4444",  # red-500
    },
    "default_status_color": "#6366f1",  # indigo-500
    "farm_polygon_style": {
        "weight": 2,
        "opacity": 1.0,
        "fill_opacity": 0.3,
    },
    "selected_weight": 4,
    # ═══════════════════════════════════════════════════════════════════════
    # ✏️ DRAWING STYLING
    # ═══════════════════════════════════════════════════════════════════════
    "drawing": {
        "color": "#3b82f6",  # blue-500
        "line_weight": 3,
        "dash_array": "5, 10",
        "fill_weight": 2,
        "fill_opacity": 0.2,
        "marker_icon": {
            "icon_url": f"{LEAFLET_IMAGES}/marker-icon.png",
            "icon_retina_url": f"{LEAFLET_IMAGES}/marker-icon-2x.png",
            "shadow_url": f"{LEAFLET_IMAGES}/marker-shadow.png",
            "icon_size": [16, 26],
            "icon_anchor": [8, 26],
            "shadow_size": [26, 26],
            "shadow_anchor": [8, 26],
        },
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📐 AREA ESTIMATE
    # ═══════════════════════════════════════════════════════════════════════
    "area": {
        # "point_count": placeholder estimate (points x hectares_per_point)
        # "geodesic": true ellipsoidal area via pyproj.Geod
        "method": "point_count",
        "hectares_per_point": 0.1,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 SERVER
    # ═══════════════════════════════════════════════════════════════════════
    "server": {
        "host": _SERVER_HOST,
        "port": _SERVER_PORT,
        "debug": _SERVER_DEBUG,
        "data_dir": _DATA_DIR,
        "title": "Farmetrics - Ghana Farm Polygons",
    },
}
