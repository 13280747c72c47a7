#!/usr/bin/env python3
"""
Farmetrics Boundary Map - Configuration Types

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized, typed configuration for the farm boundary map
using frozen dataclasses for immutability and type safety.

This follows the Typed Configuration Architecture pattern:
- map_config.py defines MAP_CONFIG_DATA dictionary (user edits this)
- map_config_types.py defines frozen dataclasses (this file)
- MAP_CONFIG module-level instance for orchestrator access
- Business logic receives primitives only

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from .geometry import BoundingBox, GeoPoint
from .map_config import LEAFLET_IMAGES

# ═══════════════════════════════════════════════════════════════════════════
# 🎨 POLYGON STYLE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PolygonStyleConfig:
    """Configuration for polygon styling (region outline, farms)."""

    color: str = "#666666"
    weight: int = 2
    opacity: float = 0.8
    fill_color: str = "#ffffff"
    fill_opacity: float = 0.3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PolygonStyleConfig":
        """Create from dictionary."""
        return cls(
            color=d.get("color", "#666666"),
            weight=d.get("weight", 2),
            opacity=d.get("opacity", 0.8),
            fill_color=d.get("fill_color", d.get("color", "#ffffff")),
            fill_opacity=d.get("fill_opacity", 0.3),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "color": self.color,
            "weight": self.weight,
            "opacity": self.opacity,
            "fill_color": self.fill_color,
            "fill_opacity": self.fill_opacity,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🌍 REGION CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RegionConfig:
    """Containing region: bounding box that limits points and viewport."""

    name: str = "Ghana Agricultural Zone"
    south: float = 4.5
    west: float = -3.5
    north: float = 11.5
    east: float = 1.3
    outline: Tuple[Tuple[float, float], ...] = ()
    outline_style: PolygonStyleConfig = PolygonStyleConfig(
        color="#10b981", weight=3, fill_color="#10b981", fill_opacity=0.1
    )

    @property
    def bounding_box(self) -> BoundingBox:
        return BoundingBox(self.south, self.west, self.north, self.east)

    @property
    def outline_points(self) -> List[GeoPoint]:
        return [GeoPoint(lat, lng) for lat, lng in self.outline]

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RegionConfig":
        """Create from dictionary."""
        (south, west), (north, east) = d.get("bounds", [[4.5, -3.5], [11.5, 1.3]])
        return cls(
            name=d.get("name", "Ghana Agricultural Zone"),
            south=float(south),
            west=float(west),
            north=float(north),
            east=float(east),
            outline=tuple(
                (float(lat), float(lng)) for lat, lng in d.get("outline", [])
            ),
            outline_style=PolygonStyleConfig.from_dict(
                d.get(
                    "outline_style",
                    {"color": "#10b981", "weight": 3, "fill_opacity": 0.1},
                )
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "bounds": [[self.south, self.west], [self.north, self.east]],
            "outline": [list(p) for p in self.outline],
            "outline_style": self.outline_style.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 VIEWPORT CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ViewportConfig:
    """Configuration for initial view, zoom limits and fit behaviour."""

    center_lat: float = 7.9465
    center_lng: float = -1.0232
    zoom: int = 7
    min_zoom: int = 6
    max_zoom: int = 19
    width_px: int = 1024
    height_px: int = 600
    fit_padding_px: int = 20
    farms_fit_max_zoom: int = 15
    drawing_fit_max_zoom: int = 16

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(self.center_lat, self.center_lng)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ViewportConfig":
        """Create from dictionary."""
        center = d.get("center", [7.9465, -1.0232])
        return cls(
            center_lat=float(center[0]),
            center_lng=float(center[1]),
            zoom=d.get("zoom", 7),
            min_zoom=d.get("min_zoom", 6),
            max_zoom=d.get("max_zoom", 19),
            width_px=d.get("width_px", 1024),
            height_px=d.get("height_px", 600),
            fit_padding_px=d.get("fit_padding_px", 20),
            farms_fit_max_zoom=d.get("farms_fit_max_zoom", 15),
            drawing_fit_max_zoom=d.get("drawing_fit_max_zoom", 16),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "center": [self.center_lat, self.center_lng],
            "zoom": self.zoom,
            "min_zoom": self.min_zoom,
            "max_zoom": self.max_zoom,
            "fit_padding_px": self.fit_padding_px,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🛰️ BASE LAYER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TileLayerConfig:
    """A single base tile layer."""

    name: str
    url: str
    label: str = ""

    @classmethod
    def from_dict(cls, name: str, d: Dict[str, Any]) -> "TileLayerConfig":
        """Create from dictionary."""
        return cls(name=name, url=d["url"], label=d.get("label", name.title()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "url": self.url, "label": self.label}


_DEFAULT_TILES: Dict[str, Any] = {
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
}


@dataclass(frozen=True)
class TilesConfig:
    """Street and satellite base layers plus the initial selection."""

    street: TileLayerConfig
    satellite: TileLayerConfig
    default: str = "street"

    def get(self, name: str) -> TileLayerConfig:
        """Return the tile layer called ``name`` (street or satellite)."""
        if name == "street":
            return self.street
        if name == "satellite":
            return self.satellite
        raise ValueError(f"Unknown base layer: {name}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TilesConfig":
        """Create from dictionary."""
        merged = {**_DEFAULT_TILES, **d}
        default = merged.get("default", "street")
        if default not in ("street", "satellite"):
            raise ValueError(f"Unknown default base layer: {default}")
        return cls(
            street=TileLayerConfig.from_dict("street", merged["street"]),
            satellite=TileLayerConfig.from_dict("satellite", merged["satellite"]),
            default=default,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "street": self.street.to_dict(),
            "satellite": self.satellite.to_dict(),
            "default": self.default,
        }


# ═══════════════════════════════════════════════════════════════════════════
# ✏️ DRAWING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MarkerIconConfig:
    """Icon used for draw-mode point markers."""

    icon_url: str = f"{LEAFLET_IMAGES}/marker-icon.png"
    icon_retina_url: str = f"{LEAFLET_IMAGES}/marker-icon-2x.png"
    shadow_url: str = f"{LEAFLET_IMAGES}/marker-shadow.png"
    icon_size: Tuple[int, int] = (16, 26)
    icon_anchor: Tuple[int, int] = (8, 26)
    shadow_size: Tuple[int, int] = (26, 26)
    shadow_anchor: Tuple[int, int] = (8, 26)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MarkerIconConfig":
        """Create from dictionary."""
        return cls(
            icon_url=d.get("icon_url", f"{LEAFLET_IMAGES}/marker-icon.png"),
            icon_retina_url=d.get("icon_retina_url", f"{LEAFLET_IMAGES}/marker-icon-2x.png"),
            shadow_url=d.get("shadow_url", f"{LEAFLET_IMAGES}/marker-shadow.png"),
            icon_size=tuple(d.get("icon_size", (16, 26))),
            icon_anchor=tuple(d.get("icon_anchor", (8, 26))),
            shadow_size=tuple(d.get("shadow_size", (26, 26))),
            shadow_anchor=tuple(d.get("shadow_anchor", (8, 26))),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "iconUrl": self.icon_url,
            "iconRetinaUrl": self.icon_retina_url,
            "shadowUrl": self.shadow_url,
            "iconSize": list(self.icon_size),
            "iconAnchor": list(self.icon_anchor),
            "shadowSize": list(self.shadow_size),
            "shadowAnchor": list(self.shadow_anchor),
        }


@dataclass(frozen=True)
class DrawingConfig:
    """Styling for the in-progress boundary (line, preview polygon, markers)."""

    color: str = "#3b82f6"
    line_weight: int = 3
    dash_array: str = "5, 10"
    fill_weight: int = 2
    fill_opacity: float = 0.2
    marker_icon: MarkerIconConfig = MarkerIconConfig()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DrawingConfig":
        """Create from dictionary."""
        return cls(
            color=d.get("color", "#3b82f6"),
            line_weight=d.get("line_weight", 3),
            dash_array=d.get("dash_array", "5, 10"),
            fill_weight=d.get("fill_weight", 2),
            fill_opacity=d.get("fill_opacity", 0.2),
            marker_icon=MarkerIconConfig.from_dict(d.get("marker_icon", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "color": self.color,
            "line_weight": self.line_weight,
            "dash_array": self.dash_array,
            "fill_weight": self.fill_weight,
            "fill_opacity": self.fill_opacity,
            "marker_icon": self.marker_icon.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 📐 AREA CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

AREA_METHODS = ("point_count", "geodesic")


@dataclass(frozen=True)
class AreaConfig:
    """How the popup area figure is computed."""

    method: str = "point_count"
    hectares_per_point: float = 0.1

    def __post_init__(self) -> None:
        if self.method not in AREA_METHODS:
            raise ValueError(
                f"area.method must be one of {AREA_METHODS}, got {self.method!r}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AreaConfig":
        """Create from dictionary."""
        return cls(
            method=d.get("method", "point_count"),
            hectares_per_point=d.get("hectares_per_point", 0.1),
        )


# ═══════════════════════════════════════════════════════════════════════════
# 🌐 SERVER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ServerConfig:
    """Flask server settings."""

    host: str = "127.0.0.1"
    port: int = 5052
    debug: bool = False
    data_dir: str = "Data"
    title: str = "Farmetrics - Ghana Farm Polygons"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Create from dictionary."""
        return cls(
            host=d.get("host", "127.0.0.1"),
            port=int(d.get("port", 5052)),
            debug=bool(d.get("debug", False)),
            data_dir=d.get("data_dir", "Data"),
            title=d.get("title", "Farmetrics - Ghana Farm Polygons"),
        )


# ═══════════════════════════════════════════════════════════════════════════
# 📦 MAIN MAP VIEW CONFIGURATION CLASS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MapViewConfig:
    """
    Main configuration class for the farm boundary map.

    Access via the module-level MAP_CONFIG instance.
    """

    region: RegionConfig
    viewport: ViewportConfig
    tiles: TilesConfig
    status_colors: Dict[str, str]
    default_status_color: str
    farm_polygon_style: PolygonStyleConfig
    selected_weight: int
    drawing: DrawingConfig
    area: AreaConfig
    server: ServerConfig

    def status_color(self, status: str) -> str:
        """Colour for a farm status, falling back to the default colour."""
        return self.status_colors.get(status, self.default_status_color)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MapViewConfig":
        """Create from dictionary."""
        return cls(
            region=RegionConfig.from_dict(d.get("region", {})),
            viewport=ViewportConfig.from_dict(d.get("viewport", {})),
            tiles=TilesConfig.from_dict(d.get("tiles", {})),
            status_colors=d.get(
                "status_colors",
                {"approved": "#10b981", "pending": "#f59e0b", "issue": "#ef4444"},
            ),
            default_status_color=d.get("default_status_color", "#6366f1"),
            farm_polygon_style=PolygonStyleConfig.from_dict(
                d.get("farm_polygon_style", {"weight": 2, "opacity": 1.0})
            ),
            selected_weight=d.get("selected_weight", 4),
            drawing=DrawingConfig.from_dict(d.get("drawing", {})),
            area=AreaConfig.from_dict(d.get("area", {})),
            server=ServerConfig.from_dict(d.get("server", {})),
        )

    @classmethod
    def defaults(cls) -> "MapViewConfig":
        """Create with all default values."""
        return cls.from_dict({})

    def to_frontend_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for frontend JSON API."""
        return {
            "region": self.region.to_dict(),
            "viewport": self.viewport.to_dict(),
            "tiles": self.tiles.to_dict(),
            "statusColors": dict(self.status_colors),
            "defaultStatusColor": self.default_status_color,
            "farmPolygonStyle": self.farm_polygon_style.to_dict(),
            "selectedWeight": self.selected_weight,
            "drawing": self.drawing.to_dict(),
            "areaMethod": self.area.method,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 📌 MODULE-LEVEL CONFIG INSTANCE
# ═══════════════════════════════════════════════════════════════════════════

# Import configuration data from separate file (user-editable)
from .map_config import MAP_CONFIG_DATA

# Edit map_config.py to change settings (restart server after changes)
MAP_CONFIG: MapViewConfig = MapViewConfig.from_dict(MAP_CONFIG_DATA)


def get_frontend_config() -> Dict[str, Any]:
    """
    Get configuration for frontend JavaScript.

    Returns a dict suitable for JSON serialization and use in the frontend.
    """
    return MAP_CONFIG.to_frontend_dict()
