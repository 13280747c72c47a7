"""
Map layer types for the farm boundary map.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Describe every discrete visual element that can sit on the
map surface - base tiles, the region outline, farm polygons, the in-progress
drawing line and preview, and draw-mode point markers.

Layers are plain data. The surface owns them; the HTML renderer turns their
to_dict() form into Leaflet calls.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from enum import Enum
import itertools
from typing import Any, Callable, Dict, List, Optional, Tuple

from .geometry import GeoPoint


# ═══════════════════════════════════════════════════════════════════════════════
# 🏷️ LAYER KINDS
# ═══════════════════════════════════════════════════════════════════════════════


class LayerKind(Enum):
    """What a layer draws. TILE and OUTLINE are persistent; the rest are overlays."""

    TILE = "tile"
    OUTLINE = "outline"
    POLYGON = "polygon"
    POLYLINE = "polyline"
    MARKER = "marker"

    @property
    def is_overlay(self) -> bool:
        return self in (LayerKind.POLYGON, LayerKind.POLYLINE, LayerKind.MARKER)


class LayerRole(Enum):
    """Why an overlay exists, so callers can find e.g. the drawing preview."""

    BASE = "base"
    REGION = "region"
    FARM = "farm"
    DRAW_LINE = "draw_line"
    DRAW_PREVIEW = "draw_preview"
    DRAW_MARKER = "draw_marker"


_layer_counter = itertools.count(1)


def next_layer_id(prefix: str) -> str:
    """Unique, monotonically numbered layer id."""
    return f"{prefix}-{next(_layer_counter)}"


# ═══════════════════════════════════════════════════════════════════════════════
# 🧱 LAYER
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class Layer:
    """A single layer on the map surface.

    Attributes:
        layer_id: Unique id on the surface
        kind: Geometry kind (tile, outline, polygon, polyline, marker)
        role: Purpose of the layer (farm polygon, drawing preview, ...)
        points: Geometry in (lat, lng) order; empty for tile layers
        style: Leaflet path options (color, weight, fillOpacity, ...)
        popup_html: Optional popup content bound to the layer
        url: Tile URL template (tile layers only)
        farm_id: Farm the layer represents (farm polygons only)
        on_click: Optional click handler, invoked by the surface
    """

    layer_id: str
    kind: LayerKind
    role: LayerRole
    points: List[GeoPoint] = field(default_factory=list)
    style: Dict[str, Any] = field(default_factory=dict)
    popup_html: Optional[str] = None
    url: Optional[str] = None
    farm_id: Optional[str] = None
    on_click: Optional[Callable[[], None]] = field(
        default=None, repr=False, compare=False
    )

    @property
    def is_filled(self) -> bool:
        return self.kind in (LayerKind.POLYGON, LayerKind.OUTLINE)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d: Dict[str, Any] = {
            "id": self.layer_id,
            "kind": self.kind.value,
            "role": self.role.value,
            "points": [p.to_list() for p in self.points],
            "style": dict(self.style),
            "clickable": self.on_click is not None,
        }
        if self.popup_html is not None:
            d["popup"] = self.popup_html
        if self.url is not None:
            d["url"] = self.url
        if self.farm_id is not None:
            d["farm_id"] = self.farm_id
        return d


# ═══════════════════════════════════════════════════════════════════════════════
# 🏭 FACTORIES
# ═══════════════════════════════════════════════════════════════════════════════


def tile_layer(name: str, url: str) -> Layer:
    return Layer(
        layer_id=f"tile-{name}",
        kind=LayerKind.TILE,
        role=LayerRole.BASE,
        url=url,
        style={"name": name},
    )


def polygon_layer(
    points: List[GeoPoint],
    role: LayerRole,
    style: Dict[str, Any],
    popup_html: Optional[str] = None,
    farm_id: Optional[str] = None,
    on_click: Optional[Callable[[], None]] = None,
) -> Layer:
    return Layer(
        layer_id=next_layer_id("polygon"),
        kind=LayerKind.POLYGON,
        role=role,
        points=list(points),
        style=style,
        popup_html=popup_html,
        farm_id=farm_id,
        on_click=on_click,
    )


def polyline_layer(points: List[GeoPoint], role: LayerRole, style: Dict[str, Any]) -> Layer:
    return Layer(
        layer_id=next_layer_id("polyline"),
        kind=LayerKind.POLYLINE,
        role=role,
        points=list(points),
        style=style,
    )


def marker_layer(point: GeoPoint, icon: Dict[str, Any]) -> Layer:
    return Layer(
        layer_id=next_layer_id("marker"),
        kind=LayerKind.MARKER,
        role=LayerRole.DRAW_MARKER,
        points=[point],
        style={"icon": icon},
    )


def outline_layer(points: List[GeoPoint], style: Dict[str, Any]) -> Layer:
    return Layer(
        layer_id="region-outline",
        kind=LayerKind.OUTLINE,
        role=LayerRole.REGION,
        points=list(points),
        style=style,
    )


def leaflet_path_style(
    color: str,
    weight: int,
    fill_opacity: Optional[float] = None,
    opacity: Optional[float] = None,
    fill_color: Optional[str] = None,
    dash_array: Optional[str] = None,
) -> Dict[str, Any]:
    """Leaflet path options with unset values omitted."""
    style: Dict[str, Any] = {"color": color, "weight": weight}
    optional: Tuple[Tuple[str, Any], ...] = (
        ("fillOpacity", fill_opacity),
        ("opacity", opacity),
        ("fillColor", fill_color),
        ("dashArray", dash_array),
    )
    for key, value in optional:
        if value is not None:
            style[key] = value
    return style
