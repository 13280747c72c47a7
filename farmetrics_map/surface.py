#!/usr/bin/env python3
"""
Farmetrics Boundary Map - Map Surface

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: In-process geographic rendering surface. Holds the layer
stack, the viewport and the map click listener, and exposes the capability
interface the boundary view draws through:

    create surface, add/remove layer, fit bounds, listen for click,
    swap tile layer

Key Features:
1. Viewport hard-clamped to max_bounds (drag/zoom limits of the surface)
2. Zoom limited to [min_zoom, max_zoom]
3. Fit-bounds zoom computed on the Web Mercator tile pyramid
4. Click delivery with (lat, lng) payloads to a single map listener and to
   per-layer handlers
5. JSON snapshot consumed by the Leaflet HTML renderer and the Flask API

Navigation Guide:
- Viewport: current centre/zoom/visible bounds
- MapSurface: the surface itself

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
import logging
import math
from typing import Any, Callable, Dict, List, Optional

from .geometry import (
    TILE_SIZE_PX,
    BoundingBox,
    GeoPoint,
    fit_zoom,
    inverse_mercator_y,
    mercator_y,
)
from .layers import Layer, LayerKind

logger = logging.getLogger(__name__)

ClickHandler = Callable[[float, float], None]


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 VIEWPORT
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Viewport:
    """Current view of the surface.

    Attributes:
        center: Map centre (lat, lng)
        zoom: Integer zoom level
        bounds: Visible extent, intersected with the surface max_bounds
    """

    center: GeoPoint
    zoom: int
    bounds: BoundingBox

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": self.center.to_list(),
            "zoom": self.zoom,
            "bounds": self.bounds.to_leaflet(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP SURFACE
# ═══════════════════════════════════════════════════════════════════════════


class MapSurface:
    """
    Layer stack plus viewport for one map.

    A surface is created once, used by exactly one owner and released once.
    Every operation after release() raises RuntimeError.
    """

    def __init__(self, width_px: int = 1024, height_px: int = 600) -> None:
        self.width_px = width_px
        self.height_px = height_px

        self._layers: Dict[str, Layer] = {}
        self._click_handler: Optional[ClickHandler] = None
        self._max_bounds: Optional[BoundingBox] = None
        self._min_zoom = 0
        self._max_zoom = 19
        self._viewport: Optional[Viewport] = None
        self._last_fit_bounds: Optional[BoundingBox] = None
        self._created = False
        self._released = False

    # ───────────────────────────────────────────────────────────────────
    # Lifecycle
    # ───────────────────────────────────────────────────────────────────

    @property
    def created(self) -> bool:
        return self._created

    @property
    def released(self) -> bool:
        return self._released

    def create(
        self,
        center: GeoPoint,
        zoom: int,
        max_bounds: BoundingBox,
        min_zoom: int = 0,
        max_zoom: int = 19,
    ) -> None:
        """
        Initialise the surface.

        Raises:
            RuntimeError: If the surface was already created or released.
        """
        self._check_alive()
        if self._created:
            raise RuntimeError("Map surface already created")

        self._max_bounds = max_bounds
        self._min_zoom = min_zoom
        self._max_zoom = max_zoom
        self._created = True
        self.set_view(center, zoom)
        logger.debug(f"Surface created: center={center}, zoom={zoom}")

    def release(self) -> None:
        """Drop all layers and the click listener. Safe to call once only."""
        self._check_alive()
        self._layers.clear()
        self._click_handler = None
        self._released = True
        logger.debug("Surface released")

    def _check_alive(self) -> None:
        if self._released:
            raise RuntimeError("Map surface has been released")

    def _check_created(self) -> None:
        self._check_alive()
        if not self._created:
            raise RuntimeError("Map surface has not been created")

    # ───────────────────────────────────────────────────────────────────
    # Layers
    # ───────────────────────────────────────────────────────────────────

    def add_layer(self, layer: Layer) -> str:
        """Add a layer on top of the stack and return its id."""
        self._check_created()
        self._layers[layer.layer_id] = layer
        return layer.layer_id

    def remove_layer(self, layer_id: str) -> bool:
        """
        Remove a layer.

        Returns:
            True if the layer was removed, False if it wasn't on the surface.
        """
        self._check_created()
        if layer_id in self._layers:
            del self._layers[layer_id]
            return True
        return False

    def has_layer(self, layer_id: str) -> bool:
        return layer_id in self._layers

    def get_layer(self, layer_id: str) -> Optional[Layer]:
        return self._layers.get(layer_id)

    def layers(self, kind: Optional[LayerKind] = None) -> List[Layer]:
        """Layers in stacking order (bottom first), optionally of one kind."""
        if kind is None:
            return list(self._layers.values())
        return [layer for layer in self._layers.values() if layer.kind == kind]

    def set_tile_layer(self, tile: Layer) -> None:
        """Replace the base tile layer, keeping it below every other layer."""
        self._check_created()
        if tile.kind != LayerKind.TILE:
            raise ValueError(f"Expected a tile layer, got {tile.kind.value}")
        others = {
            lid: layer
            for lid, layer in self._layers.items()
            if layer.kind != LayerKind.TILE
        }
        self._layers = {tile.layer_id: tile, **others}

    @property
    def tile_layer(self) -> Optional[Layer]:
        tiles = self.layers(LayerKind.TILE)
        return tiles[0] if tiles else None

    # ───────────────────────────────────────────────────────────────────
    # Viewport
    # ───────────────────────────────────────────────────────────────────

    @property
    def viewport(self) -> Viewport:
        self._check_created()
        assert self._viewport is not None
        return self._viewport

    @property
    def max_bounds(self) -> BoundingBox:
        self._check_created()
        assert self._max_bounds is not None
        return self._max_bounds

    @property
    def last_fit_bounds(self) -> Optional[BoundingBox]:
        """Bounds passed to the most recent fit_bounds(), after clamping."""
        return self._last_fit_bounds

    def set_view(self, center: GeoPoint, zoom: int) -> Viewport:
        """Move the view, applying zoom limits and the max_bounds clamp."""
        self._check_created()
        zoom = max(self._min_zoom, min(int(zoom), self._max_zoom))
        self._viewport = self._constrained_viewport(center, zoom)
        return self._viewport

    def fit_bounds(
        self,
        bounds: BoundingBox,
        padding_px: int = 0,
        max_zoom: Optional[int] = None,
    ) -> Viewport:
        """
        Fit the view to ``bounds``.

        The target is first clamped to max_bounds, so the view never frames
        anything outside the containing region.
        """
        self._check_created()
        target = bounds.clamp_to(self.max_bounds)
        limit = self._max_zoom if max_zoom is None else min(max_zoom, self._max_zoom)
        zoom = fit_zoom(
            target,
            self.width_px,
            self.height_px,
            padding_px=padding_px,
            min_zoom=self._min_zoom,
            max_zoom=limit,
        )
        self._last_fit_bounds = target
        return self.set_view(target.center, zoom)

    def _half_spans(self, zoom: int) -> tuple:
        world_px = TILE_SIZE_PX * (2**zoom)
        half_lng = (self.width_px / 2) / world_px * 360.0
        half_y = (self.height_px / 2) / world_px * 2 * math.pi
        return half_lng, half_y

    def _constrained_viewport(self, center: GeoPoint, zoom: int) -> Viewport:
        outer = self.max_bounds
        half_lng, half_y = self._half_spans(zoom)

        # Longitude axis
        if 2 * half_lng >= outer.east - outer.west:
            lng = (outer.west + outer.east) / 2
        else:
            lng = min(max(center.lng, outer.west + half_lng), outer.east - half_lng)

        # Latitude axis, in projected space
        y_south, y_north = mercator_y(outer.south), mercator_y(outer.north)
        if 2 * half_y >= y_north - y_south:
            y = (y_south + y_north) / 2
        else:
            y = min(max(mercator_y(center.lat), y_south + half_y), y_north - half_y)

        visible = BoundingBox(
            inverse_mercator_y(y - half_y),
            lng - half_lng,
            inverse_mercator_y(y + half_y),
            lng + half_lng,
        )
        return Viewport(
            center=GeoPoint(inverse_mercator_y(y), lng),
            zoom=zoom,
            bounds=visible.clamp_to(outer),
        )

    # ───────────────────────────────────────────────────────────────────
    # Events
    # ───────────────────────────────────────────────────────────────────

    @property
    def has_click_handler(self) -> bool:
        return self._click_handler is not None

    def on_click(self, handler: ClickHandler) -> None:
        """Register the map click listener, replacing any previous one."""
        self._check_created()
        self._click_handler = handler

    def off_click(self) -> None:
        """Detach the map click listener (no-op when none is attached)."""
        self._click_handler = None

    def click(self, lat: float, lng: float) -> bool:
        """
        Deliver a map click.

        Returns:
            True if a listener received the event.
        """
        self._check_created()
        if self._click_handler is None:
            return False
        self._click_handler(lat, lng)
        return True

    def click_layer(self, layer_id: str) -> bool:
        """
        Deliver a click on a specific layer.

        Returns:
            True if the layer had a click handler.

        Raises:
            KeyError: If the layer is not on the surface.
        """
        self._check_created()
        layer = self._layers.get(layer_id)
        if layer is None:
            raise KeyError(f"Layer not found: {layer_id}")
        if layer.on_click is None:
            return False
        layer.on_click()
        return True

    # ───────────────────────────────────────────────────────────────────
    # Serialisation
    # ───────────────────────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        """JSON-serialisable state for the renderer and the API."""
        self._check_created()
        tile = self.tile_layer
        return {
            "viewport": self.viewport.to_dict(),
            "max_bounds": self.max_bounds.to_leaflet(),
            "min_zoom": self._min_zoom,
            "max_zoom": self._max_zoom,
            "base_layer": tile.style.get("name") if tile else None,
            "click_listener": self.has_click_handler,
            "layers": [layer.to_dict() for layer in self._layers.values()],
        }
