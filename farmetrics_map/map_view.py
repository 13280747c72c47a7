#!/usr/bin/env python3
"""
Farmetrics Boundary Map - Boundary Map View

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Render farm boundaries on a map surface, let a user draw a
new boundary by clicking points, keep the viewport inside the containing
region, and report selections and drawn boundaries to the caller.

Key Features:
1. One-time surface initialisation (base tiles, zoom limits, region outline)
2. Full clear-and-redraw of overlays on every update; base tiles and the
   region outline survive
3. Browse mode: status-coloured farm polygons with popups and click-to-select
4. Draw mode: click capture inside the region, dashed line, filled preview
   from the third point on, viewport fitted to the preview
5. Street/satellite base-layer toggle that leaves overlays and view alone

Controlled drawing:
    The caller owns the authoritative point sequence (``drawn_polygon``) and
    passes it back on every update. The view keeps only a DrawSession seeded
    from it; markers are always rebuilt from the session points. Leaving draw
    mode discards the session.

Draw lifecycle:
    IDLE (drawing off) -> CAPTURING (0-2 points) -> PREVIEWABLE (>= 3 points)
    Any state -> IDLE when drawing is switched off.

Navigation Guide:
- MapViewProps: caller inputs and callbacks
- DrawState / DrawSession: draw-mode state
- BoundaryMapView: the view

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass, field
from enum import Enum
import html
import logging
from typing import Callable, Dict, List, Optional, Sequence

from .geometry import (
    MIN_POLYGON_POINTS,
    GeoPoint,
    approximate_area_hectares,
    bounds_of,
    geodesic_area_hectares,
    parse_points,
    points_within,
    validate_boundary,
)
from .layers import (
    Layer,
    LayerRole,
    leaflet_path_style,
    marker_layer,
    outline_layer,
    polygon_layer,
    polyline_layer,
    tile_layer,
)
from .map_config_types import MAP_CONFIG, MapViewConfig
from .models import FarmRecord
from .regions import unknown_regions
from .surface import MapSurface

logger = logging.getLogger(__name__)

FarmSelectCallback = Callable[[Optional[FarmRecord]], None]
DrawingCallback = Callable[[List[GeoPoint]], None]


# ═══════════════════════════════════════════════════════════════════════════
# 📥 PROPS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class MapViewProps:
    """Inputs supplied by the caller on every update.

    Attributes:
        farms: Farm records to show (already filtered by the caller)
        selected_farm: Currently selected farm, if any
        on_farm_select: Called with a farm on polygon click, None on clear
        focus_regions: Region labels the caller is focused on (informational)
        drawing_mode: Browse (False) or draw (True)
        drawn_polygon: Caller-owned in-progress boundary, [lat, lng] pairs
        on_drawing_complete: Called with the full sequence after each click
        center_on_polygons: Fit the view to all rendered farm polygons
    """

    farms: Sequence[FarmRecord] = ()
    selected_farm: Optional[FarmRecord] = None
    on_farm_select: Optional[FarmSelectCallback] = None
    focus_regions: Optional[Sequence[str]] = None
    drawing_mode: bool = False
    drawn_polygon: Optional[Sequence[Sequence[float]]] = None
    on_drawing_complete: Optional[DrawingCallback] = None
    center_on_polygons: bool = False


# ═══════════════════════════════════════════════════════════════════════════
# ✏️ DRAW STATE
# ═══════════════════════════════════════════════════════════════════════════


class DrawState(Enum):
    """Draw-mode lifecycle state."""

    IDLE = "idle"
    CAPTURING = "capturing"
    PREVIEWABLE = "previewable"


@dataclass
class DrawSession:
    """Ephemeral in-progress boundary plus the layers that visualise it."""

    points: List[GeoPoint] = field(default_factory=list)
    marker_ids: List[str] = field(default_factory=list)
    line_id: Optional[str] = None
    preview_id: Optional[str] = None

    @property
    def state(self) -> DrawState:
        if len(self.points) >= MIN_POLYGON_POINTS:
            return DrawState.PREVIEWABLE
        return DrawState.CAPTURING

    @property
    def layer_ids(self) -> List[str]:
        ids = [lid for lid in (self.line_id, self.preview_id) if lid]
        return ids + list(self.marker_ids)


# ═══════════════════════════════════════════════════════════════════════════
# 📦 OWNED RESOURCES
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class _MapResources:
    """Everything the view owns on the surface, created once at mount."""

    surface: MapSurface
    tiles: Dict[str, Layer]
    base_layer: str
    outline: Layer


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ BOUNDARY MAP VIEW
# ═══════════════════════════════════════════════════════════════════════════


class BoundaryMapView:
    """
    Farm boundary map with browse and draw modes.

    Usage:
        view = BoundaryMapView()
        view.update(MapViewProps(farms=farms, on_farm_select=select))
        ...
        view.unmount()
    """

    def __init__(
        self,
        config: Optional[MapViewConfig] = None,
        surface: Optional[MapSurface] = None,
    ) -> None:
        self.config = config or MAP_CONFIG
        self._pending_surface = surface
        self._resources: Optional[_MapResources] = None
        self._props = MapViewProps()
        self._session: Optional[DrawSession] = None
        self._farm_layers: Dict[str, str] = {}
        self._unmounted = False

    # ───────────────────────────────────────────────────────────────────
    # Lifecycle
    # ───────────────────────────────────────────────────────────────────

    @property
    def mounted(self) -> bool:
        return self._resources is not None

    def mount(self) -> None:
        """Initialise the surface. Calling it again is a no-op."""
        if self._unmounted:
            raise RuntimeError("BoundaryMapView has been unmounted")
        if self._resources is not None:
            return

        cfg = self.config
        vp = cfg.viewport
        surface = self._pending_surface or MapSurface(vp.width_px, vp.height_px)
        self._pending_surface = None

        region = cfg.region.bounding_box
        surface.create(
            center=vp.center,
            zoom=vp.zoom,
            max_bounds=region,
            min_zoom=vp.min_zoom,
            max_zoom=vp.max_zoom,
        )

        tiles = {
            name: tile_layer(name, cfg.tiles.get(name).url)
            for name in ("street", "satellite")
        }
        base = cfg.tiles.default
        surface.set_tile_layer(tiles[base])

        style = cfg.region.outline_style
        outline = outline_layer(
            cfg.region.outline_points,
            leaflet_path_style(
                color=style.color,
                weight=style.weight,
                opacity=style.opacity,
                fill_color=style.fill_color,
                fill_opacity=style.fill_opacity,
            ),
        )
        surface.add_layer(outline)
        surface.fit_bounds(region)

        self._resources = _MapResources(
            surface=surface, tiles=tiles, base_layer=base, outline=outline
        )
        logger.info(f"🗺️ Map surface initialised ({cfg.region.name}, base={base})")

    def unmount(self) -> None:
        """Detach the click listener and release the surface, exactly once."""
        if self._resources is None:
            self._unmounted = True
            return
        surface = self._resources.surface
        surface.off_click()
        surface.release()
        self._resources = None
        self._session = None
        self._farm_layers = {}
        self._unmounted = True
        logger.info("🗺️ Map surface released")

    @property
    def surface(self) -> MapSurface:
        return self._require_resources().surface

    def _require_resources(self) -> _MapResources:
        if self._resources is None:
            if self._unmounted:
                raise RuntimeError("BoundaryMapView has been unmounted")
            raise RuntimeError("BoundaryMapView is not mounted")
        return self._resources

    # ───────────────────────────────────────────────────────────────────
    # Update (clear and redraw)
    # ───────────────────────────────────────────────────────────────────

    @property
    def props(self) -> MapViewProps:
        return self._props

    def update(self, props: MapViewProps) -> None:
        """Apply new props: clear every overlay and redraw from scratch."""
        if self._unmounted:
            raise RuntimeError("BoundaryMapView has been unmounted")
        self.mount()
        self._props = props
        self._warn_unknown_regions(props.focus_regions)

        self._clear_overlays()
        if props.drawing_mode:
            self._enter_draw_mode(props)
        else:
            self._render_farms(props)

    def _clear_overlays(self) -> None:
        surface = self._require_resources().surface
        surface.off_click()
        for layer in surface.layers():
            if layer.kind.is_overlay:
                surface.remove_layer(layer.layer_id)
        self._session = None
        self._farm_layers = {}

    def _warn_unknown_regions(self, regions: Optional[Sequence[str]]) -> None:
        for name in unknown_regions(regions or ()):
            logger.warning(f"Unknown focus region: {name!r}")

    # ───────────────────────────────────────────────────────────────────
    # Browse mode
    # ───────────────────────────────────────────────────────────────────

    def _render_farms(self, props: MapViewProps) -> None:
        res = self._require_resources()
        region = self.config.region.bounding_box
        selected_id = props.selected_farm.id if props.selected_farm else None

        rendered: List[List[GeoPoint]] = []
        for farm in props.farms:
            points = validate_boundary(farm.polygon_coordinates, region)
            if points is None:
                if farm.polygon_coordinates is not None:
                    logger.debug(f"Skipping invalid boundary for farm {farm.id}")
                continue

            layer = polygon_layer(
                points,
                role=LayerRole.FARM,
                style=self._farm_style(farm, selected=farm.id == selected_id),
                popup_html=self._farm_popup(farm, points),
                farm_id=farm.id,
                on_click=self._make_select_handler(farm),
            )
            res.surface.add_layer(layer)
            self._farm_layers[farm.id] = layer.layer_id
            rendered.append(points)

        logger.debug(f"Rendered {len(rendered)} of {len(props.farms)} farm polygons")

        if props.center_on_polygons and rendered:
            bounds = bounds_of(rendered)
            vp = self.config.viewport
            res.surface.fit_bounds(
                bounds, padding_px=vp.fit_padding_px, max_zoom=vp.farms_fit_max_zoom
            )

    def _farm_style(self, farm: FarmRecord, selected: bool) -> Dict[str, object]:
        style = self.config.farm_polygon_style
        return leaflet_path_style(
            color=self.config.status_color(farm.status.value),
            weight=self.config.selected_weight if selected else style.weight,
            opacity=style.opacity,
            fill_opacity=style.fill_opacity,
        )

    def _farm_popup(self, farm: FarmRecord, points: List[GeoPoint]) -> str:
        area_cfg = self.config.area
        if area_cfg.method == "geodesic":
            area = f"{geodesic_area_hectares(points):.2f} hectares"
        else:
            estimate = approximate_area_hectares(points, area_cfg.hectares_per_point)
            area = f"~{estimate:.2f} hectares (approximate)"

        esc = html.escape
        return (
            '<div class="farm-popup">'
            f"<h3>{esc(farm.farm_name)}</h3>"
            f"<p>Region: {esc(farm.region)}</p>"
            f"<p>District: {esc(farm.district)}</p>"
            f"<p>Status: {farm.status.label}</p>"
            f"<p>Area: {area}</p>"
            "</div>"
        )

    def _make_select_handler(self, farm: FarmRecord) -> Callable[[], None]:
        def handler() -> None:
            callback = self._props.on_farm_select
            if callback is not None:
                callback(farm)

        return handler

    def select_farm(self, farm_id: str) -> bool:
        """
        Simulate a click on a farm's polygon.

        Returns:
            True if the farm is rendered and the click was delivered.
        """
        layer_id = self._farm_layers.get(farm_id)
        if layer_id is None:
            return False
        return self.surface.click_layer(layer_id)

    def clear_selection(self) -> None:
        """Tell the caller the selection was cleared."""
        callback = self._props.on_farm_select
        if callback is not None:
            callback(None)

    @property
    def rendered_farm_ids(self) -> List[str]:
        return list(self._farm_layers)

    def farm_layer(self, farm_id: str) -> Optional[Layer]:
        layer_id = self._farm_layers.get(farm_id)
        return self.surface.get_layer(layer_id) if layer_id else None

    # ───────────────────────────────────────────────────────────────────
    # Draw mode
    # ───────────────────────────────────────────────────────────────────

    @property
    def draw_state(self) -> DrawState:
        if self._session is None:
            return DrawState.IDLE
        return self._session.state

    @property
    def draw_points(self) -> List[GeoPoint]:
        """Copy of the in-progress sequence (empty outside draw mode)."""
        return list(self._session.points) if self._session else []

    def _enter_draw_mode(self, props: MapViewProps) -> None:
        region = self.config.region.bounding_box
        seed = parse_points(props.drawn_polygon) if props.drawn_polygon else []
        if seed is None:
            logger.debug("Ignoring malformed drawn_polygon")
            seed = []

        kept = points_within(seed, region)
        if len(kept) < len(seed):
            logger.warning(
                f"Dropped {len(seed) - len(kept)} seed point(s) outside the region"
            )
        self._session = DrawSession(points=kept)
        self.surface.on_click(self._handle_draw_click)
        self._draw_session_layers(self._session)

    def _handle_draw_click(self, lat: float, lng: float) -> None:
        session = self._session
        if session is None:
            return
        if not self.config.region.bounding_box.contains(lat, lng):
            logger.debug(f"Ignoring click outside region: ({lat}, {lng})")
            return

        session.points.append(GeoPoint(float(lat), float(lng)))
        self._draw_session_layers(session)

        callback = self._props.on_drawing_complete
        if callback is not None:
            callback(list(session.points))

    def _draw_session_layers(self, session: DrawSession) -> None:
        """(Re)build the line, preview and markers for the session points."""
        surface = self.surface
        for layer_id in session.layer_ids:
            surface.remove_layer(layer_id)
        session.marker_ids = []
        session.line_id = None
        session.preview_id = None

        points = session.points
        if not points:
            return

        draw = self.config.drawing
        line = polyline_layer(
            points,
            LayerRole.DRAW_LINE,
            leaflet_path_style(
                color=draw.color, weight=draw.line_weight, dash_array=draw.dash_array
            ),
        )
        session.line_id = surface.add_layer(line)

        if len(points) >= MIN_POLYGON_POINTS:
            preview = polygon_layer(
                points,
                LayerRole.DRAW_PREVIEW,
                leaflet_path_style(
                    color=draw.color,
                    weight=draw.fill_weight,
                    fill_opacity=draw.fill_opacity,
                ),
            )
            session.preview_id = surface.add_layer(preview)
            vp = self.config.viewport
            surface.fit_bounds(
                bounds_of([points]),
                padding_px=vp.fit_padding_px,
                max_zoom=vp.drawing_fit_max_zoom,
            )

        icon = draw.marker_icon.to_dict()
        for point in points:
            session.marker_ids.append(surface.add_layer(marker_layer(point, icon)))

    def click(self, lat: float, lng: float) -> bool:
        """Deliver a map click (returns False when no listener is attached)."""
        return self.surface.click(lat, lng)

    def draw_layers(self) -> List[Layer]:
        """Layers that visualise the current draw session."""
        if self._session is None:
            return []
        surface = self.surface
        return [
            layer
            for layer in (surface.get_layer(lid) for lid in self._session.layer_ids)
            if layer is not None
        ]

    # ───────────────────────────────────────────────────────────────────
    # Base layer
    # ───────────────────────────────────────────────────────────────────

    @property
    def base_layer(self) -> str:
        return self._require_resources().base_layer

    def set_base_layer(self, name: str) -> None:
        """Swap the tile layer; overlays and viewport are untouched."""
        res = self._require_resources()
        if name not in res.tiles:
            raise ValueError(f"Unknown base layer: {name}")
        if name == res.base_layer:
            return
        res.surface.set_tile_layer(res.tiles[name])
        res.base_layer = name
        logger.info(f"🛰️ Base layer switched to {name}")

    def toggle_base_layer(self) -> str:
        """Switch street <-> satellite and return the new base layer name."""
        new = "satellite" if self.base_layer == "street" else "street"
        self.set_base_layer(new)
        return new

    # ───────────────────────────────────────────────────────────────────
    # Snapshot
    # ───────────────────────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, object]:
        """Surface snapshot plus view-level state, for rendering and the API."""
        data = dict(self.surface.snapshot())
        data["drawing"] = {
            "active": self._session is not None,
            "state": self.draw_state.value,
            "points": [p.to_list() for p in self.draw_points],
            "ready": self.draw_state == DrawState.PREVIEWABLE,
        }
        data["farm_count"] = len(self._props.farms)
        data["rendered_farm_ids"] = self.rendered_farm_ids
        data["selected_farm_id"] = (
            self._props.selected_farm.id if self._props.selected_farm else None
        )
        return data
