"""
Unit tests for MapSurface.

Tests:
1. Lifecycle (create once, release once)
2. Layer stack (add/remove, tile layer kept at the bottom)
3. Viewport clamping to max_bounds and zoom limits
4. Click delivery to the map listener and to layers

Run with: python -m pytest _tests/test_surface.py -v
"""

import pytest

from farmetrics_map.geometry import BoundingBox, GeoPoint
from farmetrics_map.layers import (
    LayerKind,
    LayerRole,
    leaflet_path_style,
    marker_layer,
    outline_layer,
    polygon_layer,
    tile_layer,
)
from farmetrics_map.surface import MapSurface

GHANA = BoundingBox(4.5, -3.5, 11.5, 1.3)
KUMASI = GeoPoint(6.69, -1.62)


def _inside(inner: BoundingBox, outer: BoundingBox, tol: float = 1e-9) -> bool:
    return (
        inner.south >= outer.south - tol
        and inner.west >= outer.west - tol
        and inner.north <= outer.north + tol
        and inner.east <= outer.east + tol
    )


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def surface():
    """Created surface bounded to Ghana."""
    s = MapSurface(1024, 600)
    s.create(center=GeoPoint(7.9465, -1.0232), zoom=7, max_bounds=GHANA, min_zoom=6, max_zoom=19)
    return s


@pytest.fixture
def farm_polygon():
    points = [GeoPoint(6.69, -1.62), GeoPoint(6.70, -1.62), GeoPoint(6.70, -1.61)]
    return polygon_layer(points, LayerRole.FARM, leaflet_path_style("#10b981", 2), farm_id="f1")


# ============================================================================
# LIFECYCLE
# ============================================================================


class TestLifecycle:
    """Test create/release rules."""

    def test_create_twice_raises(self, surface):
        with pytest.raises(RuntimeError):
            surface.create(center=KUMASI, zoom=7, max_bounds=GHANA)

    def test_use_before_create_raises(self):
        s = MapSurface()
        with pytest.raises(RuntimeError):
            s.add_layer(tile_layer("street", "https://example/{z}/{x}/{y}.png"))

    def test_release_drops_layers_and_listener(self, surface, farm_polygon):
        surface.add_layer(farm_polygon)
        surface.on_click(lambda lat, lng: None)
        surface.release()
        assert surface.released
        assert surface.layers() == []
        assert not surface.has_click_handler

    def test_release_twice_raises(self, surface):
        surface.release()
        with pytest.raises(RuntimeError):
            surface.release()

    def test_operations_after_release_raise(self, surface, farm_polygon):
        surface.release()
        with pytest.raises(RuntimeError):
            surface.add_layer(farm_polygon)
        with pytest.raises(RuntimeError):
            surface.click(6.7, -1.6)


# ============================================================================
# LAYERS
# ============================================================================


class TestLayers:
    """Test the layer stack."""

    def test_add_and_remove(self, surface, farm_polygon):
        layer_id = surface.add_layer(farm_polygon)
        assert surface.has_layer(layer_id)
        assert surface.remove_layer(layer_id) is True
        assert not surface.has_layer(layer_id)

    def test_remove_unknown_returns_false(self, surface):
        assert surface.remove_layer("nope") is False

    def test_layers_filtered_by_kind(self, surface, farm_polygon):
        surface.add_layer(farm_polygon)
        surface.add_layer(marker_layer(KUMASI, {"iconUrl": "x.png"}))
        assert [l.kind for l in surface.layers(LayerKind.MARKER)] == [LayerKind.MARKER]
        assert len(surface.layers()) == 2

    def test_tile_layer_stays_at_bottom(self, surface, farm_polygon):
        surface.add_layer(farm_polygon)
        surface.set_tile_layer(tile_layer("street", "https://street/{z}/{x}/{y}.png"))
        surface.set_tile_layer(tile_layer("satellite", "https://sat/{z}/{y}/{x}"))

        layers = surface.layers()
        assert layers[0].kind == LayerKind.TILE
        assert len(surface.layers(LayerKind.TILE)) == 1
        assert surface.tile_layer.style["name"] == "satellite"
        assert surface.has_layer(farm_polygon.layer_id)

    def test_set_tile_layer_rejects_overlay(self, surface, farm_polygon):
        with pytest.raises(ValueError):
            surface.set_tile_layer(farm_polygon)

    def test_outline_is_not_overlay(self):
        outline = outline_layer([KUMASI], {"color": "#10b981"})
        assert outline.kind == LayerKind.OUTLINE
        assert not outline.kind.is_overlay
        assert outline.is_filled


# ============================================================================
# VIEWPORT
# ============================================================================


class TestViewport:
    """Test clamping of every view change to max_bounds."""

    def test_view_bounds_inside_region(self, surface):
        assert _inside(surface.viewport.bounds, GHANA)

    def test_zoom_clamped(self, surface):
        assert surface.set_view(KUMASI, 2).zoom == 6
        assert surface.set_view(KUMASI, 25).zoom == 19

    def test_center_pulled_back_inside(self, surface):
        vp = surface.set_view(GeoPoint(30.0, 20.0), 12)
        assert GHANA.contains(*vp.center)
        assert _inside(vp.bounds, GHANA)

    def test_fit_bounds_outside_region_is_clamped(self, surface):
        vp = surface.fit_bounds(BoundingBox(10.0, 0.0, 14.0, 4.0))
        assert surface.last_fit_bounds == BoundingBox(10.0, 0.0, 11.5, 1.3)
        assert _inside(vp.bounds, GHANA)

    def test_fit_bounds_respects_max_zoom(self, surface):
        tiny = BoundingBox(6.69, -1.62, 6.6901, -1.6199)
        assert surface.fit_bounds(tiny, padding_px=20, max_zoom=15).zoom == 15

    def test_fit_region_shows_region(self, surface):
        vp = surface.fit_bounds(GHANA)
        assert vp.zoom == 6
        assert vp.bounds == GHANA


# ============================================================================
# EVENTS
# ============================================================================


class TestEvents:
    """Test click delivery."""

    def test_click_without_listener(self, surface):
        assert surface.click(6.7, -1.6) is False

    def test_click_delivers_lat_lng(self, surface):
        received = []
        surface.on_click(lambda lat, lng: received.append((lat, lng)))
        assert surface.click(6.7, -1.6) is True
        assert received == [(6.7, -1.6)]

    def test_off_click_detaches(self, surface):
        received = []
        surface.on_click(lambda lat, lng: received.append((lat, lng)))
        surface.off_click()
        surface.click(6.7, -1.6)
        assert received == []

    def test_click_layer(self, surface):
        hits = []
        layer = polygon_layer(
            [KUMASI, GeoPoint(6.70, -1.62), GeoPoint(6.70, -1.61)],
            LayerRole.FARM,
            {},
            on_click=lambda: hits.append(1),
        )
        surface.add_layer(layer)
        assert surface.click_layer(layer.layer_id) is True
        assert hits == [1]

    def test_click_unknown_layer_raises(self, surface):
        with pytest.raises(KeyError):
            surface.click_layer("missing")

    def test_snapshot_shape(self, surface, farm_polygon):
        surface.set_tile_layer(tile_layer("street", "https://street/{z}/{x}/{y}.png"))
        surface.add_layer(farm_polygon)
        snap = surface.snapshot()
        assert snap["base_layer"] == "street"
        assert snap["max_bounds"] == [[4.5, -3.5], [11.5, 1.3]]
        assert snap["layers"][1]["farm_id"] == "f1"
        assert snap["click_listener"] is False
