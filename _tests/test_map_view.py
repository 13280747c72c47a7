"""
Behaviour tests for BoundaryMapView.

Tests:
1. Mount/unmount lifecycle and clear-and-redraw
2. Browse mode: validation, status colours, selection, fit to polygons
3. Draw mode: click capture, ordering, preview polygon, out-of-region clicks
4. Controlled drawing: no resurrection after leaving draw mode
5. Base-layer toggle

Run with: python -m pytest _tests/test_map_view.py -v
"""

import logging

import pytest

from farmetrics_map.geometry import BoundingBox, GeoPoint, bounds_of, parse_points
from farmetrics_map.layers import LayerKind, LayerRole
from farmetrics_map.map_config import MAP_CONFIG_DATA
from farmetrics_map.map_config_types import MAP_CONFIG, MapViewConfig
from farmetrics_map.map_view import BoundaryMapView, DrawState, MapViewProps
from farmetrics_map.models import FarmRecord
from farmetrics_map.surface import MapSurface

GHANA = BoundingBox(4.5, -3.5, 11.5, 1.3)

KUMASI_POLYGON = [[6.69, -1.62], [6.70, -1.62], [6.70, -1.61], [6.69, -1.61]]
TAMALE_POLYGON = [[9.40, -0.86], [9.41, -0.86], [9.41, -0.85]]

SCENARIO_CLICKS = [(6.69, -1.62), (6.70, -1.62), (6.70, -1.60)]


def _inside(inner: BoundingBox, outer: BoundingBox, tol: float = 1e-9) -> bool:
    return (
        inner.south >= outer.south - tol
        and inner.west >= outer.west - tol
        and inner.north <= outer.north + tol
        and inner.east <= outer.east + tol
    )


class CountingSurface(MapSurface):
    """MapSurface that records lifecycle calls."""

    def __init__(self) -> None:
        super().__init__(1024, 600)
        self.create_calls = 0
        self.release_calls = 0
        self.off_click_calls = 0

    def create(self, *args, **kwargs) -> None:
        self.create_calls += 1
        super().create(*args, **kwargs)

    def release(self) -> None:
        self.release_calls += 1
        super().release()

    def off_click(self) -> None:
        self.off_click_calls += 1
        super().off_click()


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def approved_farm():
    return FarmRecord.from_dict(
        {
            "id": "farm-approved",
            "farm_name": "Asante Cocoa Plot",
            "region": "Ashanti",
            "district": "Kumasi Metropolitan",
            "polygon_coordinates": KUMASI_POLYGON,
            "is_approved": True,
        }
    )


@pytest.fixture
def pending_farm():
    return FarmRecord.from_dict(
        {
            "id": "farm-pending",
            "farm_name": "Tamale <Yam> Field",
            "region": "Northern",
            "district": "Tamale Metropolitan",
            "polygon_coordinates": TAMALE_POLYGON,
            "is_approved": False,
        }
    )


@pytest.fixture
def invalid_farms():
    """Farms whose boundaries must never be drawn."""
    return [
        FarmRecord.from_dict(
            {
                "id": "farm-short",
                "farm_name": "Two Points",
                "polygon_coordinates": [[6.0, -1.0], [6.1, -1.0]],
            }
        ),
        FarmRecord.from_dict(
            {
                "id": "farm-outside",
                "farm_name": "Across The Border",
                "polygon_coordinates": [[6.0, 1.0], [6.1, 1.0], [6.1, 1.6]],
            }
        ),
        FarmRecord.from_dict({"id": "farm-empty", "farm_name": "No Boundary"}),
    ]


@pytest.fixture
def farms(approved_farm, pending_farm, invalid_farms):
    return [approved_farm, pending_farm, *invalid_farms]


@pytest.fixture
def surface():
    return CountingSurface()


@pytest.fixture
def view(surface):
    v = BoundaryMapView(MAP_CONFIG, surface=surface)
    yield v
    if v.mounted:
        v.unmount()


@pytest.fixture
def drawing_props():
    """Draw-mode props whose callback records every sequence it receives."""
    received = []
    props = MapViewProps(
        drawing_mode=True,
        drawn_polygon=[],
        on_drawing_complete=lambda pts: received.append(pts),
    )
    return props, received


def _overlay_ids(view):
    return {l.layer_id for l in view.surface.layers() if l.kind.is_overlay}


# ============================================================================
# LIFECYCLE
# ============================================================================


class TestLifecycle:
    """Test one-time initialisation and teardown."""

    def test_mount_creates_base_and_outline(self, view, surface):
        view.mount()
        kinds = [l.kind for l in surface.layers()]
        assert kinds == [LayerKind.TILE, LayerKind.OUTLINE]
        assert view.base_layer == "street"

    def test_mount_is_idempotent(self, view, surface, farms):
        view.mount()
        view.mount()
        view.update(MapViewProps(farms=farms))
        view.update(MapViewProps(farms=farms))
        assert surface.create_calls == 1
        assert view.surface is surface

    def test_update_mounts_on_first_call(self, view, farms):
        assert not view.mounted
        view.update(MapViewProps(farms=farms))
        assert view.mounted

    def test_initial_view_is_region(self, view):
        view.mount()
        assert view.surface.viewport.bounds == GHANA

    def test_unmount_detaches_and_releases_once(self, view, surface, drawing_props):
        props, _ = drawing_props
        view.update(props)
        assert surface.has_click_handler

        off_before = surface.off_click_calls
        view.unmount()
        view.unmount()

        assert surface.release_calls == 1
        assert surface.off_click_calls == off_before + 1
        assert not surface.has_click_handler
        assert not view.mounted

    def test_update_after_unmount_raises(self, view, farms):
        view.update(MapViewProps(farms=farms))
        view.unmount()
        with pytest.raises(RuntimeError):
            view.update(MapViewProps(farms=farms))
        with pytest.raises(RuntimeError):
            view.mount()


# ============================================================================
# CLEAR AND REDRAW
# ============================================================================


class TestClearAndRedraw:
    """Test that every update replaces overlays but keeps persistent layers."""

    def test_repeated_updates_do_not_accumulate(self, view, farms):
        view.update(MapViewProps(farms=farms))
        first = len(view.surface.layers())
        for _ in range(5):
            view.update(MapViewProps(farms=farms))
        assert len(view.surface.layers()) == first

    def test_base_and_outline_survive(self, view, farms, drawing_props):
        view.update(MapViewProps(farms=farms))
        props, _ = drawing_props
        view.update(props)
        view.update(MapViewProps(farms=[]))

        kinds = [l.kind for l in view.surface.layers()]
        assert kinds == [LayerKind.TILE, LayerKind.OUTLINE]

    def test_empty_farms_renders_nothing(self, view):
        view.update(MapViewProps(farms=[]))
        assert view.rendered_farm_ids == []
        assert _overlay_ids(view) == set()


# ============================================================================
# BROWSE MODE
# ============================================================================


class TestBrowseMode:
    """Test farm polygon rendering and selection."""

    def test_only_valid_boundaries_rendered(self, view, farms):
        view.update(MapViewProps(farms=farms))
        assert view.rendered_farm_ids == ["farm-approved", "farm-pending"]

    def test_rendered_polygons_are_filled_with_three_or_more_points(self, view, farms):
        view.update(MapViewProps(farms=farms))
        for layer in view.surface.layers(LayerKind.POLYGON):
            assert len(layer.points) >= 3
            assert all(GHANA.contains(p.lat, p.lng) for p in layer.points)

    def test_status_colours(self, view, farms):
        view.update(MapViewProps(farms=farms))
        assert view.farm_layer("farm-approved").style["color"] == "#10b981"
        assert view.farm_layer("farm-pending").style["color"] == "#f59e0b"
        assert view.farm_layer("farm-approved").style["fillOpacity"] == 0.3
        assert view.farm_layer("farm-approved").style["weight"] == 2

    def test_selected_farm_heavier_outline(self, view, farms, pending_farm):
        view.update(MapViewProps(farms=farms, selected_farm=pending_farm))
        assert view.farm_layer("farm-pending").style["weight"] == 4
        assert view.farm_layer("farm-approved").style["weight"] == 2

    def test_popup_content(self, view, farms):
        view.update(MapViewProps(farms=farms))
        popup = view.farm_layer("farm-approved").popup_html
        assert "Asante Cocoa Plot" in popup
        assert "Ashanti" in popup
        assert "Kumasi Metropolitan" in popup
        assert "Approved" in popup
        # 4 points x 0.1 ha placeholder
        assert "0.40 hectares (approximate)" in popup

    def test_popup_escapes_names(self, view, farms):
        view.update(MapViewProps(farms=farms))
        popup = view.farm_layer("farm-pending").popup_html
        assert "&lt;Yam&gt;" in popup
        assert "<Yam>" not in popup

    def test_geodesic_area_popup(self, farms):
        data = {**MAP_CONFIG_DATA, "area": {"method": "geodesic"}}
        view = BoundaryMapView(MapViewConfig.from_dict(data))
        view.update(MapViewProps(farms=farms))
        popup = view.farm_layer("farm-approved").popup_html
        assert "(approximate)" not in popup
        assert "hectares" in popup
        view.unmount()

    def test_polygon_click_selects_farm(self, view, farms, approved_farm):
        selected = []
        view.update(MapViewProps(farms=farms, on_farm_select=selected.append))
        assert view.select_farm("farm-approved") is True
        assert selected == [approved_farm]

    def test_select_unrendered_farm(self, view, farms):
        selected = []
        view.update(MapViewProps(farms=farms, on_farm_select=selected.append))
        assert view.select_farm("farm-short") is False
        assert selected == []

    def test_clear_selection_reports_none(self, view, farms):
        selected = []
        view.update(MapViewProps(farms=farms, on_farm_select=selected.append))
        view.clear_selection()
        assert selected == [None]

    def test_callbacks_optional(self, view, farms):
        view.update(MapViewProps(farms=farms))
        view.select_farm("farm-approved")
        view.clear_selection()

    def test_no_map_click_listener(self, view, farms):
        view.update(MapViewProps(farms=farms))
        assert view.click(6.7, -1.6) is False
        assert view.draw_state == DrawState.IDLE

    def test_unknown_focus_region_warns_but_does_not_filter(self, view, farms, caplog):
        with caplog.at_level(logging.WARNING, logger="farmetrics_map.map_view"):
            view.update(MapViewProps(farms=farms, focus_regions=["Ashanti", "Atlantis"]))
        assert "Atlantis" in caplog.text
        assert "'Ashanti'" not in caplog.text
        assert "farm-pending" in view.rendered_farm_ids


class TestCenterOnPolygons:
    """Test fitting the view to the rendered farms."""

    def test_fits_rendered_polygons(self, view, farms):
        view.update(MapViewProps(farms=farms, center_on_polygons=True))
        expected = bounds_of(
            [parse_points(KUMASI_POLYGON), parse_points(TAMALE_POLYGON)]
        )
        assert view.surface.last_fit_bounds == expected
        assert view.surface.viewport.zoom <= 15
        assert _inside(view.surface.viewport.bounds, GHANA)

    def test_single_small_farm_capped_at_zoom_15(self, view, approved_farm):
        view.update(MapViewProps(farms=[approved_farm], center_on_polygons=True))
        assert view.surface.viewport.zoom == 15
        assert _inside(view.surface.viewport.bounds, GHANA)

    def test_disabled_leaves_view_alone(self, view, farms):
        view.mount()
        before = view.surface.viewport
        view.update(MapViewProps(farms=farms, center_on_polygons=False))
        assert view.surface.viewport == before

    def test_no_valid_polygons_leaves_view_alone(self, view, invalid_farms):
        view.mount()
        before = view.surface.viewport
        view.update(MapViewProps(farms=invalid_farms, center_on_polygons=True))
        assert view.surface.viewport == before


# ============================================================================
# DRAW MODE
# ============================================================================


class TestDrawMode:
    """Test click capture and the in-progress boundary."""

    def test_scenario_three_clicks(self, view, drawing_props):
        props, received = drawing_props
        view.update(props)
        for lat, lng in SCENARIO_CLICKS:
            view.click(lat, lng)

        assert len(received) == 3
        assert received[-1] == [GeoPoint(*c) for c in SCENARIO_CLICKS]
        assert view.draw_state == DrawState.PREVIEWABLE

        previews = [l for l in view.draw_layers() if l.role == LayerRole.DRAW_PREVIEW]
        assert len(previews) == 1
        assert previews[0].style["fillOpacity"] == 0.2
        assert view.surface.viewport.zoom <= 16
        assert _inside(view.surface.viewport.bounds, GHANA)

    def test_kth_callback_is_prefix_of_clicks(self, view, drawing_props):
        props, received = drawing_props
        view.update(props)
        clicks = [(6.69, -1.62), (6.70, -1.62), (6.70, -1.60), (6.69, -1.60), (6.685, -1.61)]
        for lat, lng in clicks:
            view.click(lat, lng)

        for k, seq in enumerate(received, start=1):
            assert seq == [GeoPoint(*c) for c in clicks[:k]]

    def test_callback_receives_new_list(self, view, drawing_props):
        props, received = drawing_props
        view.update(props)
        view.click(6.69, -1.62)
        view.click(6.70, -1.62)
        assert received[0] is not received[1]
        assert len(received[0]) == 1

    def test_fewer_than_three_points_never_filled(self, view, drawing_props):
        props, _ = drawing_props
        view.update(props)
        for lat, lng in SCENARIO_CLICKS[:2]:
            view.click(lat, lng)
            assert view.draw_state == DrawState.CAPTURING
            assert not any(l.is_filled for l in view.draw_layers())
            assert not view.surface.layers(LayerKind.POLYGON)

    def test_dashed_line(self, view, drawing_props):
        props, _ = drawing_props
        view.update(props)
        view.click(6.69, -1.62)
        lines = [l for l in view.draw_layers() if l.kind == LayerKind.POLYLINE]
        assert len(lines) == 1
        assert lines[0].style == {"color": "#3b82f6", "weight": 3, "dashArray": "5, 10"}

    def test_click_outside_region_is_noop(self, view, drawing_props):
        props, received = drawing_props
        view.update(props)
        view.click(6.69, -1.62)
        before = _overlay_ids(view)
        viewport = view.surface.viewport

        view.click(12.0, -1.0)
        view.click(6.0, 2.0)

        assert len(received) == 1
        assert view.draw_points == [GeoPoint(6.69, -1.62)]
        assert _overlay_ids(view) == before
        assert view.surface.viewport == viewport

    def test_click_on_region_edge_accepted(self, view, drawing_props):
        props, received = drawing_props
        view.update(props)
        view.click(4.5, -3.5)
        assert received == [[GeoPoint(4.5, -3.5)]]

    def test_markers_match_points(self, view, drawing_props):
        props, _ = drawing_props
        view.update(props)
        for lat, lng in SCENARIO_CLICKS:
            view.click(lat, lng)
        markers = view.surface.layers(LayerKind.MARKER)
        assert [m.points[0] for m in markers] == view.draw_points
        assert markers[0].style["icon"]["iconUrl"].startswith("https://unpkg.com/leaflet@")

    def test_no_farm_polygons_in_draw_mode(self, view, farms):
        view.update(MapViewProps(farms=farms, drawing_mode=True))
        assert view.rendered_farm_ids == []
        assert not view.surface.layers(LayerKind.POLYGON)

    def test_seeded_from_drawn_polygon(self, view):
        view.update(MapViewProps(drawing_mode=True, drawn_polygon=TAMALE_POLYGON))
        assert view.draw_points == parse_points(TAMALE_POLYGON)
        assert view.draw_state == DrawState.PREVIEWABLE
        assert len(view.surface.layers(LayerKind.MARKER)) == 3

    def test_seed_drops_points_outside_region(self, view, caplog):
        with caplog.at_level(logging.WARNING, logger="farmetrics_map.map_view"):
            view.update(
                MapViewProps(drawing_mode=True, drawn_polygon=[[6.69, -1.62], [13.0, 0.0]])
            )
        assert view.draw_points == [GeoPoint(6.69, -1.62)]
        assert "Dropped 1 seed point" in caplog.text

    def test_controlled_rerender_keeps_sequence(self, view):
        """Caller feeds each callback result back in, as a real parent would."""
        state = {"drawn": []}

        def on_complete(points):
            state["drawn"] = [p.to_list() for p in points]
            view.update(
                MapViewProps(
                    drawing_mode=True,
                    drawn_polygon=state["drawn"],
                    on_drawing_complete=on_complete,
                )
            )

        view.update(
            MapViewProps(drawing_mode=True, drawn_polygon=[], on_drawing_complete=on_complete)
        )
        for lat, lng in SCENARIO_CLICKS:
            view.click(lat, lng)

        assert state["drawn"] == [list(c) for c in SCENARIO_CLICKS]
        assert len(view.surface.layers(LayerKind.MARKER)) == 3
        assert view.draw_state == DrawState.PREVIEWABLE

    def test_leaving_draw_mode_detaches_listener(self, view, drawing_props, farms):
        props, received = drawing_props
        view.update(props)
        view.update(MapViewProps(farms=farms))
        assert view.click(6.69, -1.62) is False
        assert received == []
        assert view.draw_state == DrawState.IDLE

    def test_no_resurrection_after_toggle(self, view, drawing_props):
        props, _ = drawing_props
        view.update(props)
        for lat, lng in SCENARIO_CLICKS:
            view.click(lat, lng)

        view.update(MapViewProps(drawing_mode=False))
        view.update(MapViewProps(drawing_mode=True))

        assert view.draw_points == []
        assert view.draw_state == DrawState.CAPTURING
        assert not view.surface.layers(LayerKind.MARKER)
        assert not view.surface.layers(LayerKind.POLYLINE)

    def test_snapshot_drawing_block(self, view, drawing_props):
        props, _ = drawing_props
        view.update(props)
        for lat, lng in SCENARIO_CLICKS:
            view.click(lat, lng)
        drawing = view.snapshot()["drawing"]
        assert drawing["active"] is True
        assert drawing["state"] == "previewable"
        assert drawing["ready"] is True
        assert drawing["points"] == [list(c) for c in SCENARIO_CLICKS]


# ============================================================================
# BASE LAYER
# ============================================================================


class TestBaseLayer:
    """Test the street/satellite toggle."""

    def test_toggle_swaps_tile(self, view):
        view.mount()
        assert view.toggle_base_layer() == "satellite"
        assert view.surface.tile_layer.url == MAP_CONFIG.tiles.satellite.url
        assert view.toggle_base_layer() == "street"
        assert len(view.surface.layers(LayerKind.TILE)) == 1

    def test_toggle_preserves_overlays_and_viewport(self, view, farms):
        view.update(MapViewProps(farms=farms, center_on_polygons=True))
        overlays = _overlay_ids(view)
        viewport = view.surface.viewport

        view.toggle_base_layer()

        assert _overlay_ids(view) == overlays
        assert view.surface.viewport == viewport
        assert view.surface.has_layer("region-outline")

    def test_toggle_preserves_draw_session(self, view, drawing_props):
        props, _ = drawing_props
        view.update(props)
        view.click(6.69, -1.62)
        view.toggle_base_layer()
        assert view.draw_points == [GeoPoint(6.69, -1.62)]
        assert view.surface.has_click_handler

    def test_base_layer_survives_update(self, view, farms):
        view.mount()
        view.set_base_layer("satellite")
        view.update(MapViewProps(farms=farms))
        assert view.base_layer == "satellite"
        assert view.snapshot()["base_layer"] == "satellite"

    def test_unknown_base_layer(self, view):
        view.mount()
        with pytest.raises(ValueError):
            view.set_base_layer("terrain")
