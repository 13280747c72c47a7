"""
Tests for the Leaflet HTML renderer.

Run with: python -m pytest _tests/test_html_renderer.py -v
"""

import json
import re

import pytest

from farmetrics_map.html_renderer import render_map_html, write_map_html
from farmetrics_map.map_config_types import MAP_CONFIG
from farmetrics_map.map_view import BoundaryMapView, MapViewProps
from farmetrics_map.models import FarmRecord


@pytest.fixture
def snapshot():
    farm = FarmRecord.from_dict(
        {
            "id": "f1",
            "farm_name": "Cocoa </script> Plot",
            "region": "Ashanti",
            "district": "Bosomtwe",
            "polygon_coordinates": [[6.69, -1.62], [6.70, -1.62], [6.70, -1.61]],
            "is_approved": True,
        }
    )
    view = BoundaryMapView()
    view.update(MapViewProps(farms=[farm], center_on_polygons=True))
    snap = view.snapshot()
    view.unmount()
    return snap


def _embedded(page: str, name: str):
    match = re.search(rf"window\.{name} = (.*?);\n", page)
    assert match, f"{name} not embedded"
    return json.loads(match.group(1))


class TestRenderMapHtml:
    """Test the generated page."""

    def test_page_structure(self, snapshot):
        page = render_map_html(snapshot)
        assert page.startswith("<!DOCTYPE html>")
        assert "unpkg.com/leaflet@1.9.4/dist/leaflet.js" in page
        assert "<title>Farmetrics - Ghana Farm Polygons</title>" in page
        assert 'id="base-toggle"' in page
        assert "Ready to save polygon" in page
        assert ".leaflet-control-attribution { display: none !important; }" in page

    def test_snapshot_embedded(self, snapshot):
        page = render_map_html(snapshot)
        embedded = _embedded(page, "FARM_MAP_SNAPSHOT")
        assert embedded["rendered_farm_ids"] == ["f1"]
        assert embedded["max_bounds"] == [[4.5, -3.5], [11.5, 1.3]]

    def test_script_close_tag_escaped(self, snapshot):
        page = render_map_html(snapshot)
        body = page.split("window.FARM_MAP_SNAPSHOT", 1)[1].split("</script>", 1)[0]
        assert "</" not in body
        assert "<\\/div>" in body

    def test_static_page_has_no_api(self, snapshot):
        page = render_map_html(snapshot)
        assert _embedded(page, "FARM_MAP_API") is None

    def test_interactive_page_api_base(self, snapshot):
        page = render_map_html(snapshot, api_base="")
        assert _embedded(page, "FARM_MAP_API") == ""

    def test_api_errors_are_not_rendered(self, snapshot):
        page = render_map_html(snapshot, api_base="")
        assert "if (!r.ok) { throw new Error(data.error || r.statusText); }" in page
        assert ".then(render).catch(" in page
        assert "post('/api/" not in page

    def test_custom_title_escaped(self, snapshot):
        page = render_map_html(snapshot, MAP_CONFIG, title="Farms & <Fields>")
        assert "<title>Farms &amp; &lt;Fields&gt;</title>" in page

    def test_write_map_html(self, snapshot, tmp_path):
        path = write_map_html(tmp_path / "out" / "map.html", snapshot)
        assert path.exists()
        assert "FARM_MAP_CONFIG" in path.read_text(encoding="utf-8")
