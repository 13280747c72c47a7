"""
Leaflet HTML renderer for the farm boundary map.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Turn a BoundaryMapView snapshot into a self-contained HTML
page that draws the same layers with Leaflet.

Key Features:
- Leaflet loaded from CDN
- Snapshot and frontend config embedded as JSON
- Street/satellite toggle, region info panel and draw-mode panel
- Optional interactive mode: clicks, selection and toggles are posted to the
  Flask API and the page re-renders from the returned snapshot

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import html
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .map_config import LEAFLET_VERSION
from .map_config_types import MAP_CONFIG, MapViewConfig

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# 📜 CLIENT SCRIPT
# ═══════════════════════════════════════════════════════════════════════════════

_CLIENT_JS = r"""
(function () {
  const CONFIG = window.FARM_MAP_CONFIG;
  let SNAPSHOT = window.FARM_MAP_SNAPSHOT;
  const API = window.FARM_MAP_API;
  const INTERACTIVE = API !== null;

  const map = L.map('map', {
    maxBounds: SNAPSHOT.max_bounds,
    maxBoundsViscosity: 1.0,
    minZoom: SNAPSHOT.min_zoom,
    maxZoom: SNAPSHOT.max_zoom,
    zoomControl: false
  });
  L.control.zoom({ position: 'topright' }).addTo(map);

  const tiles = {};
  Object.keys(CONFIG.tiles).forEach(function (name) {
    const t = CONFIG.tiles[name];
    if (t && t.url) {
      tiles[name] = L.tileLayer(t.url, {
        attribution: '',
        minZoom: SNAPSHOT.min_zoom,
        maxZoom: SNAPSHOT.max_zoom
      });
    }
  });

  let activeTile = null;
  let overlays = [];

  function setBase(name) {
    if (activeTile) { map.removeLayer(activeTile); }
    activeTile = tiles[name];
    if (activeTile) { activeTile.addTo(map); }
    const btn = document.getElementById('base-toggle');
    btn.textContent = name === 'satellite'
      ? CONFIG.tiles.street.label : CONFIG.tiles.satellite.label;
  }

  function post(path, body) {
    return fetch(API + path, {
      method: 'POST',
      headers: { 'Content-Type': 'application/json' },
      body: JSON.stringify(body || {})
    }).then(function (r) {
      return r.json().then(function (data) {
        if (!r.ok) { throw new Error(data.error || r.statusText); }
        return data;
      });
    });
  }

  function apply(path, body) {
    return post(path, body).then(render).catch(function (err) {
      console.warn('Farm map request failed: ' + path + ': ' + err.message);
    });
  }

  function render(snapshot) {
    SNAPSHOT = snapshot;
    overlays.forEach(function (l) { map.removeLayer(l); });
    overlays = [];

    snapshot.layers.forEach(function (layer) {
      let l = null;
      if (layer.kind === 'tile') { return; }
      if (layer.kind === 'outline' || layer.kind === 'polygon') {
        l = L.polygon(layer.points, layer.style);
      } else if (layer.kind === 'polyline') {
        l = L.polyline(layer.points, layer.style);
      } else if (layer.kind === 'marker') {
        l = L.marker(layer.points[0], { icon: L.icon(layer.style.icon) });
      }
      if (!l) { return; }
      if (layer.popup) { l.bindPopup(layer.popup); }
      if (INTERACTIVE && layer.farm_id) {
        l.on('click', function () {
          apply('/api/select', { farm_id: layer.farm_id });
        });
      }
      l.addTo(map);
      overlays.push(l);
    });

    map.setView(snapshot.viewport.center, snapshot.viewport.zoom);
    setBase(snapshot.base_layer);

    document.getElementById('farm-count').textContent =
      snapshot.farm_count + ' farm polygons';
    const panel = document.getElementById('draw-panel');
    panel.style.display = snapshot.drawing.active ? 'block' : 'none';
    document.getElementById('draw-count').textContent =
      'Points: ' + snapshot.drawing.points.length;
    document.getElementById('draw-ready').style.display =
      snapshot.drawing.ready ? 'block' : 'none';
  }

  map.on('click', function (e) {
    if (!INTERACTIVE || !SNAPSHOT.drawing.active) { return; }
    apply('/api/draw/click', { lat: e.latlng.lat, lng: e.latlng.lng });
  });

  document.getElementById('base-toggle').addEventListener('click', function () {
    if (INTERACTIVE) {
      apply('/api/base-layer/toggle');
    } else {
      SNAPSHOT.base_layer = SNAPSHOT.base_layer === 'street' ? 'satellite' : 'street';
      setBase(SNAPSHOT.base_layer);
    }
  });

  render(SNAPSHOT);
})();
"""

_STYLE = """
    html, body { margin: 0; height: 100%; font-family: system-ui, sans-serif; }
    #map { width: 100%; height: 100%; min-height: 400px; }
    .panel {
      position: absolute; z-index: 1000; background: rgba(255,255,255,0.9);
      border-radius: 8px; padding: 8px; font-size: 12px; color: #374151;
      box-shadow: 0 1px 4px rgba(0,0,0,0.2);
    }
    #controls { top: 16px; left: 16px; display: flex; flex-direction: column; gap: 8px; }
    #draw-panel { top: 16px; right: 64px; display: none; }
    #base-toggle { cursor: pointer; border: 1px solid #d1d5db; background: #fff;
      border-radius: 6px; padding: 6px 8px; font-size: 12px; }
    .leaflet-control-attribution { display: none !important; }
    .leaflet-container { font-family: inherit; }
"""


# ═══════════════════════════════════════════════════════════════════════════════
# 📄 PAGE GENERATION
# ═══════════════════════════════════════════════════════════════════════════════


def _embed_json(data: Any) -> str:
    """JSON safe to place inside a <script> element."""
    return json.dumps(data, separators=(",", ":")).replace("</", "<\\/")


def render_map_html(
    snapshot: Dict[str, Any],
    config: Optional[MapViewConfig] = None,
    title: Optional[str] = None,
    api_base: Optional[str] = None,
) -> str:
    """
    Generate a complete HTML page for a map snapshot.

    Args:
        snapshot: BoundaryMapView.snapshot() output
        config: Map configuration (defaults to MAP_CONFIG)
        title: Page title (defaults to the server title)
        api_base: Base URL of the Flask API; None renders a static page

    Returns:
        Complete HTML string
    """
    config = config or MAP_CONFIG
    title = title or config.server.title
    region_name = html.escape(config.region.name)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(title)}</title>
    <link rel="stylesheet" href="https://unpkg.com/leaflet@{LEAFLET_VERSION}/dist/leaflet.css" />
    <script src="https://unpkg.com/leaflet@{LEAFLET_VERSION}/dist/leaflet.js"></script>
    <style>{_STYLE}</style>
</head>
<body>
    <div id="map"></div>
    <div id="controls" class="panel">
        <button id="base-toggle" type="button">Satellite View</button>
        <div>
            <strong>{region_name}</strong>
            <div id="farm-count" style="color:#059669"></div>
        </div>
    </div>
    <div id="draw-panel" class="panel">
        <strong style="color:#2563eb">Drawing Mode Active</strong>
        <div>Click on the map to add boundary points</div>
        <div id="draw-count" style="color:#059669;font-weight:600"></div>
        <div id="draw-ready" style="color:#2563eb">&#10003; Ready to save polygon</div>
    </div>
    <script>
        window.FARM_MAP_CONFIG = {_embed_json(config.to_frontend_dict())};
        window.FARM_MAP_SNAPSHOT = {_embed_json(snapshot)};
        window.FARM_MAP_API = {_embed_json(api_base)};
    </script>
    <script>{_CLIENT_JS}</script>
</body>
</html>
"""


def write_map_html(
    output_path: Path,
    snapshot: Dict[str, Any],
    config: Optional[MapViewConfig] = None,
    title: Optional[str] = None,
) -> Path:
    """
    Write a static map page to disk.

    Returns:
        Absolute path to the written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_map_html(snapshot, config, title), encoding="utf-8")
    logger.info(f"📄 Map written: {output_path}")
    return output_path.resolve()
