#!/usr/bin/env python3
"""
Farmetrics Boundary Map - Geometry Utilities

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Pure geometry computations for the farm boundary map.
No dependency on the map surface, Flask or HTML generation.

Key Functions:
1. Coordinate parsing ([lat, lng] pairs -> GeoPoint)
2. Boundary validation against the containing region
3. Bounds computation, clamping and centre calculation
4. Fit-bounds zoom level (Web Mercator, 256 px tiles)
5. Area metrics (point-count placeholder and geodesic area)

Coordinate order: GeoPoint and all public functions use (lat, lng), the order
the map and the persisted farm records use. Shapely geometries are built in
(x=lng, y=lat) order.

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import logging
import math
from typing import Any, Iterable, List, NamedTuple, Optional, Sequence

import numpy as np
from pyproj import Geod
from shapely.geometry import MultiPoint, Polygon, box

logger = logging.getLogger(__name__)

# Minimum number of points for a closed, fillable boundary
MIN_POLYGON_POINTS = 3

TILE_SIZE_PX = 256

_GEOD = Geod(ellps="WGS84")


# ===========================================================================
# VALUE TYPES
# ===========================================================================


class GeoPoint(NamedTuple):
    """A (latitude, longitude) pair in WGS84 degrees."""

    lat: float
    lng: float

    def to_list(self) -> List[float]:
        return [self.lat, self.lng]


class BoundingBox(NamedTuple):
    """Axis-aligned geographic rectangle (south, west, north, east)."""

    south: float
    west: float
    north: float
    east: float

    def contains(self, lat: float, lng: float) -> bool:
        """True if (lat, lng) lies inside the box, edges included."""
        return self.south <= lat <= self.north and self.west <= lng <= self.east

    def clamp_to(self, outer: "BoundingBox") -> "BoundingBox":
        """
        Intersect this box with ``outer``.

        If the two boxes do not overlap on an axis, that axis collapses onto
        the nearest edge of ``outer`` so the result always lies inside it.
        """
        south = min(max(self.south, outer.south), outer.north)
        north = max(min(self.north, outer.north), outer.south)
        west = min(max(self.west, outer.west), outer.east)
        east = max(min(self.east, outer.east), outer.west)
        return BoundingBox(
            min(south, north), min(west, east), max(south, north), max(west, east)
        )

    def clamp_point(self, lat: float, lng: float) -> GeoPoint:
        """Nearest point inside the box."""
        return GeoPoint(
            min(max(lat, self.south), self.north),
            min(max(lng, self.west), self.east),
        )

    @property
    def center(self) -> GeoPoint:
        return GeoPoint((self.south + self.north) / 2, (self.west + self.east) / 2)

    def to_leaflet(self) -> List[List[float]]:
        """Leaflet LatLngBounds expression [[south, west], [north, east]]."""
        return [[self.south, self.west], [self.north, self.east]]

    def to_shapely(self) -> Polygon:
        return box(self.west, self.south, self.east, self.north)


# ===========================================================================
# COORDINATE PARSING & VALIDATION
# ===========================================================================


def parse_points(raw: Any) -> Optional[List[GeoPoint]]:
    """
    Convert a sequence of [lat, lng] pairs to GeoPoints.

    Args:
        raw: Anything the data layer handed us for a boundary

    Returns:
        List of GeoPoint, or None if ``raw`` is not a sequence of numeric
        pairs. Extra items in a pair (e.g. altitude) are ignored.
    """
    if raw is None or isinstance(raw, (str, bytes)):
        return None
    try:
        points = []
        for coord in raw:
            if isinstance(coord, (str, bytes)) or len(coord) < 2:
                return None
            lat, lng = float(coord[0]), float(coord[1])
            if math.isnan(lat) or math.isnan(lng):
                return None
            points.append(GeoPoint(lat, lng))
    except (TypeError, ValueError):
        return None
    return points


def points_within(points: Iterable[GeoPoint], bounds: BoundingBox) -> List[GeoPoint]:
    """Keep only the points inside ``bounds``, preserving order."""
    return [p for p in points if bounds.contains(p.lat, p.lng)]


def validate_boundary(raw: Any, bounds: BoundingBox) -> Optional[List[GeoPoint]]:
    """
    Validate a farm boundary for rendering as a filled polygon.

    A boundary is accepted only when it parses, has at least
    MIN_POLYGON_POINTS points and every point lies inside ``bounds``.

    Returns:
        The boundary as GeoPoints, or None when it must be treated as absent.
    """
    points = parse_points(raw)
    if points is None:
        return None
    if len(points) < MIN_POLYGON_POINTS:
        return None
    if len(points_within(points, bounds)) != len(points):
        return None
    return points


# ===========================================================================
# BOUNDS UTILITIES
# ===========================================================================


def bounds_of(polygons: Sequence[Sequence[GeoPoint]]) -> Optional[BoundingBox]:
    """
    Combined bounding box of one or more point sequences.

    Returns:
        BoundingBox, or None when there are no points at all.
    """
    coords = [(p.lng, p.lat) for poly in polygons for p in poly]
    if not coords:
        return None
    minx, miny, maxx, maxy = MultiPoint(coords).bounds
    return BoundingBox(miny, minx, maxy, maxx)


def mercator_y(lat: float) -> float:
    """Normalised Web Mercator y for a latitude (radians of the projection)."""
    lat = max(min(lat, 85.0511287798), -85.0511287798)
    rad = math.radians(lat)
    return math.log(math.tan(math.pi / 4 + rad / 2))


def inverse_mercator_y(y: float) -> float:
    """Latitude for a normalised Web Mercator y."""
    return math.degrees(math.atan(math.sinh(y)))


def fit_zoom(
    bounds: BoundingBox,
    width_px: int,
    height_px: int,
    padding_px: int = 0,
    min_zoom: int = 0,
    max_zoom: int = 19,
) -> int:
    """
    Largest integer zoom at which ``bounds`` fits a padded viewport.

    Uses the Web Mercator tile pyramid (256 px tiles, world width
    256 * 2**zoom px), the same scheme the Leaflet surface renders with.

    Args:
        bounds: Bounds to fit
        width_px: Viewport width in pixels
        height_px: Viewport height in pixels
        padding_px: Padding on each side in pixels
        min_zoom: Lower zoom limit
        max_zoom: Upper zoom limit

    Returns:
        Zoom level clamped to [min_zoom, max_zoom]
    """
    usable = np.array(
        [max(width_px - 2 * padding_px, 1), max(height_px - 2 * padding_px, 1)],
        dtype=float,
    )
    # Fraction of the world each axis spans
    span = np.array(
        [
            (bounds.east - bounds.west) / 360.0,
            abs(mercator_y(bounds.north) - mercator_y(bounds.south)) / (2 * math.pi),
        ]
    )
    span = np.where(span <= 0, np.nan, span)
    if np.all(np.isnan(span)):
        return max_zoom

    zooms = np.log2(usable / (TILE_SIZE_PX * span))
    zoom = int(math.floor(np.nanmin(zooms)))
    return max(min_zoom, min(zoom, max_zoom))


# ===========================================================================
# SHAPES & AREA
# ===========================================================================


def to_shapely_polygon(points: Sequence[GeoPoint]) -> Polygon:
    """Shapely polygon (x=lng, y=lat) for a closed boundary."""
    if len(points) < MIN_POLYGON_POINTS:
        raise ValueError(
            f"A polygon needs at least {MIN_POLYGON_POINTS} points, got {len(points)}"
        )
    return Polygon([(p.lng, p.lat) for p in points])


def approximate_area_hectares(
    points: Sequence[GeoPoint], hectares_per_point: float = 0.1
) -> float:
    """
    Placeholder area estimate: number of points times ``hectares_per_point``.

    This is NOT a measured area. It reproduces the figure the dashboard has
    historically shown and is always labelled approximate.
    """
    return len(points) * hectares_per_point


def geodesic_area_hectares(points: Sequence[GeoPoint]) -> float:
    """Ellipsoidal (WGS84) area of a closed boundary, in hectares."""
    if len(points) < MIN_POLYGON_POINTS:
        return 0.0
    area_m2, _ = _GEOD.geometry_area_perimeter(to_shapely_polygon(points))
    return abs(area_m2) / 10_000.0
