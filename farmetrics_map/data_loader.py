#!/usr/bin/env python3
"""
Farmetrics Boundary Map - Farm Data Loader

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Stand-in for the hosted data-access layer. Loads farm
records exported from the backend, answers the polygon-management queries,
and persists edited boundaries.

Key Features:
1. Load from farms.json (list or {"farms": [...]}) with farms.csv fallback
2. polygon_coordinates accepted as a list or a JSON-encoded string
3. Status / region / free-text filters for the polygon management listing
4. Boundary save with validation (>= 3 points, all inside the region)
5. GeoDataFrame view of valid boundaries and summary statistics

Navigation Guide:
- FarmDataLoader: Main loader class
- get_farms: Filtered farm records
- update_polygon: Persist an edited boundary

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from datetime import datetime, timezone
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import geopandas as gpd
import pandas as pd

from .geometry import (
    MIN_POLYGON_POINTS,
    BoundingBox,
    parse_points,
    points_within,
    to_shapely_polygon,
    validate_boundary,
)
from .map_config_types import MAP_CONFIG
from .models import FarmRecord, FarmStatus, farms_from_dicts

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

CRS_WGS84 = "EPSG:4326"
CRS_UTM_30N = "EPSG:32630"  # WGS 84 / UTM zone 30N, covers Ghana

JSON_FILENAME = "farms.json"
CSV_FILENAME = "farms.csv"

STATUS_FILTERS = ("all", "approved", "pending")

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# 📂 DATA LOADER
# ═══════════════════════════════════════════════════════════════════════════


class FarmDataLoader:
    """
    Load farm records from farms.json (or farms.csv) in a data directory.

    Records are cached in memory in file order; update_polygon() writes the
    whole set back to farms.json.
    """

    def __init__(self, data_dir: Path, region: Optional[BoundingBox] = None) -> None:
        """
        Initialize data loader.

        Args:
            data_dir: Directory containing farms.json or farms.csv
            region: Containing region for boundary validation
                    (defaults to the configured region)

        Raises:
            FileNotFoundError: If neither farms.json nor farms.csv exists.
        """
        self.data_dir = Path(data_dir)
        self.region = region or MAP_CONFIG.region.bounding_box

        self._farms: List[FarmRecord] = []
        self._source_path: Optional[Path] = None
        self._data_file_modified: Optional[datetime] = None
        self._data_loaded_at: Optional[datetime] = None

        self._load_data()

    # ───────────────────────────────────────────────────────────────────
    # Loading
    # ───────────────────────────────────────────────────────────────────

    def _load_data(self) -> None:
        """Load farms from JSON, falling back to CSV."""
        json_path = self.data_dir / JSON_FILENAME
        csv_path = self.data_dir / CSV_FILENAME

        if json_path.exists():
            rows = self._read_json(json_path)
            self._source_path = json_path
        elif csv_path.exists():
            logger.info(f"{JSON_FILENAME} not found, loading {CSV_FILENAME}")
            rows = self._read_csv(csv_path)
            self._source_path = csv_path
        else:
            raise FileNotFoundError(
                f"No {JSON_FILENAME} or {CSV_FILENAME} in {self.data_dir}"
            )

        self._data_file_modified = datetime.fromtimestamp(
            os.path.getmtime(self._source_path)
        )
        self._data_loaded_at = datetime.now()
        self._farms = farms_from_dicts(rows)

        with_polygons = sum(1 for f in self._farms if f.has_polygon)
        logger.info(
            f"📂 Loaded {len(self._farms)} farms ({with_polygons} with polygons) "
            f"from {self._source_path.name}"
        )

    @staticmethod
    def _read_json(path: Path) -> List[Dict[str, Any]]:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("farms", [])
        if not isinstance(data, list):
            raise ValueError(f"{path.name}: expected a list of farm records")
        return data

    @staticmethod
    def _read_csv(path: Path) -> List[Dict[str, Any]]:
        df = pd.read_csv(path, dtype={"id": str})
        df.columns = df.columns.str.strip()
        # NaN -> None so empty cells behave like missing JSON fields
        df = df.astype(object).where(pd.notna(df), None)
        return df.to_dict(orient="records")

    def reload(self) -> None:
        """Re-read the data file."""
        self._load_data()

    # ───────────────────────────────────────────────────────────────────
    # Queries
    # ───────────────────────────────────────────────────────────────────

    def get_farms(
        self,
        status: Optional[str] = None,
        region: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[FarmRecord]:
        """
        Farms matching the polygon-management filters.

        Args:
            status: "all", "approved" or "pending" (None/"" = all)
            region: Exact region label (None/""/"all" = all)
            search: Case-insensitive substring over farm name, farmer name
                    and region

        Raises:
            ValueError: If status is not a known filter value.
        """
        if status and status not in STATUS_FILTERS:
            raise ValueError(f"status must be one of {STATUS_FILTERS}, got {status!r}")

        query = (search or "").strip().lower()
        result = []
        for farm in self._farms:
            if status == "approved" and not farm.is_approved:
                continue
            if status == "pending" and farm.is_approved:
                continue
            if region and region != "all" and farm.region != region:
                continue
            if query and not _matches_search(farm, query):
                continue
            result.append(farm)
        return result

    def get_farm(self, farm_id: str) -> FarmRecord:
        """
        Raises:
            KeyError: If no farm has this id.
        """
        for farm in self._farms:
            if farm.id == farm_id:
                return farm
        raise KeyError(f"Farm not found: {farm_id}")

    def unique_regions(self) -> List[str]:
        """Region labels present in the data, in first-seen order."""
        seen: Dict[str, None] = {}
        for farm in self._farms:
            if farm.region:
                seen.setdefault(farm.region, None)
        return list(seen)

    # ───────────────────────────────────────────────────────────────────
    # Persistence
    # ───────────────────────────────────────────────────────────────────

    def update_polygon(
        self, farm_id: str, points: Sequence[Sequence[float]]
    ) -> FarmRecord:
        """
        Replace a farm's boundary and write the data back to farms.json.

        Raises:
            KeyError: If the farm does not exist.
            ValueError: If the boundary has fewer than 3 points or any point
                        lies outside the containing region.
        """
        farm = self.get_farm(farm_id)

        parsed = parse_points(points)
        if parsed is None:
            raise ValueError("Polygon must be a sequence of [lat, lng] pairs")
        if len(parsed) < MIN_POLYGON_POINTS:
            raise ValueError(
                f"Polygon must have at least {MIN_POLYGON_POINTS} points"
            )
        outside = len(parsed) - len(points_within(parsed, self.region))
        if outside:
            raise ValueError(f"{outside} point(s) lie outside the region bounds")

        updated_row = {
            **farm.as_dict(),
            "polygon_coordinates": [p.to_list() for p in parsed],
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        updated_row.pop("status", None)
        updated = FarmRecord.from_dict(updated_row)

        self._farms = [updated if f.id == farm_id else f for f in self._farms]
        self._save()
        logger.info(f"💾 Saved {len(parsed)}-point polygon for farm {farm_id}")
        return updated

    def _save(self) -> None:
        path = self.data_dir / JSON_FILENAME
        rows = []
        for farm in self._farms:
            row = farm.as_dict()
            row.pop("status", None)
            rows.append(row)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2)
        self._source_path = path
        self._data_file_modified = datetime.fromtimestamp(os.path.getmtime(path))

    # ───────────────────────────────────────────────────────────────────
    # Geo views & statistics
    # ───────────────────────────────────────────────────────────────────

    def get_farms_gdf(self) -> gpd.GeoDataFrame:
        """
        GeoDataFrame (EPSG:4326) of farms whose boundary is renderable.

        Columns: id, farm_name, region, district, status, n_points, geometry.
        """
        rows = []
        geometries = []
        for farm in self._farms:
            points = validate_boundary(farm.polygon_coordinates, self.region)
            if points is None:
                continue
            rows.append(
                {
                    "id": farm.id,
                    "farm_name": farm.farm_name,
                    "region": farm.region,
                    "district": farm.district,
                    "status": farm.status.value,
                    "n_points": len(points),
                }
            )
            geometries.append(to_shapely_polygon(points))

        if not rows:
            columns = ["id", "farm_name", "region", "district", "status", "n_points"]
            return gpd.GeoDataFrame(
                {c: [] for c in columns}, geometry=[], crs=CRS_WGS84
            )
        return gpd.GeoDataFrame(rows, geometry=geometries, crs=CRS_WGS84)

    def get_summary(self) -> Dict[str, Any]:
        """Counts and total boundary area for the dashboard header."""
        gdf = self.get_farms_gdf()
        if len(gdf):
            total_ha = float(gdf.to_crs(CRS_UTM_30N).geometry.area.sum()) / 10_000.0
            by_region = {
                str(k): int(v) for k, v in gdf["region"].value_counts().items()
            }
        else:
            total_ha = 0.0
            by_region = {}

        approved = sum(1 for f in self._farms if f.status == FarmStatus.APPROVED)
        return {
            "total_farms": len(self._farms),
            "farms_with_polygons": int(len(gdf)),
            "approved": approved,
            "pending": len(self._farms) - approved,
            "polygons_by_region": by_region,
            "total_area_hectares": round(total_ha, 2),
        }

    def get_data_info(self) -> Dict[str, Any]:
        """File and load timestamps plus record counts."""
        return {
            "data_file": self._source_path.name if self._source_path else None,
            "data_file_modified": (
                self._data_file_modified.isoformat()
                if self._data_file_modified
                else None
            ),
            "data_loaded_at": (
                self._data_loaded_at.isoformat() if self._data_loaded_at else None
            ),
            "farm_count": len(self._farms),
            "polygon_count": sum(1 for f in self._farms if f.has_polygon),
        }


def _matches_search(farm: FarmRecord, query: str) -> bool:
    haystacks = (farm.farm_name, farm.farmer_name or "", farm.region)
    return any(query in h.lower() for h in haystacks)
