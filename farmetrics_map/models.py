"""
Typed data models for farm records shown on the boundary map.

Architectural Overview:
=======================
FarmRecord is the read-only view of a farm row as delivered by the data
layer. The map never mutates a record; it only reads it and, on selection,
echoes it back to the caller.

Key Interactions:
-----------------
- Input: FarmDataLoader builds FarmRecord instances with from_dict()
- Output: as_dict() gives the JSON shape used by the Flask API
- Geometry: polygon_coordinates is kept as delivered (list of [lat, lng]);
  validation against the containing region happens at render time

MODIFICATION POINT: Add new FarmStatus values here if the data layer starts
reporting more states than approved/pending.
"""

from dataclasses import dataclass, field
from enum import Enum
import json
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class FarmStatus(Enum):
    """Display status of a farm boundary.

    ISSUE is a styled tier that current farm data never produces: the data
    layer only distinguishes approved from pending.
    """

    APPROVED = "approved"
    PENDING = "pending"
    ISSUE = "issue"

    @classmethod
    def from_string(cls, s: str) -> "FarmStatus":
        """Convert string to FarmStatus, with fallback to PENDING."""
        for member in cls:
            if member.value == s:
                return member
        return cls.PENDING

    @property
    def label(self) -> str:
        return self.value.title()


# ═══════════════════════════════════════════════════════════════════════════
# 🧩 GEOMETRY DECODING
# ═══════════════════════════════════════════════════════════════════════════


def parse_polygon_coordinates(value: Any) -> Optional[List[Any]]:
    """
    Decode persisted polygon geometry.

    The data layer stores boundaries as a JSON array of [lat, lng] pairs; some
    exports deliver that array already decoded, others as a JSON string.

    Returns:
        The decoded list, or None when the value is empty or not a list.
        Individual pairs are not validated here.
    """
    if value is None:
        return None
    if isinstance(value, float) and value != value:  # NaN from pandas
        return None
    if isinstance(value, (str, bytes)):
        text = value.strip() if isinstance(value, str) else value.decode().strip()
        if not text:
            return None
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(f"Unparseable polygon_coordinates: {text[:60]!r}")
            return None
    if not isinstance(value, (list, tuple)) or len(value) == 0:
        return None
    return [list(p) if isinstance(p, (list, tuple)) else p for p in value]


# ═══════════════════════════════════════════════════════════════════════════
# 🌾 FARM RECORD
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FarmRecord:
    """A farm row as delivered by the data layer.

    Only id, farm_name, region, district, polygon_coordinates and
    is_approved drive the map; the remaining fields feed popups, search and
    the polygon management listing.
    """

    id: str
    farm_name: str
    region: str = ""
    district: str = ""
    polygon_coordinates: Optional[List[Any]] = None
    is_approved: bool = False
    farmer_name: Optional[str] = None
    crop_type: Optional[str] = None
    assigned_officer: Optional[str] = None
    visit_count: int = 0
    updated_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def status(self) -> FarmStatus:
        return FarmStatus.APPROVED if self.is_approved else FarmStatus.PENDING

    @property
    def has_polygon(self) -> bool:
        return bool(self.polygon_coordinates)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FarmRecord":
        """
        Build a record from a backend row.

        Accepts nested ``farmer`` / ``assigned_officer`` objects the way the
        backend join returns them, or flat ``farmer_name`` columns.
        """
        if "id" not in d or d["id"] in (None, ""):
            raise ValueError("Farm record is missing an id")

        farmer = d.get("farmer")
        farmer_name = d.get("farmer_name")
        if farmer_name is None and isinstance(farmer, dict):
            farmer_name = farmer.get("name")

        officer = d.get("assigned_officer")
        if isinstance(officer, dict):
            officer = officer.get("full_name")

        known = {
            "id",
            "farm_name",
            "region",
            "district",
            "polygon_coordinates",
            "is_approved",
            "farmer",
            "farmer_name",
            "crop_type",
            "assigned_officer",
            "visit_count",
            "visits_count",
            "updated_at",
        }
        return cls(
            id=str(d["id"]),
            farm_name=str(d.get("farm_name") or ""),
            region=str(d.get("region") or ""),
            district=str(d.get("district") or ""),
            polygon_coordinates=parse_polygon_coordinates(
                d.get("polygon_coordinates")
            ),
            is_approved=_to_bool(d.get("is_approved", False)),
            farmer_name=farmer_name,
            crop_type=d.get("crop_type"),
            assigned_officer=officer,
            visit_count=int(d.get("visit_count", d.get("visits_count")) or 0),
            updated_at=d.get("updated_at"),
            extra={k: v for k, v in d.items() if k not in known},
        )

    def as_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            **self.extra,
            "id": self.id,
            "farm_name": self.farm_name,
            "region": self.region,
            "district": self.district,
            "polygon_coordinates": self.polygon_coordinates,
            "is_approved": self.is_approved,
            "status": self.status.value,
            "farmer_name": self.farmer_name,
            "crop_type": self.crop_type,
            "assigned_officer": self.assigned_officer,
            "visit_count": self.visit_count,
            "updated_at": self.updated_at,
        }


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "t")
    if isinstance(value, float) and value != value:
        return False
    return bool(value)


def farms_from_dicts(rows: List[Dict[str, Any]]) -> List[FarmRecord]:
    """Batch conversion, skipping rows without an id."""
    farms = []
    for row in rows:
        try:
            farms.append(FarmRecord.from_dict(row))
        except ValueError as e:
            logger.warning(f"Skipping farm row: {e}")
    return farms
