"""
Vacant Space Loader via Overpass API.

Finds parcels that could host an intervention:
- Vacant lots, brownfields and disused shops
- Public parking lots and parks large enough to partially convert
"""

import time
import threading
import logging
from typing import Dict, List, Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential

from core.models import BoundingBox, CandidateLocation, LatLng, LocationAttributes

log = logging.getLogger(__name__)

# Overpass rate limit
_last_request_time = 0.0
_rate_lock = threading.Lock()
_MIN_REQUEST_INTERVAL = 2.0  # 2 seconds between requests

DEFAULT_PARCEL_AREA_M2 = 1000.0
MIN_UNDERUTILIZED_AREA_M2 = 500.0
# Share of an underutilized parcel assumed convertible
CONVERSION_POTENTIAL = 0.3


def _parse_area(tags: Dict[str, str], default: float) -> float:
    raw = tags.get("area")
    if raw is None:
        return default
    try:
        return float(str(raw).split()[0])
    except ValueError:
        return default


def _element_center(element: Dict) -> Optional[LatLng]:
    center = element.get("center")
    if center:
        return LatLng(float(center["lat"]), float(center["lon"]))
    if "lat" in element and "lon" in element:
        return LatLng(float(element["lat"]), float(element["lon"]))
    return None


class OverpassVacantSpaceLoader:
    """
    Vacant and underutilized parcels from OpenStreetMap.

    Failures are logged and yield an empty list so a run can continue on
    the grid alone.
    """

    OVERPASS_URL = "https://overpass-api.de/api/interpreter"

    def __init__(self, timeout: int = 25):
        self.timeout = timeout
        self.session = requests.Session()

    def _rate_limit(self):
        """Ensure we don't exceed rate limits."""
        global _last_request_time
        with _rate_lock:
            elapsed = time.time() - _last_request_time
            if elapsed < _MIN_REQUEST_INTERVAL:
                time.sleep(_MIN_REQUEST_INTERVAL - elapsed)
            _last_request_time = time.time()

    @staticmethod
    def _bbox_filter(bbox: BoundingBox) -> str:
        return f"{bbox.south},{bbox.west},{bbox.north},{bbox.east}"

    def _vacant_query(self, bbox: BoundingBox) -> str:
        area = self._bbox_filter(bbox)
        return f"""
        [out:json][timeout:{self.timeout}];
        (
          way["landuse"="brownfield"]({area});
          way["landuse"="vacant"]({area});
          way["disused:shop"]({area});
        );
        out center;
        """

    def _underutilized_query(self, bbox: BoundingBox) -> str:
        area = self._bbox_filter(bbox)
        return f"""
        [out:json][timeout:{self.timeout}];
        (
          way["amenity"="parking"]["access"!="private"]({area});
          way["leisure"="park"]({area});
        );
        out center;
        """

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=2, min=2, max=15))
    def _make_request(self, query: str) -> Dict:
        """Make a rate-limited request with retry."""
        self._rate_limit()
        response = self.session.post(
            self.OVERPASS_URL,
            data={"data": query},
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def _fetch_elements(self, query: str, label: str) -> List[Dict]:
        try:
            return self._make_request(query).get("elements", [])
        except Exception as e:
            log.warning(f"Could not fetch {label} spaces: {e}")
            return []

    def find_vacant_spaces(self, bbox: BoundingBox) -> List[CandidateLocation]:
        """Vacant lots, brownfields and disused shops."""
        spaces = []
        for element in self._fetch_elements(self._vacant_query(bbox), "vacant"):
            center = _element_center(element)
            if center is None:
                continue
            tags = element.get("tags", {})
            spaces.append(CandidateLocation(
                id=f"vacant_{element['id']}",
                center=center,
                area_m2=_parse_area(tags, DEFAULT_PARCEL_AREA_M2),
                source="vacant",
                tags=dict(tags),
                attributes=LocationAttributes(),
            ))
        return spaces

    def find_underutilized_spaces(self, bbox: BoundingBox) -> List[CandidateLocation]:
        """Public parking lots and parks over 500 m²."""
        spaces = []
        for element in self._fetch_elements(self._underutilized_query(bbox), "underutilized"):
            center = _element_center(element)
            if center is None:
                continue
            tags = element.get("tags", {})
            if _parse_area(tags, 0.0) <= MIN_UNDERUTILIZED_AREA_M2:
                continue

            is_parking = tags.get("amenity") == "parking"
            spaces.append(CandidateLocation(
                id=f"underused_{element['id']}",
                center=center,
                area_m2=_parse_area(tags, DEFAULT_PARCEL_AREA_M2),
                source="parking_lot" if is_parking else "park",
                tags=dict(tags),
                conversion_potential=CONVERSION_POTENTIAL,
                attributes=LocationAttributes(parking_spaces=100 if is_parking else 20),
            ))
        return spaces

    def find_spaces(self, bbox: BoundingBox) -> List[CandidateLocation]:
        spaces = self.find_vacant_spaces(bbox) + self.find_underutilized_spaces(bbox)
        log.info(f"Found {len(spaces)} vacant/underutilized spaces")
        return spaces


# Singleton
_loader: Optional[OverpassVacantSpaceLoader] = None

def get_vacant_space_loader() -> OverpassVacantSpaceLoader:
    """Get singleton vacant space loader."""
    global _loader
    if _loader is None:
        _loader = OverpassVacantSpaceLoader()
    return _loader
