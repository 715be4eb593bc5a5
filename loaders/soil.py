"""
Soil Loader - Soil suitability for urban agriculture.

Uses the ISRIC SoilGrids properties query service, with a neutral
estimate when the service is unavailable.
"""

import time
import threading
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential

from core.models import LatLng, SoilAssessment

log = logging.getLogger(__name__)

# Rate limiter
_last_request_time = 0.0
_rate_lock = threading.Lock()
_MIN_REQUEST_INTERVAL = 0.2  # 5 requests per second max

SOIL_PROPERTIES = ("phh2o", "soc", "clay", "sand", "nitrogen", "cec")
SOIL_DEPTHS = ("0-5cm", "5-15cm", "15-30cm")


@dataclass
class SoilProperties:
    """Topsoil properties in conventional units."""
    ph: float = 6.5
    organic_carbon_g_kg: float = 20.0
    nitrogen_g_kg: float = 1.5
    cec_cmol_kg: float = 15.0
    clay_pct: Optional[float] = None
    sand_pct: Optional[float] = None

    @property
    def texture(self) -> str:
        if not self.clay_pct or not self.sand_pct:
            return "LOAM"
        silt = 100 - self.clay_pct - self.sand_pct
        if self.clay_pct > 40:
            return "CLAY"
        if self.sand_pct > 65:
            return "SANDY"
        if silt > 60:
            return "SILTY"
        if 20 <= self.clay_pct <= 35 and 45 <= self.sand_pct <= 65:
            return "LOAM"
        return "MIXED"

    @property
    def drainage(self) -> str:
        clay = self.clay_pct or 0
        sand = self.sand_pct or 0
        if clay > 40:
            return "POOR"
        if sand > 70:
            return "EXCESSIVE"
        if 20 <= clay <= 35:
            return "GOOD"
        return "MODERATE"

    @property
    def fertility(self) -> float:
        score = 0.5
        if self.organic_carbon_g_kg > 30:
            score += 0.2
        if self.nitrogen_g_kg > 2:
            score += 0.15
        if self.cec_cmol_kg > 20:
            score += 0.15
        return min(score, 1.0)


def ph_score(ph: float) -> float:
    """6.0-7.0 is optimal for most crops."""
    if 6.0 <= ph <= 7.0:
        return 1.0
    if 5.5 <= ph < 6.0 or 7.0 < ph <= 7.5:
        return 0.8
    if 5.0 <= ph < 5.5 or 7.5 < ph <= 8.0:
        return 0.5
    return 0.2


_TEXTURE_SCORES = {"LOAM": 1.0, "SILTY": 0.9, "SANDY": 0.6, "CLAY": 0.5, "MIXED": 0.7}
_DRAINAGE_SCORES = {"GOOD": 1.0, "MODERATE": 0.7, "EXCESSIVE": 0.4, "POOR": 0.3}
_CONTAMINATION_SCORES = {"LOW": 1.0, "MODERATE": 0.5}


def categorize_soil(score: float) -> str:
    if score >= 0.8:
        return "EXCELLENT"
    elif score >= 0.6:
        return "GOOD"
    elif score >= 0.4:
        return "MODERATE"
    elif score >= 0.2:
        return "POOR"
    return "UNSUITABLE"


def soil_suitability(
    props: SoilProperties,
    contamination_risk: str = "UNKNOWN",
    historical_risk: str = "MODERATE",
    industrial_distance_m: float = 1000.0,
    previously_agricultural: bool = False,
) -> float:
    """
    Weighted soil suitability, 0.0 to 1.0.

    Soil properties 40%, contamination 30%, land history 20%,
    agricultural history 10%.
    """
    factors = (
        props.fertility * 0.15,
        ph_score(props.ph) * 0.10,
        _TEXTURE_SCORES.get(props.texture, 0.5) * 0.10,
        _DRAINAGE_SCORES.get(props.drainage, 0.5) * 0.05,
        _CONTAMINATION_SCORES.get(contamination_risk, 0.0) * 0.30,
        (1.0 if historical_risk == "LOW" else 0.5) * 0.10,
        (0.0 if industrial_distance_m < 500 else 1.0) * 0.10,
        (1.0 if previously_agricultural else 0.7) * 0.10,
    )
    return sum(factors)


def default_assessment() -> SoilAssessment:
    """Neutral estimate used when no soil data is available."""
    return SoilAssessment(
        ph=6.5,
        category="MODERATE",
        contamination_risk="UNKNOWN",
        score=50.0,
        estimated=True,
    )


class SoilGridsLoader:
    """
    Fetch topsoil properties from ISRIC SoilGrids and rate them for growing.

    API Documentation:
    https://rest.isric.org/soilgrids/v2.0/docs
    """

    SOILGRIDS_URL = "https://rest.isric.org/soilgrids/v2.0/properties/query"

    def __init__(self, timeout: int = 15):
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

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=5))
    def _make_request(self, lat: float, lng: float) -> Dict:
        self._rate_limit()
        response = self.session.get(
            self.SOILGRIDS_URL,
            params={
                "lon": lng,
                "lat": lat,
                "property": list(SOIL_PROPERTIES),
                "depth": list(SOIL_DEPTHS),
                "value": "mean",
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def fetch_properties(self, lat: float, lng: float) -> Optional[SoilProperties]:
        """Topsoil properties, or None if the service is unavailable."""
        try:
            data = self._make_request(lat, lng)
        except Exception as e:
            log.error(f"SoilGrids request failed for ({lat}, {lng}): {e}")
            return None

        try:
            means = self._parse_layers(data)
        except (KeyError, TypeError, ValueError) as e:
            log.error(f"Failed to parse SoilGrids response: {e}")
            return None

        if not means:
            log.debug(f"No soil data for ({lat}, {lng})")
            return None

        defaults = SoilProperties()
        return SoilProperties(
            ph=means.get("phh2o", defaults.ph),
            organic_carbon_g_kg=means.get("soc", defaults.organic_carbon_g_kg),
            nitrogen_g_kg=means.get("nitrogen", defaults.nitrogen_g_kg),
            cec_cmol_kg=means.get("cec", defaults.cec_cmol_kg),
            clay_pct=means.get("clay"),
            sand_pct=means.get("sand"),
        )

    @staticmethod
    def _parse_layers(data: Dict) -> Dict[str, float]:
        """Average each property over the returned depths, in conventional units."""
        # d_factor converts mapped units to conventional ones (pH*10 -> pH, g/kg -> %)
        means = {}
        for layer in data.get("properties", {}).get("layers", []):
            name = layer["name"]
            d_factor = float(layer.get("unit_measure", {}).get("d_factor", 1)) or 1.0
            values = [
                depth["values"]["mean"]
                for depth in layer.get("depths", [])
                if depth.get("values", {}).get("mean") is not None
            ]
            if values:
                means[name] = sum(values) / len(values) / d_factor
        return means

    def assess(self, location: LatLng) -> SoilAssessment:
        """Soil assessment for a point; neutral estimate if data is missing."""
        props = self.fetch_properties(location.lat, location.lng)
        if props is None:
            return default_assessment()

        score = soil_suitability(props)
        return SoilAssessment(
            ph=round(props.ph, 2),
            category=categorize_soil(score),
            contamination_risk="UNKNOWN",
            score=round(score * 100),
        )


# Singleton
_loader: Optional[SoilGridsLoader] = None

def get_soil_loader() -> SoilGridsLoader:
    """Get singleton soil loader."""
    global _loader
    if _loader is None:
        _loader = SoilGridsLoader()
    return _loader
