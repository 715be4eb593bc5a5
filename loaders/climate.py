"""
Climate Loader - urban farming suitability from a city climate summary.

Takes city-wide scalars (solar irradiance, temperature, precipitation),
typically from the NASA POWER API, and rates them for growing food.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.models import CellBounds, LatLng
from loaders.ports import ClimateScore

log = logging.getLogger(__name__)

# Missing scalars score at the middle of the 0-100 scale
_NEUTRAL_SCORE = 50.0


@dataclass(frozen=True)
class ClimateSummary:
    """City-wide climate means."""
    solar_kwh_m2_day: Optional[float] = None
    temperature_c: Optional[float] = None
    precipitation_mm_day: Optional[float] = None

    @classmethod
    def from_power_data(cls, power_data: Optional[Dict[str, Any]]) -> "ClimateSummary":
        """Build from a NASA POWER style payload (``{"data": {"T2M": {"mean": ..}}}``)."""
        data = (power_data or {}).get("data") or {}

        def mean(param: str) -> Optional[float]:
            value = (data.get(param) or {}).get("mean")
            return float(value) if value is not None else None

        return cls(
            solar_kwh_m2_day=mean("ALLSKY_SFC_SW_DWN"),
            temperature_c=mean("T2M"),
            precipitation_mm_day=mean("PRECTOTCORR"),
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ClimateSummary":
        if not data:
            return cls()
        if "data" in data:
            return cls.from_power_data(data)
        return cls(
            solar_kwh_m2_day=data.get("solar", data.get("solar_kwh_m2_day")),
            temperature_c=data.get("temperature", data.get("temperature_c")),
            precipitation_mm_day=data.get("precipitation", data.get("precipitation_mm_day")),
        )

    @property
    def is_empty(self) -> bool:
        return (self.solar_kwh_m2_day is None and self.temperature_c is None
                and self.precipitation_mm_day is None)


def solar_score(solar_kwh: Optional[float]) -> float:
    """6 kWh/m²/day is optimal for most crops."""
    if not solar_kwh:
        return _NEUTRAL_SCORE
    return max(0.0, min(solar_kwh / 6.0 * 100, 100.0))


def temperature_score(temperature_c: Optional[float]) -> float:
    """22°C is optimal; lose 5 points per degree of deviation."""
    if temperature_c is None:
        return _NEUTRAL_SCORE
    return max(100 - abs(temperature_c - 22) * 5, 0.0)


def water_score(precipitation_mm: Optional[float]) -> float:
    """2-4 mm/day is optimal; too much water is penalized down to 50."""
    if not precipitation_mm:
        return _NEUTRAL_SCORE
    if 2 <= precipitation_mm <= 4:
        return 100.0
    if precipitation_mm < 2:
        return max(precipitation_mm / 2 * 100, 0.0)
    return max(100 - (precipitation_mm - 4) * 10, 50.0)


def categorize_farm_potential(score: float) -> str:
    if score >= 80:
        return "EXCELLENT"
    elif score >= 60:
        return "GOOD"
    elif score >= 40:
        return "MODERATE"
    elif score >= 20:
        return "CHALLENGING"
    return "POOR"


def climate_stress(summary: ClimateSummary) -> float:
    """Deviation from comfortable growing conditions, 0.0 to 1.0."""
    if summary.is_empty:
        return 0.5
    temperature = summary.temperature_c if summary.temperature_c is not None else 20.0
    precipitation = summary.precipitation_mm_day if summary.precipitation_mm_day is not None else 2.0
    temp_stress = abs(temperature - 22) / 20
    water_stress = abs(precipitation - 3) / 3
    return min((temp_stress + water_stress) / 2, 1.0)


class ClimateAnalyzer:
    """
    Climate suitability provider backed by a single city-wide summary.

    Every location in the city gets the same score; the port accepts a
    location so finer-grained providers can be swapped in.
    """

    def __init__(self, summary: Optional[ClimateSummary] = None):
        self.summary = summary or ClimateSummary()
        self._score: Optional[ClimateScore] = None

    def suitability(self, location: LatLng, bounds: Optional[CellBounds] = None) -> ClimateScore:
        if self._score is None:
            self._score = self._analyze()
        return self._score

    def _analyze(self) -> ClimateScore:
        solar = solar_score(self.summary.solar_kwh_m2_day)
        temp = temperature_score(self.summary.temperature_c)
        water = water_score(self.summary.precipitation_mm_day)
        overall = round(solar * 0.4 + temp * 0.3 + water * 0.3)

        log.debug(f"Climate suitability: solar={solar:.0f} temp={temp:.0f} water={water:.0f}")
        return ClimateScore(
            overall=float(overall),
            solar=round(solar),
            temperature=round(temp),
            water=round(water),
            category=categorize_farm_potential(overall),
        )
