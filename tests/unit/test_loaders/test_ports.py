import pytest
from unittest.mock import MagicMock
from core.models import BoundingBox, CandidateLocation, LatLng, SoilAssessment
from loaders.ports import CallableSoilAssessor, CallableVacantSpaceSource, SoilAssessor, VacantSpaceSource

POINT = LatLng(36.97, -122.03)


@pytest.mark.parametrize("payload", [
    {"pH": 6.2, "category": "GOOD", "contaminationRisk": "LOW", "score": 72},
    {"ph": 6.2, "category": "GOOD", "contamination_risk": "LOW", "score": 72},
])
def test_soil_function_key_variants(payload):
    """Both camelCase and snake_case soil dicts are understood."""
    assessor = CallableSoilAssessor(lambda location: payload)
    assessment = assessor.assess(POINT)

    assert assessment == SoilAssessment(ph=6.2, category="GOOD", contamination_risk="LOW", score=72.0)
    assert isinstance(assessor, SoilAssessor)


def test_soil_function_missing_keys_use_neutral_values():
    assessment = CallableSoilAssessor(lambda location: {}).assess(POINT)
    assert assessment.ph == 6.5
    assert assessment.category == "MODERATE"
    assert assessment.contamination_risk == "UNKNOWN"
    assert assessment.score == 50.0


def test_soil_function_returning_assessment_passes_through():
    expected = SoilAssessment(ph=7.1, category="POOR", contamination_risk="HIGH", score=20, estimated=True)
    func = MagicMock(return_value=expected)

    assert CallableSoilAssessor(func).assess(POINT) is expected
    func.assert_called_once_with(POINT)


def test_vacant_space_function_is_listed():
    bbox = BoundingBox(36.95, 37.0, -122.1, -122.0)
    parcel = CandidateLocation(id="lot_1", center=POINT, area_m2=2000, source="vacant_lot")
    func = MagicMock(return_value=iter([parcel]))

    source = CallableVacantSpaceSource(func)
    assert source.find_spaces(bbox) == [parcel]
    assert isinstance(source, VacantSpaceSource)
    func.assert_called_once_with(bbox)
