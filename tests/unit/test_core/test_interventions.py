import pytest
from core.interventions import (
    FACTOR_KEYS,
    InterventionCatalog,
    InterventionType,
    Requirements,
    get_catalog,
)
from core.models import ConfigurationError

def test_catalog_has_ten_types():
    catalog = get_catalog()
    assert len(catalog) == 10
    assert "FARMERS_MARKET" in catalog
    assert "AQUAPONICS" in catalog

def test_weights_sum_to_one():
    """Every predefined type uses known factors with weights summing to ~1."""
    for intervention in get_catalog():
        assert sum(intervention.weights.values()) == pytest.approx(1.0, abs=0.01)
        assert set(intervention.weights) <= set(FACTOR_KEYS)
        assert 500 <= intervention.service_radius_m <= 5000

def test_resolve_all_and_list():
    catalog = get_catalog()
    assert catalog.resolve("all") == catalog.keys()
    assert catalog.resolve(["URBAN_FARM", "URBAN_FARM"]) == ["URBAN_FARM"]
    assert catalog.resolve("FOOD_HUB") == ["FOOD_HUB"]

def test_resolve_rejects_unknown_and_empty():
    catalog = get_catalog()
    with pytest.raises(ConfigurationError):
        catalog.resolve(["NOT_A_TYPE"])
    with pytest.raises(ConfigurationError):
        catalog.resolve([])

def test_register_custom_type():
    """New types need no scoring changes, only registration."""
    catalog = InterventionCatalog()
    catalog.register(InterventionType(
        key="SCHOOL_GARDEN",
        name="School Garden",
        icon="🏫",
        requirements=Requirements(min_area_m2=100),
        weights={"community": 0.5, "equity": 0.5},
        setup_cost=2000,
        operating_cost=100,
        timeframe="2 months",
        service_radius_m=500,
    ))
    assert len(catalog) == 11
    assert catalog.get("SCHOOL_GARDEN").annual_cost == 3200
    assert len(get_catalog()) == 10
