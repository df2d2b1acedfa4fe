import math
import os
import sys
from decimal import Decimal

import pandas as pd
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from film_tool.engine import ShippingResolver, ShippingRequest, resolve_shipping
from film_tool.engine.models import (
    Vendor,
    Region,
    SubRegion,
    WeightTier,
    UniversalPricing,
    FixedTotalPricing,
    PerTonPricing,
    VendorPricing,
    NOT_CARRIABLE,
    SUB_REGION_REQUIRED,
    INVALID_WEIGHT,
    ERROR_MESSAGES,
)
from film_tool.engine.shipping_resolver import CALC_UNIVERSAL, CALC_FIXED, is_valid_weight
from film_tool.rates import RateTable


@pytest.fixture(scope="module")
def resolver():
    return ShippingResolver()


@pytest.fixture
def small_table():
    """A two-route table whose flat-total area has no unbounded tier."""
    return RateTable(
        vendors=(Vendor(id="v1", name="Test Freight"),),
        regions=(
            Region(id="local", name="Local", sub_regions=(SubRegion(id="port", name="Port"),)),
            Region(id="trunk", name="Trunk"),
        ),
        pricing={
            "v1": VendorPricing(
                vendor_id="v1",
                universal=UniversalPricing(max_weight=500, tiers=(WeightTier(500, 900),)),
                regional={
                    "local": FixedTotalPricing(sub_regions={
                        "port": (WeightTier(1000, 1500), WeightTier(3000, 2500)),
                    }),
                    "trunk": PerTonPricing(tiers=(WeightTier(2000, 800), WeightTier(4000, 700))),
                },
            )
        },
    )


@pytest.mark.parametrize("weight", [0.5, 1, 99.9, 100, 150, 200, 201, 299.99, 300])
def test_universal_tariff_ignores_route(resolver, weight):
    """Any route under the cutoff prices the same as no route at all."""
    baseline = resolver.resolve("vendor_a", None, None, weight)
    assert baseline.success
    assert baseline.calculation_method == CALC_UNIVERSAL

    for region, area in [
        ("north_to_north", None),
        ("north_to_north", "keelung"),
        ("north_to_central", None),
        ("north_to_south", None),
        ("nowhere", "nothing"),
    ]:
        result = resolver.resolve("vendor_a", region, area, weight)
        assert result.success, f"{region}/{area} at {weight} kg failed with {result.error_code}"
        assert result.price == baseline.price


@pytest.mark.parametrize("region, area, bound", [
    (None, None, 100),
    (None, None, 200),
    ("north_to_north", "taipei", 2000),
    ("north_to_north", "taipei", 5500),
    ("north_to_north", "taipei", 9000),
    ("north_to_central", None, 3000),
    ("north_to_south", None, 7000),
])
def test_boundary_weight_belongs_to_lower_tier(resolver, region, area, bound):
    """Weight equal to a bound stays in that tier; the next float moves up."""
    at_bound = resolver.resolve("vendor_a", region, area, float(bound))
    above = resolver.resolve("vendor_a", region, area, math.nextafter(float(bound), math.inf))

    assert at_bound.success and above.success
    assert at_bound.tier_description != above.tier_description, \
        f"{bound} kg and just above {bound} kg resolved to the same bracket"


def test_cutoff_boundary_switches_to_regional(resolver):
    at_cutoff = resolver.resolve("vendor_a", "north_to_north", None, 300.0)
    above = resolver.resolve("vendor_a", "north_to_north", None, math.nextafter(300.0, math.inf))

    assert at_cutoff.success and at_cutoff.price == 1200
    assert not above.success
    assert above.error_code == SUB_REGION_REQUIRED


@pytest.mark.parametrize("area", ["keelung", "taipei", "new_taipei_hsinchu", "taoyuan"])
def test_flat_total_price_never_drops_with_weight(resolver, area):
    previous = 0
    for weight in range(301, 12001, 250):
        result = resolver.resolve("vendor_a", "north_to_north", area, weight)
        assert result.success
        assert result.price >= previous, f"{area}: price drops at {weight} kg"
        previous = result.price


@pytest.mark.parametrize("region", ["north_to_central", "north_to_south"])
def test_per_ton_price_uses_whole_tons(resolver, region):
    """Price is always the bracket rate times tonnage rounded up."""
    tiers = resolver.rate_table.get_vendor_pricing("vendor_a").regional[region].tiers
    for weight in [301, 999, 1000, 1000.01, 2500, 4321, 9999.5, 10000, 10001, 25000]:
        result = resolver.resolve("vendor_a", region, None, weight)
        rate = next((t.price for t in tiers if weight <= t.max_weight), tiers[-1].price)
        tons = math.ceil(weight / 1000)

        assert result.success
        assert result.price == rate * tons, f"{region} at {weight} kg: {result.price} != {rate} × {tons}"
        assert f"× {tons} tons" in result.calculation_method


def test_per_ton_example_north_to_central(resolver):
    result = resolver.resolve("vendor_a", "north_to_central", None, 2500)

    assert result.success
    assert result.price == 3930
    assert result.tier_description == "2.0–3.0 tons"
    assert result.calculation_method == "Per-ton rate $1,310 × 3 tons"


def test_heavy_keelung_shipment_is_refused(resolver):
    result = resolver.resolve("vendor_a", "north_to_north", "keelung", 15000)

    assert not result.success
    assert result.price is None
    assert result.error_code == NOT_CARRIABLE
    assert "exceeds carriable weight" in result.error_message.lower()


def test_flat_total_route_requires_area(resolver):
    result = resolver.resolve("vendor_a", "north_to_north", None, 5000)

    assert not result.success
    assert result.error_code == SUB_REGION_REQUIRED
    assert result.error_message == ERROR_MESSAGES[SUB_REGION_REQUIRED]


def test_flat_total_result_fields(resolver):
    result = resolver.resolve("vendor_a", "north_to_north", "taoyuan", 6000)

    assert result.to_dict() == {
        "success": True,
        "price": 2000,
        "tier_description": "5.5–7.5 tons",
        "calculation_method": CALC_FIXED,
    }


@pytest.mark.parametrize("weight", [0, -1, -0.01, float('nan'), float('inf'), "500", None, True])
def test_invalid_weight_is_rejected(resolver, weight):
    result = resolver.resolve("vendor_a", "north_to_central", None, weight)

    assert not result.success
    assert result.error_code == INVALID_WEIGHT
    assert result.price is None


def test_is_valid_weight():
    assert is_valid_weight(1)
    assert is_valid_weight(0.001)
    assert not is_valid_weight(0)
    assert not is_valid_weight(float('-inf'))
    assert not is_valid_weight(False)
    assert is_valid_weight(Decimal("2500"))
    assert not is_valid_weight(Decimal("NaN"))


def test_weight_from_dataframe_cell(resolver):
    """Weights read with pandas arrive as numpy scalars."""
    for weight in (pd.Series([2500]).iloc[0], pd.Series([2500.0]).iloc[0], Decimal("2500")):
        result = resolver.resolve("vendor_a", "north_to_central", None, weight)
        assert result.success, f"{type(weight).__name__} weight was rejected"
        assert result.price == 3930
        assert result.tier_description == "2.0–3.0 tons"


def test_ids_are_stripped(resolver):
    result = resolver.resolve(" vendor_a ", " north_to_north", "keelung ", 1000)
    assert result.success
    assert result.price == 2000


def test_empty_area_counts_as_missing(resolver):
    result = resolver.resolve("vendor_a", "north_to_north", "", 1000)
    assert result.error_code == SUB_REGION_REQUIRED


def test_calculate_request(resolver):
    request = ShippingRequest(vendor_id="vendor_a", region_id="north_to_south", weight_kg=1500)
    result = resolver.calculate(request)

    assert result.success
    assert result.price == 1550 * 2


def test_trace_explains_resolution(resolver):
    result = resolver.resolve("vendor_a", "north_to_central", None, 2500)
    text = result.get_trace_text()

    assert text.splitlines()[0].startswith("→ Vendor Lookup")
    assert "Per-Ton Tier" in text
    assert "2500 kg rounded up to 3 tons" in text


def test_area_without_open_tier_refuses_past_last_bound(small_table):
    """A flat-total area with no unbounded tier refuses weights above it."""
    result = resolve_shipping(small_table, "v1", "local", "port", 3000.5)

    assert not result.success
    assert result.error_code == NOT_CARRIABLE


def test_scan_starts_at_vendor_cutoff(small_table):
    fixed = resolve_shipping(small_table, "v1", "local", "port", 800)
    per_ton = resolve_shipping(small_table, "v1", "trunk", None, 800)

    assert fixed.tier_description == "0.5–1.0 tons"
    assert per_ton.tier_description == "0.5–2.0 tons"
    assert per_ton.price == 800


def test_per_ton_top_rate_is_open_ended(small_table):
    result = resolve_shipping(small_table, "v1", "trunk", None, 9000)

    assert result.success
    assert result.price == 700 * 9
    assert result.tier_description == "≥4 tons"


def test_resolver_is_referentially_transparent(small_table):
    resolver = ShippingResolver(small_table)
    first = resolver.resolve("v1", "local", "port", 2000)
    second = resolver.resolve("v1", "local", "port", 2000)

    assert first.to_dict() == second.to_dict()
