import math
import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from film_tool.engine.formulas import (
    RollSpec,
    roll_weight,
    roll_area,
    outer_diameter,
    rolled_height,
    estimate_roll,
    pallet_arrangement,
    credit_note,
    credit_note_for_rolls,
    round_half_up,
)


def test_roll_weight():
    assert roll_weight(25, 500, 1000, 0.92) == pytest.approx(11.5)


def test_outer_diameter_reference_roll():
    expected = math.sqrt(7.62 ** 2 + 4 * 0.0025 * 100000 / math.pi)
    assert outer_diameter(7.62, 25, 1000) == pytest.approx(expected, abs=1e-6)
    assert outer_diameter(7.62, 25, 1000) == pytest.approx(19.4003682, abs=1e-6)


def test_outer_diameter_without_film_is_core():
    assert outer_diameter(7.62, 0, 0) == pytest.approx(7.62)


def test_invalid_results_become_zero():
    assert outer_diameter(0, -1000000, 1000) == 0
    assert outer_diameter(float('nan'), 25, 1000) == 0
    assert roll_weight(float('nan'), 500, 1000, 0.92) == 0
    assert roll_area(1000, float('nan')) == 0
    assert rolled_height(float('nan')) == 0


def test_estimate_roll():
    estimate = estimate_roll(RollSpec(thickness_um=25, width_mm=500, length_m=1000, density=0.92, quantity=10))

    assert estimate.single_weight_kg == pytest.approx(11.5)
    assert estimate.total_weight_kg == pytest.approx(115.0)
    assert estimate.length_cm == estimate.width_cm == estimate.outer_diameter_cm
    assert estimate.height_cm == 50.0


@pytest.mark.parametrize("diameter, quantity, per_pallet, pallets, label", [
    (19.4, 10, 25, 1, "5 × 5"),
    (19.4, 25, 25, 1, "5 × 5"),
    (19.4, 26, 25, 2, "5 × 5"),
    (55, 9, 4, 3, "2 × 2"),
    (110, 3, 1, 3, "1 × 1"),
    (0, 10, 0, 0, "-"),
    (-3, 10, 0, 0, "-"),
    (120, 10, 0, 0, "Roll too large"),
])
def test_pallet_arrangement(diameter, quantity, per_pallet, pallets, label):
    result = pallet_arrangement(diameter, quantity)

    assert result.max_per_pallet == per_pallet
    assert result.pallets_needed == pallets
    assert result.arrangement == label


def test_pallet_arrangement_no_rolls():
    assert pallet_arrangement(19.4, 0).pallets_needed == 0


def test_credit_note_reference():
    note = credit_note(150, 120, 100)

    assert note.discount == 3000
    assert note.tax_a == 750
    assert note.tax_b == 600
    assert note.tax == 150


def test_credit_note_rounds_each_side():
    """Rounding each tax before subtracting differs from rounding the difference."""
    note = credit_note(10, 8, 1)

    assert note.tax_a == 1
    assert note.tax_b == 0
    assert note.tax == 1
    assert round_half_up((10 - 8) * 1 * 0.05) == 0


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(0.49) == 0
    assert round_half_up(-0.5) == 0
    assert round_half_up(-1.5) == -1
    assert round_half_up(0.49999999999999994) == 0
    assert round_half_up(4503599627370497.0) == 4503599627370497


def test_credit_note_by_weight():
    result = credit_note_for_rolls("kg", length_m=1000, thickness_um=25, width_a_mm=500, width_b_mm=480, quantity=10)

    assert result.unit == "KG"
    assert result.weight_a_kg == pytest.approx(15.0)
    assert result.weight_b_kg == pytest.approx(14.4)
    assert result.note.discount == pytest.approx(6.0)
    assert result.note.tax == 8 - 7


def test_credit_note_by_area():
    result = credit_note_for_rolls(
        "M2", length_m=1000, thickness_um=25, width_a_mm=500, width_b_mm=480, quantity=10, density=0.92
    )

    assert result.area_a_m2 == pytest.approx(500.0)
    assert result.area_b_m2 == pytest.approx(480.0)
    assert result.note.discount == pytest.approx(200.0)
    assert result.note.tax == 250 - 240


def test_credit_note_unknown_unit():
    with pytest.raises(ValueError):
        credit_note_for_rolls("ROLL", length_m=1, thickness_um=1, width_a_mm=1, width_b_mm=1, quantity=1)


def test_settings_share_formula_constants():
    from film_tool.config.settings import Settings
    from film_tool.engine.formulas import PALLET_SIZE_CM, TAX_RATE, DEFAULT_DENSITY, DEFAULT_INNER_DIAMETER_CM

    settings = Settings.load()
    assert settings.pallet_size_cm == PALLET_SIZE_CM
    assert settings.tax_rate == TAX_RATE
    assert settings.credit_note_default_density == DEFAULT_DENSITY
    assert settings.default_inner_diameter_cm == DEFAULT_INNER_DIAMETER_CM
