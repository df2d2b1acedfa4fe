"""
Film roll formulas - weight, size, pallet packing and credit notes.

Every result that cannot be computed (negative square root, zero divisor,
NaN input) comes back as 0 instead of NaN.
"""
import math
from dataclasses import dataclass
from typing import Optional

PALLET_SIZE_CM = 110.0
DEFAULT_INNER_DIAMETER_CM = 7.62  # 3 inch core
DEFAULT_DENSITY = 1.2
TAX_RATE = 0.05

UNIT_KG = "KG"
UNIT_M2 = "M2"


def _zero_if_nan(value: float) -> float:
    return 0.0 if math.isnan(value) else value


def round_half_up(value: float) -> int:
    """Round .5 upwards, as invoice totals are rounded (not banker's rounding)."""
    floor = math.floor(value)
    # value + 0.5 can round up in float arithmetic (0.49999999999999994)
    return floor + 1 if value - floor >= 0.5 else floor


@dataclass
class RollSpec:
    """Physical inputs for one film roll."""
    thickness_um: float
    width_mm: float
    length_m: float
    density: float  # g/cm³
    quantity: int = 1
    inner_diameter_cm: float = DEFAULT_INNER_DIAMETER_CM


@dataclass
class RollEstimate:
    """Weight and rolled size of a film roll order."""
    single_weight_kg: float
    total_weight_kg: float
    outer_diameter_cm: float
    length_cm: float
    width_cm: float
    height_cm: float


@dataclass
class PalletArrangement:
    """Upright rolls on a square pallet, no stacking."""
    rows: int
    cols: int
    max_per_pallet: int
    pallets_needed: int
    arrangement: str


@dataclass
class CreditNote:
    """Credit note between two amounts (weights or areas) for a quantity of rolls."""
    amount_a: float
    amount_b: float
    quantity: float
    discount: float
    tax_a: int
    tax_b: int
    tax: int


@dataclass
class RollCreditNote:
    """Credit note for two roll widths, with the per-roll figures it was based on."""
    unit: str
    weight_a_kg: float
    weight_b_kg: float
    area_a_m2: float
    area_b_m2: float
    note: CreditNote


def roll_weight(thickness_um: float, width_mm: float, length_m: float, density: float) -> float:
    """Weight in kg: T(μm) × W(mm) × L(m) × ρ(g/cm³) ÷ 1000 ÷ 1000."""
    return _zero_if_nan((thickness_um * width_mm * length_m * density) / 1000 / 1000)


def roll_area(length_m: float, width_mm: float) -> float:
    """Area in m²: L(m) × W(mm) ÷ 1000."""
    return _zero_if_nan(length_m * (width_mm / 1000))


def outer_diameter(inner_diameter_cm: float, thickness_um: float, length_m: float) -> float:
    """Dₒ = √(Dᵢ² + 4 × T × L / π) with T and L in cm."""
    thickness_cm = thickness_um / 10000
    length_cm = length_m * 100
    radicand = inner_diameter_cm * inner_diameter_cm + (4 * thickness_cm * length_cm) / math.pi
    if math.isnan(radicand) or radicand < 0:
        return 0.0
    return math.sqrt(radicand)


def rolled_height(width_mm: float) -> float:
    """Rolls stand upright: height is the film width in cm."""
    return _zero_if_nan(width_mm / 10)


def estimate_roll(spec: RollSpec) -> RollEstimate:
    """Single and total weight plus rolled dimensions."""
    single = roll_weight(spec.thickness_um, spec.width_mm, spec.length_m, spec.density)
    diameter = outer_diameter(spec.inner_diameter_cm, spec.thickness_um, spec.length_m)
    return RollEstimate(
        single_weight_kg=single,
        total_weight_kg=_zero_if_nan(single * spec.quantity),
        outer_diameter_cm=diameter,
        length_cm=diameter,
        width_cm=diameter,
        height_cm=rolled_height(spec.width_mm),
    )


def pallet_arrangement(
    diameter_cm: float,
    quantity: int,
    pallet_size_cm: float = PALLET_SIZE_CM
) -> PalletArrangement:
    """
    Grid packing of upright rolls on a square pallet.

    A missing diameter or a roll wider than the pallet yields zero capacity
    and zero pallets rather than a division error.
    """
    if math.isnan(diameter_cm) or diameter_cm <= 0:
        return PalletArrangement(rows=0, cols=0, max_per_pallet=0, pallets_needed=0, arrangement="-")

    cols = math.floor(pallet_size_cm / diameter_cm)
    rows = math.floor(pallet_size_cm / diameter_cm)
    max_per_pallet = cols * rows

    if max_per_pallet == 0:
        return PalletArrangement(rows=0, cols=0, max_per_pallet=0, pallets_needed=0, arrangement="Roll too large")

    return PalletArrangement(
        rows=rows,
        cols=cols,
        max_per_pallet=max_per_pallet,
        pallets_needed=math.ceil(quantity / max_per_pallet),
        arrangement=f"{cols} × {rows}",
    )


def credit_note(amount_a: float, amount_b: float, quantity: float, tax_rate: float = TAX_RATE) -> CreditNote:
    """
    Credit note for replacing A with B on `quantity` rolls.

    Tax rounds each side before subtracting; do not round the difference.
    """
    tax_a = round_half_up(_zero_if_nan(quantity * amount_a * tax_rate))
    tax_b = round_half_up(_zero_if_nan(quantity * amount_b * tax_rate))
    return CreditNote(
        amount_a=amount_a,
        amount_b=amount_b,
        quantity=quantity,
        discount=_zero_if_nan((amount_a - amount_b) * quantity),
        tax_a=tax_a,
        tax_b=tax_b,
        tax=tax_a - tax_b,
    )


def credit_note_for_rolls(
    unit: str,
    length_m: float,
    thickness_um: float,
    width_a_mm: float,
    width_b_mm: float,
    quantity: float,
    density: Optional[float] = None,
    tax_rate: float = TAX_RATE
) -> RollCreditNote:
    """
    Credit note for two film widths, priced by weight (KG) or area (M2).
    """
    unit = unit.upper()
    if unit not in (UNIT_KG, UNIT_M2):
        raise ValueError(f"Unknown credit note unit: {unit}")

    if density is None or math.isnan(density):
        density = DEFAULT_DENSITY

    weight_a = roll_weight(thickness_um, width_a_mm, length_m, density)
    weight_b = roll_weight(thickness_um, width_b_mm, length_m, density)
    area_a = roll_area(length_m, width_a_mm)
    area_b = roll_area(length_m, width_b_mm)

    if unit == UNIT_KG:
        note = credit_note(weight_a, weight_b, quantity, tax_rate)
    else:
        note = credit_note(area_a, area_b, quantity, tax_rate)

    return RollCreditNote(
        unit=unit,
        weight_a_kg=weight_a,
        weight_b_kg=weight_b,
        area_a_m2=area_a,
        area_b_m2=area_b,
        note=note,
    )
