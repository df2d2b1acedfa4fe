"""
Simulator Service - Caller-side pipeline around the engine.

Normalizes raw form input, estimates the roll order, packs it on pallets,
and quotes freight for the total weight once a route is fully selected.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

from ..config.settings import get_settings, Settings
from ..engine.formulas import (
    RollSpec,
    RollEstimate,
    PalletArrangement,
    estimate_roll,
    pallet_arrangement,
)
from ..engine.models import ShippingResult
from ..engine.shipping_resolver import ShippingResolver

logger = logging.getLogger(__name__)


def parse_number(value, default: float = 0.0) -> float:
    """
    Parse a form value to a float.

    Blank, unparseable, NaN and zero values fall back to the default,
    matching how the entry forms treat an empty field.
    """
    if value is None:
        return default
    try:
        number = float(str(value).strip())
    except ValueError:
        return default
    if math.isnan(number) or number == 0:
        return default
    return number


def validate_weight(value) -> Optional[float]:
    """Return the weight in kg, or None if it is not a positive finite number."""
    if value is None:
        return None
    try:
        weight = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(weight) or weight <= 0:
        return None
    return weight


@dataclass
class SimulatorInputs:
    """Raw inputs of one simulation (already parsed to numbers)."""
    thickness_um: float
    width_mm: float
    length_m: float
    density: float
    quantity: int
    inner_diameter_cm: float
    vendor_id: Optional[str] = None
    region_id: Optional[str] = None
    sub_region_id: Optional[str] = None
    shipping_weight_kg: Optional[float] = None  # overrides the roll total weight


@dataclass
class SimulationReport:
    """Everything the simulator page shows."""
    roll: RollEstimate
    pallets: PalletArrangement
    shipping_weight_kg: float
    shipping: Optional[ShippingResult] = None


class SimulatorService:
    """Runs the roll → pallet → freight pipeline against one resolver."""

    def __init__(self, resolver: Optional[ShippingResolver] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.resolver = resolver or ShippingResolver()

    @property
    def rate_table(self):
        return self.resolver.rate_table

    def options(self) -> dict:
        """Vendors and routes for selection widgets."""
        return {
            "vendors": [{"id": v.id, "name": v.name} for v in self.rate_table.vendors],
            "regions": [
                {
                    "id": r.id,
                    "name": r.name,
                    "sub_regions": [{"id": s.id, "name": s.name} for s in r.sub_regions],
                }
                for r in self.rate_table.regions
            ],
        }

    def needs_sub_region(self, region_id: Optional[str]) -> bool:
        region = self.rate_table.get_region(region_id)
        return region is not None and region.requires_sub_region

    def quote_shipping(
        self,
        vendor_id: Optional[str],
        region_id: Optional[str],
        sub_region_id: Optional[str],
        weight
    ) -> Optional[ShippingResult]:
        """
        Quote freight the way the form does.

        Returns None while the selection is incomplete: no vendor, no route,
        an invalid weight, or a missing delivery area on a route that needs one.
        """
        weight_kg = validate_weight(weight)
        if not vendor_id or not region_id or weight_kg is None:
            return None

        needs_area = self.needs_sub_region(region_id)
        if needs_area and not sub_region_id:
            return None

        return self.resolver.resolve(
            vendor_id,
            region_id,
            sub_region_id if needs_area else None,
            weight_kg,
        )

    def simulate(self, inputs: SimulatorInputs) -> SimulationReport:
        """Estimate rolls, pack pallets and quote freight for the total weight."""
        roll = estimate_roll(RollSpec(
            thickness_um=inputs.thickness_um,
            width_mm=inputs.width_mm,
            length_m=inputs.length_m,
            density=inputs.density,
            quantity=inputs.quantity,
            inner_diameter_cm=inputs.inner_diameter_cm,
        ))
        pallets = pallet_arrangement(roll.outer_diameter_cm, inputs.quantity, self.settings.pallet_size_cm)

        weight = inputs.shipping_weight_kg if inputs.shipping_weight_kg is not None else roll.total_weight_kg
        # The form shows the weight to two decimals and quotes that figure
        weight = round(weight, 2)

        report = SimulationReport(roll=roll, pallets=pallets, shipping_weight_kg=weight)
        report.shipping = self.quote_shipping(
            inputs.vendor_id, inputs.region_id, inputs.sub_region_id, weight,
        )
        logger.debug(
            "Simulated %s rolls: %.2f kg, %d pallet(s), shipping %s",
            inputs.quantity, roll.total_weight_kg, pallets.pallets_needed,
            report.shipping.to_dict() if report.shipping else "n/a",
        )
        return report
