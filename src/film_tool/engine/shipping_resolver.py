"""
Shipping Resolver - Core freight pricing resolution with traceability.

Resolution order:
1. Weight at or below the vendor cutoff uses the universal flat-total tiers (route ignored)
2. Above the cutoff the route's regional tariff decides:
   - flat-total routes price per delivery area, -1 tiers refuse the shipment
   - per-ton routes multiply the bracket rate by tonnage rounded up
"""
import logging
import math
import numbers
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from .models import (
    ShippingRequest,
    ShippingResult,
    TraceStep,
    WeightTier,
    SCHEME_FIXED,
    SCHEME_PER_TON,
    VENDOR_NOT_FOUND,
    NOT_CARRIABLE,
    INVALID_WEIGHT,
)

if TYPE_CHECKING:
    from ..rates.rate_table import RateTable

logger = logging.getLogger(__name__)

KG_PER_TON = 1000

CALC_UNIVERSAL = "Universal weight tier (flat total)"
CALC_FIXED = "Regional flat total"


def _format_kg(value: float) -> str:
    """Render a weight the way it was entered: 101 not 101.0."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _format_tons(kg: float) -> str:
    return f"{kg / KG_PER_TON:.1f}"


def _format_money(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def is_valid_weight(weight) -> bool:
    """A weight is usable when it is a finite real number above zero."""
    if isinstance(weight, bool) or not isinstance(weight, (numbers.Real, Decimal)):
        return False
    try:
        weight = float(weight)
    except ValueError:  # Decimal('sNaN')
        return False
    return math.isfinite(weight) and weight > 0


def _clean_id(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class ShippingResolver:
    """
    Resolves a shipping price from a vendor's rate table.

    The rate table is injected and never modified, so one resolver can
    serve any number of callers.
    """

    def __init__(self, rate_table: Optional['RateTable'] = None):
        """Use the given rate table, or load the configured one."""
        if rate_table is None:
            from ..rates.rate_loader import load_rate_table
            rate_table = load_rate_table()
        self.rate_table = rate_table

    def calculate(self, request: ShippingRequest) -> ShippingResult:
        """Resolve a ShippingRequest."""
        return self.resolve(
            request.vendor_id,
            request.region_id,
            request.sub_region_id,
            request.weight_kg,
        )

    def resolve(
        self,
        vendor_id: str,
        region_id: Optional[str],
        sub_region_id: Optional[str],
        weight_kg: float
    ) -> ShippingResult:
        """
        Price one shipment.

        Args:
            vendor_id: Vendor identity
            region_id: Route identity; may be None for weights under the cutoff
            sub_region_id: Delivery area, required only for flat-total routes
            weight_kg: Shipment weight in kg

        Returns:
            ShippingResult with price or failure reason, plus trace
        """
        vendor_id = _clean_id(vendor_id)
        region_id = _clean_id(region_id)
        sub_region_id = _clean_id(sub_region_id)

        if not is_valid_weight(weight_kg):
            logger.debug("Rejected weight %r", weight_kg)
            result = ShippingResult.failed(INVALID_WEIGHT)
            result.add_trace("Weight Check", "Weight is not a positive number", str(weight_kg))
            return result

        weight_kg = float(weight_kg)
        vendor_pricing = self.rate_table.get_vendor_pricing(vendor_id)
        if vendor_pricing is None:
            logger.debug("No pricing for vendor %s", vendor_id)
            result = ShippingResult.failed(VENDOR_NOT_FOUND)
            result.add_trace("Vendor Lookup", "No pricing data for vendor", vendor_id)
            return result

        cutoff = vendor_pricing.universal.max_weight
        if weight_kg <= cutoff:
            result = self._resolve_universal(vendor_pricing.universal.tiers, weight_kg)
            if result is not None:
                result.trace.insert(0, _vendor_trace(vendor_id, cutoff, weight_kg))
                return result

        tiers, error_code = self.rate_table.lookup_tiers(vendor_id, region_id, sub_region_id)
        if tiers is None:
            logger.debug(
                "Tier lookup failed for %s/%s/%s: %s",
                vendor_id, region_id, sub_region_id, error_code,
            )
            result = ShippingResult.failed(error_code)
            result.trace.append(_vendor_trace(vendor_id, cutoff, weight_kg))
            result.add_trace("Tier Lookup", "Regional tiers unavailable", error_code)
            return result

        scheme = vendor_pricing.regional[region_id].scheme
        if scheme == SCHEME_FIXED:
            result = self._resolve_fixed(tiers, cutoff, weight_kg)
        elif scheme == SCHEME_PER_TON:
            result = self._resolve_per_ton(tiers, cutoff, weight_kg)
        else:
            raise ValueError(f"Unknown pricing scheme: {scheme}")

        result.trace.insert(0, _vendor_trace(vendor_id, cutoff, weight_kg))
        result.add_trace("Route", f"Regional {scheme} tariff", f"{region_id}/{sub_region_id or '-'}")
        logger.debug(
            "Resolved %s kg on %s/%s/%s → %s",
            weight_kg, vendor_id, region_id, sub_region_id,
            result.price if result.success else result.error_code,
        )
        return result

    def _resolve_universal(self, tiers: tuple[WeightTier, ...], weight_kg: float) -> Optional[ShippingResult]:
        """First universal tier whose bound covers the weight, or None."""
        for idx, tier in enumerate(tiers):
            if weight_kg <= tier.max_weight:
                if idx == 0:
                    label = f"≤{_format_kg(tier.max_weight)} kg"
                else:
                    min_weight = tiers[idx - 1].max_weight + 1
                    label = f"{_format_kg(min_weight)}–{_format_kg(tier.max_weight)} kg"

                result = ShippingResult.priced(tier.price, label, CALC_UNIVERSAL)
                result.add_trace("Universal Tier", f"Matched bracket {label}", f"${_format_money(tier.price)}")
                return result
        return None

    def _resolve_fixed(self, tiers: tuple[WeightTier, ...], cutoff: float, weight_kg: float) -> ShippingResult:
        """Flat total for the delivery area; the first bracket starts at the cutoff."""
        prev_max = cutoff
        for tier in tiers:
            if weight_kg <= tier.max_weight:
                if tier.is_not_carriable:
                    result = ShippingResult.failed(NOT_CARRIABLE)
                    result.add_trace("Flat Total Tier", "Bracket refuses shipment", f"≥{_format_tons(prev_max)} tons")
                    return result

                if tier.is_unbounded:
                    label = f"≥{_format_tons(prev_max)} tons"
                else:
                    label = f"{_format_tons(prev_max)}–{_format_tons(tier.max_weight)} tons"

                result = ShippingResult.priced(tier.price, label, CALC_FIXED)
                result.add_trace("Flat Total Tier", f"Matched bracket {label}", f"${_format_money(tier.price)}")
                return result
            prev_max = tier.max_weight

        result = ShippingResult.failed(NOT_CARRIABLE)
        result.add_trace("Flat Total Tier", "Weight exceeds every bracket", _format_kg(weight_kg))
        return result

    def _resolve_per_ton(self, tiers: tuple[WeightTier, ...], cutoff: float, weight_kg: float) -> ShippingResult:
        """Bracket rate × whole tons; past the last bound the last rate still applies."""
        last = tiers[-1]
        price_per_ton = last.price
        label = f"≥{_format_kg(last.max_weight / KG_PER_TON)} tons"

        for idx, tier in enumerate(tiers):
            if weight_kg <= tier.max_weight:
                price_per_ton = tier.price
                prev_weight = cutoff if idx == 0 else tiers[idx - 1].max_weight
                label = f"{_format_tons(prev_weight)}–{_format_tons(tier.max_weight)} tons"
                break

        tons = math.ceil(weight_kg / KG_PER_TON)
        total = price_per_ton * tons
        method = f"Per-ton rate ${_format_money(price_per_ton)} × {tons} tons"

        result = ShippingResult.priced(total, label, method)
        result.add_trace("Per-Ton Tier", f"Matched bracket {label}", f"${_format_money(price_per_ton)}/ton")
        result.add_trace("Extension", f"{_format_kg(weight_kg)} kg rounded up to {tons} tons", f"${_format_money(total)}")
        return result


def _vendor_trace(vendor_id: str, cutoff: float, weight_kg: float) -> TraceStep:
    scope = "universal" if weight_kg <= cutoff else "regional"
    return TraceStep(
        step="Vendor Lookup",
        description=f"{_format_kg(weight_kg)} kg vs {_format_kg(cutoff)} kg cutoff",
        value=f"{vendor_id} ({scope})",
    )


def resolve_shipping(
    rate_table: 'RateTable',
    vendor_id: str,
    region_id: Optional[str],
    sub_region_id: Optional[str],
    weight_kg: float
) -> ShippingResult:
    """Pure function form of ShippingResolver.resolve."""
    return ShippingResolver(rate_table).resolve(vendor_id, region_id, sub_region_id, weight_kg)
