"""
Data models for the shipping engine.

Uses dataclasses for structured, type-safe data representation.
Rate table entities are frozen: they are built once at load time and shared read-only.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


# Pricing schemes
SCHEME_UNIVERSAL = "universal"
SCHEME_FIXED = "fixed"
SCHEME_PER_TON = "per_ton"

# A tier price of -1 means the carrier refuses the shipment
NOT_CARRIABLE_PRICE = -1.0

# Failure codes (closed set)
VENDOR_NOT_FOUND = "VENDOR_NOT_FOUND"
REGION_NOT_CONFIGURED = "REGION_NOT_CONFIGURED"
SUB_REGION_REQUIRED = "SUB_REGION_REQUIRED"
SUB_REGION_NOT_CONFIGURED = "SUB_REGION_NOT_CONFIGURED"
NOT_CARRIABLE = "NOT_CARRIABLE"
INVALID_WEIGHT = "INVALID_WEIGHT"

ERROR_MESSAGES = {
    VENDOR_NOT_FOUND: "No pricing data found for this vendor",
    REGION_NOT_CONFIGURED: "No pricing rules configured for this region",
    SUB_REGION_REQUIRED: "Please select a delivery area",
    SUB_REGION_NOT_CONFIGURED: "No pricing rules configured for this delivery area",
    NOT_CARRIABLE: "Exceeds carriable weight, cannot be shipped",
    INVALID_WEIGHT: "Weight must be a number greater than 0",
}


@dataclass(frozen=True)
class Vendor:
    """A freight vendor."""
    id: str
    name: str


@dataclass(frozen=True)
class SubRegion:
    """A delivery area inside a route."""
    id: str
    name: str


@dataclass(frozen=True)
class Region:
    """A shipping route, optionally split into delivery areas."""
    id: str
    name: str
    sub_regions: tuple[SubRegion, ...] = ()

    @property
    def requires_sub_region(self) -> bool:
        return len(self.sub_regions) > 0


@dataclass(frozen=True)
class WeightTier:
    """
    One pricing bracket: upper bound in kg and a price.

    The price is a flat total or a per-ton rate depending on the scheme
    that owns the tier. max_weight may be float('inf').
    """
    max_weight: float
    price: float

    @property
    def is_unbounded(self) -> bool:
        return self.max_weight == float('inf')

    @property
    def is_not_carriable(self) -> bool:
        return self.price == NOT_CARRIABLE_PRICE


@dataclass(frozen=True)
class UniversalPricing:
    """Route-independent flat totals, valid up to max_weight."""
    max_weight: float
    tiers: tuple[WeightTier, ...]
    scheme: str = field(default=SCHEME_UNIVERSAL, init=False)


@dataclass(frozen=True)
class FixedTotalPricing:
    """Flat total per weight bracket, one tier list per delivery area."""
    sub_regions: Mapping[str, tuple[WeightTier, ...]]
    scheme: str = field(default=SCHEME_FIXED, init=False)

    def __post_init__(self):
        object.__setattr__(self, 'sub_regions', MappingProxyType(dict(self.sub_regions)))


@dataclass(frozen=True)
class PerTonPricing:
    """Per-ton rate per weight bracket; the last rate is open-ended."""
    tiers: tuple[WeightTier, ...]
    scheme: str = field(default=SCHEME_PER_TON, init=False)


RegionalPricing = FixedTotalPricing | PerTonPricing


@dataclass(frozen=True)
class VendorPricing:
    """All pricing configured for one vendor."""
    vendor_id: str
    universal: UniversalPricing
    regional: Mapping[str, RegionalPricing]

    def __post_init__(self):
        object.__setattr__(self, 'regional', MappingProxyType(dict(self.regional)))


@dataclass
class TraceStep:
    """A single step in the shipping resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class ShippingRequest:
    """A shipping quote request."""
    vendor_id: str
    region_id: Optional[str]
    weight_kg: float
    sub_region_id: Optional[str] = None


@dataclass
class ShippingResult:
    """Outcome of a shipping resolution: either a price or a failure reason."""
    success: bool
    price: Optional[float] = None
    tier_description: str = ""
    calculation_method: str = ""
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    trace: list[TraceStep] = field(default_factory=list)

    @classmethod
    def priced(cls, price: float, tier_description: str, calculation_method: str) -> 'ShippingResult':
        return cls(
            success=True,
            price=price,
            tier_description=tier_description,
            calculation_method=calculation_method,
        )

    @classmethod
    def failed(cls, error_code: str) -> 'ShippingResult':
        return cls(
            success=False,
            error_code=error_code,
            error_message=ERROR_MESSAGES[error_code],
        )

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this result."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Boundary format handed to renderers."""
        if self.success:
            return {
                "success": True,
                "price": self.price,
                "tier_description": self.tier_description,
                "calculation_method": self.calculation_method,
            }
        return {
            "success": False,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
