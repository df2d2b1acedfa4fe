"""
Rate Table - Read-only lookup over vendors, routes and their weight tiers.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from ..engine.models import (
    Vendor,
    Region,
    VendorPricing,
    WeightTier,
    SCHEME_FIXED,
    VENDOR_NOT_FOUND,
    REGION_NOT_CONFIGURED,
    SUB_REGION_REQUIRED,
    SUB_REGION_NOT_CONFIGURED,
)


@dataclass(frozen=True)
class RateTable:
    """
    Load-once pricing configuration.

    Lookups never raise: a missing vendor, route or delivery area comes
    back as an error code alongside an empty result.
    """
    vendors: tuple[Vendor, ...]
    regions: tuple[Region, ...]
    pricing: Mapping[str, VendorPricing] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'pricing', MappingProxyType(dict(self.pricing)))

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        for vendor in self.vendors:
            if vendor.id == vendor_id:
                return vendor
        return None

    def get_region(self, region_id: Optional[str]) -> Optional[Region]:
        for region in self.regions:
            if region.id == region_id:
                return region
        return None

    def get_vendor_pricing(self, vendor_id: str) -> Optional[VendorPricing]:
        """Universal tariff and route → regional tariff map for a vendor."""
        return self.pricing.get(vendor_id)

    def lookup_tiers(
        self,
        vendor_id: str,
        region_id: Optional[str],
        sub_region_id: Optional[str] = None
    ) -> tuple[Optional[tuple[WeightTier, ...]], Optional[str]]:
        """
        Find the regional tier list for a route (and delivery area).

        Returns (tiers, error_code) - tiers is None if the lookup failed.
        """
        vendor_pricing = self.get_vendor_pricing(vendor_id)
        if vendor_pricing is None:
            return None, VENDOR_NOT_FOUND

        regional = vendor_pricing.regional.get(region_id) if region_id else None
        if regional is None:
            return None, REGION_NOT_CONFIGURED

        if regional.scheme == SCHEME_FIXED:
            if not sub_region_id:
                return None, SUB_REGION_REQUIRED
            tiers = regional.sub_regions.get(sub_region_id)
            if tiers is None:
                return None, SUB_REGION_NOT_CONFIGURED
            return tiers, None

        # Per-ton routes have no delivery areas
        if sub_region_id:
            return None, SUB_REGION_NOT_CONFIGURED
        return regional.tiers, None
