"""
Rate Loader - Validates and builds the rate table from CSV.

Reads vendors.csv, regions.csv and rate_tiers.csv, validates every tier
list, and returns an immutable RateTable.
"""
import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import get_settings, Settings
from ..engine.models import (
    Vendor,
    Region,
    SubRegion,
    WeightTier,
    UniversalPricing,
    FixedTotalPricing,
    PerTonPricing,
    VendorPricing,
    SCHEME_UNIVERSAL,
    SCHEME_FIXED,
    SCHEME_PER_TON,
)
from .rate_table import RateTable

logger = logging.getLogger(__name__)

VALID_SCHEMES = {SCHEME_UNIVERSAL, SCHEME_FIXED, SCHEME_PER_TON}

TIER_COLUMNS = ['vendor_id', 'scheme', 'region_id', 'sub_region_id', 'max_weight', 'price']


class RateTableError(ValueError):
    """Raised when rate table files are missing columns or hold invalid tiers."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid rate table:\n  " + "\n  ".join(errors))


def _read_csv(path: Path, required: list[str]) -> pd.DataFrame:
    """Read a CSV as strings with stripped cells; empty cells become ''."""
    if not path.exists():
        raise FileNotFoundError(f"Rate table file not found at {path}.")

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()

    missing = [c for c in required if c not in df.columns]
    if missing:
        raise RateTableError([f"{path.name}: missing columns {', '.join(missing)}"])
    return df


def parse_weight(value: str) -> float:
    """Parse a tier bound; 'inf' (any case) means unbounded."""
    if value.lower() in ('inf', 'infinity', '∞'):
        return float('inf')
    return float(value)


def validate_tiers(tiers: list[WeightTier], scope: str, allow_not_carriable: bool) -> list[str]:
    """
    Validate one ordered tier list.

    Returns a list of error strings - empty if the tiers are usable.
    """
    errors = []

    if not tiers:
        errors.append(f"{scope}: no tiers configured")
        return errors

    previous = None
    for idx, tier in enumerate(tiers):
        if previous is not None and tier.max_weight <= previous:
            errors.append(
                f"{scope}: tier {idx + 1} upper bound {tier.max_weight} "
                f"is not above previous bound {previous}"
            )
        if tier.max_weight <= 0:
            errors.append(f"{scope}: tier {idx + 1} upper bound must be positive")
        if tier.is_not_carriable:
            if not allow_not_carriable:
                errors.append(f"{scope}: not-carriable price is only allowed in flat-total routes")
            elif idx != len(tiers) - 1:
                errors.append(f"{scope}: not-carriable price is only allowed on the last tier")
        elif tier.price < 0:
            errors.append(f"{scope}: tier {idx + 1} has negative price {tier.price}")
        if tier.is_unbounded and idx != len(tiers) - 1:
            errors.append(f"{scope}: only the last tier may be unbounded")
        previous = tier.max_weight

    return errors


def check_monotonic(rate_table: RateTable) -> list[str]:
    """
    Flag flat-total tier lists whose price drops as weight goes up.

    Returns warning strings; not-carriable tiers are ignored.
    """
    warnings = []
    for vendor_id, vendor_pricing in rate_table.pricing.items():
        scopes = [(f"{vendor_id}/universal", vendor_pricing.universal.tiers)]
        for region_id, regional in vendor_pricing.regional.items():
            if regional.scheme == SCHEME_FIXED:
                for sub_region_id, tiers in regional.sub_regions.items():
                    scopes.append((f"{vendor_id}/{region_id}/{sub_region_id}", tiers))

        for scope, tiers in scopes:
            prices = [t.price for t in tiers if not t.is_not_carriable]
            for lower, upper in zip(prices, prices[1:]):
                if upper < lower:
                    warnings.append(f"{scope}: price drops from {lower:g} to {upper:g}")
                    logger.warning("Non-monotonic tier prices in %s: %s → %s", scope, lower, upper)
    return warnings


def _load_vendors(path: Path) -> dict[str, tuple[Vendor, float]]:
    df = _read_csv(path, ['vendor_id', 'name', 'universal_max_weight'])
    vendors = {}
    for _, row in df.iterrows():
        vendors[row['vendor_id']] = (
            Vendor(id=row['vendor_id'], name=row['name'] or row['vendor_id']),
            float(row['universal_max_weight']),
        )
    return vendors


def _load_regions(path: Path) -> tuple[Region, ...]:
    df = _read_csv(path, ['region_id', 'region_name', 'sub_region_id', 'sub_region_name'])
    regions: dict[str, Region] = {}
    for _, row in df.iterrows():
        region = regions.get(row['region_id'])
        sub_regions = region.sub_regions if region else ()
        if row['sub_region_id']:
            sub_regions += (SubRegion(id=row['sub_region_id'], name=row['sub_region_name'] or row['sub_region_id']),)
        regions[row['region_id']] = Region(
            id=row['region_id'],
            name=row['region_name'] or row['region_id'],
            sub_regions=sub_regions,
        )
    return tuple(regions.values())


def build_rate_table(
    vendors: dict[str, tuple[Vendor, float]],
    regions: tuple[Region, ...],
    tiers_df: pd.DataFrame
) -> tuple[Optional[RateTable], list[str]]:
    """
    Build a RateTable from parsed vendors, regions and the tier frame.

    Tier rows keep their file order inside each scope.
    Returns (rate_table, errors) - rate_table is None if validation failed.
    """
    errors = []
    grouped: dict[tuple[str, str, str, str], list[WeightTier]] = {}

    for line_num, (_, row) in enumerate(tiers_df.iterrows(), start=2):
        scheme = row['scheme']
        if scheme not in VALID_SCHEMES:
            errors.append(f"Line {line_num}: invalid scheme '{scheme}'")
            continue
        if row['vendor_id'] not in vendors:
            errors.append(f"Line {line_num}: unknown vendor '{row['vendor_id']}'")
            continue
        if scheme == SCHEME_UNIVERSAL and (row['region_id'] or row['sub_region_id']):
            errors.append(f"Line {line_num}: universal tiers cannot name a region")
            continue
        try:
            tier = WeightTier(max_weight=parse_weight(row['max_weight']), price=float(row['price']))
        except ValueError:
            errors.append(f"Line {line_num}: max_weight and price must be numbers")
            continue

        key = (row['vendor_id'], scheme, row['region_id'], row['sub_region_id'])
        grouped.setdefault(key, []).append(tier)

    region_index = {r.id: r for r in regions}
    pricing = {}

    for vendor_id, (vendor, cutoff) in vendors.items():
        universal_tiers = grouped.get((vendor_id, SCHEME_UNIVERSAL, '', ''), [])
        errors.extend(validate_tiers(universal_tiers, f"{vendor_id}/universal", allow_not_carriable=False))
        if universal_tiers and universal_tiers[-1].max_weight < cutoff:
            errors.append(f"{vendor_id}/universal: tiers stop below the {cutoff:g} kg cutoff")

        regional = {}
        fixed_areas: dict[str, dict[str, tuple[WeightTier, ...]]] = {}

        for (v_id, scheme, region_id, sub_region_id), tiers in grouped.items():
            if v_id != vendor_id or scheme == SCHEME_UNIVERSAL:
                continue
            scope = f"{vendor_id}/{region_id}" + (f"/{sub_region_id}" if sub_region_id else "")

            region = region_index.get(region_id)
            if region is None:
                errors.append(f"{scope}: unknown region '{region_id}'")
                continue

            if scheme == SCHEME_FIXED:
                if not sub_region_id:
                    errors.append(f"{scope}: flat-total tiers need a sub_region_id")
                    continue
                if sub_region_id not in {s.id for s in region.sub_regions}:
                    errors.append(f"{scope}: unknown delivery area '{sub_region_id}'")
                    continue
                errors.extend(validate_tiers(tiers, scope, allow_not_carriable=True))
                fixed_areas.setdefault(region_id, {})[sub_region_id] = tuple(tiers)
            else:
                if sub_region_id:
                    errors.append(f"{scope}: per-ton tiers cannot have a sub_region_id")
                    continue
                if region.requires_sub_region:
                    errors.append(f"{scope}: per-ton route cannot declare delivery areas in regions.csv")
                    continue
                errors.extend(validate_tiers(tiers, scope, allow_not_carriable=False))
                regional[region_id] = PerTonPricing(tiers=tuple(tiers))

        for region_id, areas in fixed_areas.items():
            if region_id in regional:
                errors.append(f"{vendor_id}/{region_id}: route mixes flat-total and per-ton tiers")
                continue
            regional[region_id] = FixedTotalPricing(sub_regions=areas)

        pricing[vendor_id] = VendorPricing(
            vendor_id=vendor_id,
            universal=UniversalPricing(max_weight=cutoff, tiers=tuple(universal_tiers)),
            regional=regional,
        )

    if errors:
        return None, errors

    rate_table = RateTable(
        vendors=tuple(v for v, _ in vendors.values()),
        regions=regions,
        pricing=pricing,
    )
    return rate_table, errors


def load_rate_table(settings: Optional[Settings] = None) -> RateTable:
    """
    Load and validate the rate table from the configured CSV files.

    Raises RateTableError listing every problem found.
    """
    settings = settings or get_settings()

    vendors = _load_vendors(settings.vendors_csv)
    regions = _load_regions(settings.regions_csv)
    tiers_df = _read_csv(settings.rate_tiers_csv, TIER_COLUMNS)

    rate_table, errors = build_rate_table(vendors, regions, tiers_df)
    if rate_table is None:
        raise RateTableError(errors)

    logger.info(
        "Loaded rate table from %s: %d vendor(s), %d region(s), %d tier row(s)",
        settings.data_dir, len(rate_table.vendors), len(rate_table.regions), len(tiers_df),
    )
    check_monotonic(rate_table)
    return rate_table


def rate_table_frame(rate_table: RateTable) -> pd.DataFrame:
    """Flatten every tier into one row, in the same columns as rate_tiers.csv."""
    rows = []
    for vendor_id, vendor_pricing in rate_table.pricing.items():
        for tier in vendor_pricing.universal.tiers:
            rows.append((vendor_id, SCHEME_UNIVERSAL, '', '', tier.max_weight, tier.price))
        for region_id, regional in vendor_pricing.regional.items():
            if regional.scheme == SCHEME_FIXED:
                for sub_region_id, tiers in regional.sub_regions.items():
                    for tier in tiers:
                        rows.append((vendor_id, SCHEME_FIXED, region_id, sub_region_id, tier.max_weight, tier.price))
            else:
                for tier in regional.tiers:
                    rows.append((vendor_id, SCHEME_PER_TON, region_id, '', tier.max_weight, tier.price))
    return pd.DataFrame(rows, columns=TIER_COLUMNS)
