#!/usr/bin/env python
"""
Build pipeline - validates the rate table and runs the golden tests.

Usage:
    python scripts/build_all.py
"""
import subprocess
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from film_tool.config.settings import get_settings, configure_logging
from film_tool.rates.rate_loader import load_rate_table, check_monotonic, rate_table_frame, RateTableError


def main():
    configure_logging()
    settings = get_settings()

    print("=" * 60)
    print("FILM TOOL BUILD PIPELINE")
    print("=" * 60)
    print()

    # Validate rate table
    print(f"[1/2] Validating rate table in {settings.data_dir}...")
    try:
        rate_table = load_rate_table(settings)
    except (RateTableError, FileNotFoundError) as e:
        print("\n❌ BUILD FAILED")
        for error in getattr(e, 'errors', [str(e)]):
            print(f"  ERROR: {error}")
        sys.exit(1)

    warnings = check_monotonic(rate_table)
    for warning in warnings:
        print(f"  WARNING: {warning}")

    print()
    print("[2/2] Running golden tests...")

    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests/test_golden_cases.py', '-v', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ BUILD COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    tiers_df = rate_table_frame(rate_table)
    print(f"  Vendors: {len(rate_table.vendors)}")
    print(f"  Regions: {len(rate_table.regions)}")
    print(f"  Monotonicity warnings: {len(warnings)}")
    print()
    print("Tier Counts:")
    for (vendor_id, scheme), count in tiers_df.groupby(['vendor_id', 'scheme']).size().items():
        print(f"  {vendor_id} {scheme}: {count} tiers")


if __name__ == "__main__":
    main()
