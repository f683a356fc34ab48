#!/usr/bin/env python3
"""
Validate the Efes rights engine against sample Haifa parcels.

Runs the full calculation on a fixed set of parcels and prints the three
tracks side by side for manual review against the municipal sheets.
Can be run against the live API or by importing the engine directly.

Usage:
    # Against live API:
    python3 scripts/validate_sample_parcels.py --api http://localhost:8000

    # Direct import (no server needed):
    python3 scripts/validate_sample_parcels.py
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from datetime import datetime

# Add backend to path for direct import mode
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.join(os.path.dirname(SCRIPT_DIR), "backend")
sys.path.insert(0, BACKEND_DIR)

# ──────────────────────────────────────────────────────────────────
# SAMPLE PARCELS
# ──────────────────────────────────────────────────────────────────

SAMPLE_PARCELS = [
    {
        "name": "Neve Shaanan walk-up (TAMA 38 reference sheet)",
        "request": {
            "parcel": {"gush": 10810, "helka": 42, "plot_area": 1011,
                       "neighborhood": "נווה שאנן", "street_name": "טרומפלדור"},
            "building": {"existing_contour": 142, "existing_floors": 3,
                         "existing_units_per_floor": 1, "total_existing_units": 2},
        },
        "verify": [
            "TAMA 38 statutory base 607 + 61 = 668",
            "TAMA 38 policy bonus 483.5",
            "HFP/2666 district 9, sub-area 9A",
        ],
    },
    {
        "name": "Hadar large building",
        "request": {
            "parcel": {"gush": 10870, "helka": 7, "plot_area": 750,
                       "neighborhood": "הדר הכרמל", "street_name": "הרצל"},
            "building": {"existing_contour": 320, "existing_floors": 4,
                         "existing_units_per_floor": 3, "total_existing_units": 12},
        },
        "verify": [
            "Resolves to Hadar (6), not Carmel",
            "Sub-area 6A (12 units ≥ 9)",
        ],
    },
    {
        "name": "German Colony preserved fabric (manual 5B)",
        "request": {
            "parcel": {"gush": 10892, "helka": 11, "plot_area": 540,
                       "neighborhood": "המושבה הגרמנית"},
            "building": {"existing_contour": 180, "existing_floors": 2,
                         "existing_units_per_floor": 2, "total_existing_units": 3},
            "manual_district_id": 5,
            "manual_sub_area_id": "5B",
        },
        "verify": [
            "Strengthening only: 3 × 25 = 75 m²",
            "No capped figures",
        ],
    },
    {
        "name": "Bat Galim small building",
        "request": {
            "parcel": {"gush": 10722, "helka": 3, "plot_area": 600,
                       "neighborhood": "בת גלים"},
            "building": {"existing_contour": 200, "existing_floors": 2,
                         "existing_units_per_floor": 2, "total_existing_units": 3},
        },
        "verify": [
            "Small-building override: multiplier 2.50 → 1.35",
        ],
    },
    {
        "name": "Danya (exclusion zone)",
        "request": {
            "parcel": {"gush": 10770, "helka": 5, "plot_area": 900,
                       "neighborhood": "דניה"},
            "building": {"existing_contour": 150, "existing_floors": 2,
                         "existing_units_per_floor": 1, "total_existing_units": 2},
        },
        "verify": [
            "LIMITED, 25 m² maximum addition",
            "No tracks computed",
        ],
    },
    {
        "name": "Neve David (coastal master plan)",
        "request": {
            "parcel": {"gush": 10740, "helka": 20, "plot_area": 800,
                       "neighborhood": "נווה דוד"},
            "building": {"existing_contour": 400, "existing_floors": 3,
                         "existing_units_per_floor": 4, "total_existing_units": 12},
        },
        "verify": [
            "REDIRECTED to חפ/2350",
        ],
    },
    {
        "name": "Building H, Ramat Hadar",
        "request": {
            "parcel": {"gush": 10990, "helka": 14, "plot_area": 1400,
                       "neighborhood": "רמת הדר"},
            "building": {"existing_contour": 480, "existing_floors": 4,
                         "existing_units_per_floor": 6, "total_existing_units": 24,
                         "is_building_h": True},
        },
        "verify": [
            "HFP/2666 Building H: min(gross × 3.0, 8 floors × 80% coverage)",
        ],
    },
]


# ──────────────────────────────────────────────────────────────────
# DIRECT ENGINE MODE (no server needed)
# ──────────────────────────────────────────────────────────────────

def run_direct_calculation(request: dict) -> dict:
    """Run the calculation by importing the engine directly."""
    from efes.models.schemas import CalculationRequest
    from efes.rights_engine.calculator import RightsCalculator

    req = CalculationRequest(**request)
    report = RightsCalculator().calculate(
        req.parcel,
        req.building,
        manual_district_id=req.manual_district_id,
        manual_sub_area_id=req.manual_sub_area_id,
        estimated_land_value=req.estimated_land_value,
    )
    return report.model_dump(mode="json")


# ──────────────────────────────────────────────────────────────────
# API MODE
# ──────────────────────────────────────────────────────────────────

async def run_api_calculation(request: dict, api_base: str) -> dict:
    """Run the calculation via the HTTP API."""
    import httpx
    async with httpx.AsyncClient(timeout=60) as client:
        resp = await client.post(f"{api_base}/api/calculate", json=request)
        if resp.status_code != 200:
            return {"error": f"API returned {resp.status_code}: {resp.text[:500]}"}
        return resp.json()


# ──────────────────────────────────────────────────────────────────
# OUTPUT FORMATTING
# ──────────────────────────────────────────────────────────────────

def _area(value) -> str:
    return "—" if value is None else f"{value:,.1f} m²"


def format_result(sample: dict, report: dict) -> str:
    """Format a single report for console output."""
    lines = []
    lines.append(f"\n{'='*70}")
    lines.append(f"PARCEL: {sample['name']}")
    lines.append(f"{'='*70}")

    if "error" in report:
        lines.append(f"  ERROR: {report['error']}")
        return "\n".join(lines)

    parcel = report["parcel"]
    lines.append(f"  Gush/Helka:   {parcel.get('gush')}/{parcel.get('helka')}")
    lines.append(f"  Neighborhood: {parcel.get('neighborhood') or 'N/A'}")
    lines.append(f"  Plot area:    {_area(parcel.get('plot_area'))}")

    flt = report["filter_result"]
    lines.append(f"\n  FILTER: {flt['status']}")
    if flt["reason"]:
        lines.append(f"    {flt['reason']}")
    if flt.get("max_addition") is not None:
        lines.append(f"    Max addition: {_area(flt['max_addition'])}")
    if flt.get("redirect_plan"):
        lines.append(f"    Redirect:     {flt['redirect_plan']}")

    tama = report.get("tama38")
    if tama:
        lines.append(f"\n  TAMA 38:")
        lines.append(f"    Policy:    {_area(tama['policy_total'])}")
        lines.append(f"    Statutory: {_area(tama['tbe_total'])}")
        lines.append(f"    Total:     {_area(tama['total_primary_area'])}")
        lines.append(f"    Units:     {tama['potential_units_low']}-{tama['potential_units_high']}")
        lines.append(f"    Developer: {_area(tama['developer_primary'])}, "
                     f"{tama['developer_units_high']} units")

    shaked = report.get("shaked")
    if shaked:
        lines.append(f"\n  SHAKED:")
        lines.append(f"    Ceiling:   {_area(shaked['shaked_ceiling'])}")
        lines.append(f"    Total:     {_area(shaked['total_primary_area'])}")
        levy = shaked.get("betterment_levy_amount")
        lines.append(f"    Levy:      {'—' if levy is None else f'₪{levy:,}'}")

    hfp = report.get("hfp2666")
    if hfp:
        lines.append(f"\n  HFP/2666:")
        lines.append(f"    District:  {hfp.get('district_id')} / {hfp.get('sub_area_id')}"
                     + ("  (Building H)" if hfp.get("is_building_h") else ""))
        if hfp.get("is_strengthening_only"):
            lines.append(f"    Strengthening addition: {_area(hfp['strengthen_addition'])}")
        elif not hfp.get("district_data_available"):
            lines.append("    Manual district selection required")
        else:
            if hfp.get("small_building_override"):
                lines.append(f"    Small-building override: "
                             f"{hfp['multiplier']} → {hfp['effective_multiplier']}")
            lines.append(f"    Raw:       {_area(hfp['raw_primary_area'])}")
            lines.append(f"    By floors: {_area(hfp['max_by_floors'])}")
            lines.append(f"    By density:{_area(hfp['max_by_density'])}")
            lines.append(f"    Final:     {_area(hfp['final_primary_area'])}")

    best = report.get("comparison", {}).get("best_track")
    if best:
        lines.append(f"\n  BEST TRACK: {best}")

    lines.append(f"\n  VERIFY:")
    for v in sample.get("verify", []):
        lines.append(f"    [ ] {v}")

    return "\n".join(lines)


# ──────────────────────────────────────────────────────────────────
# MAIN
# ──────────────────────────────────────────────────────────────────

async def main():
    parser = argparse.ArgumentParser(description="Validate the Efes rights engine against sample parcels")
    parser.add_argument("--api", default=None, help="API base URL (e.g., http://localhost:8000)")
    parser.add_argument("--samples", nargs="*", type=int, help="Run specific sample numbers (1-indexed)")
    args = parser.parse_args()

    print(f"\nEfes Rights Engine Validation")
    print(f"Date: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    print(f"Mode: {'API' if args.api else 'Direct Import'}")
    if args.api:
        print(f"API:  {args.api}")
    print(f"Samples: {len(SAMPLE_PARCELS)} configured")

    samples = SAMPLE_PARCELS
    if args.samples:
        samples = [SAMPLE_PARCELS[i-1] for i in args.samples if 1 <= i <= len(SAMPLE_PARCELS)]

    results = []
    for i, sample in enumerate(samples, 1):
        print(f"\n>>> Running sample {i}/{len(samples)}: {sample['name']}...")
        try:
            if args.api:
                report = await run_api_calculation(sample["request"], args.api)
            else:
                report = run_direct_calculation(sample["request"])
            print(format_result(sample, report))
            status = "error" if "error" in report else "ok"
            results.append({"sample": sample["name"], "status": status, "error": report.get("error")})
        except Exception as e:
            print(f"\n  FAILED: {e}")
            import traceback
            traceback.print_exc()
            results.append({"sample": sample["name"], "status": "error", "error": str(e)})

    print(f"\n{'='*70}")
    print("SUMMARY")
    print(f"{'='*70}")
    ok = sum(1 for r in results if r["status"] == "ok")
    err = sum(1 for r in results if r["status"] == "error")
    print(f"  Passed: {ok}/{len(results)}")
    if err:
        print(f"  Failed: {err}/{len(results)}")
        for r in results:
            if r["status"] == "error":
                print(f"    - {r['sample']}: {r.get('error') or 'unknown'}")
    print()


if __name__ == "__main__":
    asyncio.run(main())
