"""
Haifa inclusive housing (דיור מכליל, חפ/מד/2699).

In scored districts a share of the developer's new units must be delivered
as affordable housing.  The share is set per district score; the policy only
bites once the project passes a citywide unit threshold.

    mandated   = ceil(developer_units_high × district rate)
    marketable = developer_units_high − mandated

Neighborhood matching uses the same substring rule as the district table:
the first district with an alias contained in the neighborhood name wins.
"""

from __future__ import annotations

import math

from efes.models.schemas import InclusiveHousing
from efes.rights_engine.rules import INCLUSIVE_HOUSING_DISTRICTS, INCLUSIVE_HOUSING_MIN_UNITS


def find_inclusive_district(neighborhood: str | None) -> dict | None:
    """Return the scored inclusive-housing district for a neighborhood, if any."""
    name = (neighborhood or "").strip()
    if not name:
        return None
    for district in INCLUSIVE_HOUSING_DISTRICTS:
        if any(alias in name for alias in district["aliases"]):
            return district
    return None


def apply_inclusive_housing(developer_units_high: int, neighborhood: str | None) -> InclusiveHousing:
    """Deduct the mandated affordable quota from the developer's units.

    A no-op (``applies=False``, marketable units unchanged) when the
    neighborhood is not scored or the project is below the trigger.
    """
    district = find_inclusive_district(neighborhood)
    if district is None or developer_units_high < INCLUSIVE_HOUSING_MIN_UNITS:
        return InclusiveHousing(
            applies=False,
            rate=0,
            mandated_units=0,
            marketable_units=developer_units_high,
        )

    rate = district["rate"]
    # 100 × 0.07 is 7.000000000000001 in binary floating point
    mandated = math.ceil(round(developer_units_high * rate, 9))
    return InclusiveHousing(
        applies=True,
        rate=rate,
        mandated_units=mandated,
        marketable_units=developer_units_high - mandated,
        district_name=district["name"],
    )
