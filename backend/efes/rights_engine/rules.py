"""
Haifa urban-renewal rule tables.

Static regulatory constants and lookup data for the three entitlement tracks:

  - TAMA 38 demolition-rebuild policy (חפ/מד/2500, מדיניות 2020)
  - Shaked alternative / Amendment 139 (תיקון 139)
  - HFP/2666 district renewal plan (חפ/2666, עדכון לטבלה 5, נובמבר 2023)

plus the exclusion zones (חפ/2000), the pinui-binui master-plan areas and the
inclusive-housing district scores (חפ/מד/2699).

Pure data.  Nothing here is mutated at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


# ──────────────────────────────────────────────────────────────────
# TAMA 38 POLICY (חפ/מד/2500)
# ──────────────────────────────────────────────────────────────────

EXPANSION_PER_UNIT = 13          # m² added per existing unit (typical floor + existing units)
MAMAD_PER_UNIT = 12              # protected room (ממ"ד) per unit
BALCONY_PER_UNIT = 12            # cantilevered balcony per unit
MIN_APARTMENT_SIZE = 54          # net minimum incl. protected room
DEFAULT_BUILDING_PCT = 0.60
SHEVES_RELIEF = 0.06             # statutory relief, % of plot area (not of base)
DEFAULT_PILOTIS_AREA = 70
DEFAULT_AVG_APARTMENT = 85
DEFAULT_PRIMARY_RETURN = 13      # primary m² returned per existing unit
DEFAULT_MAMAD_RETURN = 12        # protected-room m² returned per existing unit
MAX_UNITS_PER_FLOOR = 15
TBE_BONUS_FLOORS = 0             # reserved for a future zoning-variance input

# 2025 regulation: protected room counted as service area up to 12 m² net.
MAMAD_MAX_NET_SIZE = 12

TAMA38_EXPIRY_DATE = "2026-05-18"


# ──────────────────────────────────────────────────────────────────
# SHAKED ALTERNATIVE (תיקון 139)
# ──────────────────────────────────────────────────────────────────

SHAKED_MAX_DEMOLISH_REBUILD = 4.0    # × existing gross floor area
SHAKED_MAX_STRENGTHEN = 2.0          # strengthening track, informational only
BETTERMENT_LEVY_RATE = 0.25


# ──────────────────────────────────────────────────────────────────
# HFP/2666 PARAMETERS
# ──────────────────────────────────────────────────────────────────

HFP_COVERAGE = 0.80              # ground coverage for the floor cap
HFP_BALCONY_PER_UNIT = 14        # differs from TAMA 38's 12
STRENGTHEN_ADDITION_PER_UNIT = 25

# Small buildings: rules may only tighten down to these ceilings.
SMALL_BUILDING_MAX_UNITS = 4
SMALL_BUILDING_MULTIPLIER = 1.35
SMALL_BUILDING_MAX_FLOORS = 4
SMALL_BUILDING_DENSITY = 11
SMALL_BUILDING_EXEMPT_DISTRICTS: frozenset[int] = frozenset({5, 7})

# Citywide H-shaped building variant (bypasses district resolution).
BUILDING_H_MULTIPLIER = 3.0
BUILDING_H_MAX_FLOORS = 8


# ──────────────────────────────────────────────────────────────────
# SUB-AREA CONDITIONS
# ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class UnitCountMinimum:
    """Applies when the building has at least ``min_units`` existing units."""
    min_units: int


@dataclass(frozen=True)
class UnitCountMaximum:
    """Applies when the building has at most ``max_units`` existing units."""
    max_units: int


@dataclass(frozen=True)
class StrengtheningOnly:
    """No demolition; flat addition per existing unit."""
    addition_per_unit: float = STRENGTHEN_ADDITION_PER_UNIT


@dataclass(frozen=True)
class ParcelConsolidation:
    """Requires merging at least ``min_parcels`` parcels. Manual selection only."""
    min_parcels: int


@dataclass(frozen=True)
class FocalHub:
    """Intensive densification hub on a consolidated area. Manual selection only."""
    min_area: float


SubAreaCondition = Union[
    UnitCountMinimum, UnitCountMaximum, StrengtheningOnly, ParcelConsolidation, FocalHub,
]


def condition_kind(condition: SubAreaCondition) -> str:
    if isinstance(condition, UnitCountMinimum):
        return "unit_count_minimum"
    if isinstance(condition, UnitCountMaximum):
        return "unit_count_maximum"
    if isinstance(condition, StrengtheningOnly):
        return "strengthening_only"
    if isinstance(condition, ParcelConsolidation):
        return "parcel_consolidation"
    if isinstance(condition, FocalHub):
        return "focal_hub"
    raise TypeError(f"Unhandled sub-area condition: {condition!r}")


# ──────────────────────────────────────────────────────────────────
# HFP/2666 DISTRICTS (טבלה 5)
# ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SubArea:
    id: str
    name: str
    multiplier: float
    max_floors: int
    max_density: float                     # units per dunam
    commercial_bonus: Optional[float] = None
    condition: Optional[SubAreaCondition] = None
    is_default: bool = False


@dataclass(frozen=True)
class District:
    id: int
    name: str
    sub_areas: tuple[SubArea, ...] = field(default_factory=tuple)

    def get_sub_area(self, sub_area_id: str) -> SubArea | None:
        for sub_area in self.sub_areas:
            if sub_area.id == sub_area_id:
                return sub_area
        return None


HFP2666_DISTRICTS: tuple[District, ...] = (
    District(1, "ק. שמואל צפון", (
        SubArea("1A", "ק. שמואל צפון", 2.30, 7, 19, is_default=True),
    )),
    District(2, "ק.חיים מערבית — אברבנאל", (
        SubArea("2A", "ק.חיים מערבית — אברבנאל", 1.80, 7, 15, is_default=True),
    )),
    District(3, "ק.חיים מזרחית", (
        SubArea("3A", "ק.חיים מזרחית", 2.30, 7, 19, is_default=True),
    )),
    District(4, "בת גלים ורחוב אלנבי", (
        SubArea("4A", "בת גלים", 2.50, 7, 22, is_default=True),
        # 8 floors on descending slopes; retail frontage along Allenby
        SubArea("4B", "חזית רחוב אלנבי", 2.50, 8, 22, commercial_bonus=0.25),
    )),
    District(5, "מושבה גרמנית", (
        SubArea("5A", "מושבה גרמנית", 1.85, 6, 15, is_default=True),
        SubArea("5B", "מרקם המושבה לשימור", 1.85, 6, 15,
                condition=StrengtheningOnly()),
    )),
    District(6, "הדר", (
        SubArea("6A", "הדר — מבנים גדולים", 2.30, 6, 22,
                condition=UnitCountMinimum(9)),
        SubArea("6B", "הדר — מבנים קטנים", 2.00, 6, 18,
                condition=UnitCountMaximum(8), is_default=True),
        SubArea("6C", "מוקד הדר", 2.80, 9, 28,
                commercial_bonus=0.50, condition=FocalHub(min_area=2000)),
    )),
    District(7, "המורדות הצפוניים", (
        # topographically sensitive: 4 floors + roof, max 8.5 m
        SubArea("7A", "המורדות הצפוניים", 1.35, 4, 11, is_default=True),
    )),
    District(8, "כרמל", (
        SubArea("8A", "כרמל", 1.85, 7, 15, is_default=True),
        SubArea("8B", "כרמל ותיק", 1.60, 6, 15),
    )),
    District(9, "נוה שאנן", (
        SubArea("9A", "נוה שאנן", 2.25, 7, 18, is_default=True),
        SubArea("9B", "נוה שאנן — איחוד חלקות", 2.50, 8, 22,
                condition=ParcelConsolidation(min_parcels=2)),
    )),
    District(10, "ציר הרכס", (
        SubArea("10A", "מקטע 2 מוריה", 2.50, 9, 22, is_default=True),
        SubArea("10B", "מקטעים 1, 3", 1.85, 7, 15),
    )),
)

# Ordered: the first key found as a substring of the neighborhood or quarter
# wins ("הדר הכרמל" resolves to Hadar, not Carmel).
DISTRICT_NAME_MAP: dict[str, int] = {
    "קריית שמואל": 1,
    "קריית שמואל צפון": 1,
    "קריית חיים מערבית": 2,
    "אברבנאל": 2,
    "קריית חיים מזרחית": 3,
    "קריית חיים": 3,
    "בת גלים": 4,
    "אלנבי": 4,
    "מושבה גרמנית": 5,
    "המושבה הגרמנית": 5,
    "הדר": 6,
    "הדר הכרמל": 6,
    "הדר העליון": 6,
    "הדר התחתון": 6,
    "העיר התחתית": 6,
    "ואדי סאליב": 6,
    "ואדי ניסנאס": 6,
    "המורדות הצפוניים": 7,
    "רמת שמואל": 7,
    "כרמל": 8,
    "כרמל מערבי": 8,
    "כרמל ותיק": 8,
    "אחוזה": 8,
    "מרכז הכרמל": 8,
    "כרמליה": 8,
    "נווה שאנן": 9,
    "נוה שאנן": 9,
    "רמת הנשיא": 9,
    "רמת אלמוגי": 9,
    "מוריה": 10,
    "דניה": 10,
}


def get_district(district_id: int) -> District | None:
    for district in HFP2666_DISTRICTS:
        if district.id == district_id:
            return district
    return None


# ──────────────────────────────────────────────────────────────────
# EXCLUSION ZONES (חפ/2000)
# ──────────────────────────────────────────────────────────────────

EXCLUSION_MAX_ADDITION = 25

EXCLUSION_ZONES = {
    "danya": {
        "name": "הוד הכרמל (דניה)",
        "gush_numbers": (10769, 10770, 10771, 10772, 10773, 10774, 10775, 10776, 12251),
        "streets": (
            "שדרות אבא חושי", "דניה", "קוסטה ריקה", "איטליה", "ליבריה",
            "פינלנד", "שוודיה", "גרינבוים", "הונדורס",
        ),
        "max_addition": EXCLUSION_MAX_ADDITION,
        "reason": "אזור בנייה צמודת קרקע בצפיפות נמוכה - אסור בציפוף אינטנסיבי",
    },
    "western_kiryat_haim": {
        "name": "קריית חיים מערבית",
        "gush_range": (11570, 11600),
        "gush_numbers": (11624,),
        "streets": (
            "שדרות דגניה", "שדרות טרומן", "ורבורג", "בן צבי",
            "הציוד", "העמל", 'שדרות מח"ל',
        ),
        "max_addition": EXCLUSION_MAX_ADDITION,
        "reason": "מרקם תכנוני נמוך ממערב למסילת הרכבת - רחובות צרים",
    },
    "ramat_remez_red_roofs": {
        "name": "רמת רמז - הגגות האדומים",
        # only the red-roof streets; the rest of Ramat Remez allows pinui-binui
        "streets": ("קומוי", "בורוכוב", "דורות", "אינטרנציונל"),
        "max_addition": EXCLUSION_MAX_ADDITION,
        "reason": "אזור בתי מגורים נמוכים עם גגות רעפים - שימור אופי שכונתי",
        "street_match_only": True,
    },
}


# ──────────────────────────────────────────────────────────────────
# PINUI-BINUI MASTER PLANS (תוכניות אב)
# ──────────────────────────────────────────────────────────────────

PINUI_BINUI_AREAS = (
    {
        "name": "שכונות החוף (חפ/2350)",
        "plan_id": "חפ/2350",
        "neighborhoods": ("נווה דוד", "שער העלייה", "שפרינצק מערב", "עין הים"),
        "description": "תוכנית אב להתחדשות שכונות החוף",
    },
    {
        "name": "קריית אליעזר",
        "plan_id": "קריית אליעזר פינוי-בינוי",
        "neighborhoods": ("קריית אליעזר",),
        "description": '216 יח"ד ישנות → 970 דירות חדשות, 7 מגדלים 18-34 קומות',
    },
    {
        "name": "רמת שאול",
        "plan_id": "רמת שאול תוכנית אב",
        "neighborhoods": ("רמת שאול",),
        "description": "תוכנית אב שאושרה לאחרונה",
    },
    {
        "name": "שפרינצק",
        "plan_id": "שפרינצק תוכנית אב",
        "neighborhoods": ("שפרינצק",),
        "description": "תוכנית אב שאושרה לאחרונה",
    },
)

SINGLE_FAMILY_MAX_ADDITION = 25


# ──────────────────────────────────────────────────────────────────
# INCLUSIVE HOUSING (חפ/מד/2699)
# ──────────────────────────────────────────────────────────────────

INCLUSIVE_HOUSING_MIN_UNITS = 20   # developer units that trigger the policy

INCLUSIVE_HOUSING_DISTRICTS = (
    {
        "name": "כרמל",
        "score": 3,
        "rate": 0.10,
        "aliases": ("מרכז הכרמל", "כרמל מערבי", "כרמל ותיק", "אחוזה", "כרמליה", "דניה"),
    },
    {
        "name": "נוה שאנן",
        "score": 2,
        "rate": 0.07,
        "aliases": ("נווה שאנן", "נוה שאנן", "רמת הנשיא", "רמת אלמוגי"),
    },
    {
        "name": "מושבה גרמנית",
        "score": 2,
        "rate": 0.07,
        "aliases": ("מושבה גרמנית", "המושבה הגרמנית"),
    },
    {
        "name": "ק. שמואל",
        "score": 1,
        "rate": 0.05,
        "aliases": ("קריית שמואל",),
    },
    {
        "name": "בת גלים",
        "score": 1,
        "rate": 0.05,
        "aliases": ("בת גלים",),
    },
)


# ──────────────────────────────────────────────────────────────────
# LICENSING TRACKS (ערוצי רישוי)
# ──────────────────────────────────────────────────────────────────

LICENSING_TRACKS = {
    "short": {"name": "מסלול מקוצר", "days": 25,
              "description": "עבודות ללא סיכון קונסטרוקטיבי"},
    "standard": {"name": 'מסלול מלא תואם תב"ע', "days": 45,
                 "description": 'תוכניות תואמות ת.ב.ע ללא הקלות'},
    "full": {"name": "מסלול מלא עם הקלות", "days": 90,
             "description": "הקלות, שימושים חורגים, התחדשות עירונית"},
}
