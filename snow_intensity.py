# snow_intensity.py — named intensity tiers for the festive snow overlay
#
# A tier maps to how many flakes fall, how fast and how large they are, and how
# many static trees/wreaths decorate the surface. The table is read-only; custom
# tiers are built with make_profile() and handed to the overlay as a mapping.

from __future__ import annotations
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Tuple

DEFAULT_TIER = "medium"


class IntensityProfile(NamedTuple):
    count: int
    speed_range: Tuple[float, float]
    size_range: Tuple[float, float]
    trees: int
    wreaths: int


def make_profile(count, speed_range, size_range, trees=0, wreaths=0) -> IntensityProfile:
    """Build a validated profile. Raises ValueError on empty ranges or negative counts."""
    count, trees, wreaths = int(count), int(trees), int(wreaths)
    if min(count, trees, wreaths) < 0:
        raise ValueError(f"counts must be >= 0 (count={count}, trees={trees}, wreaths={wreaths})")
    try:
        s_lo, s_hi = (float(v) for v in speed_range)
        z_lo, z_hi = (float(v) for v in size_range)
    except (TypeError, ValueError):
        raise ValueError("speed_range and size_range must be [min, max] pairs") from None
    if s_lo > s_hi:
        raise ValueError(f"empty speed range [{s_lo}, {s_hi}]")
    if z_lo > z_hi:
        raise ValueError(f"empty size range [{z_lo}, {z_hi}]")
    return IntensityProfile(count, (s_lo, s_hi), (z_lo, z_hi), trees, wreaths)


INTENSITY_PROFILES: Mapping[str, IntensityProfile] = MappingProxyType({
    "light":  make_profile(50,  (0.5, 1.5), (1, 3), trees=3,  wreaths=2),
    "medium": make_profile(150, (0.8, 2.5), (1, 4), trees=6,  wreaths=3),
    "heavy":  make_profile(300, (1.0, 3.5), (1, 5), trees=10, wreaths=4),
})


def resolve_profile(tier, profiles: Optional[Mapping[str, IntensityProfile]] = None) -> Optional[IntensityProfile]:
    """Return the profile for `tier`, or None when the tier is unknown."""
    table = INTENSITY_PROFILES if profiles is None else profiles
    if not isinstance(tier, str):
        return None
    return table.get(tier)
