"""
Tests for intensity tiers and profile validation.
"""

import pytest

from snow_intensity import (
    DEFAULT_TIER,
    INTENSITY_PROFILES,
    IntensityProfile,
    make_profile,
    resolve_profile,
)


class TestBuiltInTiers:
    def test_three_tiers(self):
        assert set(INTENSITY_PROFILES) == {"light", "medium", "heavy"}
        assert DEFAULT_TIER == "medium"

    def test_medium_values(self):
        p = INTENSITY_PROFILES["medium"]
        assert p == IntensityProfile(150, (0.8, 2.5), (1.0, 4.0), 6, 3)

    def test_tiers_grow_with_intensity(self):
        light, medium, heavy = (INTENSITY_PROFILES[t] for t in ("light", "medium", "heavy"))
        assert light.count < medium.count < heavy.count
        assert light.trees < medium.trees < heavy.trees
        assert light.wreaths < medium.wreaths < heavy.wreaths

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            INTENSITY_PROFILES["blizzard"] = INTENSITY_PROFILES["heavy"]


class TestResolve:
    def test_known(self):
        assert resolve_profile("heavy").count == 300

    @pytest.mark.parametrize("tier", ["blizzard", "", None, 3, "HEAVY"])
    def test_unknown_is_none(self, tier):
        assert resolve_profile(tier) is None

    def test_custom_table(self):
        table = {"gentle": make_profile(10, (0.1, 0.2), (1, 2))}
        assert resolve_profile("gentle", table).count == 10
        assert resolve_profile("medium", table) is None


class TestMakeProfile:
    def test_coerces_numbers(self):
        p = make_profile("40", [1, 2], [1, 3], trees="2")
        assert p.count == 40
        assert p.speed_range == (1.0, 2.0)
        assert p.trees == 2
        assert p.wreaths == 0

    def test_degenerate_range_allowed(self):
        p = make_profile(5, (2, 2), (3, 3))
        assert p.speed_range == (2.0, 2.0)

    @pytest.mark.parametrize("kwargs", [
        dict(count=-1, speed_range=(1, 2), size_range=(1, 2)),
        dict(count=1, speed_range=(2, 1), size_range=(1, 2)),
        dict(count=1, speed_range=(1, 2), size_range=(5, 1)),
        dict(count=1, speed_range=(1, 2, 3), size_range=(1, 2)),
        dict(count=1, speed_range=None, size_range=(1, 2)),
        dict(count=1, speed_range=(1, 2), size_range=(1, 2), wreaths=-2),
    ])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValueError):
            make_profile(**kwargs)
