"""
Tests for population building: counts, depth layers and sprite placement.
"""

import math
import random

import pytest

from snow_factory import (
    SMALL_SCREEN_WIDTH,
    SPRITE_BUILDERS,
    WREATH_SEGMENTS,
    build_population,
    make_elf,
    make_flake,
    make_sleigh,
    make_tree,
    make_wreath,
    scaled_counts,
)
from snow_intensity import INTENSITY_PROFILES, make_profile
from snow_particles import Elf, Sleigh, Tree, Wreath

MEDIUM = INTENSITY_PROFILES["medium"]


class TestCounts:
    def test_full_counts_on_wide_surface(self):
        pop = build_population(MEDIUM, 1024, 768, random.Random(1))
        assert len(pop.flakes) == 150
        assert sum(isinstance(d, Tree) for d in pop.decorations) == 6
        assert sum(isinstance(d, Wreath) for d in pop.decorations) == 3

    def test_small_surface_floor_halves(self):
        assert scaled_counts(INTENSITY_PROFILES["light"], 500) == (25, 1, 1)
        assert scaled_counts(INTENSITY_PROFILES["heavy"], SMALL_SCREEN_WIDTH - 1) == (150, 5, 2)

    def test_threshold_is_not_small(self):
        assert scaled_counts(MEDIUM, SMALL_SCREEN_WIDTH) == (150, 6, 3)

    def test_no_sprites_at_build(self):
        pop = build_population(INTENSITY_PROFILES["heavy"], 1024, 768, random.Random(2))
        assert not any(isinstance(d, (Sleigh, Elf)) for d in pop.decorations)

    def test_empty_profile(self):
        pop = build_population(make_profile(0, (1, 1), (1, 1)), 1024, 768)
        assert pop.flakes == [] and pop.decorations == []


class TestFlakes:
    def test_layer_ranges(self):
        rng = random.Random(3)
        s_lo, s_hi = MEDIUM.size_range
        v_lo, v_hi = MEDIUM.speed_range
        for _ in range(500):
            f = make_flake(MEDIUM, 800, 600, rng)
            assert 0 <= f.x <= 800
            assert -600 <= f.y <= 0
            assert s_lo <= f.size <= s_lo + (s_hi - s_lo) * 1.5
            assert v_lo <= f.speed <= v_lo + (v_hi - v_lo) * 1.3
            assert 0.3 <= f.opacity <= 1.0
            assert 0.01 <= f.wind_response <= 0.07
            assert abs(f.rotation_rate) <= 0.01

    def test_all_three_layers_present(self):
        rng = random.Random(4)
        opacities = [make_flake(MEDIUM, 800, 600, rng).opacity for _ in range(300)]
        assert any(o >= 0.8 for o in opacities)
        assert any(0.5 <= o <= 0.7 for o in opacities)
        assert any(o < 0.5 for o in opacities)


class TestDecorations:
    def test_tree_ranges(self):
        t = make_tree(800, 600, random.Random(5))
        assert 20 <= t.size <= 35
        assert 0.6 <= t.opacity <= 0.9
        assert t.snow_level == 0
        assert t.snow_cap == pytest.approx(t.size * 0.3)

    def test_wreath_shape_fixed_at_creation(self):
        w = make_wreath(800, 600, random.Random(6))
        assert len(w.shape) == WREATH_SEGMENTS
        assert 15 <= w.size <= 25
        assert w.shape[0].angle == 0
        assert w.shape[5].angle == pytest.approx(math.pi / 2)
        assert all(0.9 <= seg.radius <= 1.1 for seg in w.shape)
        assert all(0.2 <= seg.thickness <= 0.35 for seg in w.shape)
        assert isinstance(w.shape, tuple)


class TestSprites:
    def test_sleigh_enters_from_an_edge(self):
        rng = random.Random(7)
        for _ in range(50):
            s = make_sleigh(800, 600, rng)
            assert s.x in (-100, 900)
            assert (s.vx > 0) == (s.x < 0)
            assert 3 <= abs(s.vx) <= 5
            assert 0 <= s.base_y <= 300
            assert 20 <= s.amplitude <= 50
            assert s.opacity == 0.9
            assert s.active

    def test_elf_walks_along_bottom(self):
        rng = random.Random(8)
        for _ in range(50):
            e = make_elf(800, 600, rng)
            assert e.x in (-50, 850)
            assert (e.vx > 0) == (e.x < 0)
            assert 1.5 <= abs(e.vx) <= 2.5
            assert e.base_y == 570
            assert e.amplitude == 3
            assert e.frequency == 0.05

    def test_both_directions_occur(self):
        rng = random.Random(9)
        directions = {make_sleigh(800, 600, rng).direction for _ in range(40)}
        assert directions == {1, -1}

    @pytest.mark.parametrize("kind,cls", [("sleigh", Sleigh), ("elf", Elf)])
    def test_builder_registry(self, kind, cls):
        sprite = SPRITE_BUILDERS[kind](800, 600, random.Random(3))
        assert isinstance(sprite, cls)
        assert sprite.kind == kind
