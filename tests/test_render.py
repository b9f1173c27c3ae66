"""
Tests for frame rendering with Pillow.
"""

import math
import random

import pytest
from PIL import Image

from snow_factory import make_elf, make_sleigh, make_wreath
from snow_particles import Flake, Sleigh, Tree
from snow_render import _Layer, flake_strokes, paint_tree, paint_wreath, render, twinkle


def _surface(w=200, h=150):
    return Image.new("RGBA", (w, h), (0, 0, 0, 0))


def _painted(img):
    return img.getchannel("A").getbbox() is not None


class TestTwinkle:
    def test_range(self):
        for t in range(0, 20000, 37):
            v = twinkle(t, 0.003, 1.5)
            assert 0.0 <= v <= 1.0

    def test_peak_and_trough(self):
        assert twinkle(0, 1.0, math.pi / 2) == pytest.approx(1.0)
        assert twinkle(0, 1.0, -math.pi / 2) == pytest.approx(0.0)

    def test_offsets_desynchronise_lights(self):
        assert twinkle(1000, 0.003, 0.0) != pytest.approx(twinkle(1000, 0.003, 0.5))


class TestFlakes:
    def test_eighteen_strokes(self):
        strokes = flake_strokes(Flake(x=50, y=50, size=4))
        assert len(strokes) == 18
        for (x0, y0), (x1, y1) in strokes:
            assert abs(x1 - 50) <= 4.01 and abs(y1 - 50) <= 4.01

    def test_flake_drawn_with_opacity(self):
        img = _surface()
        render(img, [Flake(x=100, y=75, size=4, opacity=0.5)], [])
        r, g, b, a = img.getpixel((100, 75))
        assert (r, g, b) == (255, 255, 255)
        assert 120 <= a <= 135


class TestFrame:
    def test_empty_frame_is_transparent(self):
        img = _surface()
        render(img, [], [])
        assert not _painted(img)

    def test_previous_frame_cleared(self):
        img = _surface()
        render(img, [Flake(x=20, y=20, size=3)], [])
        render(img, [Flake(x=150, y=100, size=3)], [])
        assert img.getpixel((20, 20))[3] == 0
        assert img.getpixel((150, 100))[3] > 0

    def test_tree_painted_near_anchor(self):
        img = _surface()
        render(img, [], [Tree(x=100, y=80, size=25, opacity=0.8)], twinkle_clock=500)
        bbox = img.getchannel("A").getbbox()
        assert bbox is not None
        x0, y0, x1, y1 = bbox
        assert x0 < 100 < x1 and y0 < 80 < y1

    def test_snow_capped_tree_differs(self):
        clean, capped = _surface(), _surface()
        tree = Tree(x=100, y=80, size=25, opacity=1)
        render(clean, [], [tree], 0)
        tree.snow_level = 5
        render(capped, [], [tree], 0)
        assert clean.tobytes() != capped.tobytes()

    def test_twinkle_changes_lights(self):
        a, b = _surface(), _surface()
        tree = Tree(x=100, y=80, size=30, opacity=1)
        render(a, [], [tree], 0)
        render(b, [], [tree], 1000)
        assert a.tobytes() != b.tobytes()

    def test_wreath_rendered(self):
        img = _surface()
        w = make_wreath(200, 150, random.Random(1))
        w.x, w.y = 100, 75
        render(img, [], [w])
        assert _painted(img)

    @pytest.mark.parametrize("builder", [make_sleigh, make_elf])
    def test_sprites_clipped_at_edges(self, builder):
        img = _surface()
        s = builder(200, 150, random.Random(2))
        s.x = 5
        s.y = 60
        render(img, [], [s], 250)
        assert _painted(img)

    def test_fully_offscreen_sprite_skipped(self):
        img = _surface()
        s = Sleigh(x=-5000, base_y=50, vx=4, amplitude=0, frequency=0, phase=0, size=20, opacity=1)
        render(img, [], [s])
        assert not _painted(img)

    def test_decoration_opacity_scales_alpha(self):
        faint, solid = _surface(), _surface()
        render(faint, [], [Tree(x=100, y=80, size=25, opacity=0.3)], 0)
        render(solid, [], [Tree(x=100, y=80, size=25, opacity=1.0)], 0)
        assert max(faint.getchannel("A").getdata()) < max(solid.getchannel("A").getdata())


class TestSoftLayers:
    @pytest.fixture
    def allocations(self, monkeypatch):
        calls = []
        new = Image.new

        def counting(*args, **kwargs):
            calls.append(1)
            return new(*args, **kwargs)

        monkeypatch.setattr(Image, "new", counting)
        return calls

    def test_nested_soft_shares_one_overlay(self, allocations):
        L = _Layer(20, 20, 10)
        with L.soft():
            L.glow(0, 0, 6, (255, 0, 0), 1.0)
            L.glow(3, 3, 6, (0, 255, 0), 1.0)
            with L.soft():
                L.circle(0, 0, 2, (255, 255, 255, 128))
        assert len(allocations) == 2
        assert L.image.getchannel("A").getbbox() is not None

    def test_tree_allocates_a_bounded_number_of_layers(self, allocations):
        tree = Tree(x=100, y=80, size=30, opacity=1)
        tree.snow_level = 5
        paint_tree(tree, 250)
        assert len(allocations) <= 6

    def test_wreath_lights_share_one_overlay(self, allocations):
        w = make_wreath(200, 150, random.Random(1))
        w.snow_level = 2
        paint_wreath(w, 0)
        assert len(allocations) <= 3
