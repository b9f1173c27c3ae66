# snow_factory.py — builds flake and decoration populations
#
# build_population() is called whenever the population is (re)built: on init,
# on intensity change and after a debounced resize. Small screens get half the
# flakes, trees and wreaths.

from __future__ import annotations
import math
import random
from typing import List, NamedTuple, Union

from snow_intensity import IntensityProfile
from snow_particles import Elf, Flake, Sleigh, Tree, Wreath, WreathSegment

SMALL_SCREEN_WIDTH = 768     # below this, counts are floor-halved
WREATH_SEGMENTS = 20
WREATH_GREENS = ((26, 107, 26), (34, 139, 34))

# Depth layers: (size span mul, speed span mul, opacity lo/span, wind lo/span)
_FRONT = (1.5, 1.3, 0.8, 0.2, 0.01, 0.02)
_MIDDLE = (1.0, 1.0, 0.5, 0.2, 0.02, 0.03)
_BACK = (0.7, 0.7, 0.3, 0.2, 0.03, 0.04)

Decoration = Union[Tree, Wreath, Sleigh, Elf]


class Population(NamedTuple):
    flakes: List[Flake]
    decorations: List[Decoration]


def scaled_counts(profile: IntensityProfile, width: int):
    """(flakes, trees, wreaths) for a surface of the given width."""
    if width < SMALL_SCREEN_WIDTH:
        return profile.count // 2, profile.trees // 2, profile.wreaths // 2
    return profile.count, profile.trees, profile.wreaths


def _layer(depth: float):
    if depth < 1 / 3:
        return _FRONT
    if depth < 2 / 3:
        return _MIDDLE
    return _BACK


def make_flake(profile: IntensityProfile, width, height, rng=random) -> Flake:
    size_mul, speed_mul, op_lo, op_span, wind_lo, wind_span = _layer(rng.random())
    s_lo, s_hi = profile.size_range
    v_lo, v_hi = profile.speed_range
    return Flake(
        x=rng.random() * width,
        y=rng.random() * height - height,      # start above the top edge
        size=s_lo + rng.random() * (s_hi - s_lo) * size_mul,
        speed=v_lo + rng.random() * (v_hi - v_lo) * speed_mul,
        opacity=op_lo + rng.random() * op_span,
        wind_phase=rng.random() * math.pi * 2,
        wind_response=wind_lo + rng.random() * wind_span,
        rotation=rng.random() * math.pi * 2,
        rotation_rate=(rng.random() - 0.5) * 0.02,
    )


def make_tree(width, height, rng=random) -> Tree:
    return Tree(
        x=rng.random() * width,
        y=rng.random() * height,
        size=20 + rng.random() * 15,
        opacity=0.6 + rng.random() * 0.3,
    )


def make_wreath(width, height, rng=random) -> Wreath:
    shape = [
        WreathSegment(
            angle=(i / WREATH_SEGMENTS) * math.pi * 2,
            radius=0.9 + rng.random() * 0.2,
            thickness=0.2 + rng.random() * 0.15,
            color=WREATH_GREENS[i % 2],
        )
        for i in range(WREATH_SEGMENTS)
    ]
    return Wreath(
        x=rng.random() * width,
        y=rng.random() * height,
        size=15 + rng.random() * 10,
        opacity=0.7 + rng.random() * 0.2,
        shape=shape,
    )


def make_sleigh(width, height, rng=random) -> Sleigh:
    from_left = rng.random() < 0.5
    speed = 3 + rng.random() * 2
    return Sleigh(
        x=-Sleigh.ENTRY_OFFSET if from_left else width + Sleigh.ENTRY_OFFSET,
        base_y=rng.random() * height * 0.5,    # upper half
        vx=speed if from_left else -speed,
        amplitude=20 + rng.random() * 30,
        frequency=0.001 + rng.random() * 0.002,
        phase=rng.random() * math.pi * 2,
        size=15 + rng.random() * 10,
        opacity=0.9,
    )


def make_elf(width, height, rng=random) -> Elf:
    from_left = rng.random() < 0.5
    speed = 1.5 + rng.random()
    return Elf(
        x=-Elf.ENTRY_OFFSET if from_left else width + Elf.ENTRY_OFFSET,
        base_y=height - 30,                    # walks along the bottom
        vx=speed if from_left else -speed,
        amplitude=3,
        frequency=0.05,
        phase=rng.random() * math.pi * 2,
        size=10 + rng.random() * 5,
        opacity=0.95,
    )


SPRITE_BUILDERS = {"sleigh": make_sleigh, "elf": make_elf}


def build_population(profile: IntensityProfile, width, height, rng=random) -> Population:
    n_flakes, n_trees, n_wreaths = scaled_counts(profile, width)
    flakes = [make_flake(profile, width, height, rng) for _ in range(n_flakes)]
    decorations: List[Decoration] = [make_tree(width, height, rng) for _ in range(n_trees)]
    decorations.extend(make_wreath(width, height, rng) for _ in range(n_wreaths))
    return Population(flakes, decorations)
