# snow_particles.py — particle kinds for the festive snow overlay
#
# Flakes live in their own list; everything else (static trees/wreaths and the
# transient sleigh/elf sprites) shares one list and is told apart by class.
# Each kind carries only the fields it needs.

from __future__ import annotations
from typing import NamedTuple, Tuple


class Flake:
    """A drifting snowflake. Recycled at the edges, never destroyed."""
    __slots__ = ("x", "y", "size", "speed", "opacity",
                 "wind_phase", "wind_response", "rotation", "rotation_rate")

    def __init__(self, x=0.0, y=0.0, size=1.0, speed=1.0, opacity=1.0,
                 wind_phase=0.0, wind_response=0.02, rotation=0.0, rotation_rate=0.0):
        self.x = x
        self.y = y
        self.size = size
        self.speed = speed
        self.opacity = opacity
        self.wind_phase = wind_phase
        self.wind_response = wind_response
        self.rotation = rotation
        self.rotation_rate = rotation_rate


class StaticDecoration:
    """Static ornament that slowly gathers snow. Always active."""
    __slots__ = ("x", "y", "size", "opacity", "rotation", "snow_level")
    kind = "decoration"
    active = True
    SNOW_CAP_FACTOR = 0.3

    def __init__(self, x, y, size, opacity, rotation=0.0):
        self.x = x
        self.y = y
        self.size = size
        self.opacity = opacity
        self.rotation = rotation
        self.snow_level = 0.0

    @property
    def snow_cap(self) -> float:
        return self.size * self.SNOW_CAP_FACTOR


class Tree(StaticDecoration):
    __slots__ = ()
    kind = "tree"


class WreathSegment(NamedTuple):
    angle: float
    radius: float
    thickness: float
    color: Tuple[int, int, int]


class Wreath(StaticDecoration):
    __slots__ = ("shape",)
    kind = "wreath"

    def __init__(self, x, y, size, opacity, shape, rotation=0.0):
        super().__init__(x, y, size, opacity, rotation)
        # generated once so the ring does not re-randomize every frame
        self.shape: Tuple[WreathSegment, ...] = tuple(shape)


class Sprite:
    """Transient sprite that crosses the surface on a bobbing path."""
    __slots__ = ("x", "y", "base_y", "vx", "amplitude", "frequency", "phase",
                 "time", "size", "opacity", "active")
    kind = "sprite"
    OFFSCREEN_MARGIN = 100
    ENTRY_OFFSET = 100

    def __init__(self, x, base_y, vx, amplitude, frequency, phase, size, opacity):
        self.x = x
        self.y = base_y
        self.base_y = base_y
        self.vx = vx
        self.amplitude = amplitude
        self.frequency = frequency
        self.phase = phase
        self.time = 0.0
        self.size = size
        self.opacity = opacity
        self.active = True

    @property
    def direction(self) -> int:
        return 1 if self.vx > 0 else -1


class Sleigh(Sprite):
    __slots__ = ()
    kind = "sleigh"
    OFFSCREEN_MARGIN = 200
    ENTRY_OFFSET = 100


class Elf(Sprite):
    __slots__ = ()
    kind = "elf"
    OFFSCREEN_MARGIN = 100
    ENTRY_OFFSET = 50

