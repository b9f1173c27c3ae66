# snow_physics.py — per-frame simulation for the festive snow overlay
#
# Simulation.advance(delta_ms) moves every particle by one frame's worth of
# time. Motion is normalised against a 60 Hz frame so the effect looks the same
# at any refresh rate. Wind is one scalar gust per Simulation (i.e. per overlay)
# that eases toward a target re-rolled every 5–15 simulated seconds.

from __future__ import annotations
import logging
import math
import random
from typing import Dict, List, Mapping, Optional

from snow_factory import SPRITE_BUILDERS
from snow_particles import Flake, StaticDecoration, Sprite

logger = logging.getLogger("festive_snow.physics")

FRAME_MS = 1000.0 / 60.0
EDGE_MARGIN = 10            # flakes recycle/wrap this far past the edges
GUST_EASE = 0.02
GUST_LIMIT = 2.0
GUST_INTERVAL_MS = (5000.0, 15000.0)
SNOW_CHANCE = 0.0005        # per decoration per tick
SNOW_STEP = 0.2

# Chance per frame that a sprite of each kind enters.
DEFAULT_SPAWN_RATES: Mapping[str, float] = {"sleigh": 0.0005, "elf": 0.0003}


class Simulation:
    def __init__(self, width, height, spawn_rates: Optional[Mapping[str, float]] = None,
                 snow_chance: float = SNOW_CHANCE, rng=None):
        self.width = width
        self.height = height
        self.rng = rng or random.Random()
        self.spawn_rates: Dict[str, float] = dict(DEFAULT_SPAWN_RATES)
        if spawn_rates:
            for kind, rate in spawn_rates.items():
                if kind not in SPRITE_BUILDERS:
                    logger.warning("[Physics] Ignoring spawn rate for unknown sprite %r", kind)
                    continue
                self.spawn_rates[kind] = max(0.0, min(1.0, float(rate)))
        self.snow_chance = snow_chance

        self.gust = 0.0
        self.gust_target = 0.0
        self.clock_ms = 0.0         # drives twinkling lights
        self._since_gust = 0.0
        self._gust_interval = self._roll_interval()

    def resize(self, width, height):
        self.width = width
        self.height = height

    def _roll_interval(self) -> float:
        lo, hi = GUST_INTERVAL_MS
        return lo + self.rng.random() * (hi - lo)

    # ---------------- Wind ----------------
    def update_wind(self, delta_ms: float):
        self._since_gust += delta_ms
        if self._since_gust > self._gust_interval:
            self.gust_target = (self.rng.random() - 0.5) * 2 * GUST_LIMIT
            self._since_gust = 0.0
            self._gust_interval = self._roll_interval()
        self.gust += (self.gust_target - self.gust) * GUST_EASE

    # ---------------- Particles ----------------
    def move_flake(self, f: Flake, n: float):
        w, h = self.width, self.height
        f.y += f.speed * n
        f.wind_phase += f.wind_response * n
        f.x += (math.sin(f.wind_phase) * 0.5 + self.gust) * n
        f.rotation += f.rotation_rate * n

        if f.y > h + EDGE_MARGIN:
            f.y = -EDGE_MARGIN
            f.x = self.rng.random() * w

        if f.x < -EDGE_MARGIN:
            f.x = w + EDGE_MARGIN
        elif f.x > w + EDGE_MARGIN:
            f.x = -EDGE_MARGIN

    def accrue_snow(self, d: StaticDecoration):
        if self.rng.random() < self.snow_chance:
            d.snow_level = min(d.snow_level + self.rng.random() * SNOW_STEP, d.snow_cap)

    def move_sprite(self, s: Sprite, n: float, delta_ms: float):
        s.x += s.vx * n
        s.time += delta_ms
        s.y = s.base_y + math.sin(s.time * s.frequency + s.phase) * s.amplitude
        margin = s.OFFSCREEN_MARGIN
        if s.x < -margin or s.x > self.width + margin:
            s.active = False

    def spawn(self, decorations: List):
        for kind, rate in self.spawn_rates.items():
            if rate > 0 and self.rng.random() < rate:
                sprite = SPRITE_BUILDERS[kind](self.width, self.height, self.rng)
                decorations.append(sprite)
                logger.debug("[Physics] Spawned %s at x=%.0f heading %+d", kind, sprite.x, sprite.direction)

    def advance(self, delta_ms: float, flakes: List[Flake], decorations: List) -> List:
        """Advance one frame. Returns the decoration list minus retired sprites."""
        delta_ms = max(0.0, float(delta_ms))
        n = delta_ms / FRAME_MS
        self.clock_ms += delta_ms
        self.update_wind(delta_ms)

        for f in flakes:
            self.move_flake(f, n)

        for p in decorations:
            if isinstance(p, Sprite):
                self.move_sprite(p, n, delta_ms)
            else:
                self.accrue_snow(p)

        self.spawn(decorations)
        return [p for p in decorations if p.active]
