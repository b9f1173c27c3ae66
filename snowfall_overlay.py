# snowfall_overlay.py — festive snow overlay controller
#
# Purpose
# -------
# Owns the drawing surface, the particle collections and the frame loop of the
# festive overlay (falling flakes, static trees/wreaths gathering snow, the odd
# sleigh or elf crossing the screen). Everything host-specific (surface,
# frame scheduling, timers, resize/visibility signals) comes from an injected
# host (see snow_host.ThreadedHost), so each overlay owns its own listener
# registrations and gives them back on stop().
#
# States: uninitialized → ready (init) → running (start) ⇄ paused (pause) and
# any → uninitialized again (stop). Every public call is safe from any state.
#
# The loop re-requests one frame at a time. Each halt bumps `epoch`; a frame
# callback scheduled under an older epoch, or arriving after the surface was
# released, returns without touching anything.

from __future__ import annotations
import functools
import logging
import random
import threading
from typing import Callable, List, Mapping, Optional

from snow_factory import build_population
from snow_intensity import DEFAULT_TIER, INTENSITY_PROFILES, IntensityProfile, resolve_profile
from snow_particles import Flake
from snow_physics import SNOW_CHANCE, Simulation
from snow_render import render

logger = logging.getLogger("festive_snow.overlay")

RESIZE_DEBOUNCE_MS = 250

UNINITIALIZED = "uninitialized"
READY = "ready"
RUNNING = "running"
PAUSED = "paused"


class SnowfallOverlay:
    """Festive snow overlay driven by a host frame scheduler.

    Lifecycle:
      • init()               – build surface + particles, bind host listeners
      • start()              – begin (or resume) the frame loop
      • pause()              – halt the loop, keep all state
      • stop()               – halt, release surface/listeners, clear particles
      • set_intensity(tier)  – rebuild the population for a new tier
      • should_display()     – ask the season predicate (advisory only)
    """

    def __init__(self, host, tier: str = DEFAULT_TIER, enabled: bool = False,
                 season_check: Optional[Callable[[], bool]] = None,
                 spawn_rates: Optional[Mapping[str, float]] = None,
                 snow_chance: Optional[float] = None,
                 profiles: Optional[Mapping[str, IntensityProfile]] = None,
                 rng: Optional[random.Random] = None):
        self._host = host
        self._profiles = dict(INTENSITY_PROFILES if profiles is None else profiles)
        if resolve_profile(tier, self._profiles) is None:
            logger.warning("[Overlay] Unknown intensity %r; using %r", tier, DEFAULT_TIER)
            tier = DEFAULT_TIER if DEFAULT_TIER in self._profiles else next(iter(self._profiles))
        self._tier = tier
        self.enabled = bool(enabled)
        self.season_check = season_check
        self._rng = rng or random.Random()
        self._spawn_rates = dict(spawn_rates) if spawn_rates else None
        self._snow_chance = SNOW_CHANCE if snow_chance is None else snow_chance

        self._lock = threading.RLock()
        self._surface = None
        self._sim: Optional[Simulation] = None
        self._flakes: List[Flake] = []
        self._decorations: List = []

        self._running = False
        self._user_paused = False
        self._suspended = False     # halted by the host going to background
        self._started_once = False
        self._frame_handle = None
        self._resize_handle = None
        self._last_time = 0.0
        self.epoch = 0

    # ---------------- Introspection ----------------
    @property
    def state(self) -> str:
        with self._lock:
            if self._surface is None:
                return UNINITIALIZED
            return RUNNING if self._running else (PAUSED if self._started_once else READY)

    @property
    def tier(self) -> str:
        return self._tier

    @property
    def profiles(self) -> Mapping[str, IntensityProfile]:
        return dict(self._profiles)

    @property
    def flakes(self) -> List[Flake]:
        return self._flakes

    @property
    def decorations(self) -> List:
        return self._decorations

    @property
    def surface(self):
        return self._surface

    @property
    def gust(self) -> float:
        return self._sim.gust if self._sim else 0.0

    # ---------------- Public API ----------------
    def should_display(self) -> bool:
        if self.season_check is None:
            return True
        try:
            return bool(self.season_check())
        except Exception as e:
            logger.warning("[Overlay] Season check failed (%s); not displaying", e)
            return False

    def init(self):
        with self._lock:
            if self._surface is not None:
                return
            try:
                w, h = self._host.viewport_size()
                surface = self._host.create_surface(w, h)
            except Exception as e:
                logger.warning("[Overlay] Could not create drawing surface: %s", e)
                return
            self._surface = surface
            self._started_once = False
            self._sim = Simulation(surface.width, surface.height, spawn_rates=self._spawn_rates,
                                   snow_chance=self._snow_chance, rng=self._rng)
            self._build_population()
            self._bind_events()
            logger.info("[Overlay] Ready: %dx%d, tier=%s, %d flakes, %d decorations",
                        surface.width, surface.height, self._tier, len(self._flakes), len(self._decorations))

    def start(self):
        with self._lock:
            if self._surface is None or self._running:
                return
            self._user_paused = False
            self._suspended = False
            self._running = True
            self._started_once = True
            self._last_time = self._host.now()
            self._schedule(self.epoch)
        logger.info("[Overlay] Running")

    def pause(self):
        with self._lock:
            self._user_paused = True
            if self._halt():
                logger.info("[Overlay] Paused")

    def stop(self):
        with self._lock:
            self._halt()
            if self._surface is None:
                return
            self._unbind_events()
            self._host.cancel_timer(self._resize_handle)
            self._resize_handle = None
            try:
                self._surface.release()
            except Exception as e:
                logger.warning("[Overlay] Surface release failed: %s", e)
            self._surface = None
            self._sim = None
            self._flakes = []
            self._decorations = []
            self._user_paused = False
            self._suspended = False
            self._started_once = False
        logger.info("[Overlay] Stopped")

    def set_intensity(self, tier: str):
        with self._lock:
            if resolve_profile(tier, self._profiles) is None:
                logger.debug("[Overlay] Ignoring unknown intensity %r", tier)
                return
            self._tier = tier
            if self._surface is not None:
                self._build_population()
                logger.info("[Overlay] Intensity → %s (%d flakes)", tier, len(self._flakes))

    # ---------------- Internals ----------------
    def _build_population(self):
        profile = self._profiles[self._tier]
        pop = build_population(profile, self._surface.width, self._surface.height, self._rng)
        self._flakes = pop.flakes
        self._decorations = pop.decorations

    def _halt(self) -> bool:
        """Stop the loop and invalidate outstanding frames. True if it was running."""
        was_running = self._running
        self._running = False
        self.epoch += 1
        if self._frame_handle is not None:
            self._host.cancel_frame(self._frame_handle)
            self._frame_handle = None
        return was_running

    def _schedule(self, epoch: int):
        self._frame_handle = self._host.request_frame(functools.partial(self._on_frame, epoch))

    def _on_frame(self, epoch: int, now_ms: float):
        with self._lock:
            if epoch != self.epoch or not self._running or self._surface is None:
                return
            self._frame_handle = None
            delta = now_ms - self._last_time
            self._last_time = now_ms
            try:
                self._decorations = self._sim.advance(delta, self._flakes, self._decorations)
                if epoch != self.epoch or self._surface is None:
                    return
                image = self._surface.image
                render(image, self._flakes, self._decorations, self._sim.clock_ms)
                self._host.present(image)
            except Exception:
                logger.exception("[Overlay] Frame failed; halting animation")
                self._halt()
                return
            if epoch == self.epoch and self._running:
                self._schedule(epoch)

    def _bind_events(self):
        self._host.add_resize_listener(self._on_resize)
        self._host.add_visibility_listener(self._on_visibility)
        add_memory = getattr(self._host, "add_memory_listener", None)
        if add_memory is not None:
            add_memory(self._on_memory_pressure)

    def _unbind_events(self):
        self._host.remove_resize_listener(self._on_resize)
        self._host.remove_visibility_listener(self._on_visibility)
        remove_memory = getattr(self._host, "remove_memory_listener", None)
        if remove_memory is not None:
            remove_memory(self._on_memory_pressure)

    def _on_resize(self, width: int, height: int):
        with self._lock:
            if self._surface is None:
                return
            self._host.cancel_timer(self._resize_handle)
            self._resize_handle = self._host.call_later(RESIZE_DEBOUNCE_MS, self._apply_resize)

    def _apply_resize(self):
        with self._lock:
            self._resize_handle = None
            if self._surface is None:
                return
            w, h = self._host.viewport_size()
            try:
                self._surface.resize(w, h)
            except Exception as e:
                logger.warning("[Overlay] Resize to %sx%s failed: %s", w, h, e)
                return
            self._sim.resize(self._surface.width, self._surface.height)
            self._build_population()
            logger.info("[Overlay] Resized to %dx%d", self._surface.width, self._surface.height)

    def _on_visibility(self, hidden: bool):
        with self._lock:
            if hidden:
                if self._halt():
                    self._suspended = True
                    logger.debug("[Overlay] Suspended while hidden")
                return
            resume = self.enabled and not self._user_paused and self._suspended
            self._suspended = False
        if resume:
            self.start()

    def _on_memory_pressure(self):
        with self._lock:
            recycle = getattr(self._surface, "recycle", None)
            if recycle is not None:
                recycle()
