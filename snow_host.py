# snow_host.py — drawing surface and frame/event loop for the snow overlay
#
# The overlay never reaches for globals: it is handed a host that can
#   • report the viewport size and build a Surface for it
#   • call back once before the next "repaint" (request_frame/cancel_frame)
#   • run a one-shot timer (call_later/cancel_timer) for the resize debounce
#   • tell listeners about resizes and foreground/background changes
#   • present a finished frame
#
# ThreadedHost does all of that on ONE daemon thread. Resize/visibility
# notifications from other threads are queued and dispatched on that thread,
# so overlay callbacks never run concurrently with a frame. Pacing follows the
# display refresh target and backs off under CPU load; while hidden, frame
# callbacks are held back entirely. The latest base image (whatever the screen
# behind the overlay shows) is composited under the snow before present().

from __future__ import annotations
import gc
import heapq
import itertools
import logging
import os
import random
import threading
import time
from collections import deque
from typing import Callable, Dict, List, Optional, Tuple

from PIL import Image
import psutil

logger = logging.getLogger("festive_snow.host")

# ---------------- Tunables ----------------
MAX_CPU_PCT = 80.0        # back off above this process CPU load
BASE_FPS    = 60          # nominal display refresh
MIN_FPS     = 15          # back-off floor under heavy load
MEM_RESET_MB = 64         # RSS growth that triggers a buffer recycle
MEM_CHECK_S = 2.0
FRAME_JITTER = 0.002      # desync from other loops
IDLE_SLEEP  = 0.05        # hidden / nothing scheduled


class Surface:
    """RGBA raster the overlay draws into. Output only: it never takes input."""

    def __init__(self, width: int, height: int):
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise ValueError(f"surface size must be positive, got {width}x{height}")
        self.image: Optional[Image.Image] = Image.new("RGBA", (width, height), (0, 0, 0, 0))

    @property
    def width(self) -> int:
        return self.image.width if self.image else 0

    @property
    def height(self) -> int:
        return self.image.height if self.image else 0

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def released(self) -> bool:
        return self.image is None

    def resize(self, width: int, height: int):
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise ValueError(f"surface size must be positive, got {width}x{height}")
        if self.image is None or self.image.size != (width, height):
            self.image = Image.new("RGBA", (width, height), (0, 0, 0, 0))

    def recycle(self):
        """Swap in a fresh buffer of the same size (drops fragmented/leaked refs)."""
        if self.image is not None:
            self.image = Image.new("RGBA", self.image.size, (0, 0, 0, 0))

    def release(self):
        self.image = None


class ThreadedHost:
    """Single-threaded cooperative loop on a daemon thread.

    Public, thread-safe:
      • start() / shutdown()
      • resize(w, h), set_visible(bool)   – queued, dispatched on the loop thread
      • update_base(img)                  – background shown under the overlay
      • pump(now_ms)                      – run one loop iteration synchronously
    Overlay-facing: viewport_size, create_surface, request_frame, cancel_frame,
    call_later, cancel_timer, add/remove_*_listener, now, present.
    """

    def __init__(self, size: Tuple[int, int] = (320, 240),
                 present: Optional[Callable[[Image.Image], None]] = None,
                 refresh_hz: float = BASE_FPS):
        self._lock = threading.RLock()
        self._stop_ev = threading.Event()
        self._thr: Optional[threading.Thread] = None
        self._present = present
        self.refresh_hz = max(1.0, float(refresh_hz))

        self._size = (int(size[0]), int(size[1]))
        self._hidden = False
        self._ids = itertools.count(1)
        self._frames: Dict[int, Callable[[float], None]] = {}
        self._timers: List[Tuple[float, int, Callable[[], None]]] = []
        self._cancelled_timers = set()
        self._events = deque()
        self._resize_listeners: List[Callable[[int, int], None]] = []
        self._visibility_listeners: List[Callable[[bool], None]] = []
        self._memory_listeners: List[Callable[[], None]] = []

        # Buffers
        self._base: Optional[Image.Image] = None
        self._frame: Optional[Image.Image] = None

        # Stats
        self._t0 = time.perf_counter()
        self._proc = psutil.Process(os.getpid())
        self._last_rss = self._proc.memory_info().rss
        self._last_rss_check = time.time()

    # ---------------- Lifecycle ----------------
    def start(self):
        if self._thr and self._thr.is_alive():
            return
        self._stop_ev.clear()
        self._thr = threading.Thread(target=self._loop, name="SnowHost", daemon=True)
        self._thr.start()
        logger.info("[Host] Loop started at %.0f Hz target (%dx%d)", self.refresh_hz, *self._size)

    def shutdown(self, timeout: float = 1.0):
        self._stop_ev.set()
        t = self._thr
        if t and t.is_alive() and t is not threading.current_thread():
            t.join(timeout=timeout)
        self._thr = None

    @property
    def running(self) -> bool:
        return bool(self._thr and self._thr.is_alive())

    # ---------------- Outside world → loop ----------------
    def resize(self, width: int, height: int):
        with self._lock:
            self._events.append(("resize", (int(width), int(height))))

    def set_visible(self, visible: bool):
        with self._lock:
            self._events.append(("visibility", not visible))

    def update_base(self, img: Optional[Image.Image]):
        if img is None:
            return
        with self._lock:
            w, h = self._size
            if img.mode != "RGBA":
                img = img.convert("RGBA")
            if img.size != (w, h):
                base = Image.new("RGBA", (w, h), (0, 0, 0, 255))
                base.paste(img, (0, 0))
                self._base = base
            else:
                self._base = img.copy()

    @property
    def hidden(self) -> bool:
        return self._hidden

    # ---------------- Overlay-facing API ----------------
    def now(self) -> float:
        return (time.perf_counter() - self._t0) * 1000.0

    def viewport_size(self) -> Tuple[int, int]:
        return self._size

    def create_surface(self, width: int, height: int) -> Surface:
        return Surface(width, height)

    def request_frame(self, callback: Callable[[float], None]) -> int:
        with self._lock:
            handle = next(self._ids)
            self._frames[handle] = callback
            return handle

    def cancel_frame(self, handle: Optional[int]):
        if handle is None:
            return
        with self._lock:
            self._frames.pop(handle, None)

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> int:
        with self._lock:
            handle = next(self._ids)
            heapq.heappush(self._timers, (self.now() + max(0.0, delay_ms), handle, callback))
            return handle

    def cancel_timer(self, handle: Optional[int]):
        if handle is None:
            return
        with self._lock:
            self._cancelled_timers.add(handle)

    def add_resize_listener(self, cb: Callable[[int, int], None]):
        with self._lock:
            if cb not in self._resize_listeners:
                self._resize_listeners.append(cb)

    def remove_resize_listener(self, cb):
        with self._lock:
            if cb in self._resize_listeners:
                self._resize_listeners.remove(cb)

    def add_visibility_listener(self, cb: Callable[[bool], None]):
        with self._lock:
            if cb not in self._visibility_listeners:
                self._visibility_listeners.append(cb)

    def remove_visibility_listener(self, cb):
        with self._lock:
            if cb in self._visibility_listeners:
                self._visibility_listeners.remove(cb)

    def add_memory_listener(self, cb: Callable[[], None]):
        with self._lock:
            if cb not in self._memory_listeners:
                self._memory_listeners.append(cb)

    def remove_memory_listener(self, cb):
        with self._lock:
            if cb in self._memory_listeners:
                self._memory_listeners.remove(cb)

    def present(self, overlay: Image.Image):
        """Composite base + overlay into the reusable frame and hand it to the presenter."""
        present = self._present
        if present is None or overlay is None:
            return
        with self._lock:
            if self._frame is None or self._frame.size != overlay.size:
                self._frame = Image.new("RGBA", overlay.size, (0, 0, 0, 255))
            if self._base is not None and self._base.size == overlay.size:
                self._frame.paste(self._base)
            else:
                self._frame.paste((0, 0, 0, 255), (0, 0, *overlay.size))
            self._frame.paste(overlay, (0, 0), overlay)
            frame = self._frame
        try:
            present(frame)
        except Exception as e:
            # device hiccup: drop this frame, keep the loop alive
            logger.warning("[Host] present() failed: %s", e)

    # ---------------- Loop ----------------
    def _safe_call(self, what: str, fn, *args):
        try:
            fn(*args)
        except Exception:
            logger.exception("[Host] %s callback failed", what)

    def pump(self, now_ms: Optional[float] = None) -> int:
        """Run one iteration: events, due timers, then frame callbacks. Returns frames fired."""
        now_ms = self.now() if now_ms is None else now_ms

        with self._lock:
            events = list(self._events)
            self._events.clear()
        for kind, payload in events:
            if kind == "resize":
                with self._lock:
                    self._size = payload
                    listeners = list(self._resize_listeners)
                for cb in listeners:
                    self._safe_call("resize", cb, *payload)
            else:
                with self._lock:
                    changed = self._hidden != payload
                    self._hidden = payload
                    listeners = list(self._visibility_listeners)
                if changed:
                    logger.info("[Host] %s", "Hidden" if payload else "Visible")
                    for cb in listeners:
                        self._safe_call("visibility", cb, payload)

        due = []
        with self._lock:
            while self._timers and self._timers[0][0] <= now_ms:
                _, handle, cb = heapq.heappop(self._timers)
                if handle in self._cancelled_timers:
                    self._cancelled_timers.discard(handle)
                    continue
                due.append(cb)
        for cb in due:
            self._safe_call("timer", cb)

        with self._lock:
            if self._hidden or not self._frames:
                return 0
            frames = list(self._frames.values())
            self._frames.clear()
        for cb in frames:
            self._safe_call("frame", cb, now_ms)
        return len(frames)

    def _target_fps(self) -> float:
        cpu_pct = self._proc.cpu_percent(interval=None)
        if cpu_pct > MAX_CPU_PCT:
            return max(MIN_FPS, self.refresh_hz * 0.5)
        return self.refresh_hz

    def _check_memory(self):
        t = time.time()
        if t - self._last_rss_check <= MEM_CHECK_S:
            return
        self._last_rss_check = t
        rss = self._proc.memory_info().rss
        if rss - self._last_rss > MEM_RESET_MB * 1024 * 1024:
            logger.warning("[Host] RSS grew to %.1f MB; recycling buffers", rss / (1024 * 1024))
            with self._lock:
                if self._frame is not None:
                    self._frame = Image.new("RGBA", self._frame.size, (0, 0, 0, 255))
                listeners = list(self._memory_listeners)
            for cb in listeners:
                self._safe_call("memory", cb)
            gc.collect()
            self._last_rss = rss

    def _loop(self):
        last = time.perf_counter()
        rng = random.Random()
        while not self._stop_ev.is_set():
            dt_target = 1.0 / self._target_fps()
            now = time.perf_counter()
            dt = now - last
            if dt < dt_target:
                time.sleep(max(0.0, dt_target - dt) + rng.uniform(0.0, FRAME_JITTER))
                now = time.perf_counter()
            last = now

            fired = self.pump()
            if not fired and self._hidden:
                time.sleep(IDLE_SLEEP)
            self._check_memory()
        logger.info("[Host] Loop stopped")
