"""
Shared fixtures for the festive snow tests.

FakeHost is a manual host: frames and timers only fire when a test says so.
"""

import os
import random
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from snow_host import Surface


class FakeHost:
    def __init__(self, width=1024, height=768):
        self.size = (width, height)
        self.clock = 0.0
        self.frames = {}
        self.timers = {}
        self.resize_listeners = []
        self.visibility_listeners = []
        self.memory_listeners = []
        self.presented = []
        self.surfaces = []
        self.fail_surface = False
        self._next = 0

    def _handle(self):
        self._next += 1
        return self._next

    # host API
    def now(self):
        return self.clock

    def viewport_size(self):
        return self.size

    def create_surface(self, width, height):
        if self.fail_surface:
            raise RuntimeError("no 2D context")
        s = Surface(width, height)
        self.surfaces.append(s)
        return s

    def request_frame(self, cb):
        h = self._handle()
        self.frames[h] = cb
        return h

    def cancel_frame(self, handle):
        self.frames.pop(handle, None)

    def call_later(self, delay_ms, cb):
        h = self._handle()
        self.timers[h] = (self.clock + delay_ms, cb)
        return h

    def cancel_timer(self, handle):
        self.timers.pop(handle, None)

    def add_resize_listener(self, cb):
        self.resize_listeners.append(cb)

    def remove_resize_listener(self, cb):
        self.resize_listeners.remove(cb)

    def add_visibility_listener(self, cb):
        self.visibility_listeners.append(cb)

    def remove_visibility_listener(self, cb):
        self.visibility_listeners.remove(cb)

    def add_memory_listener(self, cb):
        self.memory_listeners.append(cb)

    def remove_memory_listener(self, cb):
        self.memory_listeners.remove(cb)

    def present(self, image):
        self.presented.append(image)

    # test drivers
    def fire_frames(self, step_ms=1000.0 / 60.0):
        """Advance the clock one step and fire every pending frame callback."""
        self.clock += step_ms
        pending = list(self.frames.values())
        self.frames.clear()
        for cb in pending:
            cb(self.clock)
        return len(pending)

    def run(self, n, step_ms=1000.0 / 60.0):
        for _ in range(n):
            self.fire_frames(step_ms)

    def advance_timers(self, ms):
        self.clock += ms
        due = [(h, t) for h, t in self.timers.items() if t[0] <= self.clock]
        for h, (_, cb) in sorted(due, key=lambda item: item[1][0]):
            self.timers.pop(h, None)
            cb()

    def resize(self, width, height):
        self.size = (width, height)
        for cb in list(self.resize_listeners):
            cb(width, height)

    def set_hidden(self, hidden):
        for cb in list(self.visibility_listeners):
            cb(hidden)

    def memory_pressure(self):
        for cb in list(self.memory_listeners):
            cb()


class MemoryStorage:
    """Dict-backed stand-in for SimpleStorage."""

    def __init__(self, data=None):
        self.data = dict(data or {})

    def get(self, key, default=None):
        return self.data[key] if key in self.data else default

    def set(self, key, value):
        self.data[key] = value
        return True

    def remove(self, key):
        self.data.pop(key, None)
        return True

    def is_available(self):
        return True


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def small_host():
    return FakeHost(400, 300)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def memory_storage():
    return MemoryStorage()
