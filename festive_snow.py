#!/usr/bin/env python3
# festive_snow.py — convenience constructors + command-line runner
#
#   create_snow_effect(host, ...)  → SnowfallOverlay, initialised (and started)
#   create_snow_toggle(host, ...)  → SnowToggle with its stored state restored
#
# Run as a script it drives a ThreadedHost over a night-sky backdrop, draws the
# toggle badge on each frame and optionally writes frames out as PNGs:
#
#   festive-snow --tier heavy --size 480x320 --frames 120 --out /tmp/snow

from __future__ import annotations
import argparse
import logging
import threading
import time
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageDraw

from snow_host import ThreadedHost
from snow_logging import setup_logging
from snow_season import is_festive_season
from snow_settings import SETTINGS_FILE, load_settings, profiles_from_settings
from snow_storage import SimpleStorage
from snow_toggle import SnowToggle
from snowfall_overlay import SnowfallOverlay

logger = logging.getLogger("festive_snow.main")

__all__ = ["create_snow_effect", "create_snow_toggle", "is_festive_season", "main"]


def create_snow_effect(host, auto_start: bool = True, **opts) -> SnowfallOverlay:
    """Build an overlay on `host`, init it and (unless auto_start=False) start it."""
    effect = SnowfallOverlay(host, **opts)
    effect.init()
    if auto_start:
        effect.start()
    return effect


def create_snow_toggle(host, storage: Optional[SimpleStorage] = None, restore: bool = True,
                       **opts) -> SnowToggle:
    toggle = SnowToggle(host, storage if storage is not None else SimpleStorage(), **opts)
    if restore:
        toggle.restore_state()
    return toggle


# ---------------- CLI ----------------
def _parse_size(text: str) -> Tuple[int, int]:
    try:
        w, h = (int(v) for v in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}") from None
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError("size must be positive")
    return w, h


def night_sky(size: Tuple[int, int]) -> Image.Image:
    w, h = size
    img = Image.new("RGBA", size, (0, 0, 0, 255))
    draw = ImageDraw.Draw(img)
    for y in range(h):
        t = y / max(1, h - 1)
        draw.line((0, y, w, y), fill=(int(10 + 20 * t), int(15 + 25 * t), int(40 + 30 * t), 255))
    draw.rectangle((0, h - 12, w, h), fill=(230, 235, 245, 255))
    return img


class FrameSink:
    """present() target: draws the toggle, saves PNGs, counts frames."""

    def __init__(self, out_dir: Optional[Path], limit: int = 0):
        self.out_dir = out_dir
        self.limit = limit
        self.count = 0
        self.done = threading.Event()
        self.toggle: Optional[SnowToggle] = None
        if out_dir is not None:
            out_dir.mkdir(parents=True, exist_ok=True)

    def __call__(self, frame: Image.Image):
        img = frame.copy()
        if self.toggle is not None:
            self.toggle.draw(img)
        self.count += 1
        if self.out_dir is not None:
            img.convert("RGB").save(self.out_dir / f"frame_{self.count:05d}.png")
        if self.limit and self.count >= self.limit:
            self.done.set()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Festive snow overlay runner.")
    ap.add_argument("--config", default=SETTINGS_FILE, help="JSON settings file")
    ap.add_argument("--tier", help="intensity tier (light, medium, heavy or a custom tier)")
    ap.add_argument("--size", type=_parse_size, help="surface size as WIDTHxHEIGHT")
    ap.add_argument("--fps", type=float, help="target refresh rate (Hz)")
    ap.add_argument("--frames", type=int, default=0, help="stop after N presented frames")
    ap.add_argument("--out", type=Path, help="write every presented frame as PNG into this directory")
    ap.add_argument("--seconds", type=float, default=0.0, help="stop after this many seconds")
    ap.add_argument("--ignore-season", action="store_true", help="run even outside the festive season")
    ap.add_argument("--log-file", help="rotating log file (default from settings)")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_settings(args.config)
    setup_logging(args.log_file or cfg["log_file"], logging.DEBUG if args.verbose else logging.INFO)

    size = args.size or (int(cfg["width"]), int(cfg["height"]))
    tier = args.tier or cfg["tier"]
    profiles = profiles_from_settings(cfg)
    season_check = is_festive_season if cfg["season_only"] and not args.ignore_season else None

    sink = FrameSink(args.out, args.frames)
    host = ThreadedHost(size, present=sink, refresh_hz=args.fps or cfg["refresh_hz"])
    host.update_base(night_sky(size))
    storage = SimpleStorage(cfg["storage_prefix"], cfg["storage_path"])
    if not storage.is_available():
        logger.warning("[Main] Preferences at %s are not writable; they will not persist", storage.path)

    toggle = SnowToggle(host, storage, intensities=list(profiles), default_intensity=tier,
                        season_check=season_check, profiles=profiles,
                        spawn_rates=cfg["spawn_rates"], snow_chance=cfg["snow_chance"])
    sink.toggle = toggle
    if args.tier is None and storage.get("enabled") is not None:
        toggle.restore_state()
    elif cfg["enabled"]:
        toggle.enable(tier)
    if not toggle.active:
        logger.info("[Main] Snow is off; nothing to animate")
        return 0

    deadline = time.monotonic() + args.seconds if args.seconds > 0 else None
    host.start()
    try:
        while not sink.done.is_set():
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(0.05)
    except KeyboardInterrupt:
        logger.info("[Main] Interrupted")
    finally:
        toggle.destroy()
        host.shutdown()
    logger.info("[Main] Presented %d frame(s)", sink.count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
