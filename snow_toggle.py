# snow_toggle.py — on-screen snow toggle: tree badge + intensity pills
#
# The badge sits in one corner of the frame. Tapping it turns the overlay on or
# off; tapping a pill under/over it picks the intensity. Enabled state and the
# chosen intensity are remembered in a SimpleStorage so the next run restores
# them.

from __future__ import annotations
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from snowfall_overlay import UNINITIALIZED, SnowfallOverlay

logger = logging.getLogger("festive_snow.toggle")

DEFAULT_INTENSITIES = ("light", "medium", "heavy")
POSITIONS = ("top-left", "top-right", "bottom-left", "bottom-right")

BADGE_SIZE = 28
PILL_H = 14
PILL_GAP = 3
BADGE_BG = (0, 0, 0, 140)
ACTIVE_BG = (30, 110, 50, 200)
PILL_ON = (255, 255, 255)
PILL_OFF = (150, 150, 150)

Box = Tuple[int, int, int, int]


def load_small_font():
    try:
        return ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf", 10)
    except Exception:
        return ImageFont.load_default()


def _anchor_xy(W, H, w, h, pos: str, margin: int) -> Tuple[int, int]:
    if pos == "top-left":
        return margin, margin
    if pos == "top-right":
        return W - w - margin, margin
    if pos == "bottom-left":
        return margin, H - h - margin
    # bottom-right
    return W - w - margin, H - h - margin


def _inside(box: Box, x, y) -> bool:
    return box[0] <= x <= box[2] and box[1] <= y <= box[3]


def draw_tree_icon(draw: ImageDraw.ImageDraw, box: Box, lit: bool):
    x0, y0, x1, y1 = box
    cx = (x0 + x1) / 2
    w, h = x1 - x0, y1 - y0
    green = (34, 160, 60) if lit else (90, 110, 95)
    draw.rectangle((cx - w * 0.06, y1 - h * 0.2, cx + w * 0.06, y1 - h * 0.08), fill=(110, 70, 30))
    for top, bottom, half in ((0.18, 0.5, 0.22), (0.32, 0.66, 0.3), (0.46, 0.82, 0.38)):
        draw.polygon([(cx, y0 + h * top), (cx - w * half, y0 + h * bottom), (cx + w * half, y0 + h * bottom)],
                     fill=green)
    star = (255, 215, 0) if lit else (140, 140, 120)
    draw.ellipse((cx - 2, y0 + h * 0.12 - 2, cx + 2, y0 + h * 0.12 + 2), fill=star)


class SnowToggle:
    """Badge-style on/off switch for the snow overlay.

    `effect_factory(host, tier=..., enabled=True, season_check=...)` builds the
    effect; it defaults to SnowfallOverlay. Touch coordinates are frame pixels.
    """

    def __init__(self, host, storage, effect_factory: Optional[Callable] = None,
                 intensities: Sequence[str] = DEFAULT_INTENSITIES,
                 default_intensity: str = "medium", position: str = "bottom-right",
                 season_check: Optional[Callable[[], bool]] = None,
                 margin: int = 6, **effect_opts):
        if position not in POSITIONS:
            logger.warning("[Toggle] Unknown position %r; using bottom-right", position)
            position = "bottom-right"
        self.host = host
        self.storage = storage
        self.effect_factory = effect_factory or SnowfallOverlay
        self.intensities: List[str] = list(intensities)
        self.default_intensity = default_intensity
        self.position = position
        self.season_check = season_check
        self.margin = margin
        self._effect_opts = effect_opts
        self.effect = None
        self._badge: Optional[Box] = None
        self._pills: List[Tuple[str, Box]] = []

    # ---------------- State ----------------
    @property
    def active(self) -> bool:
        return self.effect is not None

    @property
    def intensity(self) -> str:
        return self.storage.get("intensity", self.default_intensity)

    def _in_season(self) -> bool:
        if self.season_check is None:
            return True
        try:
            return bool(self.season_check())
        except Exception as e:
            logger.warning("[Toggle] Season check failed (%s)", e)
            return False

    def restore_state(self):
        if self.storage.get("enabled", False):
            self.enable(self.intensity)

    def enable(self, intensity: Optional[str] = None):
        intensity = intensity or self.default_intensity
        if not self._in_season():
            logger.info("[Toggle] Not enabling - outside festive season")
            return
        if self.effect is not None:
            self.effect.stop()
        self.effect = self.effect_factory(self.host, tier=intensity, enabled=True,
                                          season_check=self.season_check, **self._effect_opts)
        self.effect.init()
        if self.effect.state == UNINITIALIZED:
            logger.warning("[Toggle] Not enabling - overlay failed to initialize")
            self.effect = None
            return
        self.effect.start()
        self.storage.set("enabled", True)
        self.storage.set("intensity", intensity)
        logger.info("[Toggle] Snow on (%s)", intensity)

    def disable(self):
        if self.effect is not None:
            self.effect.stop()
            self.effect = None
        self.storage.set("enabled", False)
        logger.info("[Toggle] Snow off")

    def set_intensity(self, level: str):
        if level not in self.intensities:
            logger.warning("[Toggle] Invalid intensity level: %s", level)
            return
        self.storage.set("intensity", level)
        if self.effect is not None:
            self.effect.set_intensity(level)

    def toggle(self):
        if self.active:
            self.disable()
        else:
            self.enable(self.intensity)

    def destroy(self):
        if self.effect is not None:
            self.effect.stop()
            self.effect = None
        self._badge = None
        self._pills = []

    # ---------------- Drawing / touch ----------------
    def _layout(self, W: int, H: int, font) -> Tuple[Box, List[Tuple[str, Box]]]:
        measure = ImageDraw.Draw(Image.new("L", (1, 1)))
        widths = []
        for name in self.intensities:
            bbox = measure.textbbox((0, 0), name, font=font)
            widths.append(bbox[2] - bbox[0] + 8)
        pills_w = sum(widths) + PILL_GAP * max(0, len(widths) - 1)
        block_w = max(BADGE_SIZE, pills_w)
        block_h = BADGE_SIZE + (PILL_GAP + PILL_H if widths else 0)

        x0, y0 = _anchor_xy(W, H, block_w, block_h, self.position, self.margin)
        right = self.position.endswith("right")
        bx = x0 + block_w - BADGE_SIZE if right else x0
        if self.position.startswith("bottom"):
            by, py = y0 + block_h - BADGE_SIZE, y0
        else:
            by, py = y0, y0 + BADGE_SIZE + PILL_GAP
        badge = (bx, by, bx + BADGE_SIZE, by + BADGE_SIZE)

        pills = []
        px = x0 + block_w - pills_w if right else x0
        for name, w in zip(self.intensities, widths):
            pills.append((name, (px, py, px + w, py + PILL_H)))
            px += w + PILL_GAP
        return badge, pills

    def draw(self, img):
        draw = ImageDraw.Draw(img, "RGBA")
        font = load_small_font()
        W, H = img.size
        self._badge, self._pills = self._layout(W, H, font)

        on = self.active
        draw.rounded_rectangle(self._badge, radius=8, fill=ACTIVE_BG if on else BADGE_BG)
        x0, y0, x1, y1 = self._badge
        draw_tree_icon(draw, (x0 + 4, y0 + 3, x1 - 4, y1 - 3), on)

        current = self.intensity
        for name, box in self._pills:
            selected = name == current
            draw.rounded_rectangle(box, radius=PILL_H // 2, fill=ACTIVE_BG if selected else BADGE_BG)
            draw.text((box[0] + 4, box[1] + 1), name, font=font,
                      fill=PILL_ON if selected and on else PILL_OFF)

    def handle_touch(self, x, y) -> bool:
        """Route a tap; True when it hit the badge or a pill."""
        if self._badge is None:
            W, H = self.host.viewport_size()
            self._badge, self._pills = self._layout(W, H, load_small_font())
        if _inside(self._badge, x, y):
            self.toggle()
            return True
        for name, box in self._pills:
            if _inside(box, x, y):
                self.set_intensity(name)
                return True
        return False

