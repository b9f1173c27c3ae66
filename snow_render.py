# snow_render.py — draws one frame of the festive snow overlay with Pillow
#
# render() is a pure function of particle state plus the twinkle clock: it
# clears the RGBA surface, draws every flake straight onto it, then paints each
# decoration/sprite on a small scratch layer which is faded by the particle's
# opacity and alpha-composited into place (clipped at the surface edges).
#
# Coordinates inside the painters are local to the particle anchor, y down,
# angles in radians. Translucent bits (glows, highlights, snow caps) are drawn
# inside `layer.soft()` so they blend instead of punching holes.

from __future__ import annotations
import math
from contextlib import contextmanager
from typing import Iterable, List, Sequence, Tuple

from PIL import Image, ImageDraw

from snow_particles import Elf, Flake, Sleigh, Tree, Wreath

Color = Tuple[int, int, int]
Point = Tuple[float, float]

WHITE: Color = (255, 255, 255)
RED: Color = (204, 0, 0)
GOLD: Color = (255, 215, 0)
SKIN: Color = (255, 215, 186)

FLAKE_ARMS = 6
FLAKE_SIDE_ANGLE = math.pi / 6

TREE_LIGHT_RATE = 0.003
TREE_LIGHT_STEP = 0.5
WREATH_LIGHT_RATE = 0.002
WREATH_LIGHT_STEP = 0.7

_TREE_GREEN: Color = (34, 139, 34)
_TRUNK: Color = (101, 67, 33)
_TRUNK_LINES: Color = (74, 47, 26)
_TINSEL: Color = (192, 192, 192)
_BAUBLES = ((255, 0, 0), (0, 0, 255), (255, 215, 0), (255, 105, 180), (0, 255, 0))
_TREE_LIGHTS = ((255, 255, 0), (255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 255))
_WREATH_LIGHTS = ((255, 0, 0), (255, 255, 0), (0, 0, 255))

_REINDEER_FORMATION = ((4.8, 0.0), (4.0, -0.3), (4.0, 0.3), (3.2, -0.15), (3.2, 0.15))
_REINDEER_FILL: Color = (156, 110, 73)
_REINDEER_LINE: Color = (123, 86, 58)
_ANTLER: Color = (110, 74, 46)


def twinkle(clock_ms: float, rate: float, offset: float) -> float:
    """Light intensity in [0, 1] for a given clock, blink rate and per-light phase."""
    return (math.sin(clock_ms * rate + offset) + 1) / 2


def _rgba(color: Color, alpha: float = 1.0):
    return (color[0], color[1], color[2], max(0, min(255, int(alpha * 255 + 0.5))))


def _w(width: float) -> int:
    return max(1, int(width + 0.5))


def _quad(p0: Point, p1: Point, p2: Point, steps: int = 10) -> List[Point]:
    """Points along a quadratic Bézier from p0 to p2 (p0 excluded)."""
    out = []
    for i in range(1, steps + 1):
        t = i / steps
        u = 1 - t
        out.append((u * u * p0[0] + 2 * u * t * p1[0] + t * t * p2[0],
                    u * u * p0[1] + 2 * u * t * p1[1] + t * t * p2[1]))
    return out


def _ellipse_points(cx, cy, rx, ry, tilt=0.0, start=0.0, end=math.pi * 2, steps=20) -> List[Point]:
    ct, st = math.cos(tilt), math.sin(tilt)
    pts = []
    for i in range(steps + 1):
        a = start + (end - start) * i / steps
        ex, ey = math.cos(a) * rx, math.sin(a) * ry
        pts.append((cx + ex * ct - ey * st, cy + ex * st + ey * ct))
    return pts


def _paste_clipped(surface: Image.Image, layer: Image.Image, ox: int, oy: int):
    sx, sy = max(0, -ox), max(0, -oy)
    dx, dy = max(0, ox), max(0, oy)
    w = min(layer.width - sx, surface.width - dx)
    h = min(layer.height - sy, surface.height - dy)
    if w <= 0 or h <= 0:
        return
    surface.alpha_composite(layer, dest=(dx, dy), source=(sx, sy, sx + w, sy + h))


class _Layer:
    """Scratch RGBA layer centred on a particle; all drawing takes local coords."""

    def __init__(self, cx: float, cy: float, reach: float, rotation: float = 0.0):
        r = int(math.ceil(reach)) + 2
        self.ox = int(math.floor(cx)) - r
        self.oy = int(math.floor(cy)) - r
        self._cx = cx - self.ox
        self._cy = cy - self.oy
        self.rotation = rotation
        self._cos = math.cos(rotation)
        self._sin = math.sin(rotation)
        self.image = Image.new("RGBA", (2 * r + 1, 2 * r + 1), (0, 0, 0, 0))
        self.draw = ImageDraw.Draw(self.image)
        self._soft = False

    def pt(self, x: float, y: float) -> Point:
        return (x * self._cos - y * self._sin + self._cx,
                x * self._sin + y * self._cos + self._cy)

    def pts(self, points: Iterable[Point]) -> List[Point]:
        return [self.pt(x, y) for x, y in points]

    @contextmanager
    def soft(self):
        """Shapes drawn inside the block blend over the layer instead of replacing it.

        Everything in one block shares a single overlay; nested blocks draw into
        the enclosing one.
        """
        if self._soft:
            yield self
            return
        base_draw = self.draw
        top = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        self.draw = ImageDraw.Draw(top)
        self._soft = True
        try:
            yield self
        finally:
            self.image.alpha_composite(top)
            self.draw = base_draw
            self._soft = False

    # ---------------- Primitives ----------------
    def polygon(self, points: Sequence[Point], fill, outline=None, width: float = 1):
        xy = self.pts(points)
        if len(xy) < 3:
            return
        self.draw.polygon(xy, fill=fill)
        if outline is not None:
            self.draw.line(xy + [xy[0]], fill=outline, width=_w(width), joint="curve")

    def line(self, points: Sequence[Point], fill, width: float = 1):
        self.draw.line(self.pts(points), fill=fill, width=_w(width), joint="curve")

    def circle(self, x, y, r, fill):
        px, py = self.pt(x, y)
        r = max(0.5, r)
        self.draw.ellipse((px - r, py - r, px + r, py + r), fill=fill)

    def ellipse(self, x, y, rx, ry, fill, tilt=0.0, outline=None, start=0.0, end=math.pi * 2):
        self.polygon(_ellipse_points(x, y, rx, ry, tilt, start, end), fill, outline)

    def arc(self, x, y, r, start, end, fill, width: float):
        px, py = self.pt(x, y)
        wd = _w(width)
        r += wd / 2      # Pillow strokes inward from the bounding box
        self.draw.arc((px - r, py - r, px + r, py + r),
                      math.degrees(start + self.rotation), math.degrees(end + self.rotation),
                      fill=fill, width=wd)

    def glow(self, x, y, radius, color: Color, alpha: float = 1.0, rings: int = 6):
        """Radial fade from `color` at the centre to transparent at `radius`."""
        if alpha <= 0 or radius <= 0:
            return
        with self.soft():
            for k in range(rings, 0, -1):
                self.circle(x, y, radius * k / rings, _rgba(color, alpha * (1 - (k - 1) / rings)))

    def composite_onto(self, surface: Image.Image, opacity: float):
        img = self.image
        if opacity < 1.0:
            op = max(0.0, opacity)
            img.putalpha(img.getchannel("A").point(lambda a: int(a * op)))
        _paste_clipped(surface, img, self.ox, self.oy)


# ---------------- Flakes ----------------
def flake_strokes(f: Flake) -> List[Tuple[Point, Point]]:
    """The 18 line segments of a six-armed crystal: one main stroke and two side branches per arm."""
    r = f.size
    side = r * 0.4
    out = []
    for i in range(FLAKE_ARMS):
        a = f.rotation + math.pi * 2 * i / FLAKE_ARMS
        tip = (f.x + math.cos(a) * r, f.y + math.sin(a) * r)
        out.append(((f.x, f.y), tip))
        mid = (f.x + math.cos(a) * r * 0.6, f.y + math.sin(a) * r * 0.6)
        for s in (-FLAKE_SIDE_ANGLE, FLAKE_SIDE_ANGLE):
            out.append((mid, (mid[0] + math.cos(a + s) * side, mid[1] + math.sin(a + s) * side)))
    return out


def draw_flake(draw: ImageDraw.ImageDraw, f: Flake):
    color = _rgba(WHITE, f.opacity)
    width = _w(max(f.size * 0.15, 0.5))
    for p0, p1 in flake_strokes(f):
        draw.line((p0, p1), fill=color, width=width)


# ---------------- Tree ----------------
def _tier(i: int, s: float):
    return i * s * 0.4, s * (1.2 - i * 0.2)


def paint_tree(t: Tree, clock: float) -> _Layer:
    s = t.size
    L = _Layer(t.x, t.y, s * 2.2, t.rotation)

    # tapered trunk with bark lines
    L.polygon([(-s * 0.2, s * 0.8), (s * 0.2, s * 0.8), (s * 0.15, s * 1.3), (-s * 0.15, s * 1.3)], _rgba(_TRUNK))
    for i in range(3):
        yy = s * 0.9 + i * s * 0.12
        L.line([(-s * 0.15, yy), (s * 0.15, yy)], _rgba(_TRUNK_LINES))

    for i in range(3):
        ly, ls = _tier(i, s)
        L.polygon([(0, -ly), (-ls, s * 0.3 - ly), (ls, s * 0.3 - ly)], _rgba(_TREE_GREEN))

    # zigzag tinsel
    for i in range(3):
        ly, ls = _tier(i, s)
        zig = [(-ls + (k / 6) * ls * 2, s * 0.15 - ly + (-s * 0.1 if k % 2 == 0 else 0)) for k in range(7)]
        L.line(zig, _rgba(_TINSEL), 1.5)

    # baubles, then their highlights in one pass
    baubles = []
    for i in range(8):
        layer = i // 3
        ly, ls = _tier(layer, s)
        a = (i % 3) * (math.pi * 2 / 3) + layer * 0.5
        bx, by = math.cos(a) * ls * 0.7, s * 0.1 - ly
        baubles.append((bx, by))
        L.circle(bx, by, s * 0.12, _rgba(_BAUBLES[i % len(_BAUBLES)]))
    with L.soft():
        for bx, by in baubles:
            L.circle(bx - s * 0.04, by - s * 0.04, s * 0.04, _rgba(WHITE, 0.5))

    # twinkling lights, each with its own phase
    lights = []
    for i in range(12):
        layer = i // 4
        ly, ls = _tier(layer, s)
        a = (i % 4) * (math.pi / 2) + layer * 0.3
        k = twinkle(clock, TREE_LIGHT_RATE, i * TREE_LIGHT_STEP)
        lights.append((math.cos(a) * ls * 0.85, s * 0.2 - ly, _TREE_LIGHTS[i % len(_TREE_LIGHTS)], k))
    with L.soft():
        for lx, lyy, color, k in lights:
            L.glow(lx, lyy, s * 0.15, color, 0.3 + k * 0.7)
    with L.soft():
        for lx, lyy, color, k in lights:
            L.circle(lx, lyy, s * 0.08, _rgba(color, 0.5 + k * 0.5))

    # star topper
    star, sy = s * 0.35, -s * 1.4
    L.glow(0, sy, star * 2, (255, 223, 0), 1.0)
    pts = []
    for i in range(10):
        a = (math.pi * 2 * i) / 10 - math.pi / 2
        r = star if i % 2 == 0 else star * 0.4
        pts.append((math.cos(a) * r, sy + math.sin(a) * r))
    L.polygon(pts, _rgba(GOLD), outline=_rgba((255, 165, 0)), width=2)

    if t.snow_level > 0:
        with L.soft():
            for i in range(3):
                ly, ls = _tier(i, s)
                h = t.snow_level * (1 - i * 0.2)
                if h > 0.5:
                    base = s * 0.3 - ly
                    cap = [(-ls, base)] + _quad((-ls, base), (0, base - h), (ls, base))
                    L.polygon(cap, _rgba(WHITE, 0.8))
    return L


# ---------------- Wreath ----------------
def paint_wreath(wr: Wreath, clock: float) -> _Layer:
    s = wr.size
    L = _Layer(wr.x, wr.y, s * 2.0, wr.rotation)

    half = math.pi / max(1, len(wr.shape))
    for seg in wr.shape:
        L.arc(0, 0, s * seg.radius, seg.angle - half, seg.angle + half, _rgba(seg.color), s * seg.thickness)

    with L.soft():
        for i in range(4):
            a = (i / 4) * math.pi * 2
            k = twinkle(clock, WREATH_LIGHT_RATE, i * WREATH_LIGHT_STEP)
            if k > 0.5:
                L.glow(math.cos(a) * s, math.sin(a) * s, s * 0.15,
                       _WREATH_LIGHTS[i % len(_WREATH_LIGHTS)], (k - 0.5) * 2)

    # bow
    bow = -s
    L.ellipse(-s * 0.3, bow, s * 0.3, s * 0.4, _rgba(RED), tilt=-0.3)
    L.ellipse(s * 0.3, bow, s * 0.3, s * 0.4, _rgba(RED), tilt=0.3)
    L.circle(0, bow, s * 0.2, _rgba(RED))

    if wr.snow_level > 0.1:
        with L.soft():
            L.ellipse(0, bow, s * 0.9, s * 0.9, _rgba(WHITE, 0.25), start=math.pi, end=math.pi * 2)
            L.ellipse(0, bow, s * 0.8, s * 0.8, _rgba(WHITE, 0.8), start=math.pi, end=math.pi * 2)
    return L


# ---------------- Sleigh ----------------
def paint_sleigh(sl: Sleigh, clock: float) -> _Layer:
    s = sl.size * 1.5
    d = sl.direction
    L = _Layer(sl.x, sl.y, sl.size * 9.0)
    swing = math.sin(math.sin(sl.time * 0.01) * (math.pi / 5))

    heads = []
    for i, (fx, fy) in enumerate(_REINDEER_FORMATION):
        rx, oy = d * s * fx, fy * s
        tail, nose_end = (rx - d * s * 0.4, oy), (rx + d * s * 0.4, oy)
        body = [tail] + _quad(tail, (rx, oy - s * 0.4), nose_end) + _quad(nose_end, (rx, oy + s * 0.4), tail)
        L.polygon(body, _rgba(_REINDEER_FILL), outline=_rgba(_REINDEER_LINE))

        hx, hy = rx + d * s * 0.5, oy - s * 0.3
        heads.append((hx, oy))
        L.ellipse(hx, hy, s * 0.25, s * 0.2, _rgba(_REINDEER_FILL), outline=_rgba(_REINDEER_LINE))

        ax, ay = hx - d * s * 0.1, hy - s * 0.15
        fork = (ax - d * s * 0.2, ay - s * 0.3)
        L.line([(ax, ay), fork, (ax - d * s * 0.1, ay - s * 0.4)], _rgba(_ANTLER), 1.5)
        L.line([fork, (ax - d * s * 0.3, ay - s * 0.35)], _rgba(_ANTLER), 1.5)

        leg_y = oy + s * 0.1
        L.line([(rx + d * s * 0.3, leg_y), (rx + d * (s * 0.3 + swing * s * 0.2), leg_y + s * 0.3)],
               _rgba(_REINDEER_LINE), 2.5)
        L.line([(rx - d * s * 0.3, leg_y), (rx - d * (s * 0.3 - swing * s * 0.2), leg_y + s * 0.3)],
               _rgba(_REINDEER_LINE), 2.5)

        if i == 0:
            nx, ny = hx + d * s * 0.25, hy
            L.circle(nx, ny, s * 0.05, _rgba((255, 0, 0)))
            L.glow(nx, ny, s * 0.15, (255, 0, 0), 0.7)

    # sleigh body
    top, bottom = -s * 0.7, s * 0.3
    front, back = d * s * 1.5, -d * s * 0.3
    hull = [(front, top)] + _quad((front, top), (d * s * 1.2, -s * 0.3), (front, bottom))
    hull += [(back, bottom)] + _quad((back, bottom), (-d * s * 0.5, 0), (back, top))
    L.polygon(hull, _rgba(RED), outline=_rgba(GOLD), width=2)

    L.ellipse(-d * s * 0.05, -s * 0.2, s * 0.4, s * 0.5, _rgba((92, 64, 51)))

    # rider: hat, trim, pompom, face, beard
    rx, ry = d * s * 0.6, -s * 0.55
    L.polygon([(rx - s * 0.2, ry), (rx + s * 0.2, ry), (rx, ry - s * 0.4)], _rgba(RED))
    L.polygon([(rx - s * 0.22, ry), (rx + s * 0.22, ry), (rx + s * 0.22, ry + s * 0.08), (rx - s * 0.22, ry + s * 0.08)],
              _rgba(WHITE))
    L.circle(rx, ry - s * 0.4, s * 0.07, _rgba(WHITE))
    L.circle(rx, ry + s * 0.08, s * 0.18, _rgba(SKIN))
    L.ellipse(rx, ry + s * 0.2, s * 0.25, s * 0.2, _rgba(WHITE), start=0, end=math.pi)

    # reins from the rider to every reindeer
    grip = (rx, ry + s * 0.1)
    for hx, oy in heads:
        end = (hx - d * s * 0.1, oy - s * 0.3)
        L.line([grip] + _quad(grip, ((rx + hx) / 2, oy - s * 0.5), end), _rgba((101, 67, 33)), 1)
    return L


# ---------------- Elf ----------------
def paint_elf(e: Elf, clock: float) -> _Layer:
    s = e.size
    d = e.direction
    L = _Layer(e.x, e.y, s * 1.6)
    step = math.sin(e.time * 0.02) * (math.pi / 6)

    def leg(x0, lift, color):
        h = s * 0.5 + lift
        xs = sorted((x0, x0 + d * s * 0.2))
        L.polygon([(xs[0], s * 0.2), (xs[1], s * 0.2), (xs[1], s * 0.2 + h), (xs[0], s * 0.2 + h)], _rgba(color))

    back_lift = math.sin(step + math.pi) * s * 0.1
    front_lift = math.sin(step) * s * 0.1
    leg(-d * s * 0.1, back_lift, (0, 77, 0))
    L.ellipse(0, s * 0.7 + back_lift, s * 0.3, s * 0.15, _rgba((74, 44, 42)))
    leg(d * s * 0.1, front_lift, (0, 100, 0))
    L.ellipse(d * s * 0.2, s * 0.7 + front_lift, s * 0.3, s * 0.15, _rgba((93, 56, 54)))

    L.polygon([(0, -s * 0.5), (d * s * 0.4, s * 0.3), (-d * s * 0.4, s * 0.3)], _rgba((0, 128, 0)))
    L.circle(0, -s * 0.6, s * 0.3, _rgba(SKIN))

    L.polygon([(0, -s * 0.7), (d * s * 0.35, -s * 0.6), (-d * s * 0.35, -s * 0.6)], _rgba(RED))
    tip = (d * s * 0.4, -s * 1.3)
    L.line([(0, -s * 0.7)] + _quad((0, -s * 0.7), (d * s * 0.2, -s * 1.1), tip), _rgba(RED), 1)
    L.circle(tip[0], tip[1], s * 0.15, _rgba((255, 255, 0)))
    return L


_PAINTERS = {Tree: paint_tree, Wreath: paint_wreath, Sleigh: paint_sleigh, Elf: paint_elf}
_REACH = {Tree: 2.2, Wreath: 2.0, Sleigh: 9.0, Elf: 1.6}


def _visible(p, w: int, h: int) -> bool:
    r = p.size * _REACH[type(p)]
    return -r <= p.x <= w + r and -r <= p.y <= h + r


def render(surface: Image.Image, flakes: Iterable[Flake], decorations: Iterable, twinkle_clock: float = 0.0):
    """Clear `surface` and draw flakes, then decorations/sprites in list order."""
    w, h = surface.size
    draw = ImageDraw.Draw(surface)
    draw.rectangle((0, 0, w, h), fill=(0, 0, 0, 0))

    for f in flakes:
        draw_flake(draw, f)

    for p in decorations:
        painter = _PAINTERS.get(type(p))
        if painter is None or not _visible(p, w, h):
            continue
        painter(p, twinkle_clock).composite_onto(surface, p.opacity)
