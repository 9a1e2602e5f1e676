"""
Digital circle templates for the arc evaluator.

A template is the ring of integer pixel offsets approximating a circle of a
given radius, ordered by angle, together with the angular sector each sample
stands for. Sector widths are the half-distance to both angular neighbors, so
a template's widths always sum to 2*pi and an arc's span is the sum of the
widths of the samples it covers.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import numpy as np

from .errors import ConfigError

TWO_PI = 2.0 * math.pi

Offset = Tuple[int, int]


def _octant(radius: int) -> List[Offset]:
    # Midpoint rasterization of the first octant (x >= y >= 0)
    x, y, p = radius, 0, 1 - radius
    pts: List[Offset] = []
    while x >= y:
        pts.append((x, y))
        y += 1
        if p < 0:
            p += 2 * y + 1
        else:
            x -= 1
            p += 2 * (y - x) + 1
    # Drop the diagonal pixel when its neighbours already touch across the diagonal
    if len(pts) >= 2 and pts[-1][0] == pts[-1][1]:
        px, py = pts[-2]
        if px - py <= 1:
            pts.pop()
    return pts


def digital_circle(radius: int) -> List[Offset]:
    """
    Thin 8-connected circle of the given radius as (dx, dy) offsets sorted by
    angle atan2(dy, dx) in [0, 2*pi). Radius 3 yields the 16-pixel ring, radius
    4 the 20-pixel ring used by Arc*.
    """
    if radius < 1:
        raise ConfigError(f"radius must be >= 1, got {radius}")
    pts = set()
    for x, y in _octant(radius):
        for a, b in ((x, y), (y, x)):
            for sx in (1, -1):
                for sy in (1, -1):
                    pts.add((sx * a, sy * b))
    return sorted(pts, key=lambda o: (_angle(o), o))


def _angle(o: Offset) -> float:
    a = math.atan2(o[1], o[0])
    return a + TWO_PI if a < 0 else a


@dataclass(frozen=True)
class NeighborhoodTemplate:
    radius: int
    dx: np.ndarray = field(repr=False, compare=False)
    dy: np.ndarray = field(repr=False, compare=False)
    widths: np.ndarray = field(repr=False, compare=False)

    @classmethod
    def from_offsets(cls, radius: int, offsets: Iterable[Sequence[int]]) -> "NeighborhoodTemplate":
        offs = [(int(o[0]), int(o[1])) for o in offsets]
        if len(offs) < 3:
            raise ConfigError(f"template for radius {radius} needs at least 3 offsets")
        if len(set(offs)) != len(offs):
            raise ConfigError(f"template for radius {radius} has duplicate offsets")
        if (0, 0) in offs:
            raise ConfigError(f"template for radius {radius} must not contain the center pixel")
        offs.sort(key=lambda o: (_angle(o), o))
        ang = np.array([_angle(o) for o in offs], dtype=np.float64)
        nxt = np.roll(ang, -1); nxt[-1] += TWO_PI
        prv = np.roll(ang, 1); prv[0] -= TWO_PI
        widths = (nxt - prv) / 2.0
        dx = np.array([o[0] for o in offs], dtype=np.int64)
        dy = np.array([o[1] for o in offs], dtype=np.int64)
        for a in (dx, dy, widths):
            a.setflags(write=False)
        return cls(radius, dx, dy, widths)

    @classmethod
    def circle(cls, radius: int) -> "NeighborhoodTemplate":
        return cls.from_offsets(radius, digital_circle(radius))

    def __len__(self) -> int:
        return len(self.dx)

    @property
    def extent(self) -> int:
        """Largest |offset| along either axis; the border a pixel needs to be evaluable."""
        return int(max(np.abs(self.dx).max(), np.abs(self.dy).max()))

    def offsets(self) -> List[Offset]:
        return list(zip(self.dx.tolist(), self.dy.tolist()))


_CACHE: Dict[int, NeighborhoodTemplate] = {}


def template_for(radius: int, offsets: Optional[Iterable[Sequence[int]]] = None) -> NeighborhoodTemplate:
    """Shared circle template per radius; explicit offsets always build a fresh one."""
    if offsets is not None:
        return NeighborhoodTemplate.from_offsets(radius, offsets)
    t = _CACHE.get(radius)
    if t is None:
        t = _CACHE[radius] = NeighborhoodTemplate.circle(radius)
    return t


__all__ = ["TWO_PI", "digital_circle", "NeighborhoodTemplate", "template_for"]
