from __future__ import annotations
from typing import Optional, Tuple
import numpy as np

from .errors import OutOfBounds, ConfigError
from .events import Event, Polarity
from .templates import NeighborhoodTemplate

# "Never seen" marker; older than any representable event time
NEVER = int(np.iinfo(np.int64).min)
_NO_POL = -1


class TimeSurface:
    """
    Surface of active events: the most recent timestamp and polarity per pixel.

    Stored as two dense (height, width) arrays in C order, so a pixel's flat
    index is y * width + x. Memory is fixed at construction; update() writes a
    single cell and allocates nothing.
    """
    __slots__ = ("width", "height", "_t", "_p")

    def __init__(self, width: int, height: int):
        if int(width) <= 0 or int(height) <= 0:
            raise ConfigError("width/height must be > 0")
        self.width, self.height = int(width), int(height)
        self._t = np.full((self.height, self.width), NEVER, dtype=np.int64)
        self._p = np.full((self.height, self.width), _NO_POL, dtype=np.int8)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    def contains(self, x: int, y: int) -> bool:
        # Pixel coordinates only; fractional positions are never on the grid
        if not (isinstance(x, (int, np.integer)) and isinstance(y, (int, np.integer))):
            return False
        return 0 <= x < self.width and 0 <= y < self.height

    def _check(self, x: int, y: int) -> None:
        if not self.contains(x, y):
            raise OutOfBounds(x, y, self.width, self.height)

    def update(self, ev: Event) -> None:
        self._check(ev.x, ev.y)
        self._t[ev.y, ev.x] = ev.t
        self._p[ev.y, ev.x] = int(ev.polarity)

    def query(self, x: int, y: int) -> Tuple[int, Optional[Polarity]]:
        self._check(x, y)
        t = int(self._t[y, x])
        if t == NEVER:
            return NEVER, None
        return t, Polarity(int(self._p[y, x]))

    def sample(self, x: int, y: int, tpl: NeighborhoodTemplate) -> Tuple[np.ndarray, np.ndarray]:
        """
        Timestamps and polarities on the template ring around (x, y), in the
        template's angular order. The whole ring must lie on the surface.
        """
        xs = tpl.dx + x
        ys = tpl.dy + y
        if xs.min() < 0 or ys.min() < 0 or xs.max() >= self.width or ys.max() >= self.height:
            raise OutOfBounds(x, y, self.width, self.height)
        return self._t[ys, xs], self._p[ys, xs]

    def timestamps(self) -> np.ndarray:
        """Read-only view of the timestamp grid, indexed [y, x]."""
        v = self._t.view()
        v.setflags(write=False)
        return v

    def is_blank(self) -> bool:
        return bool((self._t == NEVER).all())

    def reset(self) -> None:
        self._t.fill(NEVER)
        self._p.fill(_NO_POL)


__all__ = ["NEVER", "TimeSurface"]
