"""
Arc evaluator: per-pixel corner scoring over concentric digital circles.

For every configured ring the surface is sampled around the pixel and each
sample is classified fresh or stale relative to the triggering event's time.
The widest circular run of stale samples is measured in radians and the
ring's score is what remains of the circle:

    score = 2*pi - widest_stale_run

Near a corner the recent activity on the ring is confined to a narrow arc, so
the score is small. Along a straight edge it covers about half the ring; on
textured or noisy regions the stale samples are broken up into short runs and
the score approaches 2*pi. A pixel is a corner only when every ring passes.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import numpy as np

from .errors import ConfigError
from .events import Polarity
from .surface import NEVER, TimeSurface
from .templates import NeighborhoodTemplate, TWO_PI


@dataclass(frozen=True)
class ArcSpec:
    """One ring: its template and the accepted score band [min_angle, max_angle)."""
    template: NeighborhoodTemplate
    max_angle: float
    min_angle: float = 0.0

    def __post_init__(self):
        if not (0.0 < self.max_angle <= TWO_PI):
            raise ConfigError(f"max_angle must be in (0, 2*pi], got {self.max_angle}")
        if not (0.0 <= self.min_angle < self.max_angle):
            raise ConfigError(f"min_angle must be in [0, max_angle), got {self.min_angle}")

    @property
    def radius(self) -> int:
        return self.template.radius


@dataclass(frozen=True)
class CornerScore:
    spans: Tuple[float, ...]        # per-ring score, 2*pi minus widest stale run
    stale_runs: Tuple[float, ...]   # per-ring widest stale run
    passed: Tuple[bool, ...]

    @property
    def is_corner(self) -> bool:
        return bool(self.passed) and all(self.passed)


def widest_circular_run(mask: np.ndarray, widths: np.ndarray) -> Tuple[float, int]:
    """
    Angular span of the widest wrap-around run of True entries in `mask` and
    the number of distinct runs.
    """
    n = len(mask)
    if n == 0 or not mask.any():
        return 0.0, 0
    if mask.all():
        return TWO_PI, 1
    # Start scanning just after a False entry so no run straddles the seam
    start = int(np.argmin(mask))
    best = cur = 0.0
    runs = 0
    inside = False
    for i in range(1, n + 1):
        j = (start + i) % n
        if mask[j]:
            if not inside:
                runs += 1; inside = True; cur = 0.0
            cur += float(widths[j])
            if cur > best: best = cur
        else:
            inside = False
    return best, runs


class ArcEvaluator:
    """
    Stateless scorer; holds only the ring set and thresholds. The surface must
    already contain the triggering event when evaluate() is called.
    """

    def __init__(
        self,
        arcs: Sequence[ArcSpec],
        staleness: int,
        accept_concave: bool = False,
        polarity_filter: bool = False,
        border_inset: Optional[int] = None,
    ):
        if not arcs:
            raise ConfigError("at least one ring is required")
        if int(staleness) < 0:
            raise ConfigError("staleness must be >= 0")
        self.arcs = tuple(arcs)
        self.staleness = int(staleness)
        self.accept_concave = bool(accept_concave)
        if self.accept_concave and any(a.min_angle <= 0.0 for a in self.arcs):
            raise ConfigError("accept_concave needs min_angle > 0 on every ring")
        self.polarity_filter = bool(polarity_filter)
        reach = max(a.template.extent for a in self.arcs)
        inset = reach if border_inset is None else int(border_inset)
        if inset < reach:
            raise ConfigError(f"border_inset {inset} smaller than ring extent {reach}")
        self.border_inset = inset

    def evaluable(self, x: int, y: int, width: int, height: int) -> bool:
        b = self.border_inset
        return b <= x < width - b and b <= y < height - b

    def _ring_passes(self, spec: ArcSpec, score: float, stale_run: float, runs: int) -> bool:
        if 0.0 < score and spec.min_angle <= score < spec.max_angle:
            return True
        # Inside corner: the stale samples form one narrow arc of their own
        return (self.accept_concave and runs == 1 and 0.0 < stale_run < TWO_PI
                and spec.min_angle <= stale_run < spec.max_angle)

    def evaluate(self, surface: TimeSurface, x: int, y: int, t: int,
                 polarity: Optional[Polarity] = None) -> CornerScore:
        # Sentinel cells must stay stale even for huge staleness windows
        cutoff = max(int(t) - self.staleness, NEVER + 1)
        spans, runs_out, passed = [], [], []
        for spec in self.arcs:
            ts, pols = surface.sample(x, y, spec.template)
            stale = ts < cutoff
            if self.polarity_filter and polarity is not None:
                stale |= pols != int(polarity)
            run, runs = widest_circular_run(stale, spec.template.widths)
            score = 0.0 if runs == 1 and run >= TWO_PI else max(TWO_PI - run, 0.0)
            spans.append(score); runs_out.append(run)
            passed.append(self._ring_passes(spec, score, run, runs))
        return CornerScore(tuple(spans), tuple(runs_out), tuple(passed))


__all__ = ["ArcSpec", "CornerScore", "widest_circular_run", "ArcEvaluator"]
