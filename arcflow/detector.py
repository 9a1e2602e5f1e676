from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from .arc import ArcEvaluator, CornerScore
from .config import CornerConfig
from .descriptor import Descriptor, compute_descriptor
from .events import Event, Polarity
from .surface import TimeSurface

_log = logging.getLogger("arcflow.detector")


@dataclass(frozen=True)
class Detection:
    x: int
    y: int
    t: int
    polarity: Polarity
    is_corner: bool
    score: Optional[CornerScore] = None     # None when the pixel sits in the border inset
    descriptor: Optional[Descriptor] = None


class CornerDetector:
    """
    Per-event stage: write the event into the surface, then score its pixel.

    The bounds check happens inside TimeSurface.update() before the write, so
    an OutOfBounds event leaves the surface untouched and propagates to the
    caller.
    """

    def __init__(self, surface: TimeSurface, evaluator: ArcEvaluator, compute_descriptors: bool = False):
        self.surface = surface
        self.evaluator = evaluator
        self.compute_descriptors = bool(compute_descriptors)

    @classmethod
    def from_config(cls, cfg: CornerConfig) -> "CornerDetector":
        surface = TimeSurface(cfg.width, cfg.height)
        evaluator = ArcEvaluator(
            cfg.arc_specs(),
            cfg.staleness_ticks,
            accept_concave=cfg.accept_concave,
            polarity_filter=cfg.polarity_filter,
            border_inset=cfg.border_inset,
        )
        _log.debug(f"rings: {[(a.radius, len(a.template)) for a in evaluator.arcs]}; border inset {evaluator.border_inset}")
        return cls(surface, evaluator, cfg.compute_descriptor)

    def detect(self, ev: Event) -> Detection:
        self.surface.update(ev)
        s = self.surface
        if not self.evaluator.evaluable(ev.x, ev.y, s.width, s.height):
            return Detection(ev.x, ev.y, ev.t, ev.polarity, False)
        score = self.evaluator.evaluate(s, ev.x, ev.y, ev.t, ev.polarity)
        desc = None
        if score.is_corner and self.compute_descriptors:
            desc = compute_descriptor(s, ev.x, ev.y, ev.t,
                                      [a.template for a in self.evaluator.arcs], self.evaluator.staleness)
        return Detection(ev.x, ev.y, ev.t, ev.polarity, score.is_corner, score, desc)


__all__ = ["Detection", "CornerDetector"]
