from __future__ import annotations
from typing import Sequence, Tuple
import numpy as np

from .surface import TimeSurface
from .templates import NeighborhoodTemplate

Descriptor = Tuple[float, ...]


def compute_descriptor(surface: TimeSurface, x: int, y: int, t: int,
                       templates: Sequence[NeighborhoodTemplate], staleness: int) -> Descriptor:
    """
    Recency fingerprint of the rings around (x, y).

    Each sample maps to 1.0 when it fired at `t` and decays linearly to 0.0 at
    the staleness horizon (never-seen cells are 0.0). Every ring is rotated to
    start at its freshest sample so the fingerprint does not depend on where
    the corner points.
    """
    horizon = float(max(int(staleness), 1))
    parts = []
    for tpl in templates:
        ts, _ = surface.sample(x, y, tpl)
        age = (int(t) - ts.astype(np.float64))
        norm = np.clip(1.0 - age / horizon, 0.0, 1.0)
        parts.append(np.roll(norm, -int(np.argmax(ts))))
    return tuple(float(v) for v in np.concatenate(parts))


def likeness(a: Sequence[float], b: Sequence[float]) -> float:
    """Overlap ratio of two descriptors in [0, 1]; 0.0 when either is empty."""
    if len(a) == 0 or len(b) == 0:
        return 0.0
    da = np.asarray(a, dtype=np.float64); db = np.asarray(b, dtype=np.float64)
    if da.shape != db.shape:
        raise ValueError(f"descriptor length mismatch: {da.shape[0]} != {db.shape[0]}")
    denom = max(float(da.sum()), float(db.sum()))
    if denom <= 0.0:
        return 0.0
    return float(np.minimum(da, db).sum()) / denom


__all__ = ["Descriptor", "compute_descriptor", "likeness"]
