from __future__ import annotations

"""
arcflow: asynchronous corner detection and tracking for event cameras.

Provides:
- TimeSurface: per-pixel most-recent-event store
- ArcEvaluator: dual-ring recency arc scoring
- CornerDetector: surface update + scoring per event
- TrackManager: asynchronous association and track lifecycle
- CornerStream: streaming facade composing the above from a CornerConfig
"""

import logging

from .config import CornerConfig, Smoothing
from .errors import CornerError, OutOfBounds, NonMonotonicTime, ConfigError
from .events import Event, Polarity, dvs_event
from .pipeline import CornerStream, DetectionResult
from .detector import Detection
from .tracker import TrackSnapshot, TrackStatus, TrackUpdate, UpdateKind

__all__ = [
    "version", "CornerConfig", "Smoothing", "CornerError", "OutOfBounds", "NonMonotonicTime",
    "ConfigError", "Event", "Polarity", "dvs_event", "CornerStream", "DetectionResult", "Detection",
    "TrackSnapshot", "TrackStatus", "TrackUpdate", "UpdateKind",
]

_log = logging.getLogger("arcflow")
if not _log.handlers:
    h = logging.StreamHandler()
    fmt = logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
    h.setFormatter(fmt)
    _log.addHandler(h)
    _log.setLevel(logging.INFO)


def version() -> str:
    return "0.1.0"
