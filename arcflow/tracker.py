"""
Asynchronous corner track manager.

Tracks are kept in an id -> Track dict whose insertion order is id order, so
a linear scan visits the oldest tracks first; ties on distance therefore go to
the smallest id without an explicit secondary sort. Candidate search is a
linear scan against the gates, which is adequate for the few hundred corners
typically alive at once.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from .config import CornerConfig, Position, Smoothing
from .detector import Detection
from .errors import ConfigError

_log = logging.getLogger("arcflow.tracker")


class TrackStatus(Enum):
    ACTIVE = "active"
    LOST = "lost"


class UpdateKind(Enum):
    NONE = "none"              # not a corner; only the eviction sweep ran
    CREATED = "created"
    MATCHED = "matched"
    SUPPRESSED = "suppressed"  # unmatched, but too close to a live track to register


@dataclass(frozen=True)
class TrackSnapshot:
    id: int
    position: Position
    created_at: int
    last_update: int
    status: TrackStatus
    hits: int


class Track:
    __slots__ = ("id", "position", "created_at", "last_update", "status", "hits")

    def __init__(self, tid: int, position: Position, t: int):
        self.id, self.position = tid, (float(position[0]), float(position[1]))
        self.created_at = self.last_update = t
        self.status, self.hits = TrackStatus.ACTIVE, 1

    def snapshot(self) -> TrackSnapshot:
        return TrackSnapshot(self.id, self.position, self.created_at, self.last_update, self.status, self.hits)


@dataclass(frozen=True)
class TrackUpdate:
    t: int
    kind: UpdateKind
    track: Optional[TrackSnapshot] = None
    evicted: Tuple[TrackSnapshot, ...] = ()


class TrackManager:
    def __init__(
        self,
        spatial_gate: float,
        temporal_gate: int,
        min_registration_distance: float,
        inactivity_timeout: int,
        smoothing: Optional[Smoothing] = None,
        id_start: int = 0,
    ):
        if spatial_gate < 0 or min_registration_distance < 0:
            raise ConfigError("spatial_gate and min_registration_distance must be >= 0")
        if temporal_gate < 0:
            raise ConfigError("temporal_gate must be >= 0")
        if inactivity_timeout <= 0:
            raise ConfigError("inactivity_timeout must be > 0")
        self._gate2 = float(spatial_gate) ** 2
        self._reg2 = float(min_registration_distance) ** 2
        self.temporal_gate = int(temporal_gate)
        self.inactivity_timeout = int(inactivity_timeout)
        self.smoothing = smoothing or Smoothing.replace()
        self._tracks: Dict[int, Track] = {}
        self._next_id = int(id_start)

    @classmethod
    def from_config(cls, cfg: CornerConfig) -> "TrackManager":
        return cls(cfg.spatial_gate, cfg.temporal_gate_ticks, cfg.min_registration_distance,
                   cfg.inactivity_ticks, cfg.smoothing, cfg.track_id_start)

    def __len__(self) -> int:
        return len(self._tracks)

    @property
    def next_id(self) -> int:
        return self._next_id

    def active_tracks(self) -> Tuple[TrackSnapshot, ...]:
        return tuple(tr.snapshot() for tr in self._tracks.values())

    def sweep(self, t: int) -> Tuple[TrackSnapshot, ...]:
        """Drop every track idle for at least the inactivity timeout as of time t."""
        lost = [tr for tr in self._tracks.values() if t - tr.last_update >= self.inactivity_timeout]
        for tr in lost:
            tr.status = TrackStatus.LOST
            del self._tracks[tr.id]
            _log.debug(f"track {tr.id} lost at t={t} (last update {tr.last_update}, {tr.hits} hits)")
        return tuple(tr.snapshot() for tr in lost)

    def _nearest(self, det: Detection) -> Optional[Track]:
        best: Optional[Track] = None
        best_d2 = 0.0
        for tr in self._tracks.values():
            if det.t - tr.last_update > self.temporal_gate:
                continue
            dx = tr.position[0] - det.x; dy = tr.position[1] - det.y
            d2 = dx * dx + dy * dy
            if d2 > self._gate2:
                continue
            if best is None or d2 < best_d2:
                best, best_d2 = tr, d2
        return best

    def _blocked(self, det: Detection) -> Optional[Track]:
        for tr in self._tracks.values():
            dx = tr.position[0] - det.x; dy = tr.position[1] - det.y
            if dx * dx + dy * dy < self._reg2:
                return tr
        return None

    def observe(self, det: Detection) -> TrackUpdate:
        """Advance track time to det.t and, for corners, associate or register."""
        evicted = self.sweep(det.t)
        if not det.is_corner:
            return TrackUpdate(det.t, UpdateKind.NONE, None, evicted)

        tr = self._nearest(det)
        if tr is not None:
            tr.position = self.smoothing.apply(tr.position, (det.x, det.y))
            tr.last_update = det.t
            tr.hits += 1
            return TrackUpdate(det.t, UpdateKind.MATCHED, tr.snapshot(), evicted)

        blocker = self._blocked(det)
        if blocker is not None:
            return TrackUpdate(det.t, UpdateKind.SUPPRESSED, blocker.snapshot(), evicted)

        tr = Track(self._next_id, (det.x, det.y), det.t)
        self._next_id += 1
        self._tracks[tr.id] = tr
        _log.debug(f"track {tr.id} created at ({det.x}, {det.y}) t={det.t}")
        return TrackUpdate(det.t, UpdateKind.CREATED, tr.snapshot(), evicted)

    def reset(self) -> None:
        """Forget all live tracks. IDs keep increasing; they are never reused."""
        self._tracks.clear()


__all__ = ["TrackStatus", "UpdateKind", "TrackSnapshot", "Track", "TrackUpdate", "TrackManager"]
