"""
Streaming facade over the corner detector and track manager.

One CornerStream owns one time surface and one track set. Events are fed one
at a time in non-decreasing timestamp order; each call is synchronous and
returns the result for that event only. Two modes share the same state:

- process(event): detection only, tracks are not touched
- process_and_track(event) / process_event(event): detection plus tracking

For parallel use, split the sensor into tiles and give each tile its own
CornerStream with a disjoint `track_id_start`.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from .config import CornerConfig
from .detector import CornerDetector, Detection
from .errors import CornerError, NonMonotonicTime
from .events import Event
from .surface import TimeSurface
from .tracker import TrackManager, TrackSnapshot, TrackUpdate

_log = logging.getLogger("arcflow.pipeline")


@dataclass(frozen=True)
class DetectionResult:
    event: Event
    detection: Detection
    track_update: Optional[TrackUpdate] = None

    @property
    def is_corner(self) -> bool:
        return self.detection.is_corner


class CornerStream:
    def __init__(self, config: CornerConfig):
        self.config = config
        self.detector = CornerDetector.from_config(config)
        self.tracks = TrackManager.from_config(config)
        self._last_t: Optional[int] = None
        self._count = 0
        _log.info(
            f"corner stream {config.width}x{config.height}, radii={config.radii}, "
            f"staleness={config.staleness_ticks}{config.time_unit}"
        )

    @property
    def surface(self) -> TimeSurface:
        return self.detector.surface

    @property
    def last_timestamp(self) -> Optional[int]:
        return self._last_t

    @property
    def events_processed(self) -> int:
        return self._count

    def _accept(self, ev: Event) -> Detection:
        # Validate time before the surface is touched; bounds are checked by the surface
        if self._last_t is not None and ev.t < self._last_t:
            raise NonMonotonicTime(ev.t, self._last_t)
        det = self.detector.detect(ev)
        self._last_t = ev.t
        self._count += 1
        return det

    def process(self, ev: Event) -> Detection:
        return self._accept(ev)

    def process_event(self, ev: Event) -> DetectionResult:
        det = self._accept(ev)
        return DetectionResult(ev, det, self.tracks.observe(det))

    def process_and_track(self, ev: Event) -> TrackUpdate:
        return self.tracks.observe(self._accept(ev))

    def process_stream(self, events: Iterable[Event], on_error: str = "raise",
                       track: bool = True) -> Iterator[DetectionResult]:
        """
        Drive the stream from an iterable. With on_error="skip" rejected events
        (out of bounds, out of order) are logged and dropped; with "raise" the
        first one propagates and iteration stops.
        """
        if on_error not in ("raise", "skip"):
            raise ValueError(f"on_error must be 'raise' or 'skip', got {on_error!r}")
        for ev in events:
            try:
                res = self.process_event(ev) if track else DetectionResult(ev, self.process(ev))
            except CornerError as e:
                if on_error == "raise":
                    raise
                _log.warning(f"skipping event {ev}: {e}")
                continue
            yield res

    def active_tracks(self) -> Tuple[TrackSnapshot, ...]:
        # Detection-only events advance time too; drop tracks they have outlived
        if self._last_t is not None:
            self.tracks.sweep(self._last_t)
        return self.tracks.active_tracks()


__all__ = ["DetectionResult", "CornerStream"]
