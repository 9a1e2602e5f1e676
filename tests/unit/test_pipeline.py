from __future__ import annotations
import logging
import unittest
import numpy as np
import pytest

from arcflow import CornerConfig, CornerStream, Event, Polarity, UpdateKind, TrackStatus
from arcflow.errors import OutOfBounds, NonMonotonicTime
from arcflow.surface import NEVER
from arcflow.templates import template_for


def make_stream(**kw) -> CornerStream:
    opts = dict(width=40, height=24, staleness_threshold=50, spatial_gate=3.0, temporal_gate=150,
                min_registration_distance=2.0, inactivity_timeout=1000)
    opts.update(kw)
    return CornerStream(CornerConfig(**opts))


def corner_setup(cx, cy, t):
    """Events lighting the south-east quadrant of both rings around (cx, cy)."""
    pts = set()
    for r in (3, 4):
        for dx, dy in template_for(r).offsets():
            if dx >= 0 and dy >= 0:
                pts.add((cx + dx, cy + dy))
    return [Event(x, y, t) for x, y in sorted(pts)]


def emit_corner(stream, cx, cy, t):
    for ev in corner_setup(cx, cy, t):
        stream.process(ev)
    return stream.process_event(Event(cx, cy, t))


class TestCornerStream(unittest.TestCase):
    def test_empty_stream(self):
        s = make_stream()
        self.assertEqual(list(s.process_stream([])), [])
        self.assertEqual(s.active_tracks(), ())
        self.assertTrue(s.surface.is_blank())
        self.assertIsNone(s.last_timestamp)

    def test_single_event_on_blank_surface_is_not_corner(self):
        s = make_stream(width=10, height=10, staleness_threshold=10**9)
        res = s.process_event(Event(5, 5, 100, Polarity.POSITIVE))
        self.assertFalse(res.is_corner)
        self.assertEqual(res.detection.score.spans, (0.0, 0.0))
        self.assertEqual(res.track_update.kind, UpdateKind.NONE)
        self.assertEqual(s.surface.query(5, 5), (100, Polarity.POSITIVE))

    def test_synthetic_corner_creates_track(self):
        s = make_stream()
        res = emit_corner(s, 15, 10, 1000)
        self.assertTrue(res.is_corner)
        self.assertEqual(res.track_update.kind, UpdateKind.CREATED)
        (tr,) = s.active_tracks()
        self.assertEqual((tr.id, tr.position, tr.created_at), (0, (15.0, 10.0), 1000))

    def test_slow_motion_single_track(self):
        s = make_stream()
        ids = []
        for k in range(12):
            res = emit_corner(s, 10 + k, 10, 1000 + 100 * k)
            self.assertTrue(res.is_corner, f"step {k}")
            ids.append(res.track_update.track.id)
        self.assertEqual(set(ids), {0})
        self.assertEqual(len(s.active_tracks()), 1)
        self.assertEqual(s.active_tracks()[0].position, (21.0, 10.0))

    def test_detection_only_mode_leaves_tracks_alone(self):
        s = make_stream()
        for ev in corner_setup(15, 10, 1000):
            s.process(ev)
        det = s.process(Event(15, 10, 1000))
        self.assertTrue(det.is_corner)
        self.assertEqual(s.active_tracks(), ())

    def test_eviction_on_unrelated_event(self):
        s = make_stream(inactivity_timeout=500)
        emit_corner(s, 15, 10, 1000)
        self.assertEqual(s.process_and_track(Event(35, 20, 1499)).evicted, ())
        up = s.process_and_track(Event(35, 20, 1500))
        self.assertEqual([t.id for t in up.evicted], [0])
        self.assertIs(up.evicted[0].status, TrackStatus.LOST)
        self.assertEqual(s.active_tracks(), ())

    def test_detection_only_events_expire_tracks(self):
        s = make_stream(inactivity_timeout=500)
        emit_corner(s, 15, 10, 1000)
        s.process(Event(35, 20, 1499))
        self.assertEqual([t.id for t in s.active_tracks()], [0])
        s.process(Event(35, 20, 1500))
        self.assertEqual(s.active_tracks(), ())
        res = emit_corner(s, 15, 10, 1600)
        self.assertEqual((res.track_update.kind, res.track_update.track.id), (UpdateKind.CREATED, 1))
        self.assertEqual(res.track_update.evicted, ())

    def test_out_of_bounds_does_not_mutate(self):
        s = make_stream()
        s.process_event(Event(3, 3, 10))
        with self.assertRaises(OutOfBounds):
            s.process_event(Event(40, 3, 20))
        with self.assertRaises(OutOfBounds):
            s.process(Event(-1, 3, 20))
        self.assertEqual(s.last_timestamp, 10)
        self.assertEqual(s.events_processed, 1)
        self.assertEqual(int((s.surface.timestamps() != NEVER).sum()), 1)
        s.process_event(Event(4, 3, 15))
        self.assertEqual(s.last_timestamp, 15)

    def test_non_monotonic_time_rejected(self):
        s = make_stream()
        s.process_event(Event(3, 3, 100))
        with self.assertRaises(NonMonotonicTime) as cm:
            s.process_event(Event(5, 5, 99))
        self.assertEqual((cm.exception.t, cm.exception.last_t), (99, 100))
        self.assertEqual(s.surface.query(5, 5), (NEVER, None))
        s.process_event(Event(5, 5, 100))
        self.assertEqual(s.surface.query(5, 5)[0], 100)


def test_process_stream_skip_policy(caplog):
    s = make_stream()
    events = [Event(3, 3, 10), Event(99, 3, 11), Event(4, 4, 5), Event(5, 5, 12)]
    with caplog.at_level(logging.WARNING, logger="arcflow.pipeline"):
        out = list(s.process_stream(events, on_error="skip"))
    assert [r.event.t for r in out] == [10, 12]
    assert "skipping event" in caplog.text


def test_process_stream_raise_policy():
    s = make_stream()
    with pytest.raises(NonMonotonicTime):
        list(s.process_stream([Event(3, 3, 10), Event(4, 4, 5)]))
    with pytest.raises(ValueError):
        list(s.process_stream([], on_error="retry"))


def test_process_stream_detection_only():
    s = make_stream()
    out = list(s.process_stream(corner_setup(15, 10, 7) + [Event(15, 10, 7)], track=False))
    assert all(r.track_update is None for r in out)
    assert out[-1].is_corner
    assert s.active_tracks() == ()


def _random_stream(seed: int, n: int = 400):
    rng = np.random.default_rng(seed)
    ts = np.sort(rng.integers(0, 5_000, size=n))
    xs = rng.integers(0, 40, size=n); ys = rng.integers(0, 24, size=n)
    ps = rng.integers(0, 2, size=n)
    events = [Event(int(x), int(y), int(t), Polarity(int(p))) for x, y, t, p in zip(xs, ys, ts, ps)]
    for k in range(6):
        t = 5_000 + 100 * k
        events += corner_setup(12 + k, 12, t) + [Event(12 + k, 12, t)]
    return events


def test_determinism():
    events = _random_stream(7)
    runs = []
    for _ in range(2):
        s = make_stream(compute_descriptor=True)
        runs.append((list(s.process_stream(events)), s.active_tracks()))
    assert runs[0] == runs[1]
    assert any(r.is_corner for r in runs[0][0])


def test_tiles_use_disjoint_ids():
    a = make_stream(track_id_start=0)
    b = make_stream(track_id_start=1 << 32)
    assert emit_corner(a, 15, 10, 100).track_update.track.id == 0
    assert emit_corner(b, 15, 10, 100).track_update.track.id == 1 << 32


def test_fractional_coordinates_are_skipped():
    s = make_stream()
    out = list(s.process_stream([Event(5.5, 5, 10), Event(5, 5, 11)], on_error="skip"))
    assert [r.event.t for r in out] == [11]
    assert s.events_processed == 1
