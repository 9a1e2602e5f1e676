from __future__ import annotations
import math
import pytest

from arcflow.errors import ConfigError
from arcflow.templates import digital_circle, template_for, NeighborhoodTemplate, TWO_PI

CIRCLE3 = {(0, 3), (1, 3), (2, 2), (3, 1), (3, 0), (3, -1), (2, -2), (1, -3),
           (0, -3), (-1, -3), (-2, -2), (-3, -1), (-3, 0), (-3, 1), (-2, 2), (-1, 3)}
CIRCLE4 = {(0, 4), (1, 4), (2, 3), (3, 2), (4, 1), (4, 0), (4, -1), (3, -2), (2, -3), (1, -4),
           (0, -4), (-1, -4), (-2, -3), (-3, -2), (-4, -1), (-4, 0), (-4, 1), (-3, 2), (-2, 3), (-1, 4)}


def test_standard_rings():
    assert set(digital_circle(3)) == CIRCLE3 and len(digital_circle(3)) == 16
    assert set(digital_circle(4)) == CIRCLE4 and len(digital_circle(4)) == 20


@pytest.mark.parametrize("r", range(1, 9))
def test_ring_is_ordered_and_8_connected(r):
    offs = digital_circle(r)
    assert offs[0] == (r, 0)
    angles = [math.atan2(dy, dx) % TWO_PI for dx, dy in offs]
    assert angles == sorted(angles)
    for (ax, ay), (bx, by) in zip(offs, offs[1:] + offs[:1]):
        assert max(abs(ax - bx), abs(ay - by)) == 1


@pytest.mark.parametrize("r", [1, 3, 4, 6])
def test_sector_widths_cover_circle(r):
    tpl = template_for(r)
    assert len(tpl) == len(digital_circle(r))
    assert (tpl.widths > 0).all()
    assert float(tpl.widths.sum()) == pytest.approx(TWO_PI)
    assert tpl.extent == r


def test_template_cache_and_explicit_offsets():
    assert template_for(3) is template_for(3)
    explicit = template_for(3, digital_circle(3))
    assert explicit is not template_for(3)
    assert explicit.offsets() == template_for(3).offsets()


def test_sector_width_of_axis_sample_radius3():
    tpl = template_for(3)
    # (3, 0) sits between (3, -1) and (3, 1), both atan(1/3) away
    assert tpl.widths[0] == pytest.approx(math.atan2(1, 3))


def test_rejects_bad_templates():
    with pytest.raises(ConfigError):
        digital_circle(0)
    with pytest.raises(ConfigError):
        NeighborhoodTemplate.from_offsets(1, [(1, 0), (0, 1)])
    with pytest.raises(ConfigError):
        NeighborhoodTemplate.from_offsets(1, [(1, 0), (0, 1), (0, 0)])
    with pytest.raises(ConfigError):
        NeighborhoodTemplate.from_offsets(1, [(1, 0), (0, 1), (1, 0), (-1, 0)])
