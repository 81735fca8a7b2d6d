"""Tests for the plane geometry helpers."""

import math
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from royale_bot.geometry import (
    dist_line_point, distance, in_contact, is_obstacle, is_projected_on_segment,
    round_half_up,
)


def test_distance_is_euclidean():
    assert distance(0, 0, 3, 4) == 5
    assert distance(10, 10, 10, 10) == 0


def test_in_contact_threshold():
    """Boundaries closer than 5 touch; exactly 5 apart do not."""
    assert in_contact(0, 0, 30, 84, 0, 50)       # gap 4
    assert not in_contact(0, 0, 30, 85, 0, 50)   # gap 5


def test_projection_is_strict_at_endpoints():
    assert is_projected_on_segment(0, 0, 100, 0, 50, 20)
    assert not is_projected_on_segment(0, 0, 100, 0, 0, 20)
    assert not is_projected_on_segment(0, 0, 100, 0, 100, 20)
    assert not is_projected_on_segment(0, 0, 100, 0, -10, 0)


def test_dist_line_point():
    assert dist_line_point(0, 0, 100, 0, 50, 20) == 20
    assert math.isclose(dist_line_point(0, 0, 10, 10, 0, 10), math.sqrt(50))


def test_dist_line_point_degenerate_segment():
    assert dist_line_point(5, 5, 5, 5, 8, 9) == 5


def test_circle_on_segment_is_obstacle():
    assert is_obstacle(0, 500, 600, 500, 300, 520, 80)


def test_circle_beside_segment_is_not_obstacle():
    assert not is_obstacle(0, 500, 600, 500, 300, 600, 80)


def test_circle_beyond_endpoint_is_never_obstacle():
    """A circle overlapping an endpoint but projecting past it does not block."""
    assert not is_obstacle(0, 500, 600, 500, 620, 500, 80)
    assert not is_obstacle(0, 500, 600, 500, -20, 500, 80)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
    assert round_half_up(-2.5) == -2
