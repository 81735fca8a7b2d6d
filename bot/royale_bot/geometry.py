"""
Code Royale Bot - Geometry
===========================
Plane geometry helpers for circles and segments. All arguments are plain
coordinates so the helpers work for sites, units and planner waypoints alike.
"""

import math

from royale_bot.models import CONTACT_RANGE


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.sqrt((x1 - x2) ** 2 + (y1 - y2) ** 2)


def in_contact(x1: float, y1: float, r1: float,
               x2: float, y2: float, r2: float) -> bool:
    """True when the gap between the two circle boundaries is under CONTACT_RANGE."""
    return distance(x1, y1, x2, y2) - r1 - r2 < CONTACT_RANGE


def is_projected_on_segment(x1: float, y1: float, x2: float, y2: float,
                            x0: float, y0: float) -> bool:
    """True when the projection of (x0, y0) falls strictly inside the segment."""
    e1x = x2 - x1
    e1y = y2 - y1
    rec_area = e1x * e1x + e1y * e1y
    e2x = x0 - x1
    e2y = y0 - y1
    val = e1x * e2x + e1y * e2y
    return 0 < val < rec_area


def dist_line_point(x1: float, y1: float, x2: float, y2: float,
                    x0: float, y0: float) -> float:
    """Perpendicular distance from (x0, y0) to the line through the segment."""
    length = distance(x1, y1, x2, y2)
    if length == 0:
        return distance(x1, y1, x0, y0)
    return abs((y2 - y1) * x0 - (x2 - x1) * y0 + x2 * y1 - y2 * x1) / length


def is_obstacle(x1: float, y1: float, x2: float, y2: float,
                x0: float, y0: float, radius: float) -> bool:
    """True when a circle of `radius` at (x0, y0) blocks the segment.

    A circle whose projection lands on or beyond an endpoint is never an
    obstacle, however close it is.
    """
    if not is_projected_on_segment(x1, y1, x2, y2, x0, y0):
        return False
    return dist_line_point(x1, y1, x2, y2, x0, y0) < radius


def round_half_up(value: float) -> int:
    # round() is banker's rounding; command coordinates round .5 upward
    return int(math.floor(value + 0.5))
