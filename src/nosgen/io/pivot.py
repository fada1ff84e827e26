"""
Pivot-space conversion between frame pixel coordinates and exported coordinates.

top-left is the frame's own space; bottom-left flips y; center moves the
origin to the middle of the frame.
"""

from nosgen.models import PivotMode, parse_enum


def to_pivot_coords(x, y, frame_width, frame_height, mode):
    """Frame pixel coordinates to pivot space."""
    mode = parse_enum(PivotMode, mode, PivotMode.TOP_LEFT)
    if mode == PivotMode.CENTER:
        return (x - frame_width / 2, y - frame_height / 2)
    if mode == PivotMode.BOTTOM_LEFT:
        return (x, frame_height - y)
    return (x, y)


def from_pivot_coords(x, y, frame_width, frame_height, mode):
    """Pivot space back to frame pixel coordinates."""
    mode = parse_enum(PivotMode, mode, PivotMode.TOP_LEFT)
    if mode == PivotMode.CENTER:
        return (x + frame_width / 2, y + frame_height / 2)
    if mode == PivotMode.BOTTOM_LEFT:
        return (x, frame_height - y)
    return (x, y)
