"""
Interpolation over a cyclic keyframe sequence.

The last keyframe connects back to the first, so a frame before the first
keyframe (or after the last) is interpolated across the wrap.
"""

from dataclasses import dataclass

from nosgen.models import KeyframePoint


@dataclass(frozen=True)
class CyclicSegment:
    """Bracketing keyframes for a frame; indices refer to the frame-sorted list."""
    start: KeyframePoint
    end: KeyframePoint
    t: float
    start_index: int
    end_index: int


def sort_keyframes(points):
    return sorted(points, key=lambda p: p.frame_index)


def resolve_cyclic_segment(points, index, total_frames):
    """
    Find the keyframe pair around a frame, wrapping past the last keyframe.

    Returns None with no keyframes or no frames. With a single keyframe the
    segment starts and ends on it with t = 0.
    """
    if not points or total_frames <= 0:
        return None

    ordered = sort_keyframes(points)
    frame = index % total_frames

    if len(ordered) == 1:
        return CyclicSegment(start=ordered[0], end=ordered[0], t=0.0, start_index=0, end_index=0)

    start_index = len(ordered) - 1
    end_index = 0
    for i, point in enumerate(ordered):
        if point.frame_index <= frame:
            start_index = i
        else:
            end_index = i
            break

    start = ordered[start_index]
    end = ordered[end_index]
    start_frame = start.frame_index
    end_frame = end.frame_index + total_frames if end.frame_index <= start_frame else end.frame_index
    position = frame + total_frames if frame < start_frame else frame
    t = (position - start_frame) / ((end_frame - start_frame) or 1)

    return CyclicSegment(start=start, end=end, t=t, start_index=start_index, end_index=end_index)


def interpolate_linear(points, index, total_frames):
    """Linear blend between the bracketing keyframes, as an (x, y) tuple."""
    segment = resolve_cyclic_segment(points, index, total_frames)
    if segment is None:
        return None
    start, end, t = segment.start, segment.end, segment.t
    return (
        start.x + (end.x - start.x) * t,
        start.y + (end.y - start.y) * t,
    )


def catmull_rom(p0, p1, p2, p3, t):
    """Uniform Catmull-Rom spline between p1 and p2, one axis."""
    return 0.5 * (
        2 * p1
        + (-p0 + p2) * t
        + (2 * p0 - 5 * p1 + 4 * p2 - p3) * t * t
        + (-p0 + 3 * p1 - 3 * p2 + p3) * t * t * t
    )


def interpolate_tangent(points, index, total_frames):
    """
    Catmull-Rom interpolation through the cyclic keyframe sequence.

    The outer control points are the keyframes before start and after end,
    wrapping through the keyframe list.
    """
    segment = resolve_cyclic_segment(points, index, total_frames)
    if segment is None:
        return None

    ordered = sort_keyframes(points)
    count = len(ordered)
    p0 = ordered[(segment.start_index - 1) % count]
    p1 = segment.start
    p2 = segment.end
    p3 = ordered[(segment.end_index + 1) % count]
    t = segment.t

    return (
        catmull_rom(p0.x, p1.x, p2.x, p3.x, t),
        catmull_rom(p0.y, p1.y, p2.y, p3.y, t),
    )
