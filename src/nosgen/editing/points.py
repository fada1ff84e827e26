"""
Editing operations on logical points.

A logical point is the set of FramePoints sharing one id across all frames.
Every operation returns a new frame list and leaves the input untouched.

These are the public editing calls for programs that drive NosGen as a
library; the pipeline and CLI only build, import and re-export frames.
"""

from nosgen.fitting.primitives import clamp, round_half_up
from nosgen.io.pivot import from_pivot_coords
from nosgen.models import FramePoint, create_id, create_point_color


def _replace_point(frames, frame_index, point_id, **changes):
    frame = frames[frame_index]
    points = [p.model_copy(update=changes) if p.id == point_id else p for p in frame.points]
    updated = list(frames)
    updated[frame_index] = frame.model_copy(update={"points": points})
    return updated


def next_point_name(frames):
    """Default name for a new point: point-<n>, n one past the largest point count."""
    count = max([0] + [len(frame.points) for frame in frames])
    return f"point-{count + 1}"


def add_point_at(frames, frame_index, x, y, name=None, rng=None):
    """
    Add a logical point to every frame.

    The point is a keyframe at (x, y) on frame_index and an unplaced
    non-keyframe at (0, 0) everywhere else.

    Returns (frames, point_id).
    """
    if not 0 <= frame_index < len(frames):
        raise IndexError(f"Frame index out of range: {frame_index}")

    point_id = create_id()
    name = name or next_point_name(frames)
    color = create_point_color(rng)

    updated = []
    for index, frame in enumerate(frames):
        is_current = index == frame_index
        point = FramePoint(
            id=point_id,
            name=name,
            color=color,
            x=clamp(round_half_up(x), 0, frame.width) if is_current else 0,
            y=clamp(round_half_up(y), 0, frame.height) if is_current else 0,
            is_keyframe=is_current,
        )
        updated.append(frame.model_copy(update={"points": frame.points + [point]}))

    return updated, point_id


def move_point(frames, frame_index, point_id, x, y):
    """Place a point on one frame; placing it makes it a keyframe there."""
    frame = frames[frame_index]
    return _replace_point(
        frames, frame_index, point_id,
        x=clamp(round_half_up(x), 0, frame.width),
        y=clamp(round_half_up(y), 0, frame.height),
        is_keyframe=True,
    )


def move_point_pivot(frames, frame_index, point_id, x, y, pivot):
    """Like move_point, with (x, y) given in pivot space."""
    frame = frames[frame_index]
    fx, fy = from_pivot_coords(x, y, frame.width, frame.height, pivot)
    return move_point(frames, frame_index, point_id, fx, fy)


def set_keyframe(frames, frame_index, point_id, is_keyframe):
    """Mark or unmark a point as keyframe on one frame, keeping its position."""
    return _replace_point(frames, frame_index, point_id, is_keyframe=bool(is_keyframe))


def rename_point(frames, point_id, name):
    """Rename a logical point on all frames."""
    return [
        frame.model_copy(update={
            "points": [p.model_copy(update={"name": name}) if p.id == point_id else p for p in frame.points]
        })
        for frame in frames
    ]


def delete_point(frames, point_id):
    """Remove a logical point from all frames."""
    return [
        frame.model_copy(update={"points": [p for p in frame.points if p.id != point_id]})
        for frame in frames
    ]


def remove_point_from_groups(groups, point_id):
    """Drop a point id from every group entry."""
    return [
        group.model_copy(update={"entries": [[pid for pid in entry if pid != point_id] for entry in group.entries]})
        for group in groups
    ]
