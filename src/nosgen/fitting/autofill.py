"""
Auto-fill: compute point positions for non-keyframe frames.

Keyframes of one logical point are gathered across frames, a model is
fitted for the chosen shape, the model is sampled once per frame, and the
samples are written back only into frames where the point is not a
keyframe.
"""

import math

from nosgen.fitting.interpolate import interpolate_linear, interpolate_tangent
from nosgen.fitting.primitives import clamp, direction_sign, round_half_up
from nosgen.fitting.shapes import (
    PHASE_STEPS,
    compute_circle_fit,
    compute_ellipse_fit,
    compute_square_fit,
    square_point_at,
)
from nosgen.models import (
    AutoFillShape,
    KeyframePoint,
    LinearModel,
    TangentModel,
    parse_autofill_model,
    parse_enum,
)
from nosgen.tracer import get_tracer, trace


def collect_keyframes(frames, point_id):
    """Keyframes of one logical point, sorted by frame index."""
    keyframes = []
    for frame_index, frame in enumerate(frames):
        point = frame.find_point(point_id)
        if point is not None and point.is_keyframe:
            keyframes.append(KeyframePoint(frame_index=frame_index, x=point.x, y=point.y))
    return keyframes


def logical_point_ids(frames):
    """Point ids across all frames, in first-seen order."""
    seen = {}
    for frame in frames:
        for point in frame.points:
            seen.setdefault(point.id, point.name)
    return list(seen)


def build_autofill_model(keyframes, total_frames, shape, direction, phase_steps=PHASE_STEPS):
    """
    Fit the model for one shape.

    Returns None when auto-fill is not available (fewer than 2 keyframes,
    no frames, or a failed fit).
    """
    parsed = parse_enum(AutoFillShape, shape)
    if parsed is None:
        raise ValueError(f"Unknown auto-fill shape: {shape!r}")

    if len(keyframes) < 2 or total_frames <= 0:
        return None

    keyframes = sorted(keyframes, key=lambda kf: kf.frame_index)

    if parsed == AutoFillShape.LINEAR:
        return LinearModel(points=keyframes)
    if parsed == AutoFillShape.TANGENT:
        return TangentModel(points=keyframes)
    if parsed == AutoFillShape.CIRCLE:
        return compute_circle_fit(keyframes, total_frames, direction, phase_steps=phase_steps)
    if parsed == AutoFillShape.SQUARE:
        return compute_square_fit(keyframes, total_frames, direction)
    return compute_ellipse_fit(keyframes, total_frames, direction, phase_steps=phase_steps)


def _sample_one(model, index, total_frames, sign):
    if model.shape == "ellipse":
        angle = sign * (index / total_frames) * 2 * math.pi + model.phase
        local_x = model.rx * math.cos(angle)
        local_y = model.ry * math.sin(angle)
        cos_rot = math.cos(model.rotation)
        sin_rot = math.sin(model.rotation)
        return (
            model.cx + local_x * cos_rot - local_y * sin_rot,
            model.cy + local_x * sin_rot + local_y * cos_rot,
        )
    if model.shape == "circle":
        angle = sign * (index / total_frames) * 2 * math.pi + model.phase
        return (
            model.cx + model.r * math.cos(angle),
            model.cy + model.r * math.sin(angle),
        )
    if model.shape == "square":
        turn = sign * (index / total_frames) + model.phase
        return square_point_at(model.cx, model.cy, model.size, turn)
    if model.shape == "tangent":
        return interpolate_tangent(model.points, index, total_frames)
    if model.shape == "linear":
        return interpolate_linear(model.points, index, total_frames)
    raise ValueError(f"Unknown auto-fill shape: {model.shape!r}")


def sample_positions(model, total_frames, direction, keyframes):
    """
    One (x, y) per frame index from a fitted model.

    model may also be a plain dict as produced by model_dump(). Frames that
    carry a keyframe get the keyframe's exact position. Returns None when
    there is no model or no frames.
    """
    if model is None or total_frames <= 0:
        return None
    if isinstance(model, dict):
        model = parse_autofill_model(model)

    sign = direction_sign(direction)
    positions = [_sample_one(model, index, total_frames, sign) for index in range(total_frames)]

    for keyframe in keyframes:
        if 0 <= keyframe.frame_index < total_frames:
            positions[keyframe.frame_index] = (keyframe.x, keyframe.y)

    return positions


def apply_autofill(frames, point_id, positions):
    """
    Write sampled positions into frames where the point is not a keyframe.

    Positions are rounded and clamped to the frame. Returns a new frame
    list; frames that are not touched are returned as-is.
    """
    if not positions:
        return list(frames)

    updated = []
    for index, frame in enumerate(frames):
        point = frame.find_point(point_id)
        target = positions[index] if index < len(positions) else None
        if point is None or point.is_keyframe or target is None:
            updated.append(frame)
            continue

        next_x = clamp(round_half_up(target[0]), 0, frame.width)
        next_y = clamp(round_half_up(target[1]), 0, frame.height)
        points = [
            p.model_copy(update={"x": next_x, "y": next_y}) if p.id == point_id else p
            for p in frame.points
        ]
        updated.append(frame.model_copy(update={"points": points}))

    return updated


@trace(label="autofill_all_points")
def autofill_all_points(frames, shape, direction, phase_steps=PHASE_STEPS):
    """
    Auto-fill every logical point in the frame list.

    Points with fewer than 2 keyframes are left as they are.
    """
    tracer = get_tracer()

    total_frames = len(frames)
    filled = 0
    skipped = []

    for point_id in logical_point_ids(frames):
        keyframes = collect_keyframes(frames, point_id)
        model = build_autofill_model(keyframes, total_frames, shape, direction, phase_steps)
        positions = sample_positions(model, total_frames, direction, keyframes)
        if positions is None:
            skipped.append(point_id)
            continue
        frames = apply_autofill(frames, point_id, positions)
        filled += 1

    tracer.event(f"Auto-filled {filled} points, skipped {len(skipped)}", shape=getattr(shape, "value", shape))
    if skipped:
        tracer.event("Points without enough keyframes", level="WARN", point_ids=skipped)

    return frames
