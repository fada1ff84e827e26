"""
Parametric shape fits through sparse keyframes.

Keyframes are treated as samples of uniform motion around a closed shape:
a keyframe at frame i of N sits at angle sign * (i / N) * 2*pi plus an
unknown phase. The phase is found by brute-force search over a fixed grid;
for each candidate phase the remaining parameters have a closed-form
least-squares solution. The search has no randomness, so identical input
always yields identical output.
"""

import math

import numpy as np

from nosgen.fitting.primitives import (
    DEGENERATE_EPSILON,
    clamp,
    direction_sign,
    normalize_angle,
    normalize_cycle,
    solve_linear,
)
from nosgen.models import CircleModel, EllipseModel, SquareModel
from nosgen.tracer import get_tracer, trace

PHASE_STEPS = 720


def _base_angles(keyframes, total_frames, direction):
    sign = direction_sign(direction)
    return np.array([
        sign * (kf.frame_index / total_frames) * 2 * math.pi
        for kf in keyframes
    ])


@trace(label="compute_ellipse_fit")
def compute_ellipse_fit(keyframes, total_frames, direction, phase_steps=PHASE_STEPS):
    """
    Fit an axis-aligned ellipse x = cx + rx*cos(a), y = cy + ry*sin(a).

    Args:
        keyframes: list of KeyframePoint
        total_frames: number of frames in the cycle
        direction: SpriteDirection or its string value
        phase_steps: number of phase candidates over one full turn

    Returns:
        EllipseModel, or None with fewer than 2 keyframes, no frames, or
        when every phase candidate was degenerate.
    """
    if len(keyframes) < 2 or total_frames <= 0:
        return None

    base_angles = _base_angles(keyframes, total_frames, direction)
    xs = np.array([kf.x for kf in keyframes], dtype=float)
    ys = np.array([kf.y for kf in keyframes], dtype=float)

    best = None
    skipped = 0

    for step in range(phase_steps):
        phase = (step / phase_steps) * 2 * math.pi
        cos_values = np.cos(base_angles + phase)
        sin_values = np.sin(base_angles + phase)

        x_fit = solve_linear(cos_values, xs)
        y_fit = solve_linear(sin_values, ys)
        if not x_fit.valid or not y_fit.valid:
            skipped += 1
            continue

        fitted_x = x_fit.intercept + x_fit.slope * cos_values
        fitted_y = y_fit.intercept + y_fit.slope * sin_values
        error = float(np.sum((fitted_x - xs) ** 2 + (fitted_y - ys) ** 2))

        if best is None or error < best[0]:
            best = (error, x_fit.intercept, y_fit.intercept, x_fit.slope, y_fit.slope, phase)

    if best is None:
        get_tracer().event("Ellipse fit: every phase candidate degenerate", level="DEBUG")
        return None

    error, cx, cy, rx, ry, phase = best
    if rx < 0 and ry < 0:
        # same curve, half a turn later
        rx, ry, phase = -rx, -ry, normalize_angle(phase + math.pi)

    get_tracer().event(
        "Ellipse fit", level="DEBUG", error=error, skipped=skipped, phase=phase,
    )

    return EllipseModel(cx=cx, cy=cy, rx=abs(rx), ry=abs(ry), phase=phase)


@trace(label="compute_circle_fit")
def compute_circle_fit(keyframes, total_frames, direction, phase_steps=PHASE_STEPS):
    """
    Fit a circle x = cx + r*cos(a), y = cy + r*sin(a) with one shared radius.

    For a fixed phase the radius has the closed form

        r = (S(x*c + y*s) - (Sc*Sx + Ss*Sy)/n) / (S(c^2 + s^2) - (Sc^2 + Ss^2)/n)

    and the center follows as cx = (Sx - r*Sc)/n, cy = (Sy - r*Ss)/n.

    This is the exact least-squares radius. The shorter identity with
    denominator S(c^2 + s^2) alone drops the (Sc^2 + Ss^2)/n term; the two
    agree only when the keyframe angles are balanced (Sc = Ss = 0). A
    denominator below DEGENERATE_EPSILON (all keyframes at one angle) is
    replaced by 1, which also covers the exact zero case.
    """
    if len(keyframes) < 2 or total_frames <= 0:
        return None

    base_angles = _base_angles(keyframes, total_frames, direction)
    xs = np.array([kf.x for kf in keyframes], dtype=float)
    ys = np.array([kf.y for kf in keyframes], dtype=float)
    count = len(keyframes)
    sum_x = float(np.sum(xs))
    sum_y = float(np.sum(ys))

    best = None

    for step in range(phase_steps):
        phase = (step / phase_steps) * 2 * math.pi
        cos_values = np.cos(base_angles + phase)
        sin_values = np.sin(base_angles + phase)
        sum_c = float(np.sum(cos_values))
        sum_s = float(np.sum(sin_values))

        numerator = float(np.sum(xs * cos_values + ys * sin_values)) - (sum_c * sum_x + sum_s * sum_y) / count
        denominator = float(np.sum(cos_values ** 2 + sin_values ** 2)) - (sum_c ** 2 + sum_s ** 2) / count
        if abs(denominator) < DEGENERATE_EPSILON:
            denominator = 1.0

        r = numerator / denominator
        cx = (sum_x - r * sum_c) / count
        cy = (sum_y - r * sum_s) / count

        fitted_x = cx + r * cos_values
        fitted_y = cy + r * sin_values
        error = float(np.sum((fitted_x - xs) ** 2 + (fitted_y - ys) ** 2))

        if best is None or error < best[0]:
            best = (error, cx, cy, r, phase)

    error, cx, cy, r, phase = best
    if r < 0:
        r, phase = -r, normalize_angle(phase + math.pi)

    get_tracer().event("Circle fit", level="DEBUG", error=error, phase=phase)

    return CircleModel(cx=cx, cy=cy, r=r, phase=phase)


def _square_param(x, y, cx, cy, size):
    """
    Perimeter parameter in [0, 1) of a point on a square.

    Inverse of square_point_at: 0 is the top-right corner and the boundary
    is walked right edge down, bottom edge left, left edge up, top edge
    right. The point is first clamped into the square; the dominant axis
    of its offset picks the edge.
    """
    nx = clamp(x - cx, -size, size)
    ny = clamp(y - cy, -size, size)
    span = 2 * size

    if abs(nx) >= abs(ny):
        if nx >= 0:
            return 0.25 * (ny + size) / span
        return 0.5 + 0.25 * (size - ny) / span
    if ny >= 0:
        return 0.25 + 0.25 * (size - nx) / span
    return normalize_cycle(0.75 + 0.25 * (nx + size) / span)


@trace(label="compute_square_fit")
def compute_square_fit(keyframes, total_frames, direction):
    """
    Fit a square to keyframes.

    Center and half-size come from the keyframes' bounding box. The phase is
    the circular mean of each keyframe's perimeter parameter minus its
    expected progress sign * frame_index / total_frames, in turns.
    """
    if len(keyframes) < 2 or total_frames <= 0:
        return None

    sign = direction_sign(direction)
    xs = [kf.x for kf in keyframes]
    ys = [kf.y for kf in keyframes]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    cx = (min_x + max_x) / 2
    cy = (min_y + max_y) / 2
    size = max(1.0, max(max_x - min_x, max_y - min_y) / 2)

    offsets = np.array([
        _square_param(kf.x, kf.y, cx, cy, size) - sign * (kf.frame_index / total_frames)
        for kf in keyframes
    ])
    angles = offsets * 2 * math.pi
    mean_sin = float(np.mean(np.sin(angles)))
    mean_cos = float(np.mean(np.cos(angles)))
    phase = normalize_cycle(math.atan2(mean_sin, mean_cos) / (2 * math.pi))

    return SquareModel(cx=cx, cy=cy, size=size, phase=phase)


def square_point_at(cx, cy, size, turn):
    """
    Point on the square boundary at a turn value (any real, wrapped to [0, 1)).

    Each quarter turn is one edge, starting at the top-right corner.
    """
    step = normalize_cycle(turn) * 4
    segment = int(math.floor(step))
    local = step - segment
    span = 2 * size

    if segment == 0:
        return (cx + size, cy - size + local * span)
    if segment == 1:
        return (cx + size - local * span, cy + size)
    if segment == 2:
        return (cx - size, cy + size - local * span)
    return (cx - size + local * span, cy - size)
