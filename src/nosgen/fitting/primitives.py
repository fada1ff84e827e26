"""
Numeric primitives shared by the shape fitters and the atlas code.
"""

import math
from dataclasses import dataclass

import numpy as np

from nosgen.models import SpriteDirection, parse_enum

DEGENERATE_EPSILON = 1e-6


@dataclass(frozen=True)
class LinearFit:
    """Result of a one-variable least-squares line fit."""
    intercept: float
    slope: float
    valid: bool


def clamp(value, min_value, max_value):
    return min(max_value, max(min_value, value))


def round_half_up(value):
    """Round to the nearest integer with halves going up, as the wire format does."""
    return int(math.floor(value + 0.5))


def normalize_cycle(value):
    """Wrap a turn value into [0, 1)."""
    wrapped = value % 1.0
    # -1e-17 % 1.0 == 1.0 in floating point
    return 0.0 if wrapped >= 1.0 else wrapped


def normalize_angle(angle):
    """Wrap an angle in radians into [0, 2*pi)."""
    return normalize_cycle(angle / (2 * math.pi)) * 2 * math.pi


def direction_sign(direction):
    """+1 for clockwise, -1 for counterclockwise."""
    parsed = parse_enum(SpriteDirection, direction)
    if parsed is None:
        raise ValueError(f"Unknown sprite direction: {direction!r}")
    return 1 if parsed == SpriteDirection.CLOCKWISE else -1


def solve_linear(inputs, outputs, epsilon=DEGENERATE_EPSILON):
    """
    Least-squares fit of outputs ~ intercept + slope * inputs.

    Closed-form normal equations. When the determinant n*Sxx - Sx^2 is
    below epsilon the inputs carry no slope information; the result is then
    marked invalid with slope 0 and the mean output as intercept.
    """
    inputs = np.asarray(inputs, dtype=float)
    outputs = np.asarray(outputs, dtype=float)
    count = len(inputs)

    if count == 0:
        return LinearFit(intercept=0.0, slope=0.0, valid=False)

    sum_input = float(np.sum(inputs))
    sum_input2 = float(np.sum(inputs * inputs))
    sum_output = float(np.sum(outputs))
    sum_output_input = float(np.sum(outputs * inputs))

    det = count * sum_input2 - sum_input * sum_input
    if abs(det) < epsilon:
        return LinearFit(intercept=sum_output / count, slope=0.0, valid=False)

    intercept = (sum_output * sum_input2 - sum_input * sum_output_input) / det
    slope = (count * sum_output_input - sum_input * sum_output) / det
    return LinearFit(intercept=intercept, slope=slope, valid=True)
