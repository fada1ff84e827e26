"""Tests for numeric primitives."""

import math

import pytest

from nosgen.fitting.primitives import (
    clamp,
    direction_sign,
    normalize_angle,
    normalize_cycle,
    round_half_up,
    solve_linear,
)


class TestSolveLinear:
    """Tests for the least-squares line fit."""

    def test_recovers_exact_line(self):
        """Noise-free samples give back intercept and slope."""
        xs = [-3.0, -1.0, 0.5, 2.0, 7.0]
        ys = [4.0 - 1.5 * x for x in xs]

        fit = solve_linear(xs, ys)

        assert fit.valid
        assert fit.intercept == pytest.approx(4.0, abs=1e-6)
        assert fit.slope == pytest.approx(-1.5, abs=1e-6)

    def test_identical_inputs_are_degenerate(self):
        """All inputs equal: slope 0, intercept is the mean output."""
        fit = solve_linear([2.0, 2.0, 2.0], [1.0, 2.0, 6.0])

        assert not fit.valid
        assert fit.slope == 0.0
        assert fit.intercept == pytest.approx(3.0)

    def test_empty_input(self):
        fit = solve_linear([], [])

        assert not fit.valid
        assert fit.intercept == 0.0
        assert fit.slope == 0.0


class TestRounding:

    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(0.49) == 0

    def test_negative_half_rounds_toward_positive(self):
        """Matches JavaScript Math.round, unlike Python's round()."""
        assert round_half_up(-2.5) == -2
        assert round_half_up(-2.6) == -3

    def test_clamp(self):
        assert clamp(-5, 0, 10) == 0
        assert clamp(15, 0, 10) == 10
        assert clamp(4, 0, 10) == 4


class TestNormalize:

    def test_cycle_wraps_negative(self):
        assert normalize_cycle(-0.25) == pytest.approx(0.75)

    def test_cycle_never_returns_one(self):
        assert normalize_cycle(1.0) == 0.0
        assert normalize_cycle(-1e-17) < 1.0

    def test_angle_range(self):
        angle = normalize_angle(-math.pi / 2)
        assert angle == pytest.approx(3 * math.pi / 2)
        assert 0 <= normalize_angle(5 * math.pi) < 2 * math.pi


class TestDirectionSign:

    def test_known_directions(self):
        assert direction_sign("clockwise") == 1
        assert direction_sign("counterclockwise") == -1

    def test_enum_accepted(self):
        from nosgen.models import SpriteDirection
        assert direction_sign(SpriteDirection.COUNTERCLOCKWISE) == -1

    def test_unknown_direction_raises(self):
        with pytest.raises(ValueError):
            direction_sign("sideways")
