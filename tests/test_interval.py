import math

import numpy as np
import pytest

from shapegrammar.language.interval import (
    Interval, clamp, floor_at, max_abs, max_value, min_value, mod360, random_value,
)


class TestArithmetic:
    def test_scalar_broadcasts(self):
        assert Interval(1.0, 2.0) * 0.5 == Interval(0.5, 1.0)
        assert 0.5 * Interval(1.0, 2.0) == Interval(0.5, 1.0)
        assert Interval(1.0, 2.0) + 1.0 == Interval(2.0, 3.0)

    def test_two_intervals_combine_pointwise(self):
        assert Interval(1.0, 2.0) + Interval(10.0, 20.0) == Interval(11.0, 22.0)
        assert Interval(1.0, 2.0) * Interval(-1.0, 3.0) == Interval(-1.0, 6.0)

    def test_reflected_subtraction_keeps_order(self):
        assert 3.0 - Interval(1.0, 2.0) == Interval(2.0, 1.0)
        assert -Interval(1.0, 2.0) == Interval(-1.0, -2.0)


class TestQueries:
    def test_unordered_bounds(self):
        value = Interval(2.0, -3.0)
        assert min_value(value) == -3.0
        assert max_value(value) == 2.0
        assert max_abs(value) == 3.0

    def test_floats_are_their_own_bounds(self):
        assert min_value(4.0) == max_value(4.0) == 4.0


class TestWrapping:
    def test_mod360_wraps_both_ends(self):
        assert mod360(Interval(-30.0, 370.0)) == Interval(330.0, 10.0)

    @pytest.mark.parametrize("degrees", [-1e-20, 360.0, 720.0, -360.0])
    def test_mod360_stays_below_360(self, degrees):
        wrapped = mod360(degrees)
        assert 0.0 <= wrapped < 360.0

    def test_clamp_and_floor(self):
        assert clamp(Interval(-0.5, 1.5), 0.0, 1.0) == Interval(0.0, 1.0)
        assert floor_at(-2.0, 0.0) == 0.0


class TestRandomValue:
    def test_float_passes_through(self):
        assert random_value(0.25, np.random.default_rng(0)) == 0.25

    def test_degenerate_interval(self):
        assert random_value(Interval(0.5, 0.5), np.random.default_rng(0)) == 0.5

    def test_sample_within_bounds_even_when_reversed(self):
        rng = np.random.default_rng(7)
        samples = [random_value(Interval(1.0, -1.0), rng) for _ in range(200)]
        assert all(-1.0 <= sample <= 1.0 for sample in samples)
        assert len(set(samples)) > 1

    def test_same_seed_same_sample(self):
        first = random_value(Interval(0.0, 10.0), np.random.default_rng(3))
        second = random_value(Interval(0.0, 10.0), np.random.default_rng(3))
        assert first == second
        assert not math.isnan(first)

    @pytest.mark.parametrize("interval", [
        Interval(0.0, math.inf),
        Interval(-math.inf, math.inf),
        Interval(1.0, math.nan),
    ])
    def test_non_finite_bounds_do_not_raise(self, interval):
        sample = random_value(interval, np.random.default_rng(0))
        assert not math.isfinite(sample)

    def test_half_open_infinite_interval_samples_infinity(self):
        assert random_value(Interval(0.0, math.inf), np.random.default_rng(0)) == math.inf
