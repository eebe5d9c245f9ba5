# shapegrammar/language/interval.py
"""
Interval-valued numbers used by every property of the generative tree.

A value is either a plain float or an Interval covering [start, end]. The
arithmetic operators of Interval work pointwise: an interval combined with a
float broadcasts the float, two intervals combine start-with-start and
end-with-end. No ordering between start and end is enforced; every query
that needs the lower or upper bound sorts them itself.

The helper functions below accept either representation and return the same
representation they were given, so composition code can be written once:

    >>> Interval(1.0, 2.0) * 0.5
    Interval(start=0.5, end=1.0)
    >>> mod360(Interval(-30.0, 370.0))
    Interval(start=330.0, end=10.0)
    >>> max_value(3.0)
    3.0
"""
import math
from dataclasses import dataclass
from typing import Callable, Union

import numpy as np


@dataclass(frozen=True)
class Interval:
    start: float
    end: float

    def map(self, fn: Callable[[float], float]) -> "Interval":
        return Interval(fn(self.start), fn(self.end))

    def _combine(self, other, fn):
        if isinstance(other, Interval):
            return Interval(fn(self.start, other.start), fn(self.end, other.end))
        return Interval(fn(self.start, other), fn(self.end, other))

    def __add__(self, other):
        return self._combine(other, lambda a, b: a + b)

    def __radd__(self, other):
        return self.map(lambda x: other + x)

    def __sub__(self, other):
        return self._combine(other, lambda a, b: a - b)

    def __rsub__(self, other):
        return self.map(lambda x: other - x)

    def __mul__(self, other):
        return self._combine(other, lambda a, b: a * b)

    def __rmul__(self, other):
        return self.map(lambda x: other * x)

    def __neg__(self):
        return self.map(lambda x: -x)


Value = Union[float, Interval]


def apply(value: Value, fn: Callable[[float], float]) -> Value:
    """Applies a scalar function to a value, pointwise over intervals."""
    if isinstance(value, Interval):
        return value.map(fn)
    return fn(value)


def bounds(value: Value) -> tuple:
    """Returns (start, end) as stored; a float is its own start and end."""
    if isinstance(value, Interval):
        return value.start, value.end
    return value, value


def min_value(value: Value) -> float:
    start, end = bounds(value)
    return min(start, end)


def max_value(value: Value) -> float:
    start, end = bounds(value)
    return max(start, end)


def max_abs(value: Value) -> float:
    start, end = bounds(value)
    return max(abs(start), abs(end))


def min_abs(value: Value) -> float:
    start, end = bounds(value)
    return min(abs(start), abs(end))


def random_value(value: Value, rng: np.random.Generator) -> float:
    """Resolves a value to one float, sampling intervals uniformly."""
    if not isinstance(value, Interval):
        return value
    low, high = sorted((value.start, value.end))
    if low == high:
        return low
    if not (math.isfinite(low) and math.isfinite(high)):
        # uniform() rejects infinite bounds; inf and nan propagate instead
        return low + (high - low) * float(rng.random())
    return float(rng.uniform(low, high))


def floor_at(value: Value, minimum: float) -> Value:
    return apply(value, lambda x: max(x, minimum))


def cap_at(value: Value, maximum: float) -> Value:
    return apply(value, lambda x: min(x, maximum))


def clamp(value: Value, minimum: float, maximum: float) -> Value:
    return apply(value, lambda x: min(max(x, minimum), maximum))


def cos_degrees(value: Value) -> Value:
    return apply(value, lambda x: math.cos(math.radians(x)))


def sin_degrees(value: Value) -> Value:
    return apply(value, lambda x: math.sin(math.radians(x)))


def _wrap_degrees(x: float) -> float:
    wrapped = x % 360.0
    # tiny negative inputs round up to exactly 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def mod360(value: Value) -> Value:
    return apply(value, _wrap_degrees)
