# shapegrammar/language/properties.py
"""
Node properties and the parent-to-child composition rule.

Every node of the generative tree carries twelve properties. Eleven of them
are interval-valued; depth is a plain integer:

    p  uniform scale            x, y  position
    l  length (vertical extent) r     rotation in degrees
    w  width (horizontal)       h     hue in degrees
    c  corner radius            s, v  saturation and value/lightness
    a  alpha                    d     recursion depth

An invocation's own assignments are relative. They are overlaid on the
additive defaults and then composed with the parent's absolute properties
to obtain the child's absolute properties (see NodeProperties.compose).
"""
import math
from dataclasses import dataclass, fields
from enum import Enum

from .errors import UnknownProperty
from .interval import (
    Value, clamp, cos_degrees, floor_at, max_value, mod360, sin_degrees,
)


class PropertyType(Enum):
    """The slider range of a property, as (minimum, maximum, step)."""
    ANY_POSITIVE = (0.0, 2.0, 0.05)
    ANY = (-2.0, 2.0, 0.05)
    UNIT_INTERVAL = (0.0, 1.0, 0.05)
    DEGREES = (0.0, 360.0, 5.0)
    DEPTH = (0.0, 10.0, 1.0)

    def deconstruct(self) -> tuple:
        return self.value


class PropertyKey(Enum):
    P = "p"
    L = "l"
    W = "w"
    C = "c"
    X = "x"
    Y = "y"
    R = "r"
    H = "h"
    S = "s"
    V = "v"
    A = "a"
    D = "d"

    @classmethod
    def from_name(cls, name: str) -> "PropertyKey":
        try:
            return cls(name.lower())
        except ValueError:
            raise UnknownProperty(name) from None

    @property
    def property_type(self) -> PropertyType:
        return _PROPERTY_TYPES[self]


_PROPERTY_TYPES = {
    PropertyKey.P: PropertyType.ANY_POSITIVE,
    PropertyKey.L: PropertyType.ANY_POSITIVE,
    PropertyKey.W: PropertyType.ANY_POSITIVE,
    PropertyKey.C: PropertyType.UNIT_INTERVAL,
    PropertyKey.X: PropertyType.ANY,
    PropertyKey.Y: PropertyType.ANY,
    PropertyKey.R: PropertyType.DEGREES,
    PropertyKey.H: PropertyType.DEGREES,
    PropertyKey.S: PropertyType.UNIT_INTERVAL,
    PropertyKey.V: PropertyType.UNIT_INTERVAL,
    PropertyKey.A: PropertyType.UNIT_INTERVAL,
    PropertyKey.D: PropertyType.DEPTH,
}


@dataclass
class NodeProperties:
    p: Value = 1.0
    l: Value = 1.0
    w: Value = 1.0
    c: Value = 0.0
    x: Value = 0.0
    y: Value = 0.0
    r: Value = 0.0
    h: Value = 0.0
    s: Value = 0.0
    v: Value = 0.0
    a: Value = 1.0
    d: int = 0

    @classmethod
    def initial(cls) -> "NodeProperties":
        """Absolute properties of the synthetic root: full saturation, black."""
        return cls(s=1.0, v=0.0, d=0)

    @classmethod
    def additive(cls) -> "NodeProperties":
        """Relative defaults onto which an invocation's assignments are laid."""
        return cls(s=0.0, v=0.0, d=1)

    @classmethod
    def from_assignments(cls, assignments, constants, context: "NodeProperties", rng) -> "NodeProperties":
        """
        Evaluates an invocation's assignments into relative properties.

        Args:
            assignments: Iterable of objects with `key` (PropertyKey) and `value`
                (ExpressionOrRange), applied in order so later ones win.
            constants: Mapping of lower-case constant names to floats.
            context: Absolute properties of the parent node; `@key` reads from it.
            rng: numpy Generator used by random ranges.

        Returns:
            NodeProperties starting from the additive defaults.
        """
        properties = cls.additive()
        for assignment in assignments:
            properties.set(assignment.key, assignment.value.evaluate(constants, context, rng))
        return properties

    def get(self, key: PropertyKey) -> Value:
        if key is PropertyKey.D:
            return float(self.d)
        return getattr(self, key.value)

    def set(self, key: PropertyKey, value: Value) -> None:
        if key is PropertyKey.D:
            depth = max_value(value)
            self.d = max(0, round(depth)) if math.isfinite(depth) else 0
        else:
            setattr(self, key.value, value)

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def compose(self, child: "NodeProperties") -> "NodeProperties":
        """
        Makes absolute child properties from the child's relative properties.

        Scale and extents multiply, position is rotated and scaled by the
        parent before being added, angles wrap at 360, colour channels are
        additive offsets clamped to [0, 1] and alpha compounds
        multiplicatively.

        Examples:
            >>> parent = NodeProperties.initial()
            >>> child = NodeProperties.additive()
            >>> child.p, child.x = 0.5, 0.25
            >>> parent.compose(child).x
            0.25
        """
        cos_r, sin_r = cos_degrees(self.r), sin_degrees(self.r)
        dx = self.p * (cos_r * child.x - sin_r * child.y)
        dy = self.p * (sin_r * child.x + cos_r * child.y)
        return NodeProperties(
            p=floor_at(self.p * child.p, 0.0),
            l=self.l * floor_at(child.l, 0.0),
            w=self.w * floor_at(child.w, 0.0),
            c=clamp(self.c + child.c, 0.0, 1.0),
            x=self.x + dx,
            y=self.y + dy,
            r=mod360(self.r + child.r),
            h=mod360(self.h + child.h),
            s=clamp(self.s + child.s, 0.0, 1.0),
            v=clamp(self.v + child.v, 0.0, 1.0),
            a=clamp(self.a * child.a, 0.0, 1.0),
            d=self.d + child.d,
        )
