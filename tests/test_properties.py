import math

import pytest

from shapegrammar.language.errors import UnknownProperty
from shapegrammar.language.expression import ExpressionOrRange, Number
from shapegrammar.language.grammar import Assignment
from shapegrammar.language.interval import Interval
from shapegrammar.language.properties import NodeProperties, PropertyKey, PropertyType


def relative(**values):
    child = NodeProperties.additive()
    for name, value in values.items():
        child.set(PropertyKey.from_name(name), value)
    return child


class TestKeys:
    def test_from_name_ignores_case(self):
        assert PropertyKey.from_name("H") is PropertyKey.H

    def test_unknown_key(self):
        with pytest.raises(UnknownProperty):
            PropertyKey.from_name("q")

    @pytest.mark.parametrize("key, property_type", [
        (PropertyKey.P, PropertyType.ANY_POSITIVE),
        (PropertyKey.X, PropertyType.ANY),
        (PropertyKey.A, PropertyType.UNIT_INTERVAL),
        (PropertyKey.R, PropertyType.DEGREES),
        (PropertyKey.D, PropertyType.DEPTH),
    ])
    def test_property_types(self, key, property_type):
        assert key.property_type is property_type

    def test_deconstruct(self):
        assert PropertyType.DEGREES.deconstruct() == (0.0, 360.0, 5.0)


class TestDepth:
    @pytest.mark.parametrize("value, depth", [
        (2.4, 2),
        (Interval(0.2, 2.6), 3),
        (-4.0, 0),
        (math.inf, 0),
    ])
    def test_depth_is_a_non_negative_integer(self, value, depth):
        properties = NodeProperties.additive()
        properties.set(PropertyKey.D, value)
        assert properties.d == depth

    def test_get_returns_float(self):
        assert NodeProperties.additive().get(PropertyKey.D) == 1.0


class TestAssignments:
    def test_later_assignment_wins(self):
        assignments = [
            Assignment(PropertyKey.P, ExpressionOrRange(Number(0.5))),
            Assignment(PropertyKey.P, ExpressionOrRange(Number(0.25))),
        ]
        properties = NodeProperties.from_assignments(assignments, {}, NodeProperties.initial(), None)
        assert properties.p == 0.25
        assert properties.d == 1


class TestCompose:
    def test_defaults_only_add_depth(self):
        parent = NodeProperties.initial()
        child = parent.compose(NodeProperties.additive())
        assert child.as_dict() == {**parent.as_dict(), "d": 1}

    def test_scale_and_extents_multiply(self):
        parent = NodeProperties(p=0.5, w=2.0, l=0.5)
        child = parent.compose(relative(p=0.5, w=0.5, l=-1.0))
        assert (child.p, child.w, child.l) == (0.25, 1.0, 0.0)

    def test_scale_floors_at_zero(self):
        assert NodeProperties(p=0.5).compose(relative(p=-1.0)).p == 0.0

    def test_position_rotates_and_scales_with_parent(self):
        parent = NodeProperties(p=2.0, r=90.0, x=0.1)
        child = parent.compose(relative(x=1.0))
        assert child.x == pytest.approx(0.1)
        assert child.y == pytest.approx(2.0)

    def test_angles_wrap(self):
        child = NodeProperties(r=350.0, h=300.0).compose(relative(r=20.0, h=-70.0))
        assert child.r == pytest.approx(10.0)
        assert child.h == pytest.approx(230.0)

    def test_colour_channels_clamp(self):
        child = NodeProperties(s=1.0, v=0.2, c=0.8).compose(relative(s=0.5, v=-0.5, c=0.5))
        assert (child.s, child.v, child.c) == (1.0, 0.0, 1.0)

    def test_alpha_compounds(self):
        assert NodeProperties(a=0.5).compose(relative(a=0.5)).a == 0.25

    def test_intervals_propagate(self):
        child = NodeProperties(p=Interval(1.0, 2.0)).compose(relative(p=0.5))
        assert child.p == Interval(0.5, 1.0)