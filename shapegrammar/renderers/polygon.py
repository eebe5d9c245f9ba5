# shapegrammar/renderers/polygon.py
"""
Filled-polygon renderer feeding the Cairo raster backend.

Every primitive node is converted into an outline (numpy array of shape
(N, 2), absolute coordinates, rotation applied) paired with an RGBA colour.
Curved shapes are sampled: ellipses with ELLIPSE_NUM_POINTS vertices and the
rounded corners of squares with CORNER_NUM_POINTS vertices each.
"""
import math

import numpy as np

from ..language.expansion import Node
from ..language.grammar import Primitive
from .base import BaseRenderer, ResolvedShape, hsl_to_rgb, rotation_matrix

ELLIPSE_NUM_POINTS = 60
CORNER_NUM_POINTS = 8

# Unit circle, first point straight up like the polygon vertices.
_unit_circle = np.array([(math.sin(t), -math.cos(t))
                         for t in np.linspace(0.0, 2.0 * math.pi, num=ELLIPSE_NUM_POINTS, endpoint=False)])


def _rounded_rectangle(half_width: float, half_length: float, radius: float) -> np.ndarray:
    """Outline of a rectangle centred on the origin with circular corners."""
    radius = min(radius, half_width, half_length)
    if radius <= 0.0:
        return np.array([(-half_width, -half_length), (half_width, -half_length),
                         (half_width, half_length), (-half_width, half_length)])
    corners = [
        ((half_width - radius, -half_length + radius), -0.5 * math.pi),
        ((half_width - radius, half_length - radius), 0.0),
        ((-half_width + radius, half_length - radius), 0.5 * math.pi),
        ((-half_width + radius, -half_length + radius), math.pi),
    ]
    points = []
    for (cx, cy), start in corners:
        for t in np.linspace(start, start + 0.5 * math.pi, num=CORNER_NUM_POINTS):
            points.append((cx + radius * math.cos(t), cy + radius * math.sin(t)))
    return np.array(points)


class PolygonRenderer(BaseRenderer):
    """
    Renders an expanded tree to a list of filled outlines.

    Output format: list of (points, (r, g, b, a)) tuples where points is a
    numpy array of shape (N, 2) and the colour channels lie in [0, 1].

    Examples:
        >>> from shapegrammar.language.parser import parse_program
        >>> from shapegrammar.language.expansion import expand
        >>> shapes = PolygonRenderer().evaluate(expand(parse_program("hexagon p0.5")).root)
        >>> shapes[0][0].shape
        (6, 2)
    """
    def __init__(self, seed: int = 0):
        super().__init__(seed)
        self._register_outlines()

    def _register_outlines(self):
        self.primitives.update({
            Primitive.CIRCLE: self._draw_ellipse,
            Primitive.SQUARE: self._draw_rect,
        })

    def _draw_ellipse(self, shape: ResolvedShape):
        return self.draw_outline(shape, shape.outline(_unit_circle))

    def _draw_rect(self, shape: ResolvedShape):
        local = _rounded_rectangle(shape.half_width, shape.half_length, shape.corner_radius)
        return self.draw_outline(shape, local + np.array([shape.x, shape.y]))

    def draw_outline(self, shape: ResolvedShape, points: np.ndarray):
        if shape.r != 0.0:
            anchor = np.array([shape.x, shape.y])
            points = (points - anchor) @ rotation_matrix(shape.r).T + anchor
        color = (*hsl_to_rgb(shape.h, shape.s, shape.v), shape.a)
        return points, color

    def evaluate(self, root: Node) -> list:
        return self.render_nodes(root)
