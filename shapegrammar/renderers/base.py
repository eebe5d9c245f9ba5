# shapegrammar/renderers/base.py
"""
Base renderer class providing the common interface for all output sinks.

This module defines the abstract base class that every renderer inherits
from. It owns the table of drawing functions keyed by primitive kind, the
resolution of a node's interval-valued properties into concrete numbers, and
the unit vertex geometry shared by the markup and raster sinks.
"""
import abc
import colorsys
import math
from dataclasses import dataclass

import numpy as np

from ..language.expansion import Node
from ..language.grammar import Primitive, PrimitiveMethod
from ..language.interval import random_value

# Isosceles triangle with its apex straight up and its base along the bottom edge.
RIGHT_TRIANGLE_POINTS = np.array([(0.0, -1.0), (1.0, 1.0), (-1.0, 1.0)])


def polygon_points(sides: int) -> np.ndarray:
    """
    Returns the vertices of a regular polygon on the unit circle.

    The first vertex sits straight up at (0, -1) in screen coordinates and
    the others follow at equal angles.

    Args:
        sides: Number of vertices.

    Returns:
        numpy array of shape (sides, 2).

    Examples:
        >>> polygon_points(4).round(6)
        array([[-0., -1.],
               [-1., -0.],
               [-0.,  1.],
               [ 1.,  0.]])
    """
    radians = np.radians(360.0 * np.arange(sides) / sides)
    return np.column_stack((-np.sin(radians), -np.cos(radians)))


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> tuple:
    """Converts hue in degrees and unit saturation/lightness to an RGB triple in [0, 1]."""
    return colorsys.hls_to_rgb((hue % 360.0) / 360.0, lightness, saturation)


@dataclass(frozen=True)
class ResolvedShape:
    """A primitive with every property resolved to one float."""
    primitive: Primitive
    x: float
    y: float
    p: float
    w: float
    l: float
    c: float
    r: float
    h: float
    s: float
    v: float
    a: float

    @property
    def half_width(self) -> float:
        return self.p * self.w

    @property
    def half_length(self) -> float:
        return self.p * self.l

    @property
    def corner_radius(self) -> float:
        return self.p * self.c

    def outline(self, points: np.ndarray) -> np.ndarray:
        """Scales unit vertices by the half extents and moves them to the anchor."""
        return points * np.array([self.half_width, self.half_length]) + np.array([self.x, self.y])


class BaseRenderer(abc.ABC):
    """
    Abstract base class for renderers of an expanded tree.

    Each renderer keeps a table of drawing functions keyed by Primitive. The
    shared registration maps every regular polygon onto the same polygon
    drawer, so subclasses only register what they draw differently.

    Attributes:
        primitives (dict): Primitive -> callable(ResolvedShape) producing output.
        seed (int): Seed of the generator that resolves intervals; every call
            to evaluate() starts from it, so equal trees render identically.
    """
    def __init__(self, seed: int = 0):
        self.seed = seed
        self.primitives = {}
        self._register_shared()

    def _register_shared(self):
        """Registers the regular polygons and the right triangle on the polygon drawer."""
        for primitive in Primitive:
            if primitive.sides is not None:
                self.primitives[primitive] = self._draw_polygon
        self.primitives[Primitive.RIGHT_TRIANGLE] = self._draw_right_triangle

    def _draw_polygon(self, shape: ResolvedShape):
        return self.draw_outline(shape, shape.outline(polygon_points(shape.primitive.sides)))

    def _draw_right_triangle(self, shape: ResolvedShape):
        return self.draw_outline(shape, shape.outline(RIGHT_TRIANGLE_POINTS))

    @abc.abstractmethod
    def draw_outline(self, shape: ResolvedShape, points: np.ndarray):
        """Produces output for a closed outline given in absolute coordinates."""
        raise NotImplementedError

    @abc.abstractmethod
    def evaluate(self, root: Node):
        """
        Renders an expanded tree.

        Args:
            root: Root node returned by expand().

        Returns:
            Renderer-specific output (markup text, list of filled shapes, ...).
        """
        raise NotImplementedError

    @staticmethod
    def resolve(node: Node, rng: np.random.Generator) -> ResolvedShape:
        """Samples every property of a primitive node, in a fixed order."""
        props = node.properties
        values = {
            name: random_value(getattr(props, name), rng)
            for name in ("x", "y", "p", "w", "l", "c", "r", "h", "s", "v", "a")
        }
        return ResolvedShape(primitive=node.invocation.method.primitive, **values)

    def render_nodes(self, root: Node) -> list:
        """Draws every primitive node depth-first; rule and root nodes draw nothing."""
        rng = np.random.default_rng(self.seed)
        drawn = []
        for node in root.iter_nodes():
            if isinstance(node.invocation.method, PrimitiveMethod):
                shape = self.resolve(node, rng)
                drawn.append(self.primitives[shape.primitive](shape))
        return drawn


def rotation_matrix(degrees: float) -> np.ndarray:
    radians = math.radians(degrees)
    cos_r, sin_r = math.cos(radians), math.sin(radians)
    return np.array([[cos_r, -sin_r], [sin_r, cos_r]])
