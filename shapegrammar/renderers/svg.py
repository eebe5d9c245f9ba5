# shapegrammar/renderers/svg.py
"""
SVG markup renderer.

Every primitive node becomes one element drawn from its absolute
properties, and the elements are concatenated depth-first inside a single
<svg> container whose view box is the unit canvas [-1, 1] x [-1, 1].

Example output for `circle v0.5`:
    <svg xmlns="http://www.w3.org/2000/svg" viewBox="-1 -1 2 2" width="100%" height="100%">
    <ellipse cx="0" cy="0" rx="1" ry="1" fill="hsl(0, 100%, 50%)" opacity="100%" stroke="none"/>
    </svg>
"""
import numpy as np

from ..language.expansion import Node
from ..language.grammar import Primitive
from .base import BaseRenderer, ResolvedShape

SVG_OPEN = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="-1 -1 2 2" width="100%" height="100%">'
SVG_CLOSE = "</svg>"


def _fmt(value: float) -> str:
    return f"{value:.6g}"


def _paint(shape: ResolvedShape) -> str:
    return (f'fill="hsl({_fmt(shape.h)}, {_fmt(shape.s * 100)}%, {_fmt(shape.v * 100)}%)" '
            f'opacity="{_fmt(shape.a * 100)}%" stroke="none"')


def _rotation(shape: ResolvedShape) -> str:
    if shape.r == 0.0:
        return ""
    return f' transform="rotate({_fmt(shape.r)} {_fmt(shape.x)} {_fmt(shape.y)})"'


class SvgRenderer(BaseRenderer):
    """
    Renders an expanded tree to an SVG document.

    Examples:
        >>> from shapegrammar.language.parser import parse_program
        >>> from shapegrammar.language.expansion import expand
        >>> svg = SvgRenderer().evaluate(expand(parse_program("circle v0.5")).root)
        >>> svg.count("<ellipse")
        1
    """
    def __init__(self, seed: int = 0):
        super().__init__(seed)
        self._register_markup()

    def _register_markup(self):
        self.primitives.update({
            Primitive.CIRCLE: self._draw_ellipse,
            Primitive.SQUARE: self._draw_rect,
        })

    def _draw_ellipse(self, shape: ResolvedShape) -> str:
        return (f'<ellipse cx="{_fmt(shape.x)}" cy="{_fmt(shape.y)}" '
                f'rx="{_fmt(shape.half_width)}" ry="{_fmt(shape.half_length)}" '
                f'{_paint(shape)}{_rotation(shape)}/>')

    def _draw_rect(self, shape: ResolvedShape) -> str:
        return (f'<rect x="{_fmt(shape.x - shape.half_width)}" y="{_fmt(shape.y - shape.half_length)}" '
                f'width="{_fmt(2 * shape.half_width)}" height="{_fmt(2 * shape.half_length)}" '
                f'rx="{_fmt(shape.corner_radius)}" ry="{_fmt(shape.corner_radius)}" '
                f'{_paint(shape)}{_rotation(shape)}/>')

    def draw_outline(self, shape: ResolvedShape, points: np.ndarray) -> str:
        coordinates = " ".join(f"{_fmt(px)},{_fmt(py)}" for px, py in points)
        return f'<polygon points="{coordinates}" {_paint(shape)}{_rotation(shape)}/>'

    def evaluate(self, root: Node) -> str:
        """Returns the complete SVG document for the tree below `root`."""
        return "\n".join([SVG_OPEN, *self.render_nodes(root), SVG_CLOSE])
