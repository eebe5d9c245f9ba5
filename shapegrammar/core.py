# shapegrammar/core.py
"""
Core functionality for turning shape grammar programs into pictures.

This module glues the language and the renderers together. It includes:
- A helper that parses, optionally overrides constants, and expands a program
- Polygon rendering to raster images using Cairo graphics
- PNG and SVG export utilities
- CSV batch processing capabilities

The canvas is the square [-XYLIM, XYLIM] x [-XYLIM, XYLIM] with y pointing
down, the same frame the SVG view box uses.
"""
import os
import traceback
from typing import Mapping, Optional

import cairo
import imageio
import numpy as np
import pandas as pd

from .language.errors import GrammarError
from .language.expansion import ExpandSettings, ExpansionResult, expand
from .language.parser import parse_program
from .renderers.polygon import PolygonRenderer
from .renderers.svg import SvgRenderer


## --- Core Constants ---
XYLIM = 1.0  # Coordinate bounds for the rendering canvas (-XYLIM to +XYLIM)
CANVAS_WIDTH_HEIGHT = 512  # Output image dimensions in pixels


## --- Program to Tree ---
def build_tree(
    program_string: str,
    seed: int = 0,
    settings: Optional[ExpandSettings] = None,
    overrides: Optional[Mapping[str, float]] = None,
) -> ExpansionResult:
    """
    Parses and expands a program in one step.

    Args:
        program_string: Program text.
        seed: Seed of the expansion.
        settings: Budget and cull thresholds (ExpandSettings() if omitted).
        overrides: Constant values replacing (or adding to) the `let` values.

    Returns:
        The ExpansionResult with the root node and statistics.

    Raises:
        GrammarError: If the program does not parse or validate.

    Examples:
        >>> build_tree("let k 0.5\\ncircle p ?k", overrides={"k": 0.25}).root.children[0].properties.p
        0.25
    """
    grammar = parse_program(program_string)
    if overrides:
        grammar.override_constants(overrides)
    return expand(grammar, settings, seed)


## --- Raster Rendering ---
def render_shapes_to_image(
    shapes: list,
    canvas_dim: int = CANVAS_WIDTH_HEIGHT,
    coord_bound: float = XYLIM,
) -> np.ndarray:
    """
    Fills a list of outlines into a raster image using Cairo graphics.

    Args:
        shapes: List of (points, (r, g, b, a)) tuples as produced by
                PolygonRenderer.evaluate, points of shape (N, 2).
        canvas_dim: Output image size in pixels (square canvas)
        coord_bound: Logical coordinate bounds (-coord_bound to +coord_bound)

    Returns:
        numpy array of shape (canvas_dim, canvas_dim, 3) with RGB values [0,1]

    Examples:
        >>> square = np.array([[-0.5, -0.5], [0.5, -0.5], [0.5, 0.5], [-0.5, 0.5]])
        >>> image = render_shapes_to_image([(square, (1.0, 0.0, 0.0, 1.0))])
        >>> image.shape
        (512, 512, 3)
    """
    scale = canvas_dim / (2 * coord_bound)
    surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, canvas_dim, canvas_dim)
    ctx = cairo.Context(surface)

    # --- Configure Canvas ---
    ctx.set_source_rgb(1, 1, 1)  # White background
    ctx.paint()

    for points, color in shapes:
        points = np.asarray(points)
        if points.shape[0] < 3:
            continue

        # --- Fill Outline ---
        ctx.set_source_rgba(*color)
        renderable = (points + coord_bound) * scale
        ctx.move_to(renderable[0, 0], renderable[0, 1])
        for point in renderable[1:]:
            ctx.line_to(point[0], point[1])
        ctx.close_path()
        ctx.fill()

    # --- Extract Buffer ---
    surface.flush()
    buf = surface.get_data()
    stride = surface.get_stride()
    img_array = np.ndarray(shape=(canvas_dim, stride // 4, 4), dtype=np.uint8, buffer=buf)[:, :canvas_dim]
    img_array = img_array[:, :, [2, 1, 0]].astype(np.float32) / 255.0  # Reverse BGRA to RGB
    return img_array


def render_program(program_string: str, seed: int = 0, settings: Optional[ExpandSettings] = None,
                   overrides: Optional[Mapping[str, float]] = None, canvas_dim: int = CANVAS_WIDTH_HEIGHT):
    """Expands a program and returns (image array, svg text, expansion result)."""
    result = build_tree(program_string, seed, settings, overrides)
    image_array = render_shapes_to_image(PolygonRenderer(seed).evaluate(result.root), canvas_dim)
    svg = SvgRenderer(seed).evaluate(result.root)
    return image_array, svg, result


## --- Export ---
def _ensure_parent(export_path: str):
    output_dir = os.path.dirname(export_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)


def export_image(image_array: np.ndarray, export_path: str):
    """
    Exports a rendered image array to a PNG file.

    Args:
        image_array: RGB image as numpy array with values in [0,1] range
        export_path: File path where the PNG should be saved

    Examples:
        >>> image = np.random.random((512, 512, 3))
        >>> export_image(image, "output/test.png")
    """
    _ensure_parent(export_path)
    imageio.imwrite(export_path, (np.clip(image_array, 0.0, 1.0) * 255).astype(np.uint8))


def export_svg(svg: str, export_path: str):
    """Writes SVG markup to a file, creating the output directory if needed."""
    _ensure_parent(export_path)
    with open(export_path, "w", encoding="utf-8") as handle:
        handle.write(svg)


## --- CSV Processing Utility ---
def render_from_csv(name: str, program_col: str = "program_string", seed: int = 0,
                    settings: Optional[ExpandSettings] = None):
    """
    Batch processes programs from a CSV file and renders them to images.

    Reads a CSV file of programs, renders each one to PNG and SVG, and writes
    an updated CSV with the output paths. A row whose program is invalid is
    reported and left with empty paths; the batch continues with the next row.

    Args:
        name: Base name for input CSV file and output directory
        program_col: Column name containing the program strings
        seed: Seed used for rows without a `seed` column value
        settings: Expansion settings shared by all rows

    Input:
        - Reads from: output/{name}.csv

    Output:
        - Images saved to: output/{name}/images/{row_index}.png and .svg
        - Updated CSV saved to: output/{name}/rendered.csv

    Raises:
        FileNotFoundError: If the input CSV file doesn't exist
        KeyError: If the specified program column isn't found in the CSV
    """
    input_csv_path = os.path.join("output", f"{name}.csv")
    if not os.path.exists(input_csv_path):
        raise FileNotFoundError(f"Input CSV not found: {input_csv_path}")

    df = pd.read_csv(input_csv_path)
    if program_col not in df.columns:
        raise KeyError(f"Column '{program_col}' not found in {input_csv_path}")

    image_output_dir = os.path.join("output", name, "images")
    os.makedirs(image_output_dir, exist_ok=True)

    render_filepaths, svg_filepaths = [], []
    for i, row in df.iterrows():
        program_string = str(row[program_col])
        row_seed = int(row["seed"]) if "seed" in df.columns and pd.notna(row["seed"]) else seed
        output_path = os.path.join(image_output_dir, f"{i}.png")
        svg_path = os.path.join(image_output_dir, f"{i}.svg")
        try:
            image_array, svg, _ = render_program(program_string, row_seed, settings)
            export_image(image_array, output_path)
            export_svg(svg, svg_path)
            render_filepaths.append(output_path)
            svg_filepaths.append(svg_path)
        except GrammarError as e:
            print(f"❌ Error processing row {i} ('{program_string[:50]}...'): {e}")
            print(traceback.format_exc())
            render_filepaths.append("")
            svg_filepaths.append("")

    df["render_filepath"] = render_filepaths
    df["svg_filepath"] = svg_filepaths
    rendered_csv_path = os.path.join("output", name, "rendered.csv")
    df.to_csv(rendered_csv_path, index=False)
    print(f"\n✅ Wrote updated CSV with filepaths to: {rendered_csv_path}")
    return rendered_csv_path
