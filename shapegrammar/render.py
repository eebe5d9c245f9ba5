# shapegrammar/render.py
import argparse
import os

from .core import export_image, export_svg, render_from_csv, render_program
from .language.expansion import ExpandSettings


def _parse_override(text: str):
    """Parses a `name=value` constant override."""
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got '{text}'")
    try:
        return name.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Value of '{name}' is not a number: '{value}'") from None


def _add_expansion_arguments(parser: argparse.ArgumentParser):
    defaults = ExpandSettings()
    parser.add_argument("--seed", type=int, default=0, help="Seed of the expansion and of interval resolution.")
    parser.add_argument("--max-nodes", type=int, default=defaults.max_nodes, help="Node budget of the expansion.")
    parser.add_argument("--max-depth", type=int, default=defaults.max_depth, help="Nodes deeper than this are culled.")
    parser.add_argument("--min-a", type=float, default=defaults.min_a, help="Cull nodes whose alpha stays below this.")
    parser.add_argument("--min-p", type=float, default=defaults.min_p, help="Cull nodes whose size stays below this.")


def _settings_from_args(args) -> ExpandSettings:
    return ExpandSettings(max_nodes=args.max_nodes, max_depth=args.max_depth, min_a=args.min_a, min_p=args.min_p)


def _read_program(program: str) -> str:
    """Treats the argument as a path when such a file exists, else as program text."""
    if os.path.isfile(program):
        with open(program, encoding="utf-8") as handle:
            return handle.read()
    return program


def main(argv=None):
    """Main execution function with command-line parsing."""
    parser = argparse.ArgumentParser(
        description="Expand and render shape grammar programs.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    # --- Parser for rendering a single program ---
    parser_single = subparsers.add_parser("single", help="Render a single program (text or file).")
    parser_single.add_argument("program", type=str, help="The program text, or a path to a file holding it.")
    parser_single.add_argument("output", type=str, help="Output path; '.svg' writes markup, anything else a PNG.")
    parser_single.add_argument("--set", dest="overrides", type=_parse_override, action="append", default=[],
                               metavar="NAME=VALUE", help="Override a constant (repeatable).")
    _add_expansion_arguments(parser_single)

    # --- Parser for rendering from a CSV file ---
    parser_csv = subparsers.add_parser("csv", help="Render all programs from a CSV file.")
    parser_csv.add_argument("name", type=str, help="Base name of the CSV in 'output/' (e.g., 'gallery').")
    parser_csv.add_argument("--col", type=str, default="program_string", help="Column with programs.")
    _add_expansion_arguments(parser_csv)

    args = parser.parse_args(argv)
    settings = _settings_from_args(args)

    # --- Execute the chosen command ---
    if args.command == "single":
        print(f"Rendering program to '{args.output}'...")
        image_array, svg, result = render_program(
            _read_program(args.program), args.seed, settings, dict(args.overrides))
        if args.output.lower().endswith(".svg"):
            export_svg(svg, args.output)
        else:
            export_image(image_array, args.output)
        stats = result.statistics
        print(f"✅ {stats.new_nodes} nodes, {stats.nodes_culled} culled, {stats.passes} passes")

    elif args.command == "csv":
        print(f"Rendering CSV '{args.name}.csv'...")
        render_from_csv(args.name, program_col=args.col, seed=args.seed, settings=settings)


if __name__ == "__main__":
    main()
