import argparse
import asyncio
import logging
from typing import Optional

from textbehind.api.editor import Editor
from textbehind.constants import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_FONT_WEIGHT,
    DEFAULT_STROKE_COLOR,
    DEFAULT_TEXT_COLOR,
    EXPORT_SCALE,
)
from textbehind.exceptions import TextBehindError
from textbehind.export import ExportOptions
from textbehind.version import __version__

logger = logging.getLogger(__name__)


def _layer_arguments() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("original", help="Original photo")
    parser.add_argument("cutout", help="Foreground cut-out with transparency")
    parser.add_argument(
        "--text",
        action="append",
        default=[],
        help="Text layer content, may be repeated; \\n starts a new line",
    )
    parser.add_argument(
        "--position",
        nargs=2,
        type=float,
        metavar=("X", "Y"),
        help="Text anchor; Y is the first baseline",
    )
    parser.add_argument("--font-size", type=float, default=DEFAULT_FONT_SIZE)
    parser.add_argument("--font-family", default=DEFAULT_FONT_FAMILY)
    parser.add_argument("--font-weight", default=DEFAULT_FONT_WEIGHT)
    parser.add_argument("--color", default=DEFAULT_TEXT_COLOR)
    parser.add_argument("--opacity", type=float, default=1.0)
    parser.add_argument("--letter-spacing", type=float, default=0.0)
    parser.add_argument("--stroke-width", type=float, default=0.0)
    parser.add_argument("--stroke-color", default=DEFAULT_STROKE_COLOR)
    parser.add_argument(
        "--background",
        action="append",
        default=[],
        metavar="IMAGE",
        help="Background image layer, may be repeated",
    )
    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="text-behind", description="text-behind command line utility."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Be more verbose.")
    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", required=True)
    layers = _layer_arguments()

    compose_parser = subparsers.add_parser(
        "compose", parents=[layers], help="Export the composition as PNG"
    )
    compose_parser.add_argument(
        "-o", "--output-dir", default=".", help="Directory for the exported file"
    )
    compose_parser.add_argument(
        "--scale", type=float, default=EXPORT_SCALE, help="Output scale factor"
    )

    preview_parser = subparsers.add_parser(
        "preview", parents=[layers], help="Render the interactive view"
    )
    preview_parser.add_argument("output_file", help="Output image file")

    return parser.parse_args(argv)


def build_layers(editor: Editor, args: argparse.Namespace) -> None:
    style = dict(
        font_size=args.font_size,
        font_family=args.font_family,
        font_weight=args.font_weight,
        color=args.color,
        opacity=args.opacity,
        letter_spacing=args.letter_spacing,
        stroke_width=args.stroke_width,
        stroke_color=args.stroke_color,
    )
    if args.position:
        style.update(x=args.position[0], y=args.position[1])
    for path in args.background:
        with open(path, "rb") as f:
            editor.upload_background(f.read(), filename=path)
    for text in args.text:
        editor.add_text(text=text.replace("\\n", "\n"), **style)
    editor.scene.clear_selection()


async def _run(args: argparse.Namespace) -> Optional[int]:
    options = None
    if args.command == "compose":
        options = ExportOptions(scale=args.scale)
    editor = await Editor.open(args.original, args.cutout, options=options)
    try:
        build_layers(editor, args)
        if args.command == "compose":
            result = await editor.export()
            if result is None:
                return 1
            path = result.save(args.output_dir)
            print(path)
        elif args.command == "preview":
            await editor.exporter.resolve_assets(editor.scene)
            image = editor.redraw()
            if image is None:
                logger.error("Images not loaded")
                return 1
            image.save(args.output_file)
    finally:
        editor.close()
    return None


def main(argv: Optional[list[str]] = None) -> Optional[int]:
    args = parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    package_logger = logging.getLogger("textbehind")
    if args.verbose:
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(logging.INFO)

    try:
        return asyncio.run(_run(args))
    except (TextBehindError, OSError, ValueError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    main()
