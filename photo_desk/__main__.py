"""Command line entry point: run the server or convert a single image."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .app import create_app
from .config import SETTINGS, configure_logging
from .errors import PhotoDeskError
from .processing.dither import quantize
from .processing.epd import save_epd
from .processing.pipeline import load_panel_png, render_preview, to_panel


logger = logging.getLogger("photo-desk")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="photo-desk", description="Photos for a 7-colour e-paper panel.")
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("server", help="Start the HTTP server")

    convert = commands.add_parser("convert", help="Convert an image to EPD format")
    convert.add_argument("input", type=Path, help="Input image (PNG, JPEG, ...)")
    convert.add_argument("-o", "--output", type=Path, default=Path("output.epd"), help="EPD file to write")
    convert.add_argument("--preview", type=Path, default=None, help="PNG preview path (default: <input>_preview.png)")
    return parser


def preview_path(input_path: Path) -> Path:
    # Previews land in the working directory, not beside the input.
    return Path(f"{input_path.stem}_preview.png")


def run_server() -> int:
    if not SETTINGS.api_key:
        logger.warning("PHOTO_API_KEY environment variable not set")
        logger.warning("The /recent endpoint will not work without a valid API key")
    app = create_app(SETTINGS)
    app.run(host="0.0.0.0", port=SETTINGS.port, debug=False)
    return 0


def run_convert(input_path: Path, output: Path, preview: Optional[Path]) -> int:
    panel = to_panel(load_panel_png(input_path))
    indexed = quantize(panel)
    save_epd(output, indexed)
    target = preview or preview_path(input_path)
    render_preview(indexed).save(target, "PNG")
    logger.info("Wrote %s and %s", output, target)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()

    if args.command is None:
        parser.print_usage(sys.stderr)
        return 1

    try:
        if args.command == "server":
            return run_server()
        return run_convert(args.input, args.output, args.preview)
    except (PhotoDeskError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
