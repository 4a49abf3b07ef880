"""Command-line interface for dither_web.

Supports both interactive TUI mode and headless/JSON mode for scripting.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dither_web.core.dither import DitherMethod


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dither-web",
        description="Convert an image to greyscale and compare five dithering algorithms.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- convert subcommand ---
    convert = subparsers.add_parser(
        "convert",
        help="Dither an image with every algorithm and save the results.",
    )
    convert.add_argument("input", help="Input image file path or URL.")
    convert.add_argument(
        "-o", "--output",
        help="Output directory. Defaults to <input>_dithered/ next to the input.",
    )
    convert.add_argument(
        "-m", "--method",
        action="append",
        choices=[m.value for m in DitherMethod],
        help="Dither method to run (repeatable; default: all five).",
    )
    convert.add_argument(
        "--threshold",
        type=int,
        default=128,
        help="Black/white cut-off, 0 to 256 (default: 128).",
    )
    convert.add_argument(
        "--levels",
        type=int,
        default=2,
        help="Output grey levels, 2 to 256 (default: 2 = black/white).",
    )
    convert.add_argument(
        "--bayer-size",
        type=int,
        default=4,
        choices=[1, 2, 4, 8, 16],
        help="Bayer matrix size (default: 4).",
    )
    convert.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for random-threshold dithering (default: unseeded).",
    )
    convert.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Run methods on this many threads (default: 1).",
    )
    convert.add_argument(
        "--sheet",
        help="Also write a side-by-side contact sheet to this path.",
    )
    convert.add_argument(
        "--font-size",
        type=int,
        default=14,
        help="Caption font size for the contact sheet (default: 14).",
    )
    convert.add_argument(
        "--json",
        action="store_true",
        help="Output structured JSON (pipe-friendly).",
    )
    convert.add_argument(
        "--debug",
        action="store_true",
        help="Show stack traces on error.",
    )
    convert.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log per-method timings.",
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def _default_output_dir(input_path: Path | None) -> Path:
    """Generate default output directory from input."""
    if input_path is not None:
        return input_path.parent / f"{input_path.stem}_dithered"
    return Path.cwd() / "dithered"


def _json_error(message: str, code: str) -> None:
    """Print JSON error to stderr and exit with code 1."""
    err = {"status": "error", "error": message, "code": code}
    print(json.dumps(err), file=sys.stderr)
    sys.exit(1)


def _fail(args: argparse.Namespace, message: str, code: str) -> None:
    if args.debug:
        import traceback
        traceback.print_exc(file=sys.stderr)
    if args.json:
        _json_error(message, code)
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _run_convert(args: argparse.Namespace) -> None:
    """Run the headless convert pipeline."""
    from dither_web.core.processor import Settings, process_raster
    from dither_web.core.reader import is_url, load_image
    from dither_web.core.writer import save_contact_sheet, save_variants

    raw_input = args.input
    is_remote = is_url(raw_input)

    if is_remote and not args.json:
        print(f"Downloading {raw_input}...", file=sys.stderr)
    if not is_remote and not Path(raw_input).exists():
        _fail(args, f"File not found: {Path(raw_input).resolve()}", "FILE_NOT_FOUND")

    try:
        settings = Settings(
            methods=tuple(DitherMethod(m) for m in args.method) if args.method else tuple(DitherMethod),
            threshold=args.threshold,
            levels=args.levels,
            bayer_size=args.bayer_size,
            seed=args.seed,
            workers=max(1, args.workers),
        )
        settings.quantizer()
    except ValueError as e:
        _fail(args, str(e), "INVALID_SETTINGS")

    try:
        loaded = load_image(raw_input)
    except (ValueError, OSError) as e:
        code = "DOWNLOAD_FAILED" if is_remote else "INVALID_INPUT"
        _fail(args, str(e), code)

    info = loaded.info
    input_path = None if is_remote else info.path
    output_dir = (
        Path(args.output).resolve()
        if args.output
        else _default_output_dir(input_path)
    )
    stem = info.path.stem if info.path and not is_remote else "image"

    try:
        processed = process_raster(loaded.raster, settings)
        written = save_variants(processed, output_dir, stem)
        sheet = None
        if args.sheet:
            sheet = save_contact_sheet(processed, Path(args.sheet).resolve(), args.font_size)
    except (ValueError, OSError) as e:
        _fail(args, str(e), "PROCESSING_ERROR")

    if not args.json:
        for result in processed.results:
            print(f"{result.title}: {result.elapsed_ms:.1f}ms", file=sys.stderr)
        print(f"all time: {processed.elapsed_ms:.1f}ms", file=sys.stderr)
        print(f"Saved {len(written)} images to {output_dir}", file=sys.stderr)
        if sheet is not None:
            print(f"Saved contact sheet to {sheet}", file=sys.stderr)
        return

    result = {
        "status": "success",
        "input": raw_input if is_remote else str(info.path.resolve()),
        "output": str(output_dir),
        "files": [str(p) for p in written],
        "sheet": str(sheet) if sheet is not None else None,
        "settings": {
            "methods": [m.value for m in settings.methods],
            "threshold": settings.threshold,
            "levels": settings.levels,
            "bayer_size": settings.bayer_size,
            "seed": settings.seed,
            "workers": settings.workers,
        },
        "metadata": {
            "width": info.width,
            "height": info.height,
            "input_format": info.format,
            "total_ms": round(processed.elapsed_ms, 3),
            "timings_ms": {
                r.method.value: round(r.elapsed_ms, 3) for r in processed.results
            },
        },
    }
    print(json.dumps(result, indent=2))


def main(argv: list[str] | None = None) -> None:
    """Main entry point.

    Routing:
      dither-web convert <image> [opts]  → headless convert
      dither-web <image>                 → launch TUI with image
      dither-web                         → launch TUI (open dialog)
    """
    # If the first real arg isn't "convert", treat it as a direct TUI launch
    # to avoid argparse subparser consuming the file path as a subcommand.
    raw_args = sys.argv[1:] if argv is None else argv
    if raw_args and raw_args[0] == "convert":
        args = _build_parser().parse_args(raw_args)
        _configure_logging(args.verbose)
        _run_convert(args)
    elif raw_args and not raw_args[0].startswith("-"):
        from dither_web.app import run_app
        run_app(input_path=raw_args[0])
    elif raw_args and raw_args[0] in ("-h", "--help"):
        _build_parser().parse_args(raw_args)
    else:
        from dither_web.app import run_app
        run_app()
