"""
Command-line interface for NosGen.

Provides commands for building and re-exporting sprite atlases, auto-filling
points and previewing grid layouts.
"""

import argparse
import json
import sys
from collections import namedtuple

from nosgen.config import load_config, save_default_config
from nosgen.tracer import configure_tracer, get_tracer


def add_trace_arguments(parser):
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    parser.add_argument(
        "--trace-level",
        default=None,
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="nosgen",
        description="NosGen: pack sprite frames into an atlas with animated anchor points",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Build command
    build_parser_ = subparsers.add_parser("build", help="Build an atlas from frame images")
    build_parser_.add_argument(
        "--frames", "-f",
        nargs="+",
        required=True,
        help="Frame PNG files in order",
    )
    build_parser_.add_argument(
        "--out", "-o",
        required=True,
        help="Output directory",
    )
    build_parser_.add_argument(
        "--points", "-p",
        default=None,
        help="Points JSON to apply (atlas or legacy format)",
    )
    build_parser_.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    build_parser_.add_argument(
        "--autofill",
        action="store_true",
        help="Fill non-keyframe point positions with the configured shape",
    )
    build_parser_.add_argument(
        "--zip",
        action="store_true",
        help="Also write every frame into <name>_frames.zip",
    )
    add_trace_arguments(build_parser_)

    # Edit command
    edit_parser = subparsers.add_parser("edit", help="Re-export an existing atlas")
    edit_parser.add_argument("--atlas", required=True, help="Atlas PNG")
    edit_parser.add_argument("--json", required=True, help="Atlas JSON descriptor")
    edit_parser.add_argument("--out", "-o", required=True, help="Output directory")
    edit_parser.add_argument("--config", "-c", default=None, help="Path to YAML configuration file")
    edit_parser.add_argument("--autofill", action="store_true", help="Auto-fill points before export")
    edit_parser.add_argument("--zip", action="store_true", help="Also write the frames ZIP")
    add_trace_arguments(edit_parser)

    # Autofill command
    autofill_parser = subparsers.add_parser("autofill", help="Auto-fill points and write the JSON only")
    autofill_parser.add_argument("--frames", "-f", nargs="+", required=True, help="Frame PNG files in order")
    autofill_parser.add_argument("--points", "-p", required=True, help="Points JSON with keyframes")
    autofill_parser.add_argument("--out", "-o", required=True, help="Output directory")
    autofill_parser.add_argument("--config", "-c", default=None, help="Path to YAML configuration file")
    autofill_parser.add_argument(
        "--shape",
        default=None,
        choices=["ellipse", "circle", "square", "tangent", "linear"],
        help="Override the configured auto-fill shape",
    )
    add_trace_arguments(autofill_parser)

    # Layout command
    layout_parser = subparsers.add_parser("layout", help="Print the grid layout for frame sizes")
    layout_parser.add_argument(
        "--sizes",
        nargs="+",
        required=True,
        help="Frame sizes as WxH",
    )
    layout_parser.add_argument("--rows", type=int, default=4, help="Number of rows")
    layout_parser.add_argument("--padding", type=int, default=6, help="Padding in pixels")

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="nosgen_config.yaml",
        help="Output path for config file",
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "build":
        return handle_build(args)
    elif args.command == "edit":
        return handle_edit(args)
    elif args.command == "autofill":
        return handle_autofill(args)
    elif args.command == "layout":
        return handle_layout(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def setup_tracing(args, config):
    """Configure the tracer from CLI flags, falling back to the config file."""
    tracing = config.tracing
    configure_tracer(
        enabled=args.trace or tracing.enabled,
        level=args.trace_level or tracing.level,
        file_path=args.trace_file or tracing.file_path,
        json_output=args.trace_json or tracing.json_output,
    )


def print_result(result, out_dir):
    print(f"  Frames packed: {len(result.frames)}")
    if result.layout is not None:
        print(f"  Atlas size: {result.layout.width}x{result.layout.height} "
              f"({result.layout.rows} rows x {result.layout.columns} columns)")
    if result.failed_inputs:
        print(f"  Skipped inputs: {len(result.failed_inputs)}")
    print(f"  Validation errors: {result.validation.error_count}")
    print(f"  Validation warnings: {result.validation.warning_count}")
    print(f"\nOutputs saved to: {out_dir}/")
    for path in (result.atlas_path, result.json_path, result.zip_path):
        if path:
            print(f"  - {path}")
    print("  - validation_report.json")


def handle_build(args):
    """Handle the build command."""
    config = load_config(args.config)
    setup_tracing(args, config)

    tracer = get_tracer()

    try:
        from nosgen.pipeline import build_atlas

        with tracer.span("cli_build", module="cli"):
            result = build_atlas(
                frame_paths=args.frames,
                out_dir=args.out,
                points_path=args.points,
                config=config,
                autofill=args.autofill,
                frames_zip=args.zip,
            )

        print("\nAtlas built successfully.")
        print_result(result, args.out)

        if result.validation.has_errors:
            print("\n[!] Validation errors detected. Review validation_report.json")
            return 1

        return 0

    except Exception as e:
        tracer.event(f"Build failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_edit(args):
    """Handle the edit command."""
    config = load_config(args.config)
    setup_tracing(args, config)

    tracer = get_tracer()

    try:
        from nosgen.pipeline import edit_atlas

        with tracer.span("cli_edit", module="cli"):
            result = edit_atlas(
                atlas_path=args.atlas,
                json_path=args.json,
                out_dir=args.out,
                config=config,
                autofill=args.autofill,
                frames_zip=args.zip,
            )

        print("\nAtlas re-exported successfully.")
        print_result(result, args.out)

        return 0

    except Exception as e:
        tracer.event(f"Edit failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_autofill(args):
    """Handle the autofill command."""
    config = load_config(args.config)
    if args.shape:
        config.fit.shape = args.shape
    setup_tracing(args, config)

    tracer = get_tracer()

    try:
        from nosgen.pipeline import autofill_points

        with tracer.span("cli_autofill", module="cli"):
            frames, json_path = autofill_points(
                frame_paths=args.frames,
                points_path=args.points,
                out_dir=args.out,
                config=config,
            )

        print(f"\nAuto-filled {len(frames)} frames with shape '{config.fit.shape}'.")
        print(f"  - {json_path}")

        return 0

    except Exception as e:
        tracer.event(f"Auto-fill failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


FrameSize = namedtuple("FrameSize", ["width", "height"])


def parse_size(value):
    """Parse a WxH string into a (width, height) tuple."""
    parts = value.lower().split("x")
    if len(parts) != 2:
        raise ValueError(f"Invalid size (expected WxH): {value}")
    width, height = int(parts[0]), int(parts[1])
    if width < 1 or height < 1:
        raise ValueError(f"Size must be positive: {value}")
    return width, height


def handle_layout(args):
    """Handle the layout command."""
    from nosgen.atlas.layout import compute_atlas_layout

    try:
        sizes = [FrameSize(*parse_size(value)) for value in args.sizes]
    except ValueError as e:
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1

    layout = compute_atlas_layout(sizes, args.rows, args.padding)
    print(json.dumps(layout.model_dump(), indent=2))
    return 0


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
