"""
Command-line interface for page-split.

This file focuses on parsing arguments and dispatching to the real work.
Keeping this separate makes the code easier to read and test.
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, List

from . import __version__
from .config import (
    DEFAULT_ADAPT,
    deep_merge,
    dump_default_adapt_yaml,
    extract_adapt_section,
    load_yaml,
)
from .utils import (
    UserError,
    format_number,
    normalize_path,
    parse_line_spec,
    parse_rect_spec,
)


TOP_LEVEL_EXAMPLES = """Examples:
  python -m page_split adapt --layouts "layouts.yaml" --out "adapted.yaml" --outline "0,0,100,300"
  python -m page_split adapt --layouts "layouts.yaml" --out "adapted.yaml" --outlines "outlines.yaml"
  python -m page_split project --rect "0,0,100,200" --line "150,0,150,200"
  python -m page_split preview --layouts "layouts.yaml" --page scan_0001 --out "scan_0001.png"
"""

ADAPT_EXAMPLES = """Examples:
  python -m page_split adapt --layouts "layouts.yaml" --out "adapted.yaml" --outline "0,0,100,300"
  python -m page_split adapt --layouts "layouts.yaml" --out "adapted.yaml" --outlines "outlines.yaml" --preview_dir "previews"
  python -m page_split adapt --dump-default-config
  python -m page_split adapt --layouts "layouts.yaml" --out "adapted.yaml" --config "configs\\adapt.yaml"
"""

PROJECT_EXAMPLES = """Examples:
  python -m page_split project --rect "0,0,100,200" --line "150,0,150,200"
  python -m page_split project --rect "0,0,100,100" --line "0,0,100,100" --line "100,0,0,100"
"""

PREVIEW_EXAMPLES = """Examples:
  python -m page_split preview --layouts "layouts.yaml" --page scan_0001 --out "scan_0001.png"
  python -m page_split preview --layouts "layouts.yaml" --page scan_0001 --outline "0,0,100,300" --out "p.png" --image "scan_0001.png"
  python -m page_split preview --layouts "layouts.yaml" --page scan_0001 --out "p.png" --pdf "book.pdf" --pdf_page 3 --dpi 300
"""

ADAPT_TOP_LEVEL_KEYS = set(DEFAULT_ADAPT.keys())


def _require_bool(value: Any, key: str) -> bool:
    """Require a strict boolean value from config/CLI merge output."""

    if isinstance(value, bool):
        return value
    raise UserError(f"{key} must be true or false.")


def _build_adapt_effective_config(
    args: argparse.Namespace,
) -> tuple[Dict[str, Any], Path | None]:
    """Resolve defaults < YAML config < explicit CLI flags."""

    effective = deep_merge(DEFAULT_ADAPT, {})
    config_path: Path | None = None
    if hasattr(args, "config"):
        config_path = normalize_path(args.config)
        loaded = load_yaml(config_path)
        effective = deep_merge(effective, extract_adapt_section(loaded))

    raw_args = vars(args)
    cli_overrides: Dict[str, Any] = {}
    for key in ADAPT_TOP_LEVEL_KEYS:
        if key in raw_args:
            cli_overrides[key] = raw_args[key]

    effective = deep_merge(effective, cli_overrides)
    return effective, config_path


def _outline_spec(value: Any) -> str:
    """Accept an outline as "l,t,r,b" text or as a YAML list."""

    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


def _verbosity_from_args(args: argparse.Namespace) -> str:
    """Resolve global verbosity mode from top-level flags."""

    if getattr(args, "quiet", False):
        return "quiet"
    if getattr(args, "verbose", False):
        return "verbose"
    return "normal"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="page-split",
        description="Re-fit page cutter lines to new page outlines.",
        epilog=TOP_LEVEL_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=__version__)
    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress non-error console logs.",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug-level console logs.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Options that can also come from YAML use SUPPRESS so "not given" stays
    # distinguishable from "given with the default value".
    adapt_parser = subparsers.add_parser(
        "adapt",
        help="Adapt a layout file to new page outlines.",
        epilog=ADAPT_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    adapt_parser.add_argument(
        "--layouts",
        default=argparse.SUPPRESS,
        help="Input layout YAML (required unless --dump-default-config).",
    )
    adapt_parser.add_argument(
        "--out",
        default=argparse.SUPPRESS,
        help="Output layout YAML (required unless --dump-default-config).",
    )
    adapt_parser.add_argument(
        "--outline",
        default=argparse.SUPPRESS,
        help='New outline for every page: "left,top,right,bottom".',
    )
    adapt_parser.add_argument(
        "--outlines",
        default=argparse.SUPPRESS,
        help="YAML file mapping page ids to new outlines.",
    )
    adapt_parser.add_argument(
        "--snap",
        dest="snap_to_pixels",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Round geometry to whole pixels before validating layouts.",
    )
    adapt_parser.add_argument(
        "--preview_dir",
        default=argparse.SUPPRESS,
        help="Write a PNG preview for every changed page into this folder.",
    )
    adapt_parser.add_argument(
        "--overwrite",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Overwrite existing files.",
    )
    adapt_parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Show actions without writing files.",
    )
    adapt_parser.add_argument(
        "--manifest",
        default=argparse.SUPPRESS,
        help="Manifest path (default: out folder\\manifest.json).",
    )
    adapt_parser.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help="YAML config with adapt options.",
    )
    adapt_parser.add_argument(
        "--dump-default-config",
        action="store_true",
        help="Print the default adapt config as YAML and exit.",
    )

    project_parser = subparsers.add_parser(
        "project",
        help="Project cutter lines onto a rectangle and print the result.",
        epilog=PROJECT_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    project_parser.add_argument("--rect", required=True, help='"left,top,right,bottom".')
    project_parser.add_argument(
        "--line",
        action="append",
        required=True,
        help='Line "x1,y1,x2,y2" (repeat for several cutters).',
    )

    preview_parser = subparsers.add_parser(
        "preview",
        help="Draw one page layout to a PNG.",
        epilog=PREVIEW_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    preview_parser.add_argument("--layouts", required=True, help="Input layout YAML.")
    preview_parser.add_argument("--page", required=True, help="Page id to draw.")
    preview_parser.add_argument("--out", required=True, help="Output PNG path.")
    preview_parser.add_argument(
        "--outline",
        help="Adapt to this outline first and draw old and new layouts.",
    )
    preview_parser.add_argument(
        "--snap",
        dest="snap_to_pixels",
        action="store_true",
        help="Round geometry to whole pixels before validating.",
    )
    background = preview_parser.add_mutually_exclusive_group()
    background.add_argument("--image", help="Background image file.")
    background.add_argument("--pdf", help="Background PDF file.")
    preview_parser.add_argument(
        "--pdf_page",
        type=int,
        default=1,
        help="1-based PDF page for the background (default: 1).",
    )
    preview_parser.add_argument(
        "--dpi",
        type=int,
        default=72,
        help="Render DPI for a PDF background (default: 72).",
    )
    preview_parser.add_argument("--overwrite", action="store_true", help="Overwrite existing files.")

    return parser


def _command_string(argv: list[str]) -> str:
    """
    Build a human-readable command string for manifests.
    """

    # list2cmdline produces a Windows-friendly command representation.
    return subprocess.list2cmdline(argv)


def _command_argv_for_manifest(argv: list[str] | None) -> list[str]:
    """Choose argv used to record manifest command faithfully."""

    if argv is None:
        return list(sys.argv)
    return [sys.argv[0], *argv]


def _options_for_manifest(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build a JSON-friendly options dict.

    Why: argparse Namespace can contain non-serializable objects.
    """

    raw = vars(args)
    options: Dict[str, Any] = {}
    for key, value in raw.items():
        if isinstance(value, Path):
            options[key] = str(value)
        else:
            options[key] = value
    options["version"] = __version__
    return options


def _format_line(line: Any) -> str:
    if line is None:
        return "none"
    return ",".join(format_number(value) for value in line.as_coords())


def _run_project(args: argparse.Namespace) -> List[str]:
    from .adapter import project_line, project_lines

    rect = parse_rect_spec(args.rect, "--rect")
    lines = [parse_line_spec(spec) for spec in args.line]
    if len(lines) == 1:
        projected = [project_line(lines[0], rect)]
    else:
        projected = project_lines(lines, rect)
    return [_format_line(line) for line in projected]


def _run_preview(args: argparse.Namespace) -> Path:
    from .adapter import adapt_layout
    from .layout_io import load_layouts
    from .preview import render_preview

    out_path = normalize_path(args.out)
    if out_path.exists() and not args.overwrite:
        raise UserError(f"Output exists: {out_path}. Use --overwrite to replace it.")

    entries = {entry.page_id: entry for entry in load_layouts(normalize_path(args.layouts))}
    if args.page not in entries:
        raise UserError(f"Page '{args.page}' not found in {args.layouts}.")
    layout = entries[args.page].layout
    previous = None
    if args.outline:
        previous = layout
        layout = adapt_layout(
            layout,
            parse_rect_spec(args.outline),
            snap_to_pixels=args.snap_to_pixels,
        )

    return render_preview(
        out_path,
        layout,
        previous=previous,
        image_path=normalize_path(args.image) if args.image else None,
        pdf_path=normalize_path(args.pdf) if args.pdf else None,
        pdf_page=args.pdf_page,
        dpi=args.dpi,
    )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        command_string = _command_string(_command_argv_for_manifest(argv))
        options = _options_for_manifest(args)
        verbosity = _verbosity_from_args(args)
        options["verbosity"] = verbosity

        if args.command == "adapt":
            if getattr(args, "dump_default_config", False):
                print(dump_default_adapt_yaml())
                return 0

            if not hasattr(args, "layouts") or not hasattr(args, "out"):
                raise UserError(
                    "adapt requires --layouts and --out unless "
                    "--dump-default-config is used."
                )

            effective_cfg, config_path = _build_adapt_effective_config(args)
            layouts_path = normalize_path(args.layouts)
            out_path = normalize_path(args.out)
            manifest_value = effective_cfg.get("manifest")
            manifest_path = (
                normalize_path(str(manifest_value))
                if manifest_value
                else out_path.parent / "manifest.json"
            )

            adapt_options = deep_merge(effective_cfg, {})
            adapt_options["version"] = __version__
            adapt_options["verbosity"] = verbosity
            if config_path is not None:
                adapt_options["config_path"] = str(config_path)

            outline = None
            outlines = None
            if effective_cfg["outline"] and effective_cfg["outlines"]:
                raise UserError("Use either outline or outlines, not both.")
            if effective_cfg["outline"]:
                outline = parse_rect_spec(_outline_spec(effective_cfg["outline"]))
            elif effective_cfg["outlines"]:
                from .layout_io import load_outlines

                outlines = load_outlines(normalize_path(str(effective_cfg["outlines"])))
            else:
                raise UserError("adapt requires --outline or --outlines.")

            preview_value = effective_cfg.get("preview_dir")
            preview_dir = normalize_path(str(preview_value)) if preview_value else None

            from .batch import adapt_layouts_file

            adapt_layouts_file(
                layouts_path=layouts_path,
                out_path=out_path,
                outline=outline,
                outlines=outlines,
                snap_to_pixels=_require_bool(
                    effective_cfg["snap_to_pixels"], "config.snap_to_pixels"
                ),
                overwrite=_require_bool(effective_cfg["overwrite"], "config.overwrite"),
                dry_run=_require_bool(effective_cfg["dry_run"], "config.dry_run"),
                manifest_path=manifest_path,
                command_string=command_string,
                options=adapt_options,
                preview_dir=preview_dir,
            )
            return 0

        if args.command == "project":
            for rendered in _run_project(args):
                print(rendered)
            return 0

        if args.command == "preview":
            written = _run_preview(args)
            if verbosity != "quiet":
                print(f"Wrote preview -> {written}", file=sys.stderr)
            return 0

        raise UserError("Unknown command. Use --help for usage.")
    except UserError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
