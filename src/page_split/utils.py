"""
Shared utility helpers.

This module keeps the "sharp edges" (validation and parsing) in one place so
the rest of the code can stay focused on geometry.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import List

from .geometry import LineSegment, Rect


class UserError(Exception):
    """Raised for user-facing problems that should show a clear message."""


def normalize_path(value: str) -> Path:
    """
    Convert user input to a Path.

    We do not resolve() here because we want to preserve relative paths in
    manifests and error messages.
    """

    return Path(value).expanduser()


def ensure_file_exists(path: Path, label: str) -> Path:
    """Validate that a path exists and is a file."""

    if not path.exists():
        raise UserError(f"{label} not found: {path}")
    if not path.is_file():
        raise UserError(f"{label} is not a file: {path}")
    return path


def ensure_dir(path: Path, dry_run: bool) -> None:
    """
    Create a directory if needed, unless this is a dry-run.

    Why: dry-run should never touch the filesystem, but real runs should
    create output folders automatically.
    """

    if dry_run:
        return
    path.mkdir(parents=True, exist_ok=True)


def ensure_dir_path(path: Path, label: str) -> None:
    """Ensure a path is either a directory or does not exist yet."""

    if path.exists() and not path.is_dir():
        raise UserError(f"{label} is not a directory: {path}")


def ensure_file_path(path: Path, label: str) -> None:
    """Ensure a path is a file path (not an existing directory)."""

    if path.exists() and path.is_dir():
        raise UserError(f"{label} is a directory, not a file: {path}")


def validate_positive_int(value: int, label: str) -> int:
    """Common validation for options like --dpi or --pdf_page."""

    if value <= 0:
        raise UserError(f"{label} must be a positive integer.")
    return value


def parse_number_list(spec: str, count: int, label: str) -> List[float]:
    """
    Parse a comma separated list of exactly ``count`` finite numbers.

    Examples: "0,0,200,300" or "150, 0, 150, 300".
    """

    raw = spec.strip()
    if not raw:
        raise UserError(f"{label} is empty.")

    tokens = [token.strip() for token in raw.split(",")]
    if any(token == "" for token in tokens):
        raise UserError(f"{label} contains an empty value (check commas).")
    if len(tokens) != count:
        raise UserError(f"{label} needs {count} comma separated numbers, got {len(tokens)}.")

    values: List[float] = []
    for token in tokens:
        try:
            value = float(token)
        except ValueError:
            raise UserError(f"Invalid number '{token}' in {label}.") from None
        if not math.isfinite(value):
            raise UserError(f"{label} values must be finite numbers.")
        values.append(value)
    return values


def parse_rect_spec(spec: str, label: str = "--outline") -> Rect:
    """
    Parse "left,top,right,bottom" into a Rect.

    Inverted or empty rects are rejected here; the geometry code would
    silently skip them, which is never what a user typing one wants.
    """

    left, top, right, bottom = parse_number_list(spec, 4, label)
    rect = Rect(left, top, right, bottom)
    if not rect.is_valid:
        raise UserError(f"{label} must have right > left and bottom > top.")
    return rect


def parse_line_spec(spec: str, label: str = "--line") -> LineSegment:
    """Parse "x1,y1,x2,y2" into a LineSegment (top end first)."""

    x1, y1, x2, y2 = parse_number_list(spec, 4, label)
    return LineSegment.from_coords(x1, y1, x2, y2)


def format_number(value: float) -> str:
    """Render coordinates compactly: 100.0 -> "100", 12.5 -> "12.5"."""

    if float(value).is_integer():
        return str(int(value))
    return f"{value:.6g}"
