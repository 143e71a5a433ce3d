"""
Read and write page layout documents (YAML).

Document shape:

    pages:
      - id: scan_0001
        outline: [0, 0, 200, 300]
        type: two_pages
        cutters:
          - [[150, 0], [150, 300]]

Outline maps used by the adapt command look like:

    outlines:
      scan_0001: [0, 0, 100, 300]
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .geometry import LineSegment, Rect
from .layout import LayoutType, PageLayout, make_layout_of_type
from .utils import UserError, ensure_dir, ensure_file_exists


@dataclass(frozen=True)
class PageEntry:
    page_id: str
    layout: PageLayout


def _read_yaml_mapping(path: Path, label: str) -> Dict[str, Any]:
    ensure_file_exists(path, label)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise UserError(f"Failed to parse {label.lower()} {path}: {exc}") from exc
    except OSError as exc:
        raise UserError(f"Failed to read {label.lower()} {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise UserError(f"{label} {path} must contain a YAML mapping at top level.")
    return loaded


def _as_number(value: Any, ctx: str) -> float:
    # bool is an int subclass; "true" is never a coordinate.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UserError(f"{ctx} must be a number, got {value!r}.")
    number = float(value)
    if not math.isfinite(number):
        raise UserError(f"{ctx} must be a finite number.")
    return number


def _parse_rect(raw: Any, ctx: str) -> Rect:
    if not isinstance(raw, (list, tuple)) or len(raw) != 4:
        raise UserError(f"{ctx} must be a list [left, top, right, bottom].")
    left, top, right, bottom = (_as_number(value, ctx) for value in raw)
    return Rect(left, top, right, bottom)


def _parse_point(raw: Any, ctx: str) -> tuple[float, float]:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise UserError(f"{ctx} must be a point [x, y].")
    return _as_number(raw[0], ctx), _as_number(raw[1], ctx)


def _parse_cutter(raw: Any, ctx: str) -> Optional[LineSegment]:
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise UserError(f"{ctx} must be [[x1, y1], [x2, y2]] or null.")
    x1, y1 = _parse_point(raw[0], ctx)
    x2, y2 = _parse_point(raw[1], ctx)
    return LineSegment.from_coords(x1, y1, x2, y2)


def _parse_layout_type(raw: Any, ctx: str) -> LayoutType:
    allowed = ", ".join(item.value for item in LayoutType)
    if not isinstance(raw, str):
        raise UserError(f"{ctx} must be one of: {allowed}.")
    try:
        return LayoutType(raw.strip().lower())
    except ValueError:
        raise UserError(f"{ctx} '{raw}' is unknown. Use one of: {allowed}.") from None


def parse_page_entry(raw: Any, position: int) -> PageEntry:
    """Validate one page mapping and turn it into a PageEntry."""

    if not isinstance(raw, dict):
        raise UserError(f"pages[{position}] must be a mapping.")

    page_id = raw.get("id")
    if page_id is None or str(page_id).strip() == "":
        raise UserError(f"pages[{position}] is missing 'id'.")
    page_id = str(page_id)
    ctx = f"page '{page_id}'"

    if "outline" not in raw:
        raise UserError(f"{ctx} is missing 'outline'.")
    outline = _parse_rect(raw["outline"], f"{ctx} outline")
    layout_type = _parse_layout_type(
        raw.get("type", LayoutType.SINGLE_PAGE_UNCUT.value), f"{ctx} type"
    )

    raw_cutters = raw.get("cutters") or []
    if not isinstance(raw_cutters, list):
        raise UserError(f"{ctx} cutters must be a list.")
    cutters = [
        _parse_cutter(item, f"{ctx} cutters[{index}]")
        for index, item in enumerate(raw_cutters)
    ]
    if len(cutters) != layout_type.cutter_count:
        raise UserError(
            f"{ctx} has type {layout_type.value} which needs "
            f"{layout_type.cutter_count} cutter(s), got {len(cutters)}."
        )

    return PageEntry(page_id, make_layout_of_type(layout_type, outline, cutters))


def load_layouts(path: Path) -> List[PageEntry]:
    """Load and validate every page of a layout document."""

    loaded = _read_yaml_mapping(path, "Layout file")
    raw_pages = loaded.get("pages")
    if raw_pages is None:
        raise UserError(f"Layout file {path} has no 'pages' list.")
    if not isinstance(raw_pages, list):
        raise UserError(f"Layout file {path}: 'pages' must be a list.")

    entries: List[PageEntry] = []
    seen = set()
    for position, raw in enumerate(raw_pages):
        entry = parse_page_entry(raw, position)
        if entry.page_id in seen:
            raise UserError(f"Duplicate page id '{entry.page_id}' in {path}.")
        seen.add(entry.page_id)
        entries.append(entry)
    return entries


def load_outlines(path: Path) -> Dict[str, Rect]:
    """Load a page id -> new outline map."""

    loaded = _read_yaml_mapping(path, "Outlines file")
    raw_outlines = loaded.get("outlines")
    if not isinstance(raw_outlines, dict):
        raise UserError(f"Outlines file {path} must have an 'outlines' mapping.")
    return {
        str(page_id): _parse_rect(raw, f"outline for page '{page_id}'")
        for page_id, raw in raw_outlines.items()
    }


def _plain(value: float) -> float | int:
    return int(value) if float(value).is_integer() else float(value)


def rect_to_data(rect: Rect) -> List[float | int]:
    return [_plain(value) for value in rect.as_coords()]


def cutter_to_data(line: Optional[LineSegment]) -> Optional[List[List[float | int]]]:
    if line is None:
        return None
    return [[_plain(line.p1.x), _plain(line.p1.y)], [_plain(line.p2.x), _plain(line.p2.y)]]


def layout_to_data(page_id: str, layout: PageLayout) -> Dict[str, Any]:
    """Serialize a layout the same way load_layouts reads it."""

    return {
        "id": page_id,
        "outline": rect_to_data(layout.outline),
        "type": layout.type.value,
        "cutters": [cutter_to_data(line) for line in layout.cutter_lines],
    }


def dump_layouts(entries: List[PageEntry]) -> str:
    data = {"pages": [layout_to_data(entry.page_id, entry.layout) for entry in entries]}
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=None)


def write_layouts(path: Path, entries: List[PageEntry]) -> None:
    """Write a layout document, creating the parent folder if needed."""

    ensure_dir(path.parent, dry_run=False)
    try:
        with path.open("w", encoding="utf-8") as handle:
            handle.write(dump_layouts(entries))
    except OSError as exc:
        raise UserError(f"Failed to write layout file {path}: {exc}") from exc
