"""
Adapt every page of a layout document to new outlines.

Why this module exists:
- Isolates file handling and reporting from the pure geometry in adapter.py.
- Every page gets an action record, so the manifest explains which layouts
  moved and which ones collapsed to single_page_uncut.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Set

from .adapter import adapt_layout
from .geometry import Rect
from .layout import LayoutType, PageLayout
from .layout_io import PageEntry, load_layouts, rect_to_data, write_layouts
from .manifest import ManifestRecorder
from .preview import preview_name, render_preview
from .utils import UserError, ensure_dir, ensure_dir_path, ensure_file_path


def classify_change(old: PageLayout, new: PageLayout) -> str:
    """Name what adapt_layout did to a page: unchanged, adapted or downgraded."""

    if new is old or new == old:
        return "unchanged"
    if new.type == LayoutType.SINGLE_PAGE_UNCUT and old.type != LayoutType.SINGLE_PAGE_UNCUT:
        return "downgraded"
    return "adapted"


def adapt_entries(
    entries: List[PageEntry],
    outline: Optional[Rect],
    outlines: Optional[Dict[str, Rect]],
    snap_to_pixels: bool,
) -> List[PageEntry]:
    """Adapt entries in memory. Pages without a new outline are kept as they are."""

    adapted: List[PageEntry] = []
    for entry in entries:
        new_outline = outline if outline is not None else (outlines or {}).get(entry.page_id)
        if new_outline is None:
            adapted.append(entry)
            continue
        layout = adapt_layout(entry.layout, new_outline, snap_to_pixels=snap_to_pixels)
        adapted.append(PageEntry(entry.page_id, layout))
    return adapted


def adapt_layouts_file(
    layouts_path: Path,
    out_path: Path,
    outline: Optional[Rect],
    outlines: Optional[Dict[str, Rect]],
    snap_to_pixels: bool,
    overwrite: bool,
    dry_run: bool,
    manifest_path: Path,
    command_string: str,
    options: Dict[str, object],
    preview_dir: Optional[Path] = None,
) -> List[PageEntry]:
    """
    Adapt a layout document and write the result.

    Exactly one of outline (applied to every page) or outlines (per page id)
    must be given.
    """

    recorder = ManifestRecorder(
        command=command_string,
        options=options,
        inputs={"layouts": str(layouts_path)},
        outputs={"layouts": str(out_path), "manifest": str(manifest_path)},
        dry_run=dry_run,
        tool_version=str(options.get("version", "0.0.0")),
        verbosity=str(options.get("verbosity", "normal")),
    )

    entries: List[PageEntry] = []
    results: List[PageEntry] = []
    error_message: str | None = None
    summary: Dict[str, object] = {
        "pages": 0,
        "adapted": 0,
        "downgraded": 0,
        "unchanged": 0,
        "output": str(out_path),
    }

    try:
        if (outline is None) == (outlines is None):
            raise UserError("Use either --outline or --outlines, exactly one of them.")
        ensure_file_path(out_path, "Output layout file")
        if out_path.exists() and not overwrite:
            raise UserError(f"Output exists: {out_path}. Use --overwrite to replace it.")
        if preview_dir is not None:
            ensure_dir_path(preview_dir, "Preview directory")

        entries = load_layouts(layouts_path)
        recorder.inputs["page_count"] = len(entries)
        if outline is not None:
            recorder.inputs["outline"] = rect_to_data(outline)
        else:
            recorder.inputs["outlines"] = len(outlines or {})
            known_ids = {entry.page_id for entry in entries}
            for page_id in sorted(set(outlines or {}) - known_ids):
                recorder.log(f"Outline given for unknown page '{page_id}'; ignored.", level="warning")

        recorder.log(f"Adapting {len(entries)} page layout(s) from {layouts_path}.")
        results = adapt_entries(entries, outline, outlines, snap_to_pixels)

        if preview_dir is not None and not dry_run:
            ensure_dir(preview_dir, dry_run=False)
        preview_names: Set[str] = set()

        for before, after in zip(entries, results):
            status = classify_change(before.layout, after.layout)
            summary[status] = int(summary[status]) + 1
            recorder.log(
                f"Page {after.page_id}: {status} "
                f"({before.layout.type.value} -> {after.layout.type.value})",
                level="info" if status != "unchanged" else "debug",
            )

            written_preview: Optional[Path] = None
            if preview_dir is not None and status != "unchanged":
                name = preview_name(after.page_id, preview_names)
                if name != preview_name(after.page_id):
                    recorder.log(
                        f"Preview name for page '{after.page_id}' is already used; "
                        f"writing {name} instead.",
                        level="warning",
                    )
                preview_path = preview_dir / name
                if dry_run:
                    recorder.log(f"[dry-run] Would write preview: {preview_path}", level="debug")
                elif preview_path.exists() and not overwrite:
                    recorder.log(f"Skipping existing preview: {preview_path}")
                else:
                    written_preview = render_preview(
                        preview_path, after.layout, previous=before.layout
                    )

            recorder.add_page_action(
                after.page_id, status, before.layout, after.layout, preview=written_preview
            )

        if dry_run:
            recorder.log(f"[dry-run] Would write {len(results)} layout(s) -> {out_path}")
            recorder.add_action(action="write_layouts", status="dry-run", output=str(out_path))
        else:
            write_layouts(out_path, results)
            recorder.log(f"Wrote {len(results)} layout(s) -> {out_path}")
            recorder.add_action(action="write_layouts", status="written", output=str(out_path))
    except Exception as exc:  # pragma: no cover - includes validation and file errors
        if isinstance(exc, UserError):
            error_message = str(exc)
        else:
            error_message = f"Failed to adapt layouts in {layouts_path}: {exc}"
        recorder.log(error_message, level="error")
        recorder.add_action(action="adapt", status="error", error=error_message)
        if isinstance(exc, UserError):
            raise
        raise UserError(error_message) from exc
    finally:
        summary["pages"] = len(entries)
        summary["status"] = "error" if error_message else "ok"
        if error_message is not None:
            summary["error"] = error_message
        recorder.write_manifest(manifest_path, summary)

    return results
