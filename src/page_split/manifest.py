"""
Manifest recording and logging.

Why this exists:
- Every adapt run writes a JSON manifest with inputs/outputs and a per-page
  timeline, so a changed layout can always be traced back.
- Console messages go through one place so quiet/verbose behave the same
  for every command.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from pathlib import Path
import sys
from typing import Any, Dict, List, Optional, TextIO

from .layout import PageLayout
from .layout_io import cutter_to_data, rect_to_data
from .utils import ensure_dir


TOOL_NAME = "page-split"

# Which log levels reach the console for each verbosity mode.
_CONSOLE_LEVELS = {
    "quiet": {"error"},
    "normal": {"info", "warning", "error"},
    "verbose": {"debug", "info", "warning", "error"},
}


def _iso_now() -> str:
    """Return an ISO-8601 timestamp in UTC."""

    return datetime.now(timezone.utc).isoformat()


@dataclass
class ManifestRecorder:
    """
    Collect logs and per-page actions, then write a single manifest file.
    """

    command: str
    options: Dict[str, Any]
    inputs: Dict[str, Any]
    outputs: Dict[str, Any]
    dry_run: bool
    tool_version: str = "0.0.0"
    tool_name: str = TOOL_NAME
    verbosity: str = "normal"
    console_stream: TextIO = field(default_factory=lambda: sys.stderr)
    started_at: str = field(default_factory=_iso_now)
    logs: List[Dict[str, Any]] = field(default_factory=list)
    actions: List[Dict[str, Any]] = field(default_factory=list)

    def log(self, message: str, level: str = "info") -> None:
        """Record a log message and echo it when the verbosity allows."""

        self.logs.append({"timestamp": _iso_now(), "level": level, "message": message})

        visible = _CONSOLE_LEVELS.get(self.verbosity, _CONSOLE_LEVELS["normal"])
        if level not in visible:
            return
        rendered = f"[{level}] {message}" if self.verbosity == "verbose" else message
        print(rendered, file=self.console_stream)

    def add_action(self, action: str, status: str, **details: Any) -> None:
        """
        Add an action record.

        Example action types: adapt_page, write_layouts, adapt.
        """

        entry: Dict[str, Any] = {
            "timestamp": _iso_now(),
            "action": action,
            "status": status,
        }
        entry.update(details)
        self.actions.append(entry)

    def add_page_action(
        self,
        page_id: str,
        status: str,
        before: PageLayout,
        after: PageLayout,
        preview: Optional[Path] = None,
    ) -> None:
        """Record what adapting one page did, old and new geometry side by side."""

        details: Dict[str, Any] = {
            "page": page_id,
            "old_type": before.type.value,
            "new_type": after.type.value,
            "old_outline": rect_to_data(before.outline),
            "new_outline": rect_to_data(after.outline),
            "old_cutters": [cutter_to_data(line) for line in before.cutter_lines],
            "new_cutters": [cutter_to_data(line) for line in after.cutter_lines],
        }
        if preview is not None:
            details["preview"] = str(preview)
        self.add_action(action="adapt_page", status=status, **details)

    def _summarize_actions(self) -> Dict[str, int]:
        """Count actions by status (adapted, downgraded, unchanged, ...)."""

        counts: Dict[str, int] = {}
        for action in self.actions:
            status = action.get("status", "unknown")
            counts[status] = counts.get(status, 0) + 1
        return counts

    def build_manifest(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        """Assemble the final manifest structure."""

        return {
            "tool": self.tool_name,
            "version": self.tool_version,
            "command": self.command,
            "started_at": self.started_at,
            "ended_at": _iso_now(),
            "options": self.options,
            "inputs": self.inputs,
            "outputs": self.outputs,
            "summary": summary,
            "action_counts": self._summarize_actions(),
            "actions": self.actions,
            "logs": self.logs,
        }

    def write_manifest(self, path: Path, summary: Dict[str, Any]) -> None:
        """Write the manifest JSON, unless this is a dry-run."""

        if self.dry_run:
            self.log(f"[dry-run] Would write manifest to {path}")
            return

        ensure_dir(path.parent, dry_run=False)
        manifest = self.build_manifest(summary)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(manifest, handle, indent=2, ensure_ascii=True)
