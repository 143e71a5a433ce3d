"""
Robustness tests for batch adaptation and manifest structure.
"""

from __future__ import annotations

import io
import json
from pathlib import Path
import sys
import unittest

from helpers_cli import TWO_PAGES_DOC, workspace_temp_dir

import yaml

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from page_split.batch import adapt_entries, adapt_layouts_file, classify_change  # noqa: E402
from page_split.geometry import LineSegment, Rect  # noqa: E402
from page_split.layout import TwoPagesLayout, UncutLayout  # noqa: E402
from page_split.layout_io import PageEntry  # noqa: E402
from page_split.manifest import ManifestRecorder  # noqa: E402
from page_split.utils import UserError  # noqa: E402


QUIET_OPTIONS = {"verbosity": "quiet", "version": "0.0.0"}


def _adapt(root: Path, **overrides):
    layouts = root / "layouts.yaml"
    if not layouts.exists():
        layouts.write_text(TWO_PAGES_DOC, encoding="utf-8")
    kwargs = dict(
        layouts_path=layouts,
        out_path=root / "out.yaml",
        outline=Rect(0, 0, 100, 300),
        outlines=None,
        snap_to_pixels=False,
        overwrite=False,
        dry_run=False,
        manifest_path=root / "manifest.json",
        command_string="page-split adapt",
        options=QUIET_OPTIONS,
    )
    kwargs.update(overrides)
    return adapt_layouts_file(**kwargs)


class ClassifyChangeTests(unittest.TestCase):
    def test_statuses(self) -> None:
        outline = Rect(0, 0, 200, 300)
        two_pages = TwoPagesLayout(outline, LineSegment.from_coords(100, 0, 100, 300))
        self.assertEqual(classify_change(two_pages, two_pages), "unchanged")
        self.assertEqual(classify_change(two_pages, UncutLayout(outline)), "downgraded")
        moved = TwoPagesLayout(Rect(0, 0, 200, 200), LineSegment.from_coords(100, 0, 100, 200))
        self.assertEqual(classify_change(two_pages, moved), "adapted")
        self.assertEqual(
            classify_change(UncutLayout(outline), UncutLayout(Rect(0, 0, 1, 1))), "adapted"
        )


class AdaptEntriesTests(unittest.TestCase):
    def test_pages_without_outline_are_kept(self) -> None:
        entry = PageEntry("a", UncutLayout(Rect(0, 0, 10, 10)))
        result = adapt_entries([entry], None, {"b": Rect(0, 0, 5, 5)}, snap_to_pixels=False)
        self.assertIs(result[0], entry)

    def test_per_page_outline(self) -> None:
        entries = [
            PageEntry("a", UncutLayout(Rect(0, 0, 10, 10))),
            PageEntry("b", UncutLayout(Rect(0, 0, 10, 10))),
        ]
        result = adapt_entries(entries, None, {"b": Rect(0, 0, 5, 5)}, snap_to_pixels=False)
        self.assertEqual(result[0].layout.outline, Rect(0, 0, 10, 10))
        self.assertEqual(result[1].layout.outline, Rect(0, 0, 5, 5))


class AdaptLayoutsFileTests(unittest.TestCase):
    def test_writes_layouts_and_manifest(self) -> None:
        with workspace_temp_dir("batch") as root:
            results = _adapt(root)
            written = yaml.safe_load((root / "out.yaml").read_text(encoding="utf-8"))
            manifest = json.loads((root / "manifest.json").read_text(encoding="utf-8"))

        self.assertEqual(len(results), 3)
        self.assertEqual(written["pages"][0]["type"], "single_page_uncut")
        self.assertEqual(manifest["summary"]["pages"], 3)
        self.assertEqual(manifest["summary"]["downgraded"], 1)
        self.assertEqual(manifest["summary"]["adapted"], 2)
        self.assertEqual(manifest["summary"]["status"], "ok")
        self.assertEqual(manifest["action_counts"].get("written"), 1)
        first = manifest["actions"][0]
        self.assertEqual(first["page"], "scan_0001")
        self.assertEqual(first["old_type"], "two_pages")
        self.assertEqual(first["new_cutters"], [])

    def test_dry_run_writes_nothing(self) -> None:
        with workspace_temp_dir("batch") as root:
            _adapt(root, dry_run=True, preview_dir=root / "previews")
            self.assertFalse((root / "out.yaml").exists())
            self.assertFalse((root / "manifest.json").exists())
            self.assertFalse((root / "previews").exists())

    def test_existing_output_needs_overwrite(self) -> None:
        with workspace_temp_dir("batch") as root:
            (root / "out.yaml").write_text("pages: []\n", encoding="utf-8")
            with self.assertRaises(UserError):
                _adapt(root)
            manifest = json.loads((root / "manifest.json").read_text(encoding="utf-8"))
            self.assertEqual(manifest["summary"]["status"], "error")

            _adapt(root, overwrite=True)
            written = yaml.safe_load((root / "out.yaml").read_text(encoding="utf-8"))
            self.assertEqual(len(written["pages"]), 3)

    def test_outline_and_outlines_are_exclusive(self) -> None:
        with workspace_temp_dir("batch") as root:
            with self.assertRaises(UserError):
                _adapt(root, outlines={"scan_0001": Rect(0, 0, 1, 1)})
            with self.assertRaises(UserError):
                _adapt(root, outline=None)

    def test_outline_map_with_unknown_page_warns(self) -> None:
        with workspace_temp_dir("batch") as root:
            _adapt(
                root,
                outline=None,
                outlines={"scan_0002": Rect(0, 0, 200, 200), "ghost": Rect(0, 0, 5, 5)},
            )
            manifest = json.loads((root / "manifest.json").read_text(encoding="utf-8"))

        warnings = [entry for entry in manifest["logs"] if entry["level"] == "warning"]
        self.assertEqual(len(warnings), 1)
        self.assertIn("ghost", warnings[0]["message"])
        self.assertEqual(manifest["summary"]["unchanged"], 2)
        self.assertEqual(manifest["summary"]["adapted"], 1)

    def test_previews_for_changed_pages(self) -> None:
        with workspace_temp_dir("batch") as root:
            _adapt(root, preview_dir=root / "previews")
            names = sorted(path.name for path in (root / "previews").iterdir())
        self.assertEqual(
            names,
            ["scan_0001_preview.png", "scan_0002_preview.png", "scan_0003_preview.png"],
        )

    def test_clashing_preview_names_get_a_number(self) -> None:
        doc = (
            "pages:\n"
            "  - id: a/b\n"
            "    outline: [0, 0, 200, 300]\n"
            "  - id: a_b\n"
            "    outline: [0, 0, 200, 300]\n"
        )
        with workspace_temp_dir("batch") as root:
            (root / "layouts.yaml").write_text(doc, encoding="utf-8")
            _adapt(root, preview_dir=root / "previews")
            names = sorted(path.name for path in (root / "previews").iterdir())
            manifest = json.loads((root / "manifest.json").read_text(encoding="utf-8"))

        self.assertEqual(names, ["a_b_2_preview.png", "a_b_preview.png"])
        previews = [Path(action["preview"]).name for action in manifest["actions"][:2]]
        self.assertEqual(previews, ["a_b_preview.png", "a_b_2_preview.png"])
        warnings = [entry["message"] for entry in manifest["logs"] if entry["level"] == "warning"]
        self.assertEqual(len(warnings), 1)
        self.assertIn("a_b_2_preview.png", warnings[0])


class ManifestStructureTests(unittest.TestCase):
    def _recorder(self, verbosity: str, stream: io.StringIO, dry_run: bool = True) -> ManifestRecorder:
        return ManifestRecorder(
            command="page-split adapt",
            options={},
            inputs={},
            outputs={},
            dry_run=dry_run,
            verbosity=verbosity,
            console_stream=stream,
        )

    def test_build_manifest_has_expected_shape(self) -> None:
        recorder = self._recorder("normal", io.StringIO())
        recorder.log("hello")
        recorder.add_action("adapt_page", "downgraded", page="p1")

        manifest = recorder.build_manifest({"pages": 1})
        self.assertEqual(manifest["tool"], "page-split")
        self.assertIn("started_at", manifest)
        self.assertIn("ended_at", manifest)
        self.assertEqual(manifest["action_counts"], {"downgraded": 1})
        self.assertEqual(manifest["actions"][0]["page"], "p1")

    def test_page_action_records_old_and_new_geometry(self) -> None:
        recorder = self._recorder("quiet", io.StringIO())
        before = TwoPagesLayout(Rect(0, 0, 200, 300), LineSegment.from_coords(150, 0, 150, 300))
        after = UncutLayout(Rect(0, 0, 100, 300))
        recorder.add_page_action("p1", "downgraded", before, after, preview=Path("p1.png"))
        recorder.add_page_action("p2", "unchanged", after, after)

        first, second = recorder.actions
        self.assertEqual(first["action"], "adapt_page")
        self.assertEqual(first["page"], "p1")
        self.assertEqual(first["old_type"], "two_pages")
        self.assertEqual(first["new_type"], "single_page_uncut")
        self.assertEqual(first["old_outline"], [0, 0, 200, 300])
        self.assertEqual(first["new_outline"], [0, 0, 100, 300])
        self.assertEqual(first["old_cutters"], [[[150, 0], [150, 300]]])
        self.assertEqual(first["new_cutters"], [])
        self.assertEqual(first["preview"], "p1.png")
        self.assertNotIn("preview", second)

    def test_write_manifest_respects_dry_run(self) -> None:
        with workspace_temp_dir("manifest") as root:
            out_path = root / "manifest.json"
            self._recorder("quiet", io.StringIO()).write_manifest(out_path, {"ok": True})
            self.assertFalse(out_path.exists())

    def test_quiet_suppresses_info_but_prints_error(self) -> None:
        stream = io.StringIO()
        recorder = self._recorder("quiet", stream)
        recorder.log("hello-info")
        recorder.log("hello-error", level="error")
        output = stream.getvalue()
        self.assertNotIn("hello-info", output)
        self.assertIn("hello-error", output)
        self.assertEqual(len(recorder.logs), 2)

    def test_normal_hides_debug_and_verbose_shows_it(self) -> None:
        normal = io.StringIO()
        self._recorder("normal", normal).log("hello-debug", level="debug")
        self.assertEqual(normal.getvalue(), "")

        verbose = io.StringIO()
        self._recorder("verbose", verbose).log("hello-debug", level="debug")
        self.assertIn("[debug] hello-debug", verbose.getvalue())


if __name__ == "__main__":
    unittest.main()
