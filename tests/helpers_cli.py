"""
Shared helpers for running page-split CLI entrypoints in tests.
"""

from __future__ import annotations

import io
import shutil
import sys
from contextlib import contextmanager, redirect_stderr, redirect_stdout
from pathlib import Path
from uuid import uuid4


SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


def _normalize_exit_code(value: object) -> int:
    """Normalize return values/SystemExit payloads into process-style int codes."""

    if value is None:
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return 1


def run_page_split_cli(argv: list[str]) -> tuple[int, str, str]:
    """
    Run page-split CLI in-process with isolated argv and captured stdio.

    Returns: (exit_code, stdout_text, stderr_text)
    """

    from page_split import cli as cli_mod

    original_argv = list(sys.argv)
    stdout_stream = io.StringIO()
    stderr_stream = io.StringIO()
    exit_code = 0

    try:
        sys.argv = ["page-split", *argv]
        with redirect_stdout(stdout_stream), redirect_stderr(stderr_stream):
            try:
                result = cli_mod.main(argv)
            except SystemExit as exc:
                exit_code = _normalize_exit_code(exc.code)
            else:
                exit_code = _normalize_exit_code(result)
    finally:
        sys.argv = original_argv

    return exit_code, stdout_stream.getvalue(), stderr_stream.getvalue()


@contextmanager
def workspace_temp_dir(prefix: str = "test"):
    """Temporary folder under .tmp_tests, removed afterwards."""

    root = Path(__file__).resolve().parents[1] / ".tmp_tests"
    root.mkdir(parents=True, exist_ok=True)
    tmp = root / f"{prefix}_{uuid4().hex}"
    tmp.mkdir(parents=True, exist_ok=False)
    try:
        yield tmp
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


TWO_PAGES_DOC = """\
pages:
  - id: scan_0001
    outline: [0, 0, 200, 300]
    type: two_pages
    cutters:
      - [[150, 0], [150, 300]]
  - id: scan_0002
    outline: [0, 0, 200, 300]
    type: single_page_cut
    cutters:
      - [[140, 0], [140, 300]]
      - [[60, 0], [60, 300]]
  - id: scan_0003
    outline: [0, 0, 200, 300]
    type: single_page_uncut
"""
