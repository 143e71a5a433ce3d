"""
Configuration helpers for YAML-backed adapt options.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml

from .utils import UserError, ensure_file_exists


DEFAULT_ADAPT: dict[str, Any] = {
    "outline": None,
    "outlines": None,
    "snap_to_pixels": False,
    "preview_dir": None,
    "overwrite": False,
    "dry_run": False,
    "manifest": None,
}


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file into a dictionary."""

    ensure_file_exists(path, "Config file")
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise UserError(f"Failed to parse YAML config {path}: {exc}") from exc
    except OSError as exc:
        raise UserError(f"Failed to read config {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise UserError(f"Config {path} must contain a YAML mapping/object at top level.")
    return loaded


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge dictionaries where overlay values win.
    """

    merged = deepcopy(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def validate_keys(cfg: dict[str, Any], allowed: set[str], ctx: str) -> None:
    """
    Validate dictionary keys and fail fast on unknown entries.
    """

    unknown = sorted(str(key) for key in cfg.keys() if key not in allowed)
    if unknown:
        allowed_list = ", ".join(sorted(allowed))
        unknown_list = ", ".join(unknown)
        raise UserError(
            f"Unknown keys in {ctx}: {unknown_list}. Allowed keys: {allowed_list}."
        )


def extract_adapt_section(loaded: dict[str, Any]) -> dict[str, Any]:
    """Support either root config keys or an adapt: wrapper."""

    allowed = set(DEFAULT_ADAPT.keys())
    if "adapt" in loaded:
        section = loaded["adapt"]
        if not isinstance(section, dict):
            raise UserError("config.adapt must be a mapping/object.")
        validate_keys(section, allowed, "config.adapt")
        return section

    validate_keys(loaded, allowed, "config")
    return loaded


def dump_default_adapt_yaml() -> str:
    """Serialize wrapped adapt defaults as YAML."""

    return yaml.safe_dump({"adapt": DEFAULT_ADAPT}, sort_keys=False).rstrip()
