from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_ENV_VAR = "ASTDIFF_VIEWER_CONFIG"
VALID_VIEW_SIDES = {"a", "b", "both"}


@dataclass(frozen=True)
class ViewerConfig:
    trust_offsets: bool = True
    changed_only: bool = False
    context_lines: int = 3
    side: str = "both"


def load_viewer_config(path: Path) -> ViewerConfig:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise RuntimeError(f"Config file not found: {path}") from error
    except tomllib.TOMLDecodeError as error:
        raise RuntimeError(f"Invalid TOML in {path}: {error}") from error

    highlight = data.get("highlight") or {}
    view = data.get("view") or {}

    side = str(view.get("side") or "both").strip().lower()
    if side not in VALID_VIEW_SIDES:
        raise RuntimeError(f"view.side must be one of {sorted(VALID_VIEW_SIDES)}, got {side!r}")
    try:
        context_lines = max(0, int(view.get("context_lines", 3)))
    except (TypeError, ValueError) as error:
        raise RuntimeError("view.context_lines must be an integer") from error

    return ViewerConfig(
        trust_offsets=bool(highlight.get("trust_offsets", True)),
        changed_only=bool(view.get("changed_only", False)),
        context_lines=context_lines,
        side=side,
    )


def resolve_viewer_config(path: str | None = None) -> ViewerConfig:
    """Load config from an explicit path, else from $ASTDIFF_VIEWER_CONFIG, else defaults."""
    candidate = path or os.environ.get(CONFIG_ENV_VAR)
    if not candidate:
        return ViewerConfig()
    return load_viewer_config(Path(candidate))
