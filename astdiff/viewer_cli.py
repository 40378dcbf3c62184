from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console

from .config import VALID_VIEW_SIDES, resolve_viewer_config
from .summary import summarize_result
from .viewer_core import (
    build_comparison_view,
    load_comparison,
    load_documents,
    projection_payload,
    resolve_input_path,
)
from .viewer_render import render_comparison, render_summary, render_warnings


def parse_view_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show a structural comparison result side by side in the terminal.")
    parser.add_argument("path", help="Path to the comparison result JSON")
    parser.add_argument("--file-a", help="Original document (default: file_a.formatted_content)")
    parser.add_argument("--file-b", help="Modified document (default: file_b.formatted_content)")
    parser.add_argument("--side", choices=sorted(VALID_VIEW_SIDES), help="Which document(s) to show")
    parser.add_argument("--changed-only", action="store_true", default=None, help="Only show changed lines")
    parser.add_argument("--context", type=int, help="Context lines around changes with --changed-only")
    parser.add_argument(
        "--search-tokens",
        action="store_true",
        help="Locate token changes by searching the line instead of trusting their offsets",
    )
    parser.add_argument("--config", help="Viewer config TOML (default: $ASTDIFF_VIEWER_CONFIG)")
    parser.add_argument("--json", dest="as_json", action="store_true", help="Output the line maps as JSON")
    return parser.parse_args(argv)


def _optional_path(value: str | None) -> Path | None:
    if not value:
        return None
    return resolve_input_path(Path(value))


def run_view(argv: list[str]) -> int:
    args = parse_view_args(argv)
    if args.context is not None and args.context < 0:
        print("[error] --context must be >= 0", file=sys.stderr)
        return 2

    path = resolve_input_path(Path(args.path), search_roots=[Path(__file__).resolve().parents[1]])
    console = Console()
    try:
        config = resolve_viewer_config(args.config)
        result, warnings = load_comparison(path)
        text_a, text_b = load_documents(result, _optional_path(args.file_a), _optional_path(args.file_b))
        view = build_comparison_view(
            result,
            text_a,
            text_b,
            trust_offsets=config.trust_offsets and not args.search_tokens,
            warnings=warnings,
        )
    except Exception as error:  # noqa: BLE001
        print(f"[error] {error}", file=sys.stderr)
        return 1

    if args.as_json:
        payload = projection_payload(view.projection)
        payload["tally"] = summarize_result(result)["tally"]
        payload["warnings"] = list(view.warnings)
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    summary = summarize_result(result)
    render_summary(console, summary, len(view.warnings))
    render_warnings(console, view.warnings)
    render_comparison(
        console,
        view,
        side=args.side or config.side,
        changed_only=config.changed_only if args.changed_only is None else args.changed_only,
        context=config.context_lines if args.context is None else args.context,
    )
    return 0


def main() -> int:
    return run_view(sys.argv[1:])
