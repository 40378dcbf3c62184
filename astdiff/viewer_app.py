from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console

from .config import resolve_viewer_config
from .summary import summarize_result
from .viewer_core import ComparisonView, build_comparison_view, load_comparison, load_documents, resolve_input_path
from .viewer_render import render_comparison, render_summary, render_warnings


def parse_app_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive side-by-side viewer for a structural comparison result.")
    parser.add_argument("path", help="Path to the comparison result JSON")
    parser.add_argument("--file-a", help="Original document (default: file_a.formatted_content)")
    parser.add_argument("--file-b", help="Modified document (default: file_b.formatted_content)")
    parser.add_argument("--config", help="Viewer config TOML (default: $ASTDIFF_VIEWER_CONFIG)")
    parser.add_argument("--once", action="store_true", help="Print the summary and changed lines, then exit.")
    return parser.parse_args(argv)


def run_textual_app(view: ComparisonView, source_path: Path, *, changed_only: bool, context: int) -> int:
    try:
        from .viewer_textual import launch_textual_viewer
    except Exception as error:  # noqa: BLE001
        print(
            f"[error] textual UI is unavailable: {error}. "
            "Install dependencies: python -m pip install -e .",
            file=sys.stderr,
        )
        return 1
    return launch_textual_viewer(view, source_path, changed_only=changed_only, context=context)


def run_app(argv: list[str]) -> int:
    args = parse_app_args(argv)
    console = Console()
    path = resolve_input_path(Path(args.path), search_roots=[Path(__file__).resolve().parents[1]])
    try:
        config = resolve_viewer_config(args.config)
        result, warnings = load_comparison(path)
        file_a = resolve_input_path(Path(args.file_a)) if args.file_a else None
        file_b = resolve_input_path(Path(args.file_b)) if args.file_b else None
        text_a, text_b = load_documents(result, file_a, file_b)
        view = build_comparison_view(result, text_a, text_b, trust_offsets=config.trust_offsets, warnings=warnings)
    except Exception as error:  # noqa: BLE001
        print(f"[error] {error}", file=sys.stderr)
        return 1

    if args.once:
        render_summary(console, summarize_result(result), len(view.warnings))
        render_warnings(console, view.warnings)
        render_comparison(console, view, side=config.side, changed_only=True, context=config.context_lines)
        return 0
    return run_textual_app(view, path, changed_only=config.changed_only, context=config.context_lines)


def main() -> int:
    return run_app(sys.argv[1:])
