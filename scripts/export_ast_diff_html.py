#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
import webbrowser
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from astdiff.config import resolve_viewer_config  # noqa: E402
from astdiff.html_report import render_comparison_html  # noqa: E402
from astdiff.viewer_core import build_comparison_view, load_comparison, load_documents  # noqa: E402


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a structural comparison result as a side-by-side HTML page.")
    parser.add_argument("--input", required=True, help="Input comparison result JSON path.")
    parser.add_argument("--output", required=True, help="Output HTML path.")
    parser.add_argument("--file-a", help="Original document (default: file_a.formatted_content).")
    parser.add_argument("--file-b", help="Modified document (default: file_b.formatted_content).")
    parser.add_argument("--title", help="Optional custom report title.")
    parser.add_argument("--config", help="Viewer config TOML (default: $ASTDIFF_VIEWER_CONFIG).")
    parser.add_argument("--open", action="store_true", help="Open the generated HTML in your default browser.")
    return parser.parse_args(argv)


def _rooted(value: str | None) -> Path | None:
    if not value:
        return None
    path = Path(value)
    return path if path.is_absolute() else ROOT / path


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    input_path = _rooted(args.input)
    output_path = _rooted(args.output)

    try:
        config = resolve_viewer_config(args.config)
        result, warnings = load_comparison(input_path)
        text_a, text_b = load_documents(result, _rooted(args.file_a), _rooted(args.file_b))
        view = build_comparison_view(result, text_a, text_b, trust_offsets=config.trust_offsets, warnings=warnings)
        html = render_comparison_html(view, report_title=args.title)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(html, encoding="utf-8")
    except Exception as error:  # noqa: BLE001
        print(f"[error] {error}", file=sys.stderr)
        return 1

    print(f"Wrote: {output_path}")
    if args.open:
        webbrowser.open(output_path.resolve().as_uri())
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
