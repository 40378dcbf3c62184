#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from astdiff.projector import project  # noqa: E402
from astdiff.summary import summarize_result  # noqa: E402
from astdiff.viewer_core import load_comparison  # noqa: E402


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Summarize a structural comparison result (tallies/similarity/files).")
    parser.add_argument("--input", required=True, help="Input comparison result JSON path.")
    parser.add_argument("--json", action="store_true", help="Output JSON summary only.")
    return parser.parse_args(argv)


def _pct(value: float | None) -> str:
    return "-" if value is None else f"{value:.2f}%"


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    input_path = Path(args.input)
    if not input_path.is_absolute():
        input_path = ROOT / input_path
    try:
        result, warnings = load_comparison(input_path.resolve())
        summary = summarize_result(result)
        diagnostics = [str(item) for item in project(result.differences).diagnostics]
    except Exception as error:  # noqa: BLE001
        print(f"[error] {error}", file=sys.stderr)
        return 1

    summary["warnings"] = warnings + diagnostics
    if args.json:
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return 0

    tally = summary.get("tally", {})
    file_a = summary.get("fileA", {})
    file_b = summary.get("fileB", {})
    print(f"File: {input_path.resolve()}")
    if summary.get("message"):
        print(f"Message: {summary['message']}")
    print(f"A: {file_a.get('name') or '-'} ({file_a.get('totalLines', 0)} lines)")
    print(f"B: {file_b.get('name') or '-'} ({file_b.get('totalLines', 0)} lines)")
    print(f"Similarity: {_pct(summary.get('similarityPercent'))} identical={bool(summary.get('isIdentical'))}")
    print(
        "Changes:"
        f" added={tally.get('added', 0)}"
        f" deleted={tally.get('deleted', 0)}"
        f" modified={tally.get('modified', 0)}"
        f" moved={tally.get('moved', 0)}"
        f" roots={summary.get('rootCount', 0)}"
        f" nodes={summary.get('nodeCount', 0)}"
    )
    for warning in summary["warnings"]:
        print(f"warning: {warning}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
