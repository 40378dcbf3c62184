from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

from astdiff.change_tree import ChangeNode, ComparisonResult, iter_preorder


@dataclass(frozen=True)
class ChangeTally:
    added: int = 0
    deleted: int = 0
    modified: int = 0
    moved: int = 0

    @property
    def total(self) -> int:
        return self.added + self.deleted + self.modified + self.moved


def count_changes(roots: Iterable[ChangeNode]) -> ChangeTally:
    counts = {"added": 0, "deleted": 0, "modified": 0, "moved": 0}
    for node in roots:
        kind = node.change_kind
        if kind == "moved_modified":
            kind = "moved"
        if kind in counts:
            counts[kind] += 1
    return ChangeTally(**counts)


def _similarity_percent(summary: dict[str, Any]) -> float | None:
    value = summary.get("structural_similarity")
    if value is None:
        return None
    try:
        return float(value) * 100.0
    except (TypeError, ValueError):
        return None


def summarize_result(result: ComparisonResult) -> dict[str, Any]:
    summary = result.summary
    tally = count_changes(result.differences)
    node_count = sum(1 for _ in iter_preorder(result.differences))
    return {
        "message": result.message,
        "fileA": {
            "name": result.file_a.original_filename,
            "totalLines": result.file_a.total_lines,
        },
        "fileB": {
            "name": result.file_b.original_filename,
            "totalLines": result.file_b.total_lines,
        },
        "isIdentical": bool(summary.get("is_identical", tally.total == 0)),
        "similarityPercent": _similarity_percent(summary),
        "blocks": {
            "totalA": summary.get("total_blocks_a"),
            "totalB": summary.get("total_blocks_b"),
            "unchanged": summary.get("blocks_unchanged"),
        },
        "tally": asdict(tally) | {"total": tally.total},
        "rootCount": len(result.differences),
        "nodeCount": node_count,
    }
