from __future__ import annotations

from dataclasses import dataclass

from astdiff.change_tree import ChangeNode, SIDE_A, SIDE_B

BADGE_LABELS = {
    "added": "ADDED",
    "deleted": "DELETED",
    "modified": "MODIFIED",
    "moved": "MOVED",
    "moved_modified": "MOVED & MODIFIED",
}

MARKER_LABELS = {
    "added": "+ ADDED",
    "deleted": "- DELETED",
    "moved": "<> MOVED",
    "moved_modified": "<> MOVED+MODIFIED",
}

# Line body styles for rich. Modified lines stay plain; their tokens carry the colour.
LINE_STYLES = {
    "added": "#c4f8d1 on #0f2a18",
    "deleted": "#ffd3d7 on #2f0d12",
    "moved": "#cfe8ff on #0b2236",
    "moved_modified": "#cfe8ff on #0b2236",
}

BADGE_STYLES = {
    "added": "bold #072010 on #92f2ae",
    "deleted": "bold #2a030a on #ffb3bb",
    "modified": "bold #2d2004 on #ffe7a1",
    "moved": "bold #e0e7ff on #4f46e5",
    "moved_modified": "bold #dbeafe on #1d4ed8",
}

TOKEN_STYLE = "bold #854d0e on #fef08a"

HTML_COLORS = {
    "added": {"bg": "#e6ffed", "border": "#22863a", "badge_bg": "#e6ffec"},
    "deleted": {"bg": "#ffeef0", "border": "#d73a49", "badge_bg": "#ffeef0"},
    "modified": {"bg": "#ffffff", "border": "#f59e0b", "badge_bg": "#fff5b1"},
    "moved": {"bg": "#e0f2fe", "border": "#6366f1", "badge_bg": "#e0e7ff"},
    "moved_modified": {"bg": "#e0f2fe", "border": "#3b82f6", "badge_bg": "#dbeafe"},
}


@dataclass(frozen=True)
class BlockBadge:
    kind: str
    label: str
    identifier: str
    block_type: str
    location: str
    similarity: float | None = None

    @property
    def title(self) -> str:
        head = f"{self.block_type}: {self.identifier}" if self.block_type else self.identifier
        text = f"{self.label} {head}{self.location}"
        if self.similarity is not None:
            text += f" [{self.similarity:.1f}% similar]"
        return text


def _span_text(node: ChangeNode, side: str) -> str:
    line_range = node.range_for(side)
    if line_range is not None:
        return f"{line_range.start}-{line_range.end}"
    line = node.legacy_line_for(side)
    return "?" if line is None else str(line)


def location_text(node: ChangeNode) -> str:
    kind = node.change_kind
    if kind in {"moved", "moved_modified"}:
        return f" ({_span_text(node, SIDE_A)} -> {_span_text(node, SIDE_B)})"
    if kind == "added":
        return f" at line {_span_text(node, SIDE_B)}"
    if kind == "deleted":
        return f" at line {_span_text(node, SIDE_A)}"
    return f" at lines {_span_text(node, SIDE_A)}"


def block_badge(node: ChangeNode) -> BlockBadge:
    score = node.similarity_score
    return BlockBadge(
        kind=node.change_kind,
        label=BADGE_LABELS.get(node.change_kind, BADGE_LABELS["modified"]),
        identifier=node.identifier or node.label,
        block_type=node.block_type,
        location=location_text(node),
        # 0 and 100 carry no information worth showing.
        similarity=score if 0 < score < 100 else None,
    )


def marker_text(kind: str, counterpart_line: int | None) -> str | None:
    label = MARKER_LABELS.get(kind)
    if label is None:
        return None
    if counterpart_line is not None:
        return f"{label} -> {counterpart_line}"
    return label
