from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CHANGE_KINDS = ("added", "deleted", "modified", "moved", "moved_modified")
MOVE_KINDS = {"moved", "moved_modified"}
STRUCTURAL_KINDS = {"added", "deleted"}

SIDE_A = "a"
SIDE_B = "b"
SIDES = (SIDE_A, SIDE_B)


def other_side(side: str) -> str:
    return SIDE_B if side == SIDE_A else SIDE_A


@dataclass(frozen=True)
class LineRange:
    start: int
    end: int

    @property
    def valid(self) -> bool:
        return self.end >= self.start

    def __len__(self) -> int:
        return max(0, self.end - self.start + 1)

    def lines(self) -> range:
        return range(self.start, self.end + 1)


@dataclass(frozen=True)
class TokenChange:
    old_token: str
    new_token: str
    old_start: int | None = None
    old_end: int | None = None
    new_start: int | None = None
    new_end: int | None = None

    def for_side(self, side: str) -> tuple[str, int | None, int | None]:
        if side == SIDE_A:
            return self.old_token, self.old_start, self.old_end
        return self.new_token, self.new_start, self.new_end


@dataclass(frozen=True)
class ChangeNode:
    change_kind: str
    identifier: str = ""
    block_type: str = ""
    description: str = ""
    similarity_score: float = 0.0
    range_a: LineRange | None = None
    range_b: LineRange | None = None
    line_a: int | None = None
    line_b: int | None = None
    children: tuple[ChangeNode, ...] = ()
    token_changes: tuple[TokenChange, ...] = ()
    path: str = ""
    branch_label: str = ""
    code: str = ""
    old_code: str = ""

    @property
    def label(self) -> str:
        return self.identifier or self.branch_label or self.path or self.block_type or "<anonymous>"

    def range_for(self, side: str) -> LineRange | None:
        return self.range_a if side == SIDE_A else self.range_b

    def legacy_line_for(self, side: str) -> int | None:
        return self.line_a if side == SIDE_A else self.line_b

    def start_line(self, side: str) -> int | None:
        line_range = self.range_for(side)
        if line_range is not None:
            return line_range.start
        return self.legacy_line_for(side)


@dataclass(frozen=True)
class FileInfo:
    original_filename: str = ""
    total_lines: int = 0
    formatted_content: str = ""
    file_uuid: str = ""


@dataclass(frozen=True)
class ComparisonResult:
    summary: dict[str, Any] = field(default_factory=dict)
    file_a: FileInfo = field(default_factory=FileInfo)
    file_b: FileInfo = field(default_factory=FileInfo)
    differences: tuple[ChangeNode, ...] = ()
    message: str = ""


def _line_number(value: Any) -> int | None:
    # The service sends null/0 for "no line"; bools are not line numbers.
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _offset(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _score(value: Any) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _parse_range(raw: dict[str, Any], prefix: str) -> LineRange | None:
    start = _line_number(raw.get(f"{prefix}_start_line"))
    end = _line_number(raw.get(f"{prefix}_end_line"))
    if start is None or end is None:
        return None
    return LineRange(start, end)


def parse_token_changes(raw: Any) -> tuple[TokenChange, ...]:
    if not isinstance(raw, list):
        return ()
    changes: list[TokenChange] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        changes.append(
            TokenChange(
                old_token=str(item.get("old_token") or ""),
                new_token=str(item.get("new_token") or ""),
                old_start=_offset(item.get("old_start")),
                old_end=_offset(item.get("old_end")),
                new_start=_offset(item.get("new_start")),
                new_end=_offset(item.get("new_end")),
            )
        )
    return tuple(changes)


def parse_change_node(raw: dict[str, Any], path: str, warnings: list[str]) -> ChangeNode:
    children_raw = raw.get("statement_diffs")
    children_key = "statement_diffs"
    if children_raw is None:
        children_raw = raw.get("child_diffs")
        children_key = "child_diffs"
    children: list[ChangeNode] = []
    if isinstance(children_raw, list):
        for index, child in enumerate(children_raw):
            child_path = f"{path}.{children_key}[{index}]"
            if not isinstance(child, dict):
                warnings.append(f"Ignoring non-object change node at {child_path}")
                continue
            children.append(parse_change_node(child, child_path, warnings))
    elif children_raw is not None:
        warnings.append(f"{children_key} must be an array at {path}")

    return ChangeNode(
        change_kind=str(raw.get("change_type") or "").strip(),
        identifier=str(raw.get("identifier") or ""),
        block_type=str(raw.get("block_type") or raw.get("node_type") or ""),
        description=str(raw.get("description") or ""),
        similarity_score=_score(raw.get("similarity_score")),
        range_a=_parse_range(raw, "file_a"),
        range_b=_parse_range(raw, "file_b"),
        line_a=_line_number(raw.get("file_a_line")),
        line_b=_line_number(raw.get("file_b_line")),
        children=tuple(children),
        token_changes=parse_token_changes(raw.get("keyword_changes")),
        path=path,
        branch_label=str(raw.get("branch_label") or ""),
        code=str(raw.get("code") or raw.get("file_b_code") or raw.get("file_a_code") or ""),
        old_code=str(raw.get("old_code") or ""),
    )


def parse_change_tree(differences: Any) -> tuple[tuple[ChangeNode, ...], list[str]]:
    warnings: list[str] = []
    if not isinstance(differences, list):
        raise RuntimeError("differences must be an array")
    roots: list[ChangeNode] = []
    for index, item in enumerate(differences):
        path = f"differences[{index}]"
        if not isinstance(item, dict):
            warnings.append(f"Ignoring non-object change node at {path}")
            continue
        roots.append(parse_change_node(item, path, warnings))
    return tuple(roots), warnings


def _parse_file_info(raw: Any) -> FileInfo:
    if not isinstance(raw, dict):
        return FileInfo()
    try:
        total_lines = int(raw.get("total_lines") or 0)
    except (TypeError, ValueError):
        total_lines = 0
    return FileInfo(
        original_filename=str(raw.get("original_filename") or ""),
        total_lines=total_lines,
        formatted_content=str(raw.get("formatted_content") or ""),
        file_uuid=str(raw.get("file_uuid") or ""),
    )


def parse_comparison_result(payload: Any) -> tuple[ComparisonResult, list[str]]:
    """Build a ComparisonResult from the analysis service's JSON payload.

    Raises RuntimeError when the payload is not shaped like a result at all;
    node-level problems are returned as warnings instead.
    """
    if not isinstance(payload, dict):
        raise RuntimeError("Comparison result must be a JSON object")
    if "differences" not in payload:
        raise RuntimeError("Missing required key: differences")
    roots, warnings = parse_change_tree(payload["differences"])
    summary = payload.get("summary")
    if summary is not None and not isinstance(summary, dict):
        warnings.append("summary must be an object; ignoring it")
        summary = None
    result = ComparisonResult(
        summary=dict(summary or {}),
        file_a=_parse_file_info(payload.get("file_a")),
        file_b=_parse_file_info(payload.get("file_b")),
        differences=roots,
        message=str(payload.get("message") or ""),
    )
    return result, warnings


def iter_preorder(roots: tuple[ChangeNode, ...] | list[ChangeNode]):
    stack = [(node, 0) for node in reversed(roots)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in reversed(node.children):
            stack.append((child, depth + 1))
