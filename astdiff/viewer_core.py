from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from astdiff.change_tree import SIDE_A, SIDE_B, SIDES, ComparisonResult, parse_comparison_result
from astdiff.highlight import Segment, highlight
from astdiff.projector import ProjectedAnnotation, Projection, project
from astdiff.resolver import ResolvedLine, build_badge_index, build_block_index, resolve
from astdiff.summary import ChangeTally, count_changes

HIGHLIGHT_KINDS = {"modified", "moved_modified"}


def resolve_input_path(path: Path, search_roots: list[Path] | None = None) -> Path:
    if path.is_absolute():
        return path
    primary = (Path.cwd() / path).resolve()
    if primary.exists():
        return primary
    for root in search_roots or []:
        candidate = (root / path).resolve()
        if candidate.exists():
            return candidate
    return primary


def load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise RuntimeError(f"File not found: {path}") from error
    except json.JSONDecodeError as error:
        raise RuntimeError(f"Invalid JSON: {error}") from error


def load_comparison(path: Path) -> tuple[ComparisonResult, list[str]]:
    return parse_comparison_result(load_json(path))


def read_document(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as error:
        raise RuntimeError(f"Document not found: {path}") from error
    except UnicodeDecodeError as error:
        raise RuntimeError(f"Document is not UTF-8 text: {path}") from error


def load_documents(
    result: ComparisonResult,
    file_a: Path | None = None,
    file_b: Path | None = None,
) -> tuple[str, str]:
    text_a = read_document(file_a) if file_a is not None else result.file_a.formatted_content
    text_b = read_document(file_b) if file_b is not None else result.file_b.formatted_content
    return text_a, text_b


def split_document_lines(text: str) -> list[str]:
    """Split on "\\n" only, the way the analysis service numbers lines.

    Form feeds and Unicode line separators stay inside their line. One trailing
    "\\r" per line is dropped (CRLF), and a final newline does not open a line.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


@dataclass(frozen=True)
class LineRow:
    side: str
    number: int
    text: str
    resolved: ResolvedLine
    statement: ProjectedAnnotation | None = None
    segments: tuple[Segment, ...] = ()

    @property
    def changed(self) -> bool:
        return self.resolved.style_kind is not None


@dataclass(frozen=True)
class ComparisonView:
    result: ComparisonResult
    projection: Projection
    rows_a: tuple[LineRow, ...]
    rows_b: tuple[LineRow, ...]
    tally: ChangeTally
    warnings: tuple[str, ...] = ()

    def rows_for(self, side: str) -> tuple[LineRow, ...]:
        return self.rows_a if side == SIDE_A else self.rows_b


def _build_rows(
    side: str,
    lines: list[str],
    projection: Projection,
    result: ComparisonResult,
    trust_offsets: bool,
) -> list[LineRow]:
    block_index = build_block_index(result.differences, side)
    badge_index = build_badge_index(result.differences, side)
    statements = projection.for_side(side)
    rows: list[LineRow] = []
    for number, text in enumerate(lines, start=1):
        statement = statements.get(number)
        resolved = resolve(number, block_index.get(number), statement, badge_index.get(number, ()))
        segments: tuple[Segment, ...] = ()
        if statement is not None and statement.kind in HIGHLIGHT_KINDS and statement.token_changes:
            segments = tuple(highlight(text, statement.token_changes, side, trust_offsets=trust_offsets))
        rows.append(LineRow(side, number, text, resolved, statement, segments))
    return rows


def build_comparison_view(
    result: ComparisonResult,
    text_a: str,
    text_b: str,
    *,
    trust_offsets: bool = True,
    warnings: list[str] | None = None,
) -> ComparisonView:
    projection = project(result.differences)
    collected = list(warnings or [])
    collected.extend(str(item) for item in projection.diagnostics)

    texts = {SIDE_A: split_document_lines(text_a), SIDE_B: split_document_lines(text_b)}
    rows: dict[str, list[LineRow]] = {}
    for side in SIDES:
        lines = texts[side]
        beyond = [line for line in projection.for_side(side) if line > len(lines)]
        if beyond:
            collected.append(
                f"{len(beyond)} annotated line(s) beyond end of document {side.upper()} "
                f"({len(lines)} lines), first: {beyond[0]}"
            )
        rows[side] = _build_rows(side, lines, projection, result, trust_offsets)

    return ComparisonView(
        result=result,
        projection=projection,
        rows_a=tuple(rows[SIDE_A]),
        rows_b=tuple(rows[SIDE_B]),
        tally=count_changes(result.differences),
        warnings=tuple(collected),
    )


def select_rows(rows: tuple[LineRow, ...] | list[LineRow], *, changed_only: bool, context: int = 0) -> list[LineRow]:
    if not changed_only:
        return list(rows)
    keep: set[int] = set()
    for index, row in enumerate(rows):
        if row.changed:
            keep.update(range(max(0, index - context), min(len(rows), index + context + 1)))
    return [rows[index] for index in sorted(keep)]


def projection_payload(projection: Projection) -> dict[str, Any]:
    def _entry(annotation: ProjectedAnnotation) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": annotation.kind,
            "description": annotation.description,
            "identifier": annotation.identifier,
        }
        if annotation.counterpart_line is not None:
            payload["counterpartLine"] = annotation.counterpart_line
        if annotation.token_changes:
            payload["tokenChanges"] = [
                {
                    "old_token": change.old_token,
                    "new_token": change.new_token,
                    "old_start": change.old_start,
                    "old_end": change.old_end,
                    "new_start": change.new_start,
                    "new_end": change.new_end,
                }
                for change in annotation.token_changes
            ]
        return payload

    return {
        "mapA": {str(line): _entry(item) for line, item in projection.map_a.items()},
        "mapB": {str(line): _entry(item) for line, item in projection.map_b.items()},
        "diagnostics": [str(item) for item in projection.diagnostics],
    }
