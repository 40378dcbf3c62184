from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from astdiff.change_tree import (
    CHANGE_KINDS,
    MOVE_KINDS,
    SIDE_A,
    SIDE_B,
    SIDES,
    STRUCTURAL_KINDS,
    ChangeNode,
    LineRange,
    TokenChange,
    other_side,
)

INVALID_RANGE = "InvalidRange"
MALFORMED_NODE = "MalformedNode"
IGNORED_SIDE = "IgnoredSide"
INCOMPLETE_MOVE = "IncompleteMove"


@dataclass(frozen=True)
class Diagnostic:
    code: str
    identifier: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.identifier}: {self.message}"


@dataclass(frozen=True)
class ProjectedAnnotation:
    kind: str
    description: str
    identifier: str = ""
    counterpart_line: int | None = None
    token_changes: tuple[TokenChange, ...] = ()
    span: LineRange | None = None
    counterpart_span: LineRange | None = None

    @property
    def is_badge(self) -> bool:
        return self.counterpart_line is not None


@dataclass(frozen=True)
class Projection:
    map_a: dict[int, ProjectedAnnotation]
    map_b: dict[int, ProjectedAnnotation]
    diagnostics: tuple[Diagnostic, ...] = ()

    def for_side(self, side: str) -> dict[int, ProjectedAnnotation]:
        return self.map_a if side == SIDE_A else self.map_b


@dataclass(frozen=True)
class _Claim:
    node: ChangeNode
    depth: int
    order: int
    last: int  # highest pre-order index inside this node's subtree
    legacy: bool
    span: LineRange
    counterpart_span: LineRange | None
    counterpart_line: int | None

    def is_ancestor_of(self, other: _Claim) -> bool:
        return self.order < other.order <= self.last


def _precedence(claim: _Claim) -> tuple[bool, int, int]:
    return (claim.node.change_kind in STRUCTURAL_KINDS, claim.depth, -claim.order)


def _absorbed(claim: _Claim, contenders: list[_Claim]) -> bool:
    if claim.node.change_kind != "modified":
        return False
    return any(
        other.node.change_kind == "moved_modified" and other.is_ancestor_of(claim)
        for other in contenders
    )


def node_spans(node: ChangeNode, diagnostics: list[Diagnostic]) -> dict[str, tuple[LineRange, bool]] | None:
    """Return the usable lines of a node per side as (span, is_legacy).

    None means the node itself is skipped; its children are still projected.
    """
    label = node.label
    if node.change_kind not in CHANGE_KINDS:
        diagnostics.append(Diagnostic(MALFORMED_NODE, label, f"unknown change kind {node.change_kind!r}"))
        return None

    inverted = [
        side for side in SIDES if node.range_for(side) is not None and not node.range_for(side).valid
    ]
    if inverted:
        bounds = ", ".join(
            f"{side.upper()} {node.range_for(side).start}-{node.range_for(side).end}" for side in inverted
        )
        diagnostics.append(Diagnostic(INVALID_RANGE, label, f"end line before start line ({bounds})"))
        return None

    spans: dict[str, tuple[LineRange, bool]] = {}
    for side in SIDES:
        line_range = node.range_for(side)
        if line_range is not None:
            spans[side] = (line_range, False)
            continue
        legacy_line = node.legacy_line_for(side)
        if legacy_line is not None:
            spans[side] = (LineRange(legacy_line, legacy_line), True)

    if node.change_kind == "added" and SIDE_A in spans:
        spans.pop(SIDE_A)
        diagnostics.append(Diagnostic(IGNORED_SIDE, label, "added node carries A-side lines; ignoring them"))
    if node.change_kind == "deleted" and SIDE_B in spans:
        spans.pop(SIDE_B)
        diagnostics.append(Diagnostic(IGNORED_SIDE, label, "deleted node carries B-side lines; ignoring them"))

    if not spans:
        diagnostics.append(Diagnostic(MALFORMED_NODE, label, "no line range on either side"))
        return None

    if node.change_kind in MOVE_KINDS:
        if len(spans) < 2:
            diagnostics.append(Diagnostic(INCOMPLETE_MOVE, label, "move is missing one side"))
        elif spans[SIDE_A][0] == spans[SIDE_B][0]:
            diagnostics.append(Diagnostic(INCOMPLETE_MOVE, label, "move has identical ranges on both sides"))
    return spans


class _Collector:
    def __init__(self) -> None:
        self.claims: dict[str, dict[int, list[_Claim]]] = {SIDE_A: {}, SIDE_B: {}}
        self.diagnostics: list[Diagnostic] = []
        self._next_order = 0

    def visit(self, node: ChangeNode, depth: int) -> int:
        order = self._next_order
        self._next_order += 1
        spans = node_spans(node, self.diagnostics)
        last = order
        for child in node.children:
            last = self.visit(child, depth + 1)
        if spans is not None:
            self._add_claims(node, depth, order, last, spans)
        return last

    def _add_claims(
        self,
        node: ChangeNode,
        depth: int,
        order: int,
        last: int,
        spans: dict[str, tuple[LineRange, bool]],
    ) -> None:
        for side, (span, legacy) in spans.items():
            counterpart = spans.get(other_side(side))
            counterpart_span = counterpart[0] if counterpart else None
            side_claims = self.claims[side]
            for line in span.lines():
                counterpart_line = None
                if node.change_kind in MOVE_KINDS and counterpart_span is not None and line == span.start:
                    counterpart_line = counterpart_span.start
                side_claims.setdefault(line, []).append(
                    _Claim(
                        node=node,
                        depth=depth,
                        order=order,
                        last=last,
                        legacy=legacy,
                        span=span,
                        counterpart_span=counterpart_span,
                        counterpart_line=counterpart_line,
                    )
                )


def _merge_token_changes(claims: Iterable[_Claim]) -> tuple[TokenChange, ...]:
    seen: set[TokenChange] = set()
    merged: list[TokenChange] = []
    for claim in claims:
        for change in claim.node.token_changes:
            if change in seen:
                continue
            seen.add(change)
            merged.append(change)
    return tuple(merged)


def merge_line_claims(line_claims: list[_Claim]) -> ProjectedAnnotation:
    ordered = sorted(line_claims, key=lambda claim: claim.order)
    ranged = [claim for claim in ordered if not claim.legacy]
    contenders = ranged or ordered
    eligible = [claim for claim in contenders if not _absorbed(claim, contenders)]
    winner = max(eligible, key=_precedence)
    return ProjectedAnnotation(
        kind=winner.node.change_kind,
        description=winner.node.description,
        identifier=winner.node.label,
        counterpart_line=winner.counterpart_line,
        token_changes=_merge_token_changes(ordered),
        span=winner.span,
        counterpart_span=winner.counterpart_span,
    )


def project(roots: Iterable[ChangeNode]) -> Projection:
    """Project a change tree onto per-line annotation maps for both documents."""
    collector = _Collector()
    for root in roots:
        collector.visit(root, 0)

    maps: dict[str, dict[int, ProjectedAnnotation]] = {}
    for side in SIDES:
        side_claims = collector.claims[side]
        maps[side] = {line: merge_line_claims(side_claims[line]) for line in sorted(side_claims)}
    return Projection(
        map_a=maps[SIDE_A],
        map_b=maps[SIDE_B],
        diagnostics=tuple(collector.diagnostics),
    )
