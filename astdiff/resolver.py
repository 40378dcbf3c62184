from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from astdiff.change_tree import MOVE_KINDS, STRUCTURAL_KINDS, ChangeNode, LineRange, other_side
from astdiff.presentation import BlockBadge, block_badge, marker_text
from astdiff.projector import Diagnostic, ProjectedAnnotation, node_spans


@dataclass(frozen=True)
class BlockAnnotation:
    """The root-level change owning a line on one side."""

    node: ChangeNode
    side: str
    span: LineRange

    @property
    def kind(self) -> str:
        return self.node.change_kind

    def is_first_line(self, line_number: int) -> bool:
        return line_number == self.span.start

    @property
    def counterpart_span(self) -> LineRange | None:
        line_range = self.node.range_for(other_side(self.side))
        if line_range is not None:
            return line_range
        legacy = self.node.legacy_line_for(other_side(self.side))
        return None if legacy is None else LineRange(legacy, legacy)


@dataclass(frozen=True)
class ResolvedLine:
    style_kind: str | None = None
    badges: tuple[BlockBadge, ...] = ()
    counterpart_line: int | None = None
    marker: str | None = None

    @property
    def badge(self) -> BlockBadge | None:
        return self.badges[0] if self.badges else None


def _root_blocks(roots: Iterable[ChangeNode], side: str) -> list[BlockAnnotation]:
    blocks: list[BlockAnnotation] = []
    scratch: list[Diagnostic] = []
    for root in roots:
        spans = node_spans(root, scratch)
        if not spans or side not in spans:
            continue
        span, _legacy = spans[side]
        blocks.append(BlockAnnotation(node=root, side=side, span=span))
    return blocks


def build_badge_index(roots: Iterable[ChangeNode], side: str) -> dict[int, tuple[BlockAnnotation, ...]]:
    """Every root's first line on this side, whether or not the root owns that line."""
    index: dict[int, list[BlockAnnotation]] = {}
    for candidate in _root_blocks(roots, side):
        index.setdefault(candidate.span.start, []).append(candidate)
    return {line: tuple(blocks) for line, blocks in index.items()}


def build_block_index(roots: Iterable[ChangeNode], side: str) -> dict[int, BlockAnnotation]:
    index: dict[int, BlockAnnotation] = {}
    for candidate in _root_blocks(roots, side):
        for line in candidate.span.lines():
            existing = index.get(line)
            # Same precedence as the projector: structural kinds win, then root order.
            if existing is None or (
                candidate.kind in STRUCTURAL_KINDS and existing.kind not in STRUCTURAL_KINDS
            ):
                index[line] = candidate
    return index


def map_line(line_number: int, span: LineRange | None, counterpart: LineRange | None) -> int | None:
    if span is None or counterpart is None:
        return None
    offset = max(0, line_number - span.start)
    return counterpart.start + min(offset, max(0, len(counterpart) - 1))


def _counterpart_for(
    line_number: int,
    block: BlockAnnotation | None,
    statement: ProjectedAnnotation | None,
) -> int | None:
    if statement is not None and statement.kind in MOVE_KINDS:
        if statement.counterpart_line is not None:
            return statement.counterpart_line
        mapped = map_line(line_number, statement.span, statement.counterpart_span)
        if mapped is not None:
            return mapped
    if block is not None and block.kind in MOVE_KINDS:
        return map_line(line_number, block.span, block.counterpart_span)
    return None


def resolve(
    line_number: int,
    block: BlockAnnotation | None = None,
    statement: ProjectedAnnotation | None = None,
    badge_blocks: Iterable[BlockAnnotation] | None = None,
) -> ResolvedLine:
    """Pick the style, badges and cross-reference for one rendered line.

    The statement (finest) annotation styles the line; block badges still
    show on each block's first line. ``badge_blocks`` lists every root
    starting here, including roots that lost the line to another root;
    without it only the owning block is considered.
    """
    if statement is not None:
        style_kind: str | None = statement.kind
    elif block is not None:
        style_kind = block.kind
    else:
        return ResolvedLine()

    if badge_blocks is None:
        badge_blocks = () if block is None else (block,)
    badges = tuple(block_badge(item.node) for item in badge_blocks if item.is_first_line(line_number))
    counterpart = _counterpart_for(line_number, block, statement) if style_kind in MOVE_KINDS else None

    marker = None
    if statement is not None and statement.kind != "modified":
        if statement.kind in MOVE_KINDS:
            if statement.is_badge:
                marker = marker_text(statement.kind, statement.counterpart_line)
        else:
            marker = marker_text(statement.kind, None)
    return ResolvedLine(style_kind=style_kind, badges=badges, counterpart_line=counterpart, marker=marker)
