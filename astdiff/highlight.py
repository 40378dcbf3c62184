from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from astdiff.change_tree import TokenChange


@dataclass(frozen=True)
class Segment:
    text: str
    highlighted: bool


def _clip(value: int, length: int) -> int:
    return max(0, min(value, length))


def _search_span(line: str, token: str, claimed: set[tuple[int, int]]) -> tuple[int, int] | None:
    # Degraded mode: first occurrence of the token nobody has claimed yet.
    if not token:
        return None
    search_from = 0
    while search_from <= len(line):
        index = line.find(token, search_from)
        if index < 0:
            return None
        span = (index, index + len(token))
        if span not in claimed:
            return span
        search_from = index + 1
    return None


def token_spans(
    line: str,
    token_changes: Iterable[TokenChange],
    side: str,
    *,
    trust_offsets: bool = True,
) -> list[tuple[int, int]]:
    """Collect the raw (start, end) spans of the side's tokens, clipped to the line."""
    length = len(line)
    spans: list[tuple[int, int]] = []
    claimed: set[tuple[int, int]] = set()
    for change in token_changes:
        token, start, end = change.for_side(side)
        if trust_offsets and start is not None and end is not None:
            span = (_clip(start, length), _clip(end, length))
        else:
            found = _search_span(line, token, claimed)
            if found is None:
                continue
            span = found
        if span[1] <= span[0]:
            continue
        claimed.add(span)
        spans.append(span)
    return spans


def merge_spans(spans: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[list[int]] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [(start, end) for start, end in merged]


def highlight(
    line: str,
    token_changes: Iterable[TokenChange] | None,
    side: str,
    *,
    trust_offsets: bool = True,
) -> list[Segment]:
    """Split a line into alternating plain/highlighted segments.

    Offsets from the token changes are authoritative and clipped to the line;
    overlapping or touching spans are merged. The segments cover the line
    exactly once, so an empty line yields no segments.
    """
    if not line:
        return []
    spans = merge_spans(token_spans(line, token_changes or (), side, trust_offsets=trust_offsets))
    segments: list[Segment] = []
    cursor = 0
    for start, end in spans:
        if start > cursor:
            segments.append(Segment(line[cursor:start], False))
        segments.append(Segment(line[start:end], True))
        cursor = end
    if cursor < len(line):
        segments.append(Segment(line[cursor:], False))
    return segments
