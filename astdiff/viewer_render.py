from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .presentation import BADGE_STYLES, LINE_STYLES, TOKEN_STYLE
from .viewer_core import ComparisonView, LineRow, select_rows


def kind_style(kind: str | None) -> str:
    if kind is None:
        return ""
    return LINE_STYLES.get(kind, "")


def render_line_text(row: LineRow) -> Text:
    text = Text(row.text, style=kind_style(row.resolved.style_kind))
    offset = 0
    for segment in row.segments:
        if segment.highlighted:
            text.stylize(TOKEN_STYLE, offset, offset + len(segment.text))
        offset += len(segment.text)
    return text


def render_marker(row: LineRow) -> Text:
    resolved = row.resolved
    if resolved.marker:
        return Text(resolved.marker, style=BADGE_STYLES.get(resolved.style_kind or "", "bold"))
    if resolved.counterpart_line is not None:
        return Text(f"-> {resolved.counterpart_line}", style="dim")
    return Text("")


def render_summary(console: Console, summary: dict[str, Any], warning_count: int) -> None:
    tally = summary.get("tally", {})
    file_a = summary.get("fileA", {})
    file_b = summary.get("fileB", {})
    similarity = summary.get("similarityPercent")
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_row("File A", f"{file_a.get('name') or '-'} ({file_a.get('totalLines', 0)} lines)")
    table.add_row("File B", f"{file_b.get('name') or '-'} ({file_b.get('totalLines', 0)} lines)")
    table.add_row("Similarity", "-" if similarity is None else f"{similarity:.2f}%")
    table.add_row("Identical", "yes" if summary.get("isIdentical") else "no")
    table.add_row("Added", str(tally.get("added", 0)))
    table.add_row("Deleted", str(tally.get("deleted", 0)))
    table.add_row("Modified", str(tally.get("modified", 0)))
    table.add_row("Moved", str(tally.get("moved", 0)))
    table.add_row("Warnings", str(warning_count))
    console.print(Panel(table, title="Comparison Summary", border_style="blue"))


def build_side_table(title: str, rows: list[LineRow]) -> Table:
    table = Table(title=title, header_style="bold magenta", expand=True)
    table.add_column("line", justify="right", no_wrap=True)
    table.add_column("code", overflow="fold")
    table.add_column("mark", no_wrap=True)
    previous: int | None = None
    for row in rows:
        if previous is not None and row.number > previous + 1:
            table.add_row("", Text("...", style="dim"), "")
        previous = row.number
        for badge in row.resolved.badges:
            table.add_row("", Text(badge.title, style=BADGE_STYLES.get(badge.kind, "bold")), "")
        number_style = "bold" if row.changed else "dim"
        table.add_row(Text(str(row.number), style=number_style), render_line_text(row), render_marker(row))
    return table


def render_comparison(
    console: Console,
    view: ComparisonView,
    *,
    side: str = "both",
    changed_only: bool = False,
    context: int = 3,
) -> None:
    names = {
        "a": view.result.file_a.original_filename or "File A",
        "b": view.result.file_b.original_filename or "File B",
    }
    tables = {
        key: build_side_table(
            f"{names[key]} ({'Original' if key == 'a' else 'Modified'})",
            select_rows(view.rows_for(key), changed_only=changed_only, context=context),
        )
        for key in ("a", "b")
        if side in {key, "both"}
    }
    if len(tables) == 1:
        console.print(next(iter(tables.values())))
        return
    grid = Table.grid(expand=True, padding=(0, 1))
    grid.add_column(ratio=1)
    grid.add_column(ratio=1)
    grid.add_row(tables["a"], tables["b"])
    console.print(grid)


def render_warnings(console: Console, warnings: tuple[str, ...] | list[str]) -> None:
    for warning in warnings:
        console.print(f"[yellow]warning:[/yellow] {escape(warning)}", highlight=False)
