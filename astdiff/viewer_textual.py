from __future__ import annotations

from pathlib import Path

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import DataTable, Footer, Header, Static

from .change_tree import SIDE_A, SIDE_B, other_side
from .presentation import BADGE_STYLES
from .viewer_core import ComparisonView, LineRow, select_rows
from .viewer_render import render_line_text, render_marker


def row_key(side: str, number: int) -> str:
    return f"{side}:{number}"


def parse_row_key(value: str) -> tuple[str, int] | None:
    side, _, number = value.partition(":")
    if side not in {SIDE_A, SIDE_B}:
        return None
    try:
        return side, int(number)
    except ValueError:
        return None


def describe_row(row: LineRow) -> list[str]:
    lines = [f"{row.side.upper()}:{row.number}  {row.resolved.style_kind or 'unchanged'}"]
    statement = row.statement
    if statement is not None:
        if statement.identifier:
            lines.append(f"node: {statement.identifier}")
        if statement.description:
            lines.append(f"description: {statement.description}")
    for badge in row.resolved.badges:
        lines.append(f"block: {badge.title}")
    if row.resolved.counterpart_line is not None:
        lines.append(f"counterpart: {other_side(row.side).upper()}:{row.resolved.counterpart_line}")
    if statement is not None:
        for change in statement.token_changes:
            lines.append(f"token: {change.old_token!r} -> {change.new_token!r}")
    return lines


class AstDiffTextualApp(App[None]):
    CSS = """
    Screen { layout: vertical; }
    #topbar { height: 3; border: round #3a86ff; padding: 0 1; }
    #main { height: 1fr; }
    #left { width: 50%; border: round #4cc9f0; }
    #right { width: 50%; border: round #f72585; }
    #meta { height: 8; border: round #8338ec; padding: 0 1; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("a", "focus_side('a')", "File A"),
        Binding("b", "focus_side('b')", "File B"),
        Binding("n", "next_change", "Next Change"),
        Binding("p", "previous_change", "Prev Change"),
        Binding("x", "jump_counterpart", "Counterpart"),
        Binding("t", "toggle_changed_only", "Changed Only"),
    ]

    def __init__(
        self,
        view: ComparisonView,
        source_path: Path,
        *,
        changed_only: bool = False,
        context: int = 3,
    ) -> None:
        super().__init__()
        self.view = view
        self.source_path = source_path
        self.changed_only = changed_only
        self.context = context
        self.active_side = SIDE_A
        self._row_order: dict[str, list[int]] = {SIDE_A: [], SIDE_B: []}
        self._rows_by_number: dict[str, dict[int, LineRow]] = {
            side: {row.number: row for row in view.rows_for(side)} for side in (SIDE_A, SIDE_B)
        }

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static("", id="topbar")
        with Horizontal(id="main"):
            with Vertical(id="left"):
                yield DataTable(id="lines-a", cursor_type="row")
            with Vertical(id="right"):
                yield DataTable(id="lines-b", cursor_type="row")
        yield Static("Select a line.", id="meta")
        yield Footer()

    def on_mount(self) -> None:
        for side in (SIDE_A, SIDE_B):
            self._table(side).add_columns("line", "code", "mark")
        self._refresh_tables()
        self._refresh_topbar()
        self._table(SIDE_A).focus()

    def _table(self, side: str) -> DataTable:
        return self.query_one(f"#lines-{side}", DataTable)

    def topbar_text(self) -> str:
        tally = self.view.tally
        names = (
            self.view.result.file_a.original_filename or "File A",
            self.view.result.file_b.original_filename or "File B",
        )
        mode = "changed only" if self.changed_only else "all lines"
        return (
            f"{self.source_path.name}: {names[0]} -> {names[1]} | +{tally.added} -{tally.deleted} "
            f"~{tally.modified} moved {tally.moved} | warnings {len(self.view.warnings)} | {mode}"
        )

    def _refresh_topbar(self) -> None:
        self.query_one("#topbar", Static).update(self.topbar_text())

    def _refresh_tables(self) -> None:
        for side in (SIDE_A, SIDE_B):
            table = self._table(side)
            table.clear()
            order: list[int] = []
            rows = select_rows(self.view.rows_for(side), changed_only=self.changed_only, context=self.context)
            for row in rows:
                for index, badge in enumerate(row.resolved.badges):
                    table.add_row(
                        "",
                        Text(badge.title, style=BADGE_STYLES.get(badge.kind, "bold")),
                        "",
                        key=f"badge:{side}:{row.number}:{index}",
                    )
                    order.append(-row.number)
                table.add_row(
                    Text(str(row.number), style="bold" if row.changed else "dim"),
                    render_line_text(row),
                    render_marker(row),
                    key=row_key(side, row.number),
                )
                order.append(row.number)
            self._row_order[side] = order

    def _cursor_line(self, side: str) -> int | None:
        order = self._row_order[side]
        index = self._table(side).cursor_row
        if not order or index is None or index < 0 or index >= len(order):
            return None
        return abs(order[index])

    def select_line(self, side: str, number: int) -> bool:
        order = self._row_order[side]
        if number not in order:
            return False
        self.active_side = side
        table = self._table(side)
        table.focus()
        table.move_cursor(row=order.index(number))
        self._update_meta(side, number)
        return True

    def _update_meta(self, side: str, number: int) -> None:
        row = self._rows_by_number[side].get(number)
        if row is None:
            return
        self.query_one("#meta", Static).update("\n".join(describe_row(row)))

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        key = event.row_key.value if event.row_key is not None else None
        if not key:
            return
        if key.startswith("badge:"):
            key = key[len("badge:") :].rpartition(":")[0]
        parsed = parse_row_key(key)
        if parsed is None:
            return
        self.active_side = parsed[0]
        self._update_meta(*parsed)

    def action_focus_side(self, side: str) -> None:
        self.active_side = side
        self._table(side).focus()

    def _step_change(self, step: int) -> None:
        side = self.active_side
        current = self._cursor_line(side) or 0
        candidates = [
            number
            for number in self._row_order[side]
            if number > 0 and self._rows_by_number[side][number].changed
        ]
        if step > 0:
            following = [number for number in candidates if number > current]
        else:
            following = [number for number in reversed(candidates) if number < current]
        if not following:
            self.notify("No more changes", timeout=1.5)
            return
        self.select_line(side, following[0])

    def action_next_change(self) -> None:
        self._step_change(1)

    def action_previous_change(self) -> None:
        self._step_change(-1)

    def action_jump_counterpart(self) -> None:
        side = self.active_side
        number = self._cursor_line(side)
        row = self._rows_by_number[side].get(number) if number is not None else None
        if row is None or row.resolved.counterpart_line is None:
            self.notify("Line has no counterpart", timeout=1.5)
            return
        if not self.select_line(other_side(side), row.resolved.counterpart_line):
            self.notify("Counterpart line is hidden or out of range", timeout=1.5)

    def action_toggle_changed_only(self) -> None:
        self.changed_only = not self.changed_only
        self._refresh_tables()
        self._refresh_topbar()


def launch_textual_viewer(
    view: ComparisonView,
    source_path: Path,
    *,
    changed_only: bool = False,
    context: int = 3,
) -> int:
    app = AstDiffTextualApp(view, source_path, changed_only=changed_only, context=context)
    app.run()
    return 0
