from __future__ import annotations

import json
from html import escape

from .change_tree import SIDE_A, SIDE_B
from .presentation import HTML_COLORS
from .summary import summarize_result
from .viewer_core import ComparisonView, LineRow, projection_payload


def _kind_css() -> str:
    rules: list[str] = []
    for kind, colors in HTML_COLORS.items():
        rules.append(
            ".row.kind-{kind} {{ background: {bg}; border-left: 3px solid {border}; }}\n"
            ".badge.kind-{kind} {{ background: {badge_bg}; border-left: 4px solid {border}; color: {border}; }}\n"
            ".mark.kind-{kind} {{ background: {border}; }}".format(kind=kind, **colors)
        )
    return "\n".join(rules)


def _render_code(row: LineRow) -> str:
    if not row.segments:
        return escape(row.text) if row.text else "&nbsp;"
    parts: list[str] = []
    for segment in row.segments:
        if segment.highlighted:
            parts.append(f"<span class='tok'>{escape(segment.text)}</span>")
        else:
            parts.append(escape(segment.text))
    return "".join(parts)


def _render_rows(rows: tuple[LineRow, ...]) -> str:
    html_rows: list[str] = []
    for row in rows:
        kind = row.resolved.style_kind or "none"
        for badge in row.resolved.badges:
            html_rows.append(
                "<div class='badge kind-{kind}'><span class='badge-label'>{label}</span> "
                "<span class='badge-title'>{head}</span><span class='badge-loc'>{location}</span>{similarity}</div>".format(
                    kind=escape(badge.kind),
                    label=escape(badge.label),
                    head=escape(f"{badge.block_type}: {badge.identifier}" if badge.block_type else badge.identifier),
                    location=escape(badge.location),
                    similarity=(
                        f"<span class='badge-sim'>{badge.similarity:.1f}% similar</span>"
                        if badge.similarity is not None
                        else ""
                    ),
                )
            )
        counterpart = "" if row.resolved.counterpart_line is None else str(row.resolved.counterpart_line)
        marker = ""
        if row.resolved.marker:
            marker = "<span class='mark kind-{kind}'>{text}</span>".format(
                kind=escape(kind),
                text=escape(row.resolved.marker),
            )
        html_rows.append(
            "<div id='{side}-{number}' class='row kind-{kind}' data-line='{number}' data-counterpart='{counterpart}'>"
            "<span class='num'>{number}</span><pre class='code'>{code}</pre>{marker}</div>".format(
                side=escape(row.side),
                number=row.number,
                kind=escape(kind),
                counterpart=escape(counterpart),
                code=_render_code(row),
                marker=marker,
            )
        )
    return "\n".join(html_rows)


def render_comparison_html(view: ComparisonView, *, report_title: str | None = None) -> str:
    summary = summarize_result(view.result)
    name_a = view.result.file_a.original_filename or "File A"
    name_b = view.result.file_b.original_filename or "File B"
    page_title = report_title or f"Comparison - {name_a} vs {name_b}"
    tally = summary["tally"]
    similarity = summary.get("similarityPercent")
    warnings_html = "".join(f"<li>{escape(item)}</li>" for item in view.warnings)

    return """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>
    body {{ margin: 0; font-family: system-ui, sans-serif; background: #f3f4f6; color: #24292e; }}
    header {{ padding: 16px 24px; background: #24292e; color: #fff; }}
    .stats span {{ margin-right: 16px; }}
    .warnings {{ margin: 8px 24px; color: #92400e; }}
    .panes {{ display: grid; grid-template-columns: 1fr 1fr; margin: 16px 24px; background: #fff; }}
    .pane {{ min-width: 0; overflow: hidden; border-right: 2px solid #d0d7de; }}
    .pane h2 {{ margin: 0; padding: 12px 16px; font-size: 14px; background: #24292e; color: #fff; }}
    .row {{ display: flex; position: relative; border-left: 3px solid transparent; }}
    .num {{ min-width: 50px; padding: 2px 8px; text-align: right; color: #6e7781; background: #f6f8fa; }}
    .code {{ margin: 0; padding: 2px 8px; flex: 1; white-space: pre-wrap; font: 13px Consolas, Monaco, monospace; }}
    .tok {{ background: #fef08a; color: #854d0e; font-weight: 600; border-radius: 2px; }}
    .mark {{ position: absolute; right: 8px; top: 2px; font-size: 10px; color: #fff; padding: 2px 6px; border-radius: 3px; }}
    .badge {{ padding: 6px 12px; font-size: 12px; font-weight: 600; }}
    .badge-label {{ margin-right: 8px; }}
    .badge-sim {{ margin-left: 8px; opacity: 0.8; }}
{kind_css}
  </style>
</head>
<body>
  <header>
    <h1>{title}</h1>
    <div class="stats">
      <span>Similarity: {similarity}</span>
      <span>Added: {added}</span>
      <span>Deleted: {deleted}</span>
      <span>Modified: {modified}</span>
      <span>Moved: {moved}</span>
    </div>
  </header>
  <ul class="warnings">{warnings}</ul>
  <div class="panes">
    <section class="pane" id="pane-a">
      <h2>{name_a} (Original)</h2>
{rows_a}
    </section>
    <section class="pane" id="pane-b">
      <h2>{name_b} (Modified)</h2>
{rows_b}
    </section>
  </div>
  <script id="projection-json" type="application/json">{projection_json}</script>
</body>
</html>
""".format(
        title=escape(page_title),
        kind_css=_kind_css(),
        similarity="-" if similarity is None else f"{similarity:.2f}%",
        added=tally["added"],
        deleted=tally["deleted"],
        modified=tally["modified"],
        moved=tally["moved"],
        warnings=warnings_html,
        name_a=escape(name_a),
        name_b=escape(name_b),
        rows_a=_render_rows(view.rows_for(SIDE_A)),
        rows_b=_render_rows(view.rows_for(SIDE_B)),
        projection_json=json.dumps(projection_payload(view.projection), ensure_ascii=False).replace("</", "<\\/"),
    )
