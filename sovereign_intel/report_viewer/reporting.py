from __future__ import annotations

import re
from pathlib import Path

from docx import Document
from docx.shared import Pt, RGBColor

from sovereign_intel.report_viewer.models import (
    AuditGroup,
    ClusterItem,
    CommunitiesView,
    CompetitiveMoveItem,
    DeltaInsightItem,
    Empty,
    EntityResolutionView,
    ExecutiveGroup,
    KnowledgeGraphView,
    LegendEntry,
    RenderedReport,
    RiskSignalItem,
    ThemeItem,
    ThemeValidationItem,
    TrendItem,
)
from sovereign_intel.report_viewer.sections import DELTA_LEGEND, RISK_LEGEND, TREND_LEGEND


INLINE_MARKDOWN_RE = re.compile(r"\*\*(.+?)\*\*|(?<!\w)_(.+?)_(?!\w)")
HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
NUMBERED_ITEM_RE = re.compile(r"^([ \t]*)\d+\.\s+(.*)$")
BULLET_ITEM_RE = re.compile(r"^([ \t]*)- (.*)$")
TABLE_SEPARATOR_RE = re.compile(r"^\|[\s:|-]+$")

DARK_GREEN = RGBColor(0x1B, 0x5E, 0x20)
DARK_RED = RGBColor(0x8B, 0x00, 0x00)
DARK_AMBER = RGBColor(0x9A, 0x5B, 0x00)

LABEL_COLORS: dict[str, RGBColor] = {
    "Breaking": DARK_RED,
    "New": DARK_AMBER,
    "Ongoing": DARK_GREEN,
    "Likely": DARK_RED,
    "Possible": DARK_AMBER,
    "Emerging": DARK_GREEN,
    "Verified": DARK_GREEN,
    "Unverified": DARK_AMBER,
}


def _inline(value: str) -> str:
    return " ".join(str(value or "").split())


def _cell(value: str) -> str:
    return _inline(value).replace("|", "/")


def _empty_line(section: Empty) -> list[str]:
    return [f"_{section.reason}_"]


def _legend_line(title: str, entries: tuple[LegendEntry, ...]) -> str:
    parts = []
    for entry in entries:
        if entry.meaning:
            parts.append(f"**{entry.label}** = {entry.meaning}")
        else:
            parts.append(entry.label)
    return f"{title}: " + " · ".join(parts)


def _summary_lines(section: tuple[str, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines: list[str] = []
    for paragraph in section:
        if lines:
            lines.append("")
        lines.append(_inline(paragraph))
    return lines


def _action_lines(section: tuple[str, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    return [f"{index}. {_inline(action)}" for index, action in enumerate(section, start=1)]


def _theme_lines(section: tuple[ThemeItem, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines: list[str] = []
    for theme in section:
        lines.append(f"- **{_inline(theme.title)}**: {_inline(theme.significance)}")
        if theme.affected_entities:
            lines.append(f"  - Entities: {', '.join(_inline(e) for e in theme.affected_entities)}")
    return lines


def _delta_lines(section: tuple[DeltaInsightItem, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines = [_legend_line("Legend", DELTA_LEGEND), ""]
    for insight in section:
        lines.append(
            f"- **{insight.label}** {_inline(insight.theme)}: {_inline(insight.change_description)}"
        )
    return lines


def _competitive_lines(section: tuple[CompetitiveMoveItem, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines: list[str] = []
    for move in section:
        lines.append(
            f"- **{_inline(move.company)}** ({move.move_label}): {_inline(move.description)}"
        )
        if move.strategic_implication:
            lines.append(f"  - Implication: {_inline(move.strategic_implication)}")
    return lines


def _risk_lines(section: tuple[RiskSignalItem, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines = [_legend_line("Likelihood", RISK_LEGEND), ""]
    for risk in section:
        lines.append(
            f"- {risk.icon} {risk.category.capitalize()} | **{risk.label}**: {_inline(risk.description)}"
        )
        if risk.recommended_monitoring:
            lines.append(f"  - Monitor: {_inline(risk.recommended_monitoring)}")
    return lines


def _executive_lines(section: tuple[ExecutiveGroup, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines: list[str] = []
    for group in section:
        lines.append(f"- **{_inline(group.company)}**")
        for executive in group.executives:
            role = f" ({_inline(executive.role)})" if executive.role else ""
            lines.append(f"  - {_inline(executive.person)}{role}")
    return lines


def _cluster_lines(section: tuple[ClusterItem, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines = [
        "| Companies | Shared themes | Strength |",
        "|---|---|---:|",
    ]
    for cluster in section:
        themes = ", ".join(_cell(theme) for theme in cluster.shared_themes) or "-"
        lines.append(
            f"| {_cell(cluster.company1)} ⇄ {_cell(cluster.company2)} | {themes} | {cluster.strength_label} |"
        )
    return lines


def _validation_lines(section: tuple[ThemeValidationItem, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines = [
        "| Theme | Status | Graph support |",
        "|---|---|---:|",
    ]
    for validation in section:
        lines.append(
            f"| {_cell(validation.theme)} | **{validation.status_label}** | {validation.support_percent}% |"
        )
    return lines


def _knowledge_graph_lines(graph: KnowledgeGraphView) -> list[str]:
    lines = ["### Key executives"]
    lines.extend(_executive_lines(graph.executives))
    lines.extend(["", "### Competitive clusters"])
    lines.extend(_cluster_lines(graph.competitive_clusters))
    lines.extend(["", "### Connecting the dots"])
    if isinstance(graph.multi_hop_insights, Empty):
        lines.extend(_empty_line(graph.multi_hop_insights))
    else:
        lines.extend(f"- {_inline(insight)}" for insight in graph.multi_hop_insights)
    lines.extend(["", "### Theme validation"])
    lines.extend(_validation_lines(graph.theme_validations))
    return lines


def _audit_lines(section: tuple[AuditGroup, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines: list[str] = []
    for group in section:
        if lines:
            lines.append("")
        lines.append(f"### {_inline(group.heading)}")
        for trail in group.trails:
            lines.append(
                f"- {_inline(trail.summary)} ({trail.entity_count} entities, "
                f"{trail.confidence_percent}% confidence)"
            )
            for source in trail.sources:
                lines.append(f"  - Source: {_inline(source.title)} <{_inline(source.url)}>")
    return lines


def _trend_lines(section: tuple[TrendItem, ...] | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines = [
        _legend_line("Legend", TREND_LEGEND),
        "",
        "| Trend | Type | Mentions |",
        "|---|---|---:|",
    ]
    for trend in section:
        mentions = f"{trend.current_mentions}"
        if trend.previous_mentions is not None:
            mentions += f" (was {trend.previous_mentions})"
        lines.append(f"| {_cell(trend.icon)} {_cell(trend.name)} | {_cell(trend.type_label)} | {mentions} |")
    return lines


def _entity_resolution_lines(section: EntityResolutionView | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines = [
        f"{section.original_entity_count} entities found → {section.resolved_entity_count} unique "
        f"({section.entities_merged} merged)",
        "",
    ]
    for merge in section.merges:
        variants = ", ".join(_inline(variant) for variant in merge.variants)
        if merge.overflow:
            variants += f" +{merge.overflow} more"
        lines.append(f"- **{_inline(merge.canonical)}** ← {variants}")
    return lines


def _community_lines(section: CommunitiesView | Empty) -> list[str]:
    if isinstance(section, Empty):
        return _empty_line(section)
    lines = [
        f"{section.total_entities} entities → {section.community_count} clusters "
        f"({section.clustered_entities} grouped)",
        "",
    ]
    for community in section.communities:
        core = ", ".join(_inline(entity) for entity in community.core_entities)
        if community.overflow:
            core += f" +{community.overflow} more"
        lines.append(f"- **{_inline(community.name)}** ({community.size} entities): {core}")
        if community.shared_themes:
            lines.append(f"  - Themes: {', '.join(_inline(t) for t in community.shared_themes)}")
    return lines


def build_markdown_report(report: RenderedReport) -> str:
    lines = ["# Intelligence Report", report.header_date]
    if report.metadata.items:
        lines.extend(["", report.metadata.line])

    for heading, body in (
        ("Executive summary", _summary_lines(report.executive_summary)),
        ("Recommended actions", _action_lines(report.recommended_actions)),
        ("Key themes", _theme_lines(report.key_themes)),
        ("What changed", _delta_lines(report.delta_insights)),
        ("Competitive intel", _competitive_lines(report.competitive_intel)),
        ("Risk signals", _risk_lines(report.risk_signals)),
        ("Knowledge graph", _knowledge_graph_lines(report.knowledge_graph)),
        ("Audit trails", _audit_lines(report.audit_trails)),
        ("Temporal trends", _trend_lines(report.temporal_trends)),
        ("Entity resolution", _entity_resolution_lines(report.entity_resolution)),
        ("Entity communities", _community_lines(report.communities)),
    ):
        lines.extend(["", f"## {heading}"])
        lines.extend(body)

    return "\n".join(lines) + "\n"


def write_markdown(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")


def _table_cells(line: str) -> list[str]:
    inner = line.strip()[1:]
    if inner.endswith("|"):
        inner = inner[:-1]
    return [cell.strip() for cell in inner.split("|")]


def _add_markdown_runs(paragraph, text: str) -> None:
    last = 0
    for match in INLINE_MARKDOWN_RE.finditer(text):
        start, end = match.span()
        if start > last:
            paragraph.add_run(text[last:start])
        bold_text, italic_text = match.group(1), match.group(2)
        if bold_text is not None:
            run = paragraph.add_run(bold_text)
            run.bold = True
            color = LABEL_COLORS.get(bold_text)
            if color is not None:
                run.font.color.rgb = color
        else:
            run = paragraph.add_run(italic_text)
            run.italic = True
        last = end

    if last < len(text):
        paragraph.add_run(text[last:])


def _fill_cell(cell, text: str) -> None:
    paragraph = cell.paragraphs[0]
    for run in list(paragraph.runs):
        run._r.getparent().remove(run._r)
    _add_markdown_runs(paragraph, text)


def _add_table(doc: Document, lines: list[str], index: int) -> int:
    """Render the Markdown table starting at ``lines[index]``; return the next line index."""
    headers = _table_cells(lines[index])
    table = doc.add_table(rows=1, cols=len(headers))
    table.style = "Table Grid"
    for cell, header in zip(table.rows[0].cells, headers):
        _fill_cell(cell, f"**{header}**")

    index += 2
    while index < len(lines) and lines[index].startswith("|"):
        values = _table_cells(lines[index])
        values += [""] * (len(headers) - len(values))
        for cell, value in zip(table.add_row().cells, values):
            _fill_cell(cell, value)
        index += 1
    return index


def _list_style(doc: Document, base: str, indent: str) -> str:
    width = len(indent.expandtabs(4))
    level = min(2, width // 2)
    nested = f"{base} {level + 1}" if level else base
    if nested in doc.styles:
        return nested
    return base if base in doc.styles else "Normal"


def _space_after(paragraph, points: float) -> None:
    paragraph.paragraph_format.space_before = Pt(0)
    paragraph.paragraph_format.space_after = Pt(points)
    paragraph.paragraph_format.line_spacing = 1.15


def write_docx(path: Path, title: str, content: str) -> None:
    doc = Document()
    doc.core_properties.title = title
    normal = doc.styles["Normal"]
    normal.font.name = "Calibri"
    normal.font.size = Pt(10.5)

    lines = content.splitlines()
    index = 0
    while index < len(lines):
        line = lines[index].rstrip()
        if not line:
            index += 1
            continue

        next_line = lines[index + 1] if index + 1 < len(lines) else ""
        if line.startswith("|") and TABLE_SEPARATOR_RE.match(next_line):
            index = _add_table(doc, lines, index)
            continue

        heading = HEADING_RE.match(line)
        numbered = NUMBERED_ITEM_RE.match(line)
        bullet = BULLET_ITEM_RE.match(line)
        if heading:
            depth = len(heading.group(1))
            # "#" is the document title, "##" and deeper map to Heading 1..4
            paragraph = doc.add_heading("", level=0 if depth == 1 else min(depth - 1, 4))
            _add_markdown_runs(paragraph, heading.group(2))
            _space_after(paragraph, 3)
        elif numbered or bullet:
            match = numbered or bullet
            base = "List Number" if numbered else "List Bullet"
            paragraph = doc.add_paragraph("", style=_list_style(doc, base, match.group(1)))
            _add_markdown_runs(paragraph, match.group(2))
            _space_after(paragraph, 3)
        else:
            paragraph = doc.add_paragraph("")
            _add_markdown_runs(paragraph, line)
            _space_after(paragraph, 6)
        index += 1

    doc.save(path)
