from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any

from sovereign_intel.report_viewer.models import (
    AuditGroup,
    AuditTrailItem,
    CommunitiesView,
    CommunityItem,
    CompetitiveMoveItem,
    DeltaInsightItem,
    Empty,
    EntityResolutionView,
    LegendEntry,
    MergeItem,
    RiskSignalItem,
    SourceLink,
    ThemeItem,
    TrendItem,
)
from sovereign_intel.report_viewer.normalizers import (
    as_int,
    as_list,
    as_mapping,
    as_optional_int,
    as_records,
    as_text,
    as_texts,
    default_label,
    percent,
    truncate,
)


PARAGRAPH_BREAK_RE = re.compile(r"\r?\n[ \t]*\r?\n")

URGENCY_LABELS = MappingProxyType(
    {
        "high": ("Breaking", "Requires immediate attention"),
        "medium": ("New", "Recent development"),
        "low": ("Ongoing", "Continuing trend"),
    }
)
URGENCY_TONES = MappingProxyType({"high": "red", "medium": "amber", "low": "green"})
DELTA_LEGEND = (
    LegendEntry("Breaking", "immediate attention", "red"),
    LegendEntry("New", "recent development", "amber"),
    LegendEntry("Ongoing", "continuing trend", "green"),
)

MOVE_TYPE_TONES = MappingProxyType(
    {
        "product_launch": "blue",
        "acquisition": "purple",
        "partnership": "cyan",
        "executive_change": "amber",
        "funding": "green",
        "expansion": "indigo",
        "other": "gray",
    }
)

RISK_CATEGORY_ICONS = MappingProxyType(
    {
        "regulatory": "⚖️",
        "market": "📊",
        "technology": "💻",
        "competitive": "🎯",
        "legal": "📋",
        "operational": "⚙️",
    }
)
RISK_FALLBACK_ICON = "⚠️"
LIKELIHOOD_LABELS = MappingProxyType(
    {
        "high": ("Likely", "likelihood-high"),
        "medium": ("Possible", "likelihood-medium"),
        "low": ("Emerging", "likelihood-low"),
    }
)
RISK_LEGEND = (
    LegendEntry("Likely", "probable impact on business", "likelihood-high"),
    LegendEntry("Possible", "monitor for escalation", "likelihood-medium"),
    LegendEntry("Emerging", "early signal, low probability", "likelihood-low"),
)

TREND_LIMIT = 8
TREND_DEFAULT_ICON = "→"
TREND_DEFAULT_TYPE = "Topic"
DIRECTION_TONES = MappingProxyType(
    {"rising": "green", "falling": "red", "stable": "muted", "emerging": "amber"}
)
TREND_LEGEND = (
    LegendEntry("↑ Rising", "", "green"),
    LegendEntry("↓ Falling", "", "red"),
    LegendEntry("★ Emerging", "", "amber"),
    LegendEntry("→ Stable", "", "muted"),
)

MERGE_LIMIT = 5
MERGE_VARIANT_LIMIT = 3
COMMUNITY_LIMIT = 4
COMMUNITY_CORE_LIMIT = 3
COMMUNITY_THEME_LIMIT = 2

AUDIT_TRAILS_PER_GROUP = 3
AUDIT_SUMMARY_MAX_CHARS = 40
AUDIT_SOURCE_TITLE_MAX_CHARS = 25
AUDIT_TYPE_HEADINGS = MappingProxyType(
    {
        "theme": "Themes",
        "competitive_intel": "Competitive Intel",
        "risk": "Risks",
        "other": "Other",
    }
)


def _enum_value(raw: Any, default: str) -> str:
    value = as_text(raw).strip()
    return value or default


def transform_executive_summary(summary: Any) -> tuple[str, ...] | Empty:
    if isinstance(summary, str):
        chunks = PARAGRAPH_BREAK_RE.split(summary)
    else:
        chunks = [as_text(item) for item in as_list(summary)]
    paragraphs = tuple(chunk.strip() for chunk in chunks if chunk.strip())
    if not paragraphs:
        return Empty("No summary available")
    return paragraphs


def transform_recommended_actions(actions: Any) -> tuple[str, ...] | Empty:
    items = tuple(as_text(action) for action in as_list(actions))
    if not items:
        return Empty("No actions recommended")
    return items


def transform_key_themes(themes: Any) -> tuple[ThemeItem, ...] | Empty:
    items = tuple(
        ThemeItem(
            title=as_text(theme.get("title")),
            significance=as_text(theme.get("significance")),
            affected_entities=as_texts(theme.get("affected_entities")),
        )
        for theme in as_records(themes)
    )
    if not items:
        return Empty("No themes identified")
    return items


def transform_delta_insights(insights: Any) -> tuple[DeltaInsightItem, ...] | Empty:
    items: list[DeltaInsightItem] = []
    for insight in as_records(insights):
        level = _enum_value(insight.get("urgency_level"), "low")
        label, meaning = default_label(level, URGENCY_LABELS, "low")
        items.append(
            DeltaInsightItem(
                theme=as_text(insight.get("theme")),
                change_description=as_text(insight.get("change_description")),
                urgency_level=level,
                label=label,
                meaning=meaning,
                tone=default_label(level, URGENCY_TONES, "low"),
            )
        )
    if not items:
        return Empty("No recent changes detected")
    return tuple(items)


def transform_competitive_intel(intel: Any) -> tuple[CompetitiveMoveItem, ...] | Empty:
    items: list[CompetitiveMoveItem] = []
    for move in as_records(intel):
        raw_type = _enum_value(move.get("move_type"), "other")
        move_type = raw_type if raw_type in MOVE_TYPE_TONES else "other"
        items.append(
            CompetitiveMoveItem(
                company=as_text(move.get("company")),
                move_type=move_type,
                move_label=raw_type.replace("_", " "),
                tone=MOVE_TYPE_TONES[move_type],
                description=as_text(move.get("description")),
                strategic_implication=as_text(move.get("strategic_implication")),
            )
        )
    if not items:
        return Empty("No competitive moves detected")
    return tuple(items)


def transform_risk_signals(risks: Any) -> tuple[RiskSignalItem, ...] | Empty:
    items: list[RiskSignalItem] = []
    for risk in as_records(risks):
        category = _enum_value(risk.get("risk_category"), "other")
        likelihood = _enum_value(risk.get("likelihood"), "low")
        label, style = default_label(likelihood, LIKELIHOOD_LABELS, "low")
        items.append(
            RiskSignalItem(
                category=category,
                icon=RISK_CATEGORY_ICONS.get(category, RISK_FALLBACK_ICON),
                likelihood=likelihood,
                label=label,
                style=style,
                description=as_text(risk.get("description")),
                recommended_monitoring=as_text(risk.get("recommended_monitoring")),
            )
        )
    if not items:
        return Empty("No significant risks detected")
    return tuple(items)


def _trend_item(trend: dict[str, Any]) -> TrendItem:
    direction = as_text(trend.get("direction")).strip()
    return TrendItem(
        name=as_text(trend.get("name")),
        direction=direction,
        icon=as_text(trend.get("direction_icon")) or TREND_DEFAULT_ICON,
        tone=DIRECTION_TONES.get(direction, "muted"),
        background=DIRECTION_TONES.get(direction, ""),
        type_label=as_text(trend.get("type")) or TREND_DEFAULT_TYPE,
        current_mentions=as_int(trend.get("current_mentions")),
        previous_mentions=as_optional_int(trend.get("previous_mentions")),
    )


def transform_temporal_trends(trends: Any) -> tuple[TrendItem, ...] | Empty:
    """Merge the three trend lists into one prioritised list.

    Emerging topics always come first and are never filtered. Entity and theme
    trends follow in that order with ``stable`` entries dropped. The merged
    list is capped at ``TREND_LIMIT``.
    """
    if not isinstance(trends, dict):
        return Empty("No trend data available")

    def _items(key: str) -> list[TrendItem]:
        return [_trend_item(row) for row in as_records(trends.get(key))]

    def _moving(items: list[TrendItem]) -> list[TrendItem]:
        return [item for item in items if item.direction != "stable"]

    combined = (
        _items("emerging_topics")
        + _moving(_items("entity_trends"))
        + _moving(_items("theme_trends"))
    )[:TREND_LIMIT]
    if not combined:
        return Empty("No significant trends detected")
    return tuple(combined)


def transform_entity_resolution(resolution: Any) -> EntityResolutionView | Empty:
    payload = as_mapping(resolution)
    merges = as_records(payload.get("notable_merges"))
    if not merges:
        return Empty("No entity merges performed")

    items: list[MergeItem] = []
    for merge in merges[:MERGE_LIMIT]:
        variants = as_texts(merge.get("variants"))
        items.append(
            MergeItem(
                canonical=as_text(merge.get("canonical")),
                variants=variants[:MERGE_VARIANT_LIMIT],
                overflow=max(0, len(variants) - MERGE_VARIANT_LIMIT),
            )
        )
    return EntityResolutionView(
        original_entity_count=as_int(payload.get("original_entity_count")),
        resolved_entity_count=as_int(payload.get("resolved_entity_count")),
        entities_merged=as_int(payload.get("entities_merged")),
        merges=tuple(items),
    )


def transform_communities(communities: Any) -> CommunitiesView | Empty:
    payload = as_mapping(communities)
    entries = as_records(payload.get("communities"))
    if not entries:
        return Empty("No entity clusters detected")

    items: list[CommunityItem] = []
    for community in entries[:COMMUNITY_LIMIT]:
        # overflow counts all members, not just the core entities shown
        members = as_list(community.get("members"))
        items.append(
            CommunityItem(
                name=as_text(community.get("name")),
                size=as_int(community.get("size")),
                core_entities=as_texts(community.get("core_entities"))[:COMMUNITY_CORE_LIMIT],
                overflow=max(0, len(members) - COMMUNITY_CORE_LIMIT),
                shared_themes=as_texts(community.get("shared_themes"))[:COMMUNITY_THEME_LIMIT],
            )
        )
    return CommunitiesView(
        total_entities=as_int(payload.get("total_entities")),
        community_count=as_int(payload.get("community_count")),
        clustered_entities=as_int(payload.get("clustered_entities")),
        communities=tuple(items),
    )


def _audit_trail_item(trail: dict[str, Any]) -> AuditTrailItem:
    sources = tuple(
        SourceLink(
            url=as_text(source.get("url")),
            title=truncate(source.get("title"), AUDIT_SOURCE_TITLE_MAX_CHARS),
        )
        for source in as_records(trail.get("sources"))
    )
    return AuditTrailItem(
        summary=truncate(trail.get("summary"), AUDIT_SUMMARY_MAX_CHARS),
        entity_count=len(as_list(trail.get("supporting_entities"))),
        confidence_percent=percent(trail.get("confidence")),
        sources=sources,
    )


def transform_audit_trails(trails: Any) -> tuple[AuditGroup, ...] | Empty:
    by_type: dict[str, list[dict[str, Any]]] = {}
    for trail in as_records(trails):
        trail_type = _enum_value(trail.get("type"), "other")
        by_type.setdefault(trail_type, []).append(trail)
    if not by_type:
        return Empty("No audit trail data")

    return tuple(
        AuditGroup(
            trail_type=trail_type,
            heading=AUDIT_TYPE_HEADINGS.get(trail_type, trail_type),
            trails=tuple(_audit_trail_item(row) for row in rows[:AUDIT_TRAILS_PER_GROUP]),
        )
        for trail_type, rows in by_type.items()
    )
