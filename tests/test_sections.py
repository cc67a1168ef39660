from __future__ import annotations

from sovereign_intel.report_viewer.models import Empty
from sovereign_intel.report_viewer.sections import (
    transform_audit_trails,
    transform_communities,
    transform_competitive_intel,
    transform_delta_insights,
    transform_entity_resolution,
    transform_executive_summary,
    transform_key_themes,
    transform_recommended_actions,
    transform_risk_signals,
    transform_temporal_trends,
)


def _trend(name: str, direction: str, **extra: object) -> dict[str, object]:
    row: dict[str, object] = {"name": name, "direction": direction, "current_mentions": 3}
    row.update(extra)
    return row


def test_absent_or_empty_sections_resolve_to_their_messages() -> None:
    cases = [
        (transform_executive_summary, "No summary available"),
        (transform_recommended_actions, "No actions recommended"),
        (transform_key_themes, "No themes identified"),
        (transform_delta_insights, "No recent changes detected"),
        (transform_competitive_intel, "No competitive moves detected"),
        (transform_risk_signals, "No significant risks detected"),
        (transform_audit_trails, "No audit trail data"),
        (transform_entity_resolution, "No entity merges performed"),
        (transform_communities, "No entity clusters detected"),
    ]
    for transform, message in cases:
        assert transform(None) == Empty(message)
        assert transform([]) == Empty(message)


def test_executive_summary_splits_text_on_blank_lines() -> None:
    summary = "First paragraph.\n\n  Second paragraph.  \n\n\n\nThird.\n \nFourth."
    assert transform_executive_summary(summary) == (
        "First paragraph.",
        "Second paragraph.",
        "Third.",
        "Fourth.",
    )


def test_executive_summary_accepts_paragraph_list_and_drops_blanks() -> None:
    assert transform_executive_summary(["  One ", "", "   ", "Two"]) == ("One", "Two")
    assert transform_executive_summary(["", "  "]) == Empty("No summary available")
    assert transform_executive_summary("   \n\n  ") == Empty("No summary available")


def test_recommended_actions_keep_order() -> None:
    assert transform_recommended_actions(["Call legal", "Brief the board"]) == (
        "Call legal",
        "Brief the board",
    )


def test_recommended_actions_render_every_entry() -> None:
    assert transform_recommended_actions(["Call legal", "", None, "Brief the board"]) == (
        "Call legal",
        "",
        "",
        "Brief the board",
    )


def test_key_themes_carry_affected_entities() -> None:
    themes = transform_key_themes(
        [
            {"title": "Chip export rules", "significance": "Supply risk", "affected_entities": ["Nvidia", "ASML"]},
            {"title": "No entities", "significance": "n/a"},
        ]
    )
    assert not isinstance(themes, Empty)
    assert themes[0].affected_entities == ("Nvidia", "ASML")
    assert themes[1].affected_entities == ()


def test_delta_insights_resolve_urgency_labels_and_defaults() -> None:
    insights = transform_delta_insights(
        [
            {"theme": "A", "change_description": "x", "urgency_level": "high"},
            {"theme": "B", "change_description": "y", "urgency_level": "medium"},
            {"theme": "C", "change_description": "z"},
            {"theme": "D", "change_description": "w", "urgency_level": "critical"},
        ]
    )
    assert not isinstance(insights, Empty)
    assert [item.label for item in insights] == ["Breaking", "New", "Ongoing", "Ongoing"]
    assert [item.urgency_level for item in insights] == ["high", "medium", "low", "critical"]
    assert [item.tone for item in insights] == ["red", "amber", "green", "green"]
    assert insights[0].meaning == "Requires immediate attention"


def test_competitive_intel_normalizes_move_type() -> None:
    moves = transform_competitive_intel(
        [
            {"company": "Acme", "move_type": "product_launch", "description": "d", "strategic_implication": "s"},
            {"company": "Beta", "move_type": "hostile_take_over"},
            {"company": "Gamma"},
        ]
    )
    assert not isinstance(moves, Empty)
    assert moves[0].move_type == "product_launch"
    assert moves[0].move_label == "product launch"
    assert moves[0].tone == "blue"
    assert moves[1].move_type == "other"
    assert moves[1].move_label == "hostile take over"
    assert moves[1].tone == "gray"
    assert moves[2].move_type == "other"
    assert moves[2].move_label == "other"


def test_regulatory_high_risk_resolves_label_and_icon() -> None:
    risks = transform_risk_signals(
        [
            {
                "risk_category": "regulatory",
                "likelihood": "high",
                "description": "X",
                "recommended_monitoring": "Y",
            }
        ]
    )
    assert not isinstance(risks, Empty)
    assert len(risks) == 1
    risk = risks[0]
    assert risk.label == "Likely"
    assert risk.icon == "⚖️"
    assert risk.style == "likelihood-high"
    assert risk.description == "X"
    assert risk.recommended_monitoring == "Y"


def test_risk_signals_degrade_unknown_category_and_likelihood() -> None:
    risks = transform_risk_signals([{"risk_category": "geopolitical", "likelihood": "certain"}, {}])
    assert not isinstance(risks, Empty)
    assert risks[0].category == "geopolitical"
    assert risks[0].icon == "⚠️"
    assert risks[0].likelihood == "certain"
    assert risks[0].label == "Emerging"
    assert risks[1].category == "other"
    assert risks[1].likelihood == "low"


def test_temporal_trends_filter_stable_and_keep_priority_order() -> None:
    trends = transform_temporal_trends(
        {
            "emerging_topics": [_trend("new-1", "emerging"), _trend("odd", "stable")],
            "entity_trends": [_trend("ent-up", "rising"), _trend("ent-flat", "stable")],
            "theme_trends": [_trend("theme-down", "falling"), _trend("theme-flat", "stable")],
        }
    )
    assert not isinstance(trends, Empty)
    assert [item.name for item in trends] == ["new-1", "odd", "ent-up", "theme-down"]


def test_temporal_trends_filter_uses_normalized_direction() -> None:
    trends = transform_temporal_trends(
        {
            "entity_trends": [_trend("padded", "stable "), _trend("up", " rising ")],
            "theme_trends": [_trend("flat", "\tstable")],
        }
    )
    assert not isinstance(trends, Empty)
    assert [(item.name, item.direction) for item in trends] == [("up", "rising")]


def test_temporal_trends_cap_at_eight() -> None:
    trends = transform_temporal_trends(
        {
            "emerging_topics": [_trend(f"e{i}", "emerging") for i in range(5)],
            "entity_trends": [_trend(f"n{i}", "rising") for i in range(5)],
            "theme_trends": [_trend(f"t{i}", "falling") for i in range(5)],
        }
    )
    assert not isinstance(trends, Empty)
    assert len(trends) == 8
    assert [item.name for item in trends][-3:] == ["n0", "n1", "n2"]


def test_temporal_trends_empty_messages() -> None:
    assert transform_temporal_trends(None) == Empty("No trend data available")
    assert transform_temporal_trends({}) == Empty("No significant trends detected")
    assert transform_temporal_trends(
        {"entity_trends": [_trend("flat", "stable")]}
    ) == Empty("No significant trends detected")


def test_temporal_trend_previous_mentions_absent_differs_from_zero() -> None:
    trends = transform_temporal_trends(
        {
            "emerging_topics": [
                _trend("absent", "emerging"),
                _trend("zero", "emerging", previous_mentions=0),
                _trend("null", "emerging", previous_mentions=None),
            ]
        }
    )
    assert not isinstance(trends, Empty)
    assert trends[0].previous_mentions is None
    assert trends[1].previous_mentions == 0
    assert trends[2].previous_mentions is None


def test_temporal_trend_display_defaults() -> None:
    trends = transform_temporal_trends(
        {"emerging_topics": [{"name": "bare"}, _trend("up", "rising", direction_icon="↑", type="Entity")]}
    )
    assert not isinstance(trends, Empty)
    bare, up = trends
    assert bare.icon == "→"
    assert bare.type_label == "Topic"
    assert bare.tone == "muted"
    assert bare.current_mentions == 0
    assert up.icon == "↑"
    assert up.type_label == "Entity"
    assert up.tone == "green"


def test_entity_resolution_requires_notable_merges() -> None:
    counts_only = {"original_entity_count": 10, "resolved_entity_count": 8, "entities_merged": 2}
    assert transform_entity_resolution(counts_only) == Empty("No entity merges performed")
    assert transform_entity_resolution({**counts_only, "notable_merges": []}) == Empty(
        "No entity merges performed"
    )


def test_entity_resolution_limits_merges_and_variants() -> None:
    view = transform_entity_resolution(
        {
            "original_entity_count": 120,
            "resolved_entity_count": 98,
            "entities_merged": 22,
            "notable_merges": [
                {"canonical": "Alphabet", "variants": ["Google", "GOOGL", "Alphabet Inc.", "Google LLC", "G"]},
                {"canonical": "Meta", "variants": ["Facebook"]},
            ]
            + [{"canonical": f"C{i}", "variants": []} for i in range(6)],
        }
    )
    assert not isinstance(view, Empty)
    assert (view.original_entity_count, view.resolved_entity_count, view.entities_merged) == (120, 98, 22)
    assert len(view.merges) == 5
    assert view.merges[0].variants == ("Google", "GOOGL", "Alphabet Inc.")
    assert view.merges[0].overflow == 2
    assert view.merges[1].variants == ("Facebook",)
    assert view.merges[1].overflow == 0


def test_communities_overflow_counts_members_not_core_entities() -> None:
    view = transform_communities(
        {
            "total_entities": 40,
            "community_count": 6,
            "clustered_entities": 31,
            "communities": [
                {
                    "name": "Cloud",
                    "size": 7,
                    "core_entities": ["AWS", "Azure", "GCP", "OCI"],
                    "members": ["AWS", "Azure", "GCP", "OCI", "IBM", "Alibaba", "DO"],
                    "shared_themes": ["pricing", "AI", "sovereignty"],
                },
                {"name": "Small", "size": 2, "core_entities": ["A"], "members": ["A", "B"]},
            ]
            + [{"name": f"X{i}", "size": 1, "core_entities": [], "members": []} for i in range(4)],
        }
    )
    assert not isinstance(view, Empty)
    assert (view.total_entities, view.community_count, view.clustered_entities) == (40, 6, 31)
    assert len(view.communities) == 4
    cloud, small = view.communities[0], view.communities[1]
    assert cloud.core_entities == ("AWS", "Azure", "GCP")
    assert cloud.overflow == 4
    assert cloud.shared_themes == ("pricing", "AI")
    assert small.overflow == 0
    assert small.shared_themes == ()


def test_audit_trails_group_by_first_seen_type_and_cap_per_group() -> None:
    trails = [
        {"type": "risk", "summary": "r1", "supporting_entities": [], "confidence": 0.5},
        {"type": "theme", "summary": "t1", "supporting_entities": ["a", "b"], "confidence": 0.9},
        {"summary": "o1", "supporting_entities": ["x"], "confidence": 0.1},
        {"type": "risk", "summary": "r2", "supporting_entities": [], "confidence": 0.5},
        {"type": "risk", "summary": "r3", "supporting_entities": [], "confidence": 0.5},
        {"type": "risk", "summary": "r4", "supporting_entities": [], "confidence": 0.5},
        {"type": "rumour", "summary": "u1", "supporting_entities": [], "confidence": 0.2},
    ]
    groups = transform_audit_trails(trails)
    assert not isinstance(groups, Empty)
    assert [group.trail_type for group in groups] == ["risk", "theme", "other", "rumour"]
    assert [group.heading for group in groups] == ["Risks", "Themes", "Other", "rumour"]
    assert [trail.summary for trail in groups[0].trails] == ["r1", "r2", "r3"]
    assert groups[1].trails[0].entity_count == 2
    assert groups[1].trails[0].confidence_percent == 90


def test_audit_trail_summary_and_source_titles_are_truncated() -> None:
    long_summary = "S" * 60
    groups = transform_audit_trails(
        [
            {
                "type": "theme",
                "summary": long_summary,
                "supporting_entities": ["a"],
                "confidence": 0.66,
                "sources": [
                    {"url": "https://example.com/a", "title": "T" * 30},
                    {"url": "https://example.com/b", "title": "Short title"},
                ],
            }
        ]
    )
    assert not isinstance(groups, Empty)
    trail = groups[0].trails[0]
    assert trail.summary == "S" * 40 + "..."
    assert trail.confidence_percent == 66
    assert [source.title for source in trail.sources] == ["T" * 25 + "...", "Short title"]
    assert trail.sources[0].url == "https://example.com/a"


def test_transformers_do_not_mutate_input() -> None:
    trails = [{"type": "risk", "summary": "x" * 50, "supporting_entities": [], "confidence": 1}]
    snapshot = [dict(row) for row in trails]
    transform_audit_trails(trails)
    assert trails == snapshot
