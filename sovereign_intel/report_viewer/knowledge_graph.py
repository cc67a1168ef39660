from __future__ import annotations

from typing import Any

from sovereign_intel.report_viewer.models import (
    ClusterItem,
    Empty,
    ExecutiveGroup,
    ExecutiveItem,
    KnowledgeGraphView,
    ThemeValidationItem,
)
from sovereign_intel.report_viewer.normalizers import (
    as_int,
    as_list,
    as_records,
    as_text,
    as_texts,
    percent,
)


CLUSTER_LIMIT = 10
MULTI_HOP_LIMIT = 6
UNKNOWN_COMPANY = "Unknown company"


def transform_executives(executives: Any) -> tuple[ExecutiveGroup, ...] | Empty:
    by_company: dict[str, list[ExecutiveItem]] = {}
    for row in as_records(executives):
        company = as_text(row.get("company")).strip() or UNKNOWN_COMPANY
        by_company.setdefault(company, []).append(
            ExecutiveItem(
                person=as_text(row.get("person")),
                role=as_text(row.get("role")),
            )
        )
    if not by_company:
        return Empty("No executives identified")
    return tuple(
        ExecutiveGroup(company=company, executives=tuple(items))
        for company, items in by_company.items()
    )


def transform_competitive_clusters(clusters: Any) -> tuple[ClusterItem, ...] | Empty:
    rows = as_records(clusters)
    if not rows:
        return Empty("No competitive clusters identified")

    # sorted() is stable, so equal strengths keep their input order
    ranked = sorted(rows, key=lambda row: as_int(row.get("strength")), reverse=True)
    items: list[ClusterItem] = []
    for row in ranked[:CLUSTER_LIMIT]:
        strength = as_int(row.get("strength"))
        items.append(
            ClusterItem(
                company1=as_text(row.get("company1")),
                company2=as_text(row.get("company2")),
                strength=strength,
                strength_label=f"{strength} {'theme' if strength == 1 else 'themes'}",
                shared_themes=as_texts(row.get("shared_themes")),
            )
        )
    return tuple(items)


def transform_multi_hop_insights(insights: Any) -> tuple[str, ...] | Empty:
    items = tuple(as_text(insight) for insight in as_list(insights)[:MULTI_HOP_LIMIT])
    if not items:
        return Empty("No hidden connections discovered")
    return items


def transform_theme_validations(validations: Any) -> tuple[ThemeValidationItem, ...] | Empty:
    items: list[ThemeValidationItem] = []
    for row in as_records(validations):
        validated = bool(row.get("is_validated"))
        items.append(
            ThemeValidationItem(
                theme=as_text(row.get("theme")),
                is_validated=validated,
                status_label="Verified" if validated else "Unverified",
                support_percent=percent(row.get("graph_support")),
                tone="green" if validated else "amber",
            )
        )
    if not items:
        return Empty("No theme validation data")
    return tuple(items)


def transform_knowledge_graph(knowledge_graph: Any) -> KnowledgeGraphView:
    graph = knowledge_graph if isinstance(knowledge_graph, dict) else {}
    return KnowledgeGraphView(
        executives=transform_executives(graph.get("executives")),
        competitive_clusters=transform_competitive_clusters(graph.get("competitive_clusters")),
        multi_hop_insights=transform_multi_hop_insights(graph.get("multi_hop_insights")),
        theme_validations=transform_theme_validations(graph.get("theme_validations")),
    )
