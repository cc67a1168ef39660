from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Empty:
    """Explicit "no data" result for a section, with a human-readable reason."""

    reason: str


@dataclass(frozen=True)
class LegendEntry:
    label: str
    meaning: str
    tone: str = ""


@dataclass(frozen=True)
class ThemeItem:
    title: str
    significance: str
    affected_entities: tuple[str, ...] = ()


@dataclass(frozen=True)
class DeltaInsightItem:
    theme: str
    change_description: str
    urgency_level: str
    label: str
    meaning: str
    tone: str


@dataclass(frozen=True)
class CompetitiveMoveItem:
    company: str
    move_type: str
    move_label: str
    tone: str
    description: str
    strategic_implication: str


@dataclass(frozen=True)
class RiskSignalItem:
    category: str
    icon: str
    likelihood: str
    label: str
    style: str
    description: str
    recommended_monitoring: str


@dataclass(frozen=True)
class ExecutiveItem:
    person: str
    role: str = ""


@dataclass(frozen=True)
class ExecutiveGroup:
    company: str
    executives: tuple[ExecutiveItem, ...]


@dataclass(frozen=True)
class ClusterItem:
    company1: str
    company2: str
    strength: int
    strength_label: str
    shared_themes: tuple[str, ...] = ()


@dataclass(frozen=True)
class ThemeValidationItem:
    theme: str
    is_validated: bool
    status_label: str
    support_percent: int
    tone: str


@dataclass(frozen=True)
class KnowledgeGraphView:
    executives: tuple[ExecutiveGroup, ...] | Empty
    competitive_clusters: tuple[ClusterItem, ...] | Empty
    multi_hop_insights: tuple[str, ...] | Empty
    theme_validations: tuple[ThemeValidationItem, ...] | Empty


@dataclass(frozen=True)
class TrendItem:
    name: str
    direction: str
    icon: str
    tone: str
    background: str
    type_label: str
    current_mentions: int
    # None means "not reported", which is rendered differently from 0
    previous_mentions: int | None = None


@dataclass(frozen=True)
class MergeItem:
    canonical: str
    variants: tuple[str, ...]
    overflow: int = 0


@dataclass(frozen=True)
class EntityResolutionView:
    original_entity_count: int
    resolved_entity_count: int
    entities_merged: int
    merges: tuple[MergeItem, ...]


@dataclass(frozen=True)
class CommunityItem:
    name: str
    size: int
    core_entities: tuple[str, ...]
    overflow: int
    shared_themes: tuple[str, ...] = ()


@dataclass(frozen=True)
class CommunitiesView:
    total_entities: int
    community_count: int
    clustered_entities: int
    communities: tuple[CommunityItem, ...]


@dataclass(frozen=True)
class SourceLink:
    url: str
    title: str


@dataclass(frozen=True)
class AuditTrailItem:
    summary: str
    entity_count: int
    confidence_percent: int
    sources: tuple[SourceLink, ...] = ()


@dataclass(frozen=True)
class AuditGroup:
    trail_type: str
    heading: str
    trails: tuple[AuditTrailItem, ...]


@dataclass(frozen=True)
class MetadataView:
    items: tuple[str, ...] = ()

    @property
    def line(self) -> str:
        return " · ".join(self.items)


@dataclass(frozen=True)
class RenderedReport:
    title: str
    header_date: str
    metadata: MetadataView
    executive_summary: tuple[str, ...] | Empty
    recommended_actions: tuple[str, ...] | Empty
    key_themes: tuple[ThemeItem, ...] | Empty
    delta_insights: tuple[DeltaInsightItem, ...] | Empty
    competitive_intel: tuple[CompetitiveMoveItem, ...] | Empty
    risk_signals: tuple[RiskSignalItem, ...] | Empty
    knowledge_graph: KnowledgeGraphView
    audit_trails: tuple[AuditGroup, ...] | Empty
    temporal_trends: tuple[TrendItem, ...] | Empty
    entity_resolution: EntityResolutionView | Empty
    communities: CommunitiesView | Empty


class RenderState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RENDERED = "rendered"
    ERRORED = "errored"


class LoadErrorKind(str, Enum):
    MISSING_ID = "missing_id"
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"
    FAILED = "failed"


@dataclass(frozen=True)
class LoadError:
    kind: LoadErrorKind
    message: str
    status_code: int | None = None


@dataclass(frozen=True)
class RenderOutcome:
    report_id: str
    state: RenderState
    report: RenderedReport | None = None
    error: LoadError | None = None

    @property
    def ok(self) -> bool:
        return self.state is RenderState.RENDERED and self.report is not None
