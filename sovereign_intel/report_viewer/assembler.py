from __future__ import annotations

import logging
import threading
from typing import Any, Protocol

from sovereign_intel.report_viewer.clients.report_source import (
    ReportNotFoundError,
    ReportSourceError,
    ReportTransportError,
)
from sovereign_intel.report_viewer.knowledge_graph import transform_knowledge_graph
from sovereign_intel.report_viewer.models import (
    LoadError,
    LoadErrorKind,
    MetadataView,
    RenderedReport,
    RenderOutcome,
    RenderState,
)
from sovereign_intel.report_viewer.normalizers import (
    as_mapping,
    as_text,
    format_count,
    format_date,
    format_short_date,
)
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


logger = logging.getLogger(__name__)

TITLE_TEMPLATE = "Intelligence Report - {date} - Sovereign Intel"
MISSING_ID_MESSAGE = "No report ID provided. Please check your link."
NOT_FOUND_MESSAGE = "Report not found. The report may have expired or the ID is incorrect."
TRANSPORT_MESSAGE = "Failed to load report (Error {status})"
FAILED_MESSAGE = "Failed to load the report. Please try again later."


class ReportSource(Protocol):
    def fetch(self, report_id: str) -> dict[str, Any]:
        ...


def transform_metadata(metadata: Any, generated_at: Any) -> MetadataView:
    payload = as_mapping(metadata)
    items: list[str] = []
    if as_text(generated_at).strip():
        items.append(f"Generated: {format_short_date(generated_at)}")
    if payload.get("article_count"):
        items.append(f"{format_count(payload['article_count'])} articles analyzed")
    if payload.get("source_count"):
        items.append(f"{format_count(payload['source_count'])} sources")
    if payload.get("model"):
        items.append(f"Model: {as_text(payload['model'])}")
    return MetadataView(items=tuple(items))


def resolve_title(generated_at: Any) -> str:
    return TITLE_TEMPLATE.format(date=format_short_date(generated_at))


def assemble_report(document: dict[str, Any]) -> RenderedReport:
    """Build the full view model for one parsed report document.

    Every transformer reads only its own slice of ``document`` and none of them
    mutate it, so the result depends on the document alone.
    """
    sections = as_mapping(document.get("sections"))
    generated_at = document.get("generated_at")
    return RenderedReport(
        title=resolve_title(generated_at),
        header_date=format_date(generated_at),
        metadata=transform_metadata(document.get("metadata"), generated_at),
        executive_summary=transform_executive_summary(document.get("executive_summary")),
        recommended_actions=transform_recommended_actions(document.get("recommended_actions")),
        key_themes=transform_key_themes(sections.get("key_themes")),
        delta_insights=transform_delta_insights(sections.get("delta_insights")),
        competitive_intel=transform_competitive_intel(sections.get("competitive_intel")),
        risk_signals=transform_risk_signals(sections.get("risk_signals")),
        knowledge_graph=transform_knowledge_graph(sections.get("knowledge_graph")),
        audit_trails=transform_audit_trails(sections.get("audit_trails")),
        temporal_trends=transform_temporal_trends(sections.get("temporal_trends")),
        entity_resolution=transform_entity_resolution(sections.get("entity_resolution")),
        communities=transform_communities(sections.get("communities")),
    )


def _errored(report_id: str, kind: LoadErrorKind, message: str, status_code: int | None = None) -> RenderOutcome:
    return RenderOutcome(
        report_id=report_id,
        state=RenderState.ERRORED,
        error=LoadError(kind=kind, message=message, status_code=status_code),
    )


class ReportViewer:
    """Runs render requests against a report source.

    Each call to ``render`` is one Idle -> Loading -> Rendered | Errored cycle.
    Requests are numbered; when a newer request starts before an older one
    finishes, the older result is dropped and ``render`` returns ``None`` for it.
    """

    def __init__(self, source: ReportSource) -> None:
        self.source = source
        self._lock = threading.Lock()
        self._generation = 0
        self._state = RenderState.IDLE
        self._current: RenderOutcome | None = None

    @property
    def state(self) -> RenderState:
        return self._state

    @property
    def current(self) -> RenderOutcome | None:
        return self._current

    def _begin(self) -> int:
        with self._lock:
            self._generation += 1
            self._state = RenderState.LOADING
            return self._generation

    def _publish(self, generation: int, outcome: RenderOutcome) -> RenderOutcome | None:
        with self._lock:
            if generation != self._generation:
                logger.info("Discarding superseded render of report %r", outcome.report_id)
                return None
            self._state = outcome.state
            self._current = outcome
            return outcome

    def _load(self, report_id: str) -> RenderOutcome:
        try:
            document = self.source.fetch(report_id)
        except ReportNotFoundError:
            logger.warning("Report %r not found", report_id)
            return _errored(report_id, LoadErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
        except ReportTransportError as exc:
            logger.warning("Report %r failed to load: HTTP %s", report_id, exc.status_code)
            return _errored(
                report_id,
                LoadErrorKind.TRANSPORT,
                TRANSPORT_MESSAGE.format(status=exc.status_code),
                status_code=exc.status_code,
            )
        except ReportSourceError as exc:
            logger.warning("Report %r failed to load: %s", report_id, exc)
            return _errored(report_id, LoadErrorKind.FAILED, FAILED_MESSAGE)
        except Exception:
            logger.exception("Unexpected error while loading report %r", report_id)
            return _errored(report_id, LoadErrorKind.FAILED, FAILED_MESSAGE)

        if not isinstance(document, dict):
            logger.warning("Report %r is not a JSON object", report_id)
            return _errored(report_id, LoadErrorKind.FAILED, FAILED_MESSAGE)
        return RenderOutcome(
            report_id=report_id,
            state=RenderState.RENDERED,
            report=assemble_report(document),
        )

    def render(self, report_id: str | None) -> RenderOutcome | None:
        generation = self._begin()
        normalized_id = (report_id or "").strip()
        if not normalized_id:
            outcome = _errored("", LoadErrorKind.MISSING_ID, MISSING_ID_MESSAGE)
        else:
            outcome = self._load(normalized_id)
        return self._publish(generation, outcome)
