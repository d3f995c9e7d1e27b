"""Derive the ordered page plan shared by the preview and both exporters.

The plan builder is the single place that decides which pages exist and in
what order. Renderers consume its output verbatim and never re-sort or
filter pages on their own.

Example
-------
>>> from noetic_thesis.catalog import default_chart_registry
>>> from noetic_thesis.config import default_reference_data
>>> from noetic_thesis.models import ExportOptions
>>> from noetic_thesis.registry import DETAILED_ANALYSIS
>>> data = default_reference_data()
>>> builder = PagePlanBuilder(data, default_chart_registry(data))
>>> [page.id for page in builder.build([], DETAILED_ANALYSIS, ExportOptions())]
['cover', 'executive-summary']
"""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import re
import typing as typ

from noetic_thesis._constants import COVER_PAGE_ID, RISK_PAGE_ID, SUMMARY_PAGE_ID
from noetic_thesis.models import (
    ChartContent,
    CoverContent,
    ItemKind,
    MetricFigure,
    Page,
    PageKind,
    PhaseContent,
    RiskContent,
    SummaryContent,
)

if typ.TYPE_CHECKING:
    from noetic_thesis.catalog import ChartRegistry
    from noetic_thesis.config import ReferenceData
    from noetic_thesis.models import ExportOptions, Selection, Template

COVER_TITLE = "Cover Page"
SUMMARY_TITLE = "Executive Summary"
RISK_TITLE = "Risk Assessment"

_CAPITAL_PATTERN = re.compile(r"([A-Z])")


def format_metric_key(key: str) -> str:
    """Turn a camelCase metric key into space-separated title case.

    Examples
    --------
    >>> format_metric_key("operatingPartnersHired")
    'Operating Partners Hired'
    >>> format_metric_key("fcfYield")
    'Fcf Yield'
    """
    spaced = _CAPITAL_PATTERN.sub(r" \1", key).strip()
    return spaced[:1].upper() + spaced[1:]


class PagePlanBuilder:
    """Build immutable page plans from selections, a template, and options."""

    def __init__(self, reference: ReferenceData, charts: ChartRegistry) -> None:
        self.reference = reference
        self.charts = charts

    def build(
        self,
        selections: cabc.Iterable[Selection],
        template: Template | None,
        options: ExportOptions,
        *,
        generated_at: dt.date | None = None,
    ) -> tuple[Page, ...]:
        """Return the ordered pages for the given builder state.

        Parameters
        ----------
        selections : Iterable[Selection]
            Chosen items; they are emitted in ascending ``order``.
        template : Template or None
            Active template. Without one the plan is empty.
        options : ExportOptions
            Customization toggles decide whether the cover and summary pages
            are emitted. ``include_appendix`` does not alter the plan.
        generated_at : date, optional
            Date captured on the cover page. Defaults to today.

        Returns
        -------
        tuple[Page, ...]
            Pages with unique ids: ``cover``, ``executive-summary``, the chart
            and phase ids, and at most one ``risk-assessment`` page. Metric
            selections do not produce pages.
        """
        if template is None:
            return ()

        customization = options.customization
        pages: list[Page] = []
        if customization.include_cover_page:
            pages.append(self._cover_page(template, generated_at or dt.date.today()))
        if customization.include_executive_summary:
            pages.append(self._summary_page())

        risk_emitted = False
        for selection in sorted(selections, key=lambda s: s.order):
            match selection.kind:
                case ItemKind.CHART:
                    pages.append(self._chart_page(selection))
                case ItemKind.PHASE:
                    pages.append(self._phase_page(selection))
                case ItemKind.RISK if not risk_emitted:
                    pages.append(self._risk_page())
                    risk_emitted = True
                case _:
                    continue
        return tuple(pages)

    def _cover_page(self, template: Template, prepared_on: dt.date) -> Page:
        narrative = self.reference.narrative
        return Page(
            id=COVER_PAGE_ID,
            title=COVER_TITLE,
            kind=PageKind.COVER,
            content=CoverContent(
                headline=narrative.product_name,
                subtitle=narrative.subtitle,
                tagline=narrative.tagline,
                highlights=narrative.highlights,
                prepared_by=narrative.prepared_by,
                prepared_on=prepared_on,
                template_name=template.name,
            ),
        )

    def _summary_page(self) -> Page:
        narrative = self.reference.narrative
        return Page(
            id=SUMMARY_PAGE_ID,
            title=SUMMARY_TITLE,
            kind=PageKind.SUMMARY,
            content=SummaryContent(
                opportunity=narrative.opportunity,
                metrics=tuple(
                    MetricFigure(label=metric.label, value=metric.value)
                    for metric in narrative.summary_metrics
                ),
                value_drivers=narrative.value_drivers,
                thesis=narrative.thesis,
            ),
        )

    def _chart_page(self, selection: Selection) -> Page:
        provider = self.charts.lookup(selection.id)
        title = selection.title or (provider.title if provider else selection.id)
        insight = self.reference.insight(selection.id)
        return Page(
            id=selection.id,
            title=title,
            kind=PageKind.CHART,
            content=ChartContent(
                chart_id=selection.id,
                insight=insight or self.reference.narrative.generic_insight,
            ),
        )

    def _phase_page(self, selection: Selection) -> Page:
        phase = self.reference.phase(selection.id)
        if phase is None:
            content = PhaseContent(duration="", metrics=())
            title = selection.title or selection.id
        else:
            content = PhaseContent(
                duration=phase.duration,
                metrics=tuple(
                    MetricFigure(label=format_metric_key(key), value=value)
                    for key, value in phase.metrics.items()
                ),
            )
            title = selection.title or phase.title
        return Page(id=selection.id, title=title, kind=PageKind.PHASE, content=content)

    def _risk_page(self) -> Page:
        def names(level: str) -> tuple[str, ...]:
            return tuple(risk.name for risk in self.reference.risks_by_level(level))

        return Page(
            id=RISK_PAGE_ID,
            title=RISK_TITLE,
            kind=PageKind.RISK,
            content=RiskContent(
                high=names("high"),
                medium=names("medium"),
                low=names("low"),
                mitigations=self.reference.narrative.mitigations,
            ),
        )


def estimate_page_count(plan: cabc.Sized, options: ExportOptions) -> int:
    """Return the page count quoted in export summaries.

    This adds one page for the appendix toggle even though the plan itself
    never contains an appendix page, so it can exceed ``len(plan)`` by one.
    """
    return len(plan) + (1 if options.customization.include_appendix else 0)


__all__ = [
    "COVER_TITLE",
    "RISK_TITLE",
    "SUMMARY_TITLE",
    "PagePlanBuilder",
    "estimate_page_count",
    "format_metric_key",
]
