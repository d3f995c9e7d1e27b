"""Translate a page plan into format-neutral layout units.

Both export back-ends consume the units produced here, so the wording,
grouping, and order of every heading, paragraph, and table is decided once.
A back-end only maps each block type onto its own drawing primitives.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from noetic_thesis.models import (
    ChartContent,
    CoverContent,
    MetricFigure,
    Page,
    PageKind,
    PhaseContent,
    RiskContent,
    SummaryContent,
)

if typ.TYPE_CHECKING:
    from noetic_thesis.catalog import ChartRegistry


@dc.dataclass(frozen=True, slots=True)
class Heading:
    """Heading text; level 1 is a page title, level 2 a section title."""

    text: str
    level: int = 1


@dc.dataclass(frozen=True, slots=True)
class Text:
    """A body paragraph."""

    text: str


@dc.dataclass(frozen=True, slots=True)
class Caption:
    """Small print such as cover attributions or durations."""

    text: str


@dc.dataclass(frozen=True, slots=True)
class BulletList:
    """Unordered list of short statements."""

    items: tuple[str, ...]


@dc.dataclass(frozen=True, slots=True)
class Highlights:
    """Short call-out phrases shown as chips on the cover."""

    items: tuple[str, ...]


@dc.dataclass(frozen=True, slots=True)
class MetricGrid:
    """Headline figures laid out as value-over-label boxes."""

    figures: tuple[MetricFigure, ...]


@dc.dataclass(frozen=True, slots=True)
class KeyValueTable:
    """Two-column table of formatted metric names and values."""

    rows: tuple[MetricFigure, ...]
    headers: tuple[str, str] = ("Metric", "Value")


@dc.dataclass(frozen=True, slots=True)
class ChartFigure:
    """A chart visual, or a placeholder when ``image`` is ``None``."""

    chart_id: str
    title: str
    image: bytes | None = None


@dc.dataclass(frozen=True, slots=True)
class RiskMatrix:
    """Risk names grouped into high, medium, and low severity columns."""

    buckets: tuple[tuple[str, tuple[str, ...]], ...]


Block = (
    Heading
    | Text
    | Caption
    | BulletList
    | Highlights
    | MetricGrid
    | KeyValueTable
    | ChartFigure
    | RiskMatrix
)


@dc.dataclass(frozen=True, slots=True)
class LayoutUnit:
    """Everything a back-end needs to draw one page or slide.

    Attributes
    ----------
    page_id : str
        Id of the plan page this unit renders.
    title : str
        Page title; used for outline entries and parity checks.
    kind : PageKind
        Kind of the source page.
    blocks : tuple[Block, ...]
        Content in drawing order.
    full_bleed : bool
        Whether the unit is drawn on a brand-colored background.
    """

    page_id: str
    title: str
    kind: PageKind
    blocks: tuple[Block, ...]
    full_bleed: bool = False


def build_layout(
    plan: cabc.Iterable[Page], charts: ChartRegistry
) -> tuple[LayoutUnit, ...]:
    """Return one layout unit per plan page, preserving plan order.

    Parameters
    ----------
    plan : Iterable[Page]
        Pages produced by :class:`~noetic_thesis.plan.PagePlanBuilder`.
    charts : ChartRegistry
        Providers asked for chart visuals. Unknown ids yield placeholders.

    Returns
    -------
    tuple[LayoutUnit, ...]
        Units in the same order as ``plan``.

    Raises
    ------
    Exception
        Whatever a chart provider raises while producing its visual; the
        export service turns this into a render failure.
    """
    return tuple(_layout_page(page, charts) for page in plan)


def _layout_page(page: Page, charts: ChartRegistry) -> LayoutUnit:
    match page.content:
        case CoverContent() as cover:
            return LayoutUnit(
                page_id=page.id,
                title=page.title,
                kind=page.kind,
                blocks=_cover_blocks(cover),
                full_bleed=True,
            )
        case SummaryContent() as summary:
            blocks = _summary_blocks(page.title, summary)
        case ChartContent() as chart:
            blocks = _chart_blocks(page.title, chart, charts)
        case PhaseContent() as phase:
            blocks = _phase_blocks(page.title, phase)
        case RiskContent() as risk:
            blocks = _risk_blocks(page.title, risk)
        case _:
            msg = f"Unsupported content for page '{page.id}'."
            raise TypeError(msg)
    return LayoutUnit(page_id=page.id, title=page.title, kind=page.kind, blocks=blocks)


def _cover_blocks(cover: CoverContent) -> tuple[Block, ...]:
    return (
        Heading(cover.headline, level=1),
        Heading(cover.subtitle, level=2),
        Text(cover.tagline),
        Highlights(cover.highlights),
        Caption(f"Prepared by: {cover.prepared_by}"),
        Caption(f"Date: {cover.prepared_on.strftime('%B %d, %Y')}"),
        Caption(f"Template: {cover.template_name}"),
    )


def _summary_blocks(title: str, summary: SummaryContent) -> tuple[Block, ...]:
    return (
        Heading(title),
        Heading("Investment Opportunity", level=2),
        Text(summary.opportunity),
        MetricGrid(summary.metrics),
        Heading("Key Value Drivers", level=2),
        BulletList(summary.value_drivers),
        Heading("Investment Thesis", level=2),
        Text(summary.thesis),
    )


def _chart_blocks(
    title: str, chart: ChartContent, charts: ChartRegistry
) -> tuple[Block, ...]:
    provider = charts.lookup(chart.chart_id)
    image = provider.visual() if provider is not None else None
    return (
        Heading(title),
        ChartFigure(chart_id=chart.chart_id, title=title, image=image),
        Heading("Key Insights", level=2),
        Text(chart.insight),
    )


def _phase_blocks(title: str, phase: PhaseContent) -> tuple[Block, ...]:
    return (
        Heading(title),
        Caption(f"Duration: {phase.duration}"),
        Heading("Key Metrics", level=2),
        KeyValueTable(phase.metrics),
    )


def _risk_blocks(title: str, risk: RiskContent) -> tuple[Block, ...]:
    return (
        Heading(title),
        RiskMatrix(risk.buckets()),
        Heading("Mitigation Strategies", level=2),
        BulletList(risk.mitigations),
    )


__all__ = [
    "Block",
    "BulletList",
    "Caption",
    "ChartFigure",
    "Heading",
    "Highlights",
    "KeyValueTable",
    "LayoutUnit",
    "MetricGrid",
    "RiskMatrix",
    "Text",
    "build_layout",
]
