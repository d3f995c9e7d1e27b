"""Unit tests for preview navigation, zoom, and HTML output."""

from __future__ import annotations

import typing as typ

import pytest
from bs4 import BeautifulSoup

from noetic_thesis.models import ItemKind, PageKind
from noetic_thesis.preview import (
    PLACEHOLDER_BLOCKS,
    PreviewPageBuilder,
    PreviewRenderer,
)
from noetic_thesis.registry import DETAILED_ANALYSIS

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt
    from pathlib import Path

    from noetic_thesis.models import ExportOptions, Page, Selection
    from noetic_thesis.plan import PagePlanBuilder

    SelectionFactory = cabc.Callable[..., list[Selection]]


@pytest.fixture
def selections(make_selections: SelectionFactory) -> list[Selection]:
    """Return a chart, a phase, and the risk item."""
    return make_selections(
        ("market-line", ItemKind.CHART),
        ("p0", ItemKind.PHASE),
        ("risk-assessment", ItemKind.RISK),
    )


@pytest.fixture
def plan(
    plan_builder: PagePlanBuilder,
    selections: list[Selection],
    options: ExportOptions,
    generated_at: dt.date,
) -> tuple[Page, ...]:
    """Return the five-page plan for :func:`selections`."""
    return plan_builder.build(
        selections, DETAILED_ANALYSIS, options, generated_at=generated_at
    )


def test_navigation_clamps_to_plan(plan: tuple[Page, ...]) -> None:
    renderer = PreviewRenderer(plan)

    assert renderer.current_page_index == 0
    assert not renderer.has_previous
    assert renderer.previous_page() == 0
    assert renderer.go_to(3) == 3
    assert renderer.next_page() == 4
    assert renderer.next_page() == 4, "next_page should stop at the last page"
    assert not renderer.has_next
    assert renderer.go_to(99) == 4
    assert renderer.go_to(-3) == 0
    current = renderer.current_page
    assert current is not None
    assert current.id == "cover"


def test_empty_plan_has_no_current_page() -> None:
    renderer = PreviewRenderer(())

    assert renderer.current_page is None
    assert renderer.go_to(5) == 0
    assert renderer.next_page() == 0
    assert renderer.thumbnails() == []


def test_update_plan_reclamps_index(plan: tuple[Page, ...]) -> None:
    renderer = PreviewRenderer(plan)
    renderer.go_to(4)

    renderer.update_plan(plan[:2])

    assert renderer.current_page_index == 1


@pytest.mark.parametrize(
    ("level", "expected"),
    [(1.0, 1.0), (0.1, 0.5), (3.0, 2.0), (1.25, 1.25)],
)
def test_zoom_is_clamped(level: float, expected: float) -> None:
    renderer = PreviewRenderer((), zoom_level=level)

    assert renderer.zoom_level == expected


def test_zoom_steps() -> None:
    renderer = PreviewRenderer(())

    assert renderer.zoom_in() == 1.25
    assert renderer.zoom_percent == 125
    renderer.set_zoom(2.0)
    assert renderer.zoom_in() == 2.0
    renderer.set_zoom(0.5)
    assert renderer.zoom_out() == 0.5


def test_thumbnails_follow_page_kinds(plan: tuple[Page, ...]) -> None:
    renderer = PreviewRenderer(plan)
    renderer.go_to(2)

    thumbnails = renderer.thumbnails()

    assert [thumb.page_id for thumb in thumbnails] == [page.id for page in plan]
    assert [thumb.number for thumb in thumbnails] == [1, 2, 3, 4, 5]
    assert [thumb.active for thumb in thumbnails] == [
        False,
        False,
        True,
        False,
        False,
    ]
    assert thumbnails[0].blocks == ("title", "subtitle", "metrics")
    assert thumbnails[2].blocks == PLACEHOLDER_BLOCKS[PageKind.CHART]
    assert set(PLACEHOLDER_BLOCKS) == set(PageKind)


def test_summary_counts_selection_kinds(
    plan: tuple[Page, ...], selections: list[Selection]
) -> None:
    summary = PreviewRenderer(plan).summary(DETAILED_ANALYSIS, selections)

    assert summary.total_pages == 5
    assert summary.chart_count == 1
    assert summary.phase_count == 1
    assert summary.template_name == "Detailed Analysis"
    assert PreviewRenderer(()).summary(None, []).template_name == "None"


def test_preview_page_renders_every_plan_page(
    tmp_path: Path, plan: tuple[Page, ...], selections: list[Selection]
) -> None:
    renderer = PreviewRenderer(plan, zoom_level=1.5)
    renderer.go_to(3)
    output = tmp_path / "out" / "preview.html"

    written = PreviewPageBuilder(
        renderer, output, template=DETAILED_ANALYSIS, selections=selections
    ).run()

    assert written == output
    soup = BeautifulSoup(output.read_text(encoding="utf-8"), "html.parser")
    sections = soup.select("section.preview-page")
    assert [section["data-page-id"] for section in sections] == [
        page.id for page in plan
    ]
    active = soup.select("section.preview-page.active")
    assert len(active) == 1
    assert active[0]["data-page-id"] == "p0"
    assert soup.select_one(".page-indicator").get_text(strip=True) == "Page 4 of 5"
    assert soup.select_one(".zoom-level").get_text(strip=True) == "150%"
    assert soup.select_one(".stat-total").get_text(strip=True) == "5"
    assert soup.select_one(".stat-template").get_text(strip=True) == (
        "Detailed Analysis"
    )
    thumbnails = soup.select("a.thumbnail")
    assert [thumb["data-kind"] for thumb in thumbnails] == [
        "cover",
        "summary",
        "chart",
        "phase",
        "risk",
    ]
    assert "active" in thumbnails[3]["class"]


def test_preview_page_renders_phase_and_risk_content(
    tmp_path: Path, plan: tuple[Page, ...]
) -> None:
    output = PreviewPageBuilder(PreviewRenderer(plan), tmp_path / "p.html").run()
    soup = BeautifulSoup(output.read_text(encoding="utf-8"), "html.parser")

    phase = soup.select_one("#page-p0")
    assert phase is not None
    keys = [node.get_text(strip=True) for node in phase.select(".metric-key")]
    assert keys[0] == "Operating Partners Hired"
    risk_headers = [
        node.get_text(strip=True)
        for node in soup.select("#page-risk-assessment .risk-category h3")
    ]
    assert risk_headers == ["HIGH RISK", "MEDIUM RISK", "LOW RISK"]
    insight = soup.select_one("#page-market-line .chart-insights")
    assert insight is not None
    assert "10.4% CAGR" in insight.get_text()


def test_empty_preview_shows_placeholder(tmp_path: Path) -> None:
    output = PreviewPageBuilder(PreviewRenderer(()), tmp_path / "empty.html").run()
    soup = BeautifulSoup(output.read_text(encoding="utf-8"), "html.parser")

    assert soup.select_one(".empty-preview") is not None
    assert soup.select("section.preview-page") == []
    assert soup.select_one(".page-indicator").get_text(strip=True) == "Page 0 of 0"
    assert soup.select_one(".stat-template").get_text(strip=True) == "None"
