"""Navigable, zoomable preview over a page plan.

:class:`PreviewRenderer` holds the only state a preview needs (the current
page index and zoom level) and derives thumbnail metadata from each page's
``kind``. :class:`PreviewPageBuilder` renders the same view to a static HTML
file through Jinja2, so a plan can be reviewed in a browser before export:

>>> from noetic_thesis.preview import PreviewPageBuilder, PreviewRenderer
>>> renderer = PreviewRenderer(plan)  # doctest: +SKIP
>>> PreviewPageBuilder(renderer, Path("preview.html")).run()  # doctest: +SKIP
PosixPath('preview.html')
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from noetic_thesis._constants import RISK_COLORS, ZOOM_MAX, ZOOM_MIN, ZOOM_STEP
from noetic_thesis.models import ItemKind, PageKind

if typ.TYPE_CHECKING:
    from noetic_thesis.models import Page, Selection, Template

PLACEHOLDER_BLOCKS: dict[PageKind, tuple[str, ...]] = {
    PageKind.COVER: ("title", "subtitle", "metrics"),
    PageKind.SUMMARY: ("title", "text", "metrics-grid", "text"),
    PageKind.CHART: ("title", "chart", "insight"),
    PageKind.PHASE: ("title", "text", "text"),
    PageKind.RISK: ("title", "text", "text"),
}


@dc.dataclass(frozen=True, slots=True)
class Thumbnail:
    """Sidebar entry for one plan page."""

    index: int
    page_id: str
    title: str
    kind: PageKind
    blocks: tuple[str, ...]
    active: bool

    @property
    def number(self) -> int:
        """Return the one-based page number."""
        return self.index + 1


@dc.dataclass(frozen=True, slots=True)
class PreviewSummary:
    """Headline counts shown under the preview."""

    total_pages: int
    chart_count: int
    phase_count: int
    template_name: str


class PreviewRenderer:
    """Track navigation and zoom state for a page plan."""

    def __init__(self, plan: cabc.Sequence[Page], *, zoom_level: float = 1.0) -> None:
        self._plan: tuple[Page, ...] = tuple(plan)
        self._index = 0
        self._zoom = _clamp_zoom(zoom_level)

    @property
    def plan(self) -> tuple[Page, ...]:
        """Return the plan being previewed."""
        return self._plan

    @property
    def current_page_index(self) -> int:
        """Return the zero-based index of the displayed page."""
        return self._index

    @property
    def current_page(self) -> Page | None:
        """Return the displayed page, or ``None`` for an empty plan."""
        if not self._plan:
            return None
        return self._plan[self._index]

    @property
    def zoom_level(self) -> float:
        """Return the zoom factor within ``[0.5, 2.0]``."""
        return self._zoom

    @property
    def zoom_percent(self) -> int:
        """Return the zoom factor as a rounded percentage."""
        return round(self._zoom * 100)

    @property
    def has_previous(self) -> bool:
        """Return whether :meth:`previous_page` would move."""
        return self._index > 0

    @property
    def has_next(self) -> bool:
        """Return whether :meth:`next_page` would move."""
        return self._index < len(self._plan) - 1

    def update_plan(self, plan: cabc.Sequence[Page]) -> None:
        """Swap in a rebuilt plan and re-clamp the current index."""
        self._plan = tuple(plan)
        self._index = self._clamp_index(self._index)

    def go_to(self, index: int) -> int:
        """Move to ``index`` clamped into the plan and return the new index."""
        self._index = self._clamp_index(index)
        return self._index

    def next_page(self) -> int:
        """Advance one page, stopping at the last page."""
        return self.go_to(self._index + 1)

    def previous_page(self) -> int:
        """Go back one page, stopping at the first page."""
        return self.go_to(self._index - 1)

    def set_zoom(self, level: float) -> float:
        """Set the zoom factor, clamped into ``[0.5, 2.0]``."""
        self._zoom = _clamp_zoom(level)
        return self._zoom

    def zoom_in(self) -> float:
        """Increase zoom by one step."""
        return self.set_zoom(self._zoom + ZOOM_STEP)

    def zoom_out(self) -> float:
        """Decrease zoom by one step."""
        return self.set_zoom(self._zoom - ZOOM_STEP)

    def thumbnails(self) -> list[Thumbnail]:
        """Return thumbnail metadata for every page in plan order.

        The placeholder block layout is chosen from ``Page.kind`` alone.
        """
        return [
            Thumbnail(
                index=index,
                page_id=page.id,
                title=page.title,
                kind=page.kind,
                blocks=PLACEHOLDER_BLOCKS[page.kind],
                active=index == self._index,
            )
            for index, page in enumerate(self._plan)
        ]

    def summary(
        self,
        template: Template | None,
        selections: cabc.Iterable[Selection],
    ) -> PreviewSummary:
        """Summarize the preview for the given template and selections."""
        chosen = list(selections)
        return PreviewSummary(
            total_pages=len(self._plan),
            chart_count=sum(1 for s in chosen if s.kind is ItemKind.CHART),
            phase_count=sum(1 for s in chosen if s.kind is ItemKind.PHASE),
            template_name=template.name if template else "None",
        )

    def _clamp_index(self, index: int) -> int:
        if not self._plan:
            return 0
        return min(max(index, 0), len(self._plan) - 1)


def _clamp_zoom(level: float) -> float:
    return min(max(level, ZOOM_MIN), ZOOM_MAX)


class PreviewPageBuilder:
    """Render a preview of the current plan to a standalone HTML page."""

    def __init__(
        self,
        renderer: PreviewRenderer,
        output: Path,
        *,
        template: Template | None = None,
        selections: cabc.Sequence[Selection] = (),
        primary_color: str = "#667eea",
        secondary_color: str = "#764ba2",
        templates_dir: Path | None = None,
    ) -> None:
        """Initialize the builder and Jinja environment.

        Parameters
        ----------
        renderer : PreviewRenderer
            Preview state supplying the plan, the active page, and zoom.
        output : Path
            Destination HTML file.
        template : Template, optional
            Active template, named in the summary block.
        selections : Sequence[Selection], optional
            Selections counted in the summary block.
        primary_color, secondary_color : str, optional
            Brand colors used for headings and accents.
        templates_dir : Path, optional
            Directory containing ``preview.jinja``. Defaults to
            ``noetic_thesis/templates``.
        """
        self.renderer = renderer
        self.output = output
        self.template_model = template
        self.selections = selections
        self.primary_color = primary_color
        self.secondary_color = secondary_color
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("preview.jinja")

    def run(self) -> Path:
        """Render and write the preview HTML, returning the output path."""
        self.output.parent.mkdir(parents=True, exist_ok=True)
        context = {
            "pages": self.renderer.plan,
            "current": self.renderer.current_page,
            "current_index": self.renderer.current_page_index,
            "thumbnails": self.renderer.thumbnails(),
            "zoom": self.renderer.zoom_level,
            "zoom_percent": self.renderer.zoom_percent,
            "summary": self.renderer.summary(self.template_model, self.selections),
            "primary_color": self.primary_color,
            "secondary_color": self.secondary_color,
            "risk_colors": RISK_COLORS,
            "generated_at": dt.datetime.now(dt.UTC),
        }
        html = self.template.render(**context)
        if not html.endswith("\n"):
            html += "\n"
        self.output.write_text(html, encoding="utf-8")
        return self.output


__all__ = [
    "PLACEHOLDER_BLOCKS",
    "PreviewPageBuilder",
    "PreviewRenderer",
    "PreviewSummary",
    "Thumbnail",
]
