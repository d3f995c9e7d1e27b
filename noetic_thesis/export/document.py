"""Render layout units into a branded A4 PDF with reportlab.

Each layout unit starts on a new page. Full-bleed units (the cover) use a
page template that paints the primary brand color behind the frame; all
other units use the content template with an optional running footer.
Every unit adds a top-level outline entry so the PDF bookmarks mirror the
page plan.
"""

from __future__ import annotations

import collections.abc as cabc
import io
import typing as typ
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    BaseDocTemplate,
    Flowable,
    Frame,
    Image,
    NextPageTemplate,
    PageBreak,
    PageTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from noetic_thesis._constants import BRAND_WORDMARK, RISK_COLORS, RISK_TINTS

from .layout import (
    BulletList,
    Caption,
    ChartFigure,
    Heading,
    Highlights,
    KeyValueTable,
    MetricGrid,
    RiskMatrix,
    Text,
)
from .palette import RenderedArtifact, pdf_fonts, tint

if typ.TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

    from noetic_thesis.models import ExportOptions

    from .layout import Block, LayoutUnit

COVER_TEMPLATE_ID = "cover"
CONTENT_TEMPLATE_ID = "content"
CHART_HEIGHT = 90 * mm
COVER_TOP_OFFSET = 55 * mm


class _UnitMarker(Flowable):
    """Zero-size flowable marking where a layout unit begins."""

    def __init__(self, index: int, title: str) -> None:
        super().__init__()
        self.index = index
        self.title = title

    def wrap(self, avail_width: float, avail_height: float) -> tuple[float, float]:
        return (0, 0)

    def draw(self) -> None:
        return None


class _ThesisDocTemplate(BaseDocTemplate):
    """A4 document with cover and content page templates."""

    def __init__(
        self,
        buffer: io.BytesIO,
        *,
        options: ExportOptions,
        cover_first: bool,
        total_pages: int | None,
    ) -> None:
        super().__init__(
            buffer,
            pagesize=A4,
            leftMargin=20 * mm,
            rightMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=22 * mm,
            title=f"{BRAND_WORDMARK} Investment Thesis",
            author=BRAND_WORDMARK,
        )
        self.options = options
        self.total_pages = total_pages
        self.unit_titles: list[str] = []
        self.font, self.bold_font = pdf_fonts(options.branding.font_family)
        cover = PageTemplate(
            id=COVER_TEMPLATE_ID,
            frames=[self._frame("cover")],
            onPage=self._draw_cover_background,
        )
        content = PageTemplate(
            id=CONTENT_TEMPLATE_ID,
            frames=[self._frame("normal")],
            onPage=self._draw_footer,
        )
        templates = [cover, content] if cover_first else [content, cover]
        self.addPageTemplates(templates)

    def _frame(self, frame_id: str) -> Frame:
        return Frame(
            self.leftMargin, self.bottomMargin, self.width, self.height, id=frame_id
        )

    def afterFlowable(self, flowable: Flowable) -> None:  # noqa: N802 - reportlab hook
        if isinstance(flowable, _UnitMarker):
            key = f"unit-{flowable.index}"
            self.canv.bookmarkPage(key)
            self.canv.addOutlineEntry(flowable.title, key, level=0, closed=False)
            self.unit_titles.append(flowable.title)

    def _draw_cover_background(self, canvas: Canvas, doc: BaseDocTemplate) -> None:
        branding = self.options.branding
        width, height = doc.pagesize
        canvas.saveState()
        canvas.setFillColor(colors.HexColor(branding.primary_color))
        canvas.rect(0, 0, width, height, stroke=0, fill=1)
        canvas.setFillColor(colors.HexColor(branding.secondary_color))
        canvas.rect(0, 0, width, 12 * mm, stroke=0, fill=1)
        canvas.restoreState()

    def _draw_footer(self, canvas: Canvas, doc: BaseDocTemplate) -> None:
        if not self.options.customization.page_numbers:
            return
        page = canvas.getPageNumber()
        label = f"{page} / {self.total_pages}" if self.total_pages else str(page)
        canvas.saveState()
        canvas.setFont(self.font, 9)
        canvas.setFillColor(colors.HexColor("#666666"))
        canvas.drawCentredString(doc.pagesize[0] / 2, 10 * mm, label)
        canvas.setFillColor(colors.HexColor(self.options.branding.primary_color))
        canvas.drawRightString(
            doc.leftMargin + doc.width, 10 * mm, BRAND_WORDMARK
        )
        canvas.restoreState()


class _Styles:
    """Paragraph styles derived from the export branding."""

    def __init__(self, options: ExportOptions) -> None:
        branding = options.branding
        regular, bold = pdf_fonts(branding.font_family)
        primary = colors.HexColor(branding.primary_color)
        secondary = colors.HexColor(branding.secondary_color)
        self.regular = regular
        self.bold = bold
        self.primary = primary
        self.primary_tint = colors.HexColor(tint(branding.primary_color, 0.12))
        self.body = ParagraphStyle(
            "Body", fontName=regular, fontSize=11, leading=16, spaceAfter=8
        )
        self.h1 = ParagraphStyle(
            "H1", fontName=bold, fontSize=24, leading=30, textColor=primary,
            spaceAfter=14,
        )
        self.h2 = ParagraphStyle(
            "H2", fontName=bold, fontSize=15, leading=20, textColor=secondary,
            spaceBefore=10, spaceAfter=6,
        )
        self.caption = ParagraphStyle(
            "Caption", fontName=regular, fontSize=10, leading=14,
            textColor=colors.HexColor("#555555"), spaceAfter=6,
        )
        self.bullet = ParagraphStyle(
            "Bullet", parent=self.body, leftIndent=14, bulletIndent=4, spaceAfter=4
        )
        self.cell = ParagraphStyle(
            "Cell", fontName=regular, fontSize=10, leading=13
        )
        self.cell_header = ParagraphStyle(
            "CellHeader", parent=self.cell, fontName=bold, textColor=colors.white,
            alignment=TA_CENTER,
        )
        self.metric_value = ParagraphStyle(
            "MetricValue", fontName=bold, fontSize=16, leading=20,
            textColor=primary, alignment=TA_CENTER,
        )
        self.metric_label = ParagraphStyle(
            "MetricLabel", parent=self.cell, alignment=TA_CENTER,
            textColor=colors.HexColor("#555555"),
        )
        self.cover_title = ParagraphStyle(
            "CoverTitle", fontName=bold, fontSize=44, leading=52,
            textColor=colors.white, alignment=TA_CENTER, spaceAfter=10,
        )
        self.cover_subtitle = ParagraphStyle(
            "CoverSubtitle", fontName=regular, fontSize=26, leading=32,
            textColor=colors.white, alignment=TA_CENTER, spaceAfter=12,
        )
        self.cover_text = ParagraphStyle(
            "CoverText", fontName=regular, fontSize=14, leading=20,
            textColor=colors.white, alignment=TA_CENTER, spaceAfter=24,
        )
        self.cover_caption = ParagraphStyle(
            "CoverCaption", parent=self.cover_text, fontSize=11, leading=15,
            spaceAfter=2,
        )


class DocumentRenderer:
    """Render layout units to PDF bytes, one page per unit."""

    def render(
        self, units: cabc.Sequence[LayoutUnit], options: ExportOptions
    ) -> RenderedArtifact:
        """Return a PDF artifact for ``units``.

        The document is built twice: the first pass counts pages so the
        running footer can show ``page / total``.

        Parameters
        ----------
        units : Sequence[LayoutUnit]
            Layout units in plan order.
        options : ExportOptions
            Branding and customization applied to styles and the footer.

        Returns
        -------
        RenderedArtifact
            PDF bytes with the outline titles in page order.
        """
        _, first_pass = self._build(units, options, total_pages=None)
        payload, doc = self._build(units, options, total_pages=first_pass.page)
        titles = tuple(doc.unit_titles)
        return RenderedArtifact(payload=payload, unit_titles=titles, unit_count=len(titles))

    def _build(
        self,
        units: cabc.Sequence[LayoutUnit],
        options: ExportOptions,
        *,
        total_pages: int | None,
    ) -> tuple[bytes, _ThesisDocTemplate]:
        buffer = io.BytesIO()
        doc = _ThesisDocTemplate(
            buffer,
            options=options,
            cover_first=bool(units) and units[0].full_bleed,
            total_pages=total_pages,
        )
        doc.build(self._story(units, _Styles(options), doc.width))
        return buffer.getvalue(), doc

    def _story(
        self, units: cabc.Sequence[LayoutUnit], styles: _Styles, width: float
    ) -> list[Flowable]:
        story: list[Flowable] = []
        for index, unit in enumerate(units):
            if index:
                template = (
                    COVER_TEMPLATE_ID if unit.full_bleed else CONTENT_TEMPLATE_ID
                )
                story.extend((NextPageTemplate(template), PageBreak()))
            story.append(_UnitMarker(index, unit.title))
            if unit.full_bleed:
                story.append(Spacer(1, COVER_TOP_OFFSET))
            for block in unit.blocks:
                story.extend(_flowables(block, styles, width, cover=unit.full_bleed))
        if not story:
            story.append(Spacer(1, 1))
        return story


def _flowables(
    block: Block, styles: _Styles, width: float, *, cover: bool
) -> list[Flowable]:
    """Map one layout block onto reportlab flowables."""
    match block:
        case Heading(text=text, level=1):
            style = styles.cover_title if cover else styles.h1
            return [Paragraph(escape(text), style)]
        case Heading(text=text):
            style = styles.cover_subtitle if cover else styles.h2
            return [Paragraph(escape(text), style)]
        case Text(text=text):
            style = styles.cover_text if cover else styles.body
            return [Paragraph(escape(text), style)]
        case Caption(text=text):
            style = styles.cover_caption if cover else styles.caption
            return [Paragraph(escape(text), style)]
        case BulletList(items=items):
            return [
                Paragraph(escape(item), styles.bullet, bulletText="•")
                for item in items
            ]
        case Highlights(items=items):
            return [_highlights_table(items, styles, width), Spacer(1, 24 * mm)]
        case MetricGrid(figures=figures):
            return [_metric_grid(block, styles, width)] if figures else []
        case KeyValueTable():
            return [_key_value_table(block, styles, width)]
        case ChartFigure():
            return [_chart_figure(block, styles, width)]
        case RiskMatrix():
            return [_risk_matrix(block, styles, width)]
        case _:
            msg = f"Unsupported layout block {type(block).__name__}"
            raise TypeError(msg)


def _highlights_table(
    items: tuple[str, ...], styles: _Styles, width: float
) -> Table:
    if not items:
        return Table([[""]], colWidths=[width])
    cells = [[Paragraph(escape(item), styles.cell_header) for item in items]]
    table = Table(cells, colWidths=[width / len(items)] * len(items))
    table.setStyle(
        TableStyle(
            [
                ("BOX", (0, 0), (-1, -1), 1, colors.white),
                ("INNERGRID", (0, 0), (-1, -1), 1, colors.white),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 0), (-1, -1), 8),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
            ]
        )
    )
    return table


def _metric_grid(grid: MetricGrid, styles: _Styles, width: float) -> Table:
    cells = [
        [
            [
                Paragraph(escape(figure.value), styles.metric_value),
                Paragraph(escape(figure.label), styles.metric_label),
            ]
            for figure in grid.figures
        ]
    ]
    count = len(grid.figures)
    table = Table(cells, colWidths=[width / count] * count)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), styles.primary_tint),
                ("BOX", (0, 0), (-1, -1), 1, styles.primary),
                ("INNERGRID", (0, 0), (-1, -1), 0.5, styles.primary),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 0), (-1, -1), 10),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 10),
            ]
        )
    )
    return table


def _key_value_table(block: KeyValueTable, styles: _Styles, width: float) -> Table:
    data: list[list[Paragraph]] = [
        [Paragraph(escape(header), styles.cell_header) for header in block.headers]
    ]
    data.extend(
        [
            Paragraph(escape(row.label), styles.cell),
            Paragraph(escape(row.value), styles.cell),
        ]
        for row in block.rows
    )
    table = Table(data, colWidths=[width * 0.5, width * 0.5], repeatRows=1)
    commands: list[tuple[typ.Any, ...]] = [
        ("BACKGROUND", (0, 0), (-1, 0), styles.primary),
        ("BOX", (0, 0), (-1, -1), 0.75, styles.primary),
        ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.HexColor("#DDDDDD")),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]
    commands.extend(
        ("BACKGROUND", (0, row), (-1, row), styles.primary_tint)
        for row in range(2, len(data), 2)
    )
    table.setStyle(TableStyle(commands))
    return table


def _chart_figure(figure: ChartFigure, styles: _Styles, width: float) -> Flowable:
    if figure.image is not None:
        return Image(
            io.BytesIO(figure.image),
            width=width,
            height=CHART_HEIGHT,
            kind="proportional",
        )
    placeholder = Table(
        [[Paragraph(escape(f"[Chart: {figure.title}]"), styles.metric_label)]],
        colWidths=[width],
        rowHeights=[CHART_HEIGHT],
    )
    placeholder.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#F5F5F5")),
                ("BOX", (0, 0), (-1, -1), 0.75, colors.HexColor("#DDDDDD")),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    return placeholder


def _risk_matrix(matrix: RiskMatrix, styles: _Styles, width: float) -> Table:
    headers = [
        Paragraph(f"{level.upper()} RISK", styles.cell_header)
        for level, _ in matrix.buckets
    ]
    bodies = [
        [Paragraph(escape(name), styles.cell) for name in names] or [Spacer(1, 1)]
        for _, names in matrix.buckets
    ]
    count = max(len(matrix.buckets), 1)
    table = Table([headers, bodies], colWidths=[width / count] * count)
    commands: list[tuple[typ.Any, ...]] = [
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
    ]
    for column, (level, _) in enumerate(matrix.buckets):
        commands.extend(
            (
                ("BACKGROUND", (column, 0), (column, 0), colors.HexColor(RISK_COLORS[level])),
                ("BACKGROUND", (column, 1), (column, 1), colors.HexColor(RISK_TINTS[level])),
                ("BOX", (column, 0), (column, 1), 1, colors.HexColor(RISK_COLORS[level])),
            )
        )
    table.setStyle(TableStyle(commands))
    return table


__all__ = ["CONTENT_TEMPLATE_ID", "COVER_TEMPLATE_ID", "DocumentRenderer"]
