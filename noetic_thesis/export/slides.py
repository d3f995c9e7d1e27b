"""Render layout units into a 10in x 7.5in slide deck with python-pptx.

Every slide uses the blank layout and carries the same master decoration: a
thin primary-colored rule above a right-aligned ``NOETIC 2.0`` wordmark. The
cover slide swaps the white background for a full-bleed primary fill. Blocks
are stacked top to bottom with a cursor and scaled down together when a
unit would otherwise reach the master rule. Each unit title is also written
to the slide notes so the deck can be audited against the plan.
"""

from __future__ import annotations

import collections.abc as cabc
import io
import math
import typing as typ

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt

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
from .palette import RenderedArtifact, tint

if typ.TYPE_CHECKING:
    from pptx.slide import Slide

    from noetic_thesis.models import ExportOptions

    from .layout import Block, LayoutUnit

SLIDE_WIDTH_IN = 10.0
SLIDE_HEIGHT_IN = 7.5
MARGIN_IN = 0.5
CONTENT_WIDTH_IN = SLIDE_WIDTH_IN - 2 * MARGIN_IN
RULE_Y_IN = 6.85
WORDMARK_Y_IN = 6.95
CONTENT_BOTTOM_IN = RULE_Y_IN - 0.1
BLANK_LAYOUT_INDEX = 6
RULE_SHAPE_NAME = "Master Rule"
WORDMARK_SHAPE_NAME = "Master Wordmark"

BLOCK_GAP_IN = 0.1
SECTION_GAP_IN = 0.2
BULLET_LINE_IN = 0.32
HIGHLIGHT_HEIGHT_IN = 0.6
METRIC_HEIGHT_IN = 1.1
TABLE_ROW_IN = 0.4
CHART_HEIGHT_IN = 3.2
RISK_HEADER_IN = 0.5
RISK_BODY_IN = 1.8
MIN_FONT_PT = 6.0

WHITE = RGBColor(0xFF, 0xFF, 0xFF)
TEXT_DARK = RGBColor(0x1F, 0x29, 0x37)
TEXT_MUTED = RGBColor(0x6B, 0x72, 0x80)
PLACEHOLDER_FILL = RGBColor(0xF5, 0xF5, 0xF5)
PLACEHOLDER_LINE = RGBColor(0xDD, 0xDD, 0xDD)


def rgb(value: str) -> RGBColor:
    """Return the python-pptx color for a ``#RRGGBB`` string."""
    return RGBColor.from_string(value.lstrip("#").upper())


class _SlideWriter:
    """Stack blocks on one slide, tracking the vertical cursor in inches.

    :meth:`fit` measures a unit's blocks before drawing. When they would run
    past :data:`CONTENT_BOTTOM_IN`, every height, gap and font size is scaled
    by the same factor so the content ends above the master rule.
    """

    def __init__(self, slide: Slide, options: ExportOptions, *, cover: bool) -> None:
        self.slide = slide
        self.cover = cover
        self.font = options.branding.font_family
        self.primary = options.branding.primary_color
        self.secondary = options.branding.secondary_color
        self.top = 1.6 if cover else 0.4
        self.scale = 1.0

    def fit(self, blocks: cabc.Sequence[Block]) -> float:
        """Set and return the scale that keeps ``blocks`` above the rule."""
        needed = sum(self.measure(block) for block in blocks)
        available = CONTENT_BOTTOM_IN - self.top
        self.scale = min(1.0, available / needed) if needed > 0 else 1.0
        return self.scale

    def measure(self, block: Block) -> float:
        """Return the unscaled cursor advance for ``block`` in inches."""
        match block:
            case Heading(level=1):
                return (1.0 if self.cover else 0.8) + BLOCK_GAP_IN
            case Heading():
                return (0.7 if self.cover else 0.45) + BLOCK_GAP_IN
            case Text(text=text):
                return _text_height(text, self._body_size()) + BLOCK_GAP_IN
            case Caption():
                return 0.35 + BLOCK_GAP_IN
            case BulletList(items=items):
                return BULLET_LINE_IN * max(len(items), 1) + 2 * BLOCK_GAP_IN
            case Highlights(items=items):
                return HIGHLIGHT_HEIGHT_IN + 0.4 if items else 0.0
            case MetricGrid(figures=figures):
                return METRIC_HEIGHT_IN + SECTION_GAP_IN if figures else 0.0
            case KeyValueTable(rows=rows):
                return TABLE_ROW_IN * (len(rows) + 1) + SECTION_GAP_IN
            case ChartFigure():
                return CHART_HEIGHT_IN + SECTION_GAP_IN
            case RiskMatrix():
                return RISK_HEADER_IN + RISK_BODY_IN + SECTION_GAP_IN
            case _:
                msg = f"Unsupported layout block {type(block).__name__}"
                raise TypeError(msg)

    def write(self, block: Block) -> None:
        match block:
            case Heading(text=text, level=1):
                size = 48 if self.cover else 28
                color = WHITE if self.cover else rgb(self.primary)
                self._text(block, text, size=size, color=color, bold=True)
            case Heading(text=text):
                size = 32 if self.cover else 18
                color = WHITE if self.cover else rgb(self.secondary)
                self._text(block, text, size=size, color=color, bold=True)
            case Text(text=text):
                color = WHITE if self.cover else TEXT_DARK
                self._text(block, text, size=self._body_size(), color=color)
            case Caption(text=text):
                color = WHITE if self.cover else TEXT_MUTED
                self._text(block, text, size=14 if self.cover else 12, color=color)
            case BulletList(items=items):
                self._bullets(block, items)
            case Highlights():
                self._highlights(block)
            case MetricGrid():
                self._metric_grid(block)
            case KeyValueTable():
                self._key_value_table(block)
            case ChartFigure():
                self._chart(block)
            case RiskMatrix():
                self._risk_matrix(block)
            case _:
                msg = f"Unsupported layout block {type(block).__name__}"
                raise TypeError(msg)

    def _body_size(self) -> int:
        return 18 if self.cover else 12

    def _advance(self, block: Block) -> None:
        self.top += self.measure(block) * self.scale

    def _text(
        self,
        block: Block,
        text: str,
        *,
        size: int,
        color: RGBColor,
        bold: bool = False,
    ) -> None:
        height = (self.measure(block) - BLOCK_GAP_IN) * self.scale
        box = self.slide.shapes.add_textbox(
            Inches(MARGIN_IN), Inches(self.top), Inches(CONTENT_WIDTH_IN), Inches(height)
        )
        frame = box.text_frame
        frame.word_wrap = True
        paragraph = frame.paragraphs[0]
        paragraph.alignment = PP_ALIGN.CENTER if self.cover else PP_ALIGN.LEFT
        self.run(paragraph, text, size=size, color=color, bold=bold)
        self._advance(block)

    def run(
        self,
        paragraph: typ.Any,
        text: str,
        *,
        size: float,
        color: RGBColor,
        bold: bool = False,
    ) -> None:
        run = paragraph.add_run()
        run.text = text
        run.font.size = Pt(max(size * self.scale, MIN_FONT_PT))
        run.font.bold = bold
        run.font.name = self.font
        run.font.color.rgb = color

    def rect(
        self,
        left: float,
        top: float,
        width: float,
        height: float,
        *,
        fill: RGBColor | None,
        line: RGBColor | None = None,
    ) -> typ.Any:
        shape = self.slide.shapes.add_shape(
            MSO_SHAPE.RECTANGLE,
            Inches(left),
            Inches(top),
            Inches(width),
            Inches(height),
        )
        if fill is None:
            shape.fill.background()
        else:
            shape.fill.solid()
            shape.fill.fore_color.rgb = fill
        if line is None:
            shape.line.fill.background()
        else:
            shape.line.color.rgb = line
            shape.line.width = Pt(1)
        return shape

    def _bullets(self, block: BulletList, items: tuple[str, ...]) -> None:
        height = (BULLET_LINE_IN * max(len(items), 1) + BLOCK_GAP_IN) * self.scale
        box = self.slide.shapes.add_textbox(
            Inches(MARGIN_IN), Inches(self.top), Inches(CONTENT_WIDTH_IN), Inches(height)
        )
        frame = box.text_frame
        frame.word_wrap = True
        color = WHITE if self.cover else TEXT_DARK
        for index, item in enumerate(items):
            paragraph = frame.paragraphs[0] if index == 0 else frame.add_paragraph()
            paragraph.space_before = Pt(4 * self.scale)
            self.run(paragraph, f"• {item}", size=12, color=color)
        self._advance(block)

    def _highlights(self, block: Highlights) -> None:
        items = block.items
        if not items:
            return
        gap = 0.2
        width = (CONTENT_WIDTH_IN - gap * (len(items) - 1)) / len(items)
        height = HIGHLIGHT_HEIGHT_IN * self.scale
        for index, item in enumerate(items):
            left = MARGIN_IN + index * (width + gap)
            shape = self.rect(
                left, self.top, width, height, fill=rgb(self.secondary), line=WHITE
            )
            frame = shape.text_frame
            frame.vertical_anchor = MSO_ANCHOR.MIDDLE
            paragraph = frame.paragraphs[0]
            paragraph.alignment = PP_ALIGN.CENTER
            self.run(paragraph, item, size=16, color=WHITE, bold=True)
        self._advance(block)

    def _metric_grid(self, grid: MetricGrid) -> None:
        if not grid.figures:
            return
        gap = 0.25
        count = len(grid.figures)
        width = (CONTENT_WIDTH_IN - gap * (count - 1)) / count
        height = METRIC_HEIGHT_IN * self.scale
        for index, figure in enumerate(grid.figures):
            left = MARGIN_IN + index * (width + gap)
            shape = self.rect(
                left,
                self.top,
                width,
                height,
                fill=rgb(tint(self.primary, 0.12)),
                line=rgb(self.primary),
            )
            frame = shape.text_frame
            frame.word_wrap = True
            frame.vertical_anchor = MSO_ANCHOR.MIDDLE
            value = frame.paragraphs[0]
            value.alignment = PP_ALIGN.CENTER
            self.run(value, figure.value, size=20, color=rgb(self.primary), bold=True)
            label = frame.add_paragraph()
            label.alignment = PP_ALIGN.CENTER
            self.run(label, figure.label, size=11, color=TEXT_MUTED)
        self._advance(grid)

    def _key_value_table(self, block: KeyValueTable) -> None:
        rows = len(block.rows) + 1
        height = TABLE_ROW_IN * rows * self.scale
        table = self.slide.shapes.add_table(
            rows,
            2,
            Inches(MARGIN_IN),
            Inches(self.top),
            Inches(CONTENT_WIDTH_IN),
            Inches(height),
        ).table
        cells = [block.headers, *((row.label, row.value) for row in block.rows)]
        for row_index, values in enumerate(cells):
            for column, value in enumerate(values):
                cell = table.cell(row_index, column)
                cell.text = ""
                paragraph = cell.text_frame.paragraphs[0]
                header = row_index == 0
                self.run(
                    paragraph,
                    value,
                    size=12,
                    color=WHITE if header else TEXT_DARK,
                    bold=header,
                )
                cell.fill.solid()
                if header:
                    cell.fill.fore_color.rgb = rgb(self.primary)
                elif row_index % 2 == 0:
                    cell.fill.fore_color.rgb = rgb(tint(self.primary, 0.12))
                else:
                    cell.fill.fore_color.rgb = WHITE
        self._advance(block)

    def _chart(self, figure: ChartFigure) -> None:
        height = CHART_HEIGHT_IN * self.scale
        if figure.image is not None:
            self.slide.shapes.add_picture(
                io.BytesIO(figure.image),
                Inches(MARGIN_IN),
                Inches(self.top),
                height=Inches(height),
            )
        else:
            shape = self.rect(
                MARGIN_IN,
                self.top,
                CONTENT_WIDTH_IN,
                height,
                fill=PLACEHOLDER_FILL,
                line=PLACEHOLDER_LINE,
            )
            frame = shape.text_frame
            frame.vertical_anchor = MSO_ANCHOR.MIDDLE
            paragraph = frame.paragraphs[0]
            paragraph.alignment = PP_ALIGN.CENTER
            self.run(paragraph, f"[Chart: {figure.title}]", size=14, color=TEXT_MUTED)
        self._advance(figure)

    def _risk_matrix(self, matrix: RiskMatrix) -> None:
        gap = 0.25
        count = max(len(matrix.buckets), 1)
        width = (CONTENT_WIDTH_IN - gap * (count - 1)) / count
        header_height = RISK_HEADER_IN * self.scale
        body_height = RISK_BODY_IN * self.scale
        for index, (level, names) in enumerate(matrix.buckets):
            left = MARGIN_IN + index * (width + gap)
            header = self.rect(
                left, self.top, width, header_height, fill=rgb(RISK_COLORS[level])
            )
            header_paragraph = header.text_frame.paragraphs[0]
            header_paragraph.alignment = PP_ALIGN.CENTER
            self.run(
                header_paragraph, f"{level.upper()} RISK", size=14, color=WHITE, bold=True
            )
            body = self.rect(
                left,
                self.top + header_height,
                width,
                body_height,
                fill=rgb(RISK_TINTS[level]),
                line=rgb(RISK_COLORS[level]),
            )
            frame = body.text_frame
            frame.word_wrap = True
            frame.vertical_anchor = MSO_ANCHOR.TOP
            for position, name in enumerate(names):
                paragraph = frame.paragraphs[0] if position == 0 else frame.add_paragraph()
                self.run(paragraph, f"• {name}", size=12, color=TEXT_DARK)
        self._advance(matrix)

    def decorate(self) -> None:
        """Draw the master rule and wordmark footer at full size."""
        self.scale = 1.0
        color = WHITE if self.cover else rgb(self.primary)
        rule = self.rect(MARGIN_IN, RULE_Y_IN, CONTENT_WIDTH_IN, 0.02, fill=color)
        rule.name = RULE_SHAPE_NAME
        box = self.slide.shapes.add_textbox(
            Inches(MARGIN_IN),
            Inches(WORDMARK_Y_IN),
            Inches(CONTENT_WIDTH_IN),
            Inches(0.35),
        )
        box.name = WORDMARK_SHAPE_NAME
        paragraph = box.text_frame.paragraphs[0]
        paragraph.alignment = PP_ALIGN.RIGHT
        self.run(paragraph, BRAND_WORDMARK, size=10, color=color, bold=True)


def _text_height(text: str, size: int) -> float:
    """Estimate the height of a wrapped paragraph in inches."""
    chars_per_line = max(int(CONTENT_WIDTH_IN * 144 / size), 1)
    lines = max(math.ceil(len(text) / chars_per_line), 1)
    return lines * size * 1.4 / 72 + 0.1


class SlideDeckRenderer:
    """Render layout units to PPTX bytes, one slide per unit."""

    def render(
        self, units: cabc.Sequence[LayoutUnit], options: ExportOptions
    ) -> RenderedArtifact:
        """Return a slide-deck artifact for ``units``.

        Parameters
        ----------
        units : Sequence[LayoutUnit]
            Layout units in plan order.
        options : ExportOptions
            Branding used for fills, headings, and the master decoration.

        Returns
        -------
        RenderedArtifact
            PPTX bytes with one slide per unit, titles in slide order.
        """
        presentation = Presentation()
        presentation.slide_width = Inches(SLIDE_WIDTH_IN)
        presentation.slide_height = Inches(SLIDE_HEIGHT_IN)
        layout = presentation.slide_layouts[BLANK_LAYOUT_INDEX]

        titles: list[str] = []
        for unit in units:
            slide = presentation.slides.add_slide(layout)
            if unit.full_bleed:
                fill = slide.background.fill
                fill.solid()
                fill.fore_color.rgb = rgb(options.branding.primary_color)
            writer = _SlideWriter(slide, options, cover=unit.full_bleed)
            writer.fit(unit.blocks)
            for block in unit.blocks:
                writer.write(block)
            writer.decorate()
            slide.notes_slide.notes_text_frame.text = unit.title
            titles.append(unit.title)

        buffer = io.BytesIO()
        presentation.save(buffer)
        return RenderedArtifact(
            payload=buffer.getvalue(), unit_titles=tuple(titles), unit_count=len(titles)
        )


__all__ = ["SlideDeckRenderer", "rgb"]
