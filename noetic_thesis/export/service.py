"""Turn validated export requests into downloadable artifacts.

:class:`ExportService` is the only entry point the session, HTTP API, and CLI
use for exports. It builds the page plan, lays it out once, and hands the
units to the back-end for the requested format. A failure anywhere in layout
or rendering surfaces as :class:`ExportRenderError`; callers never see a
partial artifact, and nothing is retried.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import logging
import typing as typ

from noetic_thesis._constants import (
    EXPORT_FILENAME_TEMPLATE,
    PDF_MEDIA_TYPE,
    PPTX_MEDIA_TYPE,
)
from noetic_thesis.catalog import default_chart_registry
from noetic_thesis.config import default_reference_data
from noetic_thesis.models import ExportFormat
from noetic_thesis.plan import PagePlanBuilder
from noetic_thesis.registry import default_template_registry

from .document import DocumentRenderer
from .errors import ExportRenderError, ExportValidationError
from .layout import build_layout
from .slides import SlideDeckRenderer

if typ.TYPE_CHECKING:
    from noetic_thesis.catalog import ChartRegistry
    from noetic_thesis.config import ReferenceData
    from noetic_thesis.models import ExportOptions, Page
    from noetic_thesis.registry import TemplateRegistry

    from .layout import LayoutUnit
    from .palette import RenderedArtifact
    from .wire import ExportRequest

logger = logging.getLogger(__name__)


class Renderer(typ.Protocol):
    """A back-end that draws layout units into a binary artifact."""

    def render(
        self, units: typ.Sequence[LayoutUnit], options: ExportOptions
    ) -> RenderedArtifact: ...


CONTENT_TYPES: dict[ExportFormat, str] = {
    ExportFormat.DOCUMENT: PDF_MEDIA_TYPE,
    ExportFormat.SLIDE_DECK: PPTX_MEDIA_TYPE,
}


@dc.dataclass(frozen=True, slots=True)
class ExportArtifact:
    """A finished export ready to be written to disk or streamed."""

    payload: bytes
    format: ExportFormat
    filename: str
    content_type: str
    unit_titles: tuple[str, ...]

    @property
    def headers(self) -> dict[str, str]:
        """Return the HTTP headers for serving this artifact as a download."""
        return {
            "Content-Type": self.content_type,
            "Content-Disposition": f'attachment; filename="{self.filename}"',
            "Content-Length": str(len(self.payload)),
        }


def export_filename(export_format: ExportFormat) -> str:
    """Return the fixed download filename for ``export_format``."""
    return EXPORT_FILENAME_TEMPLATE.format(ext=export_format.extension)


class ExportService:
    """Validate, plan, lay out, and render export requests."""

    def __init__(
        self,
        reference: ReferenceData,
        charts: ChartRegistry,
        templates: TemplateRegistry,
        *,
        renderers: typ.Mapping[ExportFormat, Renderer] | None = None,
    ) -> None:
        """Initialize the service.

        Parameters
        ----------
        reference : ReferenceData
            Dataset used by the plan builder.
        charts : ChartRegistry
            Chart providers used for plan titles and layout visuals.
        templates : TemplateRegistry
            Registry used to resolve posted template ids.
        renderers : Mapping[ExportFormat, Renderer], optional
            Back-ends keyed by format. Defaults to the reportlab document
            renderer and the python-pptx slide-deck renderer.
        """
        self.reference = reference
        self.charts = charts
        self.templates = templates
        self.plan_builder = PagePlanBuilder(reference, charts)
        self.renderers: dict[ExportFormat, Renderer] = {
            ExportFormat.DOCUMENT: DocumentRenderer(),
            ExportFormat.SLIDE_DECK: SlideDeckRenderer(),
        }
        if renderers:
            self.renderers.update(renderers)

    def export(
        self,
        request: ExportRequest,
        *,
        export_format: ExportFormat | None = None,
        generated_at: dt.date | None = None,
    ) -> ExportArtifact:
        """Render ``request`` in ``export_format`` or its requested format.

        Raises
        ------
        ExportValidationError
            If the request yields an empty page plan.
        ExportRenderError
            If layout or rendering fails, or the back-end does not emit
            exactly one unit per page.
        """
        target = export_format or request.options.format
        plan = self.plan_builder.build(
            request.selections,
            request.template,
            request.options,
            generated_at=generated_at,
        )
        if not plan:
            msg = "Nothing to export: the page plan is empty."
            raise ExportValidationError(msg)
        return self.render_plan(plan, request.options, target)

    def render_plan(
        self,
        plan: typ.Sequence[Page],
        options: ExportOptions,
        export_format: ExportFormat,
    ) -> ExportArtifact:
        """Lay out and render an already-built plan."""
        failure = f"Failed to generate {export_format.label}"
        logger.info(
            "Rendering %s export with %d page(s)", export_format.label, len(plan)
        )
        try:
            units = build_layout(plan, self.charts)
            rendered = self.renderers[export_format].render(units, options)
        except Exception as exc:
            logger.exception("%s export failed", export_format.label)
            raise ExportRenderError(failure, str(exc) or type(exc).__name__) from exc

        expected = tuple(page.title for page in plan)
        if rendered.unit_titles != expected:
            details = (
                f"rendered {rendered.unit_count} unit(s) for {len(plan)} page(s)"
            )
            logger.error("%s export incomplete: %s", export_format.label, details)
            raise ExportRenderError(failure, details)

        return ExportArtifact(
            payload=rendered.payload,
            format=export_format,
            filename=export_filename(export_format),
            content_type=CONTENT_TYPES[export_format],
            unit_titles=rendered.unit_titles,
        )


def default_export_service(reference: ReferenceData | None = None) -> ExportService:
    """Build a service over ``reference`` or the packaged dataset."""
    data = default_reference_data() if reference is None else reference
    return ExportService(data, default_chart_registry(data), default_template_registry())


__all__ = [
    "CONTENT_TYPES",
    "ExportArtifact",
    "ExportService",
    "Renderer",
    "default_export_service",
    "export_filename",
]
