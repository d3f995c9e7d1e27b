"""Export a page plan as a PDF document or a PPTX slide deck.

The pipeline runs in three stages: :func:`build_layout` maps each plan page
to a format-neutral :class:`LayoutUnit`, then :class:`DocumentRenderer` or
:class:`SlideDeckRenderer` draws the units, and :class:`ExportService` ties
the stages together with request validation and atomic failure handling.

Examples
--------
>>> from noetic_thesis.export import ExportService, decode_export_request
>>> service = ExportService(data, charts, templates)  # doctest: +SKIP
>>> artifact = service.export(decode_export_request(body))  # doctest: +SKIP
>>> artifact.filename  # doctest: +SKIP
'noetic-2.0-thesis.pdf'
"""

from .document import DocumentRenderer
from .errors import (
    ExportError,
    ExportInProgressError,
    ExportRenderError,
    ExportValidationError,
)
from .layout import LayoutUnit, build_layout
from .palette import RenderedArtifact
from .service import (
    CONTENT_TYPES,
    ExportArtifact,
    ExportService,
    default_export_service,
    export_filename,
)
from .slides import SlideDeckRenderer
from .wire import ExportRequest, decode_export_request

__all__ = [
    "CONTENT_TYPES",
    "DocumentRenderer",
    "ExportArtifact",
    "ExportError",
    "ExportInProgressError",
    "ExportRenderError",
    "ExportRequest",
    "ExportService",
    "ExportValidationError",
    "LayoutUnit",
    "RenderedArtifact",
    "SlideDeckRenderer",
    "build_layout",
    "decode_export_request",
    "default_export_service",
    "export_filename",
]
