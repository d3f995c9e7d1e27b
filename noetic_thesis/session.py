"""Process-local builder session tying the wizard steps together.

A session owns the user's selections (through its
:class:`~noetic_thesis.catalog.SelectionCatalog`), the chosen template, the
export options, and the current wizard step. Every read of the plan is
rebuilt from that state, so the preview and exports always agree with it.

Exports run off the event loop in a worker thread, either the loop's default
executor or one supplied by the caller. Only one export may be in flight per
session; a second request while one is generating is rejected with :class:`~noetic_thesis.export.ExportInProgressError`.
"""

from __future__ import annotations

import asyncio
import copy
import dataclasses as dc
import enum
import functools
import logging
import typing as typ

from noetic_thesis.catalog import SelectionCatalog, default_chart_registry
from noetic_thesis.config import default_reference_data
from noetic_thesis.export import (
    ExportError,
    ExportInProgressError,
    ExportRequest,
    ExportService,
    ExportValidationError,
)
from noetic_thesis.models import ExportOptions, ThesisConfigError
from noetic_thesis.plan import PagePlanBuilder, estimate_page_count
from noetic_thesis.preview import PreviewRenderer
from noetic_thesis.registry import default_template_registry

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from concurrent.futures import Executor

    from noetic_thesis.config import ReferenceData
    from noetic_thesis.export import ExportArtifact
    from noetic_thesis.models import ExportFormat, Page, Selection, Template
    from noetic_thesis.registry import CompatibilityScore, TemplateRegistry

logger = logging.getLogger(__name__)


class BuilderStep(enum.StrEnum):
    """Wizard steps in the order the user visits them."""

    SELECT = "select"
    TEMPLATE = "template"
    PREVIEW = "preview"
    EXPORT = "export"


class ExportStatus(enum.StrEnum):
    """Outcome of the most recent export."""

    IDLE = "idle"
    GENERATING = "generating"
    SUCCESS = "success"
    ERROR = "error"


@dc.dataclass(frozen=True, slots=True)
class ExportSummary:
    """Figures shown on the export step before the user confirms."""

    format_label: str
    estimated_pages: int
    template_name: str
    selection_count: int


class BuilderSession:
    """Wizard state for a single user building a thesis."""

    def __init__(
        self,
        catalog: SelectionCatalog,
        templates: TemplateRegistry,
        plan_builder: PagePlanBuilder,
        export_service: ExportService,
        *,
        options: ExportOptions | None = None,
    ) -> None:
        self.catalog = catalog
        self.templates = templates
        self.plan_builder = plan_builder
        self.export_service = export_service
        self.options = options or ExportOptions()
        self.template: Template | None = None
        self.current_step = BuilderStep.SELECT
        self.export_status = ExportStatus.IDLE
        self.last_error: str | None = None
        self.last_artifact: ExportArtifact | None = None
        self._preview = PreviewRenderer(())

    @property
    def selections(self) -> list[Selection]:
        """Return the current selections in display order."""
        return self.catalog.selections

    def toggle(self, item_id: str) -> list[Selection]:
        """Add or remove ``item_id`` from the selections."""
        return self.catalog.toggle(item_id)

    def reorder(self, from_index: int, to_index: int) -> list[Selection]:
        """Move a selection and renumber the list."""
        return self.catalog.reorder(from_index, to_index)

    def choose_template(self, template_id: str) -> Template:
        """Make the registered template ``template_id`` the active one.

        Raises
        ------
        ThesisConfigError
            If no template is registered under ``template_id``.
        """
        template = self.templates.get(template_id)
        if template is None:
            msg = f"Unknown template '{template_id}'."
            raise ThesisConfigError(msg)
        self.template = template
        return template

    def clear_template(self) -> None:
        """Unset the active template."""
        self.template = None

    def update_options(self, patch: cabc.Mapping[str, typ.Any]) -> ExportOptions:
        """Merge ``patch`` into the export options and return them."""
        self.options.apply_patch(patch)
        return self.options

    def compatibility(self) -> list[tuple[Template, CompatibilityScore]]:
        """Score every template against the current selections."""
        return self.templates.rank(self.selections)

    def plan(self) -> tuple[Page, ...]:
        """Build the page plan for the current state."""
        return self.plan_builder.build(self.selections, self.template, self.options)

    def preview(self) -> PreviewRenderer:
        """Return the preview state refreshed with the current plan."""
        self._preview.update_plan(self.plan())
        return self._preview

    def export_summary(self) -> ExportSummary:
        """Return the figures shown on the export step."""
        return ExportSummary(
            format_label=self.options.format.label,
            estimated_pages=estimate_page_count(self.plan(), self.options),
            template_name=self.template.name if self.template else "None",
            selection_count=len(self.selections),
        )

    def can_enter(self, step: BuilderStep) -> bool:
        """Return whether the preconditions for ``step`` are met."""
        match step:
            case BuilderStep.SELECT:
                return True
            case BuilderStep.TEMPLATE:
                return bool(self.selections)
            case BuilderStep.PREVIEW:
                return self.template is not None
            case BuilderStep.EXPORT:
                return bool(self.plan())
        return False

    def go_to(self, step: BuilderStep) -> bool:
        """Move to ``step`` when allowed; return whether the move happened."""
        if not self.can_enter(step):
            return False
        self.current_step = step
        return True

    async def export(
        self,
        *,
        export_format: ExportFormat | None = None,
        executor: Executor | None = None,
    ) -> ExportArtifact:
        """Render the current state without blocking the event loop.

        Parameters
        ----------
        export_format : ExportFormat, optional
            Overrides ``options.format`` for this export only.
        executor : Executor, optional
            Runs the render. Defaults to the event loop's default executor.
            Callers that enforce a deadline pass their own so an abandoned
            render does not hold up loop shutdown.

        Returns
        -------
        ExportArtifact
            The rendered file, also kept as :attr:`last_artifact`.

        Raises
        ------
        ExportInProgressError
            If another export from this session is still generating.
        ExportValidationError
            If no template is chosen or the plan is empty.
        ExportRenderError
            If rendering fails; :attr:`export_status` becomes ``error``.
        """
        if self.export_status is ExportStatus.GENERATING:
            msg = "An export is already in progress for this session."
            raise ExportInProgressError(msg)
        if self.template is None:
            msg = "Choose a template before exporting."
            raise ExportValidationError(msg)

        request = ExportRequest(
            selections=tuple(self.selections),
            template=self.template,
            options=copy.deepcopy(self.options),
        )
        render = functools.partial(
            self.export_service.export, request, export_format=export_format
        )
        self.export_status = ExportStatus.GENERATING
        self.last_error = None
        try:
            artifact = await asyncio.get_running_loop().run_in_executor(
                executor, render
            )
        except ExportError as exc:
            self.export_status = ExportStatus.ERROR
            self.last_error = str(exc)
            logger.warning("Session export failed: %s", exc)
            raise
        except asyncio.CancelledError:
            self.export_status = ExportStatus.IDLE
            raise
        except Exception as exc:
            self.export_status = ExportStatus.ERROR
            self.last_error = str(exc) or type(exc).__name__
            logger.exception("Session export crashed")
            raise
        self.export_status = ExportStatus.SUCCESS
        self.last_artifact = artifact
        return artifact


def create_session(reference: ReferenceData | None = None) -> BuilderSession:
    """Return a fresh session over ``reference`` or the packaged dataset."""
    data = default_reference_data() if reference is None else reference
    charts = default_chart_registry(data)
    templates = default_template_registry()
    return BuilderSession(
        SelectionCatalog(data, charts),
        templates,
        PagePlanBuilder(data, charts),
        ExportService(data, charts, templates),
    )


__all__ = [
    "BuilderSession",
    "BuilderStep",
    "ExportStatus",
    "ExportSummary",
    "create_session",
]
