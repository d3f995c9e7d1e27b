"""Cyclopts CLI entrypoint for building and exporting investment theses.

The ``thesis`` console script exposes the builder pipeline without the web
UI: list selectable content, score templates, print a page plan, render an
HTML preview, export a PDF or PPTX, or serve the export API. Every option can
also be supplied through a ``THESIS_``-prefixed environment variable.

Examples
--------
Export the detailed analysis as a slide deck:

>>> from noetic_thesis.cli import app
>>> app.run(
...     [
...         "export",
...         "--template", "detailed-analysis",
...         "--select", "market-line",
...         "--select", "p0",
...         "--format", "slide-deck",
...     ]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import typing as typ
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import cyclopts
import uvicorn
from cyclopts import App, Parameter

from .api import create_app
from .config import load_reference_data
from .export import ExportError, default_export_service
from .models import ExportFormat, ThesisConfigError
from .preview import PreviewPageBuilder
from .session import BuilderSession, create_session

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from concurrent.futures import Executor

    from .export import ExportArtifact

DEFAULT_TIMEOUT_SECONDS = 120.0

app = App(name="thesis", config=cyclopts.config.Env("THESIS_", command=False))  # type: ignore[unknown-argument]

DataOption = typ.Annotated[
    Path | None,
    Parameter(help="Path to a reference dataset YAML", env_var="THESIS_DATA"),
]
SelectOption = typ.Annotated[
    list[str] | None,
    Parameter(help="Item id to add, in order (repeatable)", env_var="THESIS_SELECT"),
]
TemplateOption = typ.Annotated[
    str, Parameter(help="Template id", env_var="THESIS_TEMPLATE")
]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _session(
    data: Path | None,
    select: cabc.Sequence[str] | None,
    template: str | None = None,
) -> BuilderSession:
    """Build a session with ``select`` toggled on and ``template`` chosen.

    Raises
    ------
    SystemExit
        If an item id or the template id is unknown.
    """
    session = create_session(load_reference_data(data) if data else None)
    for item_id in select or ():
        if session.catalog.item(item_id) is None:
            msg = f"Unknown item id '{item_id}'."
            raise SystemExit(msg)
        if not session.catalog.is_selected(item_id):
            session.toggle(item_id)
    if template:
        try:
            session.choose_template(template)
        except ThesisConfigError as exc:
            raise SystemExit(str(exc)) from exc
    return session


def _update_options(session: BuilderSession, patch: dict[str, typ.Any]) -> None:
    """Apply ``patch`` to the session options, exiting on invalid values."""
    try:
        session.update_options(patch)
    except ThesisConfigError as exc:
        raise SystemExit(str(exc)) from exc


@app.command(help="List the content that can be added to a thesis.")
def catalog(
    *,
    category: typ.Annotated[
        str | None,
        Parameter(help="charts, metrics, phases, risks, or all"),
    ] = None,
    search: typ.Annotated[
        str | None, Parameter(help="Case-insensitive title filter")
    ] = None,
    data: DataOption = None,
) -> None:
    """Print selectable items as ``kind  id  title`` lines."""
    session = _session(data, None)
    for item in session.catalog.list_available(category=category, search_text=search):
        print(f"{item.kind:<7} {item.id:<20} {item.title}")


@app.command(help="Score every template against a selection.")
def templates(*, select: SelectOption = None, data: DataOption = None) -> None:
    """Print each template with its compatibility score and missing ids.

    Parameters
    ----------
    select : list[str] or None, optional
        Item ids forming the selection to score.
    data : Path or None, optional
        Alternative reference dataset.
    """
    session = _session(data, select)
    for template, score in session.compatibility():
        missing = ", ".join(score.missing_ids) or "-"
        print(
            f"{template.id:<18} {score.percent:>3}% {score.band:<6} "
            f"{template.name} (missing: {missing})"
        )


@app.command(help="Print the ordered page plan.")
def plan(
    *,
    template: TemplateOption,
    select: SelectOption = None,
    include_cover_page: bool = True,
    include_executive_summary: bool = True,
    include_appendix: bool = False,
    data: DataOption = None,
) -> None:
    """Print one line per page and the export page estimate."""
    session = _session(data, select, template)
    _update_options(
        session,
        {
            "customization": {
                "include_cover_page": include_cover_page,
                "include_executive_summary": include_executive_summary,
                "include_appendix": include_appendix,
            }
        },
    )
    for index, page in enumerate(session.plan(), start=1):
        print(f"{index:>2}. {page.kind:<7} {page.id:<20} {page.title}")
    summary = session.export_summary()
    print(f"estimated pages: {summary.estimated_pages}")


@app.command(help="Render an HTML preview of the page plan.")
def preview(
    *,
    template: TemplateOption,
    select: SelectOption = None,
    output: typ.Annotated[
        Path, Parameter(help="Where to write the preview HTML")
    ] = Path("thesis-preview.html"),
    page: typ.Annotated[int, Parameter(help="One-based page to show first")] = 1,
    zoom: typ.Annotated[float, Parameter(help="Zoom factor, 0.5 to 2.0")] = 1.0,
    data: DataOption = None,
) -> None:
    """Write the preview page and print its path."""
    session = _session(data, select, template)
    renderer = session.preview()
    renderer.go_to(page - 1)
    renderer.set_zoom(zoom)
    written = PreviewPageBuilder(
        renderer,
        output,
        template=session.template,
        selections=session.selections,
        primary_color=session.options.branding.primary_color,
        secondary_color=session.options.branding.secondary_color,
    ).run()
    print(f"wrote {_format_path(written)}")


async def _export_with_timeout(
    session: BuilderSession,
    export_format: ExportFormat,
    timeout: float,
    executor: Executor,
) -> ExportArtifact:
    return await asyncio.wait_for(
        session.export(export_format=export_format, executor=executor),
        timeout=timeout,
    )


def _run_export(
    session: BuilderSession, export_format: ExportFormat, timeout: float
) -> ExportArtifact:
    """Run the export with a wall-clock ``timeout``.

    The render runs on a private worker thread. On timeout the thread is
    abandoned instead of joined, so the caller regains control once
    ``timeout`` elapses even if the renderer is still busy.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="thesis-export")
    try:
        return asyncio.run(
            _export_with_timeout(session, export_format, timeout, executor)
        )
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


@app.command(help="Export the thesis as a PDF document or PPTX slide deck.")
def export(
    *,
    template: TemplateOption,
    select: SelectOption = None,
    format: typ.Annotated[  # noqa: A002 - mirrors the option name
        ExportFormat, Parameter(help="document or slide-deck")
    ] = ExportFormat.DOCUMENT,
    output: typ.Annotated[
        Path | None,
        Parameter(help="Output file; defaults to noetic-2.0-thesis.<ext>"),
    ] = None,
    primary_color: str = "#667eea",
    secondary_color: str = "#764ba2",
    font_family: str = "Inter",
    include_cover_page: bool = True,
    include_executive_summary: bool = True,
    include_appendix: bool = False,
    page_numbers: bool = True,
    timeout: typ.Annotated[
        float, Parameter(help="Seconds to wait before giving up")
    ] = DEFAULT_TIMEOUT_SECONDS,
    data: DataOption = None,
) -> None:
    """Render the export and write it to disk.

    Raises
    ------
    SystemExit
        If rendering fails or exceeds ``timeout``; the message says whether a
        retry may help.
    """
    session = _session(data, select, template)
    _update_options(
        session,
        {
            "format": format,
            "branding": {
                "primary_color": primary_color,
                "secondary_color": secondary_color,
                "font_family": font_family,
            },
            "customization": {
                "include_cover_page": include_cover_page,
                "include_executive_summary": include_executive_summary,
                "include_appendix": include_appendix,
                "page_numbers": page_numbers,
            },
        },
    )
    try:
        artifact = _run_export(session, format, timeout)
    except TimeoutError as exc:
        msg = f"Export timed out after {timeout:g}s; retry or raise --timeout."
        raise SystemExit(msg) from exc
    except ExportError as exc:
        raise SystemExit(str(exc)) from exc

    target = output or Path(artifact.filename)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(artifact.payload)
    print(f"wrote {_format_path(target)} ({len(artifact.unit_titles)} pages)")


@app.command(help="Serve the export API with uvicorn.")
def serve(
    *,
    host: typ.Annotated[str, Parameter(env_var="THESIS_HOST")] = "127.0.0.1",
    port: typ.Annotated[int, Parameter(env_var="THESIS_PORT")] = 8000,
    data: DataOption = None,
) -> None:
    """Run the FastAPI application until interrupted."""
    reference = load_reference_data(data) if data else None
    uvicorn.run(create_app(default_export_service(reference)), host=host, port=port)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``thesis`` command."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
