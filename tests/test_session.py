"""Unit tests for the builder session."""

from __future__ import annotations

import asyncio
import threading
import typing as typ
from concurrent.futures import ThreadPoolExecutor

import pytest

from noetic_thesis.export import (
    ExportInProgressError,
    ExportRenderError,
    ExportValidationError,
    RenderedArtifact,
)
from noetic_thesis.models import ExportFormat, ThesisConfigError
from noetic_thesis.session import (
    BuilderSession,
    BuilderStep,
    ExportStatus,
    create_session,
)

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture
def session() -> BuilderSession:
    """Return a fresh session over the packaged dataset."""
    return create_session()


def _stub_renderer(mocker: MockerFixture, gate: threading.Event | None = None) -> typ.Any:
    def render(units: typ.Any, options: typ.Any) -> RenderedArtifact:
        if gate is not None:
            gate.wait(timeout=5)
        return RenderedArtifact(
            payload=b"stub",
            unit_titles=tuple(unit.title for unit in units),
            unit_count=len(units),
        )

    renderer = mocker.Mock()
    renderer.render.side_effect = render
    return renderer


def test_step_gating(session: BuilderSession) -> None:
    assert session.can_enter(BuilderStep.SELECT)
    assert not session.go_to(BuilderStep.TEMPLATE), "template step needs selections"

    session.toggle("market-line")
    assert session.go_to(BuilderStep.TEMPLATE)
    assert not session.can_enter(BuilderStep.PREVIEW), "preview needs a template"

    session.choose_template("executive-summary")
    assert session.go_to(BuilderStep.PREVIEW)
    assert session.go_to(BuilderStep.EXPORT)
    assert session.current_step is BuilderStep.EXPORT


def test_export_step_needs_non_empty_plan(session: BuilderSession) -> None:
    session.toggle("target-fund-size")
    session.choose_template("custom")
    session.update_options(
        {
            "customization": {
                "include_cover_page": False,
                "include_executive_summary": False,
            }
        }
    )

    assert session.plan() == ()
    assert not session.can_enter(BuilderStep.EXPORT)


def test_choose_unknown_template_raises(session: BuilderSession) -> None:
    with pytest.raises(ThesisConfigError, match="Unknown template"):
        session.choose_template("mystery")
    assert session.template is None


def test_clear_template_empties_plan(session: BuilderSession) -> None:
    session.choose_template("custom")
    assert session.plan()

    session.clear_template()

    assert session.plan() == ()


def test_update_options_patches_in_place(session: BuilderSession) -> None:
    options = session.update_options({"branding": {"primary_color": "#0A0B0C"}})

    assert options is session.options
    assert options.branding.primary_color == "#0A0B0C"
    assert options.branding.secondary_color == "#764ba2"


def test_invalid_option_patch_leaves_options_untouched(
    session: BuilderSession,
) -> None:
    with pytest.raises(ThesisConfigError, match="primary_color"):
        session.update_options(
            {"format": "slideDeck", "branding": {"primary_color": "teal"}}
        )

    assert session.options.format is ExportFormat.DOCUMENT
    assert session.options.branding.primary_color == "#667eea"


def test_unknown_option_is_rejected(session: BuilderSession) -> None:
    with pytest.raises(ThesisConfigError, match="watermark"):
        session.update_options({"watermark": True})


def test_compatibility_ranks_every_template(session: BuilderSession) -> None:
    session.toggle("market-line")

    ranked = session.compatibility()

    assert [template.id for template, _ in ranked] == [
        "executive-summary",
        "detailed-analysis",
        "investor-pitch",
        "custom",
    ]
    assert ranked[0][1].matching_count == 1


def test_preview_tracks_current_plan(session: BuilderSession) -> None:
    session.choose_template("detailed-analysis")
    preview = session.preview()
    preview.go_to(1)

    session.toggle("p0")
    refreshed = session.preview()

    assert refreshed is preview
    assert [page.id for page in refreshed.plan] == [
        "cover",
        "executive-summary",
        "p0",
    ]
    assert refreshed.current_page_index == 1


def test_export_summary(session: BuilderSession) -> None:
    session.toggle("p0")
    session.toggle("target-fund-size")
    session.choose_template("investor-pitch")
    session.update_options(
        {"format": "slideDeck", "customization": {"include_appendix": True}}
    )

    summary = session.export_summary()

    assert summary.format_label == "PPTX"
    assert summary.estimated_pages == 4
    assert summary.template_name == "Investor Pitch"
    assert summary.selection_count == 2


def test_export_success_records_artifact(
    session: BuilderSession, mocker: MockerFixture
) -> None:
    session.export_service.renderers[ExportFormat.DOCUMENT] = _stub_renderer(mocker)
    session.toggle("market-line")
    session.choose_template("custom")

    artifact = asyncio.run(session.export())

    assert session.export_status is ExportStatus.SUCCESS
    assert session.last_artifact is artifact
    assert artifact.unit_titles == (
        "Cover Page",
        "Executive Summary",
        "Market Size Projection",
    )


def test_export_without_template_is_rejected(session: BuilderSession) -> None:
    session.toggle("market-line")

    with pytest.raises(ExportValidationError, match="template"):
        asyncio.run(session.export())
    assert session.export_status is ExportStatus.IDLE


def test_export_failure_sets_error_status(
    session: BuilderSession, mocker: MockerFixture
) -> None:
    renderer = mocker.Mock()
    renderer.render.side_effect = RuntimeError("boom")
    session.export_service.renderers[ExportFormat.SLIDE_DECK] = renderer
    session.choose_template("custom")

    with pytest.raises(ExportRenderError, match="Failed to generate PPTX"):
        asyncio.run(session.export(export_format=ExportFormat.SLIDE_DECK))

    assert session.export_status is ExportStatus.ERROR
    assert session.last_error is not None
    assert "boom" in session.last_error
    assert session.last_artifact is None


def test_unexpected_export_failure_releases_session(
    session: BuilderSession, mocker: MockerFixture
) -> None:
    mocker.patch.object(
        session.export_service, "export", side_effect=KeyError("renderers")
    )
    session.choose_template("custom")

    with pytest.raises(KeyError):
        asyncio.run(session.export())

    assert session.export_status is ExportStatus.ERROR
    assert session.last_error == "'renderers'"
    with pytest.raises(KeyError):
        asyncio.run(session.export())


def test_export_runs_on_supplied_executor(
    session: BuilderSession, mocker: MockerFixture
) -> None:
    session.export_service.renderers[ExportFormat.DOCUMENT] = _stub_renderer(mocker)
    session.choose_template("custom")
    thread_names: list[str] = []
    real_export = session.export_service.export

    def export(*args: typ.Any, **kwargs: typ.Any) -> typ.Any:
        thread_names.append(threading.current_thread().name)
        return real_export(*args, **kwargs)

    mocker.patch.object(session.export_service, "export", side_effect=export)

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="render") as pool:
        asyncio.run(session.export(executor=pool))

    assert session.export_status is ExportStatus.SUCCESS
    assert len(thread_names) == 1
    assert thread_names[0].startswith("render")


def test_second_export_while_generating_is_rejected(
    session: BuilderSession, mocker: MockerFixture
) -> None:
    gate = threading.Event()
    session.export_service.renderers[ExportFormat.DOCUMENT] = _stub_renderer(
        mocker, gate
    )
    session.choose_template("custom")

    async def run_both() -> None:
        first = asyncio.create_task(session.export())
        await asyncio.sleep(0)
        assert session.export_status is ExportStatus.GENERATING
        try:
            with pytest.raises(ExportInProgressError):
                await session.export()
        finally:
            gate.set()
        await first

    asyncio.run(run_both())

    assert session.export_status is ExportStatus.SUCCESS


def test_export_snapshots_options(
    session: BuilderSession, mocker: MockerFixture
) -> None:
    """Options changed after an export starts do not leak into it."""
    captured: list[str] = []
    gate = threading.Event()

    def render(units: typ.Any, options: typ.Any) -> RenderedArtifact:
        gate.wait(timeout=5)
        captured.append(options.branding.primary_color)
        return RenderedArtifact(
            payload=b"stub",
            unit_titles=tuple(unit.title for unit in units),
            unit_count=len(units),
        )

    renderer = mocker.Mock()
    renderer.render.side_effect = render
    session.export_service.renderers[ExportFormat.DOCUMENT] = renderer
    session.choose_template("custom")

    async def run() -> None:
        task = asyncio.create_task(session.export())
        await asyncio.sleep(0)
        session.update_options({"branding": {"primary_color": "#000000"}})
        gate.set()
        await task

    asyncio.run(run())

    assert captured == ["#667eea"]
