"""Behaviour tests for document and slide-deck export parity.

These scenarios send one export request through both back-ends and check
that the PDF outline and the slide notes list the same page titles, that the
download filenames are fixed, and that a failing back-end yields no artifact.

Usage
-----
Run ``pytest tests/bdd/test_export_parity.py -v``. Rendering happens in
memory with reportlab and python-pptx.
"""

from __future__ import annotations

import io
import typing as typ
from pathlib import Path

import pytest
from pptx import Presentation
from pytest_bdd import given, parsers, scenarios, then, when

from noetic_thesis.export import (
    ExportError,
    ExportRenderError,
    ExportRequest,
    default_export_service,
)
from noetic_thesis.models import ExportFormat, ExportOptions, Selection
from noetic_thesis.registry import default_template_registry
from noetic_thesis.session import create_session

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from noetic_thesis.export import ExportArtifact, ExportService

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "export_parity.feature"
)
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps.

    Returns
    -------
    ScenarioState
        Dictionary holding the export service and collected artifacts.
    """
    return {"service": default_export_service(), "artifacts": {}, "errors": {}}


@given(
    parsers.parse(
        'an export request for "{ids}" with template "{template_id}"'
    )
)
def given_request(scenario_state: ScenarioState, ids: str, template_id: str) -> None:
    """Build a request from catalog ids, resolving each id's kind.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared dictionary receiving the request under ``request``.
    ids : str
        Comma-separated catalog ids in display order.
    template_id : str
        Id of a built-in template.
    """
    catalog = create_session().catalog
    selections: list[Selection] = []
    for item_id in (part.strip() for part in ids.split(",")):
        item = catalog.item(item_id)
        assert item is not None, f"unknown catalog id {item_id!r}"
        selections.append(Selection.from_item(item, order=len(selections)))
    template = default_template_registry().get(template_id)
    assert template is not None, f"unknown template {template_id!r}"
    scenario_state["request"] = ExportRequest(
        selections=tuple(selections), template=template, options=ExportOptions()
    )


@given(parsers.parse('the "{export_format}" renderer fails with "{message}"'))
def given_failing_renderer(
    scenario_state: ScenarioState,
    mocker: MockerFixture,
    export_format: str,
    message: str,
) -> None:
    service = typ.cast("ExportService", scenario_state["service"])
    renderer = mocker.Mock()
    renderer.render.side_effect = RuntimeError(message)
    service.renderers[ExportFormat(export_format)] = renderer


@when(parsers.parse('I export it as "{export_format}"'))
def when_export(scenario_state: ScenarioState, export_format: str) -> None:
    """Render the request, recording either the artifact or the error."""
    service = typ.cast("ExportService", scenario_state["service"])
    target = ExportFormat(export_format)
    try:
        artifact = service.export(scenario_state["request"], export_format=target)
    except ExportError as exc:
        scenario_state["errors"][target] = exc
        return
    scenario_state["artifacts"][target] = artifact


@then("both artifacts list the same page titles")
def then_same_titles(scenario_state: ScenarioState) -> None:
    artifacts = typ.cast("dict[ExportFormat, ExportArtifact]", scenario_state["artifacts"])
    document = artifacts[ExportFormat.DOCUMENT]
    deck = artifacts[ExportFormat.SLIDE_DECK]
    assert document.unit_titles == deck.unit_titles, (
        f"PDF outline {document.unit_titles!r} differs from slides "
        f"{deck.unit_titles!r}"
    )


@then(parsers.parse('the "{export_format}" artifact is named "{filename}"'))
def then_filename(scenario_state: ScenarioState, export_format: str, filename: str) -> None:
    artifact = scenario_state["artifacts"][ExportFormat(export_format)]
    assert artifact.filename == filename
    assert artifact.headers["Content-Disposition"] == (
        f'attachment; filename="{filename}"'
    )


@then(parsers.parse("the slide deck has {count:d} slides"))
def then_slide_count(scenario_state: ScenarioState, count: int) -> None:
    artifact = scenario_state["artifacts"][ExportFormat.SLIDE_DECK]
    deck = Presentation(io.BytesIO(artifact.payload))
    assert len(deck.slides) == count


@then(parsers.parse('the export fails with "{message}"'))
def then_export_fails(scenario_state: ScenarioState, message: str) -> None:
    errors = list(scenario_state["errors"].values())
    assert len(errors) == 1, f"expected one export error, got {errors!r}"
    error = errors[0]
    assert isinstance(error, ExportRenderError)
    assert error.message == message


@then(parsers.parse('no "{export_format}" artifact is produced'))
def then_no_artifact(scenario_state: ScenarioState, export_format: str) -> None:
    assert ExportFormat(export_format) not in scenario_state["artifacts"]
