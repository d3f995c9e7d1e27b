"""Unit tests for decoding export request bodies."""

from __future__ import annotations

import typing as typ

import msgspec.json as msgspec_json
import pytest

from noetic_thesis.export import ExportValidationError, decode_export_request
from noetic_thesis.models import ExportFormat, ItemKind
from noetic_thesis.registry import DETAILED_ANALYSIS

if typ.TYPE_CHECKING:
    from noetic_thesis.registry import TemplateRegistry


def _body(**overrides: typ.Any) -> dict[str, typ.Any]:
    body: dict[str, typ.Any] = {
        "selections": [
            {"id": "p0", "type": "phase", "title": "Phase 0", "order": 1},
            {"id": "market-line", "type": "chart", "order": 0},
        ],
        "template": {"id": "detailed-analysis", "name": "Detailed Analysis"},
        "options": {
            "format": "slideDeck",
            "branding": {"primaryColor": "#112233", "fontFamily": "Georgia"},
            "customization": {"includeCoverPage": False, "pageNumbers": False},
        },
    }
    body.update(overrides)
    return body


def test_decodes_camel_case_json(templates: TemplateRegistry) -> None:
    request = decode_export_request(
        msgspec_json.encode(_body()), templates=templates
    )

    assert [selection.id for selection in request.selections] == [
        "market-line",
        "p0",
    ], "selections should be sorted by their posted order"
    assert [selection.order for selection in request.selections] == [0, 1]
    assert request.selections[1].kind is ItemKind.PHASE
    assert request.selections[1].title == "Phase 0"
    assert request.template is DETAILED_ANALYSIS
    assert request.options.format is ExportFormat.SLIDE_DECK
    assert request.options.branding.primary_color == "#112233"
    assert request.options.branding.secondary_color == "#764ba2"
    assert request.options.branding.font_family == "Georgia"
    assert request.options.customization.include_cover_page is False
    assert request.options.customization.include_executive_summary is True
    assert request.options.customization.page_numbers is False


def test_accepts_parsed_mappings() -> None:
    request = decode_export_request(_body())

    assert request.template.id == "detailed-analysis"
    assert request.template.name == "Detailed Analysis"


def test_unregistered_template_is_built_from_body(
    templates: TemplateRegistry,
) -> None:
    body = _body(template={"id": "adhoc", "sections": ["Intro"]})

    request = decode_export_request(body, templates=templates)

    assert request.template.id == "adhoc"
    assert request.template.name == "adhoc"
    assert request.template.sections == ("Intro",)


def test_missing_order_falls_back_to_position() -> None:
    body = _body(
        selections=[
            {"id": "p1", "type": "phase"},
            {"id": "p0", "type": "phase"},
            {"id": "p1", "type": "phase"},
        ]
    )

    request = decode_export_request(body)

    assert [selection.id for selection in request.selections] == ["p1", "p0"]


def test_options_default_when_empty() -> None:
    request = decode_export_request(_body(options={}))

    assert request.options.format is ExportFormat.DOCUMENT
    assert request.options.customization.include_cover_page is True
    assert request.options.customization.include_appendix is False


@pytest.mark.parametrize("field", ["selections", "template", "options"])
def test_missing_required_field_is_rejected(field: str) -> None:
    body = _body()
    del body[field]

    with pytest.raises(ExportValidationError, match=field):
        decode_export_request(body)


@pytest.mark.parametrize(
    ("overrides", "fragment"),
    [
        ({"options": {"branding": {"primaryColor": "red"}}}, "primaryColor"),
        ({"options": {"format": "docx"}}, "format"),
        ({"selections": [{"id": "x", "type": "video"}]}, "type"),
        ({"selections": "p0"}, "selections"),
    ],
)
def test_invalid_values_are_rejected(
    overrides: dict[str, typ.Any], fragment: str
) -> None:
    with pytest.raises(ExportValidationError, match=fragment):
        decode_export_request(_body(**overrides))


def test_invalid_json_is_rejected() -> None:
    with pytest.raises(ExportValidationError):
        decode_export_request(b"{not json")


def test_validation_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):  # noqa: PT011 - asserting the hierarchy
        decode_export_request(b"[]")
