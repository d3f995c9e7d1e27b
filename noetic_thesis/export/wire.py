"""Decode export request bodies into domain models.

The request body mirrors what the builder UI posts to the export endpoints::

    {
      "selections": [{"id": "market-line", "type": "chart", "order": 0}],
      "template": {"id": "detailed-analysis", "name": "Detailed Analysis"},
      "options": {
        "format": "document",
        "branding": {"primaryColor": "#667eea"},
        "customization": {"includeCoverPage": true}
      }
    }

``selections``, ``template`` and ``options`` are required; everything inside
``options`` falls back to the defaults of :class:`ExportOptions`. Unknown
fields are ignored.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

import msgspec
import msgspec.json as msgspec_json

from noetic_thesis.models import (
    HEX_COLOR_PATTERN,
    Branding,
    Customization,
    ExportFormat,
    ExportOptions,
    ItemKind,
    Selection,
    Template,
)

from .errors import ExportValidationError

if typ.TYPE_CHECKING:
    from noetic_thesis.registry import TemplateRegistry

HexColor = typ.Annotated[str, msgspec.Meta(pattern=HEX_COLOR_PATTERN.pattern)]


class SelectionWire(msgspec.Struct, rename="camel"):
    """A selection as posted by the builder UI."""

    id: str
    kind: ItemKind = msgspec.field(name="type")
    title: str = ""
    order: int | None = None


class TemplateWire(msgspec.Struct, rename="camel"):
    """The chosen template; only ``id`` is required."""

    id: str
    name: str | None = None
    description: str = ""
    sections: list[str] = []
    default_selection_ids: list[str] = []


class BrandingWire(msgspec.Struct, rename="camel"):
    primary_color: HexColor = "#667eea"
    secondary_color: HexColor = "#764ba2"
    font_family: str = "Inter"


class CustomizationWire(msgspec.Struct, rename="camel"):
    include_cover_page: bool = True
    include_executive_summary: bool = True
    include_appendix: bool = False
    page_numbers: bool = True


class OptionsWire(msgspec.Struct, rename="camel"):
    format: ExportFormat = ExportFormat.DOCUMENT
    branding: BrandingWire = msgspec.field(default_factory=BrandingWire)
    customization: CustomizationWire = msgspec.field(
        default_factory=CustomizationWire
    )


class ExportRequestWire(msgspec.Struct, rename="camel"):
    selections: list[SelectionWire]
    template: TemplateWire
    options: OptionsWire


@dc.dataclass(frozen=True, slots=True)
class ExportRequest:
    """A validated export request ready for the plan builder."""

    selections: tuple[Selection, ...]
    template: Template
    options: ExportOptions


def decode_export_request(
    body: bytes | str | cabc.Mapping[str, typ.Any],
    *,
    templates: TemplateRegistry | None = None,
) -> ExportRequest:
    """Validate ``body`` and convert it into an :class:`ExportRequest`.

    Parameters
    ----------
    body : bytes, str, or Mapping
        Raw JSON text or an already-parsed JSON object.
    templates : TemplateRegistry, optional
        When the posted template id is registered, the registry entry is
        used instead of the posted fields.

    Returns
    -------
    ExportRequest
        Selections sorted by ``order`` and renumbered from zero with
        duplicate ids dropped, the resolved template, and export options.

    Raises
    ------
    ExportValidationError
        If the body is not valid JSON, a required field is missing, or a
        value has the wrong type (for example, a color that is not
        ``#RRGGBB``). The message names the offending field.

    Examples
    --------
    >>> request = decode_export_request(
    ...     b'{"selections": [], "template": {"id": "custom"}, "options": {}}'
    ... )
    >>> request.options.branding.primary_color
    '#667eea'
    """
    try:
        if isinstance(body, bytes | str):
            wire = msgspec_json.decode(body, type=ExportRequestWire)
        else:
            wire = msgspec.convert(body, type=ExportRequestWire)
    except msgspec.DecodeError as exc:
        raise ExportValidationError(str(exc)) from exc

    return ExportRequest(
        selections=_selections(wire.selections),
        template=_template(wire.template, templates),
        options=_options(wire.options),
    )


def _selections(items: cabc.Sequence[SelectionWire]) -> tuple[Selection, ...]:
    def position(pair: tuple[int, SelectionWire]) -> tuple[int, int]:
        index, item = pair
        return (index if item.order is None else item.order, index)

    ranked = sorted(enumerate(items), key=position)
    selections: list[Selection] = []
    seen: set[str] = set()
    for _, item in ranked:
        if item.id in seen:
            continue
        seen.add(item.id)
        selections.append(
            Selection(
                id=item.id,
                kind=item.kind,
                title=item.title,
                order=len(selections),
            )
        )
    return tuple(selections)


def _template(wire: TemplateWire, templates: TemplateRegistry | None) -> Template:
    if templates is not None:
        registered = templates.get(wire.id)
        if registered is not None:
            return registered
    return Template(
        id=wire.id,
        name=wire.name or wire.id,
        description=wire.description,
        sections=tuple(wire.sections),
        default_selection_ids=tuple(wire.default_selection_ids),
    )


def _options(wire: OptionsWire) -> ExportOptions:
    return ExportOptions(
        format=wire.format,
        branding=Branding(
            primary_color=wire.branding.primary_color,
            secondary_color=wire.branding.secondary_color,
            font_family=wire.branding.font_family,
        ),
        customization=Customization(
            include_cover_page=wire.customization.include_cover_page,
            include_executive_summary=wire.customization.include_executive_summary,
            include_appendix=wire.customization.include_appendix,
            page_numbers=wire.customization.page_numbers,
        ),
    )


__all__ = [
    "ExportRequest",
    "ExportRequestWire",
    "SelectionWire",
    "TemplateWire",
    "decode_export_request",
]
