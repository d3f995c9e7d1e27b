"""Typed dataclasses shared by the thesis builder pipeline.

The models here describe what a user picks (:class:`Selection`), the fixed
presentation catalog (:class:`Template`), how an export should look
(:class:`ExportOptions`), and the derived :class:`Page` descriptors that the
plan builder hands to the preview and export renderers. Pages and their
content blocks are frozen; selections and options belong to a builder
session and are replaced or patched as the user works through the wizard.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt  # noqa: TC003 - used for runtime type metadata
import enum
import re
import typing as typ

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


class ThesisConfigError(ValueError):
    """Raised when reference data or export options are invalid."""


class ItemKind(enum.StrEnum):
    """Kinds of content a user can add to a thesis."""

    CHART = "chart"
    METRIC = "metric"
    PHASE = "phase"
    RISK = "risk"


class PageKind(enum.StrEnum):
    """Kinds of pages emitted by the plan builder."""

    COVER = "cover"
    SUMMARY = "summary"
    CHART = "chart"
    PHASE = "phase"
    RISK = "risk"


class ExportFormat(enum.StrEnum):
    """Binary output formats supported by the export renderers."""

    DOCUMENT = "document"
    SLIDE_DECK = "slideDeck"

    @property
    def extension(self) -> str:
        """Return the file extension used for this format."""
        return "pdf" if self is ExportFormat.DOCUMENT else "pptx"

    @property
    def label(self) -> str:
        """Return the short label shown in export summaries."""
        return self.extension.upper()


@dc.dataclass(frozen=True, slots=True)
class SelectableItem:
    """An entry the selection catalog offers to the user."""

    id: str
    kind: ItemKind
    title: str
    payload: object = None
    display_order: int = 0


@dc.dataclass(slots=True)
class Selection:
    """A catalog item the user has added, with its display position."""

    id: str
    kind: ItemKind
    title: str
    order: int
    payload: object = None

    @property
    def selected(self) -> bool:
        """Membership in a selection list always implies selection."""
        return True

    @classmethod
    def from_item(cls, item: SelectableItem, order: int) -> Selection:
        """Create a selection for ``item`` placed at ``order``."""
        return cls(
            id=item.id,
            kind=item.kind,
            title=item.title,
            order=order,
            payload=item.payload,
        )


@dc.dataclass(frozen=True, slots=True)
class Template:
    """Immutable presentation template from the fixed catalog."""

    id: str
    name: str
    description: str
    sections: tuple[str, ...]
    default_selection_ids: tuple[str, ...] = ()


@dc.dataclass(slots=True)
class Branding:
    """Brand colors and typeface applied by both export formats."""

    primary_color: str = "#667eea"
    secondary_color: str = "#764ba2"
    font_family: str = "Inter"


@dc.dataclass(slots=True)
class Customization:
    """Content toggles for an export."""

    include_cover_page: bool = True
    include_executive_summary: bool = True
    include_appendix: bool = False
    page_numbers: bool = True


@dc.dataclass(slots=True)
class ExportOptions:
    """Export settings owned by a builder session."""

    format: ExportFormat = ExportFormat.DOCUMENT
    branding: Branding = dc.field(default_factory=Branding)
    customization: Customization = dc.field(default_factory=Customization)

    def apply_patch(self, patch: typ.Mapping[str, typ.Any]) -> None:
        """Merge a partial update into these options in place.

        Parameters
        ----------
        patch : Mapping[str, Any]
            Partial options such as ``{"branding": {"primary_color": "#112233"}}``.
            Nested mappings only replace the sub-fields they name.

        Raises
        ------
        ThesisConfigError
            If the patch names an unknown field or carries an invalid value.
            The options are left untouched in that case.
        """
        unknown = set(patch) - {"format", "branding", "customization"}
        if unknown:
            msg = f"Unknown export option(s): {', '.join(sorted(unknown))}"
            raise ThesisConfigError(msg)

        export_format = self.format
        if "format" in patch:
            export_format = _coerce_format(patch["format"])
        branding = _patched(self.branding, patch.get("branding"), "branding")
        customization = _patched(
            self.customization, patch.get("customization"), "customization"
        )
        validate_branding(branding)
        for field in dc.fields(customization):
            if not isinstance(getattr(customization, field.name), bool):
                msg = f"customization.{field.name} must be a boolean"
                raise ThesisConfigError(msg)

        self.format = export_format
        self.branding = branding
        self.customization = customization


def validate_branding(branding: Branding) -> None:
    """Raise ThesisConfigError unless both brand colors are ``#RRGGBB``."""
    for name in ("primary_color", "secondary_color"):
        value = getattr(branding, name)
        if not isinstance(value, str) or not HEX_COLOR_PATTERN.match(value):
            msg = f"branding.{name} must be a #RRGGBB color, got {value!r}"
            raise ThesisConfigError(msg)
    if not isinstance(branding.font_family, str) or not branding.font_family.strip():
        msg = "branding.font_family must be a non-empty string"
        raise ThesisConfigError(msg)


_PatchTarget = typ.TypeVar("_PatchTarget", Branding, Customization)


def _patched(
    current: _PatchTarget, updates: object, label: str
) -> _PatchTarget:
    """Return a copy of ``current`` with the named sub-fields replaced."""
    if updates is None:
        return dc.replace(current)
    if not isinstance(updates, cabc.Mapping):
        msg = f"{label} patch must be a mapping"
        raise ThesisConfigError(msg)
    known = {field.name for field in dc.fields(current)}
    unknown = set(updates) - known
    if unknown:
        msg = f"Unknown {label} option(s): {', '.join(sorted(unknown))}"
        raise ThesisConfigError(msg)
    return dc.replace(current, **dict(updates))


def _coerce_format(value: object) -> ExportFormat:
    try:
        return ExportFormat(value)
    except ValueError as exc:
        choices = ", ".join(member.value for member in ExportFormat)
        msg = f"Unknown export format {value!r}; expected one of: {choices}"
        raise ThesisConfigError(msg) from exc


@dc.dataclass(frozen=True, slots=True)
class MetricFigure:
    """A labelled figure shown in metric grids and key/value tables."""

    label: str
    value: str


@dc.dataclass(frozen=True, slots=True)
class CoverContent:
    """Cover copy captured when the plan is built."""

    headline: str
    subtitle: str
    tagline: str
    highlights: tuple[str, ...]
    prepared_by: str
    prepared_on: dt.date
    template_name: str


@dc.dataclass(frozen=True, slots=True)
class SummaryContent:
    """Executive summary copy and headline figures."""

    opportunity: str
    metrics: tuple[MetricFigure, ...]
    value_drivers: tuple[str, ...]
    thesis: str


@dc.dataclass(frozen=True, slots=True)
class ChartContent:
    """Reference to a chart provider plus its insight text."""

    chart_id: str
    insight: str


@dc.dataclass(frozen=True, slots=True)
class PhaseContent:
    """Duration and formatted metrics for a single investment phase."""

    duration: str
    metrics: tuple[MetricFigure, ...]


@dc.dataclass(frozen=True, slots=True)
class RiskContent:
    """Risk names partitioned by severity plus mitigation strategies."""

    high: tuple[str, ...]
    medium: tuple[str, ...]
    low: tuple[str, ...]
    mitigations: tuple[str, ...]

    def buckets(self) -> tuple[tuple[str, tuple[str, ...]], ...]:
        """Return ``(level, names)`` pairs ordered high, medium, low."""
        return (("high", self.high), ("medium", self.medium), ("low", self.low))


PageContent = CoverContent | SummaryContent | ChartContent | PhaseContent | RiskContent


@dc.dataclass(frozen=True, slots=True)
class Page:
    """A single entry of a page plan."""

    id: str
    title: str
    kind: PageKind
    content: PageContent


__all__ = [
    "HEX_COLOR_PATTERN",
    "Branding",
    "ChartContent",
    "CoverContent",
    "Customization",
    "ExportFormat",
    "ExportOptions",
    "ItemKind",
    "MetricFigure",
    "Page",
    "PageContent",
    "PageKind",
    "PhaseContent",
    "RiskContent",
    "SelectableItem",
    "Selection",
    "SummaryContent",
    "Template",
    "ThesisConfigError",
    "validate_branding",
]
